"""Privileged CPU frequency-scaling helper (system bus service)."""
