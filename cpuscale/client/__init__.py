"""Unprivileged side: helper proxy, operation scheduler and per-CPU settings."""
