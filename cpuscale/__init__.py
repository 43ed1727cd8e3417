"""cpuscale: CPU frequency scaling control with a polkit-gated privileged helper."""

__version__ = "1.0.0"
