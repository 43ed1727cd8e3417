from __future__ import annotations

from .bootstrap import acquire_single_instance_or_exit, configure_logging, start_backend

__all__ = ["acquire_single_instance_or_exit", "configure_logging", "start_backend"]
