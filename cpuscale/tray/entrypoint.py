"""Tray startup entrypoint.

Owns the startup sequence (logging, single instance, bus loop) and then
launches :class:`CpuScaleTray`.
"""

from __future__ import annotations

import logging
import sys

from .application import CpuScaleTray
from .startup import acquire_single_instance_or_exit, configure_logging, start_backend

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        configure_logging()
        acquire_single_instance_or_exit()

        dispatcher, client = start_backend()
        app = CpuScaleTray(client=client, dispatcher=dispatcher)
        app.run()

    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        sys.exit(1)
