"""Logging setup shared by the tray and the helper daemon."""

from __future__ import annotations

import logging
import os
import threading
import time

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# key -> monotonic time of the last emitted record
_throttle_state: dict[str, float] = {}
_throttle_lock = threading.Lock()


def debug_enabled() -> bool:
    return os.environ.get("CPUSCALE_DEBUG", "") not in ("", "0")


def configure_logging(*, debug: bool | None = None) -> None:
    """Install a root handler unless the host already configured logging.

    ``debug=None`` defers to ``CPUSCALE_DEBUG``.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    if debug is None:
        debug = debug_enabled()
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def _should_emit(key: str, interval_s: float) -> bool:
    now = time.monotonic()
    with _throttle_lock:
        last = _throttle_state.get(key)
        if last is not None and now - last < interval_s:
            return False
        _throttle_state[key] = now
        return True


def log_throttled(
    logger: logging.Logger,
    key: str,
    *,
    interval_s: float,
    level: int,
    msg: str,
    exc: BaseException | None = None,
) -> bool:
    """Emit *msg* at most once per *interval_s* for *key*; returns whether it was emitted.

    Used for sysfs reads and helper queries that fail on every refresh tick.
    """

    if not _should_emit(key, interval_s):
        return False
    logger.log(level, msg, exc_info=exc)
    return True
