from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _glib():
    from gi.repository import GLib

    return GLib


class IdleTimer:
    """One-shot inactivity timer on the GLib main loop.

    ``reset()`` restarts the countdown; a timeout of 0 disables the timer.
    """

    def __init__(
        self,
        timeout_s: int,
        on_expire: Callable[[], None],
        *,
        timeout_add: Optional[Callable] = None,
        source_remove: Optional[Callable] = None,
    ):
        self._timeout_s = max(0, int(timeout_s))
        self._on_expire = on_expire
        self._timeout_add = timeout_add
        self._source_remove = source_remove
        self._source_id: Optional[int] = None

    @property
    def timeout_s(self) -> int:
        return self._timeout_s

    @property
    def active(self) -> bool:
        return self._source_id is not None

    def set_timeout(self, timeout_s: int) -> None:
        self._timeout_s = max(0, int(timeout_s))
        if self._timeout_s > 0:
            self.reset()
        else:
            self.stop()

    def reset(self) -> None:
        self.stop()
        if self._timeout_s <= 0:
            return
        add = self._timeout_add or _glib().timeout_add_seconds
        self._source_id = add(self._timeout_s, self._fire)

    def stop(self) -> None:
        if self._source_id is None:
            return
        remove = self._source_remove or _glib().source_remove
        try:
            remove(self._source_id)
        finally:
            self._source_id = None

    def _fire(self) -> bool:
        self._source_id = None
        logger.info("Idle timeout of %ds reached", self._timeout_s)
        self._on_expire()
        # One-shot: do not reschedule.
        return False
