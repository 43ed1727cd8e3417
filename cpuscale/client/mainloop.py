"""GLib main loop that dispatches bus replies and scheduler work.

pystray owns the process main thread. With the xorg backend nothing iterates
GLib there, so the loop runs on a daemon thread. The AppIndicator and GTK
backends already run the default GLib context from `Icon.run()`; a second loop
would contend for it, so the dispatcher then only posts sources. Either way
everything touching the scheduler goes through :meth:`GLibDispatcher.call_soon`
and executes on the thread that iterates GLib.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def install_dbus_mainloop() -> None:
    """Make GLib the default dbus-python main loop. Call before opening a bus."""

    from dbus.mainloop.glib import DBusGMainLoop

    DBusGMainLoop(set_as_default=True)


class GLibDispatcher:
    def __init__(self) -> None:
        self._loop = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, own_thread: bool = True) -> None:
        if self.running:
            return
        if not own_thread:
            logger.debug("GLib main context is iterated by the tray backend")
            return
        from gi.repository import GLib

        self._loop = GLib.MainLoop()
        self._thread = threading.Thread(target=self._loop.run, name="cpuscale-glib", daemon=True)
        self._thread.start()
        logger.debug("GLib main loop thread started")

    def stop(self) -> None:
        if self._loop is not None:
            self._loop.quit()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._loop = None
        self._thread = None

    def call_soon(self, fn: Callable[..., None], *args) -> None:
        from gi.repository import GLib

        def _once() -> bool:
            try:
                fn(*args)
            except Exception:
                logger.exception("Dispatched callback %r failed", fn)
            return False

        GLib.idle_add(_once)

    def call_later(self, seconds: int, fn: Callable[[], bool]) -> int:
        """Run *fn* every *seconds* for as long as it returns True."""

        from gi.repository import GLib

        return GLib.timeout_add_seconds(int(seconds), fn)
