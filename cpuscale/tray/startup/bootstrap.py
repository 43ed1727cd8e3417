from __future__ import annotations

import logging
import sys

from cpuscale.client.mainloop import GLibDispatcher, install_dbus_mainloop
from cpuscale.client.proxy import HelperClient, connect_helper
from cpuscale.core.logging_utils import configure_logging

from ..integrations import runtime


logger = logging.getLogger(__name__)

__all__ = ["acquire_single_instance_or_exit", "configure_logging", "start_backend"]


def acquire_single_instance_or_exit() -> None:
    """Acquire the tray single-instance lock or exit with code 0."""

    if runtime.acquire_single_instance_lock():
        return

    logger.error("cpuscale tray is already running (lock held). Not starting a second instance.")
    sys.exit(0)


def start_backend() -> tuple[GLibDispatcher, HelperClient]:
    """Install the GLib bus loop and connect to the helper.

    The dispatcher gets its own loop thread only when the tray backend does
    not already iterate GLib.
    """

    install_dbus_mainloop()
    dispatcher = GLibDispatcher()
    dispatcher.start(own_thread=not runtime.pystray_runs_glib())
    client = connect_helper()
    return dispatcher, client
