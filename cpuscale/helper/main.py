"""Entry point for the privileged helper daemon."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys

from cpuscale import __version__
from cpuscale.core.errors import ServiceRegistrationError
from cpuscale.core.logging_utils import configure_logging

from .constants import BUS_NAME, DEFAULT_IDLE_TIMEOUT_S, OBJECT_PATH

logger = logging.getLogger(__name__)


def _default_idle_timeout() -> int:
    raw = os.environ.get("CPUSCALE_HELPER_IDLE_TIMEOUT")
    if not raw:
        return DEFAULT_IDLE_TIMEOUT_S
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring invalid CPUSCALE_HELPER_IDLE_TIMEOUT=%r", raw)
        return DEFAULT_IDLE_TIMEOUT_S


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cpuscale-helper", description="cpuscale privileged helper")
    parser.add_argument(
        "--idle-timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help=f"exit after this many idle seconds, 0 to never exit (default {DEFAULT_IDLE_TIMEOUT_S})",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if args.idle_timeout is None:
        args.idle_timeout = _default_idle_timeout()
    args.idle_timeout = max(0, int(args.idle_timeout))
    return args


def build_helper(bus, *, idle_timeout_s: int, on_terminate):
    from .authorization import AuthorizationGate
    from .engine import MutationEngine
    from .idle import IdleTimer
    from .polkit import make_check_authorization
    from .service import CpuHelper

    helper = CpuHelper(
        engine=MutationEngine(),
        gate=AuthorizationGate(make_check_authorization(bus)),
        on_terminate=on_terminate,
    )
    helper.attach_idle_timer(IdleTimer(idle_timeout_s, helper.on_idle_timeout))
    return helper


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(debug=True if args.debug else None)

    import dbus
    import dbus.exceptions
    import dbus.mainloop.glib
    from gi.repository import GLib

    from .dbus_service import register_service

    dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
    loop = GLib.MainLoop()

    try:
        bus = dbus.SystemBus()
        helper = build_helper(bus, idle_timeout_s=args.idle_timeout, on_terminate=loop.quit)
        service = register_service(bus, helper)  # noqa: F841
    except (dbus.exceptions.DBusException, ServiceRegistrationError) as exc:
        logger.error("Failed to register helper service: %s", exc)
        return 1

    def on_signal(signum: int) -> bool:
        helper.terminate(f"signal {signum}")
        return False

    for signum in (signal.SIGTERM, signal.SIGINT):
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signum, on_signal, signum)

    logger.info("cpuscale-helper %s started: %s %s (idle timeout %ds)", __version__, BUS_NAME, OBJECT_PATH, args.idle_timeout)
    loop.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
