"""Client stub for the privileged helper on the system bus."""

from __future__ import annotations

import logging
from typing import Any, Callable

from cpuscale.core.errors import NotConnected
from cpuscale.core.logging_utils import log_throttled
from cpuscale.helper.constants import BUS_NAME, CLIENT_CALL_TIMEOUT_S, INTERFACE_NAME, OBJECT_PATH

logger = logging.getLogger(__name__)


class HelperClient:
    """Wraps the helper's bus interface.

    The bus connection must be created after ``DBusGMainLoop`` was installed
    (see :mod:`cpuscale.client.mainloop`) so async replies are dispatched.
    When the helper is neither running nor activatable the client stays
    disconnected and every query returns an empty value.
    """

    def __init__(self, bus=None):
        self._bus = bus
        self._iface = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        import dbus
        import dbus.exceptions

        try:
            bus = self._bus if self._bus is not None else dbus.SystemBus()
            if not (bus.name_has_owner(BUS_NAME) or BUS_NAME in bus.list_activatable_names()):
                logger.warning("Helper %s is not available; running read-only", BUS_NAME)
                self._connected = False
                return False
            proxy = bus.get_object(BUS_NAME, OBJECT_PATH, introspect=False)
            self._iface = dbus.Interface(proxy, INTERFACE_NAME)
            self._bus = bus
        except dbus.exceptions.DBusException as exc:
            logger.warning("Failed to connect to helper %s: %s", BUS_NAME, exc)
            self._connected = False
            return False

        self._connected = True
        logger.info("Connected to helper %s", BUS_NAME)
        return True

    # ---- async (used by the scheduler)

    def call_async(
        self,
        method: str,
        args: tuple[Any, ...],
        reply_handler: Callable[[Any], None],
        error_handler: Callable[[BaseException], None],
    ) -> None:
        if self._iface is None:
            raise NotConnected("helper client is not connected")
        getattr(self._iface, method)(
            *args,
            reply_handler=reply_handler,
            error_handler=error_handler,
            timeout=CLIENT_CALL_TIMEOUT_S,
        )

    # ---- sync queries

    def _call(self, method: str, *args, default):
        if not self._connected or self._iface is None:
            return default
        import dbus.exceptions

        try:
            return getattr(self._iface, method)(*args, timeout=CLIENT_CALL_TIMEOUT_S)
        except dbus.exceptions.DBusException as exc:
            log_throttled(
                logger,
                f"helper.call:{method}",
                interval_s=30,
                level=logging.WARNING,
                msg=f"Helper call {method} failed: {exc}",
            )
            return default

    def _int_list(self, method: str, *args) -> list[int]:
        return [int(v) for v in self._call(method, *args, default=[])]

    def is_authorized(self) -> bool:
        return int(self._call("isauthorized", default=0)) != 0

    def cpus_available(self) -> list[int]:
        return self._int_list("get_cpus_available")

    def cpus_online(self) -> list[int]:
        return self._int_list("get_cpus_online")

    def cpus_offline(self) -> list[int]:
        return self._int_list("get_cpus_offline")

    def cpus_present(self) -> list[int]:
        return self._int_list("get_cpus_present")

    def cpu_governors(self, cpu: int) -> list[str]:
        return [str(v) for v in self._call("get_cpu_governors", int(cpu), default=[])]

    def cpu_allowed_offline(self, cpu: int) -> bool:
        return int(self._call("cpu_allowed_offline", int(cpu), default=0)) != 0

    def quit(self) -> None:
        if not self._connected or self._iface is None:
            return
        import dbus.exceptions

        try:
            self._iface.quit(ignore_reply=True)
        except dbus.exceptions.DBusException as exc:
            logger.debug("Helper quit failed: %s", exc)


def connect_helper(bus=None) -> HelperClient:
    client = HelperClient(bus)
    client.connect()
    return client
