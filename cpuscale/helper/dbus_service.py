"""System bus export of :class:`CpuHelper`."""

from __future__ import annotations

import logging

import dbus
import dbus.exceptions
import dbus.service

from cpuscale.core.errors import ServiceRegistrationError

from .constants import BUS_NAME, INTERFACE_NAME, OBJECT_PATH
from .service import CpuHelper

logger = logging.getLogger(__name__)


def _ints(values) -> dbus.Array:
    return dbus.Array([dbus.Int32(v) for v in values], signature="i")


def _strs(values) -> dbus.Array:
    return dbus.Array([dbus.String(v) for v in values], signature="s")


class HelperObject(dbus.service.Object):
    """Thin adapter: unpacks bus arguments and forwards to the helper core."""

    def __init__(self, bus_name: dbus.service.BusName, helper: CpuHelper):
        super().__init__(bus_name, OBJECT_PATH)
        self._helper = helper

    # ---- queries

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="i", sender_keyword="sender")
    def isauthorized(self, sender=None):
        return dbus.Int32(self._helper.isauthorized(sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai", sender_keyword="sender")
    def get_cpus_available(self, sender=None):
        return _ints(self._helper.get_cpus_available(sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai", sender_keyword="sender")
    def get_cpus_online(self, sender=None):
        return _ints(self._helper.get_cpus_online(sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai", sender_keyword="sender")
    def get_cpus_offline(self, sender=None):
        return _ints(self._helper.get_cpus_offline(sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="ai", sender_keyword="sender")
    def get_cpus_present(self, sender=None):
        return _ints(self._helper.get_cpus_present(sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="as", sender_keyword="sender")
    def get_cpu_governors(self, cpu, sender=None):
        return _strs(self._helper.get_cpu_governors(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="as", sender_keyword="sender")
    def get_cpu_energy_preferences(self, cpu, sender=None):
        return _strs(self._helper.get_cpu_energy_preferences(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="s", sender_keyword="sender")
    def get_cpu_governor(self, cpu, sender=None):
        return dbus.String(self._helper.get_cpu_governor(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="s", sender_keyword="sender")
    def get_cpu_energy_preference(self, cpu, sender=None):
        return dbus.String(self._helper.get_cpu_energy_preference(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="ai", sender_keyword="sender")
    def get_cpu_frequencies(self, cpu, sender=None):
        return _ints(self._helper.get_cpu_frequencies(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="ai", sender_keyword="sender")
    def get_cpu_limits(self, cpu, sender=None):
        return _ints(self._helper.get_cpu_limits(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i", sender_keyword="sender")
    def cpu_allowed_offline(self, cpu, sender=None):
        return dbus.Int32(self._helper.cpu_allowed_offline(int(cpu), sender=sender))

    # ---- mutations

    @dbus.service.method(INTERFACE_NAME, in_signature="iii", out_signature="i", sender_keyword="sender")
    def update_cpu_settings(self, cpu, freq_min, freq_max, sender=None):
        return dbus.Int32(self._helper.update_cpu_settings(int(cpu), int(freq_min), int(freq_max), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="is", out_signature="i", sender_keyword="sender")
    def update_cpu_governor(self, cpu, governor, sender=None):
        return dbus.Int32(self._helper.update_cpu_governor(int(cpu), str(governor), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="is", out_signature="i", sender_keyword="sender")
    def update_cpu_energy_prefs(self, cpu, pref, sender=None):
        return dbus.Int32(self._helper.update_cpu_energy_prefs(int(cpu), str(pref), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i", sender_keyword="sender")
    def set_cpu_online(self, cpu, sender=None):
        return dbus.Int32(self._helper.set_cpu_online(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="i", out_signature="i", sender_keyword="sender")
    def set_cpu_offline(self, cpu, sender=None):
        return dbus.Int32(self._helper.set_cpu_offline(int(cpu), sender=sender))

    @dbus.service.method(INTERFACE_NAME, in_signature="", out_signature="", sender_keyword="sender")
    def quit(self, sender=None):
        self._helper.quit(sender=sender)


def register_service(bus, helper: CpuHelper) -> HelperObject:
    """Claim the well-known name and export the helper object.

    Raises ServiceRegistrationError when the name is taken or the bus refuses.
    """

    try:
        bus_name = dbus.service.BusName(BUS_NAME, bus=bus, do_not_queue=True)
    except dbus.exceptions.NameExistsException as exc:
        raise ServiceRegistrationError(f"{BUS_NAME} is already owned by another process") from exc
    except dbus.exceptions.DBusException as exc:
        raise ServiceRegistrationError(f"cannot register {BUS_NAME}: {exc}") from exc

    obj = HelperObject(bus_name, helper)
    helper.mark_registered()
    logger.info("Exported %s at %s", BUS_NAME, OBJECT_PATH)
    return obj
