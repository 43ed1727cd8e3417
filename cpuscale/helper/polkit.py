"""polkit CheckAuthorization over the system bus."""

from __future__ import annotations

import dbus

from .constants import (
    POLKIT_BUS_NAME,
    POLKIT_FLAG_ALLOW_USER_INTERACTION,
    POLKIT_INTERFACE,
    POLKIT_OBJECT_PATH,
    POLKIT_TIMEOUT_S,
)


def make_check_authorization(bus):
    """Return a ``check(sender, action_id)`` callable bound to *bus*.

    The call blocks until polkit answers, which includes any interactive
    password prompt.
    """

    def check(sender: str, action_id: str):
        proxy = bus.get_object(POLKIT_BUS_NAME, POLKIT_OBJECT_PATH)
        authority = dbus.Interface(proxy, POLKIT_INTERFACE)
        subject = ("system-bus-name", {"name": dbus.String(sender, variant_level=1)})
        return authority.CheckAuthorization(
            subject,
            action_id,
            dbus.Dictionary({}, signature="ss"),
            dbus.UInt32(POLKIT_FLAG_ALLOW_USER_INTERACTION),
            "",
            timeout=POLKIT_TIMEOUT_S,
        )

    return check
