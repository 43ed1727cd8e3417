from __future__ import annotations

BUS_NAME = "io.github.cpuscale.helper"
OBJECT_PATH = "/io/github/cpuscale/helper"
INTERFACE_NAME = "io.github.cpuscale.helper"

# Single polkit action covering every runtime mutation.
POLKIT_ACTION_APPLY = "io.github.cpuscale.apply-runtime"

POLKIT_BUS_NAME = "org.freedesktop.PolicyKit1"
POLKIT_OBJECT_PATH = "/org/freedesktop/PolicyKit1/Authority"
POLKIT_INTERFACE = "org.freedesktop.PolicyKit1.Authority"
POLKIT_FLAG_ALLOW_USER_INTERACTION = 1

# Interactive authentication must fit inside this window.
POLKIT_TIMEOUT_S = 120
# Client side: longer than the polkit round trip so the helper answers first.
CLIENT_CALL_TIMEOUT_S = 150

DEFAULT_IDLE_TIMEOUT_S = 60
