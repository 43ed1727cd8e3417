from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def status_text(tray: Any) -> str:
    if not tray.client.connected:
        return "Read-only (helper unavailable)"
    if tray.scheduler.in_progress:
        return "Applying changes..."
    governor = tray.reader.current_governor(0) or "unknown"
    return f"Governor: {governor}"


def _profiles_menu(tray: Any, *, pystray: Any, item: Any):
    names = tray.profiles.names()
    if not names:
        return None

    def _apply(name: str):
        def _action(_icon, _item):
            tray._on_profile_clicked(name)

        return _action

    def _checked(name: str):
        def _is_checked(_item):
            return tray.active_profile == name

        return _is_checked

    return pystray.Menu(
        *[
            item(name, _apply(name), checked=_checked(name), radio=True, enabled=tray.client.connected)
            for name in names
        ]
    )


def _governor_menu(tray: Any, *, pystray: Any, item: Any):
    governors = tray.reader.available_governors(0)
    if not governors:
        return None

    def _apply(gov: str):
        def _action(_icon, _item):
            tray._on_governor_clicked(gov)

        return _action

    def _checked(gov: str):
        def _is_checked(_item):
            return tray.reader.current_governor(0) == gov

        return _is_checked

    return pystray.Menu(
        *[
            item(gov, _apply(gov), checked=_checked(gov), radio=True, enabled=tray.client.connected)
            for gov in governors
        ]
    )


def _energy_pref_menu(tray: Any, *, pystray: Any, item: Any):
    if not tray.reader.is_energy_pref_available(0):
        return None
    prefs = tray.reader.available_energy_prefs(0)

    def _apply(pref: str):
        def _action(_icon, _item):
            tray._on_energy_pref_clicked(pref)

        return _action

    def _checked(pref: str):
        def _is_checked(_item):
            return tray.reader.current_energy_pref(0) == pref

        return _is_checked

    return pystray.Menu(
        *[
            item(pref, _apply(pref), checked=_checked(pref), radio=True, enabled=tray.client.connected)
            for pref in prefs
        ]
    )


def build_menu_items(tray: Any, *, pystray: Any, item: Any) -> list[Any]:
    """Build menu items list for dynamic menu updates."""

    items: list[Any] = [
        item(status_text(tray), None, enabled=False),
        pystray.Menu.SEPARATOR,
    ]

    profiles_menu = _profiles_menu(tray, pystray=pystray, item=item)
    if profiles_menu is not None:
        items.append(item("Profile", profiles_menu))

    governor_menu = _governor_menu(tray, pystray=pystray, item=item)
    if governor_menu is not None:
        items.append(item("Governor", governor_menu))

    energy_menu = _energy_pref_menu(tray, pystray=pystray, item=item)
    if energy_menu is not None:
        items.append(item("Energy preference", energy_menu))

    items.extend(
        [
            pystray.Menu.SEPARATOR,
            item("Refresh", tray._on_refresh_clicked),
            item("Quit", tray._on_quit_clicked),
        ]
    )
    return items


def build_menu(tray: Any, *, pystray: Any, item: Any) -> Any:
    """Build a pystray.Menu object."""

    return pystray.Menu(*build_menu_items(tray, pystray=pystray, item=item))
