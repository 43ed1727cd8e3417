"""Tray application class."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional

from cpuscale.client.apply import apply_pending_changes, apply_profile
from cpuscale.client.events import BatchCompleted, ProgressChanged
from cpuscale.client.scheduler import OperationScheduler
from cpuscale.client.settings import CpuSettings, PendingChanges
from cpuscale.core.config import Config
from cpuscale.core.profile import ProfileManager
from cpuscale.core.sysfs import SysfsCpuReader

from .integrations import runtime
from .ui import icon as icon_mod
from .ui import menu as menu_mod

logger = logging.getLogger(__name__)


class CpuScaleTray:
    """System tray application for cpuscale.

    Menu callbacks arrive on the pystray thread and are handed to the
    dispatcher, which owns the scheduler and the bus connection.
    """

    def __init__(self, *, client, dispatcher, config: Optional[Config] = None, reader=None, profiles=None):
        self.config = config if config is not None else Config()
        self.reader = reader if reader is not None else SysfsCpuReader()
        self.client = client
        self.dispatcher = dispatcher
        self.scheduler = OperationScheduler(client)
        self.profiles = profiles if profiles is not None else ProfileManager(self.reader)
        self.icon = None
        self.active_profile: Optional[str] = None
        self._units: dict[int, CpuSettings] = {}
        self._pending_notifications: list[tuple[str, str]] = []
        self._refresh_source = None

        self.scheduler.events.subscribe(self._on_scheduler_event)
        self.profiles.changed.subscribe(lambda _event: self._update_menu())

    # ---- notifications

    def _notify(self, title: str, message: str) -> None:
        """Best-effort user notification: tray first, then notify-send."""

        icon = self.icon
        if icon is None:
            self._pending_notifications.append((str(title), str(message)))
            return

        notify_fn = getattr(icon, "notify", None)
        if callable(notify_fn):
            try:
                notify_fn(str(message), str(title))
                return
            except Exception as exc:
                logger.debug("Tray notification failed: %s", exc)

        if shutil.which("notify-send"):
            subprocess.run(
                ["notify-send", str(title), str(message)],
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )

    # ---- icon / menu

    def _update_icon(self) -> None:
        if self.icon is None:
            return
        state = icon_mod.icon_state(connected=self.client.connected, busy=self.scheduler.in_progress)
        self.icon.icon = icon_mod.create_icon(state)

    def _update_menu(self) -> None:
        if self.icon is None:
            return
        pystray, item = runtime.get_pystray()
        self.icon.menu = menu_mod.build_menu(self, pystray=pystray, item=item)
        update = getattr(self.icon, "update_menu", None)
        if callable(update):
            update()

    def _refresh_ui(self) -> None:
        self._update_icon()
        self._update_menu()

    # ---- scheduler events (dispatcher thread)

    def _on_scheduler_event(self, event) -> None:
        if isinstance(event, ProgressChanged):
            self._update_icon()
        elif isinstance(event, BatchCompleted):
            self._on_batch_completed(event)

    def _on_batch_completed(self, event: BatchCompleted) -> None:
        for unit in self._units.values():
            unit.update_from_system()

        if event.all_succeeded:
            logger.info("Changes applied")
            if self.config.notify_on_apply:
                self._notify("cpuscale", "Changes applied")
        else:
            logger.warning("Some changes failed: %s", "; ".join(event.errors))
            self._notify("cpuscale: some changes failed", "\n".join(event.errors))
        self._refresh_ui()

    # ---- units

    def _unit(self, cpu: int) -> CpuSettings:
        unit = self._units.get(cpu)
        if unit is None:
            unit = CpuSettings(cpu, self.reader, self.scheduler)
            self._units[cpu] = unit
        else:
            unit.update_from_system()
        return unit

    def _target_units(self, *, all_cpus: bool) -> list[CpuSettings]:
        cpus = self.reader.online_cpus() if all_cpus else [0]
        return [self._unit(cpu) for cpu in cpus]

    # ---- actions (dispatcher thread)

    def apply_profile_by_name(self, name: str) -> bool:
        profile = self.profiles.get(name)
        if profile is None:
            logger.warning("Profile not found: %s", name)
            self._notify("cpuscale", f"Profile not found: {name}")
            return False
        if not self.client.connected:
            self._notify("cpuscale", "Helper not available; cannot apply profile")
            return False

        started = apply_profile(profile, self.scheduler, self.reader)
        if started:
            self.active_profile = name
        return started

    def apply_governor(self, governor: str) -> bool:
        units = self._target_units(all_cpus=self.config.all_cpus_default)
        return apply_pending_changes(PendingChanges(governor=governor), units, self.scheduler)

    def apply_energy_pref(self, pref: str) -> bool:
        units = self._target_units(all_cpus=not self.config.energy_pref_per_cpu)
        units = [u for u in units if u.energy_pref_available]
        return apply_pending_changes(PendingChanges(energy_pref=pref), units, self.scheduler)

    def refresh(self) -> bool:
        self.profiles.reload()
        for unit in self._units.values():
            unit.update_from_system()
        self._refresh_ui()
        # Keep the periodic source alive.
        return True

    # ---- menu callbacks (pystray thread)

    def _on_profile_clicked(self, name: str) -> None:
        self.dispatcher.call_soon(self.apply_profile_by_name, name)

    def _on_governor_clicked(self, governor: str) -> None:
        self.dispatcher.call_soon(self.apply_governor, governor)

    def _on_energy_pref_clicked(self, pref: str) -> None:
        self.dispatcher.call_soon(self.apply_energy_pref, pref)

    def _on_refresh_clicked(self, _icon, _item) -> None:
        self.dispatcher.call_soon(self.refresh)

    def _on_quit_clicked(self, icon, _item) -> None:
        try:
            self.client.quit()
        finally:
            self.dispatcher.stop()
            icon.stop()

    # ---- run

    def _startup(self) -> None:
        self.active_profile = self.config.default_profile if self.profiles.has(self.config.default_profile) else None
        if self.config.apply_profile_on_start and self.active_profile and self.client.connected:
            self.dispatcher.call_soon(self.apply_profile_by_name, self.active_profile)
        self._refresh_source = self.dispatcher.call_later(self.config.refresh_interval_s, self._periodic_refresh)

    def _periodic_refresh(self) -> bool:
        if not self.scheduler.in_progress:
            self._update_menu()
        return True

    def run(self) -> None:
        pystray, item = runtime.get_pystray()

        self._startup()
        state = icon_mod.icon_state(connected=self.client.connected, busy=False)
        logger.info("Creating tray icon...")
        self.icon = pystray.Icon(
            "cpuscale",
            icon_mod.create_icon(state),
            "cpuscale",
            menu=menu_mod.build_menu(self, pystray=pystray, item=item),
        )

        logger.info("cpuscale tray started (helper %s)", "connected" if self.client.connected else "unavailable")
        pending = self._pending_notifications
        self._pending_notifications = []
        for title, message in pending:
            self._notify(title, message)
        self.icon.run()
