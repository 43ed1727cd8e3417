"""Per-CPU change tracking.

A :class:`CpuSettings` holds the values last read from the kernel and the
pending values the user picked. Committing enqueues the difference on the
scheduler and re-reads the kernel once the last call for this CPU finished.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from cpuscale.core.events import EventEmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CpuState:
    freq_min: int = 0
    freq_max: int = 0
    governor: str = ""
    energy_pref: str = ""
    online: bool = True


@dataclass(frozen=True)
class PendingChanges:
    """Optional overrides; None keeps the current value."""

    freq_min: Optional[int] = None
    freq_max: Optional[int] = None
    governor: Optional[str] = None
    energy_pref: Optional[str] = None
    online: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(
            v is None for v in (self.freq_min, self.freq_max, self.governor, self.energy_pref, self.online)
        )


@dataclass(frozen=True)
class SettingsChanged:
    cpu: int


class CpuSettings:
    def __init__(self, cpu: int, reader, scheduler, *, can_go_offline: Optional[bool] = None):
        self._cpu = int(cpu)
        self._reader = reader
        self._scheduler = scheduler
        self._can_go_offline_override = can_go_offline
        self._original = CpuState()
        self._pending = CpuState()
        self._applying = False
        self.changed = EventEmitter()
        self.load_from_system()

    # ---- loading

    def load_from_system(self) -> None:
        self.hw_min, self.hw_max = self._reader.freq_limits(self._cpu)
        self.governors: list[str] = self._reader.available_governors(self._cpu)
        self.energy_prefs: list[str] = self._reader.available_energy_prefs(self._cpu)
        self.energy_pref_available: bool = self._reader.is_energy_pref_available(self._cpu)
        self.freq_steps: list[int] = self._reader.available_frequencies(self._cpu)
        if self._can_go_offline_override is not None:
            self.can_go_offline = bool(self._can_go_offline_override)
        else:
            self.can_go_offline = self._cpu != 0 and self._reader.allowed_offline(self._cpu)
        self.update_from_system()

    def update_from_system(self) -> None:
        """Re-read the kernel and drop pending edits."""

        fmin, fmax = self._reader.scaling_freqs(self._cpu)
        self._original = CpuState(
            freq_min=fmin,
            freq_max=fmax,
            governor=self._reader.current_governor(self._cpu),
            energy_pref=self._reader.current_energy_pref(self._cpu),
            online=self._reader.is_online(self._cpu),
        )
        self._pending = self._original
        # Governor list can change when a CPU comes back online.
        self.governors = self._reader.available_governors(self._cpu)
        self._notify()

    def reset_to_system(self) -> None:
        self._pending = self._original
        self._notify()

    def _notify(self) -> None:
        self.changed.emit(SettingsChanged(cpu=self._cpu))

    def _update(self, **changes) -> None:
        new = replace(self._pending, **changes)
        if new != self._pending:
            self._pending = new
            self._notify()

    # ---- accessors

    @property
    def cpu(self) -> int:
        return self._cpu

    @property
    def original(self) -> CpuState:
        return self._original

    @property
    def pending(self) -> CpuState:
        return self._pending

    @property
    def applying(self) -> bool:
        return self._applying

    def current_freq(self) -> int:
        return self._reader.current_freq(self._cpu)

    def set_freq_min(self, khz: int) -> None:
        self._update(freq_min=int(khz))

    def set_freq_max(self, khz: int) -> None:
        self._update(freq_max=int(khz))

    def set_governor(self, governor: str) -> None:
        # The kernel-reported list is authoritative; anything else is ignored.
        if governor in self.governors:
            self._update(governor=governor)

    def set_energy_pref(self, pref: str) -> None:
        if pref in self.energy_prefs:
            self._update(energy_pref=pref)

    def set_online(self, online: bool) -> None:
        self._update(online=bool(online))

    def stage(self, changes: PendingChanges) -> None:
        """Apply a set of optional overrides through the regular setters."""

        if changes.freq_min is not None:
            self.set_freq_min(changes.freq_min)
        if changes.freq_max is not None:
            self.set_freq_max(changes.freq_max)
        if changes.governor is not None:
            self.set_governor(changes.governor)
        if changes.energy_pref is not None:
            self.set_energy_pref(changes.energy_pref)
        if changes.online is not None:
            self.set_online(changes.online)

    # ---- change detection

    def is_freq_changed(self) -> bool:
        return (self._pending.freq_min, self._pending.freq_max) != (self._original.freq_min, self._original.freq_max)

    def is_governor_changed(self) -> bool:
        return self._pending.governor != self._original.governor

    def is_energy_pref_changed(self) -> bool:
        return self._pending.energy_pref != self._original.energy_pref

    def is_online_changed(self) -> bool:
        return self._pending.online != self._original.online

    def is_changed(self) -> bool:
        return (
            self.is_freq_changed()
            or self.is_governor_changed()
            or self.is_energy_pref_changed()
            or self.is_online_changed()
        )

    # ---- commit

    def apply_changes(self, on_complete: Optional[Callable[[bool], None]] = None) -> None:
        """Enqueue the pending edits.

        Online state goes first; if that call fails nothing else is sent for
        this CPU. Going offline sends nothing else either. The kernel is
        re-read after the last call completes, whatever its outcome.
        ``on_complete(all_ok)`` runs after that refresh.
        """

        target = self._pending
        results: list[bool] = []

        def finish() -> None:
            self._applying = False
            self.update_from_system()
            if on_complete is not None:
                on_complete(all(results))

        def record(last: bool):
            def _done(ok: bool, error: Optional[str]) -> None:
                results.append(ok)
                if last:
                    finish()

            return _done

        def enqueue_fields() -> None:
            steps: list[Callable[..., None]] = []
            if self.is_freq_changed():
                steps.append(
                    lambda done: self._scheduler.update_cpu_settings(self._cpu, target.freq_min, target.freq_max, on_done=done)
                )
            if self.is_governor_changed() and target.governor:
                steps.append(lambda done: self._scheduler.update_cpu_governor(self._cpu, target.governor, on_done=done))
            if self.is_energy_pref_changed() and target.energy_pref and self.energy_pref_available:
                steps.append(
                    lambda done: self._scheduler.update_cpu_energy_prefs(self._cpu, target.energy_pref, on_done=done)
                )

            if not steps:
                finish()
                return
            for i, step in enumerate(steps):
                step(record(i == len(steps) - 1))

        self._applying = True

        if self.is_online_changed():
            if target.online:
                def after_online(ok: bool, error: Optional[str]) -> None:
                    results.append(ok)
                    if ok:
                        enqueue_fields()
                    else:
                        finish()

                self._scheduler.set_cpu_online(self._cpu, on_done=after_online)
                return

            if not self.can_go_offline:
                self._scheduler.refuse(
                    "set_cpu_offline",
                    (self._cpu,),
                    f"Set CPU {self._cpu} offline",
                    "CPU cannot be taken offline",
                    on_done=record(True),
                )
                return

            self._scheduler.set_cpu_offline(self._cpu, on_done=record(True))
            return

        if not target.online:
            # Offline and staying offline: no writable cpufreq files.
            finish()
            return

        enqueue_fields()
