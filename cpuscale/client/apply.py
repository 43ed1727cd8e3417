"""Batch application of profiles and multi-CPU edits."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from cpuscale.core.cpulist import format_cpu_list
from cpuscale.core.profile import Profile

from .events import BatchCompleted
from .scheduler import OperationScheduler
from .settings import CpuSettings, PendingChanges

logger = logging.getLogger(__name__)

OnBatch = Callable[[BatchCompleted], None]


def _run_batch(scheduler: OperationScheduler, enqueue_all: Callable[[], None], on_complete: Optional[OnBatch]) -> bool:
    if scheduler.batch_active:
        logger.warning("Another batch is still running; not starting a new one")
        return False

    if on_complete is not None:
        def _listener(event) -> None:
            if isinstance(event, BatchCompleted):
                unsubscribe()
                on_complete(event)

        unsubscribe = scheduler.events.subscribe(_listener)

    scheduler.begin_batch()
    try:
        enqueue_all()
    finally:
        scheduler.end_batch()
    return True


def apply_profile(
    profile: Profile,
    scheduler: OperationScheduler,
    reader,
    *,
    on_complete: Optional[OnBatch] = None,
) -> bool:
    """Enqueue every entry of *profile* as one batch.

    Per CPU: online state first (never for CPU 0; going offline skips the
    rest), then frequency bounds, governor and energy preference.
    """

    def enqueue_all() -> None:
        available = set(reader.available_cpus())
        for entry in profile.entries():
            cpu = entry.cpu
            if cpu not in available:
                logger.warning("Profile %r references non-existent CPU %d", profile.name, cpu)
                continue

            if cpu != 0:
                if entry.online:
                    scheduler.set_cpu_online(cpu)
                else:
                    scheduler.set_cpu_offline(cpu)
                    continue

            if entry.freq_min > 0 and entry.freq_max > 0:
                scheduler.update_cpu_settings(cpu, entry.freq_min, entry.freq_max)
            if entry.governor:
                scheduler.update_cpu_governor(cpu, entry.governor)
            if entry.energy_pref and reader.is_energy_pref_available(cpu):
                scheduler.update_cpu_energy_prefs(cpu, entry.energy_pref)

    logger.info("Applying profile %r to CPUs %s", profile.name, format_cpu_list(e.cpu for e in profile.entries()))
    return _run_batch(scheduler, enqueue_all, on_complete)


def apply_pending_changes(
    changes: PendingChanges,
    units: Iterable[CpuSettings],
    scheduler: OperationScheduler,
    *,
    on_complete: Optional[OnBatch] = None,
) -> bool:
    """Stage *changes* on each unit and commit them all in one batch.

    A side of the frequency pair that is not overridden keeps the unit's
    current scaling bound.
    """

    units = list(units)

    def enqueue_all() -> None:
        for unit in units:
            unit.stage(changes)
            if unit.is_changed():
                unit.apply_changes()

    return _run_batch(scheduler, enqueue_all, on_complete)
