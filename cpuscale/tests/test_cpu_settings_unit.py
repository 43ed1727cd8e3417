from __future__ import annotations

from cpuscale.client.events import BatchCompleted
from cpuscale.client.scheduler import OperationScheduler
from cpuscale.client.settings import CpuSettings, PendingChanges
from cpuscale.core.sysfs import SysfsCpuReader


class _Transport:
    def __init__(self, results: dict | None = None):
        self.connected = True
        self.results = results or {}
        self.calls: list[tuple[str, tuple]] = []

    def call_async(self, method, args, reply_handler, error_handler) -> None:
        self.calls.append((method, args))
        reply_handler(self.results.get(method, 0))


def _unit(fake_sysfs, cpu: int = 1, transport: _Transport | None = None, **kwargs):
    transport = transport or _Transport()
    scheduler = OperationScheduler(transport)
    return CpuSettings(cpu, SysfsCpuReader(fake_sysfs.root), scheduler, **kwargs), transport, scheduler


def test_loads_kernel_state(fake_sysfs) -> None:
    fake_sysfs.add_cpu(1, hw=(800000, 4000000), scaling=(1000000, 3000000), steps=(800000, 2000000))
    unit, _t, _s = _unit(fake_sysfs)

    assert (unit.hw_min, unit.hw_max) == (800000, 4000000)
    assert unit.original.freq_min == 1000000
    assert unit.original.governor == "powersave"
    assert unit.original.online
    assert unit.freq_steps == [800000, 2000000]
    assert unit.energy_pref_available
    assert unit.can_go_offline
    assert not unit.is_changed()


def test_cpu0_cannot_go_offline_by_default(fake_sysfs) -> None:
    unit, _t, _s = _unit(fake_sysfs, cpu=0)
    assert not unit.can_go_offline


def test_unsupported_governor_and_pref_are_ignored(fake_sysfs) -> None:
    unit, _t, _s = _unit(fake_sysfs)

    unit.set_governor("turbo")
    unit.set_energy_pref("bogus")
    assert not unit.is_changed()

    unit.set_governor("performance")
    assert unit.is_governor_changed()
    unit.reset_to_system()
    assert not unit.is_changed()


def test_apply_enqueues_frequency_then_governor_then_pref(fake_sysfs) -> None:
    unit, transport, _s = _unit(fake_sysfs)
    results: list[bool] = []

    unit.stage(PendingChanges(freq_min=800000, freq_max=2000000, governor="performance", energy_pref="power"))
    unit.apply_changes(results.append)

    assert transport.calls == [
        ("update_cpu_settings", (1, 800000, 2000000)),
        ("update_cpu_governor", (1, "performance")),
        ("update_cpu_energy_prefs", (1, "power")),
    ]
    assert results == [True]
    assert not unit.applying
    # Pending edits are dropped after the kernel is re-read.
    assert not unit.is_changed()


def test_only_changed_fields_are_sent(fake_sysfs) -> None:
    unit, transport, _s = _unit(fake_sysfs)

    unit.set_governor("performance")
    unit.apply_changes()

    assert transport.calls == [("update_cpu_governor", (1, "performance"))]


def test_going_offline_sends_only_offline(fake_sysfs) -> None:
    unit, transport, _s = _unit(fake_sysfs)

    unit.stage(PendingChanges(online=False, governor="performance"))
    unit.apply_changes()

    assert transport.calls == [("set_cpu_offline", (1,))]


def test_offline_refused_when_not_allowed(fake_sysfs) -> None:
    unit, transport, _s = _unit(fake_sysfs, can_go_offline=False)
    results: list[bool] = []

    unit.set_online(False)
    unit.apply_changes(results.append)

    assert transport.calls == []
    assert results == [False]


def test_coming_online_precedes_other_fields(fake_sysfs) -> None:
    fake_sysfs.set_lists(present="0-1", online="0", offline="1")
    unit, transport, _s = _unit(fake_sysfs)
    assert not unit.original.online

    unit.stage(PendingChanges(online=True, governor="performance"))
    unit.apply_changes()

    assert [c[0] for c in transport.calls] == ["set_cpu_online", "update_cpu_governor"]


def test_failed_online_skips_remaining_fields(fake_sysfs) -> None:
    fake_sysfs.set_lists(present="0-1", online="0", offline="1")
    unit, transport, _s = _unit(fake_sysfs, transport=_Transport({"set_cpu_online": -1}))
    results: list[bool] = []

    unit.stage(PendingChanges(online=True, governor="performance"))
    unit.apply_changes(results.append)

    assert [c[0] for c in transport.calls] == ["set_cpu_online"]
    assert results == [False]


def test_failure_reported_through_batch(fake_sysfs) -> None:
    unit, _t, scheduler = _unit(fake_sysfs, transport=_Transport({"update_cpu_governor": -13}))
    events: list = []
    scheduler.events.subscribe(events.append)

    scheduler.begin_batch()
    unit.set_governor("performance")
    unit.apply_changes()
    scheduler.end_batch()

    (batch,) = [e for e in events if isinstance(e, BatchCompleted)]
    assert not batch.all_succeeded
    assert len(batch.errors) == 1


def test_pending_changes_is_empty() -> None:
    assert PendingChanges().is_empty()
    assert not PendingChanges(online=False).is_empty()
