from __future__ import annotations

from pathlib import Path

from cpuscale.core.sysfs import SysfsCpuReader, cpu_root


def test_cpu_root_is_redirected_under_pytest(monkeypatch) -> None:
    monkeypatch.delenv("CPUSCALE_SYSFS_CPU_ROOT", raising=False)
    monkeypatch.delenv("CPUSCALE_ALLOW_HARDWARE", raising=False)

    assert not str(cpu_root()).startswith("/sys")


def test_cpu_root_honors_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CPUSCALE_SYSFS_CPU_ROOT", str(tmp_path))
    assert cpu_root() == tmp_path


def test_reader_reports_cpu_sets(fake_sysfs) -> None:
    fake_sysfs.add_cpu(2, online=False)
    fake_sysfs.set_lists(present="0-2", online="0-1", offline="2")
    reader = SysfsCpuReader()

    assert reader.present_cpus() == [0, 1, 2]
    assert reader.available_cpus() == [0, 1, 2]
    assert reader.online_cpus() == [0, 1]
    assert reader.offline_cpus() == [2]
    assert reader.is_online(1)
    assert not reader.is_online(2)
    assert reader.is_present(2)
    assert not reader.is_present(7)


def test_reader_reads_frequencies_and_policies(fake_sysfs) -> None:
    fake_sysfs.add_cpu(1, hw=(800000, 4000000), scaling=(1200000, 3000000), steps=(2400000, 800000, 1600000))
    reader = SysfsCpuReader(fake_sysfs.root)

    assert reader.freq_limits(1) == (800000, 4000000)
    assert reader.scaling_freqs(1) == (1200000, 3000000)
    assert reader.current_freq(1) == 1200000
    assert reader.available_frequencies(1) == [800000, 1600000, 2400000]
    assert reader.current_governor(1) == "powersave"
    assert reader.available_governors(1) == ["performance", "powersave"]
    assert reader.current_energy_pref(1) == "balance_power"
    assert "power" in reader.available_energy_prefs(1)
    assert reader.is_energy_pref_available(1)


def test_missing_files_degrade_to_empty_values(tmp_path) -> None:
    reader = SysfsCpuReader(tmp_path / "missing")

    assert reader.present_cpus() == []
    assert reader.freq_limits(0) == (0, 0)
    assert reader.current_governor(0) == ""
    assert reader.available_governors(0) == []
    assert reader.available_frequencies(0) == []
    assert not reader.is_energy_pref_available(0)
    assert not reader.is_online(0)


def test_malformed_cpu_list_reads_as_empty(fake_sysfs) -> None:
    fake_sysfs.write("present", "garbage")
    assert SysfsCpuReader().present_cpus() == []


def test_online_fallback_without_global_list(fake_sysfs) -> None:
    (fake_sysfs.root / "online").unlink()
    fake_sysfs.write("cpu1/online", "0")
    reader = SysfsCpuReader()

    # cpu0 has no online file but its directory exists.
    assert reader.is_online(0)
    assert not reader.is_online(1)


def test_allowed_offline_follows_online_file(fake_sysfs) -> None:
    reader = SysfsCpuReader()

    assert not reader.allowed_offline(0)
    assert reader.allowed_offline(1)


def test_energy_pref_unavailable_without_files(fake_sysfs) -> None:
    fake_sysfs.add_cpu(3, energy_prefs=())
    assert not SysfsCpuReader().is_energy_pref_available(3)
    assert isinstance(SysfsCpuReader().root, Path)
