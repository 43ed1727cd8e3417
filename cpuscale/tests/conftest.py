from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest


def _hardware_opted_in() -> bool:
    return os.environ.get("CPUSCALE_ALLOW_HARDWARE") == "1"


# Safety default: during pytest, avoid touching the user's real config and
# the administrator's /etc files.
if not _hardware_opted_in():
    os.environ.setdefault("CPUSCALE_CONFIG_DIR", tempfile.mkdtemp(prefix="cpuscale-test-config-"))
    os.environ.setdefault("CPUSCALE_SYSTEM_CONFIG_PATH", "/nonexistent-cpuscale-test/config.json")
    os.environ.setdefault("CPUSCALE_SYSTEM_PROFILE_DIR", "/nonexistent-cpuscale-test/profiles")


class FakeSysfs:
    """Writable stand-in for /sys/devices/system/cpu."""

    def __init__(self, root: Path):
        self.root = root

    def cpufreq(self, cpu: int) -> Path:
        return self.root / f"cpu{cpu}" / "cpufreq"

    def write(self, rel: str, value) -> None:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{value}\n", encoding="utf-8")

    def read(self, rel: str) -> str:
        return (self.root / rel).read_text(encoding="utf-8").strip()

    def add_cpu(
        self,
        cpu: int,
        *,
        hw: tuple[int, int] = (400000, 3000000),
        scaling: tuple[int, int] = (400000, 3000000),
        governor: str = "powersave",
        governors: tuple[str, ...] = ("performance", "powersave"),
        energy_prefs: tuple[str, ...] = ("default", "performance", "balance_power", "power"),
        energy_pref: str = "balance_power",
        online_file: bool = True,
        online: bool = True,
        steps: tuple[int, ...] = (),
    ) -> None:
        base = f"cpu{cpu}/cpufreq"
        self.write(f"{base}/cpuinfo_min_freq", hw[0])
        self.write(f"{base}/cpuinfo_max_freq", hw[1])
        self.write(f"{base}/scaling_min_freq", scaling[0])
        self.write(f"{base}/scaling_max_freq", scaling[1])
        self.write(f"{base}/scaling_cur_freq", scaling[0])
        self.write(f"{base}/scaling_governor", governor)
        self.write(f"{base}/scaling_available_governors", " ".join(governors))
        if energy_prefs:
            self.write(f"{base}/energy_performance_available_preferences", " ".join(energy_prefs))
            self.write(f"{base}/energy_performance_preference", energy_pref)
        if steps:
            self.write(f"{base}/scaling_available_frequencies", " ".join(str(s) for s in steps))
        if online_file:
            self.write(f"cpu{cpu}/online", "1" if online else "0")

    def set_lists(self, *, present: str, online: str, offline: str = "") -> None:
        self.write("present", present)
        self.write("online", online)
        self.write("offline", offline)


@pytest.fixture
def fake_sysfs(tmp_path, monkeypatch) -> FakeSysfs:
    """Two-CPU tree: cpu0 without an online file, cpu1 hot-pluggable."""

    root = tmp_path / "cpu"
    root.mkdir()
    monkeypatch.setenv("CPUSCALE_SYSFS_CPU_ROOT", str(root))

    sysfs = FakeSysfs(root)
    sysfs.add_cpu(0, online_file=False)
    sysfs.add_cpu(1)
    sysfs.set_lists(present="0-1", online="0-1")
    return sysfs


@pytest.fixture
def isolated_config(tmp_path, monkeypatch) -> Path:
    cfg_dir = tmp_path / "config"
    monkeypatch.setenv("CPUSCALE_CONFIG_DIR", str(cfg_dir))
    monkeypatch.delenv("CPUSCALE_CONFIG_PATH", raising=False)
    monkeypatch.setenv("CPUSCALE_SYSTEM_CONFIG_PATH", str(tmp_path / "etc" / "config.json"))
    return cfg_dir
