"""Locations of the cpufreq control files.

Both the unprivileged reader and the privileged helper resolve paths through
here so tests can redirect them to a temporary tree.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CPU_ROOT = "/sys/devices/system/cpu"

CPUFREQ_DIR = "cpufreq"
SCALING_CUR_FREQ = "scaling_cur_freq"
SCALING_MIN_FREQ = "scaling_min_freq"
SCALING_MAX_FREQ = "scaling_max_freq"
CPUINFO_MIN_FREQ = "cpuinfo_min_freq"
CPUINFO_MAX_FREQ = "cpuinfo_max_freq"
SCALING_AVAILABLE_FREQ = "scaling_available_frequencies"
SCALING_GOVERNOR = "scaling_governor"
SCALING_AVAILABLE_GOV = "scaling_available_governors"
ENERGY_PERF_AVAIL = "energy_performance_available_preferences"
ENERGY_PERF_PREF = "energy_performance_preference"
ONLINE_FILE = "online"
OFFLINE_FILE = "offline"
PRESENT_FILE = "present"


def hardware_allowed() -> bool:
    return os.environ.get("CPUSCALE_ALLOW_HARDWARE") == "1"


def cpu_root() -> Path:
    root = os.environ.get("CPUSCALE_SYSFS_CPU_ROOT")

    # Under pytest, never probe the real sysfs tree unless explicitly allowed.
    if root is None and os.environ.get("PYTEST_CURRENT_TEST") and not hardware_allowed():
        return Path("/nonexistent-cpuscale-test-sysfs-cpu")

    return Path(root or DEFAULT_CPU_ROOT)


def cpu_dir(root: Path, cpu: int) -> Path:
    return root / f"cpu{int(cpu)}"


def cpufreq_dir(root: Path, cpu: int) -> Path:
    return cpu_dir(root, cpu) / CPUFREQ_DIR


def is_real_sysfs_path(path: Path) -> bool:
    try:
        return os.path.realpath(str(path)).startswith("/sys/")
    except Exception:
        return False
