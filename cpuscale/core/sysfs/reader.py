"""Read-only access to the cpufreq sysfs interface.

Every accessor degrades to an empty value (``""``, ``[]``, ``0``) when a file
is missing or unreadable; callers treat that as "not supported".
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..cpulist import parse_cpu_list, parse_int_list, parse_word_list
from ..logging_utils import log_throttled
from . import paths

logger = logging.getLogger(__name__)


class SysfsCpuReader:
    def __init__(self, root: Optional[Path] = None):
        self._root = Path(root) if root is not None else paths.cpu_root()

    @property
    def root(self) -> Path:
        return self._root

    # ---- raw file access

    def read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="ignore")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            log_throttled(
                logger,
                f"sysfs.read:{path}",
                interval_s=60,
                level=logging.DEBUG,
                msg=f"Failed to read {path}: {exc}",
            )
            return ""

    def _read_int(self, path: Path) -> int:
        raw = self.read_text(path).strip()
        try:
            return int(raw)
        except ValueError:
            return 0

    def _cpu_list(self, name: str) -> list[int]:
        raw = self.read_text(self._root / name)
        try:
            return parse_cpu_list(raw)
        except ValueError:
            logger.warning("Malformed CPU list in %s: %r", self._root / name, raw.strip())
            return []

    def _freq_file(self, cpu: int, name: str) -> Path:
        return paths.cpufreq_dir(self._root, cpu) / name

    # ---- CPU sets

    def present_cpus(self) -> list[int]:
        return self._cpu_list(paths.PRESENT_FILE)

    def online_cpus(self) -> list[int]:
        return self._cpu_list(paths.ONLINE_FILE)

    def offline_cpus(self) -> list[int]:
        return self._cpu_list(paths.OFFLINE_FILE)

    def available_cpus(self) -> list[int]:
        # Present CPUs are the ones that can be brought online.
        return self.present_cpus()

    def is_present(self, cpu: int) -> bool:
        return int(cpu) in self.present_cpus()

    def is_online(self, cpu: int) -> bool:
        online = self.online_cpus()
        if online:
            return int(cpu) in online

        # No global list: fall back to the per-CPU file. CPUs without one
        # (usually cpu0) cannot be offlined and are always online.
        online_file = paths.cpu_dir(self._root, cpu) / paths.ONLINE_FILE
        if not online_file.exists():
            return paths.cpu_dir(self._root, cpu).exists()
        return self.read_text(online_file).strip() == "1"

    def allowed_offline(self, cpu: int) -> bool:
        return (paths.cpu_dir(self._root, cpu) / paths.ONLINE_FILE).exists()

    # ---- frequencies (kHz)

    def current_freq(self, cpu: int) -> int:
        return self._read_int(self._freq_file(cpu, paths.SCALING_CUR_FREQ))

    def freq_limits(self, cpu: int) -> tuple[int, int]:
        return (
            self._read_int(self._freq_file(cpu, paths.CPUINFO_MIN_FREQ)),
            self._read_int(self._freq_file(cpu, paths.CPUINFO_MAX_FREQ)),
        )

    def scaling_freqs(self, cpu: int) -> tuple[int, int]:
        return (
            self._read_int(self._freq_file(cpu, paths.SCALING_MIN_FREQ)),
            self._read_int(self._freq_file(cpu, paths.SCALING_MAX_FREQ)),
        )

    def available_frequencies(self, cpu: int) -> list[int]:
        """Discrete steps for UI ticks; not authoritative."""
        return sorted(parse_int_list(self.read_text(self._freq_file(cpu, paths.SCALING_AVAILABLE_FREQ))))

    # ---- governor / energy preference

    def current_governor(self, cpu: int) -> str:
        return self.read_text(self._freq_file(cpu, paths.SCALING_GOVERNOR)).strip()

    def available_governors(self, cpu: int) -> list[str]:
        return parse_word_list(self.read_text(self._freq_file(cpu, paths.SCALING_AVAILABLE_GOV)))

    def available_energy_prefs(self, cpu: int) -> list[str]:
        return parse_word_list(self.read_text(self._freq_file(cpu, paths.ENERGY_PERF_AVAIL)))

    def current_energy_pref(self, cpu: int) -> str:
        return self.read_text(self._freq_file(cpu, paths.ENERGY_PERF_PREF)).strip()

    def is_energy_pref_available(self, cpu: int) -> bool:
        return self._freq_file(cpu, paths.ENERGY_PERF_PREF).exists() and bool(self.available_energy_prefs(cpu))
