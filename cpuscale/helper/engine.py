"""Ordered writes to the cpufreq control files.

Scaling bounds must satisfy ``min <= max`` after every single write, so the
order of the two writes depends on where the new range sits relative to the
current one.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from cpuscale.core.errors import UnitUnavailable, WriteFailed
from cpuscale.core.sysfs import paths
from cpuscale.core.sysfs.reader import SysfsCpuReader

logger = logging.getLogger(__name__)

MIN = "min"
MAX = "max"

_FIELD_FILES = {
    MIN: paths.SCALING_MIN_FREQ,
    MAX: paths.SCALING_MAX_FREQ,
}


def safe_write_text(path: Path, content: str) -> None:
    # Tests must never mutate the real sysfs tree.
    if os.environ.get("PYTEST_CURRENT_TEST") and not paths.hardware_allowed() and paths.is_real_sysfs_path(path):
        raise RuntimeError(f"Refusing to write real sysfs path under pytest: {path}")
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def plan_frequency_writes(cur_min: int, cur_max: int, new_min: int, new_max: int) -> list[tuple[str, int]]:
    """Return the ``(field, value)`` writes for moving to ``(new_min, new_max)``.

    - new ceiling below the current floor: lower the floor first
    - new floor above the current ceiling: raise the ceiling first
    - otherwise min then max
    """

    if new_max < cur_min:
        return [(MIN, new_min), (MAX, new_max)]
    if new_min > cur_max:
        return [(MAX, new_max), (MIN, new_min)]
    return [(MIN, new_min), (MAX, new_max)]


class MutationEngine:
    def __init__(
        self,
        reader: Optional[SysfsCpuReader] = None,
        *,
        write_text: Callable[[Path, str], None] = safe_write_text,
    ):
        self._reader = reader if reader is not None else SysfsCpuReader()
        self._write_text = write_text

    @property
    def reader(self) -> SysfsCpuReader:
        return self._reader

    def _write(self, path: Path, value: str) -> bool:
        try:
            self._write_text(path, value)
        except OSError as exc:
            logger.warning("Failed to write %r to %s: %s", value, path, exc)
            return False
        return True

    def _require_online(self, cpu: int) -> None:
        if not self._reader.is_present(cpu) or not self._reader.is_online(cpu):
            raise UnitUnavailable(f"CPU {cpu} is not present or not online")

    def _online_file(self, cpu: int) -> Path:
        return paths.cpu_dir(self._reader.root, cpu) / paths.ONLINE_FILE

    def set_frequency_bounds(self, cpu: int, new_min: int, new_max: int) -> list[tuple[str, int]]:
        """Apply new scaling bounds (kHz) and return the writes that were issued.

        Both writes are attempted even if the first fails; there is no rollback.
        """

        self._require_online(cpu)

        hw_min, hw_max = self._reader.freq_limits(cpu)
        if hw_min > 0 and hw_max > 0:
            new_min = min(max(int(new_min), hw_min), hw_max)
            new_max = min(max(int(new_max), hw_min), hw_max)
        if new_min > new_max:
            raise WriteFailed(f"CPU {cpu}: requested min {new_min} exceeds max {new_max}")

        cur_min, cur_max = self._reader.scaling_freqs(cpu)
        writes = plan_frequency_writes(cur_min, cur_max, new_min, new_max)
        logger.debug(
            "CPU %d bounds %d-%d -> %d-%d, order %s",
            cpu,
            cur_min,
            cur_max,
            new_min,
            new_max,
            "/".join(field for field, _ in writes),
        )

        freq_dir = paths.cpufreq_dir(self._reader.root, cpu)
        failed = [field for field, value in writes if not self._write(freq_dir / _FIELD_FILES[field], str(value))]
        if failed:
            raise WriteFailed(f"CPU {cpu}: failed to write scaling {', '.join(failed)}")
        return writes

    def set_governor(self, cpu: int, governor: str) -> None:
        self._require_online(cpu)
        path = paths.cpufreq_dir(self._reader.root, cpu) / paths.SCALING_GOVERNOR
        if not self._write(path, governor):
            raise WriteFailed(f"CPU {cpu}: failed to set governor {governor!r}")

    def set_energy_pref(self, cpu: int, pref: str) -> bool:
        """Write the energy preference; returns False when it was skipped as unsupported."""

        self._require_online(cpu)
        if pref not in self._reader.available_energy_prefs(cpu):
            logger.debug("CPU %d: energy preference %r not supported; ignoring", cpu, pref)
            return False

        path = paths.cpufreq_dir(self._reader.root, cpu) / paths.ENERGY_PERF_PREF
        if not path.exists():
            return False
        if not self._write(path, pref):
            raise WriteFailed(f"CPU {cpu}: failed to set energy preference {pref!r}")
        return True

    def set_online(self, cpu: int) -> None:
        path = self._online_file(cpu)
        if not path.exists():
            raise UnitUnavailable(f"CPU {cpu} has no online control")
        if not self._write(path, "1"):
            raise WriteFailed(f"CPU {cpu}: failed to bring online")

    def set_offline(self, cpu: int) -> None:
        if int(cpu) == 0:
            raise UnitUnavailable("CPU 0 cannot be taken offline")
        path = self._online_file(cpu)
        # The kernel omits the file for CPUs that may not go offline.
        if not path.exists():
            raise UnitUnavailable(f"CPU {cpu} has no online control")
        if not self._write(path, "0"):
            raise WriteFailed(f"CPU {cpu}: failed to take offline")
