"""Profile text files.

Layout::

    # name: Quiet
    # CPU   Min   Max   Governor   Online  [EnergyPref]
    0-3     800   2000  powersave  y
    4,6     -     -     -          n

Frequencies are MHz in the file and kHz in memory. ``-`` leaves a field at
the hardware default (frequencies) or untouched (governor, energy preference).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from ..cpulist import parse_cpu_list
from ..errors import ProfileInvalid
from .models import CpuProfileEntry, Profile

logger = logging.getLogger(__name__)

_NAME_PREFIX = "# name:"
_TRUE_FLAGS = {"y", "yes", "1", "true"}

# cpu -> (hw_min_khz, hw_max_khz)
HardwareLimits = Callable[[int], tuple[int, int]]


def _parse_mhz(field: str) -> int:
    if field == "-":
        return 0
    try:
        mhz = int(field)
    except ValueError as exc:
        raise ProfileInvalid(f"invalid frequency {field!r}") from exc
    return mhz * 1000 if mhz > 0 else 0


def parse_profile_line(line: str) -> tuple[list[int], int, int, str, bool, str]:
    """Parse one settings line into ``(cpus, min_khz, max_khz, governor, online, energy_pref)``.

    Raises ProfileInvalid for lines that cannot be used.
    """

    parts = line.split()
    if len(parts) < 4:
        raise ProfileInvalid(f"expected at least 4 fields, got {len(parts)}: {line!r}")

    try:
        cpus = parse_cpu_list(parts[0])
    except ValueError as exc:
        raise ProfileInvalid(f"invalid CPU spec {parts[0]!r}") from exc
    if not cpus:
        raise ProfileInvalid(f"empty CPU spec in {line!r}")

    fmin = _parse_mhz(parts[1])
    fmax = _parse_mhz(parts[2])
    governor = "" if parts[3] == "-" else parts[3]
    online = True
    if len(parts) > 4:
        online = parts[4].lower() in _TRUE_FLAGS
    energy_pref = ""
    if len(parts) > 5 and parts[5] != "-":
        energy_pref = parts[5]

    return cpus, fmin, fmax, governor, online, energy_pref


def parse_profile_text(
    text: str,
    *,
    fallback_name: str,
    hw_limits: Optional[HardwareLimits] = None,
) -> Profile:
    profile = Profile(name="")
    first_line = True

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        if first_line:
            first_line = False
            if line.startswith(_NAME_PREFIX):
                profile.name = line[len(_NAME_PREFIX):].strip()
                continue

        if line.startswith("#"):
            continue

        try:
            cpus, fmin, fmax, governor, online, energy_pref = parse_profile_line(line)
        except ProfileInvalid as exc:
            logger.warning("Skipping profile line %d (%s): %s", lineno, fallback_name, exc)
            continue

        for cpu in cpus:
            entry_min, entry_max = fmin, fmax
            if hw_limits is not None and (entry_min <= 0 or entry_max <= 0):
                hw_min, hw_max = hw_limits(cpu)
                entry_min = entry_min if entry_min > 0 else hw_min
                entry_max = entry_max if entry_max > 0 else hw_max
            profile.settings[cpu] = CpuProfileEntry(
                cpu=cpu,
                freq_min=entry_min,
                freq_max=entry_max,
                governor=governor,
                online=online,
                energy_pref=energy_pref,
            )

    if not profile.name:
        profile.name = fallback_name
    return profile


def read_profile_file(path: Path, *, is_system: bool, hw_limits: Optional[HardwareLimits] = None) -> Optional[Profile]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to read profile %s: %s", path, exc)
        return None

    profile = parse_profile_text(text, fallback_name=path.stem, hw_limits=hw_limits)
    profile.file_path = path
    profile.is_system = is_system
    return profile


def format_profile(profile: Profile) -> str:
    lines = [f"{_NAME_PREFIX} {profile.name}", "", "# CPU\tMin\tMax\tGovernor\tOnline\tEnergyPref"]
    for entry in profile.entries():
        fields = [
            str(entry.cpu),
            str(entry.freq_min // 1000) if entry.freq_min > 0 else "-",
            str(entry.freq_max // 1000) if entry.freq_max > 0 else "-",
            entry.governor or "-",
            "y" if entry.online else "n",
        ]
        if entry.energy_pref:
            fields.append(entry.energy_pref)
        lines.append("\t".join(fields))
    return "\n".join(lines) + "\n"
