from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class CpuProfileEntry:
    """Settings for one CPU inside a profile. Frequencies are kHz, 0 = unset."""

    cpu: int
    freq_min: int = 0
    freq_max: int = 0
    governor: str = ""
    online: bool = True
    energy_pref: str = ""


@dataclass
class Profile:
    name: str
    settings: dict[int, CpuProfileEntry] = field(default_factory=dict)
    file_path: Optional[Path] = None
    is_system: bool = False
    is_builtin: bool = False

    @property
    def is_custom(self) -> bool:
        return not self.is_builtin and not self.is_system

    @property
    def can_delete(self) -> bool:
        return self.is_custom

    def entries(self) -> list[CpuProfileEntry]:
        return [self.settings[cpu] for cpu in sorted(self.settings)]
