"""Profile store: built-in, system and user profiles by name."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..errors import ProfileInvalid
from ..events import EventEmitter
from .models import CpuProfileEntry, Profile
from .paths import PROFILE_SUFFIX, profile_file_name, system_profile_dir, user_profile_dir
from .text_format import format_profile, read_profile_file

logger = logging.getLogger(__name__)

BALANCED_PROFILE = "Balanced"
_BALANCED_GOVERNORS = ("schedutil", "ondemand", "powersave")
_SKIPPED_GOVERNORS = {"userspace"}


@dataclass(frozen=True)
class ProfilesChanged:
    names: tuple[str, ...]


class ProfileManager:
    """Loads profiles in override order: built-ins, then system, then user.

    A later source replaces an earlier profile of the same name. Only user
    profiles can be created or deleted.
    """

    def __init__(self, reader, *, system_dir: Optional[Path] = None, user_dir: Optional[Path] = None):
        self._reader = reader
        self._system_dir = Path(system_dir) if system_dir is not None else system_profile_dir()
        self._user_dir = Path(user_dir) if user_dir is not None else user_profile_dir()
        self._profiles: dict[str, Profile] = {}
        self.changed = EventEmitter()
        self._load()

    @property
    def user_dir(self) -> Path:
        return self._user_dir

    def names(self) -> list[str]:
        return sorted(self._profiles)

    def get(self, name: str) -> Optional[Profile]:
        return self._profiles.get(name)

    def has(self, name: str) -> bool:
        return name in self._profiles

    def is_system(self, name: str) -> bool:
        p = self._profiles.get(name)
        return bool(p and p.is_system)

    def is_builtin(self, name: str) -> bool:
        p = self._profiles.get(name)
        return bool(p and p.is_builtin)

    def can_delete(self, name: str) -> bool:
        p = self._profiles.get(name)
        return bool(p and p.can_delete)

    def reload(self) -> None:
        self._profiles.clear()
        self._load()
        self._notify()

    def create(self, name: str, entries: Iterable[CpuProfileEntry]) -> Profile:
        name = (name or "").strip()
        if not name:
            raise ProfileInvalid("profile name cannot be empty")
        if self.has(name) and not self.can_delete(name):
            raise ProfileInvalid(f"cannot overwrite built-in or system profile: {name}")

        profile = Profile(name=name, file_path=self._user_dir / profile_file_name(name))
        for entry in entries:
            profile.settings[int(entry.cpu)] = entry

        self._write(profile)
        self._profiles[name] = profile
        self._notify()
        return profile

    def delete(self, name: str) -> None:
        profile = self._profiles.get(name)
        if profile is None or not profile.can_delete:
            raise ProfileInvalid(f"cannot delete profile: {name}")

        if profile.file_path is not None:
            try:
                profile.file_path.unlink()
            except FileNotFoundError:
                pass

        del self._profiles[name]
        self._notify()

    # ---- internals

    def _notify(self) -> None:
        self.changed.emit(ProfilesChanged(names=tuple(self.names())))

    def _hw_limits(self, cpu: int) -> tuple[int, int]:
        return self._reader.freq_limits(cpu)

    def _load(self) -> None:
        self._generate_builtin_profiles()
        self._load_dir(self._system_dir, is_system=True)
        self._load_dir(self._user_dir, is_system=False)

    def _load_dir(self, directory: Path, *, is_system: bool) -> None:
        if not directory.is_dir():
            return
        for path in sorted(directory.glob(f"*{PROFILE_SUFFIX}")):
            if not path.is_file():
                continue
            profile = read_profile_file(path, is_system=is_system, hw_limits=self._hw_limits)
            if profile is not None and profile.name:
                self._profiles[profile.name] = profile

    def _builtin(self, name: str, governor: str, cpus: list[int]) -> Profile:
        profile = Profile(name=name, is_builtin=True)
        for cpu in cpus:
            hw_min, hw_max = self._hw_limits(cpu)
            profile.settings[cpu] = CpuProfileEntry(cpu=cpu, freq_min=hw_min, freq_max=hw_max, governor=governor)
        return profile

    def _generate_builtin_profiles(self) -> None:
        governors = self._reader.available_governors(0)
        if not governors:
            logger.debug("No governors reported for CPU 0; no built-in profiles")
            return

        cpus = self._reader.available_cpus()

        balanced = next((g for g in _BALANCED_GOVERNORS if g in governors), None)
        if balanced is not None:
            self._profiles[BALANCED_PROFILE] = self._builtin(BALANCED_PROFILE, balanced, cpus)

        for gov in governors:
            if gov in _SKIPPED_GOVERNORS:
                continue
            name = gov[:1].upper() + gov[1:]
            if name in self._profiles:
                continue
            self._profiles[name] = self._builtin(name, gov, cpus)

    def _write(self, profile: Profile) -> None:
        if profile.file_path is None:
            raise ProfileInvalid(f"profile {profile.name!r} has no file path")
        directory = profile.file_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(prefix="profile.", suffix=".tmp", dir=str(directory))
            try:
                with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                    f.write(format_profile(profile))
                os.replace(tmp_path, profile.file_path)
            finally:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
        except OSError as exc:
            raise ProfileInvalid(f"failed to write profile {profile.file_path}: {exc}") from exc
