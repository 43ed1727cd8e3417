"""CPU power profiles: named per-CPU frequency/governor/online settings."""

from __future__ import annotations

from .manager import BALANCED_PROFILE, ProfileManager, ProfilesChanged
from .models import CpuProfileEntry, Profile
from .paths import profile_file_name, system_profile_dir, user_profile_dir
from .text_format import format_profile, parse_profile_line, parse_profile_text, read_profile_file

__all__ = [
    "BALANCED_PROFILE",
    "CpuProfileEntry",
    "Profile",
    "ProfileManager",
    "ProfilesChanged",
    "format_profile",
    "parse_profile_line",
    "parse_profile_text",
    "profile_file_name",
    "read_profile_file",
    "system_profile_dir",
    "user_profile_dir",
]
