from __future__ import annotations

import os
import re
from pathlib import Path

from ..config.paths import config_dir

SYSTEM_PROFILE_DIR = "/etc/cpuscale.d"
PROFILE_SUFFIX = ".profile"


def system_profile_dir() -> Path:
    p = os.environ.get("CPUSCALE_SYSTEM_PROFILE_DIR")
    return Path(p) if p else Path(SYSTEM_PROFILE_DIR)


def user_profile_dir() -> Path:
    return config_dir() / "profiles"


def profile_file_name(name: str) -> str:
    """``"My Laptop"`` -> ``"cpg-My-Laptop.profile"``."""

    safe = re.sub(r"\s+", "-", (name or "").strip())
    safe = re.sub(r"[^A-Za-z0-9_.-]", "", safe)
    return f"cpg-{safe}{PROFILE_SUFFIX}"
