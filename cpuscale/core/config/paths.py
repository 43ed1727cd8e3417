"""Config path helpers."""

from __future__ import annotations

import os
from pathlib import Path

SYSTEM_CONFIG_FILE = "/etc/cpuscale/config.json"


def config_dir() -> Path:
    """Return the directory used for cpuscale configuration.

    Priority:
    - CPUSCALE_CONFIG_DIR
    - XDG_CONFIG_HOME/cpuscale
    - ~/.config/cpuscale
    """

    p = os.environ.get("CPUSCALE_CONFIG_DIR")
    if p:
        return Path(p)

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "cpuscale"

    return Path.home() / ".config" / "cpuscale"


def config_file_path() -> Path:
    p = os.environ.get("CPUSCALE_CONFIG_PATH")
    if p:
        return Path(p)
    return config_dir() / "config.json"


def system_config_file_path() -> Path:
    """Read-only, administrator-provided defaults layered under the user file."""

    p = os.environ.get("CPUSCALE_SYSTEM_CONFIG_PATH")
    if p:
        return Path(p)
    return Path(SYSTEM_CONFIG_FILE)
