"""cpuscale client configuration.

`from cpuscale.core.config import Config` is the public entry point.
"""

from __future__ import annotations

from .config import Config
from .file_storage import load_config_settings, save_config_settings_atomic
from .paths import config_dir, config_file_path, system_config_file_path


__all__ = [
    "Config",
    "config_dir",
    "config_file_path",
    "system_config_file_path",
    "load_config_settings",
    "save_config_settings_atomic",
]
