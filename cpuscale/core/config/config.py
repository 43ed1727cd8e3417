"""cpuscale client configuration object."""

from __future__ import annotations

import logging
from typing import Any

from ._props import bool_prop, int_prop, str_prop
from .defaults import DEFAULTS as _DEFAULTS
from .file_storage import load_config_settings, save_config_settings_atomic
from .paths import config_dir, config_file_path, system_config_file_path

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the cpuscale tray.

    Values resolve as user file, then system file, then built-in defaults.
    Only the user file is ever written.
    """

    DEFAULTS = _DEFAULTS

    def __init__(self):
        # Resolved at runtime so test harnesses can set env vars in conftest.
        self.CONFIG_DIR = config_dir()
        self.CONFIG_FILE = config_file_path()
        self.SYSTEM_CONFIG_FILE = system_config_file_path()
        self._settings: dict[str, Any] = {}
        self.reload()

    def _base_defaults(self) -> dict[str, Any]:
        system = load_config_settings(
            config_file=self.SYSTEM_CONFIG_FILE,
            defaults=self.DEFAULTS,
            logger=logger,
        )
        return system if system is not None else dict(self.DEFAULTS)

    def _load(self, *, retries: int = 3, retry_delay: float = 0.02) -> dict[str, Any] | None:
        return load_config_settings(
            config_file=self.CONFIG_FILE,
            defaults=self._base_defaults(),
            retries=retries,
            retry_delay=retry_delay,
            logger=logger,
        )

    def reload(self) -> None:
        loaded = self._load()
        # A transiently unreadable file keeps the previous in-memory settings.
        if loaded is not None:
            self._settings = loaded
        elif not self._settings:
            self._settings = dict(self.DEFAULTS)

    def _save(self) -> None:
        save_config_settings_atomic(
            config_dir=self.CONFIG_DIR,
            config_file=self.CONFIG_FILE,
            settings=self._settings,
            logger=logger,
        )

    default_profile = str_prop("default_profile", default=str(_DEFAULTS["default_profile"]))
    apply_profile_on_start = bool_prop("apply_profile_on_start", default=bool(_DEFAULTS["apply_profile_on_start"]))
    all_cpus_default = bool_prop("all_cpus_default", default=bool(_DEFAULTS["all_cpus_default"]))
    energy_pref_per_cpu = bool_prop("energy_pref_per_cpu", default=bool(_DEFAULTS["energy_pref_per_cpu"]))
    notify_on_apply = bool_prop("notify_on_apply", default=bool(_DEFAULTS["notify_on_apply"]))
    refresh_interval_s = int_prop("refresh_interval_s", default=int(_DEFAULTS["refresh_interval_s"]), min_v=1, max_v=60)
