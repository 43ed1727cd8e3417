"""JSON persistence for :class:`~cpuscale.core.config.Config`.

The tray may read the file while another tray process (or the user's editor)
is rewriting it, so reads retry briefly on a truncated document and writes
replace the file in one rename.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any

_STRIPPED_KEYS = ("default_profile",)


def _read_mapping(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        return {}
    for key in _STRIPPED_KEYS:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data


def load_config_settings(
    *,
    config_file: Path,
    defaults: dict[str, Any],
    retries: int = 3,
    retry_delay: float = 0.02,
    logger: logging.Logger,
) -> dict[str, Any] | None:
    """Return *defaults* overlaid with the file's keys.

    A missing file yields a copy of *defaults*; an unreadable or persistently
    malformed file yields None so the caller can keep what it had.
    """

    if not config_file.is_file():
        return dict(defaults)

    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            return {**defaults, **_read_mapping(config_file)}
        except json.JSONDecodeError as exc:
            if attempt == attempts:
                logger.warning("Ignoring malformed config %s: %s", config_file, exc)
                return None
            time.sleep(retry_delay)
        except OSError as exc:
            logger.warning("Cannot read config %s: %s", config_file, exc)
            return None
    return None


def save_config_settings_atomic(
    *,
    config_dir: Path,
    config_file: Path,
    settings: dict[str, Any],
    logger: logging.Logger,
) -> bool:
    """Write *settings* to *config_file* via a sibling temp file. Returns success."""

    tmp_path: str | None = None
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{config_file.name}.", suffix=".tmp", dir=str(config_file.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2, sort_keys=True)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, config_file)
        tmp_path = None
        return True
    except OSError as exc:
        logger.warning("Failed to save config %s: %s", config_file, exc)
        return False
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
