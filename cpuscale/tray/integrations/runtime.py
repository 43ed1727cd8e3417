"""Process-level tray plumbing: pystray backend choice and the instance lock."""

from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import sys
from contextlib import suppress

from cpuscale.core.config.paths import config_dir

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = "cpuscale.lock"

# Backends whose Icon.run() spins the default GLib main context.
_GLIB_BACKENDS = frozenset({"_appindicator", "_gtk"})

_pystray_mod = None
_pystray_item = None
_instance_lock_fh = None


def _has_usable_gi() -> bool:
    # A stray or partial `gi` on sys.path lacks require_version and breaks
    # the AppIndicator backend at import time.
    if importlib.util.find_spec("gi") is None:
        return False
    try:
        gi = importlib.import_module("gi")
    except ImportError:
        return False
    return callable(getattr(gi, "require_version", None))


def _import_pystray(backend: str | None):
    if backend is not None:
        os.environ["PYSTRAY_BACKEND"] = backend
    try:
        return importlib.import_module("pystray")
    except Exception:
        # Leave no half-initialized module behind for the next attempt.
        for name in [m for m in sys.modules if m == "pystray" or m.startswith("pystray.")]:
            sys.modules.pop(name, None)
        raise


def get_pystray():
    """Return ``(pystray, pystray.MenuItem)``, importing pystray on first use.

    Importing pystray may open a display connection, so nothing imports it
    at module level. AppIndicator is preferred when PyGObject works, with
    xorg as the fallback; an explicit ``PYSTRAY_BACKEND`` is respected.
    """

    global _pystray_mod, _pystray_item

    if _pystray_mod is not None and _pystray_item is not None:
        return _pystray_mod, _pystray_item

    explicit = os.environ.get("PYSTRAY_BACKEND")
    if explicit:
        logger.info("pystray backend: %s (explicit)", explicit)
        try:
            mod = _import_pystray(None)
        except Exception as exc:
            raise RuntimeError(f"pystray backend {explicit!r} could not be initialized") from exc
    elif _has_usable_gi():
        try:
            mod = _import_pystray("appindicator")
            logger.info("pystray backend: appindicator")
        except Exception as exc:
            logger.info("AppIndicator backend unavailable (%s); using xorg", exc)
            mod = _import_pystray("xorg")
    else:
        logger.info("pystray backend: xorg (PyGObject unusable)")
        mod = _import_pystray("xorg")

    _pystray_mod = mod
    _pystray_item = mod.MenuItem
    return _pystray_mod, _pystray_item


def pystray_runs_glib() -> bool:
    """True when the chosen tray backend iterates the default GLib context itself."""

    pystray, _item = get_pystray()
    backend = getattr(pystray.Icon, "__module__", "").rsplit(".", 1)[-1]
    return backend in _GLIB_BACKENDS


def acquire_single_instance_lock() -> bool:
    """Take an exclusive ``flock`` on the lock file; False if another tray holds it.

    The handle is kept open for the life of the process.
    """

    global _instance_lock_fh

    try:
        import fcntl
    except ImportError:
        return True

    lock_dir = config_dir()
    with suppress(OSError):
        lock_dir.mkdir(parents=True, exist_ok=True)
    lock_path = lock_dir / LOCK_FILE_NAME

    try:
        fh = open(lock_path, "a+", encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot open lock file %s (%s); not enforcing a single instance", lock_path, exc)
        return True

    try:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        fh.close()
        return False

    fh.seek(0)
    fh.truncate()
    fh.write(f"pid={os.getpid()}\n")
    fh.flush()
    _instance_lock_fh = fh
    return True
