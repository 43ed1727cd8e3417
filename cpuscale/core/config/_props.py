"""Property factories for :class:`Config` fields.

Each property reads from ``self._settings`` with a coerced fallback and
persists through ``self._save()`` on assignment.
"""

from __future__ import annotations

from typing import Any, Callable


def _field(key: str, coerce: Callable[[Any], Any], default: Any) -> property:
    def _get(self):
        try:
            return coerce(self._settings.get(key, default))
        except (TypeError, ValueError):
            return coerce(default)

    def _set(self, value) -> None:
        try:
            self._settings[key] = coerce(value)
        except (TypeError, ValueError):
            self._settings[key] = coerce(default)
        self._save()

    return property(_get, _set)


def bool_prop(key: str, *, default: bool) -> property:
    return _field(key, bool, default)


def int_prop(key: str, *, default: int, min_v: int | None = None, max_v: int | None = None) -> property:
    def _coerce(value: Any) -> int:
        v = int(value)
        if min_v is not None and v < min_v:
            v = min_v
        if max_v is not None and v > max_v:
            v = max_v
        return v

    return _field(key, _coerce, default)


def str_prop(key: str, *, default: str) -> property:
    """Stripped string; blank or non-string values fall back to *default*."""

    def _coerce(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return default
        return value.strip()

    return _field(key, _coerce, default)
