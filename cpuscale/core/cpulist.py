"""Parsing helpers for the list formats used by the cpufreq sysfs interface.

Shared by the unprivileged reader, the privileged helper and the profile
store, so all three agree on what "0-3,5,7-9" means.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def parse_cpu_list(content: str) -> list[int]:
    """Expand a kernel CPU list (e.g. ``"0-3,5,7-9"``) into sorted indices.

    Empty input yields ``[]``. Malformed parts raise ``ValueError``.
    """

    text = str(content or "").strip()
    if not text:
        return []

    cpus: set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_s, _, end_s = part.partition("-")
            start, end = int(start_s), int(end_s)
            if start < 0 or end < start:
                raise ValueError(f"invalid CPU range: {part!r}")
            cpus.update(range(start, end + 1))
        else:
            cpu = int(part)
            if cpu < 0:
                raise ValueError(f"invalid CPU index: {part!r}")
            cpus.add(cpu)

    return sorted(cpus)


def parse_word_list(content: str) -> list[str]:
    """Split a whitespace separated sysfs list (governors, preferences, steps)."""

    text = str(content or "").strip()
    if not text:
        return []
    return [w for w in _WHITESPACE.split(text) if w]


def parse_int_list(content: str) -> list[int]:
    out: list[int] = []
    for word in parse_word_list(content):
        try:
            out.append(int(word))
        except ValueError:
            continue
    return out


def format_cpu_list(cpus) -> str:
    """Compress indices back into kernel range notation (``[0,1,2,5]`` -> ``"0-2,5"``)."""

    ordered = sorted({int(c) for c in cpus})
    if not ordered:
        return ""

    parts: list[str] = []
    start = prev = ordered[0]
    for cpu in ordered[1:]:
        if cpu == prev + 1:
            prev = cpu
            continue
        parts.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = cpu
    parts.append(str(start) if start == prev else f"{start}-{prev}")
    return ",".join(parts)
