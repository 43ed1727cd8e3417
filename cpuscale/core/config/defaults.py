"""Default configuration values."""

from __future__ import annotations

DEFAULTS: dict = {
    # Profile applied from the tray at start (when enabled) and shown as the
    # initial radio selection.
    "default_profile": "Balanced",
    "apply_profile_on_start": False,
    # Governor menu edits apply to every online CPU instead of CPU 0 only.
    "all_cpus_default": True,
    # When False, an energy preference chosen in the tray is pushed to all
    # CPUs that support it.
    "energy_pref_per_cpu": False,
    "notify_on_apply": True,
    # Seconds between tray refreshes of the kernel state (1-60).
    "refresh_interval_s": 2,
}
