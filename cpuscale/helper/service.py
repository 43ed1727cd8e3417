"""Transport-independent core of the privileged helper.

Each public method mirrors one bus method. ``sender`` is the caller's bus
name, or None for an in-process call. Every call restarts the idle timer;
mutating calls are authorized before any file is touched and report a
return code instead of raising.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

from cpuscale.core.errors import RC_NOT_AUTHORIZED, RC_OK, CpuScaleError, return_code_for
from cpuscale.core.sysfs.reader import SysfsCpuReader

from .authorization import AuthorizationGate
from .constants import POLKIT_ACTION_APPLY
from .engine import MutationEngine
from .idle import IdleTimer

logger = logging.getLogger(__name__)


class HelperState(enum.Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    TERMINATED = "terminated"


class CpuHelper:
    def __init__(
        self,
        *,
        engine: MutationEngine,
        gate: AuthorizationGate,
        idle_timer: Optional[IdleTimer] = None,
        on_terminate: Optional[Callable[[], None]] = None,
        action_id: str = POLKIT_ACTION_APPLY,
    ):
        self._engine = engine
        self._reader: SysfsCpuReader = engine.reader
        self._gate = gate
        self._idle_timer = idle_timer
        self._on_terminate = on_terminate
        self._action_id = action_id
        self._state = HelperState.UNREGISTERED

    @property
    def state(self) -> HelperState:
        return self._state

    def attach_idle_timer(self, idle_timer: IdleTimer) -> None:
        self._idle_timer = idle_timer

    # ---- lifecycle

    def mark_registered(self) -> None:
        if self._state is not HelperState.UNREGISTERED:
            return
        self._state = HelperState.REGISTERED
        logger.info("Helper service registered")
        self._touch()

    def terminate(self, reason: str = "quit") -> None:
        if self._state is HelperState.TERMINATED:
            return
        self._state = HelperState.TERMINATED
        logger.info("Helper service shutting down (%s)", reason)
        if self._idle_timer is not None:
            self._idle_timer.stop()
        if self._on_terminate is not None:
            self._on_terminate()

    def on_idle_timeout(self) -> None:
        self.terminate("idle timeout")

    def _touch(self) -> None:
        if self._idle_timer is not None and self._state is HelperState.REGISTERED:
            self._idle_timer.reset()

    # ---- helpers

    def _authorized(self, sender: Optional[str]) -> bool:
        allowed = self._gate.authorize(sender, self._action_id)
        if not allowed:
            logger.warning("Denied %s for %s", self._action_id, sender)
        return allowed

    def _usable(self, cpu: int) -> bool:
        return self._reader.is_present(cpu) and self._reader.is_online(cpu)

    def _mutate(self, sender: Optional[str], what: str, fn: Callable[[], object]) -> int:
        self._touch()
        if not self._authorized(sender):
            return RC_NOT_AUTHORIZED
        try:
            fn()
        except CpuScaleError as exc:
            rc = return_code_for(exc)
            logger.warning("%s failed (%d): %s", what, rc, exc)
            return rc
        finally:
            # Count idle time from the end of the write.
            self._touch()
        logger.debug("%s done", what)
        return RC_OK

    # ---- queries

    def isauthorized(self, sender: Optional[str] = None) -> int:
        self._touch()
        return 1 if self._gate.authorize(sender, self._action_id) else 0

    def get_cpus_available(self, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return self._reader.available_cpus()

    def get_cpus_online(self, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return self._reader.online_cpus()

    def get_cpus_offline(self, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return self._reader.offline_cpus()

    def get_cpus_present(self, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return self._reader.present_cpus()

    def get_cpu_governors(self, cpu: int, sender: Optional[str] = None) -> list[str]:
        self._touch()
        return self._reader.available_governors(cpu) if self._usable(cpu) else []

    def get_cpu_energy_preferences(self, cpu: int, sender: Optional[str] = None) -> list[str]:
        self._touch()
        return self._reader.available_energy_prefs(cpu) if self._usable(cpu) else []

    def get_cpu_governor(self, cpu: int, sender: Optional[str] = None) -> str:
        self._touch()
        return self._reader.current_governor(cpu) if self._usable(cpu) else ""

    def get_cpu_energy_preference(self, cpu: int, sender: Optional[str] = None) -> str:
        self._touch()
        return self._reader.current_energy_pref(cpu) if self._usable(cpu) else ""

    def get_cpu_frequencies(self, cpu: int, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return list(self._reader.scaling_freqs(cpu)) if self._usable(cpu) else [0, 0]

    def get_cpu_limits(self, cpu: int, sender: Optional[str] = None) -> list[int]:
        self._touch()
        return list(self._reader.freq_limits(cpu)) if self._usable(cpu) else [0, 0]

    def cpu_allowed_offline(self, cpu: int, sender: Optional[str] = None) -> int:
        self._touch()
        return 1 if self._reader.allowed_offline(cpu) else 0

    # ---- mutations

    def update_cpu_settings(self, cpu: int, freq_min: int, freq_max: int, sender: Optional[str] = None) -> int:
        logger.debug("update_cpu_settings cpu=%d min=%d max=%d sender=%s", cpu, freq_min, freq_max, sender)
        return self._mutate(
            sender,
            f"CPU {cpu} frequency {freq_min}-{freq_max} kHz",
            lambda: self._engine.set_frequency_bounds(cpu, freq_min, freq_max),
        )

    def update_cpu_governor(self, cpu: int, governor: str, sender: Optional[str] = None) -> int:
        return self._mutate(
            sender,
            f"CPU {cpu} governor {governor}",
            lambda: self._engine.set_governor(cpu, governor),
        )

    def update_cpu_energy_prefs(self, cpu: int, pref: str, sender: Optional[str] = None) -> int:
        return self._mutate(
            sender,
            f"CPU {cpu} energy preference {pref}",
            lambda: self._engine.set_energy_pref(cpu, pref),
        )

    def set_cpu_online(self, cpu: int, sender: Optional[str] = None) -> int:
        return self._mutate(sender, f"CPU {cpu} online", lambda: self._engine.set_online(cpu))

    def set_cpu_offline(self, cpu: int, sender: Optional[str] = None) -> int:
        return self._mutate(sender, f"CPU {cpu} offline", lambda: self._engine.set_offline(cpu))

    def quit(self, sender: Optional[str] = None) -> None:
        self.terminate("quit requested")
