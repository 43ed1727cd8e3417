from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventEmitter:
    """Minimal synchronous listener registry.

    Listeners are called in registration order on the emitting thread. A
    listener that raises is logged and skipped so the emitter's own state
    machine keeps running.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[Any], None]] = []

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Callable[[Any], None]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def emit(self, event: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed for %s", type(event).__name__)
