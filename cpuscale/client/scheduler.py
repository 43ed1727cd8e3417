"""Serialized, batch-aware execution of mutating helper calls.

Only one call is ever outstanding. Calls may take minutes when polkit asks
the user for a password, so nothing here blocks: a call is issued and the
queue resumes from the transport's completion callback.

Not thread-safe. Every method, and every transport callback, must run on the
same dispatcher thread.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from functools import partial
from typing import Any, Callable, Optional, Protocol

from cpuscale.core.errors import RC_OK, describe_return_code
from cpuscale.core.events import EventEmitter

from .events import BatchCompleted, OperationFailed, OperationSucceeded, ProgressChanged, QueuedOperation

logger = logging.getLogger(__name__)

NOT_CONNECTED_ERROR = "Not connected to helper service"

OnDone = Callable[[bool, Optional[str]], None]


class Transport(Protocol):
    @property
    def connected(self) -> bool: ...

    def call_async(
        self,
        method: str,
        args: tuple[Any, ...],
        reply_handler: Callable[[Any], None],
        error_handler: Callable[[BaseException], None],
    ) -> None: ...


class _Batch(enum.Enum):
    NONE = "none"
    # begin_batch() called; queue is held until end_batch()
    OPEN = "open"
    # end_batch() called; completion fires once the queue drains
    CLOSING = "closing"


def _error_text(exc: BaseException) -> str:
    get_message = getattr(exc, "get_dbus_message", None)
    if callable(get_message):
        msg = get_message()
        if msg:
            return str(msg)
    return str(exc) or type(exc).__name__


class OperationScheduler:
    def __init__(self, transport: Transport):
        self._transport = transport
        self._queue: deque[QueuedOperation] = deque()
        self._in_flight: Optional[QueuedOperation] = None
        self._draining = False
        self._in_progress = False
        self._batch = _Batch.NONE
        self._batch_errors: list[str] = []
        self.events = EventEmitter()

    # ---- state

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def batch_active(self) -> bool:
        return self._batch is not _Batch.NONE

    @property
    def pending(self) -> int:
        return len(self._queue) + (1 if self._in_flight is not None else 0)

    @property
    def connected(self) -> bool:
        return bool(self._transport.connected)

    # ---- queue / batch

    def enqueue(
        self,
        method: str,
        args,
        description: str,
        *,
        on_done: Optional[OnDone] = None,
        local_error: Optional[str] = None,
    ) -> None:
        op = QueuedOperation(
            method=method,
            args=tuple(args),
            description=description,
            on_done=on_done,
            in_batch=self._batch is not _Batch.NONE,
            local_error=local_error,
        )
        self._queue.append(op)
        self._drain()

    def begin_batch(self) -> None:
        if self._batch is not _Batch.NONE:
            raise RuntimeError("a batch is already active")
        self._batch = _Batch.OPEN
        self._batch_errors = []

    def end_batch(self) -> None:
        if self._batch is not _Batch.OPEN:
            logger.warning("end_batch() without an open batch; ignoring")
            return

        if not self._queue and self._in_flight is None:
            self._batch = _Batch.NONE
            self._batch_errors = []
            self.events.emit(BatchCompleted(all_succeeded=True, errors=()))
            return

        self._batch = _Batch.CLOSING
        self._drain()

    # ---- convenience wrappers

    def update_cpu_settings(self, cpu: int, freq_min: int, freq_max: int, *, on_done: Optional[OnDone] = None) -> None:
        self.enqueue(
            "update_cpu_settings",
            (int(cpu), int(freq_min), int(freq_max)),
            f"Set CPU {cpu} frequency {freq_min}-{freq_max} kHz",
            on_done=on_done,
        )

    def update_cpu_governor(self, cpu: int, governor: str, *, on_done: Optional[OnDone] = None) -> None:
        self.enqueue("update_cpu_governor", (int(cpu), str(governor)), f"Set CPU {cpu} governor to {governor}", on_done=on_done)

    def update_cpu_energy_prefs(self, cpu: int, pref: str, *, on_done: Optional[OnDone] = None) -> None:
        self.enqueue(
            "update_cpu_energy_prefs",
            (int(cpu), str(pref)),
            f"Set CPU {cpu} energy preference to {pref}",
            on_done=on_done,
        )

    def set_cpu_online(self, cpu: int, *, on_done: Optional[OnDone] = None) -> None:
        self.enqueue("set_cpu_online", (int(cpu),), f"Set CPU {cpu} online", on_done=on_done)

    def set_cpu_offline(self, cpu: int, *, on_done: Optional[OnDone] = None) -> None:
        self.enqueue("set_cpu_offline", (int(cpu),), f"Set CPU {cpu} offline", on_done=on_done)

    def refuse(self, method: str, args, description: str, reason: str, *, on_done: Optional[OnDone] = None) -> None:
        """Queue an operation that fails with *reason* when its turn comes.

        Keeps client-side refusals in FIFO order and in the batch error list.
        """

        self.enqueue(method, args, description, on_done=on_done, local_error=reason)

    # ---- draining

    def _set_progress(self, value: bool) -> None:
        if self._in_progress == value:
            return
        self._in_progress = value
        self.events.emit(ProgressChanged(in_progress=value))

    def _drain(self) -> None:
        # Completions that arrive synchronously inside call_async() re-enter
        # here; the outer loop picks up the next operation instead.
        if self._draining:
            return
        self._draining = True
        try:
            while self._in_flight is None:
                if self._batch is _Batch.OPEN or not self._queue:
                    self._set_progress(False)
                    if not self._queue and self._batch is _Batch.CLOSING:
                        self._finish_batch()
                    return

                op = self._queue.popleft()
                self._in_flight = op
                self._set_progress(True)
                self._issue(op)
        finally:
            self._draining = False

    def _issue(self, op: QueuedOperation) -> None:
        if op.local_error is not None:
            logger.warning("Refused %s: %s", op.description, op.local_error)
            self._complete(op, op.local_error)
            return

        if not self._transport.connected:
            logger.warning("Cannot execute %s: %s", op.description, NOT_CONNECTED_ERROR)
            self._complete(op, NOT_CONNECTED_ERROR)
            return

        logger.debug("Calling %s%r (%s)", op.method, op.args, op.description)
        try:
            self._transport.call_async(
                op.method,
                op.args,
                partial(self._on_reply, op),
                partial(self._on_error, op),
            )
        except Exception as exc:
            logger.warning("Failed to issue %s: %s", op.description, exc)
            self._complete(op, _error_text(exc))

    def _on_reply(self, op: QueuedOperation, result: Any = None) -> None:
        try:
            rc = RC_OK if result is None else int(result)
        except (TypeError, ValueError):
            self._complete(op, f"malformed reply: {result!r}")
        else:
            self._complete(op, None if rc == RC_OK else describe_return_code(rc))
        self._drain()

    def _on_error(self, op: QueuedOperation, exc: BaseException) -> None:
        self._complete(op, _error_text(exc))
        self._drain()

    def _complete(self, op: QueuedOperation, error: Optional[str]) -> None:
        if op is not self._in_flight:
            logger.warning("Ignoring completion for %s: not the operation in flight", op.description)
            return
        self._in_flight = None

        if error is None:
            logger.debug("Succeeded: %s", op.description)
            self.events.emit(OperationSucceeded(operation=op))
        else:
            logger.warning("Failed: %s: %s", op.description, error)
            if op.in_batch and self._batch is not _Batch.NONE:
                self._batch_errors.append(f"{op.description}: {error}")
            self.events.emit(OperationFailed(operation=op, error=error))

        if op.on_done is not None:
            try:
                op.on_done(error is None, error)
            except Exception:
                logger.exception("Completion callback for %s failed", op.description)

    def _finish_batch(self) -> None:
        errors = tuple(self._batch_errors)
        self._batch = _Batch.NONE
        self._batch_errors = []
        self.events.emit(BatchCompleted(all_succeeded=not errors, errors=errors))
