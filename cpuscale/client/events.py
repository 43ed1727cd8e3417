"""Typed completion events published by :class:`OperationScheduler`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class QueuedOperation:
    method: str
    args: tuple[Any, ...]
    description: str
    # Called as on_done(succeeded, error) before the next operation starts.
    on_done: Optional[Callable[[bool, Optional[str]], None]] = None
    in_batch: bool = False
    # Set for operations refused on the client side; no remote call is made.
    local_error: Optional[str] = None


@dataclass(frozen=True)
class OperationSucceeded:
    operation: QueuedOperation


@dataclass(frozen=True)
class OperationFailed:
    operation: QueuedOperation
    error: str


@dataclass(frozen=True)
class BatchCompleted:
    all_succeeded: bool
    errors: tuple[str, ...]


@dataclass(frozen=True)
class ProgressChanged:
    in_progress: bool
