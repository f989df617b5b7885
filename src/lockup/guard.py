"""
Re-entrancy guard.

A guard is held for the whole duration of a state-changing operation,
including the outgoing custody call. A custody callback that tries to enter
any operation guarded by the same instance is rejected with ReentrantCall.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .exceptions import ReentrantCall

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    def __init__(self) -> None:
        self._active: str | None = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> str | None:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        """Hold the guard for ``operation``; released on every exit path."""
        if self._active is not None:
            logger.warning(
                "Re-entrant call rejected",
                extra={
                    "event": "lockup.reentrant_call",
                    "operation": operation,
                    "in_flight": self._active,
                },
            )
            raise ReentrantCall(
                f"Re-entrant call to {operation} while {self._active} is in progress",
                details={"operation": operation, "in_flight": self._active},
            )
        self._active = operation
        try:
            yield
        finally:
            self._active = None
