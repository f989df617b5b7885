"""
Atomic execution host.

Runs one engine call at a time and commits or aborts it as a whole: every
participant (controller, custody, token) is snapshotted before the call and
restored if the call raises. This is the in-memory counterpart of a chain
reverting a failed transaction, including transfers the custody side made
before the engine rejected the call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Snapshottable(Protocol):
    def snapshot(self) -> Dict[str, Any]:
        ...

    def restore(self, snapshot: Dict[str, Any]) -> None:
        ...


class AtomicHost:
    def __init__(self, *participants: Snapshottable) -> None:
        for participant in participants:
            if not isinstance(participant, Snapshottable):
                raise TypeError(f"{type(participant).__name__} must expose snapshot() and restore()")
        self._participants = list(participants)
        self._in_call = False

    def execute(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``operation(*args, **kwargs)``; on any exception roll every participant back."""
        if self._in_call:
            raise RuntimeError("AtomicHost.execute is not re-entrant; calls are serialized")

        snapshots = [p.snapshot() for p in self._participants]
        self._in_call = True
        try:
            return operation(*args, **kwargs)
        except Exception as exc:
            for participant, snap in zip(reversed(self._participants), reversed(snapshots)):
                participant.restore(snap)
            logger.info(
                "Call aborted and rolled back",
                extra={
                    "event": "host.rollback",
                    "operation": getattr(operation, "__name__", repr(operation)),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            self._in_call = False
