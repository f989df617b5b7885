"""Events emitted by the lockup controller."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, ClassVar, Dict


class LockupEvent:
    """Base for controller events."""

    event_type: ClassVar[str] = "LockupEvent"
    beneficiary: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event_type"] = self.event_type
        return data


@dataclass(frozen=True)
class Created(LockupEvent):
    event_type: ClassVar[str] = "Created"

    beneficiary: str
    total_amount: int
    start_time: int
    cliff_duration: int
    vesting_duration: int
    revocable: bool
    timestamp: int = 0


@dataclass(frozen=True)
class Released(LockupEvent):
    event_type: ClassVar[str] = "Released"

    beneficiary: str
    amount: int
    timestamp: int = 0


@dataclass(frozen=True)
class Revoked(LockupEvent):
    event_type: ClassVar[str] = "Revoked"

    beneficiary: str
    refund_amount: int
    timestamp: int = 0


EventListener = Callable[[LockupEvent], None]
