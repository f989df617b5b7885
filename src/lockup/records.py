"""
Lockup records and their keyed in-memory store.

The store is create-once: a key that has ever held a record can never be
assigned another one, and records are never deleted. Mutations other than
``add`` happen through the lifecycle controller, which holds the only
reference to the store it owns.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .exceptions import LockupAlreadyExists, NoLockupFound
from .vesting import remaining_vesting_time, vesting_progress

logger = logging.getLogger(__name__)


def normalize_key(key: str) -> str:
    """Normalize an address-like key to lowercase."""
    return key.strip().lower()


@dataclass
class LockupRecord:
    """Vesting state of one beneficiary."""

    beneficiary: str
    total_amount: int
    start_time: int
    cliff_duration: int
    vesting_duration: int
    revocable: bool
    released_amount: int = 0
    revoked: bool = False
    vested_at_revoke: int = 0

    @property
    def cliff_end(self) -> int:
        return self.start_time + self.cliff_duration

    @property
    def vesting_end(self) -> int:
        return self.start_time + self.vesting_duration

    def entitlement(self) -> int:
        """Most the beneficiary can ever receive under the current state."""
        return self.vested_at_revoke if self.revoked else self.total_amount

    def refunded_amount(self) -> int:
        return self.total_amount - self.vested_at_revoke if self.revoked else 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockupRecord":
        return cls(
            beneficiary=data["beneficiary"],
            total_amount=int(data["total_amount"]),
            start_time=int(data["start_time"]),
            cliff_duration=int(data["cliff_duration"]),
            vesting_duration=int(data["vesting_duration"]),
            revocable=bool(data["revocable"]),
            released_amount=int(data.get("released_amount", 0)),
            revoked=bool(data.get("revoked", False)),
            vested_at_revoke=int(data.get("vested_at_revoke", 0)),
        )


class LockupRecordStore:
    """
    Identity-keyed storage of LockupRecords.

    Keys are normalized to lowercase. ``get`` returns None for an absent
    key, matching the zero-amount "no record" sentinel of the vesting math.
    """

    def __init__(self) -> None:
        self._records: dict[str, LockupRecord] = {}

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        return len(self._records)

    def exists(self, key: str) -> bool:
        record = self._records.get(normalize_key(key))
        return record is not None and record.total_amount > 0

    def get(self, key: str) -> LockupRecord | None:
        return self._records.get(normalize_key(key))

    def require(self, key: str) -> LockupRecord:
        record = self.get(key)
        if record is None or record.total_amount == 0:
            raise NoLockupFound(f"No lockup found for {key}", details={"key": normalize_key(key)})
        return record

    def add(self, key: str, record: LockupRecord) -> LockupRecord:
        key_norm = normalize_key(key)
        if self.exists(key_norm):
            raise LockupAlreadyExists(
                f"Lockup already exists for {key_norm}", details={"key": key_norm}
            )
        self._records[key_norm] = record
        logger.debug(
            "Lockup record stored",
            extra={"event": "lockup_store.add", "key": key_norm[:10], "total_amount": record.total_amount},
        )
        return record

    def discard_uncommitted(self, key: str, record: LockupRecord) -> None:
        """Drop ``record`` if it is still the one stored under ``key``.

        Only used to undo an ``add`` inside the same aborted create call.
        """
        key_norm = normalize_key(key)
        if self._records.get(key_norm) is record:
            del self._records[key_norm]

    def view(self, key: str) -> LockupRecord | None:
        """Detached copy of the record, safe to hand to callers."""
        record = self.get(key)
        return copy.copy(record) if record is not None else None

    # ==================== Queries ====================

    def get_vesting_progress(self, key: str, now: int) -> int:
        return vesting_progress(self.get(key), now)

    def get_remaining_vesting_time(self, key: str, now: int) -> int:
        return remaining_vesting_time(self.get(key), now)

    def outstanding_liability(self) -> int:
        """Units custody must still hold to pay every beneficiary."""
        return sum(r.entitlement() - r.released_amount for r in self._records.values())

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: record.to_dict() for key, record in self._records.items()}

    def snapshot(self) -> Dict[str, Any]:
        return {"records": self.to_dict()}

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._records = {
            key: LockupRecord.from_dict(record)
            for key, record in snapshot.get("records", {}).items()
        }
