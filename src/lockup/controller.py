"""
Lockup lifecycle controller.

SimpleLockup holds tokens in custody for beneficiaries and releases them
linearly after a cliff. The administrator fixed at construction creates
lockups and may revoke revocable ones; beneficiaries release whatever has
vested.

Every state-changing operation runs in the same order:

1. hold the re-entrancy guard,
2. validate every precondition (first failure wins),
3. commit the record change,
4. request the custody transfer,
5. emit the event.

A failed precondition leaves no trace. Once step 3 has run, a custody
failure propagates as is and rolling back both sides is left to the host
(see ``lockup.host.AtomicHost``); the only exception is create, which drops
its uncommitted record so no liability exists without confirmed funds.
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator

from . import metrics
from .config import MAX_VESTING_DURATION, ZERO_ADDRESS
from .custody import CustodyProvider, TokenCustody, validate_custody_target
from .events import Created, EventListener, LockupEvent, Released, Revoked
from .exceptions import (
    AlreadyRevoked,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientTokensReceived,
    InvalidAmount,
    InvalidBeneficiary,
    InvalidDuration,
    LockupAlreadyExists,
    LockupError,
    NoTokensAvailable,
    NotBeneficiary,
    NothingToRevoke,
    NotRevocable,
    UnauthorizedAccount,
)
from .guard import ReentrancyGuard
from .records import LockupRecord, LockupRecordStore, normalize_key
from .safe_math import MAX_UINT256, is_uint
from .token import ERC20Token
from .vesting import releasable_amount, vested_amount

logger = logging.getLogger(__name__)


class SimpleLockup:
    """
    Token lockup with linear vesting, one record per key.

    Records are keyed by beneficiary address unless an explicit key is given
    at creation. Time comes from ``time_provider`` (unix seconds), which
    tests replace with a controllable clock.
    """

    def __init__(
        self,
        custody: CustodyProvider,
        owner: str,
        time_provider: Callable[[], int] | None = None,
        max_vesting_duration: int | None = None,
        store: LockupRecordStore | None = None,
    ) -> None:
        self._custody = validate_custody_target(custody)
        self._address = normalize_key(self._custody.address)

        if not isinstance(owner, str) or not owner.strip() or owner.lower() == ZERO_ADDRESS:
            raise ValueError("Owner must be a non-zero address")
        self._owner = normalize_key(owner)

        self._time_provider = time_provider or (lambda: int(time.time()))
        self._max_vesting_duration = (
            MAX_VESTING_DURATION if max_vesting_duration is None else max_vesting_duration
        )
        if not is_uint(self._max_vesting_duration) or self._max_vesting_duration == 0:
            raise ValueError("max_vesting_duration must be a positive integer")

        self._store = store if store is not None else LockupRecordStore()
        self._guard = ReentrancyGuard()
        self.events: list[LockupEvent] = []
        self._listeners: list[EventListener] = []

        logger.info(
            "SimpleLockup deployed",
            extra={
                "event": "lockup.deployed",
                "address": self.address[:10],
                "owner": self._owner[:10],
                "max_vesting_duration": self._max_vesting_duration,
            },
        )

    @classmethod
    def deploy(
        cls,
        token: ERC20Token,
        owner: str,
        address: str = "",
        **kwargs: Any,
    ) -> "SimpleLockup":
        """Create a lockup holding ``token`` at ``address`` (derived when empty)."""
        if not address:
            addr_input = f"lockup:{token.address}:{owner}:{time.time()}".encode()
            address = f"0x{hashlib.sha3_256(addr_input).digest()[-20:].hex()}"
        return cls(TokenCustody(token, address), owner, **kwargs)

    # ==================== Accessors ====================

    @property
    def address(self) -> str:
        return self._address

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def custody(self) -> CustodyProvider:
        return self._custody

    @property
    def token(self) -> ERC20Token | None:
        return getattr(self._custody, "token", None)

    @property
    def max_vesting_duration(self) -> int:
        return self._max_vesting_duration

    def subscribe(self, listener: EventListener) -> None:
        """
        Call ``listener`` with every event after it is recorded.

        A listener that raises is logged and skipped; its failure never
        aborts the operation that emitted the event.
        """
        self._listeners.append(listener)

    # ==================== Lifecycle ====================

    def create_lockup(
        self,
        caller: str,
        beneficiary: str,
        amount: int,
        cliff_duration: int,
        vesting_duration: int,
        revocable: bool,
        key: str | None = None,
    ) -> LockupRecord:
        """
        Lock ``amount`` from the administrator for ``beneficiary``.

        Returns:
            A detached copy of the new record

        Raises:
            UnauthorizedAccount: caller is not the administrator
            LockupAlreadyExists, InvalidAmount, InvalidDuration,
            InvalidBeneficiary, InsufficientBalance, InsufficientAllowance:
                precondition failures, checked in that order
            InsufficientTokensReceived: custody received less than ``amount``
        """
        with self._operation("create"):
            self._require_owner(caller)
            caller_norm = normalize_key(caller)
            beneficiary_norm = normalize_key(beneficiary) if isinstance(beneficiary, str) else ""
            key_norm = normalize_key(key) if key is not None else beneficiary_norm

            if self._store.exists(key_norm):
                raise LockupAlreadyExists(
                    f"Lockup already exists for {key_norm}", details={"key": key_norm}
                )
            if not is_uint(amount) or amount == 0:
                raise InvalidAmount(
                    f"Amount must be a positive integer <= uint256, got {amount!r}",
                    details={"amount": amount},
                )
            if not is_uint(vesting_duration) or vesting_duration == 0:
                raise InvalidDuration(
                    f"Vesting duration must be a positive integer, got {vesting_duration!r}",
                    details={"vesting_duration": vesting_duration},
                )
            if vesting_duration > self._max_vesting_duration:
                raise InvalidDuration(
                    f"Vesting duration {vesting_duration} exceeds maximum {self._max_vesting_duration}",
                    details={"vesting_duration": vesting_duration, "max": self._max_vesting_duration},
                )
            if not is_uint(cliff_duration) or cliff_duration >= vesting_duration:
                raise InvalidDuration(
                    f"Cliff duration must be shorter than vesting duration "
                    f"({cliff_duration!r} >= {vesting_duration})",
                    details={"cliff_duration": cliff_duration, "vesting_duration": vesting_duration},
                )
            if not beneficiary_norm or beneficiary_norm in (ZERO_ADDRESS, self.address):
                raise InvalidBeneficiary(
                    f"Invalid beneficiary {beneficiary!r}", details={"beneficiary": beneficiary}
                )

            balance = self._custody.balance_of(caller_norm)
            if balance < amount:
                raise InsufficientBalance(
                    f"Balance {balance} is below lockup amount {amount}",
                    details={"account": caller_norm, "balance": balance, "amount": amount},
                )
            allowance = self._custody.allowance(caller_norm)
            if allowance < amount:
                raise InsufficientAllowance(
                    f"Allowance {allowance} is below lockup amount {amount}",
                    details={"account": caller_norm, "allowance": allowance, "amount": amount},
                )

            now = self._now()
            record = LockupRecord(
                beneficiary=beneficiary_norm,
                total_amount=amount,
                start_time=now,
                cliff_duration=cliff_duration,
                vesting_duration=vesting_duration,
                revocable=bool(revocable),
            )
            self._store.add(key_norm, record)

            try:
                received = self._custody.pull(caller_norm, amount)
            except Exception:
                self._store.discard_uncommitted(key_norm, record)
                raise

            if received != amount:
                self._store.discard_uncommitted(key_norm, record)
                logger.error(
                    "Custody received less than requested",
                    extra={
                        "event": "lockup.short_transfer",
                        "requested": amount,
                        "received": received,
                        "beneficiary": beneficiary_norm[:10],
                    },
                )
                raise InsufficientTokensReceived(
                    f"Custody received {received} of {amount}",
                    details={"requested": amount, "received": received},
                )

            self._emit(
                Created(
                    beneficiary=beneficiary_norm,
                    total_amount=amount,
                    start_time=now,
                    cliff_duration=cliff_duration,
                    vesting_duration=vesting_duration,
                    revocable=record.revocable,
                    timestamp=now,
                )
            )
            metrics.record_created(amount, record.revocable)
            self._update_liability()

            logger.info(
                "Lockup created",
                extra={
                    "event": "lockup.created",
                    "key": key_norm[:10],
                    "beneficiary": beneficiary_norm[:10],
                    "amount": amount,
                    "cliff_duration": cliff_duration,
                    "vesting_duration": vesting_duration,
                    "revocable": record.revocable,
                },
            )
            return self._store.view(key_norm)

    def release(self, caller: str, key: str | None = None) -> int:
        """
        Pay the caller everything currently releasable.

        Returns:
            Units paid out

        Raises:
            NoLockupFound, NotBeneficiary, NoTokensAvailable
        """
        with self._operation("release"):
            caller_norm = normalize_key(caller) if isinstance(caller, str) else ""
            record = self._store.require(key if key is not None else caller_norm)

            if caller_norm != record.beneficiary:
                raise NotBeneficiary(
                    f"{caller_norm} is not the beneficiary of this lockup",
                    details={"caller": caller_norm, "beneficiary": record.beneficiary},
                )

            now = self._now()
            amount = releasable_amount(record, now)
            if amount <= 0:
                raise NoTokensAvailable(
                    "No tokens available for release", details={"beneficiary": record.beneficiary}
                )

            record.released_amount += amount
            self._custody.push(record.beneficiary, amount)

            self._emit(Released(beneficiary=record.beneficiary, amount=amount, timestamp=now))
            metrics.record_released(amount)
            self._update_liability()

            logger.info(
                "Tokens released",
                extra={
                    "event": "lockup.released",
                    "beneficiary": record.beneficiary[:10],
                    "amount": amount,
                    "released_total": record.released_amount,
                    "total_amount": record.total_amount,
                },
            )
            return amount

    def revoke(self, caller: str, key: str) -> int:
        """
        Freeze vesting and refund the unvested remainder to the administrator.

        Returns:
            Units refunded

        Raises:
            UnauthorizedAccount, NoLockupFound, AlreadyRevoked, NotRevocable,
            NothingToRevoke
        """
        with self._operation("revoke"):
            self._require_owner(caller)
            record = self._store.require(key)

            if record.revoked:
                raise AlreadyRevoked("Lockup already revoked", details={"beneficiary": record.beneficiary})
            if not record.revocable:
                raise NotRevocable("Lockup is not revocable", details={"beneficiary": record.beneficiary})

            now = self._now()
            vested = min(vested_amount(record, now), record.total_amount)
            refund = record.total_amount - vested
            if refund == 0:
                raise NothingToRevoke(
                    "Lockup is fully vested; nothing to revoke",
                    details={"beneficiary": record.beneficiary},
                )

            record.revoked = True
            record.vested_at_revoke = vested
            self._custody.push(self._owner, refund)

            self._emit(Revoked(beneficiary=record.beneficiary, refund_amount=refund, timestamp=now))
            metrics.record_refunded(refund)
            self._update_liability()

            logger.info(
                "Lockup revoked",
                extra={
                    "event": "lockup.revoked",
                    "beneficiary": record.beneficiary[:10],
                    "vested_at_revoke": vested,
                    "refund": refund,
                },
            )
            return refund

    # ==================== Queries ====================

    def get_lockup(self, key: str) -> LockupRecord | None:
        return self._store.view(key)

    def vested_amount(self, key: str, at: int | None = None) -> int:
        return vested_amount(self._store.get(key), self._at(at))

    def releasable_amount(self, key: str, at: int | None = None) -> int:
        return releasable_amount(self._store.get(key), self._at(at))

    def get_vesting_progress(self, key: str, at: int | None = None) -> int:
        return self._store.get_vesting_progress(key, self._at(at))

    def get_remaining_vesting_time(self, key: str, at: int | None = None) -> int:
        return self._store.get_remaining_vesting_time(key, self._at(at))

    def outstanding_liability(self) -> int:
        return self._store.outstanding_liability()

    # ==================== Atomic host support ====================

    def snapshot(self) -> Dict[str, Any]:
        return {"store": self._store.snapshot(), "event_count": len(self.events)}

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._store.restore(snapshot["store"])
        del self.events[snapshot["event_count"]:]

    # ==================== Helpers ====================

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        try:
            with self._guard.enter(name):
                yield
        except LockupError as exc:
            metrics.record_rejection(name, exc.kind)
            logger.warning(
                "Lockup %s rejected: %s",
                name,
                exc.kind,
                extra={"event": f"lockup.{name}_rejected", "error_type": exc.kind, "details": exc.details},
            )
            raise

    def _require_owner(self, caller: str) -> None:
        caller_norm = normalize_key(caller) if isinstance(caller, str) else ""
        if caller_norm != self._owner:
            raise UnauthorizedAccount(
                f"Account {caller_norm or caller!r} is not the administrator",
                account=caller_norm,
                details={"account": caller_norm},
            )

    def _now(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _at(self, at: int | None) -> int:
        return self._now() if at is None else int(at)

    def _emit(self, event: LockupEvent) -> None:
        self.events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.error(
                    "Event listener failed",
                    extra={
                        "event": "lockup.listener_failed",
                        "event_type": event.event_type,
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )

    def _update_liability(self) -> None:
        metrics.update_outstanding_liability(self.address, self._store.outstanding_liability())
