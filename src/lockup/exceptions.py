"""
Lockup-specific exception hierarchy.

Every rejection raised by the lifecycle controller is a subclass of
LockupError so callers can catch the whole family or a single kind.
A raised error always means the entire call was rejected: no record was
created or mutated and no custody transfer was requested.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class LockupError(Exception):
    """Base exception for all lockup errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller can fix its inputs and retry
    """

    recoverable_default = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = self.recoverable_default if recoverable is None else recoverable

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "details": dict(self.details),
            "recoverable": self.recoverable,
        }


# ==================== Validation Errors ====================


class ValidationError(LockupError):
    """Raised when call arguments fail validation."""
    pass


class InvalidAmount(ValidationError):
    """Raised when the locked amount is zero, negative or not an integer."""
    pass


class InvalidDuration(ValidationError):
    """Raised when the vesting duration is zero or above the maximum, or the
    cliff is not strictly shorter than the vesting duration."""
    pass


class InvalidBeneficiary(ValidationError):
    """Raised for an empty, zero or self-referential beneficiary."""
    pass


class InvalidCustodyTarget(ValidationError):
    """Raised at construction when the custody target cannot hold funds."""
    pass


# ==================== State Errors ====================


class StateError(LockupError):
    """Raised when the record state does not allow the operation."""
    pass


class LockupAlreadyExists(StateError):
    """Raised when creating a lockup on an occupied key."""
    pass


class NoLockupFound(StateError):
    """Raised when no lockup exists for the key."""
    pass


class NoTokensAvailable(StateError):
    """Raised when nothing is currently releasable."""
    pass


class NotRevocable(StateError):
    """Raised when revoking a lockup created as non-revocable."""
    pass


class AlreadyRevoked(StateError):
    """Raised when revoking a lockup a second time."""
    pass


class NothingToRevoke(StateError):
    """Raised when the computed refund is zero."""
    pass


# ==================== Access Errors ====================


class AccessError(LockupError):
    """Raised when the caller identity is not allowed to perform the call."""
    pass


class UnauthorizedAccount(AccessError):
    """Raised when a non-administrator calls an administrator operation."""

    def __init__(self, message: str, account: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.account = account


class NotBeneficiary(AccessError):
    """Raised when the caller is not the beneficiary of the record."""
    pass


class ReentrantCall(AccessError):
    """Raised when a guarded operation is entered while one is in flight."""
    pass


# ==================== Custody Errors ====================


class CustodyError(LockupError):
    """Raised when the custody side cannot satisfy the operation."""
    pass


class InsufficientBalance(CustodyError):
    """Raised when the caller's custody balance is below the amount."""
    recoverable_default = True


class InsufficientAllowance(CustodyError):
    """Raised when the caller has not approved enough for the engine."""
    recoverable_default = True


class InsufficientTokensReceived(CustodyError):
    """Raised when custody received less than requested (fee-on-transfer)."""
    pass
