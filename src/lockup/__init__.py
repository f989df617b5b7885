"""
Token lockup engine with linear vesting.

- SimpleLockup: create / release / revoke lifecycle
- vesting: pure vested / releasable math
- LockupRecordStore: create-once keyed record storage
- TokenCustody / ERC20Token: in-memory custody collaborator
- AtomicHost: commit-or-abort execution of engine calls
"""

from .config import MAX_VESTING_DURATION, ConfigurationError, LockupConfig, load_config
from .controller import SimpleLockup
from .custody import CustodyProvider, TokenCustody, validate_custody_target
from .events import Created, LockupEvent, Released, Revoked
from .exceptions import (
    AlreadyRevoked,
    CustodyError,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientTokensReceived,
    InvalidAmount,
    InvalidBeneficiary,
    InvalidCustodyTarget,
    InvalidDuration,
    LockupAlreadyExists,
    LockupError,
    NoLockupFound,
    NoTokensAvailable,
    NotBeneficiary,
    NothingToRevoke,
    NotRevocable,
    ReentrantCall,
    UnauthorizedAccount,
)
from .guard import ReentrancyGuard
from .host import AtomicHost
from .records import LockupRecord, LockupRecordStore
from .token import ERC20Token, TokenError
from .vesting import releasable_amount, vested_amount

__all__ = [
    # Engine
    "SimpleLockup",
    "LockupRecord",
    "LockupRecordStore",
    "ReentrancyGuard",
    "AtomicHost",
    "vested_amount",
    "releasable_amount",
    # Custody
    "CustodyProvider",
    "TokenCustody",
    "ERC20Token",
    "TokenError",
    "validate_custody_target",
    # Events
    "LockupEvent",
    "Created",
    "Released",
    "Revoked",
    # Config
    "LockupConfig",
    "ConfigurationError",
    "MAX_VESTING_DURATION",
    "load_config",
    # Errors
    "LockupError",
    "InvalidAmount",
    "InvalidDuration",
    "InvalidBeneficiary",
    "InvalidCustodyTarget",
    "LockupAlreadyExists",
    "NoLockupFound",
    "NoTokensAvailable",
    "NotRevocable",
    "AlreadyRevoked",
    "NotBeneficiary",
    "InsufficientBalance",
    "InsufficientAllowance",
    "InsufficientTokensReceived",
    "NothingToRevoke",
    "UnauthorizedAccount",
    "ReentrantCall",
    "CustodyError",
]
