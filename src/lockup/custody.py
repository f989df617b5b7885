"""
Custody collaborator interface and the token-backed implementation.

The lockup engine never moves funds itself. It asks a custody provider to
pull the locked amount from the administrator and to push releases and
refunds out, and it trusts only the amount the provider reports as actually
received.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol, runtime_checkable

from .config import ZERO_ADDRESS
from .exceptions import CustodyError, InvalidCustodyTarget
from .token import ERC20Token, TokenError

logger = logging.getLogger(__name__)

# Attributes that only ERC-777 style tokens expose. Their send/receive hooks
# call into arbitrary code in the middle of a transfer.
_HOOK_TOKEN_MARKERS = ("granularity", "tokens_received", "authorize_operator")


@runtime_checkable
class CustodyProvider(Protocol):
    """Moves the locked asset in and out of custody."""

    @property
    def address(self) -> str:
        """Address holding the locked funds."""
        ...

    def pull(self, from_addr: str, amount: int) -> int:
        """Move ``amount`` from ``from_addr`` into custody; return units actually received."""
        ...

    def push(self, to_addr: str, amount: int) -> None:
        """Pay ``amount`` out of custody to ``to_addr``."""
        ...

    def balance_of(self, holder: str) -> int:
        ...

    def allowance(self, holder: str) -> int:
        """Amount ``holder`` has approved custody to pull."""
        ...


class TokenCustody:
    """Custody backed by an ERC20Token balance held at ``holder``."""

    def __init__(self, token: ERC20Token, holder: str) -> None:
        self.token = token
        self._holder = holder.lower()

    @property
    def address(self) -> str:
        return self._holder

    def balance_of(self, holder: str) -> int:
        return self.token.balance_of(holder)

    def allowance(self, holder: str) -> int:
        return self.token.allowance(holder, self._holder)

    def pull(self, from_addr: str, amount: int) -> int:
        before = self.token.balance_of(self._holder)
        try:
            self.token.transfer_from(self._holder, from_addr, self._holder, amount)
        except TokenError as exc:
            raise CustodyError(
                f"Custody pull failed: {exc}",
                details={"from": from_addr.lower(), "amount": amount},
            ) from exc
        return self.token.balance_of(self._holder) - before

    def push(self, to_addr: str, amount: int) -> None:
        try:
            self.token.transfer(self._holder, to_addr, amount)
        except TokenError as exc:
            raise CustodyError(
                f"Custody push failed: {exc}",
                details={"to": to_addr.lower(), "amount": amount},
            ) from exc

    def snapshot(self) -> Dict[str, Any]:
        return self.token.snapshot()

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.token.restore(snapshot)


def validate_custody_target(custody: Any) -> CustodyProvider:
    """
    Reject custody targets the engine cannot safely hold funds with.

    Raises:
        InvalidCustodyTarget: missing target, zero address, no custody
            interface, or a hook-capable (ERC-777 style) token
    """
    if custody is None:
        raise InvalidCustodyTarget("Custody target is required")

    if not isinstance(custody, CustodyProvider):
        raise InvalidCustodyTarget(
            f"Custody target {type(custody).__name__} does not implement the custody interface",
            details={"type": type(custody).__name__},
        )

    address = (custody.address or "").lower()
    if not address or address == ZERO_ADDRESS:
        raise InvalidCustodyTarget("Custody target has zero address")

    token = getattr(custody, "token", None)
    if token is not None:
        token_address = (getattr(token, "address", "") or "").lower()
        if not token_address or token_address == ZERO_ADDRESS:
            raise InvalidCustodyTarget("Token has zero address")
        for marker in _HOOK_TOKEN_MARKERS:
            if hasattr(token, marker):
                logger.error(
                    "Hook-capable token rejected as custody asset",
                    extra={"event": "custody.hook_token_rejected", "token": token_address[:10], "marker": marker},
                )
                raise InvalidCustodyTarget(
                    f"Token {token_address} exposes {marker}(); hook-capable tokens are not supported",
                    details={"token": token_address, "marker": marker},
                )

    return custody
