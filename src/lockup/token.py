"""
In-memory ERC20-style token.

Stands in for the asset the lockup engine holds in custody. It keeps
balances and allowances in dictionaries and records Transfer/Approval
events. Two optional behaviours exist to exercise the engine's defences:

- ``transfer_fee_bps``: a fee-on-transfer asset; the recipient receives
  less than the amount sent and the fee is burned.
- receive hooks: callbacks invoked after a transfer credits an address,
  the way ERC-777 ``tokensReceived`` hooks call back into the receiver.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from .config import ZERO_ADDRESS
from .safe_math import MAX_UINT256, mul_div

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000

ReceiveHook = Callable[[str, str, int], None]


class TokenError(Exception):
    """Raised when a token operation fails."""
    pass


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    Minimal ERC20 token with owner-only minting.

    All balances and allowances are stored in-memory.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    # Fee charged on every transfer, in basis points (0 = standard token)
    transfer_fee_bps: int = 0

    receive_hooks: dict[str, ReceiveHook] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time()}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)
        if not 0 <= self.transfer_fee_bps < BPS_DENOMINATOR:
            raise TokenError("ERC20: transfer fee must be in [0, 10000) bps")

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Raises:
            TokenError: If the recipient is the zero address or the balance is short
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise TokenError(
                f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})"
            )

        self._move(sender_norm, recipient_norm, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.append(TokenEvent("Approval", owner_norm, spender_norm, amount))
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Raises:
            TokenError: If allowance or balance is insufficient
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise TokenError(f"ERC20: insufficient allowance ({current_allowance} < {amount})")

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise TokenError(f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})")

        if current_allowance != MAX_UINT256:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self._move(from_norm, to_norm, amount)
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint new tokens (owner only)."""
        if self._normalize(minter) != self.owner:
            raise TokenError("ERC20: caller is not owner")

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if self.total_supply + amount > MAX_UINT256:
            raise TokenError("ERC20: total supply exceeds uint256")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_norm, amount))
        return True

    def register_receive_hook(self, account: str, hook: ReceiveHook) -> None:
        """Call ``hook(from, to, received)`` whenever ``account`` is credited."""
        self.receive_hooks[self._normalize(account)] = hook

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        fee = mul_div(amount, self.transfer_fee_bps, BPS_DENOMINATOR) if self.transfer_fee_bps else 0
        received = amount - fee

        self.balances[from_norm] = self.balances.get(from_norm, 0) - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + received
        self.total_supply -= fee

        self.events.append(TokenEvent("Transfer", from_norm, to_norm, received))
        if fee:
            self.events.append(TokenEvent("Transfer", from_norm, ZERO_ADDRESS, fee))

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": from_norm[:10],
                "to": to_norm[:10],
                "amount": amount,
                "fee": fee,
            },
        )

        hook = self.receive_hooks.get(to_norm)
        if hook is not None:
            hook(from_norm, to_norm, received)

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, field_name: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise TokenError(f"ERC20: {field_name} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if amount < 0:
            raise TokenError("ERC20: amount cannot be negative")
        if amount > MAX_UINT256:
            raise TokenError("ERC20: amount exceeds uint256")

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
            "transfer_fee_bps": self.transfer_fee_bps,
        }

    def snapshot(self) -> Dict[str, Any]:
        return {"state": self.to_dict(), "event_count": len(self.events)}

    def restore(self, snapshot: Dict[str, Any]) -> None:
        state = snapshot["state"]
        self.total_supply = state["total_supply"]
        self.balances = dict(state["balances"])
        self.allowances = {k: dict(v) for k, v in state["allowances"].items()}
        del self.events[snapshot["event_count"]:]
