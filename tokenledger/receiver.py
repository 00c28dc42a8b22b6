"""
receiver.py - Acceptance protocol for programmable recipients

A programmable recipient is an account with a receiver object deployed at
it (see ReceiverRegistry). Before tokens are credited to such an account the
ledger calls back into the receiver, which must answer with a fixed 4-byte
acceptance marker.

Anything other than the exact marker counts as a rejection:
- a different return value (including None)
- an exception raised by the callback
- a receiver without the callback method
- an account with no receiver deployed

This is the only place where control leaves the ledger. Callbacks may
re-enter the ledger before returning.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

from eth_utils import function_signature_to_4byte_selector

from .core import Account, Amount, TokenId, normalize_account


MINT_ACCEPTED = function_signature_to_4byte_selector(
    "onERC1238Mint(address,uint256,uint256,bytes)"
)
BATCH_MINT_ACCEPTED = function_signature_to_4byte_selector(
    "onERC1238BatchMint(address,uint256[],uint256[],bytes)"
)


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class Receiver(Protocol):
    """
    Callback surface a programmable recipient exposes.

    Implementations return MINT_ACCEPTED / BATCH_MINT_ACCEPTED to accept.
    """

    def on_erc1238_mint(
        self, operator: Account, token_id: TokenId, amount: Amount, data: bytes
    ) -> bytes:
        ...

    def on_erc1238_batch_mint(
        self,
        operator: Account,
        token_ids: Tuple[TokenId, ...],
        amounts: Tuple[Amount, ...],
        data: bytes,
    ) -> bytes:
        ...


class AcceptanceResult(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class AcceptanceOutcome:
    """
    Result of one acceptance request.

    Attributes:
        result: ACCEPTED or REJECTED
        reason: Human-readable rejection reason (empty when accepted)
        error: Exception raised by the callback, if that caused the rejection
    """
    result: AcceptanceResult
    reason: str = ""
    error: Optional[BaseException] = None

    @property
    def accepted(self) -> bool:
        return self.result is AcceptanceResult.ACCEPTED


# ============================================================================
# REGISTRY
# ============================================================================

class ReceiverRegistry:
    """
    Maps accounts to the receiver code deployed at them.

    An account with an entry here is programmable; every other account is
    treated as externally controlled. Several ledgers may share one registry.
    """

    def __init__(self):
        self._code: Dict[Account, object] = {}

    def deploy(self, account: Account, receiver: object) -> Account:
        """
        Deploy receiver code at an account.

        Raises:
            ValueError: If code is already deployed at the account
        """
        account = normalize_account(account)
        if account in self._code:
            raise ValueError(f"Code already deployed at {account}")
        self._code[account] = receiver
        return account

    def is_contract(self, account: Account) -> bool:
        return normalize_account(account) in self._code

    def get(self, account: Account) -> Optional[object]:
        return self._code.get(normalize_account(account))


# ============================================================================
# ACCEPTANCE
# ============================================================================

class ReceiverAcceptance:
    """Calls receiver hooks and interprets their answers."""

    def __init__(self, registry: ReceiverRegistry):
        self.registry = registry

    def request_acceptance(
        self,
        recipient: Account,
        caller: Account,
        token_id: TokenId,
        amount: Amount,
        data: bytes,
    ) -> AcceptanceOutcome:
        receiver = self.registry.get(recipient)
        hook = getattr(receiver, "on_erc1238_mint", None) if receiver is not None else None
        return self._invoke(recipient, hook, MINT_ACCEPTED, (caller, token_id, amount, data))

    def request_batch_acceptance(
        self,
        recipient: Account,
        caller: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        data: bytes,
    ) -> AcceptanceOutcome:
        receiver = self.registry.get(recipient)
        hook = getattr(receiver, "on_erc1238_batch_mint", None) if receiver is not None else None
        args = (caller, tuple(token_ids), tuple(amounts), data)
        return self._invoke(recipient, hook, BATCH_MINT_ACCEPTED, args)

    @staticmethod
    def _invoke(recipient: Account, hook, marker: bytes, args: tuple) -> AcceptanceOutcome:
        if hook is None or not callable(hook):
            return AcceptanceOutcome(
                AcceptanceResult.REJECTED,
                f"{recipient} does not implement the receiver callback",
            )
        try:
            answer = hook(*args)
        except Exception as e:
            # A failing callback is a rejection; the error travels with the outcome.
            return AcceptanceOutcome(
                AcceptanceResult.REJECTED,
                f"{recipient} callback raised {type(e).__name__}: {e}",
                error=e,
            )
        if not isinstance(answer, (bytes, bytearray)) or bytes(answer) != marker:
            return AcceptanceOutcome(
                AcceptanceResult.REJECTED,
                f"{recipient} returned {answer!r} instead of 0x{marker.hex()}",
            )
        return AcceptanceOutcome(AcceptanceResult.ACCEPTED)
