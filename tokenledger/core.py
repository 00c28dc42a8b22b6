"""
Core types and pure functions for the token ledger.

This module provides the foundational data structures:
1. Immutable data structures: Signature, MintApproval
2. Exceptions: LedgerError and the mint/burn failure taxonomy
3. Type aliases: Account, TokenId, Amount, BalanceKey
4. Validation: pure boundary checks for accounts, ids and amounts

All functions in this module are pure. No function can mutate ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

from eth_utils import is_address, to_checksum_address


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved account. Never a valid mint recipient or burn subject.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Balances, token ids and amounts are unsigned 256-bit integers.
UINT256_MAX = 2 ** 256 - 1

# Length of a packed r || s || v signature.
SIGNATURE_LENGTH = 65


# ============================================================================
# TYPE ALIASES
# ============================================================================

# EIP-55 checksummed 20-byte address.
Account = str

# Unsigned 256-bit token type identifier.
TokenId = int

# Unsigned 256-bit quantity.
Amount = int

# Key of a single ledger entry.
BalanceKey = Tuple[Account, TokenId]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InvalidRecipient(LedgerError):
    """Raised when tokens would be minted to the zero address."""
    pass


class InvalidAccount(LedgerError):
    """Raised when tokens would be burned from the zero address."""
    pass


class InvalidMintSignature(LedgerError):
    """Raised when a mint approval was not signed by the recipient."""
    pass


class ReceiverRejected(LedgerError):
    """Raised when a programmable recipient does not accept minted tokens."""

    def __init__(self, message: str, reason: str = ""):
        super().__init__(message)
        self.reason = reason


class InsufficientBalance(LedgerError):
    """Raised when a burn amount exceeds the holder's balance."""
    pass


class BalanceOverflow(LedgerError):
    """Raised when a credit would push a balance past UINT256_MAX."""
    pass


class LengthMismatch(LedgerError):
    """Raised when batch id and amount sequences differ in length."""
    pass


# ============================================================================
# VALIDATION
# ============================================================================

def normalize_account(account: Any) -> Account:
    """
    Return the checksummed form of an address.

    Accepts hex strings in any case and raw 20-byte values.

    Raises:
        ValueError: If the value is not a 20-byte address
    """
    if isinstance(account, (bytes, bytearray)):
        if len(account) != 20:
            raise ValueError(f"Account must be 20 bytes, got {len(account)}")
        return to_checksum_address(bytes(account))
    if not isinstance(account, str) or not is_address(account):
        raise ValueError(f"Invalid account address: {account!r}")
    return to_checksum_address(account)


def is_zero_account(account: Account) -> bool:
    return int(account, 16) == 0


def check_uint256(value: Any, name: str) -> int:
    """
    Validate that a value is an unsigned 256-bit integer.

    bool is rejected even though it subclasses int.

    Raises:
        ValueError: If the value is not an int in [0, UINT256_MAX]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{name} out of uint256 range: {value}")
    return value


def check_batch(
    token_ids: Sequence[int],
    amounts: Sequence[int],
) -> Tuple[Tuple[TokenId, ...], Tuple[Amount, ...]]:
    """
    Validate a batch of (id, amount) pairs and freeze it into tuples.

    Raises:
        LengthMismatch: If the sequences differ in length
        ValueError: If any id or amount is not a uint256
    """
    ids = tuple(token_ids)
    amts = tuple(amounts)
    if len(ids) != len(amts):
        raise LengthMismatch(
            f"ids and amounts length mismatch: {len(ids)} != {len(amts)}"
        )
    for token_id in ids:
        check_uint256(token_id, "token_id")
    for amount in amts:
        check_uint256(amount, "amount")
    return ids, amts


# ============================================================================
# SIGNATURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Signature:
    """
    A recoverable secp256k1 signature.

    Attributes:
        v: Recovery id (27/28, or 0/1)
        r: First signature component
        s: Second signature component

    Fields are not range-checked here. Recovery rejects out-of-range values
    by yielding the zero address.
    """
    v: int
    r: int
    s: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> Signature:
        """
        Split a packed 65-byte r || s || v signature.

        Raises:
            ValueError: If raw is not exactly 65 bytes
        """
        if len(raw) != SIGNATURE_LENGTH:
            raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
        r = int.from_bytes(raw[0:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        return cls(v=raw[64], r=r, s=s)

    @classmethod
    def coerce(cls, value: Union[Signature, bytes, Tuple[int, int, int]]) -> Signature:
        """Accept a Signature, packed bytes, or a (v, r, s) tuple."""
        if isinstance(value, Signature):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls.from_bytes(bytes(value))
        v, r, s = value
        return cls(v=v, r=r, s=s)

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    @property
    def vrs(self) -> Tuple[int, int, int]:
        return (self.v, self.r, self.s)


@dataclass(frozen=True, slots=True)
class MintApproval:
    """
    The parameters a recipient signs to consent to a mint.

    Transient: only the resulting balance credit is ever stored.

    Attributes:
        to: Recipient account (the expected signer)
        token_ids: Token types, one per amount
        amounts: Quantities, one per token type
        batch: True for batch approvals (signed with the batch digest even
               when the batch holds a single pair)
    """
    to: Account
    token_ids: Tuple[TokenId, ...]
    amounts: Tuple[Amount, ...]
    batch: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'to', normalize_account(self.to))
        ids, amounts = check_batch(self.token_ids, self.amounts)
        object.__setattr__(self, 'token_ids', ids)
        object.__setattr__(self, 'amounts', amounts)
        if not self.batch and len(ids) != 1:
            raise ValueError("Single mint approval must hold exactly one pair")

    @classmethod
    def single(cls, to: Account, token_id: TokenId, amount: Amount) -> MintApproval:
        return cls(to=to, token_ids=(token_id,), amounts=(amount,))

    @classmethod
    def for_batch(
        cls, to: Account, token_ids: Sequence[TokenId], amounts: Sequence[Amount]
    ) -> MintApproval:
        return cls(to=to, token_ids=tuple(token_ids), amounts=tuple(amounts), batch=True)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{i}:{a}" for i, a in zip(self.token_ids, self.amounts))
        kind = "batch" if self.batch else "single"
        return f"MintApproval({kind} → {self.to} [{pairs}])"
