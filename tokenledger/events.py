"""
events.py - Observable side effects of mints and burns

Events are immutable records appended to TokenLedger.event_log when a
request succeeds. A failed request appends nothing.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union

from .core import Account, Amount, TokenId


@dataclass(frozen=True, slots=True)
class MintSingle:
    operator: Account
    to: Account
    id: TokenId
    amount: Amount

    def __repr__(self) -> str:
        return f"MintSingle({self.amount} of {self.id}: {self.operator} → {self.to})"


@dataclass(frozen=True, slots=True)
class MintBatch:
    operator: Account
    to: Account
    ids: Tuple[TokenId, ...]
    amounts: Tuple[Amount, ...]

    def __repr__(self) -> str:
        return f"MintBatch({len(self.ids)} ids: {self.operator} → {self.to})"


@dataclass(frozen=True, slots=True)
class BurnSingle:
    operator: Account
    from_: Account
    id: TokenId
    amount: Amount

    def __repr__(self) -> str:
        return f"BurnSingle({self.amount} of {self.id}: {self.from_} by {self.operator})"


@dataclass(frozen=True, slots=True)
class BurnBatch:
    operator: Account
    from_: Account
    ids: Tuple[TokenId, ...]
    amounts: Tuple[Amount, ...]

    def __repr__(self) -> str:
        return f"BurnBatch({len(self.ids)} ids: {self.from_} by {self.operator})"


Event = Union[MintSingle, MintBatch, BurnSingle, BurnBatch]
