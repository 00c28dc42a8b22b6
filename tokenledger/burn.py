"""
burn.py - Destroying balances

BurnAccountant checks the subject account and hands the debit to
BalanceLedger, whose two-phase debit makes batch burns all-or-nothing.
InsufficientBalance from the ledger is propagated unchanged.
"""

from __future__ import annotations
from typing import Callable, Sequence

from .balances import BalanceLedger
from .core import (
    Account, Amount, TokenId,
    InvalidAccount,
    check_batch, check_uint256, is_zero_account, normalize_account,
)
from .events import BurnBatch, BurnSingle, Event


class BurnAccountant:
    """Debits balances on behalf of a caller and emits burn events."""

    def __init__(self, balances: BalanceLedger, emit: Callable[[Event], None]):
        self._balances = balances
        self._emit = emit

    def burn(
        self, caller: Account, account: Account, token_id: TokenId, amount: Amount
    ) -> BurnSingle:
        caller = normalize_account(caller)
        account = self._check_account(account)
        check_uint256(token_id, "token_id")
        check_uint256(amount, "amount")

        self._balances.debit(account, token_id, amount)
        event = BurnSingle(operator=caller, from_=account, id=token_id, amount=amount)
        self._emit(event)
        return event

    def burn_batch(
        self,
        caller: Account,
        account: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
    ) -> BurnBatch:
        caller = normalize_account(caller)
        account = self._check_account(account)
        ids, amts = check_batch(token_ids, amounts)

        self._balances.debit_batch(account, ids, amts)
        event = BurnBatch(operator=caller, from_=account, ids=ids, amounts=amts)
        self._emit(event)
        return event

    @staticmethod
    def _check_account(account: Account) -> Account:
        account = normalize_account(account)
        if is_zero_account(account):
            raise InvalidAccount("burn from the zero address")
        return account
