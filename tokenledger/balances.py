"""
balances.py - The Account x TokenType -> Balance map

BalanceLedger is the only object that holds balances. Every mutation goes
through credit()/debit() or their batch forms, which validate first and
only then apply, so a rejected call never leaves a partial change behind.

Alongside the balances it keeps running totals of what was minted and
burned for each pair. verify_conservation() checks

    minted(a, t) - burned(a, t) == balance(a, t)

for every pair ever referenced.

Between begin() and commit() every write is journaled with the value it
replaced, and rollback(mark) undoes the writes made after mark. Nested
requests take nested marks on the same journal.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core import (
    Account, Amount, BalanceKey, TokenId,
    UINT256_MAX,
    BalanceOverflow, InsufficientBalance, LengthMismatch,
    check_batch, check_uint256, normalize_account,
)


# Frozen copy of the three maps, see snapshot().
BalanceSnapshot = Tuple[Dict[BalanceKey, int], Dict[BalanceKey, int], Dict[BalanceKey, int]]


class BalanceLedger:
    """
    Unsigned integer balances per (account, token id).

    Thread Safety:
        Not thread-safe. Callers serialise access.
    """

    def __init__(self):
        self._balances: Dict[BalanceKey, int] = defaultdict(int)
        self._minted: Dict[BalanceKey, int] = defaultdict(int)
        self._burned: Dict[BalanceKey, int] = defaultdict(int)
        # Undo entries (table, key, previous value) while a request is open
        self._journal: Optional[List[Tuple[str, BalanceKey, Optional[int]]]] = None

    # ========================================================================
    # READS
    # ========================================================================

    def balance_of(self, account: Account, token_id: TokenId) -> Amount:
        """Balance of a pair. Unseen pairs read as 0 and are not materialised."""
        key = (normalize_account(account), check_uint256(token_id, "token_id"))
        return self._balances.get(key, 0)

    def balance_of_batch(
        self, accounts: Sequence[Account], token_ids: Sequence[TokenId]
    ) -> List[Amount]:
        """
        Balances for parallel sequences of accounts and ids.

        Raises:
            LengthMismatch: If the sequences differ in length
        """
        if len(accounts) != len(token_ids):
            raise LengthMismatch(
                f"accounts and ids length mismatch: {len(accounts)} != {len(token_ids)}"
            )
        return [self.balance_of(a, t) for a, t in zip(accounts, token_ids)]

    def total_supply(self, token_id: TokenId) -> Amount:
        """Sum of all balances of a token id. Accounts are summed in sorted order."""
        check_uint256(token_id, "token_id")
        return sum(
            bal for (account, tid), bal in sorted(self._balances.items()) if tid == token_id
        )

    def total_minted(self, account: Account, token_id: TokenId) -> Amount:
        return self._minted.get((normalize_account(account), token_id), 0)

    def total_burned(self, account: Account, token_id: TokenId) -> Amount:
        return self._burned.get((normalize_account(account), token_id), 0)

    def holdings(self, account: Account) -> Dict[TokenId, Amount]:
        """All non-zero balances of an account, keyed by token id."""
        account = normalize_account(account)
        return {tid: bal for (acc, tid), bal in self._balances.items() if acc == account and bal}

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Check minted - burned == balance for every referenced pair.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the invariant holds everywhere
            - 'discrepancies': List[Dict] - one entry per violating pair with
              account, token_id, minted, burned, balance
        """
        discrepancies = []
        keys = set(self._balances) | set(self._minted) | set(self._burned)
        for key in sorted(keys):
            minted = self._minted.get(key, 0)
            burned = self._burned.get(key, 0)
            balance = self._balances.get(key, 0)
            if minted - burned != balance or balance < 0 or balance > UINT256_MAX:
                discrepancies.append({
                    'account': key[0],
                    'token_id': key[1],
                    'minted': minted,
                    'burned': burned,
                    'balance': balance,
                })
        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def credit(self, account: Account, token_id: TokenId, amount: Amount) -> None:
        """
        Increase a balance.

        Raises:
            BalanceOverflow: If the new balance would exceed UINT256_MAX
        """
        self.credit_batch(account, (token_id,), (amount,))

    def debit(self, account: Account, token_id: TokenId, amount: Amount) -> None:
        """
        Decrease a balance.

        Raises:
            InsufficientBalance: If the balance is smaller than amount
        """
        self.debit_batch(account, (token_id,), (amount,))

    def credit_batch(
        self, account: Account, token_ids: Sequence[TokenId], amounts: Sequence[Amount]
    ) -> None:
        """
        Credit every (id, amount) pair or none of them.

        Repeated ids are summed before the overflow check.

        Raises:
            LengthMismatch: If the sequences differ in length
            BalanceOverflow: If any resulting balance would exceed UINT256_MAX
        """
        account = normalize_account(account)
        net = self._net(token_ids, amounts)

        # Phase 1: validate every pair
        for token_id, delta in net.items():
            proposed = self._balances.get((account, token_id), 0) + delta
            if proposed > UINT256_MAX:
                raise BalanceOverflow(
                    f"{account} id {token_id}: credit of {delta} overflows uint256"
                )

        # Phase 2: apply
        for token_id, delta in net.items():
            key = (account, token_id)
            self._add("_balances", key, delta)
            self._add("_minted", key, delta)

    def debit_batch(
        self, account: Account, token_ids: Sequence[TokenId], amounts: Sequence[Amount]
    ) -> None:
        """
        Debit every (id, amount) pair or none of them.

        Repeated ids are summed before the sufficiency check.

        Raises:
            LengthMismatch: If the sequences differ in length
            InsufficientBalance: If any pair's balance is too small
        """
        account = normalize_account(account)
        net = self._net(token_ids, amounts)

        # Phase 1: validate every pair
        for token_id, delta in net.items():
            current = self._balances.get((account, token_id), 0)
            if current < delta:
                raise InsufficientBalance(
                    f"burn amount exceeds balance: {account} id {token_id}: "
                    f"{current} < {delta}"
                )

        # Phase 2: apply
        for token_id, delta in net.items():
            key = (account, token_id)
            self._add("_balances", key, -delta)
            self._add("_burned", key, delta)

    @staticmethod
    def _net(token_ids: Sequence[TokenId], amounts: Sequence[Amount]) -> Dict[TokenId, int]:
        ids, amts = check_batch(token_ids, amounts)
        net: Dict[TokenId, int] = {}
        for token_id, amount in zip(ids, amts):
            net[token_id] = net.get(token_id, 0) + amount
        return net

    # ========================================================================
    # ROLLBACK
    # ========================================================================

    def begin(self) -> int:
        """
        Open (or nest into) the undo journal.

        Returns a mark for rollback(). Only keys written after this call are
        recorded, so a request costs O(keys it touches).
        """
        if self._journal is None:
            self._journal = []
        return len(self._journal)

    def rollback(self, mark: int) -> None:
        """Undo every write recorded since begin() returned mark, newest first."""
        journal = self._journal or []
        while len(journal) > mark:
            table, key, previous = journal.pop()
            values = getattr(self, table)
            if previous is None:
                values.pop(key, None)
            else:
                values[key] = previous

    def commit(self) -> None:
        """Close the journal once the outermost request has finished."""
        self._journal = None

    def _add(self, table: str, key: BalanceKey, delta: int) -> None:
        values = getattr(self, table)
        if self._journal is not None:
            self._journal.append((table, key, values.get(key)))
        values[key] = values.get(key, 0) + delta

    def snapshot(self) -> BalanceSnapshot:
        """Full copy of the three maps, used by clone()."""
        return (dict(self._balances), dict(self._minted), dict(self._burned))

    def restore(self, snapshot: BalanceSnapshot) -> None:
        balances, minted, burned = snapshot
        self._balances = defaultdict(int, balances)
        self._minted = defaultdict(int, minted)
        self._burned = defaultdict(int, burned)
        self._journal = None

    def clone(self) -> BalanceLedger:
        cloned = BalanceLedger()
        cloned.restore(self.snapshot())
        return cloned
