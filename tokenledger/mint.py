"""
mint.py - Authorization paths for creating balances

Two ways to mint, chosen by the caller:

    EOA path:       recipient signed the exact (ledger, to, ids, amounts)
                    approval -> verify signature -> credit -> emit
    contract path:  recipient's receiver callback -> marker? -> credit -> emit

On the contract path the credit happens strictly after the callback has
returned. A receiver that re-enters the ledger during the callback cannot
see or spend the balance it is being asked to accept.

MintAuthorizer raises on every failure and never applies a partial credit.
Rolling back effects of re-entrant calls made during a rejected callback is
the job of the TokenLedger request boundary around it.
"""

from __future__ import annotations
from typing import Callable, Sequence

from .balances import BalanceLedger
from .core import (
    Account, Amount, TokenId,
    InvalidMintSignature, InvalidRecipient, ReceiverRejected,
    check_batch, check_uint256, is_zero_account, normalize_account,
)
from .events import Event, MintBatch, MintSingle
from .receiver import AcceptanceOutcome, ReceiverAcceptance
from .signatures import SignatureLike, SignatureVerifier


class MintAuthorizer:
    """
    Runs one mint request through the EOA or the contract path.

    Args:
        balances: The ledger's BalanceLedger (only credit/credit_batch are used)
        verifier: SignatureVerifier bound to the ledger address
        acceptance: ReceiverAcceptance over the ledger's receiver registry
        emit: Called with each event after a successful credit
    """

    def __init__(
        self,
        balances: BalanceLedger,
        verifier: SignatureVerifier,
        acceptance: ReceiverAcceptance,
        emit: Callable[[Event], None],
    ):
        self._balances = balances
        self._verifier = verifier
        self._acceptance = acceptance
        self._emit = emit

    # ========================================================================
    # EOA PATH
    # ========================================================================

    def mint_to_eoa(
        self,
        caller: Account,
        to: Account,
        token_id: TokenId,
        amount: Amount,
        signature: SignatureLike,
        data: bytes = b"",
    ) -> MintSingle:
        caller = normalize_account(caller)
        to = self._check_recipient(to)
        check_uint256(token_id, "token_id")
        check_uint256(amount, "amount")

        digest = self._verifier.digest_single(to, token_id, amount)
        if not self._verifier.verify_mint_approval(to, digest, signature):
            raise InvalidMintSignature("Invalid signature for minting approval")

        self._balances.credit(to, token_id, amount)
        event = MintSingle(operator=caller, to=to, id=token_id, amount=amount)
        self._emit(event)
        return event

    def mint_batch_to_eoa(
        self,
        caller: Account,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        signature: SignatureLike,
        data: bytes = b"",
    ) -> MintBatch:
        caller = normalize_account(caller)
        to = self._check_recipient(to)
        ids, amts = check_batch(token_ids, amounts)

        digest = self._verifier.digest_batch(to, ids, amts)
        if not self._verifier.verify_mint_approval(to, digest, signature):
            raise InvalidMintSignature("Invalid signature for minting approval")

        self._balances.credit_batch(to, ids, amts)
        event = MintBatch(operator=caller, to=to, ids=ids, amounts=amts)
        self._emit(event)
        return event

    # ========================================================================
    # CONTRACT PATH
    # ========================================================================

    def mint_to_contract(
        self,
        caller: Account,
        to: Account,
        token_id: TokenId,
        amount: Amount,
        data: bytes = b"",
    ) -> MintSingle:
        caller = normalize_account(caller)
        to = self._check_recipient(to)
        check_uint256(token_id, "token_id")
        check_uint256(amount, "amount")

        outcome = self._acceptance.request_acceptance(to, caller, token_id, amount, data)
        self._require_accepted(outcome)

        # Effect only after the external call has returned.
        self._balances.credit(to, token_id, amount)
        event = MintSingle(operator=caller, to=to, id=token_id, amount=amount)
        self._emit(event)
        return event

    def mint_batch_to_contract(
        self,
        caller: Account,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        data: bytes = b"",
    ) -> MintBatch:
        caller = normalize_account(caller)
        to = self._check_recipient(to)
        ids, amts = check_batch(token_ids, amounts)

        outcome = self._acceptance.request_batch_acceptance(to, caller, ids, amts, data)
        self._require_accepted(outcome)

        self._balances.credit_batch(to, ids, amts)
        event = MintBatch(operator=caller, to=to, ids=ids, amounts=amts)
        self._emit(event)
        return event

    # ========================================================================
    # HELPERS
    # ========================================================================

    @staticmethod
    def _check_recipient(to: Account) -> Account:
        to = normalize_account(to)
        if is_zero_account(to):
            raise InvalidRecipient("mint to the zero address")
        return to

    @staticmethod
    def _require_accepted(outcome: AcceptanceOutcome) -> None:
        if outcome.accepted:
            return
        error = ReceiverRejected("ERC1238Receiver rejected tokens", reason=outcome.reason)
        if outcome.error is not None:
            raise error from outcome.error
        raise error
