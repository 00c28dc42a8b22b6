"""
ledger.py - Multi-token ledger with authorized minting

The TokenLedger class wires the components together and is the entry point
for every mint, burn and balance query.

Key responsibilities:
    - Runs every request inside a rollback boundary (all-or-nothing)
    - Owns the event log and the metadata locator
    - Dispatches mints to the EOA or contract path based on the receiver registry
"""

from __future__ import annotations
from contextlib import contextmanager
from itertools import count
from typing import Any, Dict, Iterator, List, Optional, Sequence

from eth_utils import keccak, to_checksum_address

from .balances import BalanceLedger
from .burn import BurnAccountant
from .core import (
    Account, Amount, TokenId,
    normalize_account,
)
from .events import BurnBatch, BurnSingle, Event, MintBatch, MintSingle
from .metadata import MetadataLocator
from .mint import MintAuthorizer
from .receiver import ReceiverAcceptance, ReceiverRegistry
from .signatures import SignatureLike, SignatureVerifier


# Deployment counter; every ledger created without an address takes the next value.
_DEPLOY_NONCES = count(1)


def ledger_address_for(name: str, nonce: int = 0) -> Account:
    """
    Ledger identity derived from a name and a deployment nonce.

    Pure: the same (name, nonce) always gives the same address. TokenLedger
    draws a fresh nonce per instance, so same-named ledgers still differ.
    """
    return to_checksum_address(keccak(text=f"tokenledger:{name}:{nonce}")[-20:])


class TokenLedger:
    """
    Token ledger with signature- and callback-authorized minting.

    Design Principles:
        - Always validates: no request mutates state before every check
          for it has passed.
        - All-or-nothing: if a request raises, balances, mint/burn totals,
          the event log and the base URI are restored to what they were on
          entry, including changes made by re-entrant requests issued from a
          receiver callback.
        - Distinct identities: each ledger binds its own address into mint
          digests, so an approval signed for one ledger fails on any other.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own TokenLedger instance.

    Example:
        ledger = TokenLedger("badges", base_uri="https://token-cdn-domain/{id}.json")
        approval = MintApproval.single(alice.address, 7, 1)
        sig = sign_mint_approval(ledger.verifier, alice.key, approval)
        ledger.mint_to_eoa(admin, alice.address, 7, 1, sig)
    """

    def __init__(
        self,
        name: str,
        base_uri: str = "",
        address: Optional[Account] = None,
        registry: Optional[ReceiverRegistry] = None,
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            base_uri: Initial metadata URI template (default: empty)
            address: Ledger identity bound into mint digests
                     (default: derived from name and a fresh deployment nonce)
            registry: Receiver registry shared with other ledgers
                      (default: a fresh, empty registry)
            verbose: Print applied events and rejected requests (default: True)
        """
        self.name = name
        if address:
            self._address = normalize_account(address)
        else:
            self._address = ledger_address_for(name, next(_DEPLOY_NONCES))
        self.verbose = verbose
        self.registry = registry if registry is not None else ReceiverRegistry()
        self.event_log: List[Event] = []
        self.metadata = MetadataLocator(base_uri)

        self._balances = BalanceLedger()
        self.verifier = SignatureVerifier(self._address)
        self._acceptance = ReceiverAcceptance(self.registry)
        self._minter = MintAuthorizer(self._balances, self.verifier, self._acceptance, self._emit)
        self._burner = BurnAccountant(self._balances, self._emit)
        # Nesting depth of active requests (> 1 while a receiver re-enters)
        self._depth = 0

    # ========================================================================
    # QUERIES (read-only methods)
    # ========================================================================

    @property
    def address(self) -> Account:
        return self._address

    def balance_of(self, account: Account, token_id: TokenId) -> Amount:
        """
        Get the balance of a token id held by an account.

        Returns 0 for pairs never credited.
        """
        return self._balances.balance_of(account, token_id)

    def balance_of_batch(
        self, accounts: Sequence[Account], token_ids: Sequence[TokenId]
    ) -> List[Amount]:
        """
        Balances for parallel sequences of accounts and ids.

        Raises:
            LengthMismatch: If the sequences differ in length
        """
        return self._balances.balance_of_batch(accounts, token_ids)

    def total_supply(self, token_id: TokenId) -> Amount:
        return self._balances.total_supply(token_id)

    def holdings(self, account: Account) -> Dict[TokenId, Amount]:
        return self._balances.holdings(account)

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify minted - burned == balance for every referenced pair.

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], f"Conservation violated: {result['discrepancies']}"
        """
        return self._balances.verify_conservation()

    def is_contract(self, account: Account) -> bool:
        return self.registry.is_contract(account)

    @property
    def in_request(self) -> bool:
        """True while a request is executing (e.g. during a receiver callback)."""
        return self._depth > 0

    # ========================================================================
    # METADATA
    # ========================================================================

    @property
    def base_uri(self) -> str:
        return self.metadata.base_uri

    def set_base_uri(self, new_uri: str) -> None:
        """
        Replace the metadata URI template.

        Runs as a request, so a change made from a receiver callback is undone
        when the surrounding mint is rejected.
        """
        with self._request("set_base_uri"):
            self.metadata.set_base_uri(new_uri)

    def uri(self, token_id: TokenId) -> str:
        return self.metadata.uri(token_id)

    # ========================================================================
    # MINTING (Mutating)
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
        """
        Mint to an externally-controlled account holding a signed approval.

        Raises:
            InvalidRecipient: If to is the zero address
            InvalidMintSignature: If to did not sign (ledger, to, token_id, amount)
            BalanceOverflow: If the credit would overflow
        """
        with self._request("mint_to_eoa"):
            return self._minter.mint_to_eoa(caller, to, token_id, amount, signature, data)

    def mint_to_contract(
        self,
        caller: Account,
        to: Account,
        token_id: TokenId,
        amount: Amount,
        data: bytes = b"",
    ) -> MintSingle:
        """
        Mint to a programmable account that accepts via its receiver callback.

        Raises:
            InvalidRecipient: If to is the zero address
            ReceiverRejected: If the callback is missing, raises, or returns
                              anything but the acceptance marker
            BalanceOverflow: If the credit would overflow
        """
        with self._request("mint_to_contract"):
            return self._minter.mint_to_contract(caller, to, token_id, amount, data)

    def mint_batch_to_eoa(
        self,
        caller: Account,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        signature: SignatureLike,
        data: bytes = b"",
    ) -> MintBatch:
        """
        Batch form of mint_to_eoa, verified against the batch digest.

        Raises:
            InvalidRecipient, LengthMismatch, InvalidMintSignature, BalanceOverflow
        """
        with self._request("mint_batch_to_eoa"):
            return self._minter.mint_batch_to_eoa(caller, to, token_ids, amounts, signature, data)

    def mint_batch_to_contract(
        self,
        caller: Account,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        data: bytes = b"",
    ) -> MintBatch:
        """
        Batch form of mint_to_contract, using the batch receiver callback.

        Raises:
            InvalidRecipient, LengthMismatch, ReceiverRejected, BalanceOverflow
        """
        with self._request("mint_batch_to_contract"):
            return self._minter.mint_batch_to_contract(caller, to, token_ids, amounts, data)

    def mint(
        self,
        caller: Account,
        to: Account,
        token_id: TokenId,
        amount: Amount,
        data: bytes = b"",
        signature: Optional[SignatureLike] = None,
    ) -> MintSingle:
        """
        Mint through whichever path fits the recipient.

        Accounts with a deployed receiver take the contract path. All others
        take the EOA path; without a signature they fail with InvalidMintSignature.
        """
        if self.registry.is_contract(to):
            return self.mint_to_contract(caller, to, token_id, amount, data)
        if signature is None:
            signature = b""
        return self.mint_to_eoa(caller, to, token_id, amount, signature, data)

    def mint_batch(
        self,
        caller: Account,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
        data: bytes = b"",
        signature: Optional[SignatureLike] = None,
    ) -> MintBatch:
        """Batch form of mint()."""
        if self.registry.is_contract(to):
            return self.mint_batch_to_contract(caller, to, token_ids, amounts, data)
        if signature is None:
            signature = b""
        return self.mint_batch_to_eoa(caller, to, token_ids, amounts, signature, data)

    # ========================================================================
    # BURNING (Mutating)
    # ========================================================================

    def burn(
        self, caller: Account, account: Account, token_id: TokenId, amount: Amount
    ) -> BurnSingle:
        """
        Burn tokens held by an account.

        Raises:
            InvalidAccount: If account is the zero address
            InsufficientBalance: If the balance is smaller than amount
        """
        with self._request("burn"):
            return self._burner.burn(caller, account, token_id, amount)

    def burn_batch(
        self,
        caller: Account,
        account: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
    ) -> BurnBatch:
        """
        Burn several token ids at once, all-or-nothing.

        Raises:
            InvalidAccount, LengthMismatch, InsufficientBalance
        """
        with self._request("burn_batch"):
            return self._burner.burn_batch(caller, account, token_ids, amounts)

    # ========================================================================
    # REQUEST BOUNDARY
    # ========================================================================

    @contextmanager
    def _request(self, operation: str) -> Iterator[None]:
        """
        Journal on entry, undo on any exception, then re-raise.

        Nested requests (from receiver callbacks) take nested journal marks,
        so an outer failure also discards everything the inner ones applied.
        BaseExceptions raised by a callback (SystemExit, KeyboardInterrupt)
        are undone the same way before they propagate.
        """
        mark = self._balances.begin()
        log_length = len(self.event_log)
        base_uri = self.metadata.base_uri
        self._depth += 1
        try:
            yield
        except BaseException as e:
            self._balances.rollback(mark)
            del self.event_log[log_length:]
            self.metadata.set_base_uri(base_uri)
            if self.verbose:
                print(f"✗ REJECTED {operation}: {type(e).__name__}: {e}")
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._balances.commit()

    def _emit(self, event: Event) -> None:
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ {event!r}")

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> TokenLedger:
        """
        Create an independent copy of this ledger.

        Balances, totals, the event log and the base URI are copied. The
        receiver registry is shared: deployed code is not per-ledger state.
        """
        cloned = TokenLedger(
            self.name,
            base_uri=self.base_uri,
            address=self._address,
            registry=self.registry,
            verbose=self.verbose,
        )
        cloned._balances.restore(self._balances.snapshot())
        cloned.event_log = list(self.event_log)
        return cloned
