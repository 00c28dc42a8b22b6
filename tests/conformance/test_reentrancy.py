"""
Reentrancy Conformance Tests

INVARIANT: A receiver callback never sees or keeps a credit that was not
accepted.

    During the callback of mint M to a:
        balance(a, t) excludes M's amount
        requests issued from the callback see the same state
    M rejected ⟹ every request issued from the callback is undone as well,
                 including base URI changes
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tokenledger import (
    TokenLedger, InsufficientBalance, ReceiverRejected, MintSingle,
)

from tests.receiver_mock import ReceiverMock, ReentrantReceiver
from tests.signing import ADMIN, CONTRACT_ADDRESS, DATA


NESTED_ADDRESS = "0x" + "d0" * 20


def deploy_reentrant(ledger, action, **kwargs):
    receiver = ReentrantReceiver(ledger, action, **kwargs)
    receiver.address = ledger.registry.deploy(CONTRACT_ADDRESS, receiver)
    return receiver


def burn_pending(ledger, receiver):
    return ledger.burn(ADMIN.address, receiver.address, 1, 1)


def mint_elsewhere(ledger, receiver):
    return ledger.mint_to_contract(ADMIN.address, NESTED_ADDRESS, 7, 3, DATA)


class TestReentrancyProperties:
    """Property-based reentrancy tests."""

    @given(
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=1, max_value=1000),
    )
    @settings(max_examples=25, deadline=None)
    def test_callback_observes_pre_mint_balance(self, existing, amount):
        """
        PROPERTY: The balance seen from inside the callback is the balance
        before the mint, regardless of prior holdings.
        """
        ledger = TokenLedger("reentrancy", verbose=False)
        receiver = deploy_reentrant(ledger, lambda lg, r: None)
        if existing:
            ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, existing, DATA)
            receiver.observed_balances.clear()

        ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, amount, DATA)
        assert receiver.observed_balances == [existing]
        assert ledger.balance_of(CONTRACT_ADDRESS, 1) == existing + amount


class TestReentrancyExamples:
    """Explicit reentrancy examples."""

    def test_cannot_burn_pending_credit(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        receiver = deploy_reentrant(ledger, burn_pending)

        ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert len(receiver.errors) == 1
        assert isinstance(receiver.errors[0], InsufficientBalance)
        assert ledger.balance_of(CONTRACT_ADDRESS, 1) == 10
        assert ledger.verify_conservation()['valid']

    def test_batch_callback_observes_pre_mint_balances(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        receiver = deploy_reentrant(ledger, lambda lg, r: None)
        ledger.mint_batch_to_contract(ADMIN.address, CONTRACT_ADDRESS, [1, 2], [10, 20], DATA)
        assert receiver.observed_balances == [0, 0]

    def test_callback_runs_inside_request(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        receiver = deploy_reentrant(ledger, lambda lg, r: lg.in_request)
        assert not ledger.in_request
        ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)
        assert receiver.results == [True]
        assert not ledger.in_request

    def test_nested_mint_persists_when_outer_accepted(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        ledger.registry.deploy(NESTED_ADDRESS, ReceiverMock())
        receiver = deploy_reentrant(ledger, mint_elsewhere)

        ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert receiver.errors == []
        assert ledger.balance_of(NESTED_ADDRESS, 7) == 3
        assert ledger.balance_of(CONTRACT_ADDRESS, 1) == 10
        # Inner event is emitted first: the outer credit happens after the callback.
        assert [type(e) for e in ledger.event_log] == [MintSingle, MintSingle]
        assert ledger.event_log[0].id == 7
        assert ledger.event_log[1].id == 1

    def test_nested_mint_undone_when_outer_rejected(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        ledger.registry.deploy(NESTED_ADDRESS, ReceiverMock())
        receiver = deploy_reentrant(ledger, mint_elsewhere, accept=False)

        with pytest.raises(ReceiverRejected):
            ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert len(receiver.results) == 1
        assert ledger.balance_of(NESTED_ADDRESS, 7) == 0
        assert ledger.balance_of(CONTRACT_ADDRESS, 1) == 0
        assert ledger.event_log == []
        assert ledger.verify_conservation()['valid']

    def test_propagated_inner_failure_rejects_outer(self):
        ledger = TokenLedger("reentrancy", verbose=False)
        receiver = deploy_reentrant(ledger, burn_pending, propagate=True)

        with pytest.raises(ReceiverRejected) as excinfo:
            ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert isinstance(excinfo.value.__cause__, InsufficientBalance)
        assert len(receiver.errors) == 1
        assert ledger.balance_of(CONTRACT_ADDRESS, 1) == 0

    def test_base_uri_change_undone_when_outer_rejected(self):
        ledger = TokenLedger("reentrancy", base_uri="https://a/{id}.json", verbose=False)
        deploy_reentrant(
            ledger, lambda lg, r: lg.set_base_uri("https://b/{id}.json"), accept=False
        )

        with pytest.raises(ReceiverRejected):
            ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert ledger.base_uri == "https://a/{id}.json"

    def test_base_uri_change_kept_when_outer_accepted(self):
        ledger = TokenLedger("reentrancy", base_uri="https://a/{id}.json", verbose=False)
        deploy_reentrant(ledger, lambda lg, r: lg.set_base_uri("https://b/{id}.json"))

        ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert ledger.base_uri == "https://b/{id}.json"

    def test_base_exception_from_callback_rolls_back(self):
        """Interrupts escape the callback but not before nested credits are undone."""

        class Interrupted(BaseException):
            pass

        def mint_then_interrupt(ledger, receiver):
            mint_elsewhere(ledger, receiver)
            raise Interrupted()

        ledger = TokenLedger("reentrancy", verbose=False)
        ledger.registry.deploy(NESTED_ADDRESS, ReceiverMock())
        deploy_reentrant(ledger, mint_then_interrupt)

        with pytest.raises(Interrupted):
            ledger.mint_to_contract(ADMIN.address, CONTRACT_ADDRESS, 1, 10, DATA)

        assert ledger.balance_of(NESTED_ADDRESS, 7) == 0
        assert ledger.event_log == []
        assert not ledger.in_request
        assert ledger.verify_conservation()['valid']
