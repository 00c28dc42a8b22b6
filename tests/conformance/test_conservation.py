"""
Conservation Conformance Tests

INVARIANT: Balances are exactly what was minted minus what was burned.

    ∀ account a, token id t:
        balance(a, t) == Σ minted(a, t) - Σ burned(a, t)
        0 <= balance(a, t) <= 2**256 - 1

No operation creates or destroys units outside mint and burn.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from tokenledger import TokenLedger, InsufficientBalance

from tests.signing import RECIPIENT, BATCH_RECIPIENT, OTHER, ADMIN, mint_signed


HOLDERS = [RECIPIENT, BATCH_RECIPIENT, OTHER]

operations = st.lists(
    st.tuples(
        st.sampled_from(["mint", "burn"]),
        st.integers(min_value=0, max_value=len(HOLDERS) - 1),
        st.integers(min_value=0, max_value=3),
        st.integers(min_value=0, max_value=1000),
    ),
    min_size=1,
    max_size=12,
)


class TestConservationProperties:
    """Property-based conservation tests."""

    @given(operations)
    @settings(max_examples=25, deadline=None)
    def test_balance_equals_minted_minus_burned(self, ops):
        """
        PROPERTY: After any sequence of mints and burns, every balance equals
        the net of the accepted operations and never goes negative.
        """
        ledger = TokenLedger("conservation", verbose=False)
        expected = {}

        for kind, holder_index, token_id, amount in ops:
            holder = HOLDERS[holder_index]
            key = (holder.address, token_id)
            if kind == "mint":
                mint_signed(ledger, holder, token_id, amount)
                expected[key] = expected.get(key, 0) + amount
            else:
                try:
                    ledger.burn(ADMIN.address, holder.address, token_id, amount)
                    expected[key] = expected.get(key, 0) - amount
                except InsufficientBalance:
                    assert expected.get(key, 0) < amount

        for (account, token_id), balance in expected.items():
            assert balance >= 0
            assert ledger.balance_of(account, token_id) == balance

        result = ledger.verify_conservation()
        assert result['valid'], f"Conservation violated: {result['discrepancies']}"

    @given(
        st.lists(st.integers(min_value=0, max_value=5), min_size=1, max_size=6),
        st.data(),
    )
    @settings(max_examples=25, deadline=None)
    def test_total_supply_matches_holders(self, token_ids, data):
        """
        PROPERTY: total_supply(t) is the sum of balance(a, t) over all holders.
        """
        ledger = TokenLedger("supply", verbose=False)
        for token_id in token_ids:
            holder = data.draw(st.sampled_from(HOLDERS))
            amount = data.draw(st.integers(min_value=1, max_value=500))
            mint_signed(ledger, holder, token_id, amount)

        for token_id in set(token_ids):
            assert ledger.total_supply(token_id) == sum(
                ledger.balance_of(h.address, token_id) for h in HOLDERS
            )


class TestConservationExamples:
    """Explicit conservation examples."""

    def test_failed_burn_keeps_totals(self):
        ledger = TokenLedger("conservation", verbose=False)
        mint_signed(ledger, RECIPIENT, 1, 10)
        try:
            ledger.burn(ADMIN.address, RECIPIENT.address, 1, 11)
        except InsufficientBalance:
            pass
        assert ledger.balance_of(RECIPIENT.address, 1) == 10
        assert ledger.verify_conservation()['valid']

    def test_burn_to_zero(self):
        ledger = TokenLedger("conservation", verbose=False)
        mint_signed(ledger, RECIPIENT, 1, 10)
        ledger.burn(ADMIN.address, RECIPIENT.address, 1, 10)
        assert ledger.balance_of(RECIPIENT.address, 1) == 0
        assert ledger.holdings(RECIPIENT.address) == {}
        assert ledger.verify_conservation()['valid']
