"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the token ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - minted - burned == balance, balances never negative
2. atomicity.py - All-or-nothing requests, batch and single
3. authorization.py - Only recipient consent creates balances
4. determinism.py - Reproducible digests and ledger identities
5. reentrancy.py - Receiver callbacks cannot observe or keep phantom credits

These tests use hypothesis for property-based testing.
"""
