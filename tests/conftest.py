"""
conftest.py - Shared pytest fixtures for tokenledger tests

Provides common fixtures used across unit, conformance and scenario tests:
- Deterministic signer accounts (admin, recipients)
- A fresh ledger with the test base URI
- A receiver mock deployed at a fixed programmable address
"""

import pytest

from tokenledger import TokenLedger, normalize_account

from tests.receiver_mock import ReceiverMock
from tests.signing import (
    ADMIN, BASE_URI, BATCH_RECIPIENT, CONTRACT_ADDRESS, RECIPIENT,
)


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def token_recipient():
    return RECIPIENT


@pytest.fixture
def token_batch_recipient():
    return BATCH_RECIPIENT


@pytest.fixture
def ledger():
    """Fresh ledger with the test base URI."""
    return TokenLedger("test", base_uri=BASE_URI, verbose=False)


@pytest.fixture
def receiver_mock(ledger):
    """ReceiverMock (rejects id 0) deployed at CONTRACT_ADDRESS."""
    mock = ReceiverMock()
    ledger.registry.deploy(CONTRACT_ADDRESS, mock)
    return mock


@pytest.fixture
def contract_address(receiver_mock):
    """Checksummed address of the deployed receiver mock."""
    return normalize_account(CONTRACT_ADDRESS)
