"""
tokenledger - Multi-token ledger with authorized minting

Balances are created only when the recipient consents: an externally-controlled
recipient signs the exact mint parameters, a programmable recipient accepts
through a receiver callback.

Usage:
    from eth_account import Account
    from tokenledger import TokenLedger, MintApproval, sign_mint_approval

    ledger = TokenLedger("badges", base_uri="https://token-cdn-domain/{id}.json")
    alice = Account.create()
    admin = Account.create().address

    # Alice approves receiving 58319 of token 11223344
    approval = MintApproval.single(alice.address, 11223344, 58319)
    sig = sign_mint_approval(ledger.verifier, alice.key, approval)
    ledger.mint_to_eoa(admin, alice.address, 11223344, 58319, sig)

    ledger.burn(admin, alice.address, 11223344, 987)
    ledger.balance_of(alice.address, 11223344)   # 57332
"""

# Core types
from .core import (
    Account,
    TokenId,
    Amount,
    Signature,
    MintApproval,
    LedgerError,
    InvalidRecipient,
    InvalidAccount,
    InvalidMintSignature,
    ReceiverRejected,
    InsufficientBalance,
    BalanceOverflow,
    LengthMismatch,
    ZERO_ADDRESS,
    UINT256_MAX,
    normalize_account,
)

# Components
from .signatures import (
    SignatureVerifier,
    sign_digest,
    sign_mint_approval,
    MINT_APPROVAL_TYPEHASH,
    MINT_BATCH_APPROVAL_TYPEHASH,
)
from .receiver import (
    Receiver,
    ReceiverRegistry,
    ReceiverAcceptance,
    AcceptanceResult,
    AcceptanceOutcome,
    MINT_ACCEPTED,
    BATCH_MINT_ACCEPTED,
)
from .balances import BalanceLedger
from .mint import MintAuthorizer
from .burn import BurnAccountant
from .metadata import MetadataLocator

# Events
from .events import Event, MintSingle, MintBatch, BurnSingle, BurnBatch

# Ledger
from .ledger import TokenLedger, ledger_address_for

__all__ = [
    # Core
    'Account', 'TokenId', 'Amount', 'Signature', 'MintApproval',
    'LedgerError', 'InvalidRecipient', 'InvalidAccount', 'InvalidMintSignature',
    'ReceiverRejected', 'InsufficientBalance', 'BalanceOverflow', 'LengthMismatch',
    'ZERO_ADDRESS', 'UINT256_MAX', 'normalize_account',
    # Signatures
    'SignatureVerifier', 'sign_digest', 'sign_mint_approval',
    'MINT_APPROVAL_TYPEHASH', 'MINT_BATCH_APPROVAL_TYPEHASH',
    # Receivers
    'Receiver', 'ReceiverRegistry', 'ReceiverAcceptance',
    'AcceptanceResult', 'AcceptanceOutcome', 'MINT_ACCEPTED', 'BATCH_MINT_ACCEPTED',
    # Components
    'BalanceLedger', 'MintAuthorizer', 'BurnAccountant', 'MetadataLocator',
    # Events
    'Event', 'MintSingle', 'MintBatch', 'BurnSingle', 'BurnBatch',
    # Ledger
    'TokenLedger', 'ledger_address_for',
]

__version__ = '1.0.0'
