"""
signatures.py - Mint approval digests and signer recovery

A recipient consents to a mint by signing the digest of the exact mint
parameters with its own key. The ledger binds its own address into the
digest, so an approval for one ledger is useless against another.

Digest layout (ABI-encoded, then keccak-256):

    single: (MINT_APPROVAL_TYPEHASH, ledger, to, id, amount)
    batch:  (MINT_BATCH_APPROVAL_TYPEHASH, ledger, to, ids[], amounts[])

Signatures are produced over the EIP-191 "personal message" wrapping of the
digest, which is what standard wallet tooling signs.
"""

from __future__ import annotations
from typing import Sequence, Union

from eth_abi import encode
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct
from eth_utils import keccak

from .core import (
    Account, Amount, MintApproval, Signature, TokenId,
    ZERO_ADDRESS,
    check_batch, check_uint256, is_zero_account, normalize_account,
)


MINT_APPROVAL_TYPEHASH = keccak(
    text="MintApproval(address ledger,address to,uint256 id,uint256 amount)"
)
MINT_BATCH_APPROVAL_TYPEHASH = keccak(
    text="MintBatchApproval(address ledger,address to,uint256[] ids,uint256[] amounts)"
)

SignatureLike = Union[Signature, bytes, tuple]


class SignatureVerifier:
    """
    Derives mint approval digests for one ledger and checks who signed them.

    The recovery primitive is isolated in recover_signer(), so MintAuthorizer
    only ever sees verify_mint_approval().
    """

    def __init__(self, ledger_address: Account):
        self.ledger_address = normalize_account(ledger_address)

    def digest_single(self, to: Account, token_id: TokenId, amount: Amount) -> bytes:
        """
        Digest of a single-pair mint approval.

        Pure function of its inputs and the ledger address.
        """
        to = normalize_account(to)
        check_uint256(token_id, "token_id")
        check_uint256(amount, "amount")
        encoded = encode(
            ['bytes32', 'address', 'address', 'uint256', 'uint256'],
            [MINT_APPROVAL_TYPEHASH, self.ledger_address, to, token_id, amount],
        )
        return keccak(encoded)

    def digest_batch(
        self,
        to: Account,
        token_ids: Sequence[TokenId],
        amounts: Sequence[Amount],
    ) -> bytes:
        """
        Digest of a batch mint approval.

        Raises:
            LengthMismatch: If token_ids and amounts differ in length
        """
        to = normalize_account(to)
        ids, amts = check_batch(token_ids, amounts)
        encoded = encode(
            ['bytes32', 'address', 'address', 'uint256[]', 'uint256[]'],
            [MINT_BATCH_APPROVAL_TYPEHASH, self.ledger_address, to, list(ids), list(amts)],
        )
        return keccak(encoded)

    def approval_digest(self, approval: MintApproval) -> bytes:
        if approval.batch:
            return self.digest_batch(approval.to, approval.token_ids, approval.amounts)
        return self.digest_single(approval.to, approval.token_ids[0], approval.amounts[0])

    def recover_signer(self, digest: bytes, signature: SignatureLike) -> Account:
        """
        Recover the account that signed the personal-message form of a digest.

        Never raises. Malformed signatures, out-of-range components and
        unrecoverable points all yield ZERO_ADDRESS.
        """
        try:
            sig = Signature.coerce(signature)
            message = encode_defunct(primitive=bytes(digest))
            return EthAccount.recover_message(message, vrs=sig.vrs)
        except Exception:
            return ZERO_ADDRESS

    def verify_mint_approval(
        self,
        expected_signer: Account,
        digest: bytes,
        signature: SignatureLike,
    ) -> bool:
        """True iff expected_signer is non-zero and produced the signature."""
        if is_zero_account(expected_signer):
            return False
        return self.recover_signer(digest, signature) == normalize_account(expected_signer)


def sign_digest(private_key: Union[str, bytes], digest: bytes) -> Signature:
    """
    Sign a mint approval digest the way wallet tooling does (EIP-191 personal sign).

    Off-chain counterpart of SignatureVerifier.recover_signer().
    """
    signed = EthAccount.sign_message(encode_defunct(primitive=bytes(digest)), private_key=private_key)
    return Signature(v=signed.v, r=signed.r, s=signed.s)


def sign_mint_approval(
    verifier: SignatureVerifier,
    private_key: Union[str, bytes],
    approval: MintApproval,
) -> Signature:
    """
    Produce the recipient's signature over a mint approval for one ledger.

    Example:
        approval = MintApproval.single(alice.address, 11223344, 58319)
        sig = sign_mint_approval(ledger.verifier, alice.key, approval)
        ledger.mint_to_eoa(admin, alice.address, 11223344, 58319, sig, b"")
    """
    return sign_digest(private_key, verifier.approval_digest(approval))
