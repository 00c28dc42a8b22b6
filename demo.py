#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Token Ledger Step by Step

A walk through the ledger's two mint paths, burning, and the guarantees that
hold around them. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation      - The empty ledger, signed approvals, the EOA path
  4-5:  Contract Path   - Receiver callbacks, rejections
  6-7:  Burning         - Single and batch burns, all-or-nothing
  8-9:  Guarantees      - Reentrancy, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, field
from typing import List
import sys

from eth_account import Account as EthAccount

from tokenledger import (
    TokenLedger, MintApproval, sign_mint_approval,
    MINT_ACCEPTED, BATCH_MINT_ACCEPTED,
    InvalidMintSignature, InsufficientBalance, ReceiverRejected,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    base_uri: str = "https://token-cdn-domain/{id}.json"

    # Fixed keys so addresses are the same on every run
    admin_key: str = "0x" + "01".rjust(64, "0")
    alice_key: str = "0x" + "02".rjust(64, "0")
    mallory_key: str = "0x" + "0bad".rjust(64, "0")

    # Programmable recipient
    vault_address: str = "0x" + "c0" * 20
    vault_rejected_id: int = 13

    badge_id: int = 7
    badge_amount: int = 3
    batch_ids: List[int] = field(default_factory=lambda: [100, 200, 300])
    batch_amounts: List[int] = field(default_factory=lambda: [10, 20, 30])


CONFIG = DemoConfig()

ADMIN = EthAccount.from_key(CONFIG.admin_key)
ALICE = EthAccount.from_key(CONFIG.alice_key)
MALLORY = EthAccount.from_key(CONFIG.mallory_key)

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


class Vault:
    """A programmable recipient that accepts every id but one."""

    def __init__(self, rejected_id: int):
        self.rejected_id = rejected_id

    def on_erc1238_mint(self, operator, token_id, amount, data):
        return MINT_ACCEPTED if token_id != self.rejected_id else b"\x00" * 4

    def on_erc1238_batch_mint(self, operator, token_ids, amounts, data):
        return BATCH_MINT_ACCEPTED if self.rejected_id not in token_ids else b"\x00" * 4


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_ledger():
    """Create an empty ledger and look at its identity."""
    step_header(1, "The Empty Ledger",
        "A ledger has an identity, a metadata template and no balances.")

    print("""
    Tokens here cannot be transferred. They can only be:

    1. MINTED - created in a recipient's account, with the recipient's consent
    2. BURNED - destroyed by an authorized caller

    The ledger address is bound into every approval, so a signature made
    for one ledger is worthless on another.
    """)

    print(f">>> ledger = TokenLedger('badges', base_uri={CONFIG.base_uri!r})")
    ledger = TokenLedger("badges", base_uri=CONFIG.base_uri, verbose=True)

    section_header("Initial State")
    print(f"Ledger name:    {ledger.name}")
    print(f"Ledger address: {ledger.address}")
    print(f"Metadata URI:   {ledger.uri(CONFIG.badge_id)}")
    print(f"Event log:      {len(ledger.event_log)} entries")

    return ledger


def step_02_signed_approval(ledger: TokenLedger):
    """Build and sign a mint approval off-ledger."""
    step_header(2, "Signed Approvals",
        "An externally-controlled recipient consents by signing the mint.")

    print(f">>> approval = MintApproval.single(alice, {CONFIG.badge_id}, {CONFIG.badge_amount})")
    approval = MintApproval.single(ALICE.address, CONFIG.badge_id, CONFIG.badge_amount)
    signature = sign_mint_approval(ledger.verifier, ALICE.key, approval)

    section_header("Approval")
    print(f"Digest:    0x{ledger.verifier.approval_digest(approval).hex()}")
    print(f"Signature: v={signature.v} r={hex(signature.r)[:18]}... s={hex(signature.s)[:18]}...")

    return ledger, signature


def step_03_mint_to_eoa(ledger: TokenLedger, signature):
    """Mint with the signature, then watch a forged one fail."""
    step_header(3, "The EOA Path",
        "Only the recipient's own signature over the exact parameters works.")

    print(">>> ledger.mint_to_eoa(admin, alice, ...)")
    ledger.mint_to_eoa(ADMIN.address, ALICE.address, CONFIG.badge_id, CONFIG.badge_amount, signature)
    print(f"Alice holds: {ledger.balance_of(ALICE.address, CONFIG.badge_id)}")

    section_header("Forgery")
    forged = sign_mint_approval(
        ledger.verifier, MALLORY.key,
        MintApproval.single(ALICE.address, CONFIG.badge_id, 1_000_000),
    )
    try:
        ledger.mint_to_eoa(ADMIN.address, ALICE.address, CONFIG.badge_id, 1_000_000, forged)
    except InvalidMintSignature as e:
        print(f"Rejected as expected: {e}")
    print(f"Alice still holds: {ledger.balance_of(ALICE.address, CONFIG.badge_id)}")

    return ledger


# ============================================================================
# PHASE 2: CONTRACT PATH (Steps 4-5)
# ============================================================================

def step_04_mint_to_contract(ledger: TokenLedger):
    """Deploy a receiver and mint to it."""
    step_header(4, "The Contract Path",
        "A programmable recipient consents by answering a callback.")

    print(">>> ledger.registry.deploy(vault_address, Vault(...))")
    ledger.registry.deploy(CONFIG.vault_address, Vault(CONFIG.vault_rejected_id))
    ledger.mint(ADMIN.address, CONFIG.vault_address, CONFIG.badge_id, 1)
    ledger.mint_batch(ADMIN.address, CONFIG.vault_address, CONFIG.batch_ids, CONFIG.batch_amounts)

    section_header("Vault Holdings")
    for token_id, amount in sorted(ledger.holdings(CONFIG.vault_address).items()):
        print(f"  id {token_id:>4}: {amount}")

    return ledger


def step_05_rejection(ledger: TokenLedger):
    """A receiver that says no."""
    step_header(5, "Rejections",
        "Anything but the exact acceptance marker rejects the whole mint.")

    before = dict(ledger.holdings(CONFIG.vault_address))
    try:
        ledger.mint_batch(
            ADMIN.address, CONFIG.vault_address, [1, CONFIG.vault_rejected_id], [5, 5]
        )
    except ReceiverRejected as e:
        print(f"Rejected: {e} ({e.reason})")
    assert ledger.holdings(CONFIG.vault_address) == before
    print("Vault holdings unchanged.")

    return ledger


# ============================================================================
# PHASE 3: BURNING (Steps 6-7)
# ============================================================================

def step_06_burn(ledger: TokenLedger):
    """Burn part of a balance."""
    step_header(6, "Burning",
        "Burns debit a balance and can never push it below zero.")

    ledger.burn(ADMIN.address, ALICE.address, CONFIG.badge_id, 1)
    print(f"Alice holds: {ledger.balance_of(ALICE.address, CONFIG.badge_id)}")

    try:
        ledger.burn(ADMIN.address, ALICE.address, CONFIG.badge_id, 100)
    except InsufficientBalance as e:
        print(f"Rejected: {e}")

    return ledger


def step_07_batch_burn(ledger: TokenLedger):
    """One short pair fails the whole batch."""
    step_header(7, "Batch Burns Are All-or-Nothing",
        "Either every pair of a batch burn is debited or none is.")

    amounts = list(CONFIG.batch_amounts)
    amounts[-1] += 1
    try:
        ledger.burn_batch(ADMIN.address, CONFIG.vault_address, CONFIG.batch_ids, amounts)
    except InsufficientBalance as e:
        print(f"Rejected: {e}")

    balances = ledger.balance_of_batch([CONFIG.vault_address] * len(CONFIG.batch_ids), CONFIG.batch_ids)
    print(f"Vault batch balances: {balances}")

    ledger.burn_batch(ADMIN.address, CONFIG.vault_address, CONFIG.batch_ids, CONFIG.batch_amounts)
    return ledger


# ============================================================================
# PHASE 4: GUARANTEES (Steps 8-9)
# ============================================================================

def step_08_reentrancy(ledger: TokenLedger):
    """A receiver cannot spend what it has not yet accepted."""
    step_header(8, "Reentrancy",
        "The credit lands after the callback, never before.")

    class Greedy:
        def __init__(self):
            self.seen = None

        def on_erc1238_mint(self, operator, token_id, amount, data):
            self.seen = ledger.balance_of(greedy_address, token_id)
            try:
                ledger.burn(ADMIN.address, greedy_address, token_id, amount)
            except InsufficientBalance:
                print("  (callback) burn of the pending credit failed")
            return MINT_ACCEPTED

    greedy = Greedy()
    greedy_address = ledger.registry.deploy("0x" + "d0" * 20, greedy)
    ledger.mint(ADMIN.address, greedy_address, 42, 9)
    print(f"Balance seen inside the callback: {greedy.seen}")
    print(f"Balance after the mint:           {ledger.balance_of(greedy_address, 42)}")

    return ledger


def step_09_conservation(ledger: TokenLedger):
    """Prove minted - burned == balance everywhere."""
    step_header(9, "Conservation Proof",
        "Every balance is exactly its mints minus its burns.")

    result = ledger.verify_conservation()
    print(f"Valid:         {result['valid']}")
    print(f"Discrepancies: {result['discrepancies']}")
    print(f"Events logged: {len(ledger.event_log)}")

    return ledger


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       TOKEN LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    ledger = step_01_empty_ledger()
    wait_for_enter()

    ledger, signature = step_02_signed_approval(ledger)
    wait_for_enter()

    ledger = step_03_mint_to_eoa(ledger, signature)
    wait_for_enter()

    ledger = step_04_mint_to_contract(ledger)
    wait_for_enter()

    ledger = step_05_rejection(ledger)
    wait_for_enter()

    ledger = step_06_burn(ledger)
    wait_for_enter()

    ledger = step_07_batch_burn(ledger)
    wait_for_enter()

    ledger = step_08_reentrancy(ledger)
    wait_for_enter()

    step_09_conservation(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:
      - Mints need the recipient's consent: a signature or a callback
      - Requests are atomic, batches included
      - Receivers cannot see or spend pending credits
      - Conservation: minted - burned == balance (always)

    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
