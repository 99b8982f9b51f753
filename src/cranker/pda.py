"""
Savings Vault PDA Derivation
============================
Pure, deterministic program-derived address math. No RPC, no state.

The seed literals and their ordering are a compatibility contract with the
deployed savings-vault program: changing any of them yields a different,
unusable address space.

    SavingsVault              = [b"savings_vault", mint, wallet]
    SavingsVaultTreasury      = [b"savings_vault-treasury", savings_vault]
    InterestDepositorManager  = [b"interest_depositor_manager", mint]
    InterestDepositorTreasury = [b"interest_depositor_treasury", depositor_manager]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from solders.pubkey import Pubkey

from src.cranker.errors import DerivationExhausted
from src.shared.system.logging import Logger


SEED_SAVINGS_VAULT = b"savings_vault"
SEED_SAVINGS_VAULT_TREASURY = b"savings_vault-treasury"
SEED_INTEREST_DEPOSITOR_MANAGER = b"interest_depositor_manager"
SEED_INTEREST_DEPOSITOR_TREASURY = b"interest_depositor_treasury"

MAX_SEED_LEN = 32
MAX_SEEDS = 16

_create_program_address = Pubkey.create_program_address


def derive(program_id: Pubkey, seeds: Sequence[bytes]) -> Tuple[Pubkey, int]:
    """
    Find the canonical program address for `seeds` under `program_id`.

    Walks bump seeds from 255 down to 0 and returns the first one whose
    address falls off the ed25519 curve.

    Raises:
        TypeError: program_id is not a Pubkey
        ValueError: seeds exceed the runtime limits
        DerivationExhausted: no bump produced a valid address
    """
    if not isinstance(program_id, Pubkey):
        raise TypeError(f"program_id must be a Pubkey, got {type(program_id).__name__}")
    seeds = [bytes(s) for s in seeds]
    if len(seeds) >= MAX_SEEDS:
        raise ValueError(f"At most {MAX_SEEDS - 1} seeds allowed (bump takes the last slot)")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"Seed {seed!r} longer than {MAX_SEED_LEN} bytes")

    for bump in range(255, -1, -1):
        try:
            address = _create_program_address(seeds + [bytes([bump])], program_id)
        except Exception as e:
            # solders reports an on-curve result as PubkeyError; anything else is a real fault
            if type(e).__name__ != "PubkeyError":
                raise
            continue
        return address, bump

    raise DerivationExhausted(seeds, program_id)


# =============================================================================
# VAULT HIERARCHY
# =============================================================================

def find_savings_vault_pda(program_id: Pubkey, mint: Pubkey, wallet: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [SEED_SAVINGS_VAULT, bytes(mint), bytes(wallet)])


def find_savings_vault_treasury_pda(program_id: Pubkey, savings_vault: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [SEED_SAVINGS_VAULT_TREASURY, bytes(savings_vault)])


def find_interest_depositor_manager_pda(program_id: Pubkey, mint: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [SEED_INTEREST_DEPOSITOR_MANAGER, bytes(mint)])


def find_interest_depositor_treasury_pda(program_id: Pubkey, depositor_manager: Pubkey) -> Tuple[Pubkey, int]:
    return derive(program_id, [SEED_INTEREST_DEPOSITOR_TREASURY, bytes(depositor_manager)])


@dataclass(frozen=True)
class VaultAddresses:
    """The four PDAs an accrue_interest call touches for one (mint, wallet)."""

    savings_vault: Pubkey
    savings_vault_treasury: Pubkey
    interest_depositor_manager: Pubkey
    interest_depositor_treasury: Pubkey

    def as_dict(self) -> dict:
        return {
            "savings_vault": str(self.savings_vault),
            "savings_vault_treasury": str(self.savings_vault_treasury),
            "interest_depositor_manager": str(self.interest_depositor_manager),
            "interest_depositor_treasury": str(self.interest_depositor_treasury),
        }


def derive_vault_addresses(program_id: Pubkey, mint: Pubkey, wallet: Pubkey) -> VaultAddresses:
    """Rederive the full chain; treasuries depend on their parent PDAs."""
    savings_vault, _ = find_savings_vault_pda(program_id, mint, wallet)
    savings_vault_treasury, _ = find_savings_vault_treasury_pda(program_id, savings_vault)
    depositor_manager, _ = find_interest_depositor_manager_pda(program_id, mint)
    depositor_treasury, _ = find_interest_depositor_treasury_pda(program_id, depositor_manager)

    Logger.debug(
        f"[PDA] {str(wallet)[:8]}/{str(mint)[:8]}: savings_vault={savings_vault} "
        f"depositor_manager={depositor_manager}"
    )

    return VaultAddresses(
        savings_vault=savings_vault,
        savings_vault_treasury=savings_vault_treasury,
        interest_depositor_manager=depositor_manager,
        interest_depositor_treasury=depositor_treasury,
    )
