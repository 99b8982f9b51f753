"""
Accrue Interest Instruction Builder
===================================
Pure, deterministic construction of the accrue_interest crank.

100% testable without RPC or wallet connections.

Responsibilities:
- Rederive the vault PDA chain for a (wallet, mint) pair
- Assemble the Anchor accrue_interest instruction
- Prepend the ComputeBudget limit
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import List

from solders.compute_budget import set_compute_unit_limit
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.sysvar import CLOCK

from src.cranker.pda import VaultAddresses, derive_vault_addresses


TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
CLOCK_SYSVAR_ID = CLOCK

DEFAULT_COMPUTE_UNITS = 400_000


def anchor_discriminator(ix_name: str) -> bytes:
    """sha256("global:<name>")[:8]"""
    return hashlib.sha256(f"global:{ix_name}".encode()).digest()[:8]


ACCRUE_INTEREST_DISCRIMINATOR = anchor_discriminator("accrue_interest")


@dataclass(frozen=True)
class CrankRequest:
    """Everything needed to send one accrue_interest crank. Built per cycle."""

    program_id: Pubkey
    cranker: Pubkey
    wallet: Pubkey
    mint: Pubkey
    vault: VaultAddresses
    compute_units: int = DEFAULT_COMPUTE_UNITS
    token_program: Pubkey = TOKEN_PROGRAM_ID
    clock: Pubkey = CLOCK_SYSVAR_ID

    @property
    def savings_vault(self) -> Pubkey:
        return self.vault.savings_vault

    def accrue_interest_instruction(self) -> Instruction:
        # Account order mirrors the program's AccrueInterest context
        accounts = [
            AccountMeta(self.mint, is_signer=False, is_writable=False),
            AccountMeta(self.cranker, is_signer=True, is_writable=True),
            AccountMeta(self.wallet, is_signer=False, is_writable=False),
            AccountMeta(self.vault.savings_vault, is_signer=False, is_writable=True),
            AccountMeta(self.vault.savings_vault_treasury, is_signer=False, is_writable=True),
            AccountMeta(self.vault.interest_depositor_manager, is_signer=False, is_writable=True),
            AccountMeta(self.vault.interest_depositor_treasury, is_signer=False, is_writable=True),
            AccountMeta(self.token_program, is_signer=False, is_writable=False),
            AccountMeta(self.clock, is_signer=False, is_writable=False),
        ]
        return Instruction(
            program_id=self.program_id,
            accounts=accounts,
            data=ACCRUE_INTEREST_DISCRIMINATOR,
        )

    def instructions(self) -> List[Instruction]:
        """[SetComputeUnitLimit, AccrueInterest]"""
        return [
            set_compute_unit_limit(self.compute_units),
            self.accrue_interest_instruction(),
        ]


class AccrueInterestBuilder:
    """
    Pure builder for accrue_interest cranks against one program deployment.

    Usage:
        builder = AccrueInterestBuilder(program_id, compute_units=400_000)
        request = builder.build(cranker_pubkey, wallet, mint)
        ixs = request.instructions()
    """

    def __init__(self, program_id: Pubkey, compute_units: int = DEFAULT_COMPUTE_UNITS):
        if compute_units <= 0:
            raise ValueError("compute_units must be positive")
        self.program_id = program_id
        self.compute_units = compute_units

    def build(self, cranker: Pubkey, wallet: Pubkey, mint: Pubkey) -> CrankRequest:
        vault = derive_vault_addresses(self.program_id, mint, wallet)
        return CrankRequest(
            program_id=self.program_id,
            cranker=cranker,
            wallet=wallet,
            mint=mint,
            vault=vault,
            compute_units=self.compute_units,
        )
