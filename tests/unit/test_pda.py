"""
PDA Derivation Unit Tests
=========================
The vault seed chains are a compatibility contract with the deployed
program, so the derived addresses must match solders' reference
find_program_address byte for byte.
"""

import pytest
from solders.pubkey import Pubkey


class TestDerive:
    """Test the generic bump search."""

    def test_derive_is_deterministic(self, program_id, mint):
        from src.cranker.pda import derive

        seeds = [b"interest_depositor_manager", bytes(mint)]
        first = derive(program_id, seeds)
        second = derive(program_id, seeds)

        assert first == second
        assert bytes(first[0]) == bytes(second[0])

    def test_derive_matches_find_program_address(self, program_id, mint, wallet):
        from src.cranker.pda import derive

        seed_sets = [
            [b"savings_vault", bytes(mint), bytes(wallet)],
            [b"interest_depositor_manager", bytes(mint)],
            [b"anything"],
            [],
        ]
        for seeds in seed_sets:
            assert derive(program_id, seeds) == Pubkey.find_program_address(seeds, program_id)

    def test_bump_is_a_byte(self, program_id, wallet):
        from src.cranker.pda import derive

        _, bump = derive(program_id, [b"savings_vault", bytes(wallet)])
        assert 0 <= bump <= 255

    def test_seed_order_matters(self, program_id, mint, wallet):
        from src.cranker.pda import derive

        a, _ = derive(program_id, [b"savings_vault", bytes(mint), bytes(wallet)])
        b, _ = derive(program_id, [b"savings_vault", bytes(wallet), bytes(mint)])
        assert a != b

    def test_different_program_gives_different_address(self, program_id, mint):
        from src.cranker.pda import derive

        other = Pubkey.from_string("11111111111111111111111111111111")
        seeds = [b"interest_depositor_manager", bytes(mint)]
        assert derive(program_id, seeds)[0] != derive(other, seeds)[0]

    def test_seed_too_long_rejected(self, program_id):
        from src.cranker.pda import derive

        with pytest.raises(ValueError, match="longer than"):
            derive(program_id, [b"x" * 33])

    def test_too_many_seeds_rejected(self, program_id):
        from src.cranker.pda import derive

        with pytest.raises(ValueError, match="seeds allowed"):
            derive(program_id, [b"s"] * 16)

    def test_exhausted_bump_search_raises(self, program_id, monkeypatch):
        """Every bump landing on-curve surfaces as DerivationExhausted."""
        import src.cranker.pda as pda
        from src.cranker.errors import DerivationExhausted

        class PubkeyError(Exception):
            pass

        def on_curve(seeds, program_id):
            raise PubkeyError("Provided seeds do not result in a valid address")

        monkeypatch.setattr(pda, "_create_program_address", on_curve)

        with pytest.raises(DerivationExhausted) as exc_info:
            pda.derive(program_id, [b"savings_vault"])

        assert exc_info.value.retryable is False
        assert str(program_id) in str(exc_info.value)

    def test_non_pubkey_program_id_is_type_error(self, program_id):
        from src.cranker.pda import derive

        with pytest.raises(TypeError, match="Pubkey"):
            derive(str(program_id), [b"savings_vault"])

    def test_unexpected_error_is_not_exhaustion(self, program_id, monkeypatch):
        """Only on-curve results move on to the next bump."""
        import src.cranker.pda as pda

        calls = []

        def broken(seeds, program_id):
            calls.append(seeds[-1])
            raise RuntimeError("native panic")

        monkeypatch.setattr(pda, "_create_program_address", broken)

        with pytest.raises(RuntimeError, match="native panic"):
            pda.derive(program_id, [b"savings_vault"])
        assert calls == [bytes([255])]


class TestVaultHierarchy:
    """Test the four-address dependency chain."""

    def test_chain_matches_reference_derivation(self, program_id, mint, wallet):
        from src.cranker.pda import derive_vault_addresses

        vault = derive_vault_addresses(program_id, mint, wallet)

        sv, _ = Pubkey.find_program_address(
            [b"savings_vault", bytes(mint), bytes(wallet)], program_id
        )
        svt, _ = Pubkey.find_program_address(
            [b"savings_vault-treasury", bytes(sv)], program_id
        )
        idm, _ = Pubkey.find_program_address(
            [b"interest_depositor_manager", bytes(mint)], program_id
        )
        idt, _ = Pubkey.find_program_address(
            [b"interest_depositor_treasury", bytes(idm)], program_id
        )

        assert vault.savings_vault == sv
        assert vault.savings_vault_treasury == svt
        assert vault.interest_depositor_manager == idm
        assert vault.interest_depositor_treasury == idt

    def test_chain_is_stable_across_calls(self, program_id, mint, wallet):
        from src.cranker.pda import derive_vault_addresses

        assert derive_vault_addresses(program_id, mint, wallet) == derive_vault_addresses(
            program_id, mint, wallet
        )

    def test_changing_wallet_keeps_depositor_accounts(self, program_id, mint, wallet):
        """Depositor manager/treasury are per-mint, not per-wallet."""
        from src.cranker.pda import derive_vault_addresses

        other_wallet = Pubkey.new_unique()
        a = derive_vault_addresses(program_id, mint, wallet)
        b = derive_vault_addresses(program_id, mint, other_wallet)

        assert a.savings_vault != b.savings_vault
        assert a.savings_vault_treasury != b.savings_vault_treasury
        assert a.interest_depositor_manager == b.interest_depositor_manager
        assert a.interest_depositor_treasury == b.interest_depositor_treasury

    def test_changing_mint_changes_all_four(self, program_id, mint, wallet):
        from src.cranker.pda import derive_vault_addresses

        other_mint = Pubkey.new_unique()
        a = derive_vault_addresses(program_id, mint, wallet)
        b = derive_vault_addresses(program_id, other_mint, wallet)

        assert a.savings_vault != b.savings_vault
        assert a.savings_vault_treasury != b.savings_vault_treasury
        assert a.interest_depositor_manager != b.interest_depositor_manager
        assert a.interest_depositor_treasury != b.interest_depositor_treasury

    def test_as_dict_uses_base58(self, program_id, mint, wallet):
        from src.cranker.pda import derive_vault_addresses

        vault = derive_vault_addresses(program_id, mint, wallet)
        d = vault.as_dict()

        assert set(d) == {
            "savings_vault",
            "savings_vault_treasury",
            "interest_depositor_manager",
            "interest_depositor_treasury",
        }
        assert d["savings_vault"] == str(vault.savings_vault)

    def test_derivation_logged_under_pda_source(self, program_id, mint, wallet, monkeypatch):
        from src.cranker.pda import derive_vault_addresses
        from src.shared.system.logging import Logger

        messages = []
        monkeypatch.setattr(Logger, "debug", staticmethod(messages.append))

        vault = derive_vault_addresses(program_id, mint, wallet)

        assert len(messages) == 1
        assert messages[0].startswith("[PDA]")
        assert str(vault.savings_vault) in messages[0]
