"""
Savings Vault Cranker - CLI Entrypoint
======================================
Single entrypoint with subcommands.

Commands:
    python main.py run                  # Daemon: crank every target on schedule
    python main.py run --now            # Same, but crank immediately on start
    python main.py crank                # One immediate crank per target
    python main.py derive               # Print the vault PDAs per target
    python main.py cluster              # Show which cluster RPC_URL points at
"""

import argparse
import asyncio
import dataclasses
import sys

from rich.console import Console
from rich.table import Table


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="savings-cranker",
        description="Periodic accrue_interest cranker for the savings vault program"
    )
    parser.add_argument(
        "--targets", type=str, default=None,
        help="Path to crank targets JSON (default: data/crank_targets.json)"
    )
    parser.add_argument(
        "--rpc", type=str, default=None,
        help="Override RPC_URL"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the cranker daemon")
    run_parser.add_argument(
        "--now", action="store_true",
        help="Crank every target immediately, then follow the schedule"
    )
    run_parser.add_argument(
        "--interval-days", type=float, default=None,
        help="Days between cranks (default: CRANK_INTERVAL_DAYS or 30)"
    )

    subparsers.add_parser("crank", help="Crank every target once and exit")
    subparsers.add_parser("derive", help="Print derived vault addresses")
    subparsers.add_parser("cluster", help="Identify the RPC endpoint's cluster")

    return parser


def build_config(args):
    from src.shared.config.cranker import CrankerConfig

    config = CrankerConfig.from_settings(args.targets)
    overrides = {}
    if args.rpc:
        overrides["rpc_url"] = args.rpc
    if getattr(args, "now", False):
        overrides["run_on_start"] = True
    if getattr(args, "interval_days", None) is not None:
        overrides["crank_interval_s"] = args.interval_days * 24 * 3600
    return dataclasses.replace(config, **overrides) if overrides else config


def cmd_derive(config) -> int:
    from src.cranker.pda import derive_vault_addresses

    table = Table(title=f"Vault PDAs (program {config.program_id})")
    table.add_column("Target", style="cyan")
    table.add_column("Account")
    table.add_column("Address", style="green")

    for target in config.targets:
        vault = derive_vault_addresses(config.program_id, target.mint, target.wallet)
        for i, (name, address) in enumerate(vault.as_dict().items()):
            table.add_row(target.name if i == 0 else "", name, address)

    Console().print(table)
    return 0


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    if args.command == "derive":
        return cmd_derive(config)

    from src.cranker.keys import KeypairNotFound, load_cranker_keypair
    from src.cranker.service import CrankerService
    from src.shared.system.logging import Logger

    if args.command == "cluster":
        # Read-only, any throwaway signer will do
        from solders.keypair import Keypair
        label = asyncio.run(CrankerService(config, Keypair()).identify())
        return 0 if label else 1

    try:
        cranker = load_cranker_keypair()
    except KeypairNotFound as e:
        Logger.error(f"[WALLET] {e}")
        return 1

    service = CrankerService(config, cranker)

    if args.command == "crank":
        results = asyncio.run(service.crank_all())
        return 0 if all(r.success for r in results) else 1

    if args.command == "run":
        try:
            asyncio.run(service.run())
        except KeyboardInterrupt:
            Logger.warning("[SYSTEM] Interrupted")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
