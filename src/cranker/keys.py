import json
import os
from typing import Optional

import base58
from solders.keypair import Keypair

from config.settings import Settings
from src.shared.system.logging import Logger


class KeypairNotFound(Exception):
    pass


def load_cranker_keypair(
    private_key: Optional[str] = None,
    keypair_path: Optional[str] = None,
) -> Keypair:
    """
    Load the cranker signer.

    A base58 secret (SOLANA_PRIVATE_KEY) wins over the Solana CLI JSON
    keypair file (CRANKER_KEYPAIR_PATH).
    """
    private_key = Settings.PRIVATE_KEY if private_key is None else private_key
    keypair_path = Settings.KEYPAIR_PATH if keypair_path is None else keypair_path

    if private_key:
        try:
            keypair = Keypair.from_bytes(base58.b58decode(private_key.strip()))
        except Exception as e:
            raise KeypairNotFound(f"Invalid base58 private key: {e}") from e
        Logger.info(f"[WALLET] Cranker {keypair.pubkey()} (env key)")
        return keypair

    if not keypair_path or not os.path.exists(keypair_path):
        raise KeypairNotFound(
            f"No SOLANA_PRIVATE_KEY set and keypair file {keypair_path!r} not found"
        )

    with open(keypair_path, "r") as f:
        raw = f.read()
    try:
        keypair = Keypair.from_bytes(bytes(json.loads(raw)))
    except Exception as e:
        raise KeypairNotFound(f"Invalid keypair file {keypair_path}: {e}") from e

    Logger.info(f"[WALLET] Cranker {keypair.pubkey()} ({keypair_path})")
    return keypair
