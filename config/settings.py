import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # SAVINGS VAULT CRANKER CONFIGURATION
    # ═══════════════════════════════════════════════════════════════════

    SILENT_MODE = _env_bool("SILENT_MODE", False)

    # Paths
    DATA_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../data"))
    CRANK_TARGETS_FILE = os.getenv(
        "CRANK_TARGETS_FILE", os.path.join(DATA_DIR, "crank_targets.json")
    )

    # --- Network ---
    RPC_URL = os.getenv("RPC_URL", "https://api.devnet.solana.com")
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "30"))
    EXPECTED_CLUSTER = os.getenv("EXPECTED_CLUSTER", "")  # "devnet" / "mainnet-beta"
    STRICT_CLUSTER_MATCH = _env_bool("STRICT_CLUSTER_MATCH", False)

    # --- Program ---
    SAVINGS_VAULT_PROGRAM_ID = os.getenv(
        "SAVINGS_VAULT_PROGRAM_ID", "HfJVM6Ayjajt9H58AZoCFqkCQQFehSeQfGQbi3crxT8W"
    )
    COMPUTE_UNITS = int(os.getenv("CRANK_COMPUTE_UNITS", "400000"))

    # --- Cranker Wallet ---
    KEYPAIR_PATH = os.path.expanduser(
        os.getenv("CRANKER_KEYPAIR_PATH", "~/.config/solana/id.json")
    )
    PRIVATE_KEY = os.getenv("SOLANA_PRIVATE_KEY", "")

    # --- Schedule ---
    CRANK_INTERVAL_DAYS = float(os.getenv("CRANK_INTERVAL_DAYS", "30"))
    CHECK_INTERVAL_S = float(os.getenv("CRANK_CHECK_INTERVAL_S", "3600"))  # Check every hour
    RUN_ON_START = _env_bool("CRANK_RUN_ON_START", False)
    CONFIRM_TRANSACTIONS = _env_bool("CRANK_CONFIRM", True)
    RETRY_BACKOFF_S = float(os.getenv("CRANK_RETRY_BACKOFF_S", "3600"))
    RETRY_BACKOFF_MAX_S = float(os.getenv("CRANK_RETRY_BACKOFF_MAX_S", "86400"))

    # Fallback target when no registry file is present
    DEFAULT_TARGETS = [
        {
            "label": "default",
            "wallet": "TUAXRFzyLeXmG9wPLaMXt66jUagfrWmL9oGq4rMwjAu",
            "mint": "FmAFDKSPL61s8kQZCHwsZULA313pdHJ73PuBK4wePpNh",
        }
    ]

    @staticmethod
    def load_targets(path: str = None) -> list:
        """Load the (wallet, mint) pairs to crank from the targets registry."""
        import json

        targets_file = path or Settings.CRANK_TARGETS_FILE
        if not os.path.exists(targets_file):
            return [dict(t) for t in Settings.DEFAULT_TARGETS]

        with open(targets_file, "r") as f:
            data = json.load(f)

        targets = []
        for idx, entry in enumerate(data.get("targets", [])):
            if not entry.get("enabled", True):
                continue
            if "wallet" not in entry or "mint" not in entry:
                raise ValueError(
                    f"Target #{idx} in {targets_file} needs both 'wallet' and 'mint'"
                )
            targets.append(
                {
                    "label": entry.get("label", f"target-{idx}"),
                    "wallet": entry["wallet"],
                    "mint": entry["mint"],
                }
            )
        return targets
