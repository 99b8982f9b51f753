from dataclasses import dataclass, field
from typing import Tuple

from solders.pubkey import Pubkey

from config.settings import Settings
from src.cranker.cluster import Cluster


@dataclass(frozen=True)
class CrankTarget:
    """One (wallet, mint) pair whose savings vault gets cranked."""

    wallet: Pubkey
    mint: Pubkey
    label: str = ""

    @classmethod
    def from_dict(cls, entry: dict) -> "CrankTarget":
        return cls(
            wallet=Pubkey.from_string(entry["wallet"]),
            mint=Pubkey.from_string(entry["mint"]),
            label=entry.get("label", ""),
        )

    @property
    def name(self) -> str:
        return self.label or f"{str(self.wallet)[:8]}/{str(self.mint)[:8]}"


@dataclass(frozen=True)
class CrankerConfig:
    rpc_url: str = "https://api.devnet.solana.com"
    program_id: Pubkey = field(
        default_factory=lambda: Pubkey.from_string(Settings.SAVINGS_VAULT_PROGRAM_ID)
    )
    compute_units: int = 400_000
    targets: Tuple[CrankTarget, ...] = ()

    # Timing
    crank_interval_s: float = 30 * 24 * 3600
    check_interval_s: float = 3600
    rpc_timeout_s: float = 30.0
    retry_backoff_s: float = 3600
    retry_backoff_max_s: float = 86400
    run_on_start: bool = False
    confirm_transactions: bool = True

    # Cluster checks
    expected_cluster: str = ""
    strict_cluster_match: bool = False

    def __post_init__(self):
        if self.compute_units <= 0:
            raise ValueError("compute_units must be positive")
        if self.crank_interval_s <= 0 or self.check_interval_s <= 0:
            raise ValueError("crank and check intervals must be positive")
        if self.rpc_timeout_s <= 0:
            raise ValueError("rpc_timeout_s must be positive")
        if self.expected_cluster:
            Cluster.from_name(self.expected_cluster)

    @classmethod
    def from_settings(cls, targets_file: str = None) -> "CrankerConfig":
        targets = tuple(
            CrankTarget.from_dict(t) for t in Settings.load_targets(targets_file)
        )
        return cls(
            rpc_url=Settings.RPC_URL,
            program_id=Pubkey.from_string(Settings.SAVINGS_VAULT_PROGRAM_ID),
            compute_units=Settings.COMPUTE_UNITS,
            targets=targets,
            crank_interval_s=Settings.CRANK_INTERVAL_DAYS * 24 * 3600,
            check_interval_s=Settings.CHECK_INTERVAL_S,
            rpc_timeout_s=Settings.RPC_TIMEOUT_S,
            retry_backoff_s=Settings.RETRY_BACKOFF_S,
            retry_backoff_max_s=Settings.RETRY_BACKOFF_MAX_S,
            run_on_start=Settings.RUN_ON_START,
            confirm_transactions=Settings.CONFIRM_TRANSACTIONS,
            expected_cluster=Settings.EXPECTED_CLUSTER,
            strict_cluster_match=Settings.STRICT_CLUSTER_MATCH,
        )
