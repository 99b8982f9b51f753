"""
Cluster Identification
======================
Resolves which Solana cluster an RPC endpoint is attached to by comparing
its genesis hash against the well-known devnet / mainnet-beta values.
"""

import asyncio
from enum import Enum
from typing import Optional

from solana.rpc.async_api import AsyncClient

from src.cranker.errors import EndpointUnreachable
from src.shared.system.logging import Logger


# Hash for devnet cluster
DEVNET_GENESIS_HASH = "EtWTRABZaYq6iMfeYKouRu166VU2xqa1wcaWoxPkrZBG"

# Hash for mainnet-beta cluster
MAINNET_GENESIS_HASH = "5eykt4UsFv8P8NJdTREpY1vzqKqZKvdpKuc147dw2N9d"

EXPLORER_BASE_URL = "https://explorer.solana.com"


class Cluster(Enum):
    DEVNET = "devnet"
    MAINNET = "mainnet-beta"
    UNKNOWN = "unknown"

    @property
    def explorer_param(self) -> str:
        """Query suffix the explorer needs to look at this cluster."""
        if self is Cluster.DEVNET:
            return "?cluster=devnet"
        return ""

    def explorer_address_url(self, address) -> str:
        return f"{EXPLORER_BASE_URL}/address/{address}{self.explorer_param}"

    @classmethod
    def from_name(cls, name: str) -> "Cluster":
        normalized = name.strip().lower()
        if normalized in ("mainnet", "mainnet-beta", "production"):
            return cls.MAINNET
        if normalized in ("devnet", "test"):
            return cls.DEVNET
        raise ValueError(f"Unknown cluster name: {name!r}")


def cluster_from_genesis_hash(genesis_hash: str, strict: bool = False) -> Cluster:
    """
    Classify a genesis hash.

    Unrecognised hashes (localnet, testnet, private forks) are reported as
    DEVNET unless `strict` is set, in which case they come back UNKNOWN.
    """
    if genesis_hash == DEVNET_GENESIS_HASH:
        return Cluster.DEVNET
    if genesis_hash == MAINNET_GENESIS_HASH:
        return Cluster.MAINNET
    return Cluster.UNKNOWN if strict else Cluster.DEVNET


async def identify_cluster(
    client: AsyncClient,
    timeout_s: float = 30.0,
    strict: bool = False,
    rpc_url: str = "<rpc>",
) -> Cluster:
    """
    Query the endpoint's genesis hash and map it to a Cluster.

    Raises:
        EndpointUnreachable: the RPC call failed or timed out
    """
    try:
        resp = await asyncio.wait_for(client.get_genesis_hash(), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise EndpointUnreachable(rpc_url, f"getGenesisHash timed out after {timeout_s:.1f}s") from e
    except Exception as e:
        raise EndpointUnreachable(rpc_url, str(e)) from e

    genesis_hash = str(resp.value)
    cluster = cluster_from_genesis_hash(genesis_hash, strict=strict)
    Logger.debug(f"[CLUSTER] Genesis {genesis_hash} -> {cluster.value}")
    return cluster


async def check_expected_cluster(
    client: AsyncClient,
    expected: str,
    timeout_s: float = 30.0,
    strict: bool = False,
    rpc_url: str = "<rpc>",
) -> Optional[Cluster]:
    """
    Warn when the endpoint is not on the cluster the operator configured.

    Returns the resolved cluster, or None if the endpoint could not be reached.
    Never raises on mismatch; cranking a different cluster is allowed but loud.
    """
    try:
        actual = await identify_cluster(
            client, timeout_s=timeout_s, strict=strict, rpc_url=rpc_url
        )
    except EndpointUnreachable as e:
        Logger.warning(f"[CLUSTER] Could not verify cluster: {e}")
        return None

    if expected:
        wanted = Cluster.from_name(expected)
        if actual is not wanted:
            Logger.warning(
                f"[CLUSTER] RPC endpoint is on {actual.value}, expected {wanted.value}"
            )
        else:
            Logger.info(f"[CLUSTER] Connected to {actual.value}")
    else:
        Logger.info(f"[CLUSTER] Connected to {actual.value}")
    return actual
