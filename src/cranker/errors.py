"""
Cranker Error Taxonomy
======================
Every per-cycle failure is a CrankError. The executor converts them into a
CrankResult so nothing here ever escapes the scheduling loop.
"""

from typing import Optional


class CrankError(Exception):
    """Base class for all cranker failures."""

    retryable = True


class DerivationExhausted(CrankError):
    """No bump seed in [0, 255] produced an off-curve program address."""

    retryable = False

    def __init__(self, seeds, program_id):
        self.seeds = list(seeds)
        self.program_id = program_id
        super().__init__(
            f"Unable to find a viable program address bump for seeds "
            f"{[s.hex() for s in self.seeds]} under program {program_id}"
        )


class EndpointUnreachable(CrankError):
    """The RPC endpoint did not answer the genesis hash query."""

    def __init__(self, rpc_url: str, reason: str = ""):
        self.rpc_url = rpc_url
        msg = f"RPC endpoint {rpc_url} unreachable"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class SubmissionFailed(CrankError):
    """Sending (or confirming) the accrue_interest transaction failed."""

    def __init__(self, message: str, signature: Optional[str] = None):
        self.signature = signature
        super().__init__(message)


class VaultNotFound(CrankError):
    """The savings vault account could not be found after submission."""

    def __init__(self, savings_vault, cluster_label: str, explorer_url: str = ""):
        self.savings_vault = savings_vault
        self.cluster_label = cluster_label
        self.explorer_url = explorer_url
        msg = f"Savings vault account {savings_vault} does not exist on cluster {cluster_label}"
        if explorer_url:
            msg = f"{msg} ({explorer_url})"
        super().__init__(msg)


class CrankTimeout(SubmissionFailed):
    """An RPC call on the submission path exceeded the configured timeout."""

    def __init__(self, operation: str, timeout_s: float):
        self.operation = operation
        self.timeout_s = timeout_s
        super().__init__(f"{operation} timed out after {timeout_s:.1f}s")


class CrankCancelled(CrankError):
    """Shutdown was requested while a cycle was in flight."""

    def __init__(self, operation: str, signature: Optional[str] = None):
        self.operation = operation
        self.signature = signature
        super().__init__(f"Shutdown requested, abandoned {operation}")
