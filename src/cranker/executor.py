"""
Crank Executor
==============
Builds, signs, submits and verifies one accrue_interest crank.

Flow:
    AccrueInterestBuilder.build()      -> CrankRequest (pure)
            ↓
    sign + sendTransaction             -> signature (optionally confirmed)
            ↓
    getAccountInfo(savings_vault, processed)
            ↓
    CrankResult (success / SubmissionFailed / VaultNotFound)

Every RPC call is bounded by the configured timeout and abandoned as soon as
the shared stop event is set; nothing new is sent once shutdown has begun.

Success only means the savings vault account exists after the submission;
it does not prove interest was accrued this cycle.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed, Processed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from src.cranker.cluster import Cluster, identify_cluster
from src.cranker.errors import (
    CrankCancelled,
    CrankError,
    CrankTimeout,
    EndpointUnreachable,
    SubmissionFailed,
    VaultNotFound,
)
from src.cranker.instruction_builder import AccrueInterestBuilder, CrankRequest
from src.shared.config.cranker import CrankerConfig
from src.shared.system.logging import Logger


@dataclass
class CrankResult:
    """Outcome of a single crank cycle for one target."""

    success: bool
    target: str
    savings_vault: Optional[Pubkey] = None
    signature: str = ""
    error: Optional[CrankError] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def retryable(self) -> bool:
        return self.error is None or self.error.retryable

    def __repr__(self):
        status = "✅" if self.success else "❌"
        detail = self.signature[:16] if self.success else type(self.error).__name__
        return f"{status} CRANK {self.target} ({detail})"


class CrankExecutor:
    """
    Sends accrue_interest cranks through a shared AsyncClient.

    Usage:
        async with AsyncClient(config.rpc_url) as client:
            executor = CrankExecutor(client, cranker_keypair, config, stop_event=stop)
            result = await executor.execute(wallet, mint)
    """

    def __init__(
        self,
        client: AsyncClient,
        cranker: Keypair,
        config: CrankerConfig,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.client = client
        self.cranker = cranker
        self.config = config
        self.stop_event = stop_event
        self.builder = AccrueInterestBuilder(config.program_id, config.compute_units)

    @property
    def stopping(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    async def execute(self, wallet: Pubkey, mint: Pubkey, label: str = "") -> CrankResult:
        """Run one crank. Never raises CrankError; failures land in the result."""
        target = label or f"{str(wallet)[:8]}/{str(mint)[:8]}"
        savings_vault = None
        signature = ""

        try:
            request = self.builder.build(self.cranker.pubkey(), wallet, mint)
            savings_vault = request.savings_vault
            Logger.info(f"[CRANK] {target}: accrue_interest on vault {savings_vault}")

            signature = await self._submit(request)
            await self._verify_vault(request)
        except CrankError as e:
            if isinstance(e, CrankCancelled):
                Logger.warning(f"[CRANK] {target}: {e}")
            elif e.retryable:
                Logger.error(f"[CRANK] {target}: {type(e).__name__}: {e}")
            else:
                Logger.critical(f"[CRANK] {target}: {type(e).__name__}: {e}")
            return CrankResult(
                success=False,
                target=target,
                savings_vault=savings_vault,
                signature=getattr(e, "signature", None) or signature,
                error=e,
            )

        Logger.success(f"[CRANK] {target}: vault {savings_vault} verified (tx {signature})")
        return CrankResult(
            success=True,
            target=target,
            savings_vault=savings_vault,
            signature=signature,
        )

    async def _call(self, coro: Awaitable, operation: str, timeout: float):
        """
        Await one RPC call, bounded by `timeout` and raced against shutdown.

        Raises:
            CrankCancelled: the stop event was set before or during the call
            asyncio.TimeoutError: the call outlived `timeout`
        """
        if self.stopping:
            coro.close()
            raise CrankCancelled(operation)
        if self.stop_event is None:
            return await asyncio.wait_for(coro, timeout=timeout)

        call = asyncio.ensure_future(coro)
        stopper = asyncio.ensure_future(self.stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {call, stopper}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (call, stopper):
                if not task.done():
                    task.cancel()

        if call in done:
            return call.result()
        await asyncio.gather(call, return_exceptions=True)
        if stopper in done:
            raise CrankCancelled(operation)
        raise asyncio.TimeoutError(f"{operation} timed out after {timeout:.1f}s")

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def _submit(self, request: CrankRequest) -> str:
        timeout = self.config.rpc_timeout_s
        stage = "getLatestBlockhash"
        try:
            bh_resp = await self._call(
                self.client.get_latest_blockhash(Confirmed), stage, timeout
            )
            msg = MessageV0.try_compile(
                payer=self.cranker.pubkey(),
                instructions=request.instructions(),
                address_lookup_table_accounts=[],
                recent_blockhash=bh_resp.value.blockhash,
            )
            tx = VersionedTransaction(msg, [self.cranker])

            stage = "sendTransaction"
            resp = await self._call(
                self.client.send_transaction(
                    tx, opts=TxOpts(skip_confirmation=True, preflight_commitment=Confirmed)
                ),
                stage,
                timeout,
            )
        except CrankError:
            raise
        except asyncio.TimeoutError as e:
            raise CrankTimeout(stage, timeout) from e
        except Exception as e:
            raise SubmissionFailed(f"{stage} failed: {e}") from e

        signature = resp.value
        Logger.info(f"[CRANK] TX sent: {signature}")

        if self.config.confirm_transactions:
            await self._confirm(signature, bh_resp.value.last_valid_block_height)
        return str(signature)

    async def _confirm(self, signature, last_valid_block_height: Optional[int] = None) -> None:
        timeout = self.config.rpc_timeout_s
        try:
            resp = await self._call(
                self.client.confirm_transaction(
                    signature,
                    commitment=Confirmed,
                    last_valid_block_height=last_valid_block_height,
                ),
                "confirmTransaction",
                timeout,
            )
        except CrankCancelled as e:
            e.signature = str(signature)
            raise
        except asyncio.TimeoutError as e:
            err = CrankTimeout("confirmTransaction", timeout)
            err.signature = str(signature)
            raise err from e
        except Exception as e:
            raise SubmissionFailed(f"confirmTransaction failed: {e}", signature=str(signature)) from e

        statuses = resp.value or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise SubmissionFailed(
                f"accrue_interest failed on-chain: {status.err}", signature=str(signature)
            )

    # =========================================================================
    # VERIFICATION
    # =========================================================================

    async def _verify_vault(self, request: CrankRequest) -> None:
        savings_vault = request.savings_vault
        try:
            resp = await self._call(
                self.client.get_account_info(savings_vault, commitment=Processed),
                "getAccountInfo",
                self.config.rpc_timeout_s,
            )
            exists = resp.value is not None
        except CrankCancelled:
            raise
        except Exception as e:
            Logger.warning(f"[CRANK] Vault lookup for {savings_vault} failed: {e!r}")
            exists = False

        if exists:
            return

        cluster = await self._cluster_hint()
        raise VaultNotFound(
            savings_vault,
            cluster.value,
            cluster.explorer_address_url(savings_vault),
        )

    async def _cluster_hint(self) -> Cluster:
        """Best-effort cluster for diagnostics; mainnet-beta when unknown."""
        try:
            return await self._call(
                identify_cluster(
                    self.client,
                    timeout_s=self.config.rpc_timeout_s,
                    strict=self.config.strict_cluster_match,
                    rpc_url=self.config.rpc_url,
                ),
                "getGenesisHash",
                self.config.rpc_timeout_s,
            )
        except (EndpointUnreachable, asyncio.TimeoutError) as e:
            Logger.warning(f"[CLUSTER] {e}; assuming {Cluster.MAINNET.value}")
            return Cluster.MAINNET
