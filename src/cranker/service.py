"""
Cranker Service
===============
Wires config, RPC client, executor and one scheduler per target together,
and handles process shutdown.

Usage:
    service = CrankerService(CrankerConfig.from_settings(), keypair)
    asyncio.run(service.run())
"""

import asyncio
import signal
from typing import Callable, List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.keypair import Keypair

from src.cranker.cluster import check_expected_cluster
from src.cranker.executor import CrankExecutor, CrankResult
from src.cranker.scheduler import CrankScheduler
from src.shared.config.cranker import CrankerConfig
from src.shared.system.logging import Logger


def default_client_factory(config: CrankerConfig) -> AsyncClient:
    return AsyncClient(config.rpc_url, commitment=Confirmed, timeout=config.rpc_timeout_s)


class CrankerService:
    def __init__(
        self,
        config: CrankerConfig,
        cranker: Keypair,
        client_factory: Callable[[CrankerConfig], AsyncClient] = default_client_factory,
    ):
        self.config = config
        self.cranker = cranker
        self.client_factory = client_factory
        self.stop_event = asyncio.Event()
        self.schedulers: List[CrankScheduler] = []
        self._tasks: List[asyncio.Task] = []

    def stop(self) -> None:
        """First call asks cycles to wind down; a second call cancels them."""
        if not self.stop_event.is_set():
            Logger.warning("[SYSTEM] Shutdown requested, abandoning in-flight RPC calls")
            self.stop_event.set()
            return
        pending = [t for t in self._tasks if not t.done()]
        if pending:
            Logger.warning(f"[SYSTEM] Forced shutdown, cancelling {len(pending)} scheduler(s)")
            for task in pending:
                task.cancel()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops lack add_signal_handler; Ctrl+C still raises KeyboardInterrupt
                pass

    async def run(self, install_signal_handlers: bool = True) -> None:
        """Run every target's scheduler until stop() or a signal."""
        if not self.config.targets:
            Logger.warning("[SYSTEM] No crank targets configured, nothing to do")
            return

        if install_signal_handlers:
            self._install_signal_handlers()

        Logger.section("Savings Vault Cranker")
        Logger.info(f"[SYSTEM] Program {self.config.program_id} via {self.config.rpc_url}")
        Logger.info(
            f"[SYSTEM] {len(self.config.targets)} target(s), "
            f"interval {self.config.crank_interval_s / 86400:.1f}d, "
            f"check every {self.config.check_interval_s:.0f}s"
        )

        async with self.client_factory(self.config) as client:
            await check_expected_cluster(
                client,
                self.config.expected_cluster,
                timeout_s=self.config.rpc_timeout_s,
                strict=self.config.strict_cluster_match,
                rpc_url=self.config.rpc_url,
            )

            executor = CrankExecutor(
                client, self.cranker, self.config, stop_event=self.stop_event
            )
            self.schedulers = [
                CrankScheduler(target, executor, self.config, stop_event=self.stop_event)
                for target in self.config.targets
            ]

            self._tasks = [asyncio.create_task(s.run()) for s in self.schedulers]
            results = await asyncio.gather(*self._tasks, return_exceptions=True)
            for scheduler, outcome in zip(self.schedulers, results):
                if isinstance(outcome, asyncio.CancelledError):
                    Logger.warning(f"[SCHED] {scheduler.target.name} cancelled")
                elif isinstance(outcome, BaseException):
                    Logger.error(f"[SCHED] {scheduler.target.name} crashed: {outcome!r}")

        Logger.info("[SYSTEM] Cranker stopped")

    async def crank_all(self) -> List[CrankResult]:
        """One immediate crank per target, sequentially."""
        results = []
        async with self.client_factory(self.config) as client:
            executor = CrankExecutor(client, self.cranker, self.config)
            for target in self.config.targets:
                results.append(
                    await executor.execute(target.wallet, target.mint, label=target.name)
                )

        ok = sum(1 for r in results if r.success)
        Logger.info(f"[SYSTEM] Cranked {ok}/{len(results)} target(s)")
        return results

    async def identify(self) -> Optional[str]:
        async with self.client_factory(self.config) as client:
            cluster = await check_expected_cluster(
                client,
                self.config.expected_cluster,
                timeout_s=self.config.rpc_timeout_s,
                strict=self.config.strict_cluster_match,
                rpc_url=self.config.rpc_url,
            )
        return cluster.value if cluster else None
