"""
Crank Scheduler
===============
Per-target control loop: wake every check interval, crank when the target
is due, sleep again. Runs until the shared stop event is set.

States:
    IDLE -> DUE   when now - last_execution >= crank interval
                  (and any failure backoff has expired)
    DUE  -> IDLE  after the cycle, whatever its outcome
"""

import asyncio
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from src.cranker.errors import CrankCancelled
from src.cranker.executor import CrankExecutor, CrankResult
from src.shared.config.cranker import CrankerConfig, CrankTarget
from src.shared.system.logging import Logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleState(Enum):
    IDLE = "IDLE"
    DUE = "DUE"


class CrankScheduler:
    """
    Owns the schedule for exactly one (wallet, mint) target.

    Nothing is shared between schedulers except the executor (stateless per
    call) and the stop event, so one target failing never delays another.
    """

    def __init__(
        self,
        target: CrankTarget,
        executor: CrankExecutor,
        config: CrankerConfig,
        stop_event: Optional[asyncio.Event] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.target = target
        self.executor = executor
        self.config = config
        self.stop_event = stop_event or asyncio.Event()
        self.clock = clock

        self.interval = timedelta(seconds=config.crank_interval_s)
        self.state = ScheduleState.IDLE
        self.last_execution: Optional[datetime] = None
        self.retry_after: Optional[datetime] = None
        self.consecutive_failures = 0
        self.cycles = 0
        self.last_result: Optional[CrankResult] = None
        self.halted = False

    def start(self, now: Optional[datetime] = None) -> None:
        """Anchor the schedule at loop entry."""
        now = now or self.clock()
        if self.config.run_on_start:
            self.last_execution = now - self.interval
        else:
            self.last_execution = now
        Logger.info(f"[SCHED] {self.target.name}: next crank due {self.next_due().isoformat()}")

    def next_due(self) -> datetime:
        due = self.last_execution + self.interval
        if self.retry_after is not None and self.retry_after > due:
            return self.retry_after
        return due

    def is_due(self, now: datetime) -> bool:
        if self.last_execution is None:
            return False
        if now - self.last_execution < self.interval:
            return False
        if self.retry_after is not None and now < self.retry_after:
            return False
        return True

    async def tick(self) -> Optional[CrankResult]:
        """One gate check; returns the cycle result if a crank ran."""
        now = self.clock()
        if self.last_execution is None:
            self.start(now)
        if not self.is_due(now):
            return None

        self.state = ScheduleState.DUE
        self.cycles += 1
        try:
            result = await self.executor.execute(
                self.target.wallet, self.target.mint, label=self.target.name
            )
        finally:
            self.state = ScheduleState.IDLE

        self._record(result, now)
        return result

    def _record(self, result: CrankResult, started_at: datetime) -> None:
        self.last_result = result

        if isinstance(result.error, CrankCancelled):
            Logger.info(f"[SCHED] {self.target.name}: cycle abandoned for shutdown")
            return

        # The baseline only moves when a cycle succeeds. Resetting it on every
        # loop pass (as the first cranker did) meant the gate never opened.
        if result.success:
            self.last_execution = started_at
            self.retry_after = None
            self.consecutive_failures = 0
            Logger.info(f"[SCHED] {self.target.name}: next crank due {self.next_due().isoformat()}")
            return

        self.consecutive_failures += 1
        if not result.retryable:
            self.halted = True
            Logger.critical(f"[SCHED] {self.target.name}: unrecoverable failure, target halted")
            return

        backoff = min(
            self.config.retry_backoff_s * (2 ** (self.consecutive_failures - 1)),
            self.config.retry_backoff_max_s,
        )
        self.retry_after = started_at + timedelta(seconds=backoff)
        Logger.warning(
            f"[SCHED] {self.target.name}: failure #{self.consecutive_failures}, "
            f"retrying after {self.retry_after.isoformat()}"
        )

    async def run(self) -> None:
        """Loop until the stop event is set or the target is halted."""
        self.start()
        while not self.stop_event.is_set():
            try:
                await self.tick()
            except Exception as e:
                self.state = ScheduleState.IDLE
                self.consecutive_failures += 1
                Logger.error(f"[SCHED] {self.target.name}: unexpected error in cycle: {e!r}")

            if self.halted:
                break
            if await self._sleep(self.config.check_interval_s):
                break
        Logger.info(f"[SCHED] {self.target.name}: stopped after {self.cycles} cycle(s)")

    async def _sleep(self, seconds: float) -> bool:
        """Wait for `seconds` or until stopped. Returns True when stopped."""
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False
