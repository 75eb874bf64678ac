"""Drives the synchronization engine on a fixed period."""

import asyncio

import structlog

from gitsorted.synchronize.engine import SyncEngine
from gitsorted.synchronize.models import TickOutcome, TickState
from gitsorted.synchronize.results import TickResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SyncScheduler:
    """Fires a synchronization tick every ``interval`` seconds.

    Ticks start on a fixed period whether or not the previous one finished.
    A lock held for the whole tick keeps at most one tick in flight; a tick
    that would overlap is skipped. Exceptions escaping a tick are logged and
    never end the loop.
    """

    def __init__(self, engine: SyncEngine, interval: float) -> None:
        """Initialize the scheduler for an engine and a period in seconds."""
        if interval <= 0:
            raise ValueError("Scheduler interval must be a positive number of seconds")
        self.engine = engine
        self.interval = interval
        self.last_result: TickResult | None = None
        self._lock = asyncio.Lock()
        self._in_flight: asyncio.Task[TickResult] | None = None

    @property
    def tick_in_flight(self) -> bool:
        """Whether a tick is currently running."""
        return self._lock.locked()

    async def run_tick(self) -> TickResult:
        """Run one tick unless another one is still running."""
        if self._lock.locked():
            logger.warning("Previous synchronization tick still running, skipping this one", interval=self.interval)
            return TickResult(TickOutcome.SKIPPED, TickState.START)
        async with self._lock:
            try:
                result = await self.engine.run_tick()
            except Exception as exc:
                logger.exception("Unexpected error during synchronization tick", error=str(exc), error_type=type(exc).__name__)
                result = TickResult(TickOutcome.ABORTED, TickState.ABORT, error=exc)
            self.last_result = result
            return result

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Fire ticks until ``stop_event`` is set, then wait for the in-flight tick to finish."""
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        logger.info("Starting synchronization scheduler", interval=self.interval)
        while not stop_event.is_set():
            if self._in_flight is not None and not self._in_flight.done():
                logger.warning("Previous synchronization tick still running, skipping this one", interval=self.interval)
            else:
                self._in_flight = asyncio.create_task(self.run_tick())
            next_run += self.interval
            if next_run < loop.time():
                logger.warning("Scheduler fell behind, realigning period", interval=self.interval)
                next_run = loop.time() + self.interval
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=next_run - loop.time())
            except asyncio.TimeoutError:
                pass
        await self.drain()
        logger.info("Stopped synchronization scheduler")

    async def drain(self) -> None:
        """Wait for the in-flight tick, if any, to finish."""
        in_flight = self._in_flight
        if in_flight is not None and not in_flight.done():
            logger.info("Waiting for in-flight synchronization tick to finish")
            await asyncio.wait([in_flight])
