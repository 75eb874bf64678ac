"""Unit tests for the SyncScheduler single-flight guard and shutdown."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from gitsorted.synchronize.models import TickOutcome, TickState
from gitsorted.synchronize.results import TickResult
from gitsorted.synchronize.scheduler import SyncScheduler


class GatedEngine:
    """Engine whose ticks block until released."""

    def __init__(self) -> None:
        """Initialize a closed gate."""
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0
        self.finished = 0

    async def run_tick(self) -> TickResult:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        self.finished += 1
        return TickResult(TickOutcome.NOTHING_NEW, TickState.DONE)


@pytest.mark.parametrize("interval", [0, -1.5])
def test_scheduler_rejects_non_positive_interval(interval: float) -> None:
    """Test that a non-positive period is rejected."""
    with pytest.raises(ValueError):
        SyncScheduler(MagicMock(), interval=interval)


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped() -> None:
    """Test that a tick requested while another runs is skipped, not queued."""
    engine = GatedEngine()
    scheduler = SyncScheduler(engine, interval=10)  # type: ignore[arg-type]

    first = asyncio.create_task(scheduler.run_tick())
    await engine.started.wait()
    assert scheduler.tick_in_flight

    skipped = await scheduler.run_tick()
    assert skipped.outcome == TickOutcome.SKIPPED
    assert engine.calls == 1

    engine.release.set()
    result = await first
    assert result.outcome == TickOutcome.NOTHING_NEW
    assert scheduler.last_result is result
    assert not scheduler.tick_in_flight


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained() -> None:
    """Test that an exception escaping the engine becomes an aborted tick."""
    engine = MagicMock()
    engine.run_tick = AsyncMock(side_effect=[RuntimeError("boom"), TickResult(TickOutcome.NOTHING_NEW, TickState.DONE)])
    scheduler = SyncScheduler(engine, interval=10)

    result = await scheduler.run_tick()
    assert result.outcome == TickOutcome.ABORTED
    assert isinstance(result.error, RuntimeError)

    result = await scheduler.run_tick()
    assert result.outcome == TickOutcome.NOTHING_NEW


@pytest.mark.asyncio
async def test_run_forever_fires_repeatedly_until_stopped() -> None:
    """Test that ticks fire on the period and the loop ends when stopped."""
    engine = MagicMock()
    engine.run_tick = AsyncMock(return_value=TickResult(TickOutcome.NOTHING_NEW, TickState.DONE))
    scheduler = SyncScheduler(engine, interval=0.01)
    stop_event = asyncio.Event()

    runner = asyncio.create_task(scheduler.run_forever(stop_event))
    while engine.run_tick.await_count < 3:
        await asyncio.sleep(0.01)
    stop_event.set()
    await asyncio.wait_for(runner, timeout=5)

    assert engine.run_tick.await_count >= 3


@pytest.mark.asyncio
async def test_run_forever_skips_while_tick_in_flight_and_drains_on_stop() -> None:
    """Test that a slow tick is never overlapped and is allowed to finish on shutdown."""
    engine = GatedEngine()
    scheduler = SyncScheduler(engine, interval=0.01)  # type: ignore[arg-type]
    stop_event = asyncio.Event()

    runner = asyncio.create_task(scheduler.run_forever(stop_event))
    await engine.started.wait()
    # Several periods pass while the first tick is blocked.
    await asyncio.sleep(0.05)
    assert engine.calls == 1

    stop_event.set()
    await asyncio.sleep(0.02)
    assert not runner.done()

    engine.release.set()
    await asyncio.wait_for(runner, timeout=5)
    assert engine.finished == 1
    assert scheduler.last_result is not None
    assert scheduler.last_result.outcome == TickOutcome.NOTHING_NEW
