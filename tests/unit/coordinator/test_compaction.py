"""
Unit tests for CompactionScheduler.
"""

import asyncio

import pytest

from chstore_client.errors import FatalCompactionError, StoreQueryError
from drill_loader.coordinator import CompactionScheduler, MemoryMonitor
from fakes import FakeControl


def test_scheduled_rule_requires_full_cycle_and_remaining_rows():
    due = CompactionScheduler.due
    assert not due(4, 5, 1000)
    assert due(5, 5, 1000)
    # the final cycle is left to background merges unless asked
    assert not due(5, 5, 0)
    assert due(5, 5, 0, final_cycle=True)


@pytest.mark.asyncio
async def test_watermark_not_probed_before_first_part():
    control = FakeControl([99.0])
    scheduler = CompactionScheduler(control, MemoryMonitor(control))

    due, gb = await scheduler.watermark_due(0, 25.0)

    assert (due, gb) == (False, None)
    assert control.probes == 0


@pytest.mark.asyncio
async def test_watermark_fires_at_or_above_threshold():
    control = FakeControl([26.0, 25.0, 24.9])
    scheduler = CompactionScheduler(control, MemoryMonitor(control))

    assert await scheduler.watermark_due(1, 25.0) == (True, pytest.approx(26.0))
    assert (await scheduler.watermark_due(3, 25.0))[0] is True
    assert (await scheduler.watermark_due(3, 25.0))[0] is False


@pytest.mark.asyncio
async def test_watermark_skipped_on_transient_probe_failure():
    control = FakeControl([ConnectionResetError("reset"), 26.0])
    scheduler = CompactionScheduler(control, MemoryMonitor(control))

    assert await scheduler.watermark_due(1, 25.0) == (False, None)
    assert (await scheduler.watermark_due(1, 25.0))[0] is True
    assert control.probes == 2


@pytest.mark.asyncio
async def test_watermark_fatal_probe_failure_raises():
    control = FakeControl([StoreQueryError("Unknown table", code=60)])
    scheduler = CompactionScheduler(control, MemoryMonitor(control))

    with pytest.raises(StoreQueryError):
        await scheduler.watermark_due(1, 25.0)


@pytest.mark.asyncio
async def test_compact_runs_optimize_and_drains(sleeper):
    control = FakeControl([22.0, 15.0])
    monitor = MemoryMonitor(control, poll_seconds=1.0, sleep=sleeper)
    scheduler = CompactionScheduler(control, monitor, drain_after=True, memory_safe_gb=20.0)

    elapsed = await scheduler.compact("scheduled")

    assert elapsed >= 0
    assert control.optimize_calls == 1
    assert control.probes == 2
    assert sleeper.calls == [1.0]


@pytest.mark.asyncio
async def test_compact_without_drain_skips_memory_probe():
    control = FakeControl([50.0])
    scheduler = CompactionScheduler(control, MemoryMonitor(control), drain_after=False)

    await scheduler.compact("watermark")

    assert control.optimize_calls == 1
    assert control.probes == 0


@pytest.mark.asyncio
async def test_compact_failure_is_fatal_and_not_retried():
    control = FakeControl(fail_optimize=StoreQueryError("Cannot OPTIMIZE", code=388))
    scheduler = CompactionScheduler(control, drain_after=False)

    with pytest.raises(FatalCompactionError) as info:
        await scheduler.compact("scheduled")

    assert info.value.reason == "scheduled"
    assert isinstance(info.value.__cause__, StoreQueryError)
    assert control.optimize_calls == 1


@pytest.mark.asyncio
async def test_compact_timeout_is_fatal():
    class HangingControl:
        async def optimize(self, *, wait=True, timeout=None):
            await asyncio.sleep(10)

    scheduler = CompactionScheduler(HangingControl(), timeout=0.05, drain_after=False)

    with pytest.raises(FatalCompactionError):
        await scheduler.compact("scheduled")


def test_timeout_must_be_positive():
    with pytest.raises(ValueError):
        CompactionScheduler(FakeControl(), timeout=0)
