"""
Unit tests for MemoryMonitor.
"""

import pytest

from chstore_client.errors import StoreQueryError
from drill_loader.coordinator import MemoryMonitor
from fakes import FakeControl


@pytest.mark.asyncio
async def test_probe_converts_bytes_to_gb():
    monitor = MemoryMonitor(FakeControl([12.5]))
    assert await monitor.probe_memory_gb() == pytest.approx(12.5)
    assert monitor.last_reading == pytest.approx(12.5)


@pytest.mark.asyncio
async def test_missing_metric_reads_as_zero():
    monitor = MemoryMonitor(FakeControl([None]))
    assert await monitor.probe_memory_gb() == 0.0


@pytest.mark.asyncio
async def test_wait_returns_immediately_when_below_threshold(sleeper):
    control = FakeControl([5.0])
    monitor = MemoryMonitor(control, poll_seconds=5.0, sleep=sleeper)

    polls = await monitor.wait_until_safe(20.0)

    assert polls == 1
    assert sleeper.calls == []


@pytest.mark.asyncio
async def test_wait_polls_until_strictly_below_threshold(sleeper):
    # equal to the threshold is still unsafe
    control = FakeControl([27.0, 24.0, 20.0, 19.9])
    monitor = MemoryMonitor(control, poll_seconds=3.0, sleep=sleeper)

    polls = await monitor.wait_until_safe(20.0)

    assert polls == 4
    assert control.probes == 4
    assert sleeper.calls == [3.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_transient_probe_failure_keeps_waiting(sleeper):
    control = FakeControl([ConnectionResetError("reset"), 30.0, 1.0])
    monitor = MemoryMonitor(control, poll_seconds=1.0, sleep=sleeper)

    polls = await monitor.wait_until_safe(20.0)

    assert polls == 3
    assert len(sleeper.calls) == 2


@pytest.mark.asyncio
async def test_fatal_probe_failure_propagates(sleeper):
    control = FakeControl([StoreQueryError("Unknown table system.asynchronous_metrics", code=60)])
    monitor = MemoryMonitor(control, poll_seconds=1.0, sleep=sleeper)

    with pytest.raises(StoreQueryError):
        await monitor.wait_until_safe(20.0)


def test_negative_poll_interval_rejected():
    with pytest.raises(ValueError):
        MemoryMonitor(FakeControl(), poll_seconds=-1)
