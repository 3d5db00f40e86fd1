"""Builds a ready-to-run IngestionController from loader settings."""

from __future__ import annotations

import random
from typing import Optional

import httpx

from chstore_client import ControlClient, IngestionClient, StoreConfig

from .coordinator import (
    CompactionScheduler,
    FeedbackBus,
    IngestionController,
    MemoryMonitor,
    RetryPolicy,
)
from .source import DrillEventSource, TimelineConfig


def build_store_config(settings) -> StoreConfig:
    return StoreConfig(
        url=settings.CLICKHOUSE_URL,
        username=settings.CLICKHOUSE_USER,
        password=settings.CLICKHOUSE_PASSWORD,
        database=settings.CLICKHOUSE_DATABASE,
        table=settings.TABLE,
        connect_timeout=settings.CONNECT_TIMEOUT_S,
        request_timeout=settings.REQUEST_TIMEOUT_S,
        compaction_timeout=settings.COMPACTION_TIMEOUT_S,
        memory_metric=settings.MEMORY_METRIC,
    )


def build_controller(
    settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    bus: Optional[FeedbackBus] = None,
    seed: Optional[int] = None,
) -> IngestionController:
    store = build_store_config(settings)
    control = ControlClient(store, transport=transport)
    monitor = MemoryMonitor(control, poll_seconds=settings.MEMORY_POLL_S)
    scheduler = CompactionScheduler(
        control,
        monitor,
        timeout=settings.COMPACTION_TIMEOUT_S,
        drain_after=settings.DRAIN_AFTER_COMPACTION,
        memory_safe_gb=settings.RAM_SAFE_GB,
    )
    rng = random.Random(seed) if seed is not None else None
    source = DrillEventSource(TimelineConfig.build(settings.TOTAL_ROWS, seed=seed), rng=rng)
    return IngestionController(
        source,
        IngestionClient(store, transport=transport),
        scheduler,
        monitor,
        retry_policy=RetryPolicy(
            backoff_seconds=settings.RETRY_WAIT_S, memory_safe_gb=settings.RAM_SAFE_GB
        ),
        sleep_every=settings.SLEEP_EVERY,
        sleep_seconds=settings.SLEEP_S,
        compact_after_final_cycle=settings.COMPACT_AFTER_FINAL_CYCLE,
        bus=bus,
        table=settings.TABLE,
    )
