from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

from loguru import logger

from chstore_client.errors import FatalWriteError

from ..metrics.registry import metrics_registry
from .backpressure import MemoryMonitor
from .compaction import CompactionScheduler
from .feedback import FeedbackBus, IngestEvent, IngestEventKind
from .policy import FailureKind, RetryPolicy, WriteOutcome


class RecordSource(Protocol):
    def generate(self, offset: int, count: int) -> Iterable[Any]: ...


class BatchWriter(Protocol):
    async def insert(self, rows: Iterable[Any], *, max_block_size: Optional[int] = None) -> int: ...


@dataclass(frozen=True)
class BatchSpec:
    """Contiguous row range [offset, offset + size)."""

    offset: int
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size


def plan_batch(inserted: int, total_rows: int, batch_size: int) -> BatchSpec:
    return BatchSpec(offset=inserted, size=min(batch_size, total_rows - inserted))


@dataclass
class SessionState:
    """Progress of one run. Lost on restart; nothing is checkpointed."""

    total_rows: int
    inserted: int = 0
    parts_since_compaction: int = 0
    batches: int = 0
    retries: int = 0
    compactions: int = 0

    @property
    def remaining(self) -> int:
        return self.total_rows - self.inserted

    @property
    def done(self) -> bool:
        return self.inserted >= self.total_rows


class IngestionController:
    """Drives the load: one batch at a time, merges between cycles.

    Everything runs in the caller's task. A write, a probe and a merge never
    overlap, so the session state needs no locking.
    """

    def __init__(
        self,
        source: RecordSource,
        writer: BatchWriter,
        scheduler: CompactionScheduler,
        monitor: Optional[MemoryMonitor] = None,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        sleep_every: int = 20_000,
        sleep_seconds: float = 5.0,
        compact_after_final_cycle: bool = False,
        bus: Optional[FeedbackBus] = None,
        table: str = "drill_events",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if sleep_every < 0:
            raise ValueError("sleep_every must be >= 0")
        self._source = source
        self._writer = writer
        self._scheduler = scheduler
        self._monitor = monitor
        self._policy = retry_policy or RetryPolicy()
        self.sleep_every = sleep_every
        self.sleep_seconds = sleep_seconds
        self.compact_after_final_cycle = compact_after_final_cycle
        self._bus = bus or FeedbackBus()
        self._table = table
        self._sleep = sleep
        self.state: Optional[SessionState] = None

    @property
    def bus(self) -> FeedbackBus:
        return self._bus

    async def run(
        self,
        total_rows: int,
        batch_size: int,
        parts_per_cycle: int,
        ram_watermark_gb: float,
        *,
        start_offset: int = 0,
    ) -> SessionState:
        if total_rows <= 0:
            raise ValueError("total_rows must be > 0")
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if parts_per_cycle <= 0:
            raise ValueError("parts_per_cycle must be > 0")
        if not 0 <= start_offset <= total_rows:
            raise ValueError(f"start_offset must be within [0, {total_rows}]")

        state = SessionState(total_rows=total_rows, inserted=start_offset)
        self.state = state
        if start_offset:
            logger.info(f"Resuming at row {start_offset:,} (operator-supplied offset)")

        while not state.done:
            due, gb = await self._scheduler.watermark_due(state.parts_since_compaction, ram_watermark_gb)
            if due:
                logger.warning(f"Store memory {gb:.2f} GB >= watermark {ram_watermark_gb} GB")
                await self._compact("watermark", state, memory_gb=gb)

            batch = plan_batch(state.inserted, total_rows, batch_size)
            await self._submit(batch, state, batch_size)

            state.inserted += batch.size
            state.parts_since_compaction += 1
            state.batches += 1
            metrics_registry.rows_inserted_total.labels(table=self._table).inc(batch.size)
            metrics_registry.batches_written_total.labels(table=self._table).inc()
            logger.info(f"✔ {state.inserted:,} / {total_rows:,} inserted")
            await self._publish(IngestEventKind.PROGRESS, state)

            await self._throttle(state, batch)

            if self._scheduler.due(
                state.parts_since_compaction,
                parts_per_cycle,
                state.remaining,
                final_cycle=self.compact_after_final_cycle,
            ):
                await self._compact("scheduled", state)

        logger.success(f"🎉 Ingestion complete: {state.inserted:,} rows in {state.batches} batches")
        await self._publish(IngestEventKind.COMPLETE, state)
        return state

    # ---------- internals ----------

    async def _submit(self, batch: BatchSpec, state: SessionState, block_size: int) -> WriteOutcome:
        """Write one batch, retrying transient failures until it is acknowledged."""
        attempt = 0
        while True:
            attempt += 1
            t0 = time.monotonic()
            # rows are regenerated from the same offset on every attempt
            outcome = await self._policy.attempt(
                lambda: self._writer.insert(
                    self._source.generate(batch.offset, batch.size), max_block_size=block_size
                )
            )
            metrics_registry.batch_write_seconds.observe(time.monotonic() - t0)

            if outcome.ok:
                return outcome

            err = outcome.error
            if outcome.kind is FailureKind.FATAL:
                logger.error(
                    f"Batch [{batch.offset:,}, {batch.end:,}) failed fatally: "
                    f"{type(err).__name__}: {err}"
                )
                raise FatalWriteError(
                    f"write at offset {batch.offset} failed: {err!r}",
                    offset=batch.offset,
                    size=batch.size,
                ) from err

            state.retries += 1
            metrics_registry.batch_retries_total.labels(kind=outcome.kind.value).inc()
            logger.warning(
                f"⚠️  {outcome.kind.value} {str(err).strip()} – retry #{attempt} "
                f"of batch at {batch.offset:,} in {self._policy.backoff_seconds}s"
            )
            await self._publish(IngestEventKind.RETRY, state, reason=outcome.kind.value)
            if outcome.kind is FailureKind.TRANSIENT_MEMORY:
                await self._publish(IngestEventKind.BACKPRESSURE, state, reason=outcome.kind.value)
            await self._policy.recover(outcome, self._monitor)

    async def _throttle(self, state: SessionState, batch: BatchSpec) -> None:
        if not self.sleep_every or state.done:
            return
        if state.inserted // self.sleep_every > batch.offset // self.sleep_every:
            logger.info(f"⏳ Sleeping {self.sleep_seconds}s …")
            await self._sleep(self.sleep_seconds)

    async def _compact(self, reason: str, state: SessionState, memory_gb: Optional[float] = None) -> None:
        await self._publish(IngestEventKind.COMPACTION_START, state, reason=reason, memory_gb=memory_gb)
        await self._scheduler.compact(reason)
        state.parts_since_compaction = 0
        state.compactions += 1
        await self._publish(IngestEventKind.COMPACTION_END, state, reason=reason)

    async def _publish(
        self,
        kind: IngestEventKind,
        state: SessionState,
        *,
        reason: Optional[str] = None,
        memory_gb: Optional[float] = None,
    ) -> None:
        await self._bus.publish(
            IngestEvent(
                kind=kind,
                inserted=state.inserted,
                total_rows=state.total_rows,
                parts_since_compaction=state.parts_since_compaction,
                reason=reason,
                memory_gb=memory_gb,
            )
        )
