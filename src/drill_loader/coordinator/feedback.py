"""
Ingestion feedback events.

In-process pub/sub for progress, retry, backpressure and compaction
milestones. Subscribers (dashboards, tests, webhooks) observe the run
without affecting it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from loguru import logger


class IngestEventKind(str, Enum):
    """Milestones emitted by the ingestion controller."""

    PROGRESS = "progress"
    RETRY = "retry"
    BACKPRESSURE = "backpressure"
    COMPACTION_START = "compaction_start"
    COMPACTION_END = "compaction_end"
    COMPLETE = "complete"


@dataclass(frozen=True)
class IngestEvent:
    """Immutable snapshot of the session at the time of the event.

    Attributes:
        kind: What happened
        inserted: Rows acknowledged so far
        total_rows: Target row count for the run
        parts_since_compaction: Parts written since the last merge
        reason: Optional context (e.g., "scheduled", "watermark", failure kind)
        memory_gb: Store memory reading when one was taken
    """

    kind: IngestEventKind
    inserted: int
    total_rows: int
    parts_since_compaction: int = 0
    reason: str | None = None
    memory_gb: float | None = None

    @property
    def progress(self) -> float:
        """Fraction of the target inserted (0.0 to 1.0)."""
        return self.inserted / self.total_rows if self.total_rows > 0 else 0.0


class FeedbackSubscriber(Protocol):
    async def __call__(self, event: IngestEvent) -> None: ...


class FeedbackBus:
    """In-process pub/sub bus for ingestion events.

    Best-effort delivery: one subscriber's failure is logged and does not
    affect other subscribers or the ingestion run.

    Example:
        bus = FeedbackBus()

        async def on_event(event: IngestEvent):
            if event.kind is IngestEventKind.COMPLETE:
                await notify_done()

        bus.subscribe(on_event)
    """

    def __init__(self) -> None:
        self._subs: list[FeedbackSubscriber] = []

    def subscribe(self, callback: FeedbackSubscriber) -> None:
        if callback not in self._subs:
            self._subs.append(callback)
            logger.debug(f"Feedback subscriber added (total: {len(self._subs)})")

    def unsubscribe(self, callback: FeedbackSubscriber) -> None:
        """Remove a subscriber; no-op if it was never added."""
        try:
            self._subs.remove(callback)
            logger.debug(f"Feedback subscriber removed (total: {len(self._subs)})")
        except ValueError:
            pass

    async def publish(self, event: IngestEvent) -> None:
        if not self._subs:
            return

        logger.debug(
            f"Publishing ingest event: kind={event.kind.value} "
            f"inserted={event.inserted:,}/{event.total_rows:,} ({event.progress:.1%}) "
            f"subscribers={len(self._subs)}"
        )
        for callback in list(self._subs):
            try:
                await callback(event)
            except Exception as exc:
                logger.debug(f"Feedback subscriber error (ignored): {type(exc).__name__}: {exc}")

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)
