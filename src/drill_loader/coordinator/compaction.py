"""
Compaction (merge) scheduling.

Two triggers close a cycle of parts: a fixed part count and a memory
watermark. The merge itself is one blocking command; it is never retried,
since a failed or timed-out merge leaves the table state uncertain and must
stop the load loudly.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional, Protocol

from loguru import logger

from chstore_client.errors import FatalCompactionError

from ..metrics.registry import metrics_registry
from .backpressure import MemoryMonitor
from .policy import FailureKind, classify_failure


class Compactor(Protocol):
    async def optimize(self, *, wait: bool = True, timeout: Optional[float] = None) -> None: ...


class CompactionScheduler:
    """Decides when to merge and runs the merge.

    Args:
        control: Client issuing the merge (normally a ControlClient)
        monitor: Memory monitor for watermark checks and post-merge drain
        timeout: Upper bound on one merge, in seconds
        drain_after: Wait for memory to fall below memory_safe_gb after a merge
        memory_safe_gb: Threshold used by the post-merge drain
    """

    def __init__(
        self,
        control: Compactor,
        monitor: Optional[MemoryMonitor] = None,
        *,
        timeout: float = 1200.0,
        drain_after: bool = True,
        memory_safe_gb: float = 20.0,
        classifier: Callable[[BaseException], FailureKind] = classify_failure,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._control = control
        self._monitor = monitor
        self.timeout = timeout
        self.drain_after = drain_after
        self.memory_safe_gb = memory_safe_gb
        self._classifier = classifier

    @staticmethod
    def due(parts_since: int, parts_per_cycle: int, rows_remaining: int, *, final_cycle: bool = False) -> bool:
        """Scheduled rule: the cycle is full and (normally) more rows are coming."""
        if parts_since < parts_per_cycle:
            return False
        return rows_remaining > 0 or final_cycle

    async def watermark_due(self, parts_since: int, watermark_gb: float) -> tuple[bool, Optional[float]]:
        """Watermark rule. Memory is only probed once at least one part exists.

        A transient probe failure skips the check for this batch; fatal ones raise.
        """
        if parts_since < 1 or self._monitor is None:
            return False, None
        try:
            gb = await self._monitor.probe_memory_gb()
        except Exception as exc:
            if self._classifier(exc) is FailureKind.FATAL:
                raise
            logger.warning(f"Watermark probe failed ({type(exc).__name__}: {exc}); skipping check")
            return False, None
        return gb >= watermark_gb, gb

    async def compact(self, reason: str) -> float:
        """Merge the whole table and wait for completion. Returns elapsed seconds."""
        logger.info(f"🔄 OPTIMIZE FINAL ({reason}) …")
        t0 = time.monotonic()
        try:
            await asyncio.wait_for(
                self._control.optimize(wait=True, timeout=self.timeout), timeout=self.timeout
            )
        except Exception as exc:
            metrics_registry.compactions_total.labels(reason=reason, outcome="error").inc()
            logger.error(f"Compaction ({reason}) failed: {type(exc).__name__}: {exc}")
            raise FatalCompactionError(f"compaction failed: {exc!r}", reason=reason) from exc

        elapsed = time.monotonic() - t0
        metrics_registry.compactions_total.labels(reason=reason, outcome="ok").inc()
        metrics_registry.compaction_seconds.observe(elapsed)
        logger.success(f"✅ Merge finished in {elapsed:.1f}s ({reason})")

        if self.drain_after and self._monitor is not None:
            await self._monitor.wait_until_safe(self.memory_safe_gb)
        return elapsed
