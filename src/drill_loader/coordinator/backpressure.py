"""
Store memory backpressure.

MemoryMonitor reads the store's resident memory and blocks the ingestion
flow until it drops below a threshold. No timeout applies:
a store that never recovers keeps the loader waiting, visibly, in the logs
and the drill_loader_store_memory_gb gauge.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

from loguru import logger

from chstore_client.utils import GIB

from ..metrics.registry import metrics_registry
from .policy import FailureKind, classify_failure


class MetricReader(Protocol):
    async def read_metric(self, metric: Optional[str] = None) -> Optional[float]: ...


class MemoryMonitor:
    """Polls a store memory metric.

    Args:
        control: Anything exposing `read_metric()` (normally a ControlClient)
        poll_seconds: Interval between probes while waiting
        metric: Metric name; None uses the control client's default
        unit_bytes: Divisor turning the raw metric into GB
    """

    def __init__(
        self,
        control: MetricReader,
        *,
        poll_seconds: float = 5.0,
        metric: Optional[str] = None,
        unit_bytes: float = GIB,
        classifier: Callable[[BaseException], FailureKind] = classify_failure,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if poll_seconds < 0:
            raise ValueError("poll_seconds must be >= 0")
        self._control = control
        self.poll_seconds = poll_seconds
        self._metric = metric
        self._unit = unit_bytes
        self._classifier = classifier
        self._sleep = sleep
        self.last_reading: Optional[float] = None

    async def probe_memory_gb(self) -> float:
        """Current store memory in GB; 0.0 when the metric is not reported."""
        raw = await self._control.read_metric(self._metric)
        gb = 0.0 if raw is None else float(raw) / self._unit
        self.last_reading = gb
        metrics_registry.store_memory_gb.set(gb)
        logger.debug(f"Store memory: {gb:.2f} GB")
        return gb

    async def wait_until_safe(self, threshold_gb: float) -> int:
        """Block until memory is strictly below threshold_gb. Returns polls taken."""
        polls = 0
        while True:
            polls += 1
            try:
                gb: Optional[float] = await self.probe_memory_gb()
            except Exception as exc:
                if self._classifier(exc) is FailureKind.FATAL:
                    raise
                logger.warning(f"Memory probe failed ({type(exc).__name__}: {exc}); still waiting")
                gb = None

            if gb is not None and gb < threshold_gb:
                if polls > 1:
                    logger.info(f"Store memory {gb:.2f} GB < {threshold_gb} GB, resuming")
                return polls

            if gb is not None:
                logger.info(
                    f"⏳ Store memory {gb:.2f} GB >= {threshold_gb} GB, "
                    f"re-checking in {self.poll_seconds}s"
                )
            await self._sleep(self.poll_seconds)
