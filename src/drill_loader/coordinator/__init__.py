"""Ingestion coordinator

Sequential batch loader with:
- RetryPolicy with failure classification (transient vs fatal)
- MemoryMonitor for store memory backpressure
- CompactionScheduler (part-count and memory-watermark triggers)
- IngestionController orchestration
- FeedbackBus for progress/milestone events
"""

from .policy import (
    FailureKind,
    RetryPolicy,
    WriteOutcome,
    classify_failure,
    register_transient_code,
    register_transient_pattern,
)
from .backpressure import MemoryMonitor
from .compaction import CompactionScheduler
from .controller import IngestionController, BatchSpec, SessionState, plan_batch
from .feedback import FeedbackBus, IngestEvent, IngestEventKind

__all__ = [
    # policies
    "FailureKind",
    "RetryPolicy",
    "WriteOutcome",
    "classify_failure",
    "register_transient_code",
    "register_transient_pattern",
    # runtime
    "MemoryMonitor",
    "CompactionScheduler",
    "IngestionController",
    "BatchSpec",
    "SessionState",
    "plan_batch",
    # events
    "FeedbackBus",
    "IngestEvent",
    "IngestEventKind",
]
