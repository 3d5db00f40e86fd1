"""
Loader metrics in the Prometheus global REGISTRY.
Imported by the coordinator; the CLI optionally exposes them over HTTP.
"""

from prometheus_client import Counter, Gauge, Histogram


ROWS_INSERTED_TOTAL = Counter(
    "drill_loader_rows_inserted_total",
    "Rows acknowledged by the store",
    ["table"],
)

BATCHES_WRITTEN_TOTAL = Counter(
    "drill_loader_batches_written_total",
    "Batches (parts) acknowledged by the store",
    ["table"],
)

BATCH_RETRIES_TOTAL = Counter(
    "drill_loader_batch_retries_total",
    "Batch write retries by failure kind",
    ["kind"],
)

COMPACTIONS_TOTAL = Counter(
    "drill_loader_compactions_total",
    "Compactions by trigger reason and outcome",
    ["reason", "outcome"],
)

STORE_MEMORY_GB = Gauge(
    "drill_loader_store_memory_gb",
    "Last observed store resident memory in GB",
)

BATCH_WRITE_SECONDS = Histogram(
    "drill_loader_batch_write_seconds",
    "Latency of a single batch write attempt",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120],
)

COMPACTION_SECONDS = Histogram(
    "drill_loader_compaction_seconds",
    "Duration of compaction commands",
    buckets=[1, 5, 15, 30, 60, 120, 300, 600, 1200],
)


class MetricsRegistry:
    """Centralized access to loader metrics."""

    rows_inserted_total = ROWS_INSERTED_TOTAL
    batches_written_total = BATCHES_WRITTEN_TOTAL
    batch_retries_total = BATCH_RETRIES_TOTAL
    compactions_total = COMPACTIONS_TOTAL
    store_memory_gb = STORE_MEMORY_GB
    batch_write_seconds = BATCH_WRITE_SECONDS
    compaction_seconds = COMPACTION_SECONDS


# Singleton instance
metrics_registry = MetricsRegistry()
