import asyncio
import json
import random
import sys
from typing import Optional

import typer
from loguru import logger
from prometheus_client import start_http_server

from chstore_client import ControlClient
from drill_loader import build_controller, build_store_config
from drill_loader.coordinator import CompactionScheduler, MemoryMonitor
from drill_loader.source import DrillEventSource, TimelineConfig
from loaderctl.config import get_settings

app = typer.Typer(help="Bulk loader CLI (ingest, merge, memory probes)")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@app.callback()
def main(log_level: str = typer.Option("INFO", "--log-level", help="Loguru level")):
    _configure_logging(log_level)


@app.command()
def run(
    total_rows: Optional[int] = typer.Option(None, "--total-rows", help="Rows to load"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Rows per insert (one part)"),
    parts_per_cycle: Optional[int] = typer.Option(
        None, "--parts-per-cycle", help="Merge after this many parts"
    ),
    ram_watermark_gb: Optional[float] = typer.Option(
        None, "--ram-watermark-gb", help="Merge early when store memory reaches this"
    ),
    resume_from: int = typer.Option(0, "--resume-from", help="Row offset to start from"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for synthetic data"),
    metrics_port: Optional[int] = typer.Option(None, "--metrics-port", help="Expose /metrics"),
):
    """Load synthetic drill events until the target row count is reached."""
    settings = get_settings()
    total = total_rows if total_rows is not None else settings.TOTAL_ROWS
    if total != settings.TOTAL_ROWS:
        settings = settings.model_copy(update={"TOTAL_ROWS": total})

    port = metrics_port if metrics_port is not None else settings.METRICS_PORT
    if port:
        start_http_server(port)
        logger.info(f"Metrics exposed on :{port}/metrics")

    try:
        controller = build_controller(settings, seed=seed)
        state = asyncio.run(
            controller.run(
                total,
                batch_size if batch_size is not None else settings.BATCH_SIZE,
                parts_per_cycle if parts_per_cycle is not None else settings.PARTS_PER_CYCLE,
                ram_watermark_gb if ram_watermark_gb is not None else settings.RAM_WATERMARK_GB,
                start_offset=resume_from,
            )
        )
    except Exception as e:
        logger.error(f"Ingestion failed: {type(e).__name__}: {e}")
        sys.exit(1)

    typer.echo(
        json.dumps(
            {
                "inserted": state.inserted,
                "batches": state.batches,
                "retries": state.retries,
                "compactions": state.compactions,
            },
            indent=2,
        )
    )


@app.command("probe-memory")
def probe_memory():
    """Print the store's current resident memory in GB."""
    settings = get_settings()
    try:
        monitor = MemoryMonitor(ControlClient(build_store_config(settings)))
        gb = asyncio.run(monitor.probe_memory_gb())
    except Exception as e:
        logger.error(f"Memory probe failed: {e}")
        sys.exit(1)
    typer.echo(json.dumps({"memory_gb": round(gb, 3)}, indent=2))


@app.command()
def compact(
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds before giving up"),
    drain: bool = typer.Option(False, "--drain/--no-drain", help="Wait for memory afterwards"),
):
    """Run OPTIMIZE TABLE … FINAL on the target table."""
    settings = get_settings()
    control = ControlClient(build_store_config(settings))
    scheduler = CompactionScheduler(
        control,
        MemoryMonitor(control, poll_seconds=settings.MEMORY_POLL_S),
        timeout=timeout if timeout is not None else settings.COMPACTION_TIMEOUT_S,
        drain_after=drain,
        memory_safe_gb=settings.RAM_SAFE_GB,
    )
    try:
        elapsed = asyncio.run(scheduler.compact("manual"))
    except Exception as e:
        logger.error(f"Compaction failed: {e}")
        sys.exit(1)
    typer.echo(json.dumps({"ok": True, "seconds": round(elapsed, 2)}, indent=2))


@app.command()
def ping():
    """Check the store answers on its HTTP interface."""
    settings = get_settings()
    try:
        ok = asyncio.run(ControlClient(build_store_config(settings)).ping())
    except Exception as e:
        logger.error(f"Ping failed: {e}")
        ok = False
    typer.echo(json.dumps({"ok": ok}, indent=2))
    if not ok:
        sys.exit(1)


@app.command()
def sample(
    count: int = typer.Argument(5, help="Rows to print"),
    offset: int = typer.Option(0, "--offset"),
    total_rows: Optional[int] = typer.Option(None, "--total-rows"),
    seed: Optional[int] = typer.Option(None, "--seed"),
):
    """Print synthetic rows as NDJSON without touching the store."""
    total = total_rows or get_settings().TOTAL_ROWS
    rng = random.Random(seed) if seed is not None else None
    source = DrillEventSource(TimelineConfig.build(total, seed=seed), rng=rng)
    for row in source.generate(offset, count):
        typer.echo(row.model_dump_json(by_alias=True))


if __name__ == "__main__":
    app()
