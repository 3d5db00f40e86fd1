"""
Drill Loader

Bulk loader that streams synthetic drill events into ClickHouse in bounded
batches, with retry, memory backpressure and scheduled merges.

Usage:
    from drill_loader import build_controller
    from loaderctl.config import get_settings

    controller = build_controller(get_settings())
    state = await controller.run(10_000_000, 10_000, 5, 25.0)
"""

from .wiring import build_controller, build_store_config

__version__ = "1.0.0"
__all__ = ["build_controller", "build_store_config"]
