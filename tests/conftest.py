"""
Pytest configuration and fixtures for drill-loader.

Provides cross-platform event loop configuration and shared store settings.
"""

import asyncio
import sys

import pytest

from chstore_client import StoreConfig

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


@pytest.fixture
def mock_url():
    """Mock ClickHouse HTTP endpoint for testing."""
    return "http://clickhouse.test:8123"


@pytest.fixture
def store_config(mock_url):
    """Store configuration pointing at the mock endpoint."""
    return StoreConfig(
        url=mock_url,
        username="loader",
        password="secret",
        database="analytics",
        table="drill_events",
        compaction_timeout=30.0,
    )
