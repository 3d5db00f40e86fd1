"""
Fixtures for coordinator unit tests.
"""

import pytest

from fakes import FakeSource, SleepRecorder


@pytest.fixture
def event_log():
    """Shared, ordered record of writes, probes, merges and sleeps."""
    return []


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def sleeper(event_log):
    return SleepRecorder(event_log)
