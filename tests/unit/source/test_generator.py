"""
Unit tests for the synthetic drill event source.
"""

import random
import types

import pytest

from drill_loader.source import DrillEvent, DrillEventSource, TimelineConfig
from drill_loader.source import pools


@pytest.fixture
def timeline():
    return TimelineConfig.build(1_000, now_ms=1_700_000_000_000, seed=42)


def test_timeline_shape(timeline):
    assert timeline.range_ms == 30 * 24 * 60 * 60 * 1_000
    assert timeline.start_ms == timeline.now_ms - timeline.range_ms
    assert timeline.step_ms == timeline.range_ms // 1_000
    assert len(timeline.disorder) == 10
    assert all(0 <= i < 1_000 for i in timeline.disorder)
    assert timeline.uid_pool == 70
    assert len(timeline.app_key) == 24


def test_timeline_is_immutable(timeline):
    with pytest.raises(Exception):
        timeline.total_rows = 5  # type: ignore


def test_timeline_seed_is_reproducible():
    a = TimelineConfig.build(500, now_ms=0, seed=1)
    b = TimelineConfig.build(500, now_ms=0, seed=1)
    assert a == b


def test_timeline_rejects_empty_load():
    with pytest.raises(ValueError):
        TimelineConfig.build(0)


def test_generate_is_lazy_and_exact(timeline):
    source = DrillEventSource(timeline, rng=random.Random(3))
    rows = source.generate(100, 25)

    assert isinstance(rows, types.GeneratorType)
    materialized = list(rows)
    assert len(materialized) == 25
    assert list(rows) == []  # single use


def test_rows_follow_index(timeline):
    source = DrillEventSource(timeline, rng=random.Random(3))
    for idx, row in zip(range(200, 260), source.generate(200, 60)):
        assert isinstance(row, DrillEvent)
        assert row.uid == idx % timeline.uid_pool
        assert row.id == row.lsid == row.sg["request_id"]
        assert row.id.endswith(f"_{row.uid}_{row.ts}")
        assert timeline.start_ms <= row.ts <= timeline.now_ms
        if idx not in timeline.disorder:
            assert row.ts == timeline.start_ms + idx * timeline.step_ms


def test_disordered_rows_stay_in_window(timeline):
    source = DrillEventSource(timeline, rng=random.Random(9))
    for idx in sorted(timeline.disorder):
        row = source.make_row(idx)
        assert abs(row.ts - (timeline.start_ms + idx * timeline.step_ms)) <= 2 * timeline.step_ms
        assert timeline.start_ms <= row.ts <= timeline.now_ms


def test_row_field_domains(timeline):
    row = DrillEventSource(timeline, rng=random.Random(5)).make_row(0)
    assert row.a == timeline.app_key
    assert row.e in pools.EVENT_TYPES
    assert row.cmp["c"] in pools.CMP_CHANNELS
    assert 1 <= row.c <= 5
    assert 0 <= row.s <= 1
    assert 100 <= row.dur <= 90_000
    assert row.up.brwv.startswith(f"[{row.up.brw}]_")
    segment_keys = [k for k in row.sg if k.startswith("k")]
    assert pools.SG_MIN_KEYS <= len(segment_keys) <= pools.SG_MAX_KEYS
    assert row.sg["ended"] in ("true", "false")


def test_same_seed_same_rows(timeline):
    a = list(DrillEventSource(timeline, rng=random.Random(11)).generate(0, 5))
    b = list(DrillEventSource(timeline, rng=random.Random(11)).generate(0, 5))
    assert a == b


def test_dump_uses_column_names(timeline):
    row = DrillEventSource(timeline, rng=random.Random(1)).make_row(3)
    dumped = row.model_dump(by_alias=True)
    assert set(dumped) == {"a", "e", "uid", "did", "lsid", "_id", "ts", "up", "custom", "cmp", "sg", "c", "s", "dur"}


def test_negative_range_rejected(timeline):
    source = DrillEventSource(timeline)
    with pytest.raises(ValueError):
        source.generate(-1, 10)
