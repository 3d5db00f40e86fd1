from __future__ import annotations

import random
import time
import uuid
from dataclasses import dataclass
from typing import Iterator, Optional

from . import pools
from .models import DrillEvent, UserProperties

DAY_MS = 24 * 60 * 60 * 1_000


@dataclass(frozen=True)
class TimelineConfig:
    """Immutable timeline shared by every batch of one load.

    Events are spread evenly over [start_ms, now_ms]; indices in `disorder`
    are jittered by up to two steps to produce out-of-order timestamps.
    """

    total_rows: int
    now_ms: int
    range_ms: int
    disorder: frozenset
    app_key: str
    uid_pool: int

    @property
    def start_ms(self) -> int:
        return self.now_ms - self.range_ms

    @property
    def step_ms(self) -> int:
        return self.range_ms // self.total_rows

    @classmethod
    def build(
        cls,
        total_rows: int,
        *,
        now_ms: Optional[int] = None,
        range_days: int = 30,
        disorder_ratio: float = 0.01,
        uid_ratio: float = 0.07,
        seed: Optional[int] = None,
    ) -> "TimelineConfig":
        if total_rows <= 0:
            raise ValueError("total_rows must be > 0")
        rng = random.Random(seed)
        disorder = frozenset(rng.sample(range(total_rows), int(total_rows * disorder_ratio)))
        return cls(
            total_rows=total_rows,
            now_ms=now_ms if now_ms is not None else int(time.time() * 1_000),
            range_ms=range_days * DAY_MS,
            disorder=disorder,
            app_key=f"{rng.getrandbits(96):024x}",
            uid_pool=max(1, int(total_rows * uid_ratio)),
        )


class DrillEventSource:
    """Produces synthetic drill events for a contiguous index range.

    Rows are generated lazily; each call to generate() returns a fresh,
    single-use iterator.
    """

    def __init__(self, timeline: TimelineConfig, rng: Optional[random.Random] = None):
        self.timeline = timeline
        self._rng = rng or random.Random()

    def generate(self, offset: int, count: int) -> Iterator[DrillEvent]:
        if offset < 0 or count < 0:
            raise ValueError(f"invalid range offset={offset} count={count}")
        return (self.make_row(idx) for idx in range(offset, offset + count))

    # ---------- row construction ----------

    def _hex(self, nbytes: int) -> str:
        return f"{self._rng.getrandbits(nbytes * 8):0{nbytes * 2}x}"

    def _ts7d(self) -> int:
        return int((self.timeline.now_ms - self._rng.random() * 7 * DAY_MS) // 1_000)

    def _timestamp(self, idx: int) -> int:
        tl = self.timeline
        ts = tl.start_ms + idx * tl.step_ms
        if idx in tl.disorder:
            ts += self._rng.randint(-2 * tl.step_ms, 2 * tl.step_ms)
            ts = max(tl.start_ms, min(ts, tl.now_ms))
        return ts

    def _user_properties(self) -> UserProperties:
        r = self._rng
        browser = r.choice(pools.BROWSERS)
        return UserProperties(
            fs=self._ts7d(),
            ls=self._ts7d(),
            sc=r.randint(1, 3),
            d=r.choice(pools.PLATFORMS),
            cc=r.choice(pools.COUNTRY_CODES),
            p=r.choice(pools.OS_NAMES),
            pv=f"o{r.randint(10, 13)}:{r.randint(0, 5)}",
            av=f"{r.randint(1, 6)}:{r.randint(0, 10)}:{r.randint(0, 10)}",
            r=r.choice(pools.RESOLUTIONS),
            brw=browser,
            brwv=f"[{browser}]_{r.randint(100, 140)}:0:0:0",
            la=r.choice(pools.LANG_CODES),
            src=r.choice(pools.SOURCES),
            src_ch=r.choice(pools.SOURCE_CHANNELS),
            lv=r.choice(pools.VIEW_NAMES),
            hour=r.randint(0, 23),
            dow=r.randint(0, 6),
        )

    def make_row(self, idx: int) -> DrillEvent:
        r = self._rng
        ts = self._timestamp(idx)
        uid = idx % self.timeline.uid_pool
        event_id = f"{self._hex(20)}_{uid}_{ts}"

        keys = r.sample(pools.SG_KEYS, r.randint(pools.SG_MIN_KEYS, pools.SG_MAX_KEYS))
        sg = {k: r.choice(pools.SAMPLE_WORDS) for k in keys}
        sg.update(
            request_id=event_id,
            postfix=r.choice(pools.POSTFIXES),
            ended="true" if r.random() < 0.5 else "false",
        )

        return DrillEvent(
            a=self.timeline.app_key,
            e=r.choice(pools.EVENT_TYPES),
            uid=uid,
            did=str(uuid.UUID(int=r.getrandbits(128), version=4)),
            lsid=event_id,
            _id=event_id,
            ts=ts,
            up=self._user_properties(),
            custom=dict(r.choice(pools.CUSTOM_POOL)),
            cmp={"c": r.choice(pools.CMP_CHANNELS)},
            sg=sg,
            c=r.randint(1, 5),
            s=round(r.uniform(0, 1), 6),
            dur=r.randint(100, 90_000),
        )
