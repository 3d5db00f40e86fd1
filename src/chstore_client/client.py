from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, fields
from typing import Any, AsyncIterator, Iterable, Optional

import httpx
from loguru import logger

from . import sql as q
from .errors import map_store_error
from .utils import ndjson_chunks


@dataclass
class StoreConfig:
    url: str = "http://localhost:8123"
    username: str = "default"
    password: str = ""
    database: str = "default"
    table: str = "drill_events"
    connect_timeout: float = 10.0
    request_timeout: float = 300.0
    # OPTIMIZE ... FINAL over a large table can run for many minutes
    compaction_timeout: float = 1200.0
    insert_format: str = "JSONEachRow"
    memory_metric: str = "MemoryResident"
    memory_metric_source: str = "system.asynchronous_metrics"

    @classmethod
    def from_dict(cls, config: dict) -> "StoreConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})


class _StoreHTTP:
    """Shared plumbing: a fresh, non-pooled HTTP client per operation."""

    def __init__(self, config: StoreConfig | dict, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._cfg = config if isinstance(config, StoreConfig) else StoreConfig.from_dict(config)
        self._transport = transport

    @property
    def config(self) -> StoreConfig:
        return self._cfg

    def _headers(self) -> dict[str, str]:
        headers = {"X-ClickHouse-User": self._cfg.username, "Connection": "close"}
        if self._cfg.password:
            headers["X-ClickHouse-Key"] = self._cfg.password
        return headers

    @asynccontextmanager
    async def _client(self, timeout: float) -> AsyncIterator[httpx.AsyncClient]:
        # keep-alive disabled: each operation gets its own connection
        async with httpx.AsyncClient(
            base_url=self._cfg.url,
            headers=self._headers(),
            timeout=httpx.Timeout(timeout, connect=self._cfg.connect_timeout),
            limits=httpx.Limits(max_keepalive_connections=0),
            transport=self._transport,
        ) as client:
            yield client

    def _params(self, query: str, **settings: Any) -> dict[str, Any]:
        return {"query": query, "database": self._cfg.database, **settings}


class IngestionClient(_StoreHTTP):
    """Performs one bounded write of a row sequence; holds no state between calls."""

    async def insert(self, rows: Iterable[Any], *, max_block_size: Optional[int] = None) -> int:
        """Stream rows into the target table as a single insert. Returns rows sent."""
        statement = q.insert_statement(self._cfg.database, self._cfg.table, self._cfg.insert_format)
        settings: dict[str, Any] = dict(q.INSERT_SETTINGS)
        if max_block_size:
            settings["max_insert_block_size"] = max_block_size

        sent = [0]
        async with self._client(self._cfg.request_timeout) as client:
            resp = await client.post(
                "/",
                params=self._params(statement, **settings),
                content=ndjson_chunks(rows, counter=sent),
            )
            if resp.status_code != 200:
                raise map_store_error(resp)
        logger.debug(f"Insert acknowledged: {sent[0]} rows into {self._cfg.table}")
        return sent[0]


class ControlClient(_StoreHTTP):
    """Administrative commands: health, metric reads, merges."""

    async def ping(self) -> bool:
        async with self._client(self._cfg.connect_timeout) as client:
            resp = await client.get("/ping")
            return resp.status_code == 200

    async def read_metric(self, metric: Optional[str] = None) -> Optional[float]:
        """Return the metric's value, or None when the store reports no such metric."""
        name = metric or self._cfg.memory_metric
        statement = q.memory_metric_select(name, self._cfg.memory_metric_source)
        async with self._client(self._cfg.request_timeout) as client:
            resp = await client.post("/", params=self._params(statement))
            if resp.status_code != 200:
                raise map_store_error(resp)
        for line in resp.text.splitlines():
            line = line.strip()
            if not line:
                continue
            value = json.loads(line).get("value")
            return float(value) if value is not None else None
        return None

    async def optimize(self, *, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Merge all parts of the target table. Blocks until done when wait is set."""
        statement = q.optimize_statement(self._cfg.database, self._cfg.table)
        settings = {"wait_end_of_query": 1} if wait else {}
        async with self._client(timeout or self._cfg.compaction_timeout) as client:
            resp = await client.post("/", params=self._params(statement, **settings))
            if resp.status_code != 200:
                raise map_store_error(resp)
