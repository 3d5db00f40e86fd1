"""
Utility functions for the store client.

Includes NDJSON encoding for streamed inserts and unit helpers.
"""

import json
from typing import Any, AsyncIterator, Iterable

GIB = 1024**3


def encode_row(row: Any) -> bytes:
    """Encode one row as a JSONEachRow line."""
    if hasattr(row, "model_dump_json"):
        return row.model_dump_json(by_alias=True).encode() + b"\n"
    if isinstance(row, dict):
        return json.dumps(row, separators=(",", ":"), default=str).encode() + b"\n"
    return json.dumps(vars(row), separators=(",", ":"), default=str).encode() + b"\n"


async def ndjson_chunks(
    rows: Iterable[Any], chunk_bytes: int = 256 * 1024, counter: list[int] | None = None
) -> AsyncIterator[bytes]:
    """Lazily encode rows into NDJSON chunks of roughly chunk_bytes each.

    The row iterable is consumed once, while the request body is being sent.
    If counter is given, counter[0] is incremented per row encoded.
    """
    buf = bytearray()
    for row in rows:
        buf += encode_row(row)
        if counter is not None:
            counter[0] += 1
        if len(buf) >= chunk_bytes:
            yield bytes(buf)
            buf.clear()
    if buf:
        yield bytes(buf)
