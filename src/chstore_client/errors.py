"""
Custom exceptions for the ClickHouse store client.

Provides structured error handling for the loader's retry and compaction paths.
"""

from __future__ import annotations

import re
from typing import Optional

_CODE_RE = re.compile(r"Code:\s*(\d+)")


class StoreOperationalError(Exception):
    """Base operational error for the store client."""

    pass


class StoreQueryError(StoreOperationalError):
    """The store answered an HTTP request with an exception."""

    def __init__(self, message: str, code: Optional[int] = None, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status = status

    def __str__(self) -> str:
        msg = super().__str__()
        if self.code is not None:
            return f"[{self.code}] {msg}"
        return msg


class FatalWriteError(StoreOperationalError):
    """A batch write failed with an error that retrying cannot fix."""

    def __init__(self, message: str, offset: int, size: int):
        super().__init__(message)
        self.offset = offset
        self.size = size


class FatalCompactionError(StoreOperationalError):
    """The merge command failed or timed out."""

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


def parse_exception_code(text: str, header: Optional[str] = None) -> Optional[int]:
    """Extract the numeric store error code from a response header or body."""
    if header:
        try:
            return int(header.strip())
        except ValueError:
            pass
    m = _CODE_RE.search(text or "")
    return int(m.group(1)) if m else None


def map_store_error(response) -> StoreQueryError:
    """Map a non-200 httpx response to a StoreQueryError."""
    text = response.text.strip()
    code = parse_exception_code(text, response.headers.get("X-ClickHouse-Exception-Code"))
    return StoreQueryError(text or f"HTTP {response.status_code}", code=code, status=response.status_code)
