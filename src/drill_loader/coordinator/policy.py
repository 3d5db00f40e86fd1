"""
Retry policy for batch writes.

Failures are classified into transient kinds (retried forever after a fixed
backoff) and FATAL (surfaced immediately). The classification tables are
module-level so new transient signals can be registered without touching
the controller.
"""

from __future__ import annotations

import asyncio
import errno
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterator, Optional, Protocol

import httpx


class FailureKind(str, Enum):
    TRANSIENT_STORE = "transient_store"  # store-side overload (error code)
    TRANSIENT_MEMORY = "transient_memory"  # store out of memory
    TRANSIENT_CONNECTION = "transient_connection"  # reset / broken pipe
    FATAL = "fatal"

    @property
    def transient(self) -> bool:
        return self is not FailureKind.FATAL


# Store error codes known to clear up on their own.
TRANSIENT_CODES: dict[int, FailureKind] = {
    241: FailureKind.TRANSIENT_MEMORY,  # MEMORY_LIMIT_EXCEEDED
    252: FailureKind.TRANSIENT_STORE,  # TOO_MANY_PARTS
    253: FailureKind.TRANSIENT_STORE,
}

# Checked in order; memory first so an OOM that also mentions a reset stays a memory failure.
TRANSIENT_PATTERNS: list[tuple[re.Pattern, FailureKind]] = [
    (re.compile(r"MEMORY_LIMIT_EXCEEDED|Memory limit .*exceeded", re.I), FailureKind.TRANSIENT_MEMORY),
    (re.compile(r"ECONNRESET|EPIPE|connection reset|broken pipe", re.I), FailureKind.TRANSIENT_CONNECTION),
]

_CONNECTION_ERRNOS = {errno.ECONNRESET, errno.EPIPE}
_CONNECTION_TYPES: tuple[type[BaseException], ...] = (
    ConnectionResetError,
    BrokenPipeError,
    httpx.RemoteProtocolError,
    httpx.ReadError,
    httpx.WriteError,
)


def register_transient_code(code: int, kind: FailureKind) -> None:
    if not kind.transient:
        raise ValueError("only transient kinds can be registered")
    TRANSIENT_CODES[int(code)] = kind


def register_transient_pattern(pattern: str, kind: FailureKind) -> None:
    if not kind.transient:
        raise ValueError("only transient kinds can be registered")
    TRANSIENT_PATTERNS.append((re.compile(pattern, re.I), kind))


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__ or cur.__context__


def _code_of(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "code", None)
    if code is None or isinstance(code, bool):
        return None
    try:
        return int(code)
    except (TypeError, ValueError):
        return None


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception (and anything it was raised from) to a FailureKind."""
    for e in _chain(exc):
        code = _code_of(e)
        if code is not None and code in TRANSIENT_CODES:
            return TRANSIENT_CODES[code]
        if isinstance(e, _CONNECTION_TYPES):
            return FailureKind.TRANSIENT_CONNECTION
        if isinstance(e, OSError) and e.errno in _CONNECTION_ERRNOS:
            return FailureKind.TRANSIENT_CONNECTION
        msg = str(e)
        for pattern, kind in TRANSIENT_PATTERNS:
            if pattern.search(msg):
                return kind
    return FailureKind.FATAL


@dataclass(frozen=True)
class WriteOutcome:
    """Result of one write attempt: ok, or a classified failure."""

    kind: Optional[FailureKind] = None
    error: Optional[BaseException] = None
    rows: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is None

    @property
    def transient(self) -> bool:
        return self.kind is not None and self.kind.transient

    @classmethod
    def success(cls, rows: int) -> "WriteOutcome":
        return cls(rows=rows)

    @classmethod
    def failure(cls, error: BaseException, kind: FailureKind) -> "WriteOutcome":
        return cls(kind=kind, error=error)


class MemoryGate(Protocol):
    async def wait_until_safe(self, threshold_gb: float) -> int: ...


@dataclass
class RetryPolicy:
    """Fixed-backoff, unbounded retry for transient write failures.

    Attributes:
        backoff_seconds: Pause before resubmitting after any transient failure
        memory_safe_gb: After a memory failure, resubmission waits until the
            store reports less than this
        classifier: Maps exceptions to FailureKind
    """

    backoff_seconds: float = 10.0
    memory_safe_gb: float = 20.0
    classifier: Callable[[BaseException], FailureKind] = classify_failure
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def attempt(self, write: Callable[[], Awaitable[int]]) -> WriteOutcome:
        """Run one write; failures come back as a tagged outcome instead of raising."""
        try:
            rows = await write()
        except Exception as exc:
            return WriteOutcome.failure(exc, self.classifier(exc))
        return WriteOutcome.success(rows)

    async def recover(self, outcome: WriteOutcome, monitor: Optional[MemoryGate] = None) -> None:
        """Wait out a transient failure before the batch is resubmitted."""
        if not outcome.transient:
            raise ValueError(f"cannot recover from outcome kind={outcome.kind}")
        await self.sleep(self.backoff_seconds)
        if outcome.kind is FailureKind.TRANSIENT_MEMORY and monitor is not None:
            await monitor.wait_until_safe(self.memory_safe_gb)
