from __future__ import annotations

import re

# Settings attached to every batch insert. One insert produces exactly one part.
INSERT_SETTINGS: dict[str, int] = {
    "async_insert": 0,
    "optimize_on_insert": 0,
    "input_format_parallel_parsing": 0,
}

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def identifier(name: str) -> str:
    """Quote an identifier with backticks; plain names pass through unchanged."""
    if _IDENT_RE.match(name):
        return name
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


def literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def qualified(database: str, table: str) -> str:
    return f"{identifier(database)}.{identifier(table)}"


def insert_statement(database: str, table: str, fmt: str = "JSONEachRow") -> str:
    return f"INSERT INTO {qualified(database, table)} FORMAT {fmt}"


def optimize_statement(database: str, table: str) -> str:
    return f"OPTIMIZE TABLE {qualified(database, table)} FINAL"


def memory_metric_select(metric: str, source: str = "system.asynchronous_metrics") -> str:
    return f"SELECT value FROM {source} WHERE metric = {literal(metric)} FORMAT JSONEachRow"
