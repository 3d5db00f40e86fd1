"""
Unit tests for store error helpers.
"""

import httpx

from chstore_client import sql as q
from chstore_client.errors import StoreQueryError, map_store_error, parse_exception_code


def test_parse_code_prefers_header():
    assert parse_exception_code("Code: 60. Unknown table", "241") == 241


def test_parse_code_from_body():
    assert parse_exception_code("Code: 60. DB::Exception: Unknown table") == 60
    assert parse_exception_code("something else") is None
    assert parse_exception_code("Code: 27.", "not-a-number") == 27


def test_map_store_error():
    resp = httpx.Response(404, text="Code: 60. DB::Exception: Table default.x does not exist\n")
    err = map_store_error(resp)
    assert isinstance(err, StoreQueryError)
    assert err.code == 60
    assert err.status == 404
    assert str(err).startswith("[60] Code: 60.")


def test_map_store_error_empty_body():
    err = map_store_error(httpx.Response(502, text=""))
    assert err.code is None
    assert str(err) == "HTTP 502"


def test_statements_quote_unusual_identifiers():
    assert q.insert_statement("analytics", "drill_events") == "INSERT INTO analytics.drill_events FORMAT JSONEachRow"
    assert q.optimize_statement("my-db", "drill events") == "OPTIMIZE TABLE `my-db`.`drill events` FINAL"
    assert q.memory_metric_select("it's") == (
        "SELECT value FROM system.asynchronous_metrics WHERE metric = 'it\\'s' FORMAT JSONEachRow"
    )
