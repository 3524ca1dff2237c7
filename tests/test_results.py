from __future__ import annotations

import sqlite3

import pytest

from dbeaver_mcp.database.formatting import format_query_result, format_value
from dbeaver_mcp.database.results import QueryResult, RawResult, ResultShapeError, normalize_result

DESCRIPTION = (("id", None, None, None, None, None, None), ("name", None, None, None, None, None, None))


def test_tuples_and_lists_are_aligned() -> None:
    result = normalize_result(RawResult(DESCRIPTION, rows=[(1, "a"), [2, "b"]]), elapsed=0.25)

    assert result.columns == ["id", "name"]
    assert result.rows == [[1, "a"], [2, "b"]]
    assert result.row_count == 2
    assert result.elapsed == 0.25


def test_mapping_rows_follow_column_order() -> None:
    rows = [{"name": "a", "id": 1}]

    result = normalize_result(RawResult(DESCRIPTION, rows=rows), elapsed=0.0)

    assert result.rows == [[1, "a"]]


def test_sqlite_row_objects() -> None:
    connection = sqlite3.connect(":memory:")
    connection.row_factory = sqlite3.Row
    cursor = connection.execute("SELECT 1 AS id, 'x' AS name")
    rows = cursor.fetchall()

    result = normalize_result(RawResult(cursor.description, rows=rows), elapsed=0.0)
    connection.close()

    assert result.columns == ["id", "name"]
    assert result.rows == [[1, "x"]]


def test_statement_without_result_set_reports_affected_rows() -> None:
    result = normalize_result(RawResult(None, rowcount=3), elapsed=0.1)

    assert result.columns == []
    assert result.rows == []
    assert result.row_count == 3


def test_unknown_rowcount_is_zero() -> None:
    assert normalize_result(RawResult(None, rowcount=-1), elapsed=0.0).row_count == 0


def test_width_mismatch_is_rejected() -> None:
    with pytest.raises(ResultShapeError, match="Row 1 has 1 values for 2 columns"):
        normalize_result(RawResult(DESCRIPTION, rows=[(1, "a"), (2,)]), elapsed=0.0)


def test_truncation_flag_is_kept() -> None:
    result = normalize_result(RawResult(DESCRIPTION, rows=[(1, "a")], truncated=True), elapsed=0.0)

    assert result.truncated is True
    assert result.to_dict()["truncated"] is True


def test_format_value() -> None:
    assert format_value(None) == "NULL"
    assert format_value(b"\x01\xff") == "0x01ff"
    assert format_value(b"\x00" * 40).endswith("...")
    assert format_value(3.5) == "3.5"


def test_format_query_result_table() -> None:
    result = QueryResult(columns=["id", "name"], rows=[[1, "alice"], [2, None]], row_count=2, elapsed=0.01)

    text = format_query_result(result, "SELECT id, name FROM users", "Local")

    assert "Connection: Local" in text
    assert "Rows returned: 2" in text
    assert "alice" in text
    assert "NULL" in text
    assert text.index("id") < text.index("name")


def test_format_statement_result() -> None:
    result = QueryResult(columns=[], rows=[], row_count=4, elapsed=0.0)

    assert "4 row(s) affected" in format_query_result(result, "UPDATE t SET a = 1")
