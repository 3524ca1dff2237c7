"""Uniform query result shape and normalization of engine results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass
class RawResult:
    """What an executor captured from its cursor, before normalization.

    ``description`` is the DB-API ``cursor.description`` (None for
    statements that return no rows); ``rows`` may hold tuples, lists,
    mappings or row objects depending on the engine.
    """

    description: Optional[Sequence[Sequence[Any]]]
    rows: list[Any] = field(default_factory=list)
    rowcount: int = -1
    truncated: bool = False


@dataclass
class QueryResult:
    """Columns in engine order, aligned rows, row count and elapsed seconds."""

    columns: list[str]
    rows: list[list[Any]]
    row_count: int
    elapsed: float
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": self.columns,
            "rows": self.rows,
            "row_count": self.row_count,
            "elapsed_seconds": round(self.elapsed, 3),
            "truncated": self.truncated,
        }


class ResultShapeError(ValueError):
    """A row does not line up with the reported columns."""


def _row_values(row: Any, columns: list[str]) -> list[Any]:
    if isinstance(row, Mapping):
        return [row.get(column) for column in columns]
    if hasattr(row, "keys") and not isinstance(row, (tuple, list)):
        # sqlite3.Row and similar: positional access is the engine order
        return [row[index] for index in range(len(row))]
    return list(row)


def normalize_result(raw: RawResult, elapsed: float) -> QueryResult:
    """Convert an engine result into a QueryResult.

    Args:
        raw: Captured cursor output
        elapsed: Execution time in seconds

    Returns:
        QueryResult whose rows all have one value per column

    Raises:
        ResultShapeError: If a row's width differs from the column count
    """
    if raw.description is None:
        return QueryResult(
            columns=[],
            rows=[],
            row_count=max(raw.rowcount, 0),
            elapsed=elapsed,
        )

    columns = [str(column[0]) for column in raw.description]
    rows = []
    for index, row in enumerate(raw.rows):
        values = _row_values(row, columns)
        if len(values) != len(columns):
            raise ResultShapeError(
                f"Row {index} has {len(values)} values for {len(columns)} columns"
            )
        rows.append(values)

    return QueryResult(
        columns=columns,
        rows=rows,
        row_count=len(rows),
        elapsed=elapsed,
        truncated=raw.truncated,
    )
