"""Plain-text rendering of connections and query results for tool output."""

from typing import Any, Iterable

from ..workspace.models import ConnectionSummary, ParseWarning
from .results import QueryResult
from .validation import SafetyVerdict

RESULT_SEPARATOR = "=" * 80
ROW_SEPARATOR = "-" * 80
NULL_TEXT = "NULL"


def format_value(value: Any) -> str:
    """Render one cell value."""
    if value is None:
        return NULL_TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        preview = data[:32].hex()
        return f"0x{preview}{'...' if len(data) > 32 else ''}"
    return str(value)


def format_query_result(result: QueryResult, query: str, connection_name: str = "unknown") -> str:
    """Format a query result as an aligned plain-text table.

    Args:
        result: Normalized query result
        query: The query that produced it
        connection_name: Display name of the connection

    Returns:
        Plain text with header, column-aligned rows and summary footer
    """
    header = [
        RESULT_SEPARATOR,
        "QUERY RESULTS",
        RESULT_SEPARATOR,
        f"Connection: {connection_name}",
        f"Query: {query}",
        f"Elapsed: {result.elapsed:.3f}s",
    ]

    if not result.columns:
        return "\n".join(
            header
            + [
                f"Result: statement executed, {result.row_count} row(s) affected",
                RESULT_SEPARATOR,
                "",
            ]
        )

    if not result.rows:
        return "\n".join(
            header
            + [
                f"Columns: {', '.join(result.columns)}",
                "Result: No rows returned (empty result set)",
                RESULT_SEPARATOR,
                "",
            ]
        )

    cells = [[format_value(value) for value in row] for row in result.rows]

    # Calculate column widths for alignment
    widths = [len(column) for column in result.columns]
    for row in cells:
        for index, value in enumerate(row):
            widths[index] = max(widths[index], len(value))

    output = header + [f"Rows returned: {result.row_count}", "", ROW_SEPARATOR]

    header_parts = ["Row#"]
    for column, width in zip(result.columns, widths):
        header_parts.append(column.ljust(width))
    output.append("  ".join(header_parts))
    output.append(ROW_SEPARATOR)

    for idx, row in enumerate(cells, start=1):
        row_parts = [f"{idx:4d}"]
        for value, width in zip(row, widths):
            row_parts.append(value.ljust(width))
        output.append("  ".join(row_parts))

    output.append(ROW_SEPARATOR)
    output.append(f"Total rows: {result.row_count}")
    if result.truncated:
        output.append(f"Note: result truncated at {result.row_count} rows")
    output.extend([RESULT_SEPARATOR, ""])

    return "\n".join(output)


def format_connections(summaries: Iterable[ConnectionSummary]) -> str:
    """List connections one per line with their endpoint."""
    summaries = list(summaries)
    if not summaries:
        return "No DBeaver connections found."

    lines = [f"DBeaver connections ({len(summaries)}):"]
    for summary in summaries:
        endpoint = summary.host or ""
        if summary.port:
            endpoint += f":{summary.port}"
        if summary.database:
            endpoint += f"/{summary.database}"
        flags = []
        if summary.connection_type:
            flags.append(summary.connection_type)
        if summary.read_only:
            flags.append("read-only")
        if not summary.has_password:
            flags.append("no saved password")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        folder = f"{summary.folder}/" if summary.folder else ""
        line = f"- {folder}{summary.name} (id: {summary.id}, driver: {summary.driver}) {endpoint}{suffix}"
        lines.append(line.rstrip())
    return "\n".join(lines)


def format_verdict(verdict: SafetyVerdict) -> str:
    confirm = "yes" if verdict.requires_confirmation else "no"
    return (
        f"Classification: {verdict.level.value}\n"
        f"Leading keyword: {verdict.keyword or 'unknown'}\n"
        f"Requires confirmation: {confirm}"
    )


def format_warnings(warnings: Iterable[ParseWarning]) -> str:
    warnings = list(warnings)
    if not warnings:
        return ""
    return "Warnings:\n" + "\n".join(f"  - {warning}" for warning in warnings)
