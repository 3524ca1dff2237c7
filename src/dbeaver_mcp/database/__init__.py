"""Database execution for saved DBeaver connections.

Architecture:
- validation.py: query safety classification
- connection.py: property resolution and in-flight connection handles
- executors/: engine-specific executors (SQLite, PostgreSQL, SQL Server, MySQL)
  and the driver dispatcher
- results.py: uniform result shape and normalization
- formatting.py: plain-text rendering for tool output
"""

from dbeaver_mcp.database.executors import DriverDispatcher, QueryExecutor
from dbeaver_mcp.database.formatting import format_query_result
from dbeaver_mcp.database.results import QueryResult, normalize_result
from dbeaver_mcp.database.validation import SafetyLevel, SafetyVerdict, classify_query

__all__ = [
    "DriverDispatcher",
    "QueryExecutor",
    "format_query_result",
    "QueryResult",
    "normalize_result",
    "SafetyLevel",
    "SafetyVerdict",
    "classify_query",
]
