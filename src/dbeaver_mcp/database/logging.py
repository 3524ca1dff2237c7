"""JSON audit records for engine connections and query executions.

Records never carry credential values: targets are credential-free
descriptions, queries are hashed and previewed, and driver error text is
passed through ``redact`` before it is logged.
"""

import hashlib
import json
import logging
import re
import time
from typing import Any, Optional

db_logger = logging.getLogger("dbeaver_mcp.database")

QUERY_PREVIEW_CHARS = 100
URL_USERINFO = re.compile(r"://([^/@:]+):([^/@]*)@")


def redact(text: str, *secrets: Optional[str]) -> str:
    """Mask credential values and URL userinfo in a string.

    Args:
        text: Text that may contain credentials (driver error, URL)
        secrets: Values that must never appear in the output

    Returns:
        Text with secrets replaced by ``***``
    """
    text = URL_USERINFO.sub(r"://\1:***@", text)
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def hash_query(query: str) -> str:
    """Short SHA-256 fingerprint used to correlate records of one query."""
    return hashlib.sha256(query.encode()).hexdigest()[:16]


def preview_query(query: str) -> str:
    query = " ".join(query.split())
    if len(query) > QUERY_PREVIEW_CHARS:
        return query[:QUERY_PREVIEW_CHARS] + "..."
    return query


def _emit(level: int, record: dict[str, Any]) -> None:
    db_logger.log(level, json.dumps(record, default=str))


def log_connection(target: str, success: bool, error: Optional[str] = None, duration: float = 0.0) -> None:
    """Record one attempt to open an engine connection.

    Args:
        target: Credential-free endpoint, e.g. ``user@host:port/db``
        success: Whether the connection was opened
        error: Redacted driver error when it was not
        duration: Seconds spent connecting
    """
    record = {
        "event": "engine_connect",
        "target": redact(target),
        "success": success,
        "duration_seconds": round(duration, 3),
    }
    if error:
        record["error"] = error
    _emit(logging.INFO if success else logging.ERROR, record)


def log_query_execution(
    query: str,
    target: str,
    success: bool,
    row_count: int = 0,
    duration: float = 0.0,
    error: Optional[str] = None,
    blocked: bool = False,
    classification: Optional[str] = None,
) -> None:
    """Record one query, executed or refused.

    Refused queries (read-only connection, missing confirmation) are logged
    at WARNING with their safety classification so they stand out in audits.

    Args:
        query: SQL text; only its hash and a one-line preview are logged
        target: Credential-free endpoint or connection name
        success: Whether the engine returned a result
        row_count: Rows returned or affected
        duration: Seconds from connect to teardown
        error: Redacted failure detail
        blocked: Refused before reaching the engine
        classification: Safety level of the query
    """
    record = {
        "event": "query_blocked" if blocked else "query_execution",
        "query_hash": hash_query(query),
        "query_preview": preview_query(query),
        "target": redact(target),
        "success": success,
        "row_count": row_count,
        "duration_seconds": round(duration, 3),
        "timestamp": time.time(),
        "blocked": blocked,
    }
    if classification:
        record["classification"] = classification
    if error:
        record["error"] = error

    if blocked:
        level = logging.WARNING
    elif success:
        level = logging.INFO
    else:
        level = logging.ERROR
    _emit(level, record)


class QueryTimer:
    """Measures wall time of a block; ``elapsed`` also works mid-block."""

    def __init__(self):
        self.started = 0.0
        self.duration = 0.0

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, *exc_info):
        self.duration = time.perf_counter() - self.started

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started
