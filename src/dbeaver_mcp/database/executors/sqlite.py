"""SQLite query executor."""

import logging
import sqlite3
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ...constants import SQLITE_PROGRESS_STEPS
from ...errors import ErrorKind
from ..connection import ConnectionHandle, ResolvedConnection
from ..results import RawResult
from .base import QueryExecutor

logger = logging.getLogger(__name__)

JDBC_PREFIX = "jdbc:sqlite:"


def database_path(resolved: ResolvedConnection) -> Optional[str]:
    """Database file from the database field, the JDBC URL, or the host."""
    if resolved.database:
        return resolved.database
    if resolved.url and resolved.url.lower().startswith(JDBC_PREFIX):
        return resolved.url[len(JDBC_PREFIX):] or None
    return resolved.host


class SQLiteExecutor(QueryExecutor):
    """SQLite executor; the database is a local file, no credentials needed."""

    engine = "SQLite"
    requires_user = False
    requires_password = False

    def resolve(self, connection):
        resolved = super().resolve(connection)
        return replace(resolved, database=database_path(resolved), host=None, port=None)

    def connect(self, resolved: ResolvedConnection) -> sqlite3.Connection:
        # mode=rw: a missing file is an error instead of a new empty database
        path = Path(resolved.database).expanduser()
        uri = f"{path.resolve().as_uri()}?mode=rw"
        connection = sqlite3.connect(
            uri,
            timeout=self.timeout,
            uri=True,
            check_same_thread=False,  # Interrupted from the caller's thread
            isolation_level=None,  # Autocommit: each statement stands alone
        )
        logger.debug(f"Connected to SQLite database: {path}")
        return connection

    def run(self, raw: sqlite3.Connection, query: str, handle: ConnectionHandle) -> RawResult:
        deadline = time.monotonic() + self.timeout

        def past_deadline() -> int:
            return 1 if handle.cancelled or time.monotonic() > deadline else 0

        raw.set_progress_handler(past_deadline, SQLITE_PROGRESS_STEPS)
        cursor = raw.cursor()
        try:
            cursor.execute(query)
            return self.fetch(cursor)
        finally:
            cursor.close()

    def interrupt(self, raw: sqlite3.Connection, statement=None) -> None:
        raw.interrupt()

    def classify_error(self, error: BaseException) -> Optional[ErrorKind]:
        if not isinstance(error, sqlite3.Error):
            return None
        message = str(error).lower()
        if "interrupted" in message or "locked" in message or "timeout" in message:
            return ErrorKind.TIMEOUT
        if "not authorized" in message or "authorization" in message:
            return ErrorKind.AUTHENTICATION
        return ErrorKind.GENERIC
