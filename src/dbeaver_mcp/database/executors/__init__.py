"""Query executors for different database engines and driver dispatch."""

from typing import Callable, Iterable, Optional

from ...constants import DB_MAX_ROWS, DB_QUERY_TIMEOUT
from ...errors import NotSupportedError
from .base import QueryExecutor
from .mysql import MySQLExecutor
from .postgresql import PostgreSQLExecutor
from .sqlite import SQLiteExecutor
from .sqlserver import SQLServerExecutor

__all__ = [
    "DriverDispatcher",
    "QueryExecutor",
    "MySQLExecutor",
    "PostgreSQLExecutor",
    "SQLiteExecutor",
    "SQLServerExecutor",
    "contains_any",
]


def contains_any(*needles: str) -> Callable[[str], bool]:
    """Predicate matching a lowercased driver identifier by substring."""

    def predicate(driver: str) -> bool:
        return any(needle in driver for needle in needles)

    return predicate


class DriverDispatcher:
    """Maps a driver identifier to an executor via an ordered predicate table.

    Predicates are evaluated in priority order against the lowercased
    identifier; the first match wins, so overlapping substrings always route
    the same way.
    """

    def __init__(self, routes: Iterable[tuple[Callable[[str], bool], QueryExecutor]]):
        self.routes = list(routes)

    @classmethod
    def default(cls, timeout: float = DB_QUERY_TIMEOUT, max_rows: int = DB_MAX_ROWS) -> "DriverDispatcher":
        """Build the standard routing table."""
        return cls(
            [
                (contains_any("sqlite"), SQLiteExecutor(timeout, max_rows)),
                (contains_any("postgres"), PostgreSQLExecutor(timeout, max_rows)),
                (contains_any("mssql", "sqlserver", "microsoft"), SQLServerExecutor(timeout, max_rows)),
                (contains_any("mysql", "mariadb"), MySQLExecutor(timeout, max_rows)),
            ]
        )

    @property
    def supported_engines(self) -> list[str]:
        engines = []
        for _, executor in self.routes:
            if executor.engine not in engines:
                engines.append(executor.engine)
        return engines

    def find(self, driver: str) -> Optional[QueryExecutor]:
        lowered = (driver or "").lower()
        for predicate, executor in self.routes:
            if predicate(lowered):
                return executor
        return None

    def select(self, driver: str) -> QueryExecutor:
        """Return the executor for a driver identifier.

        Raises:
            NotSupportedError: If no route matches, naming the supported engines
        """
        executor = self.find(driver)
        if executor is None:
            raise NotSupportedError(driver, self.supported_engines)
        return executor
