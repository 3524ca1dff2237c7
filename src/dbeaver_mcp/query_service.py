"""Caller-facing operations: list, inspect, classify, execute and reload."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .database.executors import DriverDispatcher
from .database.logging import log_query_execution
from .database.results import QueryResult
from .database.validation import SafetyLevel, SafetyVerdict, classify_query
from .errors import ConfirmationRequiredError, SafetyError
from .workspace.cache import ConnectionCache
from .workspace.models import ConnectionModel, ConnectionSummary, ParseWarning

logger = logging.getLogger("dbeaver_mcp")


@dataclass
class ReloadReport:
    """Outcome of re-reading the connection store."""

    count: int
    warnings: list[ParseWarning] = field(default_factory=list)


class QueryService:
    """Runs ad-hoc queries against saved DBeaver connections.

    Per call: cache lookup, safety verdict, executor dispatch, execution.
    Nothing is shared between calls except the read-only cache snapshot.
    """

    def __init__(self, cache: ConnectionCache, dispatcher: Optional[DriverDispatcher] = None):
        self.cache = cache
        self.dispatcher = dispatcher or DriverDispatcher.default()

    def list_connections(self) -> list[ConnectionSummary]:
        return [connection.summary() for connection in self.cache.list()]

    def get_connection(self, connection_id: str) -> ConnectionModel:
        """Raises NotFoundError if no connection matches."""
        return self.cache.get(connection_id)

    def classify(self, query: str) -> SafetyVerdict:
        return classify_query(query)

    async def execute_query(self, connection_id: str, query: str, confirmed: bool = False) -> QueryResult:
        """Execute one query against a saved connection.

        Args:
            connection_id: Connection id (or unique display name)
            query: SQL text
            confirmed: Caller acknowledges a schema-change or destructive statement

        Returns:
            QueryResult

        Raises:
            NotFoundError: Unknown connection
            SafetyError: Empty query, or a write on a read-only connection
            ConfirmationRequiredError: Schema change or destructive statement without confirmation
            NotSupportedError: No executor for the connection's driver
            CredentialMissingError: Required property absent
            ExecutionError: Timeout, authentication, transport or generic failure
        """
        connection = self.cache.get(connection_id)
        verdict = classify_query(query)

        if connection.read_only and verdict.level is not SafetyLevel.SAFE_READ:
            log_query_execution(
                query, connection.name, success=False, blocked=True, classification=verdict.level.value
            )
            raise SafetyError(
                f"Connection '{connection.name}' is read-only in DBeaver; "
                f"{verdict.level.value} statements are refused\n"
                f"  Hint: Clear the 'Read-only connection' option in DBeaver to allow changes"
            )

        if verdict.requires_confirmation and not confirmed:
            log_query_execution(
                query, connection.name, success=False, blocked=True, classification=verdict.level.value
            )
            raise ConfirmationRequiredError(verdict, query)

        executor = self.dispatcher.select(connection.driver)
        logger.info(
            f"Executing {verdict.level.value} query on '{connection.name}' via {executor.engine}"
        )
        return await executor.execute_async(connection, query)

    def reload(self) -> ReloadReport:
        """Re-read the store; raises ConfigError and keeps the old snapshot on failure."""
        count, warnings = self.cache.reload()
        return ReloadReport(count=count, warnings=warnings)
