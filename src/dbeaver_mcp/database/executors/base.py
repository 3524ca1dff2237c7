"""Abstract base class for engine-specific query executors."""

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ...constants import DB_MAX_ROWS, DB_QUERY_TIMEOUT, TEARDOWN_TIMEOUT, TIMEOUT_GRACE
from ...errors import CredentialMissingError, ErrorKind, ExecutionError
from ...workspace.models import ConnectionModel
from ..connection import ConnectionHandle, ResolvedConnection, resolve_connection
from ..logging import QueryTimer, log_connection, log_query_execution, redact
from ..results import QueryResult, RawResult, ResultShapeError, normalize_result

logger = logging.getLogger(__name__)


class QueryExecutor(ABC):
    """Opens one engine connection, runs one query, always tears down.

    Executors keep no per-call state on the instance, so one executor may
    serve many concurrent calls; every call owns its own engine connection.
    Subclasses provide the driver-specific ``connect``, ``run`` and
    ``classify_error``.
    """

    engine: str = ""
    default_port: Optional[int] = None
    requires_database: bool = True
    requires_user: bool = True
    requires_password: bool = True

    def __init__(self, timeout: float = DB_QUERY_TIMEOUT, max_rows: int = DB_MAX_ROWS):
        """Initialize executor.

        Args:
            timeout: Seconds bounding both the connect and the request phase
            max_rows: Maximum rows fetched per query result
        """
        self.timeout = timeout
        self.max_rows = max_rows

    def resolve(self, connection: ConnectionModel) -> ResolvedConnection:
        return resolve_connection(connection, self.default_port)

    def validate(self, resolved: ResolvedConnection) -> None:
        """Check the properties this engine needs are present.

        Raises:
            CredentialMissingError: Naming the first missing property
        """
        if self.requires_database and not resolved.database:
            raise CredentialMissingError(resolved.name, "database", resolved.driver)
        if self.requires_user and not resolved.user:
            raise CredentialMissingError(resolved.name, "user", resolved.driver)
        if self.requires_password and not resolved.password:
            raise CredentialMissingError(resolved.name, "password", resolved.driver)

    @abstractmethod
    def connect(self, resolved: ResolvedConnection) -> Any:
        """Open and return a raw engine connection.

        Raises:
            ConnectionSetupError: If the client library is unavailable
            Exception: Driver errors, classified by ``classify_error``
        """

    @abstractmethod
    def run(self, raw: Any, query: str, handle: ConnectionHandle) -> RawResult:
        """Execute one query on an open connection and capture its output."""

    @abstractmethod
    def classify_error(self, error: BaseException) -> Optional[ErrorKind]:
        """Return the kind of a driver error, or None if it is not one."""

    def interrupt(self, raw: Any, statement: Any = None) -> None:
        """Abort a running statement from another thread."""
        raw.close()

    def close(self, raw: Any) -> None:
        raw.close()

    def fetch(self, cursor: Any) -> RawResult:
        """Capture description, up to ``max_rows`` rows and the row count."""
        description = cursor.description
        if description is None:
            return RawResult(description=None, rowcount=cursor.rowcount)

        if self.max_rows > 0:
            rows = list(cursor.fetchmany(self.max_rows + 1))
            truncated = len(rows) > self.max_rows
            rows = rows[: self.max_rows]
        else:
            rows = list(cursor.fetchall())
            truncated = False
        return RawResult(description=description, rows=rows, rowcount=len(rows), truncated=truncated)

    @contextmanager
    def session(self, resolved: ResolvedConnection, handle: ConnectionHandle) -> Iterator[Any]:
        """Scoped engine connection, closed on every exit path.

        Teardown failures are logged and never replace the original outcome.
        """
        timer = QueryTimer()
        try:
            with timer:
                raw = self.connect(resolved)
        except Exception as e:
            error = redact(str(e), resolved.password)
            log_connection(resolved.target, success=False, error=error, duration=timer.duration)
            raise
        log_connection(resolved.target, success=True, duration=timer.duration)

        handle.attach(self, raw)
        try:
            if handle.cancelled:
                raise ExecutionError(
                    ErrorKind.TIMEOUT,
                    f"cancelled before the query started (timeout {self.timeout}s)",
                    **self._context(resolved),
                )
            yield raw
        finally:
            handle.detach()
            try:
                self.close(raw)
                logger.debug(f"Closed {self.engine} connection to {resolved.target}")
            except Exception as e:
                logger.warning(f"Error closing {self.engine} connection to {resolved.target}: {e}")
            finally:
                handle.mark_closed()

    def _context(self, resolved: ResolvedConnection) -> dict:
        return {
            "driver": resolved.driver,
            "host": resolved.host,
            "port": resolved.port,
            "user": resolved.user,
            "database": resolved.database,
        }

    def _wrap_error(self, error: BaseException, kind: ErrorKind, resolved: ResolvedConnection) -> ExecutionError:
        detail = redact(str(error).strip() or type(error).__name__, resolved.password)
        return ExecutionError(kind, f"{self.engine}: {detail}", **self._context(resolved))

    def execute(
        self,
        connection: ConnectionModel,
        query: str,
        handle: Optional[ConnectionHandle] = None,
    ) -> QueryResult:
        """Run one query synchronously.

        Args:
            connection: Saved connection to run against
            query: SQL text
            handle: Optional tracker allowing another thread to interrupt

        Returns:
            QueryResult

        Raises:
            CredentialMissingError: If a required property is absent
            ExecutionError: Timeout, authentication, transport or generic failure
        """
        handle = handle or ConnectionHandle()
        resolved = self.resolve(connection)
        self.validate(resolved)

        timer = QueryTimer()
        try:
            with timer:
                with self.session(resolved, handle) as raw:
                    raw_result = self.run(raw, query, handle)
                result = normalize_result(raw_result, timer.elapsed)
        except ExecutionError as e:
            log_query_execution(query, resolved.target, success=False, error=e.detail, duration=timer.duration)
            raise
        except ResultShapeError as e:
            error = self._wrap_error(e, ErrorKind.GENERIC, resolved)
            log_query_execution(query, resolved.target, success=False, error=error.detail, duration=timer.duration)
            raise error from e
        except Exception as e:
            kind = self.classify_error(e)
            if kind is None:
                raise
            if handle.cancelled:
                kind = ErrorKind.TIMEOUT
            error = self._wrap_error(e, kind, resolved)
            log_query_execution(query, resolved.target, success=False, error=error.detail, duration=timer.duration)
            raise error from e

        log_query_execution(
            query,
            resolved.target,
            success=True,
            row_count=result.row_count,
            duration=result.elapsed,
        )
        return result

    async def execute_async(self, connection: ConnectionModel, query: str) -> QueryResult:
        """Run one query on a worker thread without blocking the event loop.

        The call is bounded by ``timeout`` plus a small grace period; on
        expiry or cancellation the in-flight connection is interrupted and
        its teardown awaited for at most ``TEARDOWN_TIMEOUT`` seconds.
        """
        handle = ConnectionHandle()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, functools.partial(self.execute, connection, query, handle))

        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=self.timeout + TIMEOUT_GRACE)
        except asyncio.TimeoutError:
            handle.interrupt()
            await self._drain(future)
            resolved = self.resolve(connection)
            raise ExecutionError(
                ErrorKind.TIMEOUT,
                f"{self.engine}: query exceeded timeout ({self.timeout}s)",
                **self._context(resolved),
            ) from None
        except asyncio.CancelledError:
            handle.interrupt()
            await self._drain(future)
            raise

    async def _drain(self, future: "asyncio.Future") -> None:
        done, _ = await asyncio.wait({future}, timeout=TEARDOWN_TIMEOUT)
        if not done:
            logger.warning(f"{self.engine} worker did not finish within {TEARDOWN_TIMEOUT}s after interrupt")
            return
        if not future.cancelled() and future.exception() is not None:
            logger.debug(f"Interrupted {self.engine} query ended with: {future.exception()}")
