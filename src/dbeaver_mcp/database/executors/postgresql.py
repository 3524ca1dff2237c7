"""PostgreSQL query executor."""

import logging
import math
from typing import Any, Optional

try:
    import psycopg2
    import psycopg2.errors
except ImportError:
    psycopg2 = None

from ...errors import DriverUnavailableError, ErrorKind
from ..connection import ConnectionHandle, ResolvedConnection
from ..results import RawResult
from .base import QueryExecutor

logger = logging.getLogger(__name__)

AUTH_MARKERS = ("password authentication failed", "authentication failed", "no password supplied", "role \"")
TRANSPORT_MARKERS = ("ssl", "certificate", "tls")
TIMEOUT_MARKERS = ("timeout expired", "timed out", "canceling statement due to statement timeout")


def ssl_parameters(resolved: ResolvedConnection) -> dict[str, str]:
    """libpq SSL parameters for a connection.

    Only an enabled SSL handler reaches here. Its explicit mode wins.
    Otherwise encryption is required without certificate verification for
    cloud hosts or an SSL handler, and certificate verification is used when
    a CA bundle is set.
    """
    ssl = resolved.ssl
    params = {}
    if ssl is not None and ssl.ca_cert:
        params["sslrootcert"] = ssl.ca_cert

    if ssl is not None and ssl.mode:
        params["sslmode"] = ssl.mode
    elif ssl is not None and ssl.enabled and ssl.ca_cert:
        params["sslmode"] = "verify-ca"
    elif (ssl is not None and ssl.enabled) or resolved.is_cloud_host:
        params["sslmode"] = "require"
    else:
        params["sslmode"] = "prefer"
    return params


class PostgreSQLExecutor(QueryExecutor):
    """PostgreSQL executor using psycopg2."""

    engine = "PostgreSQL"
    default_port = 5432

    def connect_parameters(self, resolved: ResolvedConnection) -> dict[str, Any]:
        """Build psycopg2.connect keyword arguments."""
        params = {
            "host": resolved.host or "localhost",
            "port": resolved.port,
            "dbname": resolved.database,
            "user": resolved.user,
            "password": resolved.password,
            # libpq treats values below 2 seconds as 2
            "connect_timeout": max(2, math.ceil(self.timeout)),
            "options": f"-c statement_timeout={int(self.timeout * 1000)}",  # milliseconds
            "application_name": "dbeaver-mcp",
        }
        params.update(ssl_parameters(resolved))
        return params

    def connect(self, resolved: ResolvedConnection) -> Any:
        if psycopg2 is None:
            raise DriverUnavailableError(self.engine, "psycopg2-binary")

        connection = psycopg2.connect(**self.connect_parameters(resolved))
        connection.autocommit = True
        logger.debug(f"Connected to PostgreSQL database: {resolved.target}")
        return connection

    def run(self, raw: Any, query: str, handle: ConnectionHandle) -> RawResult:
        cursor = raw.cursor()
        try:
            cursor.execute(query)
            return self.fetch(cursor)
        finally:
            cursor.close()

    def interrupt(self, raw: Any, statement: Any = None) -> None:
        raw.cancel()

    def classify_error(self, error: BaseException) -> Optional[ErrorKind]:
        if psycopg2 is None or not isinstance(error, psycopg2.Error):
            return None

        message = str(error).lower()
        if isinstance(error, psycopg2.errors.QueryCanceled) or any(m in message for m in TIMEOUT_MARKERS):
            return ErrorKind.TIMEOUT
        if isinstance(error, (psycopg2.errors.InvalidPassword, psycopg2.errors.InvalidAuthorizationSpecification)):
            return ErrorKind.AUTHENTICATION
        if isinstance(error, psycopg2.OperationalError):
            if any(m in message for m in AUTH_MARKERS):
                return ErrorKind.AUTHENTICATION
            if any(m in message for m in TRANSPORT_MARKERS):
                return ErrorKind.TRANSPORT
        return ErrorKind.GENERIC
