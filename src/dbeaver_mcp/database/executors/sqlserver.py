"""SQL Server query executor."""

import logging
import math
from typing import Any, Optional

try:
    import pyodbc
except ImportError:
    pyodbc = None

from ...constants import MSSQL_ODBC_DRIVER
from ...errors import DriverUnavailableError, ErrorKind
from ..connection import ConnectionHandle, ResolvedConnection
from ..results import RawResult
from .base import QueryExecutor

logger = logging.getLogger(__name__)

# SQLSTATE prefixes reported by the Microsoft ODBC driver
TIMEOUT_STATES = ("HYT00", "HYT01")
AUTH_STATES = ("28000",)
TRANSPORT_MARKERS = ("ssl", "tls", "certificate", "encryption")


def _escape(value: str) -> str:
    """Brace-quote an ODBC attribute value."""
    return "{" + str(value).replace("}", "}}") + "}"


def _sqlstate(error: BaseException) -> str:
    if error.args and isinstance(error.args[0], str):
        return error.args[0]
    return ""


class SQLServerExecutor(QueryExecutor):
    """SQL Server executor using pyodbc and the Microsoft ODBC driver.

    Encryption in transit is on by default and the server certificate is
    trusted, which is what Azure SQL and other managed instances expect
    without a locally installed CA bundle.
    """

    engine = "SQL Server"
    default_port = 1433

    def connection_string(self, resolved: ResolvedConnection) -> str:
        ssl = resolved.ssl
        properties = {key.lower(): value for key, value in resolved.properties.items()}

        encrypt = "yes"
        trust = "yes"
        if ssl is not None and ssl.mode:
            encrypt = "no" if ssl.mode.lower() in ("disable", "false", "no", "off") else "yes"
        elif "encrypt" in properties:
            encrypt = "no" if properties["encrypt"].lower() in ("false", "no") else "yes"
        if ssl is not None and ssl.trust_server_certificate is not None:
            trust = "yes" if ssl.trust_server_certificate else "no"
        elif "trustservercertificate" in properties:
            trust = "yes" if properties["trustservercertificate"].lower() in ("true", "yes") else "no"
        elif ssl is not None and ssl.ca_cert:
            trust = "no"

        parts = [
            f"DRIVER={_escape(properties.get('odbcdriver', MSSQL_ODBC_DRIVER))}",
            f"SERVER={resolved.host or 'localhost'},{resolved.port}",
            f"DATABASE={_escape(resolved.database)}",
            f"UID={_escape(resolved.user)}",
            f"PWD={_escape(resolved.password)}",
            f"Encrypt={encrypt}",
            f"TrustServerCertificate={trust}",
            f"Connection Timeout={max(1, math.ceil(self.timeout))}",
            "APP=dbeaver-mcp",
        ]
        return ";".join(parts) + ";"

    def connect(self, resolved: ResolvedConnection) -> Any:
        if pyodbc is None:
            raise DriverUnavailableError(self.engine, "pyodbc")

        connection = pyodbc.connect(
            self.connection_string(resolved),
            timeout=max(1, math.ceil(self.timeout)),
            autocommit=True,
        )
        # Query timeout for every statement on this connection
        connection.timeout = max(1, math.ceil(self.timeout))
        logger.debug(f"Connected to SQL Server database: {resolved.target}")
        return connection

    def run(self, raw: Any, query: str, handle: ConnectionHandle) -> RawResult:
        cursor = raw.cursor()
        handle.statement = cursor
        try:
            cursor.execute(query)
            return self.fetch(cursor)
        finally:
            cursor.close()

    def interrupt(self, raw: Any, statement: Any = None) -> None:
        if statement is not None:
            statement.cancel()
        else:
            raw.close()

    def classify_error(self, error: BaseException) -> Optional[ErrorKind]:
        if pyodbc is None or not isinstance(error, pyodbc.Error):
            return None

        state = _sqlstate(error)
        message = str(error).lower()
        if state in TIMEOUT_STATES or "timeout expired" in message:
            return ErrorKind.TIMEOUT
        if state in AUTH_STATES or "login failed" in message:
            return ErrorKind.AUTHENTICATION
        if any(marker in message for marker in TRANSPORT_MARKERS):
            return ErrorKind.TRANSPORT
        return ErrorKind.GENERIC
