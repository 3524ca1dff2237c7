"""MySQL / MariaDB query executor."""

import logging
import math
from typing import Any, Optional

import pymysql

from ...errors import ErrorKind
from ..connection import ConnectionHandle, ResolvedConnection
from ..results import RawResult
from .base import QueryExecutor

logger = logging.getLogger(__name__)

# MySQL server and client error codes
ER_ACCESS_DENIED = 1045
ER_QUERY_TIMEOUT = 3024  # max_execution_time exceeded
CR_CONN_HOST_ERROR = 2003
CR_SERVER_LOST = 2013
CR_SSL_CONNECTION_ERROR = 2026


class MySQLExecutor(QueryExecutor):
    """MySQL/MariaDB executor using the pymysql driver."""

    engine = "MySQL"
    default_port = 3306
    requires_database = False

    def connect_parameters(self, resolved: ResolvedConnection) -> dict[str, Any]:
        timeout = max(1, math.ceil(self.timeout))
        params = {
            "host": resolved.host or "localhost",
            "port": resolved.port,
            "user": resolved.user,
            "password": resolved.password,
            "connect_timeout": timeout,
            "read_timeout": timeout,
            "write_timeout": timeout,
            "charset": "utf8mb4",
            "autocommit": True,
        }

        # Only add database parameter if one is configured
        if resolved.database:
            params["database"] = resolved.database

        ssl = resolved.ssl
        if ssl is not None and ssl.ca_cert:
            params["ssl"] = {"ca": ssl.ca_cert}
        elif (ssl is not None and ssl.enabled) or resolved.is_cloud_host:
            # Encrypt, trusting the server certificate
            params["ssl"] = {"check_hostname": False}
        return params

    def connect(self, resolved: ResolvedConnection) -> Any:
        connection = pymysql.connect(**self.connect_parameters(resolved))
        logger.debug(f"Connected to MySQL database: {resolved.target}")
        return connection

    def run(self, raw: Any, query: str, handle: ConnectionHandle) -> RawResult:
        with raw.cursor() as cursor:
            cursor.execute(query)
            return self.fetch(cursor)

    def classify_error(self, error: BaseException) -> Optional[ErrorKind]:
        if not isinstance(error, pymysql.Error):
            return None

        code = error.args[0] if error.args and isinstance(error.args[0], int) else None
        message = str(error).lower()
        if code == ER_QUERY_TIMEOUT or code == CR_SERVER_LOST or "timed out" in message:
            return ErrorKind.TIMEOUT
        if code == ER_ACCESS_DENIED:
            return ErrorKind.AUTHENTICATION
        if code == CR_SSL_CONNECTION_ERROR or "ssl" in message or "certificate" in message:
            return ErrorKind.TRANSPORT
        if code == CR_CONN_HOST_ERROR and "timeout" in message:
            return ErrorKind.TIMEOUT
        return ErrorKind.GENERIC
