"""Exception hierarchy for DBeaver MCP.

Every failure raised towards the caller derives from ``DBeaverMCPError`` and
from the builtin exception it refines, so callers can catch either. Messages
carry host, port, user and driver context but never a credential value.
"""

from enum import Enum
from typing import Optional, Sequence


class DBeaverMCPError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(DBeaverMCPError):
    """The connection store cannot be read or is unparseable at the top level."""


class ConfigNotFoundError(ConfigError, FileNotFoundError):
    """No connection store was found in any of the checked locations."""

    def __init__(self, paths_checked: Sequence[str]):
        self.paths_checked = list(paths_checked)
        checked = "\n".join(f"    - {path}" for path in self.paths_checked) or "    (none)"
        super().__init__(
            "DBeaver connection store not found\n"
            f"  Checked:\n{checked}\n"
            "  Hint: Pass --config-path or set DBEAVER_CONFIG_PATH to the workspace "
            "'.dbeaver' directory (modern) or the workspace root (legacy)"
        )


class NotFoundError(DBeaverMCPError, LookupError):
    """No connection matches the requested identifier."""

    def __init__(self, connection_id: str, available: Sequence[str] = ()):
        self.connection_id = connection_id
        message = f"Connection '{connection_id}' not found"
        if available:
            message += f"\n  Available connections: {', '.join(available)}"
        message += "\n  Hint: Use list_connections to see saved connections, or reload after editing DBeaver"
        super().__init__(message)


class SafetyError(DBeaverMCPError, ValueError):
    """The query was refused by the safety classifier."""


class ConfirmationRequiredError(SafetyError):
    """A schema-change or destructive statement was submitted without confirmation."""

    def __init__(self, verdict, query: str):
        self.verdict = verdict
        preview = query.strip()[:100] + ("..." if len(query.strip()) > 100 else "")
        super().__init__(
            f"Query requires explicit confirmation: classified as {verdict.level.value}"
            f" ({verdict.keyword or 'unknown statement'})\n"
            f"  Hint: Re-run with confirmed=true if this change is intended\n"
            f"  Query: {preview}"
        )


class ConnectionSetupError(DBeaverMCPError, ConnectionError):
    """The connection cannot be used for direct execution."""


class NotSupportedError(ConnectionSetupError):
    """No executor handles the connection's driver identifier."""

    def __init__(self, driver: str, supported: Sequence[str]):
        self.driver = driver
        self.supported = list(supported)
        super().__init__(
            f"Driver '{driver}' is not supported for direct execution\n"
            f"  Supported engines: {', '.join(self.supported)}\n"
            f"  Hint: Run this query from DBeaver itself for other engines"
        )


class CredentialMissingError(ConnectionSetupError):
    """A required property (database, user or password) is absent."""

    def __init__(self, connection_name: str, field: str, driver: str):
        self.connection_name = connection_name
        self.field = field
        self.driver = driver
        if field == "password":
            hint = "Ensure 'Save password' is enabled for this connection in DBeaver"
        else:
            hint = f"Set the {field} for this connection in DBeaver"
        super().__init__(
            f"Credential missing for connection '{connection_name}': no {field} configured\n"
            f"  Driver: {driver}\n"
            f"  Hint: {hint}"
        )


class DriverUnavailableError(ConnectionSetupError):
    """The Python client library for an engine is not installed."""

    def __init__(self, engine: str, package: str):
        self.engine = engine
        self.package = package
        super().__init__(
            f"{package} is not installed, {engine} connections are unavailable\n"
            f"  Hint: Install it with: pip install {package}"
        )


class ErrorKind(str, Enum):
    """Classification of an execution failure."""

    TIMEOUT = "connection-timeout"
    AUTHENTICATION = "authentication-failure"
    TRANSPORT = "transport-failure"
    GENERIC = "generic-execution-failure"


_HINTS = {
    ErrorKind.TIMEOUT: "Increase --timeout or check that the server is reachable",
    ErrorKind.AUTHENTICATION: "Check the user and saved password for this connection in DBeaver",
    ErrorKind.TRANSPORT: "Check SSL/TLS settings; cloud hosts need encryption enabled",
    ErrorKind.GENERIC: "Check the query syntax and the target objects",
}


class ExecutionError(DBeaverMCPError, RuntimeError):
    """A query failed at the engine, classified by ``kind``."""

    def __init__(
        self,
        kind: ErrorKind,
        detail: str,
        *,
        driver: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        database: Optional[str] = None,
    ):
        self.kind = kind
        self.detail = detail
        self.driver = driver
        self.host = host
        self.port = port
        self.user = user
        self.database = database

        target = host or "local"
        if port:
            target = f"{target}:{port}"
        super().__init__(
            f"{kind.value}: {detail}\n"
            f"  Target: {target}"
            f"{f'/{database}' if database else ''}"
            f" (user: {user or 'none'}, driver: {driver})\n"
            f"  Hint: {_HINTS[kind]}"
        )
