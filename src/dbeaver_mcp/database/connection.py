"""Connection property resolution and in-flight connection tracking."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..constants import CLOUD_HOST_SUFFIXES
from ..workspace.models import ConnectionModel, SslOptions

logger = logging.getLogger(__name__)

# Typed field -> property map keys consulted when the field is empty
PROPERTY_ALIASES = {
    "host": ("host", "serverName", "server"),
    "port": ("port", "portNumber"),
    "database": ("database", "databaseName", "dbname"),
    "user": ("user", "username", "userName"),
    "password": ("password",),
}


@dataclass(frozen=True)
class ResolvedConnection:
    """Connection parameters after fallback resolution, ready for a driver."""

    id: str
    name: str
    driver: str
    host: Optional[str]
    port: Optional[int]
    database: Optional[str]
    user: Optional[str]
    password: Optional[str] = field(default=None, repr=False)
    properties: Mapping[str, str] = field(default_factory=dict)
    ssl: Optional[SslOptions] = None
    url: Optional[str] = None

    @property
    def target(self) -> str:
        """Credential-free endpoint description for logs and errors."""
        host = self.host or "local"
        port = f":{self.port}" if self.port else ""
        database = f"/{self.database}" if self.database else ""
        user = f"{self.user}@" if self.user else ""
        return f"{user}{host}{port}{database}"

    @property
    def is_cloud_host(self) -> bool:
        host = (self.host or "").lower()
        return any(host.endswith(suffix) for suffix in CLOUD_HOST_SUFFIXES)


def _lookup_property(properties: Mapping[str, str], keys) -> Optional[str]:
    lowered = {key.lower(): value for key, value in properties.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if value not in (None, ""):
            return value
    return None


def resolve_connection(connection: ConnectionModel, default_port: Optional[int] = None) -> ResolvedConnection:
    """Resolve each property as typed field, then property map, then default.

    Args:
        connection: Parsed connection
        default_port: Engine default port used when nothing else provides one

    Returns:
        ResolvedConnection
    """
    properties = connection.properties
    values: dict[str, Any] = {}
    for name, keys in PROPERTY_ALIASES.items():
        value = getattr(connection, name)
        if value in (None, ""):
            value = _lookup_property(properties, keys)
        values[name] = value

    port = values["port"]
    if port in (None, ""):
        port = default_port
    else:
        try:
            port = int(port)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid port {port!r} for connection '{connection.name}'")
            port = default_port

    # DBeaver keeps handler properties after SSL is switched off
    ssl = connection.ssl if connection.ssl is not None and connection.ssl.enabled else None

    return ResolvedConnection(
        id=connection.id,
        name=connection.name,
        driver=connection.driver,
        host=values["host"],
        port=port,
        database=values["database"],
        user=values["user"],
        password=values["password"],
        properties=properties,
        ssl=ssl,
        url=connection.url,
    )


class ConnectionHandle:
    """Tracks the engine connection opened for one execution.

    The worker thread attaches the raw connection after opening it and
    detaches it before closing; another thread may call ``interrupt()`` at
    any point to abort the running statement.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._executor = None
        self._raw: Any = None
        self.statement: Any = None
        self.cancelled = False
        self.opened = False
        self.closed = False

    def attach(self, executor, raw: Any) -> None:
        with self._lock:
            self._executor = executor
            self._raw = raw
            self.opened = True

    def detach(self) -> None:
        with self._lock:
            self._executor = None
            self._raw = None
            self.statement = None

    def mark_closed(self) -> None:
        self.closed = True

    def interrupt(self) -> None:
        """Abort the in-flight statement, if any, and refuse new ones."""
        with self._lock:
            self.cancelled = True
            if self._raw is None:
                return
            try:
                self._executor.interrupt(self._raw, self.statement)
            except Exception as e:
                logger.warning(f"Error interrupting {self._executor.engine} connection: {e}")
