"""Normalized connection model shared by both store schemas."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


def _freeze(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class SslOptions:
    """SSL/transport options taken from a DBeaver SSL network handler."""

    enabled: bool = False
    mode: Optional[str] = None
    ca_cert: Optional[str] = None
    trust_server_certificate: Optional[bool] = None
    properties: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", _freeze(self.properties))


@dataclass(frozen=True)
class ConnectionModel:
    """One saved connection, immutable once built by a parser.

    ``password`` may be None: absence is only an error when the executor
    selected for the connection requires one.
    """

    id: str
    name: str
    driver: str
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    properties: Mapping[str, str] = field(default_factory=dict)
    ssl: Optional[SslOptions] = None
    provider: Optional[str] = None
    url: Optional[str] = None
    folder: Optional[str] = None
    connection_type: Optional[str] = None
    read_only: bool = False

    def __post_init__(self):
        if not self.driver or not self.driver.strip():
            raise ValueError(f"Connection '{self.id}' has an empty driver identifier")
        object.__setattr__(self, "properties", _freeze(self.properties))

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def summary(self) -> "ConnectionSummary":
        return ConnectionSummary(
            id=self.id,
            name=self.name,
            driver=self.driver,
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            folder=self.folder,
            connection_type=self.connection_type,
            read_only=self.read_only,
            has_password=self.has_password,
        )

    def describe(self) -> dict[str, Any]:
        """Return a credential-free dictionary view of the connection."""
        details = self.summary().to_dict()
        details.update(
            {
                "provider": self.provider,
                "url": self.url,
                "properties": dict(self.properties),
                "ssl": None
                if self.ssl is None
                else {
                    "enabled": self.ssl.enabled,
                    "mode": self.ssl.mode,
                    "ca_cert": self.ssl.ca_cert,
                    "trust_server_certificate": self.ssl.trust_server_certificate,
                },
            }
        )
        return details


@dataclass(frozen=True)
class ConnectionSummary:
    """Listing view of a connection, never carrying the password."""

    id: str
    name: str
    driver: str
    host: Optional[str]
    port: Optional[int]
    database: Optional[str]
    user: Optional[str]
    folder: Optional[str]
    connection_type: Optional[str]
    read_only: bool
    has_password: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "driver": self.driver,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "folder": self.folder,
            "connection_type": self.connection_type,
            "read_only": self.read_only,
            "has_password": self.has_password,
        }


@dataclass(frozen=True)
class ParseWarning:
    """A store entry that was skipped or degraded while parsing."""

    source: str
    entry: str
    message: str

    def __str__(self) -> str:
        return f"{self.source} [{self.entry}]: {self.message}"
