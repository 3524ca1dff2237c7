"""Parse contract shared by the legacy and modern store schemas."""

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from ..constants import DEFAULT_PORTS, DRIVERS_MAPPING_FILE
from .locator import SchemaVersion, StoreLocation
from .models import ConnectionModel, ParseWarning, SslOptions


class MalformedEntryError(ValueError):
    """One store entry cannot be turned into a connection."""


@dataclass
class ParseResult:
    """Connections in store order plus the warnings collected on the way."""

    connections: list[ConnectionModel] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    def add(self, connection: ConnectionModel, source: str) -> None:
        if any(existing.id == connection.id for existing in self.connections):
            self.warn(source, connection.id, "duplicate connection id, keeping the first definition")
            return
        self.connections.append(connection)

    def warn(self, source: str, entry: str, message: str) -> None:
        self.warnings.append(ParseWarning(source=source, entry=entry, message=message))


def default_port(driver: str) -> Optional[int]:
    """Return the conventional port for a driver identifier, if any."""
    lowered = driver.lower()
    for needles, port in DEFAULT_PORTS:
        if any(needle in lowered for needle in needles):
            return port
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _port(value: Any, driver: str) -> Optional[int]:
    text = _text(value)
    if text is None:
        return default_port(driver)
    try:
        port = int(text)
    except ValueError:
        raise MalformedEntryError(f"invalid port {text!r}") from None
    if not 0 < port < 65536:
        raise MalformedEntryError(f"port {port} out of range")
    return port


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def load_driver_mapping(workspace: Path, result: ParseResult) -> dict[str, str]:
    """Map DBeaver driver ids to driver classes from the workspace ``drivers.xml``.

    An absent mapping yields {}; an unreadable one also adds a warning.
    """
    path = workspace / DRIVERS_MAPPING_FILE
    if not path.is_file():
        return {}
    try:
        document = ET.parse(path).getroot()
    except (OSError, ET.ParseError) as e:
        result.warn(path.name, "*", f"driver mapping unreadable, using raw driver ids: {e}")
        return {}

    mapping = {}
    for driver in document.iter("driver"):
        driver_id = driver.get("id")
        driver_class = driver.get("class")
        if driver_id and driver_class:
            mapping[driver_id] = driver_class
    return mapping


def map_driver(driver: Any, mapping: Mapping[str, str]) -> Any:
    """Replace a listed driver id by its class; other values pass through."""
    text = _text(driver)
    if text is None:
        return driver
    return mapping.get(text, text)


def build_ssl_options(handlers: Mapping[str, Mapping[str, Any]]) -> Optional[SslOptions]:
    """Build SSL options from network handlers keyed by handler id.

    Each handler maps to ``{"enabled": ..., "properties": {...}}``; only
    handlers whose id mentions ``ssl`` are considered.
    """
    for handler_id, handler in handlers.items():
        if "ssl" not in handler_id.lower():
            continue
        properties = {str(k): str(v) for k, v in (handler.get("properties") or {}).items()}
        lowered = {k.lower().replace(".", "").replace("_", ""): v for k, v in properties.items()}
        trust = lowered.get("trustservercertificate") or lowered.get("ssltrust")
        return SslOptions(
            enabled=_flag(handler.get("enabled", False)),
            mode=lowered.get("sslmode") or lowered.get("mode"),
            ca_cert=lowered.get("sslrootcert") or lowered.get("sslca") or lowered.get("cacertificate"),
            trust_server_certificate=None if trust is None else _flag(trust),
            properties=properties,
        )
    return None


def build_connection(
    *,
    entry_id: Any,
    name: Any,
    driver: Any,
    provider: Any,
    host: Any = None,
    port: Any = None,
    database: Any = None,
    user: Any = None,
    password: Any = None,
    url: Any = None,
    properties: Optional[Mapping[str, Any]] = None,
    ssl: Optional[SslOptions] = None,
    folder: Any = None,
    connection_type: Any = None,
    read_only: Any = False,
) -> ConnectionModel:
    """Normalize raw entry fields into a ConnectionModel.

    Raises:
        MalformedEntryError: If a required field is missing or a value is invalid
    """
    entry_id = _text(entry_id)
    if entry_id is None:
        raise MalformedEntryError("missing connection id")

    provider = _text(provider)
    driver = _text(driver) or provider
    if driver is None:
        raise MalformedEntryError("missing driver and provider")

    return ConnectionModel(
        id=entry_id,
        name=_text(name) or entry_id,
        driver=driver,
        host=_text(host),
        port=_port(port, driver),
        database=_text(database),
        user=_text(user),
        password=None if password is None or password == "" else str(password),
        properties={str(k): str(v) for k, v in (properties or {}).items()},
        ssl=ssl,
        provider=provider,
        url=_text(url),
        folder=_text(folder),
        connection_type=_text(connection_type),
        read_only=_flag(read_only),
    )


class ConnectionConfigParser(ABC):
    """Turns a store on disk into an ordered sequence of connections.

    A malformed entry is skipped with a warning; only an unreadable or
    unparseable store raises ConfigError.
    """

    schema: SchemaVersion

    @abstractmethod
    def parse(self, store_path: Path) -> ParseResult:
        """Parse the store rooted at ``store_path``.

        Raises:
            ConfigError: If the store cannot be read or parsed at the top level
        """


def get_parser(schema: SchemaVersion) -> ConnectionConfigParser:
    """Select the parser variant for a schema version."""
    from .legacy import LegacyConfigParser
    from .modern import ModernConfigParser

    parsers = {
        SchemaVersion.LEGACY: LegacyConfigParser,
        SchemaVersion.MODERN: ModernConfigParser,
    }
    return parsers[SchemaVersion(schema)]()


def parse_store(location: StoreLocation) -> ParseResult:
    """Parse the store at a located path with the matching variant."""
    return get_parser(location.schema).parse(location.path)
