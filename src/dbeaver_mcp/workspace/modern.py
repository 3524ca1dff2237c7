"""Parser for the modern (JSON) DBeaver store."""

import json
import logging
from pathlib import Path

from ..constants import MODERN_CREDENTIALS_FILE, MODERN_DATA_SOURCES_FILE, MODERN_DATA_SOURCES_GLOB
from ..errors import ConfigError
from .credentials import CredentialStore, CredentialStoreError
from .locator import SchemaVersion
from .parser import (
    ConnectionConfigParser,
    ParseResult,
    build_connection,
    build_ssl_options,
    load_driver_mapping,
    map_driver,
)

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> dict:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise ConfigError(
            f"Cannot read DBeaver data sources: {path}\n"
            f"  Error: {e}"
        ) from e
    if not isinstance(document, dict):
        raise ConfigError(f"DBeaver data sources is not a JSON object: {path}")
    return document


class ModernConfigParser(ConnectionConfigParser):
    """Reads ``data-sources*.json`` plus the encrypted credential store.

    The store lives at ``<workspace>/<project>/.dbeaver``; driver ids are
    mapped through the workspace ``drivers.xml`` as for the legacy schema.
    """

    schema = SchemaVersion.MODERN

    def parse(self, store_path: Path) -> ParseResult:
        store_path = Path(store_path)
        result = ParseResult()

        primary = store_path / MODERN_DATA_SOURCES_FILE
        if not primary.is_file():
            raise ConfigError(
                f"DBeaver data sources not found: {primary}\n"
                f"  Hint: Point --config-path at the workspace '.dbeaver' directory"
            )

        credentials = self._load_credentials(store_path / MODERN_CREDENTIALS_FILE, result)
        drivers = load_driver_mapping(store_path.parent.parent, result)

        self._parse_file(primary, _load_json(primary), credentials, drivers, result)

        secondary = sorted(p for p in store_path.glob(MODERN_DATA_SOURCES_GLOB) if p != primary)
        for path in secondary:
            try:
                self._parse_file(path, _load_json(path), credentials, drivers, result)
            except ConfigError as e:
                result.warn(path.name, "*", str(e).splitlines()[0])

        logger.info(
            f"Parsed {len(result.connections)} connection(s) from {store_path} "
            f"with {len(result.warnings)} warning(s)"
        )
        return result

    def _load_credentials(self, path: Path, result: ParseResult) -> CredentialStore:
        try:
            return CredentialStore.load(path)
        except CredentialStoreError as e:
            result.warn(path.name, "*", f"saved credentials unavailable: {str(e).splitlines()[0]}")
            return CredentialStore()

    def _parse_file(
        self,
        path: Path,
        document: dict,
        credentials: CredentialStore,
        drivers: dict[str, str],
        result: ParseResult,
    ) -> None:
        connections = document.get("connections", {})
        if not isinstance(connections, dict):
            raise ConfigError(f"'connections' in {path} is not a JSON object")

        for entry_id, entry in connections.items():
            try:
                result.add(self._parse_entry(entry_id, entry, credentials, drivers), path.name)
            except (ValueError, TypeError, AttributeError) as e:
                result.warn(path.name, str(entry_id), f"skipped malformed connection: {e}")

    def _parse_entry(self, entry_id: str, entry: dict, credentials: CredentialStore, drivers: dict[str, str]):
        if not isinstance(entry, dict):
            raise TypeError("connection entry is not an object")
        configuration = entry.get("configuration") or {}
        if not isinstance(configuration, dict):
            raise TypeError("'configuration' is not an object")

        user, password = credentials.lookup(entry_id)
        handlers = configuration.get("handlers") or {}

        return build_connection(
            entry_id=entry_id,
            name=entry.get("name"),
            driver=map_driver(entry.get("driver"), drivers),
            provider=entry.get("provider"),
            host=configuration.get("host"),
            port=configuration.get("port"),
            database=configuration.get("database"),
            user=user if user is not None else configuration.get("user"),
            password=password if password is not None else configuration.get("password"),
            url=configuration.get("url"),
            properties=configuration.get("properties"),
            ssl=build_ssl_options(handlers),
            folder=entry.get("folder"),
            connection_type=configuration.get("type"),
            read_only=entry.get("read-only", False),
        )
