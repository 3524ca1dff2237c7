"""Parser for the legacy (XML) DBeaver store."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from ..constants import LEGACY_DATA_SOURCES_FILES
from ..errors import ConfigError
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


def _properties(element: Optional[ET.Element], tag: str = "property") -> dict[str, str]:
    if element is None:
        return {}
    properties = {}
    for prop in element.findall(tag):
        name = prop.get("name")
        if name is None:
            raise ValueError(f"<{tag}> without a name")
        properties[name] = prop.get("value", "")
    return properties


class LegacyConfigParser(ConnectionConfigParser):
    """Reads ``.dbeaver-data-sources.xml`` and the ``drivers.xml`` mapping."""

    schema = SchemaVersion.LEGACY

    def parse(self, store_path: Path) -> ParseResult:
        data_sources, root = self._resolve_files(Path(store_path))
        result = ParseResult()

        drivers = load_driver_mapping(root, result)

        try:
            tree = ET.parse(data_sources)
        except (OSError, ET.ParseError) as e:
            raise ConfigError(
                f"Cannot read DBeaver data sources: {data_sources}\n"
                f"  Error: {e}"
            ) from e

        document = tree.getroot()
        if document.tag != "data-sources":
            raise ConfigError(
                f"Unexpected root element <{document.tag}> in {data_sources}\n"
                f"  Hint: Expected <data-sources>"
            )

        for index, element in enumerate(document.findall("data-source")):
            entry = element.get("id") or f"#{index + 1}"
            try:
                result.add(self._parse_entry(element, drivers), data_sources.name)
            except (ValueError, TypeError, AttributeError) as e:
                result.warn(data_sources.name, entry, f"skipped malformed connection: {e}")

        logger.info(
            f"Parsed {len(result.connections)} connection(s) from {data_sources} "
            f"with {len(result.warnings)} warning(s)"
        )
        return result

    def _resolve_files(self, store_path: Path) -> tuple[Path, Path]:
        """Return the data sources document and the workspace root."""
        if store_path.is_file():
            root = store_path.parent
            if root.name == "General":
                root = root.parent
            return store_path, root

        for name in LEGACY_DATA_SOURCES_FILES:
            candidate = store_path / name
            if candidate.is_file():
                return candidate, store_path

        raise ConfigError(
            f"DBeaver data sources not found under {store_path}\n"
            f"  Checked: {', '.join(LEGACY_DATA_SOURCES_FILES)}"
        )

    def _parse_entry(self, element: ET.Element, drivers: dict[str, str]):
        connection = element.find("connection")
        if connection is None:
            raise ValueError("missing <connection> element")

        handlers = {}
        for handler in connection.findall("network-handler"):
            handler_id = handler.get("id") or handler.get("type") or ""
            handlers[handler_id] = {
                "enabled": handler.get("enabled", "false"),
                "properties": _properties(handler),
            }

        return build_connection(
            entry_id=element.get("id"),
            name=element.get("name"),
            driver=map_driver(element.get("driver"), drivers),
            provider=element.get("provider"),
            host=connection.get("host"),
            port=connection.get("port"),
            database=connection.get("database"),
            user=connection.get("user"),
            password=connection.get("password"),
            url=connection.get("url"),
            properties=_properties(connection),
            ssl=build_ssl_options(handlers),
            folder=element.get("folder"),
            connection_type=connection.get("type"),
            read_only=element.get("read-only", "false"),
        )
