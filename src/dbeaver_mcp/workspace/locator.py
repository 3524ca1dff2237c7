"""Locate the DBeaver connection store and detect its schema version."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from ..constants import (
    LEGACY_DATA_SOURCES_FILES,
    LEGACY_MARKER_DIR,
    LEGACY_STORE_LOCATIONS,
    MODERN_DATA_SOURCES_FILE,
    MODERN_MARKER_DIR,
    MODERN_STORE_LOCATIONS,
)
from ..errors import ConfigNotFoundError

logger = logging.getLogger(__name__)


class SchemaVersion(str, Enum):
    """On-disk schema of the connection store."""

    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class StoreLocation:
    """Where the store lives and which schema it uses.

    For the modern schema ``path`` is the ``.dbeaver`` directory; for the
    legacy schema it is the workspace root holding ``.metadata``.
    """

    path: Path
    schema: SchemaVersion


def _expand(location: str) -> Optional[Path]:
    expanded = os.path.expandvars(os.path.expanduser(location))
    if "$" in expanded:
        # Unset variable such as $APPDATA outside Windows
        return None
    return Path(expanded)


def is_modern_store(path: Path) -> bool:
    return (path / MODERN_DATA_SOURCES_FILE).is_file()


def is_legacy_store(path: Path) -> bool:
    return (path / LEGACY_MARKER_DIR).is_dir() and any(
        (path / name).is_file() for name in LEGACY_DATA_SOURCES_FILES
    )


class ConfigLocator:
    """Finds the connection store on disk.

    Well-known locations are scanned in order, modern first. An explicit
    ``override`` is trusted: only the override itself is inspected. An
    explicit ``schema`` skips detection altogether.
    """

    def __init__(
        self,
        override: Optional[Union[str, Path]] = None,
        schema: Optional[Union[str, SchemaVersion]] = None,
        modern_locations: Optional[Sequence[str]] = None,
        legacy_locations: Optional[Sequence[str]] = None,
    ):
        self.override = Path(override).expanduser() if override else None
        self.schema = SchemaVersion(schema) if schema else None
        self.modern_locations = list(
            MODERN_STORE_LOCATIONS if modern_locations is None else modern_locations
        )
        self.legacy_locations = list(
            LEGACY_STORE_LOCATIONS if legacy_locations is None else legacy_locations
        )

    def locate(self) -> StoreLocation:
        """Return the store location.

        Raises:
            ConfigNotFoundError: If no store is found, naming the paths checked
        """
        if self.override is not None:
            return self._locate_override(self.override)

        checked = []
        for location in self.modern_locations:
            path = _expand(location)
            if path is None:
                continue
            checked.append(str(path))
            if is_modern_store(path):
                logger.info(f"Found modern DBeaver store: {path}")
                return StoreLocation(path, SchemaVersion.MODERN)

        for location in self.legacy_locations:
            path = _expand(location)
            if path is None:
                continue
            checked.append(str(path))
            if is_legacy_store(path):
                logger.info(f"Found legacy DBeaver store: {path}")
                return StoreLocation(path, SchemaVersion.LEGACY)

        raise ConfigNotFoundError(checked)

    def _locate_override(self, path: Path) -> StoreLocation:
        if self.schema is not None:
            return StoreLocation(path, self.schema)

        if path.is_file():
            if path.suffix == ".json":
                return StoreLocation(path.parent, SchemaVersion.MODERN)
            if path.suffix == ".xml":
                return StoreLocation(path, SchemaVersion.LEGACY)
        elif path.is_dir():
            if is_modern_store(path):
                return StoreLocation(path, SchemaVersion.MODERN)
            if is_modern_store(path / MODERN_MARKER_DIR):
                return StoreLocation(path / MODERN_MARKER_DIR, SchemaVersion.MODERN)
            if is_legacy_store(path) or any(
                (path / name).is_file() for name in LEGACY_DATA_SOURCES_FILES
            ):
                return StoreLocation(path, SchemaVersion.LEGACY)

        raise ConfigNotFoundError([str(path)])
