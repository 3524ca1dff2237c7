"""Process-wide store of parsed connections with atomic reload."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..errors import NotFoundError
from .locator import ConfigLocator, StoreLocation
from .models import ConnectionModel, ParseWarning
from .parser import parse_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """One immutable generation of loaded connections."""

    connections: tuple[ConnectionModel, ...] = ()
    by_id: Mapping[str, ConnectionModel] = field(default_factory=lambda: MappingProxyType({}))
    location: Optional[StoreLocation] = None
    warnings: tuple[ParseWarning, ...] = ()

    @classmethod
    def build(
        cls,
        connections: Iterable[ConnectionModel],
        location: Optional[StoreLocation] = None,
        warnings: Iterable[ParseWarning] = (),
    ) -> Snapshot:
        ordered = []
        by_id = {}
        for connection in connections:
            if connection.id in by_id:
                logger.warning(f"Ignoring duplicate connection id '{connection.id}'")
                continue
            by_id[connection.id] = connection
            ordered.append(connection)
        return cls(tuple(ordered), MappingProxyType(by_id), location, tuple(warnings))


class ConnectionCache:
    """Holds one connection snapshot at a time.

    Readers take the current snapshot reference once and work from it, so a
    concurrent ``reload()`` is observed either entirely or not at all.
    Reloads are serialized; the swap itself is a single reference assignment.
    """

    _instance: Optional[ConnectionCache] = None
    _instance_lock = threading.Lock()

    def __init__(self, locator: Optional[ConfigLocator] = None):
        self.locator = locator or ConfigLocator()
        self._snapshot = Snapshot()
        self._reload_lock = threading.Lock()

    @classmethod
    def get_instance(cls, locator: Optional[ConfigLocator] = None) -> ConnectionCache:
        """Get or create the process-wide cache.

        ``locator`` is only used when the cache is first created.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(locator)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def location(self) -> Optional[StoreLocation]:
        return self._snapshot.location

    @property
    def warnings(self) -> list[ParseWarning]:
        return list(self._snapshot.warnings)

    def load(self, connections: Iterable[ConnectionModel]) -> None:
        """Replace the snapshot with the given connections."""
        self._snapshot = Snapshot.build(connections)

    def list(self) -> list[ConnectionModel]:
        return list(self._snapshot.connections)

    def get(self, connection_id: str) -> ConnectionModel:
        """Look up a connection by id, or by a display name that is unique.

        Raises:
            NotFoundError: If nothing matches
        """
        snapshot = self._snapshot
        connection = snapshot.by_id.get(connection_id)
        if connection is not None:
            return connection

        wanted = connection_id.strip().lower()
        named = [c for c in snapshot.connections if c.name.lower() == wanted]
        if len(named) == 1:
            return named[0]

        raise NotFoundError(connection_id, [c.id for c in snapshot.connections])

    def reload(self) -> tuple[int, list[ParseWarning]]:
        """Re-read the store and swap the new snapshot in.

        Returns:
            Tuple of (connections loaded, warnings)

        Raises:
            ConfigError: If the store cannot be located or read; the current
                snapshot is kept
        """
        with self._reload_lock:
            location = self.locator.locate()
            result = parse_store(location)
            snapshot = Snapshot.build(result.connections, location, result.warnings)
            self._snapshot = snapshot

        for warning in snapshot.warnings:
            logger.warning(f"Connection store warning: {warning}")
        logger.info(
            f"Loaded {len(snapshot.connections)} connection(s) from {location.path} "
            f"({location.schema.value} schema)"
        )
        return len(snapshot.connections), list(snapshot.warnings)
