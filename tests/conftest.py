from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Optional

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from dbeaver_mcp.constants import CREDENTIALS_KEY, DRIVERS_MAPPING_FILE
from dbeaver_mcp.workspace.cache import ConnectionCache

FIXED_IV = bytes(range(16))


def encrypt_credentials(document, iv: bytes, key: bytes = CREDENTIALS_KEY) -> bytes:
    """Encrypt a credential document the way DBeaver writes it (compact JSON)."""
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    plaintext = json.dumps(document, separators=(",", ":")).encode("utf-8")
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return iv + encryptor.update(padded) + encryptor.finalize()


def write_drivers_xml(workspace: Path, drivers_xml: str) -> Path:
    """Write the workspace driver mapping document."""
    path = workspace / DRIVERS_MAPPING_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(drivers_xml, encoding="utf-8")
    return path


def write_modern_store(
    root: Path,
    connections: dict,
    credentials: Optional[dict] = None,
    extra_files: Optional[dict[str, object]] = None,
) -> Path:
    """Write ``<root>/.dbeaver`` the way DBeaver 6.1.3+ lays it out."""
    store = root / ".dbeaver"
    store.mkdir(parents=True, exist_ok=True)
    (store / "data-sources.json").write_text(
        json.dumps({"folders": {}, "connections": connections}), encoding="utf-8"
    )
    if credentials is not None:
        (store / "credentials-config.json").write_bytes(encrypt_credentials(credentials, FIXED_IV))
    for name, document in (extra_files or {}).items():
        text = document if isinstance(document, str) else json.dumps(document)
        (store / name).write_text(text, encoding="utf-8")
    return store


def write_legacy_store(root: Path, data_sources_xml: str, drivers_xml: Optional[str] = None) -> Path:
    """Write a pre-6.1.3 workspace with ``.metadata`` and the XML data sources."""
    (root / ".metadata").mkdir(parents=True, exist_ok=True)
    general = root / "General"
    general.mkdir(exist_ok=True)
    (general / ".dbeaver-data-sources.xml").write_text(data_sources_xml, encoding="utf-8")
    if drivers_xml is not None:
        write_drivers_xml(root, drivers_xml)
    return root


@pytest.fixture
def sqlite_db(tmp_path) -> Path:
    path = tmp_path / "sample.db"
    connection = sqlite3.connect(path)
    connection.executescript(
        """
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT);
        INSERT INTO users (name, email) VALUES ('alice', 'alice@example.com');
        INSERT INTO users (name, email) VALUES ('bob', NULL);
        """
    )
    connection.commit()
    connection.close()
    return path


@pytest.fixture(autouse=True)
def _reset_cache_singleton():
    ConnectionCache.reset_instance()
    yield
    ConnectionCache.reset_instance()
