"""Reader for DBeaver's encrypted credential store.

DBeaver keeps saved users and passwords for the modern schema in
``credentials-config.json``: AES-128-CBC with a fixed, tool-wide key, the
16-byte IV prepended to the ciphertext and PKCS#7 padding. The plaintext is a
JSON object keyed by connection id.
"""

import json
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..constants import CREDENTIALS_IV_SIZE, CREDENTIALS_KEY


class CredentialStoreError(Exception):
    """The credential store exists but cannot be decrypted or decoded."""


def decrypt_credentials(data: bytes, key: bytes = CREDENTIALS_KEY) -> dict:
    """Decrypt the raw bytes of a credential store.

    Args:
        data: File contents (IV followed by ciphertext)
        key: AES key, DBeaver's fixed key by default

    Returns:
        Decoded credential document

    Raises:
        CredentialStoreError: If the data is truncated, corrupted or not JSON
    """
    if len(data) <= CREDENTIALS_IV_SIZE or (len(data) - CREDENTIALS_IV_SIZE) % 16:
        raise CredentialStoreError(
            f"Credential store has invalid length ({len(data)} bytes)\n"
            f"  Hint: The file may be truncated or use a custom master password"
        )

    iv = data[:CREDENTIALS_IV_SIZE]
    ciphertext = data[CREDENTIALS_IV_SIZE:]

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        document = json.loads(plaintext.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise CredentialStoreError(
            f"Failed to decrypt credential store\n"
            f"  Hint: DBeaver may be protecting credentials with a master password\n"
            f"  Error: {type(e).__name__}"
        ) from e

    if not isinstance(document, dict):
        raise CredentialStoreError("Credential store does not contain a JSON object")
    return document


class CredentialStore:
    """Decrypted view of ``credentials-config.json``."""

    def __init__(self, entries: Optional[dict] = None):
        self._entries = entries or {}

    @classmethod
    def load(cls, path: Path) -> "CredentialStore":
        """Load and decrypt the store at ``path``; an absent file is empty.

        Raises:
            CredentialStoreError: If the file cannot be read or decrypted
        """
        if not path.exists():
            return cls()
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CredentialStoreError(f"Cannot read credential store: {e}") from e
        return cls(decrypt_credentials(data))

    def lookup(self, connection_id: str) -> tuple[Optional[str], Optional[str]]:
        """Return ``(user, password)`` saved for a connection, if any."""
        entry = self._entries.get(connection_id)
        if not isinstance(entry, dict):
            return None, None
        auth = entry.get("#connection")
        if not isinstance(auth, dict):
            return None, None
        return auth.get("user"), auth.get("password")

    def __len__(self) -> int:
        return len(self._entries)
