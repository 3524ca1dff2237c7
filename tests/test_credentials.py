from __future__ import annotations

import base64

import pytest

from conftest import encrypt_credentials
from dbeaver_mcp.workspace.credentials import CredentialStore, CredentialStoreError, decrypt_credentials

# credentials-config.json encrypted outside Python (openssl enc -aes-128-cbc) with
# DBeaver's key and IV 8f3a1c5e2b7d9046e1f0a3b5c7d92e4f prepended
CREDENTIALS_FILE = base64.b64decode(
    "jzocXit9kEbh8KO1x9kuT25rEcy4lO6R+bjzaRgySL5ivAvUznQyjc6DBwuNldPl"
    "91Z/O+RWOyK9q5mcv08ZYiNYR++EThYLBru42ZVRRvpmVsjfxKw0YceIWdHqaah0"
)
CREDENTIALS_PLAINTEXT = {"postgres-jdbc-1": {"#connection": {"user": "admin", "password": "s3cret"}}}


def test_decrypts_known_credentials_file() -> None:
    assert len(CREDENTIALS_FILE) == 96
    assert CREDENTIALS_FILE[:16] == bytes.fromhex("8f3a1c5e2b7d9046e1f0a3b5c7d92e4f")

    assert decrypt_credentials(CREDENTIALS_FILE) == CREDENTIALS_PLAINTEXT


def test_known_credentials_file_through_store(tmp_path) -> None:
    path = tmp_path / "credentials-config.json"
    path.write_bytes(CREDENTIALS_FILE)

    assert CredentialStore.load(path).lookup("postgres-jdbc-1") == ("admin", "s3cret")


def test_fixture_writer_matches_known_file() -> None:
    iv = CREDENTIALS_FILE[:16]

    assert encrypt_credentials(CREDENTIALS_PLAINTEXT, iv) == CREDENTIALS_FILE


@pytest.mark.parametrize("data", [b"", b"\x00" * 16, b"\x00" * 40])
def test_invalid_length_is_rejected(data) -> None:
    with pytest.raises(CredentialStoreError, match="invalid length"):
        decrypt_credentials(data)


def test_wrong_key_fails_loudly() -> None:
    data = encrypt_credentials({"a": {}}, b"\x02" * 16, key=b"\x11" * 16)

    with pytest.raises(CredentialStoreError):
        decrypt_credentials(data)


def test_non_object_document_is_rejected() -> None:
    data = encrypt_credentials(["not", "an", "object"], b"\x03" * 16)

    with pytest.raises(CredentialStoreError, match="JSON object"):
        decrypt_credentials(data)


def test_store_lookup(tmp_path) -> None:
    path = tmp_path / "credentials-config.json"
    path.write_bytes(
        encrypt_credentials(
            {
                "pg": {"#connection": {"user": "admin", "password": "pw"}},
                "user-only": {"#connection": {"user": "reader"}},
                "odd": "not an object",
            },
            b"\x04" * 16,
        )
    )

    store = CredentialStore.load(path)

    assert len(store) == 3
    assert store.lookup("pg") == ("admin", "pw")
    assert store.lookup("user-only") == ("reader", None)
    assert store.lookup("odd") == (None, None)
    assert store.lookup("missing") == (None, None)


def test_absent_store_is_empty(tmp_path) -> None:
    store = CredentialStore.load(tmp_path / "credentials-config.json")

    assert len(store) == 0
    assert store.lookup("anything") == (None, None)
