from __future__ import annotations

import pytest

from conftest import write_legacy_store, write_modern_store
from dbeaver_mcp.errors import ConfigError, ConfigNotFoundError
from dbeaver_mcp.workspace.locator import ConfigLocator, SchemaVersion

LEGACY_XML = '<?xml version="1.0"?><data-sources></data-sources>'


def test_scan_prefers_modern_over_legacy(tmp_path) -> None:
    modern = write_modern_store(tmp_path / "workspace6" / "General", {})
    legacy = write_legacy_store(tmp_path / "dbeaver4", LEGACY_XML)

    locator = ConfigLocator(modern_locations=[str(modern)], legacy_locations=[str(legacy)])
    location = locator.locate()

    assert location.schema is SchemaVersion.MODERN
    assert location.path == modern


def test_scan_falls_back_to_legacy(tmp_path) -> None:
    legacy = write_legacy_store(tmp_path / "dbeaver4", LEGACY_XML)

    locator = ConfigLocator(
        modern_locations=[str(tmp_path / "missing" / ".dbeaver")],
        legacy_locations=[str(legacy)],
    )
    location = locator.locate()

    assert location.schema is SchemaVersion.LEGACY
    assert location.path == legacy


def test_nothing_found_names_checked_paths(tmp_path) -> None:
    first = tmp_path / "a" / ".dbeaver"
    second = tmp_path / "b"
    locator = ConfigLocator(modern_locations=[str(first)], legacy_locations=[str(second)])

    with pytest.raises(ConfigNotFoundError) as excinfo:
        locator.locate()

    assert excinfo.value.paths_checked == [str(first), str(second)]
    assert str(first) in str(excinfo.value)
    assert isinstance(excinfo.value, ConfigError)
    assert isinstance(excinfo.value, FileNotFoundError)


def test_unset_environment_variable_is_skipped(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("DBEAVER_TEST_UNSET", raising=False)
    locator = ConfigLocator(modern_locations=["$DBEAVER_TEST_UNSET/.dbeaver"], legacy_locations=[])

    with pytest.raises(ConfigNotFoundError) as excinfo:
        locator.locate()

    assert excinfo.value.paths_checked == []


def test_override_workspace_directory_finds_dbeaver_subdir(tmp_path) -> None:
    store = write_modern_store(tmp_path, {})

    location = ConfigLocator(override=tmp_path).locate()

    assert location.schema is SchemaVersion.MODERN
    assert location.path == store


def test_override_json_file_uses_parent(tmp_path) -> None:
    store = write_modern_store(tmp_path, {})

    location = ConfigLocator(override=store / "data-sources.json").locate()

    assert location == location.__class__(store, SchemaVersion.MODERN)


def test_override_legacy_workspace(tmp_path) -> None:
    root = write_legacy_store(tmp_path, LEGACY_XML)

    location = ConfigLocator(override=str(root)).locate()

    assert location.schema is SchemaVersion.LEGACY
    assert location.path == root


def test_override_xml_file_is_legacy(tmp_path) -> None:
    root = write_legacy_store(tmp_path, LEGACY_XML)
    xml = root / "General" / ".dbeaver-data-sources.xml"

    location = ConfigLocator(override=xml).locate()

    assert location.schema is SchemaVersion.LEGACY
    assert location.path == xml


def test_explicit_schema_skips_detection(tmp_path) -> None:
    location = ConfigLocator(override=tmp_path, schema="legacy").locate()

    assert location.schema is SchemaVersion.LEGACY
    assert location.path == tmp_path


def test_override_without_store_is_not_found(tmp_path) -> None:
    with pytest.raises(ConfigNotFoundError) as excinfo:
        ConfigLocator(override=tmp_path).locate()

    assert excinfo.value.paths_checked == [str(tmp_path)]
