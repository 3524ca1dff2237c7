from __future__ import annotations

import json
import logging

from dbeaver_mcp.database.connection import ConnectionHandle, resolve_connection
from dbeaver_mcp.database.logging import log_query_execution, redact
from dbeaver_mcp.workspace.models import ConnectionModel


def test_typed_fields_win_over_properties() -> None:
    connection = ConnectionModel(
        id="pg",
        name="pg",
        driver="postgres-jdbc",
        host="typed-host",
        properties={"host": "prop-host", "databaseName": "from-props", "USER": "prop-user"},
    )

    resolved = resolve_connection(connection, default_port=5432)

    assert resolved.host == "typed-host"
    assert resolved.database == "from-props"
    assert resolved.user == "prop-user"
    assert resolved.port == 5432


def test_property_port_is_converted() -> None:
    connection = ConnectionModel(id="ms", name="ms", driver="mssql", properties={"portNumber": "1444"})

    assert resolve_connection(connection, default_port=1433).port == 1444


def test_invalid_property_port_falls_back_to_default() -> None:
    connection = ConnectionModel(id="ms", name="ms", driver="mssql", properties={"port": "abc"})

    assert resolve_connection(connection, default_port=1433).port == 1433


def test_target_never_contains_password() -> None:
    connection = ConnectionModel(
        id="pg", name="pg", driver="postgres", host="h", port=5432, database="d", user="u", password="topsecret"
    )

    resolved = resolve_connection(connection)

    assert resolved.target == "u@h:5432/d"
    assert "topsecret" not in repr(resolved)


def test_redact_masks_url_userinfo_and_secrets() -> None:
    text = "could not connect to postgresql://admin:topsecret@db/app using topsecret"

    assert redact(text, "topsecret") == "could not connect to postgresql://admin:***@db/app using ***"
    assert redact("nothing to hide", None, "") == "nothing to hide"


def test_blocked_queries_are_logged_as_warnings(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="dbeaver_mcp.database"):
        log_query_execution("DROP TABLE t", "local", success=False, blocked=True, classification="destructive")

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    payload = json.loads(record.getMessage())
    assert payload["blocked"] is True
    assert payload["classification"] == "destructive"


class RecordingExecutor:
    engine = "Recording"

    def __init__(self):
        self.interrupted = []

    def interrupt(self, raw, statement=None):
        self.interrupted.append((raw, statement))


def test_handle_interrupt_before_attach_only_marks_cancelled() -> None:
    handle = ConnectionHandle()

    handle.interrupt()

    assert handle.cancelled is True
    assert handle.opened is False


def test_handle_interrupt_reaches_executor() -> None:
    executor = RecordingExecutor()
    handle = ConnectionHandle()
    handle.attach(executor, "raw")
    handle.statement = "cursor"

    handle.interrupt()

    assert executor.interrupted == [("raw", "cursor")]


def test_handle_interrupt_after_detach_is_noop() -> None:
    executor = RecordingExecutor()
    handle = ConnectionHandle()
    handle.attach(executor, "raw")
    handle.detach()

    handle.interrupt()

    assert executor.interrupted == []
    assert handle.cancelled is True
