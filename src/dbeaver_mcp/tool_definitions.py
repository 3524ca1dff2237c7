"""Tool descriptions for the DBeaver MCP server."""


class ToolDescriptions:
    """Centralized management of tool descriptions."""

    @classmethod
    def get_list_connections_description(cls) -> str:
        return (
            "List database connections saved in DBeaver. "
            "Returns id, name, driver, host/port/database and flags for each connection. "
            "Use the id (or the unique name) with execute_query."
        )

    @classmethod
    def get_get_connection_description(cls) -> str:
        return (
            "Show details of one saved DBeaver connection: driver, endpoint, driver properties "
            "and SSL settings. Passwords are never returned, only whether one is saved."
        )

    @classmethod
    def get_classify_query_description(cls) -> str:
        return (
            "Classify a SQL query before running it: safe-read, mutating, schema-change or destructive, "
            "and whether execute_query will require confirmed=true. "
            "The check looks at the leading keyword only (CTEs, batches and procedure calls are not inspected)."
        )

    @classmethod
    def get_execute_query_description(cls, supported_engines: list[str], timeout: float) -> str:
        return f"""Execute one SQL query against a saved DBeaver connection and return the rows.

Supported engines: {', '.join(supported_engines)}. Other drivers must be queried from DBeaver itself.

Safety:
- SELECT / WITH / SHOW / EXPLAIN run directly
- INSERT / UPDATE run directly
- CREATE / ALTER (schema-change) and DROP / TRUNCATE / DELETE (destructive) require confirmed=true
- Connections marked read-only in DBeaver only accept read queries

Each call opens its own connection and closes it afterwards; no transaction spans calls.
Timeout: {timeout:g}s per call (connect + query)."""

    @classmethod
    def get_connection_id_description(cls) -> str:
        return "Connection id from list_connections (a unique connection name also works)"

    @classmethod
    def get_query_description(cls) -> str:
        return "SQL query text (one statement)"

    @classmethod
    def get_confirmed_description(cls) -> str:
        return (
            "Set to true only when the user explicitly approved a schema-change or destructive statement. "
            "Default: false"
        )

    @classmethod
    def get_reload_connections_description(cls) -> str:
        return (
            "Re-read DBeaver's connection store after connections were added or edited in DBeaver. "
            "Returns the number of connections loaded and any entries that were skipped."
        )
