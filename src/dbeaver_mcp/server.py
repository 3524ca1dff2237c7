"""DBeaver MCP server - query saved DBeaver connections from an MCP client."""

import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions

from .constants import (
    DB_MAX_ROWS,
    DB_QUERY_TIMEOUT,
    ENV_CONFIG_PATH,
    ENV_MAX_ROWS,
    ENV_QUERY_TIMEOUT,
    ENV_SCHEMA,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    SERVER_NAME,
    SERVER_VERSION,
)
from .database.executors import DriverDispatcher
from .database.formatting import format_connections, format_query_result, format_verdict, format_warnings
from .database.logging import redact
from .errors import ConfigError, DBeaverMCPError
from .query_service import QueryService
from .tool_definitions import ToolDescriptions
from .workspace import ConfigLocator, ConnectionCache, SchemaVersion

logger = logging.getLogger("dbeaver_mcp")

USAGE = """Usage: dbeaver-mcp [--config-path <path>] [--schema legacy|modern] [--timeout <seconds>] [--max-rows <n>] [--test]

Optional Flags:
  --config-path <path>  - DBeaver store: the workspace '.dbeaver' directory (modern)
                          or the workspace root holding '.metadata' (legacy)
                          Env: DBEAVER_CONFIG_PATH
  --schema <version>    - Skip detection: 'legacy' or 'modern' (Env: DBEAVER_SCHEMA)
  --timeout <seconds>   - Connect + query timeout per call, default 30 (Env: DBEAVER_QUERY_TIMEOUT)
  --max-rows <n>        - Maximum rows returned per query, default 10000 (Env: DBEAVER_MAX_ROWS)
  --test                - Load connections, print them and exit
"""


def configure_logging(level: int = logging.INFO) -> None:
    """Send package logs to stderr; stdout carries the MCP protocol."""
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)


class OptionsError(ValueError):
    """Invalid command line flag or environment value."""


@dataclass
class RuntimeOptions:
    """Runtime configuration from flags, then environment, then defaults."""

    config_path: Optional[str] = None
    schema: Optional[SchemaVersion] = None
    timeout: float = DB_QUERY_TIMEOUT
    max_rows: int = DB_MAX_ROWS
    test_mode: bool = False


def _parse_number(name: str, value: str, kind):
    try:
        number = kind(value)
    except ValueError:
        raise OptionsError(f"{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise OptionsError(f"{name} must be positive, got {value!r}")
    return number


def _parse_schema(value: str) -> SchemaVersion:
    try:
        return SchemaVersion(value.lower())
    except ValueError:
        raise OptionsError(f"--schema must be 'legacy' or 'modern', got {value!r}") from None


def parse_args(args: Sequence[str], environ: Optional[Mapping[str, str]] = None) -> RuntimeOptions:
    """Parse command line flags with environment fallbacks.

    Raises:
        OptionsError: On unknown flags, missing values or invalid numbers
    """
    environ = os.environ if environ is None else environ
    args = list(args)
    flags: dict[str, str] = {}
    test_mode = False

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--test":
            test_mode = True
            i += 1
        elif arg in ("--config-path", "--schema", "--timeout", "--max-rows"):
            if i + 1 >= len(args):
                raise OptionsError(f"{arg} requires a value")
            flags[arg] = args[i + 1]
            i += 2
        else:
            raise OptionsError(f"Unknown argument: {arg}")

    options = RuntimeOptions(test_mode=test_mode)

    config_path = flags.get("--config-path") or environ.get(ENV_CONFIG_PATH)
    options.config_path = config_path or None

    schema = flags.get("--schema") or environ.get(ENV_SCHEMA)
    if schema:
        options.schema = _parse_schema(schema)

    timeout = flags.get("--timeout") or environ.get(ENV_QUERY_TIMEOUT)
    if timeout:
        options.timeout = _parse_number("--timeout", timeout, float)

    max_rows = flags.get("--max-rows") or environ.get(ENV_MAX_ROWS)
    if max_rows:
        options.max_rows = _parse_number("--max-rows", max_rows, int)

    return options


def build_service(options: RuntimeOptions) -> QueryService:
    """Create the cache and dispatcher described by the options."""
    locator = ConfigLocator(override=options.config_path, schema=options.schema)
    cache = ConnectionCache.get_instance(locator)
    dispatcher = DriverDispatcher.default(timeout=options.timeout, max_rows=options.max_rows)
    return QueryService(cache, dispatcher)


async def handle_tool_call(service: QueryService, name: str, arguments: dict) -> str:
    """Run one tool and render its text response.

    Raises:
        DBeaverMCPError: Typed failures, rendered by the caller
        ValueError: Unknown tool or missing argument
    """
    if name == "list_connections":
        return format_connections(service.list_connections())

    if name == "get_connection":
        connection = service.get_connection(arguments["connection_id"])
        return json.dumps(connection.describe(), indent=2, default=str)

    if name == "classify_query":
        return format_verdict(service.classify(arguments["query"]))

    if name == "execute_query":
        connection = service.get_connection(arguments["connection_id"])
        result = await service.execute_query(
            connection.id,
            arguments["query"],
            confirmed=bool(arguments.get("confirmed", False)),
        )
        return format_query_result(result, arguments["query"], connection.name)

    if name == "reload_connections":
        report = service.reload()
        location = service.cache.location
        text = f"Loaded {report.count} connection(s)"
        if location is not None:
            text += f" from {location.path} ({location.schema.value} schema)"
        warnings = format_warnings(report.warnings)
        return f"{text}\n{warnings}" if warnings else text

    raise ValueError(f"Unknown tool '{name}'")


async def render_tool_call(service: QueryService, name: str, arguments: Optional[dict]) -> str:
    """Run one tool and turn any failure into an ``Error:`` text response."""
    try:
        return await handle_tool_call(service, name, arguments or {})
    except DBeaverMCPError as e:
        logger.error(f"Error in {name}: {type(e).__name__}: {str(e).splitlines()[0]}")
        return f"Error: {e}"
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid call to {name}: {e}")
        return f"Error: invalid arguments for {name}: {e}"
    except Exception as e:
        # Driver and argument errors nothing above classifies
        message = redact(str(e))
        logger.error(f"Error in {name}: {type(e).__name__}: {message}")
        logger.debug(traceback.format_exc())
        return f"Error: {type(e).__name__} in {name}: {message}"


def list_tool_definitions(service: QueryService, timeout: float = DB_QUERY_TIMEOUT) -> list[types.Tool]:
    connection_id = {
        "type": "string",
        "description": ToolDescriptions.get_connection_id_description(),
    }
    query = {
        "type": "string",
        "description": ToolDescriptions.get_query_description(),
    }
    return [
        types.Tool(
            name="list_connections",
            description=ToolDescriptions.get_list_connections_description(),
            inputSchema={"type": "object", "properties": {}},
        ),
        types.Tool(
            name="get_connection",
            description=ToolDescriptions.get_get_connection_description(),
            inputSchema={
                "type": "object",
                "properties": {"connection_id": connection_id},
                "required": ["connection_id"],
            },
        ),
        types.Tool(
            name="classify_query",
            description=ToolDescriptions.get_classify_query_description(),
            inputSchema={
                "type": "object",
                "properties": {"query": query},
                "required": ["query"],
            },
        ),
        types.Tool(
            name="execute_query",
            description=ToolDescriptions.get_execute_query_description(
                service.dispatcher.supported_engines, timeout
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "connection_id": connection_id,
                    "query": query,
                    "confirmed": {
                        "type": "boolean",
                        "description": ToolDescriptions.get_confirmed_description(),
                    },
                },
                "required": ["connection_id", "query"],
            },
        ),
        types.Tool(
            name="reload_connections",
            description=ToolDescriptions.get_reload_connections_description(),
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


class DBeaverServer(Server):
    """MCP Server that owns the query service."""

    def __init__(self, name: str, service: QueryService, timeout: float = DB_QUERY_TIMEOUT):
        super().__init__(name)
        self.service = service
        self.timeout = timeout


def check_store(service: QueryService) -> bool:
    """Load the store and print what was found.

    Returns:
        True if the store was loaded, False otherwise
    """
    print()
    print("Loading DBeaver connections...")
    try:
        report = service.reload()
    except ConfigError as e:
        print()
        print("[FAILED] Test FAILED")
        print(f"Error: {e}")
        return False

    location = service.cache.location
    print(f"Store: {location.path} ({location.schema.value} schema)")
    print()
    print(format_connections(service.list_connections()))
    warnings = format_warnings(report.warnings)
    if warnings:
        print()
        print(warnings)
    print()
    print("[PASSED] Test PASSED")
    return True


async def main():
    """Parse command line arguments and run the server."""
    configure_logging()

    try:
        options = parse_args(sys.argv[1:])
    except OptionsError as e:
        sys.stderr.write(f"Error: {e}\n")
        sys.stderr.write(USAGE)
        sys.exit(EXIT_FAILURE)

    service = build_service(options)

    if options.test_mode:
        success = check_store(service)
        sys.exit(EXIT_SUCCESS if success else EXIT_FAILURE)

    # A missing store is not fatal: the client can fix it and call reload_connections
    try:
        service.reload()
    except ConfigError as e:
        logger.warning(f"No connections loaded: {e}")

    server = DBeaverServer(SERVER_NAME, service, options.timeout)

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        """List available resources (none for this server)."""
        return []

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        """List available prompts (none for this server)."""
        return []

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        """List available tools."""
        return list_tool_definitions(server.service, server.timeout)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        """Handle tool calls."""
        text = await render_tool_call(server.service, name, arguments)
        return [types.TextContent(type="text", text=text)]

    logger.info("Starting DBeaver MCP Server")
    logger.info(f"Timeout: {options.timeout:g}s, max rows: {options.max_rows}")
    if service.cache.location is not None:
        logger.info(f"Connections: {len(service.cache.list())} from {service.cache.location.path}")

    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            init_options = InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
                instructions=(
                    "Call list_connections first, then execute_query with a connection id. "
                    "Schema-change and destructive statements need confirmed=true, "
                    "which must only be set after the user approves."
                ),
            )
            await server.run(read_stream, write_stream, init_options)
    except Exception as e:
        logger.error(f"MCP Server error: {type(e).__name__}: {e}")
        logger.debug(traceback.format_exc())
        sys.exit(EXIT_FAILURE)


def run():
    """Entry point for the dbeaver-mcp command."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    run()
