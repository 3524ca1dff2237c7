"""DBeaver workspace integration.

Architecture:
- locator.py: finds the connection store and its schema version
- legacy.py / modern.py: the two schema parsers behind parser.py's contract
- credentials.py: decrypts the modern credential store
- cache.py: process-wide connection snapshot with atomic reload
"""

from dbeaver_mcp.workspace.cache import ConnectionCache
from dbeaver_mcp.workspace.locator import ConfigLocator, SchemaVersion, StoreLocation
from dbeaver_mcp.workspace.models import ConnectionModel, ConnectionSummary, ParseWarning, SslOptions
from dbeaver_mcp.workspace.parser import ParseResult, get_parser, parse_store

__all__ = [
    "ConnectionCache",
    "ConfigLocator",
    "SchemaVersion",
    "StoreLocation",
    "ConnectionModel",
    "ConnectionSummary",
    "ParseWarning",
    "SslOptions",
    "ParseResult",
    "get_parser",
    "parse_store",
]
