"""Constants and static configuration for the DBeaver MCP server."""

# Application constants
SERVER_NAME = "dbeaver-mcp"
SERVER_VERSION = "1.0.0"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Database constants
DB_QUERY_TIMEOUT = 30.0  # 30 seconds shared by connect and request phases
DB_MAX_ROWS = 10_000  # Maximum rows fetched per query result
TIMEOUT_GRACE = 2.0  # Margin above the timeout before the worker is interrupted
TEARDOWN_TIMEOUT = 5.0  # Upper bound when waiting for an interrupted worker to close
SQLITE_PROGRESS_STEPS = 1_000  # VM instructions between deadline checks

# Environment variables (fallbacks for command line flags)
ENV_CONFIG_PATH = "DBEAVER_CONFIG_PATH"
ENV_SCHEMA = "DBEAVER_SCHEMA"
ENV_QUERY_TIMEOUT = "DBEAVER_QUERY_TIMEOUT"
ENV_MAX_ROWS = "DBEAVER_MAX_ROWS"

# Modern store (DBeaver 6.1.3+): <project>/.dbeaver/
MODERN_MARKER_DIR = ".dbeaver"
MODERN_DATA_SOURCES_FILE = "data-sources.json"
MODERN_DATA_SOURCES_GLOB = "data-sources*.json"
MODERN_CREDENTIALS_FILE = "credentials-config.json"
MODERN_STORE_LOCATIONS = [
    "~/.local/share/DBeaverData/workspace6/General/.dbeaver",
    "~/Library/DBeaverData/workspace6/General/.dbeaver",
    "$APPDATA/DBeaverData/workspace6/General/.dbeaver",
    "~/snap/dbeaver-ce/current/.local/share/DBeaverData/workspace6/General/.dbeaver",
    "~/.var/app/io.dbeaver.DBeaverCommunity/data/DBeaverData/workspace6/General/.dbeaver",
]

# Legacy store (before 6.1.3): <workspace>/.metadata + .dbeaver-data-sources.xml
LEGACY_MARKER_DIR = ".metadata"
LEGACY_DATA_SOURCES_FILES = [
    "General/.dbeaver-data-sources.xml",
    ".dbeaver-data-sources.xml",
]
LEGACY_STORE_LOCATIONS = [
    "~/.dbeaver4",
    "~/.dbeaver",
]

# Driver id -> driver class mapping, relative to the workspace root (both schemas)
DRIVERS_MAPPING_FILE = ".metadata/.plugins/org.jkiss.dbeaver.core/drivers.xml"

# Fixed key DBeaver uses for credentials-config.json (AES-128-CBC, IV prefixed)
CREDENTIALS_KEY = bytes.fromhex("babb4a9f774ab853c96c2d653dfe544a")
CREDENTIALS_IV_SIZE = 16

# Default ports, matched in order against the lowercased driver identifier
DEFAULT_PORTS = [
    (("sqlite",), None),
    (("postgres",), 5432),
    (("mssql", "sqlserver", "microsoft", "jtds"), 1433),
    (("mysql", "mariadb"), 3306),
    (("oracle",), 1521),
]

# Managed database hosts that get encryption-in-transit by default
CLOUD_HOST_SUFFIXES = [
    ".rds.amazonaws.com",
    ".redshift.amazonaws.com",
    ".database.windows.net",
    ".database.azure.com",
    ".database.cloud.microsoft",
    ".sql.azuresynapse.net",
    ".cloudsql.google.com",
    ".neon.tech",
    ".supabase.co",
    ".supabase.com",
    ".aivencloud.com",
    ".digitalocean.com",
    ".psdb.cloud",
]

# SQL Server ODBC driver used when the connection does not name one
MSSQL_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"
