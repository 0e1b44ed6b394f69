"""Shared constants for MssqlMcpInstaller."""

DEFAULT_REPO_URL = "https://github.com/Azure-Samples/SQL-AI-samples.git"
REPO_DIR_NAME = "SQL-AI-samples"
SERVER_SUBPROJECT = ("MssqlMcp", "Node")

ENTRY_POINT_RELPATH = ("dist", "index.js")
ENTRY_POINT_NAME = "index.js"
PATCH_SOURCE_RELPATH = ("src", "index.ts")

SERVER_DISPLAY_NAME = "MSSQL MCP"
SERVER_COMMAND = "node"
CLAUDE_DESKTOP_ROOT_KEY = "mcpServers"
CLAUDE_DESKTOP_CONFIG_NAME = "claude_desktop_config.json"
VSCODE_SERVER_TYPE = "stdio"

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
BACKUP_INFIX = ".backup."

DEFAULT_INSTALL_DIR_NAME = "mssql-mcp"
DEFAULT_CONFIG_FILE = ".mssqlmcpinstaller.yml"
DEFAULT_DOWNLOAD_TIMEOUT = 60.0
DEFAULT_RETRY_COUNT = 0
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0
NODE_MIN_VERSION = "18.0"
