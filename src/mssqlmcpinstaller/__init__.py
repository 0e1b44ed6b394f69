"""
MssqlMcpInstaller - installs the MSSQL MCP server and configures its clients
"""

__version__ = "0.1.0"

from .core import MssqlMcpInstaller
from .errors import InstallerError

__all__ = ["MssqlMcpInstaller", "InstallerError"]
