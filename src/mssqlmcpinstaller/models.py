"""Shared domain models for MssqlMcpInstaller."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Tuple


class AuthMode(str, Enum):
    SQL = "sql"
    AZURE_AD = "azure-ad"


class ClientTarget(str, Enum):
    VSCODE = "vscode"
    CLAUDE_DESKTOP = "claude-desktop"


class ToolStatus(str, Enum):
    AVAILABLE = "available"
    INSTALLED = "installed"
    UNAVAILABLE = "unavailable"


class PatchOutcome(str, Enum):
    PATCHED = "patched"
    DEGRADED = "degraded"
    ROLLED_BACK = "rolled-back"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class InstallationSession:
    """Parameters of one installation run, fixed before any side effect."""

    install_path: Path
    server_name: str
    database_name: str
    auth_mode: AuthMode = AuthMode.AZURE_AD
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    read_only: bool = False
    encrypt: bool = True
    trust_server_certificate: bool = False
    targets: FrozenSet[ClientTarget] = frozenset()

    @property
    def uses_sql_auth(self) -> bool:
        return self.auth_mode is AuthMode.SQL


@dataclass(frozen=True)
class BuiltArtifact:
    """Entry point produced by the build plus the source file the auth patch replaces."""

    entry_point: Path
    patch_source: Path
    project_dir: Path


@dataclass
class BackupRecord:
    original_path: Path
    backup_path: Path
    restored: bool = False


@dataclass(frozen=True)
class ClientConfig:
    target: ClientTarget
    command: str
    args: Tuple[str, ...]
    env: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


@dataclass(frozen=True)
class PatchResult:
    outcome: PatchOutcome
    backup: Optional[BackupRecord] = None
    message: str = ""


@dataclass(frozen=True)
class RequiredTool:
    """An external tool the installation needs on PATH."""

    name: str
    executables: Tuple[str, ...]
    packages: Dict[str, str] = field(default_factory=dict)
    version_command: Optional[Tuple[str, ...]] = None
    min_version: Optional[str] = None
