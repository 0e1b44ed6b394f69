"""Client configuration documents for VS Code and Claude Desktop."""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from mssqlmcpinstaller.constants import (
    CLAUDE_DESKTOP_CONFIG_NAME,
    CLAUDE_DESKTOP_ROOT_KEY,
    SERVER_COMMAND,
    SERVER_DISPLAY_NAME,
    VSCODE_SERVER_TYPE,
)
from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.models import (
    AuthMode,
    BackupRecord,
    ClientConfig,
    ClientTarget,
    InstallationSession,
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def default_claude_desktop_path(platform: str = sys.platform, environ=os.environ) -> Path:
    if platform == "win32":
        appdata = environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "Claude" / CLAUDE_DESKTOP_CONFIG_NAME
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Claude" / CLAUDE_DESKTOP_CONFIG_NAME
    return Path.home() / ".config" / "Claude" / CLAUDE_DESKTOP_CONFIG_NAME


class ConfigEmitter:
    """Builds per-client launch configuration from an installation session."""

    def __init__(self, filesystem_service, logger, console, claude_desktop_path: Optional[Path] = None):
        self.filesystem_service = filesystem_service
        self.logger = logger
        self.console = console
        self.claude_desktop_path = claude_desktop_path or default_claude_desktop_path()

    def build_env(self, session: InstallationSession) -> Dict[str, str]:
        env = {
            "SERVER_NAME": session.server_name,
            "DATABASE_NAME": session.database_name,
            "READONLY": _flag(session.read_only),
            "ENCRYPT": _flag(session.encrypt),
            "TRUST_SERVER_CERTIFICATE": _flag(session.trust_server_certificate),
        }
        if session.auth_mode is AuthMode.SQL:
            if not (session.username and session.password):
                raise InstallerError("SQL authentication requires both a username and a password.")
            env["USERNAME"] = session.username
            env["PASSWORD"] = session.password
        return env

    def emit(self, session: InstallationSession, target: ClientTarget, artifact_path) -> ClientConfig:
        return ClientConfig(
            target=target,
            command=SERVER_COMMAND,
            args=(str(artifact_path),),
            env=self.build_env(session),
        )

    def server_entry(self, config: ClientConfig) -> Dict[str, Any]:
        entry: Dict[str, Any] = {}
        if config.target is ClientTarget.VSCODE:
            entry["type"] = VSCODE_SERVER_TYPE
        entry["command"] = config.command
        entry["args"] = list(config.args)
        entry["env"] = dict(config.env)
        return entry

    def render(self, config: ClientConfig) -> Dict[str, Any]:
        if config.target is ClientTarget.VSCODE:
            return {SERVER_DISPLAY_NAME: self.server_entry(config)}
        return {CLAUDE_DESKTOP_ROOT_KEY: {SERVER_DISPLAY_NAME: self.server_entry(config)}}

    @staticmethod
    def dumps(document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=2, sort_keys=True) + "\n"

    def show_vscode(self, config: ClientConfig) -> str:
        """Prints the VS Code document for manual merge; the user's settings are never written."""
        text = self.dumps(self.render(config))
        self.console.print("[blue]Add this server under `mcp.servers` in your VS Code settings:[/blue]")
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)
        return text

    def write_claude_desktop(
        self, config: ClientConfig, path: Optional[Path] = None
    ) -> Tuple[Path, Optional[BackupRecord]]:
        path = Path(path or self.claude_desktop_path)
        document = self.render(config)
        backup = None

        if path.exists():
            backup = self.filesystem_service.backup_file(path)
            document = self._merge(path, document)
        else:
            self.filesystem_service.make_dirs(path.parent)

        try:
            path.write_text(self.dumps(document), encoding="utf-8")
        except OSError as exc:
            raise InstallerError(f"Could not write Claude Desktop config {path}: {exc}") from exc

        self.logger.info("Wrote Claude Desktop config to %s", path)
        self.console.print(f"[green]Claude Desktop configured: {path}[/green]")
        return path, backup

    def _merge(self, path: Path, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            existing = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self.logger.warning("Existing Claude Desktop config %s is unreadable and will be replaced: %s", path, exc)
            return document

        if not isinstance(existing, dict):
            self.logger.warning("Existing Claude Desktop config %s is not a JSON object and will be replaced.", path)
            return document

        servers = existing.get(CLAUDE_DESKTOP_ROOT_KEY)
        if not isinstance(servers, dict):
            servers = {}
        servers.update(document[CLAUDE_DESKTOP_ROOT_KEY])
        existing[CLAUDE_DESKTOP_ROOT_KEY] = servers
        return existing
