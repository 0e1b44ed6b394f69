"""Builds the installation session from options and interactive answers."""

from pathlib import Path
from typing import Any, Dict, Optional

from mssqlmcpinstaller.constants import DEFAULT_INSTALL_DIR_NAME
from mssqlmcpinstaller.models import AuthMode, ClientTarget, InstallationSession


class SessionCollector:
    """Fills in options the operator did not pass, then freezes them into a session.

    ``options`` holds already-resolved CLI/config values where ``None`` means
    "not given". All prompting happens here, before any side effect.
    """

    def __init__(self, prompts, validation_service):
        self.prompts = prompts
        self.validation_service = validation_service

    def collect(self, options: Dict[str, Any]) -> InstallationSession:
        install_path = options.get("install_path") or self.prompts.ask(
            "Installation directory", default=str(Path.home() / DEFAULT_INSTALL_DIR_NAME)
        )
        server = self._required(options.get("server"), "SQL Server hostname")
        database = self._required(options.get("database"), "Database name")

        auth_mode = self._auth_mode(options)
        username: Optional[str] = None
        password: Optional[str] = None
        if auth_mode is AuthMode.SQL:
            username = self._required(options.get("username"), "SQL username")
            password = self._required(options.get("password"), "SQL password", password=True)

        read_only = self._flag(options.get("read_only"), "Restrict the server to read-only queries?", False)
        trust_certificate = self._flag(
            options.get("trust_server_certificate"), "Trust the server certificate?", False
        )

        targets = set()
        if self._flag(options.get("vscode"), "Generate VS Code configuration?", True):
            targets.add(ClientTarget.VSCODE)
        if self._flag(options.get("claude_desktop"), "Configure Claude Desktop?", True):
            targets.add(ClientTarget.CLAUDE_DESKTOP)

        session = InstallationSession(
            install_path=Path(install_path).expanduser(),
            server_name=server.strip(),
            database_name=database.strip(),
            auth_mode=auth_mode,
            username=username,
            password=password,
            read_only=read_only,
            trust_server_certificate=trust_certificate,
            targets=frozenset(targets),
        )
        self.validation_service.validate_session(session)
        return session

    def _required(self, value: Optional[str], label: str, password: bool = False) -> str:
        if value:
            return str(value)
        return self.prompts.ask(label, password=password)

    def _flag(self, value: Optional[bool], question: str, default: bool) -> bool:
        if value is not None:
            return bool(value)
        return self.prompts.confirm(question, default=default)

    def _auth_mode(self, options: Dict[str, Any]) -> AuthMode:
        azure_ad = options.get("azure_ad")
        if azure_ad is not None:
            return AuthMode.AZURE_AD if azure_ad else AuthMode.SQL
        if options.get("username") or options.get("password"):
            return AuthMode.SQL

        answer = self.prompts.choose(
            "Authentication mode",
            [mode.value for mode in AuthMode],
            default=AuthMode.SQL.value,
        )
        return AuthMode(answer)
