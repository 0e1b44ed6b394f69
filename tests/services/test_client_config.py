import json
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.models import AuthMode, ClientTarget, InstallationSession
from mssqlmcpinstaller.services.client_config import ConfigEmitter, default_claude_desktop_path
from mssqlmcpinstaller.services.filesystem import FileSystemService

ENTRY_POINT = "/opt/mssql-mcp/SQL-AI-samples/MssqlMcp/Node/dist/index.js"


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def _session(**overrides):
    values = dict(
        install_path=Path("/opt/mssql-mcp"),
        server_name="db.example.com",
        database_name="orders",
        auth_mode=AuthMode.SQL,
        username="svc",
        password="secret",
        read_only=True,
    )
    values.update(overrides)
    return InstallationSession(**values)


def _emitter(tmp_path):
    console = Console(record=True)
    filesystem = FileSystemService(
        logger=DummyLogger(), console=console, clock=lambda: datetime(2024, 1, 2, 3, 4, 5)
    )
    return ConfigEmitter(
        filesystem_service=filesystem,
        logger=DummyLogger(),
        console=console,
        claude_desktop_path=tmp_path / "Claude" / "claude_desktop_config.json",
    )


def test_sql_auth_scenario_carries_credentials(tmp_path):
    config = _emitter(tmp_path).emit(_session(), ClientTarget.VSCODE, ENTRY_POINT)

    assert config.env["READONLY"] == "true"
    assert config.env["USERNAME"] == "svc"
    assert config.env["PASSWORD"] == "secret"
    assert config.env["ENCRYPT"] == "true"
    assert config.env["TRUST_SERVER_CERTIFICATE"] == "false"
    assert config.command == "node"
    assert config.args == (ENTRY_POINT,)


def test_azure_ad_scenario_omits_credentials(tmp_path):
    session = _session(auth_mode=AuthMode.AZURE_AD, username=None, password=None, read_only=False)

    config = _emitter(tmp_path).emit(session, ClientTarget.CLAUDE_DESKTOP, ENTRY_POINT)

    assert set(config.env) == {
        "SERVER_NAME",
        "DATABASE_NAME",
        "READONLY",
        "ENCRYPT",
        "TRUST_SERVER_CERTIFICATE",
    }
    assert config.env["READONLY"] == "false"


@pytest.mark.parametrize("target", list(ClientTarget))
def test_azure_ad_ignores_leftover_credentials_for_every_target(tmp_path, target):
    session = _session(auth_mode=AuthMode.AZURE_AD)
    emitter = _emitter(tmp_path)

    document = emitter.render(emitter.emit(session, target, ENTRY_POINT))

    text = emitter.dumps(document)
    assert "USERNAME" not in text
    assert "PASSWORD" not in text


def test_sql_auth_without_password_is_rejected(tmp_path):
    with pytest.raises(InstallerError):
        _emitter(tmp_path).emit(_session(password=""), ClientTarget.VSCODE, ENTRY_POINT)


def test_client_config_is_immutable(tmp_path):
    config = _emitter(tmp_path).emit(_session(), ClientTarget.VSCODE, ENTRY_POINT)

    with pytest.raises(TypeError):
        config.env["READONLY"] = "false"


def test_render_vscode_shape(tmp_path):
    emitter = _emitter(tmp_path)
    document = emitter.render(emitter.emit(_session(), ClientTarget.VSCODE, ENTRY_POINT))

    assert list(document) == ["MSSQL MCP"]
    entry = document["MSSQL MCP"]
    assert entry["type"] == "stdio"
    assert entry["command"] == "node"
    assert entry["args"] == [ENTRY_POINT]
    assert entry["env"]["SERVER_NAME"] == "db.example.com"


def test_render_claude_desktop_shape(tmp_path):
    emitter = _emitter(tmp_path)
    document = emitter.render(emitter.emit(_session(), ClientTarget.CLAUDE_DESKTOP, ENTRY_POINT))

    entry = document["mcpServers"]["MSSQL MCP"]
    assert "type" not in entry
    assert entry["args"] == [ENTRY_POINT]
    assert entry["env"]["DATABASE_NAME"] == "orders"


def test_show_vscode_prints_without_writing(tmp_path):
    emitter = _emitter(tmp_path)
    config = emitter.emit(_session(), ClientTarget.VSCODE, ENTRY_POINT)

    text = emitter.show_vscode(config)

    assert json.loads(text)["MSSQL MCP"]["type"] == "stdio"
    assert list(tmp_path.iterdir()) == []


def test_write_claude_desktop_creates_file(tmp_path):
    emitter = _emitter(tmp_path)
    config = emitter.emit(_session(), ClientTarget.CLAUDE_DESKTOP, ENTRY_POINT)

    path, backup = emitter.write_claude_desktop(config)

    assert backup is None
    assert path == tmp_path / "Claude" / "claude_desktop_config.json"
    assert path.read_text(encoding="utf-8") == emitter.dumps(emitter.render(config))


def test_write_claude_desktop_backs_up_and_merges_existing(tmp_path):
    emitter = _emitter(tmp_path)
    path = tmp_path / "Claude" / "claude_desktop_config.json"
    path.parent.mkdir()
    original = json.dumps({"mcpServers": {"other": {"command": "uvx"}}, "theme": "dark"})
    path.write_text(original, encoding="utf-8")

    config = emitter.emit(_session(), ClientTarget.CLAUDE_DESKTOP, ENTRY_POINT)
    _, backup = emitter.write_claude_desktop(config)

    assert backup.backup_path.name == "claude_desktop_config.json.backup.20240102_030405"
    assert backup.backup_path.read_text(encoding="utf-8") == original
    written = json.loads(path.read_text(encoding="utf-8"))
    assert written["theme"] == "dark"
    assert written["mcpServers"]["other"] == {"command": "uvx"}
    assert written["mcpServers"]["MSSQL MCP"]["env"]["USERNAME"] == "svc"


def test_write_claude_desktop_replaces_unreadable_document(tmp_path):
    emitter = _emitter(tmp_path)
    path = tmp_path / "Claude" / "claude_desktop_config.json"
    path.parent.mkdir()
    path.write_text("{not json", encoding="utf-8")

    config = emitter.emit(_session(), ClientTarget.CLAUDE_DESKTOP, ENTRY_POINT)
    _, backup = emitter.write_claude_desktop(config)

    assert backup.backup_path.read_text(encoding="utf-8") == "{not json"
    assert json.loads(path.read_text(encoding="utf-8")) == emitter.render(config)


def test_default_claude_desktop_path_per_platform(tmp_path):
    windows = default_claude_desktop_path("win32", {"APPDATA": str(tmp_path)})
    mac = default_claude_desktop_path("darwin", {})
    linux = default_claude_desktop_path("linux", {})

    assert windows == tmp_path / "Claude" / "claude_desktop_config.json"
    assert mac.parts[-3:] == ("Application Support", "Claude", "claude_desktop_config.json")
    assert linux.parts[-3:] == (".config", "Claude", "claude_desktop_config.json")
