from pathlib import Path

import pytest

from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.models import AuthMode, ClientTarget
from mssqlmcpinstaller.services.session_collector import SessionCollector
from mssqlmcpinstaller.services.validation import ValidationService


class CannedPrompts:
    def __init__(self, answers=None, confirms=None, choice=None):
        self.answers = dict(answers or {})
        self.confirms = dict(confirms or {})
        self.choice = choice
        self.asked = []

    def ask(self, message, default=None, password=False):
        self.asked.append(message)
        return self.answers.get(message, default or "")

    def confirm(self, message, default=False):
        self.asked.append(message)
        return self.confirms.get(message, default)

    def choose(self, message, choices, default):
        self.asked.append(message)
        return self.choice or default


def _collector(prompts):
    return SessionCollector(prompts=prompts, validation_service=ValidationService())


def test_collect_uses_supplied_options_without_prompting(tmp_path):
    prompts = CannedPrompts()
    options = {
        "install_path": str(tmp_path / "mcp"),
        "server": "db.example.com",
        "database": "orders",
        "username": "svc",
        "password": "secret",
        "azure_ad": False,
        "read_only": True,
        "trust_server_certificate": False,
        "vscode": True,
        "claude_desktop": False,
    }

    session = _collector(prompts).collect(options)

    assert prompts.asked == []
    assert session.install_path == tmp_path / "mcp"
    assert session.auth_mode is AuthMode.SQL
    assert session.username == "svc"
    assert session.read_only is True
    assert session.targets == frozenset({ClientTarget.VSCODE})


def test_collect_prompts_for_missing_values():
    prompts = CannedPrompts(
        answers={
            "Installation directory": "/srv/mcp",
            "SQL Server hostname": "db.example.com",
            "Database name": "orders",
            "SQL username": "svc",
            "SQL password": "secret",
        },
        confirms={"Configure Claude Desktop?": False},
    )

    session = _collector(prompts).collect({})

    assert session.install_path == Path("/srv/mcp")
    assert session.auth_mode is AuthMode.SQL
    assert session.password == "secret"
    assert session.targets == frozenset({ClientTarget.VSCODE})
    assert "Authentication mode" in prompts.asked


def test_collect_azure_ad_never_asks_for_credentials():
    prompts = CannedPrompts(choice="azure-ad")

    session = _collector(prompts).collect(
        {"install_path": "/srv/mcp", "server": "db.example.com", "database": "orders"}
    )

    assert session.auth_mode is AuthMode.AZURE_AD
    assert session.username is None
    assert "SQL username" not in prompts.asked


def test_collect_infers_sql_auth_from_supplied_username():
    prompts = CannedPrompts(answers={"SQL password": "secret"})

    session = _collector(prompts).collect(
        {"install_path": "/srv/mcp", "server": "db", "database": "orders", "username": "svc"}
    )

    assert session.auth_mode is AuthMode.SQL
    assert "Authentication mode" not in prompts.asked


def test_collect_rejects_sql_auth_without_credentials():
    prompts = CannedPrompts()

    with pytest.raises(InstallerError, match="username and a password"):
        _collector(prompts).collect(
            {"install_path": "/srv/mcp", "server": "db", "database": "orders", "azure_ad": False}
        )


def test_collect_rejects_missing_server():
    with pytest.raises(InstallerError, match="server name"):
        _collector(CannedPrompts()).collect({"install_path": "/srv/mcp", "azure_ad": True})
