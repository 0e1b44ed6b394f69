"""Configuration loader for MssqlMcpInstaller."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mssqlmcpinstaller.errors import InstallerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "install_path",
        "server",
        "database",
        "username",
        "password",
        "azure_ad",
        "read_only",
        "trust_server_certificate",
        "skip_prerequisites",
        "vscode",
        "claude_desktop",
        "repo_url",
        "patch_url",
        "allow_insecure_http",
        "non_interactive",
        "verbose",
        "log_file",
        "download_timeout",
        "command_timeout",
        "retry_count",
        "retry_backoff_seconds",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise InstallerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise InstallerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InstallerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise InstallerError(f"Unknown configuration keys: {unknown_list}")

        return parsed
