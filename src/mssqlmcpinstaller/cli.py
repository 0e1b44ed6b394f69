import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_REPO_URL,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_COUNT,
)
from .core import MssqlMcpInstaller, console
from .errors import InstallerError
from .services.config_loader import ConfigLoader
from .services.prompts import ConsolePromptProvider, NonInteractivePromptProvider
from .services.session_collector import SessionCollector
from .services.validation import ValidationService


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--install-path", required=False, type=click.Path(), help="Directory to install the MCP server into.")
@click.option("--server", required=False, help="SQL Server hostname, e.g. myserver.database.windows.net")
@click.option("--database", required=False, help="Database name")
@click.option("--username", required=False, help="SQL authentication username")
@click.option("--password", required=False, help="SQL authentication password")
@click.option(
    "--azure-ad/--sql-auth",
    "azure_ad",
    default=None,
    help="Use Azure AD authentication instead of SQL username/password.",
)
@click.option("--read-only", is_flag=True, default=None, help="Restrict the server to read-only queries.")
@click.option(
    "--trust-server-certificate",
    is_flag=True,
    default=None,
    help="Trust the SQL Server certificate without validation.",
)
@click.option(
    "--skip-prerequisites",
    is_flag=True,
    default=None,
    help="Do not check for (or install) Node.js and Git.",
)
@click.option("--vscode/--no-vscode", default=None, help="Print a VS Code MCP configuration.")
@click.option(
    "--claude-desktop/--no-claude-desktop",
    default=None,
    help="Write the Claude Desktop configuration file.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--repo-url", required=False, help="Git URL of the repository containing MssqlMcp/Node.")
@click.option(
    "--patch-url",
    required=False,
    help="URL of the SQL authentication variant of src/index.ts. Without it, SQL auth installs are left unpatched.",
)
@click.option(
    "--retry-count",
    type=click.IntRange(min=0),
    default=None,
    help="Extra attempts for the repository clone and the patch download.",
)
@click.option(
    "--retry-backoff-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait between attempts.",
)
@click.option(
    "--allow-insecure-http",
    is_flag=True,
    default=None,
    help="Allow HTTP URLs (insecure). By default only HTTPS URLs are accepted.",
)
@click.option(
    "--non-interactive",
    is_flag=True,
    default=None,
    help="Never prompt; missing values are errors and confirmations are declined.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    install_path,
    server,
    database,
    username,
    password,
    azure_ad,
    read_only,
    trust_server_certificate,
    skip_prerequisites,
    vscode,
    claude_desktop,
    config,
    repo_url,
    patch_url,
    retry_count,
    retry_backoff_seconds,
    allow_insecure_http,
    non_interactive,
    verbose,
    log_file,
):
    """Install the MSSQL MCP server and configure VS Code and Claude Desktop."""
    logger = logging.getLogger("mssqlmcpinstaller")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    non_interactive = bool(_resolve_option(non_interactive, config_values, "non_interactive", default=False))
    allow_insecure_http = bool(
        _resolve_option(allow_insecure_http, config_values, "allow_insecure_http", default=False)
    )
    skip_prerequisites = bool(
        _resolve_option(skip_prerequisites, config_values, "skip_prerequisites", default=False)
    )
    repo_url = _resolve_option(repo_url, config_values, "repo_url", default=DEFAULT_REPO_URL)
    patch_url = _resolve_option(patch_url, config_values, "patch_url")
    retry_count = int(_resolve_option(retry_count, config_values, "retry_count", default=DEFAULT_RETRY_COUNT))
    retry_backoff_seconds = float(
        _resolve_option(
            retry_backoff_seconds,
            config_values,
            "retry_backoff_seconds",
            default=DEFAULT_RETRY_BACKOFF_SECONDS,
        )
    )
    download_timeout = float(
        _resolve_option(None, config_values, "download_timeout", default=DEFAULT_DOWNLOAD_TIMEOUT)
    )
    command_timeout = _resolve_option(None, config_values, "command_timeout")
    if command_timeout is not None:
        command_timeout = float(command_timeout)

    session_options = {
        "install_path": _resolve_option(install_path, config_values, "install_path"),
        "server": _resolve_option(server, config_values, "server"),
        "database": _resolve_option(database, config_values, "database"),
        "username": _resolve_option(username, config_values, "username"),
        "password": _resolve_option(password, config_values, "password"),
        "azure_ad": _resolve_option(azure_ad, config_values, "azure_ad"),
        "read_only": _resolve_option(read_only, config_values, "read_only"),
        "trust_server_certificate": _resolve_option(
            trust_server_certificate, config_values, "trust_server_certificate"
        ),
        "vscode": _resolve_option(vscode, config_values, "vscode"),
        "claude_desktop": _resolve_option(claude_desktop, config_values, "claude_desktop"),
    }

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    if non_interactive:
        prompts = NonInteractivePromptProvider(logger)
    else:
        prompts = ConsolePromptProvider(console)

    try:
        collector = SessionCollector(
            prompts=prompts,
            validation_service=ValidationService(allow_insecure_http=allow_insecure_http),
        )
        session = collector.collect(session_options)
        installer = MssqlMcpInstaller(
            session=session,
            skip_prerequisites=skip_prerequisites,
            repo_url=repo_url,
            patch_url=patch_url,
            allow_insecure_http=allow_insecure_http,
            download_timeout=download_timeout,
            command_timeout=command_timeout,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
            prompts=prompts,
        )
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(installer.run())


if __name__ == "__main__":
    main()
