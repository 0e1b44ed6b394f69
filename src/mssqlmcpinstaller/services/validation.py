"""Input and URL validation helpers for MssqlMcpInstaller."""

from urllib.parse import urlparse

from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.errors_catalog import actionable_error
from mssqlmcpinstaller.models import InstallationSession


class ValidationService:
    """Validates the session and enforces the remote protocol policy."""

    def __init__(self, allow_insecure_http: bool = False):
        self.allow_insecure_http = allow_insecure_http

    def is_url(self, location: str) -> bool:
        scheme = urlparse(location).scheme.lower()
        return scheme in {"http", "https"}

    def enforce_https_policy(self, location: str, label: str, logger, console):
        if not self.is_url(location):
            return

        scheme = urlparse(location).scheme.lower()
        if scheme == "http" and not self.allow_insecure_http:
            raise InstallerError(actionable_error("insecure_http", label=label))

        if scheme == "http" and self.allow_insecure_http:
            logger.warning("Insecure HTTP enabled for %s: %s", label, location)
            console.print(
                f"[yellow]Warning:[/yellow] Using insecure HTTP for {label}. "
                "Prefer HTTPS whenever possible."
            )

    def validate_session(self, session: InstallationSession):
        if not session.server_name.strip():
            raise InstallerError(
                actionable_error("missing_parameter", name="server name", option="--server", key="server")
            )
        if not session.database_name.strip():
            raise InstallerError(
                actionable_error(
                    "missing_parameter", name="database name", option="--database", key="database"
                )
            )
        if session.uses_sql_auth and not (session.username and session.password):
            raise InstallerError(actionable_error("missing_credentials"))
