"""SQL authentication patch for the built MCP server.

The patch replaces ``src/index.ts`` with a remote variant that reads
``USERNAME``/``PASSWORD`` and rebuilds the server. Every outcome leaves a
working installation behind:

* ``ROLLED_BACK``: the download failed, was empty, or matched the original,
  and the original is restored.
* ``DEGRADED``: there was nothing to patch or no variant URL was configured,
  the rebuild failed after the replacement (the replaced source is kept), or the
  original could not be restored (the backup stays for a manual copy).
* ``PATCHED``: replacement and rebuild succeeded.
"""

from typing import Optional

from mssqlmcpinstaller.errors import (
    EmptyDownloadError,
    InstallerError,
    RebuildFailureError,
    UnchangedDownloadError,
)
from mssqlmcpinstaller.errors_catalog import actionable_error
from mssqlmcpinstaller.models import BackupRecord, BuiltArtifact, PatchOutcome, PatchResult
from mssqlmcpinstaller.services.source import npm_install_command


class AuthPatcher:
    def __init__(
        self,
        command_runner,
        download_service,
        filesystem_service,
        logger,
        console,
        patch_url: Optional[str] = None,
    ):
        self.command_runner = command_runner
        self.download_service = download_service
        self.filesystem_service = filesystem_service
        self.logger = logger
        self.console = console
        self.patch_url = patch_url

    def apply(self, artifact: BuiltArtifact) -> PatchResult:
        source = artifact.patch_source
        if not self.patch_url:
            message = actionable_error("patch_url_missing", path=str(source))
            self._warn(message)
            return PatchResult(PatchOutcome.DEGRADED, message=message)

        if not source.is_file():
            message = actionable_error("patch_source_missing", path=str(source))
            self._warn(message)
            return PatchResult(PatchOutcome.DEGRADED, message=message)

        backup = self.filesystem_service.backup_file(source)

        try:
            self.replace(artifact, backup)
        except InstallerError as exc:
            return self.roll_back(artifact, backup, exc)

        try:
            self.rebuild(artifact)
        except RebuildFailureError as exc:
            message = actionable_error("patch_rebuild_failed", project_dir=str(artifact.project_dir))
            self.logger.debug("Rebuild failure detail: %s", exc)
            self._warn(message)
            return PatchResult(PatchOutcome.DEGRADED, backup=backup, message=message)

        self.console.print("[green]SQL authentication patch applied.[/green]")
        return PatchResult(PatchOutcome.PATCHED, backup=backup, message="SQL authentication patch applied.")

    def replace(self, artifact: BuiltArtifact, backup: BackupRecord):
        source = artifact.patch_source
        self.console.print("[blue]Downloading SQL authentication variant...[/blue]")
        self.download_service.download_file(
            self.patch_url,
            str(source),
            description="Downloading SQL authentication patch...",
        )

        if not self.filesystem_service.file_size(source):
            raise EmptyDownloadError(f"Downloaded patch for {source} is empty.")
        if self.filesystem_service.same_content(source, backup.backup_path):
            raise UnchangedDownloadError(
                f"Downloaded patch for {source} is identical to the original source."
            )

    def roll_back(self, artifact: BuiltArtifact, backup: BackupRecord, error: Exception) -> PatchResult:
        self.logger.error("Patch download failed: %s", error)

        try:
            self.filesystem_service.restore_backup(backup)
        except InstallerError as exc:
            self.logger.error(str(exc))
            message = actionable_error(
                "patch_restore_failed",
                path=str(artifact.patch_source),
                backup_path=str(backup.backup_path),
            )
            self._warn(message)
            return PatchResult(PatchOutcome.DEGRADED, backup=backup, message=message)

        message = actionable_error(
            "patch_download_failed",
            url=self.patch_url,
            path=str(artifact.patch_source),
            project_dir=str(artifact.project_dir),
        )
        message = f"{error} {message}"
        self._warn(message)
        return PatchResult(PatchOutcome.ROLLED_BACK, backup=backup, message=message)

    def rebuild(self, artifact: BuiltArtifact):
        cwd = str(artifact.project_dir)
        self.console.print("[blue]Rebuilding server with SQL authentication...[/blue]")

        try:
            self.command_runner.run(npm_install_command(), check=True, capture_output=True, cwd=cwd)
            return
        except InstallerError as exc:
            self.logger.warning("npm install failed after patching, trying a direct TypeScript build: %s", exc)

        try:
            self.command_runner.run(["npx", "tsc"], check=True, capture_output=True, cwd=cwd)
        except InstallerError as exc:
            raise RebuildFailureError(str(exc)) from exc

    def _warn(self, message: str):
        self.logger.warning(message)
        self.console.print(f"[yellow]Warning:[/yellow] {message}")
