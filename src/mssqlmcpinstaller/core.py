import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests
from rich.console import Console
from rich.table import Table

from .constants import (
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_REPO_URL,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_COUNT,
)
from .errors import InstallationDeclined, InstallerError, MissingPrerequisiteError
from .errors_catalog import actionable_error
from .models import (
    BuiltArtifact,
    ClientTarget,
    InstallationSession,
    PatchOutcome,
    PatchResult,
    ToolStatus,
)
from .services.client_config import ConfigEmitter
from .services.command_runner import CommandRunner
from .services.directory import DirectoryProvisioner
from .services.download import DownloadService
from .services.filesystem import FileSystemService
from .services.patcher import AuthPatcher
from .services.prerequisites import REQUIRED_TOOLS, PrerequisiteResolver
from .services.prompts import ConsolePromptProvider
from .services.source import SourceAcquirer
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("mssqlmcpinstaller")


class MssqlMcpInstaller:
    """Installs the MSSQL MCP server and configures its clients for one session."""

    def __init__(
        self,
        session: InstallationSession,
        skip_prerequisites: bool = False,
        repo_url: str = DEFAULT_REPO_URL,
        patch_url: Optional[str] = None,
        allow_insecure_http: bool = False,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        command_timeout: Optional[float] = None,
        retry_count: int = DEFAULT_RETRY_COUNT,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        prompts=None,
        command_runner: Optional[CommandRunner] = None,
        requests_module=requests,
        claude_desktop_path: Optional[Path] = None,
        which=shutil.which,
    ):
        self.session = session
        self.skip_prerequisites = skip_prerequisites
        self.repo_url = repo_url
        self.patch_url = patch_url

        self.prompts = prompts or ConsolePromptProvider(console)
        self.command_runner = command_runner or CommandRunner(
            logger=logger,
            default_timeout=command_timeout,
        )
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.validation_service = ValidationService(allow_insecure_http=allow_insecure_http)
        self.download_service = DownloadService(
            validation_service=self.validation_service,
            logger=logger,
            console=console,
            requests_module=requests_module,
            timeout=download_timeout,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
        )
        self.prerequisite_resolver = PrerequisiteResolver(
            command_runner=self.command_runner,
            prompts=self.prompts,
            logger=logger,
            console=console,
            which=which,
        )
        self.directory_provisioner = DirectoryProvisioner(
            filesystem_service=self.filesystem_service,
            prompts=self.prompts,
            logger=logger,
            console=console,
        )
        self.source_acquirer = SourceAcquirer(
            command_runner=self.command_runner,
            logger=logger,
            console=console,
            repo_url=repo_url,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
        )
        self.auth_patcher = AuthPatcher(
            command_runner=self.command_runner,
            download_service=self.download_service,
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
            patch_url=patch_url,
        )
        self.config_emitter = ConfigEmitter(
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
            claude_desktop_path=claude_desktop_path,
        )

        self.steps: List[Tuple[str, str]] = []
        self.artifact: Optional[BuiltArtifact] = None
        self.patch_result: Optional[PatchResult] = None
        self.emitted: Dict[ClientTarget, str] = {}
        self.written: Dict[ClientTarget, Path] = {}

    def _run_step(self, name: str, callback, *args, **kwargs):
        logger.debug("Starting step: %s", name)
        try:
            result = callback(*args, **kwargs)
        except InstallationDeclined:
            self.steps.append((name, "declined"))
            raise
        except Exception:
            self.steps.append((name, "failed"))
            raise
        self.steps.append((name, "success"))
        logger.debug("Finished step: %s", name)
        return result

    def validate_session(self):
        self.validation_service.validate_session(self.session)
        self.validation_service.enforce_https_policy(self.repo_url, "Repository URL", logger, console)

    def check_prerequisites(self):
        if self.skip_prerequisites:
            console.print("[yellow]Skipping prerequisite checks.[/yellow]")
            logger.info("Prerequisite checks skipped on request.")
            return

        console.print("[blue]Checking prerequisites...[/blue]")
        for tool in REQUIRED_TOOLS:
            status = self.prerequisite_resolver.ensure(tool)
            if status is ToolStatus.UNAVAILABLE:
                raise MissingPrerequisiteError(actionable_error("missing_prerequisite", tool=tool.name))

    def provision_directory(self) -> Path:
        return self.directory_provisioner.provision(self.session.install_path)

    def acquire_source(self, root: Path) -> BuiltArtifact:
        artifact = self.source_acquirer.acquire(root)
        console.print(f"[green]Server entry point: {artifact.entry_point}[/green]")
        return artifact

    def patch_authentication(self, artifact: BuiltArtifact) -> PatchResult:
        if not self.session.uses_sql_auth:
            logger.info("Azure AD authentication selected; source patch not needed.")
            return PatchResult(PatchOutcome.SKIPPED, message="Azure AD authentication needs no patch.")
        return self.auth_patcher.apply(artifact)

    def emit_client_configs(self, artifact: BuiltArtifact):
        if not self.session.targets:
            console.print("[yellow]No client configuration requested.[/yellow]")
            return

        if ClientTarget.VSCODE in self.session.targets:
            config = self.config_emitter.emit(self.session, ClientTarget.VSCODE, artifact.entry_point)
            self.emitted[ClientTarget.VSCODE] = self.config_emitter.show_vscode(config)

        if ClientTarget.CLAUDE_DESKTOP in self.session.targets:
            config = self.config_emitter.emit(self.session, ClientTarget.CLAUDE_DESKTOP, artifact.entry_point)
            self.emitted[ClientTarget.CLAUDE_DESKTOP] = self.config_emitter.dumps(
                self.config_emitter.render(config)
            )
            path, backup = self.config_emitter.write_claude_desktop(config)
            self.written[ClientTarget.CLAUDE_DESKTOP] = path
            if backup:
                console.print(f"[blue]Previous Claude Desktop config saved to {backup.backup_path}[/blue]")

    def summarize(self):
        table = Table(title="Installation summary")
        table.add_column("Step")
        table.add_column("Status")
        for name, status in self.steps:
            color = {"success": "green", "failed": "red", "declined": "yellow"}.get(status, "white")
            table.add_row(name, f"[{color}]{status}[/{color}]")
        console.print(table)

        if self.artifact:
            console.print(f"Entry point: {self.artifact.entry_point}")
        if self.patch_result:
            color = "green" if self.patch_result.outcome in (PatchOutcome.PATCHED, PatchOutcome.SKIPPED) else "yellow"
            console.print(f"Authentication patch: [{color}]{self.patch_result.outcome.value}[/{color}]")
        for target, path in self.written.items():
            console.print(f"{target.value} config: {path}")
        console.print("[dim]Restart your MCP clients to pick up the new server.[/dim]")

    def run(self) -> int:
        try:
            logger.info("Starting MSSQL MCP installation into %s", self.session.install_path)

            self._run_step("validate_session", self.validate_session)
            self._run_step("check_prerequisites", self.check_prerequisites)
            root = self._run_step("provision_directory", self.provision_directory)
            self.artifact = self._run_step("acquire_source", self.acquire_source, root)
            self.patch_result = self._run_step("patch_authentication", self.patch_authentication, self.artifact)
            self._run_step("emit_client_configs", self.emit_client_configs, self.artifact)

            self.summarize()
            console.print("[bold green]Installation complete.[/bold green]")
            logger.info("Installation complete.")
            return 0

        except InstallationDeclined as exc:
            console.print(f"[yellow]{exc} Nothing was changed.[/yellow]")
            logger.info("Installation declined by user.")
            return 0
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except InstallerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
