"""Upstream source acquisition and initial build."""

import os
from pathlib import Path
from typing import List, Optional

from mssqlmcpinstaller.constants import (
    DEFAULT_REPO_URL,
    ENTRY_POINT_NAME,
    ENTRY_POINT_RELPATH,
    PATCH_SOURCE_RELPATH,
    REPO_DIR_NAME,
    SERVER_SUBPROJECT,
)
from mssqlmcpinstaller.errors import (
    ArtifactNotFoundError,
    CloneFailureError,
    InitialBuildFailureError,
    InstallerError,
)
from mssqlmcpinstaller.errors_catalog import actionable_error
from mssqlmcpinstaller.models import BuiltArtifact

SKIPPED_DIRS = {"node_modules", ".git"}
MAX_REPORTED_CANDIDATES = 10


def npm_install_command() -> List[str]:
    return ["npm", "install"]


class SourceAcquirer:
    """Clones the upstream repository and builds the MCP server subproject."""

    def __init__(
        self,
        command_runner,
        logger,
        console,
        repo_url: str = DEFAULT_REPO_URL,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ):
        self.command_runner = command_runner
        self.logger = logger
        self.console = console
        self.repo_url = repo_url
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds

    def acquire(self, root: Path) -> BuiltArtifact:
        checkout = self.clone(Path(root))
        project_dir = self.locate_subproject(checkout)
        self.build(project_dir)
        entry_point = self.locate_entry_point(project_dir)
        return BuiltArtifact(
            entry_point=entry_point,
            patch_source=project_dir.joinpath(*PATCH_SOURCE_RELPATH),
            project_dir=project_dir,
        )

    def clone(self, root: Path) -> Path:
        checkout = root / REPO_DIR_NAME
        self.console.print(f"[blue]Cloning {self.repo_url}...[/blue]")
        try:
            self.command_runner.run(
                ["git", "clone", "--depth", "1", self.repo_url, str(checkout)],
                check=True,
                capture_output=True,
                retry_count=self.retry_count,
                retry_backoff_seconds=self.retry_backoff_seconds,
            )
        except InstallerError as exc:
            raise CloneFailureError(
                f"{actionable_error('clone_failed', repo_url=self.repo_url)}\n{exc}"
            ) from exc
        self.console.print("[green]Repository cloned.[/green]")
        return checkout

    def locate_subproject(self, checkout: Path) -> Path:
        project_dir = checkout.joinpath(*SERVER_SUBPROJECT)
        if not project_dir.is_dir():
            raise CloneFailureError(actionable_error("subproject_missing", path=str(project_dir)))
        return project_dir

    def build(self, project_dir: Path):
        self.console.print("[blue]Installing dependencies and building the server...[/blue]")
        try:
            self.command_runner.run(
                npm_install_command(),
                check=True,
                capture_output=True,
                cwd=str(project_dir),
            )
        except InstallerError as exc:
            raise InitialBuildFailureError(
                f"{actionable_error('build_failed', path=str(project_dir))}\n{exc}"
            ) from exc
        self.console.print("[green]Server built.[/green]")

    def locate_entry_point(self, project_dir: Path) -> Path:
        conventional = project_dir.joinpath(*ENTRY_POINT_RELPATH)
        if conventional.is_file():
            return conventional

        self.logger.warning(
            "Entry point not at %s; searching %s for %s.",
            conventional,
            project_dir,
            ENTRY_POINT_NAME,
        )
        found = self.search_entry_point(project_dir)
        if found is not None:
            self.logger.info("Using entry point found at %s", found)
            return found

        candidates = self.list_js_files(project_dir)
        message = actionable_error("artifact_not_found", name=ENTRY_POINT_NAME, path=str(project_dir))
        if candidates:
            message = f"{message}\nJavaScript files found: " + ", ".join(str(c) for c in candidates)
        raise ArtifactNotFoundError(message, candidates=candidates)

    def search_entry_point(self, project_dir: Path) -> Optional[Path]:
        matches = sorted(
            path for path in self._walk(project_dir) if path.name == ENTRY_POINT_NAME
        )
        if not matches:
            return None

        in_dist = [path for path in matches if "dist" in path.relative_to(project_dir).parts]
        return (in_dist or matches)[0]

    def list_js_files(self, project_dir: Path) -> List[Path]:
        found = sorted(path for path in self._walk(project_dir) if path.suffix == ".js")
        return found[:MAX_REPORTED_CANDIDATES]

    def _walk(self, project_dir: Path):
        for current_root, dirs, files in os.walk(project_dir):
            dirs[:] = [directory for directory in dirs if directory not in SKIPPED_DIRS]
            for file_name in files:
                yield Path(current_root) / file_name
