"""Prerequisite detection and installation for MssqlMcpInstaller."""

import re
import shutil
from typing import List, Optional

from packaging import version

from mssqlmcpinstaller.constants import NODE_MIN_VERSION
from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.models import RequiredTool, ToolStatus

NODE_TOOL = RequiredTool(
    name="Node.js",
    executables=("node", "npm"),
    packages={
        "winget": "OpenJS.NodeJS.LTS",
        "brew": "node",
        "apt-get": "nodejs npm",
        "dnf": "nodejs npm",
    },
    version_command=("node", "--version"),
    min_version=NODE_MIN_VERSION,
)

GIT_TOOL = RequiredTool(
    name="Git",
    executables=("git",),
    packages={
        "winget": "Git.Git",
        "brew": "git",
        "apt-get": "git",
        "dnf": "git",
    },
)

REQUIRED_TOOLS = (NODE_TOOL, GIT_TOOL)

PACKAGE_MANAGERS = ("winget", "brew", "apt-get", "dnf")

_VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)*)")


class PrerequisiteResolver:
    """Checks required tools on PATH and offers to install missing ones."""

    def __init__(self, command_runner, prompts, logger, console, which=shutil.which):
        self.command_runner = command_runner
        self.prompts = prompts
        self.logger = logger
        self.console = console
        self.which = which

    def is_present(self, tool: RequiredTool) -> bool:
        return all(self.which(executable) for executable in tool.executables)

    def detect_package_manager(self) -> Optional[str]:
        for manager in PACKAGE_MANAGERS:
            if self.which(manager):
                return manager
        return None

    def _elevate(self, cmd: List[str]) -> List[str]:
        if self.which("sudo"):
            return ["sudo"] + cmd
        return cmd

    def refresh_command(self, manager: str) -> Optional[List[str]]:
        """apt-get needs a fresh package index before installing on a new machine."""
        if manager == "apt-get":
            return self._elevate(["apt-get", "update"])
        return None

    def install_command(self, manager: str, tool: RequiredTool) -> List[str]:
        packages = tool.packages[manager].split()
        if manager == "winget":
            return [
                "winget",
                "install",
                "--exact",
                "--id",
                packages[0],
                "--accept-source-agreements",
                "--accept-package-agreements",
            ]
        if manager == "brew":
            return ["brew", "install"] + packages

        return self._elevate([manager, "install", "-y"] + packages)

    def ensure(self, tool: RequiredTool) -> ToolStatus:
        if self.is_present(tool):
            self.console.print(f"[green]{tool.name} is available.[/green]")
            self.check_version(tool)
            return ToolStatus.AVAILABLE

        self.console.print(f"[yellow]{tool.name} was not found on PATH.[/yellow]")
        self.logger.warning("%s is missing (needs: %s)", tool.name, ", ".join(tool.executables))

        manager = self.detect_package_manager()
        if manager is None or manager not in tool.packages:
            self.logger.error("No supported package manager found to install %s.", tool.name)
            return ToolStatus.UNAVAILABLE

        if not self.prompts.confirm(f"Install {tool.name} using {manager}?", default=False):
            self.logger.info("Installation of %s declined.", tool.name)
            return ToolStatus.UNAVAILABLE

        refresh = self.refresh_command(manager)
        if refresh:
            try:
                self.command_runner.run(refresh, check=True)
            except InstallerError as exc:
                self.logger.warning("Refreshing the %s package index failed: %s", manager, exc)

        try:
            self.command_runner.run(self.install_command(manager, tool), check=True)
        except InstallerError as exc:
            self.logger.error("Installing %s failed: %s", tool.name, exc)
            return ToolStatus.UNAVAILABLE

        if not self.is_present(tool):
            self.logger.error("%s is still missing after installation.", tool.name)
            return ToolStatus.UNAVAILABLE

        self.console.print(f"[green]{tool.name} installed.[/green]")
        return ToolStatus.INSTALLED

    def check_version(self, tool: RequiredTool) -> Optional[version.Version]:
        if not tool.version_command or not tool.min_version:
            return None

        try:
            result = self.command_runner.run(list(tool.version_command), check=False, capture_output=True)
        except InstallerError as exc:
            self.logger.debug("Could not read %s version: %s", tool.name, exc)
            return None

        match = _VERSION_PATTERN.search(result.stdout or "")
        if not match:
            return None

        detected = version.parse(match.group(1))
        if detected < version.parse(tool.min_version):
            self.logger.warning(
                "%s %s is older than the recommended %s. The build may fail.",
                tool.name,
                detected,
                tool.min_version,
            )
            self.console.print(
                f"[yellow]Warning:[/yellow] {tool.name} {detected} is older than {tool.min_version}."
            )
        return detected
