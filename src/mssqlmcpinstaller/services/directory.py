"""Installation root provisioning."""

from pathlib import Path

from mssqlmcpinstaller.errors import InstallationDeclined, InstallerError


class DirectoryProvisioner:
    """Creates the installation root, resetting it only with confirmation."""

    def __init__(self, filesystem_service, prompts, logger, console):
        self.filesystem_service = filesystem_service
        self.prompts = prompts
        self.logger = logger
        self.console = console

    def provision(self, path: Path) -> Path:
        """Creates ``path`` and returns it resolved.

        If ``path`` already exists the operator must confirm its removal. Removal
        deletes everything below ``path`` and cannot be undone. Declining raises
        ``InstallationDeclined`` before anything is touched.
        """
        path = Path(path).expanduser().resolve()

        if path.exists():
            self.console.print(f"[yellow]Installation directory already exists: {path}[/yellow]")
            if not self.prompts.confirm(
                f"Delete {path} and everything in it, then reinstall?", default=False
            ):
                self.logger.info("Existing installation at %s kept; nothing changed.", path)
                raise InstallationDeclined(f"Installation directory {path} was left untouched.")

            self.logger.info("Removing existing installation at %s", path)
            if path.is_dir():
                self.filesystem_service.remove_tree(path)
            else:
                try:
                    path.unlink()
                except OSError as exc:
                    raise InstallerError(f"Could not remove {path}: {exc}") from exc

        self.filesystem_service.make_dirs(path)
        self.console.print(f"[green]Installation directory ready: {path}[/green]")
        return path
