"""Filesystem helpers for MssqlMcpInstaller."""

import filecmp
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console

from mssqlmcpinstaller.constants import BACKUP_INFIX, BACKUP_TIMESTAMP_FORMAT
from mssqlmcpinstaller.errors import InstallerError
from mssqlmcpinstaller.models import BackupRecord


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(
        self,
        logger: logging.Logger,
        console: Console,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.logger = logger
        self.console = console
        self.clock = clock

    def backup_path_for(self, path: Path) -> Path:
        """Returns an unused ``<name>.backup.<timestamp>`` sibling, numbered on collision."""
        stamp = self.clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        candidate = path.with_name(f"{path.name}{BACKUP_INFIX}{stamp}")
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{path.name}{BACKUP_INFIX}{stamp}.{counter}")
            counter += 1
        return candidate

    def backup_file(self, path: Path) -> BackupRecord:
        backup_path = self.backup_path_for(path)
        try:
            shutil.copy2(path, backup_path)
        except OSError as exc:
            raise InstallerError(f"Could not back up {path}: {exc}") from exc
        self.logger.info("Backed up %s to %s", path, backup_path)
        return BackupRecord(original_path=path, backup_path=backup_path)

    def restore_backup(self, record: BackupRecord):
        try:
            shutil.copy2(record.backup_path, record.original_path)
        except OSError as exc:
            raise InstallerError(
                f"Could not restore {record.original_path} from {record.backup_path}: {exc}"
            ) from exc
        record.restored = True
        self.logger.info("Restored %s from %s", record.original_path, record.backup_path)

    def file_size(self, path: Path) -> Optional[int]:
        try:
            return path.stat().st_size
        except OSError:
            return None

    def same_content(self, first: Path, second: Path) -> bool:
        try:
            return filecmp.cmp(first, second, shallow=False)
        except OSError:
            return False

    def remove_tree(self, path: Path):
        try:
            shutil.rmtree(path)
            self.logger.debug("Removed directory: %s", path)
        except OSError as exc:
            raise InstallerError(f"Could not remove {path}: {exc}") from exc

    def make_dirs(self, path: Path):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallerError(f"Could not create {path}: {exc}") from exc
