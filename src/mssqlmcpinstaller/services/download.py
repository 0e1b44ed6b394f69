"""Download service with progress reporting."""

import os
import time

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from mssqlmcpinstaller.constants import DEFAULT_DOWNLOAD_TIMEOUT
from mssqlmcpinstaller.errors import DownloadFailureError


class DownloadService:
    """Streams remote files to disk."""

    def __init__(
        self,
        validation_service,
        logger,
        console,
        requests_module,
        timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        retry_count: int = 0,
        retry_backoff_seconds: float = 2.0,
    ):
        self.validation_service = validation_service
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.timeout = timeout
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds

    def download_file(self, url: str, dest_path: str, description: str = "Downloading...") -> int:
        """Writes ``url`` to ``dest_path`` and returns the number of bytes written."""
        self.logger.info("Downloading %s to %s", url, dest_path)
        self.validation_service.enforce_https_policy(url, description, self.logger, self.console)

        max_attempts = max(1, self.retry_count + 1)
        for attempt in range(1, max_attempts + 1):
            try:
                return self._stream(url, dest_path, description)
            except self.requests.RequestException as exc:
                if attempt < max_attempts:
                    self.logger.warning(
                        "Download failed on attempt %s/%s. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        self.retry_backoff_seconds,
                        exc,
                    )
                    time.sleep(self.retry_backoff_seconds)
                    continue
                raise DownloadFailureError(f"Download failed for {description}: {exc}") from exc
            except OSError as exc:
                raise DownloadFailureError(f"Could not write {dest_path}: {exc}") from exc

        raise DownloadFailureError(f"Download failed after retries: {url}")

    def _stream(self, url: str, dest_path: str, description: str) -> int:
        written = 0
        with self.requests.get(url, stream=True, timeout=self.timeout) as response:
            response.raise_for_status()
            total_size = int(response.headers.get("Content-Length", 0))

            os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TimeElapsedColumn(),
                console=self.console,
                transient=True,
            ) as progress:
                task = progress.add_task(f"[cyan]{description}", total=total_size or None)
                with open(dest_path, "wb") as file_obj:
                    for chunk in response.iter_content(chunk_size=8192):
                        if not chunk:
                            continue
                        file_obj.write(chunk)
                        written += len(chunk)
                        progress.update(task, advance=len(chunk))

        self.logger.debug("Downloaded %s bytes to %s", written, dest_path)
        return written
