"""Subprocess execution service for MssqlMcpInstaller."""

import shutil
import subprocess
import time
from typing import List, Optional

from mssqlmcpinstaller.errors import InstallerError


class CommandRunner:
    """Runs external commands with consistent error handling.

    ``retry_count`` on :meth:`run` re-runs a command that timed out or exited
    non-zero, waiting ``retry_backoff_seconds`` between attempts. Only network
    bound commands (``git clone``) are run with retries.
    """

    def __init__(
        self,
        logger,
        default_timeout: Optional[float] = None,
        which=shutil.which,
        sleep=time.sleep,
    ):
        self.logger = logger
        self.default_timeout = default_timeout
        self.which = which
        self.sleep = sleep

    def _resolve(self, cmd: List[str]) -> List[str]:
        # npm and npx are .cmd shims on Windows and are not found without the full path.
        resolved = self.which(cmd[0])
        if resolved:
            return [resolved] + list(cmd[1:])
        return list(cmd)

    def _attempt(self, resolved_cmd, cmd_str, capture_output, cwd, timeout):
        try:
            return subprocess.run(
                resolved_cmd,
                text=True,
                capture_output=capture_output,
                cwd=cwd,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise InstallerError(
                f"Required command not found: {resolved_cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise InstallerError(f"Failed to execute command: {cmd_str}. {exc}") from exc

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(str(part) for part in cmd)
        if cwd:
            self.logger.debug("Executing in %s: %s", cwd, cmd_str)
        else:
            self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        attempts = max(0, retry_count) + 1
        resolved_cmd = self._resolve([str(part) for part in cmd])

        attempt = 0
        while True:
            attempt += 1
            try:
                result = self._attempt(resolved_cmd, cmd_str, capture_output, cwd, effective_timeout)
            except subprocess.TimeoutExpired as exc:
                failure = f"Command timed out after {effective_timeout}s: {cmd_str}"
                if attempt >= attempts:
                    raise InstallerError(failure) from exc
            else:
                if capture_output and result.stdout:
                    self.logger.debug("Command output: %s", result.stdout.strip())
                if result.returncode == 0:
                    return result

                failure = f"Command failed ({result.returncode}): {cmd_str}"
                stderr = (result.stderr or "").strip() if capture_output else ""
                if stderr:
                    failure = f"{failure}\n{stderr}"
                if attempt >= attempts:
                    if check:
                        raise InstallerError(failure)
                    self.logger.warning(failure)
                    return result

            self.logger.warning(
                "Attempt %s of %s failed, retrying in %.1fs. %s",
                attempt,
                attempts,
                retry_backoff_seconds,
                failure,
            )
            self.sleep(retry_backoff_seconds)
