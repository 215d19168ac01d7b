"""Process start-up."""

from __future__ import annotations

import os
import signal
import subprocess
from dataclasses import dataclass
from typing import IO, Sequence

from procshell.execution.base import LaunchFailed
from procshell.util.logging import get_logger

_LOGGER = get_logger("procshell.execution.launcher")


@dataclass(frozen=True)
class LaunchedProcess:
    """Handles to a started child process.

    The child leads its own process group, so ``kill`` reaches anything it
    started that still holds the output pipes.

    Attributes:
        path: Executable path the process was started from.
        popen: Underlying subprocess handle.
    """

    path: str
    popen: subprocess.Popen[bytes]

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def stdout(self) -> IO[bytes]:
        if self.popen.stdout is None:
            raise RuntimeError(f"{self.path} was started without a stdout pipe")
        return self.popen.stdout

    @property
    def stderr(self) -> IO[bytes]:
        if self.popen.stderr is None:
            raise RuntimeError(f"{self.path} was started without a stderr pipe")
        return self.popen.stderr

    def wait(self, timeout: float | None = None) -> int:
        """Wait for the process to exit and return its exit code.

        Raises:
            subprocess.TimeoutExpired: If ``timeout`` elapses first.
        """

        return self.popen.wait(timeout=timeout)

    def kill(self) -> None:
        """Forcibly terminate the process and its process group."""

        try:
            os.killpg(self.popen.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass


class ProcessLauncher:
    """Start external processes with explicit arguments, environment and cwd."""

    def launch(
        self,
        path: str,
        args: Sequence[str],
        env: dict[str, str],
        cwd: str,
    ) -> LaunchedProcess:
        """Start ``path`` with ``args``.

        Standard input is connected to the null device; stdout and stderr are
        unbuffered pipes that must be drained by the caller. The child starts
        a new session and leads its own process group.

        Args:
            path: Absolute path to the executable.
            args: Flat argument list, not including the executable.
            env: Complete environment for the child.
            cwd: Working directory for the child.

        Returns:
            LaunchedProcess wrapping the child.

        Raises:
            LaunchFailed: If the process could not be started.
        """

        try:
            popen = subprocess.Popen(
                [path, *args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                cwd=cwd,
                bufsize=0,
                close_fds=True,
                start_new_session=True,
            )
        except OSError as exc:
            _LOGGER.debug("Failed to launch %s: %s", path, exc)
            raise LaunchFailed(path, exc) from exc
        _LOGGER.debug("Launched %s (pid %s) in %s", path, popen.pid, cwd)
        return LaunchedProcess(path=path, popen=popen)
