"""Execution outcomes and the error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

EXIT_CODE_NOT_FOUND = 127
EXIT_CODE_LAUNCH_FAILED = 126


class ExecutionError(RuntimeError):
    """Failure of an external command.

    Attributes:
        path: Path (or name, when resolution failed) of the command.
        exit_code: Exit code of the process, or the convention for the failure.
        stdout: Captured standard output, untrimmed.
        stderr: Captured standard error.
    """

    def __init__(self, path: str, exit_code: int, stdout: str = "", stderr: str = "") -> None:
        self.path = path
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"{self.path} exited with error code {self.exit_code}."

    @property
    def not_found(self) -> bool:
        """Whether the failure means the executable could not be found."""

        return self.exit_code == EXIT_CODE_NOT_FOUND


class ResolutionFailed(ExecutionError):
    """Raised when a command name cannot be mapped to an executable."""

    def __init__(self, name: str, stdout: str = "", stderr: str | None = None) -> None:
        self.name = name
        if stderr is None:
            stderr = f"Unable to locate command '{name}'"
        super().__init__(name, EXIT_CODE_NOT_FOUND, stdout, stderr)

    def _describe(self) -> str:
        return f"Unable to locate command '{self.name}'."


class LaunchFailed(ExecutionError):
    """Raised when an executable exists but the process could not be started."""

    def __init__(self, path: str, os_error: OSError) -> None:
        self.os_error = os_error
        super().__init__(path, EXIT_CODE_LAUNCH_FAILED, "", str(os_error))

    def _describe(self) -> str:
        return f"Unable to launch {self.path}: {self.os_error.strerror or self.os_error}"


class NonZeroExit(ExecutionError):
    """Raised when a process ran and exited with a non-zero status."""


class ExecutionTimedOut(ExecutionError):
    """Raised when a process was killed after exceeding its timeout."""

    def __init__(
        self,
        path: str,
        timeout_s: float,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.timeout_s = timeout_s
        super().__init__(path, exit_code, stdout, stderr)

    def _describe(self) -> str:
        return f"{self.path} timed out after {self.timeout_s:g}s."


@dataclass(frozen=True)
class Success:
    """Successful execution.

    Attributes:
        output: Standard output, trimmed per the session configuration.
        stderr: Captured standard error.
        duration_s: Wall-clock duration of the execution in seconds.
    """

    output: str
    stderr: str = ""
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> str:
        """Return the trimmed output."""

        return self.output


@dataclass(frozen=True)
class Failure:
    """Failed execution wrapping the error that describes it."""

    error: ExecutionError
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> str:
        """Raise the wrapped error."""

        raise self.error


ExecutionOutcome = Union[Success, Failure]
