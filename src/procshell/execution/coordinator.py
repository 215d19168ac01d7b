"""Launch, drain and wait as one unit of work."""

from __future__ import annotations

import shlex
import subprocess
import time
from typing import TYPE_CHECKING, Sequence

from procshell.execution.base import (
    EXIT_CODE_NOT_FOUND,
    ExecutionError,
    ExecutionOutcome,
    ExecutionTimedOut,
    Failure,
    LaunchFailed,
    NonZeroExit,
    ResolutionFailed,
    Success,
)
from procshell.execution.drainer import StreamDrainer
from procshell.execution.launcher import LaunchedProcess, ProcessLauncher
from procshell.execution.workdir import WorkingDirectoryState
from procshell.util.logging import get_logger
from procshell.util.observability import ObservabilityManager, create_observability_manager

if TYPE_CHECKING:
    from procshell.config import SessionConfig

_LOGGER = get_logger("procshell.execution.coordinator")


class ExecutionCoordinator:
    """Runs one external process to completion and classifies the result."""

    def __init__(
        self,
        launcher: ProcessLauncher | None = None,
        observability: ObservabilityManager | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            launcher: Process launcher, defaults to a ProcessLauncher.
            observability: Event logger and metrics, defaults to a new manager.
        """

        self._launcher = launcher or ProcessLauncher()
        self._observability = observability or create_observability_manager()

    @property
    def observability(self) -> ObservabilityManager:
        return self._observability

    def execute(
        self,
        path: str,
        args: Sequence[str],
        config: SessionConfig,
        working_directory: WorkingDirectoryState,
    ) -> ExecutionOutcome:
        """Execute ``path`` with ``args`` and wait for it to finish.

        Returns only after the process has exited and both of its output
        streams have reached end-of-file. Failures are returned, not raised.

        Args:
            path: Executable path. Surrounding whitespace is ignored.
            args: Flat argument list.
            config: Session configuration for echoing, trimming and environment.
            working_directory: Directory state read at launch time.

        Returns:
            Success with trimmed stdout, or Failure carrying an ExecutionError.
        """

        path = path.strip()
        arguments = [str(arg) for arg in args]
        if config.xtrace:
            self._trace(path, arguments, config)

        metrics = self._observability.metrics
        metrics.increment("executions.total")
        start = time.monotonic()
        try:
            with working_directory.hold() as cwd:
                process = self._launcher.launch(
                    path,
                    arguments,
                    env=config.environment.resolve(),
                    cwd=cwd,
                )
        except LaunchFailed as exc:
            return self._finish(path, Failure(exc, time.monotonic() - start))

        outcome = self._collect(process, config, start)
        return self._finish(path, outcome)

    def change_directory(
        self,
        target: str,
        config: SessionConfig,
        working_directory: WorkingDirectoryState,
    ) -> str:
        """Change the session directory and return the new absolute path.

        The change is made by a shell that runs ``cd`` and then ``pwd`` in a
        single invocation, starting from the session's current directory. The
        reported path becomes the directory for all later launches.

        Args:
            target: Directory to change to. Tilde expansion is not performed.
            config: Session configuration; its ``default_shell`` is used.
            working_directory: State to update.

        Returns:
            The new absolute working directory.

        Raises:
            ExecutionError: If the shell could not change into ``target``.
        """

        expression = f"cd {shlex.quote(target)} && pwd"
        with working_directory.hold() as previous:
            outcome = self.execute(
                config.default_shell,
                ["-c", expression],
                config.quiet(),
                working_directory,
            )
            lines = outcome.unwrap().strip().splitlines()
            if not lines:
                raise NonZeroExit(config.default_shell, 1, "", f"cd: no directory reported for {target}")
            new_path = lines[-1].strip()
            working_directory.record(new_path)

        self._observability.log_event(
            "directory.changed",
            {"from": previous, "to": new_path},
        )
        return new_path

    def _collect(
        self,
        process: LaunchedProcess,
        config: SessionConfig,
        start: float,
    ) -> ExecutionOutcome:
        stdout_drainer = StreamDrainer(
            "stdout",
            process.stdout,
            config.stdout_sink if config.echo_stdout else None,
        ).start()
        stderr_drainer = StreamDrainer(
            "stderr",
            process.stderr,
            config.stderr_sink if config.echo_stderr else None,
        ).start()

        timeout_s = config.timeout_s
        timed_out = False
        try:
            exit_code = process.wait(timeout_s)
        except subprocess.TimeoutExpired:
            timed_out = True
            _LOGGER.warning(
                "Killing %s (pid %s) after %ss timeout", process.path, process.pid, timeout_s
            )
            process.kill()
            exit_code = process.wait()

        stdout_drainer.join()
        stderr_drainer.join()
        duration = time.monotonic() - start

        stdout = stdout_drainer.captured().decode(config.encoding, errors="replace")
        stderr = stderr_drainer.captured().decode(config.encoding, errors="replace")

        if timed_out and timeout_s is not None:
            error: ExecutionError = ExecutionTimedOut(
                process.path, timeout_s, exit_code, stdout, stderr
            )
            return Failure(error, duration)
        if exit_code == 0:
            return Success(output=config.trim(stdout), stderr=stderr, duration_s=duration)
        if exit_code == EXIT_CODE_NOT_FOUND:
            return Failure(ResolutionFailed(process.path, stdout, stderr), duration)
        return Failure(NonZeroExit(process.path, exit_code, stdout, stderr), duration)

    def _finish(self, path: str, outcome: ExecutionOutcome) -> ExecutionOutcome:
        metrics = self._observability.metrics
        metrics.record_duration("execution", outcome.duration_s)
        payload: dict[str, object] = {"path": path, "duration_s": round(outcome.duration_s, 6)}
        if isinstance(outcome, Failure):
            metrics.increment("executions.failed")
            payload["exit_code"] = outcome.error.exit_code
            payload["error"] = type(outcome.error).__name__
        else:
            payload["exit_code"] = 0
        self._observability.log_event("execution.finished", payload)
        return outcome

    def _trace(self, path: str, args: list[str], config: SessionConfig) -> None:
        line = f"[shell] {shlex.join([path, *args])}\n"
        config.trace_sink.write(line.encode(config.encoding, errors="replace"))
        self._observability.log_event(
            "execution.trace",
            {"path": path, "args": args},
            level="DEBUG",
        )
