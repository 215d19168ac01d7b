"""Shell-like sessions over the execution engine."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Sequence

from procshell.commands.base import CommandKind, ResolvedCommand, format_arguments
from procshell.commands.registry import CommandRegistry
from procshell.config import SessionConfig
from procshell.execution.base import ExecutionOutcome
from procshell.execution.coordinator import ExecutionCoordinator
from procshell.execution.resolver import PathResolver
from procshell.execution.workdir import WorkingDirectoryState
from procshell.util.logging import get_logger

CHANGE_DIRECTORY_COMMAND = "cd"

_LOGGER = get_logger("procshell.session")


class Session:
    """A configured context for a sequence of external commands.

    A session owns its working directory and a registry of resolved commands.
    Commands run one external process each, with a flat argument list and no
    shell in between. ``cd`` is handled by the session itself so the change
    persists for later commands.

    Executions that do not change directory may run concurrently on one
    session. Changing directory while other executions are launching in the
    same session is the caller's responsibility to avoid.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        working_directory: str | Path | None = None,
        coordinator: ExecutionCoordinator | None = None,
        registry: CommandRegistry | None = None,
        resolver: PathResolver | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Session configuration, defaults to SessionConfig().
            working_directory: Initial directory, defaults to the host's cwd.
            coordinator: Execution coordinator to run commands with.
            registry: Command registry, shared with forked sessions.
            resolver: Path resolver used for unknown command names.
        """

        self.config = config or SessionConfig()
        self._working_directory = WorkingDirectoryState(working_directory)
        self._coordinator = coordinator or ExecutionCoordinator()
        self._resolver = resolver or PathResolver(self._coordinator)
        self._registry = registry if registry is not None else CommandRegistry()
        self._registry.setdefault(
            ResolvedCommand(
                name=CHANGE_DIRECTORY_COMMAND,
                path=self.config.default_shell,
                kind=CommandKind.CHANGE_DIRECTORY,
            )
        )

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def coordinator(self) -> ExecutionCoordinator:
        return self._coordinator

    def current_directory(self) -> str:
        """Return the directory later commands will run in."""

        return self._working_directory.path

    def change_directory(self, path: str | Path = "~") -> str:
        """Change the session's directory.

        Args:
            path: Target directory, relative to the current one or absolute.
                A leading ``~`` is expanded.

        Returns:
            The new absolute directory.

        Raises:
            ExecutionError: If the directory could not be entered.
        """

        target = os.path.expanduser(os.fspath(path))
        return self._coordinator.change_directory(target, self.config, self._working_directory)

    def resolve(self, name: str) -> str:
        """Return the executable path for ``name``, resolving it at most once.

        Raises:
            ResolutionFailed: If the name cannot be resolved.
        """

        return self.command(name).path

    def command(self, name: str) -> ResolvedCommand:
        """Return the command registered under ``name``, resolving if needed.

        Names containing a path separator are taken as paths relative to the
        session directory and are never cached. Resolved names are cached
        without a configuration and run with the calling session's config;
        commands registered through :meth:`use` keep their own.
        """

        cached = self._registry.find(name)
        if cached is not None:
            return cached.bind(self.config)
        if os.sep in name:
            path = os.path.normpath(
                os.path.join(self.current_directory(), os.path.expanduser(name))
            )
            return ResolvedCommand(name=name, path=path, config=self.config)
        path = self._resolver.resolve(name, self.config, self._working_directory)
        _LOGGER.debug("Resolved %s to %s", name, path)
        command = self._registry.setdefault(ResolvedCommand(name=name, path=path))
        return command.bind(self.config)

    def use(self, command: ResolvedCommand) -> None:
        """Register ``command`` with a known path, replacing any earlier one.

        A command carrying a config always runs with it, in this session and
        in its forks.
        """

        self._registry.register(command, replace=True)

    def execute(
        self,
        path: str,
        args: Sequence[Any] = (),
        config: SessionConfig | None = None,
    ) -> ExecutionOutcome:
        """Run an executable by path in the session directory.

        Returns:
            Success or Failure; failures are not raised.
        """

        return self._coordinator.execute(
            path,
            [str(arg) for arg in args],
            config or self.config,
            self._working_directory,
        )

    def run(self, name: str, *args: Any, **options: Any) -> str:
        """Run a command by name and return its trimmed output.

        Positional ``args`` are passed through as they are; keyword ``options``
        are appended after them via :func:`format_arguments`.

        Raises:
            ExecutionError: If the command cannot be resolved, started, or exits
                with a non-zero status.
        """

        command = self.command(name)
        config = command.config or self.config
        arguments = [str(arg) for arg in args]
        arguments.extend(format_arguments(options.items(), config))
        if command.kind is CommandKind.CHANGE_DIRECTORY:
            self.change_directory(arguments[0] if arguments else "~")
            return ""
        return self.execute(command.path, arguments, config).unwrap()

    def fork(self, environment: Mapping[str, str]) -> Session:
        """Return a session with extra environment variables.

        The fork shares this session's command registry and starts in this
        session's current directory, but changes directory independently.
        """

        return Session(
            self.config.with_environment(environment),
            working_directory=self.current_directory(),
            coordinator=self._coordinator,
            registry=self._registry,
            resolver=self._resolver,
        )
