"""Command name to executable path resolution."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from procshell.execution.base import Failure, ResolutionFailed
from procshell.execution.workdir import WorkingDirectoryState
from procshell.util.logging import get_logger

if TYPE_CHECKING:
    from procshell.config import SessionConfig
    from procshell.execution.coordinator import ExecutionCoordinator

_LOGGER = get_logger("procshell.execution.resolver")


class PathResolver:
    """Ask the resolution shell where a command lives.

    Results are not cached here; memoization belongs to the session's
    command registry.
    """

    def __init__(self, coordinator: ExecutionCoordinator) -> None:
        self._coordinator = coordinator

    def resolve(
        self,
        name: str,
        config: SessionConfig,
        working_directory: WorkingDirectoryState | None = None,
    ) -> str:
        """Return the absolute path the shell would run for ``name``.

        Args:
            name: Bare command name.
            config: Session configuration; its ``default_shell`` runs ``which``.
            working_directory: Directory to run the lookup in.

        Returns:
            Absolute executable path.

        Raises:
            ResolutionFailed: If the shell reports nothing or fails.
        """

        if not name.strip():
            raise ResolutionFailed(name)
        outcome = self._coordinator.execute(
            config.default_shell,
            ["-c", f"which {shlex.quote(name)}"],
            config.for_resolution(),
            working_directory or WorkingDirectoryState(),
        )
        if isinstance(outcome, Failure):
            _LOGGER.debug("Lookup of %s failed: %s", name, outcome.error)
            raise ResolutionFailed(name) from None
        lines = outcome.output.strip().splitlines()
        if not lines:
            raise ResolutionFailed(name)
        path = lines[0].strip()
        self._coordinator.observability.log_event(
            "command.resolved",
            {"name": name, "path": path},
        )
        return path
