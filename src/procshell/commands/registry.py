"""Registry of resolved commands."""

from __future__ import annotations

import threading
from typing import Iterable

from procshell.commands.base import ResolvedCommand


class CommandRegistryError(RuntimeError):
    """Raised when command registry operations fail."""


class CommandNotRegisteredError(CommandRegistryError):
    """Raised when a command is not found in the registry."""


class CommandRegistrationError(CommandRegistryError):
    """Raised when a command cannot be registered."""


class CommandRegistry:
    """Memoized mapping of command names to resolved commands.

    Shared between a session and the sessions forked from it, since a name
    resolves to the same path regardless of the session's environment.
    """

    def __init__(self) -> None:
        self._commands: dict[str, ResolvedCommand] = {}
        self._lock = threading.Lock()

    def register(self, command: ResolvedCommand, *, replace: bool = False) -> None:
        """Register a command by name.

        Args:
            command: Command to register.
            replace: Whether an existing registration may be overwritten.

        Raises:
            CommandRegistrationError: If the name is taken and ``replace`` is False.
        """

        with self._lock:
            if not replace and command.name in self._commands:
                raise CommandRegistrationError(f"Command '{command.name}' is already registered")
            self._commands[command.name] = command

    def setdefault(self, command: ResolvedCommand) -> ResolvedCommand:
        """Register ``command`` unless the name is taken; return the winner."""

        with self._lock:
            return self._commands.setdefault(command.name, command)

    def find(self, name: str) -> ResolvedCommand | None:
        """Return the command registered under ``name``, if any."""

        with self._lock:
            return self._commands.get(name)

    def get(self, name: str) -> ResolvedCommand:
        """Retrieve a command by name.

        Raises:
            CommandNotRegisteredError: If no command exists with the given name.
        """

        command = self.find(name)
        if command is None:
            raise CommandNotRegisteredError(f"Command '{name}' is not registered")
        return command

    def list_commands(self) -> Iterable[ResolvedCommand]:
        """Return all registered commands."""

        with self._lock:
            return list(self._commands.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._commands

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)
