"""Resolved commands and argument formatting."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable

from procshell.config import SessionConfig


class CommandKind(Enum):
    """How a registered command is dispatched."""

    EXECUTE = "execute"
    CHANGE_DIRECTORY = "change_directory"


@dataclass(frozen=True)
class ResolvedCommand:
    """A command name paired with the executable that runs it.

    Attributes:
        name: Name the command is registered under.
        path: Absolute executable path.
        config: Configuration the command runs with. ``None`` means the
            configuration of whichever session runs it.
        kind: Dispatch variant; only ``cd`` uses CHANGE_DIRECTORY.
    """

    name: str
    path: str
    config: SessionConfig | None = None
    kind: CommandKind = CommandKind.EXECUTE

    def bind(self, config: SessionConfig) -> ResolvedCommand:
        """Return this command with ``config`` filled in unless it has its own."""

        if self.config is not None:
            return self
        return replace(self, config=config)


def format_arguments(options: Iterable[tuple[str, Any]], config: SessionConfig) -> list[str]:
    """Turn keyword-style options into a flat argument list.

    Each key becomes an argument (leading underscores become dashes when
    enabled, so ``__depth`` is ``--depth``) followed by its value. A value of
    ``None`` emits the key alone. An empty key emits only the value.

    >>> format_arguments([("_r", None), ("__depth", 1)], SessionConfig())
    ['-r', '--depth', '1']
    """

    args: list[str] = []
    for key, value in options:
        if key:
            args.append(_format_key(key, config))
        if value is not None:
            args.append(str(value))
    return args


def _format_key(key: str, config: SessionConfig) -> str:
    capitalized = not key.startswith("_") and key.upper() == key and any(c.isalpha() for c in key)
    if capitalized:
        if config.replace_capitalized_underscores_with_dashes:
            return key.replace("_", "-")
        return key
    if config.replace_underscores_with_dashes:
        return key.replace("_", "-")
    return key
