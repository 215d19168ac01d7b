"""Command registry for procshell sessions."""

from procshell.commands.base import CommandKind, ResolvedCommand, format_arguments
from procshell.commands.registry import (
    CommandNotRegisteredError,
    CommandRegistrationError,
    CommandRegistry,
    CommandRegistryError,
)

__all__ = [
    "CommandKind",
    "CommandNotRegisteredError",
    "CommandRegistrationError",
    "CommandRegistry",
    "CommandRegistryError",
    "ResolvedCommand",
    "format_arguments",
]
