"""Command runner module - executes shell commands with a timeout."""

from .executor import CommandRunner, run_command
from .models import CommandResult

__all__ = [
    "CommandRunner",
    "run_command",
    "CommandResult",
]
