"""Data models for command execution."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a shell command.

    success is True only when the process exited 0 AND wrote nothing to stderr.
    """
    success: bool
    output: str

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "output": self.output,
        }
