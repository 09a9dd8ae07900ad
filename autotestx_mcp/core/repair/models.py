"""Dataclasses for repair session results."""

from dataclasses import dataclass, field
from enum import Enum


class RepairState(str, Enum):
    """Terminal and running states of a repair session."""
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class RepairResult:
    """
    Outcome of a repair session.

    `actions` is an append-only audit trail accumulated across iterations;
    `errors` holds failure strings in the order they occurred.
    """
    success: bool = False
    actions: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    iterations: int = 0

    @property
    def state(self) -> RepairState:
        if self.success:
            return RepairState.PASSED
        if self.errors:
            return RepairState.FAILED
        return RepairState.RUNNING

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "state": self.state.value,
            "iterations": self.iterations,
            "actions": list(self.actions),
            "errors": list(self.errors),
        }

    def to_summary(self) -> str:
        """Generate a human-readable summary."""
        if self.success:
            return f"Tests passing after {self.iterations} iteration(s)"
        reason = self.errors[-1] if self.errors else "unknown error"
        return f"Repair failed: {reason}"
