"""
Repair module - the iterative test-repair engine.

RepairLoop repairs an existing test suite; GenerationLoop first creates
tests for a project and then repairs them.
"""

from .generation import GenerationLoop
from .loop import RepairLoop
from .models import RepairResult, RepairState

__all__ = [
    "RepairLoop",
    "GenerationLoop",
    "RepairResult",
    "RepairState",
]
