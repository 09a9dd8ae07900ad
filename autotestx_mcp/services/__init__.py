"""Services package.

Exposes service classes and shared result types used by the MCP handlers and the CLI.
"""


# Base utilities
from .base import (
    ErrorCode,
    ServiceError,
    ServiceResult,
)

# Services
from .execution import ExecutionService
from .repair import RepairService

from ..config import RepairConfig

__all__ = [
    # Base
    "ServiceResult",
    "ServiceError",
    "ErrorCode",
    # Services
    "RepairService",
    "ExecutionService",
]


# =============================================================================
# Convenience factory functions
# =============================================================================

def create_repair_service(config: RepairConfig | None = None) -> RepairService:
    """Factory for RepairService (config from the environment if not given)."""

    return RepairService(config=config)


def create_execution_service() -> ExecutionService:
    """Factory for ExecutionService."""

    return ExecutionService()
