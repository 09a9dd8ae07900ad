"""
Service Layer Base - the result envelope shared by RepairService and ExecutionService.

Two kinds of failure reach a caller, and they travel differently:
- A session that could not start (bad project_dir, no oracle credentials,
  project locked by another session) is ServiceResult.fail with an ErrorCode.
- A session that ran but did not get the tests passing is ServiceResult.ok
  carrying a RepairResult whose `errors` trail says why.

Core exceptions (AutoTestXError and subclasses) are mapped to error codes
by ServiceError.from_exception, so handlers and the CLI only ever see codes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from ..core.errors import (
    AutoTestXError,
    OracleConfigurationError,
    OracleError,
    ProjectLockedError,
)

# Generic type for result data
T = TypeVar("T")


class ErrorCode(str, Enum):
    """Why a service call could not run; the value is what tools and the CLI print."""

    # Caller input
    VALIDATION_ERROR = "validation_error"
    MISSING_INPUT = "missing_input"

    # Project directory
    DIRECTORY_NOT_FOUND = "directory_not_found"
    PROJECT_LOCKED = "project_locked"

    # Oracle
    ORACLE_UNAVAILABLE = "oracle_unavailable"
    ORACLE_ERROR = "oracle_error"

    # Commands
    EXECUTION_ERROR = "execution_error"
    TIMEOUT_ERROR = "timeout_error"

    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class ServiceError:
    """
    Code, message and optional details (e.g. holder_pid for a locked project).
    """
    code: ErrorCode
    message: str
    details: dict | None = None

    @classmethod
    def from_exception(cls, error: Exception) -> ServiceError:
        """Map an engine exception to the code a caller should see."""

        if isinstance(error, ProjectLockedError):
            return cls(ErrorCode.PROJECT_LOCKED, str(error), {"holder_pid": error.holder_pid})
        if isinstance(error, OracleConfigurationError):
            return cls(ErrorCode.ORACLE_UNAVAILABLE, str(error))
        if isinstance(error, OracleError):
            return cls(ErrorCode.ORACLE_ERROR, str(error))
        if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
            return cls(ErrorCode.TIMEOUT_ERROR, str(error) or "Operation timed out")
        if isinstance(error, AutoTestXError):
            return cls(ErrorCode.EXECUTION_ERROR, str(error))
        return cls(ErrorCode.INTERNAL_ERROR, f"{type(error).__name__}: {error}")

    def to_dict(self) -> dict:
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Either a RepairResult/CommandResult/path list, or a ServiceError.

        result = await service.repair(project_dir)
        if not result.success:
            print(f"Error [{result.error.code.value}]: {result.error.message}")
        else:
            for action in result.data.actions:
                print(action)
    """
    success: bool
    data: T | None = None
    error: ServiceError | None = None

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data, error=None)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        details: dict | None = None
    ) -> ServiceResult[T]:
        return cls(
            success=False,
            data=None,
            error=ServiceError(code=code, message=message, details=details)
        )

    @classmethod
    def from_exception(cls, error: Exception) -> ServiceResult[T]:
        """Failed result for an exception raised while setting up a session."""
        return cls(success=False, data=None, error=ServiceError.from_exception(error))

    def unwrap(self) -> T:
        """
        Get the data, raising if failed.

        Raises:
            ValueError: If result is a failure
        """
        if not self.success or self.data is None:
            error_msg = self.error.message if self.error else "Unknown error"
            raise ValueError(f"Cannot unwrap failed result: {error_msg}")
        return self.data

    def to_dict(self) -> dict:
        """JSON-serializable form; data must expose to_dict() or be plain."""
        if not self.success:
            return {"success": False, "error": self.error.to_dict()}
        data = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        return {"success": True, "data": data}
