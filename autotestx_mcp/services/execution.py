"""Command execution service.

Runs a single shell command with a timeout, and maps test output to the
project files it implicates.
"""


from __future__ import annotations

import os

from ..core.locator import ErrorLocator
from ..core.runner import CommandResult, CommandRunner
from .base import ErrorCode, ServiceResult


class ExecutionService:
    """Execute commands and localize failures, returning domain models in ServiceResult."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        locator: ErrorLocator | None = None
    ):
        self.runner = runner or CommandRunner()
        self.locator = locator or ErrorLocator()

    async def run_command(
        self,
        command: str,
        cwd: str,
        timeout_ms: int | None = None
    ) -> ServiceResult[CommandResult]:
        """Run `command` in `cwd`; a failing command is still a successful ServiceResult."""

        # Step 1: Validate inputs
        if not command or not command.strip():
            return ServiceResult.fail(
                ErrorCode.MISSING_INPUT,
                "'command' is required and cannot be empty"
            )

        if not cwd or not os.path.isdir(cwd):
            return ServiceResult.fail(
                ErrorCode.DIRECTORY_NOT_FOUND,
                f"Working directory not found: {cwd}"
            )

        if timeout_ms is not None and timeout_ms < 1:
            return ServiceResult.fail(
                ErrorCode.VALIDATION_ERROR,
                f"'timeout_ms' must be positive, got {timeout_ms}"
            )

        # Step 2: Run
        try:
            result = await self.runner.execute(command, cwd, timeout_ms)
        except Exception as e:
            return ServiceResult.fail(
                ErrorCode.EXECUTION_ERROR,
                f"Command execution failed: {e}"
            )

        return ServiceResult.ok(result)

    def locate_failures(
        self,
        test_output: str,
        project_dir: str
    ) -> ServiceResult[list[str]]:
        """Project files referenced by `test_output`, sorted."""

        if not test_output or not test_output.strip():
            return ServiceResult.fail(
                ErrorCode.MISSING_INPUT,
                "'test_output' is required and cannot be empty"
            )

        if not project_dir or not os.path.isdir(project_dir):
            return ServiceResult.fail(
                ErrorCode.DIRECTORY_NOT_FOUND,
                f"Project directory not found: {project_dir}"
            )

        files = self.locator.locate_failing_files(test_output, os.path.abspath(project_dir))
        return ServiceResult.ok(sorted(files))
