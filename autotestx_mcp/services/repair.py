"""Repair session service.

Wires config, oracle registry and runner into RepairLoop/GenerationLoop,
guards the project with a lock and bounds the whole session by a timeout.
"""

from __future__ import annotations

import asyncio
import logging
import os

from ..config import RepairConfig
from ..core.errors import OracleConfigurationError, ProjectLockedError
from ..core.oracle import OracleRegistry, PromptBuilder
from ..core.packages import PackageResolver
from ..core.repair import GenerationLoop, RepairLoop, RepairResult
from ..core.runner import CommandRunner
from ..core.workspace import ProjectLock, ProjectWorkspace
from .base import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)


class RepairService:
    """Run repair and generate-and-repair sessions and return RepairResult in ServiceResult."""

    def __init__(
        self,
        config: RepairConfig | None = None,
        registry: OracleRegistry | None = None,
        runner: CommandRunner | None = None
    ):
        self.config = config or RepairConfig.from_env()
        self.registry = registry or OracleRegistry()
        self.runner = runner or CommandRunner()

    async def repair(
        self,
        project_dir: str,
        max_iterations: int | None = None,
        test_command: str | None = None
    ) -> ServiceResult[RepairResult]:
        """Repair the existing test suite of `project_dir`."""

        try:
            config = self.config.with_overrides(
                max_iterations=max_iterations,
                test_command=test_command
            )
        except ValueError as e:
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, str(e))

        return await self._run_session(project_dir, config, generate=False)

    async def generate_and_repair(
        self,
        project_dir: str,
        max_iterations: int | None = None
    ) -> ServiceResult[RepairResult]:
        """Generate tests for `project_dir`, then repair until they pass."""

        try:
            config = self.config.with_overrides(max_iterations=max_iterations)
        except ValueError as e:
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, str(e))

        return await self._run_session(project_dir, config, generate=True)

    async def aclose(self) -> None:
        """Dispose oracle clients and any still-running commands."""

        await self.runner.terminate_all()
        await self.registry.aclose()

    # =========================================================================
    # Session
    # =========================================================================

    async def _run_session(
        self,
        project_dir: str,
        config: RepairConfig,
        generate: bool
    ) -> ServiceResult[RepairResult]:
        validation_error = self._validate_project_dir(project_dir)
        if validation_error:
            return validation_error

        project_dir = os.path.abspath(project_dir)

        try:
            oracle = await self.registry.get(config.provider, config.oracle_config())
        except OracleConfigurationError as e:
            return ServiceResult.fail(
                ErrorCode.ORACLE_UNAVAILABLE,
                str(e),
                {"provider": config.provider}
            )

        loop = self._build_repair_loop(oracle, config)
        session = GenerationLoop(oracle, loop) if generate else loop

        lock = ProjectLock(project_dir)
        if config.lock_project:
            try:
                await asyncio.to_thread(lock.acquire)
            except ProjectLockedError as e:
                return ServiceResult.from_exception(e)

        # Owned here so the trail survives cancellation by the timeout
        result = RepairResult()
        timeout_ms = config.session_timeout_ms
        try:
            await asyncio.wait_for(session.run(project_dir, result), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            killed = await self.runner.terminate_all()
            logger.error(f"Session timed out after {timeout_ms}ms, killed {killed} running command(s)")
            result.success = False
            result.errors.append(f"Operation timed out after {timeout_ms}ms")
        except Exception as e:
            logger.exception("Repair session crashed")
            return ServiceResult.fail(
                ErrorCode.INTERNAL_ERROR,
                f"Repair session failed: {e}"
            )
        finally:
            lock.release()

        logger.info(result.to_summary())
        return ServiceResult.ok(result)

    def _build_repair_loop(self, oracle, config: RepairConfig) -> RepairLoop:
        return RepairLoop(
            oracle,
            runner=self.runner,
            workspace=ProjectWorkspace(),
            resolver=PackageResolver(
                self.runner,
                timeout_ms=config.install_timeout_ms,
                default_manager=config.default_package_manager
            ),
            prompts=PromptBuilder(config.prompt_dir),
            max_iterations=config.max_iterations,
            test_command=config.test_command,
            test_timeout_ms=config.test_timeout_ms
        )

    def _validate_project_dir(self, project_dir: str) -> ServiceResult[RepairResult] | None:
        """Validate inputs and return error if invalid."""

        if not project_dir or not project_dir.strip():
            return ServiceResult.fail(
                ErrorCode.MISSING_INPUT,
                "'project_dir' is required and cannot be empty"
            )

        if not os.path.isdir(project_dir):
            return ServiceResult.fail(
                ErrorCode.DIRECTORY_NOT_FOUND,
                f"Project directory not found: {project_dir}"
            )

        return None
