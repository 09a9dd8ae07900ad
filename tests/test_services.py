"""
Tests for the service layer.

- RepairService: setup failures, locking, session timeout
- ExecutionService: run_command / locate_failures
- ServiceResult basics
"""

import asyncio
import os

import pytest

from autotestx_mcp.config import RepairConfig
from autotestx_mcp.core.errors import (
    InstallError,
    OracleConfigurationError,
    OracleError,
    ProjectLockedError,
)
from autotestx_mcp.core.oracle import OracleRegistry
from autotestx_mcp.core.runner import CommandResult
from autotestx_mcp.core.workspace import ProjectLock
from autotestx_mcp.services import (
    ErrorCode,
    ExecutionService,
    RepairService,
    ServiceError,
    ServiceResult,
    create_execution_service,
)


CRITICAL = "<CriticalFiles><Path>src/calc.ts</Path></CriticalFiles>"
GENERATED = """<TestGenerationReport><Create><TestFile>
<Path>src/calc.test.ts</Path><Content>test('x', () => {});</Content>
</TestFile></Create></TestGenerationReport>"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "calc.ts").write_text("export const add = (a, b) => a + b;")
    return tmp_path


def make_service(oracle, runner, **config):
    registry = OracleRegistry({"scripted": lambda: oracle})
    settings = {"provider": "scripted", "test_command": "npm test", **config}
    return RepairService(RepairConfig(**settings), registry=registry, runner=runner)


# =============================================================================
# ServiceResult
# =============================================================================

class TestServiceResult:
    def test_ok(self):
        result = ServiceResult.ok([1])

        assert result.success is True
        assert result.unwrap() == [1]
        assert result.to_dict() == {"success": True, "data": [1]}

    def test_fail(self):
        result = ServiceResult.fail(ErrorCode.PROJECT_LOCKED, "busy", {"holder_pid": 1})

        assert result.success is False
        assert result.to_dict() == {
            "success": False,
            "error": {"code": "project_locked", "message": "busy", "details": {"holder_pid": 1}},
        }
        with pytest.raises(ValueError, match="busy"):
            result.unwrap()

    def test_locked_project_error_keeps_holder(self):
        error = ServiceError.from_exception(ProjectLockedError("/work/app", holder_pid=42))

        assert error.code == ErrorCode.PROJECT_LOCKED
        assert error.details == {"holder_pid": 42}

    @pytest.mark.parametrize("exception, code", [
        (OracleConfigurationError("OPENAI_API_KEY is not set"), ErrorCode.ORACLE_UNAVAILABLE),
        (OracleError("rate limited"), ErrorCode.ORACLE_ERROR),
        (InstallError("npm ERR! 404"), ErrorCode.EXECUTION_ERROR),
        (asyncio.TimeoutError(), ErrorCode.TIMEOUT_ERROR),
        (KeyError("x"), ErrorCode.INTERNAL_ERROR),
    ])
    def test_exception_codes(self, exception, code):
        result = ServiceResult.from_exception(exception)

        assert result.success is False
        assert result.error.code == code


# =============================================================================
# RepairService
# =============================================================================

class TestRepairService:
    """Session setup, locking and timeout."""

    @pytest.mark.asyncio
    async def test_repair_passing_project(self, project, make_oracle, make_runner, passed):
        service = make_service(make_oracle(), make_runner([passed]))

        result = await service.repair(str(project))

        assert result.success is True
        assert result.data.success is True
        assert result.data.actions[-1] == "All tests are passing"

    @pytest.mark.asyncio
    async def test_failed_session_is_still_ok_result(self, project, make_oracle, make_runner, make_failed):
        service = make_service(make_oracle(["nothing"]), make_runner([make_failed("boom")]))

        result = await service.repair(str(project), max_iterations=1)

        assert result.success is True
        assert result.data.success is False
        assert result.data.errors[-1] == "Failed to get tests passing after 1 iterations"

    @pytest.mark.asyncio
    async def test_overrides_reach_the_loop(self, project, make_oracle, make_runner, passed):
        runner = make_runner([passed])
        service = make_service(make_oracle(), runner, test_timeout_ms=777)

        await service.repair(str(project), test_command="pytest -x")

        assert runner.calls == [("pytest -x", str(project), 777)]

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path, make_oracle, make_runner):
        service = make_service(make_oracle(), make_runner())

        result = await service.repair(str(tmp_path / "missing"))

        assert result.error.code == ErrorCode.DIRECTORY_NOT_FOUND

    @pytest.mark.asyncio
    async def test_empty_directory_argument(self, make_oracle, make_runner):
        result = await make_service(make_oracle(), make_runner()).repair("  ")

        assert result.error.code == ErrorCode.MISSING_INPUT

    @pytest.mark.asyncio
    async def test_invalid_max_iterations(self, project, make_oracle, make_runner):
        result = await make_service(make_oracle(), make_runner()).repair(str(project), max_iterations=0)

        assert result.error.code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_unknown_provider(self, project, make_oracle, make_runner):
        service = make_service(make_oracle(), make_runner(), provider="nope")

        result = await service.repair(str(project))

        assert result.error.code == ErrorCode.ORACLE_UNAVAILABLE
        assert result.error.details == {"provider": "nope"}

    @pytest.mark.asyncio
    async def test_locked_project(self, project, make_oracle, make_runner):
        runner = make_runner()
        holder = ProjectLock(str(project))
        holder.acquire()
        try:
            result = await make_service(make_oracle(), runner).repair(str(project))
        finally:
            holder.release()

        assert result.error.code == ErrorCode.PROJECT_LOCKED
        assert result.error.details == {"holder_pid": os.getpid()}
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_lock_released_after_session(self, project, make_oracle, make_runner, passed):
        service = make_service(make_oracle(), make_runner([passed]))

        await service.repair(str(project))

        assert not os.path.exists(ProjectLock(str(project)).lock_path)

    @pytest.mark.asyncio
    async def test_lock_disabled(self, project, make_oracle, make_runner, passed):
        holder = ProjectLock(str(project))
        holder.acquire()
        try:
            service = make_service(make_oracle(), make_runner([passed]), lock_project=False)
            result = await service.repair(str(project))
        finally:
            holder.release()

        assert result.success is True

    @pytest.mark.asyncio
    async def test_session_timeout(self, project, make_oracle, make_runner):
        async def hang(command, cwd, timeout_ms):
            await asyncio.sleep(10)

        runner = make_runner([hang])
        service = make_service(make_oracle(), runner, session_timeout_ms=100)

        result = await service.repair(str(project))

        assert result.success is True
        assert result.data.success is False
        assert result.data.actions == ["Starting repair iteration 1/3"]
        assert result.data.errors == ["Operation timed out after 100ms"]
        assert runner.terminated == 1
        assert not os.path.exists(ProjectLock(str(project)).lock_path)

    @pytest.mark.asyncio
    async def test_session_timeout_keeps_earlier_iterations(self, project, make_oracle, make_runner, make_failed):
        async def hang(command, cwd, timeout_ms):
            await asyncio.sleep(10)

        fix = """<CodeUpdates><Update>
<FilePath>src/calc.ts</FilePath>
<Content>export const add = (a: number, b: number) => a + b;</Content>
<Reason>Type the arguments</Reason>
</Update></CodeUpdates>"""
        runner = make_runner([make_failed("FAIL src/calc.test.ts"), hang])
        service = make_service(make_oracle([fix]), runner, session_timeout_ms=300)

        result = await service.repair(str(project))

        assert result.data.success is False
        assert result.data.iterations == 2
        assert result.data.actions == [
            "Starting repair iteration 1/3",
            "Tests failed, analyzing issues from test output",
            "Identified 1 code updates",
            "Applied 1 code updates",
            "Starting repair iteration 2/3",
        ]
        assert result.data.errors == ["Operation timed out after 300ms"]
        assert "a: number" in (project / "src" / "calc.ts").read_text()

    @pytest.mark.asyncio
    async def test_generate_and_repair(self, project, make_oracle, make_runner, passed):
        oracle = make_oracle([CRITICAL, GENERATED])
        service = make_service(oracle, make_runner([passed]))

        result = await service.generate_and_repair(str(project))

        assert result.data.success is True
        assert result.data.actions[0] == "Identified 1 critical files"
        assert (project / "src" / "calc.test.ts").exists()

    @pytest.mark.asyncio
    async def test_aclose_disposes_oracles(self, project, make_oracle, make_runner, passed):
        oracle = make_oracle()
        service = make_service(oracle, make_runner([passed]))
        await service.repair(str(project))

        await service.aclose()

        assert oracle.closed is True


# =============================================================================
# ExecutionService
# =============================================================================

class TestExecutionService:
    """Command execution and failure localization."""

    @pytest.mark.asyncio
    async def test_run_command(self, tmp_path, make_runner):
        runner = make_runner([CommandResult(success=True, output="ok")])
        service = ExecutionService(runner=runner)

        result = await service.run_command("echo ok", str(tmp_path), 1000)

        assert result.success is True
        assert result.data.output == "ok"
        assert runner.calls == [("echo ok", str(tmp_path), 1000)]

    @pytest.mark.asyncio
    async def test_failing_command_is_ok_result(self, tmp_path, make_runner):
        service = ExecutionService(runner=make_runner([CommandResult(success=False, output="no")]))

        result = await service.run_command("false", str(tmp_path))

        assert result.success is True
        assert result.data.success is False

    @pytest.mark.asyncio
    async def test_run_command_validation(self, tmp_path):
        service = create_execution_service()

        assert (await service.run_command("", str(tmp_path))).error.code == ErrorCode.MISSING_INPUT
        assert (await service.run_command("ls", str(tmp_path / "x"))).error.code == ErrorCode.DIRECTORY_NOT_FOUND
        assert (await service.run_command("ls", str(tmp_path), 0)).error.code == ErrorCode.VALIDATION_ERROR

    def test_locate_failures_sorted(self, tmp_path):
        output = "at b (src/b.ts:1:1)\nat a (src/a.ts:2:2)"

        result = create_execution_service().locate_failures(output, str(tmp_path))

        assert result.data == [str(tmp_path / "src" / "a.ts"), str(tmp_path / "src" / "b.ts")]

    def test_locate_failures_validation(self, tmp_path):
        service = create_execution_service()

        assert service.locate_failures("", str(tmp_path)).error.code == ErrorCode.MISSING_INPUT
        assert service.locate_failures("x", str(tmp_path / "no")).error.code == ErrorCode.DIRECTORY_NOT_FOUND
