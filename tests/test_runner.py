"""Tests for the command runner module."""

import asyncio
import os

import pytest

from autotestx_mcp.core.runner import CommandResult, CommandRunner, run_command


pytestmark = pytest.mark.skipif(os.name != "posix", reason="uses POSIX shell commands")


# =============================================================================
# Exit status and streams
# =============================================================================

class TestRunnerBasics:
    """Exit code and stderr decide success."""

    @pytest.mark.asyncio
    async def test_successful_command(self, tmp_path):
        """Zero exit with no stderr succeeds with stdout as output."""
        result = await run_command("echo hello", str(tmp_path))

        assert result.success is True
        assert result.output == "hello\n"

    @pytest.mark.asyncio
    async def test_nonzero_exit_fails(self, tmp_path):
        """Non-zero exit is reported with the exit code and stdout."""
        result = await run_command("echo partial; exit 3", str(tmp_path))

        assert result.success is False
        assert result.output.startswith("Error: Command failed with exit code 3")
        assert "partial" in result.output

    @pytest.mark.asyncio
    async def test_nonzero_exit_includes_stderr(self, tmp_path):
        """stderr is appended to the failure output."""
        result = await run_command("echo boom 1>&2; exit 1", str(tmp_path))

        assert result.success is False
        assert "Stderr: boom" in result.output

    @pytest.mark.asyncio
    async def test_stderr_with_zero_exit_fails(self, tmp_path):
        """Any stderr output fails the command even when it exits 0."""
        result = await run_command("echo out; echo x 1>&2", str(tmp_path))

        assert result.success is False
        assert "out" in result.output
        assert "Stderr: x" in result.output

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, tmp_path):
        """Command runs in the given working directory."""
        (tmp_path / "marker.txt").write_text("here")

        result = await run_command("cat marker.txt", str(tmp_path))

        assert result.success is True
        assert result.output == "here"

    @pytest.mark.asyncio
    async def test_trailing_newline_is_stripped(self, tmp_path):
        """A single trailing newline on the command is ignored."""
        result = await run_command("echo hi\n", str(tmp_path))

        assert result.success is True
        assert result.output == "hi\n"

    @pytest.mark.asyncio
    async def test_missing_cwd_is_a_process_error(self, tmp_path):
        """Failure to spawn is reported, not raised."""
        result = await run_command("echo hi", str(tmp_path / "missing"))

        assert result.success is False
        assert result.output.startswith("Process error:")


# =============================================================================
# Timeouts
# =============================================================================

class TestRunnerTimeouts:
    """Overrunning commands are killed."""

    @pytest.mark.asyncio
    async def test_timeout(self, tmp_path):
        """A command exceeding the timeout fails with a timed-out message."""
        result = await run_command("sleep 5", str(tmp_path), timeout_ms=200)

        assert result.success is False
        assert "timed out" in result.output
        assert result.output == "Operation timed out after 200ms"

    @pytest.mark.asyncio
    async def test_timeout_returns_promptly(self, tmp_path):
        """The runner does not wait for the command to finish on its own."""
        loop = asyncio.get_running_loop()
        start = loop.time()

        await run_command("sleep 10", str(tmp_path), timeout_ms=200)

        assert loop.time() - start < 5

    @pytest.mark.asyncio
    async def test_timed_out_process_is_not_tracked(self, tmp_path):
        """Killed commands are no longer active."""
        runner = CommandRunner()

        await runner.execute("sleep 5", str(tmp_path), timeout_ms=200)

        assert runner.active_count == 0

    @pytest.mark.asyncio
    async def test_default_timeout_used(self, tmp_path):
        """The runner's default applies when no timeout is given."""
        runner = CommandRunner(default_timeout_ms=200)

        result = await runner.execute("sleep 5", str(tmp_path))

        assert result.output == "Operation timed out after 200ms"


# =============================================================================
# Cleanup
# =============================================================================

class TestTerminateAll:
    """terminate_all() kills commands still in flight."""

    @pytest.mark.asyncio
    async def test_terminate_all_kills_running_command(self, tmp_path):
        runner = CommandRunner()
        task = asyncio.create_task(runner.execute("sleep 30", str(tmp_path), timeout_ms=60_000))

        for _ in range(200):
            if runner.active_count:
                break
            await asyncio.sleep(0.01)
        assert runner.active_count == 1

        killed = await runner.terminate_all()
        result = await asyncio.wait_for(task, timeout=5)

        assert killed == 1
        assert result.success is False
        assert runner.active_count == 0

    @pytest.mark.asyncio
    async def test_terminate_all_with_nothing_running(self):
        runner = CommandRunner()

        assert await runner.terminate_all() == 0


class TestCommandResult:
    """CommandResult serialization."""

    def test_to_dict(self):
        result = CommandResult(success=True, output="ok")

        assert result.to_dict() == {"success": True, "output": "ok"}
