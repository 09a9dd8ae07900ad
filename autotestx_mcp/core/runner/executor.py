"""Execute shell commands in a project directory with a timeout."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from ...constants import DEFAULT_COMMAND_TIMEOUT_MS
from .models import CommandResult

logger = logging.getLogger(__name__)


class CommandRunner:
    """Run shell commands and report a strict pass/fail CommandResult.

    A timed-out command has its whole process group killed, so no orphaned
    children outlive the wait. Live processes are tracked so a caller-level
    timeout can still clean up via terminate_all().
    """

    def __init__(self, default_timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS):
        self.default_timeout_ms = default_timeout_ms
        self._active: set[asyncio.subprocess.Process] = set()

    async def execute(
        self,
        command: str,
        cwd: str,
        timeout_ms: int | None = None
    ) -> CommandResult:
        """Run `command` in `cwd`; never raises."""

        if command.endswith("\n"):
            command = command[:-1]
        timeout_ms = timeout_ms or self.default_timeout_ms

        logger.info(f"Executing command: {command} (cwd={cwd}, timeout={timeout_ms}ms)")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            logger.error(f"Failed to start command '{command}': {e}")
            return CommandResult(success=False, output=f"Process error: {e}")

        self._active.add(process)
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning(f"Command timed out after {timeout_ms}ms: {command}")
            await self._kill(process)
            return CommandResult(
                success=False,
                output=f"Operation timed out after {timeout_ms}ms"
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise
        finally:
            self._active.discard(process)

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return self._build_result(process.returncode, stdout, stderr)

    def _build_result(self, returncode: int | None, stdout: str, stderr: str) -> CommandResult:
        """Map exit code + captured streams onto a CommandResult."""

        if returncode != 0:
            output = f"Error: Command failed with exit code {returncode}\n{stdout}"
            if stderr:
                output += f"\nStderr: {stderr}"
            logger.debug(f"Command failed with exit code {returncode}")
            return CommandResult(success=False, output=output)

        if stderr:
            # Zero exit but stderr output still counts as a failure
            logger.debug("Command exited 0 but wrote to stderr")
            return CommandResult(success=False, output=f"{stdout}\nStderr: {stderr}")

        return CommandResult(success=True, output=stdout)

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kill the process group (or the process) and reap it."""

        if process.returncode is not None:
            return
        try:
            if os.name == "posix":
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.error(f"Process {process.pid} did not exit after kill")

    async def terminate_all(self) -> int:
        """Kill every command still running; returns how many were killed."""

        processes = [p for p in self._active if p.returncode is None]
        for process in processes:
            await self._kill(process)
        self._active.clear()
        if processes:
            logger.info(f"Terminated {len(processes)} running command(s)")
        return len(processes)

    @property
    def active_count(self) -> int:
        return sum(1 for p in self._active if p.returncode is None)


async def run_command(
    command: str,
    cwd: str,
    timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS
) -> CommandResult:
    """Convenience wrapper that runs a single command via CommandRunner."""
    runner = CommandRunner()
    return await runner.execute(command, cwd, timeout_ms)
