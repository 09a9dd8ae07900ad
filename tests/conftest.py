"""Shared fakes for repair engine tests."""

import pytest

from autotestx_mcp.core.oracle import BaseOracle, OracleConfig, OracleResponse
from autotestx_mcp.core.runner import CommandResult, CommandRunner


class ScriptedOracle(BaseOracle):
    """Returns canned replies in order and records every prompt."""

    def __init__(self, replies=None):
        super().__init__("Scripted")
        self.replies = list(replies or [])
        self.prompts = []
        self.closed = False
        self.config = None

    async def initialize(self, config: OracleConfig) -> None:
        self.config = config

    async def generate(self, prompt: str) -> OracleResponse:
        self.prompts.append(prompt)
        if not self.replies:
            return OracleResponse(success=False, error="No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, OracleResponse):
            return reply
        return OracleResponse(success=True, content=reply)

    async def aclose(self) -> None:
        self.closed = True


class ScriptedRunner(CommandRunner):
    """Returns canned CommandResults in order and records every call."""

    def __init__(self, results=None):
        super().__init__()
        self.results = list(results or [])
        self.calls = []
        self.terminated = 0

    async def execute(self, command, cwd, timeout_ms=None):
        self.calls.append((command, cwd, timeout_ms))
        if not self.results:
            return CommandResult(success=False, output="No scripted result left")
        result = self.results.pop(0)
        if callable(result):
            return await result(command, cwd, timeout_ms)
        return result

    async def terminate_all(self):
        self.terminated += 1
        return 0

    @property
    def commands(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def make_oracle():
    return ScriptedOracle


@pytest.fixture
def make_runner():
    return ScriptedRunner


@pytest.fixture
def passed():
    return CommandResult(success=True, output="All tests passed")


def failed(output: str) -> CommandResult:
    return CommandResult(success=False, output=output)


@pytest.fixture
def make_failed():
    return failed
