"""Registry for core MCP tool definitions and handlers."""

# Tool definitions and handlers
from .repair_project import (
    TOOL_DEFINITION as REPAIR_PROJECT_TOOL,
    handle as handle_repair_project,
)

from .generate_tests import (
    TOOL_DEFINITION as GENERATE_TESTS_TOOL,
    handle as handle_generate_tests,
)

from .run_command import (
    TOOL_DEFINITION as RUN_COMMAND_TOOL,
    handle as handle_run_command,
)

from .locate_failures import (
    TOOL_DEFINITION as LOCATE_FAILURES_TOOL,
    handle as handle_locate_failures,
)


# All Core tool definitions
TOOLS = [
    REPAIR_PROJECT_TOOL,
    GENERATE_TESTS_TOOL,
    RUN_COMMAND_TOOL,
    LOCATE_FAILURES_TOOL,
]

# Tool name to handler mapping
HANDLERS = {
    "repair_project": handle_repair_project,
    "generate_tests": handle_generate_tests,
    "run_command": handle_run_command,
    "locate_failures": handle_locate_failures,
}


__all__ = [
    # Tool definitions
    "TOOLS",
    "REPAIR_PROJECT_TOOL",
    "GENERATE_TESTS_TOOL",
    "RUN_COMMAND_TOOL",
    "LOCATE_FAILURES_TOOL",
    # Handlers
    "HANDLERS",
    "handle_repair_project",
    "handle_generate_tests",
    "handle_run_command",
    "handle_locate_failures",
]
