"""MCP handler for run_command (delegates to ExecutionService)."""

from __future__ import annotations

from mcp.types import TextContent, Tool

from ...constants import DEFAULT_COMMAND_TIMEOUT_MS
from ...services import create_execution_service
from .repair_project import error_response

# =============================================================================
# Tool Definition
# =============================================================================

TOOL_DEFINITION = Tool(
    name="run_command",
    description=(
        "Run a shell command in a directory with a timeout. "
        "Reports success only when the command exits 0 without writing to stderr; "
        "a command that overruns the timeout is killed along with its children."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "command": {
                "type": "string",
                "description": "Shell command to execute"
            },
            "cwd": {
                "type": "string",
                "description": "Working directory"
            },
            "timeout_ms": {
                "type": "integer",
                "minimum": 1,
                "description": f"Timeout in milliseconds (default: {DEFAULT_COMMAND_TIMEOUT_MS})"
            }
        },
        "required": ["command", "cwd"]
    }
)


# =============================================================================
# Handler
# =============================================================================

async def handle(arguments: dict) -> list[TextContent]:
    """Run the command and return its combined output."""

    service = create_execution_service()

    result = await service.run_command(
        command=arguments.get("command", ""),
        cwd=arguments.get("cwd", ""),
        timeout_ms=arguments.get("timeout_ms")
    )

    if not result.success:
        return error_response(result)

    command_result = result.data
    status = "✅ Command succeeded" if command_result.success else "❌ Command failed"
    return [TextContent(
        type="text",
        text=f"{status}\n\n{command_result.output}".rstrip()
    )]
