"""MCP handler for locate_failures (delegates to ExecutionService)."""

from __future__ import annotations

from mcp.types import TextContent, Tool

from ...services import create_execution_service
from .repair_project import error_response

# =============================================================================
# Tool Definition
# =============================================================================

TOOL_DEFINITION = Tool(
    name="locate_failures",
    description=(
        "Locate the project source files referenced in test failure output. "
        "Paths inside dependency directories (node_modules, site-packages, etc.) are ignored."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "test_output": {
                "type": "string",
                "description": "Raw output of a failed test run"
            },
            "project_dir": {
                "type": "string",
                "description": "Absolute path of the project the output came from"
            }
        },
        "required": ["test_output", "project_dir"]
    }
)


# =============================================================================
# Handler
# =============================================================================

async def handle(arguments: dict) -> list[TextContent]:
    """Return the implicated files, one per line."""

    service = create_execution_service()

    result = service.locate_failures(
        test_output=arguments.get("test_output", ""),
        project_dir=arguments.get("project_dir", "")
    )

    if not result.success:
        return error_response(result)

    files = result.data
    if not files:
        return [TextContent(type="text", text="No project files found in test output")]

    lines = [f"📍 Implicated files ({len(files)}):"]
    lines.extend(f"  {path}" for path in files)
    return [TextContent(type="text", text="\n".join(lines))]
