"""MCP handler for repair_project (delegates to RepairService)."""

from __future__ import annotations

from mcp.types import TextContent, Tool

from ...core.repair import RepairResult
from ...services import ServiceResult, create_repair_service

# =============================================================================
# Tool Definition
# =============================================================================

TOOL_DEFINITION = Tool(
    name="repair_project",
    description=(
        "Repair a project's failing test suite. "
        "Runs the tests, locates the files implicated by the failure output, "
        "asks the AI oracle for code updates, installs missing packages and "
        "applies the updates, repeating until the tests pass or the "
        "iteration budget is spent."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "project_dir": {
                "type": "string",
                "description": "Absolute path of the project to repair"
            },
            "max_iterations": {
                "type": "integer",
                "minimum": 1,
                "description": "Maximum number of test runs (default: 3)"
            },
            "test_command": {
                "type": "string",
                "description": "Test command to use instead of auto-detection (optional)"
            }
        },
        "required": ["project_dir"]
    }
)


# =============================================================================
# Handler
# =============================================================================

async def handle(arguments: dict) -> list[TextContent]:
    """Repair the project at 'project_dir' and return the session trail."""

    try:
        service = create_repair_service()
    except ValueError as e:
        return [TextContent(type="text", text=f"Error: Invalid configuration: {e}")]

    try:
        result = await service.repair(
            project_dir=arguments.get("project_dir", ""),
            max_iterations=arguments.get("max_iterations"),
            test_command=arguments.get("test_command")
        )
    finally:
        await service.aclose()

    if not result.success:
        return error_response(result)

    return [TextContent(
        type="text",
        text=format_repair_result(result.data, title="🔧 REPAIR RESULTS")
    )]


# =============================================================================
# Response Formatting
# =============================================================================

def format_repair_result(repair_result: RepairResult, title: str) -> str:
    """Format a session trail as readable text."""
    lines = [
        title,
        "=" * 50,
        "",
    ]

    if repair_result.success:
        lines.append(f"✅ {repair_result.to_summary()}")
    else:
        lines.append(f"❌ {repair_result.to_summary()}")
    lines.append("")

    if repair_result.actions:
        lines.append(f"📋 Actions ({len(repair_result.actions)}):")
        for i, action in enumerate(repair_result.actions, 1):
            lines.append(f"  {i}. {action}")
        lines.append("")

    if repair_result.errors:
        lines.append(f"⚠️ Errors ({len(repair_result.errors)}):")
        for error in repair_result.errors:
            lines.append(f"  - {error}")

    return "\n".join(lines).rstrip()


# =============================================================================
# Helpers
# =============================================================================

def error_response(result: ServiceResult) -> list[TextContent]:
    """Create error response from failed ServiceResult."""
    return [TextContent(
        type="text",
        text=f"Error [{result.error.code.value}]: {result.error.message}"
    )]
