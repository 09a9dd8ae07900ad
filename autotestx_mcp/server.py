"""
MCP server entrypoint for AutoTestX.

This module is intentionally thin:
- sets up the MCP server
- registers tools (from handlers)
- routes tool calls to handlers and reports handler crashes as error text
"""


from __future__ import annotations

import asyncio
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent

from .handlers.core import HANDLERS as CORE_HANDLERS
from .handlers.core import TOOLS as CORE_TOOLS
from .handlers.core.repair_project import error_response
from .logging_config import configure_logging
from .services import ServiceResult

logger = logging.getLogger(__name__)

# Create the MCP server instance
server = Server("autotestx")


# =============================================================================
# Tool Registration
# =============================================================================

ALL_TOOLS = [*CORE_TOOLS]

ALL_HANDLERS = {**CORE_HANDLERS}


@server.list_tools()
async def list_tools():
    """List all available tools."""
    return ALL_TOOLS


# =============================================================================
# Tool Router
# =============================================================================

@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Route tool calls to appropriate handlers."""
    logger.info(f"Tool called: {name}")

    handler = ALL_HANDLERS.get(name)
    if not handler:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(arguments or {})
    except Exception as e:
        # Report the crash to the client; the stdio session stays up
        logger.exception(f"Tool '{name}' crashed")
        return error_response(ServiceResult.from_exception(e))


# =============================================================================
# Entry Point
# =============================================================================

async def run_server():
    """Run the MCP server over stdio."""
    logger.info("Starting AutoTestX MCP Server...")
    logger.info(f"Registered {len(ALL_TOOLS)} tools: {[t.name for t in ALL_TOOLS]}")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def main():
    """Entry point."""
    configure_logging()
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
