"""AutoTestX - oracle-driven iterative test repair, exposed over MCP and a CLI."""

__version__ = "0.1.0"
