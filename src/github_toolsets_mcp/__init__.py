"""GitHub MCP server with toolset-based access control and raw repository content."""

__version__ = "0.1.0"
