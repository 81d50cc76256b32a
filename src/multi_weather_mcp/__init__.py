"""Multi-source weather aggregation MCP server package."""

__version__ = "0.1.0"
