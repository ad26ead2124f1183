"""MCP server for World of Warcraft developer data."""

__version__ = "0.1.0"
