"""MCP server exposing n8n workflow management tools."""

__version__ = "1.1.0"
