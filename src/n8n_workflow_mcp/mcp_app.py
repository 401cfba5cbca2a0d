"""MCP application with the n8n workflow tools.

This module defines the tool catalog, the dispatcher that routes tool calls
to their handlers, and the MCP server wiring shared by the stdio and HTTP
transport entrypoints.
"""

import logging
from collections.abc import Mapping
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from n8n_workflow_mcp.client import N8nClient, N8nClientError, N8nTransportError
from n8n_workflow_mcp.config import Settings
from n8n_workflow_mcp.handlers import HANDLERS, ToolHandler, pretty_json
from n8n_workflow_mcp.models import ArgumentValidationError, ErrorKind, ToolResult

logger = logging.getLogger(__name__)

SERVER_NAME = "n8n-workflow-server"

_WORKFLOW_ID = {"type": "string", "description": "Workflow ID"}

TOOLS: tuple[Tool, ...] = (
    Tool(
        name="list_workflows",
        description="List all workflows in n8n",
        inputSchema={
            "type": "object",
            "properties": {
                "active": {
                    "type": "boolean",
                    "description": "Filter by active status",
                },
            },
        },
    ),
    Tool(
        name="get_workflow",
        description="Get a specific workflow by ID",
        inputSchema={
            "type": "object",
            "properties": {"id": _WORKFLOW_ID},
            "required": ["id"],
        },
    ),
    Tool(
        name="create_workflow",
        description="Create a new workflow in n8n",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Workflow name",
                },
                "nodes": {
                    "type": "array",
                    "description": "Array of workflow nodes, each with id, name, type and position [x, y]",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string"},
                            "name": {"type": "string"},
                            "type": {"type": "string"},
                            "position": {
                                "type": "array",
                                "items": {"type": "number"},
                                "minItems": 2,
                                "maxItems": 2,
                            },
                            "parameters": {"type": "object", "default": {}},
                            "typeVersion": {"type": "number", "default": 1},
                        },
                        "required": ["id", "name", "type", "position"],
                    },
                },
                "connections": {
                    "type": "object",
                    "description": "Node connections object",
                },
                "active": {
                    "type": "boolean",
                    "description": "Whether workflow should be active",
                    "default": False,
                },
                "settings": {
                    "type": "object",
                    "description": "Workflow settings",
                },
            },
            "required": ["name", "nodes"],
        },
    ),
    Tool(
        name="update_workflow",
        description="Update an existing workflow",
        inputSchema={
            "type": "object",
            "properties": {
                "id": _WORKFLOW_ID,
                "name": {
                    "type": "string",
                    "description": "Workflow name",
                },
                "nodes": {
                    "type": "array",
                    "description": "Array of workflow nodes",
                },
                "connections": {
                    "type": "object",
                    "description": "Node connections object",
                },
                "active": {
                    "type": "boolean",
                    "description": "Whether workflow should be active",
                },
                "settings": {
                    "type": "object",
                    "description": "Workflow settings",
                },
            },
            "required": ["id"],
        },
    ),
    Tool(
        name="delete_workflow",
        description="Delete a workflow",
        inputSchema={
            "type": "object",
            "properties": {"id": _WORKFLOW_ID},
            "required": ["id"],
        },
    ),
    Tool(
        name="activate_workflow",
        description="Activate/deactivate a workflow",
        inputSchema={
            "type": "object",
            "properties": {
                "id": _WORKFLOW_ID,
                "active": {
                    "type": "boolean",
                    "description": "Active status",
                },
            },
            "required": ["id", "active"],
        },
    ),
    Tool(
        name="execute_workflow",
        description="Execute a workflow manually",
        inputSchema={
            "type": "object",
            "properties": {
                "id": _WORKFLOW_ID,
                "data": {
                    "type": "object",
                    "description": "Input data for workflow execution",
                },
            },
            "required": ["id"],
        },
    ),
    Tool(
        name="get_executions",
        description="Get workflow execution history",
        inputSchema={
            "type": "object",
            "properties": {
                "workflowId": _WORKFLOW_ID,
                "limit": {
                    "type": "number",
                    "description": "Number of executions to return",
                    "default": 20,
                },
            },
        },
    ),
)


def create_mcp_server(name: str = SERVER_NAME) -> Server:
    """Create and configure the MCP server.

    Args:
        name: Server name for identification.

    Returns:
        Configured MCP Server instance.
    """
    return Server(name)


def build_dispatch_table(handlers: Mapping[str, ToolHandler]) -> dict[str, ToolHandler]:
    """Map every catalog tool to its handler.

    Raises:
        RuntimeError: If a catalog tool has no handler.
    """
    table: dict[str, ToolHandler] = {}
    for tool in TOOLS:
        handler = handlers.get(tool.name)
        if handler is None:
            raise RuntimeError(f"No handler registered for tool: {tool.name}")
        table[tool.name] = handler
    return table


def result_text(result: ToolResult) -> str:
    """Render a ToolResult as the text returned to the caller."""
    if result.success:
        return result.text

    if result.error_kind is ErrorKind.API:
        message = f"API Error: {result.status_code} {result.status_text}"
        if result.details not in (None, ""):
            message += f"\nDetails: {pretty_json(result.details)}"
    elif result.error_kind is ErrorKind.TRANSPORT:
        message = f"Transport Error: {result.error}"
    else:
        message = result.error or "Unknown error occurred"
    return f"Error: {message}"


def format_result(result: ToolResult) -> list[TextContent]:
    """Format a ToolResult as MCP TextContent.

    Args:
        result: The tool result to format.

    Returns:
        List containing a single TextContent.
    """
    return [TextContent(type="text", text=result_text(result))]


class ToolDispatcher:
    """Routes tool calls to handlers and never lets a failure escape.

    Every call ends in a ToolResult: handler output on success, or a failure
    of the matching ErrorKind.
    """

    def __init__(
        self,
        client: N8nClient,
        handlers: Mapping[str, ToolHandler] | None = None,
    ) -> None:
        self._client = client
        self._handlers = build_dispatch_table(HANDLERS if handlers is None else handlers)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    def list_tools(self) -> list[Tool]:
        """Return the static tool catalog. Never contacts n8n."""
        return list(TOOLS)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Run one tool call.

        Args:
            name: The tool name to call.
            arguments: Raw tool arguments.

        Returns:
            The outcome of the call.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.error("Error in %s: unknown tool", name)
            return ToolResult.fail(ErrorKind.DISPATCH, f"Unknown tool: {name}")

        try:
            return await handler(self._client, arguments)
        except ArgumentValidationError as e:
            logger.error("Error in %s: invalid arguments: %s", name, e)
            return ToolResult.fail(ErrorKind.VALIDATION, f"Invalid arguments for {name}: {e}")
        except N8nTransportError as e:
            logger.error("Error in %s: %s", name, e)
            return ToolResult.fail(ErrorKind.TRANSPORT, str(e))
        except N8nClientError as e:
            logger.error("Error in %s: %s", name, e)
            return ToolResult.fail(
                ErrorKind.API,
                str(e),
                status_code=e.status_code,
                status_text=e.status_text,
                details=e.body,
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return ToolResult.fail(ErrorKind.INTERNAL, str(e) or "Unknown error occurred")

    async def call(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Run one tool call and render it as MCP content."""
        return format_result(await self.dispatch(name, arguments))


def register_tools(server: Server, dispatcher: ToolDispatcher) -> None:
    """Register the n8n tools on the server.

    Args:
        server: The MCP server to register tools on.
        dispatcher: The dispatcher that serves the tools.
    """

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return dispatcher.list_tools()

    # Arguments are validated by the tool's argument model, not the SDK.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls.

        Args:
            name: The tool name to call.
            arguments: Tool arguments.

        Returns:
            List of TextContent with the result.
        """
        logger.info("Tool called: %s", name)
        return await dispatcher.call(name, arguments)


def setup_mcp_app(server: Server, settings: Settings, client: N8nClient) -> ToolDispatcher:
    """Set up the complete MCP application.

    Args:
        server: The MCP server to configure.
        settings: Application settings.
        client: The n8n client for API calls.

    Returns:
        The dispatcher serving the registered tools.
    """
    dispatcher = ToolDispatcher(client)
    register_tools(server, dispatcher)
    logger.info("MCP server configured for %s", settings.n8n_url)
    return dispatcher
