"""Tool handlers, one per n8n API operation.

Each handler validates its arguments, makes exactly one n8n API call, and
renders the success text. Failures are raised and turned into a
``ToolResult`` by the dispatcher.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

from n8n_workflow_mcp.client import N8nClient
from n8n_workflow_mcp.models import (
    ActivateWorkflowArgs,
    CreateWorkflowArgs,
    ExecuteWorkflowArgs,
    GetExecutionsArgs,
    ListWorkflowsArgs,
    ToolResult,
    UpdateWorkflowArgs,
    WorkflowIdArgs,
    parse_arguments,
)

ToolHandler = Callable[[N8nClient, dict[str, Any] | None], Awaitable[ToolResult]]


def pretty_json(data: Any) -> str:
    """Render an API payload as indented JSON."""
    return json.dumps(data, indent=2, default=str)


async def list_workflows(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(ListWorkflowsArgs, arguments)
    result = await client.list_workflows(active=args.active)
    return ToolResult.ok(pretty_json(result))


async def get_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(WorkflowIdArgs, arguments)
    result = await client.get_workflow(args.id)
    return ToolResult.ok(pretty_json(result))


async def create_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    """Create a workflow from a validated node list.

    Nodes missing ``parameters`` or ``typeVersion`` get ``{}`` and ``1``;
    settings always carry an ``executionOrder``.
    """
    args = parse_arguments(CreateWorkflowArgs, arguments)
    result = await client.create_workflow(args.to_payload())
    return ToolResult.ok(f"Workflow created successfully!\n{pretty_json(result)}")


async def update_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(UpdateWorkflowArgs, arguments)
    result = await client.update_workflow(args.id, args.to_patch())
    return ToolResult.ok(f"Workflow updated successfully!\n{pretty_json(result)}")


async def delete_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(WorkflowIdArgs, arguments)
    await client.delete_workflow(args.id)
    return ToolResult.ok(f"Workflow {args.id} deleted successfully!")


async def activate_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(ActivateWorkflowArgs, arguments)
    result = await client.set_workflow_active(args.id, args.active)
    state = "activated" if args.active else "deactivated"
    return ToolResult.ok(f"Workflow {state} successfully!\n{pretty_json(result)}")


async def execute_workflow(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(ExecuteWorkflowArgs, arguments)
    result = await client.execute_workflow(args.id, args.data)
    return ToolResult.ok(f"Workflow execution started!\n{pretty_json(result)}")


async def get_executions(client: N8nClient, arguments: dict[str, Any] | None) -> ToolResult:
    args = parse_arguments(GetExecutionsArgs, arguments)
    result = await client.list_executions(limit=args.limit, workflow_id=args.workflow_id)
    return ToolResult.ok(pretty_json(result))


HANDLERS: dict[str, ToolHandler] = {
    "list_workflows": list_workflows,
    "get_workflow": get_workflow,
    "create_workflow": create_workflow,
    "update_workflow": update_workflow,
    "delete_workflow": delete_workflow,
    "activate_workflow": activate_workflow,
    "execute_workflow": execute_workflow,
    "get_executions": get_executions,
}
