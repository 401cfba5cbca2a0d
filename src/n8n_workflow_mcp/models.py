"""Pydantic models for MCP tool arguments and results.

Argument models are the only place tool input is validated: they reject
malformed input before any request is sent and fill in the defaults n8n
expects. Response payloads from n8n are passed through untouched.
"""

from enum import Enum
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
)

DEFAULT_EXECUTION_ORDER = "v1"
DEFAULT_EXECUTIONS_LIMIT = 20


def _coerce_id(value: Any) -> Any:
    """Accept numeric ids from callers; n8n ids are strings on the wire."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


WorkflowId = Annotated[
    str,
    BeforeValidator(_coerce_id),
    Field(min_length=1, description="Workflow ID"),
]


class ArgumentValidationError(ValueError):
    """Tool arguments failed validation; no request was sent."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def format_validation_errors(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into ``field: message`` pairs."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


ArgsT = TypeVar("ArgsT", bound=BaseModel)


def parse_arguments(model: type[ArgsT], arguments: dict[str, Any] | None) -> ArgsT:
    """Validate raw tool arguments against an argument model.

    Args:
        model: The argument model for the tool.
        arguments: Raw arguments from the tool call; ``None`` means none given.

    Returns:
        The validated model instance.

    Raises:
        ArgumentValidationError: If the arguments are malformed.
    """
    try:
        return model.model_validate(arguments if arguments is not None else {})
    except ValidationError as e:
        raise ArgumentValidationError(
            format_validation_errors(e),
            errors=e.errors(include_url=False),
        ) from e


# ==================== Workflow Structure ====================


class WorkflowNode(BaseModel):
    """A single node of a workflow being created.

    Only the keys n8n needs to accept the node are checked. Any other node
    keys (credentials, disabled, webhookId, ...) are kept as given.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Node ID, unique within the workflow")
    name: str = Field(..., min_length=1, description="Node display name")
    type: str = Field(..., min_length=1, description="Node type, e.g. 'n8n-nodes-base.set'")
    position: Annotated[list[StrictInt | StrictFloat], Field(min_length=2, max_length=2)] = Field(
        ...,
        description="Canvas position as [x, y]",
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Node configuration parameters",
    )
    typeVersion: int | float = Field(
        default=1,
        description="Version of the node type",
    )

    @field_validator("parameters", mode="before")
    @classmethod
    def _parameters_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("typeVersion", mode="before")
    @classmethod
    def _type_version_default(cls, value: Any) -> Any:
        return 1 if value is None else value


# ==================== Tool Arguments ====================


class ListWorkflowsArgs(BaseModel):
    """Arguments for list_workflows."""

    active: StrictBool | None = Field(
        default=None,
        description="Filter by active status; omitted means no filter",
    )


class WorkflowIdArgs(BaseModel):
    """Arguments for get_workflow and delete_workflow."""

    id: WorkflowId


class CreateWorkflowArgs(BaseModel):
    """Arguments for create_workflow."""

    name: str = Field(..., min_length=1, description="Workflow name")
    nodes: list[WorkflowNode] = Field(..., description="Workflow nodes")
    connections: dict[str, Any] = Field(
        default_factory=dict,
        description="Node connections keyed by source node name",
    )
    active: StrictBool = Field(default=False, description="Whether the workflow should be active")
    settings: dict[str, Any] | None = Field(default=None, description="Workflow settings")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Workflow name must not be blank")
        return value

    @field_validator("connections", mode="before")
    @classmethod
    def _connections_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("active", mode="before")
    @classmethod
    def _active_default(cls, value: Any) -> Any:
        return False if value is None else value

    def to_payload(self) -> dict[str, Any]:
        """Build the full workflow body for ``POST /workflows``.

        n8n rejects the body unless staticData, meta and pinData are present,
        so they are always sent even though they carry no data here.
        """
        return {
            "name": self.name,
            "nodes": [node.model_dump() for node in self.nodes],
            "connections": self.connections,
            "active": self.active,
            "settings": {"executionOrder": DEFAULT_EXECUTION_ORDER, **(self.settings or {})},
            "staticData": None,
            "meta": None,
            "pinData": {},
        }


class UpdateWorkflowArgs(BaseModel):
    """Arguments for update_workflow.

    Everything except ``id`` is an optional part of the patch; unknown keys
    are passed through to n8n.
    """

    model_config = ConfigDict(extra="allow")

    id: WorkflowId
    name: str | None = Field(default=None, description="Workflow name")
    nodes: list[dict[str, Any]] | None = Field(default=None, description="Workflow nodes")
    connections: dict[str, Any] | None = Field(default=None, description="Node connections")
    active: StrictBool | None = Field(
        default=None,
        description="Whether the workflow should be active",
    )
    settings: dict[str, Any] | None = Field(default=None, description="Workflow settings")

    def to_patch(self) -> dict[str, Any]:
        """Build the body for ``PUT /workflows/{id}`` from the fields the caller set."""
        dumped = self.model_dump(exclude={"id"})
        provided = self.model_fields_set | set(self.model_extra or {})
        patch = {key: value for key, value in dumped.items() if key in provided}

        settings = patch.get("settings")
        if isinstance(settings, dict) and not settings.get("executionOrder"):
            patch["settings"] = {**settings, "executionOrder": DEFAULT_EXECUTION_ORDER}
        return patch


class ActivateWorkflowArgs(BaseModel):
    """Arguments for activate_workflow."""

    id: WorkflowId
    active: StrictBool = Field(..., description="True to activate, False to deactivate")


class ExecuteWorkflowArgs(BaseModel):
    """Arguments for execute_workflow."""

    id: WorkflowId
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Input data for the execution",
    )

    @field_validator("data", mode="before")
    @classmethod
    def _data_default(cls, value: Any) -> Any:
        return {} if value is None else value


class GetExecutionsArgs(BaseModel):
    """Arguments for get_executions."""

    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str | None = Field(
        default=None,
        alias="workflowId",
        description="Only return executions of this workflow",
    )
    limit: int = Field(
        default=DEFAULT_EXECUTIONS_LIMIT,
        ge=1,
        description="Number of executions to return",
    )

    @field_validator("workflow_id", mode="before")
    @classmethod
    def _workflow_id_as_str(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("limit", mode="before")
    @classmethod
    def _limit_default(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("limit must be an integer, not a boolean")
        if value is None or value == "" or value == 0:
            return DEFAULT_EXECUTIONS_LIMIT
        return value


# ==================== Results ====================


class ErrorKind(str, Enum):
    """Kinds of failure a tool call can end in."""

    VALIDATION = "validation"
    TRANSPORT = "transport"
    API = "api"
    DISPATCH = "dispatch"
    INTERNAL = "internal"


class ToolResult(BaseModel):
    """Outcome of a single tool call, before it is rendered as text."""

    success: bool = Field(
        default=True,
        description="Whether the tool execution succeeded",
    )
    text: str = Field(
        default="",
        description="Rendered success text",
    )
    error_kind: ErrorKind | None = Field(
        default=None,
        description="Kind of failure if success is False",
    )
    error: str | None = Field(
        default=None,
        description="Error message if success is False",
    )
    status_code: int | None = Field(
        default=None,
        description="HTTP status of a failed n8n API call",
    )
    status_text: str | None = Field(
        default=None,
        description="HTTP reason phrase of a failed n8n API call",
    )
    details: Any = Field(
        default=None,
        description="Response body of a failed n8n API call",
    )

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        """Create a successful result.

        Args:
            text: The text to return to the caller.

        Returns:
            ToolResult with success=True.
        """
        return cls(success=True, text=text)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, **extra: Any) -> "ToolResult":
        """Create a failed result.

        Args:
            kind: What kind of failure occurred.
            error: Error message.
            **extra: status_code, status_text or details for API failures.

        Returns:
            ToolResult with success=False.
        """
        return cls(success=False, error_kind=kind, error=error, **extra)
