"""HTTP client wrapper for the n8n public REST API.

Provides an async HTTP client with lifecycle management, API key
authentication, and normalization of every failure into ``N8nClientError``.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from n8n_workflow_mcp import __version__
from n8n_workflow_mcp.config import Settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"


class N8nClientError(Exception):
    """Base exception for n8n client errors.

    Carries everything known about the failed request so callers never need
    to look at httpx exception types.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_text: str | None = None,
        body: Any = None,
        path: str | None = None,
        method: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        self.path = path
        self.method = method


class N8nApiError(N8nClientError):
    """The n8n API answered with a non-2xx status or an unreadable body."""


class N8nTransportError(N8nClientError):
    """The n8n API could not be reached (connection failure, timeout)."""


def _quote_id(value: str) -> str:
    return quote(str(value), safe="")


class N8nClient:
    """Async HTTP client for the n8n public REST API.

    One instance is created at startup and shared by every tool call; the
    underlying ``httpx.AsyncClient`` is safe for concurrent use.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the client with settings.

        Args:
            settings: Application settings containing URL, API key, timeout.
            transport: Optional httpx transport, mainly for tests.
        """
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "N8nClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _build_headers(self) -> dict[str, str]:
        """Build HTTP headers including the API key.

        Returns:
            Dictionary of HTTP headers.
        """
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"n8n_workflow_mcp/{__version__}",
        }
        if self._settings.api_key:
            headers[API_KEY_HEADER] = self._settings.api_key
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized.

        Returns:
            The initialized async HTTP client.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.api_base_url,
                headers=self._build_headers(),
                timeout=httpx.Timeout(self._settings.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _decode_error_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _log_failure(self, error: N8nClientError) -> None:
        logger.error(
            "n8n API error: status=%s status_text=%s body=%r path=%s method=%s",
            error.status_code,
            error.status_text,
            error.body,
            error.path,
            error.method,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON response.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: API endpoint path, relative to ``/api/v1``.
            params: Optional query parameters.
            json_body: Optional JSON body.

        Returns:
            Parsed JSON response, or None for an empty body.

        Raises:
            N8nApiError: On a non-2xx status or an invalid JSON body.
            N8nTransportError: If the request could not be completed.
        """
        client = await self._ensure_client()

        try:
            response = await client.request(method, path, params=params, json=json_body)
        except httpx.TimeoutException as e:
            error = N8nTransportError(
                f"Request to {method} {path} timed out after {self._settings.timeout_seconds:g}s",
                path=path,
                method=method,
            )
            self._log_failure(error)
            raise error from e
        except httpx.RequestError as e:
            error = N8nTransportError(
                f"Request to {method} {path} failed: {e}",
                path=path,
                method=method,
            )
            self._log_failure(error)
            raise error from e

        if not response.is_success:
            error = N8nApiError(
                f"HTTP {response.status_code} {response.reason_phrase} for {method} {path}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=self._decode_error_body(response),
                path=path,
                method=method,
            )
            self._log_failure(error)
            raise error

        logger.debug("HTTP request succeeded: %s %s -> %d", method, path, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            error = N8nApiError(
                "Invalid JSON in response body",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=response.text[:200],
                path=path,
                method=method,
            )
            self._log_failure(error)
            raise error from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json_body: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, params=params, json_body=json_body)

    async def put(self, path: str, json_body: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self._request("PUT", path, params=params, json_body=json_body)

    async def patch(self, path: str, json_body: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self._request("PATCH", path, params=params, json_body=json_body)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("DELETE", path, params=params)

    # ==================== Workflows ====================

    async def list_workflows(self, active: bool | None = None) -> Any:
        """List workflows, optionally filtered by active status.

        Args:
            active: Filter value. ``None`` sends no filter at all.

        Returns:
            The API response (usually ``{"data": [...], "nextCursor": ...}``).
        """
        params = {"active": active} if active is not None else None
        return await self.get("/workflows", params=params)

    async def get_workflow(self, workflow_id: str) -> Any:
        return await self.get(f"/workflows/{_quote_id(workflow_id)}")

    async def create_workflow(self, workflow: dict[str, Any]) -> Any:
        return await self.post("/workflows", json_body=workflow)

    async def update_workflow(self, workflow_id: str, patch: dict[str, Any]) -> Any:
        return await self.put(f"/workflows/{_quote_id(workflow_id)}", json_body=patch)

    async def delete_workflow(self, workflow_id: str) -> Any:
        return await self.delete(f"/workflows/{_quote_id(workflow_id)}")

    async def set_workflow_active(self, workflow_id: str, active: bool) -> Any:
        return await self.patch(f"/workflows/{_quote_id(workflow_id)}", json_body={"active": active})

    async def execute_workflow(self, workflow_id: str, data: dict[str, Any]) -> Any:
        """Start a manual execution of a workflow.

        Args:
            workflow_id: The workflow identifier.
            data: Input data passed to the execution.

        Returns:
            The execution record returned by n8n.
        """
        return await self.post(
            f"/workflows/{_quote_id(workflow_id)}/executions", json_body={"data": data}
        )

    # ==================== Executions ====================

    async def list_executions(self, limit: int = 20, workflow_id: str | None = None) -> Any:
        """List executions, newest first.

        Args:
            limit: Maximum number of executions to return.
            workflow_id: Optional workflow filter.

        Returns:
            The API response.
        """
        params: dict[str, Any] = {"limit": limit}
        if workflow_id:
            params["workflowId"] = workflow_id
        return await self.get("/executions", params=params)
