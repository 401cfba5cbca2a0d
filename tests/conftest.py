"""Shared fixtures for n8n_workflow_mcp tests."""

from collections.abc import AsyncIterator

import pytest

from n8n_workflow_mcp.client import N8nClient
from n8n_workflow_mcp.config import Settings
from n8n_workflow_mcp.mcp_app import ToolDispatcher

N8N_URL = "http://n8n.test"
API_BASE = f"{N8N_URL}/api/v1"
API_KEY = "test-api-key"


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        n8n_url=N8N_URL,
        api_key=API_KEY,
        timeout_seconds=5.0,
    )


@pytest.fixture
async def client(settings: Settings) -> AsyncIterator[N8nClient]:
    """Create test client and close it afterwards."""
    n8n_client = N8nClient(settings)
    yield n8n_client
    await n8n_client.close()


@pytest.fixture
def dispatcher(client: N8nClient) -> ToolDispatcher:
    """Create a dispatcher bound to the test client."""
    return ToolDispatcher(client)
