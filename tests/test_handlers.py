"""Tests for tool handlers dispatched through ToolDispatcher."""

import json

import httpx
import pytest
import respx

from n8n_workflow_mcp.mcp_app import ToolDispatcher

API_BASE = "http://n8n.test/api/v1"

NODE = {
    "id": "node-1",
    "name": "Start",
    "type": "n8n-nodes-base.manualTrigger",
    "position": [250, 300],
}


@pytest.mark.parametrize(
    ("tool", "arguments", "method", "path"),
    [
        ("list_workflows", {}, "GET", "/workflows"),
        ("get_workflow", {"id": "wf-1"}, "GET", "/workflows/wf-1"),
        ("create_workflow", {"name": "New", "nodes": [NODE]}, "POST", "/workflows"),
        ("update_workflow", {"id": "wf-1", "name": "Renamed"}, "PUT", "/workflows/wf-1"),
        ("delete_workflow", {"id": "wf-1"}, "DELETE", "/workflows/wf-1"),
        ("activate_workflow", {"id": "wf-1", "active": True}, "PATCH", "/workflows/wf-1"),
        ("execute_workflow", {"id": "wf-1"}, "POST", "/workflows/wf-1/executions"),
        ("get_executions", {}, "GET", "/executions"),
    ],
)
async def test_each_tool_makes_one_call(
    dispatcher: ToolDispatcher, tool: str, arguments: dict, method: str, path: str
) -> None:
    """Test every tool issues exactly one request to its endpoint."""
    with respx.mock(assert_all_called=False) as router:
        route = router.route(method=method, url=f"{API_BASE}{path}").mock(
            return_value=httpx.Response(200, json={"id": "wf-1", "active": True})
        )

        result = await dispatcher.dispatch(tool, arguments)

    assert result.success, result.error
    assert route.call_count == 1
    assert router.calls.call_count == 1


class TestListWorkflows:
    @respx.mock
    async def test_no_active_filter_by_default(self, dispatcher: ToolDispatcher) -> None:
        """Test an absent filter is not sent as active=false."""
        route = respx.get(f"{API_BASE}/workflows").mock(
            return_value=httpx.Response(200, json={"data": [{"id": "wf-1"}]})
        )

        result = await dispatcher.dispatch("list_workflows", {})

        assert "active" not in route.calls.last.request.url.params
        assert json.loads(result.text) == {"data": [{"id": "wf-1"}]}

    @respx.mock
    async def test_active_filter_passed(self, dispatcher: ToolDispatcher) -> None:
        route = respx.get(f"{API_BASE}/workflows").mock(
            return_value=httpx.Response(200, json={"data": []})
        )

        await dispatcher.dispatch("list_workflows", {"active": True})

        assert route.calls.last.request.url.params["active"] == "true"


class TestCreateWorkflow:
    @respx.mock
    async def test_body_is_normalized(self, dispatcher: ToolDispatcher) -> None:
        """Test node defaults and required workflow keys are filled in."""
        route = respx.post(f"{API_BASE}/workflows").mock(
            return_value=httpx.Response(200, json={"id": "wf-9", "name": "New"})
        )

        result = await dispatcher.dispatch("create_workflow", {"name": "New", "nodes": [NODE]})

        body = json.loads(route.calls.last.request.content)
        assert body["nodes"][0]["parameters"] == {}
        assert body["nodes"][0]["typeVersion"] == 1
        assert body["settings"] == {"executionOrder": "v1"}
        assert body["connections"] == {}
        assert body["active"] is False
        assert body["staticData"] is None
        assert body["meta"] is None
        assert body["pinData"] == {}
        assert result.text.startswith("Workflow created successfully!\n")
        assert '"id": "wf-9"' in result.text

    async def test_missing_position_makes_no_call(self, dispatcher: ToolDispatcher) -> None:
        """Test a node without position fails validation before any request."""
        node = {key: value for key, value in NODE.items() if key != "position"}

        with respx.mock(assert_all_called=False) as router:
            route = router.post(f"{API_BASE}/workflows")
            result = await dispatcher.dispatch("create_workflow", {"name": "New", "nodes": [node]})

        assert not result.success
        assert "position" in (result.error or "")
        assert not route.called
        assert router.calls.call_count == 0

    async def test_missing_name_makes_no_call(self, dispatcher: ToolDispatcher) -> None:
        with respx.mock(assert_all_called=False) as router:
            result = await dispatcher.dispatch("create_workflow", {"nodes": [NODE]})

        assert not result.success
        assert router.calls.call_count == 0


class TestUpdateWorkflow:
    @respx.mock
    async def test_empty_settings_get_execution_order(self, dispatcher: ToolDispatcher) -> None:
        route = respx.put(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1"})
        )

        result = await dispatcher.dispatch("update_workflow", {"id": "wf-1", "settings": {}})

        body = json.loads(route.calls.last.request.content)
        assert body == {"settings": {"executionOrder": "v1"}}
        assert result.text.startswith("Workflow updated successfully!\n")

    @respx.mock
    async def test_caller_execution_order_kept(self, dispatcher: ToolDispatcher) -> None:
        route = respx.put(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1"})
        )

        await dispatcher.dispatch(
            "update_workflow", {"id": "wf-1", "settings": {"executionOrder": "v2"}}
        )

        body = json.loads(route.calls.last.request.content)
        assert body["settings"]["executionOrder"] == "v2"

    @respx.mock
    async def test_id_not_in_body(self, dispatcher: ToolDispatcher) -> None:
        route = respx.put(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1"})
        )

        await dispatcher.dispatch("update_workflow", {"id": "wf-1", "active": False})

        assert json.loads(route.calls.last.request.content) == {"active": False}


class TestOtherTools:
    @respx.mock
    async def test_get_workflow_text(self, dispatcher: ToolDispatcher) -> None:
        workflow = {"id": "wf-1", "name": "Daily report"}
        respx.get(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json=workflow)
        )

        result = await dispatcher.dispatch("get_workflow", {"id": "wf-1"})

        assert result.text == json.dumps(workflow, indent=2)

    @respx.mock
    async def test_delete_workflow_text(self, dispatcher: ToolDispatcher) -> None:
        respx.delete(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1"})
        )

        result = await dispatcher.dispatch("delete_workflow", {"id": "wf-1"})

        assert result.text == "Workflow wf-1 deleted successfully!"

    @respx.mock
    async def test_activate_body_and_text(self, dispatcher: ToolDispatcher) -> None:
        route = respx.patch(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1", "active": True})
        )

        result = await dispatcher.dispatch("activate_workflow", {"id": "wf-1", "active": True})

        assert json.loads(route.calls.last.request.content) == {"active": True}
        assert result.text.startswith("Workflow activated successfully!\n")

    @respx.mock
    async def test_deactivate_text(self, dispatcher: ToolDispatcher) -> None:
        respx.patch(f"{API_BASE}/workflows/wf-1").mock(
            return_value=httpx.Response(200, json={"id": "wf-1", "active": False})
        )

        result = await dispatcher.dispatch("activate_workflow", {"id": "wf-1", "active": False})

        assert result.text.startswith("Workflow deactivated successfully!\n")

    async def test_activate_without_active_makes_no_call(
        self, dispatcher: ToolDispatcher
    ) -> None:
        with respx.mock(assert_all_called=False) as router:
            result = await dispatcher.dispatch("activate_workflow", {"id": "wf-1"})

        assert not result.success
        assert router.calls.call_count == 0

    @respx.mock
    async def test_execute_default_data(self, dispatcher: ToolDispatcher) -> None:
        route = respx.post(f"{API_BASE}/workflows/wf-1/executions").mock(
            return_value=httpx.Response(200, json={"id": "exec-1"})
        )

        result = await dispatcher.dispatch("execute_workflow", {"id": "wf-1"})

        assert json.loads(route.calls.last.request.content) == {"data": {}}
        assert result.text.startswith("Workflow execution started!\n")

    @respx.mock
    async def test_get_executions_params(self, dispatcher: ToolDispatcher) -> None:
        route = respx.get(f"{API_BASE}/executions").mock(
            return_value=httpx.Response(200, json={"data": []})
        )

        await dispatcher.dispatch("get_executions", {"workflowId": "wf-1"})

        params = route.calls.last.request.url.params
        assert params["limit"] == "20"
        assert params["workflowId"] == "wf-1"
