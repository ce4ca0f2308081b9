"""Tool endpoint: access-token auth, routing and built-in tool execution."""
from datetime import timedelta

import httpx
import pytest

from mcp_console.mcp import McpServer
from mcp_console.services.storage import utcnow

TOKEN = "mcp-test-token"


@pytest.fixture
def access_token(store, admin):
    return store.create_token(admin.id, "agent", TOKEN, "read,execute")


@pytest.fixture
def headers(access_token):
    return {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def saved_builtins(store):
    for name in ("filesystem", "memory", "fetch", "sequential_thinking"):
        store.create_tool(name, name, "builtin", f"/{name}")


def _execute(client, headers, tool, data):
    return client.post(f"/api/mcp/tools/{tool}/execute", json=data, headers=headers)


class TestAuth:
    def test_missing_token(self, client):
        r = client.get("/api/mcp/tools")
        assert r.status_code == 401
        assert r.json() == {"error": "unauthorized", "message": "Authorization token is required"}

    def test_unknown_token(self, client):
        r = client.get("/api/mcp/tools", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401
        assert r.json()["message"] == "Invalid or expired token"

    def test_query_token(self, client, access_token):
        assert client.get(f"/api/mcp/tools?token={TOKEN}").status_code == 200

    def test_revoked_token(self, client, store, access_token, headers):
        store.revoke_token(access_token.id)
        assert client.get("/api/mcp/tools", headers=headers).status_code == 401

    def test_expired_token(self, client, store, admin):
        store.create_token(admin.id, "old", "old-token", "read", expires_at=utcnow() - timedelta(minutes=1))
        r = client.get("/api/mcp/tools", headers={"Authorization": "Bearer old-token"})
        assert r.status_code == 401

    def test_use_stamps_last_used(self, client, store, access_token, headers):
        assert access_token.last_used is None
        client.get("/api/mcp/", headers=headers)
        assert store.get_token_by_id(access_token.id).last_used is not None

    def test_dashboard_session_is_not_an_access_token(self, client, auth_headers):
        assert client.get("/api/mcp/tools", headers=auth_headers).status_code == 401


class TestRouting:
    def test_server_info(self, client, headers):
        r = client.get("/api/mcp/", headers=headers)
        assert r.status_code == 200
        assert r.json()["name"] == "MCP Server"
        assert r.json()["tools"]["enabled"] is True

    def test_list_includes_builtins(self, client, headers):
        names = {t["name"] for t in client.get("/api/mcp/tools", headers=headers).json()}
        assert {"filesystem", "memory", "fetch", "sequential_thinking"} <= names

    def test_tool_definition(self, client, headers):
        r = client.get("/api/mcp/tools/fetch", headers=headers)
        assert r.status_code == 200
        assert r.json()["inputSchema"]["required"] == ["url"]
        assert r.json()["examples"]

    def test_unknown_tool(self, client, headers):
        r = client.get("/api/mcp/tools/nope", headers=headers)
        assert r.status_code == 404
        assert r.json()["error"] == "not_found"

    def test_wrong_method(self, client, headers):
        assert client.get("/api/mcp/tools/memory/execute", headers=headers).status_code == 405
        assert client.post("/api/mcp/tools/memory", json={}, headers=headers).status_code == 405

    @pytest.mark.parametrize("path", ["resources", "prompts", "sampling"])
    def test_not_implemented(self, client, headers, path):
        r = client.get(f"/api/mcp/{path}", headers=headers)
        assert r.status_code == 501
        assert r.json()["error"] == "not_implemented"

    def test_unknown_path(self, client, headers):
        r = client.get("/api/mcp/elsewhere", headers=headers)
        assert r.status_code == 404
        assert r.json()["message"] == "Path not found: /elsewhere"

    def test_invalid_json_body(self, client, headers):
        r = client.post(
            "/api/mcp/tools/memory/execute",
            content=b"{not json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["error"] == "bad_request"

    def test_envelope(self, client, headers):
        r = client.post("/api/mcp", json={"method": "GET", "path": "/tools/memory"}, headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == 200
        assert body["statusText"] == "OK"
        assert body["data"]["name"] == "memory"

    def test_envelope_error(self, client, headers):
        r = client.post("/api/mcp", json={"method": "GET", "path": "/tools/nope"}, headers=headers)
        assert r.status_code == 404
        assert r.json() == {"error": "not_found", "message": "Tool not found: nope", "status": 404}


class TestExecution:
    def test_tool_must_be_saved_and_active(self, client, store, headers):
        r = _execute(client, headers, "memory", {"operation": "retrieve", "key": "k"})
        assert r.status_code == 503
        assert r.json()["error"] == "tool_unavailable"

        store.create_tool("memory", "m", "builtin", "/memory", active=False)
        assert _execute(client, headers, "memory", {"operation": "retrieve", "key": "k"}).status_code == 503

    def test_memory(self, client, headers, saved_builtins):
        stored = _execute(client, headers, "memory", {"operation": "store", "key": "color", "value": "blue"})
        assert stored.json() == {"output": {"success": True, "key": "color"}}

        assert _execute(client, headers, "memory", {"operation": "retrieve", "key": "color"}).json() == {
            "output": {"value": "blue"}
        }
        assert _execute(client, headers, "memory", {"operation": "search", "query": "blu"}).json() == {
            "output": {"results": {"color": "blue"}}
        }
        assert _execute(client, headers, "memory", {"operation": "delete", "key": "color"}).json() == {
            "output": {"success": True}
        }
        assert _execute(client, headers, "memory", {"operation": "retrieve", "key": "color"}).json() == {
            "output": {"error": "Key not found"}
        }

    def test_bad_operation_is_execution_error(self, client, headers, saved_builtins):
        r = _execute(client, headers, "memory", {"operation": "explode"})
        assert r.status_code == 500
        assert r.json() == {"error": "execution_error", "message": "Unsupported operation: explode", "status": 500}

    def test_filesystem_is_mocked(self, client, headers, saved_builtins):
        r = _execute(client, headers, "filesystem", {"operation": "read", "path": "/data/x.json"})
        assert r.json()["output"]["contentType"] == "application/json"
        r = _execute(client, headers, "filesystem", {"operation": "list", "path": "/"})
        assert r.json()["output"]["files"]

    def test_sequential_thinking(self, client, headers, saved_builtins):
        r = _execute(client, headers, "sequential_thinking", {"task": "plan a trip", "steps": 2})
        output = r.json()["output"]
        assert output["solution"] == "Solution for: plan a trip"
        assert output["steps"] == ["Step 1: Thinking through the problem...", "Step 2: Thinking through the problem..."]

        r = _execute(client, headers, "sequential_thinking", {"task": "x", "steps": 500})
        assert len(r.json()["output"]["steps"]) == 20

    def test_fetch(self, app, client, store, headers, saved_builtins):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, json={"ok": True})

        app.state.mcp = McpServer(store, app.state.tools_registry, transport=httpx.MockTransport(handler))

        r = _execute(client, headers, "fetch", {"url": "https://example.test/api", "extract": "json"})

        assert r.status_code == 200
        assert r.json()["output"] == {
            "content": {"ok": True},
            "status": 200,
            "headers": {"content-type": "application/json"},
        }
        assert seen == [("GET", "https://example.test/api")]

    def test_fetch_transport_error(self, app, client, store, headers, saved_builtins):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        app.state.mcp = McpServer(store, app.state.tools_registry, transport=httpx.MockTransport(handler))

        r = _execute(client, headers, "fetch", {"url": "https://down.test/"})

        assert r.status_code == 500
        assert r.json()["error"] == "execution_error"

    def test_fetch_requires_url(self, client, headers, saved_builtins):
        r = _execute(client, headers, "fetch", {})
        assert r.status_code == 500
        assert r.json()["message"] == "url is required"

    def test_custom_tool_is_mocked(self, client, auth_headers, headers):
        client.post(
            "/api/tools",
            json={"name": "weather", "description": "Weather", "type": "custom", "endpoint": "/weather"},
            headers=auth_headers,
        )
        r = _execute(client, headers, "weather", {"city": "Oslo"})
        assert r.status_code == 200
        assert r.json() == {"output": {"output": "Tool weather executed successfully", "mock": True}}
