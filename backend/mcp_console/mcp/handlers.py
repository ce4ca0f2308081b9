"""
Tool endpoint request handling: token check, path routing, tool execution.

Paths: "/" server info, "/tools" listing, "/tools/{name}" definition, "/tools/{name}/execute" (POST).
"/resources", "/prompts" and "/sampling" answer 501. Errors are raised as McpError.
"""
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import httpx

from mcp_console.mcp.protocol import McpError, McpRequest, McpResponse, ToolDefinition, server_info
from mcp_console.mcp.tools_registry import (
    TOOL_FETCH,
    TOOL_FILESYSTEM,
    TOOL_MEMORY,
    TOOL_SEQUENTIAL_THINKING,
    ToolsRegistry,
)
from mcp_console.services.auth_service import validate_access_token
from mcp_console.services.storage import Store

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 20.0
FETCH_METHODS = ("GET", "POST", "PUT", "DELETE")
DEFAULT_THINKING_STEPS = 3
MAX_THINKING_STEPS = 20

_TOOL_PATH = re.compile(r"^/tools/([^/]+)(/execute)?$")

_NOT_IMPLEMENTED = {
    "/resources": "Resources API not fully implemented yet",
    "/prompts": "Prompts API not implemented",
    "/sampling": "Sampling API not implemented",
}


def _content_type(path: str) -> str:
    return "application/json" if path.endswith(".json") else "text/plain"


class McpServer:
    """One per app. Holds the memory tool's key/value state for the process lifetime."""

    def __init__(
        self,
        store: Store,
        tools: ToolsRegistry,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        fetch_timeout: float = FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self.tools = tools
        self._transport = transport
        self._fetch_timeout = fetch_timeout
        self.memory: dict[str, str] = {}
        self._builtins: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            TOOL_FILESYSTEM: self._filesystem,
            TOOL_MEMORY: self._memory,
            TOOL_FETCH: self._fetch,
            TOOL_SEQUENTIAL_THINKING: self._sequential_thinking,
        }

    async def handle(self, request: McpRequest, token: str) -> McpResponse:
        if validate_access_token(self._store, token) is None:
            raise McpError("unauthorized", "Invalid or expired token", 401)

        path = request.path or "/"
        method = (request.method or "GET").upper()
        if path == "/":
            return McpResponse(200, server_info())
        if path.startswith("/tools"):
            return await self._tools_request(method, path, request.data)
        for prefix, message in _NOT_IMPLEMENTED.items():
            if path.startswith(prefix):
                raise McpError("not_implemented", message, 501)
        raise McpError("not_found", f"Path not found: {path}", 404)

    async def _tools_request(self, method: str, path: str, data: Any) -> McpResponse:
        if path == "/tools" and method == "GET":
            return McpResponse(200, [t.to_dict() for t in self.tools.all()])

        match = _TOOL_PATH.match(path)
        if match:
            name, execute = match.group(1), bool(match.group(2))
            tool = self.tools.get(name)
            if tool is None:
                raise McpError("not_found", f"Tool not found: {name}", 404)
            if method == "GET" and not execute:
                return McpResponse(200, tool.to_dict())
            if method == "POST" and execute:
                return McpResponse(200, {"output": await self.execute(tool, data)})

        raise McpError("method_not_allowed", f"Method {method} not allowed for path {path}", 405)

    async def execute(self, tool: ToolDefinition, data: Any) -> Any:
        """Run a tool. The tool must be saved and active; otherwise 503."""
        saved = self._store.get_tool_by_name(tool.name)
        if saved is None or not saved.active:
            raise McpError("tool_unavailable", f"Tool {tool.name} is not available", 503)

        payload = data if isinstance(data, dict) else {}
        handler = self._builtins.get(tool.name)
        if handler is None:
            return {"output": f"Tool {tool.name} executed successfully", "mock": True}
        try:
            return await handler(payload)
        except (ValueError, TypeError, httpx.HTTPError) as e:
            logger.warning("Tool %s failed: %s", tool.name, e)
            raise McpError("execution_error", str(e) or f"Error executing tool {tool.name}", 500) from e

    # --- Built-in tools ---

    async def _filesystem(self, data: dict[str, Any]) -> dict[str, Any]:
        # Mock listing: no real file access
        operation = data.get("operation")
        path = str(data.get("path") or "")
        if operation == "list":
            return {"files": ["example.txt", "data.json", "images/"]}
        if operation == "read":
            return {"content": "This is example content from the file system.", "contentType": _content_type(path)}
        if operation == "exists":
            return {"exists": True}
        if operation == "info":
            return {
                "size": 1024,
                "modified": datetime.now(timezone.utc).isoformat(),
                "contentType": _content_type(path),
            }
        raise ValueError(f"Unsupported operation: {operation}")

    async def _memory(self, data: dict[str, Any]) -> dict[str, Any]:
        operation = data.get("operation")
        key = data.get("key")
        if operation == "store":
            if not key:
                raise ValueError("key is required for store")
            self.memory[key] = str(data.get("value") or "")
            return {"success": True, "key": key}
        if operation == "retrieve":
            if key not in self.memory:
                return {"error": "Key not found"}
            return {"value": self.memory[key]}
        if operation == "search":
            query = str(data.get("query") or "")
            return {"results": {k: v for k, v in self.memory.items() if query in k or query in v}}
        if operation == "delete":
            return {"success": self.memory.pop(key, None) is not None}
        raise ValueError(f"Unsupported operation: {operation}")

    async def _fetch(self, data: dict[str, Any]) -> dict[str, Any]:
        url = data.get("url")
        if not url:
            raise ValueError("url is required")
        method = str(data.get("method") or "GET").upper()
        if method not in FETCH_METHODS:
            raise ValueError(f"Unsupported method: {method}")
        extract = data.get("extract") or "text"
        body = data.get("body") if method in ("POST", "PUT") else None

        async with httpx.AsyncClient(
            timeout=self._fetch_timeout, transport=self._transport, follow_redirects=True
        ) as client:
            r = await client.request(method, url, headers=data.get("headers") or None, content=body)

        content_type = r.headers.get("content-type", "")
        if extract == "json":
            try:
                content: Any = r.json()
            except ValueError as e:
                raise ValueError(f"Response from {url} is not valid JSON") from e
        else:
            # html / markdown are returned as the raw body
            content = r.text
        logger.info("Fetched %s %s -> %s", method, url, r.status_code)
        return {"content": content, "status": r.status_code, "headers": {"content-type": content_type}}

    async def _sequential_thinking(self, data: dict[str, Any]) -> dict[str, Any]:
        task = data.get("task")
        if not task:
            raise ValueError("task is required")
        steps = int(data.get("steps") or DEFAULT_THINKING_STEPS)
        steps = max(1, min(steps, MAX_THINKING_STEPS))
        outline = [f"Step {i + 1}: Thinking through the problem..." for i in range(steps)]
        return {"solution": f"Solution for: {task}", "steps": outline}
