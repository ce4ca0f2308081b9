"""
Tool definitions advertised by the tool endpoint.

The four built-in tools are always listed. Tools saved through /api/tools are added when active;
their config column is JSON with optional "inputSchema" and "examples".
"""
import json
import logging

from mcp_console.mcp.protocol import ToolDefinition
from mcp_console.services.storage import ToolRecord

logger = logging.getLogger(__name__)

TOOL_FILESYSTEM = "filesystem"
TOOL_MEMORY = "memory"
TOOL_FETCH = "fetch"
TOOL_SEQUENTIAL_THINKING = "sequential_thinking"

DEFAULT_TOOLS: dict[str, ToolDefinition] = {
    TOOL_FILESYSTEM: ToolDefinition(
        name=TOOL_FILESYSTEM,
        description="Access local files with permissions",
        input_schema={
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["list", "read", "exists", "info"],
                    "description": "The operation to perform",
                },
                "path": {"type": "string", "description": "Path to file or directory"},
            },
            "required": ["operation", "path"],
        },
        examples=[
            {
                "input": {"operation": "list", "path": "/data"},
                "output": {"files": ["file1.txt", "file2.md", "subdirectory/"]},
            },
            {
                "input": {"operation": "read", "path": "/data/file1.txt"},
                "output": {"content": "Content of the file...", "contentType": "text/plain"},
            },
        ],
    ),
    TOOL_MEMORY: ToolDefinition(
        name=TOOL_MEMORY,
        description="Knowledge graph-based persistent memory system",
        input_schema={
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["store", "retrieve", "search", "delete"],
                    "description": "The operation to perform",
                },
                "key": {"type": "string", "description": "Key for storing or retrieving"},
                "value": {"type": "string", "description": "Value to store (for store operation)"},
                "query": {"type": "string", "description": "Search query (for search operation)"},
            },
            "required": ["operation"],
        },
        examples=[
            {
                "input": {"operation": "store", "key": "user_preferences", "value": "Prefers dark mode."},
                "output": {"success": True, "key": "user_preferences"},
            },
            {
                "input": {"operation": "retrieve", "key": "user_preferences"},
                "output": {"value": "Prefers dark mode."},
            },
        ],
    ),
    TOOL_FETCH: ToolDefinition(
        name=TOOL_FETCH,
        description="Web content fetching and processing",
        input_schema={
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL to fetch content from"},
                "method": {
                    "type": "string",
                    "enum": ["GET", "POST", "PUT", "DELETE"],
                    "default": "GET",
                    "description": "HTTP method",
                },
                "headers": {"type": "object", "description": "HTTP headers"},
                "body": {"type": "string", "description": "Request body for POST/PUT methods"},
                "extract": {
                    "type": "string",
                    "enum": ["text", "html", "markdown", "json"],
                    "default": "text",
                    "description": "Content extraction format",
                },
            },
            "required": ["url"],
        },
        examples=[
            {
                "input": {"url": "https://example.com", "extract": "text"},
                "output": {"content": "Example Domain\nThis domain is...", "status": 200},
            },
        ],
    ),
    TOOL_SEQUENTIAL_THINKING: ToolDefinition(
        name=TOOL_SEQUENTIAL_THINKING,
        description="Dynamic problem-solving through thought sequences",
        input_schema={
            "type": "object",
            "properties": {
                "task": {"type": "string", "description": "Problem or task to solve"},
                "context": {"type": "string", "description": "Relevant context for the problem"},
                "steps": {"type": "number", "description": "Maximum number of thinking steps", "default": 5},
            },
            "required": ["task"],
        },
        examples=[
            {
                "input": {"task": "Solve: If 3x + 2 = 11, what is x?", "steps": 3},
                "output": {
                    "solution": "x = 3",
                    "steps": [
                        "Starting with 3x + 2 = 11",
                        "Subtract 2 from both sides: 3x = 9",
                        "Divide both sides by 3: x = 3",
                    ],
                },
            },
        ],
    ),
}


class ToolsRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = dict(DEFAULT_TOOLS)

    def register(self, definition: ToolDefinition) -> None:
        self._tools[definition.name] = definition

    def deregister(self, name: str) -> bool:
        """Remove a saved tool. Built-in tools stay listed."""
        if name in DEFAULT_TOOLS:
            self._tools[name] = DEFAULT_TOOLS[name]
            return False
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def register_from_record(self, tool: ToolRecord) -> bool:
        """Register a saved tool. Returns False (and logs) when its config is not valid JSON."""
        builtin = DEFAULT_TOOLS.get(tool.name)
        input_schema: dict = builtin.input_schema if builtin else {}
        examples = builtin.examples if builtin else None
        if tool.config:
            try:
                config = json.loads(tool.config)
            except json.JSONDecodeError as e:
                logger.warning("Tool %s has invalid config JSON, not registered: %s", tool.name, e)
                return False
            if isinstance(config, dict):
                input_schema = config.get("inputSchema") or input_schema
                examples = config.get("examples", examples)
        self.register(ToolDefinition(name=tool.name, description=tool.description, input_schema=input_schema, examples=examples))
        return True

    def sync(self, tool: ToolRecord, previous_name: str | None = None) -> None:
        """Bring the registry in line with a saved tool after create/update."""
        if previous_name and previous_name != tool.name:
            self.deregister(previous_name)
        if tool.active:
            self.register_from_record(tool)
        else:
            self.deregister(tool.name)
