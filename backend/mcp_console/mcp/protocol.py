"""Request / response shapes of the tool endpoint."""
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

SERVER_NAME = "MCP Server"
SERVER_DESCRIPTION = "Model Context Protocol server with token authentication and web interface"
SERVER_VERSION = "1.0.0"


class McpRequest(BaseModel):
    """Envelope accepted by POST /api/mcp; path routes build one from the HTTP request."""

    method: str = "GET"
    path: str = "/"
    data: Any = None
    headers: dict[str, str] | None = None


@dataclass
class McpResponse:
    status: int
    data: Any = None
    status_text: str = "OK"

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "statusText": self.status_text, "data": self.data}


class McpError(Exception):
    """Error answer of the tool endpoint: machine code, message, HTTP status."""

    def __init__(self, error: str, message: str, status: int = 500):
        super().__init__(message)
        self.error = error
        self.message = message
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "status": self.status}


@dataclass
class ToolDefinition:
    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)
    examples: list[dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "description": self.description, "inputSchema": self.input_schema}
        if self.examples is not None:
            out["examples"] = self.examples
        return out


def server_info() -> dict[str, Any]:
    return {
        "name": SERVER_NAME,
        "description": SERVER_DESCRIPTION,
        "version": SERVER_VERSION,
        "tools": {"enabled": True, "description": "Provides access to various tools for AI models"},
        "resources": {"enabled": True, "description": "Allows access to structured resources"},
        "prompts": {"enabled": False, "description": "Prompt templates not currently supported"},
        "sampling": {"enabled": False, "description": "Sampling API not currently supported"},
    }
