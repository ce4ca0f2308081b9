"""Tool discovery and execution endpoint for model-context clients (token-authenticated)."""
from mcp_console.mcp.handlers import McpServer
from mcp_console.mcp.protocol import McpError, McpRequest, McpResponse, ToolDefinition
from mcp_console.mcp.tools_registry import DEFAULT_TOOLS, ToolsRegistry

__all__ = ["DEFAULT_TOOLS", "McpError", "McpRequest", "McpResponse", "McpServer", "ToolDefinition", "ToolsRegistry"]
