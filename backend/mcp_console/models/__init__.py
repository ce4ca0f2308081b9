from mcp_console.models.access_token import AccessToken
from mcp_console.models.ai_provider import AIProvider
from mcp_console.models.chat_message import ChatMessage
from mcp_console.models.chat_session import ChatSession
from mcp_console.models.tool import Tool
from mcp_console.models.user import User

__all__ = [
    "AccessToken",
    "AIProvider",
    "ChatMessage",
    "ChatSession",
    "Tool",
    "User",
]
