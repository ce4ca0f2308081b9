"""
Centralized constants for the chat pipeline, realtime frames and the REST API.

Change wire names or defaults here instead of scattering literals across routes and handlers.
"""

# Message roles (chat_messages.role)
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"
ROLE_TOOL = "tool"
ROLES = (ROLE_USER, ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL)

# Provider kinds (ai_providers.provider)
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_OPENAI = "openai"

# Realtime endpoint and frame types (inbound and outbound)
WS_PATH = "/ws"
FRAME_SUBSCRIBE = "subscribe"
FRAME_UNSUBSCRIBE = "unsubscribe"
FRAME_CHAT_MESSAGE = "chat_message"
FRAME_PING = "ping"
FRAME_PONG = "pong"
FRAME_ERROR = "error"

MSG_EMPTY_CONTENT = "Message content cannot be empty"
MSG_PROCESS_FAILED = "Failed to process message: {cause}"

# Chat sessions
DEFAULT_CHAT_TITLE = "New Chat"

# Access tokens: comma-separated permissions (read, execute, manage)
DEFAULT_TOKEN_PERMISSIONS = "read,execute"

# Provider keys are never returned in full
API_KEY_MASK = "••••••••••••••••"

# Dashboard session cookie (JWT)
SESSION_COOKIE_NAME = "mcp_session"
