"""Protocol for stores. Memory and database backends share the same contract; only persistence differs."""
from datetime import datetime
from typing import Any, Protocol

from mcp_console.services.storage.types import (
    AccessTokenRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    ProviderRecord,
    ToolRecord,
    UserRecord,
)


class Store(Protocol):
    """
    Durable state for users, tokens, providers, tools and conversations.
    get_* return None when the row is missing; update_* return the updated record or None;
    delete_* / revoke_* return True when something was removed or changed.
    """

    # Users
    def get_user(self, user_id: int) -> UserRecord | None: ...

    def get_user_by_username(self, username: str) -> UserRecord | None: ...

    def create_user(self, username: str, password: str) -> UserRecord: ...

    # Access tokens
    def get_token(self, token: str) -> AccessTokenRecord | None: ...

    def get_token_by_id(self, token_id: int) -> AccessTokenRecord | None: ...

    def get_tokens_by_user(self, user_id: int) -> list[AccessTokenRecord]: ...

    def create_token(
        self,
        user_id: int,
        name: str,
        token: str,
        permissions: str,
        expires_at: datetime | None = None,
    ) -> AccessTokenRecord: ...

    def update_token(self, token_id: int, **updates: Any) -> AccessTokenRecord | None: ...

    def revoke_token(self, token_id: int) -> bool: ...

    # Providers
    def get_provider(self, provider_id: int) -> ProviderRecord | None: ...

    def get_provider_by_name(self, name: str) -> ProviderRecord | None: ...

    def get_providers(self) -> list[ProviderRecord]: ...

    def create_provider(self, name: str, provider: str, api_key: str, active: bool = True) -> ProviderRecord: ...

    def update_provider(self, provider_id: int, **updates: Any) -> ProviderRecord | None: ...

    def delete_provider(self, provider_id: int) -> bool: ...

    # Tools
    def get_tool(self, tool_id: int) -> ToolRecord | None: ...

    def get_tool_by_name(self, name: str) -> ToolRecord | None: ...

    def get_tool_by_endpoint(self, endpoint: str) -> ToolRecord | None: ...

    def get_tools(self, active_only: bool = False) -> list[ToolRecord]: ...

    def create_tool(
        self,
        name: str,
        description: str,
        type: str,
        endpoint: str,
        active: bool = True,
        config: str | None = None,
    ) -> ToolRecord: ...

    def update_tool(self, tool_id: int, **updates: Any) -> ToolRecord | None: ...

    def delete_tool(self, tool_id: int) -> bool: ...

    # Chat sessions
    def get_chat_session(self, session_id: int) -> ChatSessionRecord | None: ...

    def get_chat_sessions_by_user(self, user_id: int) -> list[ChatSessionRecord]: ...

    def create_chat_session(self, user_id: int, provider_id: int, model: str, title: str | None = None) -> ChatSessionRecord: ...

    def update_chat_session(self, session_id: int, **updates: Any) -> ChatSessionRecord | None: ...

    def delete_chat_session(self, session_id: int) -> bool: ...

    # Chat messages
    def get_chat_messages(self, session_id: int) -> list[ChatMessageRecord]:
        """All messages of the session ordered by (timestamp, id)."""
        ...

    def create_chat_message(
        self,
        session_id: int,
        role: str,
        content: str,
        tool_name: str | None = None,
    ) -> ChatMessageRecord:
        """Append a message (id and timestamp assigned here) and touch the session's updated_at."""
        ...
