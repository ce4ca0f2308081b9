"""
In-process store: dicts keyed by id, counters for ids. State is lost on restart.
Returns copies so callers can never mutate stored rows.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from mcp_console.core.constants import DEFAULT_CHAT_TITLE
from mcp_console.services.storage.types import (
    AccessTokenRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    ProviderRecord,
    ToolRecord,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)

_TOKEN_FIELDS = {"name", "permissions", "expires_at", "last_used", "revoked"}
_PROVIDER_FIELDS = {"name", "provider", "api_key", "active"}
_TOOL_FIELDS = {"name", "description", "type", "endpoint", "active", "config"}
_SESSION_FIELDS = {"title", "provider_id", "model"}


def _apply(record: Any, updates: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Cannot update fields: {sorted(unknown)}")
    for key, value in updates.items():
        setattr(record, key, value)


class MemoryStore:
    def __init__(self) -> None:
        self._users: dict[int, UserRecord] = {}
        self._tokens: dict[int, AccessTokenRecord] = {}
        self._providers: dict[int, ProviderRecord] = {}
        self._tools: dict[int, ToolRecord] = {}
        self._sessions: dict[int, ChatSessionRecord] = {}
        self._messages: dict[int, ChatMessageRecord] = {}
        self._next_ids = {"user": 1, "token": 1, "provider": 1, "tool": 1, "session": 1, "message": 1}

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    # --- Users ---

    def get_user(self, user_id: int) -> UserRecord | None:
        row = self._users.get(user_id)
        return replace(row) if row else None

    def get_user_by_username(self, username: str) -> UserRecord | None:
        for row in self._users.values():
            if row.username == username:
                return replace(row)
        return None

    def create_user(self, username: str, password: str) -> UserRecord:
        row = UserRecord(id=self._next_id("user"), username=username, password=password, created_at=utcnow())
        self._users[row.id] = row
        return replace(row)

    # --- Access tokens ---

    def get_token(self, token: str) -> AccessTokenRecord | None:
        for row in self._tokens.values():
            if row.token == token:
                return replace(row)
        return None

    def get_token_by_id(self, token_id: int) -> AccessTokenRecord | None:
        row = self._tokens.get(token_id)
        return replace(row) if row else None

    def get_tokens_by_user(self, user_id: int) -> list[AccessTokenRecord]:
        return [replace(r) for r in self._tokens.values() if r.user_id == user_id]

    def create_token(
        self,
        user_id: int,
        name: str,
        token: str,
        permissions: str,
        expires_at: datetime | None = None,
    ) -> AccessTokenRecord:
        row = AccessTokenRecord(
            id=self._next_id("token"),
            user_id=user_id,
            name=name,
            token=token,
            permissions=permissions,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        self._tokens[row.id] = row
        return replace(row)

    def update_token(self, token_id: int, **updates: Any) -> AccessTokenRecord | None:
        row = self._tokens.get(token_id)
        if not row:
            return None
        _apply(row, updates, _TOKEN_FIELDS)
        return replace(row)

    def revoke_token(self, token_id: int) -> bool:
        return self.update_token(token_id, revoked=True) is not None

    # --- Providers ---

    def get_provider(self, provider_id: int) -> ProviderRecord | None:
        row = self._providers.get(provider_id)
        return replace(row) if row else None

    def get_provider_by_name(self, name: str) -> ProviderRecord | None:
        for row in self._providers.values():
            if row.name == name:
                return replace(row)
        return None

    def get_providers(self) -> list[ProviderRecord]:
        return [replace(r) for r in self._providers.values()]

    def create_provider(self, name: str, provider: str, api_key: str, active: bool = True) -> ProviderRecord:
        row = ProviderRecord(
            id=self._next_id("provider"),
            name=name,
            provider=provider,
            api_key=api_key,
            active=active,
            created_at=utcnow(),
        )
        self._providers[row.id] = row
        return replace(row)

    def update_provider(self, provider_id: int, **updates: Any) -> ProviderRecord | None:
        row = self._providers.get(provider_id)
        if not row:
            return None
        _apply(row, updates, _PROVIDER_FIELDS)
        row.updated_at = utcnow()
        return replace(row)

    def delete_provider(self, provider_id: int) -> bool:
        return self._providers.pop(provider_id, None) is not None

    # --- Tools ---

    def get_tool(self, tool_id: int) -> ToolRecord | None:
        row = self._tools.get(tool_id)
        return replace(row) if row else None

    def get_tool_by_name(self, name: str) -> ToolRecord | None:
        for row in self._tools.values():
            if row.name == name:
                return replace(row)
        return None

    def get_tool_by_endpoint(self, endpoint: str) -> ToolRecord | None:
        for row in self._tools.values():
            if row.endpoint == endpoint:
                return replace(row)
        return None

    def get_tools(self, active_only: bool = False) -> list[ToolRecord]:
        return [replace(r) for r in self._tools.values() if r.active or not active_only]

    def create_tool(
        self,
        name: str,
        description: str,
        type: str,
        endpoint: str,
        active: bool = True,
        config: str | None = None,
    ) -> ToolRecord:
        row = ToolRecord(
            id=self._next_id("tool"),
            name=name,
            description=description,
            type=type,
            endpoint=endpoint,
            active=active,
            created_at=utcnow(),
            config=config,
        )
        self._tools[row.id] = row
        return replace(row)

    def update_tool(self, tool_id: int, **updates: Any) -> ToolRecord | None:
        row = self._tools.get(tool_id)
        if not row:
            return None
        _apply(row, updates, _TOOL_FIELDS)
        return replace(row)

    def delete_tool(self, tool_id: int) -> bool:
        return self._tools.pop(tool_id, None) is not None

    # --- Chat sessions ---

    def get_chat_session(self, session_id: int) -> ChatSessionRecord | None:
        row = self._sessions.get(session_id)
        return replace(row) if row else None

    def get_chat_sessions_by_user(self, user_id: int) -> list[ChatSessionRecord]:
        rows = [r for r in self._sessions.values() if r.user_id == user_id]
        rows.sort(key=lambda r: r.updated_at or r.created_at, reverse=True)
        return [replace(r) for r in rows]

    def create_chat_session(self, user_id: int, provider_id: int, model: str, title: str | None = None) -> ChatSessionRecord:
        row = ChatSessionRecord(
            id=self._next_id("session"),
            user_id=user_id,
            title=title or DEFAULT_CHAT_TITLE,
            provider_id=provider_id,
            model=model,
            created_at=utcnow(),
        )
        self._sessions[row.id] = row
        return replace(row)

    def update_chat_session(self, session_id: int, **updates: Any) -> ChatSessionRecord | None:
        row = self._sessions.get(session_id)
        if not row:
            return None
        _apply(row, updates, _SESSION_FIELDS)
        row.updated_at = utcnow()
        return replace(row)

    def delete_chat_session(self, session_id: int) -> bool:
        if self._sessions.pop(session_id, None) is None:
            return False
        for message_id in [m.id for m in self._messages.values() if m.session_id == session_id]:
            del self._messages[message_id]
        return True

    # --- Chat messages ---

    def get_chat_messages(self, session_id: int) -> list[ChatMessageRecord]:
        rows = [m for m in self._messages.values() if m.session_id == session_id]
        rows.sort(key=lambda m: (m.timestamp, m.id))
        return [replace(m) for m in rows]

    def create_chat_message(
        self,
        session_id: int,
        role: str,
        content: str,
        tool_name: str | None = None,
    ) -> ChatMessageRecord:
        now = utcnow()
        row = ChatMessageRecord(
            id=self._next_id("message"),
            session_id=session_id,
            role=role,
            content=content,
            tool_name=tool_name,
            timestamp=now,
        )
        self._messages[row.id] = row
        session = self._sessions.get(session_id)
        if session:
            session.updated_at = now
        else:
            logger.warning("Message %s stored for unknown chat session %s", row.id, session_id)
        return replace(row)
