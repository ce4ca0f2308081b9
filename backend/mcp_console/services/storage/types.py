"""Records returned by every store. Same shape regardless of memory or database backend."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from mcp_console.core.constants import API_KEY_MASK


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(value: datetime | None) -> str | None:
    """ISO-8601 for the wire. Naive datetimes (sqlite) are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass
class UserRecord:
    id: int
    username: str
    password: str
    created_at: datetime
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Public shape: never includes the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class AccessTokenRecord:
    id: int
    user_id: int
    name: str
    token: str
    permissions: str
    created_at: datetime
    expires_at: datetime | None = None
    last_used: datetime | None = None
    revoked: bool = False

    def masked_token(self) -> str:
        return f"{self.token[:8]}...{self.token[-4:]}"

    def to_dict(self, *, reveal: bool = False) -> dict[str, Any]:
        """Token value is masked unless reveal=True (only right after creation)."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "token": self.token if reveal else self.masked_token(),
            "permissions": self.permissions,
            "createdAt": iso(self.created_at),
            "expiresAt": iso(self.expires_at),
            "lastUsed": iso(self.last_used),
            "revoked": self.revoked,
        }


@dataclass
class ProviderRecord:
    id: int
    name: str
    provider: str  # kind: anthropic, openai
    api_key: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def is_usable(self) -> bool:
        return self.active and bool(self.api_key)

    def to_dict(self) -> dict[str, Any]:
        """API key is masked to its last 4 characters."""
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "apiKey": API_KEY_MASK + self.api_key[-4:],
            "hasKey": bool(self.api_key),
            "active": self.active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class ToolRecord:
    id: int
    name: str
    description: str
    type: str
    endpoint: str
    active: bool
    created_at: datetime
    config: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "endpoint": self.endpoint,
            "active": self.active,
            "createdAt": iso(self.created_at),
            "config": self.config,
        }


@dataclass
class ChatSessionRecord:
    id: int
    user_id: int
    title: str
    provider_id: int
    model: str
    created_at: datetime
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "providerId": self.provider_id,
            "model": self.model,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class ChatMessageRecord:
    id: int
    session_id: int
    role: str
    content: str
    timestamp: datetime
    tool_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used in REST responses and chat_message frames."""
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "role": self.role,
            "content": self.content,
            "toolName": self.tool_name,
            "timestamp": iso(self.timestamp),
        }
