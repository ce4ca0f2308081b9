"""
Database store (SQLAlchemy). One short-lived Session per call; rows are converted to records
before the session closes so nothing lazy-loads after commit.
"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mcp_console.core.constants import DEFAULT_CHAT_TITLE
from mcp_console.db.base import Base
from mcp_console.db.session import build_engine, build_session_factory
from mcp_console.models import AccessToken, AIProvider, ChatMessage, ChatSession, Tool, User
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


def _user(r: User) -> UserRecord:
    return UserRecord(id=r.id, username=r.username, password=r.password, created_at=r.created_at, updated_at=r.updated_at)


def _token(r: AccessToken) -> AccessTokenRecord:
    return AccessTokenRecord(
        id=r.id,
        user_id=r.user_id,
        name=r.name,
        token=r.token,
        permissions=r.permissions,
        created_at=r.created_at,
        expires_at=r.expires_at,
        last_used=r.last_used,
        revoked=bool(r.revoked),
    )


def _provider(r: AIProvider) -> ProviderRecord:
    return ProviderRecord(
        id=r.id,
        name=r.name,
        provider=r.provider,
        api_key=r.api_key,
        active=bool(r.active),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _tool(r: Tool) -> ToolRecord:
    return ToolRecord(
        id=r.id,
        name=r.name,
        description=r.description,
        type=r.type,
        endpoint=r.endpoint,
        active=bool(r.active),
        created_at=r.created_at,
        config=r.config,
    )


def _session(r: ChatSession) -> ChatSessionRecord:
    return ChatSessionRecord(
        id=r.id,
        user_id=r.user_id,
        title=r.title,
        provider_id=r.provider_id,
        model=r.model,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _message(r: ChatMessage) -> ChatMessageRecord:
    return ChatMessageRecord(
        id=r.id,
        session_id=r.session_id,
        role=r.role,
        content=r.content,
        tool_name=r.tool_name,
        timestamp=r.timestamp,
    )


def _apply(row: Any, updates: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Cannot update fields: {sorted(unknown)}")
    for key, value in updates.items():
        setattr(row, key, value)


class SqlStore:
    def __init__(self, database_url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("SqlStore needs a database_url or an engine")
            engine = build_engine(database_url)
        self.engine = engine
        self._session_factory: sessionmaker = build_session_factory(engine)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured (%s)", self.engine.url.render_as_string(hide_password=True))

    def session(self) -> Session:
        """New ORM session on this store's engine (caller closes it)."""
        return self._session_factory()

    def _db(self) -> Session:
        return self.session()

    def _add(self, row: Any) -> Any:
        with self._db() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    # --- Users ---

    def get_user(self, user_id: int) -> UserRecord | None:
        with self._db() as db:
            row = db.get(User, user_id)
            return _user(row) if row else None

    def get_user_by_username(self, username: str) -> UserRecord | None:
        with self._db() as db:
            row = db.query(User).filter(User.username == username).first()
            return _user(row) if row else None

    def create_user(self, username: str, password: str) -> UserRecord:
        return _user(self._add(User(username=username, password=password, created_at=utcnow())))

    # --- Access tokens ---

    def get_token(self, token: str) -> AccessTokenRecord | None:
        with self._db() as db:
            row = db.query(AccessToken).filter(AccessToken.token == token).first()
            return _token(row) if row else None

    def get_token_by_id(self, token_id: int) -> AccessTokenRecord | None:
        with self._db() as db:
            row = db.get(AccessToken, token_id)
            return _token(row) if row else None

    def get_tokens_by_user(self, user_id: int) -> list[AccessTokenRecord]:
        with self._db() as db:
            rows = db.query(AccessToken).filter(AccessToken.user_id == user_id).order_by(AccessToken.id).all()
            return [_token(r) for r in rows]

    def create_token(
        self,
        user_id: int,
        name: str,
        token: str,
        permissions: str,
        expires_at: datetime | None = None,
    ) -> AccessTokenRecord:
        row = AccessToken(
            user_id=user_id,
            name=name,
            token=token,
            permissions=permissions,
            expires_at=expires_at,
            revoked=False,
            created_at=utcnow(),
        )
        return _token(self._add(row))

    def update_token(self, token_id: int, **updates: Any) -> AccessTokenRecord | None:
        with self._db() as db:
            row = db.get(AccessToken, token_id)
            if not row:
                return None
            _apply(row, updates, _TOKEN_FIELDS)
            db.commit()
            return _token(row)

    def revoke_token(self, token_id: int) -> bool:
        return self.update_token(token_id, revoked=True) is not None

    # --- Providers ---

    def get_provider(self, provider_id: int) -> ProviderRecord | None:
        with self._db() as db:
            row = db.get(AIProvider, provider_id)
            return _provider(row) if row else None

    def get_provider_by_name(self, name: str) -> ProviderRecord | None:
        with self._db() as db:
            row = db.query(AIProvider).filter(AIProvider.name == name).first()
            return _provider(row) if row else None

    def get_providers(self) -> list[ProviderRecord]:
        with self._db() as db:
            return [_provider(r) for r in db.query(AIProvider).order_by(AIProvider.id).all()]

    def create_provider(self, name: str, provider: str, api_key: str, active: bool = True) -> ProviderRecord:
        row = AIProvider(name=name, provider=provider, api_key=api_key, active=active, created_at=utcnow())
        return _provider(self._add(row))

    def update_provider(self, provider_id: int, **updates: Any) -> ProviderRecord | None:
        with self._db() as db:
            row = db.get(AIProvider, provider_id)
            if not row:
                return None
            _apply(row, updates, _PROVIDER_FIELDS)
            row.updated_at = utcnow()
            db.commit()
            return _provider(row)

    def delete_provider(self, provider_id: int) -> bool:
        with self._db() as db:
            deleted = db.query(AIProvider).filter(AIProvider.id == provider_id).delete()
            db.commit()
            return deleted > 0

    # --- Tools ---

    def get_tool(self, tool_id: int) -> ToolRecord | None:
        with self._db() as db:
            row = db.get(Tool, tool_id)
            return _tool(row) if row else None

    def get_tool_by_name(self, name: str) -> ToolRecord | None:
        with self._db() as db:
            row = db.query(Tool).filter(Tool.name == name).first()
            return _tool(row) if row else None

    def get_tool_by_endpoint(self, endpoint: str) -> ToolRecord | None:
        with self._db() as db:
            row = db.query(Tool).filter(Tool.endpoint == endpoint).first()
            return _tool(row) if row else None

    def get_tools(self, active_only: bool = False) -> list[ToolRecord]:
        with self._db() as db:
            q = db.query(Tool)
            if active_only:
                q = q.filter(Tool.active.is_(True))
            return [_tool(r) for r in q.order_by(Tool.id).all()]

    def create_tool(
        self,
        name: str,
        description: str,
        type: str,
        endpoint: str,
        active: bool = True,
        config: str | None = None,
    ) -> ToolRecord:
        row = Tool(
            name=name,
            description=description,
            type=type,
            endpoint=endpoint,
            active=active,
            config=config,
            created_at=utcnow(),
        )
        return _tool(self._add(row))

    def update_tool(self, tool_id: int, **updates: Any) -> ToolRecord | None:
        with self._db() as db:
            row = db.get(Tool, tool_id)
            if not row:
                return None
            _apply(row, updates, _TOOL_FIELDS)
            db.commit()
            return _tool(row)

    def delete_tool(self, tool_id: int) -> bool:
        with self._db() as db:
            deleted = db.query(Tool).filter(Tool.id == tool_id).delete()
            db.commit()
            return deleted > 0

    # --- Chat sessions ---

    def get_chat_session(self, session_id: int) -> ChatSessionRecord | None:
        with self._db() as db:
            row = db.get(ChatSession, session_id)
            return _session(row) if row else None

    def get_chat_sessions_by_user(self, user_id: int) -> list[ChatSessionRecord]:
        with self._db() as db:
            rows = (
                db.query(ChatSession)
                .filter(ChatSession.user_id == user_id)
                .order_by(ChatSession.updated_at.desc().nulls_last(), ChatSession.id.desc())
                .all()
            )
            return [_session(r) for r in rows]

    def create_chat_session(self, user_id: int, provider_id: int, model: str, title: str | None = None) -> ChatSessionRecord:
        row = ChatSession(
            user_id=user_id,
            title=title or DEFAULT_CHAT_TITLE,
            provider_id=provider_id,
            model=model,
            created_at=utcnow(),
        )
        return _session(self._add(row))

    def update_chat_session(self, session_id: int, **updates: Any) -> ChatSessionRecord | None:
        with self._db() as db:
            row = db.get(ChatSession, session_id)
            if not row:
                return None
            _apply(row, updates, _SESSION_FIELDS)
            row.updated_at = utcnow()
            db.commit()
            return _session(row)

    def delete_chat_session(self, session_id: int) -> bool:
        with self._db() as db:
            # sqlite does not enforce the FK cascade unless PRAGMA foreign_keys is on
            db.query(ChatMessage).filter(ChatMessage.session_id == session_id).delete()
            deleted = db.query(ChatSession).filter(ChatSession.id == session_id).delete()
            db.commit()
            return deleted > 0

    # --- Chat messages ---

    def get_chat_messages(self, session_id: int) -> list[ChatMessageRecord]:
        with self._db() as db:
            rows = (
                db.query(ChatMessage)
                .filter(ChatMessage.session_id == session_id)
                .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
                .all()
            )
            return [_message(r) for r in rows]

    def create_chat_message(
        self,
        session_id: int,
        role: str,
        content: str,
        tool_name: str | None = None,
    ) -> ChatMessageRecord:
        now = utcnow()
        with self._db() as db:
            row = ChatMessage(session_id=session_id, role=role, content=content, tool_name=tool_name, timestamp=now)
            db.add(row)
            session = db.get(ChatSession, session_id)
            if session:
                session.updated_at = now
            db.commit()
            db.refresh(row)
            return _message(row)
