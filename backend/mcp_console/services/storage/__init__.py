"""
Stores: in-memory maps or a SQLAlchemy database behind the same Store protocol.
The chat pipeline and routes only depend on Store; STORAGE_BACKEND picks the implementation.
"""
import logging

from mcp_console.config import STORAGE_DATABASE, STORAGE_MEMORY, Settings
from mcp_console.services.storage.base import Store
from mcp_console.services.storage.memory import MemoryStore
from mcp_console.services.storage.sql import SqlStore
from mcp_console.services.storage.types import (
    AccessTokenRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    ProviderRecord,
    ToolRecord,
    UserRecord,
    iso,
    utcnow,
)

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> Store:
    """Build the configured store. Database tables are created if missing."""
    backend = settings.storage_backend.lower()
    if backend == STORAGE_MEMORY:
        logger.info("Using in-memory store (data is lost on restart)")
        return MemoryStore()
    if backend == STORAGE_DATABASE:
        store = SqlStore(settings.database_url)
        store.create_tables()
        return store
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend!r} (use {STORAGE_MEMORY!r} or {STORAGE_DATABASE!r})")


__all__ = [
    "AccessTokenRecord",
    "ChatMessageRecord",
    "ChatSessionRecord",
    "MemoryStore",
    "ProviderRecord",
    "SqlStore",
    "Store",
    "ToolRecord",
    "UserRecord",
    "create_store",
    "iso",
    "utcnow",
]
