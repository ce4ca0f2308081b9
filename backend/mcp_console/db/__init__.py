from mcp_console.db.base import Base
from mcp_console.db.session import build_engine, build_session_factory
from mcp_console.db.tables import ALL_TABLE_NAMES, CHAT_TABLE_NAMES

__all__ = ["Base", "build_engine", "build_session_factory", "ALL_TABLE_NAMES", "CHAT_TABLE_NAMES"]
