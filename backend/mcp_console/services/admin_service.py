"""
Admin: clear chat history from the database store. Users, tokens, providers and tools are kept.
Tables: chat_messages, chat_sessions (see mcp_console.db.tables).
"""
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from mcp_console.db.tables import ALL_TABLE_NAMES, CHAT_TABLE_NAMES

logger = logging.getLogger(__name__)


def clear_chat_history(db: Session) -> dict[str, int]:
    """Delete every chat message and session. Returns table -> deleted row count."""
    deleted: dict[str, int] = {}
    for table in CHAT_TABLE_NAMES:
        deleted[table] = db.execute(text(f"DELETE FROM {table}")).rowcount
    db.commit()
    logger.info("Chat history cleared: %s", deleted)
    return deleted


def table_counts(db: Session) -> dict[str, int]:
    """Row count per table, for sanity checks."""
    return {table: db.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one() for table in ALL_TABLE_NAMES}
