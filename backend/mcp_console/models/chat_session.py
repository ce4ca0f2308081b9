"""
Chat session: one conversation tied to one provider and model.
"""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from mcp_console.db.base import Base


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False, server_default="New Chat")
    provider_id = Column(Integer, nullable=False)
    model = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)  # touched on every appended message
