"""Registered tool exposed through the discovery endpoint."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from mcp_console.db.base import Base


class Tool(Base):
    __tablename__ = "tools"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    type = Column(String(64), nullable=False)  # System, Web, Development
    endpoint = Column(String(255), nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    config = Column(Text, nullable=True)  # JSON: {"inputSchema": {...}, "examples": [...]}
