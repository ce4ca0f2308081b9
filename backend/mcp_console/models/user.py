"""Dashboard user (only the seeded admin; registration is disabled)."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from mcp_console.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(128), nullable=False, unique=True, index=True)
    password = Column(String(256), nullable=False)  # scrypt "hexdigest.salt"
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
