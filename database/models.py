"""
SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class NotionToken(Base):
    """One bearer credential per user; a reconnect overwrites the row."""

    __tablename__ = "notion_tokens"

    user_id = Column(Text, primary_key=True)
    access_token = Column(Text, nullable=False)
    workspace_id = Column(String(64))
    workspace_name = Column(String(256))
    bot_id = Column(String(64))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
