"""
SQLAlchemy models for Wakili Pro.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(Text)
    role = Column(String(20), default="CLIENT")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class LegalEvent(Base):
    __tablename__ = "legal_events"
    __table_args__ = (Index("ix_legal_events_event_date", "event_date"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(Text, nullable=False)
    event_date = Column(DateTime, nullable=False)
    source_url = Column(Text, nullable=False, unique=True)
    source = Column(Text)
    notified_immediate = Column(Boolean, default=False, nullable=False)
    notified_24h = Column(Boolean, default=False, nullable=False)
    notified_30min = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("legal_events.id", ondelete="SET NULL"))
    kind = Column(String(40), nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
