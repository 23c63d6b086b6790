import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    """A login session. Rows are written once and never updated."""

    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    access_token_hash = Column(String, unique=True, index=True, nullable=False)
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="sessions")


class ArticleLog(Base):
    """Append-only record of a successful analysis."""

    __tablename__ = "article_logs"

    id = Column(String, primary_key=True, default=_new_id)
    summary = Column(JSON, nullable=False, default=list)
    nationalities = Column(JSON, nullable=False, default=list)
    organizations = Column(JSON, nullable=False, default=list)
    people = Column(JSON, nullable=False, default=list)
    language = Column(JSON, nullable=False, default=list)
    original_text = Column(Text, nullable=True)
    uploaded_file = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
