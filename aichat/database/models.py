"""
Database Models - SQLAlchemy ORM models.

Business data (chats, messages, votes, content items) lives in the business
PostgreSQL database. Embeddings live in the vector database, which may be a
different server, so they hang off their own declarative base.

user_id columns reference the hosted auth provider's users; there is no
local users table.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
VectorBase = declarative_base()

EMBEDDING_DIMENSIONS = 1536

# JSONB / text[] on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")
TagsType = JSON().with_variant(ARRAY(Text), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


def _iso(value: datetime) -> Any:
    return value.isoformat() if value else None


class Chat(Base):
    """A conversation thread owned by one user."""
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False)
    title = Column(Text, nullable=False)
    visibility = Column(String(20), nullable=False, default="private")
    model_id = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at"
    )

    __table_args__ = (
        Index("idx_chats_user_id", "user_id"),
        Index("idx_chats_created_at", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "visibility": self.visibility,
            "model_id": self.model_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Message(Base):
    """A single chat message from the user, the assistant or the system."""
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_uuid)
    chat_id = Column(String(36), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    chat = relationship("Chat", back_populates="messages")
    votes = relationship("Vote", back_populates="message", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_messages_chat_id", "chat_id"),
        Index("idx_messages_user_id", "user_id"),
        Index("idx_messages_created_at", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "user_id": self.user_id,
            "role": self.role,
            "content": self.content,
            "metadata": self.extra_data,
            "created_at": _iso(self.created_at),
        }


class Vote(Base):
    """A user's thumbs up/down on a message; at most one per user and message."""
    __tablename__ = "votes"

    id = Column(String(36), primary_key=True, default=new_uuid)
    message_id = Column(String(36), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False)
    type = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    message = relationship("Message", back_populates="votes")

    __table_args__ = (
        Index("idx_votes_message_id", "message_id"),
        Index("idx_votes_user_id", "user_id"),
        UniqueConstraint("message_id", "user_id", name="unique_vote_per_user"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message_id": self.message_id,
            "user_id": self.user_id,
            "type": self.type,
            "created_at": _iso(self.created_at),
        }


class ContentItem(Base):
    """Uploaded user content (documents, media descriptions, notes)."""
    __tablename__ = "content_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    content_type = Column(String(20), nullable=False)
    extra_data = Column("metadata", JSONType, nullable=True)
    tags = Column(TagsType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_content_items_user_id", "user_id"),
        Index("idx_content_items_content_type", "content_type"),
        Index("idx_content_items_created_at", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "content_type": self.content_type,
            "metadata": self.extra_data,
            "tags": list(self.tags) if self.tags else [],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Embedding(VectorBase):
    """
    A stored embedding for retrieval.

    Rows with a NULL user_id are public and visible to global searches.
    """
    __tablename__ = "embeddings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS))
    extra_data = Column("metadata", JSONType, nullable=True)
    user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_embeddings_user_id", "user_id"),
        Index(
            "idx_embeddings_embedding",
            "embedding",
            postgresql_using="ivfflat",
            postgresql_with={"lists": 100},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "metadata": self.extra_data,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }
