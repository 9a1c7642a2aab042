"""
Relational queries for chats, messages, votes and content items.

Every lookup that takes a user_id scopes by owner. "Not found" is reported as
None / False / 0 and never raised; services decide what that means for the
caller.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aichat.core.exceptions import DatabaseError
from aichat.core.logging_config import get_logger
from aichat.database.connection import DatabaseConnection, get_database
from aichat.database.models import Chat, ContentItem, Message, Vote, utcnow

logger = get_logger(__name__)

CONTENT_UPDATABLE_FIELDS = {
    "title": "title",
    "content": "content",
    "content_type": "content_type",
    "metadata": "extra_data",
    "tags": "tags",
}


class Queries:
    """
    Parameterized CRUD over the business database.

    Example:
        >>> queries = Queries(DatabaseConnection("sqlite://"))
        >>> chat = queries.create_chat("user-1", "New Chat", "claude-3-5-sonnet-20241022")
        >>> queries.get_chat_by_id(chat.id, "user-1").title
        'New Chat'
    """

    def __init__(self, db: Optional[DatabaseConnection] = None):
        self.db = db or get_database()

    # ==================== CHATS ====================

    def get_user_chats(self, user_id: str) -> List[Chat]:
        with self.db.get_session() as session:
            return (
                session.query(Chat)
                .filter(Chat.user_id == user_id)
                .order_by(Chat.updated_at.desc())
                .all()
            )

    def get_chat_by_id(self, chat_id: str, user_id: Optional[str] = None) -> Optional[Chat]:
        with self.db.get_session() as session:
            return self._find_chat(session, chat_id, user_id)

    def create_chat(
        self,
        user_id: str,
        title: str,
        model_id: str,
        visibility: str = "private",
        chat_id: Optional[str] = None
    ) -> Chat:
        with self.db.get_session() as session:
            chat = Chat(
                user_id=user_id,
                title=title,
                model_id=model_id,
                visibility=visibility,
            )
            if chat_id:
                chat.id = chat_id
            session.add(chat)
            session.flush()
            logger.debug(f"Created chat {chat.id} for user {user_id}")
            return chat

    def update_chat_title(self, chat_id: str, user_id: str, title: str) -> Optional[Chat]:
        return self._update_chat(chat_id, user_id, title=title)

    def update_chat_visibility(
        self,
        chat_id: str,
        user_id: str,
        visibility: str
    ) -> Optional[Chat]:
        return self._update_chat(chat_id, user_id, visibility=visibility)

    def delete_chat(self, chat_id: str, user_id: str) -> bool:
        """Delete a chat with its messages and their votes."""
        with self.db.get_session() as session:
            chat = self._find_chat(session, chat_id, user_id)
            if chat is None:
                return False
            session.delete(chat)
            logger.info(f"Deleted chat {chat_id}")
            return True

    # ==================== MESSAGES ====================

    def get_chat_messages(self, chat_id: str, limit: Optional[int] = None) -> List[Message]:
        with self.db.get_session() as session:
            query = (
                session.query(Message)
                .filter(Message.chat_id == chat_id)
                .order_by(Message.created_at.asc())
            )
            if limit:
                query = query.limit(limit)
            return query.all()

    def create_message(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None
    ) -> Message:
        """Insert a message and bump its chat's updated_at."""
        with self.db.get_session() as session:
            now = utcnow()
            message = Message(
                chat_id=chat_id,
                user_id=user_id,
                role=role,
                content=content,
                extra_data=metadata or None,
                created_at=created_at or now,
            )
            session.add(message)
            session.query(Chat).filter(Chat.id == chat_id).update(
                {Chat.updated_at: now}, synchronize_session=False
            )
            session.flush()
            return message

    def get_message_by_id(
        self,
        message_id: str,
        user_id: Optional[str] = None
    ) -> Optional[Message]:
        with self.db.get_session() as session:
            query = session.query(Message).filter(Message.id == message_id)
            if user_id:
                query = query.filter(Message.user_id == user_id)
            return query.first()

    def delete_trailing_messages(
        self,
        chat_id: str,
        from_message_id: str,
        user_id: str
    ) -> int:
        """
        Delete every message of a chat created after the anchor message.

        The anchor itself is kept. Returns 0 when the anchor does not belong
        to that chat and user.
        """
        with self.db.get_session() as session:
            anchor = (
                session.query(Message)
                .filter(
                    Message.id == from_message_id,
                    Message.chat_id == chat_id,
                    Message.user_id == user_id,
                )
                .first()
            )
            if anchor is None:
                return 0

            trailing = (
                session.query(Message)
                .filter(
                    Message.chat_id == chat_id,
                    Message.created_at > anchor.created_at,
                )
                .all()
            )
            # ORM deletes so votes cascade on every backend
            for message in trailing:
                session.delete(message)

            logger.info(f"Deleted {len(trailing)} trailing messages in chat {chat_id}")
            return len(trailing)

    def count_user_messages_since(self, user_id: str, since: datetime) -> int:
        """Count messages the user sent (role 'user') at or after `since`."""
        with self.db.get_session() as session:
            return (
                session.query(func.count(Message.id))
                .filter(
                    Message.user_id == user_id,
                    Message.role == "user",
                    Message.created_at >= since,
                )
                .scalar()
            ) or 0

    # ==================== VOTES ====================

    def create_vote(self, message_id: str, user_id: str, vote_type: str) -> Vote:
        with self.db.get_session() as session:
            vote = Vote(message_id=message_id, user_id=user_id, type=vote_type)
            session.add(vote)
            session.flush()
            return vote

    def get_message_votes(self, message_id: str) -> List[Vote]:
        with self.db.get_session() as session:
            return session.query(Vote).filter(Vote.message_id == message_id).all()

    def get_user_vote_for_message(self, message_id: str, user_id: str) -> Optional[Vote]:
        with self.db.get_session() as session:
            return self._find_vote(session, message_id, user_id)

    def update_vote(self, message_id: str, user_id: str, vote_type: str) -> Optional[Vote]:
        with self.db.get_session() as session:
            vote = self._find_vote(session, message_id, user_id)
            if vote is None:
                return None
            vote.type = vote_type
            return vote

    def delete_vote(self, message_id: str, user_id: str) -> bool:
        with self.db.get_session() as session:
            deleted = (
                session.query(Vote)
                .filter(Vote.message_id == message_id, Vote.user_id == user_id)
                .delete(synchronize_session=False)
            )
            return deleted > 0

    def upsert_vote(self, message_id: str, user_id: str, vote_type: str) -> Vote:
        """Create the user's vote on a message, or change its type."""
        existing = self.update_vote(message_id, user_id, vote_type)
        if existing is not None:
            return existing
        try:
            return self.create_vote(message_id, user_id, vote_type)
        except DatabaseError as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise
            # Lost a race with a concurrent vote from the same user
            logger.debug(f"Concurrent vote on {message_id}, updating instead")
            return self.update_vote(message_id, user_id, vote_type)

    def get_vote_summary(self, message_id: str) -> Dict[str, int]:
        with self.db.get_session() as session:
            rows = (
                session.query(Vote.type, func.count(Vote.id))
                .filter(Vote.message_id == message_id)
                .group_by(Vote.type)
                .all()
            )
        summary = {"up": 0, "down": 0}
        summary.update({vote_type: count for vote_type, count in rows})
        return summary

    # ==================== CONTENT ====================

    def get_user_content_items(
        self,
        user_id: str,
        content_type: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ContentItem]:
        with self.db.get_session() as session:
            query = session.query(ContentItem).filter(ContentItem.user_id == user_id)
            if content_type:
                query = query.filter(ContentItem.content_type == content_type)
            query = query.order_by(ContentItem.created_at.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

    def get_content_item_by_id(
        self,
        content_id: str,
        user_id: Optional[str] = None
    ) -> Optional[ContentItem]:
        with self.db.get_session() as session:
            return self._find_content_item(session, content_id, user_id)

    def create_content_item(
        self,
        user_id: str,
        title: str,
        content: str,
        content_type: str,
        metadata: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None
    ) -> ContentItem:
        with self.db.get_session() as session:
            item = ContentItem(
                user_id=user_id,
                title=title,
                content=content,
                content_type=content_type,
                extra_data=metadata or None,
                tags=tags or None,
            )
            session.add(item)
            session.flush()
            return item

    def update_content_item(
        self,
        content_id: str,
        user_id: str,
        **updates: Any
    ) -> Optional[ContentItem]:
        """
        Update the mutable fields of a content item.

        Raises:
            ValueError: If an unknown or immutable field is passed
        """
        unknown = set(updates) - set(CONTENT_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update content fields: {', '.join(sorted(unknown))}")

        with self.db.get_session() as session:
            item = self._find_content_item(session, content_id, user_id)
            if item is None:
                return None
            for field_name, value in updates.items():
                setattr(item, CONTENT_UPDATABLE_FIELDS[field_name], value)
            item.updated_at = utcnow()
            return item

    def delete_content_item(self, content_id: str, user_id: str) -> bool:
        with self.db.get_session() as session:
            deleted = (
                session.query(ContentItem)
                .filter(ContentItem.id == content_id, ContentItem.user_id == user_id)
                .delete(synchronize_session=False)
            )
            return deleted > 0

    def search_content_items(
        self,
        user_id: str,
        search_term: str,
        limit: int = 10
    ) -> List[ContentItem]:
        """Case-insensitive substring search over title and content."""
        term = search_term.lower()
        with self.db.get_session() as session:
            return (
                session.query(ContentItem)
                .filter(
                    ContentItem.user_id == user_id,
                    or_(
                        func.lower(ContentItem.title).contains(term, autoescape=True),
                        func.lower(ContentItem.content).contains(term, autoescape=True),
                    ),
                )
                .order_by(ContentItem.created_at.desc())
                .limit(limit)
                .all()
            )

    # ==================== UTILITY ====================

    def get_user_stats(self, user_id: str) -> Dict[str, int]:
        with self.db.get_session() as session:
            chats = session.query(func.count(Chat.id)).filter(Chat.user_id == user_id).scalar()
            messages = (
                session.query(func.count(Message.id))
                .filter(Message.user_id == user_id)
                .scalar()
            )
            content_items = (
                session.query(func.count(ContentItem.id))
                .filter(ContentItem.user_id == user_id)
                .scalar()
            )
        return {
            "chats": chats or 0,
            "messages": messages or 0,
            "content_items": content_items or 0,
        }

    # ==================== HELPERS ====================

    def _update_chat(self, chat_id: str, user_id: str, **values: Any) -> Optional[Chat]:
        with self.db.get_session() as session:
            chat = self._find_chat(session, chat_id, user_id)
            if chat is None:
                return None
            for name, value in values.items():
                setattr(chat, name, value)
            chat.updated_at = utcnow()
            return chat

    @staticmethod
    def _find_chat(session: Session, chat_id: str, user_id: Optional[str]) -> Optional[Chat]:
        query = session.query(Chat).filter(Chat.id == chat_id)
        if user_id:
            query = query.filter(Chat.user_id == user_id)
        return query.first()

    @staticmethod
    def _find_vote(session: Session, message_id: str, user_id: str) -> Optional[Vote]:
        return (
            session.query(Vote)
            .filter(Vote.message_id == message_id, Vote.user_id == user_id)
            .first()
        )

    @staticmethod
    def _find_content_item(
        session: Session,
        content_id: str,
        user_id: Optional[str]
    ) -> Optional[ContentItem]:
        query = session.query(ContentItem).filter(ContentItem.id == content_id)
        if user_id:
            query = query.filter(ContentItem.user_id == user_id)
        return query.first()


# Singleton instance
_queries: Optional[Queries] = None


def get_queries() -> Queries:
    """Get or create the queries singleton bound to the business database."""
    global _queries
    if _queries is None:
        _queries = Queries()
    return _queries
