"""
Chat Store - persistence strategies for chats, messages and votes.

Two interchangeable backends implement the same interface:
- PostgresChatStore: relational tables through `Queries`
- MongoChatStore: `chats`, `messages` and `votes` collections

CHAT_STORE selects which one the services use. Both return plain dicts with
ISO timestamps so callers never see ORM objects or BSON documents.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from aichat.ai.models import DEFAULT_CHAT_MODEL
from aichat.core.logging_config import get_logger
from aichat.database.models import new_uuid, utcnow
from aichat.database.mongodb import MongoStore, get_mongo_store
from aichat.database.queries import Queries, get_queries

logger = get_logger(__name__)

NEW_CHAT_TITLE = "New Chat"


class ChatStore(ABC):
    """Interface shared by the chat persistence backends."""

    name: str = "abstract"

    # Chats
    @abstractmethod
    def list_chats(self, user_id: str) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_chat(self, chat_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def create_chat(
        self,
        user_id: str,
        title: str = NEW_CHAT_TITLE,
        model_id: str = DEFAULT_CHAT_MODEL,
        visibility: str = "private"
    ) -> Dict[str, Any]: ...

    @abstractmethod
    def update_chat_title(self, chat_id: str, user_id: str, title: str) -> bool: ...

    @abstractmethod
    def update_chat_visibility(self, chat_id: str, user_id: str, visibility: str) -> bool: ...

    @abstractmethod
    def delete_chat(self, chat_id: str, user_id: str) -> bool: ...

    # Messages
    @abstractmethod
    def get_messages(self, chat_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_message(self, message_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def add_message(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]: ...

    @abstractmethod
    def delete_trailing_messages(self, chat_id: str, message_id: str, user_id: str) -> int: ...

    @abstractmethod
    def count_user_messages_since(self, user_id: str, since: datetime) -> int: ...

    # Votes
    @abstractmethod
    def upsert_vote(self, message_id: str, user_id: str, vote_type: str) -> Dict[str, Any]: ...

    @abstractmethod
    def get_vote_summary(self, message_id: str) -> Dict[str, int]: ...

    @abstractmethod
    def delete_vote(self, message_id: str, user_id: str) -> bool: ...


class PostgresChatStore(ChatStore):
    """Relational chat persistence."""

    name = "postgres"

    def __init__(self, queries: Optional[Queries] = None):
        self.queries = queries or get_queries()

    def list_chats(self, user_id: str) -> List[Dict[str, Any]]:
        return [chat.to_dict() for chat in self.queries.get_user_chats(user_id)]

    def get_chat(self, chat_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        chat = self.queries.get_chat_by_id(chat_id, user_id)
        return chat.to_dict() if chat else None

    def create_chat(
        self,
        user_id: str,
        title: str = NEW_CHAT_TITLE,
        model_id: str = DEFAULT_CHAT_MODEL,
        visibility: str = "private"
    ) -> Dict[str, Any]:
        return self.queries.create_chat(user_id, title, model_id, visibility).to_dict()

    def update_chat_title(self, chat_id: str, user_id: str, title: str) -> bool:
        return self.queries.update_chat_title(chat_id, user_id, title) is not None

    def update_chat_visibility(self, chat_id: str, user_id: str, visibility: str) -> bool:
        return self.queries.update_chat_visibility(chat_id, user_id, visibility) is not None

    def delete_chat(self, chat_id: str, user_id: str) -> bool:
        return self.queries.delete_chat(chat_id, user_id)

    def get_messages(self, chat_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.queries.get_chat_messages(chat_id, limit)]

    def get_message(self, message_id: str) -> Optional[Dict[str, Any]]:
        message = self.queries.get_message_by_id(message_id)
        return message.to_dict() if message else None

    def add_message(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return self.queries.create_message(chat_id, user_id, role, content, metadata).to_dict()

    def delete_trailing_messages(self, chat_id: str, message_id: str, user_id: str) -> int:
        return self.queries.delete_trailing_messages(chat_id, message_id, user_id)

    def count_user_messages_since(self, user_id: str, since: datetime) -> int:
        return self.queries.count_user_messages_since(user_id, since)

    def upsert_vote(self, message_id: str, user_id: str, vote_type: str) -> Dict[str, Any]:
        return self.queries.upsert_vote(message_id, user_id, vote_type).to_dict()

    def get_vote_summary(self, message_id: str) -> Dict[str, int]:
        return self.queries.get_vote_summary(message_id)

    def delete_vote(self, message_id: str, user_id: str) -> bool:
        return self.queries.delete_vote(message_id, user_id)


def _serialize(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop Mongo's _id and render datetimes as ISO strings."""
    if document is None:
        return None
    return {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in document.items()
        if key != "_id"
    }


class MongoChatStore(ChatStore):
    """
    Document-backed chat persistence.

    Documents use snake_case fields and carry their own string `id`, so ids
    look the same whichever backend is active.
    """

    name = "mongo"

    def __init__(self, mongo: Optional[MongoStore] = None):
        self.mongo = mongo or get_mongo_store()
        self.chats = self.mongo.collection("chats")
        self.messages = self.mongo.collection("messages")
        self.votes = self.mongo.collection("votes")

    def ensure_indexes(self) -> None:
        self.chats.create_index("id", unique=True)
        self.chats.create_index([("user_id", ASCENDING), ("updated_at", DESCENDING)])
        self.messages.create_index("id", unique=True)
        self.messages.create_index([("chat_id", ASCENDING), ("created_at", ASCENDING)])
        self.messages.create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
        self.votes.create_index([("message_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
        logger.info("MongoDB chat indexes ensured")

    # ==================== CHATS ====================

    def list_chats(self, user_id: str) -> List[Dict[str, Any]]:
        cursor = self.chats.find({"user_id": user_id}).sort("updated_at", DESCENDING)
        return [_serialize(doc) for doc in cursor]

    def get_chat(self, chat_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        query = {"id": chat_id}
        if user_id:
            query["user_id"] = user_id
        return _serialize(self.chats.find_one(query))

    def create_chat(
        self,
        user_id: str,
        title: str = NEW_CHAT_TITLE,
        model_id: str = DEFAULT_CHAT_MODEL,
        visibility: str = "private"
    ) -> Dict[str, Any]:
        now = utcnow()
        document = {
            "id": new_uuid(),
            "user_id": user_id,
            "title": title,
            "visibility": visibility,
            "model_id": model_id,
            "created_at": now,
            "updated_at": now,
        }
        self.chats.insert_one(document)
        logger.debug(f"Created chat {document['id']} for user {user_id}")
        return _serialize(document)

    def update_chat_title(self, chat_id: str, user_id: str, title: str) -> bool:
        return self._update_chat(chat_id, user_id, {"title": title})

    def update_chat_visibility(self, chat_id: str, user_id: str, visibility: str) -> bool:
        return self._update_chat(chat_id, user_id, {"visibility": visibility})

    def delete_chat(self, chat_id: str, user_id: str) -> bool:
        result = self.chats.delete_one({"id": chat_id, "user_id": user_id})
        if result.deleted_count == 0:
            return False
        message_ids = self.messages.distinct("id", {"chat_id": chat_id})
        self._delete_messages(message_ids)
        logger.info(f"Deleted chat {chat_id} with {len(message_ids)} messages")
        return True

    # ==================== MESSAGES ====================

    def get_messages(self, chat_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        cursor = self.messages.find({"chat_id": chat_id}).sort("created_at", ASCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [_serialize(doc) for doc in cursor]

    def get_message(self, message_id: str) -> Optional[Dict[str, Any]]:
        return _serialize(self.messages.find_one({"id": message_id}))

    def add_message(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        now = utcnow()
        document = {
            "id": new_uuid(),
            "chat_id": chat_id,
            "user_id": user_id,
            "role": role,
            "content": content,
            "metadata": metadata or None,
            "created_at": now,
        }
        self.messages.insert_one(document)
        self.chats.update_one({"id": chat_id}, {"$set": {"updated_at": now}})
        return _serialize(document)

    def delete_trailing_messages(self, chat_id: str, message_id: str, user_id: str) -> int:
        """Delete the chat's messages created after the anchor; keep the anchor."""
        if self.chats.find_one({"id": chat_id, "user_id": user_id}) is None:
            return 0

        anchor = self.messages.find_one({"id": message_id, "chat_id": chat_id})
        if anchor is None:
            return 0

        trailing_ids = self.messages.distinct(
            "id", {"chat_id": chat_id, "created_at": {"$gt": anchor["created_at"]}}
        )
        deleted = self._delete_messages(trailing_ids)
        logger.info(f"Deleted {deleted} trailing messages in chat {chat_id}")
        return deleted

    def count_user_messages_since(self, user_id: str, since: datetime) -> int:
        return self.messages.count_documents(
            {"user_id": user_id, "role": "user", "created_at": {"$gte": since}}
        )

    # ==================== VOTES ====================

    def upsert_vote(self, message_id: str, user_id: str, vote_type: str) -> Dict[str, Any]:
        document = self.votes.find_one_and_update(
            {"message_id": message_id, "user_id": user_id},
            {
                "$set": {"type": vote_type},
                "$setOnInsert": {"id": new_uuid(), "created_at": utcnow()},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _serialize(document)

    def get_vote_summary(self, message_id: str) -> Dict[str, int]:
        summary = {"up": 0, "down": 0}
        pipeline = [
            {"$match": {"message_id": message_id}},
            {"$group": {"_id": "$type", "count": {"$sum": 1}}},
        ]
        for row in self.votes.aggregate(pipeline):
            summary[row["_id"]] = row["count"]
        return summary

    def delete_vote(self, message_id: str, user_id: str) -> bool:
        result = self.votes.delete_one({"message_id": message_id, "user_id": user_id})
        return result.deleted_count > 0

    # ==================== HELPERS ====================

    def _update_chat(self, chat_id: str, user_id: str, values: Dict[str, Any]) -> bool:
        values["updated_at"] = utcnow()
        result = self.chats.update_one({"id": chat_id, "user_id": user_id}, {"$set": values})
        return result.matched_count > 0

    def _delete_messages(self, message_ids: List[str]) -> int:
        if not message_ids:
            return 0
        self.votes.delete_many({"message_id": {"$in": message_ids}})
        return self.messages.delete_many({"id": {"$in": message_ids}}).deleted_count


_chat_store: Optional[ChatStore] = None


def get_chat_store() -> ChatStore:
    """Get or create the chat store selected by CHAT_STORE."""
    global _chat_store
    if _chat_store is None:
        from aichat.core.config import get_settings

        if get_settings().chat_store == "mongo":
            _chat_store = MongoChatStore()
        else:
            _chat_store = PostgresChatStore()
        logger.info(f"Using {_chat_store.name} chat store")
    return _chat_store


def reset_chat_store() -> None:
    global _chat_store
    _chat_store = None
