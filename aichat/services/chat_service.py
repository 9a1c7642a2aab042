"""
Chat Service - Business logic for chats, messages and votes.

This service orchestrates the chat flow:
1. Validates input and checks chat ownership
2. Enforces plan entitlements (model access, daily message quota)
3. Persists the user message and calls the LLM with the history
4. Persists the assistant reply with usage metadata
5. Invalidates the user's cached stats

Routes stay thin; everything that needs a rule lives here.
"""
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from aichat.ai.entitlements import can_use_model, get_user_entitlements, has_reached_daily_limit
from aichat.ai.models import DEFAULT_CHAT_MODEL, estimate_cost, get_model_by_id
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.cache.redis_cache import RedisCache, get_cache
from aichat.core.exceptions import ForbiddenError, NotFoundError, RateLimitError, ValidationError
from aichat.core.logging_config import get_logger
from aichat.core.validators import (
    MAX_TITLE_LENGTH,
    validate_message,
    validate_title,
    validate_uuid,
    validate_visibility,
    validate_vote_type,
)
from aichat.database.chat_store import NEW_CHAT_TITLE, ChatStore, get_chat_store
from aichat.llm.client import LLMClient, get_llm_client

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."
GENERATED_TITLE_LENGTH = 80


def start_of_day(now: Optional[datetime] = None) -> datetime:
    """Midnight UTC of the current day; daily quotas reset there."""
    now = now or datetime.now(timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


def seconds_until_reset(now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    reset = start_of_day(now) + timedelta(days=1)
    return max(1, int((reset - now).total_seconds()))


def title_from_message(content: str) -> str:
    """Derive a chat title from the first user message."""
    title = " ".join(content.split())
    if len(title) > GENERATED_TITLE_LENGTH:
        title = title[:GENERATED_TITLE_LENGTH - 3].rstrip() + "..."
    return title[:MAX_TITLE_LENGTH] or NEW_CHAT_TITLE


class ChatService:
    """
    Service for chats, message exchange and votes.

    Example:
        >>> service = ChatService()
        >>> chat = service.create_chat(user)
        >>> reply = service.send_message(user, chat["id"], "Hello!")
        >>> reply["assistant_message"]["content"]
        'Hello! How can I help you today?'
    """

    def __init__(
        self,
        store: Optional[ChatStore] = None,
        llm_client: Optional[LLMClient] = None,
        cache: Optional[RedisCache] = None
    ):
        self.store = store or get_chat_store()
        self._llm_client = llm_client
        self.cache = cache or get_cache()

    @property
    def llm_client(self) -> LLMClient:
        # Created on first use so chat CRUD works without LLM credentials
        if self._llm_client is None:
            self._llm_client = get_llm_client()
        return self._llm_client

    # ==================== CHATS ====================

    def create_chat(
        self,
        user: AuthenticatedUser,
        model_id: Optional[str] = None,
        visibility: str = "private"
    ) -> Dict[str, Any]:
        model_id = model_id or DEFAULT_CHAT_MODEL
        self._check_model(user, model_id)
        visibility = validate_visibility(visibility)

        chat = self.store.create_chat(user.id, NEW_CHAT_TITLE, model_id, visibility)
        self._invalidate(user)
        logger.info(f"Chat {chat['id']} created for user {user.id} ({model_id})")
        return chat

    def list_chats(self, user: AuthenticatedUser) -> List[Dict[str, Any]]:
        return self.store.list_chats(user.id)

    def get_chat(self, user: AuthenticatedUser, chat_id: str) -> Dict[str, Any]:
        chat_id = validate_uuid(chat_id, "chat_id")
        chat = self.store.get_chat(chat_id, user.id)
        if chat is None:
            raise NotFoundError("Chat not found")
        return chat

    def update_chat_title(self, user: AuthenticatedUser, chat_id: str, title: str) -> Dict[str, Any]:
        chat_id = validate_uuid(chat_id, "chat_id")
        title = validate_title(title)
        if not self.store.update_chat_title(chat_id, user.id, title):
            raise NotFoundError("Chat not found")
        self._invalidate(user)
        return self.get_chat(user, chat_id)

    def update_chat_visibility(
        self,
        user: AuthenticatedUser,
        chat_id: str,
        visibility: str
    ) -> Dict[str, Any]:
        chat_id = validate_uuid(chat_id, "chat_id")
        visibility = validate_visibility(visibility)
        if not self.store.update_chat_visibility(chat_id, user.id, visibility):
            raise NotFoundError("Chat not found")
        self._invalidate(user)
        return self.get_chat(user, chat_id)

    def delete_chat(self, user: AuthenticatedUser, chat_id: str) -> None:
        chat_id = validate_uuid(chat_id, "chat_id")
        if not self.store.delete_chat(chat_id, user.id):
            raise NotFoundError("Chat not found")
        self._invalidate(user)
        logger.info(f"Chat {chat_id} deleted by user {user.id}")

    # ==================== MESSAGES ====================

    def get_messages(
        self,
        user: AuthenticatedUser,
        chat_id: str,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Messages of a chat the user owns, or of any public chat."""
        chat_id = validate_uuid(chat_id, "chat_id")
        self._get_visible_chat(user, chat_id)
        return self.store.get_messages(chat_id, limit)

    def send_message(
        self,
        user: AuthenticatedUser,
        chat_id: str,
        content: str,
        model_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send a user message and return it together with the assistant reply.

        Args:
            user: The authenticated sender
            chat_id: Chat owned by the sender
            content: Message text
            model_id: Model override; defaults to the chat's model

        Returns:
            Dict with chat_id, user_message and assistant_message

        Raises:
            NotFoundError: Chat missing or not owned
            ForbiddenError: Model not available on the user's plan
            RateLimitError: Daily message quota used up
            LLMError: The LLM could not produce a reply
        """
        content = validate_message(content)
        chat_id = validate_uuid(chat_id, "chat_id")
        chat = self.get_chat(user, chat_id)

        model_id = model_id or chat["model_id"]
        model = self._check_model(user, model_id)
        entitlements = get_user_entitlements(user.user_type)

        if has_reached_daily_limit(user.user_type, self.messages_used_today(user)):
            raise RateLimitError(
                f"Daily limit of {entitlements.max_messages_per_day} messages reached",
                retry_after=seconds_until_reset(),
            )

        history = self.store.get_messages(chat_id)
        user_message = self.store.add_message(chat_id, user.id, "user", content)

        llm_messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        llm_messages.extend(
            {"role": m["role"], "content": m["content"]}
            for m in history
            if m["role"] != "system"
        )
        llm_messages.append({"role": "user", "content": content})

        max_tokens = min(model.max_tokens, entitlements.max_tokens_per_message)
        result = self.llm_client.generate(model_id, llm_messages, max_tokens=max_tokens)

        assistant_message = self.store.add_message(
            chat_id,
            user.id,
            "assistant",
            result.text,
            metadata={
                "model": result.model,
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
                "estimated_cost": estimate_cost(model_id, result.input_tokens, result.output_tokens),
            },
        )

        if chat["title"] == NEW_CHAT_TITLE and not any(m["role"] == "user" for m in history):
            self.store.update_chat_title(chat_id, user.id, title_from_message(content))

        self._invalidate(user)
        logger.info(
            f"Message exchanged in chat {chat_id}: "
            f"{result.input_tokens} in / {result.output_tokens} out tokens"
        )
        return {
            "chat_id": chat_id,
            "user_message": user_message,
            "assistant_message": assistant_message,
        }

    def messages_used_today(self, user: AuthenticatedUser) -> int:
        return self.store.count_user_messages_since(user.id, start_of_day())

    def delete_trailing_messages(self, user: AuthenticatedUser, chat_id: str, message_id: str) -> int:
        """Delete the messages after `message_id`; the message itself stays."""
        chat_id = validate_uuid(chat_id, "chat_id")
        message_id = validate_uuid(message_id, "message_id")
        self.get_chat(user, chat_id)
        deleted = self.store.delete_trailing_messages(chat_id, message_id, user.id)
        if deleted:
            self._invalidate(user)
        return deleted

    # ==================== VOTES ====================

    def vote_message(self, user: AuthenticatedUser, message_id: str, vote_type: str) -> Dict[str, Any]:
        message_id = validate_uuid(message_id, "message_id")
        vote_type = validate_vote_type(vote_type)
        message = self._get_visible_message(user, message_id)
        if message["role"] != "assistant":
            raise ValidationError("Only assistant messages can be voted on", field="message_id")
        return self.store.upsert_vote(message_id, user.id, vote_type)

    def get_votes(self, user: AuthenticatedUser, message_id: str) -> Dict[str, int]:
        message_id = validate_uuid(message_id, "message_id")
        self._get_visible_message(user, message_id)
        return self.store.get_vote_summary(message_id)

    def remove_vote(self, user: AuthenticatedUser, message_id: str) -> None:
        message_id = validate_uuid(message_id, "message_id")
        if not self.store.delete_vote(message_id, user.id):
            raise NotFoundError("Vote not found")

    # ==================== HELPERS ====================

    def _check_model(self, user: AuthenticatedUser, model_id: str):
        model = get_model_by_id(model_id)
        if model is None:
            raise ValidationError(f"Unknown model '{model_id}'", field="model_id")
        if not can_use_model(user.user_type, model_id):
            raise ForbiddenError(f"Model '{model_id}' is not available on the {user.user_type} plan")
        return model

    def _get_visible_chat(self, user: AuthenticatedUser, chat_id: str) -> Dict[str, Any]:
        chat_id = validate_uuid(chat_id, "chat_id")
        chat = self.store.get_chat(chat_id)
        if chat is None or (chat["user_id"] != user.id and chat["visibility"] != "public"):
            raise NotFoundError("Chat not found")
        return chat

    def _get_visible_message(self, user: AuthenticatedUser, message_id: str) -> Dict[str, Any]:
        message_id = validate_uuid(message_id, "message_id")
        message = self.store.get_message(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        self._get_visible_chat(user, message["chat_id"])
        return message

    def _invalidate(self, user: AuthenticatedUser) -> None:
        self.cache.clear_user_cache(user.id)


_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get or create the chat service instance."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service


def reset_chat_service() -> None:
    global _chat_service
    _chat_service = None
