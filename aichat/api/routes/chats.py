"""
Chat Routes - Chats and the messages inside them.

Sending a message is rate limited per user (X-RateLimit-* headers) and
counts against the plan's daily quota.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from aichat.api.dependencies import enforce_rate_limit, get_current_user
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.core.logging_config import get_logger
from aichat.models.chat import (
    ChatListResponse,
    ChatResponse,
    CreateChatRequest,
    DeletedResponse,
    MessageListResponse,
    SendMessageRequest,
    SendMessageResponse,
    UpdateChatTitleRequest,
    UpdateChatVisibilityRequest,
)
from aichat.models.common import error_responses
from aichat.services.chat_service import ChatService, get_chat_service

logger = get_logger(__name__)

router = APIRouter(
    prefix="/chats",
    tags=["Chats"],
    responses=error_responses(401, 404),
)


@router.get("", response_model=ChatListResponse, summary="List the caller's chats")
def list_chats(
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatListResponse:
    return ChatListResponse(chats=service.list_chats(user))


@router.post(
    "",
    response_model=ChatResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a chat",
    responses=error_responses(400, 403),
)
def create_chat(
    request: CreateChatRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return ChatResponse(**service.create_chat(user, request.model_id, request.visibility))


@router.get("/{chat_id}", response_model=ChatResponse, summary="Get a chat")
def get_chat(
    chat_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return ChatResponse(**service.get_chat(user, chat_id))


@router.patch(
    "/{chat_id}",
    response_model=ChatResponse,
    summary="Rename a chat",
    responses=error_responses(400),
)
def update_chat_title(
    chat_id: str,
    request: UpdateChatTitleRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return ChatResponse(**service.update_chat_title(user, chat_id, request.title))


@router.patch(
    "/{chat_id}/visibility",
    response_model=ChatResponse,
    summary="Change who can read a chat",
    responses=error_responses(400),
)
def update_chat_visibility(
    chat_id: str,
    request: UpdateChatVisibilityRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return ChatResponse(**service.update_chat_visibility(user, chat_id, request.visibility))


@router.delete(
    "/{chat_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a chat with its messages and votes",
)
def delete_chat(
    chat_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> None:
    service.delete_chat(user, chat_id)


@router.get(
    "/{chat_id}/messages",
    response_model=MessageListResponse,
    summary="List messages, oldest first",
)
def get_messages(
    chat_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> MessageListResponse:
    return MessageListResponse(messages=service.get_messages(user, chat_id, limit))


@router.post(
    "/{chat_id}/messages",
    response_model=SendMessageResponse,
    summary="Send a message to the assistant",
    description="""
    Stores the message, asks the chat's model (or `model_id`) for a reply
    and stores the reply with its token usage.

    **Limits:**
    - Per-minute rate limit, reported in `X-RateLimit-Limit` and
      `X-RateLimit-Remaining`
    - Daily message quota and model access from the caller's plan
    """,
    responses=error_responses(400, 403, 429, 503),
)
def send_message(
    chat_id: str,
    request: SendMessageRequest,
    user: AuthenticatedUser = Depends(enforce_rate_limit),
    service: ChatService = Depends(get_chat_service),
) -> SendMessageResponse:
    logger.info(f"Message for chat {chat_id} from user {user.id}")
    return SendMessageResponse(**service.send_message(user, chat_id, request.content, request.model_id))


@router.delete(
    "/{chat_id}/messages/{message_id}/trailing",
    response_model=DeletedResponse,
    summary="Delete every message after the given one",
)
def delete_trailing_messages(
    chat_id: str,
    message_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> DeletedResponse:
    return DeletedResponse(deleted=service.delete_trailing_messages(user, chat_id, message_id))
