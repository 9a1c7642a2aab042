"""
Request and Response models for chats, messages and votes.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from aichat.core.validators import MAX_MESSAGE_LENGTH, MAX_TITLE_LENGTH


class CreateChatRequest(BaseModel):
    model_id: Optional[str] = Field(
        default=None,
        description="Model for the chat; the default model when omitted",
        examples=["claude-3-5-haiku-20241022"]
    )
    visibility: str = Field(
        default="private",
        description="'private', 'public' or 'organization'"
    )


class UpdateChatTitleRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)


class UpdateChatVisibilityRequest(BaseModel):
    visibility: str = Field(..., description="'private', 'public' or 'organization'")


class SendMessageRequest(BaseModel):
    """
    Request model for sending a message.

    Attributes:
        content: The user's message.
        model_id: Optional model override for this message only.
    """
    content: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="The user's message",
        examples=["Summarize the main ideas of stoicism"]
    )
    model_id: Optional[str] = Field(
        default=None,
        description="Model override; defaults to the chat's model"
    )


class VoteRequest(BaseModel):
    type: str = Field(..., description="'up' or 'down'", examples=["up"])


class ChatResponse(BaseModel):
    id: str
    user_id: str
    title: str
    visibility: str
    model_id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    user_id: str
    role: str
    content: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None


class SendMessageResponse(BaseModel):
    """The stored user message together with the assistant's reply."""
    chat_id: str
    user_message: MessageResponse
    assistant_message: MessageResponse


class ChatListResponse(BaseModel):
    chats: List[ChatResponse]


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]


class DeletedResponse(BaseModel):
    deleted: int = Field(..., description="Number of records removed")


class VoteResponse(BaseModel):
    message_id: str
    user_id: str
    type: str
    created_at: Optional[str] = None


class VoteSummaryResponse(BaseModel):
    up: int = 0
    down: int = 0
