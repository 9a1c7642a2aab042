"""
Models module - Pydantic schemas for data validation.

This module defines:
- Request models: Input validation for API endpoints
- Response models: Output formatting for API responses
"""
from aichat.models.common import (
    EntitlementsResponse,
    ErrorResponse,
    LivenessResponse,
    ModelListResponse,
)
from aichat.models.chat import (
    ChatResponse,
    CreateChatRequest,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    VoteRequest,
)
from aichat.models.content import (
    ContentResponse,
    CreateContentRequest,
    VectorSearchRequest,
    VectorSearchResponse,
)

__all__ = [
    "EntitlementsResponse",
    "ErrorResponse",
    "LivenessResponse",
    "ModelListResponse",
    "ChatResponse",
    "CreateChatRequest",
    "MessageResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    "VoteRequest",
    "ContentResponse",
    "CreateContentRequest",
    "VectorSearchRequest",
    "VectorSearchResponse",
]
