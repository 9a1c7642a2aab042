"""
Request and Response models for content items and vector search.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from aichat.core.validators import MAX_TITLE_LENGTH


class CreateContentRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    content: str = Field(..., min_length=1)
    content_type: str = Field(
        ...,
        description="'document', 'image', 'video', 'audio' or 'other'",
        examples=["document"]
    )
    metadata: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None


class UpdateContentRequest(BaseModel):
    """Only the fields that are sent are changed."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=MAX_TITLE_LENGTH)
    content: Optional[str] = Field(default=None, min_length=1)
    content_type: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None


class ContentResponse(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    content_type: str
    metadata: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContentListResponse(BaseModel):
    items: List[ContentResponse]


class UserStatsResponse(BaseModel):
    chats: int
    messages: int
    content_items: int


class VectorSearchRequest(BaseModel):
    """
    Similarity search request.

    The caller supplies the query embedding; `query` is the text it was
    computed from and keys the result cache.
    """
    query: str = Field(..., min_length=1, examples=["How do I reset my password?"])
    embedding: List[float] = Field(..., description="Query embedding")
    limit: int = Field(default=10, ge=1, le=50)
    scope: str = Field(default="user", description="'user' or 'global'")


class VectorSearchResult(BaseModel):
    id: int
    content: str
    metadata: Optional[Dict[str, Any]] = None
    similarity: float


class VectorSearchResponse(BaseModel):
    results: List[VectorSearchResult]


class StoreEmbeddingRequest(BaseModel):
    content: str = Field(..., min_length=1)
    embedding: List[float]
    metadata: Optional[Dict[str, Any]] = None


class StoreEmbeddingResponse(BaseModel):
    id: int
