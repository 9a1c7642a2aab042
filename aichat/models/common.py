"""
Shared response models.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    message: str
    details: Optional[str] = None


class LivenessResponse(BaseModel):
    status: str = Field(default="alive")
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ModelInfo(BaseModel):
    id: str
    name: str
    description: str
    provider: str
    context_window: int
    max_tokens: int
    pricing: Optional[Dict[str, float]] = None


class ModelListResponse(BaseModel):
    default_model: str
    models: List[ModelInfo]


class EntitlementsResponse(BaseModel):
    user_type: str
    max_messages_per_day: int = Field(..., description="-1 means unlimited")
    max_tokens_per_message: int
    available_chat_model_ids: List[str]
    can_upload_files: bool
    can_use_rag: bool
    max_file_size_mb: int
    messages_used_today: Optional[int] = None


def error_responses(*codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI `responses` entries documenting ErrorResponse bodies."""
    descriptions = {
        400: "Validation error",
        401: "Missing or invalid token",
        403: "Not available on the caller's plan",
        404: "Not found",
        429: "Rate limit or daily quota exceeded",
        503: "LLM unavailable",
    }
    return {
        code: {"model": ErrorResponse, "description": descriptions.get(code, "Error")}
        for code in codes
    }
