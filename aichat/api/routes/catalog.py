"""
Catalog Routes - Available models and the caller's plan limits.
"""
from fastapi import APIRouter, Depends

from aichat.ai.entitlements import get_user_entitlements
from aichat.ai.models import CHAT_MODELS, DEFAULT_CHAT_MODEL
from aichat.api.dependencies import get_current_user
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.models.common import EntitlementsResponse, ModelListResponse, error_responses
from aichat.services.chat_service import ChatService, get_chat_service

router = APIRouter(tags=["Catalog"])


@router.get("/models", response_model=ModelListResponse, summary="List chat models")
def list_models() -> ModelListResponse:
    return ModelListResponse(
        default_model=DEFAULT_CHAT_MODEL,
        models=[model.to_dict() for model in CHAT_MODELS],
    )


@router.get(
    "/entitlements",
    response_model=EntitlementsResponse,
    summary="The caller's plan limits and today's usage",
    responses=error_responses(401),
)
def get_entitlements(
    user: AuthenticatedUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> EntitlementsResponse:
    entitlements = get_user_entitlements(user.user_type)
    return EntitlementsResponse(
        user_type=user.user_type,
        messages_used_today=service.messages_used_today(user),
        **entitlements.to_dict(),
    )
