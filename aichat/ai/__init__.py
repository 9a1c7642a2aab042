"""
AI module - Chat model catalog and plan entitlements.
"""
from aichat.ai.models import (
    CHAT_MODELS,
    DEFAULT_CHAT_MODEL,
    ChatModel,
    estimate_cost,
    get_default_model,
    get_model_by_id,
    get_models_by_provider,
)
from aichat.ai.entitlements import (
    Entitlements,
    can_use_model,
    get_user_entitlements,
    has_reached_daily_limit,
)

__all__ = [
    "CHAT_MODELS",
    "DEFAULT_CHAT_MODEL",
    "ChatModel",
    "estimate_cost",
    "get_default_model",
    "get_model_by_id",
    "get_models_by_provider",
    "Entitlements",
    "can_use_model",
    "get_user_entitlements",
    "has_reached_daily_limit",
]
