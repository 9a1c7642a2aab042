"""
Services module - Business logic and orchestration.

Services contain the core application logic:
- No HTTP concerns (those belong in api/)
- No SQL or document queries (those belong in database/)
- Orchestrate between stores, cache, entitlements and the LLM
"""
from aichat.services.chat_service import ChatService, get_chat_service, reset_chat_service
from aichat.services.content_service import (
    ContentService,
    get_content_service,
    reset_content_service,
)
from aichat.services.health_service import HealthService, get_health_service

__all__ = [
    "ChatService",
    "get_chat_service",
    "reset_chat_service",
    "ContentService",
    "get_content_service",
    "reset_content_service",
    "HealthService",
    "get_health_service",
]
