"""
API Routes module - Endpoint definitions.

Each file in this module defines routes for a specific domain:
- health.py  : Health check endpoints
- catalog.py : Models and entitlements
- chats.py   : Chats and messages
- votes.py   : Message votes
- content.py : Content items and stats
- vector.py  : Embeddings and similarity search
"""
from aichat.api.routes.catalog import router as catalog_router
from aichat.api.routes.chats import router as chats_router
from aichat.api.routes.content import router as content_router
from aichat.api.routes.health import router as health_router
from aichat.api.routes.vector import router as vector_router
from aichat.api.routes.votes import router as votes_router

__all__ = [
    "catalog_router",
    "chats_router",
    "content_router",
    "health_router",
    "vector_router",
    "votes_router",
]
