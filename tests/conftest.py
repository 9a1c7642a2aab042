"""
Pytest configuration and shared fixtures.

This module provides:
- Environment defaults applied before the package is imported
- An in-memory SQLite business database
- Mock cache, vector store and LLM doubles
- Users on each plan
"""
import os
from unittest.mock import MagicMock

import pytest

# Required settings must exist before aichat.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
os.environ["APP_ENV"] = "testing"
os.environ["CHAT_STORE"] = "postgres"
os.environ["RATE_LIMIT_PER_MINUTE"] = "5"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("GROQ_API_KEY", None)
os.environ.pop("MONGODB_URI", None)
os.environ.pop("MONGODB_DB_NAME", None)

from aichat.auth.supabase_client import AuthenticatedUser
from aichat.cache.redis_cache import RedisCache
from aichat.database.chat_store import PostgresChatStore
from aichat.database.connection import DatabaseConnection
from aichat.database.models import Base
from aichat.database.queries import Queries
from aichat.database.vector import VectorStore
from aichat.llm.client import LLMClient, LLMResult


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def db():
    """Fresh in-memory business database with every table created."""
    connection = DatabaseConnection("sqlite://")
    Base.metadata.create_all(connection.engine)
    yield connection
    connection.close()


@pytest.fixture
def queries(db) -> Queries:
    return Queries(db)


@pytest.fixture
def chat_store(queries) -> PostgresChatStore:
    return PostgresChatStore(queries)


# ============================================================================
# DOUBLES
# ============================================================================


@pytest.fixture
def mock_cache() -> MagicMock:
    """Cache double that always misses."""
    cache = MagicMock(spec=RedisCache)
    cache.get_cached_user.return_value = None
    cache.get_cached_content.return_value = None
    cache.get_cached_session.return_value = None
    cache.get_cached_similar_documents.return_value = None
    cache.clear_user_cache.return_value = 0
    cache.clear_content_cache.return_value = 0
    cache.clear_vector_cache.return_value = 0
    return cache


@pytest.fixture
def mock_vector_store() -> MagicMock:
    return MagicMock(spec=VectorStore)


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=LLMClient)
    llm.generate.return_value = LLMResult(
        text="Hello! How can I help you today?",
        model="claude-3-5-sonnet-20241022",
        input_tokens=12,
        output_tokens=9,
    )
    return llm


# ============================================================================
# USERS
# ============================================================================


@pytest.fixture
def free_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-free", email="free@example.com", user_type="free")


@pytest.fixture
def pro_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-pro", email="pro@example.com", user_type="pro")


@pytest.fixture
def guest_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-guest", user_type="guest")
