"""
Unit tests for environment-based settings.
"""
import pytest

from aichat.core.config import get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, fresh_settings):
        settings = fresh_settings()
        assert settings.database_url == "sqlite://"
        assert settings.vector_database_url == "sqlite://"
        assert settings.chat_store == "postgres"
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.llm_fallback_model == "llama-3.1-8b-instant"
        assert settings.embedding_dimensions == 1536
        assert settings.auto_init_db is False
        assert not settings.mongodb_configured

    def test_postgres_scheme_rewritten(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/app")
        settings = fresh_settings()
        assert settings.database_url == "postgresql://u:p@db/app"

    def test_missing_required_key(self, fresh_settings, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY")
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            fresh_settings()

    def test_invalid_chat_store(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("CHAT_STORE", "cassandra")
        with pytest.raises(ValueError, match="CHAT_STORE"):
            fresh_settings()

    def test_mongo_configured(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
        monkeypatch.setenv("MONGODB_DB_NAME", "aichat")
        assert fresh_settings().mongodb_configured
