"""
Configuration management via environment variables.

This module loads configuration from the .env file using python-dotenv.
All configuration values are accessed through the Settings class.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load .env file from project root
# This must happen before accessing os.environ
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

CHAT_STORES = ("postgres", "mongo")


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, staging, production)
        log_level: Logging verbosity
        database_url: Business PostgreSQL connection string
        vector_database_url: pgvector connection string
        mongodb_uri: MongoDB connection string (optional)
        mongodb_db_name: MongoDB database name (optional)
        chat_store: Persistence strategy for chats ('postgres' or 'mongo')
        redis_url: Redis connection string
        supabase_url: Hosted auth provider URL
        supabase_anon_key: Public (anon) key
        supabase_service_role_key: Admin key
        anthropic_api_key: API key for the hosted LLM
        groq_api_key: Optional key for the fallback provider
        llm_fallback_model: Model used by the fallback provider
        llm_temperature: Default sampling temperature
        llm_max_tokens: Default completion length
        embedding_dimensions: Width of stored embeddings
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str

    # Database settings
    database_url: str
    vector_database_url: str
    mongodb_uri: Optional[str]
    mongodb_db_name: Optional[str]
    chat_store: str
    auto_init_db: bool

    # Cache
    redis_url: str

    # Auth provider
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    # LLM settings
    anthropic_api_key: str
    groq_api_key: Optional[str]
    llm_fallback_model: str
    llm_temperature: float
    llm_max_tokens: int

    # Retrieval
    embedding_dimensions: int

    # Safety settings
    rate_limit_per_minute: int
    enable_audit_logging: bool

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    @property
    def mongodb_configured(self) -> bool:
        return bool(self.mongodb_uri and self.mongodb_db_name)


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Raises:
        ValueError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


def _get_bool(key: str, default: str) -> bool:
    return _get_env(key, default).lower() == "true"


def _normalize_database_url(url: str) -> str:
    # SQLAlchemy only accepts the postgresql:// scheme
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with all configuration values

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    database_url = _normalize_database_url(_get_env("DATABASE_URL"))
    vector_database_url = _normalize_database_url(
        _get_env("VECTOR_DATABASE_URL", database_url)
    )

    chat_store = _get_env("CHAT_STORE", "postgres").lower()
    if chat_store not in CHAT_STORES:
        raise ValueError(
            f"Invalid CHAT_STORE '{chat_store}'. Must be one of: {', '.join(CHAT_STORES)}"
        )

    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "AIChatSaaS"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),

        # Databases
        database_url=database_url,
        vector_database_url=vector_database_url,
        mongodb_uri=os.environ.get("MONGODB_URI") or None,
        mongodb_db_name=os.environ.get("MONGODB_DB_NAME") or None,
        chat_store=chat_store,
        auto_init_db=_get_bool("AUTO_INIT_DB", "false"),

        # Cache
        redis_url=_get_env("REDIS_URL", "redis://localhost:6379/0"),

        # Auth provider
        supabase_url=_get_env("SUPABASE_URL", ""),
        supabase_anon_key=_get_env("SUPABASE_ANON_KEY", ""),
        supabase_service_role_key=_get_env("SUPABASE_SERVICE_ROLE_KEY", ""),

        # LLM
        anthropic_api_key=_get_env("ANTHROPIC_API_KEY"),
        groq_api_key=os.environ.get("GROQ_API_KEY") or None,
        llm_fallback_model=_get_env("LLM_FALLBACK_MODEL", "llama-3.1-8b-instant"),
        llm_temperature=float(_get_env("LLM_TEMPERATURE", "0.7")),
        llm_max_tokens=int(_get_env("LLM_MAX_TOKENS", "1024")),

        # Retrieval
        embedding_dimensions=int(_get_env("EMBEDDING_DIMENSIONS", "1536")),

        # Safety
        rate_limit_per_minute=int(_get_env("RATE_LIMIT_PER_MINUTE", "30")),
        enable_audit_logging=_get_bool("ENABLE_AUDIT_LOGGING", "true"),
    )
