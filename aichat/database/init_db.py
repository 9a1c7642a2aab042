"""
Database Initialization - Create tables for the business and vector databases.

The business tables (chats, messages, votes, content items) and the
embeddings table may live on different servers, so each has its own
initializer.
"""
from aichat.core.logging_config import get_logger
from aichat.database.connection import get_database
from aichat.database.models import Base

logger = get_logger(__name__)


def init_business_tables() -> bool:
    """
    Create chat, message, vote and content tables if they don't exist.

    Returns:
        True if tables were created successfully
    """
    try:
        Base.metadata.create_all(get_database().engine)
        logger.info("Business tables initialized successfully")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize business tables: {e}")
        raise


def init_vector_tables() -> bool:
    """
    Enable pgvector and create the embeddings table with its indexes.

    Returns:
        True if the vector schema is in place
    """
    from aichat.database.vector import get_vector_store

    get_vector_store().initialize()
    return True


def drop_business_tables() -> bool:
    """
    Drop business tables (use with caution!).

    This is mainly for testing/development purposes.
    """
    try:
        Base.metadata.drop_all(get_database().engine)
        logger.warning("Business tables dropped")
        return True

    except Exception as e:
        logger.error(f"Failed to drop business tables: {e}")
        raise


if __name__ == "__main__":
    from aichat.core.config import get_settings
    from aichat.core.logging_config import setup_logging

    setup_logging(get_settings().log_level)
    init_business_tables()
    init_vector_tables()
