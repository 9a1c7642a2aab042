"""
Database module - Persistence for the chat service.

This module handles:
- Business PostgreSQL connection and transactions
- Relational models and queries (chats, messages, votes, content)
- MongoDB document store and the pluggable chat store
- pgvector embeddings and similarity search
"""
from aichat.database.connection import DatabaseConnection, get_database, reset_database
from aichat.database.models import (
    Base,
    Chat,
    ContentItem,
    Embedding,
    Message,
    VectorBase,
    Vote,
)
from aichat.database.queries import Queries, get_queries
from aichat.database.chat_store import (
    ChatStore,
    MongoChatStore,
    PostgresChatStore,
    get_chat_store,
    reset_chat_store,
)
from aichat.database.mongodb import MongoStore, get_mongo_store, reset_mongo_store
from aichat.database.vector import VectorStore, get_vector_store, reset_vector_store
from aichat.database.init_db import (
    drop_business_tables,
    init_business_tables,
    init_vector_tables,
)

__all__ = [
    # Connection
    "DatabaseConnection",
    "get_database",
    "reset_database",
    # Models
    "Base",
    "VectorBase",
    "Chat",
    "Message",
    "Vote",
    "ContentItem",
    "Embedding",
    # Queries
    "Queries",
    "get_queries",
    # Chat stores
    "ChatStore",
    "PostgresChatStore",
    "MongoChatStore",
    "get_chat_store",
    "reset_chat_store",
    # Document store
    "MongoStore",
    "get_mongo_store",
    "reset_mongo_store",
    # Vector store
    "VectorStore",
    "get_vector_store",
    "reset_vector_store",
    # Initialization
    "init_business_tables",
    "init_vector_tables",
    "drop_business_tables",
]
