"""
Content Service - Uploaded content and embedding retrieval.

Content items are cached per user under content:{user_id}:{content_id};
vector search results are cached by query, limit and scope.
"""
from typing import Any, Dict, List, Optional, Sequence

from aichat.ai.entitlements import get_user_entitlements
from aichat.auth.supabase_client import AuthenticatedUser
from aichat.cache.redis_cache import RedisCache, get_cache
from aichat.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from aichat.core.logging_config import get_logger
from aichat.core.validators import validate_content_type, validate_title, validate_uuid
from aichat.database.queries import Queries, get_queries
from aichat.database.vector import VectorStore, get_vector_store

logger = get_logger(__name__)

MIN_SEARCH_LIMIT = 1
MAX_SEARCH_LIMIT = 50
SEARCH_SCOPES = ("user", "global")
BYTES_PER_MB = 1024 * 1024


class ContentService:
    """Service for content items, RAG search and per-user stats."""

    def __init__(
        self,
        queries: Optional[Queries] = None,
        vector_store: Optional[VectorStore] = None,
        cache: Optional[RedisCache] = None
    ):
        self.queries = queries or get_queries()
        self._vector_store = vector_store
        self.cache = cache or get_cache()

    @property
    def vector_store(self) -> VectorStore:
        if self._vector_store is None:
            self._vector_store = get_vector_store()
        return self._vector_store

    # ==================== CONTENT ====================

    def list_content(
        self,
        user: AuthenticatedUser,
        content_type: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        if content_type:
            content_type = validate_content_type(content_type)
        items = self.queries.get_user_content_items(user.id, content_type, limit)
        return [item.to_dict() for item in items]

    def get_content(self, user: AuthenticatedUser, content_id: str) -> Dict[str, Any]:
        content_id = validate_uuid(content_id, "content_id")
        cache_key = f"{user.id}:{content_id}"
        cached = self.cache.get_cached_content(cache_key)
        if cached is not None:
            return cached

        item = self.queries.get_content_item_by_id(content_id, user.id)
        if item is None:
            raise NotFoundError("Content item not found")

        data = item.to_dict()
        self.cache.set_cached_content(cache_key, data)
        return data

    def create_content(
        self,
        user: AuthenticatedUser,
        title: str,
        content: str,
        content_type: str,
        metadata: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Store a new content item.

        Raises:
            ForbiddenError: If the user's plan does not allow uploads
            ValidationError: If a field is invalid or the content is too large
        """
        entitlements = get_user_entitlements(user.user_type)
        if not entitlements.can_upload_files:
            raise ForbiddenError(f"Uploads are not available on the {user.user_type} plan")

        title = validate_title(title)
        content_type = validate_content_type(content_type)
        self._check_size(user, content)

        item = self.queries.create_content_item(
            user.id, title, content, content_type, metadata=metadata, tags=tags
        )
        self.cache.clear_user_cache(user.id)
        logger.info(f"Content item {item.id} created for user {user.id}")
        return item.to_dict()

    def update_content(self, user: AuthenticatedUser, content_id: str, **updates: Any) -> Dict[str, Any]:
        content_id = validate_uuid(content_id, "content_id")
        if "title" in updates:
            updates["title"] = validate_title(updates["title"])
        if "content_type" in updates:
            updates["content_type"] = validate_content_type(updates["content_type"])
        if "content" in updates:
            self._check_size(user, updates["content"])

        try:
            item = self.queries.update_content_item(content_id, user.id, **updates)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if item is None:
            raise NotFoundError("Content item not found")

        self._invalidate(user)
        return item.to_dict()

    def delete_content(self, user: AuthenticatedUser, content_id: str) -> None:
        content_id = validate_uuid(content_id, "content_id")
        if not self.queries.delete_content_item(content_id, user.id):
            raise NotFoundError("Content item not found")
        self._invalidate(user)
        logger.info(f"Content item {content_id} deleted by user {user.id}")

    def search_content(self, user: AuthenticatedUser, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        term = (term or "").strip()
        if not term:
            raise ValidationError("Search term cannot be empty", field="q")
        self._check_limit(limit)
        return [item.to_dict() for item in self.queries.search_content_items(user.id, term, limit)]

    # ==================== RETRIEVAL ====================

    def search_similar(
        self,
        user: AuthenticatedUser,
        query: str,
        embedding: Sequence[float],
        limit: int = 10,
        scope: str = "user"
    ) -> List[Dict[str, Any]]:
        """
        RAG search over stored embeddings.

        Args:
            user: Caller; their plan must include RAG
            query: Query text, used for the cache key
            embedding: Query embedding
            limit: Number of results, 1..50
            scope: 'user' for the caller's rows, 'global' for every row
        """
        self._check_rag(user)
        self._check_limit(limit)
        if scope not in SEARCH_SCOPES:
            raise ValidationError(
                f"Invalid scope '{scope}'. Must be one of: {', '.join(SEARCH_SCOPES)}",
                field="scope",
            )

        user_id = user.id if scope == "user" else None
        cached = self.cache.get_cached_similar_documents(query, limit, embedding, user_id)
        if cached is not None:
            logger.debug(f"Vector cache hit for user {user.id}")
            return cached

        results = self.vector_store.vector_search(embedding, limit=limit, user_id=user_id)
        self.cache.set_cached_similar_documents(query, limit, embedding, results, user_id)
        return results

    def store_embedding(
        self,
        user: AuthenticatedUser,
        content: str,
        embedding: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None
    ) -> int:
        self._check_rag(user)
        if not content or not content.strip():
            raise ValidationError("Content cannot be empty", field="content")
        embedding_id = self.vector_store.store_embedding(content, embedding, metadata, user_id=user.id)
        self._invalidate_vectors(user)
        return embedding_id

    def delete_user_embeddings(self, user: AuthenticatedUser) -> int:
        deleted = self.vector_store.delete_user_embeddings(user.id)
        self._invalidate(user)
        self._invalidate_vectors(user)
        return deleted

    # ==================== STATS ====================

    def get_user_stats(self, user: AuthenticatedUser) -> Dict[str, int]:
        cached = self.cache.get_cached_user(user.id)
        if cached is not None:
            return cached

        stats = self.queries.get_user_stats(user.id)
        self.cache.set_cached_user(user.id, stats)
        return stats

    # ==================== HELPERS ====================

    def _check_size(self, user: AuthenticatedUser, content: str) -> None:
        if not content:
            raise ValidationError("Content cannot be empty", field="content")
        max_mb = get_user_entitlements(user.user_type).max_file_size_mb
        if len(content.encode("utf-8")) > max_mb * BYTES_PER_MB:
            raise ValidationError(f"Content exceeds the {max_mb} MB limit", field="content")

    @staticmethod
    def _check_rag(user: AuthenticatedUser) -> None:
        if not get_user_entitlements(user.user_type).can_use_rag:
            raise ForbiddenError(f"Document search is not available on the {user.user_type} plan")

    @staticmethod
    def _check_limit(limit: int) -> None:
        if not MIN_SEARCH_LIMIT <= limit <= MAX_SEARCH_LIMIT:
            raise ValidationError(
                f"Limit must be between {MIN_SEARCH_LIMIT} and {MAX_SEARCH_LIMIT}",
                field="limit",
            )

    def _invalidate(self, user: AuthenticatedUser) -> None:
        self.cache.clear_content_cache(user.id)
        self.cache.clear_user_cache(user.id)

    def _invalidate_vectors(self, user: AuthenticatedUser) -> None:
        # Global searches span every user's embeddings
        self.cache.clear_vector_cache(user.id)
        self.cache.clear_vector_cache(None)


_content_service: Optional[ContentService] = None


def get_content_service() -> ContentService:
    global _content_service
    if _content_service is None:
        _content_service = ContentService()
    return _content_service


def reset_content_service() -> None:
    global _content_service
    _content_service = None
