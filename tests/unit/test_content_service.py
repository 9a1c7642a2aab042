"""
Unit tests for the content service: content CRUD, retrieval and stats.
"""
import uuid
from unittest.mock import MagicMock

import pytest

from aichat.cache.redis_cache import RedisCache
from aichat.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from aichat.services.content_service import ContentService


@pytest.fixture
def service(queries, mock_vector_store, mock_cache):
    return ContentService(queries=queries, vector_store=mock_vector_store, cache=mock_cache)


@pytest.fixture
def redis_backed_service(queries, mock_vector_store):
    """Content service over a RedisCache whose client keeps values in a dict."""
    values, sets = {}, {}
    client = MagicMock()
    client.get.side_effect = values.get
    client.setex.side_effect = lambda key, ttl, value: values.__setitem__(key, value)
    client.sadd.side_effect = lambda key, member: sets.setdefault(key, set()).add(member)
    client.smembers.side_effect = lambda key: set(sets.get(key, ()))
    client.delete.side_effect = lambda *keys: sum(
        1 for key in keys if values.pop(key, None) is not None or sets.pop(key, None) is not None
    )
    client.scan_iter.return_value = iter([])
    return ContentService(queries=queries, vector_store=mock_vector_store, cache=RedisCache(client=client))


@pytest.fixture
def item(service, free_user):
    return service.create_content(
        free_user, "Meeting notes", "Quarterly planning notes", "document", tags=["work"]
    )


class TestContentItems:
    def test_create(self, item, mock_cache):
        assert item["title"] == "Meeting notes"
        assert item["tags"] == ["work"]
        mock_cache.clear_user_cache.assert_called_with("user-free")

    def test_guest_cannot_upload(self, service, guest_user):
        with pytest.raises(ForbiddenError):
            service.create_content(guest_user, "Notes", "text", "document")

    def test_invalid_content_type(self, service, free_user):
        with pytest.raises(ValidationError) as exc_info:
            service.create_content(free_user, "Notes", "text", "spreadsheet")
        assert exc_info.value.field == "content_type"

    def test_size_limit(self, service, free_user):
        too_big = "x" * (10 * 1024 * 1024 + 1)
        with pytest.raises(ValidationError, match="10 MB"):
            service.create_content(free_user, "Big", too_big, "document")

    def test_get_caches_item(self, service, free_user, item, mock_cache):
        found = service.get_content(free_user, item["id"])

        assert found["id"] == item["id"]
        mock_cache.set_cached_content.assert_called_once_with(f"user-free:{item['id']}", found)

    def test_get_served_from_cache(self, service, free_user, mock_cache):
        content_id = str(uuid.uuid4())
        mock_cache.get_cached_content.return_value = {"id": content_id}
        assert service.get_content(free_user, content_id) == {"id": content_id}

    def test_get_other_users_item(self, service, pro_user, item):
        with pytest.raises(NotFoundError):
            service.get_content(pro_user, item["id"])

    def test_update(self, service, free_user, item, mock_cache):
        updated = service.update_content(free_user, item["id"], title="Planning", tags=["q3"])

        assert updated["title"] == "Planning"
        assert updated["tags"] == ["q3"]
        mock_cache.clear_content_cache.assert_called_with("user-free")

    def test_update_rejects_unknown_field(self, service, free_user, item):
        with pytest.raises(ValidationError):
            service.update_content(free_user, item["id"], user_id="someone-else")

    def test_update_missing(self, service, free_user):
        with pytest.raises(NotFoundError):
            service.update_content(free_user, str(uuid.uuid4()), title="Nope")

    def test_delete(self, service, free_user, item):
        service.delete_content(free_user, item["id"])
        with pytest.raises(NotFoundError):
            service.delete_content(free_user, item["id"])

    def test_list_and_filter(self, service, free_user, item):
        service.create_content(free_user, "Song", "lyrics", "audio")

        assert len(service.list_content(free_user)) == 2
        assert [i["title"] for i in service.list_content(free_user, content_type="audio")] == ["Song"]

    def test_search(self, service, free_user, item):
        assert [i["id"] for i in service.search_content(free_user, "QUARTERLY")] == [item["id"]]
        assert service.search_content(free_user, "budget") == []

    def test_search_requires_term(self, service, free_user):
        with pytest.raises(ValidationError) as exc_info:
            service.search_content(free_user, "  ")
        assert exc_info.value.field == "q"


class TestRetrieval:
    def test_free_plan_has_no_rag(self, service, free_user, mock_vector_store):
        with pytest.raises(ForbiddenError):
            service.search_similar(free_user, "notes", [0.1, 0.2])
        mock_vector_store.vector_search.assert_not_called()

    def test_user_scope(self, service, pro_user, mock_vector_store, mock_cache):
        mock_vector_store.vector_search.return_value = [{"id": 1, "similarity": 0.9}]

        results = service.search_similar(pro_user, "notes", [0.1, 0.2], limit=5)

        assert results == [{"id": 1, "similarity": 0.9}]
        mock_vector_store.vector_search.assert_called_once_with([0.1, 0.2], limit=5, user_id="user-pro")
        mock_cache.set_cached_similar_documents.assert_called_once_with(
            "notes", 5, [0.1, 0.2], results, "user-pro"
        )

    def test_global_scope(self, service, pro_user, mock_vector_store):
        mock_vector_store.vector_search.return_value = []
        service.search_similar(pro_user, "notes", [0.1], scope="global")
        assert mock_vector_store.vector_search.call_args.kwargs["user_id"] is None

    def test_cache_hit(self, service, pro_user, mock_vector_store, mock_cache):
        mock_cache.get_cached_similar_documents.return_value = [{"id": 7}]

        assert service.search_similar(pro_user, "notes", [0.1]) == [{"id": 7}]
        mock_vector_store.vector_search.assert_not_called()

    @pytest.mark.parametrize("limit", [0, 51])
    def test_limit_bounds(self, service, pro_user, limit):
        with pytest.raises(ValidationError) as exc_info:
            service.search_similar(pro_user, "notes", [0.1], limit=limit)
        assert exc_info.value.field == "limit"

    def test_invalid_scope(self, service, pro_user):
        with pytest.raises(ValidationError):
            service.search_similar(pro_user, "notes", [0.1], scope="team")

    def test_store_embedding(self, service, pro_user, mock_vector_store, mock_cache):
        mock_vector_store.store_embedding.return_value = 42

        assert service.store_embedding(pro_user, "chunk", [0.1], {"source": "kb"}) == 42
        mock_vector_store.store_embedding.assert_called_once_with(
            "chunk", [0.1], {"source": "kb"}, user_id="user-pro"
        )
        assert [c.args for c in mock_cache.clear_vector_cache.call_args_list] == [("user-pro",), (None,)]

    def test_delete_embeddings(self, service, pro_user, mock_vector_store, mock_cache):
        mock_vector_store.delete_user_embeddings.return_value = 3

        assert service.delete_user_embeddings(pro_user) == 3
        mock_cache.clear_user_cache.assert_called_with("user-pro")
        assert [c.args for c in mock_cache.clear_vector_cache.call_args_list] == [("user-pro",), (None,)]

    def test_same_query_with_different_embeddings(self, redis_backed_service, pro_user, mock_vector_store):
        mock_vector_store.vector_search.side_effect = lambda embedding, **kwargs: [{"id": embedding[0]}]

        first = redis_backed_service.search_similar(pro_user, "notes", [0.1], scope="global")
        second = redis_backed_service.search_similar(pro_user, "notes", [0.9], scope="global")
        again = redis_backed_service.search_similar(pro_user, "notes", [0.1], scope="global")

        assert first == again == [{"id": 0.1}]
        assert second == [{"id": 0.9}]
        assert mock_vector_store.vector_search.call_count == 2

    def test_deleted_embeddings_not_served_from_cache(self, redis_backed_service, pro_user, mock_vector_store):
        mock_vector_store.vector_search.return_value = [{"id": 1, "content": "old chunk"}]
        redis_backed_service.search_similar(pro_user, "notes", [0.1])
        redis_backed_service.search_similar(pro_user, "notes", [0.1], scope="global")

        mock_vector_store.delete_user_embeddings.return_value = 1
        redis_backed_service.delete_user_embeddings(pro_user)
        mock_vector_store.vector_search.return_value = []

        assert redis_backed_service.search_similar(pro_user, "notes", [0.1]) == []
        assert redis_backed_service.search_similar(pro_user, "notes", [0.1], scope="global") == []
        assert mock_vector_store.vector_search.call_count == 4


class TestStats:
    def test_counts(self, service, free_user, item, queries, mock_cache):
        chat = queries.create_chat(free_user.id, "New Chat", "claude-3-5-sonnet-20241022")
        queries.create_message(chat.id, free_user.id, "user", "hi")

        assert service.get_user_stats(free_user) == {"chats": 1, "messages": 1, "content_items": 1}
        mock_cache.set_cached_user.assert_called_once()

    def test_cached(self, service, free_user, mock_cache):
        mock_cache.get_cached_user.return_value = {"chats": 9, "messages": 9, "content_items": 9}
        assert service.get_user_stats(free_user)["chats"] == 9
