"""
API tests through the FastAPI TestClient.

Authentication is overridden with a fixed user; services run on SQLite with
mocked LLM, cache and vector store.
"""
import uuid
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from aichat.api.dependencies import get_current_user
from aichat.api.main import app
from aichat.core.exceptions import AuthError
from aichat.core.health import HealthStatus
from aichat.core.rate_limiter import reset_rate_limiter
from aichat.services.chat_service import ChatService, get_chat_service
from aichat.services.content_service import ContentService, get_content_service
from aichat.services.health_service import HealthService, get_health_service

SONNET = "claude-3-5-sonnet-20241022"


@pytest.fixture
def chat_service(chat_store, mock_llm, mock_cache):
    return ChatService(store=chat_store, llm_client=mock_llm, cache=mock_cache)


@pytest.fixture
def content_service(queries, mock_vector_store, mock_cache):
    return ContentService(queries=queries, vector_store=mock_vector_store, cache=mock_cache)


@pytest.fixture
def client(free_user, chat_service, content_service):
    reset_rate_limiter()
    app.dependency_overrides[get_current_user] = lambda: free_user
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_content_service] = lambda: content_service
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_rate_limiter()


@pytest.fixture
def chat(client):
    return client.post("/chats", json={}).json()


class TestAuthentication:
    @pytest.fixture
    def anonymous_client(self):
        app.dependency_overrides.clear()
        return TestClient(app)

    def test_missing_header(self, anonymous_client):
        response = anonymous_client.get("/chats")
        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_ERROR"

    def test_malformed_header(self, anonymous_client):
        response = anonymous_client.get("/chats", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_invalid_token(self, anonymous_client, mock_cache):
        auth = MagicMock()
        auth.get_user.side_effect = AuthError("Invalid or expired token")
        with patch("aichat.api.dependencies.get_cache", return_value=mock_cache), \
                patch("aichat.api.dependencies.get_supabase_auth", return_value=auth):
            response = anonymous_client.get("/chats", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        auth.get_user.assert_called_once_with("nope")

    def test_cached_session_skips_provider(self, anonymous_client, mock_cache, chat_service):
        app.dependency_overrides[get_chat_service] = lambda: chat_service
        mock_cache.get_cached_session.return_value = {"id": "user-free", "email": None, "user_type": "free"}
        auth = MagicMock()
        with patch("aichat.api.dependencies.get_cache", return_value=mock_cache), \
                patch("aichat.api.dependencies.get_supabase_auth", return_value=auth):
            response = anonymous_client.get("/chats", headers={"Authorization": "Bearer good"})

        app.dependency_overrides.clear()
        assert response.status_code == 200
        auth.get_user.assert_not_called()


class TestCatalog:
    def test_models_are_public(self):
        response = TestClient(app).get("/models")
        assert response.status_code == 200
        body = response.json()
        assert body["default_model"] == SONNET
        assert len(body["models"]) == 3

    def test_entitlements(self, client):
        body = client.get("/entitlements").json()
        assert body["user_type"] == "free"
        assert body["max_messages_per_day"] == 50
        assert body["messages_used_today"] == 0


class TestChatsApi:
    def test_create_and_get(self, client, chat):
        assert chat["title"] == "New Chat"
        response = client.get(f"/chats/{chat['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == chat["id"]

    def test_list(self, client, chat):
        assert [c["id"] for c in client.get("/chats").json()["chats"]] == [chat["id"]]

    def test_forbidden_model(self, client):
        response = client.post("/chats", json={"model_id": "claude-3-opus-20240229"})
        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN_ERROR"

    def test_bad_id(self, client):
        response = client.get("/chats/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_missing_chat(self, client):
        assert client.get(f"/chats/{uuid.uuid4()}").status_code == 404

    def test_rename_share_delete(self, client, chat):
        assert client.patch(f"/chats/{chat['id']}", json={"title": "Renamed"}).json()["title"] == "Renamed"
        shared = client.patch(f"/chats/{chat['id']}/visibility", json={"visibility": "public"})
        assert shared.json()["visibility"] == "public"

        assert client.delete(f"/chats/{chat['id']}").status_code == 204
        assert client.get(f"/chats/{chat['id']}").status_code == 404

    def test_send_message(self, client, chat):
        response = client.post(f"/chats/{chat['id']}/messages", json={"content": "Hello"})

        assert response.status_code == 200
        body = response.json()
        assert body["assistant_message"]["content"] == "Hello! How can I help you today?"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"

        messages = client.get(f"/chats/{chat['id']}/messages").json()["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]

    def test_rate_limit(self, client, chat):
        for _ in range(5):
            assert client.post(f"/chats/{chat['id']}/messages", json={"content": "Hi"}).status_code == 200

        response = client.post(f"/chats/{chat['id']}/messages", json={"content": "Hi"})
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.json()["error"] == "RATE_LIMIT_ERROR"

    def test_database_failure(self, client, chat, db):
        with db.engine.begin() as connection:
            connection.execute(text("DROP TABLE messages"))

        response = client.get(f"/chats/{chat['id']}/messages")

        assert response.status_code == 500
        assert response.json()["error"] == "DATABASE_ERROR"
        assert response.json()["message"] == "Database operation failed"

    def test_trailing_delete(self, client, chat):
        exchange = client.post(f"/chats/{chat['id']}/messages", json={"content": "Hi"}).json()
        anchor = exchange["user_message"]["id"]

        response = client.delete(f"/chats/{chat['id']}/messages/{anchor}/trailing")
        assert response.status_code == 200
        assert response.json()["deleted"] in (0, 1)


class TestVotesApi:
    def test_vote_cycle(self, client, chat):
        exchange = client.post(f"/chats/{chat['id']}/messages", json={"content": "Hi"}).json()
        answer_id = exchange["assistant_message"]["id"]

        assert client.put(f"/messages/{answer_id}/vote", json={"type": "up"}).json()["type"] == "up"
        assert client.get(f"/messages/{answer_id}/vote").json() == {"up": 1, "down": 0}
        assert client.delete(f"/messages/{answer_id}/vote").status_code == 204
        assert client.delete(f"/messages/{answer_id}/vote").status_code == 404


class TestContentApi:
    def test_crud(self, client):
        created = client.post(
            "/content", json={"title": "Notes", "content": "Quarterly plan", "content_type": "document"}
        )
        assert created.status_code == 201
        content_id = created.json()["id"]

        assert client.get(f"/content/{content_id}").json()["title"] == "Notes"
        assert [i["id"] for i in client.get("/content/search", params={"q": "quarterly"}).json()["items"]] == [
            content_id
        ]
        assert client.get("/content/stats").json()["content_items"] == 1
        assert client.patch(f"/content/{content_id}", json={"title": "Plan"}).json()["title"] == "Plan"
        assert client.delete(f"/content/{content_id}").status_code == 204

    def test_vector_search_requires_rag(self, client):
        response = client.post("/vector/search", json={"query": "notes", "embedding": [0.1, 0.2]})
        assert response.status_code == 403

    def test_vector_search_limit_validated(self, client):
        response = client.post("/vector/search", json={"query": "notes", "embedding": [0.1], "limit": 51})
        assert response.status_code == 422


class TestHealthApi:
    def test_live(self):
        assert TestClient(app).get("/health/live").status_code == 200

    def test_unhealthy_returns_503(self):
        service = HealthService({"redis": lambda: HealthStatus.failed("down")})
        app.dependency_overrides[get_health_service] = lambda: service
        try:
            response = TestClient(app).get("/health")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["redis"]["healthy"] is False

    def test_security_headers(self):
        response = TestClient(app).get("/health/live")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
