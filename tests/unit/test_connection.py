"""
Unit tests for the business database connection and its transactions.
"""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from aichat.core.exceptions import DatabaseError
from aichat.database.connection import engine_options
from aichat.database.models import Chat

SONNET = "claude-3-5-sonnet-20241022"


def _add_chat(title):
    def operation(session):
        chat = Chat(user_id="user-1", title=title, model_id=SONNET)
        session.add(chat)
        session.flush()
        return chat.id
    return operation


def _titles(db):
    with db.get_session() as session:
        return sorted(title for (title,) in session.query(Chat.title).all())


class TestEngineOptions:
    def test_sqlite_shares_one_connection(self):
        options = engine_options("sqlite://")
        assert options["poolclass"] is StaticPool
        assert options["connect_args"] == {"check_same_thread": False}

    def test_postgres_pool_overrides(self):
        options = engine_options("postgresql://u:p@db/app", pool_size=2)
        assert options["pool_pre_ping"] is True
        assert options["pool_size"] == 2
        assert options["max_overflow"] == 10


class TestTransactions:
    def test_session_commits(self, db):
        with db.get_session() as session:
            session.add(Chat(user_id="user-1", title="Kept", model_id=SONNET))
        assert _titles(db) == ["Kept"]

    def test_session_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.get_session() as session:
                session.add(Chat(user_id="user-1", title="Lost", model_id=SONNET))
                session.flush()
                raise RuntimeError("abort")
        assert _titles(db) == []

    def test_sqlalchemy_error_becomes_database_error(self, db):
        with pytest.raises(DatabaseError) as exc_info:
            with db.get_session() as session:
                session.add(Chat(user_id="user-1", title="Lost", model_id=SONNET))
                session.flush()
                session.execute(text("SELECT * FROM missing_table"))

        assert exc_info.value.error_code == "DATABASE_ERROR"
        assert "missing_table" in exc_info.value.details
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert _titles(db) == []

    def test_with_transaction_returns_result(self, db):
        chat_id = db.with_transaction(_add_chat("One"))
        assert len(chat_id) == 36
        assert _titles(db) == ["One"]

    def test_batch_operations_in_order(self, db):
        ids = db.batch_operations([_add_chat("A"), _add_chat("B")])
        assert len(set(ids)) == 2
        assert _titles(db) == ["A", "B"]

    def test_batch_operations_all_or_nothing(self, db):
        def fail(session):
            raise ValueError("bad operation")

        with pytest.raises(ValueError):
            db.batch_operations([_add_chat("A"), fail])
        assert _titles(db) == []


class TestHealth:
    def test_sqlite_is_healthy(self, db):
        status = db.check_health()
        assert status.healthy
        assert status.message == "Connected"
