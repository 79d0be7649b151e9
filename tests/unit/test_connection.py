"""Tests for database connection handling."""

import threading
import time

import pytest
from sqlalchemy import create_engine, text

from nlquery.core.connection import DatabaseConnection
from nlquery.exceptions import ConnectionError, QueryError


class TestDatabaseConnection:
    """Tests for DatabaseConnection."""

    def test_postgresql_url_uses_psycopg(self):
        conn = DatabaseConnection("postgresql://reader@db.local/shop")

        assert conn.url == "postgresql+psycopg://reader@db.local/shop"

    def test_explicit_driver_is_kept(self):
        conn = DatabaseConnection("postgresql+asyncpg://reader@db.local/shop")

        assert conn.url == "postgresql+asyncpg://reader@db.local/shop"

    def test_sqlite_memory(self):
        with DatabaseConnection("sqlite:///:memory:") as conn:
            assert conn.dialect == "sqlite"
            assert conn.test_connection() is True

    def test_unreachable_database(self, tmp_path):
        conn = DatabaseConnection(f"sqlite:///{tmp_path}/missing/dir/db.sqlite")

        with pytest.raises(ConnectionError) as exc_info:
            conn.test_connection()

        assert exc_info.value.retryable is True

    def test_rejected_statement_is_query_error(self, connection):
        with pytest.raises(QueryError) as exc_info:
            with connection.connect() as conn:
                conn.execute(text("SELECT price FROM no_such_table"))

        assert exc_info.value.retryable is False

    def test_memory_database_shared_across_threads(self, connection):
        """Turns run on worker threads and must see the same in-memory data."""
        counts: list[int] = []

        def count() -> None:
            with connection.connect() as conn:
                counts.append(conn.execute(text("SELECT COUNT(*) FROM products")).scalar())

        worker = threading.Thread(target=count)
        worker.start()
        worker.join()

        assert counts == [7]

    def test_close_is_idempotent(self, connection):
        connection.close()
        connection.close()

    def test_concurrent_first_use_creates_one_engine(self, monkeypatch: pytest.MonkeyPatch):
        """Sessions racing on a fresh connection share one engine and one pool."""
        created: list[object] = []

        def slow_create_engine(*args, **kwargs):
            time.sleep(0.05)
            engine = create_engine(*args, **kwargs)
            created.append(engine)
            return engine

        monkeypatch.setattr("nlquery.core.connection.create_engine", slow_create_engine)
        conn = DatabaseConnection("sqlite:///:memory:")
        barrier = threading.Barrier(4)
        engines: list[object] = []

        def first_use() -> None:
            barrier.wait()
            engines.append(conn.engine)

        workers = [threading.Thread(target=first_use) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert len(created) == 1
        assert all(engine is created[0] for engine in engines)
        conn.close()
