"""Tests for DatabasePool startup checks."""

from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import asyncpg
import pytest

from lendly_api.store.pool import DatabasePool
from tests.fixtures.db_fixtures import _AsyncContext


@pytest.fixture
def mock_pool(mock_conn):
    pool = MagicMock()
    pool.acquire = MagicMock(side_effect=lambda: _AsyncContext(mock_conn))
    pool.close = AsyncMock()
    return pool


class TestDatabasePool:
    """Tests for DatabasePool."""

    @pytest.mark.asyncio
    @patch("lendly_api.store.pool.asyncpg.create_pool", new_callable=AsyncMock)
    async def test_initialize_creates_audit_table(self, mock_create_pool, mock_pool, mock_conn):
        mock_create_pool.return_value = mock_pool
        mock_conn.fetch.return_value = [{"table_name": "requests"}, {"table_name": "listings"}]
        db = DatabasePool("postgresql://test", schema="lendly", max_size=5)

        await db.initialize()

        assert db.pool is mock_pool
        assert mock_create_pool.call_args.kwargs["max_size"] == 5
        migration_sql = mock_conn.execute.call_args.args[0]
        assert "lendly.request_status_events" in migration_sql
        assert "{schema}" not in migration_sql

    @pytest.mark.asyncio
    @patch("lendly_api.store.pool.asyncpg.create_pool", new_callable=AsyncMock)
    async def test_initialize_is_idempotent(self, mock_create_pool, mock_pool, mock_conn):
        mock_create_pool.return_value = mock_pool
        mock_conn.fetch.return_value = [{"table_name": "requests"}]
        db = DatabasePool("postgresql://test")

        await db.initialize()
        await db.initialize()

        mock_create_pool.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("lendly_api.store.pool.asyncpg.create_pool", new_callable=AsyncMock)
    async def test_missing_requests_table(self, mock_create_pool, mock_pool, mock_conn):
        mock_create_pool.return_value = mock_pool
        mock_conn.fetch.return_value = [{"table_name": "listings"}]
        db = DatabasePool("postgresql://test")

        with pytest.raises(RuntimeError, match="requests"):
            await db.initialize()

        mock_pool.close.assert_awaited_once()
        assert db.pool is None

    def test_acquire_before_initialize(self):
        with pytest.raises(RuntimeError):
            DatabasePool("postgresql://test").acquire()

    @pytest.mark.asyncio
    async def test_health_check(self, mock_pool, mock_conn):
        db = DatabasePool("postgresql://test")
        assert await db.health_check() is False

        db.pool = mock_pool
        assert await db.health_check() is True

        mock_conn.fetchval.side_effect = asyncpg.InterfaceError("pool closed")
        assert await db.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, mock_pool):
        db = DatabasePool("postgresql://test")
        db.pool = mock_pool

        await db.close()

        mock_pool.close.assert_awaited_once()
        assert db.pool is None
