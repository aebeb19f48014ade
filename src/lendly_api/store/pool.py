"""
Request Store Connection Pool

Manages the asyncpg connection pool for the database that holds the requests table.

The requests table belongs to the listing request flow; this service only verifies that it
exists. The request_status_events audit table is owned here and created from schema.sql
on initialization.
"""

from pathlib import Path
from typing import Optional

import asyncpg
from loguru import logger

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class DatabasePool:
    """Request store connection pool manager."""

    # Tables this service reads or writes
    REQUIRED_TABLES = {"requests"}

    def __init__(
        self,
        connection_string: str,
        schema: str = "public",
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 30.0,
    ):
        """
        Initialize the pool manager. No connection is opened until initialize().

        Args:
            connection_string: PostgreSQL connection string
            schema: Schema holding the requests table
            min_size: Minimum pooled connections
            max_size: Maximum pooled connections
            command_timeout: Query timeout in seconds
        """
        self.connection_string = connection_string
        self.schema = schema
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_initialized = False

    async def initialize(self) -> None:
        """
        Create the pool, validate it and bootstrap the audit table.

        Raises RuntimeError when the requests table is missing.
        """
        if self._pool_initialized and self.pool is not None:
            logger.debug("Request store pool already initialized")
            return

        try:
            logger.info("Initializing request store pool", schema=self.schema)

            self.pool = await asyncpg.create_pool(
                self.connection_string,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                timeout=15,  # Connection timeout (15 seconds)
            )

            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                if result != 1:
                    raise RuntimeError("Pool validation query failed")

            logger.info("Request store pool validated")

            await self._verify_tables()
            await self._run_migrations()

            self._pool_initialized = True
            logger.success("Request store initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize request store pool: {}", e, exc_info=True)
            if self.pool:
                await self.pool.close()
                self.pool = None
            raise

    async def _verify_tables(self) -> None:
        """Check that the consumed tables exist in the configured schema."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = $1
                """,
                self.schema,
            )
        existing_tables = {row["table_name"] for row in rows}
        missing_tables = self.REQUIRED_TABLES - existing_tables
        if missing_tables:
            logger.error(
                "Schema '{}' is missing required table(s): {}",
                self.schema,
                sorted(missing_tables),
                existing=sorted(existing_tables),
            )
            raise RuntimeError(f"Missing required tables in schema '{self.schema}': {missing_tables}")

    async def _run_migrations(self) -> None:
        """Create the audit table if it does not exist. Safe to run on every startup."""
        if not SCHEMA_PATH.exists():
            raise FileNotFoundError(f"schema.sql not found at {SCHEMA_PATH}")

        schema_sql = SCHEMA_PATH.read_text(encoding="utf-8").replace("{schema}", self.schema)

        async with self.pool.acquire() as conn:
            await conn.execute(schema_sql)

        logger.info("Request store migrations completed")

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        if self.pool:
            logger.info("Closing request store pool")
            await self.pool.close()
            self.pool = None
            self._pool_initialized = False
            logger.info("Request store pool closed")

    def acquire(self):
        """
        Acquire a database connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                row = await conn.fetchrow("SELECT ...")
        """
        if not self.pool:
            raise RuntimeError("Request store pool not initialized - call initialize() first")
        return self.pool.acquire()

    async def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            if not self.pool:
                return False

            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                return result == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("Request store health check failed: {}", e)
            return False
