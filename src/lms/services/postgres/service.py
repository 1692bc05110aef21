"""
PostgresService - asyncpg connection pool for the document store.

Key Features:
- Connection pooling (asyncpg)
- Statement timeout applied per connection
- Idempotent table creation for registered collections
"""

from typing import Any, Optional

import asyncpg
from loguru import logger

from ...settings import settings
from .sql_builder import build_create_table


class PostgresService:
    """
    PostgreSQL database service for LMS.

    Manages the connection pool and query execution.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        pool_min_size: int | None = None,
        pool_max_size: int | None = None,
    ):
        """
        Initialize PostgreSQL service.

        Args:
            connection_string: PostgreSQL connection string (defaults to settings)
            pool_min_size: Minimum pool size (defaults to settings)
            pool_max_size: Maximum pool size (defaults to settings)
        """
        self.connection_string = connection_string or settings.postgres.connection_string
        self.pool_min_size = pool_min_size or settings.postgres.pool_min_size
        self.pool_max_size = pool_max_size or settings.postgres.pool_max_size
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Establish database connection pool."""
        logger.info(f"Connecting to PostgreSQL with pool size {self.pool_max_size}")
        self.pool = await asyncpg.create_pool(
            self.connection_string,
            min_size=self.pool_min_size,
            max_size=self.pool_max_size,
            server_settings={"statement_timeout": str(settings.postgres.statement_timeout)},
        )
        logger.info("PostgreSQL connection pool established")

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self.pool:
            logger.info("Closing PostgreSQL connection pool")
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL connection pool closed")

    async def _ensure_pool(self) -> asyncpg.Pool:
        if not self.pool:
            await self.connect()
        return self.pool

    async def fetch(self, query: str, params: list[Any] | None = None) -> list[asyncpg.Record]:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            return await conn.fetch(query, *(params or []))

    async def fetchval(self, query: str, params: list[Any] | None = None) -> Any:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval(query, *(params or []))

    async def ensure_tables(self, collections: dict[str, tuple[str, ...]]) -> None:
        """
        Create collection tables and unique indexes if missing.

        Args:
            collections: Table name -> unique fields
        """
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                for table, unique_fields in collections.items():
                    for statement in build_create_table(table, unique_fields):
                        await conn.execute(statement)
                    logger.debug(f"Ensured table {table}")
        logger.info(f"Ensured {len(collections)} tables")
