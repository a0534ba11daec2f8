"""
PostgreSQL Client Wrapper

Centralized PostgreSQL client wrapper over an asyncpg connection pool.
Provides a consistent database access pattern for every repository.

Usage:
    from core.postgres_client import get_postgres_client

    # Get client instance
    db = await get_postgres_client("shipping_service")

    # Execute queries
    rows = await db.query("SELECT * FROM storefront.shipments WHERE status = $1", ["pending"])

    # Multi-statement writes
    async with db.transaction() as tx:
        await tx.execute("INSERT ...", [...])
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


def _record_to_dict(record: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return dict(record.items())


class PostgresTransaction:
    """Query helpers bound to one connection inside a transaction"""

    def __init__(self, connection: asyncpg.Connection):
        self._conn = connection

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        rows = await self._conn.fetch(sql, *(params or []))
        return [dict(r.items()) for r in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        return _record_to_dict(await self._conn.fetchrow(sql, *(params or [])))

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        return await self._conn.execute(sql, *(params or []))


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper around an asyncpg pool.

    - Lazy pool creation on first use
    - Dict rows instead of asyncpg Records
    - Transaction scope for multi-table writes
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            config: Infrastructure config (defaults to environment)
        """
        self.service_name = service_name
        self.config = config or InfraConfig.from_env()
        self.schema = self.config.postgres_schema
        self._pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

        logger.info(
            f"PostgreSQL client initialized for {service_name}: "
            f"{self.config.postgres_host}:{self.config.postgres_port}/{self.config.postgres_db}"
        )

    async def connect(self) -> asyncpg.Pool:
        """Create the pool once, even when the first queries arrive together"""
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    host=self.config.postgres_host,
                    port=self.config.postgres_port,
                    user=self.config.postgres_user,
                    password=self.config.postgres_password,
                    database=self.config.postgres_db,
                    min_size=self.config.postgres_pool_min,
                    max_size=self.config.postgres_pool_max,
                    server_settings={"application_name": self.service_name},
                )
                logger.info(f"PostgreSQL pool created for {self.service_name}")
        return self._pool

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Pool stays open across requests"""
        return None

    async def health_check(self) -> Dict[str, Any]:
        """Check database health"""
        try:
            pool = await self.connect()
            value = await pool.fetchval("SELECT 1")
            return {"healthy": value == 1}
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning(f"PostgreSQL health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        pool = await self.connect()
        rows = await pool.fetch(sql, *(params or []))
        return [dict(r.items()) for r in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        pool = await self.connect()
        return _record_to_dict(await pool.fetchrow(sql, *(params or [])))

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement, returning the command status tag"""
        pool = await self.connect()
        return await pool.execute(sql, *(params or []))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresTransaction]:
        """Run statements on one connection inside a transaction"""
        pool = await self.connect()
        async with pool.acquire() as connection:
            async with connection.transaction():
                yield PostgresTransaction(connection)

    async def close(self):
        """Close pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClientWrapper] = {}


async def get_postgres_client(
    service_name: str,
    config: Optional[InfraConfig] = None,
) -> PostgresClientWrapper:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Name of the service
        config: Infrastructure config override

    Returns:
        PostgresClientWrapper instance
    """
    if service_name not in _postgres_clients:
        _postgres_clients[service_name] = PostgresClientWrapper(service_name, config=config)
    return _postgres_clients[service_name]


async def close_all_clients():
    """Close all PostgreSQL clients"""
    for name, client in list(_postgres_clients.items()):
        try:
            await client.close()
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Error closing PostgreSQL client for {name}: {e}")
    _postgres_clients.clear()
