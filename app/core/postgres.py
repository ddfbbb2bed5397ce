"""
ApplyForm API - PostgreSQL Pool
One asyncpg pool per process, plus schema bootstrap
"""
import asyncpg
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class PostgresClient:
    """Direct PostgreSQL client using asyncpg."""

    def __init__(self, dsn: Optional[str] = None):
        self.pool: Optional[asyncpg.Pool] = None
        self._connection_string: Optional[str] = dsn

    def _get_connection_string(self) -> str:
        # settings importado aquí: config no debe depender de este módulo
        from app.core.config import settings

        if not settings.DATABASE_URL and not settings.DB_HOST:
            raise ValueError(
                "Database host not found. "
                "Set DATABASE_URL or DB_HOST (plus DB_USER/DB_PASSWORD/DB_NAME) in your .env file"
            )

        logger.info(f"PostgreSQL connection string configured for host: {settings.DB_HOST}")
        return settings.database_dsn

    async def connect(self):
        """Crea el pool si todavía no existe."""
        if self.pool is None:
            from app.core.config import settings

            if not self._connection_string:
                self._connection_string = self._get_connection_string()

            try:
                self.pool = await asyncpg.create_pool(
                    self._connection_string,
                    ssl="require" if settings.DB_SSL else None,
                    min_size=settings.DB_POOL_MIN_SIZE,
                    max_size=settings.DB_POOL_MAX_SIZE,
                    command_timeout=settings.DB_COMMAND_TIMEOUT,
                    timeout=30,  # espera máxima para adquirir conexión
                )
                logger.info("PostgreSQL connection pool created successfully")
            except Exception as e:
                logger.error(f"Failed to create PostgreSQL connection pool: {e}")
                raise

    async def disconnect(self):
        """Cierra el pool de conexiones."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL connection pool closed")

    async def get_pool(self) -> asyncpg.Pool:
        if not self.pool:
            await self.connect()
        return self.pool

    async def init_schema(self):
        """Create tables and constraints if they do not exist yet."""
        pool = await self.get_pool()
        ddl = SCHEMA_PATH.read_text(encoding="utf-8")
        async with pool.acquire() as conn:
            await conn.execute(ddl)
        logger.info("Database schema ensured")


# Singleton instance
_postgres_client: Optional[PostgresClient] = None


def get_postgres_client() -> PostgresClient:
    """Cliente compartido por todo el proceso."""
    global _postgres_client
    if _postgres_client is None:
        _postgres_client = PostgresClient()
    return _postgres_client


async def cleanup_postgres():
    """Cierra el pool y olvida el singleton (shutdown)."""
    global _postgres_client
    if _postgres_client:
        await _postgres_client.disconnect()
        _postgres_client = None
