"""
Database configuration and initialization

The connection factory turns a DatabaseConfig variant into a DatabaseHandle.
Handles are created once at startup and passed around through the application
context; nothing in this module holds a module-level engine.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Union

from sqlalchemy import MetaData, text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ..core.config import MySQLConfig, PostgresConfig

logger = logging.getLogger(__name__)

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

# Shared declarative base for every table
Base = declarative_base(metadata=MetaData(naming_convention=convention))

MYSQL_POOL_SIZE = 10


class DatabaseHandle:
    """Live engine plus session factory bound to the shared schema"""

    def __init__(self, engine: AsyncEngine, db_type: str):
        self.engine = engine
        self.db_type = db_type
        self.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that is always closed on exit"""
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def init_db(self):
        """Create all tables"""
        # Import all models here to ensure they're registered
        from . import application, guild, character, raid, user, web_log  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        """Close every pooled connection"""
        await self.engine.dispose()


def normalize_database_url(url: str) -> str:
    """Rewrite Heroku style postgres:// URLs for the asyncpg driver"""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


async def _verify_connection(engine: AsyncEngine, label: str):
    """Run a trivial round trip; log and re-raise on failure"""
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            value = result.scalar()
        if value != 1:
            raise RuntimeError(f"Unexpected liveness result from {label}: {value!r}")
        logger.info(f"{label} connection established")
    except Exception as e:
        logger.error(f"Failed to connect to {label}: {str(e)}")
        await engine.dispose()
        raise


async def create_mysql_connection(config: MySQLConfig) -> DatabaseHandle:
    """
    Create a pooled MySQL connection and verify it is reachable

    Args:
        config: MySQL host/port/credentials

    Returns:
        DatabaseHandle backed by the aiomysql driver

    Raises:
        Whatever the driver raises when the liveness query fails. No retry.
    """
    url = URL.create(
        "mysql+aiomysql",
        username=config.user,
        password=config.password or None,
        host=config.host,
        port=config.port,
        database=config.database or None,
    )
    # Bounded pool, callers wait indefinitely for a free connection
    engine = create_async_engine(
        url,
        echo=config.echo,
        pool_size=MYSQL_POOL_SIZE,
        max_overflow=0,
        pool_timeout=None,
    )
    await _verify_connection(engine, f"MySQL at {config.host}:{config.port}")
    return DatabaseHandle(engine, "mysql")


async def create_postgres_connection(config: PostgresConfig) -> DatabaseHandle:
    """
    Create a connection from a connection string

    Any SQLAlchemy async URL is accepted, so SQLite can stand in during
    development and tests.
    """
    if not config.connection_string:
        raise ValueError("DATABASE_URL must be set when DB_TYPE is postgres")

    url = normalize_database_url(config.connection_string)

    if url.startswith("sqlite"):
        # SQLite doesn't support pool parameters
        engine = create_async_engine(url, echo=config.echo)
    else:
        engine = create_async_engine(
            url,
            echo=config.echo,
            pool_size=20,
            max_overflow=0,
        )
    await _verify_connection(engine, "database")
    return DatabaseHandle(engine, "sqlite" if url.startswith("sqlite") else "postgres")


async def create_db_connection(config: Union[PostgresConfig, MySQLConfig]) -> DatabaseHandle:
    """Dispatch on the configuration tag"""
    if config.type == "mysql":
        return await create_mysql_connection(config)
    return await create_postgres_connection(config)
