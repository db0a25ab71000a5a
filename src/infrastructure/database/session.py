"""Database engine, session factory and schema setup."""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings
from infrastructure.database.models import Base


def _connect_args(settings: Settings) -> dict[str, Any]:
    url = settings.async_database_url
    if not url.startswith("postgresql+asyncpg://"):
        return {}

    connect_args: dict[str, Any] = {
        "timeout": settings.store_timeout_seconds,
        "command_timeout": settings.store_timeout_seconds,
        # Hosted Postgres wants TLS but hands out certificates we cannot verify.
        "ssl": "require" if settings.database_ssl else "disable",
    }
    # Transaction-mode poolers (Supavisor, PgBouncer) break asyncpg's
    # prepared statement cache.
    if "pooler." in url or "pgbouncer" in url:
        connect_args["statement_cache_size"] = 0
    return connect_args


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the pooled async engine shared by all requests."""
    url = settings.async_database_url
    pool_args: dict[str, Any] = {}
    if not url.startswith("sqlite"):
        pool_args = {
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_timeout": settings.store_timeout_seconds,
        }

    return create_async_engine(
        url,
        echo=settings.debug,
        pool_pre_ping=True,
        connect_args=_connect_args(settings),
        **pool_args,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create the profiles table (and its PostgreSQL trigger) if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
