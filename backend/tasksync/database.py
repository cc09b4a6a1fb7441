"""
Database engine and session scopes.

Request handlers get a session from get_session(); the arq worker,
websocket handlers and scripts use get_session_context(). Either way the
block is one transaction: committed when it finishes, rolled back if it
raises.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from tasksync.config import Settings, get_settings

settings = get_settings()


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for create_async_engine."""
    return {
        "echo": settings.database_echo,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_recycle": settings.database_pool_recycle_seconds,
        # Postgres drops idle connections; test one before handing it out
        "pool_pre_ping": True,
    }


engine = create_async_engine(settings.database_url, **engine_options(settings))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create tables for every registered model."""
    import tasksync.models  # noqa: F401  (registers tables on SQLModel.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def session_scope(
    maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one transaction per request."""
    async with session_scope(async_session_maker) as session:
        yield session


def get_session_context():
    """Transaction scope for code running outside a request."""
    return session_scope(async_session_maker)
