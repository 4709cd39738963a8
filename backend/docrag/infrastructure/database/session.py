"""SQLAlchemy engine and session factory construction.

Nothing here runs at import time: the ServiceContainer builds one engine
and session factory at startup and disposes of them at shutdown.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from docrag.config import Settings


def get_async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form.

    Raises:
        ValueError: For non-PostgreSQL URLs; vector search needs pgvector.
    """
    if url.startswith("postgresql+asyncpg://"):
        return url
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    raise ValueError(f"Unsupported database URL scheme: {url.split(':', 1)[0]}")


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        get_async_url(settings.database_url),
        echo=False,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
