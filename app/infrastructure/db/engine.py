from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import Settings

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///:memory:"


def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.database_url
    if not url:
        if not settings.use_in_memory:
            raise RuntimeError("DATABASE_URL is required for SQL mode")
        url = SQLITE_FALLBACK_URL
    if url.startswith("sqlite"):
        # aiosqlite: una conexión por sesión; el timeout cubre "database is locked"
        return create_async_engine(url, connect_args={"timeout": 30})
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(session_maker) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        async with session.begin():
            yield session
