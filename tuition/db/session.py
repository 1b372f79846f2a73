from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from tuition.core.config import settings


def _engine_options(database_url: str) -> dict:
    # PostgreSQL (asyncpg) in production: drop stale pooled connections.
    # SQLite (aiosqlite) for local runs: one file, shared across the event loop's tasks.
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request. Ledger services commit or roll back themselves."""
    async with AsyncSessionLocal() as session:
        yield session
