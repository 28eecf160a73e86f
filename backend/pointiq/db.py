import os
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool, StaticPool


engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None
Base = declarative_base()


def get_engine() -> AsyncEngine:
    """Return the engine of the finished-match archive, creating it on first use.

    ``DATABASE_URL`` must name an async driver, e.g.
    ``sqlite+aiosqlite:///data/archive.db``. The live scoring path never
    touches the archive, so a missing ``DATABASE_URL`` only fails once a
    match is ended or the archive is read.
    """

    global engine, AsyncSessionLocal

    if engine is None:
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL environment variable is required")

        engine_kwargs = {"echo": False}
        if database_url.startswith("sqlite"):
            # In-memory SQLite must reuse the same connection to persist schema/data.
            if ":memory:" in database_url:
                engine_kwargs["poolclass"] = StaticPool
            else:
                engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        engine = create_async_engine(database_url, **engine_kwargs)
        # Archived matches are serialised after the commit that stored them.
        AsyncSessionLocal = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    return engine


async def dispose_engine() -> None:
    """Close the archive engine if one was created; the next use recreates it."""

    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def get_session() -> AsyncSession:
    """Provide a database session for FastAPI dependencies."""

    if AsyncSessionLocal is None:
        get_engine()

    assert AsyncSessionLocal is not None  # for type checkers
    async with AsyncSessionLocal() as session:
        yield session
