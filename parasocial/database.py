from typing import Any, Awaitable, Callable
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from parasocial.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores foreign keys (and so ON DELETE CASCADE) unless asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(url, echo=settings.debug)
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=20,
        max_overflow=10,
    )


# Create async engine
engine = _build_engine(settings.database_url)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# Base class for models
class Base(DeclarativeBase):
    pass


AFTER_COMMIT_HOOKS = "after_commit_hooks"


def on_commit(session: AsyncSession, hook: Callable[[], Awaitable[Any]]) -> None:
    """Run ``hook`` once ``session`` has committed through ``commit``."""
    session.info.setdefault(AFTER_COMMIT_HOOKS, []).append(hook)


async def commit(session: AsyncSession) -> None:
    """Commit, then run the hooks registered with ``on_commit``."""
    await session.commit()
    for hook in session.info.pop(AFTER_COMMIT_HOOKS, []):
        await hook()


async def get_db() -> AsyncSession:
    """Dependency for getting database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            session.info.pop(AFTER_COMMIT_HOOKS, None)
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
