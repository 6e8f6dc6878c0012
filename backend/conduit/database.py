"""
Conduit Backend: Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` wraps an async engine built from an explicit Settings
       object and hands out one session per request that commits on
       success and rolls back on error.
Who:   Built by `create_app()` and stored on `app.state.database`; route
       handlers receive sessions through `Depends(get_db_session)`.
When:  Engine is created with the app; sessions are created per request.

Connection Pooling Strategy:
    Server databases (PostgreSQL, MySQL):
        pool_size / max_overflow from settings, pool_pre_ping, and a one-hour
        pool_recycle so connections dropped by the server are replaced.
    SQLite:
        SQLAlchemy picks the pool class itself; the sizing options do not
        apply and are not passed.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from fastapi import Request
from sqlalchemy import Insert, insert
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from conduit.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata object, which Alembic reads for
    autogenerate and `Database.create_all()` uses for development setups.
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for `settings.database_url`."""
    options: Dict[str, Any] = {
        # Echo SQL only when the whole app runs at DEBUG
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


class Database:
    """
    Owns the engine and session factory for one application instance.

    Example:
        database = Database(settings)
        async with database.transaction() as session:
            await session.execute(select(User))
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = build_engine(settings)
        # expire_on_commit=False: ORM objects stay readable after the
        # request's commit, when the response is serialized.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session, commit if the consumer finishes cleanly, roll back
        on any exception, and always close.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_all(self) -> None:
        """Create every table registered on Base.metadata (idempotent)."""
        # Import models so their tables are registered on the metadata
        import conduit.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()



def insert_ignoring_conflicts(session: AsyncSession, model: Any) -> Insert:
    """
    INSERT for `model` that skips rows colliding with an existing key.

    Used for association rows (follows, favorites) where a duplicate means
    "already there", so concurrent identical requests both succeed.
    Dialects without an ignore-conflicts form get a plain INSERT.
    """
    table = model.__table__
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert(table).on_conflict_do_nothing()
    if dialect == "postgresql":
        return postgresql.insert(table).on_conflict_do_nothing()
    if dialect in ("mysql", "mariadb"):
        return mysql.insert(table).prefix_with("IGNORE")
    return insert(table)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/tags")
        async def list_tags(db: AsyncSession = Depends(get_db_session)):
            ...

    Raises:
        Any database exception propagates to the global error handlers
        after the transaction has been rolled back.
    """
    database: Database = request.app.state.database
    async with database.transaction() as session:
        yield session
