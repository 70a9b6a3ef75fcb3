"""Async engine and session management for the referral ledger store."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from referral_api.core.settings import settings
from referral_api.db.base import Base


def create_engine(database_url: str | None = None, *, echo: bool | None = None) -> AsyncEngine:
    """Build the async engine, applying SQLite transaction settings when needed."""

    url = make_url(database_url or settings.database_url)
    is_sqlite = url.get_backend_name() == "sqlite"
    connect_args = {"timeout": settings.sqlite_busy_timeout_seconds} if is_sqlite else {}

    engine = create_async_engine(
        url,
        future=True,
        echo=settings.database_echo if echo is None else echo,
        pool_pre_ping=not is_sqlite,
        connect_args=connect_args,
    )
    if is_sqlite:
        _configure_sqlite(engine)
    return engine


def _configure_sqlite(engine: AsyncEngine) -> None:
    # pysqlite defers BEGIN until the first write and cannot SAVEPOINT reliably;
    # SQLAlchemy issues BEGIN itself so every transaction holds the write lock.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ANN001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):  # noqa: ANN001
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(engine: AsyncEngine) -> None:
    """Create missing ledger tables. Development and test convenience only."""

    import referral_api.models  # noqa: F401  (registers tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = create_engine()
async_session = create_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session
