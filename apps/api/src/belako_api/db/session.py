"""Async engine and session factory for the ledger store."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from belako_api.core.settings import settings


def enable_sqlite_savepoints(target: AsyncEngine) -> None:
    """Have SQLAlchemy emit BEGIN itself so SAVEPOINTs nest under pysqlite drivers."""

    @event.listens_for(target.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


engine = create_async_engine(settings.database_url, future=True, pool_pre_ping=True)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request-scoped session."""

    async with async_session() as session:
        yield session
