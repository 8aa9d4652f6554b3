from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
import logging

from sqlalchemy import event, Engine, create_engine, make_url, Result, CursorResult
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import sessionmaker, Session

import config
from models.base import Base
"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
import models  # noqa: F401

logger = logging.getLogger(__name__)


def configure_sqlite(engine: Engine | AsyncEngine, lock_timeout: float | None = None) -> None:
    """
    Attach SQLite connection hooks to an engine.

    - PRAGMA foreign_keys=ON so CASCADE / RESTRICT / SET NULL are enforced
    - the driver's implicit BEGIN is disabled and every transaction starts with
      BEGIN IMMEDIATE, so writers serialize on the database lock instead of
      failing with "database is locked" when upgrading a read lock
    - busy_timeout bounds how long a writer waits for that lock
    """
    sync_engine = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
    if sync_engine.dialect.name != "sqlite":
        return

    timeout_ms = int((lock_timeout or config.DB_LOCK_TIMEOUT_SECONDS) * 1000)

    @event.listens_for(sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout = {timeout_ms}")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_and_session_maker(url: str, echo: bool = False) -> tuple[Engine | AsyncEngine, sessionmaker | async_sessionmaker]:
    """
    Build an engine for the given URL.

    Async drivers (aiosqlite, asyncpg, ...) get an AsyncEngine and AsyncSession
    factory, everything else a classic Engine and Session factory. Repositories
    accept either kind through the session_* helpers below.
    """
    if make_url(url).get_dialect().is_async:
        new_engine = create_async_engine(url, echo=echo)
        new_session_maker = async_sessionmaker(new_engine, class_=AsyncSession, expire_on_commit=False)
    else:
        new_engine = create_engine(url, echo=echo)
        new_session_maker = sessionmaker(new_engine, expire_on_commit=False)
    configure_sqlite(new_engine)
    return new_engine, new_session_maker


def _ensure_sqlite_folder(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


engine = None
session_maker = None


def get_engine() -> Engine | AsyncEngine:
    global engine, session_maker
    if engine is None:
        _ensure_sqlite_folder(config.DB_URL)
        engine, session_maker = create_engine_and_session_maker(config.DB_URL, echo=config.SQL_ECHO)
        logger.info(f"Database engine created for dialect '{engine.dialect.name}'")
    return engine


@asynccontextmanager
async def get_db_session() -> AsyncSession | Session:
    get_engine()
    session = None
    try:
        if isinstance(engine, AsyncEngine):
            async with session_maker() as async_session:
                session = async_session
                yield session
        else:
            with session_maker() as sync_session:
                session = sync_session
                yield session
    finally:
        if isinstance(session, AsyncSession):
            await session.close()
        elif isinstance(session, Session):
            session.close()


async def session_execute(stmt, session: AsyncSession | Session) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt)
        return query_result
    else:
        query_result = session.execute(stmt)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


async def session_refresh(session: AsyncSession | Session, instance: Any) -> None:
    if isinstance(session, AsyncSession):
        await session.refresh(instance)
    else:
        session.refresh(instance)


async def create_db_and_tables(target_engine: Engine | AsyncEngine | None = None):
    target_engine = target_engine or get_engine()
    if isinstance(target_engine, AsyncEngine):
        async with target_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    else:
        Base.metadata.create_all(bind=target_engine)


@asynccontextmanager
async def session_savepoint(session: AsyncSession | Session):
    """SAVEPOINT around the block; a failure inside only rolls back to it."""
    if isinstance(session, AsyncSession):
        async with session.begin_nested():
            yield session
    else:
        with session.begin_nested():
            yield session
