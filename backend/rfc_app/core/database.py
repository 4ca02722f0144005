"""Async database engine and session management.

Configures the SQLite engine (via aiosqlite) and provides dependency
injection for database sessions. The engine is owned by the application
lifespan and stored on ``app.state``; nothing in this module holds a
module-level connection.
"""

from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from pathlib import Path

from fastapi import Request
from sqlalchemy import Integer, cast, event, func
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql.elements import ColumnElement

from rfc_app.core.errors import StoreError


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async SQLite engine with the connection pragmas we rely on.

    Pragmas set on every new connection:
    - foreign_keys=ON: cascading deletes from users and the FK check on
      comment insert
    - journal_mode=WAL: readers do not block the single writer

    The driver's own implicit BEGIN handling is switched off and BEGIN is
    emitted by SQLAlchemy instead, so DDL runs inside transactions and
    SAVEPOINTs work (see the SQLAlchemy aiosqlite dialect docs).

    Args:
        database_url: ``sqlite+aiosqlite:///`` URL.
        echo: Log all SQL statements.

    Returns:
        Configured AsyncEngine.
    """
    engine = create_async_engine(database_url, echo=echo)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")

    return engine


def ensure_database_directory(database_path: Path) -> None:
    """Create the parent directory of the SQLite file if it is missing."""
    database_path.parent.mkdir(parents=True, exist_ok=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session for one request."""
    session_factory: async_sessionmaker[AsyncSession] = (
        request.app.state.session_factory
    )
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise connection-level driver failures as StoreError.

    Constraint violations (IntegrityError) pass through untouched; the
    stores map those to domain errors themselves.

    Raises:
        StoreError: If the store is unreachable or the file is unusable.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreError() from exc


def store_epoch_now() -> ColumnElement[int]:
    """Current Unix time in whole seconds, read from the store's clock.

    Every expiry computation and comparison goes through this so the
    application host clock never participates.
    """
    return cast(func.strftime("%s", "now"), Integer)
