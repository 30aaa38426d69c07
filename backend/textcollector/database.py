"""
TextCollector — Snippet Store (Engine, Sessions, Lifecycle)
============================================================

What:  The explicitly constructed store object that owns the async engine
       and the session factory.
How:   `Database(url)` is created by the entry point (API lifespan or CLI),
       opened with `await db.init()` and closed with `await db.dispose()`.
       Nothing here is a module-level singleton; callers hold the object.
Who:   The FastAPI app keeps one on `app.state.database`; the CLI builds one
       per command; tests build one per test on a temporary file.

SQLite specifics:
    - Foreign keys are off by default in SQLite; every new connection runs
      `PRAGMA foreign_keys=ON` so association rows cascade on delete.
    - `timeout` is the busy timeout: a second writer waits for the first
      one's commit instead of failing immediately.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import DateTime, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from textcollector.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers models with a shared metadata object, used by `Database.init()`
    to create tables and by Alembic for migrations.
    """
    pass


def utcnow() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp column.

    SQLite stores datetimes without an offset; values are normalized to UTC
    on the way in and come back tagged as UTC, so comparisons with
    `datetime.now(timezone.utc)` never mix naive and aware values.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime given for a UTC column")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    The snippet store: one per process, shared by every session.

    Lifecycle:
        db = Database(url)
        await db.init()            # opens the file, creates missing tables
        async with db.session() as session:
            ...
        await db.dispose()         # closes pooled connections

    Attributes:
        url:       Async SQLAlchemy URL of the data file
    """

    def __init__(self, url: str, echo: bool = False, busy_timeout: float = 5.0):
        self.url = url
        self.echo = echo
        self.busy_timeout = busy_timeout
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database.init() has not been called")
        return self._engine

    async def init(self) -> None:
        """
        Open the store and create any missing tables.

        Raises:
            StoreUnavailableError: the file (or server) cannot be opened.
        """
        # Models must be imported so their tables are registered on Base.metadata
        from textcollector.models import snippet, tag  # noqa: F401

        connect_args = {}
        if self.is_sqlite:
            connect_args["timeout"] = self.busy_timeout
            database = make_url(self.url).database
            if database and database != ":memory:":
                try:
                    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise StoreUnavailableError(url=self.url, reason=str(e)) from e

        engine = create_async_engine(
            self.url,
            echo=self.echo,
            connect_args=connect_args,
        )
        if self.is_sqlite:
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise StoreUnavailableError(url=self.url, reason=str(e)) from e

        self._engine = engine
        # expire_on_commit=False: objects stay readable after commit, so the
        # caller sees the mutated state without another round trip
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Snippet store opened: %s", make_url(self.url).render_as_string(hide_password=True))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session; roll back if the block raises, always close.

        Services commit through their own save step, so no commit happens here.
        """
        if self._session_factory is None:
            raise RuntimeError("Database.init() has not been called")
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Run SELECT 1; used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            logger.warning("Store ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections. Safe to call more than once."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Snippet store closed")


# ── Session Dependency ────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """FastAPI dependency returning the store attached to the application."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the application's store
        2. Yields it to the route handler
        3. On error: rolls back any uncommitted work
        4. Always: closes the session

    Commits are made by the service layer's save step, one per mutating
    operation, so a failed commit is reported by the operation that caused it.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
