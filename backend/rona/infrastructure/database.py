"""Database Session Manager — units of work, migrations and health checks.

Invariants:
    - One engine per process (initialized via init_db), safe for concurrent units of work
    - Every unit of work is stamped with a single `now` taken from its clock at start
    - Leaving a unit of work without commit(), for any reason, rolls it back
    - Session cleanup is shielded: a cancelled caller still releases its transaction
      and connection before the cancellation propagates
    - Errors are translated here and only here: IntegrityError -> ConflictError,
      any other exception that is not already a RonaError -> InternalError
    - SQLite transactions start with BEGIN IMMEDIATE (one writer at a time)
    - In-memory SQLite is a named shared-cache database pinned by a keeper
      connection, so it outlives any invalidated pool connection
    - Bound parameters never appear in error messages (hide_parameters)

Design Decisions:
    - Clock injected per manager and overridable per unit of work: tests pin "now"
      without touching process-wide state
    - Alembic upgrade runs on an engine connection (config.attributes["connection"]),
      so in-memory databases are migrated in place
    - expire_on_commit=False: snapshots are read after commit
    - In-memory pool stays at one connection: shared-cache SQLite reports lock
      contention as SQLITE_LOCKED, which the busy timeout does not retry
"""

import asyncio
import logging
import sqlite3
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import event, text
from sqlalchemy.engine import URL, Connection, make_url
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from rona.core.domain_types import Clock, utc_now
from rona.core.errors import ConflictError, InternalError, RonaError
from rona.migrations import MIGRATIONS_DIR, VERSION_TABLE

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Transactional handle: one AsyncSession plus the logical time of the unit."""

    def __init__(self, session: AsyncSession, now: datetime):
        self.session = session
        self.now = now
        self.committed = False

    async def commit(self) -> None:
        await self.session.commit()
        self.committed = True


class DatabaseSessionManager:
    """Manages the engine, units of work, schema migrations and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        busy_timeout_seconds: float = 30.0,
        clock: Clock = utc_now,
    ):
        self.url = make_url(database_url)
        self.clock = clock
        self._memory_keeper: sqlite3.Connection | None = None
        engine_url: str | URL = database_url
        in_memory = self.is_sqlite and _is_memory_database(self.url.database)
        if in_memory:
            engine_url, self._memory_keeper = _shared_memory_database(self.url)
        self.engine = _create_engine(
            engine_url, pool_size, max_overflow, busy_timeout_seconds, in_memory,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    @asynccontextmanager
    async def unit_of_work(
        self, clock: Clock | None = None,
    ) -> AsyncGenerator[UnitOfWork, None]:
        """Provide a unit of work with auto-rollback and error translation."""
        session = self._session_factory()
        uow = UnitOfWork(session, (clock or self.clock)())
        try:
            yield uow
        except IntegrityError as e:
            logger.warning(f"DB integrity error: {e.orig}")
            raise ConflictError("Duplicate record") from e
        except OperationalError as e:
            logger.error(f"DB operational error: {e}")
            raise InternalError("Connection or operational error", "execute") from e
        except DBAPIError as e:
            logger.error(f"DB driver error: {e}")
            raise InternalError("Database driver error", "query") from e
        except SQLAlchemyError as e:
            logger.error(f"SQLAlchemy error: {e}")
            raise InternalError("Database operation failed", "unknown") from e
        except RonaError:
            raise
        except Exception as e:
            logger.error(
                f"Unexpected {type(e).__name__} in unit of work", exc_info=True,
            )
            raise InternalError("Unexpected storage failure", "unknown") from e
        finally:
            # close() rolls back anything uncommitted and returns the connection
            await asyncio.shield(session.close())

            await connection.commit()
        logger.info("Database migrated", extra={"operation": "migrate"})

    async def current_revision(self) -> str | None:
        """Name of the newest applied migration, None on an empty database."""
        async with self.engine.connect() as connection:
            return await connection.run_sync(_current_revision)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.unit_of_work() as uow:
                await uow.session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
        if self._memory_keeper is not None:
            self._memory_keeper.close()
            self._memory_keeper = None


def run_migrations(connection: Connection, revision: str = "head") -> None:
    """Run alembic upgrade on an open (sync) connection."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.attributes["connection"] = connection
    command.upgrade(cfg, revision)


def _current_revision(connection: Connection) -> str | None:
    context = MigrationContext.configure(
        connection, opts={"version_table": VERSION_TABLE},
    )
    return context.get_current_revision()


def _is_memory_database(database: str | None) -> bool:
    return database in (None, "", ":memory:")


def _shared_memory_database(url: URL) -> tuple[str, sqlite3.Connection]:
    """Engine URL for a private named memory database, plus the connection pinning it.

    SQLite drops a memory database when its last connection closes; the keeper
    holds it open for the lifetime of the manager.
    """
    name = f"rona-{uuid.uuid4().hex}"
    keeper = sqlite3.connect(
        f"file:{name}?mode=memory&cache=shared", uri=True, check_same_thread=False,
    )
    return f"{url.drivername}:///file:{name}?mode=memory&cache=shared&uri=true", keeper


def _create_engine(
    database_url: str | URL,
    pool_size: int,
    max_overflow: int,
    busy_timeout_seconds: float,
    in_memory: bool = False,
) -> AsyncEngine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
            hide_parameters=True,
        )

    if in_memory:
        engine = create_async_engine(
            database_url,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=1,
            max_overflow=0,
            connect_args={"timeout": busy_timeout_seconds},
            hide_parameters=True,
        )
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            connect_args={"timeout": busy_timeout_seconds},
            hide_parameters=True,
        )
    _install_sqlite_transaction_hooks(engine, in_memory)
    return engine


def _install_sqlite_transaction_hooks(engine: AsyncEngine, in_memory: bool) -> None:
    """Take over BEGIN from the driver so every transaction is BEGIN IMMEDIATE."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        if not in_memory:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.close()
        db_manager = None


def get_db_manager() -> DatabaseSessionManager:
    """FastAPI dependency for the process-wide manager."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
