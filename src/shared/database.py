"""SQLAlchemy engine, declarative base and unit of work.

Every state-changing operation runs inside ``Database.unit_of_work()``: one
session, one transaction, committed on success and rolled back on any
exception.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config import get_settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid4())


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(connection) -> None:
    connection.exec_driver_sql("BEGIN")


def create_db_engine(url: str) -> Engine:
    """Build an engine for ``url``.

    In-memory SQLite shares a single connection so every session (and the
    HTTP test client) sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_transaction)
        return engine
    return create_engine(url, pool_pre_ping=True)


class Database:
    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = create_db_engine(url)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Yield a session bound to a single transaction."""
        with self.session_factory.begin() as session:
            yield session

    def dispose(self) -> None:
        self.engine.dispose()


_current_database: Database | None = None


def get_database() -> Database:
    """Return the process-wide database, creating it from settings on first use."""
    global _current_database
    if _current_database is None:
        url = get_settings().database_url
        logger.debug("database_initialized", dialect=url.split(":", 1)[0])
        _current_database = Database(url)
    return _current_database


def set_database(database: Database) -> None:
    """Override the active database (useful for tests)."""
    global _current_database
    _current_database = database


def reset_database() -> None:
    global _current_database
    if _current_database is not None:
        _current_database.dispose()
    _current_database = None
