"""Relational data store gateway built on SQLAlchemy Core.

Every read and write in the application goes through a DataStore. Statements
are SQLAlchemy Core constructs (or text() with bound parameters), so values
are always sent as parameters, never interpolated.

Single statements run in their own short transaction. Multi-statement
workflows use DataStore.transaction(), which commits on normal exit and
rolls back if anything inside the block raises.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from src.core.config import get_settings
from src.core.tables import metadata

logger = logging.getLogger(__name__)


def _row_to_dict(row: Any) -> dict[str, Any]:
    return dict(row._mapping)


class Transaction:
    """A unit of work bound to one connection.

    Exposes the same read/write helpers as DataStore, but every statement
    runs inside the enclosing database transaction.
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def fetch_all(self, statement: Executable, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a read and return every row as a dict."""
        result = self.connection.execute(statement, params or {})
        return [_row_to_dict(row) for row in result]

    def fetch_one(self, statement: Executable, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Execute a read and return the first row, or None."""
        row = self.connection.execute(statement, params or {}).first()
        return _row_to_dict(row) if row is not None else None

    def scalar(self, statement: Executable, params: dict[str, Any] | None = None) -> Any:
        """Execute a read and return the first column of the first row."""
        return self.connection.execute(statement, params or {}).scalar()

    def execute(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a write and return the number of affected rows."""
        result = self.connection.execute(statement, params or {})
        return result.rowcount

    def insert(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute an INSERT and return the new row's primary key."""
        result = self.connection.execute(statement, params or {})
        return result.inserted_primary_key[0]


class DataStore:
    """Gateway to the relational store."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Open an atomic transaction.

        Yields:
            Transaction: Helper bound to the open transaction.

        Raises:
            Exception: Whatever the block raised, after rolling back.
        """
        with self.engine.connect() as connection:
            connection.begin()
            try:
                yield Transaction(connection)
            except Exception:
                connection.rollback()
                logger.debug("Transaction rolled back")
                raise
            connection.commit()

    def fetch_all(self, statement: Executable, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a read and return every row as a dict."""
        with self.transaction() as tx:
            return tx.fetch_all(statement, params)

    def fetch_one(self, statement: Executable, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Execute a read and return the first row, or None."""
        with self.transaction() as tx:
            return tx.fetch_one(statement, params)

    def scalar(self, statement: Executable, params: dict[str, Any] | None = None) -> Any:
        """Execute a read and return a single value."""
        with self.transaction() as tx:
            return tx.scalar(statement, params)

    def execute(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a single write and return the affected row count."""
        with self.transaction() as tx:
            return tx.execute(statement, params)

    def insert(self, statement: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a single INSERT and return the new primary key."""
        with self.transaction() as tx:
            return tx.insert(statement, params)

    def create_tables(self) -> None:
        """Create any missing tables (idempotent)."""
        metadata.create_all(self.engine)


def create_data_store(database_url: str, echo: bool = False) -> DataStore:
    """Build a DataStore for the given SQLAlchemy URL.

    SQLite URLs get foreign-key enforcement switched on, and an in-memory
    URL is pinned to a single shared connection so every caller sees the
    same database.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log every emitted statement.

    Returns:
        DataStore: Gateway bound to a new engine.
    """
    engine_kwargs: dict[str, Any] = {"echo": echo}

    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_engine(database_url, **engine_kwargs)

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return DataStore(engine)


_data_store: DataStore | None = None


def get_data_store() -> DataStore:
    """Get the process-wide DataStore singleton.

    Returns:
        DataStore: Gateway configured from settings.
    """
    global _data_store
    if _data_store is None:
        settings = get_settings()
        _data_store = create_data_store(settings.database_url, echo=settings.database_echo)
    return _data_store


def init_database() -> None:
    """Create missing tables outside production.

    Production schemas are expected to be provisioned ahead of time.
    """
    settings = get_settings()
    if settings.is_production:
        return
    get_data_store().create_tables()
    logger.info("Database tables verified")


async def check_database_connection(store: DataStore | None = None) -> dict[str, Any]:
    """Check if database connection is healthy.

    Args:
        store: Store to check; defaults to the process-wide one.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        (store or get_data_store()).scalar(text("SELECT 1"))
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
