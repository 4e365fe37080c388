"""Database engine and the ambient transaction used during ingestion.

This module provides:
- Database: SQLite connection manager with WAL mode for concurrent readers
- StoreTransaction: insert/select/update primitives bound to one connection
  and one transaction

The loader never builds SQL strings; it talks to the store through
StoreTransaction and the named operations in queries.py. One ingestion call
owns exactly one StoreTransaction, and nested transactions on the same handle
are not used.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine

from zclgen.core.errors import StoreError

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine, RowMapping

logger = structlog.get_logger()

DEFAULT_BUSY_TIMEOUT_MS = 30000


class Database:
    """SQLite connection manager.

    Usage::

        db = Database(Path("zcl.db"))
        db.create_all()

        with db.transaction() as tx:
            ids = tx.insert(Cluster, [{"package_ref": 1, "code": 6, "name": "On/off"}])

        with db.reader() as tx:
            rows = tx.select_by_key(Cluster, package_ref=1)
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        busy_timeout_ms = self._busy_timeout_ms

        def _on_connect(dbapi_conn: Any, _connection_record: Any) -> None:
            _configure_pragmas(dbapi_conn, busy_timeout_ms)

        event.listen(engine, "connect", _on_connect)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        # Registers every table class on SQLModel.metadata
        from zclgen.store import models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables. Use with caution."""
        SQLModel.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def transaction(self) -> Generator[StoreTransaction, None, None]:
        """Ambient write transaction.

        Auto-commits on successful exit, rolls back on exception.
        """
        tx = begin_transaction(self)
        try:
            yield tx
            tx.commit()
        except Exception:
            tx.rollback()
            raise
        finally:
            tx.close()

    @contextmanager
    def reader(self) -> Generator[StoreTransaction, None, None]:
        """Read-only view; never commits."""
        tx = begin_transaction(self)
        try:
            yield tx
        finally:
            tx.rollback()
            tx.close()

    def execute_raw(self, sql: str, params: dict[str, Any] | None = None) -> list[RowMapping]:
        """Execute raw SQL outside any ambient transaction."""
        with self.engine.connect() as conn:
            result = conn.execute(text(sql), params or {})
            rows = list(result.mappings()) if result.returns_rows else []
            conn.commit()
            return rows


def _configure_pragmas(dbapi_conn: Any, busy_timeout_ms: int) -> None:
    """Configure SQLite for concurrent readers and referential integrity."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def begin_transaction(db: Database) -> StoreTransaction:
    """Open a connection and begin a transaction on it.

    The caller must commit() or rollback(), then close().
    """
    try:
        conn = db.engine.connect()
        return StoreTransaction(conn)
    except SQLAlchemyError as e:
        raise StoreError.backend("begin_transaction", e) from e


class StoreTransaction:
    """Insert/select primitives on one connection inside one transaction."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn
        self.transaction = conn.begin()

    def insert(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> list[int]:
        """Insert records one by one, returning generated ids in input order."""
        table = model_class.__table__  # type: ignore[attr-defined]
        ids: list[int] = []
        try:
            for record in records:
                result = self.conn.execute(table.insert().values(**record))
                ids.append(int(result.inserted_primary_key[0]))
        except SQLAlchemyError as e:
            raise StoreError.backend(f"insert {table.name}", e) from e
        return ids

    def insert_many(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Bulk insert records into table, returning count inserted."""
        if not records:
            return 0
        table = model_class.__table__  # type: ignore[attr-defined]
        try:
            self.conn.execute(table.insert(), records)
        except SQLAlchemyError as e:
            raise StoreError.backend(f"insert_many {table.name}", e) from e
        return len(records)

    def select_by_key(
        self,
        model_class: type[SQLModel],
        order_by: str | None = None,
        **keys: Any,
    ) -> list[RowMapping]:
        """Select rows whose columns equal the given keys (None matches NULL)."""
        table = model_class.__table__  # type: ignore[attr-defined]
        stmt = select(table)
        for column, value in keys.items():
            col = table.c[column]
            stmt = stmt.where(col.is_(None) if value is None else col == value)
        stmt = stmt.order_by(table.c[order_by] if order_by else table.c.id)
        try:
            return list(self.conn.execute(stmt).mappings())
        except SQLAlchemyError as e:
            raise StoreError.backend(f"select {table.name}", e) from e

    def select_one(self, model_class: type[SQLModel], **keys: Any) -> RowMapping | None:
        rows = self.select_by_key(model_class, **keys)
        return rows[0] if rows else None

    def update_where(
        self,
        model_class: type[SQLModel],
        values: dict[str, Any],
        **keys: Any,
    ) -> int:
        """Update rows matching keys. Returns number of rows affected."""
        table = model_class.__table__  # type: ignore[attr-defined]
        stmt = update(table).values(**values)
        for column, value in keys.items():
            stmt = stmt.where(table.c[column] == value)
        try:
            return int(self.conn.execute(stmt).rowcount)
        except SQLAlchemyError as e:
            raise StoreError.backend(f"update {table.name}", e) from e

    def raw_query(self, sql: str, params: dict[str, Any] | None = None) -> list[RowMapping]:
        """Execute a parameterized query inside this transaction."""
        try:
            result = self.conn.execute(text(sql), params or {})
            return list(result.mappings()) if result.returns_rows else []
        except SQLAlchemyError as e:
            raise StoreError.backend("raw_query", e) from e

    def count(self, model_class: type[SQLModel], **keys: Any) -> int:
        return len(self.select_by_key(model_class, **keys))

    def commit(self) -> None:
        """Commit the current transaction."""
        try:
            self.transaction.commit()
        except SQLAlchemyError as e:
            raise StoreError.backend("commit", e) from e

    def rollback(self) -> None:
        """Rollback the current transaction (no-op once committed)."""
        if self.transaction.is_active:
            self.transaction.rollback()

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
