from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from ...domain.errors import (
    ConstraintViolation,
    EngineFailure,
    NotFound,
    NotInitialized,
    SchemaError,
    TypeMismatch,
)
from ...domain.value_objects.scalar import KindLike, Scalar, ScalarValue, ensure_utf8
from ..collections import KEY_COLUMN, VALUE_COLUMN, Binding

logger = logging.getLogger(__name__)

_NO_SUCH_TABLE = "no such table"


def _checked_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeMismatch(f"key must be str, not {type(key).__name__}")
    return ensure_utf8(key)


def create_collection_table(conn: sqlite3.Connection, name: str) -> None:
    """Create the two-column table for ``name`` and check an existing one is compatible.

    ``name`` must already be validated; it is interpolated into the statement.
    """

    try:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS "{name}" (
                {KEY_COLUMN} varchar(255) PRIMARY KEY UNIQUE NOT NULL,
                {VALUE_COLUMN}
            )
            """
        )
        conn.commit()
        columns = conn.execute(f'PRAGMA table_info("{name}")').fetchall()
    except sqlite3.Error as exc:
        logger.warning("Schema creation failed", extra={"collection": name, "error": str(exc)})
        raise SchemaError(f"cannot create collection {name!r}: {exc}", collection=name) from exc

    # table_info rows: (cid, name, type, notnull, dflt_value, pk)
    layout = {row[1]: row[5] for row in columns}
    if set(layout) != {KEY_COLUMN, VALUE_COLUMN} or layout[KEY_COLUMN] != 1:
        raise SchemaError(
            f"table {name!r} exists with incompatible columns: {sorted(layout)}",
            collection=name,
        )
    logger.info("Collection materialized", extra={"collection": name})


class BindingSqlite(Binding):
    """SQLite implementation of :class:`Binding`.

    Holds a borrowed connection: it never opens, commits outside its own
    writes, or closes the connection. A write rejected by a constraint rolls
    back the connection's open transaction so no write lock is held. Once :meth:`release` is called the
    reference is dropped and every operation raises :class:`EngineFailure`.
    """

    def __init__(self, name: str, conn: sqlite3.Connection) -> None:
        super().__init__(name)
        self._conn: Optional[sqlite3.Connection] = conn

    @property
    def released(self) -> bool:
        return self._conn is None

    def release(self) -> None:
        self._conn = None

    def _live_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise EngineFailure(
                f"binding for collection {self.name!r} has been released",
                collection=self.name,
            )
        return self._conn

    @contextmanager
    def _engine_errors(self, op: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.OperationalError as exc:
            if _NO_SUCH_TABLE in str(exc):
                raise NotInitialized(
                    f"collection {self.name!r} does not exist", collection=self.name
                ) from exc
            logger.warning(
                "Engine error", extra={"collection": self.name, "op": op, "error": str(exc)}
            )
            raise EngineFailure(f"{op} failed: {exc}", collection=self.name) from exc
        except sqlite3.Error as exc:
            logger.warning(
                "Engine error", extra={"collection": self.name, "op": op, "error": str(exc)}
            )
            raise EngineFailure(f"{op} failed: {exc}", collection=self.name) from exc

    def set(self, key: str, value: ScalarValue) -> None:
        key = _checked_key(key)
        stored = Scalar.of(value).to_storage()
        conn = self._live_conn()
        logger.debug("set", extra={"collection": self.name, "key": key})
        with self._engine_errors("set"):
            try:
                conn.execute(
                    f'INSERT INTO "{self.name}" ({KEY_COLUMN}, {VALUE_COLUMN}) VALUES (?, ?)',
                    (key, stored),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise ConstraintViolation(
                    f"key {key!r} already exists", collection=self.name
                ) from exc
            conn.commit()

    def replace(self, key: str, value: ScalarValue) -> None:
        key = _checked_key(key)
        stored = Scalar.of(value).to_storage()
        conn = self._live_conn()
        logger.debug("replace", extra={"collection": self.name, "key": key})
        with self._engine_errors("replace"):
            try:
                conn.execute(
                    f'INSERT INTO "{self.name}" ({KEY_COLUMN}, {VALUE_COLUMN}) VALUES (?, ?) '
                    f"ON CONFLICT({KEY_COLUMN}) DO UPDATE SET {VALUE_COLUMN} = excluded.{VALUE_COLUMN}",
                    (key, stored),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise ConstraintViolation(
                    f"cannot store key {key!r}: {exc}", collection=self.name
                ) from exc
            conn.commit()

    def get(self, key: str, kind: KindLike = str) -> ScalarValue:
        key = _checked_key(key)
        conn = self._live_conn()
        logger.debug("get", extra={"collection": self.name, "key": key})
        with self._engine_errors("get"):
            cur = conn.execute(
                f'SELECT {VALUE_COLUMN} FROM "{self.name}" WHERE {KEY_COLUMN} = ?',
                (key,),
            )
            row = cur.fetchone()
        if row is None:
            raise NotFound(key, collection=self.name)
        return Scalar.from_storage(row[0]).coerce(kind)

    def remove(self, key: str) -> int:
        key = _checked_key(key)
        conn = self._live_conn()
        logger.debug("remove", extra={"collection": self.name, "key": key})
        with self._engine_errors("remove"):
            cur = conn.execute(
                f'DELETE FROM "{self.name}" WHERE {KEY_COLUMN} = ?',
                (key,),
            )
            conn.commit()
        return int(cur.rowcount)
