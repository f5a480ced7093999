from __future__ import annotations

"""
SQLite-backed KV store
======================

A small embedded KV using SQLite, implementing the `KV` / `ReadOnlyKV` /
`Batch` protocols from `core.db.kv`.

- Table schema: kv(col TEXT, k BLOB, v BLOB, PRIMARY KEY (col, k))
- Columns are isolated by the primary key; no query ever spans two columns.
- Keys/values are raw bytes; ordering within a column is memcmp.

Pragmas tuned for small node workloads:
- WAL journal, NORMAL sync, in-memory temp store.

Threading:
- `check_same_thread=False` for multi-threaded access. Each put/delete is a
  single autocommit statement; batches execute inside one transaction.
  Anything beyond per-statement atomicity is the caller's business.

Every sqlite3 error is re-raised as `core.errors.StoreFailure`.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple, Union

from ..errors import StoreFailure
from .kv import KV, Batch, ColumnLike, column_tag

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "temp_store": "MEMORY",
    "foreign_keys": "OFF",
}

_UPSERT = "INSERT INTO kv(col, k, v) VALUES(?, ?, ?) ON CONFLICT(col, k) DO UPDATE SET v=excluded.v"
_DELETE = "DELETE FROM kv WHERE col = ? AND k = ?"

PathLike = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]


@contextmanager
def _store_errors(op: str, column: Optional[ColumnLike] = None):
    """Translate engine errors into StoreFailure with the operation attached."""
    try:
        yield
    except sqlite3.Error as e:
        ctx = {"op": op}
        if column is not None:
            ctx["column"] = column_tag(column)
        raise StoreFailure(f"sqlite {op} failed: {e}", cause=e, **ctx) from e


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    cur = conn.cursor()
    for name in ("journal_mode", "synchronous", "temp_store", "foreign_keys"):
        cur.execute("PRAGMA %s=%s" % (name, p[name]))
    cur.close()


def _migrate(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            col TEXT NOT NULL,
            k   BLOB NOT NULL,
            v   BLOB NOT NULL,
            PRIMARY KEY (col, k)
        ) WITHOUT ROWID
        """
    )


class SQLiteBatch(Batch):
    __slots__ = ("_conn", "_open")

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._open:
            raise RuntimeError("batch already open (nested batches not supported)")
        with _store_errors("begin"):
            self._conn.execute("BEGIN IMMEDIATE")
        self._open = True
        return self

    def put(self, column: ColumnLike, key: bytes, value: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        with _store_errors("put", column):
            self._conn.execute(_UPSERT, (column_tag(column), bytes(key), bytes(value)))

    def delete(self, column: ColumnLike, key: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        with _store_errors("delete", column):
            self._conn.execute(_DELETE, (column_tag(column), bytes(key)))

    def commit(self) -> None:
        if not self._open:
            return
        with _store_errors("commit"):
            self._conn.execute("COMMIT")
        self._open = False

    def rollback(self) -> None:
        if not self._open:
            return
        with _store_errors("rollback"):
            self._conn.execute("ROLLBACK")
        self._open = False

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._open = False
        return None


def _open_connection(
    path: PathLike,
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> sqlite3.Connection:
    path_str = os.fsdecode(path)
    if path_str != ":memory:":
        if not create and not os.path.exists(path_str):
            raise StoreFailure(f"SQLite KV not found at {path_str}", op="open")
        parent = os.path.dirname(os.path.abspath(path_str))
        if create:
            os.makedirs(parent, exist_ok=True)

    with _store_errors("open"):
        conn = sqlite3.connect(
            path_str,
            detect_types=0,
            isolation_level=None,      # autocommit; we explicitly BEGIN for batches
            check_same_thread=False,
        )
        _apply_pragmas(conn, pragmas)
        _migrate(conn)
    return conn


class SQLiteKV(KV):
    """
    SQLite-backed, column-partitioned KV.

    Use `open_sqlite_kv(path)` to construct.
    """

    __slots__ = ("_conn",)

    def __init__(
        self,
        conn_or_path: Union[sqlite3.Connection, PathLike],
        *,
        pragmas: Optional[dict] = None,
        create: bool = True,
    ) -> None:
        if isinstance(conn_or_path, sqlite3.Connection):
            self._conn = conn_or_path
        else:
            self._conn = _open_connection(conn_or_path, pragmas=pragmas, create=create)

    # --- ReadOnlyKV ---

    def get(self, column: ColumnLike, key: bytes) -> Optional[bytes]:
        with _store_errors("get", column):
            cur = self._conn.execute(
                "SELECT v FROM kv WHERE col = ? AND k = ?", (column_tag(column), bytes(key))
            )
            row = cur.fetchone()
            cur.close()
        return bytes(row[0]) if row is not None else None

    def has(self, column: ColumnLike, key: bytes) -> bool:
        with _store_errors("has", column):
            cur = self._conn.execute(
                "SELECT 1 FROM kv WHERE col = ? AND k = ? LIMIT 1",
                (column_tag(column), bytes(key)),
            )
            row = cur.fetchone()
            cur.close()
        return row is not None

    def iter_column(self, column: ColumnLike) -> Iterator[Tuple[bytes, bytes]]:
        with _store_errors("iter", column):
            rows = self._conn.execute(
                "SELECT k, v FROM kv WHERE col = ? ORDER BY k", (column_tag(column),)
            ).fetchall()
        for k, v in rows:
            yield bytes(k), bytes(v)

    def close(self) -> None:
        with _store_errors("close"):
            self._conn.close()

    # --- KV ---

    def put(self, column: ColumnLike, key: bytes, value: bytes) -> None:
        with _store_errors("put", column):
            self._conn.execute(_UPSERT, (column_tag(column), bytes(key), bytes(value)))

    def delete(self, column: ColumnLike, key: bytes) -> None:
        with _store_errors("delete", column):
            self._conn.execute(_DELETE, (column_tag(column), bytes(key)))

    def batch(self) -> Batch:
        return SQLiteBatch(self._conn)


def open_sqlite_kv(
    path: PathLike,
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> SQLiteKV:
    """
    Open (or create) a SQLite KV at `path` (":memory:" for an ephemeral store).

    - `create=False` raises StoreFailure if the DB file does not exist.
    """
    return SQLiteKV(_open_connection(path, pragmas=pragmas, create=create))


__all__ = [
    "SQLiteKV",
    "SQLiteBatch",
    "open_sqlite_kv",
]
