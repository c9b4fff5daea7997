from __future__ import annotations

"""
SQLite-backed KV store
======================

A small embedded KV using SQLite (BLOB keys & values), implementing the
`KV` / `ReadOnlyKV` / `Batch` protocols from `multisig.db.kv`.

- Table schema: kv(k BLOB PRIMARY KEY, v BLOB NOT NULL)
- Keys/values are raw bytes; ordering is lexicographic (memcmp).
- Prefix scans use a bounded range [prefix, prefix_hi) plus a guard on
  `substr(k, 1, len(prefix)) = prefix`.
- Every `sqlite3.Error` surfaces as `multisig.errors.StorageError`.

Threading:
- `check_same_thread=False`; the governance engine serializes calls with its
  own lock. A batch runs inside one `BEGIN IMMEDIATE` transaction on the shared
  connection, so reads made while the batch is open see its pending writes.
"""

import os
import sqlite3
from typing import Iterator, List, Optional, Tuple, Union

from ..errors import StorageError
from .kv import KV, Batch

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "FULL",
    "temp_store": "MEMORY",
    "foreign_keys": "OFF",
}

_UPSERT = "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v"


def _exec(conn: sqlite3.Connection, sql: str, args: tuple = ()) -> sqlite3.Cursor:
    try:
        return conn.execute(sql, args)
    except sqlite3.Error as e:
        verb = sql.split(None, 1)[0].upper()
        raise StorageError(f"sqlite {verb} failed: {e}", op=verb).with_cause(e) from e


def _fetchall(conn: sqlite3.Connection, sql: str, args: tuple = ()) -> List[tuple]:
    cur = _exec(conn, sql, args)
    try:
        return cur.fetchall()
    finally:
        cur.close()


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    for name in ("journal_mode", "synchronous", "temp_store", "foreign_keys"):
        _fetchall(conn, "PRAGMA %s=%s" % (name, p[name]))


def _migrate(conn: sqlite3.Connection) -> None:
    _exec(
        conn,
        """
        CREATE TABLE IF NOT EXISTS kv (
            k BLOB PRIMARY KEY,
            v BLOB NOT NULL
        )
        """,
    )


def _prefix_hi(prefix: bytes) -> Optional[bytes]:
    """
    Smallest byte string strictly greater than every key starting with `prefix`,
    or None if no such value exists (prefix is all 0xFF).

    Example: b"ab\\x01" -> b"ab\\x02"; b"\\xff\\xff" -> None
    """
    if not prefix:
        return None
    p = bytearray(prefix)
    for i in range(len(p) - 1, -1, -1):
        if p[i] != 0xFF:
            p[i] += 1
            del p[i + 1 :]
            return bytes(p)
    return None


class SQLiteBatch(Batch):
    __slots__ = ("_conn", "_open")

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._open:
            raise RuntimeError("batch already open (nested batches not supported)")
        _exec(self._conn, "BEGIN IMMEDIATE")
        self._open = True
        return self

    def put(self, key: bytes, value: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        _exec(self._conn, _UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        _exec(self._conn, "DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def commit(self) -> None:
        if not self._open:
            return
        _exec(self._conn, "COMMIT")
        self._open = False

    def rollback(self) -> None:
        if not self._open:
            return
        _exec(self._conn, "ROLLBACK")
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
    path: Union[str, "os.PathLike[str]"],
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> sqlite3.Connection:
    path_str = str(path)
    if path_str != ":memory:":
        if not create and not os.path.exists(path_str):
            raise FileNotFoundError(f"SQLite KV not found at {path_str}")
        if create:
            os.makedirs(os.path.dirname(os.path.abspath(path_str)), exist_ok=True)

    try:
        conn = sqlite3.connect(
            path_str,
            detect_types=0,
            isolation_level=None,      # autocommit; batches BEGIN explicitly
            check_same_thread=False,
        )
    except sqlite3.Error as e:
        raise StorageError(f"cannot open sqlite db: {e}", path=path_str).with_cause(e) from e
    _apply_pragmas(conn, pragmas)
    _migrate(conn)
    return conn


class SQLiteKV(KV):
    """
    SQLite-backed KV. Use `open_sqlite_kv(path)` to construct.
    """

    __slots__ = ("_conn", "_path")

    def __init__(self, conn: sqlite3.Connection, path: str = ":memory:") -> None:
        self._conn = conn
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    # --- ReadOnlyKV ---

    def get(self, key: bytes) -> Optional[bytes]:
        rows = _fetchall(self._conn, "SELECT v FROM kv WHERE k = ?", (memoryview(key),))
        return bytes(rows[0][0]) if rows else None

    def has(self, key: bytes) -> bool:
        rows = _fetchall(self._conn, "SELECT 1 FROM kv WHERE k = ? LIMIT 1", (memoryview(key),))
        return bool(rows)

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        hi = _prefix_hi(prefix)
        if hi is not None:
            sql = (
                "SELECT k, v FROM kv "
                "WHERE k >= ? AND k < ? AND substr(k,1,?) = ? "
                "ORDER BY k"
            )
            args: tuple = (memoryview(prefix), memoryview(hi), len(prefix), memoryview(prefix))
        else:
            sql = "SELECT k, v FROM kv WHERE substr(k,1,?) = ? ORDER BY k"
            args = (len(prefix), memoryview(prefix))

        # Materialized so callers may write while iterating.
        for k, v in _fetchall(self._conn, sql, args):
            yield bytes(k), bytes(v)

    def close(self) -> None:
        self._conn.close()

    # --- KV ---

    def put(self, key: bytes, value: bytes) -> None:
        _exec(self._conn, _UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        _exec(self._conn, "DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def batch(self) -> Batch:
        return SQLiteBatch(self._conn)


def open_sqlite_kv(
    path: Union[str, "os.PathLike[str]"],
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> SQLiteKV:
    """
    Open (or create) a SQLite KV at `path` (":memory:" for a private in-memory DB).

    `create=False` raises FileNotFoundError if the DB file does not exist.
    """
    conn = _open_connection(path, pragmas=pragmas, create=create)
    return SQLiteKV(conn, str(path))


__all__ = [
    "SQLiteKV",
    "SQLiteBatch",
    "open_sqlite_kv",
]
