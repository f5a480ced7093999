from __future__ import annotations

"""
KV interface & logical columns
==============================

This module defines a backend-agnostic Key–Value interface partitioned into
logical *columns*. A column is an isolated key space: the same key written
under two columns names two unrelated values, and iterating one column never
yields rows of another.

- META     ("mta") : node metadata
- DHT_ENRS ("dht") : the persisted discovery record set (one row)

Backends (sqlite) implement this interface and the batch semantics.
This file is *pure interface + helpers* and contains no I/O.

Errors
------
Backends raise `core.errors.StoreFailure` for any engine-level failure
(I/O, locking, closed handle). Missing keys are not errors: `get` returns None
and `delete` is idempotent.

Batching
--------
`KV.batch()` returns a context manager. Use it to atomically put/delete:

>>> with kv.batch() as b:
...     b.put(DBColumn.META, b"a", b"1")
...     b.delete(DBColumn.DHT_ENRS, b"b")

Typing
------
We expose Protocols (PEP 544) so backends can be duck-typed.
"""

from enum import Enum
from typing import Iterator, Optional, Protocol, Tuple, Union, runtime_checkable


class DBColumn(str, Enum):
    """Logical columns. Values are short, stable tags persisted on disk."""

    META = "mta"
    DHT_ENRS = "dht"


ColumnLike = Union[DBColumn, str]


def column_tag(column: ColumnLike) -> str:
    """Normalize a column (enum member or raw tag) to its on-disk tag."""
    if isinstance(column, DBColumn):
        return column.value
    tag = str(column)
    if not tag:
        raise ValueError("column tag must be non-empty")
    return tag


# ---------------------------------------------------------------------------
# KV protocols & Batch
# ---------------------------------------------------------------------------


@runtime_checkable
class ReadOnlyKV(Protocol):
    """Minimal read-only KV surface."""

    def get(self, column: ColumnLike, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def has(self, column: ColumnLike, key: bytes) -> bool:
        """Return True if key exists in `column`."""
        ...

    def iter_column(self, column: ColumnLike) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate over (key, value) pairs of one column in byte-order of keys."""
        ...

    def close(self) -> None:
        """Close resources."""
        ...


@runtime_checkable
class Batch(Protocol):
    """
    A write-batch context manager. Backend guarantees atomicity when exiting
    the context without exception. If an exception escapes, the batch is rolled back.
    """

    def put(self, column: ColumnLike, key: bytes, value: bytes) -> None: ...
    def delete(self, column: ColumnLike, key: bytes) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(ReadOnlyKV, Protocol):
    """Full RW KV surface."""

    def put(self, column: ColumnLike, key: bytes, value: bytes) -> None:
        """Persist (key, value) under `column`. Overwrites if exists."""
        ...

    def delete(self, column: ColumnLike, key: bytes) -> None:
        """Remove key from `column` if present (idempotent)."""
        ...

    def batch(self) -> Batch:
        """Return a new write batch."""
        ...


__all__ = [
    "DBColumn",
    "ColumnLike",
    "column_tag",
    "ReadOnlyKV",
    "KV",
    "Batch",
]
