from __future__ import annotations

"""
core.db
=======

Thin facade for key–value database backends.

Backends
--------
- SQLite (always available)

URIs
----
- "sqlite:///path/to/peerdb.db"    → SQLite file
- "sqlite:///:memory:"             → in-memory SQLite (tests)
- "memory://"                      → alias of "sqlite:///:memory:"
- Bare path ending in ".db"        → SQLite file

API
---
- open_kv(uri: str, create: bool = True) -> KV
- open_item_store(uri: str, create: bool = True) -> ItemStore

The typed KV interface is defined in core.db.kv, typed items in
core.db.store_item. This module only handles backend selection and re-exports.

Example
-------
>>> from core.db import open_kv, DBColumn
>>> kv = open_kv("memory://")
>>> kv.put(DBColumn.META, b"key", b"hello")
>>> kv.get(DBColumn.META, b"key")
b'hello'
"""

from typing import Tuple

from ..errors import ConfigError
from . import sqlite as _sqlite_backend
from .kv import KV, Batch, ColumnLike, DBColumn, ReadOnlyKV
from .store_item import ItemStore, StoreItem


def _parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path_or_spec).

    Returns:
        ("sqlite", path) or ("memory", "")
    """
    u = uri.strip()
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if u.startswith("memory://"):
        return ("memory", "")
    if "://" not in u and u.endswith(".db"):
        return ("sqlite", u)
    raise ConfigError("unsupported DB URI", uri=uri)


def open_kv(uri: str, create: bool = True) -> KV:
    """
    Open a KV database by URI. See module docstring for supported forms.

    Raises:
        ConfigError for unsupported URIs.
        StoreFailure if the backend cannot be opened.
    """
    backend, spec = _parse_uri(uri)
    if backend == "memory" or spec in ("", ":memory:"):
        return _sqlite_backend.open_sqlite_kv(":memory:")
    return _sqlite_backend.open_sqlite_kv(spec, create=create)


def open_item_store(uri: str, create: bool = True) -> ItemStore:
    """open_kv() wrapped in an ItemStore."""
    return ItemStore(open_kv(uri, create=create))


__all__ = [
    # interfaces
    "KV",
    "ReadOnlyKV",
    "Batch",
    "ColumnLike",
    "DBColumn",
    "StoreItem",
    "ItemStore",
    # helpers
    "open_kv",
    "open_item_store",
]
