from __future__ import annotations

"""
Store items
===========

A *store item* is a value type that knows its own logical column and how to
turn itself into bytes and back. `ItemStore` persists such items generically
over any `KV` backend:

    class PersistedThing:
        @classmethod
        def db_column(cls) -> DBColumn: return DBColumn.META
        def as_store_bytes(self) -> bytes: ...
        @classmethod
        def from_store_bytes(cls, data: bytes) -> "PersistedThing": ...

    store = ItemStore(open_kv("memory://"))
    store.put_item(b"k", thing)
    again = store.get_item(PersistedThing, b"k")

Error surface
-------------
- Backend failures propagate as `StoreFailure` (raised by the backend).
- Bytes that `from_store_bytes` rejects surface as `StoreDecodeError`, whose
  `cause` is the codec's own exception (usually `MalformedEncoding`), so
  callers can tell a broken disk apart from a broken blob.
"""

from typing import Optional, Protocol, Type, TypeVar, runtime_checkable

from ..errors import DeserializationError, StoreDecodeError
from .kv import KV, DBColumn

I = TypeVar("I", bound="StoreItem")


@runtime_checkable
class StoreItem(Protocol):
    @classmethod
    def db_column(cls) -> DBColumn: ...

    def as_store_bytes(self) -> bytes: ...

    @classmethod
    def from_store_bytes(cls: Type[I], data: bytes) -> I: ...


class ItemStore:
    """Typed get/put/delete of store items over a KV backend."""

    def __init__(self, kv: KV):
        self.kv = kv

    def get_item(self, cls: Type[I], key: bytes) -> Optional[I]:
        column = cls.db_column()
        raw = self.kv.get(column, key)
        if raw is None:
            return None
        try:
            return cls.from_store_bytes(raw)
        except DeserializationError as e:
            raise StoreDecodeError(
                f"cannot decode {cls.__name__}: {e.message}",
                cause=e,
                column=column,
                key=bytes(key),
            ) from e

    def has_item(self, cls: Type[StoreItem], key: bytes) -> bool:
        return self.kv.has(cls.db_column(), key)

    def put_item(self, key: bytes, item: StoreItem) -> None:
        self.kv.put(type(item).db_column(), key, item.as_store_bytes())

    def delete(self, cls: Type[StoreItem], key: bytes) -> None:
        self.kv.delete(cls.db_column(), key)


__all__ = ["StoreItem", "ItemStore"]
