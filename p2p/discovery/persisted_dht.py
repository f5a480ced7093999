"""
Persisted DHT records
=====================

Keeps the node's known discovery records (ENRs) across restarts as one blob in
the `DHT_ENRS` column, under a single all-zero 32-byte key. The column already
isolates this data, so there is exactly one persisted set per store.

    store = open_item_store(cfg.db.uri)
    enrs = load_dht(store)            # [] when nothing usable is stored
    persist_dht(store, enrs)          # StoreFailure on backend errors
    clear_dht(store)                  # idempotent

`load_dht` never raises: the set is a cache that the network can rebuild, so a
missing, unreadable or corrupt blob degrades to an empty list (and a warning in
the log). `persist_dht` and `clear_dht` pass store errors through untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from core.db.kv import KV, DBColumn
from core.db.store_item import ItemStore
from core.errors import PeerDBError

from .dht_codec import decode_enrs, encode_enrs
from .enr import Enr

_LOG = logging.getLogger("p2p.discovery.persisted_dht")

# All zero because the record set has its own column.
DHT_DB_KEY = bytes(32)

StoreLike = Union[ItemStore, KV]


@dataclass(frozen=True)
class PersistedDht:
    """Store item wrapping the record set."""

    enrs: Tuple[Enr, ...] = ()

    @classmethod
    def db_column(cls) -> DBColumn:
        return DBColumn.DHT_ENRS

    def as_store_bytes(self) -> bytes:
        return encode_enrs(self.enrs)

    @classmethod
    def from_store_bytes(cls, data: bytes) -> "PersistedDht":
        return cls(tuple(decode_enrs(data)))


def _items(store: StoreLike) -> ItemStore:
    return store if isinstance(store, ItemStore) else ItemStore(store)


def load_dht(store: StoreLike) -> List[Enr]:
    """Load the persisted record set; any failure yields an empty list."""
    try:
        item = _items(store).get_item(PersistedDht, DHT_DB_KEY)
    except PeerDBError as e:
        _LOG.warning("discarding persisted DHT records: %s", e, extra={"err_code": e.code_str})
        return []
    except Exception as e:  # third-party KV backends raise their own types
        _LOG.warning("discarding persisted DHT records: %r", e)
        return []
    if item is None:
        return []
    _LOG.debug("loaded %d persisted DHT records", len(item.enrs))
    return list(item.enrs)


def persist_dht(store: StoreLike, enrs: Iterable[Enr]) -> None:
    """Overwrite the persisted record set. Raises StoreFailure on backend errors."""
    item = PersistedDht(tuple(enrs))
    _items(store).put_item(DHT_DB_KEY, item)
    _LOG.debug("persisted %d DHT records", len(item.enrs))


def clear_dht(store: StoreLike) -> None:
    """Remove the persisted record set. Absence is not an error."""
    _items(store).delete(PersistedDht, DHT_DB_KEY)


__all__ = [
    "DHT_DB_KEY",
    "PersistedDht",
    "load_dht",
    "persist_dht",
    "clear_dht",
]
