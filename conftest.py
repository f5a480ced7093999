"""
Shared pytest fixtures:
- In-memory and on-disk column stores
- The EIP-778 example record (text form + parsed)
- A KV double whose every operation fails like a broken backend
- Root-logger isolation for tests that call core.logging.configure()
"""
from __future__ import annotations

import logging
from typing import Iterator, Optional, Tuple

import pytest

from core.db import ItemStore, open_kv
from core.db.kv import ColumnLike
from core.errors import StoreFailure

# Example record from EIP-778 (seq=1, id=v4, ip=127.0.0.1, udp=30303).
EXAMPLE_ENR_TEXT = (
    "enr:-IS4QHCYrYZbAKWCBRlAy5zzaDZXJBGkcnh4MHcBFZntXNFrdvJjX04jRzjzCBOonrkTfj499SZuOh8R33Ls8RRcy5wBgmlkgnY0gmlwhH8AAAGJc2VjcDI1NmsxoQPKY0yuDUmstAHYpMa2_oxVtw0RW_QAdpzBQA8yWM0xOIN1ZHCCdl8"
)


class FailingKV:
    """KV double: every call raises StoreFailure (or `exc`, when given)."""

    def __init__(self, exc: Optional[BaseException] = None):
        self.exc = exc
        self.calls = []

    def _fail(self, op: str, column: Optional[ColumnLike] = None):
        self.calls.append(op)
        if self.exc is not None:
            raise self.exc
        raise StoreFailure(f"backend unavailable during {op}", op=op)

    def get(self, column: ColumnLike, key: bytes) -> Optional[bytes]:
        self._fail("get", column)

    def has(self, column: ColumnLike, key: bytes) -> bool:
        self._fail("has", column)

    def iter_column(self, column: ColumnLike) -> Iterator[Tuple[bytes, bytes]]:
        self._fail("iter", column)

    def close(self) -> None:
        pass

    def put(self, column: ColumnLike, key: bytes, value: bytes) -> None:
        self._fail("put", column)

    def delete(self, column: ColumnLike, key: bytes) -> None:
        self._fail("delete", column)

    def batch(self):
        self._fail("batch")


@pytest.fixture
def kv():
    store = open_kv("memory://")
    yield store
    store.close()


@pytest.fixture
def item_store(kv) -> ItemStore:
    return ItemStore(kv)


@pytest.fixture
def sqlite_uri(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'peerdb.db'}"


@pytest.fixture
def failing_kv() -> FailingKV:
    return FailingKV()


@pytest.fixture
def example_enr_text() -> str:
    return EXAMPLE_ENR_TEXT


@pytest.fixture
def example_enr(example_enr_text):
    from p2p.discovery.enr import Enr

    return Enr.from_text(example_enr_text)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest left it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
