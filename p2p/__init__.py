"""
peerdb P2P — package marker & lightweight public API.

Provides lazy re-exports for the persisted discovery record API so that
`import p2p` stays free of import-time side effects (PEP 562 __getattr__).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core import __version__

__all__ = [
    "__version__",
    # Lazy re-exports (see __getattr__)
    "Enr",
    "load_dht",
    "persist_dht",
    "clear_dht",
]

if TYPE_CHECKING:
    from .discovery.enr import Enr
    from .discovery.persisted_dht import clear_dht, load_dht, persist_dht

_LAZY = {
    "Enr": "p2p.discovery.enr",
    "load_dht": "p2p.discovery.persisted_dht",
    "persist_dht": "p2p.discovery.persisted_dht",
    "clear_dht": "p2p.discovery.persisted_dht",
}


def __getattr__(name: str):
    """Lazy attribute loader for selected public symbols."""
    modpath = _LAZY.get(name)
    if modpath is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib

    return getattr(importlib.import_module(modpath), name)
