"""
p2p.discovery
=============

Discovery records and their persistence:

- enr            : EIP-778 node records (`Enr`).
- dht_codec      : RLP list codec for record sets.
- persisted_dht  : load / persist / clear the node's record set in the store.

This package only provides a lazy import shim so that importing `p2p`
doesn't pull `cryptography` until a record is actually used.
"""

from __future__ import annotations

import importlib
from types import ModuleType
from typing import Dict

__all__ = ["enr", "dht_codec", "persisted_dht"]

# Lazy module map (attribute → module path)
_modules: Dict[str, str] = {
    "enr": "p2p.discovery.enr",
    "dht_codec": "p2p.discovery.dht_codec",
    "persisted_dht": "p2p.discovery.persisted_dht",
}


def __getattr__(name: str) -> ModuleType:
    """Lazily import submodules on first access."""
    modpath = _modules.get(name)
    if modpath is None:
        raise AttributeError(f"module 'p2p.discovery' has no attribute {name!r}")
    module = importlib.import_module(modpath)
    globals()[name] = module  # cache for subsequent lookups
    return module
