"""
peerdb P2P CLI
--------------
Entry points for operator tooling.

  - dht : show / add / clear the persisted discovery record set.

Usage:
  python -m p2p.cli.dht --help
  peerdb-dht show --json          (console script)
"""
from __future__ import annotations

from .dht import main

__all__ = ["main"]
