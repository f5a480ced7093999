"""
peerdb core package.

The substrate the discovery layer builds on: structured errors, logging,
configuration, the RLP codec and the column-partitioned key-value store.

Only re-exports the version here to keep import-time side effects near zero.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version as _pkg_version

    __version__ = _pkg_version("peerdb")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0+local"


def get_version() -> str:
    """Return the version string for this package."""
    return __version__


__all__ = ["__version__", "get_version"]
