"""
core.encoding
=============

Public, stable encoding surface:

- rlp.py: canonical RLP dumps/loads plus a list cursor (`Rlp`) used to walk
  persisted record lists element by element.

This package intentionally keeps a *very* small public API.
"""

from __future__ import annotations

from .rlp import DecodeError as RLPDecodeError
from .rlp import EncodeError as RLPEncodeError
from .rlp import Rlp
from .rlp import dumps as rlp_dumps
from .rlp import encode_list_raw as rlp_encode_list_raw
from .rlp import loads as rlp_loads

__all__ = [
    "Rlp",
    "RLPDecodeError",
    "RLPEncodeError",
    "rlp_dumps",
    "rlp_loads",
    "rlp_encode_list_raw",
]
