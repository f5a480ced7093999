"""
Discovery record list codec
===========================

Serializes an ordered sequence of ENRs as one RLP list whose items are the
records' own canonical encodings:

    rlp_list( enr_1.to_rlp() || enr_2.to_rlp() || ... )

No extra framing: each element's boundary comes from its own RLP prefix.

- `encode_enrs` is total and deterministic.
- `decode_enrs` is strict. Any structural or record-level problem fails the
  whole decode with `MalformedEncoding`; no partial list is ever returned.
  An empty input is the one lenient case and decodes to an empty list.
"""

from __future__ import annotations

from typing import Iterable, List

from core.encoding import rlp
from core.errors import MalformedEncoding, RecordInvalid

from .enr import Enr


def encode_enrs(enrs: Iterable[Enr]) -> bytes:
    return rlp.encode_list_raw(e.to_rlp() for e in enrs)


def decode_enrs(data: bytes) -> List[Enr]:
    if not data:
        return []
    try:
        cursor = rlp.Rlp(data)
    except rlp.DecodeError as e:
        raise MalformedEncoding(f"Failed to decode RLP: {e}", cause=e) from e

    enrs: List[Enr] = []
    while True:
        try:
            enr = cursor.get_next(Enr.from_rlp)
        except (rlp.DecodeError, RecordInvalid) as e:
            detail = e.message if isinstance(e, RecordInvalid) else str(e)
            raise MalformedEncoding(detail, cause=e, index=len(enrs)) from e
        if enr is None:
            break
        enrs.append(enr)
    return enrs


__all__ = ["encode_enrs", "decode_enrs"]
