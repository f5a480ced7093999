from __future__ import annotations

"""
Canonical RLP codec (strict)
----------------------------

A small, dependency-free encoder/decoder for Recursive Length Prefix, the
serialization used by Ethereum node records and by the persisted discovery
record list.

Supported Python types (encode):
- bytes / bytearray / memoryview   -> string item
- str                              -> string item (UTF-8)
- int (non-negative)               -> minimal big-endian string, 0 -> b""
- list / tuple of the above        -> list item

Decoding returns `bytes` for string items and `list` for list items; integers
are recovered with `decode_uint`. The decoder only accepts canonical input:

- a single byte < 0x80 must not carry a string prefix
- long-form lengths must be >= 56 and must not have leading zero bytes
- no trailing bytes after the top-level item

Prefix layout:

    0x00..0x7f   single byte, itself
    0x80..0xb7   string, length 0..55 in the prefix
    0xb8..0xbf   string, length-of-length 1..8 follows
    0xc0..0xf7   list, payload length 0..55 in the prefix
    0xf8..0xff   list, length-of-length 1..8 follows

Public API:
- dumps(obj) -> bytes
- loads(b: bytes) -> bytes | list
- encode_list_raw(items) -> bytes
- decode_uint(b) -> int
- decode_header(buf, pos) -> Header
- Rlp(data): cursor over the elements of one list
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

STRING_OFFSET = 0x80
LIST_OFFSET = 0xC0
SHORT_LIMIT = 55

BytesLike = Union[bytes, bytearray, memoryview]
T = TypeVar("T")


class EncodeError(TypeError):
    pass


class DecodeError(ValueError):
    pass


# ------------------------
# Encoder
# ------------------------

def _uint_to_bytes(n: int) -> bytes:
    if n == 0:
        return b""
    return n.to_bytes((n.bit_length() + 7) // 8, "big")


def encode_length(length: int, offset: int) -> bytes:
    """Prefix for a payload of `length` bytes (offset 0x80 strings, 0xc0 lists)."""
    if length <= SHORT_LIMIT:
        return bytes([offset + length])
    len_bytes = _uint_to_bytes(length)
    if len(len_bytes) > 8:
        raise EncodeError("payload too long for RLP")
    return bytes([offset + SHORT_LIMIT + len(len_bytes)]) + len_bytes


def _encode_string(b: bytes) -> bytes:
    if len(b) == 1 and b[0] < STRING_OFFSET:
        return b
    return encode_length(len(b), STRING_OFFSET) + b


def _encode_obj(obj: Any) -> bytes:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return _encode_string(bytes(obj))
    if isinstance(obj, bool):
        # bool is an int subclass; refuse it rather than guess 0/1
        raise EncodeError("bool is not an RLP type")
    if isinstance(obj, int):
        if obj < 0:
            raise EncodeError("negative integers are not representable in RLP")
        return _encode_string(_uint_to_bytes(obj))
    if isinstance(obj, str):
        return _encode_string(obj.encode("utf-8", "strict"))
    if isinstance(obj, (list, tuple)):
        return encode_list_raw(_encode_obj(x) for x in obj)
    raise EncodeError(f"unsupported type for RLP: {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    """Encode `obj` to canonical RLP bytes."""
    return _encode_obj(obj)


def encode_list_raw(items: Iterable[BytesLike]) -> bytes:
    """
    Wrap already-encoded items into one list item. The caller guarantees that
    each element is a complete RLP item.
    """
    payload = b"".join(bytes(it) for it in items)
    return encode_length(len(payload), LIST_OFFSET) + payload


# ------------------------
# Decoder
# ------------------------

@dataclass(frozen=True)
class Header:
    """Location of one item inside a buffer."""

    is_list: bool
    start: int  # offset of the prefix byte
    payload_offset: int
    payload_length: int

    @property
    def end(self) -> int:
        return self.payload_offset + self.payload_length


def _read_long_length(buf: BytesLike, pos: int, len_of_len: int) -> int:
    n = len(buf)
    if pos + len_of_len > n:
        raise DecodeError("input too short for length prefix")
    raw = bytes(buf[pos:pos + len_of_len])
    if raw[0] == 0:
        raise DecodeError("length prefix has leading zero bytes")
    length = int.from_bytes(raw, "big")
    if length <= SHORT_LIMIT:
        raise DecodeError("long-form length used for a short payload")
    return length


def decode_header(buf: BytesLike, pos: int = 0) -> Header:
    """Parse the prefix at `pos` and check that the full item fits in `buf`."""
    n = len(buf)
    if pos >= n:
        raise DecodeError("input too short")
    b0 = buf[pos]

    if b0 < STRING_OFFSET:
        return Header(False, pos, pos, 1)

    if b0 <= STRING_OFFSET + SHORT_LIMIT:
        is_list, length, offset = False, b0 - STRING_OFFSET, pos + 1
    elif b0 < LIST_OFFSET:
        len_of_len = b0 - STRING_OFFSET - SHORT_LIMIT
        length = _read_long_length(buf, pos + 1, len_of_len)
        is_list, offset = False, pos + 1 + len_of_len
    elif b0 <= LIST_OFFSET + SHORT_LIMIT:
        is_list, length, offset = True, b0 - LIST_OFFSET, pos + 1
    else:
        len_of_len = b0 - LIST_OFFSET - SHORT_LIMIT
        length = _read_long_length(buf, pos + 1, len_of_len)
        is_list, offset = True, pos + 1 + len_of_len

    if offset + length > n:
        raise DecodeError(
            f"item overruns input: need {offset + length - pos} bytes, have {n - pos}"
        )
    if not is_list and length == 1 and buf[offset] < STRING_OFFSET:
        raise DecodeError("single byte below 0x80 must not carry a string prefix")
    return Header(is_list, pos, offset, length)


def _decode_at(buf: bytes, pos: int, limit: int) -> Tuple[Any, int]:
    h = decode_header(buf, pos)
    if h.end > limit:
        raise DecodeError("item overruns enclosing list")
    if not h.is_list:
        return buf[h.payload_offset:h.end], h.end
    out: List[Any] = []
    cur = h.payload_offset
    while cur < h.end:
        item, cur = _decode_at(buf, cur, h.end)
        out.append(item)
    return out, h.end


def loads(data: BytesLike) -> Any:
    """
    Decode exactly one canonical RLP item. Raises DecodeError on truncation,
    non-canonical prefixes or trailing bytes.
    """
    buf = bytes(data)
    obj, end = _decode_at(buf, 0, len(buf))
    if end != len(buf):
        raise DecodeError("trailing bytes after RLP item")
    return obj


def decode_uint(b: BytesLike) -> int:
    """Decode a string item payload as an unsigned big-endian integer."""
    raw = bytes(b)
    if raw[:1] == b"\x00":
        raise DecodeError("integer has leading zero bytes")
    return int.from_bytes(raw, "big")


class Rlp:
    """
    Cursor over the elements of a single top-level RLP list.

    >>> cur = Rlp(dumps([b"a", b"bc"]))
    >>> cur.get_next_raw(), cur.get_next_raw(), cur.get_next_raw()
    (b'a', b'\\x82bc', None)
    """

    __slots__ = ("_buf", "_pos", "_end")

    def __init__(self, data: BytesLike) -> None:
        buf = bytes(data)
        h = decode_header(buf, 0)
        if not h.is_list:
            raise DecodeError("expected an RLP list, found a string")
        if h.end != len(buf):
            raise DecodeError("trailing bytes after RLP list")
        self._buf = buf
        self._pos = h.payload_offset
        self._end = h.end

    def get_next_raw(self) -> Optional[bytes]:
        """Return the full encoding of the next element, or None when exhausted."""
        if self._pos >= self._end:
            return None
        h = decode_header(self._buf, self._pos)
        if h.end > self._end:
            raise DecodeError("list element overruns list payload")
        raw = self._buf[self._pos:h.end]
        self._pos = h.end
        return raw

    def get_next(self, decoder: Callable[[bytes], T]) -> Optional[T]:
        """Decode the next element with `decoder`; None when the list is exhausted."""
        raw = self.get_next_raw()
        if raw is None:
            return None
        return decoder(raw)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            raw = self.get_next_raw()
            if raw is None:
                return
            yield raw


__all__ = [
    "EncodeError",
    "DecodeError",
    "Header",
    "Rlp",
    "dumps",
    "loads",
    "encode_length",
    "encode_list_raw",
    "decode_header",
    "decode_uint",
]
