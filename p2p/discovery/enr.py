"""
p2p.discovery.enr — Ethereum Node Records (EIP-778)
===================================================

An ENR advertises a node's identity and endpoints. Its canonical encoding is
the RLP list

    [signature, seq, k1, v1, k2, v2, ...]

with keys sorted bytewise and unique, at most 300 bytes in total. The textual
form is ``"enr:" + base64url(rlp)`` without padding.

This module models the record as an immutable value:

- equality and hashing are over the canonical encoded bytes;
- `from_rlp` / `to_rlp` convert to and from one RLP item;
- `from_text` / `to_text` handle the ``enr:`` form;
- typed accessors decode the well-known keys (id, ip, tcp, udp, secp256k1, ...).

Only structure is validated. Signature checks belong to the identity scheme
and are not performed here.

Example
-------
>>> r = Enr.from_text("enr:-IS4QHCYrYZbAKWCBRlAy5zzaDZXJBGkcnh4MHcBFZntXNFrdvJjX04jRzjzCBOonrkTfj499SZuOh8R33Ls8RRcy5wBgmlkgnY0gmlwhH8AAAGJc2VjcDI1NmsxoQPKY0yuDUmstAHYpMa2_oxVtw0RW_QAdpzBQA8yWM0xOIN1ZHCCdl8")
>>> r.seq, str(r.ip), r.udp
(1, '127.0.0.1', 30303)
"""

from __future__ import annotations

import base64
import binascii
import ipaddress
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from cryptography.hazmat.primitives.asymmetric import ec

from core.encoding import rlp
from core.errors import RecordInvalid

MAX_RECORD_SIZE = 300
SIGNATURE_SIZE_V4 = 64
TEXT_PREFIX = "enr:"
_B64URL_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")

KeyLike = Union[bytes, str]
Value = Union[bytes, Tuple[Any, ...]]


def _key(k: KeyLike) -> bytes:
    return k.encode("ascii") if isinstance(k, str) else bytes(k)


def _freeze(v: Any) -> Value:
    # Decoded list values become tuples so records stay hashable/immutable.
    if isinstance(v, list):
        return tuple(_freeze(x) for x in v)
    return v


class Enr:
    """Immutable EIP-778 node record."""

    __slots__ = ("_signature", "_seq", "_pairs", "_raw")

    def __init__(self, signature: bytes, seq: int, pairs: Tuple[Tuple[bytes, Value], ...], raw: bytes):
        self._signature = signature
        self._seq = seq
        self._pairs = pairs
        self._raw = raw

    # ------------------------------------------------------------------ #
    # Constructors
    # ------------------------------------------------------------------ #

    @classmethod
    def from_rlp(cls, raw: bytes) -> "Enr":
        """Parse one RLP item. Raises RecordInvalid on any structural problem."""
        raw = bytes(raw)
        if len(raw) > MAX_RECORD_SIZE:
            raise RecordInvalid("record exceeds maximum size", size=len(raw), limit=MAX_RECORD_SIZE)
        try:
            items = rlp.loads(raw)
        except rlp.DecodeError as e:
            raise RecordInvalid(f"invalid record RLP: {e}", cause=e) from e
        if not isinstance(items, list):
            raise RecordInvalid("record must be an RLP list")
        if len(items) < 2 or len(items) % 2:
            raise RecordInvalid("record must be [signature, seq, k, v, ...]", items=len(items))

        signature, seq_raw = items[0], items[1]
        if not isinstance(signature, bytes):
            raise RecordInvalid("signature must be a byte string")
        if not isinstance(seq_raw, bytes) or len(seq_raw) > 8:
            raise RecordInvalid("seq must be a uint64")
        try:
            seq = rlp.decode_uint(seq_raw)
        except rlp.DecodeError as e:
            raise RecordInvalid(f"invalid seq: {e}", cause=e) from e

        pairs = []
        prev: Optional[bytes] = None
        for i in range(2, len(items), 2):
            k = items[i]
            if not isinstance(k, bytes):
                raise RecordInvalid("record keys must be byte strings")
            if prev is not None and k <= prev:
                raise RecordInvalid("record keys must be sorted and unique", key=k)
            prev = k
            pairs.append((k, _freeze(items[i + 1])))
        return cls(signature, seq, tuple(pairs), raw)

    @classmethod
    def from_text(cls, text: str) -> "Enr":
        """Parse the ``enr:<base64url>`` form."""
        s = text.strip()
        if not s.startswith(TEXT_PREFIX):
            raise RecordInvalid("record text must start with 'enr:'")
        body = s[len(TEXT_PREFIX):]
        if not body or not set(body) <= _B64URL_ALPHABET:
            raise RecordInvalid("record text is not unpadded base64url")
        try:
            raw = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
        except (binascii.Error, ValueError) as e:
            raise RecordInvalid(f"invalid base64 in record text: {e}", cause=e) from e
        return cls.from_rlp(raw)

    @classmethod
    def from_pairs(cls, seq: int, pairs: Mapping[KeyLike, Any], signature: bytes = b"\x00" * SIGNATURE_SIZE_V4) -> "Enr":
        """
        Assemble a record from key/value pairs (ints, bytes, str or lists).
        The signature is taken as given; nothing is signed here.
        """
        items: list = [signature, seq]
        for k, v in sorted(((_key(k), v) for k, v in pairs.items()), key=lambda kv: kv[0]):
            items.extend((k, v))
        return cls.from_rlp(rlp.dumps(items))

    # ------------------------------------------------------------------ #
    # Encoding
    # ------------------------------------------------------------------ #

    def to_rlp(self) -> bytes:
        return self._raw

    def to_text(self) -> str:
        return TEXT_PREFIX + base64.urlsafe_b64encode(self._raw).rstrip(b"=").decode("ascii")

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def signature(self) -> bytes:
        return self._signature

    @property
    def seq(self) -> int:
        return self._seq

    def keys(self) -> Iterator[bytes]:
        return (k for k, _ in self._pairs)

    def get(self, key: KeyLike) -> Optional[Value]:
        kb = _key(key)
        for k, v in self._pairs:
            if k == kb:
                return v
        return None

    def __contains__(self, key: KeyLike) -> bool:
        return self.get(key) is not None

    def _uint(self, key: str) -> Optional[int]:
        v = self.get(key)
        if not isinstance(v, bytes):
            return None
        try:
            return rlp.decode_uint(v)
        except rlp.DecodeError:
            return None

    @property
    def id(self) -> Optional[str]:
        v = self.get("id")
        return v.decode("ascii", "replace") if isinstance(v, bytes) else None

    @property
    def ip(self) -> Optional[ipaddress.IPv4Address]:
        v = self.get("ip")
        return ipaddress.IPv4Address(v) if isinstance(v, bytes) and len(v) == 4 else None

    @property
    def ip6(self) -> Optional[ipaddress.IPv6Address]:
        v = self.get("ip6")
        return ipaddress.IPv6Address(v) if isinstance(v, bytes) and len(v) == 16 else None

    @property
    def tcp(self) -> Optional[int]:
        return self._uint("tcp")

    @property
    def udp(self) -> Optional[int]:
        return self._uint("udp")

    @property
    def tcp6(self) -> Optional[int]:
        return self._uint("tcp6")

    @property
    def udp6(self) -> Optional[int]:
        return self._uint("udp6")

    @property
    def public_key_bytes(self) -> Optional[bytes]:
        v = self.get("secp256k1")
        return v if isinstance(v, bytes) else None

    def public_key(self) -> ec.EllipticCurvePublicKey:
        """The compressed secp256k1 key as a `cryptography` public key object."""
        raw = self.public_key_bytes
        if raw is None:
            raise RecordInvalid("record has no secp256k1 key")
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
        except ValueError as e:
            raise RecordInvalid(f"invalid secp256k1 key: {e}", cause=e) from e

    def summary(self) -> Dict[str, Any]:
        """JSON-friendly view for logs and the CLI."""
        return {
            "seq": self.seq,
            "id": self.id,
            "ip": str(self.ip) if self.ip else None,
            "tcp": self.tcp,
            "udp": self.udp,
            "secp256k1": self.public_key_bytes.hex() if self.public_key_bytes else None,
            "enr": self.to_text(),
        }

    # ------------------------------------------------------------------ #
    # Value semantics
    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Enr):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        parts = [f"seq={self.seq}"]
        if self.id:
            parts.append(f"id={self.id}")
        if self.ip:
            parts.append(f"ip={self.ip}")
        if self.udp is not None:
            parts.append(f"udp={self.udp}")
        if self.tcp is not None:
            parts.append(f"tcp={self.tcp}")
        return f"Enr({', '.join(parts)})"


__all__ = ["Enr", "MAX_RECORD_SIZE"]
