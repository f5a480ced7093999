"""
Property tests for the discovery record list codec.

Goals:
- decode(encode(xs)) == xs for arbitrary record sequences (order and
  duplicates preserved), and encoding is deterministic.
- Any strict prefix of a non-empty encoding fails with MalformedEncoding;
  decoding never hands back a partial list.
- Bytes appended after a valid encoding are rejected.
- A single corrupted byte either fails with MalformedEncoding or still
  decodes to records that re-encode to exactly the corrupted bytes.
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from core.errors import MalformedEncoding
from p2p.discovery.dht_codec import decode_enrs, encode_enrs
from p2p.discovery.enr import Enr

# ---- Strategies ---------------------------------------------------------------

_uint16 = st.integers(min_value=0, max_value=0xFFFF)


@st.composite
def enrs(draw) -> Enr:
    pairs = {
        "id": "v4",
        "ip": draw(st.binary(min_size=4, max_size=4)),
        "udp": draw(_uint16),
    }
    if draw(st.booleans()):
        pairs["tcp"] = draw(_uint16)
    if draw(st.booleans()):
        pairs["secp256k1"] = draw(st.binary(min_size=33, max_size=33))
    return Enr.from_pairs(
        draw(st.integers(min_value=0, max_value=2**64 - 1)),
        pairs,
        signature=draw(st.binary(min_size=64, max_size=64)),
    )


enr_lists = st.lists(enrs(), max_size=8)


# ---- Properties -----------------------------------------------------------------

@settings(max_examples=150, deadline=None)
@given(enr_lists)
def test_roundtrip_preserves_order(xs):
    data = encode_enrs(xs)
    assert decode_enrs(data) == xs
    assert encode_enrs(decode_enrs(data)) == data


@settings(max_examples=50, deadline=None)
@given(enrs(), st.integers(min_value=2, max_value=4))
def test_duplicates_survive(enr, n):
    assert decode_enrs(encode_enrs([enr] * n)) == [enr] * n


@settings(max_examples=150, deadline=None)
@given(st.lists(enrs(), min_size=1, max_size=4), st.data())
def test_truncation_always_fails(xs, data):
    blob = encode_enrs(xs)
    cut = data.draw(st.integers(min_value=1, max_value=len(blob) - 1))
    with pytest.raises(MalformedEncoding):
        decode_enrs(blob[:cut])


@settings(max_examples=100, deadline=None)
@given(enr_lists, st.binary(min_size=1, max_size=16))
def test_trailing_bytes_fail(xs, tail):
    with pytest.raises(MalformedEncoding):
        decode_enrs(encode_enrs(xs) + tail)


@settings(max_examples=300, deadline=None)
@given(st.binary(max_size=512))
def test_arbitrary_bytes_decode_or_raise_malformed(blob):
    try:
        out = decode_enrs(blob)
    except MalformedEncoding:
        return
    # anything accepted must be a canonical encoding of what came back
    assert encode_enrs(out) == blob or blob == b""


@settings(max_examples=300, deadline=None)
@given(st.lists(enrs(), min_size=1, max_size=3), st.data())
def test_single_byte_corruption_is_rejected_or_canonical(xs, data):
    blob = bytearray(encode_enrs(xs))
    pos = data.draw(st.integers(min_value=0, max_value=len(blob) - 1))
    value = data.draw(st.integers(min_value=0, max_value=255).filter(lambda b: b != blob[pos]))
    blob[pos] = value
    mutated = bytes(blob)
    try:
        out = decode_enrs(mutated)
    except MalformedEncoding:
        return
    # payload bytes (signature, values) may change freely; framing may not
    assert encode_enrs(out) == mutated
