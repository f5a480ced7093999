"""
Node record (EIP-778) tests

Goals:
- The example record from EIP-778 parses with the documented field values.
- Text and RLP forms are stable: re-encoding a parsed record yields the
  exact input.
- Structural violations (size, shape, key order, seq width, bad text) raise
  RecordInvalid.
"""
from __future__ import annotations

import ipaddress

import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from core.encoding import rlp
from core.errors import ErrorCode, RecordInvalid
from p2p.discovery.enr import MAX_RECORD_SIZE, Enr

SECP256K1_HEX = "03ca634cae0d49acb401d8a4c6b6fe8c55b70d115bf400769cc1400f3258cd3138"
SIG = b"\x11" * 64


def test_example_record_fields(example_enr):
    assert example_enr.seq == 1
    assert example_enr.id == "v4"
    assert example_enr.ip == ipaddress.IPv4Address("127.0.0.1")
    assert example_enr.udp == 30303
    assert example_enr.tcp is None
    assert example_enr.ip6 is None
    assert example_enr.public_key_bytes.hex() == SECP256K1_HEX
    assert list(example_enr.keys()) == [b"id", b"ip", b"secp256k1", b"udp"]
    assert len(example_enr.signature) == 64


def test_example_record_encodings_are_stable(example_enr, example_enr_text):
    raw = example_enr.to_rlp()
    assert len(raw) == 134
    assert raw[:3] == bytes.fromhex("f884b8")
    assert example_enr.to_text() == example_enr_text
    assert Enr.from_rlp(raw) == example_enr
    assert hash(Enr.from_rlp(raw)) == hash(example_enr)


def test_text_form_tolerates_surrounding_whitespace(example_enr, example_enr_text):
    assert Enr.from_text(f"  {example_enr_text}\n") == example_enr


def test_public_key_is_a_secp256k1_point(example_enr):
    pk = example_enr.public_key()
    assert isinstance(pk, ec.EllipticCurvePublicKey)
    assert pk.curve.name == "secp256k1"
    assert pk.public_bytes(Encoding.X962, PublicFormat.CompressedPoint).hex() == SECP256K1_HEX


def test_public_key_missing_or_invalid():
    with pytest.raises(RecordInvalid):
        Enr.from_pairs(1, {"id": "v4"}).public_key()
    with pytest.raises(RecordInvalid):
        Enr.from_pairs(1, {"secp256k1": b"\x02" + b"\xff" * 32}).public_key()


def test_from_pairs_sorts_keys_and_decodes_ports():
    r = Enr.from_pairs(7, {"udp": 9000, "tcp": 9001, "id": "v4", "ip": bytes([10, 0, 0, 1])}, signature=SIG)
    assert list(r.keys()) == [b"id", b"ip", b"tcp", b"udp"]
    assert (r.seq, r.tcp, r.udp, str(r.ip)) == (7, 9001, 9000, "10.0.0.1")
    assert r.signature == SIG
    assert "tcp" in r and "ip6" not in r


def test_ip6_and_list_values():
    r = Enr.from_pairs(2, {"ip6": ipaddress.IPv6Address("::1").packed, "eth": [[b"\x01\x02", 0]]})
    assert r.ip6 == ipaddress.IPv6Address("::1")
    assert r.get("eth") == ((b"\x01\x02", b""),)


def test_summary_and_repr(example_enr, example_enr_text):
    s = example_enr.summary()
    assert s["seq"] == 1
    assert s["ip"] == "127.0.0.1"
    assert s["udp"] == 30303
    assert s["secp256k1"] == SECP256K1_HEX
    assert s["enr"] == example_enr_text
    assert repr(example_enr) == "Enr(seq=1, id=v4, ip=127.0.0.1, udp=30303)"


def test_equality_is_over_encoded_bytes():
    a = Enr.from_pairs(1, {"id": "v4"})
    b = Enr.from_pairs(1, {"id": "v4"})
    c = Enr.from_pairs(2, {"id": "v4"})
    assert a == b and len({a, b}) == 1
    assert a != c
    assert a != a.to_rlp()


# -----------------------------------------------------------------------------
# Rejections
# -----------------------------------------------------------------------------

@pytest.mark.parametrize(
    "items",
    [
        [SIG],                                        # no seq
        [SIG, 1, b"id"],                              # dangling key
        [SIG, 1, b"udp", 1, b"id", b"v4"],            # unsorted keys
        [SIG, 1, b"id", b"v4", b"id", b"v5"],         # duplicate key
        [[SIG], 1],                                   # list signature
        [SIG, [1]],                                   # list seq
        [SIG, b"\x01" * 9],                           # seq wider than uint64
        [SIG, b"\x00\x01"],                           # seq with leading zero
        [SIG, 1, [b"id"], b"v4"],                     # list key
    ],
)
def test_from_rlp_rejects_bad_shapes(items):
    with pytest.raises(RecordInvalid) as ei:
        Enr.from_rlp(rlp.dumps(items))
    assert ei.value.code == ErrorCode.RECORD_INVALID


def test_from_rlp_rejects_non_list_and_bad_rlp():
    with pytest.raises(RecordInvalid):
        Enr.from_rlp(rlp.dumps(b"not a list"))
    with pytest.raises(RecordInvalid):
        Enr.from_rlp(b"\xc5\x80")


def test_from_rlp_rejects_oversized_record():
    with pytest.raises(RecordInvalid) as ei:
        Enr.from_pairs(1, {"big": b"\xaa" * MAX_RECORD_SIZE})
    assert ei.value.data["limit"] == MAX_RECORD_SIZE


def test_record_at_size_limit_is_accepted():
    # 3-byte list prefix, 66 (sig), 1 (seq), 4 ("big"), 2-byte string prefix
    filler = MAX_RECORD_SIZE - 3 - 66 - 1 - 4 - 2
    r = Enr.from_pairs(1, {"big": b"\xaa" * filler})
    assert len(r.to_rlp()) == MAX_RECORD_SIZE


@pytest.mark.parametrize(
    "text",
    [
        "",
        "enr:",
        "-IS4QHCYrYZbAKWC",
        "enr:-IS4QHCY+rYZ",
        "enr:-IS4QHCYrYZbAKWC==",
        "enr:A",
    ],
)
def test_from_text_rejects_malformed_text(text):
    with pytest.raises(RecordInvalid):
        Enr.from_text(text)
