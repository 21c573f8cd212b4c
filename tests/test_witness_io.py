import io
import json
import struct

import pytest

from circbridge.core.errors import (FormatError, SerializationError, UnsupportedCurve,
                                    UnsupportedVersion)
from circbridge.core.field import BN254_PRIME, BN254_PRIME_LE
from circbridge.core.witness_io import (load_witness, read_wtns, witness_to_json, write_wtns)


def wtns_bytes(witness, version=2):
    buf = io.BytesIO()
    write_wtns(buf, witness, version=version)
    return buf.getvalue()


def test_read_small_witness():
    raw = (
        b"wtns" + struct.pack("<II", 2, 2)
        + struct.pack("<IQI", 1, 40, 32) + BN254_PRIME_LE + struct.pack("<I", 3)
        + struct.pack("<IQ", 2, 96)
        + b"".join(v.to_bytes(32, "little") for v in (1, 2, 3))
    )
    f = read_wtns(io.BytesIO(raw))
    assert f.version == 2
    assert f.witness == [1, 2, 3]
    # writer produces exactly the same container
    assert wtns_bytes([1, 2, 3]) == raw


def test_read_version1_literal():
    raw = bytes.fromhex(
        "77746e73" "01000000" "02000000"
        "01000000" "2800000000000000" "20000000"
        "010000f093f5e1439170b97948e833285d588181b64550b829a031e1724e6430"
        "03000000"
        "02000000" "6000000000000000"
    ) + b"".join(v.to_bytes(32, "little") for v in (1, 2, 3))
    f = read_wtns(io.BytesIO(raw))
    assert f.version == 1
    assert f.witness == [1, 2, 3]


@pytest.mark.parametrize("witness", [[], [1, 16, 3, 5, 15], [BN254_PRIME - 1, 0]])
def test_write_read(witness):
    assert read_wtns(io.BytesIO(wtns_bytes(witness))).witness == witness


def test_older_version_accepted():
    assert read_wtns(io.BytesIO(wtns_bytes([7], version=1))).version == 1


def test_bad_magic():
    raw = b"wtnx" + wtns_bytes([1])[4:]
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(raw))


def test_unsupported_version():
    with pytest.raises(UnsupportedVersion):
        read_wtns(io.BytesIO(wtns_bytes([1], version=3)))


def test_section_count():
    raw = bytearray(wtns_bytes([1]))
    raw[8:12] = struct.pack("<I", 3)
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(bytes(raw)))


def test_wrong_field_width():
    raw = bytearray(wtns_bytes([1]))
    # header section payload starts after magic, version, count, type, size
    raw[24:28] = struct.pack("<I", 16)
    with pytest.raises(UnsupportedCurve):
        read_wtns(io.BytesIO(bytes(raw)))


def test_wrong_modulus():
    raw = bytearray(wtns_bytes([1]))
    raw[28] ^= 0xFF
    with pytest.raises(UnsupportedCurve):
        read_wtns(io.BytesIO(bytes(raw)))


def test_data_section_size_mismatch():
    raw = bytearray(wtns_bytes([1, 2]))
    # data section header: after 12-byte preamble and 52-byte header section
    raw[68:76] = struct.pack("<Q", 32)
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(bytes(raw)))


def test_truncated():
    raw = wtns_bytes([1, 2, 3])
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(raw[:-1]))
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(raw[:10]))


def test_trailing_bytes():
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(wtns_bytes([1]) + b"\x00"))


def test_element_out_of_range():
    raw = wtns_bytes([1])[:-32] + BN254_PRIME_LE
    with pytest.raises(FormatError):
        read_wtns(io.BytesIO(raw))


def test_load_witness_by_suffix(tmp_path, mul_witness):
    b = tmp_path / "w.wtns"
    b.write_bytes(wtns_bytes(mul_witness))
    j = tmp_path / "w.json"
    j.write_text(witness_to_json(mul_witness))
    assert load_witness(b) == mul_witness
    assert load_witness(j) == mul_witness
    assert json.loads(j.read_text()) == ["1", "16", "3", "5", "15"]


def test_json_witness_rejects_garbage(tmp_path):
    p = tmp_path / "w.json"
    p.write_text("[1, 2")
    with pytest.raises(SerializationError):
        load_witness(p)
    p.write_text('["1", "02"]')
    with pytest.raises(SerializationError):
        load_witness(p)
