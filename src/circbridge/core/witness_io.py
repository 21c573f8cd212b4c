from __future__ import annotations
import json
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Sequence

from .errors import FormatError, SerializationError, UnsupportedCurve, UnsupportedVersion
from .field import (BN254_PRIME, BN254_PRIME_LE, FIELD_SIZE, decimals, from_decimals,
                    from_le_bytes, to_le_bytes)

logger = logging.getLogger(__name__)

WTNS_MAGIC = b"wtns"
WTNS_MAX_VERSION = 2
WTNS_SECTIONS = 2
HEADER_SECTION = 1
DATA_SECTION = 2
# u32 field width + modulus + u32 witness length
HEADER_SIZE = 4 + FIELD_SIZE + 4


@dataclass
class WtnsFile:
    version: int
    witness: List[int]


def _read_exact(stream: BinaryIO, n: int, what: str) -> bytes:
    b = stream.read(n)
    if len(b) != n:
        raise FormatError(f"truncated wtns: expected {n} bytes of {what}, got {len(b)}")
    return b


def _u32(stream: BinaryIO, what: str) -> int:
    return struct.unpack("<I", _read_exact(stream, 4, what))[0]


def _u64(stream: BinaryIO, what: str) -> int:
    return struct.unpack("<Q", _read_exact(stream, 8, what))[0]


def read_wtns(stream: BinaryIO) -> WtnsFile:
    """
    Parse a binary witness container. The layout is fixed: header section
    then data section, nothing else. Aborts on the first violation.
    """
    if _read_exact(stream, 4, "magic") != WTNS_MAGIC:
        raise FormatError("invalid wtns magic number")
    version = _u32(stream, "version")
    logger.debug("wtns version %d", version)
    if version > WTNS_MAX_VERSION:
        raise UnsupportedVersion(f"unsupported wtns version {version}")
    n_sections = _u32(stream, "section count")
    if n_sections != WTNS_SECTIONS:
        raise FormatError(f"wtns must have exactly {WTNS_SECTIONS} sections, got {n_sections}")

    if _u32(stream, "section type") != HEADER_SECTION:
        raise FormatError("invalid section type, expected header")
    sec_size = _u64(stream, "section size")
    if sec_size != HEADER_SIZE:
        raise FormatError(f"invalid header section size {sec_size}")
    field_size = _u32(stream, "field size")
    if field_size != FIELD_SIZE:
        raise UnsupportedCurve(f"only {FIELD_SIZE}-byte fields are supported, got {field_size}")
    if _read_exact(stream, FIELD_SIZE, "prime") != BN254_PRIME_LE:
        raise UnsupportedCurve("only the bn254 scalar field is supported")
    witness_len = _u32(stream, "witness length")
    logger.debug("witness len %d", witness_len)

    if _u32(stream, "section type") != DATA_SECTION:
        raise FormatError("invalid section type, expected witness data")
    sec_size = _u64(stream, "section size")
    if sec_size != witness_len * FIELD_SIZE:
        raise FormatError(f"invalid witness section size {sec_size}")

    witness = []
    for i in range(witness_len):
        v = from_le_bytes(_read_exact(stream, FIELD_SIZE, "field element"))
        if v >= BN254_PRIME:
            raise FormatError(f"witness element {i} is not a canonical field element")
        witness.append(v)
    if stream.read(1):
        raise FormatError("trailing data after wtns witness section")
    return WtnsFile(version=version, witness=witness)


def write_wtns(stream: BinaryIO, witness: Sequence[int], version: int = WTNS_MAX_VERSION) -> None:
    stream.write(WTNS_MAGIC)
    stream.write(struct.pack("<II", version, WTNS_SECTIONS))
    stream.write(struct.pack("<IQI", HEADER_SECTION, HEADER_SIZE, FIELD_SIZE))
    stream.write(BN254_PRIME_LE)
    stream.write(struct.pack("<I", len(witness)))
    stream.write(struct.pack("<IQ", DATA_SECTION, len(witness) * FIELD_SIZE))
    for v in witness:
        stream.write(to_le_bytes(v))


def load_witness_bin(stream: BinaryIO) -> List[int]:
    return read_wtns(stream).witness


def _load_json(path) -> object:
    try:
        return json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise SerializationError(f"{path}: malformed JSON: {e}") from e


def load_witness_json(path) -> List[int]:
    """snarkjs witness JSON: ["1", "...", ...]"""
    return from_decimals(_load_json(path))


def load_inputs_json(path) -> List[int]:
    """Public inputs JSON: ["...", ...], without the constant wire."""
    return from_decimals(_load_json(path))


def load_witness(path) -> List[int]:
    path = Path(path)
    if path.suffix == ".json":
        return load_witness_json(path)
    with path.open("rb") as f:
        return load_witness_bin(f)


def witness_to_json(witness: Sequence[int]) -> str:
    return json.dumps(decimals(witness), indent=2)
