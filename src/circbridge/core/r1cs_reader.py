"""
Reader (and writer, used for fixtures) for circom's binary R1CS container.

Layout: https://github.com/iden3/r1csfile/blob/master/doc/r1cs_bin_format.md

    magic "r1cs" | u32 version | u32 n_sections | sections...
    section      = u32 type | u64 size | payload
    1 header     = u32 field_size | prime | u32 nWires | u32 nPubOut | u32 nPubIn
                   | u32 nPrvIn | u64 nLabels | u32 mConstraints
    2 constraints= per constraint, three blocks of u32 nnz | (u32 wire, coeff)*nnz
    3 wire2label = u64 label per wire

Sections may appear in any order; unknown section types are skipped.
"""
from __future__ import annotations
import io
import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Tuple

from .errors import FormatError, UnsupportedCurve, UnsupportedVersion
from .field import BN254_PRIME, BN254_PRIME_LE, FIELD_SIZE, from_le_bytes, to_le_bytes

logger = logging.getLogger(__name__)

MAGIC = b"r1cs"
HEADER_SECTION = 1
CONSTRAINT_SECTION = 2
WIRE2LABEL_SECTION = 3

RawLC = List[Tuple[int, int]]


@dataclass
class Header:
    field_size: int
    prime: int
    n_wires: int
    n_pub_out: int
    n_pub_in: int
    n_prv_in: int
    n_labels: int
    n_constraints: int


@dataclass
class R1CSFile:
    version: int
    header: Header
    constraints: List[Tuple[RawLC, RawLC, RawLC]]
    wire_mapping: List[int]


class _Cursor:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise FormatError(f"unexpected end of r1cs data at byte {self.pos}")
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def done(self) -> bool:
        return self.pos == len(self.data)


def _split_sections(cur: _Cursor, n_sections: int) -> Dict[int, bytes]:
    sections: Dict[int, bytes] = {}
    for _ in range(n_sections):
        sec_type = cur.u32()
        sec_size = cur.u64()
        payload = cur.take(sec_size)
        logger.debug("r1cs section type=%d size=%d", sec_type, sec_size)
        if sec_type in sections:
            raise FormatError(f"duplicate r1cs section {sec_type}")
        sections[sec_type] = payload
    return sections


def _read_header(raw: bytes) -> Header:
    cur = _Cursor(raw)
    field_size = cur.u32()
    if field_size != FIELD_SIZE:
        raise UnsupportedCurve(f"only {FIELD_SIZE}-byte fields are supported, got {field_size}")
    prime = cur.take(field_size)
    if prime != BN254_PRIME_LE:
        raise UnsupportedCurve("only the bn254 scalar field is supported")
    return Header(
        field_size=field_size,
        prime=from_le_bytes(prime),
        n_wires=cur.u32(),
        n_pub_out=cur.u32(),
        n_pub_in=cur.u32(),
        n_prv_in=cur.u32(),
        n_labels=cur.u64(),
        n_constraints=cur.u32(),
    )


def _read_lc(cur: _Cursor, fs: int) -> RawLC:
    nnz = cur.u32()
    out = []
    for _ in range(nnz):
        wire = cur.u32()
        coeff = from_le_bytes(cur.take(fs))
        if coeff >= BN254_PRIME:
            raise FormatError(f"coefficient for wire {wire} is not a canonical field element")
        out.append((wire, coeff))
    return out


def _read_constraints(raw: bytes, header: Header):
    cur = _Cursor(raw)
    out = []
    while not cur.done():
        a = _read_lc(cur, header.field_size)
        b = _read_lc(cur, header.field_size)
        c = _read_lc(cur, header.field_size)
        out.append((a, b, c))
    if len(out) != header.n_constraints:
        raise FormatError(
            f"constraint section holds {len(out)} constraints, header says {header.n_constraints}"
        )
    return out


def _read_wire2label(raw: bytes) -> List[int]:
    if len(raw) % 8 != 0:
        raise FormatError(f"wire2label section length should be a multiple of 8, got {len(raw)}")
    return [v for (v,) in struct.iter_unpack("<Q", raw)]


def read_r1cs(stream: BinaryIO) -> R1CSFile:
    cur = _Cursor(stream.read())
    if cur.take(4) != MAGIC:
        raise FormatError("invalid r1cs magic number")
    version = cur.u32()
    if version != 1:
        raise UnsupportedVersion(f"unsupported r1cs version {version}")
    sections = _split_sections(cur, cur.u32())
    for needed in (HEADER_SECTION, CONSTRAINT_SECTION, WIRE2LABEL_SECTION):
        if needed not in sections:
            raise FormatError(f"r1cs is missing section {needed}")

    header = _read_header(sections[HEADER_SECTION])
    constraints = _read_constraints(sections[CONSTRAINT_SECTION], header)
    wire_mapping = _read_wire2label(sections[WIRE2LABEL_SECTION])
    if len(wire_mapping) != header.n_wires:
        raise FormatError(f"wire2label has {len(wire_mapping)} entries, header says {header.n_wires}")
    logger.debug("r1cs: %d wires, %d constraints", header.n_wires, len(constraints))
    return R1CSFile(version=version, header=header, constraints=constraints, wire_mapping=wire_mapping)


def _section(sec_type: int, payload: bytes) -> bytes:
    return struct.pack("<IQ", sec_type, len(payload)) + payload


def write_r1cs(stream: BinaryIO, f: R1CSFile) -> None:
    h = f.header
    header = (
        struct.pack("<I", FIELD_SIZE) + BN254_PRIME_LE
        + struct.pack("<IIIIQI", h.n_wires, h.n_pub_out, h.n_pub_in, h.n_prv_in, h.n_labels,
                      len(f.constraints))
    )
    cons = io.BytesIO()
    for constraint in f.constraints:
        for lc in constraint:
            cons.write(struct.pack("<I", len(lc)))
            for wire, coeff in lc:
                cons.write(struct.pack("<I", wire))
                cons.write(to_le_bytes(coeff))
    labels = b"".join(struct.pack("<Q", v) for v in f.wire_mapping)

    stream.write(MAGIC + struct.pack("<II", f.version, 3))
    stream.write(_section(HEADER_SECTION, header))
    stream.write(_section(CONSTRAINT_SECTION, cons.getvalue()))
    stream.write(_section(WIRE2LABEL_SECTION, labels))
