from __future__ import annotations
import re
from typing import Iterable, List

from py_ecc.bn128 import curve_order, field_modulus

from .errors import SerializationError

# BN254 scalar field (r) and base field (q)
BN254_PRIME = curve_order
BN254_BASE = field_modulus

FIELD_SIZE = 32
# r as it appears in binary containers: 32 bytes, little-endian
BN254_PRIME_LE = BN254_PRIME.to_bytes(FIELD_SIZE, "little")

_DECIMAL = re.compile(r"0|[1-9][0-9]*")


def to_decimal(x: int) -> str:
    """Canonical base-10 rendering: no sign, no prefix, no leading zeros."""
    return str(int(x))


def from_decimal(s, p: int = BN254_PRIME) -> int:
    """
    Strict inverse of to_decimal. Rejects anything that is not the canonical
    unsigned representative of an element of F_p.
    """
    if not isinstance(s, str) or not _DECIMAL.fullmatch(s):
        raise SerializationError(f"non-canonical decimal encoding: {s!r}")
    v = int(s)
    if v >= p:
        raise SerializationError(f"decimal value out of field range: {s}")
    return v


def decimals(values: Iterable[int]) -> List[str]:
    return [to_decimal(v) for v in values]


def from_decimals(values, p: int = BN254_PRIME) -> List[int]:
    if not isinstance(values, list):
        raise SerializationError("expected a JSON array of decimal strings")
    return [from_decimal(v, p) for v in values]


def to_le_bytes(x: int, size: int = FIELD_SIZE) -> bytes:
    return int(x).to_bytes(size, "little")


def from_le_bytes(b: bytes) -> int:
    return int.from_bytes(b, "little")
