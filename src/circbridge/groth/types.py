from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from py_ecc.bn128 import FQ, FQ2, b, b2, is_on_curve

from ..core.errors import SerializationError

# py_ecc affine points; None is the point at infinity
G1Point = Optional[Tuple[FQ, FQ]]
G2Point = Optional[Tuple[FQ2, FQ2]]


def is_zero(p) -> bool:
    return p is None


def fq_int(c) -> int:
    # FQP coefficients are FQ objects or plain ints depending on py_ecc version
    return c.n if hasattr(c, "n") else int(c)


def g1_xy(p: G1Point) -> Tuple[int, int]:
    return fq_int(p[0]), fq_int(p[1])


def g2_xy(p: G2Point) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """((x.c0, x.c1), (y.c0, y.c1))"""
    x, y = p
    return (fq_int(x.coeffs[0]), fq_int(x.coeffs[1])), (fq_int(y.coeffs[0]), fq_int(y.coeffs[1]))


def g1_from_xy(x: int, y: int) -> G1Point:
    p = (FQ(x), FQ(y))
    if not is_on_curve(p, b):
        raise SerializationError(f"G1 point ({x}, {y}) is not on the curve")
    return p


def g2_from_xy(x: Tuple[int, int], y: Tuple[int, int]) -> G2Point:
    """x and y as (c0, c1)."""
    p = (FQ2([x[0], x[1]]), FQ2([y[0], y[1]]))
    if not is_on_curve(p, b2):
        raise SerializationError("G2 point is not on the curve")
    return p


@dataclass(frozen=True)
class VerifyingKey:
    alpha_g1: G1Point
    beta_g2: G2Point
    gamma_g2: G2Point
    delta_g2: G2Point
    ic: Sequence[G1Point]
    # only carried by full parameters, not by the verification key JSON
    beta_g1: G1Point = None
    delta_g1: G1Point = None

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True)
class Parameters:
    """
    Groth16 parameters in backend layout. a, b_g1 and b_g2 are compacted:
    entries for wires absent from the query are not stored.
    """
    vk: VerifyingKey
    h: Sequence[G1Point]
    l: Sequence[G1Point]
    a: Sequence[G1Point]
    b_g1: Sequence[G1Point]
    b_g2: Sequence[G2Point]


@dataclass(frozen=True)
class Proof:
    a: G1Point
    b: G2Point
    c: G1Point
