"""
JSON interchange for Groth16 artifacts.

Every scalar and coordinate is the canonical base-10 string of its unsigned
representative. G1 points are [x, y]; G2 points are [[x.c1, x.c0],
[y.c1, y.c0]], the same order the Solidity verifier uses. The point at
infinity, which only occurs inside the dense proving key tables, is all
zeros.
"""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from py_ecc import optimized_bn128 as opt

from ..core.errors import RangeError, SerializationError
from ..core.field import BN254_BASE, from_decimal, to_decimal
from ..synth.density import circuit_densities
from .filter import drop_zero_points
from .types import (G1Point, G2Point, Parameters, Proof, VerifyingKey, fq_int, g1_from_xy,
                    g1_xy, g2_from_xy, g2_xy, is_zero)

logger = logging.getLogger(__name__)

PROTOCOL = "groth"
G1_ZERO = ["0", "0"]
G2_ZERO = [["0", "0"], ["0", "0"]]

COORD_SIZE = 32
INFINITY_FLAG = 0x40
COMPRESSION_FLAG = 0x80


# ---- points ----

def fq2_to_vec(c0: int, c1: int) -> List[str]:
    return [to_decimal(c1), to_decimal(c0)]


def p1_to_vec(p: G1Point) -> List[str]:
    if is_zero(p):
        return list(G1_ZERO)
    x, y = g1_xy(p)
    return [to_decimal(x), to_decimal(y)]


def p2_to_vec(p: G2Point) -> List[List[str]]:
    if is_zero(p):
        return [list(c) for c in G2_ZERO]
    (x0, x1), (y0, y1) = g2_xy(p)
    return [fq2_to_vec(x0, x1), fq2_to_vec(y0, y1)]


def _coord(s) -> int:
    return from_decimal(s, p=BN254_BASE)


def _pair(v, what: str) -> List:
    if not (isinstance(v, list) and len(v) == 2):
        raise SerializationError(f"{what}: expected a pair, got {v!r}")
    return v


def vec_to_p1(v, what: str = "G1 point") -> G1Point:
    x, y = (_coord(c) for c in _pair(v, what))
    if x == 0 and y == 0:
        return None
    return g1_from_xy(x, y)


def vec_to_p2(v, what: str = "G2 point") -> G2Point:
    xv, yv = _pair(v, what)
    x1, x0 = (_coord(c) for c in _pair(xv, what))
    y1, y0 = (_coord(c) for c in _pair(yv, what))
    if x0 == x1 == y0 == y1 == 0:
        return None
    return g2_from_xy((x0, x1), (y0, y1))


def pairing_to_vec(f) -> List[List[List[str]]]:
    """
    py_ecc keeps Fq12 as a degree-12 polynomial in w (w^12 = 18 w^6 - 82).
    Re-express it in the tower Fq2[v]/(v^3 - (9 + u))[w]/(w^2 - v), where
    u = w^6 - 9 and v = w^2, as [[c0.c0, c0.c1, c0.c2], [c1.c0, c1.c1, c1.c2]].
    """
    q = BN254_BASE
    a = [fq_int(c) for c in f.coeffs]
    c0 = [fq2_to_vec((a[2 * j] + 9 * a[2 * j + 6]) % q, a[2 * j + 6]) for j in range(3)]
    c1 = [fq2_to_vec((a[2 * j + 1] + 9 * a[2 * j + 7]) % q, a[2 * j + 7]) for j in range(3)]
    return [c0, c1]


# ---- raw proof bytes (uncompressed, big-endian coordinates) ----

def _g1_bytes(p: G1Point) -> bytes:
    if is_zero(p):
        return bytes([INFINITY_FLAG]) + bytes(2 * COORD_SIZE - 1)
    x, y = g1_xy(p)
    return x.to_bytes(COORD_SIZE, "big") + y.to_bytes(COORD_SIZE, "big")


def _g2_bytes(p: G2Point) -> bytes:
    if is_zero(p):
        return bytes([INFINITY_FLAG]) + bytes(4 * COORD_SIZE - 1)
    (x0, x1), (y0, y1) = g2_xy(p)
    return b"".join(v.to_bytes(COORD_SIZE, "big") for v in (x1, x0, y1, y0))


def _coords(raw: bytes) -> Optional[List[int]]:
    if raw[0] & COMPRESSION_FLAG:
        raise SerializationError("compressed point encoding is not supported")
    if raw[0] & INFINITY_FLAG:
        if any(raw[1:]) or raw[0] != INFINITY_FLAG:
            raise SerializationError("invalid point-at-infinity encoding")
        return None
    out = [int.from_bytes(raw[i:i + COORD_SIZE], "big") for i in range(0, len(raw), COORD_SIZE)]
    if any(v >= BN254_BASE for v in out):
        raise SerializationError("point coordinate out of field range")
    return out


def proof_to_bytes(proof: Proof) -> bytes:
    return _g1_bytes(proof.a) + _g2_bytes(proof.b) + _g1_bytes(proof.c)


def proof_from_bytes(raw: bytes) -> Proof:
    if len(raw) != 8 * COORD_SIZE:
        raise SerializationError(f"proof must be {8 * COORD_SIZE} bytes, got {len(raw)}")
    a = _coords(raw[:64])
    b = _coords(raw[64:192])
    c = _coords(raw[192:])
    return Proof(
        a=None if a is None else g1_from_xy(*a),
        b=None if b is None else g2_from_xy((b[1], b[0]), (b[3], b[2])),
        c=None if c is None else g1_from_xy(*c),
    )


def proof_to_hex(proof: Proof) -> str:
    return proof_to_bytes(proof).hex()


# ---- proof ----

def proof_to_obj(proof: Proof) -> Dict[str, Any]:
    return {
        "protocol": PROTOCOL,
        "proof": proof_to_hex(proof),
        "pi_a": p1_to_vec(proof.a),
        "pi_b": p2_to_vec(proof.b),
        "pi_c": p1_to_vec(proof.c),
    }


def proof_to_json(proof: Proof) -> str:
    return json.dumps(proof_to_obj(proof), indent=2)


def _parse(text: str, what: str):
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"malformed {what} JSON: {e}") from e
    if not isinstance(obj, dict):
        raise SerializationError(f"{what} JSON must be an object")
    if obj.get("protocol", PROTOCOL) != PROTOCOL:
        raise SerializationError(f"unsupported protocol {obj.get('protocol')!r}")
    return obj


def _field(obj: Dict[str, Any], key: str):
    if key not in obj:
        raise SerializationError(f"missing field {key!r}")
    return obj[key]


def proof_from_json(text: str) -> Proof:
    obj = _parse(text, "proof")
    return Proof(
        a=vec_to_p1(_field(obj, "pi_a"), "pi_a"),
        b=vec_to_p2(_field(obj, "pi_b"), "pi_b"),
        c=vec_to_p1(_field(obj, "pi_c"), "pi_c"),
    )


def load_proof_json(path) -> Proof:
    return proof_from_json(Path(path).read_text())


def proof_to_json_file(proof: Proof, path) -> None:
    Path(path).write_text(proof_to_json(proof))


# ---- verification key ----

def alfabeta_pairing(vk: VerifyingKey):
    """e(alfa_1, beta_2), computed on py_ecc's projective (optimized) curve."""
    if is_zero(vk.alpha_g1) or is_zero(vk.beta_g2):
        return opt.FQ12.one()
    ax, ay = g1_xy(vk.alpha_g1)
    (bx0, bx1), (by0, by1) = g2_xy(vk.beta_g2)
    p = (opt.FQ(ax), opt.FQ(ay), opt.FQ.one())
    q = (opt.FQ2([bx0, bx1]), opt.FQ2([by0, by1]), opt.FQ2.one())
    return opt.pairing(q, p)


def verification_key_to_obj(vk: VerifyingKey) -> Dict[str, Any]:
    # e(alfa, beta) once here so verifiers skip one pairing
    alfabeta = alfabeta_pairing(vk)
    return {
        "IC": [p1_to_vec(p) for p in vk.ic],
        "vk_alfa_1": p1_to_vec(vk.alpha_g1),
        "vk_beta_2": p2_to_vec(vk.beta_g2),
        "vk_gamma_2": p2_to_vec(vk.gamma_g2),
        "vk_delta_2": p2_to_vec(vk.delta_g2),
        "vk_alfabeta_12": pairing_to_vec(alfabeta),
        "protocol": PROTOCOL,
        "nPublic": vk.n_public,
    }


def verification_key_json(vk: VerifyingKey) -> str:
    return json.dumps(verification_key_to_obj(vk), indent=2)


def verification_key_from_json(text: str) -> VerifyingKey:
    obj = _parse(text, "verification key")
    ic_raw = _field(obj, "IC")
    if not isinstance(ic_raw, list) or not ic_raw:
        raise SerializationError("IC must be a non-empty list of points")
    vk = VerifyingKey(
        alpha_g1=vec_to_p1(_field(obj, "vk_alfa_1"), "vk_alfa_1"),
        beta_g2=vec_to_p2(_field(obj, "vk_beta_2"), "vk_beta_2"),
        gamma_g2=vec_to_p2(_field(obj, "vk_gamma_2"), "vk_gamma_2"),
        delta_g2=vec_to_p2(_field(obj, "vk_delta_2"), "vk_delta_2"),
        ic=tuple(vec_to_p1(p, f"IC[{i}]") for i, p in enumerate(ic_raw)),
    )
    n_public = obj.get("nPublic", vk.n_public)
    if n_public != vk.n_public:
        raise SerializationError(f"nPublic is {n_public} but IC has {len(vk.ic)} points")
    return vk


def load_verification_key_json(path) -> VerifyingKey:
    return verification_key_from_json(Path(path).read_text())


def verification_key_json_file(vk: VerifyingKey, path) -> None:
    Path(path).write_text(verification_key_json(vk))


# ---- proving key ----

def log2_floor(num: int) -> int:
    if num <= 0:
        raise RangeError(f"log2 of non-positive value {num}")
    return num.bit_length() - 1


def domain_bits(num_constraints: int, num_inputs: int) -> int:
    return log2_floor(num_constraints + num_inputs) + 1


def fill_identity(density: Iterable[bool], compacted: Sequence, what: str) -> List:
    """
    Walk the density bitmap and the compacted table together, putting the
    identity (None) at every position the backend left out.
    """
    points = iter(compacted)
    out = []
    for present in density:
        if not present:
            out.append(None)
            continue
        p = next(points, StopIteration)
        if p is StopIteration:
            raise RangeError(f"{what}: density bitmap has more entries than the table")
        out.append(p)
    if next(points, StopIteration) is not StopIteration:
        raise RangeError(f"{what}: table has more entries than the density bitmap")
    return out


def polynomials(r1cs) -> Dict[str, List[Dict[str, str]]]:
    """Per-wire sparse maps constraint index -> coefficient for A, B, C."""
    n = r1cs.num_variables
    m = r1cs.num_constraints
    pols = {k: [{} for _ in range(n)] for k in ("polsA", "polsB", "polsC")}
    for ci, constraint in enumerate(r1cs.constraints):
        for key, lc in zip(("polsA", "polsB", "polsC"), constraint):
            for idx, coeff in lc:
                pols[key][idx][str(ci)] = to_decimal(coeff)
    # input_i * 1 = input_i rows appended after the real constraints
    for i in range(r1cs.num_inputs):
        pols["polsA"][i][str(m + i)] = "1"
    return pols


def proving_key_to_obj(params: Parameters, circuit) -> Dict[str, Any]:
    """Consumes `circuit`: it is synthesized to recover the density bitmaps."""
    r1cs = circuit.r1cs
    vk = params.vk
    if len(vk.ic) != r1cs.num_inputs:
        raise RangeError(f"IC has {len(vk.ic)} points, circuit has {r1cs.num_inputs} inputs")
    pols = polynomials(r1cs)
    bits = domain_bits(r1cs.num_constraints, r1cs.num_inputs)

    dens = circuit_densities(circuit)
    a = fill_identity(dens.a_table(), drop_zero_points(params.a), "A")
    b1 = fill_identity(dens.b_table(), drop_zero_points(params.b_g1), "B1")
    b2 = fill_identity(dens.b_table(), drop_zero_points(params.b_g2), "B2")
    logger.debug("proving key: %d A, %d B entries, domain 2^%d", len(a), len(b1), bits)

    return {
        **pols,
        "A": [p1_to_vec(p) for p in a],
        "B1": [p1_to_vec(p) for p in b1],
        "B2": [p2_to_vec(p) for p in b2],
        "C": [None] * len(vk.ic) + [p1_to_vec(p) for p in params.l],
        "vk_alfa_1": p1_to_vec(vk.alpha_g1),
        "vk_beta_1": p1_to_vec(vk.beta_g1),
        "vk_delta_1": p1_to_vec(vk.delta_g1),
        "vk_beta_2": p2_to_vec(vk.beta_g2),
        "vk_delta_2": p2_to_vec(vk.delta_g2),
        "hExps": [p1_to_vec(p) for p in params.h],
        "protocol": PROTOCOL,
        "nPublic": r1cs.num_inputs - 1,
        "nVars": r1cs.num_variables,
        "domainBits": bits,
        "domainSize": 1 << bits,
    }


def proving_key_json(params: Parameters, circuit) -> str:
    return json.dumps(proving_key_to_obj(params, circuit))


def proving_key_json_file(params: Parameters, circuit, path) -> None:
    Path(path).write_text(proving_key_json(params, circuit))
