from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from .errors import RangeError
from .field import BN254_PRIME

Term = Tuple[int, int]                  # (wire index, coefficient)
LinearCombination = Tuple[Term, ...]
Constraint = Tuple[LinearCombination, LinearCombination, LinearCombination]


def normalize_lc(terms: Iterable[Sequence[int]], p: int = BN254_PRIME) -> LinearCombination:
    """
    Repeated wire indices keep only the last coefficient, at the position of
    their first occurrence.
    """
    d: Dict[int, int] = {}
    for idx, coeff in terms:
        d[int(idx)] = int(coeff) % p
    return tuple(d.items())


def matvec_rows_modp(rows: List[Dict[int, int]], z: np.ndarray, p: int) -> np.ndarray:
    """Compute (Rows @ z) mod p, where rows[i] is {col: coeff}."""
    out = np.zeros(len(rows), dtype=object)
    for i, row in enumerate(rows):
        acc = 0
        for j, c in row.items():
            acc += c * z[j]
        out[i] = acc % p
    return out


@dataclass(frozen=True)
class R1CS:
    num_inputs: int
    num_aux: int
    constraints: Tuple[Constraint, ...]

    @classmethod
    def build(cls, num_inputs: int, num_aux: int, constraints) -> "R1CS":
        cons = tuple(
            (normalize_lc(a), normalize_lc(b), normalize_lc(c)) for a, b, c in constraints
        )
        r = cls(num_inputs=int(num_inputs), num_aux=int(num_aux), constraints=cons)
        r.validate()
        return r

    @property
    def num_variables(self) -> int:
        return self.num_inputs + self.num_aux

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def validate(self) -> None:
        if self.num_inputs < 1:
            raise RangeError(f"num_inputs must include the constant wire, got {self.num_inputs}")
        if self.num_aux < 0:
            raise RangeError(f"num_aux must be non-negative, got {self.num_aux}")
        n = self.num_variables
        for ci, constraint in enumerate(self.constraints):
            for lc in constraint:
                for idx, _ in lc:
                    if not 0 <= idx < n:
                        raise RangeError(
                            f"constraint {ci} references wire {idx}, only {n} variables"
                        )

    def circuit(self, witness: Optional[Sequence[int]] = None,
                wire_mapping: Optional[Sequence[int]] = None):
        """Bind a witness/mapping for one synthesis call."""
        from ..synth.circuit import Circuit
        return Circuit(self, witness=witness, wire_mapping=wire_mapping)

    def rows(self) -> Tuple[List[Dict[int, int]], List[Dict[int, int]], List[Dict[int, int]]]:
        A_rows = [dict(a) for a, _, _ in self.constraints]
        B_rows = [dict(b) for _, b, _ in self.constraints]
        C_rows = [dict(c) for _, _, c in self.constraints]
        return A_rows, B_rows, C_rows

    def assignment(self, witness: Sequence[int],
                   wire_mapping: Optional[Sequence[int]] = None) -> np.ndarray:
        """Logical assignment z with z[i] = witness[mapping[i]]."""
        n = self.num_variables
        if len(witness) != n:
            raise RangeError(f"witness has {len(witness)} elements, expected {n}")
        if wire_mapping is not None and len(wire_mapping) != n:
            raise RangeError(f"wire mapping has {len(wire_mapping)} entries, expected {n}")
        z = np.zeros(n, dtype=object)
        for i in range(n):
            pos = i if wire_mapping is None else wire_mapping[i]
            if not 0 <= pos < len(witness):
                raise RangeError(f"wire {i} maps to witness position {pos}, out of range")
            z[i] = witness[pos] % BN254_PRIME
        if z[0] != 1:
            raise RangeError(f"witness value of the constant wire must be 1, got {z[0]}")
        return z

    def residuals(self, z: np.ndarray) -> np.ndarray:
        """(A z) * (B z) - (C z) mod p, one entry per constraint."""
        p = BN254_PRIME
        A_rows, B_rows, C_rows = self.rows()
        Az = matvec_rows_modp(A_rows, z, p)
        Bz = matvec_rows_modp(B_rows, z, p)
        Cz = matvec_rows_modp(C_rows, z, p)
        return (Az * Bz - Cz) % p

    def first_unsatisfied(self, witness: Sequence[int],
                          wire_mapping: Optional[Sequence[int]] = None) -> Optional[int]:
        if not self.constraints:
            return None
        residual = self.residuals(self.assignment(witness, wire_mapping))
        bad = np.flatnonzero(residual != 0)
        return int(bad[0]) if bad.size else None

    def is_satisfied(self, witness: Sequence[int],
                     wire_mapping: Optional[Sequence[int]] = None) -> bool:
        return self.first_unsatisfied(witness, wire_mapping) is None
