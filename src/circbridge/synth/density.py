from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple
import numpy as np
from scipy.sparse import csr_matrix

from ..core.field import BN254_PRIME
from .cs import AUX, INPUT, ConstraintSystem, Variable


@dataclass
class Densities:
    """Per-wire flags: did the wire appear in the A / B query at all."""
    a_aux: np.ndarray
    b_input: np.ndarray
    b_aux: np.ndarray

    def a_table(self) -> np.ndarray:
        # inputs are always present in A (backend adds input_i * 0 = 0 rows)
        return np.concatenate([np.ones(len(self.b_input), dtype=bool), self.a_aux])

    def b_table(self) -> np.ndarray:
        return np.concatenate([self.b_input, self.b_aux])


class DensityAssembly(ConstraintSystem):
    """
    Constraint-system builder that only records the sparsity pattern of
    A/B/C. Values are never evaluated, so it runs with or without a witness.
    """

    def __init__(self):
        self.n_inputs = 1  # ONE
        self.n_aux = 0
        self.n_constraints = 0
        self._coo: Dict[str, Tuple[List[int], List[Variable]]] = {
            k: ([], []) for k in "ABC"
        }

    def alloc(self, name, value):
        self.n_aux += 1
        return Variable(AUX, self.n_aux - 1)

    def alloc_input(self, name, value):
        self.n_inputs += 1
        return Variable(INPUT, self.n_inputs - 1)

    def enforce(self, name, a, b, c):
        for key, lc in zip("ABC", (a, b, c)):
            rows, cols = self._coo[key]
            for var, coeff in lc:
                # zero terms leave no point in the backend's compacted tables
                if coeff % BN254_PRIME == 0:
                    continue
                rows.append(self.n_constraints)
                cols.append(var)
        self.n_constraints += 1

    def _column(self, var: Variable) -> int:
        return var.index if var.kind == INPUT else self.n_inputs + var.index

    def pattern(self, which: str) -> csr_matrix:
        """0/1 pattern of one of A, B, C; columns are inputs then aux."""
        rows, cols = self._coo[which]
        n = self.n_inputs + self.n_aux
        M = csr_matrix((np.ones(len(rows), dtype=np.int64),
                        (np.array(rows, dtype=np.int64),
                         np.array([self._column(v) for v in cols], dtype=np.int64))),
                       shape=(self.n_constraints, n))
        M.data[:] = 1
        return M

    def densities(self) -> Densities:
        a = self.pattern("A").getnnz(axis=0) > 0
        b = self.pattern("B").getnnz(axis=0) > 0
        k = self.n_inputs
        return Densities(a_aux=a[k:], b_input=b[:k], b_aux=b[k:])


def circuit_densities(circuit) -> Densities:
    """Synthesize (consuming) the circuit into a DensityAssembly."""
    cs = DensityAssembly()
    circuit.synthesize(cs)
    return cs.densities()
