from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..core.field import BN254_PRIME

INPUT = "input"
AUX = "aux"


@dataclass(frozen=True)
class Variable:
    """Backend variable handle: (kind, position within that kind)."""
    kind: str
    index: int


LinearCombination = List[Tuple[Variable, int]]
ValueThunk = Callable[[], int]


class ConstraintSystem(ABC):
    """
    Builder contract a circuit is synthesized into. Input variable 0 is the
    constant one and is allocated by the builder itself, never by a circuit.
    """

    ONE = Variable(INPUT, 0)

    @abstractmethod
    def alloc(self, name: str, value: ValueThunk) -> Variable:
        """Allocate a private (auxiliary) variable."""

    @abstractmethod
    def alloc_input(self, name: str, value: ValueThunk) -> Variable:
        """Allocate a public input variable."""

    @abstractmethod
    def enforce(self, name: str, a: LinearCombination, b: LinearCombination,
                c: LinearCombination) -> None:
        """Add the constraint a * b = c."""


class TestConstraintSystem(ConstraintSystem):
    """Evaluates every allocation eagerly and checks constraints afterwards."""

    __test__ = False  # not a pytest class

    def __init__(self, p: int = BN254_PRIME):
        self.p = p
        self.inputs: List[Tuple[int, str]] = [(1, "ONE")]
        self.aux: List[Tuple[int, str]] = []
        self.constraints: List[Tuple[str, LinearCombination, LinearCombination, LinearCombination]] = []

    def alloc(self, name, value):
        self.aux.append((value() % self.p, name))
        return Variable(AUX, len(self.aux) - 1)

    def alloc_input(self, name, value):
        self.inputs.append((value() % self.p, name))
        return Variable(INPUT, len(self.inputs) - 1)

    def enforce(self, name, a, b, c):
        self.constraints.append((name, a, b, c))

    def value(self, var: Variable) -> int:
        table = self.inputs if var.kind == INPUT else self.aux
        return table[var.index][0]

    def eval(self, lc: LinearCombination) -> int:
        acc = 0
        for var, coeff in lc:
            acc += coeff * self.value(var)
        return acc % self.p

    def which_is_unsatisfied(self) -> Optional[str]:
        for name, a, b, c in self.constraints:
            if (self.eval(a) * self.eval(b) - self.eval(c)) % self.p != 0:
                return name
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    @property
    def num_inputs(self) -> int:
        return len(self.inputs)

    @property
    def num_aux(self) -> int:
        return len(self.aux)

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)
