from __future__ import annotations
import json
from functools import partial
from typing import List, Optional, Sequence

from ..core.errors import CircuitConsumed, MissingWitness, RangeError
from ..core.field import BN254_PRIME, decimals
from ..core.r1cs import R1CS, LinearCombination as WireLC
from .cs import ConstraintSystem, LinearCombination, Variable


class Circuit:
    """
    One synthesis attempt over a shared, immutable R1CS. The witness and wire
    mapping are bound here and handed over to exactly one synthesize() call;
    build a fresh instance with R1CS.circuit() for every further call.
    """

    def __init__(self, r1cs: R1CS, witness: Optional[Sequence[int]] = None,
                 wire_mapping: Optional[Sequence[int]] = None):
        n = r1cs.num_variables
        if witness is not None and len(witness) != n:
            raise RangeError(f"witness has {len(witness)} elements, circuit has {n} variables")
        if wire_mapping is not None and len(wire_mapping) != n:
            raise RangeError(f"wire mapping has {len(wire_mapping)} entries, circuit has {n} variables")
        self.r1cs = r1cs
        self.witness = list(witness) if witness is not None else None
        self.wire_mapping = list(wire_mapping) if wire_mapping is not None else None
        self._consumed = False
        if self.witness is not None and self._value(0) % BN254_PRIME != 1:
            raise RangeError(f"witness value of the constant wire must be 1, got {self._value(0)}")

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _check_live(self) -> None:
        if self._consumed:
            raise CircuitConsumed("circuit was already synthesized; bind a new one from its R1CS")

    def _value(self, wire: int) -> int:
        # placeholder "1" during parameter generation, only the topology matters there
        if self.witness is None:
            return 1
        pos = wire if self.wire_mapping is None else self.wire_mapping[wire]
        if not 0 <= pos < len(self.witness):
            raise RangeError(f"wire {wire} maps to witness position {pos}, out of range")
        return self.witness[pos]

    def get_public_inputs(self) -> Optional[List[int]]:
        """Public inputs (wires 1..num_inputs), or None when no witness is bound."""
        self._check_live()
        if self.witness is None:
            return None
        return [self._value(i) for i in range(1, self.r1cs.num_inputs)]

    def public_inputs_json(self) -> str:
        inputs = self.get_public_inputs()
        if inputs is None:
            raise MissingWitness("public inputs requested but no witness is bound")
        return json.dumps(decimals(inputs), indent=2)

    def synthesize(self, cs: ConstraintSystem) -> None:
        """
        Allocate inputs, then aux wires, then enforce every constraint, all in
        stored order. Backend key tables are positional in this order.
        """
        self._check_live()
        self._consumed = True
        r = self.r1cs

        inputs: List[Variable] = [cs.ONE]
        for i in range(1, r.num_inputs):
            inputs.append(cs.alloc_input(f"variable {i}", partial(self._value, i)))
        aux: List[Variable] = []
        for i in range(r.num_aux):
            aux.append(cs.alloc(f"aux {i}", partial(self._value, r.num_inputs + i)))

        def make_lc(lc: WireLC) -> LinearCombination:
            return [
                (inputs[idx] if idx < r.num_inputs else aux[idx - r.num_inputs], coeff)
                for idx, coeff in lc
            ]

        for i, (a, b, c) in enumerate(r.constraints):
            cs.enforce(f"constraint {i}", make_lc(a), make_lc(b), make_lc(c))
