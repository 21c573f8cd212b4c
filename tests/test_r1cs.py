import numpy as np
import pytest

from circbridge.core.errors import RangeError
from circbridge.core.field import BN254_PRIME
from circbridge.core.r1cs import R1CS, matvec_rows_modp


def test_add_residuals():
    # 0 = a + b - c, as (1) * (a + b - c) = 0
    r = R1CS.build(2, 2, [([(0, 1)], [(1, BN254_PRIME - 1), (2, 1), (3, 1)], [])])
    z = r.assignment([1, 8, 3, 5])
    A_rows, B_rows, _ = r.rows()
    assert list(matvec_rows_modp(A_rows, z, BN254_PRIME)) == [1]
    assert list(matvec_rows_modp(B_rows, z, BN254_PRIME)) == [0]
    assert r.is_satisfied([1, 8, 3, 5])
    assert r.first_unsatisfied([1, 9, 3, 5]) == 0


def test_mul_satisfied(mul_r1cs, mul_witness):
    assert mul_r1cs.is_satisfied(mul_witness)
    mul_witness[4] = 14
    assert mul_r1cs.first_unsatisfied(mul_witness) == 0


def test_assignment_through_mapping(mul_r1cs):
    # witness stored in a different order than the wires
    mapping = [0, 4, 3, 2, 1]
    witness = [1, 15, 5, 3, 16]
    z = mul_r1cs.assignment(witness, mapping)
    assert np.array_equal(z, np.array([1, 16, 3, 5, 15], dtype=object))
    assert mul_r1cs.is_satisfied(witness, mapping)


def test_assignment_errors(mul_r1cs, mul_witness):
    with pytest.raises(RangeError):
        mul_r1cs.assignment(mul_witness[:-1])
    with pytest.raises(RangeError):
        mul_r1cs.assignment(mul_witness, [0, 1, 2, 3])
    with pytest.raises(RangeError):
        mul_r1cs.assignment(mul_witness, [0, 1, 2, 3, 5])


def test_no_constraints_always_satisfied():
    r = R1CS.build(1, 0, [])
    assert r.is_satisfied([1])


def test_constant_wire_must_be_one(mul_r1cs):
    with pytest.raises(RangeError):
        mul_r1cs.is_satisfied([2, 16, 3, 5, 15])
