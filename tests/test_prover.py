import io
import random
import sys
import types
from dataclasses import replace

import pytest
from py_ecc.bn128 import G1

from circbridge.core.errors import MissingWitness
from circbridge.groth.backend import load_backend
from circbridge.groth.prover import generate_random_parameters, prove, verify, verify_circuit

from conftest import FakeBackend


def test_setup_prove_verify(mul_r1cs, mul_witness, backend):
    params = generate_random_parameters(mul_r1cs.circuit(), backend, random.Random(1))
    assert len(params.vk.ic) == 3
    assert len(params.l) == 2

    proof = prove(mul_r1cs.circuit(mul_witness), params, backend, random.Random(2))
    assert verify_circuit(mul_r1cs.circuit(mul_witness), params, proof, backend)
    assert verify(params, proof, [16, 3], backend)
    assert not verify(params, proof, [16, 4], backend)


def test_prove_hands_filtered_params(mul_r1cs, mul_witness, mul_params, backend):
    padded = replace(mul_params, a=(None,) + tuple(mul_params.a), h=tuple(mul_params.h) + (None,))
    prove(mul_r1cs.circuit(mul_witness), padded, backend, random.Random(3))
    assert backend.last_params.a == tuple(mul_params.a)
    assert None not in backend.last_params.h


def test_prove_unsatisfied(mul_r1cs, mul_witness, mul_params, backend):
    mul_witness[4] = 14
    with pytest.raises(ValueError):
        prove(mul_r1cs.circuit(mul_witness), mul_params, backend, random.Random(3))


def test_verify_circuit_needs_witness(mul_r1cs, mul_params, backend):
    proof = backend.create_proof(mul_r1cs.circuit([1, 16, 3, 5, 15]), mul_params, random.Random(4))
    with pytest.raises(MissingWitness):
        verify_circuit(mul_r1cs.circuit(), mul_params, proof, backend)


def test_load_backend(monkeypatch):
    mod = types.ModuleType("fake_groth_backend")
    mod.Backend = FakeBackend
    mod.instance = FakeBackend()
    mod.point = G1
    monkeypatch.setitem(sys.modules, "fake_groth_backend", mod)

    assert isinstance(load_backend("fake_groth_backend:Backend"), FakeBackend)
    assert load_backend("fake_groth_backend:instance") is mod.instance
    with pytest.raises(ValueError):
        load_backend("fake_groth_backend")
    with pytest.raises(ValueError):
        load_backend("fake_groth_backend:missing")
    with pytest.raises(TypeError):
        load_backend("fake_groth_backend:point")
    with pytest.raises(ImportError):
        load_backend("no_such_module_here:Backend")


def test_parameters_file_round_trip(mul_params, backend):
    buf = io.BytesIO()
    backend.write_parameters(mul_params, buf)
    buf.seek(0)
    assert backend.read_parameters(buf) == mul_params
