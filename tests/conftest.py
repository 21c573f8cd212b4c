import json
import random

import pytest
from py_ecc.bn128 import G1, G2, multiply

from circbridge.core.r1cs import R1CS
from circbridge.core.r1cs_io import r1cs_from_json_obj
from circbridge.groth.backend import Groth16Backend
from circbridge.groth.serialize import p1_to_vec, p2_to_vec, vec_to_p1, vec_to_p2
from circbridge.groth.types import Parameters, Proof, VerifyingKey
from circbridge.synth.cs import TestConstraintSystem
from circbridge.synth.density import circuit_densities

# wires: 0 one | 1 out (public output) | 2 x (public input) | 3 y, 4 t (private)
#   x * y = t
#   (t + 1) * 1 = out
MUL_JSON = {
    "nPubInputs": 1,
    "nOutputs": 1,
    "nVars": 5,
    "constraints": [
        [{"2": "1"}, {"3": "1"}, {"4": "1"}],
        [{"4": "1", "0": "1"}, {"0": "1"}, {"1": "1"}],
    ],
}
MUL_WITNESS = [1, 16, 3, 5, 15]


@pytest.fixture
def mul_json():
    return json.loads(json.dumps(MUL_JSON))


@pytest.fixture
def mul_r1cs() -> R1CS:
    return r1cs_from_json_obj(MUL_JSON)


@pytest.fixture
def mul_witness():
    return list(MUL_WITNESS)


@pytest.fixture
def mul_json_file(tmp_path):
    p = tmp_path / "mul.r1cs.json"
    p.write_text(json.dumps(MUL_JSON))
    return p


class FakeBackend(Groth16Backend):
    """
    Deterministic stand-in for a proving library: real curve points from
    small scalars, table shapes that follow the circuit densities, and a
    "proof" that only commits to the public inputs.
    """

    def __init__(self):
        self.last_params = None

    def generate_parameters(self, circuit, rng):
        r = circuit.r1cs
        dens = circuit_densities(circuit)

        def g1():
            return multiply(G1, rng.randrange(1, 50))

        def g2():
            return multiply(G2, rng.randrange(1, 5))

        vk = VerifyingKey(
            alpha_g1=g1(), beta_g2=g2(), gamma_g2=g2(), delta_g2=g2(),
            ic=tuple(g1() for _ in range(r.num_inputs)),
            beta_g1=g1(), delta_g1=g1(),
        )
        return Parameters(
            vk=vk,
            h=tuple(g1() for _ in range(2)),
            l=tuple(g1() for _ in range(r.num_aux)),
            a=tuple(g1() for _ in range(int(dens.a_table().sum()))),
            b_g1=tuple(g1() for _ in range(int(dens.b_table().sum()))),
            b_g2=tuple(g2() for _ in range(int(dens.b_table().sum()))),
        )

    @staticmethod
    def _commit(inputs):
        return multiply(G1, sum(inputs) % 1000 + 1)

    def create_proof(self, circuit, params, rng):
        self.last_params = params
        cs = TestConstraintSystem()
        circuit.synthesize(cs)
        if not cs.is_satisfied():
            raise ValueError(f"unsatisfied: {cs.which_is_unsatisfied()}")
        inputs = [v for v, _ in cs.inputs[1:]]
        return Proof(a=self._commit(inputs), b=G2, c=multiply(G1, rng.randrange(1, 50)))

    def verify(self, vk, proof, inputs):
        return len(inputs) == vk.n_public and proof.a == self._commit(inputs)

    def read_parameters(self, fp):
        obj = json.loads(fp.read().decode())
        vk = obj["vk"]
        return Parameters(
            vk=VerifyingKey(
                alpha_g1=vec_to_p1(vk["alpha_g1"]),
                beta_g2=vec_to_p2(vk["beta_g2"]),
                gamma_g2=vec_to_p2(vk["gamma_g2"]),
                delta_g2=vec_to_p2(vk["delta_g2"]),
                ic=tuple(vec_to_p1(p) for p in vk["ic"]),
                beta_g1=vec_to_p1(vk["beta_g1"]),
                delta_g1=vec_to_p1(vk["delta_g1"]),
            ),
            **{k: tuple(vec_to_p1(p) for p in obj[k]) for k in ("h", "l", "a", "b_g1")},
            b_g2=tuple(vec_to_p2(p) for p in obj["b_g2"]),
        )

    def write_parameters(self, params, fp):
        # plain JSON through the package point encoders
        vk = params.vk
        obj = {
            "vk": {
                "alpha_g1": p1_to_vec(vk.alpha_g1),
                "beta_g2": p2_to_vec(vk.beta_g2),
                "gamma_g2": p2_to_vec(vk.gamma_g2),
                "delta_g2": p2_to_vec(vk.delta_g2),
                "ic": [p1_to_vec(p) for p in vk.ic],
                "beta_g1": p1_to_vec(vk.beta_g1),
                "delta_g1": p1_to_vec(vk.delta_g1),
            },
            **{k: [p1_to_vec(p) for p in getattr(params, k)] for k in ("h", "l", "a", "b_g1")},
            "b_g2": [p2_to_vec(p) for p in params.b_g2],
        }
        fp.write(json.dumps(obj).encode())


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def mul_params(mul_r1cs, backend):
    return backend.generate_parameters(mul_r1cs.circuit(), random.Random(7))
