from __future__ import annotations
import logging
import random
import time
from typing import Sequence

from ..core.errors import MissingWitness
from .backend import Groth16Backend
from .filter import filter_params
from .types import Parameters, Proof

logger = logging.getLogger(__name__)


def generate_random_parameters(circuit, backend: Groth16Backend, rng: random.Random) -> Parameters:
    t0 = time.perf_counter()
    params = backend.generate_parameters(circuit, rng)
    logger.info("Parameter generation takes %.3fs", time.perf_counter() - t0)
    return params


def prove(circuit, params: Parameters, backend: Groth16Backend, rng: random.Random) -> Proof:
    t0 = time.perf_counter()
    proof = backend.create_proof(circuit, filter_params(params), rng)
    logger.info("Proving takes %.3fs", time.perf_counter() - t0)
    return proof


def verify_circuit(circuit, params: Parameters, proof: Proof, backend: Groth16Backend) -> bool:
    inputs = circuit.get_public_inputs()
    if inputs is None:
        raise MissingWitness("verification needs public inputs, bind a witness first")
    return backend.verify(params.vk, proof, inputs)


def verify(params: Parameters, proof: Proof, inputs: Sequence[int], backend: Groth16Backend) -> bool:
    return backend.verify(params.vk, proof, inputs)
