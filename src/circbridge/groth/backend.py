from __future__ import annotations
import importlib
import random
from abc import ABC, abstractmethod
from typing import BinaryIO, Sequence

from .types import Parameters, Proof, VerifyingKey


class Groth16Backend(ABC):
    """
    Proving library contract. Implementations synthesize the given circuit
    into their own ConstraintSystem; randomness always comes from `rng`.
    """

    @abstractmethod
    def generate_parameters(self, circuit, rng: random.Random) -> Parameters:
        ...

    @abstractmethod
    def create_proof(self, circuit, params: Parameters, rng: random.Random) -> Proof:
        ...

    @abstractmethod
    def verify(self, vk: VerifyingKey, proof: Proof, inputs: Sequence[int]) -> bool:
        ...

    @abstractmethod
    def read_parameters(self, fp: BinaryIO) -> Parameters:
        ...

    @abstractmethod
    def write_parameters(self, params: Parameters, fp: BinaryIO) -> None:
        ...


def load_backend(path: str) -> Groth16Backend:
    """Resolve "package.module:attr"; a class or factory is called with no arguments."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Invalid backend path {path!r}, expected 'module:attr'")
    module = importlib.import_module(module_name)
    obj = getattr(module, attr, None)
    if obj is None:
        raise ValueError(f"Backend not found: {path}")
    backend = obj if isinstance(obj, Groth16Backend) else obj()
    if not isinstance(backend, Groth16Backend):
        raise TypeError(f"{path} does not provide a Groth16Backend")
    return backend
