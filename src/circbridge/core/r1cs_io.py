from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from .errors import SerializationError
from .field import from_decimal
from .r1cs import R1CS
from .r1cs_reader import read_r1cs

logger = logging.getLogger(__name__)


def _lc_from_json(entry, where: str) -> List[Tuple[int, int]]:
    if not isinstance(entry, dict):
        raise SerializationError(f"{where}: expected a map wire -> coefficient, got {type(entry).__name__}")
    # keys are wire indices, not field elements; same canonical-decimal rule
    return [(from_decimal(k, p=2**32), from_decimal(v)) for k, v in entry.items()]


def _constraints_from_json(obj: Dict[str, Any]):
    cons = obj.get("constraints")
    if not isinstance(cons, list):
        raise SerializationError("R1CS JSON missing 'constraints'")
    out = []
    for i, c in enumerate(cons):
        if not (isinstance(c, list) and len(c) == 3):
            raise SerializationError(f"constraint {i} must be a list of 3 maps")
        out.append(tuple(_lc_from_json(part, f"constraint {i}") for part in c))
    return out


def _count(obj: Dict[str, Any], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool) or v < 0:
        raise SerializationError(f"R1CS JSON field {key!r} must be a non-negative integer, got {v!r}")
    return v


def r1cs_from_json_obj(obj) -> R1CS:
    if not isinstance(obj, dict):
        raise SerializationError("R1CS JSON must be an object")
    num_inputs = _count(obj, "nPubInputs") + _count(obj, "nOutputs") + 1
    num_variables = _count(obj, "nVars")
    constraints = _constraints_from_json(obj)
    return R1CS.build(num_inputs, num_variables - num_inputs, constraints)


def r1cs_from_json(text: str) -> R1CS:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"malformed R1CS JSON: {e}") from e
    return r1cs_from_json_obj(obj)


def load_r1cs_json(path: str | Path) -> R1CS:
    return r1cs_from_json(Path(path).read_text())


def r1cs_from_bin(stream: BinaryIO) -> Tuple[R1CS, List[int]]:
    f = read_r1cs(stream)
    h = f.header
    num_inputs = 1 + h.n_pub_in + h.n_pub_out
    r = R1CS.build(num_inputs, h.n_wires - num_inputs, f.constraints)
    return r, f.wire_mapping


def load_r1cs_bin(path: str | Path) -> Tuple[R1CS, List[int]]:
    with Path(path).open("rb") as f:
        return r1cs_from_bin(f)


def load_r1cs(path: str | Path) -> Tuple[R1CS, Optional[List[int]]]:
    """Dispatch on suffix; the JSON form carries no wire mapping."""
    path = Path(path)
    if path.suffix == ".json":
        r, mapping = load_r1cs_json(path), None
    else:
        r, mapping = load_r1cs_bin(path)
    logger.debug("loaded %s: %d inputs, %d aux, %d constraints",
                 path, r.num_inputs, r.num_aux, r.num_constraints)
    return r, mapping


def summarize_r1cs(r: R1CS) -> Dict[str, int]:
    mult_rows = sum(1 for a, b, _ in r.constraints if a and b)
    return {
        "n_constraints": r.num_constraints,
        "n_vars": r.num_variables,
        "n_inputs": r.num_inputs,
        "n_aux": r.num_aux,
        "n_public": r.num_inputs - 1,
        "multiplicative_rows": mult_rows,
        "linear_rows": r.num_constraints - mult_rows,
    }
