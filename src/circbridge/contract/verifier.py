from __future__ import annotations
import logging
from pathlib import Path

from ..core.errors import PointAtInfinity
from ..groth.types import G1Point, G2Point, VerifyingKey, g1_xy, g2_xy, is_zero

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).with_name("verifier_groth.sol")
POINT_AT_INFINITY = "<POINT_AT_INFINITY>"
IC_INDENT = " " * 8


def p1_to_sol(p: G1Point) -> str:
    if is_zero(p):
        raise PointAtInfinity("G1 point at infinity has no Solidity coordinates")
    x, y = g1_xy(p)
    return f"uint256({x}), uint256({y})"


def p2_to_sol(p: G2Point) -> str:
    if is_zero(p):
        raise PointAtInfinity("G2 point at infinity has no Solidity coordinates")
    (x0, x1), (y0, y1) = g2_xy(p)
    return f"[uint256({x1}), uint256({x0})], [uint256({y1}), uint256({y0})]"


def _render(fn, p, what: str, strict: bool) -> str:
    try:
        return fn(p)
    except PointAtInfinity:
        if strict:
            raise
        logger.warning("%s is the point at infinity, emitting %s", what, POINT_AT_INFINITY)
        return POINT_AT_INFINITY


def create_verifier_sol(vk: VerifyingKey, strict: bool = False, template: str | None = None) -> str:
    """
    Render the Groth16 Solidity verifier for `vk`. Points at infinity become
    the POINT_AT_INFINITY placeholder, or raise PointAtInfinity with strict.
    """
    if template is None:
        template = TEMPLATE_PATH.read_text()

    out = template.replace("<%vk_alfa1%>", _render(p1_to_sol, vk.alpha_g1, "vk_alfa1", strict))
    out = out.replace("<%vk_beta2%>", _render(p2_to_sol, vk.beta_g2, "vk_beta2", strict))
    out = out.replace("<%vk_gamma2%>", _render(p2_to_sol, vk.gamma_g2, "vk_gamma2", strict))
    out = out.replace("<%vk_delta2%>", _render(p2_to_sol, vk.delta_g2, "vk_delta2", strict))

    out = out.replace("<%vk_ic_length%>", str(len(vk.ic)))
    out = out.replace("<%vk_input_length%>", str(len(vk.ic) - 1))

    lines = []
    for i, p in enumerate(vk.ic):
        pt = _render(p1_to_sol, p, f"IC[{i}]", strict)
        lines.append(f"{IC_INDENT if lines else ''}vk.IC[{i}] = Pairing.G1Point({pt});\n")
    return out.replace("<%vk_ic_pts%>", "".join(lines))


def create_verifier_sol_file(vk: VerifyingKey, path, strict: bool = False) -> None:
    Path(path).write_text(create_verifier_sol(vk, strict=strict))
