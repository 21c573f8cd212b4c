from __future__ import annotations
from dataclasses import replace
from typing import Sequence, Tuple

from .types import Parameters, is_zero


def drop_zero_points(points: Sequence) -> Tuple:
    return tuple(p for p in points if not is_zero(p))


def filter_params(params: Parameters) -> Parameters:
    """
    Copy of params with identity points removed from h, a, b_g1 and b_g2.
    Positions are not preserved across tables after this.
    """
    return replace(
        params,
        h=drop_zero_points(params.h),
        a=drop_zero_points(params.a),
        b_g1=drop_zero_points(params.b_g1),
        b_g2=drop_zero_points(params.b_g2),
    )
