"""Reconstruction of scalar values from overlapping bricks by basis functions."""

from __future__ import annotations

import math
from itertools import product
from typing import Sequence

from exastitch.abrs import ExaBrick


def get_scalar(
    bricks: Sequence[ExaBrick], scalars: Sequence[float], brick_id: int, ix: int, iy: int, iz: int
) -> float:
    """Scalar of cell ``(ix, iy, iz)`` of brick ``brick_id``."""
    brick = bricks[brick_id]
    sx, sy, _ = brick.size
    return float(scalars[brick.begin + ix + iy * sx + iz * sx * sy])


def add_basis_functions(
    bricks: Sequence[ExaBrick], scalars: Sequence[float], brick_id: int, pos: Sequence[float]
) -> tuple[float, float]:
    """Weighted value sum and weight sum of one brick's tent basis functions at ``pos``."""
    brick = bricks[brick_id]
    width = float(brick.cell_width)
    local = [(p - l) / width - 0.5 for p, l in zip(pos, brick.lower)]
    idx_lo = [max(-1, math.floor(v)) for v in local]
    frac = [v - lo for v, lo in zip(local, idx_lo)]

    # per axis: (index, weight, valid) for the lower and the upper neighbour
    choices = []
    for axis in range(3):
        lo = idx_lo[axis]
        hi = lo + 1
        size = brick.size[axis]
        choices.append(
            (
                (lo, 1.0 - frac[axis], 0 <= lo < size),
                (hi, frac[axis], hi < size),
            )
        )

    sum_weighted = 0.0
    sum_weights = 0.0
    for (iz, wz, vz), (iy, wy, vy), (ix, wx, vx) in product(choices[2], choices[1], choices[0]):
        if not (vz and vy and vx):
            continue
        weight = wz * wy * wx
        sum_weights += weight
        sum_weighted += weight * get_scalar(bricks, scalars, brick_id, ix, iy, iz)
    return sum_weighted, sum_weights