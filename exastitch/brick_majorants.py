"""Per-brick value ranges and the choice of majorant traversal structure."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from exastitch.abrs import ExaBrick
from exastitch.exa_brick_model import TraversalMode
from exastitch.model import Range1f


class AccelKind(Enum):
    """Kind of structure traversed for space skipping."""

    BVH = "bvh"
    GRID = "grid"
    KDTREE = "kdtree"


class OpacityOwner(Enum):
    """Which primitives the max-opacity (majorant) buffer is stored per."""

    REGIONS = "regions"
    GRID = "grid"
    BRICKS = "bricks"


@dataclass(frozen=True)
class MajorantSource:
    """Traversal structure and the primitives it holds majorants for.

    ``structure`` names the concrete acceleration structure within its kind.
    """

    accel: AccelKind
    structure: str
    max_opacities: OpacityOwner


_SOURCES: dict[TraversalMode, MajorantSource] = {
    TraversalMode.EXABRICK_ABR: MajorantSource(AccelKind.BVH, "abr", OpacityOwner.REGIONS),
    TraversalMode.MC_DDA: MajorantSource(AccelKind.GRID, "grid", OpacityOwner.GRID),
    TraversalMode.MC_BVH: MajorantSource(AccelKind.BVH, "grid", OpacityOwner.GRID),
    TraversalMode.EXABRICK_KDTREE: MajorantSource(AccelKind.KDTREE, "kdtree", OpacityOwner.BRICKS),
    TraversalMode.EXABRICK_BVH: MajorantSource(AccelKind.BVH, "brick", OpacityOwner.BRICKS),
    TraversalMode.EXABRICK_EXT_BVH: MajorantSource(AccelKind.BVH, "ext", OpacityOwner.BRICKS),
}


def majorant_source(traversal_mode: TraversalMode | int) -> MajorantSource:
    """Return the majorant traversal structure used by ``traversal_mode``."""
    try:
        mode = TraversalMode(traversal_mode)
    except ValueError:
        raise ValueError("wrong traversal mode?!") from None
    return _SOURCES[mode]


def compute_brick_value_ranges(
    bricks: Sequence[ExaBrick],
    scalars: Sequence[float],
    adjacent_bricks: Sequence[Sequence[int]],
) -> list[Range1f]:
    """Value range of every brick, splatted into the adjacent bricks it reaches.

    Each brick's range covers its own cells; every cell whose basis-function
    support overlaps the domain of an adjacent brick also extends that brick's
    range.
    """
    if len(adjacent_bricks) != len(bricks):
        raise ValueError("need one adjacency list per brick")

    data = np.asarray(scalars, dtype=np.float32)
    ranges = [Range1f(1e30, -1e30) for _ in bricks]
    domains = [brick.get_domain() for brick in bricks]

    for brick, own_range, neighbours in zip(bricks, ranges, adjacent_bricks):
        sx, sy, sz = brick.size
        cells = data[brick.begin : brick.begin + brick.num_cells()].reshape(sz, sy, sx)
        if cells.size == 0:
            continue
        own_range.extend(float(cells.min()))
        own_range.extend(float(cells.max()))
        if not neighbours:
            continue

        width = float(brick.cell_width)
        half = 0.5 * width
        cell_lo = []
        cell_hi = []
        for axis in range(3):
            steps = np.arange(brick.size[axis], dtype=float)
            cell_lo.append(brick.lower[axis] + steps * width - half)
            cell_hi.append(brick.lower[axis] + (steps + 1.0) * width + half)

        for neighbour in neighbours:
            domain = domains[neighbour]
            hits = [
                np.nonzero((cell_lo[a] <= domain.upper[a]) & (cell_hi[a] >= domain.lower[a]))[0]
                for a in range(3)
            ]
            if any(len(h) == 0 for h in hits):
                continue
            selected = cells[np.ix_(hits[2], hits[1], hits[0])]
            ranges[neighbour].extend(float(selected.min()))
            ranges[neighbour].extend(float(selected.max()))

    return ranges