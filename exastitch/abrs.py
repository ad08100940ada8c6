"""Active brick regions: a partition of space by the set of overlapping bricks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from exastitch.model import Box3f, Range1f, Vec3

logger = logging.getLogger(__name__)

BuildPrim = tuple[Box3f, int]


@dataclass(frozen=True)
class ExaBrick:
    """A block of same-level cells; ``begin`` is the offset of its first scalar."""

    lower: tuple[int, int, int]
    size: tuple[int, int, int]
    level: int
    begin: int = 0

    @property
    def cell_width(self) -> int:
        return 1 << self.level

    def num_cells(self) -> int:
        sx, sy, sz = self.size
        return sx * sy * sz

    def get_bounds(self) -> Box3f:
        """Box covered by the brick's cells."""
        width = self.cell_width
        return Box3f(
            tuple(float(l) for l in self.lower),
            tuple(float(l + s * width) for l, s in zip(self.lower, self.size)),
        )

    def get_domain(self) -> Box3f:
        """Support of the brick's basis functions: bounds grown by half a cell."""
        width = float(self.cell_width)
        return Box3f(
            tuple(l - 0.5 * width for l in self.lower),
            tuple(l + (s + 0.5) * width for l, s in zip(self.lower, self.size)),
        )

    def get_index_index(self, idx: Sequence[int]) -> int:
        """Index into the flat scalar array of the cell at brick-local ``idx``."""
        x, y, z = idx
        sx, sy, _ = self.size
        return self.begin + x + sx * (y + sy * z)


@dataclass
class ABR:
    """A region of space in which a fixed set of bricks overlap."""

    domain: Box3f
    value_range: Range1f = field(default_factory=Range1f)
    leaf_list_begin: int = 0
    leaf_list_size: int = 0
    finest_level_cell_width: float = 0.0


@dataclass
class BuildStats:
    """Statistics gathered while building the regions."""

    num_regions: int = 0
    num_bricks: int = 0
    num_cells: int = 0
    total_volume_in_regions: float = 0.0
    volume_weighted_num_bricks_in_region: float = 0.0
    num_bricks_in_regions: int = 0
    max_bricks_per_region: int = 0
    biggest_leaf: int = 0

    @property
    def avg_bricks_per_region(self) -> float:
        return self.num_bricks_in_regions / self.num_regions if self.num_regions else 0.0

    @property
    def avg_bricks_per_region_by_volume(self) -> float:
        if not self.total_volume_in_regions:
            return 0.0
        return self.volume_weighted_num_bricks_in_region / self.total_volume_in_regions


def _arg_max(v: Vec3) -> int:
    x, y, z = v
    if x >= y:
        return 0 if x >= z else 2
    return 1 if y >= z else 2


def _strictly_nonempty(box: Box3f) -> bool:
    return all(l < u for l, u in zip(box.lower, box.upper))


def _with_axis(v: Vec3, dim: int, value: float) -> Vec3:
    out = list(v)
    out[dim] = value
    return (out[0], out[1], out[2])


@dataclass
class ABRs:
    """The regions and the shared list of brick ids they refer to."""

    value: list[ABR] = field(default_factory=list)
    leaf_list: list[int] = field(default_factory=list)
    stats: BuildStats = field(default_factory=BuildStats)

    def add_leaf(self, build_prims: Sequence[BuildPrim], domain: Box3f) -> None:
        """Record a region over ``domain`` for the bricks in ``build_prims``."""
        if not _strictly_nonempty(domain):
            return
        brick_ids = sorted({brick_id for _, brick_id in build_prims})
        if not brick_ids:
            return

        leaf = ABR(domain=domain, leaf_list_size=len(brick_ids))
        vol = domain.volume()
        stats = self.stats
        stats.total_volume_in_regions += vol
        stats.volume_weighted_num_bricks_in_region += vol * leaf.leaf_list_size
        stats.num_regions += 1
        stats.num_bricks_in_regions += leaf.leaf_list_size
        stats.max_bricks_per_region = max(stats.max_bricks_per_region, leaf.leaf_list_size)
        stats.biggest_leaf = max(stats.biggest_leaf, len(build_prims))

        leaf.leaf_list_begin = len(self.leaf_list)
        self.leaf_list.extend(brick_ids)
        self.value.append(leaf)

    def build_rec(self, build_prims: Sequence[BuildPrim], domain: Box3f) -> None:
        """Split ``domain`` at brick-domain planes until no plane lies inside a region."""
        stack: list[tuple[list[BuildPrim], Box3f]] = [(list(build_prims), domain)]
        while stack:
            prims, dom = stack.pop()
            if not prims:
                continue
            if any(u == l for l, u in zip(dom.lower, dom.upper)):
                logger.warning("empty domain %s", dom)
                continue

            split = self._choose_split(prims, dom)
            if split is None:
                self.add_leaf(prims, dom)
                continue

            dim, pos = split
            domain_l = Box3f(dom.lower, _with_axis(dom.upper, dim, pos))
            domain_r = Box3f(_with_axis(dom.lower, dim, pos), dom.upper)
            prims_l: list[BuildPrim] = []
            prims_r: list[BuildPrim] = []
            for box, brick_id in prims:
                clipped_l = box.intersection(domain_l)
                if _strictly_nonempty(clipped_l):
                    prims_l.append((clipped_l, brick_id))
                clipped_r = box.intersection(domain_r)
                if _strictly_nonempty(clipped_r):
                    prims_r.append((clipped_r, brick_id))
            # the right half is built before the left one
            stack.append((prims_l, domain_l))
            stack.append((prims_r, domain_r))

    @staticmethod
    def _choose_split(prims: Sequence[BuildPrim], dom: Box3f) -> tuple[int, float] | None:
        target = dom.center()
        best_pos = list(dom.lower)
        best_dist = list(dom.span())
        for box, _ in prims:
            for dim in range(3):
                for pos in (box.upper[dim], box.lower[dim]):
                    if pos <= dom.lower[dim] or pos >= dom.upper[dim]:
                        continue
                    dist = abs(target[dim] - pos)
                    if dist < best_dist[dim]:
                        best_pos[dim] = pos
                        best_dist[dim] = dist

        widest = _arg_max(dom.span())
        for i in range(3):
            dim = (widest + i) % 3
            if dom.lower[dim] < best_pos[dim] < dom.upper[dim]:
                return dim, best_pos[dim]
        return None

    def compute_value_range(
        self, abr: ABR, bricks: Sequence[ExaBrick], scalars: Sequence[float]
    ) -> None:
        """Set ``abr.value_range`` to the range of all cells whose support touches it."""
        data = np.asarray(scalars, dtype=np.float32)
        abr.value_range = Range1f()
        lo_d, hi_d = abr.domain.lower, abr.domain.upper
        for brick_id in self.leaf_list[abr.leaf_list_begin : abr.leaf_list_begin + abr.leaf_list_size]:
            brick = bricks[brick_id]
            width = float(brick.cell_width)
            valid = []
            for axis in range(3):
                centers = brick.lower[axis] + (np.arange(brick.size[axis]) + 0.5) * width
                mask = (centers - width <= hi_d[axis]) & (centers + width >= lo_d[axis])
                valid.append(np.nonzero(mask)[0])
            if any(len(v) == 0 for v in valid):
                continue
            sx, sy, sz = brick.size
            cells = data[brick.begin : brick.begin + brick.num_cells()].reshape(sz, sy, sx)
            selected = cells[np.ix_(valid[2], valid[1], valid[0])]
            abr.value_range.extend(float(selected.min()))
            abr.value_range.extend(float(selected.max()))

    def build_from(self, bricks: Sequence[ExaBrick], scalars: Sequence[float]) -> None:
        """Build the regions over ``bricks`` and their value ranges from ``scalars``."""
        self.stats = BuildStats(
            num_bricks=len(bricks),
            num_cells=sum(brick.num_cells() for brick in bricks),
        )
        self.value = []
        self.leaf_list = []

        bounds = Box3f()
        build_prims: list[BuildPrim] = []
        for brick_id, brick in enumerate(bricks):
            domain = brick.get_domain()
            bounds.extend(domain)
            build_prims.append((domain, brick_id))

        logger.info("building exa overlap regions, #inputs %d, bounds %s", len(build_prims), bounds)
        self.build_rec(build_prims, bounds)

        data = np.asarray(scalars, dtype=np.float32)
        for region in self.value:
            ids = self.leaf_list[region.leaf_list_begin : region.leaf_list_begin + region.leaf_list_size]
            finest = min(bricks[i].level for i in ids)
            region.finest_level_cell_width = float(1 << finest)
            self.compute_value_range(region, bricks, data)

        logger.info(
            "regions: %d, avg bricks/region %.3f, max %d",
            self.stats.num_regions,
            self.stats.avg_bricks_per_region,
            self.stats.max_bricks_per_region,
        )