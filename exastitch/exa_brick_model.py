"""Brick-based AMR model with active brick regions built over it."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import ClassVar, NamedTuple, Sequence

import numpy as np

from exastitch.abrs import ABRs, ExaBrick
from exastitch.model import Model

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<7i")
_INDEX_DTYPE = np.dtype("<i4")
_SCALAR_DTYPE = np.dtype("<f4")

# Sizes of the packed records the statistics are reported in.
_BRICK_BYTES = 32
_ABR_BYTES = 44
_INT_BYTES = 4
_FLOAT_BYTES = 4


class TraversalMode(IntEnum):
    """Acceleration structure used to traverse majorants."""

    EXABRICK_ABR = 0
    MC_DDA = 1
    MC_BVH = 2
    EXABRICK_KDTREE = 3
    EXABRICK_BVH = 4
    EXABRICK_EXT_BVH = 5


class SamplerMode(IntEnum):
    """Acceleration structure used to locate sample points."""

    ABR_BVH = 0
    EXT_BVH = 1


class ExaBrickMemStats(NamedTuple):
    bricks_bytes: int
    scalars_bytes: int
    abrs_bytes: int
    abr_leaf_list_bytes: int


def _read_scalars(path: str | Path) -> np.ndarray:
    try:
        data = Path(path).read_bytes()
    except OSError:
        return np.empty(0, dtype=np.float32)
    count = len(data) // _SCALAR_DTYPE.itemsize
    return np.frombuffer(data[: count * _SCALAR_DTYPE.itemsize], dtype=_SCALAR_DTYPE).astype(np.float32)


def _parse_bricks(data: bytes) -> tuple[list[ExaBrick], np.ndarray]:
    """Parse a brick file: per brick size, lower, level, then one cell id per cell."""
    bricks: list[ExaBrick] = []
    chunks: list[np.ndarray] = []
    num_indices = 0
    offset = 0
    while len(data) - offset >= _HEADER.size:
        header = _HEADER.unpack_from(data, offset)
        offset += _HEADER.size
        size = (header[0], header[1], header[2])
        lower = (header[3], header[4], header[5])
        level = header[6]
        count = size[0] * size[1] * size[2]
        available = min(count, (len(data) - offset) // _INDEX_DTYPE.itemsize)
        cell_ids = np.zeros(count, dtype=np.int64)
        cell_ids[:available] = np.frombuffer(data, dtype=_INDEX_DTYPE, count=available, offset=offset)
        offset += available * _INDEX_DTYPE.itemsize
        bricks.append(ExaBrick(lower=lower, size=size, level=level, begin=num_indices))
        chunks.append(cell_ids)
        num_indices += count
    indices = np.concatenate(chunks) if chunks else np.empty(0, dtype=np.int64)
    return bricks, indices


@dataclass
class ExaBrickModel(Model):
    """Bricks of same-level cells, their scalars in brick order and the regions over them."""

    traversal_mode: ClassVar[TraversalMode] = TraversalMode.EXABRICK_ABR
    sampler_mode: ClassVar[SamplerMode] = SamplerMode.ABR_BVH

    bricks: list[ExaBrick] = field(default_factory=list)
    scalars: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float32))
    abrs: ABRs = field(default_factory=ABRs)
    adjacent_bricks: list[list[int]] = field(default_factory=list)

    @classmethod
    def load(cls, brick_file_name: str | Path, scalar_file_name: str | Path) -> "ExaBrickModel":
        """Load bricks and scalars from raw binary files and build the regions.

        A missing brick file yields an empty, uninitialised model.
        """
        result = cls()
        ordered = _read_scalars(scalar_file_name)
        try:
            data = Path(brick_file_name).read_bytes()
        except OSError:
            return result

        bricks, indices = _parse_bricks(data)
        logger.info("done loading exabricks, found %d bricks with %d cells", len(bricks), len(indices))

        if np.any(indices < 0):
            raise ValueError("overflow in index vector...")
        if np.any(indices >= len(ordered)):
            raise ValueError("invalid cell ID")

        result.bricks = bricks
        result.scalars = ordered[indices].astype(np.float32)
        result.init()
        return result

    @classmethod
    def from_bricks(cls, bricks: Sequence[ExaBrick], scalars: Sequence[float]) -> "ExaBrickModel":
        """Build a model from bricks and scalars already in brick order."""
        if not bricks:
            raise ValueError("at least one brick is required")
        result = cls()
        result.bricks = list(bricks)
        last = result.bricks[-1]
        num_cells = last.begin + last.num_cells()
        data = np.asarray(scalars, dtype=np.float32)
        if len(data) < num_cells:
            raise ValueError(f"expected at least {num_cells} scalars, got {len(data)}")
        result.scalars = data[:num_cells].copy()
        result.init()
        return result

    def init(self) -> None:
        """Build regions, global bounds and value range, and adjacency if needed."""
        self.abrs.build_from(self.bricks, self.scalars)

        for brick in self.bricks:
            self.cell_bounds.extend(brick.get_bounds())
        for abr in self.abrs.value:
            self.value_range.extend(abr.value_range)

        mode = type(self).traversal_mode
        if type(self).sampler_mode == SamplerMode.EXT_BVH or mode in (
            TraversalMode.EXABRICK_BVH,
            TraversalMode.EXABRICK_EXT_BVH,
            TraversalMode.EXABRICK_KDTREE,
        ):
            self._build_adjacency()

    def _build_adjacency(self) -> None:
        """Link bricks that share a region and whose domains overlap."""
        logger.info("building adjacent brick list")
        adjacent: list[list[int]] = [[] for _ in self.bricks]
        domains = [brick.get_domain() for brick in self.bricks]
        leaf_list = self.abrs.leaf_list
        for abr in self.abrs.value:
            ids = leaf_list[abr.leaf_list_begin : abr.leaf_list_begin + abr.leaf_list_size]
            for a in ids:
                for b in ids:
                    if a == b or not domains[a].overlaps(domains[b]):
                        continue
                    if b not in adjacent[a]:
                        adjacent[a].append(b)
                    if a not in adjacent[b]:
                        adjacent[b].append(a)
        self.adjacent_bricks = adjacent

    def mem_stats(self) -> ExaBrickMemStats:
        """Memory used by bricks, scalars, regions and the region leaf list, in bytes."""
        return ExaBrickMemStats(
            len(self.bricks) * _BRICK_BYTES,
            len(self.scalars) * _FLOAT_BYTES,
            len(self.abrs.value) * _ABR_BYTES,
            len(self.abrs.leaf_list) * _INT_BYTES,
        )