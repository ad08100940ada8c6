"""Model made of individual AMR cells with one scalar per cell."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

import numpy as np

from exastitch.model import Box3f, Model

_CELL_DTYPE = np.dtype([("pos", "<i4", (3,)), ("level", "<i4")])
_SCALAR_DTYPE = np.dtype("<f4")


@dataclass(frozen=True)
class AMRCell:
    """One AMR cell: integer position and refinement level (width ``1 << level``)."""

    pos: tuple[int, int, int]
    level: int

    @property
    def width(self) -> int:
        return 1 << self.level


class AMRMemStats(NamedTuple):
    cells_bytes: int
    scalars_bytes: int


def _read_array(path: str | Path, dtype: np.dtype) -> np.ndarray:
    """Read a raw binary array; a missing or unreadable file yields an empty array."""
    try:
        data = Path(path).read_bytes()
    except OSError:
        return np.empty(0, dtype=dtype)
    count = len(data) // dtype.itemsize
    return np.frombuffer(data[: count * dtype.itemsize], dtype=dtype)


@dataclass
class AMRCellModel(Model):
    cells: list[AMRCell] = field(default_factory=list)
    scalars: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float32))

    @classmethod
    def load(cls, cell_file_name: str | Path, scalar_file_name: str | Path) -> "AMRCellModel":
        """Load cells and scalars from raw binary files."""
        result = cls()
        result.scalars = _read_array(scalar_file_name, _SCALAR_DTYPE).astype(np.float32)
        raw_cells = _read_array(cell_file_name, _CELL_DTYPE)

        result.cells = [
            AMRCell((int(p[0]), int(p[1]), int(p[2])), int(level))
            for p, level in zip(raw_cells["pos"], raw_cells["level"])
        ]

        if len(raw_cells):
            pos = raw_cells["pos"].astype(np.int64)
            widths = np.left_shift(1, raw_cells["level"].astype(np.int64))[:, None]
            result.cell_bounds.extend(pos.min(axis=0).tolist())
            result.cell_bounds.extend((pos + widths).max(axis=0).tolist())
            covered = result.scalars[: len(raw_cells)]
            if len(covered):
                result.value_range.extend(float(covered.min()))
                result.value_range.extend(float(covered.max()))
        return result

    def mem_stats(self) -> AMRMemStats:
        """Memory used by the cell and scalar arrays, in bytes."""
        if not self.cells:
            return AMRMemStats(0, 0)
        return AMRMemStats(
            len(self.cells) * _CELL_DTYPE.itemsize,
            len(self.scalars) * _SCALAR_DTYPE.itemsize,
        )