"""Host-side sampler that locates regions and reconstructs values from bricks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from exastitch.exa_brick_model import ExaBrickModel
from exastitch.exa_brick_sampler import add_basis_functions
from exastitch.sampler import Sample


@dataclass
class ExaBrickSamplerCPU:
    """Samples an :class:`ExaBrickModel` through its active brick regions."""

    model: ExaBrickModel | None = None
    _lowers: np.ndarray = field(default_factory=lambda: np.empty((0, 3)), repr=False)
    _uppers: np.ndarray = field(default_factory=lambda: np.empty((0, 3)), repr=False)

    def build(self, model: ExaBrickModel) -> bool:
        """Prepare the region lookup for ``model``."""
        self.model = model
        regions = model.abrs.value
        self._lowers = np.array([r.domain.lower for r in regions], dtype=float).reshape(-1, 3)
        self._uppers = np.array([r.domain.upper for r in regions], dtype=float).reshape(-1, 3)
        return True

    def find_region(self, pos: Sequence[float]) -> int | None:
        """Index of a region whose domain contains ``pos``, or ``None``."""
        if self.model is None:
            raise RuntimeError("sampler has not been built")
        p = np.asarray(pos, dtype=float).reshape(3)
        inside = np.all((self._lowers <= p) & (p <= self._uppers), axis=1)
        hits = np.flatnonzero(inside)
        return int(hits[0]) if len(hits) else None

    def sample(self, pos: Sequence[float]) -> Sample:
        """Reconstruct the scalar at ``pos``; ``prim_id`` is -1 outside all regions."""
        region_id = self.find_region(pos)
        if region_id is None:
            return Sample(-1, -1, 0.0)
        model = self.model
        abr = model.abrs.value[region_id]
        brick_ids = model.abrs.leaf_list[abr.leaf_list_begin : abr.leaf_list_begin + abr.leaf_list_size]
        sum_weighted = 0.0
        sum_weights = 0.0
        for brick_id in brick_ids:
            weighted, weights = add_basis_functions(model.bricks, model.scalars, brick_id, pos)
            sum_weighted += weighted
            sum_weights += weights
        value = sum_weighted / sum_weights if sum_weights != 0.0 else 0.0
        return Sample(0, -1, value)