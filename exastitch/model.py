"""Geometric primitives and the common volume model base."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

import numpy as np

Vec3 = tuple[float, float, float]

_INF = math.inf


def _vec3(values: Iterable[float]) -> Vec3:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


@dataclass
class Box3f:
    """Axis-aligned box; a default box is empty and grows through ``extend``."""

    lower: Vec3 = (_INF, _INF, _INF)
    upper: Vec3 = (-_INF, -_INF, -_INF)

    def __post_init__(self) -> None:
        self.lower = _vec3(self.lower)
        self.upper = _vec3(self.upper)

    def extend(self, other: Union["Box3f", Sequence[float]]) -> "Box3f":
        """Grow the box to enclose a point or another box; returns ``self``."""
        if isinstance(other, Box3f):
            lo, hi = other.lower, other.upper
        else:
            lo = hi = _vec3(other)
        self.lower = _vec3(min(a, b) for a, b in zip(self.lower, lo))
        self.upper = _vec3(max(a, b) for a, b in zip(self.upper, hi))
        return self

    def span(self) -> Vec3:
        return _vec3(u - l for l, u in zip(self.lower, self.upper))

    def center(self) -> Vec3:
        return _vec3((l + u) * 0.5 for l, u in zip(self.lower, self.upper))

    def volume(self) -> float:
        return math.prod(self.span())

    def overlaps(self, other: "Box3f") -> bool:
        return all(l <= ou for l, ou in zip(self.lower, other.upper)) and all(
            u >= ol for u, ol in zip(self.upper, other.lower)
        )

    def contains(self, point: Sequence[float]) -> bool:
        return all(l <= p <= u for l, p, u in zip(self.lower, point, self.upper))

    def intersection(self, other: "Box3f") -> "Box3f":
        return Box3f(
            _vec3(max(a, b) for a, b in zip(self.lower, other.lower)),
            _vec3(min(a, b) for a, b in zip(self.upper, other.upper)),
        )

    def is_empty(self) -> bool:
        return any(u < l for l, u in zip(self.lower, self.upper))


@dataclass
class Range1f:
    """Closed scalar interval; a default range is empty."""

    lower: float = _INF
    upper: float = -_INF

    def extend(self, value: Union["Range1f", float]) -> "Range1f":
        """Grow the range to include a value or another range; returns ``self``."""
        if isinstance(value, Range1f):
            lo, hi = value.lower, value.upper
        else:
            lo = hi = float(value)
        self.lower = min(self.lower, lo)
        self.upper = max(self.upper, hi)
        return self

    def is_empty(self) -> bool:
        return self.upper < self.lower


class Affine3f:
    """Affine transform ``x -> linear @ x + p``."""

    def __init__(self, linear: np.ndarray | None = None, p: Sequence[float] | None = None):
        self.linear = np.eye(3) if linear is None else np.asarray(linear, dtype=float).reshape(3, 3)
        self.p = np.zeros(3) if p is None else np.asarray(p, dtype=float).reshape(3)

    @staticmethod
    def translate(offset: Sequence[float]) -> "Affine3f":
        return Affine3f(np.eye(3), offset)

    @staticmethod
    def scale(factors: Sequence[float]) -> "Affine3f":
        return Affine3f(np.diag(np.asarray(factors, dtype=float)), None)

    def inverse(self) -> "Affine3f":
        inv = np.linalg.inv(self.linear)
        return Affine3f(inv, -(inv @ self.p))

    def transform_point(self, point: Sequence[float]) -> Vec3:
        return _vec3(self.linear @ np.asarray(point, dtype=float) + self.p)

    def __matmul__(self, other: "Affine3f") -> "Affine3f":
        """Compose: ``(a @ b)`` applies ``b`` first, then ``a``."""
        if not isinstance(other, Affine3f):
            return NotImplemented
        return Affine3f(self.linear @ other.linear, self.linear @ other.p + self.p)

    def __repr__(self) -> str:
        return f"Affine3f(linear={self.linear.tolist()}, p={self.p.tolist()})"


@dataclass
class Model:
    """Base of all volume models: bounds, value range and voxel/world transforms."""

    cell_bounds: Box3f = field(default_factory=Box3f)
    value_range: Range1f = field(default_factory=Range1f)
    voxel_space_transform: Affine3f = field(default_factory=Affine3f)
    light_space_transform: Affine3f = field(default_factory=Affine3f)
    grid_dims: tuple[int, int, int] | None = None
    mirror_transform: Affine3f | None = None

    def set_num_grid_cells(self, dims: Sequence[int]) -> None:
        """Set the number of macro cells of the space-skipping grid."""
        if self.grid_dims is not None:
            raise RuntimeError("must set num grid cells before calling initGPU!")
        x, y, z = (int(d) for d in dims)
        self.grid_dims = (x, y, z)

    def set_voxel_space_transform(self, remap_from: Box3f, remap_to: Box3f) -> None:
        voxel_space = Affine3f.translate(remap_from.lower) @ Affine3f.scale(remap_from.span())
        world_space = Affine3f.translate(remap_to.lower) @ Affine3f.scale(remap_to.span())
        self.voxel_space_transform = voxel_space @ world_space.inverse()

    def get_bounds(self) -> Box3f:
        """World-space bounds, after mapping the voxel bounds back to world space."""
        to_world = self.voxel_space_transform.inverse()
        bounds = Box3f(
            to_world.transform_point(self.cell_bounds.lower),
            to_world.transform_point(self.cell_bounds.upper),
        )
        if self.mirror_transform is not None:
            lo = self.mirror_transform.transform_point(self.cell_bounds.lower)
            hi = self.mirror_transform.transform_point(self.cell_bounds.upper)
            mirror_lower = _vec3(min(a, b) for a, b in zip(lo, hi))
            mirror_upper = _vec3(max(a, b) for a, b in zip(lo, hi))
            bounds.extend(
                Box3f(
                    to_world.transform_point(mirror_lower),
                    to_world.transform_point(mirror_upper),
                )
            )
        return bounds

    def init_mirror_exajet(self) -> None:
        """Set up a reflection about the plane y = upper.y of the cell bounds."""
        upper = self.cell_bounds.upper
        full = (
            Affine3f.translate(upper)
            @ Affine3f.scale((1.0, -1.0, 1.0))
            @ Affine3f.translate(tuple(-u for u in upper))
        )
        linear = np.diag([1.0, full.linear[1, 1], 1.0])
        self.mirror_transform = Affine3f(linear, (0.0, full.p[1], 0.0))