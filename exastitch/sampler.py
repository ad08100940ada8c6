"""Sampling result types and the ray/box slab test."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from exastitch.model import Box3f, Vec3


@dataclass(frozen=True)
class Sample:
    """Result of sampling the volume; ``prim_id < 0`` means no hit."""

    prim_id: int
    cell_id: int
    value: float


@dataclass(frozen=True)
class SpatialDomain:
    """Ray-space interval ``[t0, t1]`` with an optional domain id."""

    t0: float
    t1: float
    domain_id: int = -1


@dataclass(frozen=True)
class Ray:
    origin: Vec3
    direction: Vec3
    tmin: float = 0.0
    tmax: float = float("inf")


def box_test(ray: Ray, box: Box3f) -> tuple[float, float] | None:
    """Clip the ray to the box; return ``(t0, t1)`` when it overlaps, else ``None``."""
    origin = np.asarray(ray.origin, dtype=float)
    direction = np.asarray(ray.direction, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        lo = (np.asarray(box.lower, dtype=float) - origin) / direction
        hi = (np.asarray(box.upper, dtype=float) - origin) / direction
    near = np.fmin(lo, hi)
    far = np.fmax(lo, hi)
    t0 = max(ray.tmin, float(np.nanmax(near)) if not np.all(np.isnan(near)) else -np.inf)
    t1 = min(ray.tmax, float(np.nanmin(far)) if not np.all(np.isnan(far)) else np.inf)
    if t0 < t1:
        return t0, t1
    return None