"""Ray casting against marker bounding spheres."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .constants import MARKER_PICK_RADIUS
from .models import Marker


@dataclass(frozen=True)
class Ray:
    origin: np.ndarray
    direction: np.ndarray

    @classmethod
    def between(cls, near: Sequence[float], far: Sequence[float]) -> "Ray":
        start = np.asarray(near, dtype=np.float64)[:3]
        end = np.asarray(far, dtype=np.float64)[:3]
        direction = end - start
        length = float(np.linalg.norm(direction))
        if length == 0.0:
            raise ValueError("Cannot build a ray from two identical points")
        return cls(origin=start, direction=direction / length)


def intersect_spheres(ray: Ray, centers: np.ndarray, radii: np.ndarray) -> np.ndarray:
    """Distance along ``ray`` to each sphere's first hit, ``inf`` for a miss."""
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    radii = np.asarray(radii, dtype=np.float64).reshape(-1)
    offset = ray.origin[None, :] - centers
    b = offset @ ray.direction
    c = np.einsum("ij,ij->i", offset, offset) - radii * radii
    disc = b * b - c
    hits = np.full(centers.shape[0], np.inf, dtype=np.float64)
    valid = disc >= 0.0
    if not np.any(valid):
        return hits
    root = np.sqrt(disc[valid])
    near = -b[valid] - root
    far = -b[valid] + root
    # Origin inside the sphere: the exit point is the first hit ahead of the ray.
    distance = np.where(near >= 0.0, near, far)
    distance = np.where(distance >= 0.0, distance, np.inf)
    hits[valid] = distance
    return hits


def nearest_marker(
    ray: Ray,
    markers: Sequence[Marker],
    *,
    positions: Optional[np.ndarray] = None,
    transform: Optional[np.ndarray] = None,
    occluder_radius: Optional[float] = None,
) -> Optional[Marker]:
    """Return the marker whose bounding sphere the ray hits first.

    ``transform`` is an optional 3x3 rotation applied to marker positions
    so picking follows the spinning globe. With ``occluder_radius`` set,
    markers hidden behind a sphere of that radius at the origin are ignored.
    """
    if not markers:
        return None
    centers = positions if positions is not None else np.stack([marker.position for marker in markers])
    if transform is not None:
        centers = centers @ np.asarray(transform, dtype=np.float64).T
    radii = np.array([marker.scale * MARKER_PICK_RADIUS for marker in markers], dtype=np.float64)
    distances = intersect_spheres(ray, centers, radii)
    if occluder_radius is not None:
        body = intersect_spheres(ray, np.zeros((1, 3)), np.array([occluder_radius]))[0]
        distances = np.where(distances > body, np.inf, distances)
    index = int(np.argmin(distances))
    if not np.isfinite(distances[index]):
        return None
    return markers[index]


__all__ = ["Ray", "intersect_spheres", "nearest_marker"]
