"""Latitude/longitude to globe-space projection."""

from __future__ import annotations

import math

import numpy as np


def lat_lon_to_vector3(latitude: float, longitude: float, radius: float) -> np.ndarray:
    """Project geographic degrees onto a sphere of ``radius`` (y is up).

    Latitude is measured from the north pole and longitude is offset by 180
    degrees so the texture seam falls on the antimeridian. Inputs must satisfy
    ``-90 <= latitude <= 90`` and ``-180 <= longitude <= 180``; they are not
    clamped.
    """
    phi = (90.0 - latitude) * math.pi / 180.0
    theta = (longitude + 180.0) * math.pi / 180.0
    sin_phi = math.sin(phi)
    return np.array(
        (
            -radius * sin_phi * math.cos(theta),
            radius * math.cos(phi),
            radius * sin_phi * math.sin(theta),
        ),
        dtype=np.float64,
    )


def project_many(latitudes: np.ndarray, longitudes: np.ndarray, radius: float) -> np.ndarray:
    lat = np.asarray(latitudes, dtype=np.float64)
    lon = np.asarray(longitudes, dtype=np.float64)
    phi = np.radians(90.0 - lat)
    theta = np.radians(lon + 180.0)
    sin_phi = np.sin(phi)
    return np.stack(
        (
            -radius * sin_phi * np.cos(theta),
            radius * np.cos(phi),
            radius * sin_phi * np.sin(theta),
        ),
        axis=-1,
    )


def rotation_about_y(angle: float) -> np.ndarray:
    """Rotation matrix for a spin of ``angle`` radians about the up axis."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return np.array(
        (
            (cos_a, 0.0, sin_a),
            (0.0, 1.0, 0.0),
            (-sin_a, 0.0, cos_a),
        ),
        dtype=np.float64,
    )


__all__ = ["lat_lon_to_vector3", "project_many", "rotation_about_y"]
