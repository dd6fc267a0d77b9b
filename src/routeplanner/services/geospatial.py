"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..config import settings
from ..models.domain import Origin, Stop

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def stop_distance_km(a: Stop, b: Stop, *, penalty_km: float | None = None) -> float:
    """Straight-line distance between two stops.

    A stop without usable coordinates yields the penalty distance instead of an
    error, so it naturally sorts last in every ranking.
    """
    if not (a.has_valid_coordinates and b.has_valid_coordinates):
        return settings.invalid_coordinate_penalty_km if penalty_km is None else penalty_km
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def distance_to_origin_km(stop: Stop, origin: Origin, *, penalty_km: float | None = None) -> float:
    if not stop.has_valid_coordinates:
        return settings.invalid_coordinate_penalty_km if penalty_km is None else penalty_km
    return haversine_km(origin.latitude, origin.longitude, stop.latitude, stop.longitude)


def haversine_matrix(latitudes: Sequence[float], longitudes: Sequence[float]) -> np.ndarray:
    """Return the symmetric pairwise distance matrix (km) for the given points."""

    lat = np.radians(np.asarray(latitudes, dtype=float))
    lon = np.radians(np.asarray(longitudes, dtype=float))
    d_phi = lat[:, None] - lat[None, :]
    d_lambda = lon[:, None] - lon[None, :]
    a = np.sin(d_phi / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(d_lambda / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(np.clip(1 - a, 0.0, None)))
    return EARTH_RADIUS_KM * c


def haversine_to_point(latitudes: Sequence[float], longitudes: Sequence[float], lat: float, lon: float) -> np.ndarray:
    """Distances (km) from one fixed point to each of the given points."""

    lats = np.radians(np.asarray(latitudes, dtype=float))
    lons = np.radians(np.asarray(longitudes, dtype=float))
    phi = math.radians(lat)
    d_phi = lats - phi
    d_lambda = lons - math.radians(lon)
    a = np.sin(d_phi / 2) ** 2 + math.cos(phi) * np.cos(lats) * np.sin(d_lambda / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(np.clip(1 - a, 0.0, None)))
    return EARTH_RADIUS_KM * c
