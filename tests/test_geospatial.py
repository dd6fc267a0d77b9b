import math

import numpy as np
import pytest

from routeplanner.models.domain import Origin, Stop, is_valid_coordinate
from routeplanner.services.geospatial import (
    distance_to_origin_km,
    haversine_km,
    haversine_matrix,
    haversine_to_point,
    stop_distance_km,
)


def _stop(sid: str, lat: float | None, lon: float | None) -> Stop:
    return Stop(
        stop_id=sid,
        order_id=f"O-{sid}",
        customer_name=f"Customer {sid}",
        address="Somewhere",
        area="Carmen",
        latitude=lat,
        longitude=lon,
    )


def test_haversine_same_point_is_zero():
    assert haversine_km(8.485, 124.65, 8.485, 124.65) == 0.0


def test_haversine_one_degree_of_latitude():
    expected = 6371.0 * math.pi / 180
    assert haversine_km(0.0, 10.0, 1.0, 10.0) == pytest.approx(expected, rel=1e-9)


def test_stop_distance_uses_penalty_for_missing_coordinates():
    located = _stop("S1", 8.49, 124.65)
    missing = _stop("S2", None, 124.65)

    assert stop_distance_km(located, missing) == 1000.0
    assert stop_distance_km(missing, located, penalty_km=5.0) == 5.0


def test_distance_to_origin_matches_haversine():
    depot = Origin(latitude=8.485, longitude=124.65, name="Depot")
    stop = _stop("S1", 8.5, 124.66)

    assert distance_to_origin_km(stop, depot) == pytest.approx(haversine_km(8.485, 124.65, 8.5, 124.66))
    assert distance_to_origin_km(_stop("S2", None, None), depot) == 1000.0


def test_haversine_matrix_matches_scalar_distances():
    lats = [8.485, 8.49, 8.51, 8.47]
    lons = [124.65, 124.66, 124.64, 124.63]

    matrix = haversine_matrix(lats, lons)

    assert matrix.shape == (4, 4)
    assert np.allclose(np.diag(matrix), 0.0)
    assert np.allclose(matrix, matrix.T)
    for i in range(4):
        for j in range(4):
            assert matrix[i, j] == pytest.approx(haversine_km(lats[i], lons[i], lats[j], lons[j]), abs=1e-9)


def test_haversine_to_point_matches_scalar_distances():
    lats = [8.49, 8.51]
    lons = [124.66, 124.64]

    distances = haversine_to_point(lats, lons, 8.485, 124.65)

    assert distances[0] == pytest.approx(haversine_km(8.485, 124.65, 8.49, 124.66), abs=1e-9)
    assert distances[1] == pytest.approx(haversine_km(8.485, 124.65, 8.51, 124.64), abs=1e-9)


@pytest.mark.parametrize(
    "lat, lon, expected",
    [
        (8.485, 124.65, True),
        (None, 124.65, False),
        (8.485, None, False),
        (float("nan"), 124.65, False),
        (91.0, 124.65, False),
        (8.485, 181.0, False),
        (0.0, 0.0, False),
        (0.0, 124.65, True),
    ],
)
def test_is_valid_coordinate(lat, lon, expected):
    assert is_valid_coordinate(lat, lon) is expected
