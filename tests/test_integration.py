from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from routeplanner.main import create_app

SMALL = {"population_size": 20, "max_generations": 30, "elite_count": 2}


def _stop(sid: str, lat: float | None, lon: float | None) -> dict:
    return {
        "id": sid,
        "order_id": f"O-{sid}",
        "customer_name": f"Customer {sid}",
        "address": "Somewhere",
        "barangay": "Carmen",
        "latitude": lat,
        "longitude": lon,
    }


def _stops() -> list[dict]:
    return [
        _stop("P3", 8.5060, 124.6490),
        _stop("P1", 8.4880, 124.6510),
        _stop("P4", 8.5120, 124.6600),
        _stop("P2", 8.4980, 124.6580),
    ]


DEPOT = {"latitude": 8.4850, "longitude": 124.6500, "name": "Depot"}


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    app = create_app()
    client = TestClient(app)

    # ensure filesystem writes go to tmpdir
    from routeplanner.persistence.filesystem import FileStorage
    from routeplanner.services.routing import service as routing_service

    monkeypatch.setattr(routing_service, "FileStorage", lambda: FileStorage(root=tmp_path))

    return client


def test_health_endpoints(api_client: TestClient):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

    response = api_client.get("/api/health/optimizer")
    assert response.status_code == 200
    payload = response.json()
    assert payload["config"]["population_size"] == 100
    assert payload["config"]["max_generations"] == 500
    assert payload["depot"]["name"] == "DeliveryEase Depot"


def test_optimize_endpoint(api_client: TestClient, tmp_path: Path):
    body = {"stops": _stops(), "depot": DEPOT, "config": SMALL, "seed": 3, "persist": True}

    response = api_client.post("/api/routes/optimize", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["stops"][0]["id"] == "P1"
    assert sorted(stop["id"] for stop in payload["stops"]) == ["P1", "P2", "P3", "P4"]
    assert payload["strategy"] == "dual"
    assert payload["route_comparison"]["selected_route"] in {"A", "B", "crossover"}
    assert payload["total_distance_km"] > 0
    assert Path(payload["metadata"]["output_dir"]).parent == tmp_path / "outputs"


def test_reoptimize_endpoint(api_client: TestClient):
    body = {
        "stops": _stops(),
        "depot": DEPOT,
        "current_position": {"latitude": 8.5110, "longitude": 124.6620},
        "config": SMALL,
        "seed": 8,
    }

    response = api_client.post("/api/routes/reoptimize", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["origin_kind"] == "current_position"
    assert payload["stops"][0]["id"] == "P4"


def test_batch_endpoint_with_two_stops(api_client: TestClient):
    body = {"batch_id": "B-1", "stops": _stops()[:2], "depot": DEPOT}

    response = api_client.post("/api/routes/batch", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "trivial"
    assert payload["metadata"]["batch_id"] == "B-1"
    assert [stop["id"] for stop in payload["stops"]] == ["P1", "P3"]


def test_fallback_route_over_http(api_client: TestClient):
    body = {"stops": [_stop("A", None, None), _stop("B", 8.49, 124.65), _stop("C", 0.0, 0.0)]}

    response = api_client.post("/api/routes/optimize", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["strategy"] == "fallback"
    assert payload["optimization_score"] == 60.0


def test_duplicate_ids_are_rejected(api_client: TestClient):
    stops = _stops()
    stops.append(_stop("P1", 8.49, 124.65))

    response = api_client.post("/api/routes/optimize", json={"stops": stops})

    assert response.status_code == 422


def test_unknown_preset_is_rejected(api_client: TestClient):
    response = api_client.post("/api/routes/optimize", json={"stops": _stops(), "preset": "turbo"})

    assert response.status_code == 422


def test_invalid_config_override_is_rejected(api_client: TestClient):
    body = {"stops": _stops(), "config": {"mutation_rate": 1.5}}

    response = api_client.post("/api/routes/optimize", json=body)

    assert response.status_code == 422


def test_value_error_maps_to_bad_request(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from routeplanner.services.routing import service as routing_service

    def rejected(*args, **kwargs):
        raise ValueError("Duplicate stop ids in route input: P1")

    monkeypatch.setattr(routing_service, "optimize_from_depot", rejected)

    response = api_client.post("/api/routes/optimize", json={"stops": _stops()})

    assert response.status_code == 400
    assert "P1" in response.json()["detail"]


def test_timeout_maps_to_service_unavailable(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from routeplanner.services.routing import service as routing_service

    monkeypatch.setattr(routing_service, "_cancel_check", lambda: (lambda: True))

    response = api_client.post("/api/routes/optimize", json={"stops": _stops(), "depot": DEPOT, "config": SMALL})

    assert response.status_code == 503
    assert "generation 0" in response.json()["detail"]


def test_unexpected_error_maps_to_server_error(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from routeplanner.services.routing import service as routing_service

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(routing_service, "optimize_from_depot", broken)

    response = api_client.post("/api/routes/optimize", json={"stops": _stops()})

    assert response.status_code == 500
    assert "boom" in response.json()["detail"]
