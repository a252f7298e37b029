from datetime import date, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.routeplanner.main import create_app
from src.routeplanner.models.domain import RouteRecord, RouteStatus
from src.routeplanner.services.routing.traffic import FixedClock

MONDAY_RUSH = FixedClock(datetime(2024, 1, 1, 8, 0))


class MidpointRandom:
    def uniform(self, a: float, b: float) -> float:
        return (a + b) / 2


class FakeRouteRepository:
    def __init__(self, routes=None, update_result: bool = True) -> None:
        self.routes = routes or []
        self.update_result = update_result
        self.updates: list[tuple] = []

    def fetch_routes(self):
        return list(self.routes)

    def update_route_status(self, route_id, status):
        self.updates.append((route_id, status))
        return self.update_result


def _site(lid: str, kind: str, lat: float, lon: float, full: int = 0, empty: int = 0) -> dict:
    return {
        "id": lid,
        "name": f"Site {lid}",
        "type": kind,
        "latitude": lat,
        "longitude": lon,
        "full_cylinders": full,
        "empty_cylinders": empty,
    }


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from src.routeplanner.services.routing import service as routing_service
    from src.routeplanner.services.analytics import service as analytics_service
    from src.routeplanner.persistence.filesystem import FileStorage

    monkeypatch.setattr(routing_service, "FileStorage", lambda: FileStorage(root=tmp_path))
    monkeypatch.setattr(routing_service, "default_clock", MONDAY_RUSH)
    monkeypatch.setattr(routing_service, "random_source_factory", MidpointRandom)
    monkeypatch.setattr(analytics_service, "default_clock", FixedClock(datetime(2024, 6, 15, 12, 0)))

    return TestClient(create_app())


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_plan_endpoint_persists_run(api_client: TestClient, tmp_path: Path):
    payload = {
        "start": _site("D1", "Storage", -33.93, 18.53, full=20),
        "end": _site("H1", "Distribution", -33.90, 18.63),
        "stops": [
            _site("C1", "Customer", -33.92, 18.38, empty=4),
            _site("C2", "Customer", -33.94, 18.47, empty=6),
        ],
        "persist": True,
    }

    response = api_client.post("/api/routes/plan", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert [stop["location"]["id"] for stop in body["stops"]][0] == "D1"
    assert [stop["location"]["id"] for stop in body["stops"]][-1] == "H1"
    assert body["traffic_condition"] == "heavy"
    assert body["cost_estimate"]["traffic_conditions"] == "heavy"
    assert body["within_capacity"] is True
    assert len(body["weight_profile"]) == 4
    assert body["export_rows"][0]["fullLoad"] is True

    run_dirs = list((tmp_path / "outputs").glob("routes_*"))
    assert run_dirs
    assert (run_dirs[0] / "summary.json").exists()
    assert (run_dirs[0] / "stops.csv").exists()


def test_plan_endpoint_overloaded_vehicle_conflict(api_client: TestClient):
    payload = {
        "start": _site("D1", "Storage", -33.93, 18.53, full=70),
        "end": _site("H1", "Distribution", -33.90, 18.63),
        "stops": [_site("C1", "Customer", -33.92, 18.38, empty=4)],
    }

    response = api_client.post("/api/routes/plan", json=payload)

    assert response.status_code == 409
    assert response.json()["detail"]["max_weight_kg"] == 1100


def test_estimate_endpoint(api_client: TestClient):
    payload = {
        "locations": [
            _site("D1", "Storage", -33.93, 18.53, full=10),
            _site("C1", "Customer", -33.92, 18.38, empty=5),
        ],
        "params": {"use_real_time_data": False},
    }

    response = api_client.post("/api/routes/estimate", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["total_weight"] == 330
    assert body["distance"] > 0
    assert body["traffic_conditions"] == "moderate"
    assert body["total_cost"] == pytest.approx(body["fuel_cost"] + body["maintenance_cost"])


def test_capacity_endpoint_reports_rejection(api_client: TestClient):
    payload = {"locations": [_site("D1", "Storage", -33.93, 18.53, full=40)], "cylinders": 20}

    response = api_client.post("/api/routes/capacity", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is False
    assert body["current_weight_kg"] == 880
    assert body["max_addable_cylinders"] == 10


def test_add_stop_endpoint(api_client: TestClient):
    payload = {
        "locations": [_site("D1", "Storage", -33.93, 18.53, full=10), _site("H1", "Distribution", -33.90, 18.63)],
        "candidate": _site("C1", "Customer", -33.92, 18.38),
        "cylinders": 5,
    }

    response = api_client.post("/api/routes/stops", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert [location["id"] for location in body["locations"]] == ["D1", "C1", "H1"]
    assert body["locations"][1]["empty_cylinders"] == 5
    assert body["capacity"]["current_weight_kg"] == 330


def test_add_stop_endpoint_conflict(api_client: TestClient):
    payload = {
        "locations": [_site("D1", "Storage", -33.93, 18.53, full=45), _site("H1", "Distribution", -33.90, 18.63)],
        "candidate": _site("C1", "Customer", -33.92, 18.38),
        "cylinders": 10,
    }

    response = api_client.post("/api/routes/stops", json=payload)

    assert response.status_code == 409
    assert response.json()["detail"]["max_addable_cylinders"] == 5


def test_traffic_endpoint(api_client: TestClient):
    response = api_client.get("/api/routes/traffic", params={"region": "Johannesburg"})

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "region": "Johannesburg",
        "hour": 8,
        "condition": "heavy",
        "multiplier": round(1.6 * 1.2 * 1.25, 3),
    }


def test_route_status_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.routeplanner.api.routes import routes as routes_module

    repository = FakeRouteRepository()
    monkeypatch.setattr(routes_module, "SupabaseRouteRepository", lambda: repository)

    response = api_client.patch("/api/routes/r1/status", json={"status": "completed"})

    assert response.status_code == 200
    assert response.json() == {"route_id": "r1", "status": "completed", "updated": True}
    assert repository.updates == [("r1", RouteStatus.COMPLETED)]


def test_route_status_endpoint_not_updated(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.routeplanner.api.routes import routes as routes_module

    monkeypatch.setattr(routes_module, "SupabaseRouteRepository", lambda: FakeRouteRepository(update_result=False))

    response = api_client.patch("/api/routes/missing/status", json={"status": "cancelled"})

    assert response.status_code == 404


def test_route_status_endpoint_rejects_unknown_status(api_client: TestClient):
    response = api_client.patch("/api/routes/r1/status", json={"status": "lost"})
    assert response.status_code == 422


def test_efficiency_endpoint(api_client: TestClient):
    excellent = api_client.post("/api/analytics/efficiency", json={"value": 5, "average": 10, "best": 5})
    unknown = api_client.post("/api/analytics/efficiency", json={"value": None, "average": 10, "best": 5})

    assert excellent.status_code == 200
    assert excellent.json()["score"] == 95
    assert excellent.json()["label"] == "Excellent"
    assert unknown.json()["label"] == "Unknown"
    assert unknown.json()["score"] == 50


def test_route_analysis_endpoint(api_client: TestClient):
    payload = {
        "routes_for_analysis": [
            {"id": "r1", "name": "Northern Loop", "date": "2024-06-14", "total_distance": 10, "estimated_cost": 150, "total_cylinders": 30}
        ],
        "all_routes": [],
        "period": "week",
    }

    response = api_client.post("/api/analytics/route-analysis", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["overall_score"] == pytest.approx(95)
    assert body["route_count"] == 1
    assert len(body["export_rows"]) == 4


def test_stored_route_analysis_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.routeplanner.services.analytics import service as analytics_service

    routes = [
        RouteRecord(id="r1", name="Northern Loop", date=date(2024, 6, 14), status=RouteStatus.COMPLETED, total_cylinders=30, total_distance=20, estimated_cost=200),
        RouteRecord(id="r2", name="City Bowl", date=date(2024, 6, 13), status=RouteStatus.COMPLETED, total_cylinders=20, total_distance=30, estimated_cost=300),
    ]
    monkeypatch.setattr(analytics_service, "SupabaseRouteRepository", lambda: FakeRouteRepository(routes))

    found = api_client.get("/api/analytics/routes/northern loop", params={"period": "week"})
    missing = api_client.get("/api/analytics/routes/Airport Run")

    assert found.status_code == 200
    assert found.json()["route_count"] == 1
    assert found.json()["distance"]["value"] == 20
    assert missing.status_code == 404


def test_stored_route_analysis_rejects_unknown_period(api_client: TestClient):
    response = api_client.get("/api/analytics/routes/anything", params={"period": "year"})
    assert response.status_code == 422


@pytest.mark.parametrize("distance", ["NaN", "Infinity"])
def test_route_analysis_endpoint_non_finite_distance(api_client: TestClient, distance: str):
    body = (
        '{"routes_for_analysis": [{"id": "r1", "name": "Northern Loop", "date": "2024-06-14", '
        f'"total_distance": {distance}, "estimated_cost": 150, "total_cylinders": 30}}], "period": "week"}}'
    )

    response = api_client.post(
        "/api/analytics/route-analysis",
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["distance"]["efficiency"]["label"] == "Unknown"
    assert payload["distance"]["value"] is None
    assert payload["export_rows"][0]["kms"] is None
