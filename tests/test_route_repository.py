from datetime import date
from types import SimpleNamespace

import pytest

from src.routeplanner.data import route_repository
from src.routeplanner.data.route_repository import SupabaseRouteRepository, route_from_row
from src.routeplanner.models.domain import LocationKind, RouteStatus


class FakeQuery:
    def __init__(self, client: "FakeClient", table: str) -> None:
        self.client = client
        self.table = table
        self.calls: list[tuple] = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return record

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        error = self.client.errors.get(self.table)
        if error is not None:
            raise error
        return SimpleNamespace(data=self.client.rows.get(self.table, []))


class FakeClient:
    def __init__(self, rows: dict | None = None, errors: dict | None = None) -> None:
        self.rows = rows or {}
        self.errors = errors or {}
        self.executed: list = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


ROUTE_ROW = {
    "id": "r1",
    "name": "Northern Loop",
    "date": "2024-06-14T08:00:00+00:00",
    "status": "in_progress",
    "total_cylinders": 24,
    "total_distance": 31.5,
    "total_duration": None,
    "estimated_cost": "412.10",
}


def test_route_from_row():
    route = route_from_row(ROUTE_ROW)
    assert route.date == date(2024, 6, 14)
    assert route.status == RouteStatus.IN_PROGRESS
    assert route.total_distance == 31.5
    assert route.total_duration is None
    assert route.estimated_cost == pytest.approx(412.10)


def test_fetch_routes_skips_invalid_rows():
    client = FakeClient(rows={"routes": [ROUTE_ROW, {"id": "broken"}, {**ROUTE_ROW, "id": "r2", "status": "lost"}]})
    routes = SupabaseRouteRepository(client).fetch_routes()
    assert [route.id for route in routes] == ["r1"]


def test_fetch_routes_by_date_range_filters_whole_days():
    client = FakeClient(rows={"routes": [ROUTE_ROW]})
    routes = SupabaseRouteRepository(client).fetch_routes_by_date_range(date(2024, 6, 1), date(2024, 6, 14))

    assert len(routes) == 1
    _, calls = client.executed[0]
    filters = {name: args for name, args, _ in calls if name in ("gte", "lte")}
    assert filters["gte"] == ("date", "2024-06-01T00:00:00")
    assert filters["lte"][1].startswith("2024-06-14T23:59:59")


def test_fetch_failures_return_empty_lists():
    client = FakeClient(errors={"routes": RuntimeError("boom"), "deliveries": RuntimeError("boom")})
    repository = SupabaseRouteRepository(client)
    assert repository.fetch_routes() == []
    assert repository.fetch_deliveries_by_route_ids(["r1"]) == []


def test_empty_id_lists_skip_queries():
    client = FakeClient()
    repository = SupabaseRouteRepository(client)
    assert repository.fetch_deliveries_by_route_ids([]) == []
    assert repository.fetch_locations_by_ids([]) == []
    assert client.executed == []


def test_fetch_deliveries_and_locations():
    client = FakeClient(
        rows={
            "deliveries": [{"id": "d1", "route_id": "r1", "location_id": "l1", "cylinders": 6, "sequence": 1}],
            "locations": [
                {"id": "l1", "name": "Depot", "type": "Storage", "latitude": -33.9, "longitude": 18.4, "address": "1 Dock Rd"},
                {"id": "l2", "name": "Shop", "type": None, "latitude": "-33.95", "longitude": "18.47", "address": "2 Main Rd"},
            ],
        }
    )
    repository = SupabaseRouteRepository(client)

    deliveries = repository.fetch_deliveries_by_route_ids(["r1"])
    locations = repository.fetch_locations_by_ids(["l1", "l2"])

    assert deliveries[0].cylinders == 6
    assert deliveries[0].route_id == "r1"
    assert [location.type for location in locations] == [LocationKind.STORAGE, LocationKind.CUSTOMER]
    assert locations[1].latitude == pytest.approx(-33.95)


def test_update_route_status():
    client = FakeClient(rows={"routes": [ROUTE_ROW]})
    repository = SupabaseRouteRepository(client)

    assert repository.update_route_status("r1", RouteStatus.COMPLETED) is True
    _, calls = client.executed[0]
    assert ("update", ({"status": "completed"},), {}) in calls
    assert ("eq", ("id", "r1"), {}) in calls


def test_update_route_status_failure():
    repository = SupabaseRouteRepository(FakeClient(errors={"routes": RuntimeError("offline")}))
    assert repository.update_route_status("r1", RouteStatus.CANCELLED) is False


def test_missing_client_means_empty_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(route_repository, "get_supabase_client", lambda: None)
    repository = SupabaseRouteRepository()
    assert repository.fetch_routes() == []
    assert repository.update_route_status("r1", RouteStatus.COMPLETED) is False
