"""Route store access: a repository protocol and its Supabase implementation."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Iterable, Optional, Protocol, Sequence

from ..db.supabase import get_supabase_client
from ..models.domain import DeliveryRecord, Location, LocationKind, RouteRecord, RouteStatus

ROUTE_COLUMNS = "id, name, date, total_distance, total_duration, estimated_cost, status, total_cylinders"
DELIVERY_COLUMNS = "id, route_id, location_id, cylinders, sequence"
LOCATION_COLUMNS = "id, name, type, address, latitude, longitude, open_time, close_time, region, country"
LOCATION_BASE_COLUMNS = "id, name, type, address, latitude, longitude, open_time, close_time"


class RouteRepository(Protocol):
    def fetch_routes(self) -> list[RouteRecord]: ...

    def fetch_routes_by_date_range(self, start: date, end: date) -> list[RouteRecord]: ...

    def fetch_deliveries_by_route_ids(self, route_ids: Sequence[str]) -> list[DeliveryRecord]: ...

    def fetch_locations_by_ids(self, location_ids: Sequence[str]) -> list[Location]: ...

    def update_route_status(self, route_id: str, status: RouteStatus) -> bool: ...


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def route_from_row(row: dict) -> RouteRecord:
    return RouteRecord(
        id=str(row["id"]),
        name=str(row["name"]),
        date=_parse_date(row["date"]),
        status=RouteStatus(row.get("status") or RouteStatus.SCHEDULED.value),
        total_cylinders=int(row.get("total_cylinders") or 0),
        total_distance=_optional_float(row.get("total_distance")),
        total_duration=_optional_float(row.get("total_duration")),
        estimated_cost=_optional_float(row.get("estimated_cost")),
    )


def delivery_from_row(row: dict) -> DeliveryRecord:
    return DeliveryRecord(
        id=str(row["id"]),
        location_id=str(row["location_id"]),
        cylinders=int(row.get("cylinders") or 0),
        route_id=row.get("route_id"),
        sequence=row.get("sequence"),
    )


def location_from_row(row: dict) -> Location:
    raw_type = row.get("type") or LocationKind.CUSTOMER.value
    return Location(
        id=str(row["id"]),
        name=str(row["name"]),
        type=LocationKind(raw_type),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        full_cylinders=int(row.get("full_cylinders") or 0),
        empty_cylinders=int(row.get("empty_cylinders") or 0),
        open_time=row.get("open_time"),
        close_time=row.get("close_time"),
        region=row.get("region"),
        country=row.get("country"),
        address=row.get("address"),
    )


def _convert_rows(rows: Iterable[dict], converter, kind: str) -> list:
    converted = []
    for row in rows:
        try:
            converted.append(converter(row))
        except (KeyError, ValueError, TypeError) as e:
            logging.warning(f"Skipping invalid {kind} row: {e}")
    return converted


class SupabaseRouteRepository:
    """Reads routes, deliveries and locations from the Supabase tables.

    Read failures are logged and yield empty lists; a missing client is
    treated as an empty store.
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        return self._client if self._client is not None else get_supabase_client()

    def fetch_routes(self) -> list[RouteRecord]:
        client = self.client
        if not client:
            return []
        try:
            response = client.table("routes").select(ROUTE_COLUMNS).order("date", desc=True).execute()
        except Exception as e:
            logging.error(f"Failed to fetch routes: {e}")
            return []
        return _convert_rows(response.data or [], route_from_row, "route")

    def fetch_routes_by_date_range(self, start: date, end: date) -> list[RouteRecord]:
        client = self.client
        if not client:
            return []
        # Whole days on both ends
        lower = datetime.combine(start, time.min).isoformat()
        upper = datetime.combine(end, time.max).isoformat()
        try:
            response = (
                client.table("routes")
                .select(ROUTE_COLUMNS)
                .gte("date", lower)
                .lte("date", upper)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logging.error(f"Failed to fetch routes between {lower} and {upper}: {e}")
            return []
        routes = _convert_rows(response.data or [], route_from_row, "route")
        logging.info(f"Found {len(routes)} routes between {start} and {end}")
        return routes

    def fetch_deliveries_by_route_ids(self, route_ids: Sequence[str]) -> list[DeliveryRecord]:
        if not route_ids:
            return []
        client = self.client
        if not client:
            return []
        try:
            response = client.table("deliveries").select(DELIVERY_COLUMNS).in_("route_id", list(route_ids)).execute()
        except Exception as e:
            logging.error(f"Failed to fetch deliveries: {e}")
            return []
        return _convert_rows(response.data or [], delivery_from_row, "delivery")

    def fetch_locations_by_ids(self, location_ids: Sequence[str]) -> list[Location]:
        if not location_ids:
            return []
        client = self.client
        if not client:
            return []
        try:
            response = client.table("locations").select(LOCATION_COLUMNS).in_("id", list(location_ids)).execute()
        except Exception as e:
            # Older schemas have no region/country columns
            logging.warning(f"Location query with region/country failed, retrying without: {e}")
            try:
                response = (
                    client.table("locations").select(LOCATION_BASE_COLUMNS).in_("id", list(location_ids)).execute()
                )
            except Exception as fallback_error:
                logging.error(f"Failed to fetch locations: {fallback_error}")
                return []
        return _convert_rows(response.data or [], location_from_row, "location")

    def update_route_status(self, route_id: str, status: RouteStatus) -> bool:
        client = self.client
        if not client:
            return False
        try:
            response = client.table("routes").update({"status": RouteStatus(status).value}).eq("id", route_id).execute()
        except Exception as e:
            logging.error(f"Failed to update status of route {route_id}: {e}")
            return False
        return bool(response.data)
