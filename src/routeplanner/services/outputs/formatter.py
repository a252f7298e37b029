"""Serializers for route plans: JSON summaries, CSV stop sheets and export rows."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import Location
from ..routing.models import RoutePlan
from ..routing.weights import FULL_LOAD_PER_SITE, classify_load


def location_to_json(location: Location) -> dict:
    return {
        "id": location.id,
        "name": location.name,
        "type": location.type.value,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "fullCylinders": location.full_cylinders,
        "emptyCylinders": location.empty_cylinders,
        "region": location.region,
    }


def route_plan_to_json(plan: RoutePlan) -> dict:
    return {
        "metadata": plan.metadata,
        "trafficCondition": plan.traffic_condition,
        "peakWeightKg": plan.peak_weight_kg,
        "maxWeightKg": plan.max_weight_kg,
        "withinCapacity": plan.within_capacity,
        "costEstimate": asdict(plan.cost_estimate),
        "traffic": {
            "totalDistanceKm": plan.traffic.total_distance_km,
            "totalDurationMin": plan.traffic.total_duration_min,
            "segments": [asdict(segment) for segment in plan.traffic.segments],
        },
        "stops": [
            {
                "sequence": stop.sequence,
                "location": location_to_json(stop.location),
                "distanceFromPrevKm": stop.distance_from_prev_km,
                "durationFromPrevMin": stop.duration_from_prev_min,
                "fuelCost": stop.fuel_cost,
            }
            for stop in plan.stops
        ],
        "weightProfile": [
            {
                "locationId": entry.location.id,
                "fullCylinders": entry.full_cylinders,
                "emptyCylinders": entry.empty_cylinders,
                "weightKg": entry.weight_kg,
            }
            for entry in plan.weight_profile
        ],
    }


def route_plan_to_csv(plan: RoutePlan) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "location_id",
        "location_name",
        "location_type",
        "cylinders",
        "distance_from_prev_km",
        "duration_from_prev_min",
        "fuel_cost",
        "weight_kg",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for stop, entry in zip(plan.stops, plan.weight_profile):
        writer.writerow(
            {
                "sequence": stop.sequence,
                "location_id": stop.location.id,
                "location_name": stop.location.name,
                "location_type": stop.location.type.value,
                "cylinders": stop.location.cylinders,
                "distance_from_prev_km": stop.distance_from_prev_km,
                "duration_from_prev_min": stop.duration_from_prev_min,
                "fuel_cost": stop.fuel_cost,
                "weight_kg": entry.weight_kg,
            }
        )
    return buffer.getvalue()


def route_plan_to_export_rows(plan: RoutePlan, full_load_threshold: int = FULL_LOAD_PER_SITE) -> list[dict]:
    """One row per visited site for the external reporting sink."""

    return [
        {
            "siteName": stop.location.name,
            "cylinders": stop.location.cylinders,
            "kms": stop.distance_from_prev_km,
            "fuelCost": stop.fuel_cost,
            "fullLoad": classify_load(stop.location.cylinders, full_load_threshold) == "full",
        }
        for stop in plan.stops
    ]
