"""Distance, duration, fuel and cost estimation for an ordered stop list."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ...models.domain import Location, OptimizationParams
from ..geospatial import corrected_distance_km, haversine_km, is_valid_coordinate
from .models import CostEstimate
from .traffic import Clock, RandomSource, real_time_traffic_factor
from .weights import CYLINDER_WEIGHT_KG, total_weight

MINUTES_PER_KM = 1.5
BASE_FUEL_L_PER_100KM = 12.0
LOAD_FACTOR_PER_100KG = 0.02
MAINTENANCE_COST_PER_KM = 0.85
DEFAULT_FUEL_COST_PER_LITER = 21.95
MIN_ROUTE_DURATION_MIN = 15


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a till does: halves go up rather than to even."""

    scale = 10 ** digits
    if not math.isfinite(value):
        return value
    return math.floor(value * scale + 0.5) / scale


def segment_distances(locations: Sequence[Location]) -> list[float]:
    """Curvature-corrected distance per consecutive pair.

    Legs touching an invalid coordinate get the mean of the valid legs.
    """

    legs: list[Optional[float]] = []
    for origin, destination in zip(locations, locations[1:]):
        if is_valid_coordinate(origin.latitude, origin.longitude) and is_valid_coordinate(
            destination.latitude, destination.longitude
        ):
            direct = haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)
            legs.append(corrected_distance_km(direct))
        else:
            logging.warning(f"Invalid coordinates on leg {origin.id} -> {destination.id}, using average leg distance")
            legs.append(None)

    valid = [leg for leg in legs if leg is not None]
    fallback = sum(valid) / len(valid) if valid else 0.0
    return [leg if leg is not None else fallback for leg in legs]


def base_duration_minutes(distance_km: float) -> float:
    return distance_km * MINUTES_PER_KM


def fuel_consumption_liters(distance_km: float, total_weight_kg: float, prioritize_fuel: bool = False) -> float:
    weight_factor = 1 + (total_weight_kg / 100) * LOAD_FACTOR_PER_100KG
    fuel_multiplier = 0.9 if prioritize_fuel else 1.0
    return (distance_km * BASE_FUEL_L_PER_100KM / 100) * weight_factor * fuel_multiplier


def fuel_cost(consumption_liters: float, fuel_cost_per_liter: float) -> float:
    return round_half_up(consumption_liters * fuel_cost_per_liter, 2)


def maintenance_cost(distance_km: float) -> float:
    return round_half_up(distance_km * MAINTENANCE_COST_PER_KM, 2)


def estimate_route_cost(
    locations: Sequence[Location],
    params: OptimizationParams | None = None,
    fuel_cost_per_liter: float = DEFAULT_FUEL_COST_PER_LITER,
    *,
    cylinder_weight_kg: float = CYLINDER_WEIGHT_KG,
    clock: Optional[Clock] = None,
    rng: Optional[RandomSource] = None,
    measured_distance_km: Optional[float] = None,
    measured_duration_min: Optional[float] = None,
) -> CostEstimate:
    """Aggregate an ordered stop list (start and end included) into a cost estimate.

    ``measured_distance_km``/``measured_duration_min`` let a caller substitute
    figures from an external router; the live-traffic duration factor is then
    not applied on top of the measured duration.
    """

    params = params or OptimizationParams()
    weight = total_weight(locations, cylinder_weight_kg)

    if len(locations) < 2:
        return CostEstimate(
            distance=0.0,
            duration=MIN_ROUTE_DURATION_MIN,
            fuel_consumption=0.0,
            fuel_cost=0.0,
            maintenance_cost=0.0,
            total_cost=0.0,
            traffic_conditions="moderate",
            total_weight=int(round_half_up(weight)),
            using_real_time_data=params.use_real_time_data,
        )

    use_measured = bool(measured_distance_km and measured_distance_km > 0)
    if use_measured:
        distance = float(measured_distance_km)
        duration = (
            float(measured_duration_min)
            if measured_duration_min and measured_duration_min > 0
            else base_duration_minutes(distance)
        )
    else:
        distance = sum(segment_distances(locations))
        duration = base_duration_minutes(distance)

    traffic_conditions = "moderate"
    if params.use_real_time_data:
        factor, traffic_conditions = real_time_traffic_factor(clock, rng)
        if not use_measured:
            duration *= factor
        distance *= 0.9 if params.optimize_for_distance else 1.05

    if distance <= 0:
        # No usable legs
        duration = MIN_ROUTE_DURATION_MIN

    consumption = fuel_consumption_liters(distance, weight, params.prioritize_fuel)
    fuel = fuel_cost(consumption, fuel_cost_per_liter)
    maintenance = maintenance_cost(distance)

    return CostEstimate(
        distance=round_half_up(distance, 1),
        duration=int(round_half_up(duration)),
        fuel_consumption=round_half_up(consumption, 2),
        fuel_cost=fuel,
        maintenance_cost=maintenance,
        total_cost=round_half_up(fuel + maintenance, 2),
        traffic_conditions=traffic_conditions,
        total_weight=int(round_half_up(weight)),
        using_real_time_data=params.use_real_time_data,
    )
