"""Route planning orchestration service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Location, OptimizationParams
from ...persistence.filesystem import FileStorage
from ...schemas.routing import (
    AddStopRequest,
    AddStopResponse,
    CapacityCheckModel,
    CapacityCheckRequest,
    CostEstimateModel,
    CostEstimateRequest,
    LocationModel,
    OptimizationParamsModel,
    RoutePlanRequest,
    RoutePlanResponse,
    RouteStopModel,
    SegmentModel,
    TrafficEstimateModel,
    TrafficSnapshot,
    WeightProfileEntryModel,
)
from ..geospatial import resolve_region
from ..outputs.formatter import route_plan_to_csv, route_plan_to_export_rows, route_plan_to_json
from .cost import estimate_route_cost, round_half_up
from .models import CapacityCheck, RoutePlan, RouteStop
from .optimizer import get_strategy, optimize_location_order
from .traffic import (
    Clock,
    RandomSource,
    SystemClock,
    current_traffic_condition,
    default_random,
    estimate_multi_stop,
    traffic_multiplier,
)
from .weights import (
    CapacityExceededError,
    add_stop,
    check_capacity,
    max_weight_kg,
    peak_weight,
    weight_profile,
)

# Process-wide clock and jitter source; override to pin estimates
default_clock: Clock = SystemClock()
random_source_factory = default_random


def to_location(model: LocationModel) -> Location:
    return Location(**model.model_dump())


def to_location_model(location: Location) -> LocationModel:
    return LocationModel.model_validate(asdict(location))


def to_params(model: OptimizationParamsModel | None) -> OptimizationParams:
    if model is None:
        return OptimizationParams()
    return OptimizationParams(**model.model_dump())


def resolve_route_region(locations: Sequence[Location], explicit: Optional[str] = None) -> str:
    """Explicit region, else the first tagged stop, else the first point inside a known region."""

    if explicit:
        return explicit
    for location in locations:
        if location.region:
            return location.region
    for location in locations:
        region = resolve_region(location.latitude, location.longitude)
        if region:
            return region
    return settings.default_region


def plan_route(
    start: Location,
    end: Location,
    stops: Sequence[Location],
    params: OptimizationParams | None = None,
    *,
    fuel_cost_per_liter: Optional[float] = None,
    strategy: str = "greedy",
    region: Optional[str] = None,
    clock: Optional[Clock] = None,
    rng: Optional[RandomSource] = None,
) -> RoutePlan:
    """Order the stops, then derive the weight profile, traffic and cost for the route.

    Raises CapacityExceededError when the running load peaks above the vehicle limit.
    """

    params = params or OptimizationParams()
    clock = clock or default_clock
    rng = rng or random_source_factory()
    fuel_rate = fuel_cost_per_liter or settings.fuel_cost_per_liter
    cylinder_weight = settings.cylinder_weight_kg

    ordered = optimize_location_order(start, stops, end, params, get_strategy(strategy))
    route = [start, *ordered, end]

    profile = weight_profile(route, cylinder_weight)
    peak = peak_weight(profile)
    limit = max_weight_kg(settings.max_cylinders, cylinder_weight)
    if peak > limit:
        raise CapacityExceededError(
            CapacityCheck(
                accepted=False,
                current_weight_kg=peak,
                projected_weight_kg=peak,
                max_weight_kg=limit,
                max_addable_cylinders=0,
                requested_cylinders=sum(location.cylinders for location in route),
            )
        )

    route_region = resolve_route_region(route, region)
    condition = current_traffic_condition(clock) if params.use_real_time_data else "moderate"
    traffic = estimate_multi_stop(route, region=route_region, condition=condition, clock=clock, rng=rng)
    cost = estimate_route_cost(
        route,
        params,
        fuel_rate,
        cylinder_weight_kg=cylinder_weight,
        clock=clock,
        rng=rng,
    )

    # Route fuel cost shared out by each leg's share of the simulated distance
    fuel_per_km = cost.fuel_cost / traffic.total_distance_km if traffic.total_distance_km else 0.0
    route_stops = [
        RouteStop(location=start, sequence=0, distance_from_prev_km=0.0, duration_from_prev_min=0.0, fuel_cost=0.0)
    ]
    for sequence, (location, segment) in enumerate(zip(route[1:], traffic.segments), start=1):
        route_stops.append(
            RouteStop(
                location=location,
                sequence=sequence,
                distance_from_prev_km=segment.distance_km,
                duration_from_prev_min=segment.duration_min,
                fuel_cost=round_half_up(segment.distance_km * fuel_per_km, 2),
            )
        )

    logging.info(
        f"Planned route over {len(route)} locations ({strategy}): "
        f"{cost.distance} km, {cost.duration} min, R{cost.total_cost}, peak {peak:.0f} kg"
    )

    return RoutePlan(
        start=start,
        end=end,
        stops=route_stops,
        weight_profile=profile,
        cost_estimate=cost,
        traffic=traffic,
        traffic_condition=condition,
        peak_weight_kg=peak,
        max_weight_kg=limit,
        metadata={
            "status": "complete",
            "strategy": strategy,
            "region": route_region,
            "stop_count": len(ordered),
            "fuel_cost_per_liter": fuel_rate,
            "generated_at": clock.now().isoformat(),
        },
    )


def _route_plan_response(plan: RoutePlan) -> RoutePlanResponse:
    return RoutePlanResponse(
        metadata=plan.metadata,
        stops=[
            RouteStopModel(
                sequence=stop.sequence,
                location=to_location_model(stop.location),
                distance_from_prev_km=stop.distance_from_prev_km,
                duration_from_prev_min=stop.duration_from_prev_min,
                fuel_cost=stop.fuel_cost,
            )
            for stop in plan.stops
        ],
        weight_profile=[
            WeightProfileEntryModel(
                location_id=entry.location.id,
                full_cylinders=entry.full_cylinders,
                empty_cylinders=entry.empty_cylinders,
                weight_kg=entry.weight_kg,
            )
            for entry in plan.weight_profile
        ],
        cost_estimate=CostEstimateModel(**asdict(plan.cost_estimate)),
        traffic=TrafficEstimateModel(
            total_distance_km=plan.traffic.total_distance_km,
            total_duration_min=plan.traffic.total_duration_min,
            segments=[SegmentModel(**asdict(segment)) for segment in plan.traffic.segments],
        ),
        traffic_condition=plan.traffic_condition,
        peak_weight_kg=plan.peak_weight_kg,
        max_weight_kg=plan.max_weight_kg,
        within_capacity=plan.within_capacity,
        export_rows=route_plan_to_export_rows(plan, settings.full_load_per_site),
    )


def plan_route_request(payload: RoutePlanRequest) -> RoutePlanResponse:
    plan = plan_route(
        to_location(payload.start),
        to_location(payload.end),
        [to_location(stop) for stop in payload.stops],
        to_params(payload.params),
        fuel_cost_per_liter=payload.fuel_cost_per_liter,
        strategy=payload.strategy,
        region=payload.region,
    )

    metadata = plan.metadata
    if payload.run_label:
        metadata["run_label"] = payload.run_label
    if payload.requested_by:
        metadata["author"] = payload.requested_by
    if payload.notes:
        metadata["notes"] = payload.notes

    if payload.persist:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix="routes")
        metadata["run_directory"] = str(run_dir)
        storage.write_json(run_dir / "summary.json", route_plan_to_json(plan))
        storage.write_csv(run_dir / "stops.csv", route_plan_to_csv(plan))
        logging.info(f"Saved route plan to {run_dir}")

    return _route_plan_response(plan)


def estimate_cost_request(payload: CostEstimateRequest) -> CostEstimateModel:
    estimate = estimate_route_cost(
        [to_location(location) for location in payload.locations],
        to_params(payload.params),
        payload.fuel_cost_per_liter or settings.fuel_cost_per_liter,
        cylinder_weight_kg=settings.cylinder_weight_kg,
        clock=default_clock,
        rng=random_source_factory(),
        measured_distance_km=payload.measured_distance_km,
        measured_duration_min=payload.measured_duration_min,
    )
    return CostEstimateModel(**asdict(estimate))


def check_capacity_request(payload: CapacityCheckRequest) -> CapacityCheckModel:
    check = check_capacity(
        [to_location(location) for location in payload.locations],
        payload.cylinders,
        settings.max_cylinders,
        settings.cylinder_weight_kg,
    )
    return CapacityCheckModel(**asdict(check))


def add_stop_request(payload: AddStopRequest) -> AddStopResponse:
    locations = [to_location(location) for location in payload.locations]
    updated = add_stop(
        locations,
        to_location(payload.candidate),
        payload.cylinders,
        has_end=payload.has_end,
        max_cylinders=settings.max_cylinders,
        cylinder_weight_kg=settings.cylinder_weight_kg,
    )
    check = check_capacity(updated, 0, settings.max_cylinders, settings.cylinder_weight_kg)
    return AddStopResponse(
        locations=[to_location_model(location) for location in updated],
        capacity=CapacityCheckModel(**asdict(check)),
    )


def traffic_snapshot(region: Optional[str] = None) -> TrafficSnapshot:
    resolved = region or settings.default_region
    return TrafficSnapshot(
        region=resolved,
        hour=default_clock.now().hour,
        condition=current_traffic_condition(default_clock),
        multiplier=round(traffic_multiplier(resolved, default_clock), 3),
    )
