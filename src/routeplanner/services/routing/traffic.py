"""Time, region and road-type based traffic simulation.

Travel estimates depend on the wall clock and on random segment jitter. Both
are injected: pass a ``Clock`` and a ``RandomSource`` to pin them in tests.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Protocol, Sequence

from ...models.domain import Location
from ..geospatial import haversine_km, is_valid_coordinate
from .models import MultiStopEstimate, SegmentEstimate

TrafficCondition = Literal["light", "moderate", "heavy"]

HOURLY_FACTORS: tuple[float, ...] = (
    0.7, 0.6, 0.5, 0.5, 0.6, 0.9, 1.3, 1.8, 1.6, 1.2,
    1.0, 1.1, 1.2, 1.0, 1.1, 1.2, 1.4, 1.7, 1.5, 1.3,
    1.1, 0.9, 0.8, 0.7,
)
# Sunday first
DAY_FACTORS: tuple[float, ...] = (0.8, 1.2, 1.1, 1.1, 1.15, 1.25, 0.9)
REGION_FACTORS: dict[str, float] = {
    "Cape Town": 1.15,
    "Johannesburg": 1.25,
    "Durban": 1.1,
    "Pretoria": 1.2,
    "Port Elizabeth": 1.05,
    "Bloemfontein": 0.95,
}
DEFAULT_REGION_FACTOR = 1.0

CONDITION_ADJUSTMENT: dict[str, float] = {"light": 0.8, "moderate": 1.0, "heavy": 1.4}

SERVICE_TIME_PER_STOP_MIN = 8.0
INTERSECTION_DELAY_MIN = 0.5
DEFAULT_SEGMENT_KM = 8.8
DEFAULT_SEGMENT_MIN = 16.0


class Clock(Protocol):
    def now(self) -> datetime: ...


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a single instant."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def default_random() -> RandomSource:
    return random.Random()


class RoadType(str, Enum):
    HIGHWAY = "HIGHWAY"
    MAJOR_ROAD = "MAJOR_ROAD"
    RURAL = "RURAL"
    SUBURBAN = "SUBURBAN"
    URBAN_ROAD = "URBAN_ROAD"


@dataclass(frozen=True, slots=True)
class RoadProfile:
    distance_factor: float
    base_speed_kmh: float
    traffic_sensitivity: float
    intersections_per_km: float


ROAD_PROFILES: dict[RoadType, RoadProfile] = {
    RoadType.HIGHWAY: RoadProfile(1.08, 100.0, 0.7, 0.3),
    RoadType.MAJOR_ROAD: RoadProfile(1.15, 70.0, 1.0, 0.3),
    RoadType.RURAL: RoadProfile(1.12, 80.0, 0.8, 0.3),
    RoadType.SUBURBAN: RoadProfile(1.2, 60.0, 1.1, 1.0),
    RoadType.URBAN_ROAD: RoadProfile(1.25, 50.0, 1.3, 2.0),
}


def classify_road_type(direct_km: float) -> RoadType:
    if direct_km >= 50:
        return RoadType.HIGHWAY
    if direct_km >= 15:
        return RoadType.MAJOR_ROAD
    if direct_km >= 8:
        return RoadType.RURAL
    if direct_km >= 5:
        return RoadType.SUBURBAN
    return RoadType.URBAN_ROAD


def _day_index(moment: datetime) -> int:
    # datetime.weekday() is Monday=0; the factor table starts on Sunday
    return (moment.weekday() + 1) % 7


def traffic_multiplier(region: Optional[str] = None, clock: Optional[Clock] = None) -> float:
    """Composite hour x day x region congestion multiplier."""

    moment = (clock or SystemClock()).now()
    hour_factor = HOURLY_FACTORS[moment.hour]
    day_factor = DAY_FACTORS[_day_index(moment)]
    region_factor = REGION_FACTORS.get(region or "", DEFAULT_REGION_FACTOR)
    return hour_factor * day_factor * region_factor


def current_traffic_condition(clock: Optional[Clock] = None) -> TrafficCondition:
    hour = (clock or SystemClock()).now().hour
    if 7 <= hour <= 9 or 16 <= hour <= 18:
        return "heavy"
    if hour >= 22 or hour <= 5:
        return "light"
    return "moderate"


def real_time_traffic_factor(
    clock: Optional[Clock] = None,
    rng: Optional[RandomSource] = None,
) -> tuple[float, TrafficCondition]:
    """Duration multiplier for live traffic, bucketed by hour with jitter."""

    hour = (clock or SystemClock()).now().hour
    rng = rng or default_random()
    if 7 <= hour <= 9 or 16 <= hour <= 18:
        return rng.uniform(1.3, 1.5), "heavy"
    if 10 <= hour <= 15 or 19 <= hour <= 20:
        return rng.uniform(1.0, 1.2), "moderate"
    return rng.uniform(0.8, 0.9), "light"


def estimate_segment(
    from_lat: float,
    from_lon: float,
    to_lat: float,
    to_lon: float,
    *,
    region: Optional[str] = None,
    condition: TrafficCondition = "moderate",
    clock: Optional[Clock] = None,
    rng: Optional[RandomSource] = None,
) -> SegmentEstimate:
    direct = haversine_km(from_lat, from_lon, to_lat, to_lon)
    road_type = classify_road_type(direct)
    profile = ROAD_PROFILES[road_type]

    multiplier = traffic_multiplier(region, clock) * CONDITION_ADJUSTMENT.get(condition, 1.0)
    jitter = (rng or default_random()).uniform(0.9, 1.1)

    road_distance = direct * profile.distance_factor * jitter
    adjusted_speed = profile.base_speed_kmh / (1 + (multiplier - 1) * profile.traffic_sensitivity)
    driving = road_distance / adjusted_speed * 60
    intersections = road_distance * profile.intersections_per_km * INTERSECTION_DELAY_MIN

    return SegmentEstimate(
        distance_km=round(road_distance, 1),
        duration_min=round(driving + intersections, 1),
        road_type=road_type.value,
    )


def estimate_multi_stop(
    waypoints: Sequence[Location],
    *,
    region: Optional[str] = None,
    condition: TrafficCondition = "moderate",
    clock: Optional[Clock] = None,
    rng: Optional[RandomSource] = None,
) -> MultiStopEstimate:
    """Simulate every leg of a route and add per-stop service time."""

    if len(waypoints) < 2:
        return MultiStopEstimate(total_distance_km=0.0, total_duration_min=0.0, segments=[])

    rng = rng or default_random()
    segments: list[Optional[SegmentEstimate]] = []
    for origin, destination in zip(waypoints, waypoints[1:]):
        if not (
            is_valid_coordinate(origin.latitude, origin.longitude)
            and is_valid_coordinate(destination.latitude, destination.longitude)
        ):
            segments.append(None)
            continue
        segments.append(
            estimate_segment(
                origin.latitude,
                origin.longitude,
                destination.latitude,
                destination.longitude,
                region=region,
                condition=condition,
                clock=clock,
                rng=rng,
            )
        )

    valid = [segment for segment in segments if segment is not None]
    if valid:
        fallback_km = round(sum(s.distance_km for s in valid) / len(valid), 1)
        fallback_min = round(sum(s.duration_min for s in valid) / len(valid), 1)
    else:
        fallback_km, fallback_min = DEFAULT_SEGMENT_KM, DEFAULT_SEGMENT_MIN
    resolved = [
        segment
        if segment is not None
        else SegmentEstimate(distance_km=fallback_km, duration_min=fallback_min, estimated=True)
        for segment in segments
    ]

    total_distance = sum(segment.distance_km for segment in resolved)
    total_duration = sum(segment.duration_min for segment in resolved)
    total_duration += SERVICE_TIME_PER_STOP_MIN * len(waypoints)

    return MultiStopEstimate(
        total_distance_km=round(total_distance, 1),
        total_duration_min=round(total_duration, 1),
        segments=resolved,
    )
