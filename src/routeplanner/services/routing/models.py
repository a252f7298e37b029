"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Location


@dataclass(slots=True)
class RouteStop:
    location: Location
    sequence: int
    distance_from_prev_km: float
    duration_from_prev_min: float
    fuel_cost: float


@dataclass(slots=True)
class WeightProfileEntry:
    location: Location
    full_cylinders: int
    empty_cylinders: int
    weight_kg: float


@dataclass(slots=True)
class CapacityCheck:
    accepted: bool
    current_weight_kg: float
    projected_weight_kg: float
    max_weight_kg: float
    max_addable_cylinders: int
    requested_cylinders: int


@dataclass(slots=True)
class SegmentEstimate:
    distance_km: float
    duration_min: float
    road_type: Optional[str] = None
    estimated: bool = False


@dataclass(slots=True)
class MultiStopEstimate:
    total_distance_km: float
    total_duration_min: float
    segments: List[SegmentEstimate] = field(default_factory=list)


@dataclass(slots=True)
class CostEstimate:
    distance: float
    duration: int
    fuel_consumption: float
    fuel_cost: float
    maintenance_cost: float
    total_cost: float
    traffic_conditions: str
    total_weight: int
    using_real_time_data: bool


@dataclass(slots=True)
class RoutePlan:
    start: Location
    end: Location
    stops: List[RouteStop]
    weight_profile: List[WeightProfileEntry]
    cost_estimate: CostEstimate
    traffic: MultiStopEstimate
    traffic_condition: str
    peak_weight_kg: float
    max_weight_kg: float
    metadata: dict = field(default_factory=dict)

    @property
    def within_capacity(self) -> bool:
        return self.peak_weight_kg <= self.max_weight_kg
