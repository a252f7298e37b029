"""Route planning request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import LocationKind, RouteStatus


class LocationModel(BaseModel):
    id: str
    name: str
    type: LocationKind = LocationKind.CUSTOMER
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    full_cylinders: int = Field(default=0, ge=0)
    empty_cylinders: int = Field(default=0, ge=0)
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None


class OptimizationParamsModel(BaseModel):
    prioritize_fuel: bool = True
    avoid_traffic: bool = True
    use_real_time_data: bool = True
    optimize_for_distance: bool = True


class RoutePlanRequest(BaseModel):
    start: LocationModel
    end: LocationModel
    stops: List[LocationModel] = Field(default_factory=list)
    params: OptimizationParamsModel = Field(default_factory=OptimizationParamsModel)
    fuel_cost_per_liter: Optional[float] = Field(default=None, gt=0, description="Overrides the configured fuel price.")
    strategy: Literal["greedy", "ortools"] = Field(
        default="greedy",
        description="Stop ordering strategy. 'ortools' requires OR-Tools to be installed.",
    )
    region: Optional[str] = Field(default=None, description="Traffic region; resolved from coordinates if omitted.")
    persist: bool = False
    requested_by: Optional[str] = Field(default=None, description="Person or system requesting the run.")
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")
    notes: Optional[str] = Field(default=None, description="Free-form notes captured with the run.")


class CostEstimateRequest(BaseModel):
    locations: List[LocationModel] = Field(..., description="Stops in visiting order, start and end included.")
    params: OptimizationParamsModel = Field(default_factory=OptimizationParamsModel)
    fuel_cost_per_liter: Optional[float] = Field(default=None, gt=0)
    measured_distance_km: Optional[float] = Field(default=None, ge=0, description="Distance from an external router.")
    measured_duration_min: Optional[float] = Field(default=None, ge=0, description="Duration from an external router.")


class CostEstimateModel(BaseModel):
    distance: float
    duration: int
    fuel_consumption: float
    fuel_cost: float
    maintenance_cost: float
    total_cost: float
    traffic_conditions: str
    total_weight: int
    using_real_time_data: bool


class CapacityCheckRequest(BaseModel):
    locations: List[LocationModel] = Field(default_factory=list)
    cylinders: int = Field(..., ge=0)


class CapacityCheckModel(BaseModel):
    accepted: bool
    current_weight_kg: float
    projected_weight_kg: float
    max_weight_kg: float
    max_addable_cylinders: int
    requested_cylinders: int


class AddStopRequest(BaseModel):
    locations: List[LocationModel] = Field(default_factory=list)
    candidate: LocationModel
    cylinders: int = Field(..., ge=0)
    has_end: bool = Field(default=True, description="Insert before the last location, which is the pinned end.")


class AddStopResponse(BaseModel):
    locations: List[LocationModel]
    capacity: CapacityCheckModel


class RouteStopModel(BaseModel):
    sequence: int
    location: LocationModel
    distance_from_prev_km: float
    duration_from_prev_min: float
    fuel_cost: float


class WeightProfileEntryModel(BaseModel):
    location_id: str
    full_cylinders: int
    empty_cylinders: int
    weight_kg: float


class SegmentModel(BaseModel):
    distance_km: float
    duration_min: float
    road_type: Optional[str] = None
    estimated: bool = False


class TrafficEstimateModel(BaseModel):
    total_distance_km: float
    total_duration_min: float
    segments: List[SegmentModel]


class ExportRowModel(BaseModel):
    siteName: str
    cylinders: float
    kms: float
    fuelCost: float
    fullLoad: bool


class RoutePlanResponse(BaseModel):
    metadata: dict
    stops: List[RouteStopModel]
    weight_profile: List[WeightProfileEntryModel]
    cost_estimate: CostEstimateModel
    traffic: TrafficEstimateModel
    traffic_condition: str
    peak_weight_kg: float
    max_weight_kg: float
    within_capacity: bool
    export_rows: List[ExportRowModel]


class TrafficSnapshot(BaseModel):
    region: str
    hour: int
    condition: str
    multiplier: float


class RouteStatusUpdate(BaseModel):
    status: RouteStatus


class RouteStatusResponse(BaseModel):
    route_id: str
    status: RouteStatus
    updated: bool
