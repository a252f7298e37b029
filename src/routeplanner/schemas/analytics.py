"""Efficiency and route analysis schemas."""

from __future__ import annotations

import datetime as dt
import math
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import RouteStatus


class EfficiencyRequest(BaseModel):
    value: Optional[float] = None
    average: Optional[float] = None
    best: Optional[float] = None
    higher_is_better: bool = False
    dimension: Optional[Literal["distance", "duration", "cost", "cylinders"]] = None


class EfficiencyScoreModel(BaseModel):
    score: float = Field(..., ge=0, le=100)
    label: str
    recommendation: str


def _finite_or_none(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class EfficiencyMetricModel(BaseModel):
    value: Optional[float] = None
    average: Optional[float] = None
    best: Optional[float] = None
    efficiency: EfficiencyScoreModel

    @field_validator("value", "average", "best", mode="before")
    @classmethod
    def drop_non_finite(cls, value):
        # JSON has no NaN; unusable figures are reported as null
        return _finite_or_none(value)


class RouteRecordModel(BaseModel):
    id: str
    name: str
    date: dt.date
    status: RouteStatus = RouteStatus.SCHEDULED
    total_cylinders: int = Field(default=0, ge=0)
    total_distance: Optional[float] = None
    total_duration: Optional[float] = None
    estimated_cost: Optional[float] = None


class RouteAnalysisRequest(BaseModel):
    routes_for_analysis: List[RouteRecordModel] = Field(..., min_length=1)
    all_routes: List[RouteRecordModel] = Field(default_factory=list)
    period: Literal["day", "week", "month"] = "week"


class AnalysisExportRow(BaseModel):
    siteName: str
    cylinders: Optional[float] = None
    kms: Optional[float] = None
    fuelCost: Optional[float] = None
    fullLoad: bool
    score: int
    fleetAverage: str
    recommendation: str

    @field_validator("cylinders", "kms", "fuelCost", mode="before")
    @classmethod
    def drop_non_finite(cls, value):
        return _finite_or_none(value)


class RouteAnalysisResponse(BaseModel):
    distance: EfficiencyMetricModel
    duration: EfficiencyMetricModel
    cost: EfficiencyMetricModel
    cylinders: EfficiencyMetricModel
    overall_score: float
    route_count: int
    period: str
    export_rows: List[AnalysisExportRow]
