"""Efficiency scoring and route analysis endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.analytics import (
    EfficiencyRequest,
    EfficiencyScoreModel,
    RouteAnalysisRequest,
    RouteAnalysisResponse,
)
from ...services.analytics.service import (
    RouteNotFoundError,
    analyze_route_by_name,
    analyze_routes,
    score_efficiency,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/efficiency", response_model=EfficiencyScoreModel, status_code=status.HTTP_200_OK)
def efficiency(payload: EfficiencyRequest) -> EfficiencyScoreModel:
    return score_efficiency(payload)


@router.post("/route-analysis", response_model=RouteAnalysisResponse, status_code=status.HTTP_200_OK)
def route_analysis(payload: RouteAnalysisRequest) -> RouteAnalysisResponse:
    try:
        return analyze_routes(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/routes/{route_name}", response_model=RouteAnalysisResponse, status_code=status.HTTP_200_OK)
def stored_route_analysis(
    route_name: str,
    period: Literal["day", "week", "month"] = Query(default="week", description="Fleet comparison window"),
) -> RouteAnalysisResponse:
    """Analyse stored routes matching ``route_name`` against the fleet."""
    try:
        return analyze_route_by_name(route_name, period)
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error analysing route '{route_name}': {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to analyse route: {str(exc)}",
        ) from exc
