"""Route planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...data.route_repository import SupabaseRouteRepository
from ...schemas.routing import (
    AddStopRequest,
    AddStopResponse,
    CapacityCheckModel,
    CapacityCheckRequest,
    CostEstimateModel,
    CostEstimateRequest,
    RoutePlanRequest,
    RoutePlanResponse,
    RouteStatusResponse,
    RouteStatusUpdate,
    TrafficSnapshot,
)
from ...services.routing.service import (
    add_stop_request,
    check_capacity_request,
    estimate_cost_request,
    plan_route_request,
    traffic_snapshot,
)
from ...services.routing.weights import CapacityExceededError

router = APIRouter(prefix="/routes", tags=["routes"])


def _capacity_conflict(exc: CapacityExceededError) -> HTTPException:
    check = exc.check
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": str(exc),
            "projected_weight_kg": check.projected_weight_kg,
            "max_weight_kg": check.max_weight_kg,
            "max_addable_cylinders": check.max_addable_cylinders,
        },
    )


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def plan(payload: RoutePlanRequest) -> RoutePlanResponse:
    try:
        return plan_route_request(payload)
    except CapacityExceededError as exc:
        raise _capacity_conflict(exc) from exc
    except ImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}",
        ) from exc


@router.post("/estimate", response_model=CostEstimateModel, status_code=status.HTTP_200_OK)
def estimate(payload: CostEstimateRequest) -> CostEstimateModel:
    try:
        return estimate_cost_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error estimating route cost: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to estimate route cost: {str(exc)}",
        ) from exc


@router.post("/capacity", response_model=CapacityCheckModel, status_code=status.HTTP_200_OK)
def capacity(payload: CapacityCheckRequest) -> CapacityCheckModel:
    """Report whether the cylinders fit; a rejection is data here, not an error."""
    return check_capacity_request(payload)


@router.post("/stops", response_model=AddStopResponse, status_code=status.HTTP_200_OK)
def add_route_stop(payload: AddStopRequest) -> AddStopResponse:
    try:
        return add_stop_request(payload)
    except CapacityExceededError as exc:
        raise _capacity_conflict(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/traffic", response_model=TrafficSnapshot, status_code=status.HTTP_200_OK)
def traffic(
    region: str | None = Query(default=None, description="Traffic region, defaults to the configured region"),
) -> TrafficSnapshot:
    return traffic_snapshot(region)


@router.patch("/{route_id}/status", response_model=RouteStatusResponse, status_code=status.HTTP_200_OK)
def update_status(route_id: str, payload: RouteStatusUpdate) -> RouteStatusResponse:
    """Forward a status change to the route store."""
    updated = SupabaseRouteRepository().update_route_status(route_id, payload.status)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Route {route_id} was not updated. It may not exist or the store is unavailable.",
        )
    return RouteStatusResponse(route_id=route_id, status=payload.status, updated=True)
