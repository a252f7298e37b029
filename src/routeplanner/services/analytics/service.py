"""Route analysis backed by the route repository."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional, Sequence

from ...data.route_repository import RouteRepository, SupabaseRouteRepository
from ...models.domain import RouteRecord
from ...schemas.analytics import (
    EfficiencyRequest,
    EfficiencyScoreModel,
    RouteAnalysisRequest,
    RouteAnalysisResponse,
    RouteRecordModel,
)
from ..routing.traffic import Clock, SystemClock
from .efficiency import calculate_efficiency_score
from .route_analysis import RouteAnalysis, generate_route_analytics, prepare_export_data

KEYWORD_MIN_LENGTH = 4

default_clock: Clock = SystemClock()


class RouteNotFoundError(LookupError):
    """Raised when no stored route matches the requested name."""


def match_routes_by_name(routes: Sequence[RouteRecord], route_name: str) -> list[RouteRecord]:
    """Exact name match, then case-insensitive substring, then any significant keyword."""

    needle = route_name.strip().lower()
    exact = [route for route in routes if route.name.strip().lower() == needle]
    if exact:
        return exact

    partial = [route for route in routes if needle in route.name.lower()]
    if partial:
        return partial

    keywords = [word for word in needle.split() if len(word) >= KEYWORD_MIN_LENGTH]
    return [route for route in routes if any(keyword in route.name.lower() for keyword in keywords)]


def to_route_record(model: RouteRecordModel) -> RouteRecord:
    return RouteRecord(**model.model_dump())


def _analysis_response(analysis: RouteAnalysis, route_count: int, period: str) -> RouteAnalysisResponse:
    payload = asdict(analysis)
    payload.update(
        route_count=route_count,
        period=period,
        export_rows=prepare_export_data(analysis),
    )
    return RouteAnalysisResponse.model_validate(payload)


def score_efficiency(payload: EfficiencyRequest) -> EfficiencyScoreModel:
    score = calculate_efficiency_score(
        payload.value,
        payload.average,
        payload.best,
        payload.higher_is_better,
        payload.dimension,
    )
    return EfficiencyScoreModel(**asdict(score))


def analyze_routes(payload: RouteAnalysisRequest, clock: Optional[Clock] = None) -> RouteAnalysisResponse:
    analysis = generate_route_analytics(
        [to_route_record(route) for route in payload.routes_for_analysis],
        [to_route_record(route) for route in payload.all_routes],
        payload.period,
        clock or default_clock,
    )
    return _analysis_response(analysis, len(payload.routes_for_analysis), payload.period)


def analyze_route_by_name(
    route_name: str,
    period: str = "week",
    repository: Optional[RouteRepository] = None,
    clock: Optional[Clock] = None,
) -> RouteAnalysisResponse:
    repository = repository or SupabaseRouteRepository()
    all_routes = repository.fetch_routes()
    if not all_routes:
        raise RouteNotFoundError("No route data available for analysis.")

    matched = match_routes_by_name(all_routes, route_name)
    if not matched:
        raise RouteNotFoundError(f"No routes matching '{route_name}'.")

    logging.info(f"Found {len(matched)} routes for analysis of '{route_name}'")
    analysis = generate_route_analytics(matched, all_routes, period, clock or default_clock)
    return _analysis_response(analysis, len(matched), period)
