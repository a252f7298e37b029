"""Period-filtered route analysis against the rest of the fleet."""

from __future__ import annotations

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Literal, Optional, Sequence

from ...models.domain import RouteRecord
from ..routing.cost import MIN_ROUTE_DURATION_MIN, round_half_up
from ..routing.traffic import Clock, SystemClock
from ..routing.weights import FULL_LOAD_PER_SITE, classify_load
from .efficiency import EfficiencyScore, calculate_efficiency_score, overall_score

AnalysisPeriod = Literal["day", "week", "month"]
PERIODS: tuple[str, ...] = ("day", "week", "month")

MINUTES_PER_KM = 1.5

# Stand-in fleet populations when the period holds no routes
SAMPLE_DISTANCES: tuple[float, ...] = (10, 12, 15, 18, 20)
SAMPLE_DURATIONS: tuple[float, ...] = (30, 45, 60, 75, 90)
SAMPLE_COSTS: tuple[float, ...] = (150, 200, 250, 300, 350)
SAMPLE_CYLINDERS: tuple[float, ...] = (10, 15, 20, 25, 30)


@dataclass(slots=True)
class EfficiencyMetric:
    value: float
    average: float
    best: float
    efficiency: EfficiencyScore


@dataclass(slots=True)
class RouteAnalysis:
    distance: EfficiencyMetric
    duration: EfficiencyMetric
    cost: EfficiencyMetric
    cylinders: EfficiencyMetric
    overall_score: float


def _subtract_month(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    if period == "day":
        return now - timedelta(days=1)
    if period == "week":
        return now - timedelta(weeks=1)
    if period == "month":
        return _subtract_month(now)
    raise ValueError(f"Unsupported analysis period '{period}'. Choose from: {', '.join(PERIODS)}")


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def filter_routes_by_period(
    routes: Iterable[RouteRecord],
    period: str,
    clock: Optional[Clock] = None,
) -> list[RouteRecord]:
    now = (clock or SystemClock()).now().replace(tzinfo=None)
    start = period_start(period, now)
    return [route for route in routes if start <= _as_datetime(route.date) <= now]


def _finite_or_nan(value: Optional[float]) -> float:
    value = float(value or 0)
    return value if math.isfinite(value) else math.nan


def route_duration_minutes(distance_km: Optional[float]) -> float:
    """Duration proxy at 40 km/h with a 15 minute floor.

    A non-finite distance gives NaN so the score falls back to "Unknown".
    """

    distance = _finite_or_nan(distance_km)
    if math.isnan(distance):
        return math.nan
    return max(MIN_ROUTE_DURATION_MIN, round_half_up(distance * MINUTES_PER_KM))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _usable(values: Iterable[float]) -> list[float]:
    return [value for value in values if value and not math.isnan(value)]


def _min_positive(values: Sequence[float], fallback: float) -> float:
    positives = [value for value in values if value > 0]
    return min(positives) if positives else fallback


def generate_route_analytics(
    routes_for_analysis: Sequence[RouteRecord],
    all_routes: Sequence[RouteRecord],
    period: AnalysisPeriod = "week",
    clock: Optional[Clock] = None,
) -> RouteAnalysis:
    """Score the analysed routes' averages against the fleet within ``period``.

    Route metrics use every analysed route regardless of date; only the fleet
    comparison population is restricted to the period.
    """

    period_routes = filter_routes_by_period(all_routes, period, clock)
    logging.info(
        f"Analysing {len(routes_for_analysis)} routes against {len(period_routes)} fleet routes ({period})"
    )

    avg_distance = _mean([_finite_or_nan(route.total_distance) for route in routes_for_analysis])
    avg_duration = _mean([route_duration_minutes(route.total_distance) for route in routes_for_analysis])
    avg_cost = _mean([_finite_or_nan(route.estimated_cost) for route in routes_for_analysis])
    avg_cylinders = _mean([route.total_cylinders or 0 for route in routes_for_analysis])

    if period_routes:
        # Routes with unusable figures stay out of the fleet comparison
        fleet_distances = _usable(_finite_or_nan(route.total_distance) for route in period_routes)
        fleet_durations = _usable(route_duration_minutes(route.total_distance) for route in period_routes)
        fleet_costs = _usable(_finite_or_nan(route.estimated_cost) for route in period_routes)
        fleet_cylinders = [c for c in (route.total_cylinders or 0 for route in period_routes) if c]
    else:
        fleet_distances = list(SAMPLE_DISTANCES)
        fleet_durations = list(SAMPLE_DURATIONS)
        fleet_costs = list(SAMPLE_COSTS)
        fleet_cylinders = list(SAMPLE_CYLINDERS)

    best_distance = _min_positive(fleet_distances, 1)
    best_duration = _min_positive(fleet_durations, MIN_ROUTE_DURATION_MIN)
    best_cost = _min_positive(fleet_costs, 1)
    best_cylinders = max(fleet_cylinders, default=0) or 1

    distance = EfficiencyMetric(
        value=avg_distance,
        average=_mean(fleet_distances),
        best=best_distance,
        efficiency=calculate_efficiency_score(avg_distance, _mean(fleet_distances), best_distance, False, "distance"),
    )
    duration = EfficiencyMetric(
        value=avg_duration,
        average=_mean(fleet_durations),
        best=best_duration,
        efficiency=calculate_efficiency_score(avg_duration, _mean(fleet_durations), best_duration, False, "duration"),
    )
    cost = EfficiencyMetric(
        value=avg_cost,
        average=_mean(fleet_costs),
        best=best_cost,
        efficiency=calculate_efficiency_score(avg_cost, _mean(fleet_costs), best_cost, False, "cost"),
    )
    cylinders = EfficiencyMetric(
        value=avg_cylinders,
        average=_mean(fleet_cylinders),
        best=best_cylinders,
        efficiency=calculate_efficiency_score(
            avg_cylinders, _mean(fleet_cylinders), best_cylinders, True, "cylinders"
        ),
    )

    return RouteAnalysis(
        distance=distance,
        duration=duration,
        cost=cost,
        cylinders=cylinders,
        overall_score=overall_score(
            distance.efficiency, duration.efficiency, cost.efficiency, cylinders.efficiency
        ),
    )


def prepare_export_data(analysis: RouteAnalysis, full_load_threshold: int = FULL_LOAD_PER_SITE) -> List[dict]:
    """Flatten an analysis into the rows the reporting sink expects."""

    return [
        {
            "siteName": "Distance Efficiency",
            "cylinders": 0,
            "kms": analysis.distance.value,
            "fuelCost": 0,
            "fullLoad": False,
            "score": int(round_half_up(analysis.distance.efficiency.score)),
            "fleetAverage": f"{analysis.distance.average:.1f}",
            "recommendation": analysis.distance.efficiency.recommendation,
        },
        {
            "siteName": "Time Efficiency",
            "cylinders": 0,
            "kms": 0,
            "fuelCost": 0,
            "fullLoad": False,
            "score": int(round_half_up(analysis.duration.efficiency.score)),
            "fleetAverage": f"{int(round_half_up(analysis.duration.average))} minutes",
            "recommendation": analysis.duration.efficiency.recommendation,
        },
        {
            "siteName": "Cost Efficiency",
            "cylinders": 0,
            "kms": 0,
            "fuelCost": analysis.cost.value,
            "fullLoad": False,
            "score": int(round_half_up(analysis.cost.efficiency.score)),
            "fleetAverage": f"R{analysis.cost.average:.2f}",
            "recommendation": analysis.cost.efficiency.recommendation,
        },
        {
            "siteName": "Delivery Volume",
            "cylinders": analysis.cylinders.value,
            "kms": 0,
            "fuelCost": 0,
            "fullLoad": classify_load(analysis.cylinders.value, full_load_threshold) == "full",
            "score": int(round_half_up(analysis.cylinders.efficiency.score)),
            "fleetAverage": f"{int(round_half_up(analysis.cylinders.average))} cylinders",
            "recommendation": analysis.cylinders.efficiency.recommendation,
        },
    ]
