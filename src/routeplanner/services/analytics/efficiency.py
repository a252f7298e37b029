"""Comparative efficiency scoring against fleet averages and bests."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Optional

Dimension = Literal["distance", "duration", "cost", "cylinders"]

EXCELLENT = "Excellent"
GOOD = "Good"
AVERAGE = "Average"
BELOW_AVERAGE = "Below Average"
UNKNOWN = "Unknown"

INSUFFICIENT_DATA = "Insufficient data to provide accurate recommendations."

# Direction-level texts, used when no dimension is named.
LOWER_IS_BETTER_RECOMMENDATIONS: dict[str, str] = {
    EXCELLENT: "This route is performing at optimal efficiency. Maintain current strategy.",
    GOOD: (
        "This route performs well, but could be further optimized by adjusting stop order "
        "or delivery timing."
    ),
    AVERAGE: (
        "Consider route adjustments to reduce distance/time/cost. Try consolidating nearby "
        "stops or reordering the sequence."
    ),
    BELOW_AVERAGE: (
        "This route needs significant optimization. Consider complete redesign, different "
        "sequencing, or merging with another route."
    ),
}
HIGHER_IS_BETTER_RECOMMENDATIONS: dict[str, str] = {
    EXCELLENT: (
        "This route delivers optimal cylinder volume. Maintain current strategy and customer "
        "relationships."
    ),
    GOOD: (
        "This route delivers good volume, but could be further optimized by adjusting delivery "
        "schedules or adding strategic customers."
    ),
    AVERAGE: (
        "Consider adding more delivery points or increasing volumes at existing stops to "
        "improve efficiency."
    ),
    BELOW_AVERAGE: (
        "This route has low delivery volume. Consider merging with another route or expanding "
        "customer base in this area."
    ),
}

DIMENSION_RECOMMENDATIONS: dict[str, dict[str, str]] = {
    "distance": {
        EXCELLENT: "Route distance is among the shortest in the fleet. Keep the current stop sequence.",
        GOOD: "Distance is below the fleet average. Small gains remain from reordering nearby stops.",
        AVERAGE: "Distance is close to the fleet average. Consolidate nearby stops or reorder the sequence.",
        BELOW_AVERAGE: (
            "Distance is well above the fleet average. Redesign the sequence or move outlying "
            "stops to another route."
        ),
    },
    "duration": {
        EXCELLENT: "Travel time is among the best in the fleet. Keep the current delivery windows.",
        GOOD: "Travel time is below the fleet average. Shift departures away from peak traffic for more.",
        AVERAGE: "Travel time is close to the fleet average. Avoid rush hours and shorten service stops.",
        BELOW_AVERAGE: (
            "Travel time is well above the fleet average. Reschedule outside peak hours or split "
            "the route."
        ),
    },
    "cost": {
        EXCELLENT: "Route cost is among the lowest in the fleet. Maintain current strategy.",
        GOOD: "Cost is below the fleet average. Prioritize fuel-efficient ordering to reduce it further.",
        AVERAGE: "Cost is close to the fleet average. Reduce distance and idle time to lower fuel spend.",
        BELOW_AVERAGE: (
            "Cost is well above the fleet average. Review fuel use, vehicle load and route length."
        ),
    },
    "cylinders": HIGHER_IS_BETTER_RECOMMENDATIONS,
}


@dataclass(slots=True)
class EfficiencyScore:
    score: float
    label: str
    recommendation: str


def _is_missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    ratio = numerator / denominator
    return ratio if ratio > 0 else 0.0


def _recommendation(label: str, higher_is_better: bool, dimension: Optional[str]) -> str:
    if dimension and dimension in DIMENSION_RECOMMENDATIONS:
        return DIMENSION_RECOMMENDATIONS[dimension][label]
    table = HIGHER_IS_BETTER_RECOMMENDATIONS if higher_is_better else LOWER_IS_BETTER_RECOMMENDATIONS
    return table[label]


def calculate_efficiency_score(
    value: Optional[float],
    average: Optional[float],
    best: Optional[float],
    higher_is_better: bool,
    dimension: Optional[Dimension] = None,
) -> EfficiencyScore:
    """Score ``value`` against the fleet ``average`` and ``best`` on a 0-100 scale.

    Bands: Excellent (95) near the best, Good (75-95) better than average,
    Average (50-75) within 25% of the average, Below Average (30-50) beyond it.
    Missing or NaN inputs yield a neutral 50 "Unknown".
    """

    if _is_missing(value) or _is_missing(average) or _is_missing(best):
        logging.warning(f"Missing values in efficiency calculation: value={value} average={average} best={best}")
        return EfficiencyScore(score=50, label=UNKNOWN, recommendation=INSUFFICIENT_DATA)

    if not higher_is_better:
        if value <= best * 1.05:
            score, label = 95.0, EXCELLENT
        elif value <= average:
            score, label = 75 + 20 * _ratio(average - value, average - best), GOOD
        elif value <= average * 1.25:
            score, label = 50 + 25 * _ratio(average * 1.25 - value, average * 0.25), AVERAGE
        else:
            if average == 0:
                score = 30.0
            else:
                score = max(30.0, 50 - 20 * ((value - average * 1.25) / average))
            label = BELOW_AVERAGE
    else:
        if value >= best * 0.95:
            score, label = 95.0, EXCELLENT
        elif value >= average:
            score, label = 75 + 20 * _ratio(value - average, best - average), GOOD
        elif value >= average * 0.75:
            score, label = 50 + 25 * _ratio(value - average * 0.75, average * 0.25), AVERAGE
        else:
            if average == 0:
                score = 30.0
            else:
                score = max(30.0, 50 - 20 * ((average * 0.75 - value) / average))
            label = BELOW_AVERAGE

    score = max(0.0, min(100.0, score))
    return EfficiencyScore(
        score=score,
        label=label,
        recommendation=_recommendation(label, higher_is_better, dimension),
    )


def overall_score(
    distance: EfficiencyScore,
    duration: EfficiencyScore,
    cost: EfficiencyScore,
    cylinders: EfficiencyScore,
) -> float:
    return distance.score * 0.25 + duration.score * 0.25 + cost.score * 0.25 + cylinders.score * 0.25
