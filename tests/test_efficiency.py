import math

import pytest

from src.routeplanner.services.analytics.efficiency import (
    DIMENSION_RECOMMENDATIONS,
    HIGHER_IS_BETTER_RECOMMENDATIONS,
    INSUFFICIENT_DATA,
    LOWER_IS_BETTER_RECOMMENDATIONS,
    EfficiencyScore,
    calculate_efficiency_score,
    overall_score,
)


def test_value_at_best_is_excellent():
    result = calculate_efficiency_score(5, 10, 5, False)
    assert result.score == 95
    assert result.label == "Excellent"
    assert result.recommendation == LOWER_IS_BETTER_RECOMMENDATIONS["Excellent"]


def test_nan_input_returns_unknown_sentinel():
    result = calculate_efficiency_score(math.nan, 10, 5, False)
    assert result.score == 50
    assert result.label == "Unknown"
    assert result.recommendation == INSUFFICIENT_DATA


def test_missing_input_returns_unknown_sentinel():
    result = calculate_efficiency_score(12, None, 5, True)
    assert (result.score, result.label) == (50, "Unknown")


@pytest.mark.parametrize(
    ("value", "score", "label"),
    [
        (12, 87.0, "Good"),
        (17, 50 + 25 * (1.75 / 3.75), "Average"),
        (30, 35.0, "Below Average"),
        (100, 30.0, "Below Average"),
    ],
)
def test_lower_is_better_bands(value: float, score: float, label: str):
    result = calculate_efficiency_score(value, 15, 10, False)
    assert result.score == pytest.approx(score)
    assert result.label == label


@pytest.mark.parametrize(
    ("value", "score", "label"),
    [
        (30, 95.0, "Excellent"),
        (20, 75 + 20 * (5 / 15), "Good"),
        (12, 55.0, "Average"),
        (5, 50 - 20 * (6.25 / 15), "Below Average"),
    ],
)
def test_higher_is_better_bands(value: float, score: float, label: str):
    result = calculate_efficiency_score(value, 15, 30, True)
    assert result.score == pytest.approx(score)
    assert result.label == label
    assert result.recommendation == HIGHER_IS_BETTER_RECOMMENDATIONS[label]


def test_zero_average_does_not_divide_by_zero():
    assert calculate_efficiency_score(0, 0, 0, False).label == "Excellent"
    below = calculate_efficiency_score(1, 0, 0, False)
    assert below.label == "Below Average"
    assert below.score == 30


def test_scores_always_within_bounds():
    for higher_is_better in (True, False):
        for value in (0, 0.5, 1, 5, 10, 50, 200, 10_000):
            for average in (0, 1, 10, 100):
                for best in (0, 1, 5, 100):
                    result = calculate_efficiency_score(value, average, best, higher_is_better)
                    assert 0 <= result.score <= 100


def test_dimension_selects_specific_recommendation():
    generic = calculate_efficiency_score(100, 15, 10, False)
    specific = calculate_efficiency_score(100, 15, 10, False, "duration")
    assert specific.score == generic.score
    assert specific.recommendation == DIMENSION_RECOMMENDATIONS["duration"]["Below Average"]
    assert specific.recommendation != generic.recommendation


def test_overall_score_weights_dimensions_equally():
    scores = [EfficiencyScore(score=value, label="x", recommendation="y") for value in (95, 75, 50, 30)]
    assert overall_score(*scores) == pytest.approx(62.5)
