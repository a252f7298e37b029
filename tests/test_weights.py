import pytest

from src.routeplanner.models.domain import Location, LocationKind
from src.routeplanner.services.routing.weights import (
    CapacityExceededError,
    add_stop,
    check_capacity,
    classify_load,
    max_addable_cylinders,
    max_weight_kg,
    peak_weight,
    total_weight,
    weight_profile,
)


def _location(lid: str, kind: LocationKind, full: int = 0, empty: int = 0) -> Location:
    return Location(
        id=lid,
        name=f"Site {lid}",
        type=kind,
        latitude=-33.9,
        longitude=18.4,
        full_cylinders=full,
        empty_cylinders=empty,
    )


def test_total_weight_counts_supply_fulls_and_customer_empties():
    locations = [
        _location("D1", LocationKind.STORAGE, full=10, empty=99),
        _location("C1", LocationKind.CUSTOMER, full=99, empty=5),
        _location("D2", LocationKind.DISTRIBUTION, full=3),
    ]
    assert total_weight(locations) == (10 + 5 + 3) * 22


def test_total_weight_of_empty_route_is_zero():
    assert total_weight([]) == 0


def test_weight_profile_peak_can_precede_last_stop():
    route = [
        _location("D1", LocationKind.STORAGE, full=20),
        _location("C1", LocationKind.CUSTOMER, empty=10),
        _location("D2", LocationKind.STORAGE, full=0),
        _location("C2", LocationKind.CUSTOMER, empty=5),
    ]
    profile = weight_profile(route)

    assert [entry.weight_kg for entry in profile] == [440, 440, 220, 220]
    assert [entry.full_cylinders for entry in profile] == [20, 10, 10, 5]
    assert [entry.empty_cylinders for entry in profile] == [0, 10, 0, 5]
    assert peak_weight(profile) == 440
    assert peak_weight(profile) > profile[-1].weight_kg


def test_peak_weight_of_empty_profile():
    assert peak_weight([]) == 0


def test_max_addable_cylinders():
    assert max_weight_kg() == 1100
    assert max_addable_cylinders(1000) == 4
    assert max_addable_cylinders(0) == 50
    assert max_addable_cylinders(1200) == 0


def test_check_capacity_rejects_overweight_request():
    locations = [_location("D1", LocationKind.STORAGE, full=10), _location("C1", LocationKind.CUSTOMER, empty=5)]
    check = check_capacity(locations, 40)

    assert check.accepted is False
    assert check.current_weight_kg == 330
    assert check.projected_weight_kg == 330 + 40 * 22
    assert check.max_weight_kg == 1100
    assert check.max_addable_cylinders == 35


def test_check_capacity_accepts_exact_limit():
    check = check_capacity([_location("D1", LocationKind.STORAGE, full=30)], 20)
    assert check.accepted is True
    assert check.max_addable_cylinders == 20


def test_add_stop_inserts_before_pinned_end():
    start = _location("START", LocationKind.STORAGE, full=10)
    end = _location("END", LocationKind.DISTRIBUTION)
    candidate = _location("C1", LocationKind.CUSTOMER)

    updated = add_stop([start, end], candidate, 6)

    assert [location.id for location in updated] == ["START", "C1", "END"]
    assert updated[1].empty_cylinders == 6
    assert updated[1].full_cylinders == 0
    assert candidate.empty_cylinders == 0


def test_add_stop_appends_without_end():
    start = _location("START", LocationKind.STORAGE, full=10)
    updated = add_stop([start], _location("D2", LocationKind.DISTRIBUTION), 4, has_end=False)

    assert [location.id for location in updated] == ["START", "D2"]
    assert updated[1].full_cylinders == 4


def test_add_stop_raises_when_capacity_exceeded():
    locations = [_location("START", LocationKind.STORAGE, full=45), _location("END", LocationKind.DISTRIBUTION)]

    with pytest.raises(CapacityExceededError) as excinfo:
        add_stop(locations, _location("C1", LocationKind.CUSTOMER), 10)

    assert excinfo.value.check.max_addable_cylinders == 5
    assert excinfo.value.check.accepted is False
    assert isinstance(excinfo.value, ValueError)


def test_add_stop_rejects_negative_count():
    with pytest.raises(ValueError):
        add_stop([], _location("C1", LocationKind.CUSTOMER), -1)


def test_classify_load():
    assert classify_load(20) == "full"
    assert classify_load(35) == "full"
    assert classify_load(19) == "partial"
    assert classify_load(5, threshold=5) == "full"
