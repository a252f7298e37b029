"""Cylinder weight tracking and vehicle capacity enforcement."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Sequence

from ...models.domain import Location, LocationKind
from .models import CapacityCheck, WeightProfileEntry

CYLINDER_WEIGHT_KG = 22.0
MAX_CYLINDERS = 50
FULL_LOAD_PER_SITE = 20


class CapacityExceededError(ValueError):
    """Raised when adding cylinders would push the vehicle past its weight limit."""

    def __init__(self, check: CapacityCheck) -> None:
        self.check = check
        super().__init__(
            f"Weight limit exceeded: {check.projected_weight_kg:.0f} kg requested, "
            f"maximum is {check.max_weight_kg:.0f} kg "
            f"({check.max_addable_cylinders} more cylinders fit)."
        )


def max_weight_kg(max_cylinders: int = MAX_CYLINDERS, cylinder_weight_kg: float = CYLINDER_WEIGHT_KG) -> float:
    return max_cylinders * cylinder_weight_kg


def total_weight(locations: Sequence[Location], cylinder_weight_kg: float = CYLINDER_WEIGHT_KG) -> float:
    """Supply at Storage/Distribution sites plus pickup demand at Customer sites."""

    weight = 0.0
    for location in locations:
        if location.is_supply:
            weight += max(location.full_cylinders or 0, 0) * cylinder_weight_kg
        else:
            weight += max(location.empty_cylinders or 0, 0) * cylinder_weight_kg
    return weight


def weight_profile(
    locations: Sequence[Location],
    cylinder_weight_kg: float = CYLINDER_WEIGHT_KG,
) -> list[WeightProfileEntry]:
    """Running payload after each stop in visiting order.

    Supply sites take back the empties on board and load their full cylinders.
    Customer sites swap full cylinders for their empties, so a later depot stop
    can lighten the truck and the peak may come before the last stop.
    """

    fulls = 0
    empties = 0
    profile: list[WeightProfileEntry] = []
    for location in locations:
        if location.is_supply:
            empties = 0
            fulls += max(location.full_cylinders or 0, 0)
        else:
            collected = max(location.empty_cylinders or 0, 0)
            fulls -= min(collected, fulls)
            empties += collected
        profile.append(
            WeightProfileEntry(
                location=location,
                full_cylinders=fulls,
                empty_cylinders=empties,
                weight_kg=(fulls + empties) * cylinder_weight_kg,
            )
        )
    return profile


def peak_weight(profile: Sequence[WeightProfileEntry]) -> float:
    return max((entry.weight_kg for entry in profile), default=0.0)


def max_addable_cylinders(
    current_weight_kg: float,
    max_cylinders: int = MAX_CYLINDERS,
    cylinder_weight_kg: float = CYLINDER_WEIGHT_KG,
) -> int:
    remaining = max_weight_kg(max_cylinders, cylinder_weight_kg) - current_weight_kg
    return max(0, math.floor(remaining / cylinder_weight_kg))


def check_capacity(
    locations: Sequence[Location],
    cylinders: int,
    max_cylinders: int = MAX_CYLINDERS,
    cylinder_weight_kg: float = CYLINDER_WEIGHT_KG,
) -> CapacityCheck:
    current = total_weight(locations, cylinder_weight_kg)
    projected = current + cylinders * cylinder_weight_kg
    limit = max_weight_kg(max_cylinders, cylinder_weight_kg)
    return CapacityCheck(
        accepted=projected <= limit,
        current_weight_kg=current,
        projected_weight_kg=projected,
        max_weight_kg=limit,
        max_addable_cylinders=max_addable_cylinders(current, max_cylinders, cylinder_weight_kg),
        requested_cylinders=cylinders,
    )


def add_stop(
    locations: Sequence[Location],
    candidate: Location,
    cylinders: int,
    *,
    has_end: bool = True,
    max_cylinders: int = MAX_CYLINDERS,
    cylinder_weight_kg: float = CYLINDER_WEIGHT_KG,
) -> list[Location]:
    """Return a new stop list with ``candidate`` carrying ``cylinders``.

    The stop goes before the pinned end location when the route has one.
    Raises CapacityExceededError instead of clamping the cylinder count.
    """

    if cylinders < 0:
        raise ValueError("Cylinder count cannot be negative.")

    check = check_capacity(locations, cylinders, max_cylinders, cylinder_weight_kg)
    if not check.accepted:
        logging.warning(
            f"Rejected stop {candidate.id}: {check.projected_weight_kg:.0f} kg exceeds {check.max_weight_kg:.0f} kg"
        )
        raise CapacityExceededError(check)

    if candidate.type == LocationKind.CUSTOMER:
        stop = replace(candidate, empty_cylinders=cylinders, full_cylinders=0)
    else:
        stop = replace(candidate, full_cylinders=cylinders, empty_cylinders=0)

    updated = list(locations)
    if has_end and len(updated) > 1:
        updated.insert(len(updated) - 1, stop)
    else:
        updated.append(stop)
    return updated


def classify_load(cylinders: int, threshold: int = FULL_LOAD_PER_SITE) -> str:
    return "full" if cylinders >= threshold else "partial"
