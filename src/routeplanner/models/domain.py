"""Domain models for locations, routes and optimization inputs."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class LocationKind(str, Enum):
    CUSTOMER = "Customer"
    STORAGE = "Storage"
    DISTRIBUTION = "Distribution"


class RouteStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class Location:
    """A site on a delivery route.

    Storage and Distribution sites carry supply in ``full_cylinders``; Customer
    sites carry pickup demand in ``empty_cylinders``.
    """

    id: str
    name: str
    type: LocationKind
    latitude: Optional[float]
    longitude: Optional[float]
    full_cylinders: int = 0
    empty_cylinders: int = 0
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None

    @property
    def is_supply(self) -> bool:
        return self.type in (LocationKind.STORAGE, LocationKind.DISTRIBUTION)

    @property
    def cylinders(self) -> int:
        """Cylinder count that is meaningful for this location type."""
        return self.full_cylinders if self.is_supply else self.empty_cylinders


@dataclass(slots=True)
class OptimizationParams:
    prioritize_fuel: bool = True
    avoid_traffic: bool = True
    use_real_time_data: bool = True
    optimize_for_distance: bool = True


@dataclass(slots=True)
class RouteRecord:
    """Route row as supplied by the route repository."""

    id: str
    name: str
    date: date
    status: RouteStatus
    total_cylinders: int = 0
    total_distance: Optional[float] = None
    total_duration: Optional[float] = None
    estimated_cost: Optional[float] = None


@dataclass(slots=True)
class DeliveryRecord:
    id: str
    location_id: str
    cylinders: int
    route_id: Optional[str] = None
    sequence: Optional[int] = None
