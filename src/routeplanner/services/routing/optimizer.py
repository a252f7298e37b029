"""Stop-ordering strategies for a route with pinned start and end locations.

The default strategy is a greedy nearest-neighbour walk weighted by load,
traffic and fuel preferences. It is an approximation and is kept that way;
alternative orderings plug in behind ``StopOrderingStrategy``.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Sequence

try:
    from ortools.constraint_solver import pywrapcp, routing_enums_pb2
    ORTOOLS_AVAILABLE = True
except ImportError:
    ORTOOLS_AVAILABLE = False
    pywrapcp = None
    routing_enums_pb2 = None

from ...models.domain import Location, OptimizationParams
from ..geospatial import haversine_km, is_valid_coordinate

EMPTY_CYLINDER_REFERENCE = 50
UNREACHABLE_PENALTY = 999999999


def location_factor(location: Location, prioritize_fuel: bool) -> float:
    """Weight a candidate by its value; more empties to collect means visit sooner."""

    factor = 1.0
    if location.empty_cylinders and location.empty_cylinders > 0:
        factor -= (location.empty_cylinders / EMPTY_CYLINDER_REFERENCE) * 0.2

    if prioritize_fuel:
        # |latitude| stands in for hilliness
        factor += abs(location.latitude or 0) / 90 * 0.1

    return max(0.5, min(factor, 1.5))


def traffic_factor(params: OptimizationParams) -> float:
    if params.avoid_traffic:
        return 0.7 if params.use_real_time_data else 0.85
    return 1.0


def fuel_factor(params: OptimizationParams) -> float:
    return 0.7 if params.prioritize_fuel else 1.0


def _distance_between(origin: Location, destination: Location) -> float:
    if not (
        is_valid_coordinate(origin.latitude, origin.longitude)
        and is_valid_coordinate(destination.latitude, destination.longitude)
    ):
        return math.inf
    return haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)


class StopOrderingStrategy(ABC):
    """Contract for ordering the intermediate stops of a route."""

    name: str = "base"

    @abstractmethod
    def order(
        self,
        start: Location,
        stops: Sequence[Location],
        end: Location,
        params: OptimizationParams,
    ) -> list[Location]:
        raise NotImplementedError


class GreedyNearestNeighbor(StopOrderingStrategy):
    name = "greedy"

    def order(
        self,
        start: Location,
        stops: Sequence[Location],
        end: Location,
        params: OptimizationParams,
    ) -> list[Location]:
        if len(stops) <= 1:
            return list(stops)

        shared = traffic_factor(params) * fuel_factor(params)
        unvisited = list(stops)
        ordered: list[Location] = []
        current = start

        while unvisited:
            scores = [
                _distance_between(current, candidate) * location_factor(candidate, params.prioritize_fuel) * shared
                for candidate in unvisited
            ]
            # min() keeps the first of equal scores, so ties follow input order
            best_index = min(range(len(unvisited)), key=scores.__getitem__)
            current = unvisited.pop(best_index)
            ordered.append(current)

        return ordered


class OrToolsSequenceStrategy(StopOrderingStrategy):
    """Open-path TSP from start to end over a haversine distance matrix."""

    name = "ortools"

    def __init__(self, time_limit_seconds: int = 5) -> None:
        self.time_limit_seconds = time_limit_seconds

    def order(
        self,
        start: Location,
        stops: Sequence[Location],
        end: Location,
        params: OptimizationParams,
    ) -> list[Location]:
        if len(stops) <= 1:
            return list(stops)
        if not ORTOOLS_AVAILABLE:
            raise ImportError(
                "OR-Tools is not installed. The 'ortools' ordering strategy requires it; "
                "use the default 'greedy' strategy or install ortools."
            )

        nodes = [start, *stops, end]
        node_count = len(nodes)
        matrix = [
            [
                0 if i == j else _matrix_metres(_distance_between(nodes[i], nodes[j]))
                for j in range(node_count)
            ]
            for i in range(node_count)
        ]

        manager = pywrapcp.RoutingIndexManager(node_count, 1, [0], [node_count - 1])
        routing = pywrapcp.RoutingModel(manager)

        def distance_callback(from_index: int, to_index: int) -> int:
            from_node = manager.IndexToNode(from_index)
            to_node = manager.IndexToNode(to_index)
            return matrix[from_node][to_node]

        transit_callback_index = routing.RegisterTransitCallback(distance_callback)
        routing.SetArcCostEvaluatorOfAllVehicles(transit_callback_index)

        search_parameters = pywrapcp.DefaultRoutingSearchParameters()
        search_parameters.first_solution_strategy = (
            routing_enums_pb2.FirstSolutionStrategy.PATH_CHEAPEST_ARC
        )
        search_parameters.local_search_metaheuristic = (
            routing_enums_pb2.LocalSearchMetaheuristic.GUIDED_LOCAL_SEARCH
        )
        search_parameters.time_limit.FromSeconds(self.time_limit_seconds)

        assignment = routing.SolveWithParameters(search_parameters)
        if not assignment:
            logging.warning("OR-Tools found no stop sequence, falling back to greedy ordering")
            return GreedyNearestNeighbor().order(start, stops, end, params)

        ordered: list[Location] = []
        index = assignment.Value(routing.NextVar(routing.Start(0)))
        while not routing.IsEnd(index):
            ordered.append(nodes[manager.IndexToNode(index)])
            index = assignment.Value(routing.NextVar(index))
        return ordered


def _matrix_metres(distance_km: float) -> int:
    if math.isinf(distance_km):
        return UNREACHABLE_PENALTY
    return int(distance_km * 1000)


STRATEGIES: dict[str, type[StopOrderingStrategy]] = {
    GreedyNearestNeighbor.name: GreedyNearestNeighbor,
    OrToolsSequenceStrategy.name: OrToolsSequenceStrategy,
}


def get_strategy(name: str = "greedy") -> StopOrderingStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError as exc:
        raise ValueError(f"Unknown ordering strategy '{name}'. Choose from: {', '.join(STRATEGIES)}") from exc


def optimize_location_order(
    start: Location,
    stops: Sequence[Location],
    end: Location,
    params: OptimizationParams | None = None,
    strategy: StopOrderingStrategy | None = None,
) -> list[Location]:
    """Order the intermediate stops; start and end are never moved."""

    params = params or OptimizationParams()
    return (strategy or GreedyNearestNeighbor()).order(start, stops, end, params)
