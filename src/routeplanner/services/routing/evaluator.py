"""Route scoring: distance, fitness, time, fuel and optimization score.

The module-level functions work on plain sequences of :class:`Stop` and are the
reference definitions. :class:`RouteEvaluator` binds one optimization problem
(stops, start point, end point) and scores index-encoded routes against a
precomputed distance matrix; both paths produce the same numbers.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ...models.domain import Origin, Stop
from ..geospatial import distance_to_origin_km, haversine_matrix, haversine_to_point, stop_distance_km
from .models import RouteCostModel

DEFAULT_COST_MODEL = RouteCostModel()
DEFAULT_PRIORITY = 3


def route_distance(
    route: Sequence[Stop],
    origin: Origin,
    *,
    end: Origin | None = None,
    cost_model: RouteCostModel | None = None,
) -> float:
    """Road-corrected length of origin -> stops -> end (end defaults to origin)."""
    model = cost_model or DEFAULT_COST_MODEL
    if not route:
        return 0.0
    penalty = model.invalid_coordinate_penalty_km
    closing = end or origin
    total = distance_to_origin_km(route[0], origin, penalty_km=penalty)
    for current, following in zip(route, route[1:]):
        total += stop_distance_km(current, following, penalty_km=penalty)
    total += distance_to_origin_km(route[-1], closing, penalty_km=penalty)
    return total * model.road_distance_factor


def fitness(distance: float, stop_count: int, bonus: float = 0.0, *, cost_model: RouteCostModel | None = None) -> float:
    """Higher is better; 100 means the route is within the per-stop baseline."""
    model = cost_model or DEFAULT_COST_MODEL
    baseline = stop_count * model.baseline_km_per_stop
    if baseline <= 0:
        return 100.0 + bonus
    excess = max(0.0, distance - baseline)
    return max(0.0, 100.0 - (excess / baseline) * 50.0) + bonus


def estimated_time(stop_count: int, distance: float, *, cost_model: RouteCostModel | None = None) -> float:
    """Hours of driving plus per-stop handling."""
    model = cost_model or DEFAULT_COST_MODEL
    return distance / model.average_speed_kmh + stop_count * model.service_hours_per_stop


def fuel_cost(distance: float, *, cost_model: RouteCostModel | None = None) -> float:
    model = cost_model or DEFAULT_COST_MODEL
    return (distance / model.fuel_km_per_liter) * model.fuel_price_per_liter


def optimization_score(distance: float, stop_count: int, *, cost_model: RouteCostModel | None = None) -> float:
    """Efficiency against an ideal per-stop distance, clamped to 0..100."""
    model = cost_model or DEFAULT_COST_MODEL
    ideal = stop_count * model.ideal_km_per_stop
    if ideal <= 0:
        return 100.0
    efficiency = 1.0 - (distance - ideal) / ideal
    return min(100.0, max(0.0, efficiency * 100.0))


def origin_adjacency_bonus(first_distance: float, min_distance: float, *, cost_model: RouteCostModel | None = None) -> float:
    """Reward routes that open with the stop closest to the start point."""
    model = cost_model or DEFAULT_COST_MODEL
    gap = first_distance - min_distance
    if gap <= model.adjacency_tolerance_km:
        return model.adjacency_bonus
    return -min(model.adjacency_penalty_cap, gap * model.adjacency_penalty_per_km)


def time_window_penalty(route: Sequence[Stop], *, cost_model: RouteCostModel | None = None) -> float:
    """Cost of arriving outside preferred windows on a simulated shift clock."""
    model = cost_model or DEFAULT_COST_MODEL
    penalty = 0.0
    clock = model.shift_start_hour
    for stop in route:
        window = stop.time_window
        if window is not None:
            if clock < window.start_hour:
                penalty += (window.start_hour - clock) * 10.0
            elif clock > window.end_hour:
                penalty += (clock - window.end_hour) * 20.0
        clock += model.service_hours_per_stop
    return penalty


def priority_bonus(route: Sequence[Stop]) -> float:
    """Reward serving priority 1-2 orders early in the route."""
    bonus = 0.0
    length = len(route)
    for index, stop in enumerate(route):
        if stop.priority is not None and stop.priority <= 2:
            bonus += (length - index) * (3 - stop.priority)
    return bonus


class RouteEvaluator:
    """Scores index-encoded routes for one set of geocoded stops.

    Routes are lists of indices into ``stops``. The opening leg is measured from
    ``start`` and the closing leg to ``end`` (the depot), which differ when the
    route is re-planned from a driver's live position.
    """

    def __init__(
        self,
        stops: Sequence[Stop],
        start: Origin,
        end: Origin | None = None,
        cost_model: RouteCostModel | None = None,
    ) -> None:
        invalid = [stop.stop_id for stop in stops if not stop.has_valid_coordinates]
        if invalid:
            raise ValueError(f"RouteEvaluator requires geocoded stops; missing coordinates for: {', '.join(invalid)}")
        self.stops: tuple[Stop, ...] = tuple(stops)
        self.start = start
        self.end = end or start
        self.cost_model = cost_model or DEFAULT_COST_MODEL
        self.size = len(self.stops)

        latitudes = [stop.latitude for stop in self.stops]
        longitudes = [stop.longitude for stop in self.stops]
        self.matrix = haversine_matrix(latitudes, longitudes)
        self.start_distances = haversine_to_point(latitudes, longitudes, self.start.latitude, self.start.longitude)
        self.end_distances = haversine_to_point(latitudes, longitudes, self.end.latitude, self.end.longitude)
        self.min_start_distance = float(self.start_distances.min()) if self.size else 0.0

        self._uses_time_windows = self.cost_model.time_window_weight > 0 and any(
            stop.time_window is not None for stop in self.stops
        )
        self._uses_priorities = self.cost_model.priority_weight > 0 and any(
            stop.priority is not None for stop in self.stops
        )

    def nearest_to_start(self, candidates: Sequence[int] | None = None) -> int:
        """Index of the stop closest to the start point (lowest index wins ties)."""
        pool = range(self.size) if candidates is None else candidates
        return min(pool, key=lambda index: self.start_distances[index])

    def leg(self, a: int, b: int) -> float:
        return float(self.matrix[a, b])

    def distance(self, route: Sequence[int]) -> float:
        if len(route) == 0:
            return 0.0
        indices = np.asarray(route, dtype=np.intp)
        total = self.start_distances[indices[0]] + self.matrix[indices[:-1], indices[1:]].sum() + self.end_distances[indices[-1]]
        return float(total) * self.cost_model.road_distance_factor

    def base_fitness(self, distance: float) -> float:
        return fitness(distance, self.size, cost_model=self.cost_model)

    def adjacency_bonus(self, route: Sequence[int]) -> float:
        if len(route) == 0:
            return 0.0
        first = float(self.start_distances[route[0]])
        nearest = float(min(self.start_distances[index] for index in route))
        return origin_adjacency_bonus(first, nearest, cost_model=self.cost_model)

    def search_fitness(self, route: Sequence[int], distance: float | None = None) -> float:
        """Fitness used for selection: distance score plus start-point adjacency."""
        if distance is None:
            distance = self.distance(route)
        score = fitness(distance, self.size, self.adjacency_bonus(route), cost_model=self.cost_model)
        return score + self._soft_constraint_adjustment(route)

    def evaluate_population(self, population: Sequence[Sequence[int]]) -> tuple[np.ndarray, np.ndarray]:
        """Vectorized distances and search fitness for equally sized routes."""
        if not population:
            return np.empty(0), np.empty(0)
        if self.size == 0:
            count = len(population)
            return np.zeros(count), np.full(count, fitness(0.0, 0, cost_model=self.cost_model))

        model = self.cost_model
        routes = np.asarray(population, dtype=np.intp)
        legs = self.matrix[routes[:, :-1], routes[:, 1:]].sum(axis=1)
        distances = (self.start_distances[routes[:, 0]] + legs + self.end_distances[routes[:, -1]]) * model.road_distance_factor

        baseline = self.size * model.baseline_km_per_stop
        excess = np.maximum(0.0, distances - baseline)
        scores = np.maximum(0.0, 100.0 - (excess / baseline) * 50.0)

        gaps = self.start_distances[routes[:, 0]] - self.start_distances[routes].min(axis=1)
        bonuses = np.where(
            gaps <= model.adjacency_tolerance_km,
            model.adjacency_bonus,
            -np.minimum(model.adjacency_penalty_cap, gaps * model.adjacency_penalty_per_km),
        )
        scores = scores + bonuses
        if self._uses_time_windows or self._uses_priorities:
            scores = scores + np.array([self._soft_constraint_adjustment(route) for route in population])
        return distances, scores

    def to_stops(self, route: Sequence[int]) -> tuple[Stop, ...]:
        return tuple(self.stops[index] for index in route)

    def _soft_constraint_adjustment(self, route: Sequence[int]) -> float:
        adjustment = 0.0
        if self._uses_time_windows or self._uses_priorities:
            ordered = self.to_stops(route)
            if self._uses_time_windows:
                adjustment -= self.cost_model.time_window_weight * time_window_penalty(ordered, cost_model=self.cost_model)
            if self._uses_priorities:
                adjustment += self.cost_model.priority_weight * priority_bonus(ordered)
        return adjustment
