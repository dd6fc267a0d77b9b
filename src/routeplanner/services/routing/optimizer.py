"""Public entry points for single-driver route optimization."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np

from ...config import settings
from ...models.domain import Origin, Stop, default_depot
from ..geospatial import distance_to_origin_km
from .cancellation import CancelCheck
from .comparator import compare_dual_routes
from .evaluator import (
    RouteEvaluator,
    estimated_time,
    fitness,
    fuel_cost,
    optimization_score,
    route_distance,
)
from .models import AlgorithmConfig, OptimizedRoute, RouteComparison, RouteCostModel
from .search import run_genetic_search

FALLBACK_KM_PER_STOP = 3.0
FALLBACK_HOURS_PER_STOP = 0.5
FALLBACK_FUEL_PER_STOP = 18.0
FALLBACK_OPTIMIZATION_SCORE = 60.0

logger = logging.getLogger(__name__)


def optimize_from_depot(
    stops: Sequence[Stop],
    *,
    depot: Optional[Origin] = None,
    config: Optional[AlgorithmConfig] = None,
    cost_model: Optional[RouteCostModel] = None,
    seed: Optional[int] = None,
    cancel: Optional[CancelCheck] = None,
    parallel: Optional[bool] = None,
) -> OptimizedRoute:
    """Plan a round trip that starts and ends at the depot."""
    depot = depot or default_depot()
    return _optimize(
        stops,
        start=depot,
        end=depot,
        config=config,
        cost_model=cost_model,
        seed=seed,
        cancel=cancel,
        parallel=parallel,
    )


def optimize_from_current_position(
    stops: Sequence[Stop],
    current_position: Origin,
    *,
    depot: Optional[Origin] = None,
    config: Optional[AlgorithmConfig] = None,
    cost_model: Optional[RouteCostModel] = None,
    seed: Optional[int] = None,
    cancel: Optional[CancelCheck] = None,
    parallel: Optional[bool] = None,
) -> OptimizedRoute:
    """Re-plan the remaining stops from the driver's live position.

    The opening leg is measured from ``current_position``; the route still
    closes at the depot. The stop nearest the live position is moved to the
    front before anything else runs.
    """
    depot = depot or default_depot()
    if current_position.kind != "current_position":
        current_position = replace(current_position, kind="current_position")
    model = cost_model or RouteCostModel()
    reordered = nearest_stop_first(stops, current_position, penalty_km=model.invalid_coordinate_penalty_km)
    return _optimize(
        reordered,
        start=current_position,
        end=depot,
        config=config,
        cost_model=model,
        seed=seed,
        cancel=cancel,
        parallel=parallel,
    )


def optimize_batch(
    batch_id: str,
    stops: Sequence[Stop],
    *,
    depot: Optional[Origin] = None,
    seed: Optional[int] = None,
    cancel: Optional[CancelCheck] = None,
) -> OptimizedRoute:
    """Optimize the stops of a delivery batch with the batch preset."""
    logger.info(f"Starting route optimization for batch {batch_id} ({len(stops)} stops)")
    result = optimize_from_depot(
        stops,
        depot=depot,
        config=AlgorithmConfig.preset("batch"),
        seed=seed,
        cancel=cancel,
    )
    first = result.stops[0].customer_name if result.stops else "N/A"
    logger.info(
        f"Batch {batch_id} optimized from {result.origin.name}: first delivery {first}, "
        f"{result.total_distance_km:.2f}km, {result.estimated_time_hours:.1f}h, "
        f"score {result.optimization_score:.1f}%"
    )
    return result


def nearest_stop_first(stops: Sequence[Stop], origin: Origin, *, penalty_km: float | None = None) -> list[Stop]:
    """Return a copy of ``stops`` with the stop nearest ``origin`` moved to index 0."""
    ordered = list(stops)
    if len(ordered) < 2:
        return ordered
    nearest = min(range(len(ordered)), key=lambda i: distance_to_origin_km(ordered[i], origin, penalty_km=penalty_km))
    ordered.insert(0, ordered.pop(nearest))
    return ordered


def _optimize(
    stops: Sequence[Stop],
    *,
    start: Origin,
    end: Origin,
    config: Optional[AlgorithmConfig],
    cost_model: Optional[RouteCostModel],
    seed: Optional[int],
    cancel: Optional[CancelCheck],
    parallel: Optional[bool],
) -> OptimizedRoute:
    config = config or AlgorithmConfig()
    model = cost_model or RouteCostModel()
    parallel = settings.parallel_parents if parallel is None else parallel
    _ensure_unique_ids(stops)

    valid = [stop for stop in stops if stop.has_valid_coordinates]
    invalid = [stop for stop in stops if not stop.has_valid_coordinates]
    if invalid:
        logger.warning(
            f"{len(invalid)} of {len(stops)} stops have no usable coordinates and will be appended to the route: "
            f"{', '.join(stop.stop_id for stop in invalid)}"
        )

    if len(stops) <= 2:
        return _trivial_route(valid, invalid, start=start, end=end, cost_model=model)
    if len(valid) < 2:
        logger.warning(f"Not enough geocoded stops to optimize ({len(valid)} of {len(stops)}); using fallback route")
        return _fallback_route(stops, origin=start, cost_model=model)
    if len(valid) == 2:
        return _trivial_route(valid, invalid, start=start, end=end, cost_model=model)

    rng = np.random.default_rng(seed)
    mode = "dual" if config.dual_route_comparison else "single"
    logger.info(
        f"Optimizing {len(valid)} stops from {start.name} ({start.kind}) in {mode} mode: "
        f"population={config.population_size}, generations={config.max_generations}"
    )
    logger.debug("Route optimizer state: seeding")
    evaluator = RouteEvaluator(valid, start, end, model)

    comparison: Optional[RouteComparison] = None
    if config.dual_route_comparison:
        logger.debug("Route optimizer state: evolving + dual-comparing")
        outcome = compare_dual_routes(evaluator, config, rng, cancel=cancel, parallel=parallel)
        route, generation_count, comparison = outcome.route, outcome.generation_count, outcome.comparison
    else:
        logger.debug("Route optimizer state: evolving")
        result = run_genetic_search(evaluator, config, rng, cancel=cancel)
        route, generation_count = result.route, result.generation_count

    logger.debug("Route optimizer state: evaluating")
    distance = evaluator.distance(route)
    final_stops = (*evaluator.to_stops(route), *invalid)
    optimized = OptimizedRoute(
        stops=final_stops,
        total_distance_km=distance,
        estimated_time_hours=estimated_time(len(final_stops), distance, cost_model=model),
        optimization_score=optimization_score(distance, len(final_stops), cost_model=model),
        fuel_cost_estimate=fuel_cost(distance, cost_model=model),
        generation_count=generation_count,
        fitness_score=evaluator.base_fitness(distance),
        strategy=mode,
        origin=start,
        route_comparison=comparison,
    )
    logger.info(
        f"Route optimized: {optimized.total_distance_km:.2f}km, score {optimized.optimization_score:.1f}, "
        f"{generation_count} generations"
    )
    logger.debug("Route optimizer state: done")
    return optimized


def _trivial_route(
    valid: Sequence[Stop],
    invalid: Sequence[Stop],
    *,
    start: Origin,
    end: Origin,
    cost_model: RouteCostModel,
) -> OptimizedRoute:
    ordered = sorted(valid, key=lambda stop: distance_to_origin_km(stop, start))
    distance = route_distance(ordered, start, end=end, cost_model=cost_model)
    final_stops = (*ordered, *invalid)
    return OptimizedRoute(
        stops=final_stops,
        total_distance_km=distance,
        estimated_time_hours=estimated_time(len(final_stops), distance, cost_model=cost_model),
        optimization_score=100.0,
        fuel_cost_estimate=fuel_cost(distance, cost_model=cost_model),
        generation_count=0,
        fitness_score=fitness(distance, len(ordered), cost_model=cost_model),
        strategy="trivial",
        origin=start,
    )


def _fallback_route(stops: Sequence[Stop], *, origin: Origin, cost_model: RouteCostModel) -> OptimizedRoute:
    count = len(stops)
    distance = count * FALLBACK_KM_PER_STOP
    return OptimizedRoute(
        stops=tuple(stops),
        total_distance_km=distance,
        estimated_time_hours=count * FALLBACK_HOURS_PER_STOP,
        optimization_score=FALLBACK_OPTIMIZATION_SCORE,
        fuel_cost_estimate=count * FALLBACK_FUEL_PER_STOP,
        generation_count=0,
        fitness_score=fitness(distance, count, cost_model=cost_model),
        strategy="fallback",
        origin=origin,
    )


def _ensure_unique_ids(stops: Sequence[Stop]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for stop in stops:
        if stop.stop_id in seen:
            duplicates.append(stop.stop_id)
        seen.add(stop.stop_id)
    if duplicates:
        raise ValueError(f"Duplicate stop ids in route input: {', '.join(sorted(set(duplicates)))}")
