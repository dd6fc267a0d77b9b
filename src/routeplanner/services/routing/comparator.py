"""Dual-route comparison: two differently tuned searches plus crossover refinement."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .cancellation import CancelCheck
from .evaluator import RouteEvaluator
from .models import AlgorithmConfig, CrossoverSummary, ParentRoute, RouteComparison, SearchResult, SelectedRoute
from .operators import order_crossover
from .search import run_genetic_search

ROUTE_A_LABEL = "route_a"
ROUTE_B_LABEL = "route_b"

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DualRouteOutcome:
    route: list[int]
    distance_km: float
    fitness: float
    generation_count: int
    comparison: RouteComparison


@dataclass(slots=True, frozen=True)
class RefinementResult:
    route: list[int]
    distance_km: float
    fitness: float
    iterations: int


def parent_configs(config: AlgorithmConfig) -> tuple[AlgorithmConfig, AlgorithmConfig]:
    """Derive deliberately asymmetric settings for the two parent searches."""
    size_a = max(2, math.floor(config.population_size * 0.8))
    size_b = max(2, math.floor(config.population_size * 1.2))
    config_a = config.derive(
        population_size=size_a,
        mutation_rate=min(1.0, config.mutation_rate * 0.8),
        elite_count=min(config.elite_count, size_a),
    )
    config_b = config.derive(
        population_size=size_b,
        mutation_rate=min(1.0, config.mutation_rate * 1.2),
        crossover_rate=config.crossover_rate * 0.9,
        elite_count=min(config.elite_count, size_b),
    )
    return config_a, config_b


def refine_with_crossover(
    evaluator: RouteEvaluator,
    parent_a: list[int],
    parent_b: list[int],
    rng: np.random.Generator,
    iterations: int,
) -> RefinementResult:
    """Repeatedly cross the running best with parent B, keeping strict improvements."""
    best = list(parent_a)
    best_distance = evaluator.distance(best)
    best_fitness = evaluator.base_fitness(best_distance)

    for iteration in range(1, iterations + 1):
        offspring = order_crossover(best, parent_b, rng, crossover_rate=1.0)
        distance = evaluator.distance(offspring)
        if distance < best_distance:
            best, best_distance = offspring, distance
            best_fitness = evaluator.base_fitness(distance)
            logger.debug(f"Crossover iteration {iteration}/{iterations}: new best {best_distance:.2f}km")
        else:
            logger.debug(f"Crossover iteration {iteration}/{iterations}: offspring {distance:.2f}km, no improvement")

    return RefinementResult(route=best, distance_km=best_distance, fitness=best_fitness, iterations=iterations)


def compare_dual_routes(
    evaluator: RouteEvaluator,
    config: AlgorithmConfig,
    rng: np.random.Generator,
    *,
    cancel: Optional[CancelCheck] = None,
    parallel: bool = False,
) -> DualRouteOutcome:
    config_a, config_b = parent_configs(config)
    rng_a, rng_b, rng_refine = rng.spawn(3)

    if parallel:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="route-parent") as executor:
            future_a = executor.submit(
                run_genetic_search, evaluator, config_a, rng_a, seed_label=ROUTE_A_LABEL, cancel=cancel
            )
            future_b = executor.submit(
                run_genetic_search, evaluator, config_b, rng_b, seed_label=ROUTE_B_LABEL, cancel=cancel
            )
            result_a, result_b = future_a.result(), future_b.result()
    else:
        result_a = run_genetic_search(evaluator, config_a, rng_a, seed_label=ROUTE_A_LABEL, cancel=cancel)
        result_b = run_genetic_search(evaluator, config_b, rng_b, seed_label=ROUTE_B_LABEL, cancel=cancel)

    return select_best_route(evaluator, result_a, result_b, rng_refine, config.refinement_iterations)


def select_best_route(
    evaluator: RouteEvaluator,
    result_a: SearchResult,
    result_b: SearchResult,
    rng: np.random.Generator,
    iterations: int,
) -> DualRouteOutcome:
    """Refine the parents and pick the shortest of A, B and the refined route."""
    distance_a = evaluator.distance(result_a.route)
    distance_b = evaluator.distance(result_b.route)
    fitness_a = evaluator.base_fitness(distance_a)
    fitness_b = evaluator.base_fitness(distance_b)
    logger.info(
        f"Parent routes: A={distance_a:.2f}km (fitness {fitness_a:.2f}), "
        f"B={distance_b:.2f}km (fitness {fitness_b:.2f})"
    )

    refined = refine_with_crossover(evaluator, result_a.route, result_b.route, rng, iterations)

    selected: SelectedRoute
    if refined.distance_km < min(distance_a, distance_b):
        selected = "crossover"
        route, distance, fitness = refined.route, refined.distance_km, refined.fitness
    elif distance_a < distance_b:
        selected = "A"
        route, distance, fitness = list(result_a.route), distance_a, fitness_a
    else:
        selected = "B"
        route, distance, fitness = list(result_b.route), distance_b, fitness_b

    comparison = RouteComparison(
        route_a=ParentRoute(
            stops=evaluator.to_stops(result_a.route),
            total_distance_km=distance_a,
            fitness_score=fitness_a,
            generation_count=result_a.generation_count,
        ),
        route_b=ParentRoute(
            stops=evaluator.to_stops(result_b.route),
            total_distance_km=distance_b,
            fitness_score=fitness_b,
            generation_count=result_b.generation_count,
        ),
        selected_route=selected,
        distance_improvement=max(0.0, min(distance_a, distance_b) - distance),
        fitness_improvement=fitness - max(fitness_a, fitness_b),
        crossover=CrossoverSummary(
            iterations=refined.iterations,
            final_distance_km=refined.distance_km,
            final_fitness=refined.fitness,
            improved_from_parents=selected == "crossover",
        ),
    )
    logger.info(
        f"Selected route {selected}: {distance:.2f}km, improvement {comparison.distance_improvement:.2f}km "
        f"after {refined.iterations} crossover iterations"
    )
    return DualRouteOutcome(
        route=route,
        distance_km=distance,
        fitness=fitness,
        generation_count=max(result_a.generation_count, result_b.generation_count),
        comparison=comparison,
    )
