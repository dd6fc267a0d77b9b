"""Genetic search loop for a single route."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .cancellation import CancelCheck, check_cancelled
from .evaluator import RouteEvaluator
from .models import AlgorithmConfig, SearchResult
from .operators import order_crossover, swap_mutation, tournament_selection
from .seeding import seed_population

PROGRESS_LOG_INTERVAL = 100

logger = logging.getLogger(__name__)


def run_genetic_search(
    evaluator: RouteEvaluator,
    config: AlgorithmConfig,
    rng: np.random.Generator,
    *,
    seed_label: Optional[str] = None,
    cancel: Optional[CancelCheck] = None,
) -> SearchResult:
    """Evolve a population until it stagnates or the generation cap is hit.

    Returns the fittest route of the final population together with the
    generation index the loop stopped at.
    """
    population = seed_population(evaluator, config.population_size, rng, seed_label=seed_label)
    best_distance = float("inf")
    stagnation = 0
    generation = 0

    for generation in range(config.max_generations):
        check_cancelled(cancel, generation)
        distances, fitness = evaluator.evaluate_population(population)
        current_best = float(distances.min())

        if abs(best_distance - current_best) < config.convergence_threshold:
            stagnation += 1
        else:
            stagnation = 0
            best_distance = current_best

        if stagnation > config.stagnation_limit:
            logger.info(
                f"Search converged at generation {generation} with distance {best_distance:.2f}km "
                f"(label={seed_label or '-'}, population={len(population)})"
            )
            break

        population = evolve_population(population, fitness, config, rng)

        if generation % PROGRESS_LOG_INTERVAL == 0:
            logger.debug(f"Generation {generation}: best distance = {best_distance:.2f}km (label={seed_label or '-'})")
    else:
        generation = config.max_generations

    distances, fitness = evaluator.evaluate_population(population)
    best_index = int(np.argmax(fitness))
    return SearchResult(
        route=list(population[best_index]),
        distance_km=float(distances[best_index]),
        fitness=float(fitness[best_index]),
        generation_count=generation,
    )


def evolve_population(
    population: list[list[int]],
    fitness: np.ndarray,
    config: AlgorithmConfig,
    rng: np.random.Generator,
) -> list[list[int]]:
    """Carry the elites over and breed the rest of the next generation."""
    size = len(population)
    elite_count = min(config.elite_count, size)
    ranked = np.argsort(-fitness, kind="stable")
    next_population = [list(population[index]) for index in ranked[:elite_count]]

    while len(next_population) < size:
        parent1 = tournament_selection(population, fitness, rng, config.tournament_size)
        parent2 = tournament_selection(population, fitness, rng, config.tournament_size)
        offspring = order_crossover(parent1, parent2, rng, config.crossover_rate)
        next_population.append(swap_mutation(offspring, rng, config.mutation_rate))
    return next_population
