"""Genetic operators over index-encoded routes."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def tournament_selection(
    population: Sequence[Sequence[int]],
    fitness: Sequence[float],
    rng: np.random.Generator,
    tournament_size: int = 5,
) -> list[int]:
    """Pick ``tournament_size`` contenders at random (with replacement) and return a copy of the fittest."""
    best_index = int(rng.integers(len(population)))
    best_fitness = fitness[best_index]
    for _ in range(tournament_size - 1):
        index = int(rng.integers(len(population)))
        if fitness[index] > best_fitness:
            best_index = index
            best_fitness = fitness[index]
    return list(population[best_index])


def order_crossover(
    parent1: Sequence[int],
    parent2: Sequence[int],
    rng: np.random.Generator,
    crossover_rate: float = 1.0,
) -> list[int]:
    """Order crossover (OX) that never touches position 0.

    Position 0 always comes from ``parent1``. A random segment starting at
    position 1 or later is copied from ``parent1``, the remaining positions are
    filled in order from ``parent2``. With probability ``1 - crossover_rate`` the
    offspring is a plain copy of ``parent1``.
    """
    if rng.random() > crossover_rate:
        return list(parent1)

    length = len(parent1)
    if length <= 1:
        return list(parent1)

    start = int(rng.integers(1, length))
    end = int(rng.integers(start, length))

    offspring: list[Optional[int]] = [None] * length
    used: set[int] = set()

    offspring[0] = parent1[0]
    used.add(parent1[0])
    for position in range(start, end + 1):
        offspring[position] = parent1[position]
        used.add(parent1[position])

    donor = iter(parent2)
    for position in range(length):
        if offspring[position] is not None:
            continue
        for candidate in donor:
            if candidate not in used:
                offspring[position] = candidate
                used.add(candidate)
                break

    for position in range(length):
        if offspring[position] is None:
            for candidate in parent1:
                if candidate not in used:
                    offspring[position] = candidate
                    used.add(candidate)
                    break

    return offspring  # type: ignore[return-value]


def swap_mutation(route: Sequence[int], rng: np.random.Generator, mutation_rate: float) -> list[int]:
    """Swap each position, with probability ``mutation_rate``, with a random position.

    Position 0 is not protected; the start-point adjacency term in the fitness
    pushes such offspring out of the population.
    """
    mutated = list(route)
    length = len(mutated)
    if length < 2 or mutation_rate <= 0:
        return mutated
    rolls = rng.random(length)
    for i in np.flatnonzero(rolls < mutation_rate):
        j = int(rng.integers(length))
        mutated[i], mutated[j] = mutated[j], mutated[i]
    return mutated
