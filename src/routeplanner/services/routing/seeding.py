"""Initial population construction for the genetic search."""

from __future__ import annotations

import hashlib
from typing import Optional

import numpy as np

from .evaluator import DEFAULT_PRIORITY, RouteEvaluator

CONSTRUCTIVE_SLOTS = 1
LOOKAHEAD_SLOTS = 14
PRIORITY_SLOTS = 5
SEEDED_SLOTS = 5
SEEDED_FORCED_START_PROBABILITY = 0.8
RANDOM_FORCED_START_PROBABILITY = 0.7


def seed_population(
    evaluator: RouteEvaluator,
    size: int,
    rng: np.random.Generator,
    *,
    seed_label: Optional[str] = None,
) -> list[list[int]]:
    """Build ``size`` candidate routes, most of them opening with the nearest stop.

    Slots are filled in a fixed order: one constructive route, lookahead
    nearest-neighbour routes, priority routes, label-seeded shuffles (only when
    ``seed_label`` is given) and random permutations for the remainder.
    """
    population: list[list[int]] = []
    if size <= 0:
        return population

    constructive = constructive_route(evaluator)
    lookahead = lookahead_route(evaluator)
    by_priority = priority_route(evaluator)

    lookahead_end = CONSTRUCTIVE_SLOTS + LOOKAHEAD_SLOTS
    priority_end = lookahead_end + PRIORITY_SLOTS
    seeded_end = priority_end + SEEDED_SLOTS

    for slot in range(size):
        if slot < CONSTRUCTIVE_SLOTS:
            route = list(constructive)
        elif slot < lookahead_end:
            route = list(lookahead)
        elif slot < priority_end:
            route = list(by_priority)
        elif slot < seeded_end and seed_label:
            route = seeded_route(evaluator, seed_label, slot)
        else:
            route = random_route(evaluator, rng)
        population.append(route)
    return population


def constructive_route(evaluator: RouteEvaluator) -> list[int]:
    """Nearest-first greedy route that starts weighing the way home near the end."""
    if evaluator.size == 0:
        return []
    weight = evaluator.cost_model.closing_leg_weight
    current = evaluator.nearest_to_start()
    route = [current]
    remaining = [index for index in range(evaluator.size) if index != current]
    while remaining:
        closing = len(remaining) <= 2

        def score(candidate: int) -> float:
            value = evaluator.leg(current, candidate)
            if closing:
                value += weight * float(evaluator.end_distances[candidate])
            return value

        current = min(remaining, key=score)
        remaining.remove(current)
        route.append(current)
    return route


def lookahead_route(evaluator: RouteEvaluator) -> list[int]:
    """Nearest neighbour with a one-step lookahead on the following hop."""
    if evaluator.size == 0:
        return []
    model = evaluator.cost_model
    current = evaluator.nearest_to_start()
    route = [current]
    remaining = [index for index in range(evaluator.size) if index != current]
    while remaining:
        closing = len(remaining) <= 2

        def score(candidate: int) -> float:
            value = evaluator.leg(current, candidate)
            onward = [evaluator.leg(candidate, other) for other in remaining if other != candidate]
            if onward:
                value += model.lookahead_weight * min(onward)
            if closing:
                value += model.lookahead_closing_weight * float(evaluator.end_distances[candidate])
            return value

        current = min(remaining, key=score)
        remaining.remove(current)
        route.append(current)
    return route


def priority_route(evaluator: RouteEvaluator) -> list[int]:
    """Nearest stop first, then priority tiers in order, nearest neighbour inside each tier."""
    if evaluator.size == 0:
        return []
    first = evaluator.nearest_to_start()
    route = [first]
    tiers: dict[int, list[int]] = {}
    for index, stop in enumerate(evaluator.stops):
        if index == first:
            continue
        priority = stop.priority if stop.priority is not None else DEFAULT_PRIORITY
        tiers.setdefault(priority, []).append(index)

    current = first
    for priority in sorted(tiers):
        remaining = list(tiers[priority])
        while remaining:
            current = min(remaining, key=lambda candidate: evaluator.leg(current, candidate))
            remaining.remove(current)
            route.append(current)
    return route


def label_entropy(label: str) -> int:
    """Stable integer derived from a text label."""
    return int.from_bytes(hashlib.sha256(label.encode("utf-8")).digest()[:8], "big")


def seeded_route(evaluator: RouteEvaluator, label: str, slot: int) -> list[int]:
    """Deterministic shuffle for a (label, slot) pair."""
    generator = np.random.default_rng([label_entropy(label), slot])
    return _shuffled_route(evaluator, generator, SEEDED_FORCED_START_PROBABILITY)


def random_route(evaluator: RouteEvaluator, rng: np.random.Generator) -> list[int]:
    return _shuffled_route(evaluator, rng, RANDOM_FORCED_START_PROBABILITY)


def _shuffled_route(evaluator: RouteEvaluator, rng: np.random.Generator, forced_start_probability: float) -> list[int]:
    if evaluator.size == 0:
        return []
    if rng.random() < forced_start_probability:
        first = evaluator.nearest_to_start()
        rest = [index for index in range(evaluator.size) if index != first]
        return [first, *_fisher_yates(rest, rng)]
    return _fisher_yates(list(range(evaluator.size)), rng)


def _fisher_yates(items: list[int], rng: np.random.Generator) -> list[int]:
    for i in range(len(items) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        items[i], items[j] = items[j], items[i]
    return items
