"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional

from ...config import settings
from ...models.domain import Origin, Stop

SelectedRoute = Literal["A", "B", "crossover"]
Strategy = Literal["trivial", "fallback", "single", "dual"]


@dataclass(slots=True, frozen=True)
class AlgorithmConfig:
    population_size: int = settings.population_size
    max_generations: int = settings.max_generations
    mutation_rate: float = settings.mutation_rate
    crossover_rate: float = settings.crossover_rate
    elite_count: int = settings.elite_count
    convergence_threshold: float = settings.convergence_threshold
    dual_route_comparison: bool = settings.dual_route_comparison
    stagnation_limit: int = settings.stagnation_limit
    tournament_size: int = settings.tournament_size
    refinement_iterations: int = settings.refinement_iterations

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ValueError("population_size must be >= 1")
        if self.max_generations < 0:
            raise ValueError("max_generations must be >= 0")
        for name in ("mutation_rate", "crossover_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.elite_count < 0:
            raise ValueError("elite_count must be >= 0")
        if self.convergence_threshold < 0:
            raise ValueError("convergence_threshold must be >= 0")
        if self.stagnation_limit < 0:
            raise ValueError("stagnation_limit must be >= 0")
        if self.tournament_size < 1:
            raise ValueError("tournament_size must be >= 1")
        if self.refinement_iterations < 0:
            raise ValueError("refinement_iterations must be >= 0")

    def derive(self, **overrides) -> "AlgorithmConfig":
        return replace(self, **overrides)

    @classmethod
    def preset(cls, name: str) -> "AlgorithmConfig":
        """Named parameter sets used by the different call sites."""
        try:
            overrides = PRESETS[name]
        except KeyError:
            raise ValueError(f"Unknown algorithm preset '{name}'. Expected one of: {', '.join(sorted(PRESETS))}") from None
        return cls(**overrides)


PRESETS: dict[str, dict] = {
    "default": {},
    # Batch auto-assignment: runs in the background, moderate budget
    "batch": {"population_size": 80, "max_generations": 300, "mutation_rate": 0.03},
    # Dispatcher screen, must stay responsive
    "interactive": {"population_size": 50, "max_generations": 200, "mutation_rate": 0.03},
    # Driver's live map
    "live": {"population_size": 120, "max_generations": 400, "mutation_rate": 0.025, "dual_route_comparison": True},
}


@dataclass(slots=True, frozen=True)
class RouteCostModel:
    """Weights and physical constants used to score a route."""

    road_distance_factor: float = settings.road_distance_factor
    invalid_coordinate_penalty_km: float = settings.invalid_coordinate_penalty_km
    baseline_km_per_stop: float = settings.baseline_km_per_stop
    ideal_km_per_stop: float = settings.ideal_km_per_stop
    average_speed_kmh: float = settings.average_speed_kmh
    service_hours_per_stop: float = settings.service_hours_per_stop
    fuel_km_per_liter: float = settings.fuel_km_per_liter
    fuel_price_per_liter: float = settings.fuel_price_per_liter
    adjacency_tolerance_km: float = settings.adjacency_tolerance_km
    adjacency_bonus: float = settings.adjacency_bonus
    adjacency_penalty_cap: float = settings.adjacency_penalty_cap
    adjacency_penalty_per_km: float = settings.adjacency_penalty_per_km
    closing_leg_weight: float = settings.closing_leg_weight
    lookahead_weight: float = settings.lookahead_weight
    lookahead_closing_weight: float = settings.lookahead_closing_weight
    time_window_weight: float = settings.time_window_weight
    priority_weight: float = settings.priority_weight
    shift_start_hour: float = settings.shift_start_hour


@dataclass(slots=True, frozen=True)
class SearchResult:
    route: list[int]
    distance_km: float
    fitness: float
    generation_count: int


@dataclass(slots=True, frozen=True)
class ParentRoute:
    stops: tuple[Stop, ...]
    total_distance_km: float
    fitness_score: float
    generation_count: int


@dataclass(slots=True, frozen=True)
class CrossoverSummary:
    iterations: int
    final_distance_km: float
    final_fitness: float
    improved_from_parents: bool


@dataclass(slots=True, frozen=True)
class RouteComparison:
    route_a: ParentRoute
    route_b: ParentRoute
    selected_route: SelectedRoute
    distance_improvement: float
    fitness_improvement: float
    crossover: CrossoverSummary


@dataclass(slots=True, frozen=True)
class OptimizedRoute:
    stops: tuple[Stop, ...]
    total_distance_km: float
    estimated_time_hours: float
    optimization_score: float
    fuel_cost_estimate: float
    generation_count: int
    fitness_score: float
    strategy: Strategy
    origin: Origin
    route_comparison: Optional[RouteComparison] = None

    @property
    def stop_ids(self) -> list[str]:
        return [stop.stop_id for stop in self.stops]
