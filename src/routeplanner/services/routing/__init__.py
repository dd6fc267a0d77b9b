"""Single-driver route optimization."""

from .cancellation import Deadline, OptimizationCancelled
from .models import AlgorithmConfig, OptimizedRoute, RouteComparison, RouteCostModel
from .optimizer import optimize_batch, optimize_from_current_position, optimize_from_depot

__all__ = [
    "AlgorithmConfig",
    "RouteCostModel",
    "OptimizedRoute",
    "RouteComparison",
    "Deadline",
    "OptimizationCancelled",
    "optimize_from_depot",
    "optimize_from_current_position",
    "optimize_batch",
]
