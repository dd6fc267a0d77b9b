"""Serializers for optimized routes."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ..geospatial import distance_to_origin_km, stop_distance_km
from ..routing.models import OptimizedRoute, RouteComparison


def _comparison_to_json(comparison: RouteComparison) -> dict:
    def parent(route) -> dict:
        return {
            "stop_ids": [stop.stop_id for stop in route.stops],
            "total_distance_km": route.total_distance_km,
            "fitness_score": route.fitness_score,
            "generation_count": route.generation_count,
        }

    return {
        "route_a": parent(comparison.route_a),
        "route_b": parent(comparison.route_b),
        "selected_route": comparison.selected_route,
        "distance_improvement": comparison.distance_improvement,
        "fitness_improvement": comparison.fitness_improvement,
        "crossover": asdict(comparison.crossover),
    }


def optimized_route_to_json(result: OptimizedRoute) -> dict:
    return {
        "origin": asdict(result.origin),
        "strategy": result.strategy,
        "total_distance_km": result.total_distance_km,
        "estimated_time_hours": result.estimated_time_hours,
        "optimization_score": result.optimization_score,
        "fuel_cost_estimate": result.fuel_cost_estimate,
        "generation_count": result.generation_count,
        "fitness_score": result.fitness_score,
        "stops": [asdict(stop) for stop in result.stops],
        "route_comparison": _comparison_to_json(result.route_comparison) if result.route_comparison else None,
    }


def optimized_route_to_csv(result: OptimizedRoute) -> str:
    """One row per stop; straight-line leg distance is empty for ungeocoded stops."""
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "stop_id",
        "order_id",
        "customer_name",
        "barangay",
        "latitude",
        "longitude",
        "leg_distance_km",
        "total_distance_km",
        "estimated_time_hours",
        "optimization_score",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    previous = None
    for sequence, stop in enumerate(result.stops, start=1):
        if not stop.has_valid_coordinates:
            leg = ""
        elif previous is None:
            leg = round(distance_to_origin_km(stop, result.origin), 3)
        else:
            leg = round(stop_distance_km(previous, stop), 3)
        if stop.has_valid_coordinates:
            previous = stop
        writer.writerow(
            {
                "sequence": sequence,
                "stop_id": stop.stop_id,
                "order_id": stop.order_id,
                "customer_name": stop.customer_name,
                "barangay": stop.area or "",
                "latitude": "" if stop.latitude is None else stop.latitude,
                "longitude": "" if stop.longitude is None else stop.longitude,
                "leg_distance_km": leg,
                "total_distance_km": result.total_distance_km,
                "estimated_time_hours": result.estimated_time_hours,
                "optimization_score": result.optimization_score,
            }
        )
    return buffer.getvalue()
