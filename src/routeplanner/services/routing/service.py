"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Origin, Stop, TimeWindow, default_depot
from ...persistence.filesystem import FileStorage
from ...schemas.routing import (
    AlgorithmConfigModel,
    BatchRouteRequest,
    CrossoverModel,
    CurrentPositionRouteRequest,
    DepotRouteRequest,
    LocationModel,
    OptimizedRouteResponse,
    ParentRouteModel,
    RouteComparisonModel,
    RouteRequest,
    StopModel,
    TimeWindowModel,
)
from ..outputs.routing_formatter import optimized_route_to_csv, optimized_route_to_json
from .cancellation import CancelCheck, Deadline
from .models import AlgorithmConfig, OptimizedRoute, ParentRoute
from .optimizer import optimize_batch, optimize_from_current_position, optimize_from_depot

logger = logging.getLogger(__name__)


def _to_stop(model: StopModel) -> Stop:
    window = model.time_window
    return Stop(
        stop_id=model.id,
        order_id=model.order_id,
        customer_name=model.customer_name,
        address=model.address,
        area=model.barangay,
        latitude=model.latitude,
        longitude=model.longitude,
        phone=model.phone,
        total=model.total,
        delivery_status=model.delivery_status,
        priority=model.priority,
        time_window=TimeWindow(start_hour=window.start_hour, end_hour=window.end_hour) if window else None,
    )


def _to_stop_model(stop: Stop) -> StopModel:
    window = stop.time_window
    return StopModel(
        id=stop.stop_id,
        order_id=stop.order_id,
        customer_name=stop.customer_name,
        address=stop.address,
        barangay=stop.area,
        latitude=stop.latitude,
        longitude=stop.longitude,
        phone=stop.phone,
        total=stop.total,
        delivery_status=stop.delivery_status,
        priority=stop.priority,
        time_window=TimeWindowModel(start_hour=window.start_hour, end_hour=window.end_hour) if window else None,
    )


def _to_origin(location: Optional[LocationModel], *, kind: str = "depot", fallback: Optional[Origin] = None) -> Origin:
    if location is None:
        return fallback or default_depot()
    return Origin(
        latitude=location.latitude,
        longitude=location.longitude,
        name=location.name or ("Current position" if kind == "current_position" else "Depot"),
        address=location.address,
        kind=kind,  # type: ignore[arg-type]
    )


def _build_config(preset: Optional[str], overrides: Optional[AlgorithmConfigModel]) -> AlgorithmConfig:
    base = AlgorithmConfig.preset(preset) if preset else AlgorithmConfig()
    if overrides is None:
        return base
    changes = overrides.model_dump(exclude_none=True)
    return base.derive(**changes) if changes else base


def _cancel_check() -> Optional[CancelCheck]:
    if settings.optimizer_time_limit_seconds:
        return Deadline(settings.optimizer_time_limit_seconds)
    return None


def _parent_model(parent: ParentRoute) -> ParentRouteModel:
    return ParentRouteModel(
        stop_ids=[stop.stop_id for stop in parent.stops],
        total_distance_km=parent.total_distance_km,
        fitness_score=parent.fitness_score,
        generation_count=parent.generation_count,
    )


def to_response(result: OptimizedRoute, metadata: Optional[dict] = None) -> OptimizedRouteResponse:
    comparison = None
    if result.route_comparison is not None:
        data = result.route_comparison
        comparison = RouteComparisonModel(
            route_a=_parent_model(data.route_a),
            route_b=_parent_model(data.route_b),
            selected_route=data.selected_route,
            distance_improvement=data.distance_improvement,
            fitness_improvement=data.fitness_improvement,
            crossover=CrossoverModel(
                iterations=data.crossover.iterations,
                final_distance_km=data.crossover.final_distance_km,
                final_fitness=data.crossover.final_fitness,
                improved_from_parents=data.crossover.improved_from_parents,
            ),
        )
    origin = result.origin
    return OptimizedRouteResponse(
        origin=LocationModel(
            latitude=origin.latitude,
            longitude=origin.longitude,
            name=origin.name,
            address=origin.address,
        ),
        origin_kind=origin.kind,
        stops=[_to_stop_model(stop) for stop in result.stops],
        total_distance_km=result.total_distance_km,
        estimated_time_hours=result.estimated_time_hours,
        optimization_score=result.optimization_score,
        fuel_cost_estimate=result.fuel_cost_estimate,
        generation_count=result.generation_count,
        fitness_score=result.fitness_score,
        strategy=result.strategy,
        route_comparison=comparison,
        metadata=metadata or {},
    )


def _persist(result: OptimizedRoute, payload: RouteRequest, metadata: dict) -> None:
    try:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix="route", label=payload.run_label)
        summary = optimized_route_to_json(result)
        summary["metadata"] = metadata
        storage.write_json(run_dir / "summary.json", summary)
        storage.write_csv(run_dir / "route.csv", optimized_route_to_csv(result))
        metadata["output_dir"] = str(run_dir)
    except OSError as exc:
        logger.error(f"Failed to persist route outputs: {exc}")
        metadata["persist_error"] = str(exc)


def _finish(result: OptimizedRoute, payload: RouteRequest, mode: str) -> OptimizedRouteResponse:
    metadata: dict = {"mode": mode, "stop_count": len(result.stops)}
    if payload.run_label:
        metadata["run_label"] = payload.run_label
    if payload.seed is not None:
        metadata["seed"] = payload.seed
    if payload.persist:
        _persist(result, payload, metadata)
    return to_response(result, metadata)


def plan_route_from_depot(payload: DepotRouteRequest) -> OptimizedRouteResponse:
    stops = [_to_stop(stop) for stop in payload.stops]
    result = optimize_from_depot(
        stops,
        depot=_to_origin(payload.depot),
        config=_build_config(payload.preset, payload.config),
        seed=payload.seed,
        cancel=_cancel_check(),
    )
    return _finish(result, payload, "depot")


def replan_route_from_position(payload: CurrentPositionRouteRequest) -> OptimizedRouteResponse:
    stops = [_to_stop(stop) for stop in payload.stops]
    result = optimize_from_current_position(
        stops,
        _to_origin(payload.current_position, kind="current_position"),
        depot=_to_origin(payload.depot),
        config=_build_config(payload.preset or "live", payload.config),
        seed=payload.seed,
        cancel=_cancel_check(),
    )
    return _finish(result, payload, "current_position")


def plan_batch_route(payload: BatchRouteRequest) -> OptimizedRouteResponse:
    stops: Sequence[Stop] = [_to_stop(stop) for stop in payload.stops]
    result = optimize_batch(
        payload.batch_id,
        stops,
        depot=_to_origin(payload.depot),
        seed=payload.seed,
        cancel=_cancel_check(),
    )
    return to_response(result, {"mode": "batch", "batch_id": payload.batch_id, "stop_count": len(result.stops)})
