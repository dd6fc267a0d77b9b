"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TimeWindowModel(BaseModel):
    start_hour: float = Field(..., ge=0, le=24)
    end_hour: float = Field(..., ge=0, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindowModel":
        if self.end_hour < self.start_hour:
            raise ValueError("time window end_hour must not be before start_hour")
        return self


class StopModel(BaseModel):
    id: str = Field(..., description="Stop identifier, unique within the request.")
    order_id: str
    customer_name: str = ""
    address: str = ""
    barangay: Optional[str] = Field(default=None, description="Administrative area of the stop.")
    latitude: Optional[float] = Field(default=None, description="Null when the address is not geocoded.")
    longitude: Optional[float] = None
    phone: Optional[str] = None
    total: float = 0.0
    delivery_status: str = "pending"
    priority: Optional[int] = Field(default=None, ge=1, le=5, description="1 is the highest priority.")
    time_window: Optional[TimeWindowModel] = None


class LocationModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str = ""
    address: str = ""


class AlgorithmConfigModel(BaseModel):
    """Per-request overrides; unset fields keep the configured defaults."""

    population_size: Optional[int] = Field(None, ge=2)
    max_generations: Optional[int] = Field(None, ge=0)
    mutation_rate: Optional[float] = Field(None, ge=0, le=1)
    crossover_rate: Optional[float] = Field(None, ge=0, le=1)
    elite_count: Optional[int] = Field(None, ge=0)
    convergence_threshold: Optional[float] = Field(None, ge=0)
    dual_route_comparison: Optional[bool] = None


class RouteRequest(BaseModel):
    stops: List[StopModel]
    depot: Optional[LocationModel] = Field(default=None, description="Defaults to the configured depot.")
    preset: Optional[Literal["default", "batch", "interactive", "live"]] = None
    config: Optional[AlgorithmConfigModel] = None
    seed: Optional[int] = Field(default=None, description="Fix the random generator for reproducible plans.")
    persist: bool = False
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")

    @field_validator("stops")
    @classmethod
    def _unique_ids(cls, value: List[StopModel]) -> List[StopModel]:
        seen: set[str] = set()
        for stop in value:
            if stop.id in seen:
                raise ValueError(f"duplicate stop id '{stop.id}'")
            seen.add(stop.id)
        return value


class DepotRouteRequest(RouteRequest):
    pass


class CurrentPositionRouteRequest(RouteRequest):
    current_position: LocationModel


class BatchRouteRequest(BaseModel):
    batch_id: str
    stops: List[StopModel]
    depot: Optional[LocationModel] = None
    seed: Optional[int] = None


class ParentRouteModel(BaseModel):
    stop_ids: List[str]
    total_distance_km: float
    fitness_score: float
    generation_count: int


class CrossoverModel(BaseModel):
    iterations: int
    final_distance_km: float
    final_fitness: float
    improved_from_parents: bool


class RouteComparisonModel(BaseModel):
    route_a: ParentRouteModel
    route_b: ParentRouteModel
    selected_route: Literal["A", "B", "crossover"]
    distance_improvement: float
    fitness_improvement: float
    crossover: CrossoverModel


class OptimizedRouteResponse(BaseModel):
    origin: LocationModel
    origin_kind: Literal["depot", "current_position"]
    stops: List[StopModel]
    total_distance_km: float
    estimated_time_hours: float
    optimization_score: float
    fuel_cost_estimate: float
    generation_count: int
    fitness_score: float
    strategy: Literal["trivial", "fallback", "single", "dual"]
    route_comparison: Optional[RouteComparisonModel] = None
    metadata: dict = Field(default_factory=dict)
