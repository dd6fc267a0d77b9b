"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEPLANNER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Route Planner API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted run outputs.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Default depot (start and end of every planned route)
    depot_latitude: float = Field(default=8.4542, ge=-90.0, le=90.0)
    depot_longitude: float = Field(default=124.6319, ge=-180.0, le=180.0)
    depot_name: str = "DeliveryEase Depot"
    depot_address: str = "Cagayan de Oro City, Philippines"

    # Genetic search defaults
    population_size: int = Field(default=100, ge=2)
    max_generations: int = Field(default=500, ge=1)
    mutation_rate: float = Field(default=0.02, ge=0.0, le=1.0)
    crossover_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    elite_count: int = Field(default=10, ge=0)
    convergence_threshold: float = Field(default=0.001, ge=0.0)
    dual_route_comparison: bool = True
    stagnation_limit: int = Field(default=50, ge=0)
    tournament_size: int = Field(default=5, ge=1)
    refinement_iterations: int = Field(default=10, ge=0)
    parallel_parents: bool = Field(
        default=False,
        description="Run the two dual-mode parent searches on separate worker threads.",
    )
    optimizer_time_limit_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Abort a single optimization request after this many seconds.",
    )

    # Route cost model
    road_distance_factor: float = Field(default=1.2, gt=0.0)
    invalid_coordinate_penalty_km: float = Field(default=1000.0, ge=0.0)
    baseline_km_per_stop: float = Field(default=1.5, gt=0.0)
    ideal_km_per_stop: float = Field(default=2.0, gt=0.0)
    average_speed_kmh: float = Field(default=30.0, gt=0.0)
    service_hours_per_stop: float = Field(default=0.33, ge=0.0)
    fuel_km_per_liter: float = Field(default=10.0, gt=0.0)
    fuel_price_per_liter: float = Field(default=60.0, ge=0.0)
    adjacency_tolerance_km: float = Field(default=0.1, ge=0.0)
    adjacency_bonus: float = 50.0
    adjacency_penalty_cap: float = Field(default=30.0, ge=0.0)
    adjacency_penalty_per_km: float = Field(default=10.0, ge=0.0)
    closing_leg_weight: float = Field(default=0.3, ge=0.0)
    lookahead_weight: float = Field(default=0.3, ge=0.0)
    lookahead_closing_weight: float = Field(default=0.5, ge=0.0)
    time_window_weight: float = Field(default=0.0, ge=0.0)
    priority_weight: float = Field(default=0.0, ge=0.0)
    shift_start_hour: float = Field(default=9.0, ge=0.0, le=24.0)

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


settings = Settings()
