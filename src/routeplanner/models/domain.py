"""Domain models for delivery stops and route origins."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional

from ..config import settings

OriginKind = Literal["depot", "current_position"]


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """Preferred service window, expressed in hours of the day."""

    start_hour: float
    end_hour: float


@dataclass(slots=True, frozen=True)
class Stop:
    """A delivery location with its order metadata."""

    stop_id: str
    order_id: str
    customer_name: str
    address: str
    area: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    phone: Optional[str] = None
    total: float = 0.0
    delivery_status: str = "pending"
    priority: Optional[int] = None
    time_window: Optional[TimeWindow] = None

    @property
    def has_valid_coordinates(self) -> bool:
        return is_valid_coordinate(self.latitude, self.longitude)


@dataclass(slots=True, frozen=True)
class Origin:
    """Start point of a route: the depot or the driver's live position."""

    latitude: float
    longitude: float
    name: str
    address: str = ""
    kind: OriginKind = "depot"


def is_valid_coordinate(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """Return True when the pair can take part in distance calculations."""
    if latitude is None or longitude is None:
        return False
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    if abs(latitude) > 90 or abs(longitude) > 180:
        return False
    # (0, 0) is what an ungeocoded address usually ends up as
    return not (latitude == 0 and longitude == 0)


def default_depot() -> Origin:
    return Origin(
        latitude=settings.depot_latitude,
        longitude=settings.depot_longitude,
        name=settings.depot_name,
        address=settings.depot_address,
        kind="depot",
    )
