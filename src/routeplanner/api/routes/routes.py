"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    BatchRouteRequest,
    CurrentPositionRouteRequest,
    DepotRouteRequest,
    OptimizedRouteResponse,
)
from ...services.routing.cancellation import OptimizationCancelled
from ...services.routing.service import plan_batch_route, plan_route_from_depot, replan_route_from_position

router = APIRouter(prefix="/routes", tags=["routes"])

logger = logging.getLogger(__name__)


def _run(handler, payload):
    try:
        return handler(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except OptimizationCancelled as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Route optimization exceeded its time limit: {exc}",
        ) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc


@router.post("/optimize", response_model=OptimizedRouteResponse, status_code=status.HTTP_200_OK)
def optimize(payload: DepotRouteRequest) -> OptimizedRouteResponse:
    """Plan a round trip from the depot before the driver departs."""
    return _run(plan_route_from_depot, payload)


@router.post("/reoptimize", response_model=OptimizedRouteResponse, status_code=status.HTTP_200_OK)
def reoptimize(payload: CurrentPositionRouteRequest) -> OptimizedRouteResponse:
    """Re-plan the remaining stops from the driver's live position."""
    return _run(replan_route_from_position, payload)


@router.post("/batch", response_model=OptimizedRouteResponse, status_code=status.HTTP_200_OK)
def optimize_batch(payload: BatchRouteRequest) -> OptimizedRouteResponse:
    return _run(plan_batch_route, payload)
