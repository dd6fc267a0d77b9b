"""Health endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, status

from ...models.domain import default_depot
from ...services.routing.models import AlgorithmConfig

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/optimizer", status_code=status.HTTP_200_OK)
def health_optimizer() -> dict:
    """Report the effective default algorithm configuration and depot."""
    return {
        "status": "ok",
        "config": asdict(AlgorithmConfig()),
        "depot": asdict(default_depot()),
    }
