"""
Health check endpoint.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from labqc.core.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    environment: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check; the service has no backing stores to probe."""
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        version=settings.app_version,
    )
