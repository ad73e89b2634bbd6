"""
Health check endpoint.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from datetime import datetime

from app.utils.registry_client import get_registry
from app.utils.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    registry_initialized: bool
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Registry root carries its marker
    """
    settings = get_settings()
    registry_initialized = get_registry().is_initialized()

    return HealthResponse(
        status="healthy" if registry_initialized else "degraded",
        timestamp=datetime.now(),
        registry_initialized=registry_initialized,
        version=settings.api_version
    )
