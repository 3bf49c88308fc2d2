"""Health check endpoint."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, TIME_ZONE

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if the configured time zone is unknown.
    """
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        ZoneInfo(TIME_ZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                timezone=TIME_ZONE,
                timestamp=timestamp,
                error="Configured TIME_ZONE not found",
            ).model_dump(),
        )

    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timezone=TIME_ZONE,
        timestamp=timestamp,
    )
