"""API Pydantic models."""

from .responses import (
    AvailabilityResponse,
    DayStatResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    IntervalResponse,
    OverlayResponse,
    PersonStatResponse,
    SourceResponse,
    TitleResponse,
)

__all__ = [
    "AvailabilityResponse",
    "DayStatResponse",
    "ErrorCodes",
    "ErrorResponse",
    "HealthResponse",
    "IntervalResponse",
    "OverlayResponse",
    "PersonStatResponse",
    "SourceResponse",
    "TitleResponse",
]
