"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    timezone: str
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IntervalResponse(BaseModel):
    """Half-open time interval, ISO 8601 in the reference time zone."""

    start: str
    end: str


class SourceResponse(BaseModel):
    id: str
    name: str
    overlay: bool = False


class PersonStatResponse(BaseModel):
    """Free/busy breakdown for one calendar on one day."""

    source_id: str
    source_name: str
    busy_minutes: int
    free_minutes: int
    free_ratio: float
    merged_busy: list[IntervalResponse]
    free_blocks: list[IntervalResponse]


class TitleResponse(BaseModel):
    source_id: str
    source_name: str
    summary: str
    start: str
    end: str
    all_day: bool
    is_urgent: bool
    is_free_override: bool


class OverlayResponse(BaseModel):
    source_id: str
    source_name: str
    busy_minutes: int
    merged_busy: list[IntervalResponse]


class DayStatResponse(BaseModel):
    """Availability statistics for one date."""

    date: str
    work_start: str
    work_end: str
    total_minutes: int
    busy_minutes: int
    free_minutes: int
    free_ratio: float
    has_urgent: bool
    merged_busy: list[IntervalResponse]
    per_person: list[PersonStatResponse]
    titles: list[TitleResponse]
    overlay_items: list[OverlayResponse] = []


class AvailabilityResponse(BaseModel):
    """Per-day availability for a set of uploaded calendars."""

    date_from: str
    date_to: str
    timezone: str
    work_start_hour: int
    work_end_hour: int
    override_scope: str
    sources: list[SourceResponse]
    event_count: int
    expansion_failures: list[str] = []
    days: dict[str, DayStatResponse]
