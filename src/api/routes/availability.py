"""Availability computation endpoint."""

import asyncio
import logging
import time
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Annotated
from zoneinfo import ZoneInfoNotFoundError

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)

from api.dependencies import verify_api_key
from api.logging import RequestLog, log_request
from api.models.responses import (
    AvailabilityResponse,
    DayStatResponse,
    ErrorCodes,
    IntervalResponse,
    OverlayResponse,
    PersonStatResponse,
    SourceResponse,
    TitleResponse,
)
from core.availability import OverrideScope, compute_availability, default_override_scope, overlay_ids_for
from core.config import MAX_RANGE_DAYS, MAX_UPLOAD_SIZE_BYTES, WORK_END_HOUR, WORK_START_HOUR
from core.segments import get_reference_tz
from models.events import AvailabilityResult, DayStat, Interval, QueryRange, Source, WorkWindow
from services.calendar import CalendarParseError, fit_query_range, parse_ics_text, unique_source_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _bad_request(error: str, details: list[str] | None = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": error,
            "code": ErrorCodes.INVALID_REQUEST,
            "details": details or [],
        },
    )


def parse_query_date(date_str: str | None, field_name: str) -> date | None:
    """Parse date string to date object."""
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise _bad_request(f"Invalid {field_name} format", ["Expected format: YYYY-MM-DD"])


def _interval(interval: Interval, tz: tzinfo) -> IntervalResponse:
    start, end = interval
    return IntervalResponse(start=start.astimezone(tz).isoformat(), end=end.astimezone(tz).isoformat())


def day_stat_to_response(stat: DayStat, tz: tzinfo) -> DayStatResponse:
    """Convert a DayStat into its JSON response model."""
    return DayStatResponse(
        date=stat.date.isoformat(),
        work_start=stat.work_start.astimezone(tz).isoformat(),
        work_end=stat.work_end.astimezone(tz).isoformat(),
        total_minutes=stat.total_minutes,
        busy_minutes=stat.busy_minutes,
        free_minutes=stat.free_minutes,
        free_ratio=stat.free_ratio,
        has_urgent=stat.has_urgent,
        merged_busy=[_interval(i, tz) for i in stat.merged_busy],
        per_person=[
            PersonStatResponse(
                source_id=p.source_id,
                source_name=p.source_name,
                busy_minutes=p.busy_minutes,
                free_minutes=p.free_minutes,
                free_ratio=p.free_ratio,
                merged_busy=[_interval(i, tz) for i in p.merged_busy],
                free_blocks=[_interval(i, tz) for i in p.free_blocks],
            )
            for p in stat.per_person
        ],
        titles=[
            TitleResponse(
                source_id=t.source_id,
                source_name=t.source_name,
                summary=t.summary,
                start=t.start.astimezone(tz).isoformat(),
                end=t.end.astimezone(tz).isoformat(),
                all_day=t.all_day,
                is_urgent=t.is_urgent,
                is_free_override=t.is_free_override,
            )
            for t in stat.titles
        ],
        overlay_items=[
            OverlayResponse(
                source_id=o.source_id,
                source_name=o.source_name,
                busy_minutes=o.busy_minutes,
                merged_busy=[_interval(i, tz) for i in o.merged_busy],
            )
            for o in stat.overlay_items
        ],
    )


def _compute_in_thread(
    uploads: list[tuple[str, bytes]],
    date_from: date | None,
    date_to: date | None,
    work_window: WorkWindow,
    overlay_names: list[str],
    selected: list[str],
    scope: OverrideScope,
    tz: tzinfo,
) -> tuple[list[Source], set[str], QueryRange, AvailabilityResult]:
    """
    Parse uploads and compute availability in the thread pool.

    Raises:
        CalendarParseError: if an upload is not a calendar document
        ValueError: if no date range can be determined or it is too long
    """
    sources: list[Source] = []
    events = []
    taken: set[str] = set()
    for filename, content in uploads:
        source = Source(id=unique_source_id(filename, taken), name=filename)
        sources.append(source)
        events.extend(parse_ics_text(content, source, tz))

    if date_from and date_to:
        query_range = QueryRange.from_dates(date_from, date_to, tz)
    else:
        fitted = fit_query_range(events, tz)
        if fitted is None:
            raise ValueError("No concrete events to fit a date range; provide date_from and date_to")
        query_range = QueryRange.from_dates(
            date_from or fitted.start.date(), date_to or fitted.end.date(), tz
        )

    day_count = len(query_range.days(tz))
    if day_count > MAX_RANGE_DAYS:
        raise ValueError(f"Date range spans {day_count} days, maximum is {MAX_RANGE_DAYS}")

    overlay_ids = overlay_ids_for(sources, overlay_names) if overlay_names else None
    active_ids = None
    if selected:
        wanted = set(selected)
        active_ids = {s.id for s in sources if s.id in wanted or s.name in wanted}

    result = compute_availability(
        events,
        sources,
        query_range,
        work_window,
        active_ids=active_ids,
        overlay_source_ids=overlay_ids,
        override_scope=scope,
        tz=tz,
    )
    resolved_overlay = overlay_ids if overlay_ids is not None else overlay_ids_for(sources)
    return sources, resolved_overlay, query_range, result


@router.post("/availability", response_model=AvailabilityResponse)
async def compute_availability_endpoint(
    request: Request,
    files: Annotated[list[UploadFile], File(description="Calendar .ics files, one per person")],
    date_from: Annotated[str | None, Form(description="First day (YYYY-MM-DD)")] = None,
    date_to: Annotated[str | None, Form(description="Last day (YYYY-MM-DD)")] = None,
    work_start: Annotated[int, Form(description="Work window start hour (0-23)")] = WORK_START_HOUR,
    work_end: Annotated[int, Form(description="Work window end hour (0-24)")] = WORK_END_HOUR,
    overlay: Annotated[list[str] | None, Form(description="File names kept out of the group union")] = None,
    sources: Annotated[list[str] | None, Form(description="File names to include (default: all)")] = None,
    override_scope: Annotated[str | None, Form(description="'group' or 'source'")] = None,
    timezone: Annotated[str | None, Form(description="Reference time zone")] = None,
    _api_key: str = Depends(verify_api_key),
):
    """
    Compute per-day free/busy statistics for uploaded calendars.

    Accepts .ics uploads and returns the group and per-person availability
    for every day in the range.
    """
    start_time = time.time()

    request_log = RequestLog(
        endpoint="/v1/availability",
        method="POST",
        client_ip=get_client_ip(request),
        calendars_uploaded=len(files),
        date_from=date_from,
        date_to=date_to,
    )

    try:
        if not files or not any(f.filename for f in files):
            raise _bad_request("No calendar files provided")

        uploads: list[tuple[str, bytes]] = []
        total_size = 0
        for upload in files:
            if not upload.filename or not upload.filename.lower().endswith(".ics"):
                raise HTTPException(
                    status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                    detail={
                        "error": "File is not an iCalendar document",
                        "code": ErrorCodes.UNSUPPORTED_MEDIA_TYPE,
                        "details": [f"Received: {upload.filename}"],
                    },
                )
            content = await upload.read()
            total_size += len(content)
            uploads.append((Path(upload.filename).name, content))

        request_log.upload_size_bytes = total_size
        if total_size > MAX_UPLOAD_SIZE_BYTES:
            max_mb = MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail={
                    "error": f"Uploads exceed maximum size of {max_mb} MB",
                    "code": ErrorCodes.FILE_TOO_LARGE,
                    "details": [f"Upload size: {total_size / (1024*1024):.1f} MB"],
                },
            )

        parsed_from = parse_query_date(date_from, "date_from")
        parsed_to = parse_query_date(date_to, "date_to")

        try:
            work_window = WorkWindow(work_start, work_end)
        except ValueError as e:
            raise _bad_request("Invalid work window", [str(e)])

        try:
            scope = OverrideScope(override_scope) if override_scope else default_override_scope()
        except ValueError:
            raise _bad_request(
                "Invalid override_scope", [f"Expected one of: {', '.join(s.value for s in OverrideScope)}"]
            )

        try:
            tz = get_reference_tz(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise _bad_request("Unknown timezone", [f"Received: {timezone}"])

        source_list, overlay_ids, query_range, result = await asyncio.to_thread(
            _compute_in_thread,
            uploads,
            parsed_from,
            parsed_to,
            work_window,
            overlay or [],
            sources or [],
            scope,
            tz,
        )

        for source in source_list:
            request_log.details.append(("calendar_loaded", source.name))
        for failure in result.failures:
            request_log.details.append(("warning", f"{failure.source_id}: {failure.reason}"))

        request_log.status_code = 200
        request_log.date_from = query_range.start.date().isoformat()
        request_log.date_to = query_range.end.date().isoformat()
        request_log.days_computed = len(result.day_stats)
        request_log.events_expanded = result.event_count
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        return AvailabilityResponse(
            date_from=query_range.start.date().isoformat(),
            date_to=query_range.end.date().isoformat(),
            timezone=str(tz),
            work_start_hour=work_window.start_hour,
            work_end_hour=work_window.end_hour,
            override_scope=scope.value,
            sources=[
                SourceResponse(id=s.id, name=s.name, overlay=s.id in overlay_ids)
                for s in source_list
            ],
            event_count=result.event_count,
            expansion_failures=[f"{f.summary or '(no title)'}: {f.reason}" for f in result.failures],
            days={key: day_stat_to_response(stat, tz) for key, stat in result.day_stats.items()},
        )

    except HTTPException as e:
        # Log HTTP errors
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        raise

    except (CalendarParseError, ValueError) as e:
        # Unreadable calendars or an unusable range
        error_msg = str(e)
        request_log.status_code = 422
        request_log.error_code = ErrorCodes.VALIDATION_ERROR
        request_log.error_message = error_msg
        request_log.details.append(("validation_error", error_msg))
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "Calendar validation failed",
                "code": ErrorCodes.VALIDATION_ERROR,
                "details": [error_msg],
            },
        )

    except Exception as e:
        # Unexpected errors
        logger.exception("Availability computation failed")
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Internal server error",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        # Always log the request
        try:
            log_request(request_log)
        except Exception as e:
            # Don't fail the request if logging fails
            logger.warning("Could not write request log: %s", e)
