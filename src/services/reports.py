"""
Report generation utilities for text and Excel formats.
"""

import logging
from datetime import date, datetime, tzinfo
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from core.config import BLOCK_HEADERS, GROUP_HEADERS, PERSON_HEADERS
from core.segments import get_reference_tz
from models.events import AvailabilityResult, DayStat, Interval

logger = logging.getLogger(__name__)


def format_date_display(d: date) -> str:
    """Format date as M/D/YYYY (platform-safe, no zero-padding)."""
    return f"{d.month}/{d.day}/{d.year}"


def format_date_long(d: date) -> str:
    """Format date as 'Mon Nov 7, 2025'."""
    return f"{d.strftime('%a %b')} {d.day}, {d.year}"


def format_time(instant: datetime, tz: tzinfo) -> str:
    """Format an instant as local HH:MM."""
    return instant.astimezone(tz).strftime("%H:%M")


def format_interval(interval: Interval, tz: tzinfo) -> str:
    """Format an interval as 'HH:MM-HH:MM'; a next-midnight end shows as 24:00."""
    start, end = interval
    end_text = format_time(end, tz)
    if end_text == "00:00" and end.astimezone(tz).date() > start.astimezone(tz).date():
        end_text = "24:00"
    return f"{format_time(start, tz)}-{end_text}"


def format_intervals(intervals, tz: tzinfo, empty: str = "none") -> str:
    """Comma-separated intervals, or the empty marker."""
    if not intervals:
        return empty
    return ", ".join(format_interval(interval, tz) for interval in intervals)


def format_percent(ratio: float) -> str:
    return f"{round(ratio * 100)}%"


def format_day_summary(stat: DayStat, tz: tzinfo | None = None) -> str:
    """
    Format one day's statistics as a text block.

    Example:
        Wed Oct 15, 2025  (!)
          Group free: 360 / 480 min (75% free)
          Group busy: 09:00-11:00
          sample-a.ics: 88% free | busy 09:00-10:00 | free 10:00-17:00
    """
    tz = get_reference_tz(tz)
    header = format_date_long(stat.date)
    if stat.has_urgent:
        header += "  (!)"

    lines = [
        header,
        f"  Group free: {stat.free_minutes} / {stat.total_minutes} min "
        f"({format_percent(stat.free_ratio)} free)",
    ]
    if stat.merged_busy:
        lines.append(f"  Group busy: {format_intervals(stat.merged_busy, tz)}")
    else:
        lines.append("  No conflicts in these hours")

    for person in stat.per_person:
        lines.append(
            f"  {person.source_name}: {format_percent(person.free_ratio)} free"
            f" | busy {format_intervals(person.merged_busy, tz)}"
            f" | free {format_intervals(person.free_blocks, tz, empty='-')}"
        )

    for overlay in stat.overlay_items:
        lines.append(f"  [{overlay.source_name}] {format_intervals(overlay.merged_busy, tz)}")

    return "\n".join(lines)


# =============================================================================
# EXCEL REPORT GENERATION
# =============================================================================


def _write_headers(ws, headers: list[str]):
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)


def write_excel_group_sheet(ws, result: AvailabilityResult, tz: tzinfo):
    """
    Write the group summary sheet: one row per day.

    Columns: Date, Work Start, Work End, Total/Busy/Free Minutes, % Free, Urgent
    """
    _write_headers(ws, GROUP_HEADERS)

    for row_idx, stat in enumerate(result.day_stats.values(), start=2):
        row_data = [
            format_date_display(stat.date),
            format_time(stat.work_start, tz),
            format_time(stat.work_end, tz),
            stat.total_minutes,
            stat.busy_minutes,
            stat.free_minutes,
            round(stat.free_ratio * 100),
            "yes" if stat.has_urgent else "",
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)


def write_excel_person_sheet(ws, result: AvailabilityResult, tz: tzinfo):
    """Write the per-person sheet: one row per day and calendar."""
    _write_headers(ws, PERSON_HEADERS)

    row_idx = 2
    for stat in result.day_stats.values():
        for person in stat.per_person:
            row_data = [
                format_date_display(stat.date),
                person.source_name,
                person.busy_minutes,
                person.free_minutes,
                round(person.free_ratio * 100),
                format_intervals(person.merged_busy, tz, empty=""),
                format_intervals(person.free_blocks, tz, empty=""),
            ]
            for col_idx, value in enumerate(row_data, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value)
            row_idx += 1


def write_excel_blocks_sheet(ws, result: AvailabilityResult, tz: tzinfo):
    """Write every event segment inside the work window, one row each."""
    _write_headers(ws, BLOCK_HEADERS)

    row_idx = 2
    for stat in result.day_stats.values():
        for title in stat.titles:
            row_data = [
                format_date_display(stat.date),
                title.source_name,
                format_time(title.start, tz),
                format_time(title.end, tz),
                title.summary,
                "yes" if title.is_urgent else "",
                "yes" if title.is_free_override else "",
            ]
            for col_idx, value in enumerate(row_data, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value)
            row_idx += 1


def create_availability_workbook(
    result: AvailabilityResult, output_path: Path, tz: tzinfo | None = None
) -> Path:
    """
    Create Excel availability report with three sheets.

    Sheet 1: "Group Availability" - group union per day
    Sheet 2: "Per Person" - each calendar per day
    Sheet 3: "Busy Blocks" - event segments inside the work window
    """
    tz = get_reference_tz(tz)
    wb = Workbook()

    ws_group = wb.active
    ws_group.title = "Group Availability"
    write_excel_group_sheet(ws_group, result, tz)

    ws_person = wb.create_sheet(title="Per Person")
    write_excel_person_sheet(ws_person, result, tz)

    ws_blocks = wb.create_sheet(title="Busy Blocks")
    write_excel_blocks_sheet(ws_blocks, result, tz)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    logger.info("Saved Excel report to: %s", output_path)
    return output_path
