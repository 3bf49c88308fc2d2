#!/usr/bin/env python3
"""
Create a free-time availability report from .ics calendars.

Loads every calendar file, expands recurring events over the date range,
prints the group and per-person availability for each day, and optionally
writes an Excel workbook.

Usage:
    uv run python src/scripts/create_availability_report.py a.ics b.ics --from 2025-10-01 --to 2025-10-31

Example:
    uv run python src/scripts/create_availability_report.py team/*.ics --work-start 8 --work-end 18 \\
        --overlay broadcast.ics --output output/availability.xlsx
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.availability import OverrideScope, compute_availability, overlay_ids_for
from core.config import OUTPUT_DIR, WORK_END_HOUR, WORK_START_HOUR
from core.segments import get_reference_tz
from models.events import QueryRange, WorkWindow
from services.calendar import CalendarParseError, fit_query_range, load_calendar_files
from services.reports import create_availability_workbook, format_day_summary


def parse_date(value: str):
    """argparse type for YYYY-MM-DD dates."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report how free a group of calendars is within working hours"
    )
    parser.add_argument("ics_files", type=Path, nargs="+", help="Calendar .ics files")
    parser.add_argument("--from", dest="date_from", type=parse_date, help="First day (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=parse_date, help="Last day (YYYY-MM-DD)")
    parser.add_argument("--work-start", type=int, default=WORK_START_HOUR, help="Start hour (0-23)")
    parser.add_argument("--work-end", type=int, default=WORK_END_HOUR, help="End hour (0-24)")
    parser.add_argument(
        "--overlay",
        action="append",
        default=[],
        metavar="NAME",
        help="Calendar file name kept out of the group union (repeatable)",
    )
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        metavar="NAME",
        help="Only include these calendar file names (repeatable, default: all)",
    )
    parser.add_argument(
        "--override-scope",
        choices=[scope.value for scope in OverrideScope],
        default=None,
        help="Whether 'free' events also free the group view",
    )
    parser.add_argument("--timezone", default=None, help="Reference time zone (default: TIME_ZONE)")
    parser.add_argument("--output", type=Path, help="Write an Excel workbook to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show warnings from parsing")
    return parser


def main():
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        tz = get_reference_tz(args.timezone)
        work_window = WorkWindow(args.work_start, args.work_end)

        print(f"Loading {len(args.ics_files)} calendars...")
        sources, events = load_calendar_files(args.ics_files, tz)
        for source in sources:
            print(f"  Loaded: {source.name}")

        if args.date_from and args.date_to:
            query_range = QueryRange.from_dates(args.date_from, args.date_to, tz)
        else:
            query_range = fit_query_range(events, tz)
            if query_range is None:
                raise ValueError("No concrete events to fit a date range; pass --from and --to")
            if args.date_from:
                query_range = QueryRange.from_dates(args.date_from, query_range.end.date(), tz)
            if args.date_to:
                query_range = QueryRange.from_dates(query_range.start.date(), args.date_to, tz)

        active_ids = None
        if args.source:
            wanted = set(args.source)
            active_ids = {s.id for s in sources if s.name in wanted or s.id in wanted}

        scope = OverrideScope(args.override_scope) if args.override_scope else None
        overlay_ids = overlay_ids_for(sources, args.overlay) if args.overlay else None

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
    except ZoneInfoNotFoundError:
        print(f"\nError: unknown time zone '{args.timezone}'")
        sys.exit(1)
    except (CalendarParseError, ValueError) as e:
        print(f"\nError: {e}")
        sys.exit(1)

    print(f"Loaded events: {result.event_count}")
    if result.failures:
        print(f"Warning: {len(result.failures)} recurring events could not be expanded")
        for failure in result.failures:
            print(f"  - {failure.summary or '(no title)'} ({failure.source_id}): {failure.reason}")

    print("=" * 80)
    for stat in result.day_stats.values():
        print(format_day_summary(stat, tz))
        print("-" * 80)

    if args.output:
        output_path = args.output
        if not output_path.is_absolute() and output_path.parent == Path("."):
            output_path = OUTPUT_DIR / output_path
        create_availability_workbook(result, output_path, tz)
        print(f"\nReport saved: {output_path}")


if __name__ == "__main__":
    main()
