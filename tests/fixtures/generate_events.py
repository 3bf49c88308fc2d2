#!/usr/bin/env python3
"""
Generate sample team calendars as .ics files.

Each person gets a working-hours calendar with meetings, the occasional
urgent item, "Free" blocks, all-day events and a weekly recurring standup.

Usage:
    uv run python tests/fixtures/generate_events.py --people 4 --days 30 --out output/sample-calendars
"""

import argparse
import random
from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

from faker import Faker
from icalendar import Calendar, Event

UTC = ZoneInfo("UTC")

MEETING_TITLES = [
    "Design review",
    "Project sync",
    "Client call",
    "Sprint planning",
    "1:1",
    "Budget review",
    "Interview",
]

URGENT_TITLES = ["Deadline!", "Prod incident!", "Board prep!"]
FREE_TITLES = ["Free", "free - hold for focus", "FREE"]


def generate_calendar(
    person: str,
    start: date,
    days: int,
    seed: int = 0,
    tz: ZoneInfo = UTC,
) -> str:
    """
    Build one person's calendar as ICS text.

    Deterministic for a given (person, start, days, seed).
    """
    fake = Faker()
    fake.seed_instance(f"{seed}-{person}")
    rng = random.Random(f"{seed}-{person}")

    cal = Calendar()
    cal.add("prodid", f"-//Sample {person}//EN")
    cal.add("version", "2.0")

    uid = 0

    def add(summary, dtstart, dtend=None, rrule=None):
        nonlocal uid
        uid += 1
        event = Event()
        event.add("uid", f"{person}-{uid}@sample")
        event.add("summary", summary)
        event.add("dtstart", dtstart)
        if dtend is not None:
            event.add("dtend", dtend)
        if rrule:
            event.add("rrule", rrule)
        cal.add_component(event)

    # Weekly standup from the first day
    first = datetime.combine(start, datetime.min.time(), tzinfo=tz).replace(hour=9)
    add("Standup", first, first + timedelta(minutes=15), rrule={"freq": "WEEKLY"})

    for offset in range(days):
        day = start + timedelta(days=offset)
        if day.weekday() >= 5:
            continue

        # Rare all-day event
        if rng.random() < 0.05:
            add(f"Out: {fake.city()}", day, day + timedelta(days=1))
            continue

        hour = 8
        while hour < 18:
            roll = rng.random()
            length = rng.choice([30, 60, 90, 120])
            begin = datetime.combine(day, datetime.min.time(), tzinfo=tz).replace(hour=hour)
            if roll < 0.4:
                title = rng.choice(MEETING_TITLES) + f" with {fake.first_name()}"
                add(title, begin, begin + timedelta(minutes=length))
            elif roll < 0.45:
                add(rng.choice(URGENT_TITLES), begin, begin + timedelta(minutes=length))
            elif roll < 0.5:
                add(rng.choice(FREE_TITLES), begin, begin + timedelta(minutes=length))
            elif roll < 0.52:
                # Late meeting running past midnight
                late = begin.replace(hour=23)
                add(fake.catch_phrase(), late, late + timedelta(hours=2))
            hour += rng.choice([1, 2])

    return cal.to_ical().decode("utf-8")


def main():
    parser = argparse.ArgumentParser(description="Generate sample team calendars")
    parser.add_argument("--people", type=int, default=3)
    parser.add_argument("--days", type=int, default=30)
    parser.add_argument("--start", default=date.today().isoformat(), help="First day (YYYY-MM-DD)")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--out", type=Path, default=Path("output") / "sample-calendars")
    args = parser.parse_args()

    start = date.fromisoformat(args.start)
    fake = Faker()
    fake.seed_instance(args.seed)

    args.out.mkdir(parents=True, exist_ok=True)
    for _ in range(args.people):
        person = fake.unique.first_name().lower()
        path = args.out / f"{person}.ics"
        path.write_text(generate_calendar(person, start, args.days, args.seed))
        print(f"  Generated: {path}")

    print(f"\nDone! {args.people} calendars in {args.out}")


if __name__ == "__main__":
    main()
