"""
Interval algebra over half-open [start, end) pairs.

Works on any ordered values; the engine uses timezone-aware datetimes.
"""

from datetime import datetime
from typing import Iterable, Sequence

from models.events import Interval


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """
    Merge overlapping or touching intervals.

    Degenerate intervals (end <= start) are dropped. Returns the minimal
    sorted list of disjoint intervals covering the same points.
    """
    ordered = sorted((s, e) for s, e in intervals if e > s)
    merged: list[Interval] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def invert_intervals(merged: Sequence[Interval], lower, upper) -> list[Interval]:
    """Complement of a merged interval list inside [lower, upper)."""
    gaps: list[Interval] = []
    cursor = lower
    for start, end in merged:
        if cursor >= upper:
            break
        if start > cursor:
            gaps.append((cursor, min(start, upper)))
        if end > cursor:
            cursor = end
    if cursor < upper:
        gaps.append((cursor, upper))
    return gaps


def subtract_intervals(busy: Sequence[Interval], cuts: Sequence[Interval]) -> list[Interval]:
    """
    Remove every sub-range covered by cuts from busy.

    Both inputs must be merged (sorted and disjoint). A busy interval can
    come out whole, trimmed, split into several pieces, or removed.
    """
    result: list[Interval] = []
    j = 0
    for start, end in busy:
        # Cuts ending before this busy interval cannot touch later ones either
        while j < len(cuts) and cuts[j][1] <= start:
            j += 1
        cursor = start
        k = j
        while k < len(cuts) and cuts[k][0] < end:
            cut_start, cut_end = cuts[k]
            if cut_start > cursor:
                result.append((cursor, cut_start))
            cursor = max(cursor, cut_end)
            if cursor >= end:
                break
            k += 1
        if cursor < end:
            result.append((cursor, end))
    return result


def clip_intervals(intervals: Iterable[Interval], lower, upper) -> list[Interval]:
    """Clamp intervals into [lower, upper), dropping empty results."""
    clipped = []
    for start, end in intervals:
        start = min(max(start, lower), upper)
        end = min(max(end, lower), upper)
        if end > start:
            clipped.append((start, end))
    return clipped


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded, never negative."""
    return max(0, round((end - start).total_seconds() / 60))


def total_minutes(intervals: Iterable[Interval]) -> int:
    """Sum of whole minutes over the given intervals."""
    return sum(minutes_between(s, e) for s, e in intervals)
