from __future__ import annotations
from datetime import date, timedelta
from typing import List

from pitchlab.core.entities import IngestionWindow
from pitchlab.core.errors import InvalidRange


def total_days(start: date, end: date) -> int:
    """Inclusive day count of [start, end]."""
    return (end - start).days + 1


def chunk_range(start: date, end: date, max_window_days: int) -> List[IngestionWindow]:
    """
    Split the inclusive interval [start, end] into chronological windows of at
    most ``max_window_days`` days. Windows are contiguous and non-overlapping;
    only the last one may be shorter.
    """
    if max_window_days < 1:
        raise InvalidRange(f"max_window_days must be >= 1 (got {max_window_days})")
    if start > end:
        raise InvalidRange(
            f"startDate {start.isoformat()} is after endDate {end.isoformat()}"
        )

    step = timedelta(days=max_window_days - 1)
    windows: List[IngestionWindow] = []
    cursor = start
    while cursor <= end:
        window_end = min(cursor + step, end)
        windows.append(IngestionWindow(start=cursor, end=window_end))
        cursor = window_end + timedelta(days=1)
    return windows
