"""
Month grid construction and weekly blood drive totals.
"""

import calendar
from datetime import date, timedelta

from core.config import (
    CATEGORY_BLOOD_DRIVE,
    NOTABLE_CATEGORY_MARKER,
    NOTABLE_TITLE_KEYWORDS,
    NOTABLE_UNIT_THRESHOLD,
)
from models.events import CalendarDay, CalendarGrid, CanonicalEvent, DateBucket, EventFilters
from services.filters import events_for_day


def _sunday_offset(d: date) -> int:
    """Days since the Sunday that starts d's week (date.weekday() is Monday=0)."""
    return (d.weekday() + 1) % 7


def get_grid_range(year: int, month_index: int) -> tuple[date, date]:
    """
    First and last date shown for a month.

    Extends the month back to the Sunday of its first week and forward to the
    Saturday of its last week.
    """
    first_of_month = date(year, month_index + 1, 1)
    _, last_day = calendar.monthrange(year, month_index + 1)
    last_of_month = date(year, month_index + 1, last_day)

    start = first_of_month - timedelta(days=_sunday_offset(first_of_month))
    end = last_of_month + timedelta(days=6 - _sunday_offset(last_of_month))
    return start, end


def blood_drive_units(event: CanonicalEvent) -> int:
    """Units an event contributes to totals: zero unless it is a blood drive."""
    if event.category != CATEGORY_BLOOD_DRIVE:
        return 0
    return event.quota_units


def calculate_weekly_totals(weeks: list[list[CalendarDay]]) -> list[int]:
    """Sum of blood drive units per week row."""
    return [
        sum(blood_drive_units(event) for day in week for event in day.events)
        for week in weeks
    ]


def build_calendar_grid(
    year: int,
    month_index: int,
    bucket: DateBucket | list,
    filters: EventFilters | None = None,
) -> CalendarGrid:
    """
    Build the full-week grid for a month.

    Args:
        year: Calendar year
        month_index: Zero-based month (0 = January)
        bucket: Normalized events (or a flat event list)
        filters: Optional quick/advanced filters

    Returns:
        CalendarGrid whose day count is a multiple of 7
    """
    start, end = get_grid_range(year, month_index)

    days: list[CalendarDay] = []
    current = start
    while current <= end:
        days.append(
            CalendarDay(
                date=current,
                is_current_month=current.month == month_index + 1,
                events=tuple(events_for_day(bucket, current, filters)),
            )
        )
        current += timedelta(days=1)

    weeks = [days[i : i + 7] for i in range(0, len(days), 7)]
    return CalendarGrid(
        year=year,
        month_index=month_index,
        days=days,
        weekly_totals=calculate_weekly_totals(weeks),
    )


def is_notable(event: CanonicalEvent) -> bool:
    """Heuristic for events drawn with emphasis: large quota or special keywords."""
    if event.quota_units >= NOTABLE_UNIT_THRESHOLD:
        return True
    title = event.title.lower()
    if any(keyword in title for keyword in NOTABLE_TITLE_KEYWORDS):
        return True
    return NOTABLE_CATEGORY_MARKER in event.category_label.lower()
