"""
Data models for normalized events, calendar grids and export results.

Canonical events and calendar days are frozen dataclasses: they are created
once (by the normalizer and grid builder) and never mutated by consumers.
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class CanonicalEvent:
    """Normalized calendar event."""

    identity: str
    title: str
    category: str  # one of core.config CATEGORY_* values
    start_local_date: date | None
    quota_units: int = 0  # Target donation units, blood drives only
    category_label: str = ""  # Upstream category text, for display
    location: str = ""
    description: str = ""
    coordinator: str = ""
    requester: str = ""
    start_time: str = ""
    end_time: str = ""
    raw: Any = field(default=None, compare=False, repr=False)


# Canonical local-date key (YYYY-MM-DD) -> events, unique by identity
DateBucket = dict[str, list[CanonicalEvent]]


@dataclass(frozen=True)
class CalendarDay:
    """One cell of the month grid."""

    date: date
    is_current_month: bool
    events: tuple[CanonicalEvent, ...] = ()

    @property
    def day_number(self) -> int:
        return self.date.day


@dataclass
class CalendarGrid:
    """Week-aligned month grid with per-week blood drive totals."""

    year: int
    month_index: int  # zero-based
    days: list[CalendarDay]
    weekly_totals: list[int]

    @property
    def weeks(self) -> list[list[CalendarDay]]:
        return [self.days[i : i + 7] for i in range(0, len(self.days), 7)]

    @property
    def grand_total(self) -> int:
        return sum(self.weekly_totals)


@dataclass
class EventFilters:
    """Quick and advanced filters. None/empty means pass-through."""

    category: str | None = None  # Quick filter label, e.g. "Blood Drive"
    start_date: date | None = None
    coordinator: str | None = None
    title: str | None = None
    requester: str | None = None


@dataclass
class ExportResult:
    """Outcome of an export operation (never raised)."""

    success: bool
    error: str | None = None
    path: Path | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        return result
