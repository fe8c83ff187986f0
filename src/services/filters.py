"""
Per-day event lookup and quick/advanced filtering.
"""

from collections.abc import Callable, Iterable
from datetime import date

from core.config import CATEGORY_LABELS
from core.dates import date_key, iso_utc_key, raw_day_keys
from models.events import CanonicalEvent, DateBucket, EventFilters

EventPredicate = Callable[[CanonicalEvent], bool]


def category_label(event: CanonicalEvent) -> str:
    """Display label for an event's category, e.g. 'Blood Drive'."""
    return CATEGORY_LABELS.get(event.category, CATEGORY_LABELS["other"])


def lookup_day_events(bucket: DateBucket | list, day: date) -> list[CanonicalEvent]:
    """
    Events stored for a day.

    Tries the canonical local key, then the ISO-UTC derived key, then raw
    string forms of the date. A flat list is returned as-is for the safety-net
    date filter to narrow down.
    """
    if isinstance(bucket, list):
        return list(bucket)
    for key in [date_key(day), iso_utc_key(day), *raw_day_keys(day)]:
        events = bucket.get(key)
        if events:
            return list(events)
    return []


def matches_day(event: CanonicalEvent, day: date) -> bool:
    """Safety-net check of an event's own date. Undated events are kept."""
    if event.start_local_date is None:
        return True
    return event.start_local_date == day


def _contains(needle: str, haystack: str) -> bool:
    return needle.strip().lower() in (haystack or "").lower()


def build_predicates(filters: EventFilters | None, day: date) -> list[EventPredicate]:
    """Active filter predicates in their fixed order."""
    if filters is None:
        return []
    predicates: list[EventPredicate] = []
    if filters.category:
        predicates.append(lambda e: category_label(e) == filters.category)
    if filters.start_date:
        predicates.append(lambda e: (e.start_local_date or day) >= filters.start_date)
    if filters.coordinator and filters.coordinator.strip():
        predicates.append(lambda e: _contains(filters.coordinator, e.coordinator))
    if filters.title and filters.title.strip():
        predicates.append(lambda e: _contains(filters.title, e.title))
    if filters.requester and filters.requester.strip():
        predicates.append(lambda e: _contains(filters.requester, e.requester))
    return predicates


def apply_filters(
    events: Iterable[CanonicalEvent], filters: EventFilters | None, day: date
) -> list[CanonicalEvent]:
    """Apply each active filter in sequence."""
    result = list(events)
    for predicate in build_predicates(filters, day):
        result = [event for event in result if predicate(event)]
    return result


def events_for_day(
    bucket: DateBucket | list, day: date, filters: EventFilters | None = None
) -> list[CanonicalEvent]:
    """Filtered events to display for one calendar day."""
    candidates = [event for event in lookup_day_events(bucket, day) if matches_day(event, day)]
    return apply_filters(candidates, filters, day)


def filter_event_list(
    events: Iterable[CanonicalEvent], filters: EventFilters | None
) -> list[CanonicalEvent]:
    """Filter a flat event list, judging each event against its own date."""
    if filters is None:
        return list(events)
    return [
        event
        for event in events
        if all(predicate(event) for predicate in build_predicates(filters, event.start_local_date or date.max))
    ]
