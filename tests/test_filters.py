"""Tests for per-day lookup and filter composition."""

from datetime import date
from itertools import combinations

import pytest

from models.events import CanonicalEvent, EventFilters
from services.filters import (
    apply_filters,
    build_predicates,
    events_for_day,
    filter_event_list,
    lookup_day_events,
)
from services.normalizer import normalize_events

DAY = date(2025, 3, 15)


@pytest.fixture
def day_events():
    return [
        CanonicalEvent("E1", "Barangay Blood Drive", "blood-drive", DAY, 120,
                       coordinator="Maria Santos", requester="Juan Dela Cruz"),
        CanonicalEvent("E2", "Phlebotomy Training", "training", DAY,
                       coordinator="Ana Reyes", requester="BTSC"),
        CanonicalEvent("E3", "Campus Advocacy Talk", "advocacy", date(2025, 3, 10),
                       coordinator="maria clara", requester="Naga College"),
        CanonicalEvent("E4", "Coordinators Meeting", "other", None, coordinator="Staff"),
    ]


def test_day_lookup_uses_local_key():
    bucket = normalize_events([{"Event_ID": "A", "Start_Date": "2025-03-15"}])
    assert [e.identity for e in events_for_day(bucket, DAY)] == ["A"]
    assert events_for_day(bucket, date(2025, 3, 14)) == []


def test_day_lookup_falls_back_to_utc_key(local_timezone):
    local_timezone("Asia/Manila")
    event = CanonicalEvent("A", "Drive", "blood-drive", DAY)
    bucket = {"2025-03-14": [event]}

    assert events_for_day(bucket, DAY) == [event]
    # The 14th's own lookup finds the entry, but the event's date rejects it
    assert events_for_day(bucket, date(2025, 3, 14)) == []


def test_day_lookup_falls_back_to_raw_keys():
    event = CanonicalEvent("A", "Drive", "blood-drive", DAY)
    assert lookup_day_events({"Sat Mar 15 2025": [event]}, DAY) == [event]


def test_flat_list_is_narrowed_by_event_date(day_events):
    result = events_for_day(day_events, DAY)
    # Undated events are kept
    assert [e.identity for e in result] == ["E1", "E2", "E4"]


def test_quick_category_filter(day_events):
    result = apply_filters(day_events, EventFilters(category="Training"), DAY)
    assert [e.identity for e in result] == ["E2"]


def test_start_date_filter_uses_day_for_undated(day_events):
    filters = EventFilters(start_date=date(2025, 3, 12))

    assert [e.identity for e in apply_filters(day_events, filters, DAY)] == ["E1", "E2", "E4"]
    assert [e.identity for e in apply_filters(day_events, filters, date(2025, 3, 1))] == ["E1", "E2"]


def test_text_filters_are_case_insensitive_substrings(day_events):
    assert [e.identity for e in apply_filters(day_events, EventFilters(coordinator="MARIA"), DAY)] == ["E1", "E3"]
    assert [e.identity for e in apply_filters(day_events, EventFilters(title="blood"), DAY)] == ["E1"]
    assert [e.identity for e in apply_filters(day_events, EventFilters(requester="btsc"), DAY)] == ["E2"]


def test_blank_filters_pass_through(day_events):
    filters = EventFilters(category="", coordinator="   ", title=None)
    assert build_predicates(filters, DAY) == []
    assert apply_filters(day_events, filters, DAY) == day_events
    assert apply_filters(day_events, None, DAY) == day_events


ACTIVE = {
    "category": "Blood Drive",
    "start_date": date(2025, 3, 11),
    "coordinator": "maria",
    "title": "drive",
    "requester": "juan",
}


@pytest.mark.parametrize(
    "names",
    [combo for size in range(1, len(ACTIVE) + 1) for combo in combinations(ACTIVE, size)],
)
def test_sequential_filters_equal_single_and_predicate(day_events, names):
    filters = EventFilters(**{name: ACTIVE[name] for name in names})
    predicates = build_predicates(filters, DAY)

    combined = [e for e in day_events if all(predicate(e) for predicate in predicates)]

    assert apply_filters(day_events, filters, DAY) == combined


def test_filter_event_list_judges_each_event_by_its_date(day_events):
    filters = EventFilters(start_date=date(2025, 3, 12))
    assert [e.identity for e in filter_event_list(day_events, filters)] == ["E1", "E2", "E4"]
    assert filter_event_list(day_events, None) == day_events
