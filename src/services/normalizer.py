"""
Event normalization: arbitrary upstream JSON -> date-bucketed canonical events.

This module is the only place raw upstream fields are read. Everything past
`normalize_events` works with CanonicalEvent instances.
"""

import json
import logging
from datetime import date, time
from typing import Any

from core.config import (
    ARRAY_CONTAINER_KEYS,
    CATEGORY_ADVOCACY,
    CATEGORY_BLOOD_DRIVE,
    CATEGORY_OTHER,
    CATEGORY_TRAINING,
    MAX_ARRAY_SEARCH_DEPTH,
)
from core.dates import (
    canonical_key,
    date_key,
    format_time,
    parse_date_only,
    parse_local_date,
    parse_local_datetime,
)
from models.events import CanonicalEvent, DateBucket

logger = logging.getLogger(__name__)

ID_KEYS = ("Event_ID", "EventId", "EventID", "id", "_id")
TITLE_KEYS = ("Event_Title", "title", "EventTitle", "Title")
START_KEYS = ("Start_Date", "start", "startDate", "date", "Date")
END_KEYS = ("End_Date", "end", "endDate")
CATEGORY_KEYS = ("Category", "category", "categoryType", "eventType")
TARGET_DONATION_KEYS = ("Target_Donation", "TargetDonation", "Target_Donations", "TargetDonationCount")
LOCATION_KEYS = ("Location", "location", "Venue", "venue")
DESCRIPTION_KEYS = ("Event_Description", "EventDescription", "Description", "eventDescription", "description")
COORDINATOR_KEYS = ("coordinatorName", "ownerName", "Coordinator_Name", "coordinator", "owner")
REQUESTER_KEYS = ("requesterName", "Requester_Name", "requester", "MadeByStakeholderName", "createdByName", "organizer")


# =============================================================================
# ARRAY EXTRACTION
# =============================================================================


def _find_array(value: Any, depth: int) -> list | None:
    """Depth-limited search for the first list under a conventional key."""
    if depth > MAX_ARRAY_SEARCH_DEPTH or not isinstance(value, dict):
        return None
    for key in ARRAY_CONTAINER_KEYS:
        child = value.get(key)
        if isinstance(child, list):
            return child
    for key in ARRAY_CONTAINER_KEYS:
        child = value.get(key)
        if isinstance(child, dict):
            found = _find_array(child, depth + 1)
            if found is not None:
                return found
    return None


def extract_events_array(value: Any) -> list:
    """
    Coerce an upstream value into a list of records.

    Lists are returned as-is, None becomes empty, a mapping is searched for a
    nested array under the conventional container keys, and a mapping with no
    such array is treated as a single record.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        found = _find_array(value, 0)
        if found is not None:
            return found
        return [value]
    return []


# =============================================================================
# FIELD EXTRACTION
# =============================================================================


def _first_value(record: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return _person_name(value)
    return str(value).strip()


def _person_name(value: Any) -> str:
    """Best-effort display name of a person field (string or nested object)."""
    if isinstance(value, str):
        return value.strip()
    if not isinstance(value, dict):
        return ""
    for key in ("name", "fullName", "Name"):
        if isinstance(value.get(key), str) and value[key].strip():
            return value[key].strip()
    first = value.get("First_Name") or value.get("firstName") or ""
    last = value.get("Last_Name") or value.get("lastName") or ""
    full = f"{first} {last}".strip()
    if full:
        return full
    if isinstance(value.get("staff"), dict):
        return _person_name(value["staff"])
    return ""


def get_identity(record: dict) -> str:
    """ID field if present, else a stable serialization of the whole record."""
    value = _first_value(record, ID_KEYS)
    if isinstance(value, dict):
        value = value.get("$oid") or json.dumps(value, sort_keys=True, default=str)
    if value is not None:
        return str(value)
    return json.dumps(record, sort_keys=True, default=str)


def derive_category(category_text: str) -> str:
    lowered = category_text.lower()
    if "blood" in lowered:
        return CATEGORY_BLOOD_DRIVE
    if "training" in lowered:
        return CATEGORY_TRAINING
    if "advocacy" in lowered:
        return CATEGORY_ADVOCACY
    return CATEGORY_OTHER


def get_target_donation(record: dict) -> int:
    """Target donation units, from categoryData first, then the record itself."""
    value = None
    category_data = record.get("categoryData")
    if isinstance(category_data, dict):
        value = _first_value(category_data, TARGET_DONATION_KEYS)
    if value is None:
        value = _first_value(record, TARGET_DONATION_KEYS)
    if value is None:
        return 0
    try:
        units = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(units, 0)


def _time_label(value: Any) -> str:
    """Time of day for a timestamp that carries one, else empty."""
    if isinstance(value, str) and parse_date_only(value):
        return ""
    parsed = parse_local_datetime(value)
    if parsed is None or parsed.time() == time.min:
        return ""
    return format_time(parsed)


# =============================================================================
# CANONICALIZATION
# =============================================================================


def canonicalize_record(record: dict) -> CanonicalEvent:
    """
    Build a CanonicalEvent from one raw record.

    Records wrapped as {"raw": {...}} or {"event": {...}} are unwrapped first.
    Already-canonical events pass through unchanged. Raises TypeError for
    non-mapping input; every field lookup is defaulted.
    """
    if isinstance(record, CanonicalEvent):
        return record
    if not isinstance(record, dict):
        raise TypeError(f"Event record must be a mapping, got {type(record).__name__}")

    source = record
    for wrapper in ("raw", "event"):
        if isinstance(record.get(wrapper), dict):
            source = {**record[wrapper], **{k: v for k, v in record.items() if k != wrapper}}
            break

    category_label = _text(_first_value(source, CATEGORY_KEYS))
    category = derive_category(category_label)
    start_value = _first_value(source, START_KEYS)
    end_value = _first_value(source, END_KEYS)

    start_time = _text(source.get("startTime")) or _time_label(start_value)
    end_time = _text(source.get("endTime")) or _time_label(end_value)

    return CanonicalEvent(
        identity=get_identity(source),
        title=_text(_first_value(source, TITLE_KEYS)) or "Untitled Event",
        category=category,
        start_local_date=parse_local_date(start_value),
        quota_units=get_target_donation(source) if category == CATEGORY_BLOOD_DRIVE else 0,
        category_label=category_label or "Event",
        location=_text(_first_value(source, LOCATION_KEYS)),
        description=_text(_first_value(source, DESCRIPTION_KEYS)),
        coordinator=_person_name(_first_value(source, COORDINATOR_KEYS)),
        requester=_person_name(_first_value(source, REQUESTER_KEYS)),
        start_time=start_time,
        end_time=end_time,
        raw=record,
    )


# =============================================================================
# BUCKETING
# =============================================================================


def _is_day_container(item: Any) -> bool:
    """A {"date": ..., "events": [...]} entry as found in week-view payloads."""
    return (
        isinstance(item, dict)
        and "events" in item
        and not any(key in item for key in ID_KEYS)
        and canonical_key(item.get("date")) is not None
    )


def _source_date_key(key: Any) -> str | None:
    """Date key for a mapping key that names a day. Bare numbers are indexes, not dates."""
    if not isinstance(key, str) or key.strip().lstrip("-").isdigit():
        return None
    return canonical_key(key)


def _iter_sources(payload: Any, depth: int = 0):
    """Yield (source_key, records) pairs for every shape the backend sends."""
    if payload is None or depth > MAX_ARRAY_SEARCH_DEPTH:
        return
    if isinstance(payload, list):
        loose = []
        for item in payload:
            if _is_day_container(item):
                yield canonical_key(item["date"]), extract_events_array(item["events"])
            else:
                loose.append(item)
        if loose:
            yield None, loose
        return
    if not isinstance(payload, dict):
        return

    for key in ARRAY_CONTAINER_KEYS:
        if key in payload:
            yield from _iter_sources(payload[key], depth + 1)
            return

    if payload and any(_source_date_key(key) for key in payload):
        for key, value in payload.items():
            source_key = _source_date_key(key) or str(key)
            yield source_key, extract_events_array(value)
        return

    yield None, [payload]


def is_event_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(event, CanonicalEvent) for event in value)


def is_date_bucket(value: Any) -> bool:
    """
    True for a normalized DateBucket.

    Callers use this to tell a result of normalize_events from the unmodified
    payload it hands back on a systemic failure, which may also be a mapping.
    """
    return isinstance(value, dict) and all(is_event_list(events) for events in value.values())


def add_to_bucket(bucket: DateBucket, key: str, event: CanonicalEvent) -> bool:
    """Append event unless an event with the same identity is already in that bucket."""
    events = bucket.setdefault(key, [])
    if any(existing.identity == event.identity for existing in events):
        return False
    events.append(event)
    return True


def normalize_events(payload: Any, into: DateBucket | None = None) -> DateBucket:
    """
    Normalize an upstream payload into a DateBucket.

    Args:
        payload: Date-keyed mapping, {success, data} envelope, week-view day
            containers, flat record list or single record.
        into: Existing bucket to merge with (not mutated).

    Returns:
        New DateBucket. On a systemic failure the original payload is
        returned unmodified so the caller always has something to display.
    """
    try:
        bucket: DateBucket = {key: list(events) for key, events in (into or {}).items()}
        skipped = 0
        for source_key, records in _iter_sources(payload):
            for record in records:
                try:
                    event = canonicalize_record(record)
                except (TypeError, ValueError, AttributeError, OverflowError) as e:
                    skipped += 1
                    logger.debug("Skipping malformed event record: %s", e)
                    continue

                if event.start_local_date is not None:
                    key = date_key(event.start_local_date)
                else:
                    key = source_key
                if key is None:
                    skipped += 1
                    logger.debug("Skipping event %s with no usable date", event.identity)
                    continue
                add_to_bucket(bucket, key, event)

        if skipped:
            logger.info("Normalized events with %d record(s) skipped", skipped)
        return bucket
    except Exception:
        logger.exception("Event normalization failed; returning input unmodified")
        return payload


def flatten_bucket(
    bucket: DateBucket, start: date | None = None, end: date | None = None
) -> list[CanonicalEvent]:
    """
    Flatten a bucket into a chronological list, optionally limited to [start, end].

    Events without a parseable date take their bucket's date.
    """
    dated: list[tuple[date, int, CanonicalEvent]] = []
    seen: set[str] = set()
    order = 0
    for key in sorted(bucket):
        key_date = parse_local_date(key)
        for event in bucket[key]:
            event_date = event.start_local_date or key_date
            if event_date is None:
                continue
            if start and event_date < start:
                continue
            if end and event_date > end:
                continue
            if event.identity in seen:
                continue
            seen.add(event.identity)
            dated.append((event_date, order, event))
            order += 1
    dated.sort(key=lambda item: (item[0], item[1]))
    return [event for _, _, event in dated]


def event_sort_date(event: CanonicalEvent) -> date:
    """Sort key for chronological ordering; undated events sort last."""
    return event.start_local_date or date.max
