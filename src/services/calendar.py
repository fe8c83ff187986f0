"""
Event fetching from the scheduling backend.

Month queries feed the normalizer directly. Per-event detail lookups run
concurrently in fixed-size batches; each call is tagged with a generation
from an explicit EventDetailCache so results that arrive after a newer
request has started are discarded instead of applied.
"""

import asyncio
import logging

import httpx

from core.backend_client import get_backend_client
from core.config import DETAIL_BATCH_SIZE, EVENT_BATCH_PATH, EVENT_DETAIL_PATH, MONTH_EVENTS_PATH
from models.events import DateBucket
from services.normalizer import (
    canonicalize_record,
    extract_events_array,
    get_identity,
    is_date_bucket,
    normalize_events,
)

logger = logging.getLogger(__name__)


class EventDetailCache:
    """Event detail records keyed by event id, guarded by a generation counter."""

    def __init__(self):
        self.entries: dict[str, dict] = {}
        self.generation = 0

    def next_generation(self) -> int:
        """Start a new request generation; older in-flight results become stale."""
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def apply(self, generation: int, details: dict[str, dict]) -> bool:
        """Merge details if they belong to the current generation."""
        if not self.is_current(generation):
            return False
        self.entries.update(details)
        return True

    def get(self, event_id: str) -> dict | None:
        return self.entries.get(event_id)


async def fetch_month_events(
    year: int, month_index: int, client: httpx.AsyncClient | None = None
) -> DateBucket:
    """
    Fetch and normalize one month of events.

    Returns an empty bucket when the request fails or the backend reports
    success=false.
    """
    client = client or get_backend_client()
    try:
        response = await client.get(MONTH_EVENTS_PATH, params={"year": year, "month": month_index + 1})
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Month events request failed for %d-%02d: %s", year, month_index + 1, e)
        return {}

    if not isinstance(body, dict) or not body.get("success"):
        logger.warning("Backend reported no events for %d-%02d", year, month_index + 1)
        return {}

    bucket = normalize_events(body.get("data"))
    if not is_date_bucket(bucket):
        logger.warning("Month payload could not be normalized")
        return {}
    return bucket


async def fetch_event_detail(client: httpx.AsyncClient, event_id: str) -> dict | None:
    """Fetch one event's detail record."""
    response = await client.get(EVENT_DETAIL_PATH.format(event_id=event_id))
    response.raise_for_status()
    body = response.json()
    records = extract_events_array(body.get("data") if isinstance(body, dict) and "data" in body else body)
    return records[0] if records and isinstance(records[0], dict) else None


async def fetch_event_details(
    event_ids: list[str],
    cache: EventDetailCache,
    client: httpx.AsyncClient | None = None,
    batch_size: int = DETAIL_BATCH_SIZE,
) -> dict[str, dict]:
    """
    Fetch detail records for many events, at most batch_size at a time.

    Failed lookups are logged and left out. Results are applied to the cache
    only if no newer generation has started; stale results are discarded and
    an empty dict is returned.
    """
    client = client or get_backend_client()
    generation = cache.next_generation()
    unique_ids = list(dict.fromkeys(event_ids))
    details: dict[str, dict] = {}

    for start in range(0, len(unique_ids), batch_size):
        batch = unique_ids[start : start + batch_size]
        outcomes = await asyncio.gather(
            *(fetch_event_detail(client, event_id) for event_id in batch),
            return_exceptions=True,
        )
        for event_id, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Detail lookup failed for event %s: %s", event_id, outcome)
                continue
            if outcome is not None:
                details[event_id] = outcome

        if not cache.is_current(generation):
            break

    if not cache.apply(generation, details):
        logger.info("Discarding stale detail results (generation %d)", generation)
        return {}
    return details


async def fetch_events_batch(event_ids: list[str], client: httpx.AsyncClient | None = None) -> dict[str, dict]:
    """
    Batch detail query: POST {ids} and key the returned records by identity.

    Returns an empty dict when the request fails.
    """
    if not event_ids:
        return {}
    client = client or get_backend_client()
    try:
        response = await client.post(EVENT_BATCH_PATH, json={"ids": list(event_ids)})
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Batch detail request failed: %s", e)
        return {}

    records = extract_events_array(body.get("data") if isinstance(body, dict) else body)
    return {get_identity(record): record for record in records if isinstance(record, dict)}


def merge_details(bucket: DateBucket, cache: EventDetailCache) -> DateBucket:
    """
    Re-canonicalize events that have a cached detail record.

    Detail fields override the month record's fields. Bucket keys are kept,
    so an event stays on the day it was listed under.
    """
    merged: DateBucket = {}
    for key, events in bucket.items():
        merged[key] = []
        for event in events:
            detail = cache.get(event.identity)
            if detail and isinstance(event.raw, dict):
                event = canonicalize_record({**event.raw, **detail})
            merged[key].append(event)
    return merged


async def fetch_month_with_details(
    year: int,
    month_index: int,
    cache: EventDetailCache,
    client: httpx.AsyncClient | None = None,
) -> DateBucket:
    """Fetch a month, then fill in each event from its detail record."""
    client = client or get_backend_client()
    bucket = await fetch_month_events(year, month_index, client)
    event_ids = [event.identity for events in bucket.values() for event in events]
    await fetch_event_details(event_ids, cache, client)
    return merge_details(bucket, cache)
