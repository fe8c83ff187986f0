"""
Local calendar-date arithmetic.

All bucket keys are built from local calendar fields (year, month, day) and
never from a UTC conversion. Bare YYYY-MM-DD strings are parsed from their
components so the host timezone can never shift them to a neighbouring day.
"""

import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from core.config import CALENDAR_TIMEZONE

DATE_ONLY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Fallback formats for display-style strings some upstream views key days by
FALLBACK_FORMATS = ("%m/%d/%Y", "%B %d, %Y", "%A, %B %d, %Y")


def get_local_timezone() -> ZoneInfo | None:
    """Configured calendar zone, or None for the host's local zone."""
    if CALENDAR_TIMEZONE:
        return ZoneInfo(CALENDAR_TIMEZONE)
    return None


def to_local(dt: datetime) -> datetime:
    """Convert an aware datetime to local wall time. Naive values are already local."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_local_timezone())


def date_key(d: date) -> str:
    """Canonical local-date key (YYYY-MM-DD) from local calendar fields."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_only(value: str) -> date | None:
    """Parse a bare YYYY-MM-DD string component-wise, or return None."""
    match = DATE_ONLY_PATTERN.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_epoch_ms(value: float) -> datetime:
    return to_local(datetime.fromtimestamp(value / 1000, tz=timezone.utc))


def parse_local_datetime(value) -> datetime | None:
    """
    Best-effort parse of an upstream timestamp into a local datetime.

    Accepts datetimes, ISO strings (with or without offset / trailing Z),
    epoch milliseconds, and Mongo-style wrappers such as {"$date": ...} or
    {"$numberLong": "..."}. Bare dates come back as local midnight.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        try:
            return to_local(value)
        except OverflowError:
            return None
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        try:
            return _from_epoch_ms(value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, dict):
        for key in ("$date", "$numberLong", "date"):
            if key in value:
                return parse_local_datetime(value[key])
        return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    day = parse_date_only(text)
    if day:
        return datetime.combine(day, time.min)

    if text.lstrip("-").isdigit():
        return parse_local_datetime(int(text))

    try:
        return to_local(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except (ValueError, OverflowError):
        pass

    for fmt in FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    # JS Date.toString() form, e.g. "Sat Mar 15 2025 00:00:00 GMT+0800 (...)"
    try:
        return datetime.strptime(text[:15], "%a %b %d %Y")
    except ValueError:
        return None


def parse_local_date(value) -> date | None:
    """Local calendar date of an upstream timestamp, or None if unparseable."""
    if isinstance(value, str):
        day = parse_date_only(value)
        if day:
            return day
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_local_datetime(value)
    return parsed.date() if parsed else None


def canonical_key(value) -> str | None:
    """Canonical local-date key for any parseable value, else None."""
    parsed = parse_local_date(value)
    return date_key(parsed) if parsed else None


def iso_utc_key(day: date) -> str:
    """Date part of local midnight rendered in UTC (how some callers keyed days)."""
    local_midnight = datetime.combine(day, time.min)
    tz = get_local_timezone()
    if tz is not None:
        local_midnight = local_midnight.replace(tzinfo=tz)
    else:
        local_midnight = local_midnight.astimezone()
    return local_midnight.astimezone(timezone.utc).date().isoformat()


def raw_day_keys(day: date) -> list[str]:
    """Raw string forms a day may have been keyed by upstream."""
    midnight = datetime.combine(day, time.min)
    return [
        str(midnight),
        midnight.isoformat(),
        midnight.strftime("%a %b %d %Y"),
    ]


def format_time(dt: datetime) -> str:
    """Format a time as '8:50 AM' (platform-safe, no zero-padding)."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"
