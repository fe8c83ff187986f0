#!/usr/bin/env python3
"""
Export one calendar month from the scheduling backend.

Writes up to three files to the output directory:
- calendar-<month>-<year>.pdf: Visual month grid with weekly blood drive totals
- calendar-events-<month>-<year>.pdf: Organized list of events grouped by date
- calendar-<month>-<year>.xlsx: Grid workbook with SUMIF weekly totals

Usage:
    uv run python src/scripts/create_calendar_export.py --month 2025-03
    uv run python src/scripts/create_calendar_export.py --month 2025-03 --input events.json --format visual
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.backend_client import close_backend_client
from core.config import CATEGORY_LABELS, ORGANIZATION_NAME, OUTPUT_DIR
from core.logging_config import setup_logging
from models.events import EventFilters
from services.calendar import EventDetailCache, fetch_month_events, fetch_month_with_details
from services.exports import (
    export_grid_workbook,
    export_organized_pdf,
    export_visual_pdf,
    month_events,
)
from services.filters import filter_event_list
from services.normalizer import is_date_bucket, normalize_events
from services.reports import export_basename, format_month_label

EXPORT_FORMATS = ("visual", "organized", "workbook")


# =============================================================================
# ARGUMENT HELPERS
# =============================================================================


def parse_month(month_str: str | None) -> tuple[int, int]:
    """
    Parse a YYYY-MM month argument.

    Args:
        month_str: Month string (YYYY-MM). Uses the current month if None.

    Returns:
        Tuple of (year, zero-based month index)
    """
    if not month_str:
        today = date.today()
        return today.year, today.month - 1

    year, month = map(int, month_str.split("-"))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month_str}")
    return year, month - 1


def load_payload(input_path: Path):
    """Read a saved backend payload (JSON) instead of querying the backend."""
    with open(input_path, encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# MAIN
# =============================================================================


async def main(
    month_str: str | None = None,
    formats: tuple[str, ...] = EXPORT_FORMATS,
    input_path: Path | None = None,
    category: str | None = None,
    organization_name: str = ORGANIZATION_NAME,
    output_dir: Path = OUTPUT_DIR,
    details: bool = False,
) -> bool:
    """Main entry point for calendar export. Returns True if every export succeeded."""
    setup_logging()
    year, month_index = parse_month(month_str)
    month_label = format_month_label(year, month_index)
    filters = EventFilters(category=category) if category else None
    print(f"Exporting calendar for {month_label}")

    # 1. Load events
    if input_path:
        print(f"Reading events from {input_path}...")
        bucket = normalize_events(load_payload(input_path))
        if not is_date_bucket(bucket):
            print("Events file could not be normalized!")
            return False
    else:
        print("Fetching events from backend...")
        try:
            if details:
                bucket = await fetch_month_with_details(year, month_index, EventDetailCache())
            else:
                bucket = await fetch_month_events(year, month_index)
        finally:
            await close_backend_client()

    day_count = len(bucket)
    event_count = sum(len(events) for events in bucket.values())
    print(f"  Found {event_count} events on {day_count} day(s)")

    # 2. Run exports
    results = {}
    if "visual" in formats:
        results["visual"] = export_visual_pdf(
            bucket, year, month_index, organization_name, filters, output_dir
        )
    if "organized" in formats:
        events = filter_event_list(month_events(bucket, year, month_index), filters)
        filename = export_basename(month_label).replace("calendar-", "calendar-events-", 1)
        results["organized"] = export_organized_pdf(events, month_label, filename, output_dir)
    if "workbook" in formats:
        results["workbook"] = export_grid_workbook(
            bucket, year, month_index, organization_name, filters, output_dir
        )

    # 3. Report
    print()
    for name, result in results.items():
        if result.success:
            print(f"  {name}: {result.path}")
        else:
            print(f"  {name}: FAILED - {result.error}")

    all_ok = all(result.success for result in results.values())
    print("\nDone!" if all_ok else "\nCompleted with errors")
    return all_ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export a calendar month to PDF and Excel")
    parser.add_argument(
        "--month",
        help="Target month (YYYY-MM). Defaults to the current month.",
    )
    parser.add_argument(
        "--format",
        choices=[*EXPORT_FORMATS, "all"],
        default="all",
        help="Export to produce (default: all)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="Read a saved backend events payload (JSON) instead of fetching",
    )
    parser.add_argument(
        "--category",
        choices=list(CATEGORY_LABELS.values()),
        help="Only include events of this category",
    )
    parser.add_argument(
        "--organization",
        default=ORGANIZATION_NAME,
        help="Organization name shown under the month title",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=OUTPUT_DIR,
        help="Directory for exported files",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="Fill in each fetched event from its detail record (ignored with --input)",
    )
    args = parser.parse_args()

    selected = EXPORT_FORMATS if args.format == "all" else (args.format,)
    ok = asyncio.run(
        main(
            args.month,
            selected,
            args.input,
            args.category,
            args.organization,
            args.output_dir,
            args.details,
        )
    )
    sys.exit(0 if ok else 1)
