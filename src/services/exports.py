"""
Export entry points.

Each export returns an ExportResult instead of raising so callers can present
a uniform failure message. The render_* functions return the file content
for API usage and do raise; the API layer maps their errors to HTTP responses.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from pathlib import Path

from core.config import ORGANIZATION_NAME, OUTPUT_DIR
from models.events import CalendarGrid, CanonicalEvent, DateBucket, EventFilters, ExportResult
from services.grid import build_calendar_grid
from services.list_export import build_organized_document, write_organized_pdf
from services.normalizer import flatten_bucket, is_date_bucket, is_event_list
from services.reports import export_basename, format_month_label, grid_workbook_to_bytes
from services.visual_export import build_visual_document, write_visual_pdf

logger = logging.getLogger(__name__)


@dataclass
class RenderedExport:
    """Rendered file ready to be written or returned over HTTP."""

    content: bytes
    filename: str
    event_count: int
    page_count: int | None = None  # PDFs only


def _month_grid(
    bucket: DateBucket, year: int, month_index: int, filters: EventFilters | None
) -> tuple[CalendarGrid, str]:
    if not (is_date_bucket(bucket) or is_event_list(bucket)):
        raise TypeError("Events are not a date bucket; normalization did not complete")
    return build_calendar_grid(year, month_index, bucket, filters), format_month_label(year, month_index)


def _grid_event_count(grid: CalendarGrid) -> int:
    return sum(len(day.events) for day in grid.days if day.is_current_month)


def render_visual_pdf(
    bucket: DateBucket,
    year: int,
    month_index: int,
    organization_name: str = ORGANIZATION_NAME,
    filters: EventFilters | None = None,
) -> RenderedExport:
    """Render the visual grid PDF for a month."""
    grid, month_label = _month_grid(bucket, year, month_index, filters)
    document = build_visual_document(grid, month_label, organization_name)

    buffer = BytesIO()
    write_visual_pdf(document, buffer)
    return RenderedExport(
        content=buffer.getvalue(),
        filename=f"{export_basename(month_label)}.pdf",
        event_count=_grid_event_count(grid),
        page_count=1,
    )


def render_organized_pdf(events: list[CanonicalEvent], label: str, filename: str) -> RenderedExport:
    """Render the organized list PDF for a flat, already-filtered event list."""
    document = build_organized_document(events, label)

    buffer = BytesIO()
    write_organized_pdf(document, buffer)
    return RenderedExport(
        content=buffer.getvalue(),
        filename=f"{filename}.pdf",
        event_count=len(events),
        page_count=document.page_count,
    )


def render_grid_workbook(
    bucket: DateBucket,
    year: int,
    month_index: int,
    organization_name: str = ORGANIZATION_NAME,
    filters: EventFilters | None = None,
) -> RenderedExport:
    """Render the Excel grid workbook for a month."""
    grid, month_label = _month_grid(bucket, year, month_index, filters)
    return RenderedExport(
        content=grid_workbook_to_bytes(grid, month_label, organization_name),
        filename=f"{export_basename(month_label)}.xlsx",
        event_count=_grid_event_count(grid),
    )


def month_events(bucket: DateBucket, year: int, month_index: int) -> list[CanonicalEvent]:
    """Chronological events of one month, for the organized export."""
    _, last_day = calendar.monthrange(year, month_index + 1)
    return flatten_bucket(bucket, date(year, month_index + 1, 1), date(year, month_index + 1, last_day))


def _save(rendered: RenderedExport, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / rendered.filename
    output_path.write_bytes(rendered.content)
    logger.info("Saved export to %s", output_path)
    return output_path


def export_visual_pdf(
    bucket: DateBucket,
    year: int,
    month_index: int,
    organization_name: str = ORGANIZATION_NAME,
    filters: EventFilters | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> ExportResult:
    """Write calendar-<month>-<year>.pdf; never raises."""
    try:
        rendered = render_visual_pdf(bucket, year, month_index, organization_name, filters)
        return ExportResult(success=True, path=_save(rendered, output_dir))
    except Exception as e:
        logger.exception("Visual export failed")
        return ExportResult(success=False, error=str(e) or "Unknown error occurred")


def export_organized_pdf(
    events: list[CanonicalEvent],
    label: str,
    filename: str,
    output_dir: Path = OUTPUT_DIR,
) -> ExportResult:
    """Write <filename>.pdf with the organized event list; never raises."""
    try:
        rendered = render_organized_pdf(events, label, filename)
        return ExportResult(success=True, path=_save(rendered, output_dir))
    except Exception as e:
        logger.exception("Organized export failed")
        return ExportResult(success=False, error=str(e) or "Unknown error occurred")


def export_grid_workbook(
    bucket: DateBucket,
    year: int,
    month_index: int,
    organization_name: str = ORGANIZATION_NAME,
    filters: EventFilters | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> ExportResult:
    """Write calendar-<month>-<year>.xlsx; never raises."""
    try:
        rendered = render_grid_workbook(bucket, year, month_index, organization_name, filters)
        return ExportResult(success=True, path=_save(rendered, output_dir))
    except Exception as e:
        logger.exception("Workbook export failed")
        return ExportResult(success=False, error=str(e) or "Unknown error occurred")
