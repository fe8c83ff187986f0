"""
Organized list export.

Rendering is a three-stage pipeline:
1. layout_organized_list() lays out every line into page buffers, starting a
   new page whenever the write cursor passes the printable height.
2. stamp_page_numbers() walks the finished pages and sets "Page X of N".
3. write_organized_pdf() draws the buffers to an A4 portrait PDF.
"""

from dataclasses import dataclass, field
from itertools import groupby
from typing import BinaryIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from core.config import LIST_MARGIN_MM, LIST_PAGE_HEIGHT_MM, LIST_PAGE_WIDTH_MM
from models.events import CanonicalEvent
from services.normalizer import event_sort_date
from services.reports import format_date_heading

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"

# Cursor limits, measured up from the bottom edge of the page (mm)
GROUP_BREAK_MM = 40
EVENT_BREAK_MM = 60
LINE_BREAK_MM = 20
FOOTER_OFFSET_MM = 10

EMPTY_MESSAGE = "No events scheduled for this month."


@dataclass
class TextRun:
    """One line of text; y is the baseline in mm from the top edge."""

    text: str
    x: float
    y: float
    font: str = REGULAR_FONT
    size: float = 10
    gray: float = 0.0


@dataclass
class PageBuffer:
    number: int
    runs: list[TextRun] = field(default_factory=list)
    footer: str | None = None


@dataclass
class OrganizedListDocument:
    label: str
    pages: list[PageBuffer]
    width_mm: float = LIST_PAGE_WIDTH_MM
    height_mm: float = LIST_PAGE_HEIGHT_MM

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def text(self) -> list[str]:
        """All laid-out lines in page order (footers excluded)."""
        return [run.text for page in self.pages for run in page.runs]


class ListLayout:
    """Write cursor over a growing sequence of page buffers."""

    def __init__(self, width_mm: float = LIST_PAGE_WIDTH_MM, height_mm: float = LIST_PAGE_HEIGHT_MM,
                 margin_mm: float = LIST_MARGIN_MM):
        self.width = width_mm
        self.height = height_mm
        self.margin = margin_mm
        self.pages: list[PageBuffer] = [PageBuffer(number=1)]
        self.y = margin_mm

    @property
    def page(self) -> PageBuffer:
        return self.pages[-1]

    def new_page(self):
        self.pages.append(PageBuffer(number=len(self.pages) + 1))
        self.y = self.margin

    def ensure_room(self, limit_mm: float):
        """Start a new page if the cursor is past height - limit."""
        if self.y > self.height - limit_mm:
            self.new_page()

    def write(self, text: str, x: float, font: str = REGULAR_FONT, size: float = 10, gray: float = 0.0):
        self.page.runs.append(TextRun(text=text, x=x, y=self.y, font=font, size=size, gray=gray))

    def write_wrapped(self, text: str, x: float, font: str, size: float, step: float, width: float):
        """Wrap text to width (mm), checking for a page break before every line."""
        for line in simpleSplit(text, font, size, width * mm) or [""]:
            self.ensure_room(LINE_BREAK_MM)
            self.write(line, x, font, size)
            self.y += step


def _group_heading(event: CanonicalEvent) -> str:
    if event.start_local_date is None:
        return "Date TBA"
    return format_date_heading(event.start_local_date)


def _event_fields(event: CanonicalEvent) -> list[str]:
    fields = []
    if event.start_time or event.end_time:
        fields.append(f"Time: {event.start_time or 'N/A'} - {event.end_time or 'N/A'}")
    fields.append(f"Location: {event.location or 'TBA'}")
    fields.append(f"Type: {event.category_label or 'Event'}")
    if event.coordinator:
        fields.append(f"Coordinator: {event.coordinator}")
    if event.description:
        fields.append(f"Description: {event.description}")
    return fields


def layout_organized_list(events: list[CanonicalEvent], label: str) -> OrganizedListDocument:
    """
    Stage 1: lay out events grouped by date into page buffers.

    Events are sorted chronologically (stable, so same-day events keep their
    input order) and grouped by calendar date.
    """
    layout = ListLayout()
    margin = layout.margin
    content_width = layout.width - margin * 2

    layout.write(f"Calendar Events - {label}", margin, BOLD_FONT, 18)
    layout.y += 15

    if not events:
        layout.write(EMPTY_MESSAGE, margin, REGULAR_FONT, 12)
        return OrganizedListDocument(label=label, pages=layout.pages)

    ordered = sorted(events, key=event_sort_date)
    for heading, group in groupby(ordered, key=_group_heading):
        layout.ensure_room(GROUP_BREAK_MM)
        layout.write(heading, margin, BOLD_FONT, 14)
        layout.y += 10

        for index, event in enumerate(group, start=1):
            layout.ensure_room(EVENT_BREAK_MM)
            layout.write_wrapped(f"{index}. {event.title}", margin + 5, BOLD_FONT, 11, 6, content_width)
            for text in _event_fields(event):
                layout.write_wrapped(text, margin + 10, REGULAR_FONT, 10, 5, content_width - 10)
            layout.y += 8

        layout.y += 5

    return OrganizedListDocument(label=label, pages=layout.pages)


def stamp_page_numbers(document: OrganizedListDocument) -> OrganizedListDocument:
    """Stage 2: set the 'Page X of N' footer on every completed page."""
    total = document.page_count
    for page in document.pages:
        page.footer = f"Page {page.number} of {total}"
    return document


def build_organized_document(events: list[CanonicalEvent], label: str) -> OrganizedListDocument:
    return stamp_page_numbers(layout_organized_list(events, label))


def write_organized_pdf(document: OrganizedListDocument, output: str | BinaryIO) -> None:
    """Stage 3: draw every page buffer, footer included, to an A4 portrait PDF."""
    page_width, page_height = A4
    pdf = canvas.Canvas(output, pagesize=A4)
    pdf.setTitle(f"Calendar Events - {document.label}")

    for page in document.pages:
        for run in page.runs:
            pdf.setFont(run.font, run.size)
            pdf.setFillGray(run.gray)
            pdf.drawString(run.x * mm, page_height - run.y * mm, run.text)
        if page.footer:
            pdf.setFont(REGULAR_FONT, 9)
            pdf.setFillGray(0.5)
            pdf.drawCentredString(page_width / 2, FOOTER_OFFSET_MM * mm, page.footer)
        pdf.showPage()

    pdf.save()
