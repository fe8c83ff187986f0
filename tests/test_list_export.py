"""Tests for the organized list layout and PDF."""

from datetime import date, timedelta
from io import BytesIO

from models.events import CanonicalEvent
from services.list_export import (
    EMPTY_MESSAGE,
    LINE_BREAK_MM,
    build_organized_document,
    layout_organized_list,
    write_organized_pdf,
)


def _event(identity, day, **fields):
    return CanonicalEvent(identity, fields.pop("title", f"Event {identity}"), "blood-drive", day, **fields)


def test_empty_list_has_message_and_single_footer():
    document = build_organized_document([], "March 2025")

    assert document.page_count == 1
    assert document.text() == ["Calendar Events - March 2025", EMPTY_MESSAGE]
    assert document.pages[0].footer == "Page 1 of 1"


def test_events_grouped_by_date_in_order():
    events = [
        _event("B", date(2025, 3, 20), title="Second day"),
        _event("A1", date(2025, 3, 15), title="Morning drive"),
        _event("A2", date(2025, 3, 15), title="Afternoon drive"),
    ]

    lines = layout_organized_list(events, "March 2025").text()

    first_heading = lines.index("Saturday, March 15, 2025")
    second_heading = lines.index("Thursday, March 20, 2025")
    assert first_heading < lines.index("1. Morning drive") < lines.index("2. Afternoon drive") < second_heading
    assert lines.index("1. Second day") > second_heading


def test_event_fields_and_defaults():
    events = [
        _event("A", date(2025, 3, 15), title="Full", start_time="9:00 AM", end_time="3:00 PM",
               location="Naga City Hall", category_label="BloodDrive", coordinator="Maria Santos",
               description="Bring valid ID"),
        _event("B", date(2025, 3, 15), title="Sparse", start_time="9:00 AM"),
    ]

    lines = layout_organized_list(events, "March 2025").text()

    assert "Time: 9:00 AM - 3:00 PM" in lines
    assert "Location: Naga City Hall" in lines
    assert "Type: BloodDrive" in lines
    assert "Coordinator: Maria Santos" in lines
    assert "Description: Bring valid ID" in lines
    assert "Time: 9:00 AM - N/A" in lines
    assert "Location: TBA" in lines
    assert "Type: Event" in lines


def test_undated_events_grouped_last():
    events = [_event("U", None, title="Someday"), _event("A", date(2025, 3, 1))]

    lines = layout_organized_list(events, "March 2025").text()

    assert lines.index("Date TBA") > lines.index("Saturday, March 1, 2025")


def test_long_lists_paginate_with_total_page_footers():
    start = date(2025, 3, 1)
    events = [
        _event(str(i), start + timedelta(days=i % 28), title=f"Drive {i}", location="Plaza",
               coordinator="Staff", description="Walk-in donors welcome. " * 8)
        for i in range(40)
    ]

    document = build_organized_document(events, "March 2025")

    assert document.page_count > 1
    footers = [page.footer for page in document.pages]
    assert footers == [f"Page {i} of {document.page_count}" for i in range(1, document.page_count + 1)]
    for page in document.pages:
        assert all(run.y <= document.height_mm - LINE_BREAK_MM for run in page.runs)


def test_long_descriptions_wrap():
    description = "word " * 200
    document = layout_organized_list([_event("A", date(2025, 3, 1), description=description)], "March 2025")

    description_lines = [line for line in document.text() if line.startswith("word") or line.startswith("Description:")]
    assert len(description_lines) > 1


def test_pdf_output():
    document = build_organized_document([_event("A", date(2025, 3, 1))], "March 2025")
    buffer = BytesIO()

    write_organized_pdf(document, buffer)

    assert buffer.getvalue().startswith(b"%PDF")
