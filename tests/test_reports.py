"""Tests for report formatting helpers and the grid workbook."""

from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from models.events import CanonicalEvent
from services.grid import build_calendar_grid
from services.normalizer import normalize_events
from services.reports import (
    BLOOD_DRIVES_SHEET,
    CALENDAR_SHEET,
    event_block_text,
    export_basename,
    format_date_display,
    format_date_heading,
    format_month_label,
    format_units,
    grid_workbook_to_bytes,
)


def test_formatting_helpers():
    assert format_date_display(date(2025, 3, 5)) == "3/5/2025"
    assert format_date_heading(date(2025, 3, 15)) == "Saturday, March 15, 2025"
    assert format_month_label(2025, 2) == "March 2025"
    assert format_units(12500) == "12,500"
    assert export_basename("March 2025") == "calendar-march-2025"


def test_event_block_text_shows_units_for_blood_drives_only():
    drive = CanonicalEvent("A", "Mobile Drive", "blood-drive", None, 1200)
    training = CanonicalEvent("B", "Orientation", "training", None, 1200)
    empty_drive = CanonicalEvent("C", "Pending Drive", "blood-drive", None, 0)

    assert event_block_text(drive) == "Mobile Drive - 1,200"
    assert event_block_text(training) == "Orientation"
    assert event_block_text(empty_drive) == "Pending Drive"


def _workbook(payload, year=2025, month_index=2):
    grid = build_calendar_grid(year, month_index, normalize_events(payload))
    content = grid_workbook_to_bytes(grid, format_month_label(year, month_index), "BTSC")
    return grid, load_workbook(BytesIO(content))


def test_workbook_layout():
    payload = [
        {"Event_ID": "B1", "Event_Title": "Drive A", "Start_Date": "2025-03-03", "Category": "BloodDrive", "Target_Donation": 50},
        {"Event_ID": "B2", "Event_Title": "Drive B", "Start_Date": "2025-03-12", "Category": "BloodDrive", "Target_Donation": 70},
        {"Event_ID": "T1", "Event_Title": "Training", "Start_Date": "2025-03-12", "Category": "Training", "Target_Donation": 900},
    ]

    grid, wb = _workbook(payload)

    assert wb.sheetnames == [CALENDAR_SHEET, BLOOD_DRIVES_SHEET]
    ws = wb[CALENDAR_SHEET]
    assert ws["A1"].value == "March 2025"
    assert ws["A2"].value == "BTSC"
    assert [ws.cell(row=4, column=c).value for c in range(1, 9)] == [
        "SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT", "TOTAL",
    ]
    # Feb 23 opens the grid; March 1 is the Saturday of the first row
    assert ws["A5"].value.startswith("23")
    assert ws["G5"].value == "1"

    drives = wb[BLOOD_DRIVES_SHEET]
    rows = list(drives.iter_rows(min_row=2, values_only=True))
    assert rows == [("3/3/2025", "Drive A", 2, 50), ("3/12/2025", "Drive B", 3, 70)]


def test_workbook_total_formulas():
    payload = [
        {"Event_ID": "B1", "Start_Date": "2025-03-03", "Category": "BloodDrive", "Target_Donation": 50},
        {"Event_ID": "B2", "Start_Date": "2025-03-12", "Category": "BloodDrive", "Target_Donation": 70},
    ]

    grid, wb = _workbook(payload)
    ws = wb[CALENDAR_SHEET]

    assert ws["H5"].value == "=SUMIF('Blood Drives'!$C$2:$C$3,1,'Blood Drives'!$D$2:$D$3)"
    assert ws["H7"].value == "=SUMIF('Blood Drives'!$C$2:$C$3,3,'Blood Drives'!$D$2:$D$3)"

    last_week_row = 4 + len(grid.weeks)
    grand_row = last_week_row + 2
    assert ws.cell(row=grand_row, column=1).value == "GRAND TOTAL ESTIMATED COLLECTION"
    assert ws.cell(row=grand_row, column=8).value == f"=SUM(H5:H{last_week_row})"


def test_workbook_cells_list_event_text():
    payload = [{"Event_ID": "B1", "Event_Title": "Drive A", "Start_Date": "2025-03-03", "Category": "BloodDrive", "Target_Donation": 250}]

    _, wb = _workbook(payload)
    ws = wb[CALENDAR_SHEET]

    # March 3 is the Monday of the second row
    assert ws["B6"].value == "3\nDrive A - 250"
    assert ws["B6"].fill.start_color.rgb.endswith("FFCDD2")
