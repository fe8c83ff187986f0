"""
Report formatting helpers and the Excel grid workbook.
"""

from datetime import date
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from core.config import TOTAL_HEADER, WEEKDAY_HEADERS
from models.events import CalendarGrid
from services.grid import blood_drive_units, is_notable


def format_date_display(d: date) -> str:
    """Format date as M/D/YYYY (platform-safe, no zero-padding)."""
    return f"{d.month}/{d.day}/{d.year}"


def format_date_heading(d: date) -> str:
    """Format date as 'Saturday, March 15, 2025' (platform-safe)."""
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def format_month_label(year: int, month_index: int) -> str:
    """Human-readable month label, e.g. 'March 2025'."""
    return date(year, month_index + 1, 1).strftime("%B %Y")


def format_units(units: int) -> str:
    """Unit count with thousands separators."""
    return f"{units:,}"


def export_basename(month_label: str) -> str:
    """Base file name for month exports: 'March 2025' -> 'calendar-march-2025'."""
    return f"calendar-{month_label.replace(' ', '-').lower()}"


def event_block_text(event) -> str:
    """Compact grid text: title, plus unit count for blood drives."""
    units = blood_drive_units(event)
    return f"{event.title} - {format_units(units)}" if units > 0 else event.title


# =============================================================================
# EXCEL GRID WORKBOOK
# =============================================================================

CALENDAR_SHEET = "Calendar"
BLOOD_DRIVES_SHEET = "Blood Drives"
BLOOD_DRIVE_HEADERS = ["Date", "Title", "Week", "Units"]

NOTABLE_FILL = PatternFill(start_color="FFCDD2", end_color="FFCDD2", fill_type="solid")
OTHER_MONTH_FILL = PatternFill(start_color="F9F9F9", end_color="F9F9F9", fill_type="solid")
HEADER_FILL = PatternFill(start_color="F5F5F5", end_color="F5F5F5", fill_type="solid")


def write_blood_drives_sheet(ws, grid: CalendarGrid) -> int:
    """
    Write one row per blood drive shown in the grid.

    Returns the last data row (1 when there are no rows).
    """
    for col_idx, header in enumerate(BLOOD_DRIVE_HEADERS, start=1):
        ws.cell(row=1, column=col_idx, value=header).font = Font(bold=True)

    row_idx = 1
    for week_number, week in enumerate(grid.weeks, start=1):
        for day in week:
            for event in day.events:
                units = blood_drive_units(event)
                if units <= 0:
                    continue
                row_idx += 1
                ws.cell(row=row_idx, column=1, value=format_date_display(day.date))
                ws.cell(row=row_idx, column=2, value=event.title)
                ws.cell(row=row_idx, column=3, value=week_number)
                ws.cell(row=row_idx, column=4, value=units)
    return row_idx


def write_calendar_sheet(
    ws, grid: CalendarGrid, month_label: str, organization_name: str, last_data_row: int
):
    """
    Write the month grid with SUMIF weekly totals.

    Row 1: Month label
    Row 2: Organization
    Row 4: SUN..SAT | TOTAL
    Row 5+: One row per week; TOTAL sums the Blood Drives sheet by week number
    Last row: Grand total
    """
    ws.cell(row=1, column=1, value=month_label).font = Font(bold=True, size=16)
    ws.cell(row=2, column=1, value=organization_name).font = Font(bold=True, color="D32F2F")

    header_row = 4
    for col_idx, header in enumerate(WEEKDAY_HEADERS + [TOTAL_HEADER], start=1):
        cell = ws.cell(row=header_row, column=col_idx, value=header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")

    total_col = len(WEEKDAY_HEADERS) + 1
    data_end = max(last_data_row, 2)
    week_range = f"'{BLOOD_DRIVES_SHEET}'!$C$2:$C${data_end}"
    units_range = f"'{BLOOD_DRIVES_SHEET}'!$D$2:$D${data_end}"

    first_week_row = header_row + 1
    for week_idx, week in enumerate(grid.weeks):
        row_idx = first_week_row + week_idx
        for col_idx, day in enumerate(week, start=1):
            lines = [str(day.day_number)] + [event_block_text(e) for e in day.events]
            cell = ws.cell(row=row_idx, column=col_idx, value="\n".join(lines))
            cell.alignment = Alignment(wrap_text=True, vertical="top")
            if not day.is_current_month:
                cell.font = Font(color="999999")
                cell.fill = OTHER_MONTH_FILL
            elif any(is_notable(e) for e in day.events):
                cell.fill = NOTABLE_FILL

        ws.cell(
            row=row_idx,
            column=total_col,
            value=f"=SUMIF({week_range},{week_idx + 1},{units_range})",
        ).font = Font(bold=True)

    last_week_row = first_week_row + len(grid.weeks) - 1
    total_letter = get_column_letter(total_col)
    grand_row = last_week_row + 2
    ws.cell(row=grand_row, column=1, value="GRAND TOTAL ESTIMATED COLLECTION").font = Font(bold=True)
    ws.cell(
        row=grand_row,
        column=total_col,
        value=f"=SUM({total_letter}{first_week_row}:{total_letter}{last_week_row})",
    ).font = Font(bold=True)

    for col_idx in range(1, total_col):
        ws.column_dimensions[get_column_letter(col_idx)].width = 22
    ws.column_dimensions[total_letter].width = 12


def create_grid_workbook(grid: CalendarGrid, month_label: str, organization_name: str) -> Workbook:
    """Build a workbook with the Calendar grid and its Blood Drives source sheet."""
    wb = Workbook()
    ws_calendar = wb.active
    ws_calendar.title = CALENDAR_SHEET
    ws_drives = wb.create_sheet(title=BLOOD_DRIVES_SHEET)

    last_data_row = write_blood_drives_sheet(ws_drives, grid)
    write_calendar_sheet(ws_calendar, grid, month_label, organization_name, last_data_row)
    return wb


def grid_workbook_to_bytes(grid: CalendarGrid, month_label: str, organization_name: str) -> bytes:
    """Workbook as bytes (for API usage)."""
    buffer = BytesIO()
    create_grid_workbook(grid, month_label, organization_name).save(buffer)
    buffer.seek(0)
    return buffer.getvalue()

