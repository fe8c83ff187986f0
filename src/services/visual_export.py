"""
Visual grid export.

The month grid is drawn once onto a raster image at a fixed target width
(A4 landscape at 96 DPI, doubled for print quality), then embedded into a
single A4 landscape PDF page, scaled to the available width with its aspect
ratio preserved. Grids taller than the page are scaled down to fit it.
"""

from dataclasses import dataclass
from typing import BinaryIO

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.config import (
    TOTAL_HEADER,
    VISUAL_MARGIN_MM,
    VISUAL_PAGE_HEIGHT_MM,
    VISUAL_PAGE_WIDTH_MM,
    VISUAL_RENDER_SCALE,
    VISUAL_TARGET_WIDTH_PX,
    WEEKDAY_HEADERS,
)
from models.events import CalendarDay, CalendarGrid
from services.grid import is_notable
from services.reports import event_block_text, format_units

# Colors
WHITE = "#ffffff"
BORDER = "#dddddd"
HEADER_BG = "#f5f5f5"
OTHER_MONTH_BG = "#f9f9f9"
TEXT = "#000000"
DIMMED_TEXT = "#999999"
MUTED_TEXT = "#666666"
ACCENT = "#d32f2f"
REGULAR_EVENT_BG = "#fff9c4"
NOTABLE_EVENT_BG = "#ffcdd2"


@dataclass(frozen=True)
class GridMetrics:
    """Pixel geometry of the rendered grid (already multiplied by the scale)."""

    scale: int = VISUAL_RENDER_SCALE

    def px(self, value: float) -> int:
        return int(round(value * self.scale))

    @property
    def width(self) -> int:
        return self.px(VISUAL_TARGET_WIDTH_PX)

    @property
    def padding(self) -> int:
        return self.px(19)  # 5mm at 96 DPI

    @property
    def total_column_width(self) -> int:
        return self.px(80)

    @property
    def table_width(self) -> int:
        return self.width - 2 * self.padding

    @property
    def day_column_width(self) -> float:
        return (self.table_width - self.total_column_width) / 7


@dataclass
class VisualGridDocument:
    """Rendered grid image plus its placement on the output page."""

    image: Image.Image
    month_label: str
    page_width_mm: float = VISUAL_PAGE_WIDTH_MM
    page_height_mm: float = VISUAL_PAGE_HEIGHT_MM
    margin_mm: float = VISUAL_MARGIN_MM

    def placement(self) -> tuple[float, float, float, float]:
        """
        Image box (x, y, width, height) in mm, measured from the top-left corner.

        Fits the available width; if that makes the image taller than the
        available height, it is scaled down further and centered horizontally.
        """
        available_w = self.page_width_mm - 2 * self.margin_mm
        available_h = self.page_height_mm - 2 * self.margin_mm
        img_w, img_h = self.image.size

        width = available_w
        height = img_h * width / img_w
        if height > available_h:
            width = width * available_h / height
            height = available_h

        x = self.margin_mm + (available_w - width) / 2
        return x, self.margin_mm, width, height


# =============================================================================
# TEXT HELPERS
# =============================================================================


def load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    """DejaVu Sans when installed, Pillow's bundled font otherwise."""
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)


def wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> list[str]:
    """Greedy word wrap; words longer than a line are split by character."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if draw.textlength(candidate, font=font) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = ""
        for char in word:
            if draw.textlength(current + char, font=font) > max_width and current:
                lines.append(current)
                current = char
            else:
                current += char
    if current:
        lines.append(current)
    return lines or [""]


# =============================================================================
# GRID RENDERING
# =============================================================================


class GridRenderer:
    """Draws a CalendarGrid onto a raster image."""

    def __init__(self, metrics: GridMetrics | None = None):
        self.m = metrics or GridMetrics()
        px = self.m.px
        self.title_font = load_font(px(24), bold=True)
        self.org_font = load_font(px(18), bold=True)
        self.header_font = load_font(px(11), bold=True)
        self.date_font = load_font(px(14), bold=True)
        self.event_font = load_font(px(10))
        self.notable_font = load_font(px(10), bold=True)
        self.total_font = load_font(px(12), bold=True)
        self.footer_font = load_font(px(16), bold=True)
        self.footer_label_font = load_font(px(14))

        self.header_height = px(28)
        self.min_row_height = px(70)
        self.cell_padding = px(4)
        self.block_pad_x = px(5)
        self.block_pad_y = px(3)
        self.block_gap = px(2)
        self.event_line_height = px(12)
        self.date_height = px(19)

    def _event_blocks(self, draw, day: CalendarDay) -> list[tuple[list[str], bool]]:
        text_width = self.m.day_column_width - 2 * self.cell_padding - 2 * self.block_pad_x
        blocks = []
        for event in day.events:
            notable = is_notable(event)
            font = self.notable_font if notable else self.event_font
            blocks.append((wrap_text(draw, event_block_text(event), font, text_width), notable))
        return blocks

    def _block_height(self, lines: list[str]) -> int:
        return len(lines) * self.event_line_height + 2 * self.block_pad_y

    def _row_height(self, draw, week: list[CalendarDay]) -> int:
        tallest = 0
        for day in week:
            blocks = self._event_blocks(draw, day)
            content = self.date_height + sum(
                self._block_height(lines) + self.block_gap for lines, _ in blocks
            )
            tallest = max(tallest, content + 2 * self.cell_padding)
        return max(self.min_row_height, tallest)

    def render(self, grid: CalendarGrid, month_label: str, organization_name: str) -> Image.Image:
        px = self.m.px
        measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
        row_heights = [self._row_height(measure, week) for week in grid.weeks]

        title_block = px(24 + 5 + 18 + 20) + px(10)
        footer_block = px(20 + 15 + 20 + 20 + 5 + 14 + 20)
        height = self.m.padding * 2 + title_block + self.header_height + sum(row_heights) + footer_block

        image = Image.new("RGB", (self.m.width, height), WHITE)
        draw = ImageDraw.Draw(image)

        x0 = self.m.padding
        y = self.m.padding
        draw.text((x0, y), month_label, font=self.title_font, fill=TEXT)
        y += px(24 + 5)
        draw.text((x0, y), organization_name, font=self.org_font, fill=ACCENT)
        y += px(18 + 20) + px(10)

        y = self._draw_header(draw, x0, y)
        for week, weekly_total, row_height in zip(grid.weeks, grid.weekly_totals, row_heights):
            self._draw_week(draw, x0, y, week, weekly_total, row_height)
            y += row_height

        self._draw_footer(draw, x0, y, grid.grand_total)
        return image

    def _column_x(self, x0: int, index: int) -> int:
        return int(round(x0 + index * self.m.day_column_width))

    def _draw_header(self, draw, x0: int, y: int) -> int:
        labels = WEEKDAY_HEADERS + [TOTAL_HEADER]
        for index, label in enumerate(labels):
            left = self._column_x(x0, index)
            right = self._column_x(x0, index + 1) if index < 7 else x0 + self.m.table_width
            draw.rectangle([left, y, right, y + self.header_height], fill=HEADER_BG, outline=BORDER)
            text_w = draw.textlength(label, font=self.header_font)
            draw.text(
                (left + (right - left - text_w) / 2, y + center_offset(self.header_height, self.header_font)),
                label,
                font=self.header_font,
                fill=TEXT,
            )
        return y + self.header_height

    def _draw_week(self, draw, x0: int, y: int, week: list[CalendarDay], total: int, height: int):
        for index, day in enumerate(week):
            left = self._column_x(x0, index)
            right = self._column_x(x0, index + 1)
            background = WHITE if day.is_current_month else OTHER_MONTH_BG
            draw.rectangle([left, y, right, y + height], fill=background, outline=BORDER)

            date_color = TEXT if day.is_current_month else DIMMED_TEXT
            cursor = y + self.cell_padding
            draw.text((left + self.cell_padding, cursor), str(day.day_number), font=self.date_font, fill=date_color)
            cursor += self.date_height

            for lines, notable in self._event_blocks(draw, day):
                block_h = self._block_height(lines)
                draw.rounded_rectangle(
                    [left + self.cell_padding, cursor, right - self.cell_padding, cursor + block_h],
                    radius=self.m.px(3),
                    fill=NOTABLE_EVENT_BG if notable else REGULAR_EVENT_BG,
                )
                font = self.notable_font if notable else self.event_font
                line_y = cursor + self.block_pad_y
                for line in lines:
                    draw.text((left + self.cell_padding + self.block_pad_x, line_y), line, font=font, fill=TEXT)
                    line_y += self.event_line_height
                cursor += block_h + self.block_gap

        left = self._column_x(x0, 7)
        right = x0 + self.m.table_width
        draw.rectangle([left, y, right, y + height], fill=HEADER_BG, outline=BORDER)
        if total > 0:
            text = format_units(total)
            text_w = draw.textlength(text, font=self.total_font)
            draw.text((right - self.m.px(8) - text_w, y + self.m.px(8)), text, font=self.total_font, fill=TEXT)

    def _draw_footer(self, draw, x0: int, y: int, grand_total: int):
        px = self.m.px
        y += px(20)
        draw.line([x0, y, x0 + self.m.table_width, y], fill=BORDER, width=px(2))
        y += px(15)
        draw.text(
            (x0, y),
            f"GRAND TOTAL ESTIMATED COLLECTION: {format_units(grand_total)}",
            font=self.footer_font,
            fill=TEXT,
        )
        y += px(20 + 5)
        draw.text((x0, y), "Monthly Target Collection", font=self.footer_label_font, fill=MUTED_TEXT)


def center_offset(box_height: int, font) -> float:
    """Top offset that vertically centers one line of font in a box."""
    left, top, right, bottom = font.getbbox("Ag")
    return (box_height - (bottom - top)) / 2 - top


def render_grid_image(grid: CalendarGrid, month_label: str, organization_name: str) -> Image.Image:
    """Render the grid to a raster image at the fixed target width."""
    return GridRenderer().render(grid, month_label, organization_name)


def build_visual_document(grid: CalendarGrid, month_label: str, organization_name: str) -> VisualGridDocument:
    return VisualGridDocument(
        image=render_grid_image(grid, month_label, organization_name),
        month_label=month_label,
    )


def write_visual_pdf(document: VisualGridDocument, output: str | BinaryIO) -> None:
    """Embed the rendered grid into a single A4 landscape PDF page."""
    page_width, page_height = landscape(A4)
    pdf = canvas.Canvas(output, pagesize=(page_width, page_height))
    pdf.setTitle(f"Calendar Export - {document.month_label}")

    x, top, width, height = document.placement()
    pdf.drawImage(
        ImageReader(document.image),
        x * mm,
        page_height - (top + height) * mm,
        width=width * mm,
        height=height * mm,
    )
    pdf.showPage()
    pdf.save()
