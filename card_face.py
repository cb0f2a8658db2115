"""Compose the front and back faces of one ID card onto a reportlab canvas.

Placement is fixed: every element has constant coordinates taken from
``CardStyleConfig``, so a missing portrait or logo only removes that element
and never moves the others.
"""
from __future__ import annotations

from typing import NamedTuple, Optional, Sequence, Tuple

from PIL import Image
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen.canvas import Canvas

import identicon
import pattern_strip
from card_assets import AssetCache, load_portrait
from card_records import CardRecord, CardRecordError
from card_style import (
    LABEL_GRAY,
    MUTED_GRAY,
    PANEL_GRAY,
    RGB,
    WHITE,
    CardStyleConfig,
    LayoutBox,
    in_to_bottom_left_y,
    to_points,
)

FRONT = "front"
BACK = "back"

SHRINK_STEP = 0.5
MIN_VALUE_FONT_SIZE = 3.0
CAP_HEIGHT_EM = 0.7


class LogoPair(NamedTuple):
    left: Optional[Image.Image] = None
    right: Optional[Image.Image] = None


def _set_fill(canvas: Canvas, color: RGB) -> None:
    canvas.setFillColorRGB(color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)


def _text(canvas: Canvas, style: CardStyleConfig, text: str, x: float, y: float, *, centered: bool = False) -> None:
    """Draw ``text`` with its baseline at inch coordinate ``y`` (top origin)."""
    baseline = in_to_bottom_left_y(y, 0.0, style.page_height)
    if centered:
        canvas.drawCentredString(to_points(x), baseline, text)
    else:
        canvas.drawString(to_points(x), baseline, text)


def _rect(canvas: Canvas, style: CardStyleConfig, box: LayoutBox) -> None:
    canvas.rect(
        to_points(box.x),
        in_to_bottom_left_y(box.y, box.height, style.page_height),
        to_points(box.width),
        to_points(box.height),
        stroke=0,
        fill=1,
    )


def _image(canvas: Canvas, style: CardStyleConfig, image: Optional[Image.Image], box: LayoutBox) -> bool:
    if image is None:
        return False
    canvas.drawImage(
        ImageReader(image),
        to_points(box.x),
        in_to_bottom_left_y(box.y, box.height, style.page_height),
        width=to_points(box.width),
        height=to_points(box.height),
        mask="auto",
    )
    return True


def fit_font_size(text: str, font_name: str, size: float, max_width: float, min_size: float) -> float:
    """Shrink ``size`` in half-point steps until ``text`` fits ``max_width`` inches."""
    limit = to_points(max_width)
    while size > min_size and stringWidth(text, font_name, size) > limit:
        size = max(size - SHRINK_STEP, min_size)
    return size


def _draw_header(canvas: Canvas, style: CardStyleConfig, logos: LogoPair) -> None:
    size = style.logo_size
    _image(canvas, style, logos.left, LayoutBox(style.logo_margin, style.logo_top, size, size))
    _image(
        canvas,
        style,
        logos.right,
        LayoutBox(style.page_width - style.logo_margin - size, style.logo_top, size, size),
    )

    _set_fill(canvas, style.palette.primary)
    center_x = style.page_width / 2.0
    for line in style.header:
        canvas.setFont(style.bold_font, line.size)
        _text(canvas, style, line.text, center_x, line.y, centered=True)


def _draw_background(canvas: Canvas, style: CardStyleConfig) -> None:
    _set_fill(canvas, style.palette.primary)
    width = style.page_width
    path = canvas.beginPath()
    path.moveTo(0, in_to_bottom_left_y(style.seam_bottom, 0.0, style.page_height))
    path.lineTo(to_points(width), in_to_bottom_left_y(style.seam_top, 0.0, style.page_height))
    path.lineTo(to_points(width), in_to_bottom_left_y(style.seam_bottom, 0.0, style.page_height))
    path.close()
    canvas.drawPath(path, stroke=0, fill=1)
    _rect(canvas, style, LayoutBox(0.0, style.band_top, width, style.page_height - style.band_top))


def _draw_portrait(canvas: Canvas, style: CardStyleConfig, portrait: Optional[Image.Image]) -> bool:
    _set_fill(canvas, WHITE)
    center_x, center_y = style.portrait_border_center
    canvas.circle(
        to_points(center_x),
        in_to_bottom_left_y(center_y, 0.0, style.page_height),
        to_points(style.portrait_border_radius),
        stroke=0,
        fill=1,
    )
    return _image(canvas, style, portrait, style.portrait_box)


def _draw_identity(canvas: Canvas, style: CardStyleConfig, record: CardRecord) -> None:
    center_x = style.page_width / 2.0
    _set_fill(canvas, WHITE)

    name = record.display_name.upper()
    size = fit_font_size(name, style.bold_font, style.name_size, style.name_max_width, style.name_min_size)
    canvas.setFont(style.bold_font, size)
    _text(canvas, style, name, center_x, style.name_y, centered=True)

    canvas.setFont(style.medium_font, style.role_size)
    _text(canvas, style, record.role_label.upper(), center_x, style.role_y, centered=True)


def _draw_field_grid(canvas: Canvas, style: CardStyleConfig, rows: Sequence[Tuple[str, str]]) -> None:
    # values stop short of the white square behind the QR code
    value_width = style.qr_box.x - style.qr_padding - style.grid_value_x - 0.02
    for index, (label, value) in enumerate(rows):
        y = style.grid_top + index * style.grid_spacing
        canvas.setFont(style.medium_font, style.grid_font_size)
        _set_fill(canvas, LABEL_GRAY)
        _text(canvas, style, label, style.grid_label_x, y)
        _text(canvas, style, ":", style.grid_colon_x, y)

        size = fit_font_size(value, style.medium_font, style.grid_font_size, value_width, MIN_VALUE_FONT_SIZE)
        canvas.setFont(style.medium_font, size)
        _set_fill(canvas, WHITE)
        _text(canvas, style, value, style.grid_value_x, y)


def _draw_identicon(canvas: Canvas, style: CardStyleConfig, payload: str) -> None:
    _set_fill(canvas, WHITE)
    _rect(canvas, style, style.qr_box.expanded(style.qr_padding))
    _image(canvas, style, identicon.encode(payload), style.qr_box)


def _draw_footer(canvas: Canvas, style: CardStyleConfig) -> None:
    pattern_strip.render(
        canvas,
        style.strip_top,
        style.page_width,
        style.page_height,
        style.tile_size,
        style.palette.secondary,
        style.palette.primary,
        style.palette.primary,
        style.strip_line_width,
    )


def compose_front(
    canvas: Canvas,
    record: CardRecord,
    logos: LogoPair,
    cache: AssetCache,
    style: CardStyleConfig,
) -> None:
    _draw_header(canvas, style, logos)
    _draw_background(canvas, style)
    portrait = load_portrait(cache, record.portrait_source, style.portrait_pixels)
    _draw_portrait(canvas, style, portrait)
    _draw_identity(canvas, style, record)
    _draw_field_grid(canvas, style, record.field_rows(style.valid_until))
    _draw_identicon(canvas, style, record.identifier)
    _draw_footer(canvas, style)


def _draw_section(
    canvas: Canvas,
    style: CardStyleConfig,
    title: str,
    top: float,
    rows: Sequence[Tuple[str, str]],
) -> None:
    margin = style.back_margin
    width = style.page_width - 2 * margin
    _set_fill(canvas, style.palette.primary)
    _rect(canvas, style, LayoutBox(margin, top, width, style.section_title_height))

    _set_fill(canvas, WHITE)
    canvas.setFont(style.bold_font, style.section_title_size)
    # baseline sits half a cap height below the bar's centre line
    cap_height = style.section_title_size * CAP_HEIGHT_EM / 72.0
    title_baseline = top + (style.section_title_height + cap_height) / 2.0
    _text(canvas, style, title, style.page_width / 2.0, title_baseline, centered=True)

    value_width = style.page_width - margin - style.back_value_x
    for index, (label, value) in enumerate(rows, start=1):
        y = top + style.section_title_height + index * style.back_row_spacing - 0.01
        canvas.setFont(style.medium_font, style.back_font_size)
        _set_fill(canvas, MUTED_GRAY)
        _text(canvas, style, f"{label}:", margin + 0.03, y)

        size = fit_font_size(value, style.bold_font, style.back_font_size, value_width, MIN_VALUE_FONT_SIZE)
        canvas.setFont(style.bold_font, size)
        _set_fill(canvas, style.palette.primary)
        _text(canvas, style, value, style.back_value_x, y)


def _draw_legal_panel(canvas: Canvas, style: CardStyleConfig) -> None:
    box = style.legal_box
    _set_fill(canvas, PANEL_GRAY)
    _rect(canvas, style, box)

    padding = 0.06
    lines = simpleSplit(
        style.legal_text,
        style.medium_font,
        style.legal_font_size,
        to_points(box.width - 2 * padding),
    )
    _set_fill(canvas, MUTED_GRAY)
    canvas.setFont(style.medium_font, style.legal_font_size)
    center_x = box.x + box.width / 2.0
    for index, line in enumerate(lines):
        y = box.y + padding + (style.legal_font_size + index * style.legal_leading) / 72.0
        _text(canvas, style, line, center_x, y, centered=True)


def compose_back(canvas: Canvas, record: CardRecord, logos: LogoPair, style: CardStyleConfig) -> None:
    if not record.has_back:
        raise CardRecordError(f"Record {record.identifier} has no back face data")

    _draw_header(canvas, style, logos)
    if record.institution:
        _set_fill(canvas, style.palette.primary)
        canvas.setFont(style.bold_font, style.institution_size)
        _text(canvas, style, record.institution.upper(), style.page_width / 2.0, style.institution_y, centered=True)

    _draw_section(canvas, style, style.guardian_title, style.guardian_section_top, record.guardian.rows())
    _draw_section(canvas, style, style.insurance_title, style.insurance_section_top, record.insurance.rows())
    _draw_legal_panel(canvas, style)
    _draw_footer(canvas, style)


def compose_face(
    canvas: Canvas,
    record: CardRecord,
    kind: str,
    logos: LogoPair,
    cache: AssetCache,
    style: CardStyleConfig,
) -> None:
    if kind == FRONT:
        compose_front(canvas, record, logos, cache, style)
    elif kind == BACK:
        compose_back(canvas, record, logos, style)
    else:
        raise ValueError(f"Unknown face kind: {kind}")
