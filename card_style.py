"""Layout constants and style configuration for ID-1 card faces.

All geometry is expressed in inches with a top-left origin, the way the card
was designed. ``to_points`` and ``in_to_bottom_left_y`` convert to the
bottom-left point space used by reportlab.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

# ---------------- CONFIG ----------------
PAGE_W_IN, PAGE_H_IN = 2.125, 3.375  # ID-1 portrait
PRIMARY_COLOR = (0, 34, 68)  # #002244
SECONDARY_COLOR = (170, 221, 0)  # #aadd00
WHITE = (255, 255, 255)
LABEL_GRAY = (200, 200, 200)
MUTED_GRAY = (110, 110, 110)
PANEL_GRAY = (235, 235, 235)

FONT_DIR = Path(__file__).resolve().parent / "fonts"
BOLD_FONT_FILE = "Poppins-Bold.ttf"
MEDIUM_FONT_FILE = "Poppins-Medium.ttf"
FALLBACK_BOLD_FONT = "Helvetica-Bold"
FALLBACK_MEDIUM_FONT = "Helvetica"

RGB = Tuple[int, int, int]


class LayoutBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def expanded(self, padding: float) -> "LayoutBox":
        return LayoutBox(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )


class Palette(NamedTuple):
    primary: RGB = PRIMARY_COLOR
    secondary: RGB = SECONDARY_COLOR


class HeaderLine(NamedTuple):
    text: str
    size: float
    y: float


DEFAULT_HEADER = (
    HeaderLine("REPÚBLICA DE COLOMBIA", 7.0, 0.20),
    HeaderLine("POLICÍA NACIONAL", 6.0, 0.30),
    HeaderLine("DIRECCIÓN DE BIENESTAR SOCIAL", 4.5, 0.40),
)

DEFAULT_LEGAL_TEXT = (
    "Este carné es personal e intransferible y debe portarse en un lugar "
    "visible. En caso de pérdida, favor devolverlo a la institución o "
    "comunicarse con la línea de emergencia indicada."
)


@dataclass(frozen=True)
class CardStyleConfig:
    palette: Palette = Palette()
    page_width: float = PAGE_W_IN
    page_height: float = PAGE_H_IN

    bold_font: str = FALLBACK_BOLD_FONT
    medium_font: str = FALLBACK_MEDIUM_FONT

    logo_size: float = 0.32
    logo_margin: float = 0.05
    logo_top: float = 0.1
    header: Tuple[HeaderLine, ...] = DEFAULT_HEADER

    # Front background: the triangle overlaps the rectangle by half a
    # hundredth of an inch so no white seam is rendered between them.
    seam_top: float = 1.30
    seam_bottom: float = 1.685
    band_top: float = 1.68

    portrait_border_center: Tuple[float, float] = (1.063, 1.447)
    portrait_border_radius: float = 0.473
    portrait_box: LayoutBox = LayoutBox(0.633, 1.015, 0.86, 0.86)
    portrait_pixels: int = 400

    name_y: float = 2.15
    name_size: float = 9.0
    name_min_size: float = 6.0
    name_max_width: float = 1.9
    role_y: float = 2.25
    role_size: float = 6.0

    grid_top: float = 2.45
    grid_spacing: float = 0.14
    grid_label_x: float = 0.4
    grid_colon_x: float = 0.85
    grid_value_x: float = 0.9
    grid_font_size: float = 5.5
    valid_until: str = "2026-12-31"

    qr_box: LayoutBox = LayoutBox(1.6, 2.5, 0.4, 0.4)
    qr_padding: float = 0.02

    strip_height: float = 0.25
    tile_size: float = 0.125
    strip_line_width: float = 0.01

    # Back face
    back_margin: float = 0.15
    institution_y: float = 0.58
    institution_size: float = 6.0
    guardian_title: str = "DATOS DEL ACUDIENTE"
    insurance_title: str = "DATOS DEL SEGURO"
    section_title_height: float = 0.13
    section_title_size: float = 5.5
    guardian_section_top: float = 0.68
    insurance_section_top: float = 1.62
    back_row_spacing: float = 0.14
    back_font_size: float = 5.0
    back_value_x: float = 0.95
    legal_box: LayoutBox = LayoutBox(0.15, 2.38, 1.825, 0.58)
    legal_text: str = DEFAULT_LEGAL_TEXT
    legal_font_size: float = 4.5
    legal_leading: float = 5.6

    @property
    def strip_top(self) -> float:
        return self.page_height - self.strip_height

    @property
    def page_size_points(self) -> Tuple[float, float]:
        return to_points(self.page_width), to_points(self.page_height)


def to_points(value_in: float) -> float:
    return value_in * inch


def in_to_bottom_left_y(top_in: float, box_h_in: float = 0.0, page_h_in: float = PAGE_H_IN) -> float:
    """Convert a top-origin inch coordinate to a reportlab bottom-left point."""
    return (page_h_in - top_in - box_h_in) * inch


def _resolve_font_path(filename: str, font_dir: Optional[Path] = None) -> Optional[Path]:
    candidate = (font_dir or FONT_DIR) / filename
    if candidate.exists():
        return candidate
    return None


def register_fonts(font_dir: Optional[Path] = None) -> Tuple[str, str]:
    """Register the Poppins faces when available; return (bold, medium) names.

    Falls back to the built-in Helvetica faces so a card can always be drawn.
    """
    names = []
    for filename, face_name, fallback in (
        (BOLD_FONT_FILE, "Poppins-Bold", FALLBACK_BOLD_FONT),
        (MEDIUM_FONT_FILE, "Poppins-Medium", FALLBACK_MEDIUM_FONT),
    ):
        path = _resolve_font_path(filename, font_dir)
        if path is None:
            names.append(fallback)
            continue
        if face_name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(face_name, str(path)))
        names.append(face_name)
    return names[0], names[1]


def default_style(font_dir: Optional[Path] = None) -> CardStyleConfig:
    bold, medium = register_fonts(font_dir)
    return CardStyleConfig(bold_font=bold, medium_font=medium)


DEFAULT_STYLE = CardStyleConfig()
