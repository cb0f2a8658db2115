"""Checkerboard footer strip drawn at the bottom of every card face."""
from __future__ import annotations

import math
from typing import Iterator, NamedTuple, Tuple

from reportlab.pdfgen.canvas import Canvas

from card_style import RGB, in_to_bottom_left_y, to_points

MIN_TILE_EXTENT = 0.01  # inches; thinner clipped tiles are not drawn


class Tile(NamedTuple):
    row: int
    col: int
    x: float
    y: float
    width: float
    height: float
    color: RGB


def tile_grid(
    origin_y: float,
    page_width: float,
    page_height: float,
    tile_size: float,
    color_a: RGB,
    color_b: RGB,
) -> Iterator[Tile]:
    """Yield the visible tiles of the strip, top-left first, row by row."""
    if tile_size <= 0:
        raise ValueError("tile_size must be positive")
    rows = int(math.ceil((page_height - origin_y) / tile_size - 1e-9))
    cols = int(math.ceil(page_width / tile_size - 1e-9))
    for row in range(max(rows, 0)):
        y = origin_y + row * tile_size
        height = min(tile_size, page_height - y)
        for col in range(cols):
            x = col * tile_size
            width = min(tile_size, page_width - x)
            if width <= MIN_TILE_EXTENT or height <= MIN_TILE_EXTENT:
                continue
            color = color_a if (row + col) % 2 == 0 else color_b
            yield Tile(row, col, x, y, width, height, color)


def _rgb(color: RGB) -> Tuple[float, float, float]:
    return color[0] / 255.0, color[1] / 255.0, color[2] / 255.0


def render(
    canvas: Canvas,
    origin_y: float,
    page_width: float,
    page_height: float,
    tile_size: float,
    color_a: RGB,
    color_b: RGB,
    line_color: RGB,
    line_width: float = 0.01,
) -> int:
    """Draw the strip onto ``canvas`` and return the number of tiles drawn.

    Coordinates are inches from the top-left corner of the page.
    """
    drawn = 0
    canvas.saveState()
    for tile in tile_grid(origin_y, page_width, page_height, tile_size, color_a, color_b):
        canvas.setFillColorRGB(*_rgb(tile.color))
        canvas.rect(
            to_points(tile.x),
            in_to_bottom_left_y(tile.y, tile.height, page_height),
            to_points(tile.width),
            to_points(tile.height),
            stroke=0,
            fill=1,
        )
        drawn += 1

    canvas.setStrokeColorRGB(*_rgb(line_color))
    canvas.setLineWidth(to_points(line_width))
    line_y = in_to_bottom_left_y(origin_y, 0.0, page_height)
    canvas.line(0, line_y, to_points(page_width), line_y)
    canvas.restoreState()
    return drawn
