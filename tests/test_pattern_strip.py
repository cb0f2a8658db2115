import sys
import unittest
from io import BytesIO
from pathlib import Path

from reportlab.pdfgen import canvas

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pattern_strip
from card_style import PAGE_H_IN, PAGE_W_IN, PRIMARY_COLOR, SECONDARY_COLOR

GREEN = SECONDARY_COLOR
BLUE = PRIMARY_COLOR


class TileGridTests(unittest.TestCase):
    def _tiles(self, origin_y=3.125, width=PAGE_W_IN, height=PAGE_H_IN, tile=0.125):
        return list(pattern_strip.tile_grid(origin_y, width, height, tile, GREEN, BLUE))

    def test_full_card_strip(self):
        tiles = self._tiles()
        self.assertEqual(len(tiles), 2 * 17)
        first = tiles[0]
        self.assertEqual((first.row, first.col), (0, 0))
        self.assertAlmostEqual(first.x, 0.0)
        self.assertAlmostEqual(first.y, 3.125)
        self.assertEqual(first.color, GREEN)

    def test_parity_rule(self):
        for tile in self._tiles():
            expected = GREEN if (tile.row + tile.col) % 2 == 0 else BLUE
            self.assertEqual(tile.color, expected, (tile.row, tile.col))

    def test_overflowing_tiles_are_clipped(self):
        tiles = self._tiles(origin_y=0.0, width=0.3, height=0.2, tile=0.125)
        widths = sorted({round(tile.width, 6) for tile in tiles})
        heights = sorted({round(tile.height, 6) for tile in tiles})
        self.assertEqual(widths, [0.05, 0.125])
        self.assertEqual(heights, [0.075, 0.125])
        self.assertEqual(len(tiles), 6)

    def test_slivers_are_skipped(self):
        tiles = self._tiles(origin_y=0.0, width=0.255, height=0.125, tile=0.125)
        self.assertEqual([tile.col for tile in tiles], [0, 1])

    def test_skipped_sliver_keeps_parity_of_later_rows(self):
        tiles = self._tiles(origin_y=0.0, width=0.255, height=0.25, tile=0.125)
        second_row = [tile for tile in tiles if tile.row == 1]
        self.assertEqual([tile.color for tile in second_row], [BLUE, GREEN])

    def test_invalid_tile_size(self):
        with self.assertRaises(ValueError):
            self._tiles(tile=0)


class RenderTests(unittest.TestCase):
    def test_render_draws_every_visible_tile(self):
        buffer = BytesIO()
        page = canvas.Canvas(buffer, pagesize=(PAGE_W_IN * 72, PAGE_H_IN * 72))
        drawn = pattern_strip.render(page, 3.125, PAGE_W_IN, PAGE_H_IN, 0.125, GREEN, BLUE, BLUE)
        page.save()
        self.assertEqual(drawn, 34)
        self.assertTrue(buffer.getvalue().startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
