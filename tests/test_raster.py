"""Glyph rasterisation onto the presentation surface."""

import numpy as np

from ascii_video.frames import AsciiFrame
from ascii_video.rendering.raster import CHAR_HEIGHT, CHAR_WIDTH, GlyphAtlas, RasterSurface


def _frame(levels, color):
    levels = np.asarray(levels)
    colors = np.empty(levels.shape + (3,), dtype=np.uint8)
    colors[...] = color
    return AsciiFrame(ramp="@#. ", levels=levels, colors=colors)


class TestRasterSurface:
    def test_empty_until_presented(self):
        s = RasterSurface()
        assert s.snapshot() is None
        assert s.size is None
        assert s.frames_presented == 0

    def test_size_follows_grid(self):
        s = RasterSurface()
        img = s.present(_frame([[0, 1, 2], [3, 3, 3]], (255, 255, 255)))
        assert img.size == (3 * CHAR_WIDTH, 2 * CHAR_HEIGHT)
        assert s.size == img.size
        assert s.frames_presented == 1

    def test_spaces_render_black(self):
        img = RasterSurface().present(_frame([[3, 3], [3, 3]], (255, 255, 255)))
        assert not np.asarray(img).any()

    def test_glyph_drawn_in_cell_colour(self):
        arr = np.asarray(RasterSurface().present(_frame([[0]], (255, 0, 0))))
        assert arr[..., 0].max() > 0
        assert arr[..., 1].max() == 0
        assert arr[..., 2].max() == 0

    def test_clear(self):
        s = RasterSurface()
        s.present(_frame([[0]], (1, 2, 3)))
        s.clear()
        assert s.snapshot() is None


class TestGlyphAtlas:
    def test_space_mask_empty(self):
        atlas = GlyphAtlas("@ ")
        assert atlas.masks.shape == (2, CHAR_HEIGHT, CHAR_WIDTH)
        assert atlas.masks[1].max() == 0.0
        assert atlas.masks[0].max() > 0.0
