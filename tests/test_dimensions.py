"""Output grid planning."""

import pytest

from ascii_video.errors import DegenerateDimensions
from ascii_video.rendering.dimensions import CHAR_ASPECT_RATIO, plan, round_half_up


class TestPlan:
    def test_vga_at_80_rows(self):
        """640x480 with 80 rows -> round(80 * 4/3 * 2) = 213 columns."""
        dims = plan(640, 480, 80)
        assert dims.rows == 80
        assert dims.cols == 213

    @pytest.mark.parametrize("w", [1, 7, 320, 640, 1920, 3840])
    @pytest.mark.parametrize("h", [1, 9, 240, 480, 1080])
    @pytest.mark.parametrize("rows", [1, 40, 80, 120])
    def test_dimension_invariant(self, w, h, rows):
        dims = plan(w, h, rows)
        assert dims.rows == rows
        assert dims.cols == round_half_up(rows * (w / h) * CHAR_ASPECT_RATIO)

    def test_half_rounds_up(self):
        """3x4 with 3 rows -> 4.5 columns, which rounds up to 5."""
        assert plan(3, 4, 3).cols == 5

    def test_square_source_doubles_columns(self):
        assert plan(100, 100, 50) == (100, 50)

    @pytest.mark.parametrize("w,h,rows", [(0, 480, 80), (640, 0, 80), (-1, 480, 80), (640, 480, 0)])
    def test_degenerate_inputs_raise(self, w, h, rows):
        with pytest.raises(DegenerateDimensions):
            plan(w, h, rows)
