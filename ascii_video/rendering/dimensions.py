#!/usr/bin/env python3
# ascii_video/rendering/dimensions.py
"""
Output grid planning.

Monospace glyph cells are about twice as tall as they are wide, so the column
count is doubled relative to the source aspect ratio to keep the rendered
picture from looking vertically stretched.
"""

import math

from ascii_video.errors import DegenerateDimensions
from ascii_video.frames import OutputDimensions

__all__ = ["CHAR_ASPECT_RATIO", "plan", "round_half_up"]

# Glyph cell height / width
CHAR_ASPECT_RATIO = 2.0


def round_half_up(x: float) -> int:
    """Round to nearest integer, .5 away from zero for positive values."""
    return int(math.floor(x + 0.5))


def plan(source_width: int, source_height: int, max_rows: int) -> OutputDimensions:
    """
    Return the (cols, rows) grid for a source of the given size.
    rows is always max_rows; cols follows the source aspect ratio.
    """
    if source_width <= 0 or source_height <= 0:
        raise DegenerateDimensions(f"source is {source_width}x{source_height}")
    if max_rows <= 0:
        raise DegenerateDimensions(f"max_rows must be positive, got {max_rows}")
    rows = int(max_rows)
    cols = round_half_up(rows * (source_width / source_height) * CHAR_ASPECT_RATIO)
    return OutputDimensions(cols, rows)
