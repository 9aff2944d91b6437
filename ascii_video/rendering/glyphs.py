#!/usr/bin/env python3
# ascii_video/rendering/glyphs.py
"""
Brightness to glyph mapping.

Ramps are written ink-dark first: position 0 is the densest glyph, the last
position is a space. Lookups index the ramp from the end, so brightness 0
lands on the space and brightness 255 on the densest glyph.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

__all__ = [
    "GLYPH_RAMP",
    "GAMMA",
    "CONTRAST",
    "MIDPOINT",
    "default_ramps",
    "GlyphMapper",
    "map_to_glyph",
]

GLYPH_RAMP = "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. "

GAMMA = 1.1
CONTRAST = 1.3
MIDPOINT = 128.0


def default_ramps() -> Dict[str, str]:
    return {
        "ascii_dense": GLYPH_RAMP,
        "ascii_blocks": "█▓▒░" + GLYPH_RAMP,
    }


class GlyphMapper:
    """Gamma, contrast stretch, then reversed ramp lookup."""

    def __init__(self, ramp: str = GLYPH_RAMP):
        if len(ramp) < 2:
            raise ValueError("glyph ramp needs at least two characters")
        self.ramp = ramp

    @staticmethod
    def tone(brightness):
        """Gamma-correct and contrast-stretch brightness in [0, 255]."""
        b = np.clip(np.asarray(brightness, dtype=np.float64), 0.0, 255.0)
        corrected = np.power(b / 255.0, GAMMA) * 255.0
        return np.clip((corrected - MIDPOINT) * CONTRAST + MIDPOINT, 0.0, 255.0)

    def levels(self, brightness) -> np.ndarray:
        """Ramp positions for an array of brightness values."""
        n = len(self.ramp)
        final = self.tone(brightness)
        index = np.floor((final / 255.0) * (n - 1)).astype(np.intp)
        index = np.clip(index, 0, n - 1)
        return (n - 1) - index

    def map_to_glyph(self, brightness: float) -> str:
        return self.ramp[int(self.levels(brightness))]


_default_mapper = GlyphMapper()


def map_to_glyph(brightness: float) -> str:
    """Glyph for one blended brightness value using the default ramp."""
    return _default_mapper.map_to_glyph(brightness)
