#!/usr/bin/env python3
# ascii_video/rendering/raster.py
"""
Raster presentation surface.

Draws an AsciiFrame as an RGB image: 8x14 px cells on black, each glyph in its
cell colour. Glyph shapes are rendered once per ramp into an alpha atlas with
Pillow, then every frame is composited with numpy in one pass.

The recorder reads snapshot() from here and nothing else, so the conversion
scratch buffers are never shared with it.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ascii_video.frames import AsciiFrame

__all__ = ["CHAR_WIDTH", "CHAR_HEIGHT", "GlyphAtlas", "RasterSurface", "load_font"]

CHAR_WIDTH = 8
CHAR_HEIGHT = 14

_MONO_FONTS = ("DejaVuSansMono.ttf", "Menlo.ttc", "consola.ttf", "LiberationMono-Regular.ttf")


def load_font(size: int = CHAR_HEIGHT):
    for name in _MONO_FONTS:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default()


class GlyphAtlas:
    """Alpha masks (len(ramp), char_height, char_width) in [0, 1]."""

    def __init__(self, ramp: str, char_width: int = CHAR_WIDTH, char_height: int = CHAR_HEIGHT, font=None):
        self.ramp = ramp
        self.char_width = char_width
        self.char_height = char_height
        font = font or load_font(char_height)
        masks = np.zeros((len(ramp), char_height, char_width), dtype=np.float32)
        for i, glyph in enumerate(ramp):
            if glyph == " ":
                continue
            tile = Image.new("L", (char_width, char_height), 0)
            ImageDraw.Draw(tile).text((0, 0), glyph, fill=255, font=font)
            masks[i] = np.asarray(tile, dtype=np.float32) / 255.0
        self.masks = masks

    def rasterize(self, frame: AsciiFrame) -> Image.Image:
        rows, cols = frame.rows, frame.cols
        ch, cw = self.char_height, self.char_width
        alpha = self.masks[frame.levels]                              # (rows, cols, ch, cw)
        colors = frame.colors.astype(np.float32)[:, :, None, None, :]  # (rows, cols, 1, 1, 3)
        rgb = alpha[..., None] * colors
        rgb = rgb.transpose(0, 2, 1, 3, 4).reshape(rows * ch, cols * cw, 3)
        return Image.fromarray(np.clip(rgb + 0.5, 0, 255).astype(np.uint8), "RGB")


class RasterSurface:
    """Thread-safe holder of the most recently presented raster."""

    def __init__(self, char_width: int = CHAR_WIDTH, char_height: int = CHAR_HEIGHT, font=None):
        self.char_width = char_width
        self.char_height = char_height
        self._font = font
        self._atlases: Dict[str, GlyphAtlas] = {}
        self._image: Optional[Image.Image] = None
        self._frames_presented = 0
        self._lock = threading.Lock()

    def _atlas(self, ramp: str) -> GlyphAtlas:
        atlas = self._atlases.get(ramp)
        if atlas is None:
            atlas = GlyphAtlas(ramp, self.char_width, self.char_height, self._font)
            self._atlases[ramp] = atlas
        return atlas

    def present(self, frame: AsciiFrame) -> Image.Image:
        image = self._atlas(frame.ramp).rasterize(frame)
        with self._lock:
            self._image = image
            self._frames_presented += 1
        return image

    def snapshot(self) -> Optional[Image.Image]:
        """Current raster, or None when nothing has been presented."""
        with self._lock:
            return self._image

    def clear(self) -> None:
        with self._lock:
            self._image = None

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        with self._lock:
            return self._image.size if self._image is not None else None

    @property
    def frames_presented(self) -> int:
        with self._lock:
            return self._frames_presented
