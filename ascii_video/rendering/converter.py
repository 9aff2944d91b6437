#!/usr/bin/env python3
# ascii_video/rendering/converter.py
"""
Frame conversion pipeline:

    PixelBuffer -> LuminanceField -> CellSampler (+ Sobel at cell centres)
                -> GlyphMapper -> AsciiFrame

FrameConverter owns the scratch buffers (luminance field, summed-area table)
and keeps them across frames until the source size changes or
release_buffers() is called. It never touches a host canvas; acquiring pixels
and drawing glyphs live in media.py and rendering/raster.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ascii_video.errors import DegenerateDimensions
from ascii_video.frames import AsciiFrame, OutputDimensions, PixelBuffer
from ascii_video.rendering.glyphs import GLYPH_RAMP, GlyphMapper, default_ramps
from ascii_video.rendering.luminance import LuminanceField
from ascii_video.rendering.sampler import CellSampler

__all__ = ["FrameConverter", "convert_frame"]


@dataclass
class FrameConverter:
    ramps: Dict[str, str] = field(default_factory=default_ramps)
    ramp_name: str = "ascii_dense"

    def __post_init__(self):
        self._luminance = LuminanceField()
        self._sampler = CellSampler()
        self._mapper = GlyphMapper(self.get_ramp(self.ramp_name))

    def get_ramp(self, name: Optional[str]) -> str:
        if name and name in self.ramps:
            return self.ramps[name]
        return GLYPH_RAMP

    def set_ramp(self, name: str) -> None:
        self.ramp_name = name
        self._mapper = GlyphMapper(self.get_ramp(name))

    @property
    def ramp(self) -> str:
        return self._mapper.ramp

    def convert(self, buffer: PixelBuffer, dims: OutputDimensions) -> AsciiFrame:
        cols, rows = int(dims.cols), int(dims.rows)
        if cols <= 0 or rows <= 0:
            raise DegenerateDimensions(f"output grid is {cols}x{rows}")

        lum = self._luminance.compute(buffer)
        samples = self._sampler.sample(buffer, lum, cols, rows)
        levels = self._mapper.levels(samples.brightness)
        return AsciiFrame(ramp=self._mapper.ramp, levels=levels, colors=samples.colors)

    def release_buffers(self) -> None:
        self._luminance.release()
        self._sampler.release()

    @property
    def buffers_allocated(self) -> bool:
        return self._luminance.allocated or self._sampler.allocated


def convert_frame(buffer: PixelBuffer, cols: int, rows: int) -> AsciiFrame:
    """One-off conversion with a throwaway converter."""
    return FrameConverter().convert(buffer, OutputDimensions(cols, rows))
