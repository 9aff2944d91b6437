#!/usr/bin/env python3
# ascii_video/frames.py
"""
Plain data types that flow through the conversion engine.

- PixelBuffer: RGBA8 source pixels for exactly one frame.
- OutputDimensions: the cols x rows output grid.
- AsciiCell / AsciiFrame: converter output, consumed by a presentation surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Tuple

import numpy as np
from PIL import Image

from ascii_video.errors import DegenerateDimensions, UnsupportedSource

StyleRun = Tuple[str, str]                # (style, text)
LineFrag = List[StyleRun]                 # one terminal row as runs
FrameFrag = List[LineFrag]                # full terminal frame as rows

__all__ = [
    "PixelBuffer",
    "OutputDimensions",
    "AsciiCell",
    "AsciiFrame",
    "StyleRun",
    "LineFrag",
    "FrameFrag",
]


@dataclass(frozen=True)
class PixelBuffer:
    """RGBA8 pixels, shape (height, width, 4), top-left origin, row-major."""
    data: np.ndarray

    def __post_init__(self):
        arr = self.data
        if not isinstance(arr, np.ndarray) or arr.dtype != np.uint8:
            raise UnsupportedSource("pixel buffer must be a uint8 numpy array")
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise UnsupportedSource(f"expected RGBA8 (H, W, 4), got shape {arr.shape}")
        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise DegenerateDimensions(f"source is {arr.shape[1]}x{arr.shape[0]}")

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @classmethod
    def from_rgba_bytes(cls, raw: bytes, width: int, height: int) -> "PixelBuffer":
        if width <= 0 or height <= 0:
            raise DegenerateDimensions(f"source is {width}x{height}")
        if len(raw) != width * height * 4:
            raise UnsupportedSource(
                f"expected {width * height * 4} RGBA bytes for {width}x{height}, got {len(raw)}"
            )
        arr = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4)
        return cls(arr)

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        if img.width <= 0 or img.height <= 0:
            raise DegenerateDimensions(f"source is {img.width}x{img.height}")
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(np.asarray(img, dtype=np.uint8))

    @classmethod
    def from_bgr(cls, frame: np.ndarray) -> "PixelBuffer":
        """Wrap an OpenCV BGR frame (H, W, 3) as RGBA with opaque alpha."""
        if frame is None or frame.ndim != 3 or frame.shape[2] != 3:
            raise UnsupportedSource("expected a BGR frame of shape (H, W, 3)")
        h, w = frame.shape[:2]
        out = np.empty((h, w, 4), dtype=np.uint8)
        out[..., 0] = frame[..., 2]
        out[..., 1] = frame[..., 1]
        out[..., 2] = frame[..., 0]
        out[..., 3] = 255
        return cls(out)


class OutputDimensions(NamedTuple):
    cols: int
    rows: int


class AsciiCell(NamedTuple):
    glyph: str
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class AsciiFrame:
    """
    One converted frame.

    levels: (rows, cols) ints, position of each cell's glyph in `ramp`.
    colors: (rows, cols, 3) uint8 mean RGB of each cell.
    """
    ramp: str
    levels: np.ndarray
    colors: np.ndarray

    @property
    def rows(self) -> int:
        return int(self.levels.shape[0])

    @property
    def cols(self) -> int:
        return int(self.levels.shape[1])

    @property
    def dimensions(self) -> OutputDimensions:
        return OutputDimensions(self.cols, self.rows)

    def cell(self, row: int, col: int) -> AsciiCell:
        r, g, b = self.colors[row, col].tolist()
        return AsciiCell(self.ramp[int(self.levels[row, col])], r, g, b)

    def __iter__(self) -> Iterator[List[AsciiCell]]:
        for row in range(self.rows):
            yield [self.cell(row, col) for col in range(self.cols)]

    def glyph_rows(self) -> List[str]:
        return ["".join(self.ramp[i] for i in line) for line in self.levels.tolist()]

    def to_text(self) -> str:
        return "\n".join(self.glyph_rows())

    @staticmethod
    def _rgb_to_style(r: int, g: int, b: int) -> str:
        # prompt_toolkit accepts "fg:#RRGGBB"
        return f"fg:#{r:02x}{g:02x}{b:02x}"

    def lines_frag(self, use_color: bool = True) -> FrameFrag:
        """Rows as prompt_toolkit style runs, merging neighbours of equal colour."""
        texts = self.glyph_rows()
        if not use_color:
            return [[("", text)] for text in texts]

        frame: FrameFrag = []
        colors = self.colors.tolist()
        for y, text in enumerate(texts):
            line: LineFrag = []
            run_style = None
            run_text = []
            for x, ch in enumerate(text):
                style = self._rgb_to_style(*colors[y][x])
                if style != run_style and run_text:
                    line.append((run_style, "".join(run_text)))
                    run_text = []
                run_style = style
                run_text.append(ch)
            if run_text:
                line.append((run_style, "".join(run_text)))
            frame.append(line if line else [("", "")])
        return frame
