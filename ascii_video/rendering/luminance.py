#!/usr/bin/env python3
# ascii_video/rendering/luminance.py
"""
Per-pixel perceptual luminance (Rec. 601 weights).

The field is written into a float32 scratch buffer owned by the instance and
reallocated only when the source dimensions change.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ascii_video.frames import PixelBuffer

__all__ = ["LUMA_WEIGHTS", "LuminanceField"]

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


class LuminanceField:
    def __init__(self):
        self._field: Optional[np.ndarray] = None
        self._tmp: Optional[np.ndarray] = None

    def _ensure(self, height: int, width: int) -> None:
        if self._field is None or self._field.shape != (height, width):
            self._field = np.empty((height, width), dtype=np.float32)
            self._tmp = np.empty((height, width), dtype=np.float32)

    def compute(self, buffer: PixelBuffer) -> np.ndarray:
        """
        Return a (height, width) float32 luminance map of `buffer`.
        Alpha is ignored. The returned array is reused by the next call.
        """
        self._ensure(buffer.height, buffer.width)
        field, tmp = self._field, self._tmp
        wr, wg, wb = LUMA_WEIGHTS
        data = buffer.data
        np.multiply(data[..., 0], wr, out=field, dtype=np.float32)
        np.multiply(data[..., 1], wg, out=tmp, dtype=np.float32)
        field += tmp
        np.multiply(data[..., 2], wb, out=tmp, dtype=np.float32)
        field += tmp
        return field

    def release(self) -> None:
        self._field = None
        self._tmp = None

    @property
    def allocated(self) -> bool:
        return self._field is not None
