#!/usr/bin/env python3
# ascii_video/rendering/sampler.py
"""
Cell sampling: split the source into a cols x rows grid of rectangles and
reduce each one to a mean colour, a mean luminance, and one Sobel sample taken
at the cell centre.

Sums are read from a summed-area table, so every cell costs O(1) no matter how
large it is, and cells that contain no pixels (grid finer than the source)
come out as zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ascii_video.errors import DegenerateDimensions
from ascii_video.frames import PixelBuffer
from ascii_video.rendering.edges import magnitudes

__all__ = [
    "EDGE_NORMALIZER",
    "LUMA_WEIGHT",
    "EDGE_WEIGHT",
    "CellSamples",
    "CellSampler",
    "cell_bounds",
    "blend",
]

# Brightness blend.
EDGE_NORMALIZER = 5.66
LUMA_WEIGHT = 0.7
EDGE_WEIGHT = 0.3


def cell_bounds(size: int, count: int) -> np.ndarray:
    """
    Return count + 1 boundaries along one axis: cell i spans [b[i], b[i+1]).
    The last boundary is pinned to `size` so the cells tile it exactly.
    """
    if size <= 0 or count <= 0:
        raise DegenerateDimensions(f"cannot split {size} pixels into {count} cells")
    step = size / count
    bounds = np.floor(np.arange(count + 1, dtype=np.float64) * step).astype(np.intp)
    bounds[0] = 0
    bounds[-1] = size
    return bounds


def blend(mean_luminance, edge_magnitude):
    """Mix cell luminance with its normalised edge strength (works on arrays)."""
    normalized_edge = np.minimum(255.0, np.asarray(edge_magnitude, dtype=np.float64) / EDGE_NORMALIZER)
    return np.asarray(mean_luminance, dtype=np.float64) * LUMA_WEIGHT + normalized_edge * EDGE_WEIGHT


@dataclass(frozen=True)
class CellSamples:
    colors: np.ndarray        # (rows, cols, 3) uint8, rounded mean RGB
    luminance: np.ndarray     # (rows, cols) float64 mean luminance
    edges: np.ndarray         # (rows, cols) float64 Sobel magnitude at centre
    brightness: np.ndarray    # (rows, cols) float64 blended brightness


class CellSampler:
    def __init__(self):
        self._planes: Optional[np.ndarray] = None
        self._table: Optional[np.ndarray] = None

    def _ensure(self, height: int, width: int) -> Tuple[np.ndarray, np.ndarray]:
        if self._planes is None or self._planes.shape[:2] != (height, width):
            self._planes = np.empty((height, width, 4), dtype=np.float64)
            self._table = np.zeros((height + 1, width + 1, 4), dtype=np.float64)
        return self._planes, self._table

    def release(self) -> None:
        self._planes = None
        self._table = None

    @property
    def allocated(self) -> bool:
        return self._planes is not None

    def _integral(self, buffer: PixelBuffer, field: np.ndarray) -> np.ndarray:
        planes, table = self._ensure(buffer.height, buffer.width)
        planes[..., :3] = buffer.data[..., :3]
        planes[..., 3] = field
        inner = table[1:, 1:]
        np.cumsum(planes, axis=0, out=inner)
        np.cumsum(inner, axis=1, out=planes)
        inner[...] = planes
        return table

    def sample(self, buffer: PixelBuffer, field: np.ndarray, cols: int, rows: int) -> CellSamples:
        width, height = buffer.width, buffer.height
        if field.shape != (height, width):
            raise ValueError(f"luminance field {field.shape} does not match {width}x{height} buffer")
        xb = cell_bounds(width, cols)
        yb = cell_bounds(height, rows)

        table = self._integral(buffer, field)
        x0, x1 = xb[:-1][None, :], xb[1:][None, :]
        y0, y1 = yb[:-1][:, None], yb[1:][:, None]
        sums = table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0]
        counts = ((x1 - x0) * (y1 - y0)).astype(np.float64)

        means = np.zeros_like(sums)
        np.divide(sums, counts[..., None], out=means, where=counts[..., None] > 0)

        colors = np.clip(np.floor(means[..., :3] + 0.5), 0, 255).astype(np.uint8)
        luminance = means[..., 3]

        cx = (x0 + x1) // 2
        cy = (y0 + y1) // 2
        edges = magnitudes(field, cx, cy)
        # Empty cells have no pixels of their own to show an edge.
        edges = np.where(counts > 0, edges, 0.0)

        return CellSamples(
            colors=colors,
            luminance=luminance,
            edges=edges,
            brightness=blend(luminance, edges),
        )
