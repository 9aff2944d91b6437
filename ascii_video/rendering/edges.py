#!/usr/bin/env python3
# ascii_video/rendering/edges.py
"""
Sobel gradient magnitude over a luminance field.

Sampling is edge-replicate: neighbour coordinates are clamped into the image,
so border pixels are not darkened by zero padding. The magnitude is not
clamped (about 1443 at most for 8-bit input).
"""

from __future__ import annotations

import math

import numpy as np

__all__ = ["SOBEL_X", "SOBEL_Y", "magnitude", "magnitudes"]

SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)

SOBEL_Y = np.array([[-1, -2, -1],
                    [ 0,  0,  0],
                    [ 1,  2,  1]], dtype=np.float64)


def _clamp(v: int, lo: int, hi: int) -> int:
    return lo if v < lo else hi if v > hi else v


def magnitude(field: np.ndarray, x: int, y: int, width: int, height: int) -> float:
    """Sobel magnitude at a single pixel."""
    gx = 0.0
    gy = 0.0
    for ky in range(3):
        sy = _clamp(y + ky - 1, 0, height - 1)
        for kx in range(3):
            sx = _clamp(x + kx - 1, 0, width - 1)
            v = float(field[sy, sx])
            gx += SOBEL_X[ky, kx] * v
            gy += SOBEL_Y[ky, kx] * v
    return math.sqrt(gx * gx + gy * gy)


def magnitudes(field: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Sobel magnitude at many pixels at once.
    xs, ys are broadcastable integer coordinate arrays; result has their shape.
    """
    height, width = field.shape
    xs = np.asarray(xs, dtype=np.intp)
    ys = np.asarray(ys, dtype=np.intp)
    gx = np.zeros(np.broadcast(xs, ys).shape, dtype=np.float64)
    gy = np.zeros_like(gx)
    for ky in range(3):
        sy = np.clip(ys + (ky - 1), 0, height - 1)
        for kx in range(3):
            wx = SOBEL_X[ky, kx]
            wy = SOBEL_Y[ky, kx]
            if wx == 0 and wy == 0:
                continue
            sx = np.clip(xs + (kx - 1), 0, width - 1)
            v = field[sy, sx]
            if wx:
                gx += wx * v
            if wy:
                gy += wy * v
    return np.sqrt(gx * gx + gy * gy)
