#!/usr/bin/env python3
# ascii_video/errors.py
"""
Error taxonomy for the ASCII conversion engine and its recording path.

Frame-level errors (UnsupportedSource, DegenerateDimensions) are fatal for one
frame only; the render loop catches them and waits for the next tick.
Recording errors surface to whoever started the recording.
"""

__all__ = [
    "AsciiVideoError",
    "UnsupportedSource",
    "DegenerateDimensions",
    "RecordingUnavailable",
    "RecordingAlreadyActive",
]


class AsciiVideoError(Exception):
    """Base class for all engine errors."""


class UnsupportedSource(AsciiVideoError):
    """Pixel data could not be read or decoded as RGBA8."""


class DegenerateDimensions(AsciiVideoError):
    """Source or output grid has a zero or negative dimension."""


class RecordingUnavailable(AsciiVideoError):
    """Capture stream could not be created, or there is nothing to stop."""


class RecordingAlreadyActive(AsciiVideoError):
    """start() was called while a recording session is running."""
