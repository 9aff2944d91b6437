"""Shared fixtures: synthetic pixel buffers and scripted media sources."""

from typing import List, Optional, Union

import numpy as np
import pytest

from ascii_video.frames import PixelBuffer
from ascii_video.media import MediaSource
from ascii_video.playback.scheduler import ManualScheduler


def solid(width: int, height: int, rgb=(0, 0, 0)) -> PixelBuffer:
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[..., 0], data[..., 1], data[..., 2] = rgb
    data[..., 3] = 255
    return PixelBuffer(data)


def random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


class ScriptedVideo(MediaSource):
    """
    In-memory video. Items may be exceptions, which are raised when that
    frame is fetched. Set `stall` to make the playhead stop advancing.
    """
    is_video = True

    def __init__(self, frames: List[Union[PixelBuffer, Exception]], width: Optional[int] = None,
                 height: Optional[int] = None):
        self.frames = frames
        first = next((f for f in frames if isinstance(f, PixelBuffer)), None)
        self.width = width if width is not None else (first.width if first else 0)
        self.height = height if height is not None else (first.height if first else 0)
        self.index = -1
        self.playing = False
        self._ended = False
        self.stall = False
        self.released = False

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def paused(self) -> bool:
        return not self.playing

    def _get(self, i: int) -> PixelBuffer:
        item = self.frames[i]
        if isinstance(item, Exception):
            raise item
        return item

    def first_frame(self) -> PixelBuffer:
        self.index = 0
        self._ended = False
        return self._get(0)

    def next_frame(self) -> Optional[PixelBuffer]:
        if self.stall or not self.playing:
            return None
        if self.index + 1 >= len(self.frames):
            self._ended = True
            self.playing = False
            return None
        self.index += 1
        return self._get(self.index)

    def play(self) -> None:
        if self._ended:
            self.index = -1
            self._ended = False
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek_start(self) -> None:
        self.index = -1
        self._ended = False

    def release(self) -> None:
        self.released = True


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def gray_video():
    """Three 32x24 frames: black, mid grey, white."""
    return ScriptedVideo([solid(32, 24, (v, v, v)) for v in (0, 128, 255)])
