#!/usr/bin/env python3
# ascii_video/media.py
"""
Media sources: the thin adapter layer that turns files into PixelBuffers.

- ImageSource decodes a still image once with Pillow.
- VideoSource wraps an OpenCV capture and a playback clock. next_frame()
  hands out the next frame only once it is due at the native frame rate, and
  returns None while the playhead has not advanced, is paused, or has ended.
"""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path
from typing import Callable, Optional, Union

import cv2
from PIL import Image, UnidentifiedImageError

from ascii_video.errors import UnsupportedSource
from ascii_video.frames import PixelBuffer

__all__ = ["MediaSource", "ImageSource", "VideoSource", "open_media", "IMAGE_SUFFIXES"]

log = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff"}
DEFAULT_FPS = 30.0


class MediaSource:
    """Interface for anything the render loop can pull frames from."""
    is_video: bool = False
    width: int = 0
    height: int = 0
    fps: float = DEFAULT_FPS

    @property
    def ended(self) -> bool:
        raise NotImplementedError

    @property
    def paused(self) -> bool:
        raise NotImplementedError

    def first_frame(self) -> PixelBuffer:
        raise NotImplementedError

    def next_frame(self) -> Optional[PixelBuffer]:
        raise NotImplementedError

    def play(self) -> None:
        pass

    def pause(self) -> None:
        pass

    def seek_start(self) -> None:
        pass

    def release(self) -> None:
        pass


class ImageSource(MediaSource):
    is_video = False

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        try:
            with Image.open(self.path) as img:
                self._buffer = PixelBuffer.from_image(img)
        except (UnidentifiedImageError, OSError) as e:
            raise UnsupportedSource(f"cannot decode image {self.path}: {e}") from e
        self.width = self._buffer.width
        self.height = self._buffer.height

    @classmethod
    def from_image(cls, img: Image.Image) -> "ImageSource":
        src = cls.__new__(cls)
        src.path = Path("<memory>")
        src._buffer = PixelBuffer.from_image(img)
        src.width = src._buffer.width
        src.height = src._buffer.height
        return src

    @property
    def ended(self) -> bool:
        return True

    @property
    def paused(self) -> bool:
        return True

    def first_frame(self) -> PixelBuffer:
        return self._buffer

    def next_frame(self) -> Optional[PixelBuffer]:
        return None


class VideoSource(MediaSource):
    is_video = True

    def __init__(self, path: Union[str, Path], clock: Callable[[], float] = time.monotonic):
        self.path = Path(path)
        self._clock = clock
        self._cap = cv2.VideoCapture(str(self.path))
        if not self._cap.isOpened():
            self._cap.release()
            raise UnsupportedSource(f"cannot open video {self.path}")

        self.width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self.fps = fps if fps > 0 and math.isfinite(fps) else DEFAULT_FPS
        self.frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)

        self._frame_index = -1          # last frame handed out
        self._playing = False
        self._ended = False
        self._origin_t = 0.0
        self._origin_index = -1
        log.debug("Opened %s (%dx%d @ %.2f fps)", self.path, self.width, self.height, self.fps)

    # -------- state --------

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def paused(self) -> bool:
        return not self._playing

    @property
    def position(self) -> int:
        return self._frame_index

    def play(self) -> None:
        if self._ended:
            self.seek_start()
        self._playing = True
        self._origin_t = self._clock()
        self._origin_index = self._frame_index

    def pause(self) -> None:
        self._playing = False

    def seek_start(self) -> None:
        self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
        self._frame_index = -1
        self._ended = False
        self._origin_t = self._clock()
        self._origin_index = -1

    def release(self) -> None:
        self._playing = False
        self._cap.release()

    # -------- frames --------

    def _read(self) -> Optional[PixelBuffer]:
        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._ended = True
            self._playing = False
            log.debug("End of %s after frame %d", self.path, self._frame_index)
            return None
        self._frame_index += 1
        return PixelBuffer.from_bgr(frame)

    def first_frame(self) -> PixelBuffer:
        self.seek_start()
        buf = self._read()
        if buf is None:
            raise UnsupportedSource(f"no decodable frames in {self.path}")
        return buf

    def next_frame(self) -> Optional[PixelBuffer]:
        if not self._playing or self._ended:
            return None
        due = self._origin_index + int(math.floor((self._clock() - self._origin_t) * self.fps))
        if due <= self._frame_index:
            return None
        return self._read()


def open_media(target: Union[str, Path], cache=None, clock: Callable[[], float] = time.monotonic) -> MediaSource:
    """
    Open a local path or http(s) URL. URLs are fetched through `cache`
    (a MediaCache). Image suffixes go to Pillow, everything else to OpenCV.
    """
    text = str(target)
    if text.startswith(("http://", "https://")):
        if cache is None:
            raise UnsupportedSource(f"no media cache configured to fetch {text}")
        path = cache.fetch(text)
    else:
        path = Path(text).expanduser()
        if not path.exists():
            raise UnsupportedSource(f"no such file: {path}")

    if path.suffix.lower() in IMAGE_SUFFIXES:
        return ImageSource(path)
    return VideoSource(path, clock=clock)
