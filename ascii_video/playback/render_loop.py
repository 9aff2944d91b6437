#!/usr/bin/env python3
# ascii_video/playback/render_loop.py
"""
Render loop: drives FrameConverter from a MediaSource.

States:
    IDLE -> LOADED -> PLAYING <-> PAUSED -> IDLE (reset)
    IDLE -> LOADED -> CONVERTING -> DONE           (images, one pass)

Each tick converts at most one frame and schedules the next one only after it
has finished. pause() and reset() cancel the pending tick before touching
state. Every load/reset advances an epoch; a frame finished under an older
epoch, or after the loop went IDLE, is dropped instead of emitted.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

from ascii_video.errors import DegenerateDimensions, UnsupportedSource
from ascii_video.frames import AsciiFrame, OutputDimensions, PixelBuffer
from ascii_video.media import MediaSource
from ascii_video.playback.scheduler import Scheduler
from ascii_video.rendering.converter import FrameConverter
from ascii_video.rendering.dimensions import plan

__all__ = ["LoopState", "RenderLoop"]

log = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"
    CONVERTING = "converting"
    DONE = "done"


class RenderLoop:
    def __init__(
        self,
        scheduler: Scheduler,
        on_frame: Callable[[AsciiFrame], None],
        converter: Optional[FrameConverter] = None,
        video_rows: int = 80,
        image_rows: int = 120,
    ):
        self.scheduler = scheduler
        self.on_frame = on_frame
        self.converter = converter or FrameConverter()
        self.video_rows = video_rows
        self.image_rows = image_rows

        self.state = LoopState.IDLE
        self.source: Optional[MediaSource] = None
        self.dimensions: Optional[OutputDimensions] = None
        self.last_frame: Optional[AsciiFrame] = None
        self.frames_emitted = 0
        self.skipped_ticks = 0
        self.last_render_ms = 0.0

        self._pending: Any = None
        self._tick_seq = 0
        self._epoch = 0
        self._lock = threading.RLock()

    # ------------- queries -------------

    @property
    def finished(self) -> bool:
        """True once a video has played to its end or an image is done."""
        with self._lock:
            if self.state == LoopState.DONE:
                return True
            return self.source is not None and self.source.is_video and self.source.ended

    # ------------- lifecycle -------------

    def load(self, source: MediaSource) -> None:
        with self._lock:
            if self.state != LoopState.IDLE:
                self._reset_locked()
            self._epoch += 1
            epoch = self._epoch
            self.source = source
            self.dimensions = self._plan(source.width, source.height)
            self.state = LoopState.LOADED
            log.info(
                "Loaded %s source %dx%d -> %s",
                "video" if source.is_video else "image",
                source.width, source.height,
                f"{self.dimensions.cols}x{self.dimensions.rows}" if self.dimensions else "no grid",
            )
            if not source.is_video:
                self.state = LoopState.CONVERTING

        self._render(epoch, source.first_frame)

        if not source.is_video:
            with self._lock:
                if epoch == self._epoch and self.state == LoopState.CONVERTING:
                    self.state = LoopState.DONE

    def play(self) -> bool:
        with self._lock:
            if self.state == LoopState.PLAYING:
                return True
            if self.state not in (LoopState.LOADED, LoopState.PAUSED):
                log.debug("play() ignored in state %s", self.state.value)
                return False
            self.source.play()
            self.state = LoopState.PLAYING
            self._schedule_locked()
            return True

    def pause(self) -> bool:
        with self._lock:
            if self.state != LoopState.PLAYING:
                return False
            self._cancel_locked()
            self.source.pause()
            self.state = LoopState.PAUSED
            return True

    def rewind(self) -> bool:
        """Seek to the first frame and show it; keeps playing if it was."""
        with self._lock:
            if self.state not in (LoopState.LOADED, LoopState.PLAYING, LoopState.PAUSED):
                return False
            was_playing = self.state == LoopState.PLAYING
            self._cancel_locked()
            source = self.source
            epoch = self._epoch

        self._render(epoch, source.first_frame)

        with self._lock:
            if was_playing and epoch == self._epoch and self.state == LoopState.PLAYING:
                source.play()
                self._schedule_locked()
        return True

    def reset(self) -> None:
        with self._lock:
            if self.state == LoopState.IDLE:
                return
            self._reset_locked()
            log.info("Render loop reset")

    # ------------- internals -------------

    def _plan(self, width: int, height: int) -> Optional[OutputDimensions]:
        rows = self.video_rows if self.source is not None and self.source.is_video else self.image_rows
        try:
            return plan(width, height, rows)
        except DegenerateDimensions as e:
            log.warning("No output grid: %s", e)
            return None

    def _reset_locked(self) -> None:
        self._cancel_locked()
        self._epoch += 1
        if self.source is not None:
            self.source.pause()
            self.source.release()
        self.converter.release_buffers()
        self.source = None
        self.dimensions = None
        self.last_frame = None
        self.state = LoopState.IDLE

    def _schedule_locked(self) -> None:
        self._tick_seq += 1
        seq, epoch = self._tick_seq, self._epoch
        self._pending = self.scheduler.schedule(lambda: self._tick(epoch, seq))

    def _cancel_locked(self) -> None:
        self._tick_seq += 1
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None

    def _current(self, epoch: int, seq: int) -> bool:
        return epoch == self._epoch and seq == self._tick_seq and self.state == LoopState.PLAYING

    def _tick(self, epoch: int, seq: int) -> None:
        with self._lock:
            if not self._current(epoch, seq):
                return
            self._pending = None
            source = self.source

        if source.ended or source.paused:
            self._on_stalled(epoch, seq, source)
            return

        self._render(epoch, source.next_frame)

        with self._lock:
            if not self._current(epoch, seq):
                return
            if source.ended:
                self._on_stalled(epoch, seq, source)
                return
            self._schedule_locked()

    def _on_stalled(self, epoch: int, seq: int, source: MediaSource) -> None:
        with self._lock:
            if self._current(epoch, seq) and source.ended:
                self.state = LoopState.PAUSED
                log.info("Source ended after %d frames", self.frames_emitted)

    def _render(self, epoch: int, fetch: Callable[[], Optional[PixelBuffer]]) -> bool:
        """Fetch, convert and emit one frame. False when nothing was emitted."""
        try:
            buf = fetch()
            if buf is None:
                return False
            with self._lock:
                if epoch != self._epoch:
                    return False
                source = self.source
                dims = self.dimensions
                if dims is None or (buf.width, buf.height) != (source.width, source.height):
                    # Source geometry changed under us (or was unusable): re-plan.
                    source.width, source.height = buf.width, buf.height
                    self.dimensions = dims = self._plan(buf.width, buf.height)
                if dims is None:
                    raise DegenerateDimensions("no output grid for this source")
            t0 = time.perf_counter()
            frame = self.converter.convert(buf, dims)
            elapsed_ms = (time.perf_counter() - t0) * 1000.0
        except (UnsupportedSource, DegenerateDimensions) as e:
            with self._lock:
                self.skipped_ticks += 1
            log.debug("Skipped frame: %s", e)
            return False

        with self._lock:
            if epoch != self._epoch or self.state == LoopState.IDLE:
                if self.state == LoopState.IDLE:
                    self.converter.release_buffers()
                log.debug("Discarded stale frame")
                return False
            self.last_frame = frame
            self.frames_emitted += 1
            self.last_render_ms = elapsed_ms
            self.on_frame(frame)
        return True
