#!/usr/bin/env python3
# ascii_video/recording.py
"""
Recording of the rendered output.

RecordingSink only ever looks at a RasterSurface snapshot, never at the
converter, so recording can start, fail or stop without affecting playback.

A capture stream samples the surface on its own thread at a fixed rate,
encodes it, and on stop hands the encoded container back as a sequence of
byte chunks followed by a finalize callback. The sink keeps the non-empty
chunks in arrival order, joins them into one blob, and writes it out as
ascii-video-<ms>.<ext>.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

import cv2
import numpy as np
from PIL import Image

from ascii_video.errors import RecordingAlreadyActive, RecordingUnavailable
from ascii_video.rendering.raster import RasterSurface

__all__ = [
    "CaptureStream",
    "VideoWriterCapture",
    "RecordingSession",
    "FinalizedRecording",
    "RecordingSink",
    "IMAGE_EXPORT_NAME",
]

log = logging.getLogger(__name__)

IMAGE_EXPORT_NAME = "ascii-image.png"


def _ignore_chunk(chunk: bytes) -> None:
    pass


def _ignore_stop() -> None:
    pass


class CaptureStream:
    """Interface for a real-time capture of a surface."""

    def __init__(self):
        self.on_data: Callable[[bytes], None] = _ignore_chunk
        self.on_stop: Callable[[], None] = _ignore_stop

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class VideoWriterCapture(CaptureStream):
    """Encode surface snapshots with an OpenCV VideoWriter into a temp file."""

    def __init__(
        self,
        surface: RasterSurface,
        fps: int = 30,
        fourcc: str = "mp4v",
        container: str = "mp4",
        chunk_bytes: int = 64 * 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.surface = surface
        self.fps = fps
        self.fourcc = fourcc
        self.container = container
        self.chunk_bytes = chunk_bytes
        self._clock = clock
        self.frames_written = 0

        self._writer: Optional[cv2.VideoWriter] = None
        self._tmp: Optional[str] = None
        self._size = (0, 0)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        size = self.surface.size
        if size is None:
            raise RecordingUnavailable("nothing has been rendered to record yet")

        fd, tmp = tempfile.mkstemp(prefix="ascii_video_", suffix="." + self.container)
        os.close(fd)
        writer = cv2.VideoWriter(tmp, cv2.VideoWriter_fourcc(*self.fourcc), float(self.fps), size)
        if not writer.isOpened():
            writer.release()
            os.remove(tmp)
            raise RecordingUnavailable(f"cannot encode {self.fourcc} into .{self.container}")

        self._writer, self._tmp, self._size = writer, tmp, size
        self._write_snapshot()
        self._stop.clear()
        self._thread = threading.Thread(target=self._capture_worker, name="capture", daemon=True)
        self._thread.start()
        log.info("Recording %dx%d at %d fps (%s)", size[0], size[1], self.fps, self.fourcc)

    def _write_snapshot(self) -> None:
        img = self.surface.snapshot()
        if img is None:
            return
        if img.size != self._size:
            img = img.resize(self._size, Image.NEAREST)
        self._writer.write(cv2.cvtColor(np.asarray(img), cv2.COLOR_RGB2BGR))
        self.frames_written += 1

    def _capture_worker(self) -> None:
        interval = 1.0 / self.fps
        next_t = self._clock() + interval
        while not self._stop.is_set():
            wait = next_t - self._clock()
            if wait > 0 and self._stop.wait(wait):
                break
            self._write_snapshot()
            next_t += interval
            if next_t < self._clock():
                next_t = self._clock() + interval

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._writer is None:
            self.on_stop()
            return
        self._writer.release()
        self._writer = None
        try:
            with open(self._tmp, "rb") as f:
                while True:
                    chunk = f.read(self.chunk_bytes)
                    if not chunk:
                        break
                    self.on_data(chunk)
        finally:
            try:
                os.remove(self._tmp)
            except OSError:
                pass
            self._tmp = None
        log.info("Capture stopped after %d frames", self.frames_written)
        self.on_stop()


@dataclass
class RecordingSession:
    chunks: List[bytes] = field(default_factory=list)
    is_active: bool = True

    def append(self, chunk: bytes) -> None:
        if chunk:
            self.chunks.append(bytes(chunk))

    @property
    def size(self) -> int:
        return sum(len(c) for c in self.chunks)


@dataclass(frozen=True)
class FinalizedRecording:
    data: bytes
    filename: str
    path: Optional[Path]


CaptureFactory = Callable[[RasterSurface, int], CaptureStream]


class RecordingSink:
    def __init__(
        self,
        out_dir: Optional[Union[str, Path]] = None,
        fps: int = 30,
        extension: str = "mp4",
        capture_factory: Optional[CaptureFactory] = None,
        finalize_timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        self.out_dir = Path(out_dir) if out_dir is not None else None
        self.fps = fps
        self.extension = extension
        self.capture_factory = capture_factory or (lambda surface, fps: VideoWriterCapture(surface, fps))
        self.finalize_timeout = finalize_timeout
        self._clock = clock

        self._session: Optional[RecordingSession] = None
        self._capture: Optional[CaptureStream] = None
        self._finalized: Optional[threading.Event] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg) -> "RecordingSink":
        rec = cfg["record"]

        def factory(surface: RasterSurface, fps: int) -> CaptureStream:
            return VideoWriterCapture(
                surface,
                fps=fps,
                fourcc=rec["fourcc"],
                container=rec["container"],
                chunk_bytes=rec["chunk_bytes"],
            )

        return cls(
            out_dir=cfg.out_dir,
            fps=rec["fps"],
            extension=rec["container"],
            capture_factory=factory,
            finalize_timeout=rec["finalize_timeout_s"],
        )

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._session is not None and self._session.is_active

    def start(self, surface: RasterSurface) -> RecordingSession:
        with self._lock:
            if self._session is not None and self._session.is_active:
                raise RecordingAlreadyActive("a recording is already running")

            session = RecordingSession()
            finalized = threading.Event()
            try:
                capture = self.capture_factory(surface, self.fps)
                capture.on_data = session.append
                capture.on_stop = finalized.set
                capture.start()
            except RecordingUnavailable as e:
                log.warning("Recording unavailable: %s", e)
                raise
            except (cv2.error, OSError) as e:
                log.warning("Recording unavailable: %s", e)
                raise RecordingUnavailable(str(e)) from e

            self._session, self._capture, self._finalized = session, capture, finalized
            return session

    def stop(self, session: Optional[RecordingSession] = None) -> FinalizedRecording:
        """
        Finalize the active session. The session ends here even when the
        capture fails to flush; that failure is raised as RecordingUnavailable.
        """
        with self._lock:
            active = self._session
            if active is None or not active.is_active:
                raise RecordingUnavailable("no recording is running")
            if session is not None and session is not active:
                raise RecordingUnavailable("session is not the active recording")
            capture, finalized = self._capture, self._finalized

        try:
            capture.stop()
            if not finalized.wait(self.finalize_timeout):
                log.warning("Recording did not finalize within %.1fs; keeping %d chunks",
                            self.finalize_timeout, len(active.chunks))
            data = b"".join(active.chunks)
        except (cv2.error, OSError) as e:
            log.warning("Recording could not be finalized: %s", e)
            raise RecordingUnavailable(f"recording could not be finalized: {e}") from e
        finally:
            with self._lock:
                active.chunks.clear()
                active.is_active = False
                self._session = self._capture = self._finalized = None

        filename = f"ascii-video-{int(self._clock() * 1000)}.{self.extension}"
        path = self._download(filename, data)
        return FinalizedRecording(data=data, filename=filename, path=path)

    def _download(self, filename: str, data: bytes) -> Optional[Path]:
        if self.out_dir is None:
            return None
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / filename
        path.write_bytes(data)
        log.info("Saved %s (%d bytes)", path, len(data))
        return path

    def export_image(self, surface: RasterSurface, filename: str = IMAGE_EXPORT_NAME) -> Path:
        """Write the current raster as a PNG still."""
        img = surface.snapshot()
        if img is None:
            raise RecordingUnavailable("nothing has been rendered to export yet")
        out_dir = self.out_dir or Path.cwd()
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / filename
        img.save(path, "PNG")
        log.info("Exported %s", path)
        return path
