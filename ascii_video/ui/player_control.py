#!/usr/bin/env python3
# ascii_video/ui/player_control.py
"""prompt_toolkit UIControl that shows the latest ASCII frame."""

from __future__ import annotations

import threading
from typing import List, Optional, Tuple

from prompt_toolkit.application import get_app_or_none
from prompt_toolkit.layout.controls import UIContent, UIControl

from ascii_video.frames import AsciiFrame, FrameFrag, LineFrag
from ascii_video.ui.state import PlayerState


class PlayerControl(UIControl):
    """Display frames pushed by the render loop, cropped to the window."""

    def __init__(self, state: PlayerState):
        self.state = state
        self._frame: Optional[AsciiFrame] = None
        self._lines: Optional[FrameFrag] = None
        self._lines_key: Tuple[int, bool] = (0, False)
        self._lock = threading.Lock()
        self._window = None

    # -------- frame delivery --------

    def set_frame(self, frame: Optional[AsciiFrame]) -> None:
        with self._lock:
            self._frame = frame
            self._lines = None
        app = get_app_or_none()
        if app:
            app.invalidate()

    def clear(self) -> None:
        self.set_frame(None)

    # -------- UIControl interface --------

    def is_focusable(self) -> bool:
        return True

    def preferred_width(self, max_available_width: int) -> int:
        return max_available_width

    def preferred_height(
        self,
        width: int,
        max_available_height: int,
        wrap_lines: bool,
        get_line_prefix,
    ) -> int:
        return max_available_height

    def create_content(self, width: int, height: int) -> UIContent:
        width = max(1, int(width))
        height = max(1, int(height))

        lines = self._current_lines()
        if lines is None:
            return self._blank_content(width, height)

        fitted = [self._fit_line(lines[y], width) if y < len(lines) else [("", " " * width)]
                  for y in range(height)]
        return UIContent(
            get_line=lambda i: fitted[i] if 0 <= i < height else [("", " " * width)],
            line_count=height,
        )

    def bind_window(self, window) -> None:
        """Remember the Window that hosts this control for focus management."""

        self._window = window

    def focus(self) -> None:
        app = get_app_or_none()
        if app and self._window is not None:
            app.layout.focus(self._window)

    # -------- helpers --------

    def _current_lines(self) -> Optional[FrameFrag]:
        with self._lock:
            frame = self._frame
            if frame is None:
                return None
            key = (id(frame), self.state.use_color)
            if self._lines is None or key != self._lines_key:
                self._lines = frame.lines_frag(self.state.use_color)
                self._lines_key = key
            return self._lines

    @staticmethod
    def _fit_line(line: LineFrag, width: int) -> LineFrag:
        out: List[Tuple[str, str]] = []
        used = 0
        for style, text in line:
            if used >= width:
                break
            take = text[: width - used]
            out.append((style, take))
            used += len(take)
        if used < width:
            out.append(("", " " * (width - used)))
        return out

    @staticmethod
    def _blank_content(width: int, height: int) -> UIContent:
        empty_line = [("", " " * width)]
        return UIContent(
            get_line=lambda i: empty_line,
            line_count=height,
        )
