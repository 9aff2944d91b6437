#!/usr/bin/env python3
# ascii_video/ui/statusbar.py

from __future__ import annotations
from prompt_toolkit.widgets import Label

from ascii_video.playback.render_loop import RenderLoop
from ascii_video.recording import RecordingSink
from ascii_video.ui.state import PlayerState
from ascii_video.config import Config


class StatusBar:
    def __init__(self, state: PlayerState, loop: RenderLoop, sink: RecordingSink, cfg: Config):
        self.state = state
        self.loop = loop
        self.sink = sink
        self.cfg = cfg
        self.label = Label(self.text, style="class:status")

    def __pt_container__(self):
        return self.label

    def text(self) -> str:
        dims = self.loop.dimensions
        grid = f"{dims.cols}x{dims.rows}" if dims else "-"
        color = "color" if self.state.use_color else "mono"
        parts = [f" {self.loop.state.value:<10}", f"grid={grid}", color]
        if self.cfg["ui"].get("show_latency_ms", True):
            parts.append(f"render={self.loop.last_render_ms:.1f}ms")
        parts.append(f"frames={self.loop.frames_emitted}")
        if self.sink.is_recording:
            parts.append("[REC]")
        info = self.state.info_msg
        if info:
            parts.append(info)
        return "  ".join(parts)
