#!/usr/bin/env python3
# ascii_video/ui/app.py
"""Compose the prompt_toolkit application for the ASCII video player."""

from typing import Optional

from prompt_toolkit.application import Application
from prompt_toolkit.layout import Layout, HSplit, Window
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style

from ascii_video import actions
from ascii_video.cache import MediaCache
from ascii_video.config import Config
from ascii_video.frames import AsciiFrame
from ascii_video.playback.render_loop import RenderLoop
from ascii_video.playback.scheduler import AsyncioScheduler
from ascii_video.recording import RecordingSink
from ascii_video.rendering.converter import FrameConverter
from ascii_video.rendering.raster import RasterSurface
from ascii_video.ui.helppane import HelpPane
from ascii_video.ui.player_control import PlayerControl
from ascii_video.ui.state import PlayerState
from ascii_video.ui.statusbar import StatusBar


class AsciiVideoApp:
    def __init__(self, cfg: Config, media: Optional[str] = None, autoplay: bool = False):
        self.cfg = cfg
        self.autoplay = autoplay
        self.state = PlayerState(cfg, media=media)
        self.cache = MediaCache.from_config(cfg)
        self.cache.prune(cfg["cache"]["max_bytes"], cfg["cache"]["prune_watermark"])
        self.surface = RasterSurface()
        self.sink = RecordingSink.from_config(cfg)
        self.control = PlayerControl(self.state)
        self.loop = RenderLoop(
            AsyncioScheduler(fps=cfg["app"]["fps_limit"]),
            self._on_frame,
            converter=FrameConverter(ramp_name=cfg["render"]["ramp"]),
            video_rows=cfg["render"]["video_rows"],
            image_rows=cfg["render"]["image_rows"],
        )
        self.status = StatusBar(self.state, self.loop, self.sink, cfg)
        self.help_pane = HelpPane()

        self.player_window = Window(
            content=self.control,
            dont_extend_width=False,
            wrap_lines=False,
        )
        self.control.bind_window(self.player_window)
        self.root = HSplit([
            self.player_window,
            Window(height=1, char="-", style="class:status"),
            self.status,
            self.help_pane,
        ])

        self.kb = self._build_key_bindings()
        self.app = Application(
            layout=Layout(self.root, focused_element=self.player_window),
            key_bindings=self.kb,
            full_screen=True,
            style=Style.from_dict({
                "status": "bg:#111111 #00ff41",
                "help": "bg:#0a0a0a #cccccc",
            }),
            mouse_support=cfg["ui"]["mouse"],
            refresh_interval=0.5,
        )

    def _on_frame(self, frame: AsciiFrame) -> None:
        # Only pay for rasterising while something is capturing it.
        if self.sink.is_recording:
            self.surface.present(frame)
        self.control.set_frame(frame)

    def _build_key_bindings(self):
        kb = KeyBindings()

        @kb.add("q")
        def _(event):
            event.app.exit()

        @kb.add("space")
        def _(event):
            actions.toggle_play(self.state, self.loop)

        @kb.add("0")
        def _(event):
            actions.rewind(self.state, self.loop)

        @kb.add("x")
        def _(event):
            actions.reset(self.state, self.loop, self.control, self.sink, self.surface)
            self.control.focus()

        @kb.add("l")
        def _(event):
            actions.load(self.state, self.loop, cache=self.cache)

        @kb.add("c")
        def _(event):
            actions.toggle_recording(self.state, self.loop, self.sink, self.surface)

        @kb.add("e")
        def _(event):
            actions.export_image(self.state, self.loop, self.sink, self.surface)

        @kb.add("m")
        def _(event):
            actions.toggle_color(self.state)
            event.app.invalidate()

        @kb.add("h")
        def _(event):
            self.help_pane.toggle()
            self.control.focus()
            event.app.invalidate()

        return kb

    def _pre_run(self) -> None:
        self.control.focus()
        if self.state.media:
            actions.load(self.state, self.loop, cache=self.cache)
            if self.autoplay:
                actions.toggle_play(self.state, self.loop)

    def run(self):
        try:
            self.app.run(pre_run=self._pre_run)
        finally:
            if self.sink.is_recording:
                actions.stop_recording(self.state, self.sink)
            self.loop.reset()
