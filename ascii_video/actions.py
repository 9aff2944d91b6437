#!/usr/bin/env python3
# ascii_video/actions.py
"""
Shared player actions used by the key bindings and the CLI.
Each action drives the render loop or the recorder and leaves a short
message in PlayerState for the status bar.
"""

from __future__ import annotations

import logging

from ascii_video.errors import AsciiVideoError
from ascii_video.media import open_media
from ascii_video.playback.render_loop import LoopState, RenderLoop
from ascii_video.recording import RecordingSink
from ascii_video.rendering.raster import RasterSurface
from ascii_video.ui.player_control import PlayerControl
from ascii_video.ui.state import PlayerState

log = logging.getLogger(__name__)


def load(state: PlayerState, loop: RenderLoop, cache=None) -> bool:
    if not state.media:
        state.set_info("No media to load")
        return False
    try:
        source = open_media(state.media, cache=cache)
    except AsciiVideoError as e:
        log.warning("Cannot open %s: %s", state.media, e)
        state.set_info(f"Cannot open media: {e}")
        return False
    loop.load(source)
    state.set_info(f"Loaded {state.media}")
    return True


def toggle_play(state: PlayerState, loop: RenderLoop) -> None:
    if loop.state == LoopState.PLAYING:
        loop.pause()
        state.set_info("Paused")
    elif loop.play():
        state.set_info("Playing")
    else:
        state.set_info(f"Nothing to play ({loop.state.value})")


def rewind(state: PlayerState, loop: RenderLoop) -> None:
    if loop.rewind():
        state.set_info("Back to start")


def reset(state: PlayerState, loop: RenderLoop, control: PlayerControl,
          sink: RecordingSink, surface: RasterSurface) -> None:
    if sink.is_recording:
        stop_recording(state, sink)
    loop.reset()
    control.clear()
    surface.clear()
    state.set_info("Reset. Press l to load again.")


def start_recording(state: PlayerState, loop: RenderLoop, sink: RecordingSink,
                    surface: RasterSurface) -> bool:
    # The surface is only kept current while recording; seed it first.
    if loop.last_frame is not None:
        surface.present(loop.last_frame)
    try:
        sink.start(surface)
    except AsciiVideoError as e:
        state.set_info(f"Recording unavailable: {e}")
        return False
    loop.play()
    state.set_info("Recording")
    return True


def stop_recording(state: PlayerState, sink: RecordingSink) -> None:
    try:
        result = sink.stop()
    except AsciiVideoError as e:
        state.set_info(str(e))
        return
    where = result.path or result.filename
    state.set_info(f"Saved {where} ({len(result.data)} bytes)")


def toggle_recording(state: PlayerState, loop: RenderLoop, sink: RecordingSink,
                     surface: RasterSurface) -> None:
    if sink.is_recording:
        stop_recording(state, sink)
        loop.pause()
    else:
        start_recording(state, loop, sink, surface)


def export_image(state: PlayerState, loop: RenderLoop, sink: RecordingSink,
                 surface: RasterSurface) -> None:
    if loop.last_frame is None:
        state.set_info("Nothing rendered yet")
        return
    surface.present(loop.last_frame)
    try:
        path = sink.export_image(surface)
    except (AsciiVideoError, OSError) as e:
        state.set_info(f"Export failed: {e}")
        return
    state.set_info(f"Exported {path}")


def toggle_color(state: PlayerState) -> None:
    on = state.toggle_color()
    state.set_info("Colour on" if on else "Colour off")
