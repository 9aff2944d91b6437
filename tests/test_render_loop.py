"""Render loop lifecycle, driven synchronously through ManualScheduler."""

import numpy as np
from PIL import Image

from ascii_video.errors import DegenerateDimensions, UnsupportedSource
from ascii_video.media import ImageSource
from ascii_video.playback.render_loop import LoopState, RenderLoop
from ascii_video.playback.scheduler import ManualScheduler
from ascii_video.rendering.converter import FrameConverter

from conftest import ScriptedVideo, solid


class HookedConverter(FrameConverter):
    """Runs `hook` once, right after the next conversion finishes."""

    def __init__(self):
        super().__init__()
        self.hook = None

    def convert(self, buffer, dims):
        frame = super().convert(buffer, dims)
        if self.hook is not None:
            hook, self.hook = self.hook, None
            hook()
        return frame


class LeakyScheduler(ManualScheduler):
    """Ignores cancel(), like a host that already dispatched the callback."""

    def cancel(self, handle):
        pass


def make_loop(scheduler, converter=None):
    frames = []
    loop = RenderLoop(scheduler, frames.append, converter=converter, video_rows=6, image_rows=12)
    return loop, frames


class TestLoad:
    def test_video_load_renders_first_frame(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        assert loop.state == LoopState.LOADED
        assert loop.dimensions == (16, 6)        # round(6 * 32/24 * 2)
        assert len(frames) == 1
        assert scheduler.pending == 0

    def test_image_is_converted_once(self, scheduler):
        loop, frames = make_loop(scheduler)
        loop.load(ImageSource.from_image(Image.new("RGB", (64, 48), (255, 255, 255))))
        assert loop.state == LoopState.DONE
        assert loop.dimensions.rows == 12
        assert len(frames) == 1
        assert loop.play() is False
        assert scheduler.pending == 0
        assert loop.finished

    def test_unreadable_first_frame_is_skipped(self, scheduler):
        loop, frames = make_loop(scheduler)
        loop.load(ScriptedVideo([UnsupportedSource("bad decode")], width=32, height=24))
        assert loop.state == LoopState.LOADED
        assert frames == []
        assert loop.skipped_ticks == 1

    def test_degenerate_source_does_not_crash(self, scheduler):
        loop, frames = make_loop(scheduler)
        loop.load(ScriptedVideo([DegenerateDimensions("0x0")], width=0, height=0))
        assert loop.dimensions is None
        assert frames == []

    def test_loading_again_resets_previous_source(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        other = ScriptedVideo([solid(48, 24)])
        loop.load(other)
        assert gray_video.released
        assert loop.state == LoopState.LOADED
        assert loop.dimensions == (24, 6)
        # The tick scheduled for the old source was cancelled.
        assert scheduler.pending == 0


class TestPlayback:
    def test_plays_every_frame_in_order_then_pauses(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        assert loop.play()
        assert loop.state == LoopState.PLAYING
        scheduler.run()
        assert len(frames) == 3
        assert frames[0].cell(0, 0).glyph == " "
        assert frames[2].cell(0, 0).glyph != " "
        assert loop.state == LoopState.PAUSED
        assert loop.finished
        assert scheduler.pending == 0

    def test_one_tick_one_frame(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        assert scheduler.step()
        assert len(frames) == 2
        assert scheduler.pending == 1

    def test_stalled_source_skips_conversion_but_keeps_ticking(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        gray_video.stall = True
        scheduler.step()
        scheduler.step()
        assert len(frames) == 1
        assert scheduler.pending == 1
        gray_video.stall = False
        scheduler.step()
        assert len(frames) == 2

    def test_bad_frame_skipped_and_loop_continues(self, scheduler):
        video = ScriptedVideo([solid(32, 24), UnsupportedSource("corrupt"), solid(32, 24, (90, 90, 90))])
        loop, frames = make_loop(scheduler)
        loop.load(video)
        loop.play()
        scheduler.run()
        assert len(frames) == 2
        assert loop.skipped_ticks == 1

    def test_pause_cancels_pending_tick(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        assert loop.pause()
        assert loop.state == LoopState.PAUSED
        assert scheduler.pending == 0
        assert not gray_video.playing
        assert scheduler.step() is False
        assert len(frames) == 1

    def test_resume_after_pause(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        loop.pause()
        loop.play()
        scheduler.run()
        assert len(frames) == 3

    def test_stale_tick_after_pause_is_ignored(self):
        scheduler = LeakyScheduler()
        video = ScriptedVideo([solid(32, 24)] * 5)
        loop, frames = make_loop(scheduler)
        loop.load(video)
        loop.play()
        loop.pause()
        loop.play()
        # Two callbacks are queued; only the newest may render or reschedule.
        assert scheduler.pending == 2
        scheduler.step()
        assert len(frames) == 1
        scheduler.step()
        assert len(frames) == 2
        assert scheduler.pending == 1

    def test_rewind_shows_first_frame(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        scheduler.step()
        scheduler.step()
        loop.pause()
        assert loop.rewind()
        assert np.array_equal(frames[-1].levels, frames[0].levels)
        assert loop.state == LoopState.PAUSED

    def test_play_after_end_restarts(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        scheduler.run()
        assert loop.play()
        scheduler.run()
        assert len(frames) == 6


class TestReset:
    def test_reset_on_idle_is_noop(self, scheduler):
        loop, frames = make_loop(scheduler)
        loop.reset()
        assert loop.state == LoopState.IDLE
        assert loop.source is None
        assert loop.dimensions is None
        assert loop.last_frame is None
        assert loop.frames_emitted == 0
        loop.reset()
        assert loop.state == LoopState.IDLE

    def test_reset_releases_everything(self, scheduler, gray_video):
        loop, frames = make_loop(scheduler)
        loop.load(gray_video)
        loop.play()
        loop.reset()
        assert loop.state == LoopState.IDLE
        assert loop.dimensions is None
        assert loop.last_frame is None
        assert loop.source is None
        assert gray_video.released
        assert not loop.converter.buffers_allocated
        assert scheduler.pending == 0

    def test_pause_then_reset_mid_tick_emits_nothing(self, scheduler, gray_video):
        """A conversion in flight when the loop is reset must be discarded."""
        converter = HookedConverter()
        loop, frames = make_loop(scheduler, converter)
        loop.load(gray_video)
        loop.play()
        emitted_before = len(frames)

        def interrupt():
            loop.pause()
            loop.reset()

        converter.hook = interrupt
        scheduler.run()
        assert len(frames) == emitted_before
        assert loop.state == LoopState.IDLE
        assert loop.last_frame is None
        assert scheduler.pending == 0
        assert not converter.buffers_allocated

    def test_ticks_after_reset_do_nothing(self):
        scheduler = LeakyScheduler()
        loop, frames = make_loop(scheduler)
        loop.load(ScriptedVideo([solid(32, 24)] * 4))
        loop.play()
        loop.reset()
        scheduler.run()
        assert len(frames) == 1
