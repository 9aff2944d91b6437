"""Command line entry points that run without a terminal."""

import asyncio
import json

import pytest
from PIL import Image

from ascii_video.cli import main

from conftest import ScriptedVideo, solid


@pytest.fixture
def cfg_path(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({
        "cache": {"dir": str(tmp_path / "cache")},
        "record": {"out_dir": str(tmp_path / "out")},
    }))
    return str(path)


@pytest.fixture
def png(tmp_path):
    path = tmp_path / "wide.png"
    img = Image.new("RGB", (40, 20), (0, 0, 0))
    img.paste((255, 255, 255), (20, 0, 40, 20))
    img.save(path)
    return str(path)


def test_convert_text(cfg_path, png, capsys):
    assert main(["--config", cfg_path, "convert", png, "--rows", "4", "--text"]) == 0
    lines = capsys.readouterr().out.rstrip("\n").split("\n")
    assert len(lines) == 4
    assert all(len(line) == 16 for line in lines)     # round(4 * 40/20 * 2)
    assert lines[0][0] == " "
    assert lines[0][-1] != " "


def test_convert_png(cfg_path, png, tmp_path):
    out = tmp_path / "exports" / "result.png"
    assert main(["--config", cfg_path, "convert", png, "--rows", "4", "--out", str(out)]) == 0
    with Image.open(out) as img:
        assert img.size == (16 * 8, 4 * 14)


def test_convert_missing_file(cfg_path, tmp_path):
    assert main(["--config", cfg_path, "convert", str(tmp_path / "nope.png")]) == 1


def test_record_rejects_image(cfg_path, png):
    assert main(["--config", cfg_path, "record", png]) == 2


class TestRecordCleanup:
    def _rig(self, capture_factory):
        from ascii_video.playback.render_loop import LoopState, RenderLoop
        from ascii_video.playback.scheduler import ManualScheduler
        from ascii_video.recording import RecordingSink
        from ascii_video.rendering.raster import RasterSurface

        surface = RasterSurface()
        loop = RenderLoop(ManualScheduler(), surface.present, video_rows=4)
        sink = RecordingSink(out_dir=None, capture_factory=capture_factory)
        return loop, sink, surface, LoopState

    def test_loop_reset_when_recording_cannot_start(self):
        from ascii_video.cli import _record
        from ascii_video.errors import RecordingUnavailable
        from ascii_video.recording import CaptureStream

        class NoCodec(CaptureStream):
            def start(self):
                raise RecordingUnavailable("codec not supported")

            def stop(self):
                self.on_stop()

        loop, sink, surface, LoopState = self._rig(lambda s, fps: NoCodec())
        video = ScriptedVideo([solid(16, 16)] * 3)
        with pytest.raises(RecordingUnavailable):
            asyncio.run(_record(loop, sink, surface, video))
        assert video.released
        assert loop.state == LoopState.IDLE
        assert not sink.is_recording

    def test_loop_reset_when_no_frame_renders(self):
        from ascii_video.cli import _record
        from ascii_video.errors import AsciiVideoError, UnsupportedSource

        loop, sink, surface, LoopState = self._rig(None)
        video = ScriptedVideo([UnsupportedSource("bad")], width=16, height=16)
        with pytest.raises(AsciiVideoError):
            asyncio.run(_record(loop, sink, surface, video))
        assert video.released
        assert loop.state == LoopState.IDLE
