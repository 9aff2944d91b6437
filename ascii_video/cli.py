#!/usr/bin/env python3
# ascii_video/cli.py
"""
Entry point for ASCII Video.

    ascii-video play <media> [--autoplay]       terminal player
    ascii-video convert <image> [--out FILE]    one-shot image to PNG (or --text)
    ascii-video record <video> [--out-dir DIR]  headless render + record to the end
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ascii_video.cache import MediaCache
from ascii_video.config import Config
from ascii_video.errors import AsciiVideoError
from ascii_video.logging_conf import setup_logging
from ascii_video.media import open_media
from ascii_video.playback.render_loop import RenderLoop
from ascii_video.playback.scheduler import AsyncioScheduler, ManualScheduler
from ascii_video.recording import IMAGE_EXPORT_NAME, RecordingSink
from ascii_video.rendering.converter import FrameConverter
from ascii_video.rendering.raster import RasterSurface
from ascii_video.version import version_info

log = logging.getLogger("ascii_video")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ascii-video", description="Render video and images as coloured ASCII.")
    p.add_argument("--version", action="version", version=version_info())
    p.add_argument("--config", help="config file (default: per-user ascii_video.json)")
    p.add_argument("--log-level", help="override logging.level from config")
    sub = p.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="play media in the terminal")
    play.add_argument("media", help="video/image path or http(s) URL")
    play.add_argument("--rows", type=int, help="maximum rows (default: render.video_rows)")
    play.add_argument("--autoplay", action="store_true", help="start playing immediately")

    conv = sub.add_parser("convert", help="convert one image")
    conv.add_argument("media", help="image path or http(s) URL")
    conv.add_argument("--rows", type=int, help="maximum rows (default: render.image_rows)")
    conv.add_argument("--out", help=f"PNG output path (default: ./{IMAGE_EXPORT_NAME})")
    conv.add_argument("--text", action="store_true", help="print glyphs to stdout instead of writing a PNG")

    rec = sub.add_parser("record", help="render a video to an ASCII video file")
    rec.add_argument("media", help="video path or http(s) URL")
    rec.add_argument("--rows", type=int, help="maximum rows (default: render.video_rows)")
    rec.add_argument("--out-dir", help="output directory (default: record.out_dir)")
    return p


def _cache(cfg: Config) -> MediaCache:
    cache = MediaCache.from_config(cfg)
    cache.prune(cfg["cache"]["max_bytes"], cfg["cache"]["prune_watermark"])
    return cache


def _converter(cfg: Config) -> FrameConverter:
    return FrameConverter(ramp_name=cfg["render"]["ramp"])


def cmd_play(cfg: Config, args) -> int:
    if os.name == "nt" and not sys.stdout.isatty():
        print("No Windows console detected. Run from cmd, PowerShell, or Windows Terminal.")
        return 1
    from ascii_video.ui.app import AsciiVideoApp

    if args.rows:
        cfg.update({"render": {"video_rows": args.rows}})
    AsciiVideoApp(cfg, media=args.media, autoplay=args.autoplay).run()
    return 0


def cmd_convert(cfg: Config, args) -> int:
    source = open_media(args.media, cache=_cache(cfg))
    if source.is_video:
        source.release()
        log.error("convert expects an image; use 'record' for video")
        return 2

    surface = RasterSurface()
    frames = []
    loop = RenderLoop(
        ManualScheduler(),
        frames.append,
        converter=_converter(cfg),
        image_rows=args.rows or cfg["render"]["image_rows"],
    )
    loop.load(source)
    if not frames:
        log.error("Could not convert %s", args.media)
        return 1

    if args.text:
        sys.stdout.write(frames[-1].to_text() + "\n")
        return 0

    surface.present(frames[-1])
    out = Path(args.out) if args.out else Path.cwd() / IMAGE_EXPORT_NAME
    path = RecordingSink(out_dir=out.parent).export_image(surface, filename=out.name)
    print(path)
    return 0


async def _record(loop: RenderLoop, sink: RecordingSink, surface: RasterSurface, source) -> Optional[Path]:
    loop.load(source)
    if loop.last_frame is None:
        loop.reset()
        raise AsciiVideoError(f"no frame could be rendered from {source}")
    try:
        sink.start(surface)
    except AsciiVideoError:
        loop.reset()
        raise
    try:
        loop.play()
        while not loop.finished:
            await asyncio.sleep(0.05)
    finally:
        try:
            result = sink.stop()
        finally:
            loop.reset()
    return result.path


def cmd_record(cfg: Config, args) -> int:
    if args.out_dir:
        cfg.update({"record": {"out_dir": args.out_dir}})
    source = open_media(args.media, cache=_cache(cfg))
    if not source.is_video:
        log.error("record expects a video; use 'convert' for images")
        return 2

    surface = RasterSurface()
    sink = RecordingSink.from_config(cfg)
    loop = RenderLoop(
        AsyncioScheduler(fps=cfg["app"]["fps_limit"]),
        surface.present,
        converter=_converter(cfg),
        video_rows=args.rows or cfg["render"]["video_rows"],
    )
    try:
        path = asyncio.run(_record(loop, sink, surface, source))
    except KeyboardInterrupt:
        log.info("Interrupted")
        return 130
    print(path)
    return 0


COMMANDS = {
    "play": cmd_play,
    "convert": cmd_convert,
    "record": cmd_record,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Config.load(args.config)
    setup_logging(cfg, args.log_level)
    try:
        return COMMANDS[args.command](cfg, args)
    except AsciiVideoError as e:
        log.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
