#!/usr/bin/env python3
# ascii_video/config.py
"""
Per-user JSON settings for ASCII Video.

The file on disk only holds what the user changed; everything else comes from
DEFAULT_CONFIG. Each section has a validator that clamps numbers, parses
flags and resolves "auto" paths, so the rest of the program can index
cfg["section"]["key"] without checking.

    cfg = Config.load()                       # ~/.config/ascii_video/ascii_video.json
    cfg.update({"render": {"video_rows": 60}})
    cfg.save()

ASCII_VIDEO_CONFIG overrides the default location.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ascii_video.rendering.glyphs import default_ramps

log = logging.getLogger(__name__)

ENV_VAR = "ASCII_VIDEO_CONFIG"
CONFIG_NAME = "ascii_video.json"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")

DEFAULT_CONFIG: Dict[str, Any] = {
    "app": {
        "title": "ASCII Video",
        "fps_limit": 60,                  # render loop tick rate
    },
    "render": {
        "video_rows": 80,
        "image_rows": 120,
        "ramp": "ascii_dense",            # key of rendering.glyphs.default_ramps()
        "color": True,
    },
    "record": {
        "fps": 30,
        "fourcc": "mp4v",
        "container": "mp4",
        "out_dir": None,                  # None: current directory
        "chunk_bytes": 64 * 1024,
        "finalize_timeout_s": 10.0,
    },
    "network": {
        "user_agent": "ascii-video/1.0 (+https://example.invalid)",
        "connect_timeout_s": 5.0,
        "read_timeout_s": 30.0,
        "retries": 3,
    },
    "cache": {
        "dir": None,                      # None: per-OS cache home
        "max_bytes": 1024 * 1024 * 1024,
        "prune_watermark": 0.85,
    },
    "ui": {
        "mouse": False,
        "show_latency_ms": True,
    },
    "logging": {
        "level": "INFO",
        "http_debug": False,
        "file": None,
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}


# ----------------------------
# Locations
# ----------------------------

def _platform_dir(kind: str) -> str:
    """Base directory for 'config' or 'cache' on this OS."""
    system = platform.system()
    home = os.path.expanduser("~")
    if system == "Windows":
        if kind == "config":
            return os.path.join(os.environ.get("APPDATA") or os.path.join(home, "AppData", "Roaming"), "AsciiVideo")
        return os.path.join(os.environ.get("LOCALAPPDATA") or os.path.join(home, "AppData", "Local"),
                            "AsciiVideo", "Cache")
    if system == "Darwin":
        sub = "Application Support" if kind == "config" else "Caches"
        return os.path.join(home, "Library", sub, "AsciiVideo")
    xdg = os.environ.get("XDG_CONFIG_HOME" if kind == "config" else "XDG_CACHE_HOME")
    base = xdg or os.path.join(home, ".config" if kind == "config" else ".cache")
    return os.path.join(base, "ascii_video")


def _default_config_path() -> str:
    override = os.environ.get(ENV_VAR)
    if override:
        return os.path.expanduser(override)
    return os.path.join(_platform_dir("config"), CONFIG_NAME)


# ----------------------------
# Coercion
# ----------------------------

def _clamped(value: Any, default, lo, hi, kind: Callable = float):
    """kind(value) limited to [lo, hi]; default when it does not parse."""
    try:
        x = kind(value)
    except (TypeError, ValueError):
        return kind(default)
    return max(lo, min(hi, x))


def _flag(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    return default


def _merged(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive copy of base with over applied on top."""
    out = copy.deepcopy(base)
    for key, value in over.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merged(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


# ----------------------------
# Section validators
# ----------------------------

def _check_app(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    s["title"] = str(s.get("title") or d["title"])
    s["fps_limit"] = _clamped(s.get("fps_limit"), d["fps_limit"], 1, 240, int)


def _check_render(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    s["video_rows"] = _clamped(s.get("video_rows"), d["video_rows"], 1, 1000, int)
    s["image_rows"] = _clamped(s.get("image_rows"), d["image_rows"], 1, 2000, int)
    if s.get("ramp") not in default_ramps():
        log.warning("Unknown glyph ramp %r, using %s", s.get("ramp"), d["ramp"])
        s["ramp"] = d["ramp"]
    s["color"] = _flag(s.get("color"), d["color"])


def _check_record(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    s["fps"] = _clamped(s.get("fps"), d["fps"], 1, 120, int)
    fourcc = str(s.get("fourcc") or "")
    s["fourcc"] = fourcc if len(fourcc) == 4 else d["fourcc"]
    s["container"] = (str(s.get("container") or "").lstrip(".") or d["container"]).lower()
    out_dir = s.get("out_dir")
    s["out_dir"] = os.path.expanduser(str(out_dir)) if out_dir else os.getcwd()
    s["chunk_bytes"] = _clamped(s.get("chunk_bytes"), d["chunk_bytes"], 1024, 64 * 1024 * 1024, int)
    s["finalize_timeout_s"] = _clamped(s.get("finalize_timeout_s"), d["finalize_timeout_s"], 0.5, 300.0)


def _check_network(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    s["user_agent"] = str(s.get("user_agent") or d["user_agent"])
    s["connect_timeout_s"] = _clamped(s.get("connect_timeout_s"), d["connect_timeout_s"], 0.2, 60.0)
    s["read_timeout_s"] = _clamped(s.get("read_timeout_s"), d["read_timeout_s"], 0.5, 600.0)
    s["retries"] = _clamped(s.get("retries"), d["retries"], 0, 10, int)


def _check_cache(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    s["dir"] = os.path.expanduser(str(s["dir"])) if s.get("dir") else os.path.join(_platform_dir("cache"), "media")
    s["max_bytes"] = _clamped(s.get("max_bytes"), d["max_bytes"], 8 * 1024 * 1024, 1 << 40, int)
    s["prune_watermark"] = _clamped(s.get("prune_watermark"), d["prune_watermark"], 0.5, 0.99)


def _check_ui(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    for key in ("mouse", "show_latency_ms"):
        s[key] = _flag(s.get(key), d[key])


def _check_logging(s: Dict[str, Any], d: Dict[str, Any]) -> None:
    level = str(s.get("level") or "").upper()
    s["level"] = level if level in LOG_LEVELS else d["level"]
    s["http_debug"] = _flag(s.get("http_debug"), d["http_debug"])
    s["file"] = str(s["file"]) if s.get("file") else None
    s["rotate_bytes"] = _clamped(s.get("rotate_bytes"), d["rotate_bytes"], 256 * 1024, 50 * 1024 * 1024, int)
    s["rotate_keep"] = _clamped(s.get("rotate_keep"), d["rotate_keep"], 0, 50, int)


_CHECKS = {
    "app": _check_app,
    "render": _check_render,
    "record": _check_record,
    "network": _check_network,
    "cache": _check_cache,
    "ui": _check_ui,
    "logging": _check_logging,
}


def _validate(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Defaults overlaid with `user`, every section checked. Never mutates inputs."""
    cfg = _merged(DEFAULT_CONFIG, user or {})
    for name, check in _CHECKS.items():
        if not isinstance(cfg.get(name), dict):
            cfg[name] = copy.deepcopy(DEFAULT_CONFIG[name])
        check(cfg[name], DEFAULT_CONFIG[name])
    return cfg


def _changes(base: Dict[str, Any], cur: Dict[str, Any]) -> Dict[str, Any]:
    """Nested subset of cur whose values differ from base."""
    out: Dict[str, Any] = {}
    for key, value in cur.items():
        ref = base.get(key)
        if isinstance(value, dict) and isinstance(ref, dict):
            sub = _changes(ref, value)
            if sub:
                out[key] = sub
        elif key not in base or ref != value:
            out[key] = value
    return out


def _write_json(path: str, data: Dict[str, Any]) -> None:
    """Replace path with data in one rename."""
    folder = os.path.dirname(path) or "."
    os.makedirs(folder, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".ascii_video_", suffix=".json", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


# ----------------------------
# Config
# ----------------------------

@dataclass
class Config:
    data: Dict[str, Any] = field(default_factory=lambda: _validate({}))
    path: str = field(default_factory=_default_config_path)

    def __getitem__(self, section: str) -> Any:
        return self.data[section]

    def __setitem__(self, section: str, value: Any) -> None:
        self.data[section] = value

    def get(self, section: str, default: Any = None) -> Any:
        return self.data.get(section, default)

    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = True) -> "Config":
        """
        Read the user's file. A missing file is created (with auto paths left
        as null) unless create_if_missing is False; an unreadable one is
        copied to <file>.corrupt.bak and replaced by defaults in memory.
        """
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if not os.path.exists(cfg_path):
            if create_if_missing:
                _write_json(cfg_path, copy.deepcopy(DEFAULT_CONFIG))
                log.info("Created %s", cfg_path)
            return cls(_validate({}), cfg_path)

        user: Any = {}
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                user = json.load(f)
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable config %s: %s", cfg_path, e)
            try:
                shutil.copyfile(cfg_path, cfg_path + ".corrupt.bak")
            except OSError:
                log.warning("Could not back up %s", cfg_path)
        if not isinstance(user, dict):
            user = {}
        return cls(_validate(user), cfg_path)

    def save(self) -> None:
        """Write only the settings that differ from a fresh default config."""
        self.data = _validate(self.data)
        _write_json(self.path, _changes(_validate({}), self.data))

    def update(self, partial: Dict[str, Any]) -> None:
        self.data = _validate(_merged(self.data, partial))

    @property
    def cache_dir(self) -> str:
        return self.data["cache"]["dir"]

    @property
    def out_dir(self) -> str:
        return self.data["record"]["out_dir"]


__all__ = ["Config", "DEFAULT_CONFIG", "ENV_VAR", "_default_config_path"]
