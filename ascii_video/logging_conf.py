#!/usr/bin/env python3
# ascii_video/logging_conf.py
"""
Logging for ASCII Video: stderr always, plus a rotating file when
logging.file is set. While the full-screen player runs, stderr is hidden
behind the UI, so the file is the useful one there.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from ascii_video.config import Config

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty third-party loggers kept at WARNING unless http_debug is on.
_NOISY = ("urllib3", "requests", "PIL")


def setup_logging(cfg: Config, level_override: Optional[str] = None) -> None:
    lg = cfg["logging"]
    level = logging.getLevelName((level_override or lg["level"]).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(_FORMAT)
    if not any(getattr(h, "_ascii_video", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._ascii_video = True
        root.addHandler(console)

    path = lg.get("file")
    if path and not any(isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(path)
                        for h in root.handlers):
        folder = os.path.dirname(os.path.abspath(path))
        os.makedirs(folder, exist_ok=True)
        fh = RotatingFileHandler(path, maxBytes=lg["rotate_bytes"], backupCount=lg["rotate_keep"],
                                 encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    noisy_level = logging.DEBUG if lg.get("http_debug") else logging.WARNING
    for name in _NOISY:
        logging.getLogger(name).setLevel(noisy_level)
