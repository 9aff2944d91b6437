#!/usr/bin/env python3
# ascii_video/ui/state.py
"""Mutable runtime state for the ASCII Video player."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from ascii_video.config import Config


@dataclass
class PlayerState:
    cfg: Config
    media: Optional[str] = None

    # UI hints
    use_color: bool = field(init=False)
    info_msg: str = ""

    # Internal lock for multi-thread updates
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self):
        self.use_color = bool(self.cfg["render"].get("color", True))

    def set_info(self, msg: str) -> None:
        with self._lock:
            self.info_msg = msg

    def toggle_color(self) -> bool:
        with self._lock:
            self.use_color = not self.use_color
            return self.use_color
