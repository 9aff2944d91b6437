#!/usr/bin/env python3
# ascii_video/ui/helppane.py

from __future__ import annotations

from prompt_toolkit.layout import ConditionalContainer, HSplit
from prompt_toolkit.filters import Condition
from prompt_toolkit.widgets import Frame, TextArea

# (key, label); app.py binds the same keys.
KEYS = (
    ("space", "Play / pause"),
    ("0", "Back to first frame"),
    ("x", "Reset (unload media)"),
    ("l", "Load the media again"),
    ("c", "Start / stop recording"),
    ("e", "Export current frame as PNG"),
    ("m", "Toggle colour"),
    ("h", "Toggle this help"),
    ("q", "Quit"),
)


def help_text() -> str:
    rows = [f"  {key:<8}  {label}" for key, label in KEYS]
    return "\n".join(
        ["Keys:"] + rows + ["", "Recordings and exports go to record.out_dir (default: current directory)."]
    )


class HelpPane:
    def __init__(self):
        self.visible = False
        body = TextArea(text=help_text(), style="class:help", read_only=True, focusable=False)
        self.container = ConditionalContainer(
            HSplit([Frame(body, title="Help", style="class:help")]),
            filter=Condition(lambda: self.visible),
        )

    def __pt_container__(self):
        return self.container

    def toggle(self) -> None:
        self.visible = not self.visible
