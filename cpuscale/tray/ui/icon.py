"""Tray icon rendering."""

from __future__ import annotations

from functools import lru_cache

from PIL import Image, ImageDraw


_ICON_SIZE = (64, 64)

STATE_IDLE = "idle"
STATE_BUSY = "busy"
STATE_READ_ONLY = "read-only"

STATE_COLORS: dict[str, tuple[int, int, int]] = {
    STATE_IDLE: (70, 170, 90),
    STATE_BUSY: (235, 160, 40),
    STATE_READ_ONLY: (140, 140, 140),
}


def icon_state(*, connected: bool, busy: bool) -> str:
    if not connected:
        return STATE_READ_ONLY
    return STATE_BUSY if busy else STATE_IDLE


@lru_cache(maxsize=8)
def create_icon(state: str) -> Image.Image:
    """Draw a CPU package: a filled die with pins on all four sides."""

    color = STATE_COLORS.get(state, STATE_COLORS[STATE_READ_ONLY])
    img = Image.new("RGBA", _ICON_SIZE, color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    draw.rounded_rectangle((14, 14, 50, 50), radius=4, fill=(*color, 255), outline=(30, 30, 30, 255), width=2)
    draw.rectangle((24, 24, 40, 40), outline=(255, 255, 255, 230), width=2)

    for i in range(4):
        p = 18 + i * 8
        draw.rectangle((p, 6, p + 3, 13), fill=(*color, 255))
        draw.rectangle((p, 51, p + 3, 58), fill=(*color, 255))
        draw.rectangle((6, p, 13, p + 3), fill=(*color, 255))
        draw.rectangle((51, p, 58, p + 3), fill=(*color, 255))

    return img
