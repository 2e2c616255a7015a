"""Named-color lookup backed by Pillow's CSS color table."""
from __future__ import annotations

from typing import Optional, Tuple

from PIL import ImageColor

Paint = Optional[Tuple[int, int, int]]

NO_PAINT_NAMES = frozenset({"none", "off"})
NO_PAINT_VALUE = -1


class ColorTable:
    """Case-insensitive name to RGB resolver; ``None``/``Off`` mean no paint."""

    def knows(self, name: str) -> bool:
        key = name.lower()
        return key in NO_PAINT_NAMES or key in ImageColor.colormap

    def resolve(self, name: str) -> Paint:
        key = name.lower()
        if key in NO_PAINT_NAMES:
            return None
        if key not in ImageColor.colormap:
            raise KeyError(name)
        red, green, blue = ImageColor.getrgb(key)[:3]
        return red, green, blue

    def value(self, name: str) -> int:
        """Color as the scalar used inside expressions (0xRRGGBB, -1 for none)."""
        return paint_to_number(self.resolve(name))


def paint_to_number(paint: Paint) -> int:
    if paint is None:
        return NO_PAINT_VALUE
    red, green, blue = paint
    return (red << 16) | (green << 8) | blue


def number_to_paint(value: float) -> Paint:
    number = int(value)
    if number < 0:
        return None
    number &= 0xFFFFFF
    return (number >> 16) & 0xFF, (number >> 8) & 0xFF, number & 0xFF


def paint_to_css(paint: Paint) -> str:
    if paint is None:
        return "none"
    return "rgb({},{},{})".format(*paint)


DEFAULT_COLORS = ColorTable()
