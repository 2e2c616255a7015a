"""Text extent measurement for fitted boxes and bare text objects."""
from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from PIL import ImageFont

if TYPE_CHECKING:  # pragma: no cover
    from .model import TextLine

PIXELS_PER_INCH = 96.0

FONT_FAMILIES = {
    "sans": ["Helvetica", "Arial", "Liberation Sans", "DejaVu Sans"],
    "bold": ["Helvetica Bold", "Arial Bold", "Liberation Sans Bold", "DejaVu Sans Bold"],
    "mono": ["Courier New", "Courier", "Liberation Mono", "DejaVu Sans Mono"],
}

BIG_SCALE = 1.25
SMALL_SCALE = 0.8


class TextMeasurer:
    """Caches Pillow fonts and reports string widths in inches."""

    FONT_DIRS = [
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/Library/Fonts"),
        Path("~/Library/Fonts").expanduser(),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("C:/Windows/Fonts"),
    ]

    def __init__(self) -> None:
        self._font_cache: dict[Tuple[str, int], Optional["ImageFont.ImageFont"]] = {}
        self._font_paths: dict[str, Optional[str]] = {}

    def measure(
        self, text: str, size: float, *, mono: bool = False, bold: bool = False
    ) -> float:
        """Width of ``text`` set at ``size`` inches, in inches."""
        size_px = size * PIXELS_PER_INCH
        font = self.font(size_px, _face(mono, bold))
        if font is None:
            return heuristic_width(text, size_px, mono=mono) / PIXELS_PER_INCH
        return float(font.getlength(text)) / PIXELS_PER_INCH

    def font(self, size_px: float, face: str) -> Optional["ImageFont.ImageFont"]:
        key_size = max(1, int(round(size_px)))
        cache_key = (face, key_size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        font: Optional["ImageFont.ImageFont"] = None
        candidates: List[str] = []
        for family in FONT_FAMILIES[face]:
            resolved = self._locate_font(family)
            if resolved:
                candidates.append(resolved)
        candidates.append("DejaVuSansMono.ttf" if face == "mono" else "DejaVuSans.ttf")

        for candidate in candidates:
            try:
                font = ImageFont.truetype(candidate, key_size)
                break
            except OSError:
                continue

        self._font_cache[cache_key] = font
        return font

    def _locate_font(self, family: str) -> Optional[str]:
        key = family.lower()
        if key in self._font_paths:
            return self._font_paths[key]
        normalized = re.sub(r"[^a-z0-9]+", "", family, flags=re.IGNORECASE).lower()
        best_match: Optional[Tuple[int, str]] = None
        for directory in self.FONT_DIRS:
            if not directory.exists():
                continue
            try:
                for path in directory.rglob("*.ttf"):
                    stem = re.sub(r"[^a-z0-9]+", "", path.stem, flags=re.IGNORECASE).lower()
                    if stem == normalized:
                        score = 0
                    elif stem.startswith(normalized):
                        score = 1
                    else:
                        continue
                    if best_match is None or score < best_match[0]:
                        best_match = (score, str(path))
            except OSError:
                continue
        resolved = best_match[1] if best_match else None
        self._font_paths[key] = resolved
        return resolved


def heuristic_width(text: str, font_size: float, *, mono: bool = False) -> float:
    if mono:
        return len(text) * font_size * 0.6
    width = 0.0
    for ch in text:
        if ch.isspace():
            width += font_size * 0.33
        elif ch in "il":
            width += font_size * 0.3
        elif ch in "mwMW@#":
            width += font_size * 0.9
        else:
            width += font_size * 0.6
    return width


def text_block_size(
    measurer: "TextMeasurer",
    lines: Sequence["TextLine"],
    charht: float,
    fontscale: float = 1.0,
) -> Tuple[float, float]:
    """Width and height in inches of a stack of text lines."""
    width = 0.0
    height = 0.0
    for line in lines:
        size = charht * fontscale * line.scale
        width = max(width, measurer.measure(line.text, size, mono=line.mono, bold=line.bold))
        height += size
    return width, height


def _face(mono: bool, bold: bool) -> str:
    if mono:
        return "mono"
    return "bold" if bold else "sans"


__all__ = ["TextMeasurer", "heuristic_width", "text_block_size", "BIG_SCALE", "SMALL_SCALE"]
