"""Length units accepted on numeric literals, converted to inches."""
from __future__ import annotations

from typing import Callable, Optional

UNIT_SCALE = {
    "in": 1.0,
    "cm": 1.0 / 2.54,
    "mm": 1.0 / 25.4,
    "px": 1.0 / 96.0,
    "pt": 1.0 / 72.0,
    "pc": 1.0 / 6.0,
}

UnitConverter = Callable[[float, Optional[str]], float]


def to_inches(value: float, unit: Optional[str]) -> float:
    if unit is None:
        return value
    try:
        return value * UNIT_SCALE[unit]
    except KeyError:
        raise ValueError(f"unknown length unit: {unit}") from None


def is_unit(suffix: str) -> bool:
    return suffix in UNIT_SCALE
