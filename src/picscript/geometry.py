"""Plane geometry helpers: points, bounding boxes, compass anchors.

Coordinates are in inches with the y axis pointing up, so ``n`` is the
larger y value.  Bounding boxes are ``(min_x, min_y, max_x, max_y)``.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

Point = Tuple[float, float]
BBox = Tuple[float, float, float, float]

COMPASS_SIGNS = {
    "n": (0, 1),
    "ne": (1, 1),
    "e": (1, 0),
    "se": (1, -1),
    "s": (0, -1),
    "sw": (-1, -1),
    "w": (-1, 0),
    "nw": (-1, 1),
    "c": (0, 0),
}

EDGE_ALIASES = {
    "center": "c",
    "top": "n",
    "t": "n",
    "bottom": "s",
    "b": "s",
    "left": "w",
    "right": "e",
    "north": "n",
    "south": "s",
    "east": "e",
    "west": "w",
}

LAYOUT_EDGES = frozenset({"start", "end"})

COMPASS_HEADINGS = {
    "n": 0.0,
    "ne": 45.0,
    "e": 90.0,
    "se": 135.0,
    "s": 180.0,
    "sw": 225.0,
    "w": 270.0,
    "nw": 315.0,
}

_INV_SQRT2 = 1.0 / math.sqrt(2.0)


def canonical_edge(name: str) -> str:
    key = name.lower()
    key = EDGE_ALIASES.get(key, key)
    if key not in COMPASS_SIGNS and key not in LAYOUT_EDGES:
        raise ValueError(f"unknown anchor name: {name}")
    return key


def rect_anchor(center: Point, width: float, height: float, edge: str) -> Point:
    sx, sy = COMPASS_SIGNS[edge]
    return center[0] + sx * width / 2.0, center[1] + sy * height / 2.0


def round_anchor(center: Point, width: float, height: float, edge: str) -> Point:
    sx, sy = COMPASS_SIGNS[edge]
    if sx and sy:
        return (
            center[0] + sx * width / 2.0 * _INV_SQRT2,
            center[1] + sy * height / 2.0 * _INV_SQRT2,
        )
    return rect_anchor(center, width, height, edge)


def diamond_anchor(center: Point, width: float, height: float, edge: str) -> Point:
    sx, sy = COMPASS_SIGNS[edge]
    if sx and sy:
        return center[0] + sx * width / 4.0, center[1] + sy * height / 4.0
    return rect_anchor(center, width, height, edge)


def heading_vector(degrees: float) -> Point:
    """Unit vector for a compass heading: 0 is north, angles grow clockwise."""
    radians = math.radians(degrees)
    return _clean(math.sin(radians)), _clean(math.cos(radians))


def compass_vector(edge: str) -> Point:
    return heading_vector(COMPASS_HEADINGS[edge])


def add(point: Point, dx: float, dy: float) -> Point:
    return point[0] + dx, point[1] + dy


def scale(vector: Point, factor: float) -> Point:
    return vector[0] * factor, vector[1] * factor


def interpolate(a: Point, b: Point, fraction: float) -> Point:
    return a[0] + (b[0] - a[0]) * fraction, a[1] + (b[1] - a[1]) * fraction


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def bbox_of_points(points: Iterable[Point]) -> Optional[BBox]:
    bbox: Optional[BBox] = None
    for x, y in points:
        bbox = merge_bbox(bbox, (x, y, x, y))
    return bbox


def bbox_of_rect(center: Point, width: float, height: float) -> BBox:
    half_w = width / 2.0
    half_h = height / 2.0
    return center[0] - half_w, center[1] - half_h, center[0] + half_w, center[1] + half_h


def merge_bbox(current: Optional[BBox], new: Optional[BBox]) -> Optional[BBox]:
    if new is None:
        return current
    if current is None:
        return new
    return (
        min(current[0], new[0]),
        min(current[1], new[1]),
        max(current[2], new[2]),
        max(current[3], new[3]),
    )


def bbox_center(bbox: BBox) -> Point:
    return (bbox[0] + bbox[2]) / 2.0, (bbox[1] + bbox[3]) / 2.0


def bbox_size(bbox: BBox) -> Tuple[float, float]:
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def ray_box_intersection(origin: Point, toward: Point, bbox: BBox) -> Optional[Point]:
    """First point where the ray from ``origin`` through ``toward`` leaves ``bbox``."""
    ox, oy = origin
    dx = toward[0] - ox
    dy = toward[1] - oy
    if abs(dx) < 1e-12 and abs(dy) < 1e-12:
        return None

    left, bottom, right, top = bbox
    candidates: List[Tuple[float, float, float]] = []

    if abs(dx) > 1e-12:
        for x in (left, right):
            t = (x - ox) / dx
            if t <= 1e-12:
                continue
            y = oy + t * dy
            if bottom - 1e-9 <= y <= top + 1e-9:
                candidates.append((t, x, y))

    if abs(dy) > 1e-12:
        for y in (bottom, top):
            t = (y - oy) / dy
            if t <= 1e-12:
                continue
            x = ox + t * dx
            if left - 1e-9 <= x <= right + 1e-9:
                candidates.append((t, x, y))

    if not candidates:
        return None
    _, x, y = min(candidates, key=lambda item: item[0])
    return x, y


def ellipse_boundary(center: Point, width: float, height: float, toward: Point) -> Point:
    """Point on the ellipse inscribed in ``width`` x ``height`` facing ``toward``."""
    dx = toward[0] - center[0]
    dy = toward[1] - center[1]
    a = width / 2.0
    b = height / 2.0
    if a <= 0 or b <= 0 or (abs(dx) < 1e-12 and abs(dy) < 1e-12):
        return center
    t = 1.0 / math.sqrt((dx / a) ** 2 + (dy / b) ** 2)
    return center[0] + dx * t, center[1] + dy * t


def _clean(value: float) -> float:
    # Snap sin/cos noise so right angles give exact axis-aligned results.
    rounded = round(value)
    if math.isclose(value, rounded, abs_tol=1e-12):
        return float(rounded)
    return value
