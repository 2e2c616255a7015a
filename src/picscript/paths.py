"""Vertex lists for line-like objects built from path directives."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from . import geometry
from .errors import ParseError
from .geometry import BBox, Point
from .model import Direction


@dataclass
class Move:
    kind: str  # "move", "heading" or "until"
    direction: Optional[Direction] = None
    degrees: float = 0.0
    distance: Optional[float] = None
    target: Optional[Point] = None


@dataclass
class PathSegment:
    """One stretch between ``then`` separators: a ``to`` target or relative moves."""

    target: Optional[Point] = None
    moves: List[Move] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.target is None and not self.moves


class PathBuilder:
    """Accumulates ``from``/``to``/``then``/direction clauses in source order.

    ``unit`` maps a direction to the default step length for it (``linewid``
    horizontally, ``lineht`` vertically).  Distances handed in have already
    been evaluated to inches.
    """

    def __init__(self, direction: Direction, unit: Callable[[Direction], float]) -> None:
        self.direction = direction
        self.unit = unit
        self.origin: Optional[Point] = None
        self.segments: List[PathSegment] = [PathSegment()]
        self.closed = False
        self.exit_direction: Optional[Direction] = None

    @property
    def current(self) -> PathSegment:
        return self.segments[-1]

    @property
    def has_directives(self) -> bool:
        return self.origin is not None or any(not seg.empty for seg in self.segments)

    def set_origin(self, point: Point) -> None:
        self.origin = point

    def add_target(self, point: Point) -> None:
        if not self.current.empty:
            self.segments.append(PathSegment())
        self.current.target = point

    def then(self) -> None:
        if self.current.empty:
            raise ParseError("'then' must follow a path segment")
        self.segments.append(PathSegment())

    def _open_for_moves(self) -> PathSegment:
        if self.current.target is not None:
            self.segments.append(PathSegment())
        return self.current

    def move(self, direction: Direction, distance: Optional[float]) -> None:
        self._open_for_moves().moves.append(Move("move", direction, distance=distance))
        self.direction = direction

    def distance(self, distance: float) -> None:
        """A bare length continues along the current sub-direction."""
        self.move(self.direction, distance)

    def heading(self, degrees: float, distance: Optional[float]) -> None:
        self._open_for_moves().moves.append(Move("heading", degrees=degrees, distance=distance))

    def until(self, direction: Optional[Direction], point: Point) -> None:
        if direction is not None:
            self.direction = direction
        self._open_for_moves().moves.append(Move("until", self.direction, target=point))

    def build(self, start: Point) -> List[Point]:
        """Resolve all segments starting at ``origin`` (or ``start``)."""
        origin = self.origin if self.origin is not None else start
        points: List[Point] = [origin]
        self.exit_direction = None
        for segment in self.segments:
            if segment.empty:
                continue
            if segment.target is not None:
                points.append(segment.target)
                self.exit_direction = None
                continue
            points.append(self._resolve_moves(points[-1], segment.moves))
        if len(points) == 1:
            step = geometry.scale(self.direction.vector, self.unit(self.direction))
            points.append(geometry.add(origin, *step))
            self.exit_direction = self.direction
        if self.closed and len(points) > 2 and points[-1] != points[0]:
            points.append(points[0])
        return points

    def _resolve_moves(self, start: Point, moves: List[Move]) -> Point:
        x, y = start
        dx = dy = 0.0
        for move in moves:
            if move.kind == "heading":
                length = self.unit(Direction.RIGHT) if move.distance is None else move.distance
                vx, vy = geometry.heading_vector(move.degrees)
                dx += vx * length
                dy += vy * length
                self.exit_direction = None
                continue
            direction = move.direction
            assert direction is not None
            if move.kind == "until":
                assert move.target is not None
                if direction.horizontal:
                    dx = move.target[0] - x
                else:
                    dy = move.target[1] - y
            else:
                length = self.unit(direction) if move.distance is None else move.distance
                dx += direction.vector[0] * length
                dy += direction.vector[1] * length
            self.exit_direction = direction
        return x + dx, y + dy


def arc_points(start: Point, end: Optional[Point], direction: Direction,
               radius: float, clockwise: bool) -> List[Point]:
    """Start, control and end point of a quarter-turn arc.

    Without an explicit end the arc sweeps one quarter circle of ``radius``
    starting along ``direction``, turning left (counter-clockwise) unless
    ``clockwise``.
    """
    if end is None:
        vx, vy = direction.vector
        px, py = (vy, -vx) if clockwise else (-vy, vx)
        end = (start[0] + radius * (vx + px), start[1] + radius * (vy + py))
    mid = geometry.interpolate(start, end, 0.5)
    cx = end[0] - start[0]
    cy = end[1] - start[1]
    half = math.hypot(cx, cy) / 2.0
    if half == 0:
        return [start, start, end]
    nx, ny = cx / (2 * half), cy / (2 * half)
    # Right-hand normal of the chord for counter-clockwise sweeps.
    normal = (-ny, nx) if clockwise else (ny, -nx)
    control = (mid[0] + normal[0] * half, mid[1] + normal[1] * half)
    return [start, control, end]


def chop_point(center: Point, width: float, height: float, toward: Point,
               *, round_shape: bool, bbox: BBox) -> Point:
    """Where the segment from ``center`` toward ``toward`` crosses the object outline."""
    if round_shape:
        return geometry.ellipse_boundary(center, width, height, toward)
    hit = geometry.ray_box_intersection(center, toward, bbox)
    return hit if hit is not None else center


__all__ = ["PathBuilder", "PathSegment", "arc_points", "chop_point"]
