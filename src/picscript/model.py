"""Diagram object model: classes, directions, styles and finalized objects."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from . import geometry
from .colors import Paint
from .geometry import BBox, Point
from .text import BIG_SCALE, SMALL_SCALE


class Direction(enum.Enum):
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"
    UP = "up"

    @property
    def vector(self) -> Point:
        return _DIRECTION_VECTORS[self]

    @property
    def exit_edge(self) -> str:
        return _EXIT_EDGES[self]

    @property
    def entry_edge(self) -> str:
        return _EXIT_EDGES[_OPPOSITES[self]]

    @property
    def horizontal(self) -> bool:
        return self in (Direction.RIGHT, Direction.LEFT)


_DIRECTION_VECTORS = {
    Direction.RIGHT: (1.0, 0.0),
    Direction.DOWN: (0.0, -1.0),
    Direction.LEFT: (-1.0, 0.0),
    Direction.UP: (0.0, 1.0),
}
_EXIT_EDGES = {
    Direction.RIGHT: "e",
    Direction.DOWN: "s",
    Direction.LEFT: "w",
    Direction.UP: "n",
}
_OPPOSITES = {
    Direction.RIGHT: Direction.LEFT,
    Direction.LEFT: Direction.RIGHT,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}


class ObjectClass(enum.Enum):
    BOX = "box"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    OVAL = "oval"
    CYLINDER = "cylinder"
    FILE = "file"
    DIAMOND = "diamond"
    LINE = "line"
    ARROW = "arrow"
    SPLINE = "spline"
    DOT = "dot"
    ARC = "arc"
    TEXT = "text"
    MOVE = "move"
    CONTAINER = "[]"

    @property
    def is_line(self) -> bool:
        return self in LINE_CLASSES

    @property
    def is_round(self) -> bool:
        return self in (ObjectClass.CIRCLE, ObjectClass.ELLIPSE, ObjectClass.DOT)

    @property
    def keeps_aspect(self) -> bool:
        return self in (ObjectClass.CIRCLE, ObjectClass.DOT)


LINE_CLASSES = frozenset(
    {ObjectClass.LINE, ObjectClass.ARROW, ObjectClass.SPLINE, ObjectClass.ARC, ObjectClass.MOVE}
)

CLASS_KEYWORDS = {cls.value: cls for cls in ObjectClass if cls is not ObjectClass.CONTAINER}

# (width variable, height variable, radius variable) captured at declaration.
SIZE_VARIABLES: Dict[ObjectClass, Tuple[Optional[str], Optional[str], Optional[str]]] = {
    ObjectClass.BOX: ("boxwid", "boxht", "boxrad"),
    ObjectClass.CIRCLE: (None, None, "circlerad"),
    ObjectClass.ELLIPSE: ("ellipsewid", "ellipseht", None),
    ObjectClass.OVAL: ("ovalwid", "ovalht", None),
    ObjectClass.CYLINDER: ("cylwid", "cylht", "cylrad"),
    ObjectClass.FILE: ("filewid", "fileht", "filerad"),
    ObjectClass.DIAMOND: ("diamondwid", "diamondht", None),
    ObjectClass.LINE: ("linewid", "lineht", "linerad"),
    ObjectClass.ARROW: ("linewid", "lineht", "linerad"),
    ObjectClass.SPLINE: ("linewid", "lineht", "linerad"),
    ObjectClass.MOVE: ("movewid", "moveht", None),
    ObjectClass.ARC: (None, None, "arcrad"),
    ObjectClass.DOT: (None, None, "dotrad"),
    ObjectClass.TEXT: ("textwid", "textht", None),
    ObjectClass.CONTAINER: (None, None, None),
}

DEFAULT_VARIABLES: Dict[str, float] = {
    "boxwid": 0.75,
    "boxht": 0.5,
    "boxrad": 0.0,
    "circlerad": 0.25,
    "ellipsewid": 0.75,
    "ellipseht": 0.5,
    "ovalwid": 1.0,
    "ovalht": 0.5,
    "cylwid": 0.75,
    "cylht": 0.5,
    "cylrad": 0.075,
    "filewid": 0.5,
    "fileht": 0.75,
    "filerad": 0.15,
    "diamondwid": 1.0,
    "diamondht": 0.75,
    "linewid": 0.5,
    "lineht": 0.5,
    "linerad": 0.0,
    "movewid": 0.5,
    "moveht": 0.5,
    "arcrad": 0.25,
    "dotrad": 0.015,
    "textwid": 0.75,
    "textht": 0.5,
    "arrowwid": 0.05,
    "arrowht": 0.08,
    "thickness": 0.015,
    "dashwid": 0.05,
    "gap": 0.0,
    "charwid": 0.08,
    "charht": 0.14,
    "fontscale": 1.0,
    "scale": 1.0,
    "margin": 0.0,
    "color": 0.0,
    "fill": -1.0,
}


@dataclass
class TextLine:
    text: str
    above: bool = False
    below: bool = False
    ljust: bool = False
    rjust: bool = False
    bold: bool = False
    italic: bool = False
    mono: bool = False
    big: bool = False
    small: bool = False
    aligned: bool = False

    @property
    def justification(self) -> str:
        if self.ljust:
            return "left"
        if self.rjust:
            return "right"
        return "center"

    @property
    def scale(self) -> float:
        if self.big:
            return BIG_SCALE
        if self.small:
            return SMALL_SCALE
        return 1.0

    def to_dict(self) -> Dict[str, Any]:
        flags = [
            name
            for name in ("above", "below", "bold", "italic", "mono", "big", "small")
            if getattr(self, name)
        ]
        return {"text": self.text, "justify": self.justification, "flags": flags}


@dataclass
class Style:
    color: Paint = (0, 0, 0)
    fill: Paint = None
    thickness: float = 0.015
    dashed: Optional[float] = None
    dotted: Optional[float] = None
    invisible: bool = False
    arrow_start: bool = False
    arrow_end: bool = False
    closed: bool = False
    clockwise: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": list(self.color) if self.color is not None else None,
            "fill": list(self.fill) if self.fill is not None else None,
            "thickness": self.thickness,
            "dashed": self.dashed,
            "dotted": self.dotted,
            "invisible": self.invisible,
            "arrow_start": self.arrow_start,
            "arrow_end": self.arrow_end,
            "closed": self.closed,
        }


@dataclass(eq=False)
class DiagramObject:
    """One drawable primitive; coordinates are absolute once finalized."""

    id: int
    cls: ObjectClass
    direction: Direction
    center: Point = (0.0, 0.0)
    width: float = 0.0
    height: float = 0.0
    radius: float = 0.0
    style: Style = field(default_factory=Style)
    text: List[TextLine] = field(default_factory=list)
    label: Optional[str] = None
    ordinal: int = 0
    parent: Optional[int] = None
    points: List[Point] = field(default_factory=list)
    children: List[int] = field(default_factory=list)
    finalized: bool = False

    @property
    def start(self) -> Point:
        if self.cls.is_line and self.points:
            return self.points[0]
        return self._compass(self.direction.entry_edge)

    @property
    def end(self) -> Point:
        if self.cls.is_line and self.points:
            return self.points[-1]
        return self._compass(self.direction.exit_edge)

    def anchor(self, name: str) -> Point:
        edge = geometry.canonical_edge(name)
        if edge == "start":
            return self.start
        if edge == "end":
            return self.end
        return self._compass(edge)

    def bbox(self) -> BBox:
        if self.cls.is_line and self.points:
            bbox = geometry.bbox_of_points(self.points)
            assert bbox is not None
            return bbox
        return geometry.bbox_of_rect(self.center, self.width, self.height)

    def vertex(self, index: int) -> Point:
        """1-based vertex lookup along a line-like object's path."""
        if not self.cls.is_line:
            raise IndexError("only line-like objects have vertexes")
        if index < 1 or index > len(self.points):
            raise IndexError(f"vertex {index} out of range")
        return self.points[index - 1]

    def translate(self, dx: float, dy: float) -> None:
        self.center = (self.center[0] + dx, self.center[1] + dy)
        self.points = [(x + dx, y + dy) for x, y in self.points]

    def sync_extent(self) -> None:
        """Recompute center and size of a line-like object from its points."""
        bbox = geometry.bbox_of_points(self.points)
        if bbox is None:
            return
        self.center = geometry.bbox_center(bbox)
        self.width, self.height = geometry.bbox_size(bbox)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "class": self.cls.value,
            "ordinal": self.ordinal,
            "label": self.label,
            "center": list(self.center),
            "width": self.width,
            "height": self.height,
            "style": self.style.to_dict(),
            "text": [line.to_dict() for line in self.text],
        }
        if self.radius:
            data["radius"] = self.radius
        if self.cls.is_line:
            data["points"] = [list(point) for point in self.points]
        if self.parent is not None:
            data["parent"] = self.parent
        if self.children:
            data["children"] = list(self.children)
        return data

    def _compass(self, edge: str) -> Point:
        if self.cls.is_round:
            return geometry.round_anchor(self.center, self.width, self.height, edge)
        if self.cls is ObjectClass.DIAMOND:
            return geometry.diamond_anchor(self.center, self.width, self.height, edge)
        return geometry.rect_anchor(self.center, self.width, self.height, edge)
