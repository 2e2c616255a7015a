"""Per-class attribute tables and the handlers that apply them.

Each object class accepts a fixed set of attribute keywords.  A handler
receives the in-progress :class:`Draft` and the parsed attribute and mutates
the draft; placement happens afterwards in :mod:`picscript.layout`.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional

from . import expressions as ex
from .colors import number_to_paint
from .errors import ObjectReferenceError, ParseError, PicscriptError
from .evaluator import Evaluator
from .geometry import Point
from .model import SIZE_VARIABLES, DiagramObject, Direction, ObjectClass, TextLine
from .paths import PathBuilder
from .registry import ObjectRegistry
from .statements import Attribute

THICK_FACTOR = 1.5
THIN_FACTOR = 2.0 / 3.0


@dataclass
class Draft:
    """An object under construction plus the clauses that affect placement."""

    obj: DiagramObject
    evaluator: Evaluator
    path: Optional[PathBuilder] = None
    at: Optional[Point] = None
    with_edge: Optional[str] = None
    fit: bool = False
    chop: bool = False
    explicit_width: bool = False
    explicit_height: bool = False
    from_object: Optional[int] = None
    to_object: Optional[int] = None
    arc_end: Optional[Point] = None
    copied_path: List[Point] = field(default_factory=list)

    @property
    def registry(self) -> ObjectRegistry:
        return self.evaluator.registry

    def default(self, slot: int) -> float:
        """Class default for width (0), height (1) or radius (2)."""
        cls = self.obj.cls
        name = SIZE_VARIABLES[cls][slot]
        if name is not None:
            return self.registry.variables[name]
        radius_name = SIZE_VARIABLES[cls][2]
        if slot < 2 and radius_name is not None:
            return 2.0 * self.registry.variables[radius_name]
        return (self.obj.width, self.obj.height, self.obj.radius)[slot]


Handler = Callable[[Draft, Attribute], None]


def _set_width(draft: Draft, attr: Attribute) -> None:
    obj = draft.obj
    obj.width = draft.evaluator.size(attr.value, draft.default(0))
    draft.explicit_width = True
    if obj.cls.keeps_aspect:
        obj.height = obj.width
        obj.radius = obj.width / 2.0
        draft.explicit_height = True


def _set_height(draft: Draft, attr: Attribute) -> None:
    obj = draft.obj
    obj.height = draft.evaluator.size(attr.value, draft.default(1))
    draft.explicit_height = True
    if obj.cls.keeps_aspect:
        obj.width = obj.height
        obj.radius = obj.height / 2.0
        draft.explicit_width = True


def _set_radius(draft: Draft, attr: Attribute) -> None:
    obj = draft.obj
    obj.radius = draft.evaluator.size(attr.value, draft.default(2))
    if obj.cls.keeps_aspect:
        obj.width = obj.height = 2.0 * obj.radius
        draft.explicit_width = draft.explicit_height = True


def _set_diameter(draft: Draft, attr: Attribute) -> None:
    obj = draft.obj
    diameter = draft.evaluator.size(attr.value, 2.0 * draft.default(2))
    obj.width = obj.height = diameter
    obj.radius = diameter / 2.0
    draft.explicit_width = draft.explicit_height = True


def _set_thickness(draft: Draft, attr: Attribute) -> None:
    reference = draft.registry.variables["thickness"]
    draft.obj.style.thickness = draft.evaluator.size(attr.value, reference)


def _thick(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.thickness *= THICK_FACTOR


def _thin(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.thickness *= THIN_FACTOR


def _fill(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.fill = number_to_paint(draft.evaluator.scalar(attr.value))


def _color(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.color = number_to_paint(draft.evaluator.scalar(attr.value))


def _solid(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.dashed = None
    draft.obj.style.dotted = None


def _dash_length(draft: Draft, attr: Attribute) -> float:
    if attr.value is None:
        return draft.registry.variables["dashwid"]
    return draft.evaluator.scalar(attr.value)


def _dotted(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.dotted = _dash_length(draft, attr)
    draft.obj.style.dashed = None


def _dashed(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.dashed = _dash_length(draft, attr)
    draft.obj.style.dotted = None


def _invisible(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.invisible = True


def _at(draft: Draft, attr: Attribute) -> None:
    draft.at = draft.evaluator.position(attr.value)


def _with(draft: Draft, attr: Attribute) -> None:
    draft.with_edge = attr.value
    draft.at = draft.evaluator.position(attr.extra)


def _same(draft: Draft, attr: Attribute) -> None:
    obj = draft.obj
    if attr.value is None:
        try:
            source_id = draft.registry.resolve_ordinal(obj.cls, 1, from_last=True)
        except ObjectReferenceError:
            raise ObjectReferenceError(
                ObjectReferenceError.NO_PRIOR_OBJECT, f"no earlier {obj.cls.value} to copy"
            ) from None
        source = draft.registry[source_id]
    else:
        source = draft.evaluator.object(attr.value)
    obj.width = source.width
    obj.height = source.height
    obj.radius = source.radius
    obj.style = copy.deepcopy(source.style)
    draft.explicit_width = draft.explicit_height = True
    if obj.cls.is_line and source.cls.is_line and len(source.points) > 1:
        first = source.points[0]
        draft.copied_path = [(x - first[0], y - first[1]) for x, y in source.points[1:]]


def _fit(draft: Draft, attr: Attribute) -> None:
    draft.fit = True


def _text(draft: Draft, attr: Attribute) -> None:
    line: TextLine = attr.value
    draft.obj.text.append(copy.copy(line))


def _arrow(draft: Draft, attr: Attribute) -> None:
    style = draft.obj.style
    style.arrow_start = attr.value in ("<-", "<->")
    style.arrow_end = attr.value in ("->", "<->")


def _chop(draft: Draft, attr: Attribute) -> None:
    draft.chop = True


def _close(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.closed = True
    if draft.path is not None:
        draft.path.closed = True


def _cw(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.clockwise = True


def _ccw(draft: Draft, attr: Attribute) -> None:
    draft.obj.style.clockwise = False


def _path(draft: Draft) -> PathBuilder:
    assert draft.path is not None
    return draft.path


def _from(draft: Draft, attr: Attribute) -> None:
    _path(draft).set_origin(draft.evaluator.position(attr.value))
    draft.from_object = draft.evaluator.place_object(attr.value)


def _to(draft: Draft, attr: Attribute) -> None:
    point = draft.evaluator.position(attr.value)
    if draft.obj.cls is ObjectClass.ARC:
        draft.arc_end = point
    else:
        _path(draft).add_target(point)
    draft.to_object = draft.evaluator.place_object(attr.value)


def _then(draft: Draft, attr: Attribute) -> None:
    _path(draft).then()


def _direction(draft: Draft, attr: Attribute) -> None:
    path = _path(draft)
    extra = attr.extra
    if isinstance(extra, tuple):
        path.until(attr.value, draft.evaluator.position(extra[1]))
        return
    distance = None if extra is None else _line_distance(draft, extra, attr.value)
    path.move(attr.value, distance)


def _line_distance(draft: Draft, node: ex.Scalar, direction: Direction) -> float:
    return draft.evaluator.size(node, _path(draft).unit(direction))


def _heading(draft: Draft, attr: Attribute) -> None:
    degrees = draft.evaluator.scalar(attr.value)
    distance = None if attr.extra is None else draft.evaluator.scalar(attr.extra)
    _path(draft).heading(degrees, distance)


def _until(draft: Draft, attr: Attribute) -> None:
    _path(draft).until(None, draft.evaluator.position(attr.value))


def _distance(draft: Draft, attr: Attribute) -> None:
    path = _path(draft)
    path.distance(_line_distance(draft, attr.value, path.direction))


HANDLERS: Dict[str, Handler] = {
    "width": _set_width,
    "height": _set_height,
    "radius": _set_radius,
    "diameter": _set_diameter,
    "thickness": _set_thickness,
    "thick": _thick,
    "thin": _thin,
    "fill": _fill,
    "color": _color,
    "solid": _solid,
    "dotted": _dotted,
    "dashed": _dashed,
    "invisible": _invisible,
    "at": _at,
    "with": _with,
    "same": _same,
    "fit": _fit,
    "text": _text,
    "arrow": _arrow,
    "chop": _chop,
    "close": _close,
    "cw": _cw,
    "ccw": _ccw,
    "from": _from,
    "to": _to,
    "then": _then,
    "direction": _direction,
    "heading": _heading,
    "until": _until,
    "distance": _distance,
}

_COMMON = frozenset(
    {"text", "at", "with", "same", "thickness", "thick", "thin", "color",
     "solid", "dotted", "dashed", "invisible"}
)
_CLOSED = _COMMON | {"width", "height", "fill", "fit"}
_PATH = frozenset({"from", "to", "then", "direction", "heading", "until", "distance"})
_LINE = _COMMON | _PATH | {"arrow", "chop", "close", "radius", "fill"}

ACCEPTED: Dict[ObjectClass, FrozenSet[str]] = {
    ObjectClass.BOX: _CLOSED | {"radius"},
    ObjectClass.CIRCLE: _CLOSED | {"radius", "diameter"},
    ObjectClass.ELLIPSE: _CLOSED,
    ObjectClass.OVAL: _CLOSED,
    ObjectClass.DIAMOND: _CLOSED,
    ObjectClass.CYLINDER: _CLOSED | {"radius"},
    ObjectClass.FILE: _CLOSED | {"radius"},
    ObjectClass.DOT: _COMMON | {"radius", "diameter", "fill"},
    ObjectClass.TEXT: _CLOSED,
    ObjectClass.LINE: _LINE,
    ObjectClass.ARROW: _LINE,
    ObjectClass.SPLINE: _LINE,
    ObjectClass.MOVE: _PATH | {"text", "at", "with", "same"},
    ObjectClass.ARC: _COMMON | {"from", "to", "cw", "ccw", "arrow", "chop", "radius"},
    ObjectClass.CONTAINER: frozenset({"at", "with", "width", "height", "same", "invisible"}),
}


def apply(draft: Draft, attr: Attribute) -> None:
    """Apply one attribute, rejecting keywords the object's class does not take."""
    cls = draft.obj.cls
    if attr.name not in ACCEPTED[cls]:
        noun = "container" if cls is ObjectClass.CONTAINER else cls.value
        raise ParseError(f"'{_keyword(attr)}' is not an attribute of {noun}", attr.line, attr.column)
    try:
        HANDLERS[attr.name](draft, attr)
    except PicscriptError as exc:
        raise exc.locate(attr.line, attr.column)


def _keyword(attr: Attribute) -> str:
    if attr.name == "direction":
        return attr.value.value
    if attr.name == "distance":
        return "a bare distance"
    if attr.name == "arrow":
        return attr.value
    return attr.name


__all__ = ["ACCEPTED", "Draft", "HANDLERS", "apply"]
