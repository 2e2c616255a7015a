"""Placement: sizing drafts, stacking along the cursor, explicit ``at``/``with``."""
from __future__ import annotations

import math
from typing import Tuple

from . import geometry
from .attributes import Draft
from .colors import number_to_paint
from .context import CompileContext
from .geometry import Point
from .model import SIZE_VARIABLES, DiagramObject, Direction, ObjectClass, Style
from .paths import PathBuilder, arc_points, chop_point
from .text import text_block_size


def new_draft(context: CompileContext, cls: ObjectClass) -> Draft:
    """Allocate a placeholder object with defaults taken from the current variables."""
    registry = context.registry
    variables = registry.variables
    obj = registry[registry.create(cls, context.cursor.direction)]
    width_var, height_var, radius_var = SIZE_VARIABLES[cls]
    if radius_var is not None:
        obj.radius = variables[radius_var]
    if cls.keeps_aspect:
        obj.width = obj.height = 2.0 * obj.radius
    else:
        obj.width = variables[width_var] if width_var else 0.0
        obj.height = variables[height_var] if height_var else 0.0
    obj.style = Style(
        color=number_to_paint(variables["color"]),
        fill=number_to_paint(variables["fill"]),
        thickness=variables["thickness"],
        arrow_end=cls is ObjectClass.ARROW,
    )
    path = None
    if cls.is_line:
        path = PathBuilder(context.cursor.direction, lambda d: _line_unit(context, cls, d))
    return Draft(obj=obj, evaluator=context.evaluator, path=path)


def _line_unit(context: CompileContext, cls: ObjectClass, direction: Direction) -> float:
    width_var, height_var, _ = SIZE_VARIABLES[cls]
    name = width_var if direction.horizontal else height_var
    return context.variable(name or ("linewid" if direction.horizontal else "lineht"))


def stacking_start(context: CompileContext, *, closed: bool) -> Point:
    """Attachment point for the next automatically placed object."""
    cursor = context.cursor
    if cursor.flow is None:
        return cursor.position
    flow = context.registry[cursor.flow]
    if flow.cls.is_line:
        return flow.end
    start = flow.anchor(cursor.direction.exit_edge)
    gap = context.variable("gap")
    if closed and gap:
        start = geometry.add(start, *geometry.scale(cursor.direction.vector, gap))
    return start


def place(context: CompileContext, draft: Draft) -> None:
    obj = draft.obj
    if obj.cls.is_line:
        place_line(context, draft)
        return
    size_to_text(context, draft)
    if obj.cls is ObjectClass.DOT and obj.style.fill is None:
        obj.style.fill = obj.style.color
    place_closed(context, draft)


def size_to_text(context: CompileContext, draft: Draft) -> None:
    """Apply ``fit`` and the natural size of bare text objects."""
    obj = draft.obj
    if not obj.text:
        return
    is_text = obj.cls is ObjectClass.TEXT
    if not draft.fit and not is_text:
        return
    fontscale = context.variable("fontscale")
    charht = context.variable("charht")
    width, height = text_block_size(
        context.collaborators.measurer, obj.text, charht, fontscale
    )
    if draft.fit:
        width += 2.0 * context.variable("charwid") * fontscale
        height += charht * fontscale
        width, height = _fit_shape(obj, width, height)
    if obj.cls.keeps_aspect:
        diameter = max(width, height)
        width = height = diameter
        obj.radius = diameter / 2.0
    if not draft.explicit_width:
        obj.width = width
    if not draft.explicit_height:
        obj.height = height


def _fit_shape(obj: DiagramObject, width: float, height: float) -> Tuple[float, float]:
    if obj.cls is ObjectClass.ELLIPSE:
        return width * math.sqrt(2.0), height * math.sqrt(2.0)
    if obj.cls is ObjectClass.OVAL:
        return width + height, height
    if obj.cls is ObjectClass.DIAMOND:
        return 2.0 * width, 2.0 * height
    if obj.cls is ObjectClass.CYLINDER:
        return width, height + 2.0 * obj.radius
    return width, height


def place_closed(context: CompileContext, draft: Draft) -> None:
    obj = draft.obj
    if draft.at is not None:
        edge = obj.anchor(draft.with_edge or "c")
        obj.center = (
            draft.at[0] - (edge[0] - obj.center[0]),
            draft.at[1] - (edge[1] - obj.center[1]),
        )
        return
    direction = context.cursor.direction
    start = stacking_start(context, closed=True)
    extent = obj.width if direction.horizontal else obj.height
    obj.center = geometry.add(start, *geometry.scale(direction.vector, extent / 2.0))


def place_line(context: CompileContext, draft: Draft) -> None:
    obj = draft.obj
    path = draft.path
    assert path is not None
    start = stacking_start(context, closed=False)
    if obj.cls is ObjectClass.ARC:
        origin = path.origin if path.origin is not None else start
        obj.points = arc_points(
            origin, draft.arc_end, obj.direction, obj.radius, obj.style.clockwise
        )
    elif draft.copied_path and all(segment.empty for segment in path.segments):
        origin = path.origin if path.origin is not None else start
        obj.points = [origin] + [geometry.add(origin, dx, dy) for dx, dy in draft.copied_path]
    else:
        obj.points = path.build(start)
    if draft.chop:
        _chop(context, draft)
    obj.sync_extent()
    if draft.at is not None:
        anchor = obj.anchor(draft.with_edge or "c")
        obj.translate(draft.at[0] - anchor[0], draft.at[1] - anchor[1])


def _chop(context: CompileContext, draft: Draft) -> None:
    points = draft.obj.points
    if len(points) < 2:
        return
    if draft.from_object is not None:
        points[0] = _boundary(context.registry[draft.from_object], points[1])
    if draft.to_object is not None:
        points[-1] = _boundary(context.registry[draft.to_object], points[-2])


def _boundary(obj: DiagramObject, toward: Point) -> Point:
    return chop_point(
        obj.center,
        obj.width,
        obj.height,
        toward,
        round_shape=obj.cls.is_round,
        bbox=obj.bbox(),
    )


def advance(context: CompileContext, draft: Draft) -> None:
    """Make a stacked object the new flow object; explicit placement leaves the cursor."""
    obj = draft.obj
    if draft.at is not None:
        return
    cursor = context.cursor
    cursor.flow = obj.id
    cursor.position = obj.end
    if obj.cls.is_line and draft.path is not None and draft.path.exit_direction is not None:
        cursor.direction = draft.path.exit_direction


__all__ = [
    "advance",
    "new_draft",
    "place",
    "place_closed",
    "place_line",
    "size_to_text",
    "stacking_start",
]
