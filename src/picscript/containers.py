"""Bracketed ``[ ... ]`` groups: child scope, bounding box, final translation."""
from __future__ import annotations

from typing import Callable, List, Optional

from . import geometry, layout
from .attributes import Draft, apply
from .context import CompileContext
from .geometry import BBox
from .model import ObjectClass
from .statements import ContainerBlock, Statement

BodyRunner = Callable[[CompileContext, List[Statement]], None]


class ContainerResolver:
    """Lays out a container body in its own scope and sizes the group around it.

    ``run`` executes a statement list against a context; it is supplied by
    the interpreter so nested containers recurse through the same path.
    """

    def __init__(self, run: BodyRunner) -> None:
        self.run = run

    def resolve(self, context: CompileContext, block: ContainerBlock) -> Draft:
        origin = layout.stacking_start(context, closed=True)
        inner = context.nested(origin)
        self.run(inner, block.body)

        draft = layout.new_draft(context, ObjectClass.CONTAINER)
        container = draft.obj
        bbox = children_bbox(inner)
        if bbox is None:
            container.center = origin
        else:
            container.center = geometry.bbox_center(bbox)
            container.width, container.height = geometry.bbox_size(bbox)
        context.registry.attach_scope(container.id, inner.registry)

        for attr in block.attributes:
            apply(draft, attr)
        before = container.center
        layout.place_closed(context, draft)
        dx = container.center[0] - before[0]
        dy = container.center[1] - before[1]
        if dx or dy:
            for child in context.registry.descendants(container.id):
                child.translate(dx, dy)
        return draft


def children_bbox(inner: CompileContext) -> Optional[BBox]:
    """Union of the finalized children's boxes, skipping invisible ones."""
    bbox: Optional[BBox] = None
    for child in inner.registry:
        if child.style.invisible:
            continue
        bbox = geometry.merge_bbox(bbox, child.bbox())
    return bbox


__all__ = ["ContainerResolver", "children_bbox"]
