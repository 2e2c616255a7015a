"""Compile driver: script text in, finished :class:`Diagram` out."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from . import geometry
from .colors import DEFAULT_COLORS, ColorTable
from .context import Collaborators, CompileContext
from .geometry import BBox
from .interpreter import Interpreter
from .model import DiagramObject, ObjectClass
from .parser import parse_source
from .registry import ObjectRegistry
from .text import TextMeasurer
from .units import UnitConverter, to_inches

_SHARED_MEASURER: Optional[TextMeasurer] = None


@dataclass
class Diagram:
    """Finished object graph with absolute coordinates in inches."""

    objects: List[DiagramObject]
    arena: List[DiagramObject]
    variables: Dict[str, float] = field(default_factory=dict)
    messages: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_id = {obj.id: obj for obj in self.arena}

    def __getitem__(self, object_id: int) -> DiagramObject:
        return self._by_id[object_id]

    def all_objects(self) -> Iterator[DiagramObject]:
        """Depth-first walk: each container is followed by its children."""
        for obj in self.objects:
            yield obj
            yield from self._descend(obj)

    def _descend(self, obj: DiagramObject) -> Iterator[DiagramObject]:
        for child_id in obj.children:
            child = self[child_id]
            yield child
            yield from self._descend(child)

    def find(self, label: str) -> DiagramObject:
        """Top-level object by label."""
        for obj in self.objects:
            if obj.label == label:
                return obj
        raise KeyError(label)

    @property
    def bbox(self) -> Optional[BBox]:
        bbox: Optional[BBox] = None
        for obj in self.all_objects():
            if obj.cls is ObjectClass.CONTAINER or obj.style.invisible:
                continue
            bbox = geometry.merge_bbox(bbox, obj.bbox())
        return bbox

    def to_dict(self) -> Dict[str, Any]:
        bbox = self.bbox
        return {
            "bbox": list(bbox) if bbox is not None else None,
            "objects": [obj.to_dict() for obj in self.all_objects()],
            "messages": list(self.messages),
        }


def compile_script(
    source: str,
    *,
    colors: Optional[ColorTable] = None,
    units: Optional[UnitConverter] = None,
    measurer: Optional[TextMeasurer] = None,
) -> Diagram:
    """Compile picscript source into a laid-out :class:`Diagram`.

    Raises a :class:`~picscript.errors.PicscriptError` subclass on the first
    lexical, syntactic, reference or evaluation error.
    """
    collaborators = Collaborators(
        colors=colors if colors is not None else DEFAULT_COLORS,
        units=units if units is not None else to_inches,
        measurer=measurer if measurer is not None else _default_measurer(),
    )
    statements = parse_source(source, collaborators.colors)
    registry = ObjectRegistry()
    context = CompileContext(registry=registry, collaborators=collaborators)
    Interpreter(context).run(statements)
    return Diagram(
        objects=list(registry),
        arena=registry.arena,
        variables=dict(registry.variables),
        messages=context.messages,
    )


def _default_measurer() -> TextMeasurer:
    global _SHARED_MEASURER
    if _SHARED_MEASURER is None:
        _SHARED_MEASURER = TextMeasurer()
    return _SHARED_MEASURER


__all__ = ["Diagram", "compile_script"]
