"""Mutable state threaded through one compile: registry, cursor, collaborators."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .colors import DEFAULT_COLORS, ColorTable
from .evaluator import Evaluator
from .geometry import Point
from .model import Direction
from .registry import ObjectRegistry
from .text import TextMeasurer
from .units import UnitConverter, to_inches


@dataclass
class Collaborators:
    """Externally supplied lookup tables and measurement."""

    colors: ColorTable = DEFAULT_COLORS
    units: UnitConverter = to_inches
    measurer: TextMeasurer = field(default_factory=TextMeasurer)


@dataclass
class DrawingCursor:
    """Where the next automatically placed object attaches.

    ``flow`` is the id of the last object placed by stacking; when set, the
    next object starts at its exit edge for the current ``direction``.
    """

    position: Point = (0.0, 0.0)
    direction: Direction = Direction.RIGHT
    flow: Optional[int] = None


@dataclass
class CompileContext:
    registry: ObjectRegistry
    collaborators: Collaborators
    cursor: DrawingCursor = field(default_factory=DrawingCursor)
    messages: List[str] = field(default_factory=list)
    depth: int = 0

    @property
    def evaluator(self) -> Evaluator:
        return Evaluator(
            self.registry,
            colors=self.collaborators.colors,
            units=self.collaborators.units,
        )

    def variable(self, name: str) -> float:
        return self.registry.variables[name]

    def nested(self, origin: Point) -> "CompileContext":
        """Context for a container body: own scope, cursor cloned at ``origin``."""
        return CompileContext(
            registry=self.registry.child_scope(),
            collaborators=self.collaborators,
            cursor=DrawingCursor(position=origin, direction=self.cursor.direction),
            messages=self.messages,
            depth=self.depth + 1,
        )


__all__ = ["Collaborators", "CompileContext", "DrawingCursor"]
