"""Evaluation of scalar and position expressions against the registry."""
from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Tuple

from . import expressions as ex
from . import geometry
from .colors import ColorTable
from .errors import EvalError, PicscriptError
from .geometry import Point
from .model import DiagramObject
from .registry import ObjectRegistry
from .units import UnitConverter


class Evaluator:
    """Reads registry state to reduce expression trees; never mutates it."""

    def __init__(
        self, registry: ObjectRegistry, *, colors: ColorTable, units: UnitConverter
    ) -> None:
        self.registry = registry
        self.colors = colors
        self.units = units

    # Scalars

    def scalar(self, node: ex.Scalar) -> float:
        try:
            value = self._scalar(node)
            if not math.isfinite(value):
                raise EvalError("numeric overflow: result is not a finite number")
            return value
        except PicscriptError as exc:
            raise exc.locate(node.line, node.column)

    def size(self, node: ex.Scalar, reference: float) -> float:
        """Scalar where a bare percentage means a fraction of ``reference``."""
        if isinstance(node, ex.Percent):
            return node.value / 100.0 * reference
        return self.scalar(node)

    def _scalar(self, node: ex.Scalar) -> float:
        if isinstance(node, ex.Number):
            try:
                return self.units(node.value, node.unit)
            except ValueError as exc:
                raise EvalError(str(exc)) from exc
        if isinstance(node, ex.Variable):
            try:
                return self.registry.variables[node.name]
            except KeyError:
                raise EvalError(f"unknown variable '{node.name}'") from None
        if isinstance(node, ex.ColorName):
            try:
                return float(self.colors.value(node.name))
            except KeyError:
                raise EvalError(f"unknown color '{node.name}'") from None
        if isinstance(node, ex.Unary):
            return -self.scalar(node.operand)
        if isinstance(node, ex.Binary):
            return self._binary(node)
        if isinstance(node, ex.Call):
            return self._call(node)
        if isinstance(node, ex.Coordinate):
            point = self.position(node.position)
            return point[0] if node.axis == "x" else point[1]
        if isinstance(node, ex.Property):
            return _property(self.object(node.ref), node.name)
        if isinstance(node, ex.Percent):
            raise EvalError("a percentage is only allowed as a whole size value")
        raise EvalError(f"cannot evaluate {type(node).__name__} as a number")

    def _binary(self, node: ex.Binary) -> float:
        left = self.scalar(node.left)
        right = self.scalar(node.right)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise EvalError("division by zero")
        return left / right

    def _call(self, node: ex.Call) -> float:
        entry = _FUNCTIONS.get(node.name)
        if entry is None:
            raise EvalError(f"unknown function '{node.name}'")
        arity, wants_positions, impl = entry
        if len(node.args) != arity:
            plural = "s" if arity != 1 else ""
            raise EvalError(f"{node.name}() expects {arity} argument{plural}, got {len(node.args)}")
        if wants_positions:
            return impl(*[self.position(arg) for arg in node.args])
        return impl(*[self.scalar(arg) for arg in node.args])

    # Objects

    def object(self, ref: ex.ObjectRef) -> DiagramObject:
        return self.registry[self.object_id(ref)]

    def object_id(self, ref: ex.ObjectRef) -> int:
        try:
            return self._object_id(ref, self.registry, local_only=False)
        except PicscriptError as exc:
            raise exc.locate(ref.line, ref.column)

    def _object_id(self, ref: ex.ObjectRef, scope: ObjectRegistry, *, local_only: bool) -> int:
        if isinstance(ref, ex.LabelRef):
            return scope.resolve_label(ref.name, local_only=local_only)
        if isinstance(ref, ex.PreviousRef):
            return scope.previous()
        if isinstance(ref, ex.OrdinalRef):
            return scope.resolve_ordinal(ref.cls, ref.n, from_last=ref.from_last)
        container_id = self._object_id(ref.container, scope, local_only=local_only)
        inner = self.registry.scope_of(container_id)
        return self._object_id(ref.ref, inner, local_only=True)

    def place_object(self, node: ex.Position) -> Optional[int]:
        """Id of the whole object a position names (``A``, ``2nd box``), else None."""
        if not isinstance(node, ex.ObjectPlace) or node.edge is not None:
            return None
        if isinstance(node.ref, ex.LabelRef) and self.registry.resolve_place(node.ref.name):
            return None
        return self.object_id(node.ref)

    # Positions

    def position(self, node: ex.Position) -> Point:
        try:
            return self._position(node)
        except PicscriptError as exc:
            raise exc.locate(node.line, node.column)

    def _position(self, node: ex.Position) -> Point:
        if isinstance(node, ex.Pair):
            return self.scalar(node.x), self.scalar(node.y)
        if isinstance(node, ex.ObjectPlace):
            return self._object_place(node)
        if isinstance(node, ex.Vertex):
            obj = self.object(node.ref)
            if not obj.cls.is_line:
                raise EvalError(f"a {obj.cls.value} has no vertexes")
            index = len(obj.points) - node.n + 1 if node.from_last else node.n
            try:
                return obj.vertex(index)
            except IndexError:
                raise EvalError(
                    f"vertex {node.n} out of range: the {obj.cls.value} has {len(obj.points)}"
                ) from None
        if isinstance(node, ex.Offset):
            base = self.position(node.base)
            dx = self.scalar(node.dx)
            dy = self.scalar(node.dy)
            return geometry.add(base, node.sign * dx, node.sign * dy)
        if isinstance(node, ex.Mix):
            return self.position(node.x_source)[0], self.position(node.y_source)[1]
        if isinstance(node, ex.Relative):
            distance = self.scalar(node.distance)
            base = self.position(node.base)
            vector = geometry.compass_vector(node.edge)
            return geometry.add(base, *geometry.scale(vector, distance))
        if isinstance(node, ex.Heading):
            distance = self.scalar(node.distance)
            angle = self.scalar(node.angle)
            base = self.position(node.base)
            return geometry.add(base, *geometry.scale(geometry.heading_vector(angle), distance))
        if isinstance(node, ex.Between):
            fraction = 0.5 if node.fraction is None else self.scalar(node.fraction)
            return geometry.interpolate(self.position(node.a), self.position(node.b), fraction)
        raise EvalError(f"cannot evaluate {type(node).__name__} as a position")

    def _object_place(self, node: ex.ObjectPlace) -> Point:
        if isinstance(node.ref, ex.LabelRef):
            place = self.registry.resolve_place(node.ref.name)
            if place is not None:
                if node.edge is not None:
                    raise EvalError(f"place '{node.ref.name}' has no .{node.edge} anchor")
                return place
        obj = self.object(node.ref)
        if node.edge is None:
            return obj.center
        return obj.anchor(node.edge)


def _property(obj: DiagramObject, name: str) -> float:
    if name == "width":
        return obj.width
    if name == "height":
        return obj.height
    if name == "thickness":
        return obj.style.thickness
    if name == "diameter":
        return 2.0 * _radius(obj)
    return _radius(obj)


def _radius(obj: DiagramObject) -> float:
    if obj.cls.keeps_aspect:
        return obj.width / 2.0
    return obj.radius


def _sqrt(value: float) -> float:
    if value < 0:
        raise EvalError(f"sqrt() of negative number {value:g}")
    return math.sqrt(value)


def _truncate(value: float) -> float:
    if not math.isfinite(value):
        raise EvalError(f"int() of non-finite number {value}")
    return float(int(value))


_FUNCTIONS: Dict[str, Tuple[int, bool, Callable[..., float]]] = {
    "abs": (1, False, abs),
    "cos": (1, False, lambda deg: geometry.heading_vector(deg)[1]),
    "sin": (1, False, lambda deg: geometry.heading_vector(deg)[0]),
    "sqrt": (1, False, _sqrt),
    "min": (2, False, min),
    "max": (2, False, max),
    "int": (1, False, _truncate),
    "dist": (2, True, geometry.distance),
}


def format_number(value: float) -> str:
    if not math.isfinite(value):
        raise EvalError(f"cannot format non-finite number {value}")
    if math.isclose(value, round(value), abs_tol=1e-9):
        return str(int(round(value)))
    return f"{value:.6f}".rstrip("0").rstrip(".")


__all__: List[str] = ["Evaluator", "format_number"]
