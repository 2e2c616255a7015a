"""Object registry: the arena of created objects plus per-scope lookups.

Objects live in one append-only arena shared by every scope of a compile and
are referred to by integer id.  Each scope (the top level, and one per
container) keeps its own declaration order, per-class ordinal lists, label
table and variable bindings.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from .errors import ObjectReferenceError
from .geometry import Point
from .model import DEFAULT_VARIABLES, DiagramObject, Direction, ObjectClass


class ObjectRegistry:
    def __init__(
        self,
        *,
        parent: Optional["ObjectRegistry"] = None,
        variables: Optional[Dict[str, float]] = None,
    ) -> None:
        self._arena: List[DiagramObject] = parent._arena if parent is not None else []
        self._parent = parent
        self._members: List[int] = []
        self._ordinals: Dict[ObjectClass, List[int]] = {}
        self._labels: Dict[str, int] = {}
        self._places: Dict[str, Point] = {}
        self._scopes: Dict[int, ObjectRegistry] = parent._scopes if parent is not None else {}
        self.variables: Dict[str, float] = dict(
            variables if variables is not None else DEFAULT_VARIABLES
        )

    def __getitem__(self, object_id: int) -> DiagramObject:
        return self._arena[object_id]

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[DiagramObject]:
        for object_id in self._members:
            yield self._arena[object_id]

    @property
    def members(self) -> List[int]:
        return list(self._members)

    @property
    def arena(self) -> List[DiagramObject]:
        """Every finalized object of the compile, in creation order."""
        return [obj for obj in self._arena if obj.finalized]

    def create(self, cls: ObjectClass, direction: Direction) -> int:
        """Allocate a placeholder object; it is not visible to lookups yet."""
        object_id = len(self._arena)
        self._arena.append(DiagramObject(id=object_id, cls=cls, direction=direction))
        return object_id

    def finalize(self, object_id: int) -> DiagramObject:
        """Make an object visible to ordinal lookups and ``previous``."""
        obj = self._arena[object_id]
        same_class = self._ordinals.setdefault(obj.cls, [])
        same_class.append(object_id)
        obj.ordinal = len(same_class)
        obj.finalized = True
        self._members.append(object_id)
        return obj

    def bind_label(self, label: str, object_id: int) -> None:
        self._claim(label)
        self._labels[label] = object_id
        self._arena[object_id].label = label

    def bind_place(self, label: str, point: Point) -> None:
        self._claim(label)
        self._places[label] = point

    def _claim(self, label: str) -> None:
        if label in self._labels or label in self._places:
            raise ObjectReferenceError(
                ObjectReferenceError.DUPLICATE_LABEL, f"label '{label}' is already defined"
            )

    def resolve_label(self, label: str, *, local_only: bool = False) -> int:
        scope: Optional[ObjectRegistry] = self
        while scope is not None:
            if label in scope._labels:
                return scope._labels[label]
            if label in scope._places:
                raise ObjectReferenceError(
                    ObjectReferenceError.UNKNOWN_LABEL,
                    f"'{label}' names a place, not an object",
                )
            scope = None if local_only else scope._parent
        raise ObjectReferenceError(
            ObjectReferenceError.UNKNOWN_LABEL, f"unknown label '{label}'"
        )

    def resolve_place(self, label: str) -> Optional[Point]:
        """Point bound by ``Label: position``, or None when the label is not a place."""
        scope: Optional[ObjectRegistry] = self
        while scope is not None:
            if label in scope._labels:
                return None
            if label in scope._places:
                return scope._places[label]
            scope = scope._parent
        return None

    def resolve_ordinal(self, cls: ObjectClass, n: int, *, from_last: bool = False) -> int:
        same_class = self._ordinals.get(cls, [])
        if n < 1 or n > len(same_class):
            where = "from the end" if from_last else "so far"
            raise ObjectReferenceError(
                ObjectReferenceError.ORDINAL_OUT_OF_RANGE,
                f"no {_ordinal_word(n)} {cls.value} {where}: {len(same_class)} declared",
            )
        return same_class[-n] if from_last else same_class[n - 1]

    def previous(self) -> int:
        if not self._members:
            raise ObjectReferenceError(
                ObjectReferenceError.NO_PRIOR_OBJECT, "no previous object"
            )
        return self._members[-1]

    def child_scope(self) -> "ObjectRegistry":
        """Fresh scope for a container body, seeded with a copy of the variables."""
        return ObjectRegistry(parent=self, variables=self.variables)

    def attach_scope(self, container_id: int, scope: "ObjectRegistry") -> None:
        self._scopes[container_id] = scope
        container = self._arena[container_id]
        container.children = scope.members
        for child_id in container.children:
            self._arena[child_id].parent = container_id

    def scope_of(self, container_id: int) -> "ObjectRegistry":
        if container_id in self._scopes:
            return self._scopes[container_id]
        obj = self._arena[container_id]
        raise ObjectReferenceError(
            ObjectReferenceError.UNKNOWN_LABEL,
            f"{obj.cls.value} #{container_id} has no child objects",
        )

    def descendants(self, object_id: int) -> Iterator[DiagramObject]:
        """Every object nested under a container, depth-first."""
        for child_id in self._arena[object_id].children:
            yield self._arena[child_id]
            yield from self.descendants(child_id)


def _ordinal_word(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"
