"""Statement variants produced by the parser, one per script statement."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from .expressions import Node, Position, Scalar
from .model import Direction, ObjectClass


@dataclass
class Attribute(Node):
    """One attribute clause applied to the object being declared.

    ``name`` is the canonical keyword (``width`` for ``wid``, ``invisible``
    for ``invis``...).  ``value`` and ``extra`` carry the operands, whose
    shape depends on the keyword.
    """

    name: str
    value: Any = None
    extra: Any = None


@dataclass
class ObjectDeclaration(Node):
    cls: ObjectClass
    label: Optional[str] = None
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class ContainerBlock(Node):
    body: List["Statement"]
    label: Optional[str] = None
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class VariableAssignment(Node):
    name: str
    op: str
    expr: Scalar


@dataclass
class DirectionChange(Node):
    direction: Direction


@dataclass
class PrintCommand(Node):
    args: List[Union[str, Scalar]]


@dataclass
class AssertCommand(Node):
    left: Union[Scalar, Position]
    right: Union[Scalar, Position]
    positional: bool = False


@dataclass
class PlaceDeclaration(Node):
    label: str
    position: Position


Statement = Union[
    ObjectDeclaration,
    ContainerBlock,
    VariableAssignment,
    DirectionChange,
    PrintCommand,
    AssertCommand,
    PlaceDeclaration,
]
