"""Expression trees for scalars, object references and positions.

The parser builds these nodes; :mod:`picscript.evaluator` reduces them
against the registry.  Every node remembers where it started in the source
so evaluation errors can point at the offending sub-expression.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .model import ObjectClass


@dataclass
class Node:
    line: int = field(default=0, kw_only=True)
    column: int = field(default=0, kw_only=True)


# Scalars


@dataclass
class Number(Node):
    value: float
    unit: Optional[str] = None


@dataclass
class Percent(Node):
    value: float


@dataclass
class Variable(Node):
    name: str


@dataclass
class ColorName(Node):
    name: str


@dataclass
class Unary(Node):
    op: str
    operand: "Scalar"


@dataclass
class Binary(Node):
    op: str
    left: "Scalar"
    right: "Scalar"


@dataclass
class Call(Node):
    name: str
    args: List[Union["Scalar", "Position"]]


@dataclass
class Coordinate(Node):
    position: "Position"
    axis: str


@dataclass
class Property(Node):
    ref: "ObjectRef"
    name: str


# Object references


@dataclass
class LabelRef(Node):
    name: str


@dataclass
class OrdinalRef(Node):
    cls: Optional[ObjectClass]
    n: int
    from_last: bool = False


@dataclass
class PreviousRef(Node):
    pass


@dataclass
class ChildRef(Node):
    container: "ObjectRef"
    ref: Union[LabelRef, OrdinalRef]


# Positions


@dataclass
class Pair(Node):
    x: "Scalar"
    y: "Scalar"


@dataclass
class ObjectPlace(Node):
    ref: "ObjectRef"
    edge: Optional[str] = None


@dataclass
class Vertex(Node):
    n: int
    ref: "ObjectRef"
    from_last: bool = False


@dataclass
class Offset(Node):
    base: "Position"
    dx: "Scalar"
    dy: "Scalar"
    sign: int = 1


@dataclass
class Mix(Node):
    x_source: "Position"
    y_source: "Position"


@dataclass
class Relative(Node):
    distance: "Scalar"
    edge: str
    base: "Position"


@dataclass
class Heading(Node):
    distance: "Scalar"
    angle: "Scalar"
    base: "Position"


@dataclass
class Between(Node):
    fraction: Optional["Scalar"]
    a: "Position"
    b: "Position"


Scalar = Union[Number, Percent, Variable, ColorName, Unary, Binary, Call, Coordinate, Property]
ObjectRef = Union[LabelRef, OrdinalRef, PreviousRef, ChildRef]
Position = Union[Pair, ObjectPlace, Vertex, Offset, Mix, Relative, Heading, Between]
