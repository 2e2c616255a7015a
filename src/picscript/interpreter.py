"""Statement execution: one pass over the parsed script, in source order."""
from __future__ import annotations

import math
from typing import List, Optional

from . import layout
from .attributes import Draft, apply
from .containers import ContainerResolver
from .context import CompileContext
from .errors import EvalError, PicscriptError
from .evaluator import format_number
from .geometry import Point
from .statements import (
    AssertCommand,
    ContainerBlock,
    DirectionChange,
    ObjectDeclaration,
    PlaceDeclaration,
    PrintCommand,
    Statement,
    VariableAssignment,
)


class Interpreter:
    def __init__(self, context: CompileContext) -> None:
        self.context = context
        self.containers = ContainerResolver(_run_body)

    def run(self, statements: List[Statement]) -> None:
        for statement in statements:
            self.execute(statement)

    def execute(self, statement: Statement) -> None:
        try:
            if isinstance(statement, ObjectDeclaration):
                self._declare(statement)
            elif isinstance(statement, ContainerBlock):
                self._finish(self.containers.resolve(self.context, statement), statement.label)
            elif isinstance(statement, VariableAssignment):
                self._assign(statement)
            elif isinstance(statement, DirectionChange):
                self.context.cursor.direction = statement.direction
            elif isinstance(statement, PrintCommand):
                self._print(statement)
            elif isinstance(statement, AssertCommand):
                self._assert(statement)
            elif isinstance(statement, PlaceDeclaration):
                point = self.context.evaluator.position(statement.position)
                self.context.registry.bind_place(statement.label, point)
        except PicscriptError as exc:
            raise exc.locate(statement.line, statement.column)

    def _declare(self, statement: ObjectDeclaration) -> None:
        draft = layout.new_draft(self.context, statement.cls)
        for attr in statement.attributes:
            apply(draft, attr)
        layout.place(self.context, draft)
        self._finish(draft, statement.label)

    def _finish(self, draft: Draft, label: Optional[str]) -> None:
        registry = self.context.registry
        registry.finalize(draft.obj.id)
        if label is not None:
            registry.bind_label(label, draft.obj.id)
        layout.advance(self.context, draft)

    def _assign(self, statement: VariableAssignment) -> None:
        value = self.context.evaluator.scalar(statement.expr)
        variables = self.context.registry.variables
        name = statement.name
        if statement.op == "=":
            variables[name] = value
            return
        if name not in variables:
            raise EvalError(f"unknown variable '{name}'")
        current = variables[name]
        if statement.op == "+=":
            result = current + value
        elif statement.op == "-=":
            result = current - value
        elif statement.op == "*=":
            result = current * value
        else:
            if value == 0:
                raise EvalError("division by zero")
            result = current / value
        if not math.isfinite(result):
            raise EvalError(f"numeric overflow in '{name} {statement.op}'")
        variables[name] = result

    def _print(self, statement: PrintCommand) -> None:
        evaluator = self.context.evaluator
        parts = [
            arg if isinstance(arg, str) else format_number(evaluator.scalar(arg))
            for arg in statement.args
        ]
        self.context.messages.append(" ".join(parts))

    def _assert(self, statement: AssertCommand) -> None:
        evaluator = self.context.evaluator
        if statement.positional:
            left = evaluator.position(statement.left)
            right = evaluator.position(statement.right)
            same = all(_close(a, b) for a, b in zip(left, right))
            shown = f"{_point_text(left)} != {_point_text(right)}"
        else:
            a = evaluator.scalar(statement.left)
            b = evaluator.scalar(statement.right)
            same = _close(a, b)
            shown = f"{format_number(a)} != {format_number(b)}"
        if not same:
            raise EvalError(f"assertion failed: {shown}")


def _run_body(context: CompileContext, statements: List[Statement]) -> None:
    Interpreter(context).run(statements)


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-9)


def _point_text(point: Point) -> str:
    return f"({format_number(point[0])}, {format_number(point[1])})"


__all__ = ["Interpreter"]
