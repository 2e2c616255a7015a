from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from picscript.colors import DEFAULT_COLORS
from picscript.errors import EvalError, ObjectReferenceError
from picscript.evaluator import Evaluator, format_number
from picscript.lexer import tokenize
from picscript.model import Direction, ObjectClass
from picscript.parser import Parser
from picscript.registry import ObjectRegistry
from picscript.units import to_inches


class EvaluatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = ObjectRegistry()
        box_id = self.registry.create(ObjectClass.BOX, Direction.RIGHT)
        box = self.registry[box_id]
        box.center = (1.0, 1.0)
        box.width = 2.0
        box.height = 1.0
        self.registry.finalize(box_id)
        self.registry.bind_label("A", box_id)

        line_id = self.registry.create(ObjectClass.LINE, Direction.RIGHT)
        line = self.registry[line_id]
        line.points = [(0.0, 0.0), (1.0, 0.0), (1.0, 2.0)]
        line.sync_extent()
        self.registry.finalize(line_id)
        self.registry.bind_label("L", line_id)

        self.registry.bind_place("P", (3.0, 4.0))
        self.evaluator = Evaluator(self.registry, colors=DEFAULT_COLORS, units=to_inches)

    def scalar(self, text: str) -> float:
        return self.evaluator.scalar(Parser(tokenize(text)).parse_expr())

    def position(self, text: str) -> tuple[float, float]:
        return self.evaluator.position(Parser(tokenize(text)).parse_position())

    def assertPoint(self, actual: tuple[float, float], expected: tuple[float, float]) -> None:
        self.assertAlmostEqual(actual[0], expected[0])
        self.assertAlmostEqual(actual[1], expected[1])

    def test_precedence(self) -> None:
        self.assertEqual(self.scalar("1 + 2 * 3"), 7.0)
        self.assertEqual(self.scalar("(1 + 2) * 3"), 9.0)
        self.assertEqual(self.scalar("-2 * 3"), -6.0)
        self.assertEqual(self.scalar("8 / 4 / 2"), 1.0)

    def test_units_and_variables(self) -> None:
        self.assertAlmostEqual(self.scalar("2.54cm"), 1.0)
        self.assertAlmostEqual(self.scalar("72pt"), 1.0)
        self.assertEqual(self.scalar("boxwid * 2"), 1.5)

    def test_functions(self) -> None:
        self.assertEqual(self.scalar("abs(-2)"), 2.0)
        self.assertEqual(self.scalar("sqrt(16)"), 4.0)
        self.assertEqual(self.scalar("min(3, 2)"), 2.0)
        self.assertEqual(self.scalar("max(3, 2)"), 3.0)
        self.assertEqual(self.scalar("int(2.7)"), 2.0)
        self.assertEqual(self.scalar("sin(90)"), 1.0)
        self.assertEqual(self.scalar("cos(0)"), 1.0)
        self.assertEqual(self.scalar("cos(90)"), 0.0)
        self.assertEqual(self.scalar("dist(A.w, A.e)"), 2.0)

    def test_colors_are_rgb_integers(self) -> None:
        self.assertEqual(self.scalar("red"), float(0xFF0000))
        self.assertEqual(self.scalar("None"), -1.0)

    def test_object_properties_and_coordinates(self) -> None:
        self.assertEqual(self.scalar("A.width"), 2.0)
        self.assertEqual(self.scalar("A.ht"), 1.0)
        self.assertEqual(self.scalar("A.x + A.n.y"), 2.5)

    def test_anchor_positions(self) -> None:
        self.assertPoint(self.position("A.e"), (2.0, 1.0))
        self.assertPoint(self.position("n of A"), (1.0, 1.5))
        self.assertPoint(self.position("A.sw"), (0.0, 0.5))
        self.assertPoint(self.position("A"), (1.0, 1.0))

    def test_relative_positions(self) -> None:
        self.assertPoint(self.position("A + (1, 2)"), (2.0, 3.0))
        self.assertPoint(self.position("A.e - (1, 1)"), (1.0, 0.0))
        self.assertPoint(self.position("1 above A"), (1.0, 2.0))
        self.assertPoint(self.position("1 right of A"), (2.0, 1.0))
        self.assertPoint(self.position("2 heading 90 from A"), (3.0, 1.0))

    def test_interpolated_positions(self) -> None:
        self.assertPoint(self.position("between A.w and A.e"), (1.0, 1.0))
        self.assertPoint(self.position("1/4 of the way between A.w and A.e"), (0.5, 1.0))
        self.assertPoint(self.position("0.25 <A.w, A.e>"), (0.5, 1.0))
        self.assertPoint(self.position("(A.w, A.n)"), (0.0, 1.5))
        self.assertPoint(self.position("1, 2"), (1.0, 2.0))

    def test_vertexes(self) -> None:
        self.assertPoint(self.position("2nd vertex of L"), (1.0, 0.0))
        self.assertPoint(self.position("last vertex of L"), (1.0, 2.0))
        with self.assertRaises(EvalError):
            self.position("4th vertex of L")
        with self.assertRaises(EvalError):
            self.position("1st vertex of A")

    def test_places(self) -> None:
        self.assertPoint(self.position("P + (1, 1)"), (4.0, 5.0))
        with self.assertRaises(EvalError):
            self.position("P.n")

    def test_errors_carry_sub_expression_position(self) -> None:
        with self.assertRaises(EvalError) as ctx:
            self.scalar("1 + 1 / 0")
        self.assertEqual((ctx.exception.line, ctx.exception.column), (1, 7))

    def test_eval_errors(self) -> None:
        for text in ("nosuch + 1", "sqrt(-4)", "min(1)", "50%"):
            with self.subTest(text=text):
                with self.assertRaises(EvalError):
                    self.scalar(text)

    def test_unknown_label_is_a_reference_error(self) -> None:
        with self.assertRaises(ObjectReferenceError) as ctx:
            self.position("B.e")
        self.assertEqual(ctx.exception.kind, ObjectReferenceError.UNKNOWN_LABEL)

    def test_evaluation_does_not_touch_the_registry(self) -> None:
        before = (len(self.registry), dict(self.registry.variables))
        self.position("between A and 2nd vertex of L")
        self.scalar("A.width * boxwid")
        self.assertEqual((len(self.registry), dict(self.registry.variables)), before)

    def test_format_number(self) -> None:
        self.assertEqual(format_number(2.0), "2")
        self.assertEqual(format_number(0.125), "0.125")
        self.assertEqual(format_number(-1.5), "-1.5")


if __name__ == "__main__":
    unittest.main()
