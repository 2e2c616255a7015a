from __future__ import annotations

import sys
import unittest
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from picscript import compile_script
from picscript.errors import ObjectReferenceError
from picscript.model import Direction, ObjectClass
from picscript.text import TextMeasurer

CM = 1.0 / 2.54


class FixedMeasurer:
    """Half an em per character, so text extents are predictable."""

    def measure(self, text: str, size: float, *, mono: bool = False, bold: bool = False) -> float:
        return len(text) * size * 0.5


def compile_fixed(source: str):
    return compile_script(source, measurer=FixedMeasurer())


class LayoutTestCase(unittest.TestCase):
    def assertPoint(self, actual, expected) -> None:
        self.assertAlmostEqual(actual[0], expected[0])
        self.assertAlmostEqual(actual[1], expected[1])


class StackingTests(LayoutTestCase):
    def test_boxes_stack_edge_to_edge(self) -> None:
        first, second = compile_fixed("box; box").objects
        self.assertPoint(first.center, (0.375, 0.0))
        self.assertPoint(second.center, (1.125, 0.0))
        self.assertAlmostEqual(first.anchor("e")[0], second.anchor("w")[0])

    def test_gap_separates_closed_objects(self) -> None:
        second = compile_fixed("gap = 0.25; box; box").objects[1]
        self.assertAlmostEqual(second.center[0], 1.375)

    def test_direction_change(self) -> None:
        first, second = compile_fixed("down; box; box").objects
        self.assertPoint(first.center, (0.0, -0.25))
        self.assertPoint(second.center, (0.0, -0.75))
        self.assertIs(second.direction, Direction.DOWN)

    def test_line_follows_previous_object(self) -> None:
        box, arrow, circle = compile_fixed("box; arrow; circle").objects
        self.assertPoint(arrow.points[0], (0.75, 0.0))
        self.assertPoint(arrow.points[-1], (1.25, 0.0))
        self.assertPoint(circle.center, (1.5, 0.0))
        self.assertTrue(arrow.style.arrow_end)

    def test_line_exit_direction_becomes_ambient(self) -> None:
        box = compile_fixed("line right 1 then down 1; box").objects[1]
        self.assertPoint(box.center, (1.0, -1.25))
        self.assertIs(box.direction, Direction.DOWN)

    def test_explicit_placement_does_not_advance(self) -> None:
        objects = compile_fixed("box; circle at 5,5; box").objects
        self.assertPoint(objects[1].center, (5.0, 5.0))
        self.assertPoint(objects[2].center, (1.125, 0.0))

    def test_with_aligns_named_anchor(self) -> None:
        box = compile_fixed("box with .nw at 0,0").objects[0]
        self.assertPoint(box.center, (0.375, -0.25))
        self.assertPoint(box.anchor("nw"), (0.0, 0.0))


class ReferenceTests(LayoutTestCase):
    def test_relative_at_overrides_stacking(self) -> None:
        diagram = compile_fixed('A: box "X"\nB: box "Y" at 2cm right of A')
        a, b = diagram.find("A"), diagram.find("B")
        self.assertPoint(b.center, (a.center[0] + 2 * CM, a.center[1]))

    def test_ordinals_resolve_in_creation_order(self) -> None:
        diagram = compile_fixed('box "1"\nbox "2"\narrow from 1st box to 2nd box')
        first, second, arrow = diagram.objects
        self.assertEqual((first.ordinal, second.ordinal, arrow.ordinal), (1, 2, 1))
        self.assertPoint(arrow.points[0], first.center)
        self.assertPoint(arrow.points[-1], second.center)

    def test_previous_before_any_object(self) -> None:
        with self.assertRaises(ObjectReferenceError) as ctx:
            compile_fixed("box at previous.c")
        self.assertEqual(ctx.exception.kind, ObjectReferenceError.NO_PRIOR_OBJECT)

    def test_last_and_nth_last(self) -> None:
        diagram = compile_fixed(
            "box; circle; box wid 2\nprint last box.wid, 2nd last box.wid, last circle.rad"
        )
        self.assertEqual(diagram.messages, ["2 0.75 0.25"])

    def test_places(self) -> None:
        diagram = compile_fixed("P: 1, 2\nbox at P + (1, 0)")
        self.assertPoint(diagram.objects[0].center, (2.0, 2.0))

    def test_until_even_with(self) -> None:
        line = compile_fixed("A: box at 2,0\nline up 1 then right until even with A").objects[1]
        self.assertEqual(len(line.points), 3)
        for actual, expected in zip(line.points, [(0.0, 0.0), (0.0, 1.0), (2.0, 1.0)]):
            self.assertPoint(actual, expected)

    def test_chop_trims_to_outlines(self) -> None:
        arrow = compile_fixed(
            "circle; move; circle; arrow from 1st circle to 2nd circle chop"
        ).objects[-1]
        self.assertPoint(arrow.points[0], (0.5, 0.0))
        self.assertPoint(arrow.points[-1], (1.0, 0.0))

    def test_vertex_of_line(self) -> None:
        diagram = compile_fixed("L: line right 1 then up 1\ndot at 2nd vertex of L")
        self.assertPoint(diagram.objects[1].center, (1.0, 0.0))

    def test_color_named_labels_are_references(self) -> None:
        diagram = compile_fixed("Red: box at 1,1\ndot at Red")
        self.assertPoint(diagram.objects[1].center, (1.0, 1.0))
        arrow = compile_fixed("Gold: box\narrow from Gold to 3,0").objects[1]
        self.assertPoint(arrow.points[0], (0.375, 0.0))
        self.assertPoint(arrow.points[-1], (3.0, 0.0))
        circle = compile_fixed("Blue: circle rad 1; box; circle same as Blue").objects[2]
        self.assertAlmostEqual(circle.radius, 1.0)
        middle = compile_fixed("Red: box at 2,0\nA: box at 0,0\ndot at 1/2 of the way between Red and A")
        self.assertPoint(middle.objects[2].center, (1.0, 0.0))


class LineTests(LayoutTestCase):
    def test_arc_default_quarter_turn(self) -> None:
        arc = compile_fixed("arc").objects[0]
        for actual, expected in zip(arc.points, [(0.0, 0.0), (0.25, 0.0), (0.25, 0.25)]):
            self.assertPoint(actual, expected)

    def test_arc_clockwise(self) -> None:
        arc = compile_fixed("arc cw").objects[0]
        self.assertPoint(arc.points[-1], (0.25, -0.25))

    def test_heading_line(self) -> None:
        line = compile_fixed("line heading 90 1").objects[0]
        self.assertPoint(line.points[-1], (1.0, 0.0))

    def test_closed_polygon(self) -> None:
        line = compile_fixed("line right 1 then up 1 close").objects[0]
        self.assertTrue(line.style.closed)
        self.assertPoint(line.points[-1], line.points[0])

    def test_same_copies_line_shape(self) -> None:
        first, second = compile_fixed("line right 1 then up 1; line same").objects
        self.assertPoint(second.points[0], first.points[-1])
        self.assertPoint(second.points[-1], (2.0, 2.0))

    def test_line_percentage_of_default(self) -> None:
        line = compile_fixed("line right 200%").objects[0]
        self.assertPoint(line.points[-1], (1.0, 0.0))


class SizingTests(LayoutTestCase):
    def test_bare_text_takes_natural_size(self) -> None:
        text = compile_fixed('"hello"').objects[0]
        self.assertIs(text.cls, ObjectClass.TEXT)
        self.assertAlmostEqual(text.width, 0.35)
        self.assertAlmostEqual(text.height, 0.14)

    def test_fit_box(self) -> None:
        box = compile_fixed('box "hello" fit').objects[0]
        self.assertAlmostEqual(box.width, 0.51)
        self.assertAlmostEqual(box.height, 0.28)

    def test_fit_circle_uses_larger_side(self) -> None:
        circle = compile_fixed('circle "hi" fit').objects[0]
        self.assertAlmostEqual(circle.width, 0.30)
        self.assertAlmostEqual(circle.height, 0.30)
        self.assertAlmostEqual(circle.radius, 0.15)

    def test_fit_keeps_explicit_width(self) -> None:
        box = compile_fixed('box "hello" wid 2 fit').objects[0]
        self.assertAlmostEqual(box.width, 2.0)
        self.assertAlmostEqual(box.height, 0.28)

    def test_percent_sizes(self) -> None:
        box, circle = compile_fixed("box wid 200%; circle rad 50%").objects
        self.assertAlmostEqual(box.width, 1.5)
        self.assertAlmostEqual(circle.radius, 0.125)
        self.assertAlmostEqual(circle.width, 0.25)

    def test_variables_are_captured_at_declaration(self) -> None:
        first, second = compile_fixed("box; boxwid = 2; box").objects
        self.assertAlmostEqual(first.width, 0.75)
        self.assertAlmostEqual(second.width, 2.0)

    def test_compound_assignment(self) -> None:
        diagram = compile_fixed("$n = 2; $n *= 3; $n -= 1; print $n")
        self.assertEqual(diagram.messages, ["5"])
        self.assertEqual(diagram.variables["$n"], 5.0)

    def test_same_copies_size_and_style(self) -> None:
        objects = compile_fixed("box wid 2 fill red; circle; box same").objects
        self.assertAlmostEqual(objects[2].width, 2.0)
        self.assertEqual(objects[2].style.fill, (255, 0, 0))

    def test_same_as_named_object(self) -> None:
        objects = compile_fixed("A: circle rad 1; box; circle same as A").objects
        self.assertAlmostEqual(objects[2].radius, 1.0)

    def test_style_from_variables(self) -> None:
        box = compile_fixed("fill = red; box").objects[0]
        self.assertEqual(box.style.fill, (255, 0, 0))

    def test_thick_and_thin(self) -> None:
        thick, thin = compile_fixed("box thick; box thin").objects
        self.assertAlmostEqual(thick.style.thickness, 0.015 * 1.5)
        self.assertAlmostEqual(thin.style.thickness, 0.015 * 2 / 3)

    def test_dot_fill_follows_color(self) -> None:
        dot = compile_fixed("dot color blue").objects[0]
        self.assertEqual(dot.style.fill, (0, 0, 255))

    def test_capitalized_color_in_value_position(self) -> None:
        box = compile_fixed("Red: box fill Red color Navy").objects[0]
        self.assertEqual(box.label, "Red")
        self.assertEqual(box.style.fill, (255, 0, 0))
        self.assertEqual(box.style.color, (0, 0, 128))


class MeasurerFallbackTests(unittest.TestCase):
    def test_without_fonts_width_scales_with_size(self) -> None:
        measurer = TextMeasurer()
        with mock.patch.object(TextMeasurer, "_locate_font", return_value=None), \
                mock.patch("picscript.text.ImageFont.truetype", side_effect=OSError):
            small = measurer.measure("abc", 0.1)
            large = measurer.measure("abc", 0.2)
        self.assertAlmostEqual(small, 0.18)
        self.assertAlmostEqual(large, 2 * small)


class DeterminismTests(unittest.TestCase):
    SCRIPT = """
    A: box "one" fit
    arrow right 0.5
    circle "two"
    [ down; box; box ] with .n at A.s - (0, 0.5)
    spline from A.ne to last circle.n
    """

    def test_same_source_same_result(self) -> None:
        first = compile_fixed(self.SCRIPT).to_dict()
        second = compile_fixed(self.SCRIPT).to_dict()
        self.assertEqual(first, second)

    def test_ids_follow_creation_order(self) -> None:
        diagram = compile_fixed(self.SCRIPT)
        ids = [obj.id for obj in diagram.objects]
        self.assertEqual(ids, sorted(ids))
        self.assertTrue(all(obj.finalized for obj in diagram.all_objects()))


if __name__ == "__main__":
    unittest.main()
