from __future__ import annotations

import sys
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from picscript import compile_script, render_svg

SVG_NS = "{http://www.w3.org/2000/svg}"


class FixedMeasurer:
    def measure(self, text: str, size: float, *, mono: bool = False, bold: bool = False) -> float:
        return len(text) * size * 0.5


def render(source: str, **kwargs) -> ET.Element:
    diagram = compile_script(source, measurer=FixedMeasurer())
    return ET.fromstring(render_svg(diagram, **kwargs))


def _tags(root: ET.Element) -> list[str]:
    return [el.tag.replace(SVG_NS, "") for el in root.iter()][1:]


class SvgRenderTests(unittest.TestCase):
    def test_canvas_covers_bbox_and_arrowheads(self) -> None:
        root = render("box; arrow; circle")
        self.assertEqual(root.tag, f"{SVG_NS}svg")
        self.assertAlmostEqual(float(root.get("width")), 183.36)
        self.assertAlmostEqual(float(root.get("height")), 63.36)
        self.assertEqual(root.get("viewBox"), f"0 0 {root.get('width')} {root.get('height')}")
        self.assertEqual(_tags(root), ["rect", "polyline", "polygon", "circle"])

    def test_y_axis_is_flipped(self) -> None:
        root = render("box; box with .s at 1st box.n")
        first, second = root.findall(f"{SVG_NS}rect")
        self.assertLess(float(second.get("y")), float(first.get("y")))

    def test_scale_multiplies_pixels(self) -> None:
        plain = render("box")
        doubled = render("box", scale=2.0)
        self.assertAlmostEqual(float(doubled.get("width")), 2 * float(plain.get("width")))

    def test_scale_variable(self) -> None:
        root = render("scale = 2; box")
        self.assertAlmostEqual(float(root.get("width")), (0.75 + 0.015) * 96 * 2)

    def test_margin_pads_canvas(self) -> None:
        root = render("box", margin=0.5)
        self.assertAlmostEqual(float(root.get("width")), (0.75 + 0.015 + 1.0) * 96)

    def test_labels_become_ids(self) -> None:
        root = render("A: box\nG: [ circle ]")
        rect = root.find(f"{SVG_NS}rect")
        group = root.find(f"{SVG_NS}g")
        self.assertEqual(rect.get("id"), "A")
        self.assertEqual(group.get("id"), "G")
        self.assertIsNotNone(group.find(f"{SVG_NS}circle"))

    def test_style_attributes(self) -> None:
        root = render("box fill red color blue dashed")
        rect = root.find(f"{SVG_NS}rect")
        self.assertEqual(rect.get("fill"), "rgb(255,0,0)")
        self.assertEqual(rect.get("stroke"), "rgb(0,0,255)")
        self.assertIsNotNone(rect.get("stroke-dasharray"))

    def test_invisible_keeps_text(self) -> None:
        root = render('box "hidden" invisible')
        self.assertIsNone(root.find(f"{SVG_NS}rect"))
        text = root.find(f"{SVG_NS}text")
        self.assertEqual(text.text, "hidden")

    def test_text_attributes(self) -> None:
        root = render('box "a" ljust bold "b" italic mono')
        first, second = root.findall(f"{SVG_NS}text")
        self.assertEqual(first.get("text-anchor"), "start")
        self.assertEqual(first.get("font-weight"), "bold")
        self.assertEqual(second.get("font-style"), "italic")
        self.assertIn("monospace", second.get("font-family"))
        self.assertLess(float(first.get("y")), float(second.get("y")))

    def test_shapes(self) -> None:
        root = render("ellipse; diamond; cylinder; file; spline right then up then right; arc")
        self.assertEqual(
            _tags(root), ["ellipse", "polygon", "path", "path", "path", "path"]
        )

    def test_closed_line_is_polygon(self) -> None:
        root = render("line right 1 then up 1 close fill red")
        polygon = root.find(f"{SVG_NS}polygon")
        self.assertEqual(polygon.get("fill"), "rgb(255,0,0)")
        self.assertEqual(len(polygon.get("points").split()), 3)

    def test_double_headed_arrow(self) -> None:
        root = render("line <->")
        self.assertEqual(len(root.findall(f"{SVG_NS}polygon")), 2)

    def test_move_draws_nothing(self) -> None:
        root = render("box; move; box")
        self.assertEqual(_tags(root), ["rect", "rect"])

    def test_empty_diagram(self) -> None:
        root = render("")
        self.assertEqual(root.get("width"), "0")
        self.assertEqual(list(root), [])


if __name__ == "__main__":
    unittest.main()
