"""Reference SVG serializer for a finished :class:`~picscript.compiler.Diagram`."""
from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from .colors import paint_to_css
from .compiler import Diagram
from .geometry import Point
from .model import DiagramObject, ObjectClass
from .text import PIXELS_PER_INCH

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

DEFAULT_FONT_FAMILY = "Helvetica, Arial, sans-serif"
MONO_FONT_FAMILY = "Courier New, Courier, monospace"


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


class _Canvas:
    """Maps diagram inches (y up) to SVG pixels (y down)."""

    def __init__(self, diagram: Diagram, scale: float, margin: float) -> None:
        variables = diagram.variables
        self.diagram = diagram
        self.px = PIXELS_PER_INCH * scale
        self.charht = variables.get("charht", 0.14) * variables.get("fontscale", 1.0)
        self.arrowwid = variables.get("arrowwid", 0.05)
        self.arrowht = variables.get("arrowht", 0.08)
        bbox = diagram.bbox or (0.0, 0.0, 0.0, 0.0)
        pad = margin + _stroke_pad(diagram, self.arrowht)
        self.min_x = bbox[0] - pad
        self.max_y = bbox[3] + pad
        self.width = (bbox[2] - bbox[0] + 2 * pad) * self.px
        self.height = (bbox[3] - bbox[1] + 2 * pad) * self.px

    def point(self, point: Point) -> Tuple[float, float]:
        return (point[0] - self.min_x) * self.px, (self.max_y - point[1]) * self.px

    def length(self, value: float) -> float:
        return value * self.px

    def points_attr(self, points: List[Point]) -> str:
        return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in map(self.point, points))


def render_svg(
    diagram: Diagram, *, scale: Optional[float] = None, margin: Optional[float] = None
) -> str:
    """Serialize ``diagram`` as an SVG document string."""
    if scale is None:
        scale = diagram.variables.get("scale", 1.0)
    if margin is None:
        margin = diagram.variables.get("margin", 0.0)
    canvas = _Canvas(diagram, scale, margin)
    svg_root = ET.Element(
        _q("svg"),
        {
            "width": _fmt(canvas.width),
            "height": _fmt(canvas.height),
            "viewBox": f"0 0 {_fmt(canvas.width)} {_fmt(canvas.height)}",
        },
    )
    for obj in diagram.objects:
        _render_object(svg_root, canvas, obj)
    return _pretty_xml(svg_root)


def _render_object(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    if obj.cls is ObjectClass.CONTAINER:
        if obj.style.invisible:
            return
        group = ET.SubElement(parent, _q("g"), _id_attrs(obj))
        for child_id in obj.children:
            _render_object(group, canvas, canvas.diagram[child_id])
        return
    if not obj.style.invisible:
        shape = _SHAPES.get(obj.cls)
        if shape is not None:
            shape(parent, canvas, obj)
        if obj.cls.is_line and obj.cls is not ObjectClass.MOVE:
            _emit_arrowheads(parent, canvas, obj)
    if obj.text:
        _emit_text(parent, canvas, obj)


def _id_attrs(obj: DiagramObject) -> Dict[str, str]:
    return {"id": obj.label} if obj.label else {}


def _stroke_attrs(canvas: _Canvas, obj: DiagramObject, *, filled: bool = True) -> Dict[str, str]:
    style = obj.style
    attrs = _id_attrs(obj)
    attrs["stroke"] = paint_to_css(style.color)
    attrs["stroke-width"] = _fmt(canvas.length(style.thickness))
    attrs["fill"] = paint_to_css(style.fill) if filled else "none"
    if style.dashed:
        dash = _fmt(canvas.length(style.dashed))
        attrs["stroke-dasharray"] = f"{dash},{dash}"
    elif style.dotted:
        attrs["stroke-dasharray"] = (
            f"{_fmt(canvas.length(style.thickness))},{_fmt(canvas.length(style.dotted))}"
        )
        attrs["stroke-linecap"] = "round"
    return attrs


def _corners(canvas: _Canvas, obj: DiagramObject) -> Tuple[float, float, float, float]:
    """Left, top, width, height in SVG pixels."""
    left, top = canvas.point((obj.center[0] - obj.width / 2, obj.center[1] + obj.height / 2))
    return left, top, canvas.length(obj.width), canvas.length(obj.height)


def _box(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    left, top, width, height = _corners(canvas, obj)
    attrs = _stroke_attrs(canvas, obj)
    attrs.update(x=_fmt(left), y=_fmt(top), width=_fmt(width), height=_fmt(height))
    radius = min(obj.radius, obj.width / 2, obj.height / 2)
    if obj.cls is ObjectClass.OVAL:
        radius = min(obj.width, obj.height) / 2
    if radius > 0:
        attrs["rx"] = attrs["ry"] = _fmt(canvas.length(radius))
    ET.SubElement(parent, _q("rect"), attrs)


def _round(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    cx, cy = canvas.point(obj.center)
    attrs = _stroke_attrs(canvas, obj)
    attrs.update(cx=_fmt(cx), cy=_fmt(cy))
    if obj.cls is ObjectClass.ELLIPSE:
        attrs.update(rx=_fmt(canvas.length(obj.width / 2)), ry=_fmt(canvas.length(obj.height / 2)))
        ET.SubElement(parent, _q("ellipse"), attrs)
        return
    attrs["r"] = _fmt(canvas.length(obj.width / 2))
    ET.SubElement(parent, _q("circle"), attrs)


def _diamond(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    points = [obj.anchor(edge) for edge in ("n", "e", "s", "w")]
    attrs = _stroke_attrs(canvas, obj)
    attrs["points"] = canvas.points_attr(points)
    ET.SubElement(parent, _q("polygon"), attrs)


def _cylinder(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    left, top, width, height = _corners(canvas, obj)
    rx = width / 2
    ry = min(canvas.length(obj.radius), height / 2)
    right = left + width
    bottom = top + height
    arc = f"A {_fmt(rx)} {_fmt(ry)} 0 0 0"
    d = (
        f"M {_fmt(left)} {_fmt(top + ry)} L {_fmt(left)} {_fmt(bottom - ry)} "
        f"{arc} {_fmt(right)} {_fmt(bottom - ry)} L {_fmt(right)} {_fmt(top + ry)} "
        f"{arc} {_fmt(left)} {_fmt(top + ry)} "
        f"A {_fmt(rx)} {_fmt(ry)} 0 0 1 {_fmt(right)} {_fmt(top + ry)}"
    )
    attrs = _stroke_attrs(canvas, obj)
    attrs["d"] = d
    ET.SubElement(parent, _q("path"), attrs)


def _file(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    left, top, width, height = _corners(canvas, obj)
    fold = min(canvas.length(obj.radius), width / 2, height / 2)
    right = left + width
    bottom = top + height
    d = (
        f"M {_fmt(left)} {_fmt(top)} L {_fmt(right - fold)} {_fmt(top)} "
        f"L {_fmt(right)} {_fmt(top + fold)} L {_fmt(right)} {_fmt(bottom)} "
        f"L {_fmt(left)} {_fmt(bottom)} Z "
        f"M {_fmt(right - fold)} {_fmt(top)} L {_fmt(right - fold)} {_fmt(top + fold)} "
        f"L {_fmt(right)} {_fmt(top + fold)}"
    )
    attrs = _stroke_attrs(canvas, obj)
    attrs["d"] = d
    ET.SubElement(parent, _q("path"), attrs)


def _polyline(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    closed = obj.style.closed
    attrs = _stroke_attrs(canvas, obj, filled=closed)
    points = obj.points
    if closed and len(points) > 2 and points[-1] == points[0]:
        points = points[:-1]
    attrs["points"] = canvas.points_attr(points)
    ET.SubElement(parent, _q("polygon" if closed else "polyline"), attrs)


def _spline(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    pts = [canvas.point(p) for p in obj.points]
    if len(pts) < 3:
        _polyline(parent, canvas, obj)
        return
    parts = [f"M {_fmt(pts[0][0])} {_fmt(pts[0][1])}"]
    for index in range(1, len(pts) - 1):
        cx, cy = pts[index]
        nx, ny = pts[index + 1]
        if index < len(pts) - 2:
            nx, ny = (cx + nx) / 2, (cy + ny) / 2
        parts.append(f"Q {_fmt(cx)} {_fmt(cy)} {_fmt(nx)} {_fmt(ny)}")
    attrs = _stroke_attrs(canvas, obj, filled=False)
    attrs["d"] = " ".join(parts)
    ET.SubElement(parent, _q("path"), attrs)


def _arc(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    start, control, end = (canvas.point(p) for p in obj.points[:3])
    attrs = _stroke_attrs(canvas, obj, filled=False)
    attrs["d"] = (
        f"M {_fmt(start[0])} {_fmt(start[1])} "
        f"Q {_fmt(control[0])} {_fmt(control[1])} {_fmt(end[0])} {_fmt(end[1])}"
    )
    ET.SubElement(parent, _q("path"), attrs)


_SHAPES = {
    ObjectClass.BOX: _box,
    ObjectClass.OVAL: _box,
    ObjectClass.CIRCLE: _round,
    ObjectClass.DOT: _round,
    ObjectClass.ELLIPSE: _round,
    ObjectClass.DIAMOND: _diamond,
    ObjectClass.CYLINDER: _cylinder,
    ObjectClass.FILE: _file,
    ObjectClass.LINE: _polyline,
    ObjectClass.ARROW: _polyline,
    ObjectClass.SPLINE: _spline,
    ObjectClass.ARC: _arc,
}


def _emit_arrowheads(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    points = obj.points
    if len(points) < 2:
        return
    if obj.style.arrow_end:
        _arrowhead(parent, canvas, obj, points[-2], points[-1])
    if obj.style.arrow_start:
        _arrowhead(parent, canvas, obj, points[1], points[0])


def _arrowhead(
    parent: ET.Element, canvas: _Canvas, obj: DiagramObject, tail: Point, tip: Point
) -> None:
    dx = tip[0] - tail[0]
    dy = tip[1] - tail[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return
    ux, uy = dx / length, dy / length
    base = (tip[0] - ux * canvas.arrowht, tip[1] - uy * canvas.arrowht)
    half = canvas.arrowwid / 2
    corners = [
        tip,
        (base[0] - uy * half, base[1] + ux * half),
        (base[0] + uy * half, base[1] - ux * half),
    ]
    color = paint_to_css(obj.style.color)
    ET.SubElement(
        parent,
        _q("polygon"),
        {"points": canvas.points_attr(corners), "fill": color, "stroke": color},
    )


def _emit_text(parent: ET.Element, canvas: _Canvas, obj: DiagramObject) -> None:
    center_lines = [line for line in obj.text if not line.above and not line.below]
    above = [line for line in obj.text if line.above]
    below = [line for line in obj.text if line.below]
    offsets: Dict[int, float] = {}
    for index, line in enumerate(center_lines):
        offsets[id(line)] = (len(center_lines) - 1) / 2.0 - index
    # Lines are measured in multiples of charht from the object center.
    half_block = len(center_lines) / 2.0
    for index, line in enumerate(reversed(above)):
        offsets[id(line)] = half_block + 0.5 + index
    for index, line in enumerate(below):
        offsets[id(line)] = -(half_block + 0.5 + index)

    fill = paint_to_css(obj.style.color) if obj.style.color is not None else "black"
    for line in obj.text:
        x, y = canvas.point((obj.center[0], obj.center[1] + offsets[id(line)] * canvas.charht))
        anchor = {"left": "start", "right": "end"}.get(line.justification, "middle")
        attrs = {
            "x": _fmt(x),
            "y": _fmt(y),
            "text-anchor": anchor,
            "dominant-baseline": "central",
            "font-family": MONO_FONT_FAMILY if line.mono else DEFAULT_FONT_FAMILY,
            "font-size": _fmt(canvas.length(canvas.charht * line.scale)),
            "fill": fill,
        }
        if line.bold:
            attrs["font-weight"] = "bold"
        if line.italic:
            attrs["font-style"] = "italic"
        node = ET.SubElement(parent, _q("text"), attrs)
        node.text = line.text


def _stroke_pad(diagram: Diagram, arrowht: float) -> float:
    pad = 0.0
    for obj in diagram.all_objects():
        extra = obj.style.thickness / 2
        if obj.style.arrow_start or obj.style.arrow_end:
            extra = max(extra, arrowht)
        pad = max(pad, extra)
    return pad


def _pretty_xml(element: ET.Element) -> str:
    ET.indent(element, space="  ")
    return ET.tostring(element, encoding="unicode")


def _fmt(value: float) -> str:
    if math.isclose(value, round(value)):
        return str(int(round(value)))
    return f"{value:.3f}".rstrip("0").rstrip(".")


__all__ = ["render_svg"]
