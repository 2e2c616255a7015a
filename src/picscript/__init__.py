"""Public API for picscript."""
from .compiler import Diagram, compile_script
from .errors import EvalError, LexError, ObjectReferenceError, ParseError, PicscriptError
from .model import DiagramObject
from .svg import render_svg

__all__ = [
    "compile_script",
    "render_svg",
    "Diagram",
    "DiagramObject",
    "PicscriptError",
    "LexError",
    "ParseError",
    "ObjectReferenceError",
    "EvalError",
]
