"""Exception types raised while compiling a picscript diagram."""
from __future__ import annotations

from typing import Optional


class PicscriptError(ValueError):
    """Structured compile error with stable code for CLI mapping."""

    code = "E_COMPILE"

    def __init__(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def locate(self, line: Optional[int], column: Optional[int]) -> "PicscriptError":
        """Attach a source position unless a more precise one is already set."""
        if self.line is None and line is not None:
            self.line = line
            self.column = column
        return self

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}, column {self.column}: {self.message}"


class LexError(PicscriptError):
    """Unterminated string, invalid numeric literal or stray character."""

    code = "E_LEX"


class ParseError(PicscriptError):
    """Unexpected token, unknown attribute for a class, malformed path."""

    code = "E_PARSE"


class ObjectReferenceError(PicscriptError):
    """A label, ordinal or ``previous`` reference that cannot be satisfied."""

    code = "E_REF"

    UNKNOWN_LABEL = "UnknownLabel"
    DUPLICATE_LABEL = "DuplicateLabel"
    ORDINAL_OUT_OF_RANGE = "OrdinalOutOfRange"
    NO_PRIOR_OBJECT = "NoPriorObject"

    def __init__(
        self,
        kind: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message, line, column)
        self.kind = kind


class EvalError(PicscriptError):
    """Division by zero, unknown variable or malformed function call."""

    code = "E_EVAL"


__all__ = [
    "PicscriptError",
    "LexError",
    "ParseError",
    "ObjectReferenceError",
    "EvalError",
]
