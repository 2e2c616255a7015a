"""Lexical scanner for picscript source text."""
from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .colors import DEFAULT_COLORS, ColorTable
from .errors import LexError
from .geometry import COMPASS_SIGNS, EDGE_ALIASES, LAYOUT_EDGES
from .model import CLASS_KEYWORDS
from .units import is_unit


class TokenType(enum.Enum):
    LABEL = "LABEL"
    ID = "ID"
    VARIABLE = "VARIABLE"
    NUMBER = "NUMBER"
    PERCENT = "PERCENT"
    NTH = "NTH"
    STRING = "STRING"
    COLOR = "COLOR"
    CODEBLOCK = "CODEBLOCK"
    EDGE = "EDGE"
    DOT = "."
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    COLON = ":"
    ASSIGN = "="
    EQ = "=="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    LT = "<"
    GT = ">"
    ARROW = "->"
    EOL = "EOL"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token and where it starts (1-based line and column).

    ``value`` holds the decoded payload: the float of a NUMBER or PERCENT,
    the integer of an NTH, the unescaped body of a STRING or CODEBLOCK,
    the canonical anchor name of an EDGE.  ``text`` is the raw source.
    """

    type: TokenType
    text: str
    line: int
    column: int
    value: Any = None
    unit: Optional[str] = None

    def is_word(self, *words: str) -> bool:
        return self.type is TokenType.ID and self.text in words


KEYWORDS = frozenset(
    set(CLASS_KEYWORDS)
    | {
        "right", "left", "up", "down",
        "width", "wid", "height", "ht", "radius", "rad", "diameter",
        "thickness", "thick", "thin", "fill", "color", "colour",
        "solid", "dotted", "dashed", "invisible", "invis",
        "at", "with", "same", "as", "fit",
        "from", "to", "then", "go", "heading", "until", "even", "chop",
        "close", "cw", "ccw",
        "above", "below", "ljust", "rjust", "center", "bold", "italic",
        "mono", "big", "small", "aligned",
        "of", "the", "way", "between", "and", "vertex", "in",
        "last", "previous",
        "print", "assert", "define",
        "n", "ne", "e", "se", "s", "sw", "w", "nw",
        "north", "south", "east", "west", "top", "bottom", "start", "end",
    }
)

ORDINAL_SUFFIXES = frozenset({"st", "nd", "rd", "th"})
EDGE_WORDS = frozenset(set(COMPASS_SIGNS) | set(EDGE_ALIASES) | set(LAYOUT_EDGES))

_NUMBER_RE = re.compile(r"0[xX][0-9a-fA-F]+|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_OPERATORS: List[Tuple[str, TokenType]] = [
    ("<->", TokenType.ARROW),
    ("->", TokenType.ARROW),
    ("<-", TokenType.ARROW),
    ("+=", TokenType.ASSIGN),
    ("-=", TokenType.ASSIGN),
    ("*=", TokenType.ASSIGN),
    ("/=", TokenType.ASSIGN),
    ("==", TokenType.EQ),
    ("=", TokenType.ASSIGN),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    (",", TokenType.COMMA),
    (":", TokenType.COLON),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("<", TokenType.LT),
    (">", TokenType.GT),
]


def scan(source: str, colors: ColorTable = DEFAULT_COLORS) -> Tuple[List[Token], List[LexError]]:
    """Tokenize without raising; malformed constructs are reported as errors.

    The token list always ends with a single EOF token.
    """
    lexer = _Lexer(source, colors)
    lexer.run()
    return lexer.tokens, lexer.errors


def tokenize(source: str, colors: ColorTable = DEFAULT_COLORS) -> List[Token]:
    """Tokenize ``source``, raising the first LexError if any were found."""
    tokens, errors = scan(source, colors)
    if errors:
        raise errors[0]
    return tokens


class _Lexer:
    def __init__(self, source: str, colors: ColorTable) -> None:
        self.source = source
        self.colors = colors
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        self.errors: List[LexError] = []

    def run(self) -> None:
        src = self.source
        while self.pos < len(src):
            ch = src[self.pos]
            if ch in " \t\r\f":
                self._advance(1)
            elif ch == "\n":
                self._emit(TokenType.EOL, "\n", self.line, self.column)
                self._newline()
            elif ch == ";":
                self._emit(TokenType.EOL, ";", self.line, self.column)
                self._advance(1)
            elif ch == "\\":
                self._continuation()
            elif ch == "#" or src.startswith("//", self.pos):
                self._skip_line_comment()
            elif src.startswith("/*", self.pos):
                self._skip_block_comment()
            elif ch == '"':
                self._string()
            elif ch == "{":
                self._codeblock()
            elif _is_digit(ch) or (ch == "." and _is_digit(self._peek(1))):
                self._number()
            elif ch == ".":
                self._dot()
            elif ch in "$@" and _starts_word(self._peek(1)):
                self._variable()
            elif _starts_word(ch):
                self._word()
            else:
                self._operator()
        self._emit(TokenType.EOF, "", self.line, self.column)

    def _peek(self, offset: int) -> str:
        index = self.pos + offset
        return self.source[index] if index < len(self.source) else ""

    def _advance(self, count: int) -> None:
        self.pos += count
        self.column += count

    def _newline(self) -> None:
        self.pos += 1
        self.line += 1
        self.column = 1

    def _emit(self, kind: TokenType, text: str, line: int, column: int, **extra: Any) -> None:
        self.tokens.append(Token(kind, text, line, column, **extra))

    def _error(self, message: str, line: int, column: int) -> None:
        self.errors.append(LexError(message, line, column))

    def _continuation(self) -> None:
        line, column = self.line, self.column
        self._advance(1)
        while self._peek(0) in (" ", "\t", "\r") and self._peek(0):
            self._advance(1)
        if self._peek(0) == "\n":
            self._newline()
            return
        self._error("backslash must be followed by a newline", line, column)

    def _skip_line_comment(self) -> None:
        end = self.source.find("\n", self.pos)
        if end < 0:
            end = len(self.source)
        self._advance(end - self.pos)

    def _skip_block_comment(self) -> None:
        line, column = self.line, self.column
        end = self.source.find("*/", self.pos + 2)
        if end < 0:
            self._error("unterminated block comment", line, column)
            end = len(self.source)
        else:
            end += 2
        self._consume_span(end)

    def _consume_span(self, end: int) -> None:
        while self.pos < end:
            if self.source[self.pos] == "\n":
                self._newline()
            else:
                self._advance(1)

    def _string(self) -> None:
        line, column = self.line, self.column
        start = self.pos
        self._advance(1)
        chars: List[str] = []
        while True:
            ch = self._peek(0)
            if ch == "" or ch == "\n":
                self._error("unterminated string", line, column)
                return
            if ch == "\\" and self._peek(1) in ('"', "\\"):
                chars.append(self._peek(1))
                self._advance(2)
                continue
            self._advance(1)
            if ch == '"':
                break
            if ord(ch) < 0x20 and ch != "\t":
                self._error("control character in string", self.line, self.column - 1)
            chars.append(ch)
        self._emit(
            TokenType.STRING, self.source[start : self.pos], line, column, value="".join(chars)
        )

    def _codeblock(self) -> None:
        line, column = self.line, self.column
        depth = 0
        index = self.pos
        while index < len(self.source):
            ch = self.source[index]
            if ch == '"':
                index = self._string_end(index)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    break
            index += 1
        if depth != 0:
            self._error("unterminated code block", line, column)
            self._consume_span(len(self.source))
            return
        text = self.source[self.pos : index + 1]
        self._consume_span(index + 1)
        self._emit(TokenType.CODEBLOCK, text, line, column, value=text[1:-1])

    def _string_end(self, index: int) -> int:
        """Index just past the string literal opening at ``index``."""
        index += 1
        while index < len(self.source):
            ch = self.source[index]
            following = self.source[index + 1 : index + 2]
            if ch == "\\" and following in ('"', "\\"):
                index += 2
                continue
            index += 1
            if ch in ('"', "\n"):
                break
        return index

    def _number(self) -> None:
        line, column = self.line, self.column
        match = _NUMBER_RE.match(self.source, self.pos)
        assert match is not None
        literal = match.group(0)
        value = _literal_value(literal)
        self._advance(len(literal))
        if self._peek(0) == "%":
            self._advance(1)
            self._emit_number(TokenType.PERCENT, literal + "%", line, column, value)
            return
        suffix_match = _WORD_RE.match(self.source, self.pos)
        if suffix_match is None:
            self._emit_number(TokenType.NUMBER, literal, line, column, value)
            return
        suffix = suffix_match.group(0)
        self._advance(len(suffix))
        text = literal + suffix
        if suffix in ORDINAL_SUFFIXES and literal.isdigit():
            if int(literal) < 1:
                self._error(f"invalid ordinal: {text}", line, column)
                return
            self._emit(TokenType.NTH, text, line, column, value=int(literal))
        elif is_unit(suffix):
            self._emit_number(TokenType.NUMBER, text, line, column, value, unit=suffix)
        else:
            self._error(f"invalid numeric literal: {text}", line, column)

    def _emit_number(
        self,
        kind: TokenType,
        text: str,
        line: int,
        column: int,
        value: Optional[float],
        **extra: Any,
    ) -> None:
        if value is None:
            self._error(f"invalid numeric literal: {text} is out of range", line, column)
            return
        self._emit(kind, text, line, column, value=value, **extra)

    def _dot(self) -> None:
        line, column = self.line, self.column
        match = _WORD_RE.match(self.source, self.pos + 1)
        if match is not None and match.group(0) in EDGE_WORDS:
            word = match.group(0)
            self._advance(1 + len(word))
            self._emit(TokenType.EDGE, "." + word, line, column, value=word)
            return
        self._advance(1)
        self._emit(TokenType.DOT, ".", line, column)

    def _variable(self) -> None:
        line, column = self.line, self.column
        match = _WORD_RE.match(self.source, self.pos + 1)
        assert match is not None
        text = self.source[self.pos] + match.group(0)
        self._advance(len(text))
        self._emit(TokenType.VARIABLE, text, line, column, value=text)

    def _word(self) -> None:
        line, column = self.line, self.column
        match = _WORD_RE.match(self.source, self.pos)
        assert match is not None
        word = match.group(0)
        self._advance(len(word))
        if word == "first":
            self._emit(TokenType.NTH, word, line, column, value=1)
        elif word in KEYWORDS:
            self._emit(TokenType.ID, word, line, column, value=word)
        elif word[0].isupper():
            self._emit(TokenType.LABEL, word, line, column, value=word)
        elif self.colors.knows(word) and self._peek(0) not in (":", "."):
            self._emit(TokenType.COLOR, word, line, column, value=word.lower())
        else:
            self._emit(TokenType.ID, word, line, column, value=word)

    def _operator(self) -> None:
        line, column = self.line, self.column
        for text, kind in _OPERATORS:
            if self.source.startswith(text, self.pos):
                self._advance(len(text))
                self._emit(kind, text, line, column, value=text)
                return
        ch = self.source[self.pos]
        self._advance(1)
        self._error(f"unexpected character {ch!r}", line, column)


def _is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()


def _starts_word(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _literal_value(literal: str) -> Optional[float]:
    try:
        if literal[:2] in ("0x", "0X"):
            value = float(int(literal, 16))
        else:
            value = float(literal)
    except (OverflowError, ValueError):
        return None
    return value if math.isfinite(value) else None


__all__ = ["Token", "TokenType", "KEYWORDS", "scan", "tokenize"]
