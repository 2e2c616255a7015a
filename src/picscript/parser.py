"""Recursive-descent parser turning a token stream into statements."""
from __future__ import annotations

from typing import List, Optional, Tuple, Union

from . import expressions as ex
from .colors import DEFAULT_COLORS, ColorTable
from .errors import ParseError
from .geometry import canonical_edge
from .lexer import KEYWORDS, Token, TokenType, tokenize
from .macros import expand_macros
from .model import CLASS_KEYWORDS, DEFAULT_VARIABLES, Direction, ObjectClass, TextLine
from .statements import (
    AssertCommand,
    Attribute,
    ContainerBlock,
    DirectionChange,
    ObjectDeclaration,
    PlaceDeclaration,
    PrintCommand,
    Statement,
    VariableAssignment,
)

DIRECTION_WORDS = {direction.value: direction for direction in Direction}

SIZE_WORDS = {
    "width": "width",
    "wid": "width",
    "height": "height",
    "ht": "height",
    "radius": "radius",
    "rad": "radius",
    "diameter": "diameter",
}

FLAG_WORDS = {
    "thick": "thick",
    "thin": "thin",
    "solid": "solid",
    "invisible": "invisible",
    "invis": "invisible",
    "fit": "fit",
    "chop": "chop",
    "close": "close",
    "cw": "cw",
    "ccw": "ccw",
}

TEXT_MODIFIERS = frozenset(
    {"above", "below", "ljust", "rjust", "center", "bold", "italic", "mono", "big", "small", "aligned"}
)

RELATIVE_WORDS = {
    "above": "n",
    "below": "s",
    "left": "w",
    "right": "e",
    "n": "n",
    "ne": "ne",
    "e": "e",
    "se": "se",
    "s": "s",
    "sw": "sw",
    "w": "w",
    "nw": "nw",
    "north": "n",
    "south": "s",
    "east": "e",
    "west": "w",
}

EDGE_PLACE_WORDS = frozenset(
    {"n", "ne", "e", "se", "s", "sw", "w", "nw", "north", "south", "east", "west",
     "top", "bottom", "start", "end", "center"}
)

FUNCTIONS = frozenset({"abs", "cos", "sin", "sqrt", "min", "max", "dist", "int"})
POSITION_FUNCTIONS = frozenset({"dist"})

PROPERTY_NAMES = {
    "width": "width",
    "wid": "width",
    "height": "height",
    "ht": "height",
    "radius": "radius",
    "rad": "radius",
    "diameter": "diameter",
    "thickness": "thickness",
}

ASSIGNABLE_KEYWORDS = frozenset({"fill", "color", "thickness"})

_TERMINATORS = (TokenType.EOL, TokenType.EOF, TokenType.RBRACKET)
_EXPRESSION_OPERATORS = (TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH)


def parse(tokens: List[Token], colors: ColorTable = DEFAULT_COLORS) -> List[Statement]:
    """Parse a complete, macro-expanded token stream."""
    return Parser(tokens, colors).parse()


def parse_source(source: str, colors: ColorTable = DEFAULT_COLORS) -> List[Statement]:
    """Tokenize, expand macros and parse ``source``."""
    tokens = expand_macros(tokenize(source, colors), colors)
    return parse(tokens, colors)


class Parser:
    def __init__(self, tokens: List[Token], colors: ColorTable = DEFAULT_COLORS) -> None:
        if not tokens or tokens[-1].type is not TokenType.EOF:
            last = tokens[-1] if tokens else None
            line = last.line if last else 1
            column = last.column if last else 1
            tokens = list(tokens) + [Token(TokenType.EOF, "", line, column)]
        self.tokens = tokens
        self.index = 0
        self.colors = colors

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _next(self) -> Token:
        token = self.tokens[self.index]
        if token.type is not TokenType.EOF:
            self.index += 1
        return token

    def _accept(self, kind: TokenType) -> Optional[Token]:
        if self._peek().type is kind:
            return self._next()
        return None

    def _accept_word(self, *words: str) -> Optional[Token]:
        if self._peek().is_word(*words):
            return self._next()
        return None

    def _expect(self, kind: TokenType, what: str) -> Token:
        token = self._peek()
        if token.type is not kind:
            raise self._unexpected(token, what)
        return self._next()

    def _expect_word(self, word: str) -> Token:
        token = self._peek()
        if not token.is_word(word):
            raise self._unexpected(token, f"'{word}'")
        return self._next()

    @staticmethod
    def _unexpected(token: Token, what: str) -> ParseError:
        found = "end of input" if token.type is TokenType.EOF else repr(token.text)
        if token.type is TokenType.EOL:
            found = "end of statement"
        return ParseError(f"expected {what}, found {found}", token.line, token.column)

    def _at_terminator(self) -> bool:
        return self._peek().type in _TERMINATORS

    # Statements

    def parse(self) -> List[Statement]:
        statements = self._statement_list(closing=None)
        self._expect(TokenType.EOF, "end of input")
        return statements

    def _statement_list(self, closing: Optional[Token]) -> List[Statement]:
        statements: List[Statement] = []
        while True:
            while self._accept(TokenType.EOL):
                pass
            token = self._peek()
            if token.type is TokenType.EOF:
                if closing is not None:
                    raise ParseError("unterminated '[' block", closing.line, closing.column)
                return statements
            if token.type is TokenType.RBRACKET:
                if closing is None:
                    raise ParseError("unmatched ']'", token.line, token.column)
                return statements
            statements.append(self._statement())
            token = self._peek()
            if token.type is TokenType.EOL:
                self._next()
            elif token.type not in _TERMINATORS:
                raise self._unexpected(token, "end of statement")

    def _statement(self) -> Statement:
        token = self._peek()
        following = self._peek(1)
        if token.type is TokenType.LABEL and following.type is TokenType.COLON:
            self._next()
            self._next()
            if self._starts_object():
                return self._object(token.text, token)
            position = self.parse_position()
            return PlaceDeclaration(token.text, position, line=token.line, column=token.column)
        if token.type is TokenType.ID and token.text in DIRECTION_WORDS and following.type in _TERMINATORS:
            self._next()
            return DirectionChange(
                DIRECTION_WORDS[token.text], line=token.line, column=token.column
            )
        if following.type is TokenType.ASSIGN and self._is_assignable(token):
            self._next()
            op = self._next().text
            expr = self.parse_expr()
            return VariableAssignment(token.text, op, expr, line=token.line, column=token.column)
        if token.is_word("print"):
            return self._print()
        if token.is_word("assert"):
            return self._assert()
        if self._starts_object():
            return self._object(None, token)
        raise self._unexpected(token, "a statement")

    @staticmethod
    def _is_assignable(token: Token) -> bool:
        if token.type is TokenType.VARIABLE:
            return True
        if token.type is not TokenType.ID:
            return False
        return token.text not in KEYWORDS or token.text in ASSIGNABLE_KEYWORDS

    def _starts_object(self) -> bool:
        token = self._peek()
        if token.type in (TokenType.STRING, TokenType.LBRACKET):
            return True
        return token.type is TokenType.ID and token.text in CLASS_KEYWORDS

    def _object(self, label: Optional[str], start: Token) -> Statement:
        token = self._peek()
        if token.type is TokenType.LBRACKET:
            self._next()
            body = self._statement_list(closing=token)
            self._expect(TokenType.RBRACKET, "']'")
            attributes = self._attributes()
            return ContainerBlock(
                body, label, attributes, line=start.line, column=start.column
            )
        if token.type is TokenType.STRING:
            cls = ObjectClass.TEXT
        else:
            cls = CLASS_KEYWORDS[self._next().text]
        attributes = self._attributes()
        return ObjectDeclaration(cls, label, attributes, line=start.line, column=start.column)

    def _print(self) -> PrintCommand:
        keyword = self._next()
        args: List[Union[str, ex.Scalar]] = []
        while True:
            string = self._accept(TokenType.STRING)
            if string is not None:
                args.append(string.value)
            else:
                args.append(self.parse_expr())
            if not self._accept(TokenType.COMMA):
                break
        return PrintCommand(args, line=keyword.line, column=keyword.column)

    def _assert(self) -> AssertCommand:
        keyword = self._next()
        self._expect(TokenType.LPAREN, "'('")
        save = self.index
        try:
            left = self.parse_expr()
            self._expect(TokenType.EQ, "'=='")
            right = self.parse_expr()
            self._expect(TokenType.RPAREN, "')'")
            return AssertCommand(left, right, False, line=keyword.line, column=keyword.column)
        except ParseError:
            self.index = save
        left_pos = self.parse_position()
        self._expect(TokenType.EQ, "'=='")
        right_pos = self.parse_position()
        self._expect(TokenType.RPAREN, "')'")
        return AssertCommand(left_pos, right_pos, True, line=keyword.line, column=keyword.column)

    # Attributes

    def _attributes(self) -> List[Attribute]:
        attributes: List[Attribute] = []
        while not self._at_terminator():
            attribute = self._attribute(attributes)
            if attribute is not None:
                attributes.append(attribute)
        return attributes

    def _attribute(self, previous: List[Attribute]) -> Optional[Attribute]:
        token = self._peek()
        where = {"line": token.line, "column": token.column}
        if token.type is TokenType.STRING:
            self._next()
            return Attribute("text", TextLine(token.value), **where)
        if token.type is TokenType.ARROW:
            self._next()
            return Attribute("arrow", token.text, **where)
        if token.type is TokenType.ID:
            word = token.text
            if word in SIZE_WORDS:
                self._next()
                return Attribute(SIZE_WORDS[word], self._size_value(), **where)
            if word == "thickness":
                self._next()
                return Attribute("thickness", self._size_value(), **where)
            if word in FLAG_WORDS:
                self._next()
                return Attribute(FLAG_WORDS[word], **where)
            if word in ("dotted", "dashed"):
                self._next()
                return Attribute(word, self._optional_scalar(), **where)
            if word in ("fill", "color", "colour"):
                self._next()
                name = "fill" if word == "fill" else "color"
                return Attribute(name, self.parse_expr(), **where)
            if word == "same":
                self._next()
                ref = self._object_ref() if self._accept_word("as") else None
                return Attribute("same", ref, **where)
            if word == "at":
                self._next()
                return Attribute("at", self.parse_position(), **where)
            if word == "with":
                self._next()
                edge = self._edge_name()
                self._expect_word("at")
                return Attribute("with", edge, self.parse_position(), **where)
            if word in ("from", "to"):
                self._next()
                return Attribute(word, self.parse_position(), **where)
            if word == "then":
                self._next()
                if self._at_terminator():
                    raise self._unexpected(self._peek(), "a path segment after 'then'")
                return Attribute("then", **where)
            if word == "go":
                self._next()
                return None
            if word in DIRECTION_WORDS:
                self._next()
                return self._direction_attribute(DIRECTION_WORDS[word], where)
            if word == "heading":
                self._next()
                angle = self.parse_expr()
                return Attribute("heading", angle, self._optional_scalar(), **where)
            if word == "until":
                self._next()
                return Attribute("until", self._until_target(), **where)
            if word in TEXT_MODIFIERS:
                self._next()
                self._modify_text(word, previous, token)
                return None
            if word in KEYWORDS:
                raise ParseError(f"unexpected keyword '{word}'", token.line, token.column)
        if self._starts_scalar():
            return Attribute("distance", self._size_value(), **where)
        if token.type is TokenType.ID:
            raise ParseError(f"unknown attribute '{token.text}'", token.line, token.column)
        raise self._unexpected(token, "an attribute")

    def _direction_attribute(self, direction: Direction, where: dict) -> Attribute:
        if self._peek().is_word("until"):
            self._next()
            return Attribute("direction", direction, ("until", self._until_target()), **where)
        return Attribute("direction", direction, self._optional_scalar(), **where)

    def _until_target(self) -> ex.Position:
        self._expect_word("even")
        self._expect_word("with")
        return self.parse_position()

    def _size_value(self) -> ex.Scalar:
        token = self._peek()
        if token.type is TokenType.PERCENT:
            self._next()
            return ex.Percent(token.value, line=token.line, column=token.column)
        return self.parse_expr()

    def _optional_scalar(self) -> Optional[ex.Scalar]:
        if not self._starts_scalar():
            return None
        save = self.index
        try:
            return self._size_value()
        except ParseError:
            self.index = save
            return None

    def _starts_scalar(self) -> bool:
        token = self._peek()
        if token.type in (
            TokenType.NUMBER,
            TokenType.PERCENT,
            TokenType.VARIABLE,
            TokenType.LPAREN,
            TokenType.MINUS,
        ):
            return True
        if token.type is TokenType.LABEL:
            return self._peek(1).type in (TokenType.DOT, TokenType.EDGE)
        if token.type is TokenType.ID and token.text not in KEYWORDS:
            if token.text in DEFAULT_VARIABLES or token.text in FUNCTIONS:
                return True
            return self._peek(1).type in _EXPRESSION_OPERATORS
        return False

    def _modify_text(self, word: str, previous: List[Attribute], token: Token) -> None:
        texts = [attr for attr in previous if attr.name == "text"]
        if not texts:
            raise ParseError(f"'{word}' must follow a text string", token.line, token.column)
        line: TextLine = texts[-1].value
        if word == "center":
            line.ljust = line.rjust = line.above = line.below = False
            return
        if word == "ljust":
            line.rjust = False
        elif word == "rjust":
            line.ljust = False
        elif word == "above":
            line.below = False
        elif word == "below":
            line.above = False
        elif word == "big":
            line.small = False
        elif word == "small":
            line.big = False
        setattr(line, word, True)

    def _edge_name(self) -> str:
        token = self._peek()
        if token.type is TokenType.EDGE:
            self._next()
            return canonical_edge(token.value)
        if token.type is TokenType.ID and token.text in EDGE_PLACE_WORDS:
            self._next()
            return canonical_edge(token.text)
        raise self._unexpected(token, "an anchor name such as .n or .sw")

    # Expressions

    def parse_expr(self) -> ex.Scalar:
        left = self._term()
        while self._peek().type in (TokenType.PLUS, TokenType.MINUS):
            op = self._next()
            right = self._term()
            left = ex.Binary(op.text, left, right, line=op.line, column=op.column)
        return left

    def _term(self) -> ex.Scalar:
        left = self._unary()
        while self._peek().type in (TokenType.STAR, TokenType.SLASH):
            op = self._next()
            right = self._unary()
            left = ex.Binary(op.text, left, right, line=op.line, column=op.column)
        return left

    def _unary(self) -> ex.Scalar:
        token = self._peek()
        if token.type is TokenType.MINUS:
            self._next()
            return ex.Unary("-", self._unary(), line=token.line, column=token.column)
        if token.type is TokenType.PLUS:
            self._next()
            return self._unary()
        return self._primary()

    def _primary(self) -> ex.Scalar:
        token = self._peek()
        where = {"line": token.line, "column": token.column}
        if token.type is TokenType.NUMBER:
            self._next()
            return ex.Number(token.value, token.unit, **where)
        if token.type is TokenType.PERCENT:
            self._next()
            return ex.Percent(token.value, **where)
        if token.type is TokenType.VARIABLE:
            self._next()
            return ex.Variable(token.text, **where)
        if token.type is TokenType.COLOR:
            self._next()
            return ex.ColorName(token.value, **where)
        if token.type is TokenType.LABEL and self._is_color_label(token):
            self._next()
            return ex.ColorName(token.text.lower(), **where)
        if token.type is TokenType.LPAREN:
            self._next()
            inner = self.parse_expr()
            self._expect(TokenType.RPAREN, "')'")
            return inner
        if token.type is TokenType.ID:
            if token.text in FUNCTIONS and self._peek(1).type is TokenType.LPAREN:
                return self._call()
            if token.text not in KEYWORDS:
                self._next()
                return ex.Variable(token.text, **where)
        if self._starts_place():
            return self._place_scalar()
        raise self._unexpected(token, "an expression")

    def _is_color_label(self, token: Token) -> bool:
        # A bare label is never a number, so in scalar context it names a color.
        if self._peek(1).type in (TokenType.DOT, TokenType.EDGE):
            return False
        return self.colors.knows(token.text)

    def _call(self) -> ex.Call:
        name = self._next()
        self._expect(TokenType.LPAREN, "'('")
        args: List[Union[ex.Scalar, ex.Position]] = []
        if not self._accept(TokenType.RPAREN):
            while True:
                if name.text in POSITION_FUNCTIONS:
                    args.append(self.parse_position())
                else:
                    args.append(self.parse_expr())
                if self._accept(TokenType.RPAREN):
                    break
                self._expect(TokenType.COMMA, "',' or ')'")
        return ex.Call(name.text, args, line=name.line, column=name.column)

    def _starts_place(self) -> bool:
        token = self._peek()
        if token.type in (TokenType.LABEL, TokenType.NTH):
            return True
        return token.is_word("previous", "last")

    def _place_scalar(self) -> ex.Scalar:
        start = self._peek()
        place = self._place_position()
        dot = self._peek()
        name = self._peek(1)
        if dot.type is TokenType.DOT and name.type is TokenType.ID:
            if name.text in ("x", "y"):
                self._next()
                self._next()
                return ex.Coordinate(place, name.text, line=start.line, column=start.column)
            if name.text in PROPERTY_NAMES and isinstance(place, ex.ObjectPlace) and place.edge is None:
                self._next()
                self._next()
                return ex.Property(
                    place.ref, PROPERTY_NAMES[name.text], line=start.line, column=start.column
                )
        raise self._unexpected(dot, "'.x', '.y' or an object property")

    # Positions

    def parse_position(self) -> ex.Position:
        position = self._position_primary()
        while self._peek().type in (TokenType.PLUS, TokenType.MINUS):
            save = self.index
            op = self._next()
            try:
                dx, dy = self._offset_pair()
            except ParseError:
                self.index = save
                break
            sign = -1 if op.type is TokenType.MINUS else 1
            position = ex.Offset(position, dx, dy, sign, line=op.line, column=op.column)
        return position

    def _offset_pair(self) -> Tuple[ex.Scalar, ex.Scalar]:
        if self._accept(TokenType.LPAREN):
            dx = self.parse_expr()
            self._expect(TokenType.COMMA, "','")
            dy = self.parse_expr()
            self._expect(TokenType.RPAREN, "')'")
            return dx, dy
        dx = self.parse_expr()
        self._expect(TokenType.COMMA, "','")
        return dx, self.parse_expr()

    def _position_primary(self) -> ex.Position:
        token = self._peek()
        where = {"line": token.line, "column": token.column}
        if token.is_word("between"):
            self._next()
            a = self.parse_position()
            self._expect_word("and")
            b = self.parse_position()
            return ex.Between(None, a, b, **where)

        save = self.index
        try:
            leading: Optional[ex.Scalar] = self.parse_expr()
        except ParseError:
            leading = None
        if leading is not None:
            result = self._after_leading_scalar(leading, where)
            if result is not None:
                return result
        self.index = save

        if token.type is TokenType.LPAREN:
            self._next()
            first = self.parse_position()
            if self._accept(TokenType.COMMA):
                second = self.parse_position()
                self._expect(TokenType.RPAREN, "')'")
                return ex.Mix(first, second, **where)
            self._expect(TokenType.RPAREN, "')'")
            return first
        return self._place_position()

    def _after_leading_scalar(self, leading: ex.Scalar, where: dict) -> Optional[ex.Position]:
        token = self._peek()
        if token.type is TokenType.COMMA:
            self._next()
            return ex.Pair(leading, self.parse_expr(), **where)
        if token.is_word("of") and self._peek(1).is_word("the") and self._peek(2).is_word("way"):
            self._next()
            self._next()
            self._next()
            self._expect_word("between")
            a = self.parse_position()
            self._expect_word("and")
            b = self.parse_position()
            return ex.Between(leading, a, b, **where)
        if token.type is TokenType.LT:
            self._next()
            a = self.parse_position()
            self._expect(TokenType.COMMA, "','")
            b = self.parse_position()
            self._expect(TokenType.GT, "'>'")
            return ex.Between(leading, a, b, **where)
        if token.type is TokenType.ID and token.text in RELATIVE_WORDS:
            self._next()
            self._accept_word("of")
            base = self.parse_position()
            return ex.Relative(leading, RELATIVE_WORDS[token.text], base, **where)
        if token.is_word("heading"):
            self._next()
            angle = self.parse_expr()
            self._expect_word("from")
            base = self.parse_position()
            return ex.Heading(leading, angle, base, **where)
        return None

    def _place_position(self) -> ex.Position:
        token = self._peek()
        where = {"line": token.line, "column": token.column}
        is_edge_word = token.type is TokenType.ID and token.text in EDGE_PLACE_WORDS
        if (token.type is TokenType.EDGE or is_edge_word) and self._peek(1).is_word("of"):
            edge = self._edge_name()
            self._next()
            return ex.ObjectPlace(self._object_ref(), edge, **where)
        if token.type is TokenType.NTH or token.is_word("last"):
            vertex = self._vertex(where)
            if vertex is not None:
                return vertex
        ref = self._object_ref()
        edge: Optional[str] = None
        if self._peek().type is TokenType.EDGE:
            edge = canonical_edge(self._next().value)
        return ex.ObjectPlace(ref, edge, **where)

    def _vertex(self, where: dict) -> Optional[ex.Vertex]:
        save = self.index
        n, from_last = self._ordinal_prefix()
        if not self._accept_word("vertex"):
            self.index = save
            return None
        self._expect_word("of")
        return ex.Vertex(n, self._object_ref(), from_last, **where)

    def _ordinal_prefix(self) -> Tuple[int, bool]:
        token = self._next()
        if token.type is TokenType.NTH:
            if self._accept_word("last"):
                return token.value, True
            return token.value, False
        return 1, True

    def _object_ref(self) -> ex.ObjectRef:
        token = self._peek()
        where = {"line": token.line, "column": token.column}
        ref: ex.ObjectRef
        if token.type is TokenType.LABEL:
            self._next()
            ref = ex.LabelRef(token.text, **where)
        elif token.is_word("previous"):
            self._next()
            ref = ex.PreviousRef(**where)
        elif token.type is TokenType.NTH or token.is_word("last"):
            n, from_last = self._ordinal_prefix()
            ref = ex.OrdinalRef(self._class_name(), n, from_last, **where)
            if self._accept_word("in"):
                ref = ex.ChildRef(self._object_ref(), ref, **where)
        else:
            raise self._unexpected(token, "an object reference")
        while self._peek().type is TokenType.DOT and self._peek(1).type is TokenType.LABEL:
            self._next()
            child = self._next()
            ref = ex.ChildRef(
                ref, ex.LabelRef(child.text, line=child.line, column=child.column), **where
            )
        return ref

    def _class_name(self) -> ObjectClass:
        token = self._peek()
        if token.type is TokenType.ID and token.text in CLASS_KEYWORDS:
            self._next()
            return CLASS_KEYWORDS[token.text]
        if token.type is TokenType.LBRACKET and self._peek(1).type is TokenType.RBRACKET:
            self._next()
            self._next()
            return ObjectClass.CONTAINER
        raise self._unexpected(token, "an object class such as box or []")


__all__ = ["Parser", "parse", "parse_source"]
