"""``define`` macros, expanded on the token stream before parsing."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from .colors import ColorTable
from .errors import LexError, ParseError
from .lexer import Token, TokenType, tokenize

MAX_EXPANSION_DEPTH = 10

_PARAM_RE = re.compile(r"\$([1-9])")


def expand_macros(tokens: List[Token], colors: ColorTable) -> List[Token]:
    """Strip ``define NAME { body }`` statements and substitute their uses."""
    return _Expander(colors).expand(tokens, depth=0)


class _Expander:
    def __init__(self, colors: ColorTable) -> None:
        self.colors = colors
        self.macros: Dict[str, str] = {}

    def expand(self, tokens: List[Token], depth: int) -> List[Token]:
        out: List[Token] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if token.is_word("define"):
                index = self._define(tokens, index)
                continue
            name = token.text
            if token.type in (TokenType.ID, TokenType.LABEL) and name in self.macros:
                args, index = self._arguments(tokens, index + 1)
                out.extend(self._invoke(token, args, depth))
                continue
            out.append(token)
            index += 1
        return out

    def _define(self, tokens: List[Token], index: int) -> int:
        keyword = tokens[index]
        if index + 2 >= len(tokens):
            raise ParseError("incomplete macro definition", keyword.line, keyword.column)
        name_token = tokens[index + 1]
        body_token = tokens[index + 2]
        if name_token.type not in (TokenType.ID, TokenType.LABEL, TokenType.COLOR):
            raise ParseError(
                "macro name must be an identifier", name_token.line, name_token.column
            )
        if body_token.type is not TokenType.CODEBLOCK:
            raise ParseError(
                "macro body must be a { ... } block", body_token.line, body_token.column
            )
        self.macros[name_token.text] = body_token.value
        return index + 3

    def _arguments(self, tokens: List[Token], index: int) -> Tuple[List[str], int]:
        if index >= len(tokens) or tokens[index].type is not TokenType.LPAREN:
            return [], index
        opener = tokens[index]
        args: List[str] = []
        current: List[str] = []
        depth = 1
        index += 1
        while index < len(tokens):
            token = tokens[index]
            if token.type is TokenType.LPAREN:
                depth += 1
            elif token.type is TokenType.RPAREN:
                depth -= 1
                if depth == 0:
                    args.append(" ".join(current))
                    return args, index + 1
            elif token.type is TokenType.COMMA and depth == 1:
                args.append(" ".join(current))
                current = []
                index += 1
                continue
            elif token.type is TokenType.EOF:
                break
            current.append(token.text if token.type is not TokenType.EOL else ";")
            index += 1
        raise ParseError("unterminated macro argument list", opener.line, opener.column)

    def _invoke(self, call: Token, args: List[str], depth: int) -> List[Token]:
        if depth >= MAX_EXPANSION_DEPTH:
            raise ParseError(
                f"macro expansion of {call.text!r} nested too deeply", call.line, call.column
            )

        def substitute(match: "re.Match[str]") -> str:
            position = int(match.group(1)) - 1
            return args[position] if position < len(args) else ""

        body = _PARAM_RE.sub(substitute, self.macros[call.text])
        try:
            expanded = tokenize(body, self.colors)
        except LexError as exc:
            raise LexError(
                f"in expansion of macro {call.text!r}: {exc.message}", call.line, call.column
            ) from exc
        relocated = [
            Token(tok.type, tok.text, call.line, call.column, tok.value, tok.unit)
            for tok in expanded
            if tok.type is not TokenType.EOF
        ]
        return self.expand(relocated, depth + 1)
