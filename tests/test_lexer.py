from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from picscript.errors import LexError, ParseError
from picscript.lexer import TokenType, scan, tokenize
from picscript.macros import expand_macros
from picscript.colors import DEFAULT_COLORS


def _types(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source)]


class LexerTests(unittest.TestCase):
    def test_object_with_string_and_unit(self) -> None:
        tokens = tokenize('box "hi" wid 1cm')
        self.assertEqual(
            [t.type for t in tokens],
            [TokenType.ID, TokenType.STRING, TokenType.ID, TokenType.NUMBER, TokenType.EOF],
        )
        self.assertEqual(tokens[1].value, "hi")
        self.assertEqual(tokens[3].value, 1.0)
        self.assertEqual(tokens[3].unit, "cm")

    def test_comments_are_skipped(self) -> None:
        self.assertEqual(
            _types("box # one\n// two\n/* three */ circle"),
            [TokenType.ID, TokenType.EOL, TokenType.EOL, TokenType.ID, TokenType.EOF],
        )

    def test_backslash_newline_joins_lines(self) -> None:
        self.assertEqual(
            _types("box \\\n  wid 1"),
            [TokenType.ID, TokenType.ID, TokenType.NUMBER, TokenType.EOF],
        )

    def test_semicolon_ends_statement(self) -> None:
        self.assertEqual(
            _types("box; circle"),
            [TokenType.ID, TokenType.EOL, TokenType.ID, TokenType.EOF],
        )

    def test_ordinals_and_edges(self) -> None:
        tokens = tokenize("2nd last box; A.ne; first circle")
        self.assertEqual(tokens[0].type, TokenType.NTH)
        self.assertEqual(tokens[0].value, 2)
        self.assertTrue(tokens[1].is_word("last"))
        self.assertEqual(tokens[4].type, TokenType.LABEL)
        self.assertEqual(tokens[5].type, TokenType.EDGE)
        self.assertEqual(tokens[5].value, "ne")
        self.assertEqual(tokens[7].type, TokenType.NTH)
        self.assertEqual(tokens[7].value, 1)

    def test_dot_before_property_is_plain_dot(self) -> None:
        tokens = tokenize("A.wid")
        self.assertEqual(
            [t.type for t in tokens],
            [TokenType.LABEL, TokenType.DOT, TokenType.ID, TokenType.EOF],
        )

    def test_color_names_are_case_insensitive(self) -> None:
        tokens = tokenize("fill rEd")
        self.assertEqual(tokens[1].type, TokenType.COLOR)
        self.assertEqual(tokens[1].value, "red")

    def test_capitalized_color_word_is_a_label(self) -> None:
        for source in ("Red: box", "at Red", "fill Red"):
            with self.subTest(source=source):
                word = next(t for t in tokenize(source) if t.text == "Red")
                self.assertEqual(word.type, TokenType.LABEL)

    def test_percent_and_hex(self) -> None:
        tokens = tokenize("wid 50% fill 0xff0000")
        self.assertEqual(tokens[1].type, TokenType.PERCENT)
        self.assertEqual(tokens[1].value, 50.0)
        self.assertEqual(tokens[3].value, float(0xFF0000))

    def test_variables_and_arrows(self) -> None:
        tokens = tokenize("$x += 1; arrow <->")
        self.assertEqual(tokens[0].type, TokenType.VARIABLE)
        self.assertEqual(tokens[1].type, TokenType.ASSIGN)
        self.assertEqual(tokens[1].text, "+=")
        self.assertEqual(tokens[5].type, TokenType.ARROW)
        self.assertEqual(tokens[5].text, "<->")

    def test_string_escapes(self) -> None:
        tokens = tokenize(r'"a\"b\\c"')
        self.assertEqual(tokens[0].value, 'a"b\\c')

    def test_unterminated_string_position(self) -> None:
        with self.assertRaises(LexError) as ctx:
            tokenize('box "abc')
        self.assertEqual((ctx.exception.line, ctx.exception.column), (1, 5))
        self.assertEqual(ctx.exception.code, "E_LEX")

    def test_invalid_numeric_literal(self) -> None:
        with self.assertRaises(LexError):
            tokenize("box wid 3zz")

    def test_out_of_range_number(self) -> None:
        for source in ("print 1e400", "x = 1e999cm", "x = 50e999%", "x = 0x" + "f" * 300):
            with self.subTest(source=source):
                with self.assertRaises(LexError) as ctx:
                    tokenize(source)
                self.assertIn("invalid numeric literal", ctx.exception.message)

    def test_stray_backslash(self) -> None:
        with self.assertRaises(LexError):
            tokenize("box \\ wid 1")

    def test_non_ascii_outside_strings(self) -> None:
        with self.assertRaises(LexError):
            tokenize("box wid 1 café")
        self.assertEqual(tokenize('"café"')[0].value, "café")

    def test_scan_collects_every_error(self) -> None:
        tokens, errors = scan("box ?\ncircle ?")
        self.assertEqual(len(errors), 2)
        self.assertEqual(errors[1].line, 2)
        self.assertEqual(tokens[-1].type, TokenType.EOF)


class MacroTests(unittest.TestCase):
    def _expand(self, source: str) -> list[str]:
        tokens = expand_macros(tokenize(source), DEFAULT_COLORS)
        return [t.text for t in tokens if t.type not in (TokenType.EOL, TokenType.EOF)]

    def test_define_and_substitute_arguments(self) -> None:
        words = self._expand('define pair { box $1; box $2 }\npair("a", "b")')
        self.assertEqual(words, ["box", '"a"', "box", '"b"'])

    def test_macro_without_arguments(self) -> None:
        self.assertEqual(self._expand("define two { box; box }\ntwo"), ["box", "box"])

    def test_braces_inside_strings_do_not_close_body(self) -> None:
        words = self._expand('define brace { box "}" ; box "{" }\nbrace')
        self.assertEqual(words, ["box", '"}"', "box", '"{"'])

    def test_recursive_macro_is_bounded(self) -> None:
        with self.assertRaises(ParseError):
            self._expand("define loop { loop }\nloop")

    def test_expanded_tokens_point_at_call_site(self) -> None:
        tokens = expand_macros(tokenize("define b { box }\n\nb"), DEFAULT_COLORS)
        box = next(t for t in tokens if t.is_word("box"))
        self.assertEqual(box.line, 3)


if __name__ == "__main__":
    unittest.main()
