from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from picscript import cli


class _StdoutCapture:
    def __init__(self) -> None:
        self._text = io.StringIO()

    def write(self, value: str) -> int:
        return self._text.write(value)

    def flush(self) -> None:
        pass

    def get_text(self) -> str:
        return self._text.getvalue()


class CLIAcceptanceTests(unittest.TestCase):
    def run_cli(self, argv: list[str], stdin_text: str = "") -> tuple[int, str, str]:
        stdout = _StdoutCapture()
        stderr = io.StringIO()
        stdin = io.StringIO(stdin_text)
        with mock.patch("sys.stdout", stdout), mock.patch("sys.stderr", stderr), mock.patch("sys.stdin", stdin):
            code = cli.main(argv)
        return code, stdout.get_text(), stderr.getvalue()

    def test_requires_subcommand(self) -> None:
        code, _out, err = self.run_cli([])
        self.assertEqual(code, 2)
        self.assertIn("E_ARGS", err)
        self.assertIn("subcommand", err)

    def test_unknown_subcommand(self) -> None:
        code, _out, err = self.run_cli(["render", "x.pic"])
        self.assertEqual(code, 2)
        self.assertIn("E_ARGS", err)

    def test_compile_file_writes_svg(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "input.pic"
            src.write_text('A: box "start" fit\narrow\ncircle "end"\n')
            code, out, err = self.run_cli(["compile", str(src)])
            self.assertEqual(code, 0, err)
            target = Path(td) / "input.svg"
            self.assertTrue(target.exists())
            self.assertIn("Wrote", out)
            root = ET.fromstring(target.read_text())
            self.assertTrue(root.tag.endswith("svg"))

    def test_compile_output_path(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            target = Path(td) / "out" / "diagram.svg"
            target.parent.mkdir()
            code, out, err = self.run_cli(["compile", "--text", "box", "-o", str(target)])
            self.assertEqual(code, 0, err)
            self.assertTrue(target.exists())
            self.assertIn(str(target), out)

    def test_compile_text_to_stdout(self) -> None:
        code, out, err = self.run_cli(["compile", "--text", "box; arrow; circle", "--stdout"])
        self.assertEqual(code, 0, err)
        root = ET.fromstring(out)
        self.assertAlmostEqual(float(root.get("width")), 183.36)

    def test_compile_scale_option(self) -> None:
        code, out, err = self.run_cli(["compile", "--text", "box", "--scale", "2"])
        self.assertEqual(code, 0, err)
        root = ET.fromstring(out)
        self.assertAlmostEqual(float(root.get("width")), (0.75 + 0.015) * 96 * 2)

    def test_compile_from_stdin(self) -> None:
        code, out, err = self.run_cli(["compile"], stdin_text="circle\n")
        self.assertEqual(code, 0, err)
        self.assertIn("<circle", out)

    def test_empty_stdin(self) -> None:
        code, _out, err = self.run_cli(["compile"], stdin_text="  \n")
        self.assertEqual(code, 2)
        self.assertIn("stdin was empty", err)

    def test_layout_json(self) -> None:
        code, out, err = self.run_cli(["layout", "--text", "A: box\nB: circle"])
        self.assertEqual(code, 0, err)
        payload = json.loads(out)
        self.assertEqual([obj["class"] for obj in payload["objects"]], ["box", "circle"])
        self.assertEqual(payload["objects"][0]["label"], "A")
        self.assertEqual(payload["objects"][1]["center"], [1.0, 0.0])
        self.assertEqual(len(payload["bbox"]), 4)

    def test_layout_is_deterministic(self) -> None:
        script = 'G: [ box "a"; box "b" ]\narrow from G.e right 1\n"done"'
        _code, first, _err = self.run_cli(["layout", "--text", script])
        _code, second, _err = self.run_cli(["layout", "--text", script])
        self.assertEqual(first, second)

    def test_print_goes_to_stderr(self) -> None:
        code, out, err = self.run_cli(["layout", "--text", "box\nprint \"w =\", 1st box.wid"])
        self.assertEqual(code, 0, err)
        self.assertIn("w = 0.75", err)
        self.assertEqual(json.loads(out)["messages"], ["w = 0.75"])

    def test_reference_error_json(self) -> None:
        code, out, err = self.run_cli(
            ["--error-format", "json", "compile", "--text", "box\nbox at Nowhere.n"]
        )
        self.assertEqual(code, 3)
        self.assertEqual(out, "")
        payload = json.loads(err)
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["code"], "E_REF")
        self.assertEqual(payload["line"], 2)
        self.assertEqual(payload["file"], "<text>")
        self.assertIsNotNone(payload["hint"])

    def test_lex_error_text_format(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", 'box "open'])
        self.assertEqual(code, 2)
        self.assertIn("error[E_LEX]: <text>:1:5:", err)
        self.assertIn("hint:", err)

    def test_eval_error_exit_code(self) -> None:
        code, _out, err = self.run_cli(["layout", "--text", "x = 1/0"])
        self.assertEqual(code, 3)
        self.assertIn("E_EVAL", err)

    def test_stdout_and_output_conflict(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", "box", "--stdout", "-o", "x.svg"])
        self.assertEqual(code, 2)
        self.assertIn("mutually exclusive", err)

    def test_text_and_file_conflict(self) -> None:
        code, _out, err = self.run_cli(["compile", "a.pic", "--text", "box"])
        self.assertEqual(code, 2)
        self.assertIn("--text cannot be combined", err)

    def test_rejects_non_positive_scale(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", "box", "--scale", "0"])
        self.assertEqual(code, 2)
        self.assertIn("--scale must be > 0", err)

    def test_missing_input_file(self) -> None:
        code, _out, err = self.run_cli(["--error-format", "json", "compile", "missing.pic"])
        self.assertEqual(code, 2)
        self.assertEqual(json.loads(err)["code"], "E_IO_READ")

    def test_cheatsheet(self) -> None:
        code, out, err = self.run_cli(["cheatsheet"])
        self.assertEqual(code, 0, err)
        self.assertIn("picscript", out.lower())
        self.assertIn("box", out)


if __name__ == "__main__":
    unittest.main()
