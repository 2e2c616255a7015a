"""Command-line interface for picscript compile/layout workflows."""
from __future__ import annotations

import argparse
import json
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .compiler import Diagram, compile_script
from .errors import (
    EvalError,
    LexError,
    ObjectReferenceError,
    ParseError,
    PicscriptError,
)
from .resources import load_cheatsheet
from .svg import render_svg

SUBCOMMANDS = "compile, layout, cheatsheet"


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="picscript",
        description="Compile picscript diagrams to SVG or to a JSON object layout.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Compile a script to SVG")
    compile_parser.add_argument("input", nargs="?", help="Input .pic file")
    compile_parser.add_argument("--text", help="Raw picscript source")
    compile_parser.add_argument("--stdout", action="store_true", help="Write SVG to stdout")
    compile_parser.add_argument("-o", "--output", help="Output .svg path")
    compile_parser.add_argument("--scale", type=float, help="Override the script's scale")

    layout_parser = subparsers.add_parser("layout", help="Print the laid-out objects as JSON")
    layout_parser.add_argument("input", nargs="?", help="Input .pic file")
    layout_parser.add_argument("--text", help="Raw picscript source")
    layout_parser.add_argument("--stdout", action="store_true", help="Write JSON to stdout")
    layout_parser.add_argument("-o", "--output", help="Output .json path")

    subparsers.add_parser("cheatsheet", help="Print picscript quick reference")

    return parser


def _read_input(path: Optional[str], text: Optional[str]) -> tuple[str, str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, "<text>", None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(), str(input_path), input_path
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe picscript source into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content)
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


_HINTS = {
    LexError: "Check string quotes, numbers and stray characters near the reported position.",
    ParseError: "Check statement syntax and which attributes the object class accepts.",
    ObjectReferenceError: "Labels must be declared before use and be unique within a block.",
    EvalError: "Check variable names, function arguments and divisions.",
}


def _error_from_exception(exc: Exception, source_name: Optional[str] = None) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, PicscriptError):
        hint = next(
            (text for kind, text in _HINTS.items() if isinstance(exc, kind)),
            None,
        )
        syntax = isinstance(exc, (LexError, ParseError))
        return CliError(
            exc.code,
            exc.message,
            hint=hint,
            exit_code=2 if syntax else 3,
            file=source_name,
            line=exc.line,
            column=exc.column,
            retryable=True,
        )
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    location = ""
    if err.line is not None:
        location = f"{err.file or '<input>'}:{err.line}:{err.column}: "
    sys.stderr.write(f"error[{err.code}]: {location}{err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _check_outputs(args: argparse.Namespace) -> None:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )


def _compile_source(args: argparse.Namespace) -> tuple[Diagram, Optional[Path]]:
    source, source_name, source_path = _read_input(args.input, args.text)
    try:
        diagram = compile_script(source)
    except PicscriptError as exc:
        raise _error_from_exception(exc, source_name) from exc
    for message in diagram.messages:
        sys.stderr.write(message + "\n")
    return diagram, source_path


def _deliver(args: argparse.Namespace, content: str, source_path: Optional[Path], suffix: str) -> int:
    if args.stdout or (source_path is None and not args.output):
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    if args.output:
        output_path = Path(args.output)
    else:
        assert source_path is not None
        output_path = source_path.with_suffix(suffix)
    _write_text(output_path, content)
    print(f"Wrote {output_path}")
    return 0


def _handle_compile(args: argparse.Namespace) -> int:
    _check_outputs(args)
    if args.scale is not None and args.scale <= 0:
        raise CliError(
            "E_ARGS",
            "--scale must be > 0",
            hint="Use a positive scale factor like 1 or 2.",
            exit_code=2,
        )
    diagram, source_path = _compile_source(args)
    svg_text = render_svg(diagram, scale=args.scale)
    return _deliver(args, svg_text, source_path, ".svg")


def _handle_layout(args: argparse.Namespace) -> int:
    _check_outputs(args)
    diagram, source_path = _compile_source(args)
    payload = json.dumps(diagram.to_dict(), indent=2)
    return _deliver(args, payload, source_path, ".json")


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint=f"Use one of: {SUBCOMMANDS}.",
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("PICSCRIPT_DEBUG") == "1"
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "layout":
            return _handle_layout(args)
        if args.command == "cheatsheet":
            print(load_cheatsheet())
            return 0

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint=f"Use one of: {SUBCOMMANDS}.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint=f"Use subcommands: {SUBCOMMANDS}.",
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
