from __future__ import annotations

import argparse
import difflib
import json
import sys
from pathlib import Path
from typing import Any, Optional

from .config import Settings, build_options, load_config
from .errors import ConfigError, Diagnostic, SourceError
from .io_atomic import replace_file
from .pipeline import STDIN_NAME, FormatResult, format_source

MAX_REPORTED = 10
NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tagfmt", usage="tagfmt [flags] [path ...]")
    ap.add_argument("paths", nargs="*", help="Go files or directories; standard input when omitted.")
    ap.add_argument("-l", dest="list", action="store_true", help="list files whose formatting differs from tagfmt's")
    ap.add_argument("-w", dest="write", action="store_true", help="write result to (source) file instead of stdout")
    ap.add_argument("-d", dest="diff", action="store_true", help="display diffs instead of rewriting files")
    ap.add_argument("-e", dest="all_errors", action="store_true", help="report all errors (not just the first 10)")
    ap.add_argument("-a", dest="align", action="store_const", const=True, default=None, help="align with nearby field's tag (default)")
    ap.add_argument("--no-align", dest="align", action="store_const", const=False, help="do not align tags")
    ap.add_argument("-s", dest="sort", action="store_const", const=True, default=None, help="sort struct tag by key")
    ap.add_argument("-so", dest="sort_order", default=None, help="sort struct tag keys order e.g json|yaml|desc")
    ap.add_argument(
        "-sw",
        dest="sort_weight",
        default=None,
        help="sort struct tag keys weight e.g json=1|yaml=2|desc=-1; higher weight ranks first, default 0",
    )
    ap.add_argument("-f", dest="fill", default=None, help="fill key and value for field e.g json=lower(_val)|yaml=snake(_val)")
    ap.add_argument("-p", dest="pattern", default=None, help="field name with regular expression pattern")
    ap.add_argument("-P", dest="inverse_pattern", default=None, help="field name with inverse regular expression pattern")
    ap.add_argument("-sp", dest="struct_pattern", default=None, help="struct name with regular expression pattern")
    ap.add_argument(
        "-sP", dest="inverse_struct_pattern", default=None, help="struct name with inverse regular expression pattern"
    )
    ap.add_argument("--tab-width", dest="tab_width", type=int, default=None, help="tab width used to measure columns")
    ap.add_argument("--config", default=None, help="Path to a JSON file with default options.")
    ap.add_argument("--json", dest="json_output", action="store_true", help="print diagnostics as JSON")
    return ap


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    keys = (
        "pattern",
        "inverse_pattern",
        "struct_pattern",
        "inverse_struct_pattern",
        "sort",
        "sort_order",
        "sort_weight",
        "fill",
        "align",
        "tab_width",
    )
    return {key: getattr(args, key) for key in keys}


def _print_diagnostics(diags: list[Diagnostic], all_errors: bool, json_output: bool) -> None:
    if not diags:
        return
    if json_output:
        payload = [d.to_dict() for d in diags]
        print(json.dumps(payload, ensure_ascii=False, indent=2), file=sys.stderr)
        return
    shown = diags if all_errors else diags[:MAX_REPORTED]
    for diag in shown:
        print(diag.format(), file=sys.stderr)
    if len(shown) < len(diags):
        print(f"{diags[0].path}: too many errors ({len(diags)} total, use -e to report all)", file=sys.stderr)


def unified_diff(before: str, after: str, filename: str) -> str:
    name = Path(filename).as_posix()
    chunks: list[str] = []
    for line in difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"{name}.orig",
        tofile=name,
    ):
        chunks.append(line)
        if not line.endswith("\n"):
            chunks.append("\n" + NO_NEWLINE_MARKER)
    return "".join(chunks)


def iter_go_files(path: Path) -> list[Path]:
    if path.is_file():
        return [path]
    found = []
    for candidate in path.rglob("*.go"):
        if any(part.startswith(".") for part in candidate.relative_to(path).parts):
            continue
        if candidate.is_file():
            found.append(candidate)
    return sorted(found)


def process_file(filename: str, src: str, settings: Settings, args: argparse.Namespace) -> FormatResult:
    result = format_source(src, settings, filename)
    if result.changed:
        if args.list:
            print(filename)
        if args.write:
            replace_file(Path(filename), result.text.encode("utf-8"))
        if args.diff:
            name = Path(filename).as_posix()
            print(f"diff -u {name}.orig {name}")
            sys.stdout.write(unified_diff(src, result.text, filename))
    if not args.list and not args.write and not args.diff:
        sys.stdout.write(result.text)
    return result


def _run_one(filename: str, settings: Settings, args: argparse.Namespace) -> bool:
    try:
        if filename == STDIN_NAME:
            src = _read_stdin()
        else:
            src = Path(filename).read_bytes().decode("utf-8")
        result = process_file(filename, src, settings, args)
    except SourceError as exc:
        print(f"{filename}:{exc.line}: {exc.message}", file=sys.stderr)
        return False
    except (OSError, ValueError) as exc:
        print(f"{filename}: {exc}", file=sys.stderr)
        return False
    _print_diagnostics(result.diagnostics, args.all_errors, args.json_output)
    return not result.has_errors


def _read_stdin() -> str:
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is not None:
        return buffer.read().decode("utf-8")
    return sys.stdin.read()


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        file_values = load_config(Path(args.config)) if args.config else {}
        settings = build_options(file_values, _overrides(args)).compile()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if not args.paths:
        if args.write:
            print("error: cannot use -w with standard input", file=sys.stderr)
            return 2
        return 0 if _run_one(STDIN_NAME, settings, args) else 2

    exit_code = 0
    for raw in args.paths:
        path = Path(raw)
        if not path.exists():
            print(f"E_PATH_NOT_FOUND: {raw}", file=sys.stderr)
            exit_code = 2
            continue
        for file_path in iter_go_files(path):
            if not _run_one(str(file_path), settings, args):
                exit_code = 2
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
