"""``blockgen`` command line: workspace JSON in, generated program out."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from .api import check_syntax, generate_code, load_workspace
from .config import GeneratorConfig
from .errors import GenerationError
from .generators import SUPPORTED_LANGUAGES
from . import constants

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_GENERATION_FAILED = 1
EXIT_SYNTAX_ERRORS = 2


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blockgen",
        description="Generate Python, Lua or PHP source from a block workspace")
    parser.add_argument("file",
                        help="Workspace JSON file ('-' reads stdin)")
    parser.add_argument("--language", "-l", default=constants.LANGUAGE_PYTHON,
                        choices=SUPPORTED_LANGUAGES,
                        help="Target language (default: python)")
    parser.add_argument("--statement-prefix", default="",
                        help="Snippet emitted before every statement; %%1 is the block id")
    parser.add_argument("--statement-suffix", default="",
                        help="Snippet emitted after every statement; %%1 is the block id")
    parser.add_argument("--loop-trap", default="",
                        help="Snippet emitted at the top of every loop body")
    parser.add_argument("--indent", type=int, default=None,
                        help="Spaces per indentation level (default: 2)")
    parser.add_argument("--max-depth", type=int, default=constants.DEFAULT_MAX_DEPTH,
                        help=f"Maximum block nesting depth (default: {constants.DEFAULT_MAX_DEPTH})")
    parser.add_argument("--no-comments", action="store_true",
                        help="Do not emit block comments")
    parser.add_argument("--check", action="store_true",
                        help="Parse the output with tree-sitter and report syntax errors")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log generation progress")
    return parser


def config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    return GeneratorConfig(
        statement_prefix=args.statement_prefix,
        statement_suffix=args.statement_suffix,
        infinite_loop_trap=args.loop_trap,
        indent=" " * args.indent if args.indent is not None else None,
        max_depth=args.max_depth,
        emit_comments=not args.no_comments,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.file == "-":
            text = sys.stdin.read()
        else:
            with open(args.file, encoding="utf-8") as f:
                text = f.read()
        workspace = load_workspace(text)
        code = generate_code(workspace, args.language, config_from_args(args))
    except (OSError, ValueError, ValidationError, GenerationError) as exc:
        logger.error("%s", exc)
        return EXIT_GENERATION_FAILED

    sys.stdout.write(code)

    if args.check:
        report = check_syntax(code, args.language)
        for issue in report.issues:
            print(f"{args.file}:{issue}", file=sys.stderr)
        if not report.ok:
            return EXIT_SYNTAX_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
