#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/cli.py
"""Command line interface.

Converts one Markdown file to HTML::

    markweave [INPUT] [-o OUT] [--no-gfm] [--pedantic] [--breaks] [--silent]
              [--tokens] [--config PATH] [--log-level LEVEL]

``INPUT`` defaults to ``README.md``. A missing input file is skipped with a
warning and exit status 0. Options are read from a configuration file (see
:mod:`markweave.config`) and flags given on the command line win over it.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from markweave import __version__
from markweave.api import Markdown, convert_file
from markweave.config import load_config_with_priority, options_from_config
from markweave.constants import (
    DEFAULT_INPUT_FILE,
    EXIT_ERROR,
    EXIT_FILE_ERROR,
    EXIT_PARSING_ERROR,
    EXIT_RENDERING_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
)
from markweave.exceptions import ConfigurationError, InvalidInputError, ParsingError, RenderingError
from markweave.logging_utils import configure_logging
from markweave.options import MarkdownOptions
from markweave.tokens import tokens_to_json

logger = logging.getLogger(__name__)

# Flags that map directly onto MarkdownOptions fields.
_OPTION_FLAGS = ("gfm", "pedantic", "breaks", "silent")


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="markweave",
        description="Convert Markdown to HTML.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=DEFAULT_INPUT_FILE,
        help=f"Markdown file to convert (default: {DEFAULT_INPUT_FILE})",
    )
    parser.add_argument("-o", "--out", dest="output", help="Write HTML to this file instead of stdout")

    grammar = parser.add_argument_group("grammar options")
    grammar.add_argument(
        "--no-gfm",
        dest="gfm",
        action="store_false",
        default=None,
        help="Disable GitHub Flavored Markdown (tables, strikethrough, autolinks, task lists)",
    )
    grammar.add_argument(
        "--pedantic", action="store_true", default=None, help="Follow the original markdown.pl grammar"
    )
    grammar.add_argument("--breaks", action="store_true", default=None, help="Render single line breaks as <br>")
    grammar.add_argument(
        "--silent",
        action="store_true",
        default=None,
        help="Log errors and emit an error fragment instead of failing",
    )

    parser.add_argument("--tokens", action="store_true", help="Print the token tree as JSON instead of HTML")
    parser.add_argument("--config", help="Configuration file (JSON, TOML or YAML)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and logger names")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to a CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map

    Returns
    -------
    int
        Exit code from :mod:`markweave.constants`

    """
    if isinstance(exception, (ConfigurationError, InvalidInputError)):
        return EXIT_VALIDATION_ERROR
    if isinstance(exception, (OSError, UnicodeDecodeError)):
        return EXIT_FILE_ERROR
    if isinstance(exception, ParsingError):
        return EXIT_PARSING_ERROR
    if isinstance(exception, RenderingError):
        return EXIT_RENDERING_ERROR
    return EXIT_ERROR


def build_options(parsed_args: argparse.Namespace) -> MarkdownOptions:
    """Combine configuration file values with command line flags.

    Raises
    ------
    ConfigurationError
        If the configuration file is invalid

    """
    config = load_config_with_priority(parsed_args.config)
    options = options_from_config(config)

    overrides: dict[str, Any] = {
        name: getattr(parsed_args, name) for name in _OPTION_FLAGS if getattr(parsed_args, name) is not None
    }
    if overrides:
        options = options.create_updated(**overrides)
    return options


def _write_output(content: str, output: str | None) -> None:
    if output:
        Path(output).write_text(content, encoding="utf-8")
        logger.info("Wrote %s", output)
    else:
        sys.stdout.write(content)


def main(args: list[str] | None = None) -> int:
    """Run the command line interface.

    Parameters
    ----------
    args : list of str, optional
        Arguments, defaults to ``sys.argv[1:]``

    Returns
    -------
    int
        Exit code

    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    log_level = logging.DEBUG if parsed_args.trace else parsed_args.log_level
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    try:
        options = build_options(parsed_args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    input_path = Path(parsed_args.input)
    if not input_path.is_file():
        logger.warning("Input file %s not found, skipping", input_path)
        return EXIT_SUCCESS

    try:
        if parsed_args.tokens:
            source = input_path.read_text(encoding="utf-8")
            content = tokens_to_json(Markdown(options=options).lexer(source)) + "\n"
        else:
            content = convert_file(input_path, options) or ""
        _write_output(content, parsed_args.output)
    except Exception as e:
        exit_code = get_exit_code_for_exception(e)
        if exit_code == EXIT_ERROR:
            logger.exception("Unexpected error while converting %s", input_path)
        print(f"Error: {e}", file=sys.stderr)
        return exit_code

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
