#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Utility helpers for escaping, URL cleaning and text scanning."""

from markweave.utils.html_utils import clean_url, escape_html
from markweave.utils.text import (
    WHITESPACE_CHARS,
    compile_ecma,
    find_closing_bracket,
    rtrim,
    split_cells,
    unicode_category_class,
)

__all__ = [
    "WHITESPACE_CHARS",
    "clean_url",
    "compile_ecma",
    "escape_html",
    "find_closing_bracket",
    "rtrim",
    "split_cells",
    "unicode_category_class",
]
