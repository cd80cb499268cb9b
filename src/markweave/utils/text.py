#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/utils/text.py
"""Text processing utilities for the tokenizer.

Functions
---------
rtrim : Strip a trailing run of one character
split_cells : Split a GFM table row into cell strings
find_closing_bracket : Locate the bracket that closes an unbalanced run
unicode_category_class : Build a regex character class from Unicode categories
compile_ecma : Compile a pattern with ECMAScript whitespace and word classes

"""

from __future__ import annotations

import functools
import re
import sys
import unicodedata

_UNESCAPED_PIPE = re.compile(r"\|")


def rtrim(text: str, char: str, invert: bool = False) -> str:
    """Remove trailing occurrences of ``char``.

    Parameters
    ----------
    text : str
        Text to trim
    char : str
        Single character to strip from the end
    invert : bool, default False
        When True, strip trailing characters that are *not* ``char`` instead

    Returns
    -------
    str
        Trimmed text

    Examples
    --------
    >>> rtrim("abc###", "#")
    'abc'
    >>> rtrim("ab#cd", "#", invert=True)
    'ab#'

    """
    end = len(text)
    while end > 0:
        current = text[end - 1]
        if (current == char) != invert:
            end -= 1
        else:
            break
    return text[:end]


def split_cells(row: str, count: int | None = None) -> list[str]:
    """Split a table row on unescaped pipes.

    Leading and trailing empty cells produced by outer pipes are dropped.
    Escaped pipes (``\\|``) stay inside their cell and are unescaped.

    Parameters
    ----------
    row : str
        A single table row
    count : int, optional
        Pad or truncate the result to this many cells

    Returns
    -------
    list[str]
        Stripped cell contents

    """

    def _mark(match: re.Match[str]) -> str:
        escaped = False
        pos = match.start() - 1
        while pos >= 0 and row[pos] == "\\":
            escaped = not escaped
            pos -= 1
        # A space before every delimiting pipe separates it from escaped ones.
        return "|" if escaped else " |"

    cells = _UNESCAPED_PIPE.sub(_mark, row).split(" |")

    if not cells[0].strip(WHITESPACE_CHARS):
        cells.pop(0)
    if cells and not cells[-1].strip(WHITESPACE_CHARS):
        cells.pop()

    if count:
        if len(cells) > count:
            del cells[count:]
        else:
            cells.extend([""] * (count - len(cells)))

    return [cell.strip(WHITESPACE_CHARS).replace("\\|", "|") for cell in cells]


def find_closing_bracket(text: str, brackets: str) -> int:
    """Find the closing bracket that makes ``text`` unbalanced.

    Parameters
    ----------
    text : str
        Text to scan
    brackets : str
        Two-character string of opening and closing bracket, e.g. ``"()"``

    Returns
    -------
    int
        Index of the first closing bracket without a matching opener, ``-1``
        when there is none, or ``-2`` when openers are left unclosed

    """
    opening, closing = brackets[0], brackets[1]
    if closing not in text:
        return -1

    level = 0
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 1
        elif char == opening:
            level += 1
        elif char == closing:
            level -= 1
            if level < 0:
                return index
        index += 1

    return -2 if level > 0 else -1


# Whitespace as ECMAScript's ``\s`` and ``String.prototype.trim`` define it.
# Python's ``str.isspace`` adds U+001C-U+001F and U+0085 but lacks U+FEFF.
WHITESPACE_CHARS = (
    "\t\n\v\f\r \u00a0\u1680"
    + "".join(chr(code_point) for code_point in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000\ufeff"
)
WHITESPACE_CLASS = r"\t\n\x0b\x0c\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

_NEGATED_ESCAPES = frozenset(("\\S", "\\W", "\\D"))


def _class_end(source: str, start: int) -> int:
    index = start + 1
    if index < len(source) and source[index] == "^":
        index += 1
    if index < len(source) and source[index] == "]":
        index += 1
    while index < len(source):
        if source[index] == "\\":
            index += 2
            continue
        if source[index] == "]":
            return index + 1
        index += 1
    return len(source)


def _class_escapes(body: str) -> list[str]:
    escapes = []
    index = 0
    while index < len(body):
        if body[index] == "\\":
            escapes.append(body[index : index + 2])
            index += 2
        else:
            index += 1
    return escapes


def ecma_pattern(source: str) -> str:
    """Rewrite ``\\s`` and ``\\S`` to the ECMAScript whitespace set.

    Escapes inside a character class are expanded in place unless the class
    also holds a negated shorthand (as in ``[\\s\\S]``), which already matches
    every character.

    Parameters
    ----------
    source : str
        Regular expression text

    Returns
    -------
    str
        Equivalent text with explicit whitespace classes

    Examples
    --------
    >>> ecma_pattern(r"a\\sb") == "a[" + WHITESPACE_CLASS + "]b"
    True
    >>> ecma_pattern(r"[\\s\\S]")
    '[\\\\s\\\\S]'

    """
    parts = []
    index = 0
    while index < len(source):
        char = source[index]
        if char == "\\" and index + 1 < len(source):
            escape = source[index : index + 2]
            if escape == "\\s":
                parts.append(f"[{WHITESPACE_CLASS}]")
            elif escape == "\\S":
                parts.append(f"[^{WHITESPACE_CLASS}]")
            else:
                parts.append(escape)
            index += 2
        elif char == "[":
            end = _class_end(source, index)
            body = source[index:end]
            if not _NEGATED_ESCAPES.intersection(_class_escapes(body)):
                body = _expand_class_spaces(body)
            parts.append(body)
            index = end
        else:
            parts.append(char)
            index += 1
    return "".join(parts)


def _expand_class_spaces(body: str) -> str:
    parts = []
    index = 0
    while index < len(body):
        if body[index] == "\\":
            escape = body[index : index + 2]
            parts.append(WHITESPACE_CLASS if escape == "\\s" else escape)
            index += 2
        else:
            parts.append(body[index])
            index += 1
    return "".join(parts)


def compile_ecma(source: str, flags: int = 0) -> re.Pattern[str]:
    """Compile a pattern with ECMAScript character class semantics.

    ``\\w``, ``\\d`` and ``\\b`` are ASCII-only and ``\\s`` is the ECMAScript
    whitespace set, so non-ASCII letters never count as word characters.
    """
    return re.compile(ecma_pattern(source), flags | re.ASCII)


def _class_escape(code_point: int) -> str:
    if code_point <= 0xFFFF:
        return f"\\u{code_point:04x}"
    return f"\\U{code_point:08x}"


@functools.lru_cache(maxsize=None)
def unicode_category_class(prefixes: tuple[str, ...]) -> str:
    """Build the body of a regex character class for Unicode categories.

    Python's ``re`` has no ``\\p{...}`` support, so the class is generated by
    scanning every code point and merging those whose general category starts
    with one of ``prefixes`` into ranges.

    Parameters
    ----------
    prefixes : tuple[str, ...]
        Category prefixes, e.g. ``("P", "S")`` for punctuation and symbols

    Returns
    -------
    str
        Escaped ranges suitable for placing inside ``[...]``

    Examples
    --------
    >>> import re
    >>> punct = re.compile("[" + unicode_category_class(("P", "S")) + "]")
    >>> bool(punct.match("!")), bool(punct.match("a"))
    (True, False)

    """
    ranges: list[tuple[int, int]] = []
    start = -1
    for code_point in range(sys.maxunicode + 1):
        if unicodedata.category(chr(code_point))[0] in prefixes:
            if start < 0:
                start = code_point
        elif start >= 0:
            ranges.append((start, code_point - 1))
            start = -1
    if start >= 0:
        ranges.append((start, sys.maxunicode))

    parts = []
    for low, high in ranges:
        if low == high:
            parts.append(_class_escape(low))
        else:
            parts.append(f"{_class_escape(low)}-{_class_escape(high)}")
    return "".join(parts)
