#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/rules.py
"""Compiled grammar tables for the block and inline tokenizers.

Patterns are composed once, at import, from named fragments with
:class:`PatternTemplate` and frozen into dataclasses. The tables are shared by
every parse and never modified; extensions add rules through the
:class:`~markweave.options.ExtensionTable` instead.

Dialects
--------
Block tables: ``normal``, ``gfm``, ``pedantic``.
Inline tables: ``normal``, ``gfm``, ``breaks``, ``pedantic``.

Python's ``re`` module has no ``\\p{...}`` classes, so Unicode punctuation and
symbol classes are generated from :mod:`unicodedata` by
:func:`~markweave.utils.text.unicode_category_class`. Everything else is
compiled with :func:`~markweave.utils.text.compile_ecma`, which keeps ``\\w``
and ``\\b`` ASCII-only and gives ``\\s`` the ECMAScript whitespace set.

"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Union

from markweave.constants import BLOCK_TAG_NAMES, PEDANTIC_INLINE_TAG_NAMES
from markweave.utils.text import compile_ecma, unicode_category_class

if TYPE_CHECKING:
    from markweave.options import MarkdownOptions

Fragment = Union[str, "re.Pattern[str]"]

_CARET = re.compile(r"(^|[^\[])\^")

# Matches nothing; used for rules a dialect disables.
NEVER = re.compile(r"(?!)")


class PatternTemplate:
    """Compose a regular expression from named placeholders.

    Inserted fragments lose any unbracketed ``^`` anchor so an anchored rule
    can be embedded inside another one.

    Parameters
    ----------
    source : str or re.Pattern
        Template text containing placeholder names
    flags : int, default 0
        Flags used by :meth:`compile`

    Examples
    --------
    >>> PatternTemplate(r"^(?:bull) x").sub("bull", r"^[*+-]").source
    '^(?:[*+-]) x'

    """

    def __init__(self, source: Fragment, flags: int = 0) -> None:
        """Create a template from text or an existing pattern."""
        self._source = source.pattern if isinstance(source, re.Pattern) else source
        self._flags = flags

    @property
    def source(self) -> str:
        """Current template text."""
        return self._source

    def sub(self, name: str, fragment: Fragment, every: bool = False) -> PatternTemplate:
        """Replace the first (or every) occurrence of ``name`` with ``fragment``."""
        text = fragment.pattern if isinstance(fragment, re.Pattern) else fragment
        text = _CARET.sub(r"\1", text)
        self._source = self._source.replace(name, text) if every else self._source.replace(name, text, 1)
        return self

    def compile(self) -> re.Pattern[str]:
        """Compile the template."""
        return compile_ecma(self._source, self._flags)


# ============================================================================
# Unicode classes
# ============================================================================

_PUNCT = unicode_category_class(("P", "S"))

PUNCTUATION = f"[{_PUNCT}]"
PUNCT_SPACE = f"[\\s{_PUNCT}]"
NOT_PUNCT_SPACE = f"[^\\s{_PUNCT}]"

# GFM treats ``~`` as a regular character when flanking emphasis.
GFM_PUNCTUATION = f"(?!~)[{_PUNCT}]"
GFM_PUNCT_SPACE = f"(?!~)[\\s{_PUNCT}]"
GFM_NOT_PUNCT_SPACE = f"(?:[^\\s{_PUNCT}]|~)"


# ============================================================================
# Table types
# ============================================================================


@dataclass(frozen=True)
class BlockRules:
    """Block-level patterns, all anchored at the start of the remaining input."""

    newline: re.Pattern[str]
    code: re.Pattern[str]
    fences: re.Pattern[str]
    hr: re.Pattern[str]
    heading: re.Pattern[str]
    blockquote: re.Pattern[str]
    list: re.Pattern[str]
    html: re.Pattern[str]
    def_: re.Pattern[str]
    lheading: re.Pattern[str]
    paragraph: re.Pattern[str]
    text: re.Pattern[str]
    table: re.Pattern[str]


@dataclass(frozen=True)
class InlineRules:
    """Inline-level patterns.

    ``reflink_search``, ``block_skip``, ``any_punctuation`` and the right
    delimiter patterns are scanned with ``finditer``/``sub``; the rest are
    anchored.
    """

    escape: re.Pattern[str]
    tag: re.Pattern[str]
    link: re.Pattern[str]
    reflink: re.Pattern[str]
    nolink: re.Pattern[str]
    reflink_search: re.Pattern[str]
    em_strong_l_delim: re.Pattern[str]
    em_strong_r_delim_ast: re.Pattern[str]
    em_strong_r_delim_und: re.Pattern[str]
    punctuation: re.Pattern[str]
    any_punctuation: re.Pattern[str]
    block_skip: re.Pattern[str]
    code: re.Pattern[str]
    br: re.Pattern[str]
    del_: re.Pattern[str]
    autolink: re.Pattern[str]
    url: re.Pattern[str]
    backpedal: re.Pattern[str]
    text: re.Pattern[str]


@dataclass(frozen=True)
class OtherRules:
    """Helper patterns used inside tokenizer methods."""

    code_remove_indent: re.Pattern[str]
    output_link_replace: re.Pattern[str]
    indent_code_compensation: re.Pattern[str]
    beginning_space: re.Pattern[str]
    ending_hash: re.Pattern[str]
    starting_space_char: re.Pattern[str]
    ending_space_char: re.Pattern[str]
    non_space_char: re.Pattern[str]
    multiple_space: re.Pattern[str]
    blank_line: re.Pattern[str]
    double_blank_line: re.Pattern[str]
    blockquote_start: re.Pattern[str]
    blockquote_setext_replace: re.Pattern[str]
    blockquote_setext_replace2: re.Pattern[str]
    list_replace_tabs: re.Pattern[str]
    list_replace_nesting: re.Pattern[str]
    list_is_task: re.Pattern[str]
    list_replace_task: re.Pattern[str]
    any_line: re.Pattern[str]
    href_brackets: re.Pattern[str]
    table_delimiter: re.Pattern[str]
    table_align_chars: re.Pattern[str]
    table_row_blank_line: re.Pattern[str]
    table_align_right: re.Pattern[str]
    table_align_center: re.Pattern[str]
    table_align_left: re.Pattern[str]
    start_a_tag: re.Pattern[str]
    end_a_tag: re.Pattern[str]
    start_pre_script_tag: re.Pattern[str]
    end_pre_script_tag: re.Pattern[str]
    start_angle_bracket: re.Pattern[str]
    end_angle_bracket: re.Pattern[str]
    pedantic_href_title: re.Pattern[str]
    unicode_alphanumeric: re.Pattern[str]
    carriage_return: re.Pattern[str]
    space_line: re.Pattern[str]
    not_space_start: re.Pattern[str]
    ending_newline: re.Pattern[str]

    @staticmethod
    def list_item(bullet: str) -> re.Pattern[str]:
        """Pattern for one item of a list whose marker matches ``bullet``."""
        return _list_item_pattern(bullet)

    @staticmethod
    def next_bullet(indent: int) -> re.Pattern[str]:
        """Pattern for a sibling list marker that ends the current item."""
        return _indented_pattern("next_bullet", indent)

    @staticmethod
    def hr_begin(indent: int) -> re.Pattern[str]:
        """Pattern for a thematic break that ends the current item."""
        return _indented_pattern("hr", indent)

    @staticmethod
    def fences_begin(indent: int) -> re.Pattern[str]:
        """Pattern for a code fence that ends the current item."""
        return _indented_pattern("fences", indent)

    @staticmethod
    def heading_begin(indent: int) -> re.Pattern[str]:
        """Pattern for an ATX heading that ends the current item."""
        return _indented_pattern("heading", indent)

    @staticmethod
    def html_begin(indent: int) -> re.Pattern[str]:
        """Pattern for an HTML block that ends the current item."""
        return _indented_pattern("html", indent)


@dataclass(frozen=True)
class RuleSet:
    """The tables one lexer uses."""

    block: BlockRules
    inline: InlineRules
    other: OtherRules


@functools.lru_cache(maxsize=None)
def _list_item_pattern(bullet: str) -> re.Pattern[str]:
    return compile_ecma(f"^( {{0,3}}{bullet})((?:[\\t ][^\\n]*)?(?:\\n|\\Z))")


_INDENTED_TEMPLATES = {
    "next_bullet": r"(?:[*+-]|[0-9]{1,9}[.)])((?:[ \t][^\n]*)?(?:\n|\Z))",
    "hr": r"((?:- *){3,}|(?:_ *){3,}|(?:\* *){3,})(?:\n+|\Z)",
    "fences": r"(?:```|~~~)",
    "heading": r"#",
    "html": r"<(?:[a-z].*>|!--)",
}


@functools.lru_cache(maxsize=None)
def _indented_pattern(kind: str, indent: int) -> re.Pattern[str]:
    spaces = max(0, min(3, indent - 1))
    flags = re.IGNORECASE if kind == "html" else 0
    return compile_ecma(f"^ {{0,{spaces}}}" + _INDENTED_TEMPLATES[kind], flags)


# ============================================================================
# Block grammar
# ============================================================================

_NEWLINE = compile_ecma(r"^(?:[ \t]*(?:\n|\Z))+")
_BLOCK_CODE = compile_ecma(r"^((?: {4}| {0,3}\t)[^\n]+(?:\n(?:[ \t]*(?:\n|\Z))*)?)+")
_FENCES = compile_ecma(
    r"^ {0,3}(`{3,}(?=[^`\n]*(?:\n|\Z))|~{3,})([^\n]*)(?:\n|\Z)(?:|([\s\S]*?)(?:\n|\Z))(?: {0,3}\1[~`]* *(?=\n|\Z)|\Z)"
)
_HR = compile_ecma(r"^ {0,3}((?:-[\t ]*){3,}|(?:_[ \t]*){3,}|(?:\*[ \t]*){3,})(?:\n+|\Z)")
_HEADING = compile_ecma(r"^ {0,3}(#{1,6})(?=\s|\Z)(.*)(?:\n+|\Z)")
_BULLET = r"(?:[*+-]|[0-9]{1,9}[.)])"

_LHEADING_TEMPLATE = (
    r"^(?!bull |blockCode|fences|blockquote|heading|html|table)"
    r"((?:.|\n(?!\s*?\n|bull |blockCode|fences|blockquote|heading|html|table))+?)"
    r"\n {0,3}(=+|-+) *(?:\n+|\Z)"
)


def _lheading(table: str | None) -> re.Pattern[str]:
    template = (
        PatternTemplate(_LHEADING_TEMPLATE)
        .sub("bull", _BULLET, every=True)
        .sub("blockCode", r"(?: {4}| {0,3}\t)", every=True)
        .sub("fences", r" {0,3}(?:`{3,}|~{3,})", every=True)
        .sub("blockquote", r" {0,3}>", every=True)
        .sub("heading", r" {0,3}#{1,6}", every=True)
        .sub("html", r" {0,3}<[^\n>]+>\n", every=True)
    )
    if table is None:
        template.sub("|table", "", every=True)
    else:
        template.sub("table", table, every=True)
    return template.compile()


_LHEADING = _lheading(None)
_GFM_LHEADING = _lheading(r" {0,3}\|?(?:[:\- ]*\|)+[\:\- ]*\n")

_PARAGRAPH_TEMPLATE = r"^([^\n]+(?:\n(?!hr|heading|lheading|blockquote|fences|list|html|table| +\n)[^\n]+)*)"
_BLOCK_TEXT = compile_ecma(r"^[^\n]+")

_LABEL = r"(?!\s*\])(?:\\[\s\S]|[^\[\]\\])+"

_DEF = (
    PatternTemplate(
        r"^ {0,3}\[(label)\]: *(?:\n[ \t]*)?([^<\s][^\s]*|<.*?>)"
        r"(?:(?: +(?:\n[ \t]*)?| *\n[ \t]*)(title))? *(?:\n+|\Z)"
    )
    .sub("label", _LABEL)
    .sub("title", r"""(?:"(?:\\"?|[^"\\])*"|'[^'\n]*(?:\n[^'\n]+)*\n?'|\([^()]*\))""")
    .compile()
)

_LIST = PatternTemplate(r"^( {0,3}bull)([ \t][^\n]+?)?(?:\n|\Z)").sub("bull", _BULLET, every=True).compile()

_BLOCK_COMMENT = r"<!--(?:-?>|[\s\S]*?(?:-->|\Z))"

_HTML = (
    PatternTemplate(
        r"^ {0,3}(?:"
        r"<(script|pre|style|textarea)[\s>][\s\S]*?(?:</\1>[^\n]*\n+|\Z)"
        r"|comment[^\n]*(\n+|\Z)"
        r"|<\?[\s\S]*?(?:\?>\n*|\Z)"
        r"|<![A-Z][\s\S]*?(?:>\n*|\Z)"
        r"|<!\[CDATA\[[\s\S]*?(?:\]\]>\n*|\Z)"
        r"|</?(tag)(?: +|\n|/?>)[\s\S]*?(?:(?:\n[ \t]*)+\n|\Z)"
        r"|<(?!script|pre|style|textarea)([a-z][\w-]*)(?:attribute)*? */?>(?=[ \t]*(?:\n|\Z))[\s\S]*?(?:(?:\n[ \t]*)+\n|\Z)"
        r"|</(?!script|pre|style|textarea)[a-z][\w-]*\s*>(?=[ \t]*(?:\n|\Z))[\s\S]*?(?:(?:\n[ \t]*)+\n|\Z))",
        re.IGNORECASE,
    )
    .sub("comment", _BLOCK_COMMENT)
    .sub("tag", BLOCK_TAG_NAMES)
    .sub("attribute", r""" +[a-zA-Z:_][\w.:-]*(?: *= *"[^"\n]*"| *= *'[^'\n]*'| *= *[^\s"'=<>`]+)?""")
    .compile()
)

# Alternatives that interrupt a paragraph or end a table body.
_INTERRUPT_HEADING = r" {0,3}#{1,6}(?:\s|\Z)"
_INTERRUPT_BLOCKQUOTE = r" {0,3}>"
_INTERRUPT_FENCES = r" {0,3}(?:`{3,}(?=[^`\n]*\n)|~{3,})[^\n]*\n"
_INTERRUPT_LIST = r" {0,3}(?:[*+-]|1[.)]) "
_INTERRUPT_HTML = r"</?(?:tag)(?: +|\n|/?>)|<(?:script|pre|style|textarea|!--)"


def _paragraph(table: str | None) -> re.Pattern[str]:
    template = (
        PatternTemplate(_PARAGRAPH_TEMPLATE).sub("hr", _HR).sub("heading", _INTERRUPT_HEADING).sub("|lheading", "")
    )
    if table is None:
        template.sub("|table", "")
    else:
        template.sub("table", table)
    return (
        template.sub("blockquote", _INTERRUPT_BLOCKQUOTE)
        .sub("fences", _INTERRUPT_FENCES)
        .sub("list", _INTERRUPT_LIST)
        .sub("html", _INTERRUPT_HTML)
        .sub("tag", BLOCK_TAG_NAMES)
        .compile()
    )


_PARAGRAPH = _paragraph(None)

_BLOCKQUOTE = PatternTemplate(r"^( {0,3}> ?(paragraph|[^\n]*)(?:\n|\Z))+").sub("paragraph", _PARAGRAPH).compile()

_GFM_TABLE = (
    PatternTemplate(
        r"^ *([^\n ].*)\n {0,3}((?:\| *)?:?-+:? *(?:\| *:?-+:? *)*(?:\| *)?)"
        r"(?:\n((?:(?! *\n|hr|heading|blockquote|code|fences|list|html).*(?:\n|\Z))*)\n*|\Z)"
    )
    .sub("hr", _HR)
    .sub("heading", _INTERRUPT_HEADING)
    .sub("blockquote", _INTERRUPT_BLOCKQUOTE)
    .sub("code", r"(?: {4}| {0,3}\t)[^\n]")
    .sub("fences", _INTERRUPT_FENCES)
    .sub("list", _INTERRUPT_LIST)
    .sub("html", _INTERRUPT_HTML)
    .sub("tag", BLOCK_TAG_NAMES)
    .compile()
)

_NORMAL_BLOCK = BlockRules(
    newline=_NEWLINE,
    code=_BLOCK_CODE,
    fences=_FENCES,
    hr=_HR,
    heading=_HEADING,
    blockquote=_BLOCKQUOTE,
    list=_LIST,
    html=_HTML,
    def_=_DEF,
    lheading=_LHEADING,
    paragraph=_PARAGRAPH,
    text=_BLOCK_TEXT,
    table=NEVER,
)

_GFM_BLOCK = replace(
    _NORMAL_BLOCK,
    lheading=_GFM_LHEADING,
    table=_GFM_TABLE,
    paragraph=_paragraph(_GFM_TABLE.pattern),
)

_PEDANTIC_TAG = rf"(?!(?:{PEDANTIC_INLINE_TAG_NAMES})\b)\w+(?!:|[^\w\s@]*@)\b"

_PEDANTIC_BLOCK = replace(
    _NORMAL_BLOCK,
    html=PatternTemplate(
        r"^ *(?:comment *(?:\n|\s*\Z)|<(tag)[\s\S]+?</\1> *(?:\n{2,}|\s*\Z)"
        r"""|<tag(?:"[^"]*"|'[^']*'|\s[^'"/>\s]*)*?/?> *(?:\n{2,}|\s*\Z))"""
    )
    .sub("comment", _BLOCK_COMMENT)
    .sub("tag", _PEDANTIC_TAG, every=True)
    .compile(),
    def_=compile_ecma(r"""^ *\[([^\]]+)\]: *<?([^\s>]+)>?(?: +(["(][^\n]+[")]))? *(?:\n+|\Z)"""),
    heading=compile_ecma(r"^(#{1,6})(.*)(?:\n+|\Z)"),
    fences=NEVER,
    lheading=compile_ecma(r"^(.+?)\n {0,3}(=+|-+) *(?:\n+|\Z)"),
    paragraph=PatternTemplate(_PARAGRAPH_TEMPLATE)
    .sub("hr", _HR)
    .sub("heading", r" *#{1,6} *[^\n]")
    .sub("lheading", _LHEADING)
    .sub("|table", "")
    .sub("blockquote", _INTERRUPT_BLOCKQUOTE)
    .sub("|fences", "")
    .sub("|list", "")
    .sub("|html", "")
    .sub("|tag", "")
    .compile(),
)

BLOCK_RULES: Mapping[str, BlockRules] = MappingProxyType(
    {"normal": _NORMAL_BLOCK, "gfm": _GFM_BLOCK, "pedantic": _PEDANTIC_BLOCK}
)


# ============================================================================
# Inline grammar
# ============================================================================

_ESCAPE = compile_ecma(r"""^\\([!"#$%&'()*+,\-./:;<=>?@\[\]\\^_`{|}~])""")
_INLINE_CODE = compile_ecma(r"^(`+)([^`]|[^`][\s\S]*?[^`])\1(?!`)")
_BR = compile_ecma(r"^( {2,}|\\)\n(?!\s*\Z)")
_INLINE_TEXT = compile_ecma(r"^(`+|[^`])(?:(?= {2,}\n)|[\s\S]*?(?:(?=[\\<!\[`*_]|\b_|\Z)|[^ ](?= {2,}\n)))")

_PUNCTUATION_RULE = PatternTemplate(r"^((?![*_])punctSpace)").sub("punctSpace", PUNCT_SPACE, every=True).compile()

_BLOCK_SKIP = compile_ecma(r"\[[^\[\]]*?\]\((?:\\[\s\S]|[^\\\(\)]|\((?:\\[\s\S]|[^\\\(\)])*\))*\)|`[^`]*?`|<(?! )[^<>]*?>")

_L_DELIM_TEMPLATE = r"^(?:\*+(?:((?!\*)punct)|[^\s*]))|^_+(?:((?!_)punct)|([^\s_]))"

_R_DELIM_AST_TEMPLATE = (
    r"^[^_*]*?__[^_*]*?\*[^_*]*?(?=__)"
    r"|[^*]+(?=[^*])"
    r"|(?!\*)punct(\*+)(?=[\s]|\Z)"
    r"|notPunctSpace(\*+)(?!\*)(?=punctSpace|\Z)"
    r"|(?!\*)punctSpace(\*+)(?=notPunctSpace)"
    r"|[\s](\*+)(?!\*)(?=punct)"
    r"|(?!\*)punct(\*+)(?!\*)(?=punct)"
    r"|notPunctSpace(\*+)(?=notPunctSpace)"
)

_R_DELIM_UND_TEMPLATE = (
    r"^[^_*]*?\*\*[^_*]*?_[^_*]*?(?=\*\*)"
    r"|[^_]+(?=[^_])"
    r"|(?!_)punct(_+)(?=[\s]|\Z)"
    r"|notPunctSpace(_+)(?!_)(?=punctSpace|\Z)"
    r"|(?!_)punctSpace(_+)(?=notPunctSpace)"
    r"|[\s](_+)(?!_)(?=punct)"
    r"|(?!_)punct(_+)(?!_)(?=punct)"
)


def _delimiter_rule(template: str, not_punct_space: str, punct_space: str, punct: str) -> re.Pattern[str]:
    return (
        PatternTemplate(template)
        .sub("notPunctSpace", not_punct_space, every=True)
        .sub("punctSpace", punct_space, every=True)
        .sub("punct", punct, every=True)
        .compile()
    )


_ANY_PUNCTUATION = PatternTemplate(r"\\(punct)").sub("punct", PUNCTUATION, every=True).compile()

_AUTOLINK = (
    PatternTemplate(r"^<(scheme:[^\s\x00-\x1f<>]*|email)>")
    .sub("scheme", r"[a-zA-Z][a-zA-Z0-9+.-]{1,31}")
    .sub(
        "email",
        r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+(@)[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
        r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+(?![-_])",
    )
    .compile()
)

_TAG = (
    PatternTemplate(
        r"^comment"
        r"|^</[a-zA-Z][\w:-]*\s*>"
        r"|^<[a-zA-Z][\w-]*(?:attribute)*?\s*/?>"
        r"|^<\?[\s\S]*?\?>"
        r"|^<![a-zA-Z]+\s[\s\S]*?>"
        r"|^<!\[CDATA\[[\s\S]*?\]\]>"
    )
    .sub("comment", r"<!--(?:-?>|[\s\S]*?-->)")
    .sub("attribute", r"""\s+[a-zA-Z:_][\w.:-]*(?:\s*=\s*"[^"]*"|\s*=\s*'[^']*'|\s*=\s*[^\s"'=<>`]+)?""")
    .compile()
)

_LINK_LABEL = r"(?:\[(?:\\[\s\S]|[^\[\]\\])*\]|\\[\s\S]|`[^`]*`|[^\[\]\\`])*?"

_LINK = (
    PatternTemplate(r"^!?\[(label)\]\(\s*(href)(?:(?:[ \t]*(?:\n[ \t]*)?)(title))?\s*\)")
    .sub("label", _LINK_LABEL)
    .sub("href", r"<(?:\\.|[^\n<>\\])+>|[^ \t\n\x00-\x1f]*")
    .sub("title", r""""(?:\\"?|[^"\\])*"|'(?:\\'?|[^'\\])*'|\((?:\\\)?|[^)\\])*\)""")
    .compile()
)

_REFLINK = PatternTemplate(r"^!?\[(label)\]\[(ref)\]").sub("label", _LINK_LABEL).sub("ref", _LABEL).compile()
_NOLINK = PatternTemplate(r"^!?\[(ref)\](?:\[\])?").sub("ref", _LABEL).compile()
_REFLINK_SEARCH = PatternTemplate(r"reflink|nolink(?!\()").sub("reflink", _REFLINK).sub("nolink", _NOLINK).compile()

_NORMAL_INLINE = InlineRules(
    escape=_ESCAPE,
    tag=_TAG,
    link=_LINK,
    reflink=_REFLINK,
    nolink=_NOLINK,
    reflink_search=_REFLINK_SEARCH,
    em_strong_l_delim=PatternTemplate(_L_DELIM_TEMPLATE).sub("punct", PUNCTUATION, every=True).compile(),
    em_strong_r_delim_ast=_delimiter_rule(_R_DELIM_AST_TEMPLATE, NOT_PUNCT_SPACE, PUNCT_SPACE, PUNCTUATION),
    em_strong_r_delim_und=_delimiter_rule(_R_DELIM_UND_TEMPLATE, NOT_PUNCT_SPACE, PUNCT_SPACE, PUNCTUATION),
    punctuation=_PUNCTUATION_RULE,
    any_punctuation=_ANY_PUNCTUATION,
    block_skip=_BLOCK_SKIP,
    code=_INLINE_CODE,
    br=_BR,
    del_=NEVER,
    autolink=_AUTOLINK,
    url=NEVER,
    backpedal=NEVER,
    text=_INLINE_TEXT,
)

_PEDANTIC_INLINE = replace(
    _NORMAL_INLINE,
    link=PatternTemplate(r"^!?\[(label)\]\((.*?)\)").sub("label", _LINK_LABEL).compile(),
    reflink=PatternTemplate(r"^!?\[(label)\]\s*\[([^\]]*)\]").sub("label", _LINK_LABEL).compile(),
)

_EMAIL_CHARS = r"a-zA-Z0-9.!#$%&'*+\/=?_`{\|}~-"

_GFM_TEXT = (
    r"^([`~]+|[^`~])(?:(?= {2,}\n)"
    rf"|(?=[{_EMAIL_CHARS}]+@)"
    r"|[\s\S]*?(?:(?=[\\<!\[`*~_]|\b_|https?:\/\/|ftp:\/\/|www\.|\Z)"
    r"|[^ ](?= {2,}\n)"
    rf"|[^{_EMAIL_CHARS}](?=[{_EMAIL_CHARS}]+@)))"
)

_GFM_INLINE = replace(
    _NORMAL_INLINE,
    em_strong_r_delim_ast=_delimiter_rule(
        _R_DELIM_AST_TEMPLATE, GFM_NOT_PUNCT_SPACE, GFM_PUNCT_SPACE, GFM_PUNCTUATION
    ),
    em_strong_l_delim=PatternTemplate(_L_DELIM_TEMPLATE).sub("punct", GFM_PUNCTUATION, every=True).compile(),
    url=PatternTemplate(r"^((?:ftp|https?):\/\/|www\.)(?:[a-zA-Z0-9\-]+\.?)+[^\s<]*|^email", re.IGNORECASE)
    .sub("email", r"[A-Za-z0-9._+-]+(@)[a-zA-Z0-9_-]+(?:\.[a-zA-Z0-9_-]*[a-zA-Z0-9])+(?![-_])")
    .compile(),
    backpedal=compile_ecma(r"""(?:[^?!.,:;*_'"~()&]+|\([^)]*\)|&(?![a-zA-Z0-9]+;\Z)|[?!.,:;*_'"~)]+(?!\Z))+"""),
    del_=compile_ecma(r"^(~~?)(?=[^\s~])((?:\\[\s\S]|[^\\])*?(?:\\[\s\S]|[^\s~\\]))\1(?=[^~]|\Z)"),
    text=compile_ecma(_GFM_TEXT),
)

_BREAKS_INLINE = replace(
    _GFM_INLINE,
    br=PatternTemplate(_BR).sub("{2,}", "*").compile(),
    text=PatternTemplate(_GFM_TEXT).sub(r"\b_", r"\b_| {2,}\n").sub("{2,}", "*", every=True).compile(),
)

INLINE_RULES: Mapping[str, InlineRules] = MappingProxyType(
    {"normal": _NORMAL_INLINE, "gfm": _GFM_INLINE, "breaks": _BREAKS_INLINE, "pedantic": _PEDANTIC_INLINE}
)


# ============================================================================
# Helper patterns
# ============================================================================

OTHER = OtherRules(
    code_remove_indent=compile_ecma(r"^(?: {1,4}| {0,3}\t)", re.MULTILINE),
    output_link_replace=compile_ecma(r"\\([\[\]])"),
    indent_code_compensation=compile_ecma(r"^(\s+)(?:```)"),
    beginning_space=compile_ecma(r"^\s+"),
    ending_hash=compile_ecma(r"#\Z"),
    starting_space_char=compile_ecma(r"^ "),
    ending_space_char=compile_ecma(r" \Z"),
    non_space_char=compile_ecma(r"[^ ]"),
    multiple_space=compile_ecma(r"\s+"),
    blank_line=compile_ecma(r"^[ \t]*\Z"),
    double_blank_line=compile_ecma(r"\n[ \t]*\n[ \t]*\Z"),
    blockquote_start=compile_ecma(r"^ {0,3}>"),
    blockquote_setext_replace=compile_ecma(r"\n {0,3}((?:=+|-+) *)(?=\n|\Z)"),
    blockquote_setext_replace2=compile_ecma(r"^ {0,3}>[ \t]?", re.MULTILINE),
    list_replace_tabs=compile_ecma(r"^\t+"),
    list_replace_nesting=compile_ecma(r"^ {1,4}(?=( {4})*[^ ])"),
    list_is_task=compile_ecma(r"^\[[ xX]\] "),
    list_replace_task=compile_ecma(r"^\[[ xX]\] +"),
    any_line=compile_ecma(r"\n.*\n"),
    href_brackets=compile_ecma(r"^<(.*)>\Z"),
    table_delimiter=compile_ecma(r"[:|]"),
    table_align_chars=compile_ecma(r"^\||\| *\Z"),
    table_row_blank_line=compile_ecma(r"\n[ \t]*\Z"),
    table_align_right=compile_ecma(r"^ *-+: *\Z"),
    table_align_center=compile_ecma(r"^ *:-+: *\Z"),
    table_align_left=compile_ecma(r"^ *:-+ *\Z"),
    start_a_tag=compile_ecma(r"^<a ", re.IGNORECASE),
    end_a_tag=compile_ecma(r"^</a>", re.IGNORECASE),
    start_pre_script_tag=compile_ecma(r"^<(pre|code|kbd|script)(\s|>)", re.IGNORECASE),
    end_pre_script_tag=compile_ecma(r"^</(pre|code|kbd|script)(\s|>)", re.IGNORECASE),
    start_angle_bracket=compile_ecma(r"^<"),
    end_angle_bracket=compile_ecma(r">\Z"),
    pedantic_href_title=compile_ecma(r"""^([^'"]*[^\s])\s+(['"])(.*)\2"""),
    unicode_alphanumeric=re.compile(r"[^\W_]"),
    carriage_return=compile_ecma(r"\r\n|\r"),
    space_line=compile_ecma(r"^ +$", re.MULTILINE),
    not_space_start=compile_ecma(r"^\S*"),
    ending_newline=compile_ecma(r"\n\Z"),
)


@functools.lru_cache(maxsize=None)
def _rule_set(block_dialect: str, inline_dialect: str) -> RuleSet:
    return RuleSet(block=BLOCK_RULES[block_dialect], inline=INLINE_RULES[inline_dialect], other=OTHER)


def select_rules(options: MarkdownOptions) -> RuleSet:
    """Pick the rule tables for ``options``.

    ``pedantic`` wins over ``gfm``; ``breaks`` only applies with ``gfm``.

    Parameters
    ----------
    options : MarkdownOptions
        Active options

    Returns
    -------
    RuleSet
        Block, inline and helper tables

    """
    return _rule_set(options.block_dialect, options.inline_dialect)
