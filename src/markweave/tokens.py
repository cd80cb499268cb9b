#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/tokens.py
"""Token classes produced by the lexer.

Every token is a dataclass with a ``type`` discriminator and ``raw``, the exact
slice of source text it consumed. Container tokens keep their children in
``tokens``; lists keep theirs in ``items`` and tables in ``header``/``rows``.

Block-level tokens:
    - Space, ThematicBreak, Heading, CodeBlock, Fence, Blockquote
    - List, ListItem, HtmlBlock, LinkDef, Paragraph
    - Table, TableRow, TableCell

Inline tokens:
    - Text, Escape, HtmlInline, Link, Image
    - Strong, Emphasis, CodeSpan, LineBreak, Strikethrough

Extensions may emit :class:`GenericToken` with a custom ``type``.

The lexer returns a :class:`TokenList`, a plain list that also carries the
parse's :class:`LinkReferenceTable` as ``links``.

"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Iterator, Literal, Optional

from markweave.utils.text import compile_ecma

Alignment = Optional[Literal["left", "center", "right"]]

_WHITESPACE_RUN = compile_ecma(r"\s+")


@dataclass
class Token:
    """Base class for all tokens.

    Parameters
    ----------
    type : str
        Token kind; selects the renderer method
    raw : str
        Source text consumed by this token

    """

    type: str = ""
    raw: str = ""


# ============================================================================
# Block-level tokens
# ============================================================================


@dataclass
class Space(Token):
    """Blank lines between blocks."""

    type: str = field(default="space", init=False)


@dataclass
class ThematicBreak(Token):
    """A horizontal rule (``***``, ``---``, ``___``)."""

    type: str = field(default="hr", init=False)


@dataclass
class Heading(Token):
    """ATX (``# Title``) or setext (``Title\\n===``) heading.

    Parameters
    ----------
    depth : int
        Heading level from 1 to 6
    text : str
        Heading text before inline tokenization
    tokens : list[Token]
        Inline children

    """

    type: str = field(default="heading", init=False)
    depth: int = 1
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class CodeBlock(Token):
    """Indented code block.

    Parameters
    ----------
    text : str
        Code content with indentation removed
    lang : str or None
        Info string (fenced code only)
    escaped : bool
        True when ``text`` is already HTML-safe
    code_block_style : str
        ``"indented"`` or ``"fenced"``

    """

    type: str = field(default="code", init=False)
    text: str = ""
    lang: Optional[str] = None
    escaped: bool = False
    code_block_style: str = "indented"


@dataclass
class Fence(CodeBlock):
    """Fenced code block (backticks or tildes)."""

    code_block_style: str = "fenced"


@dataclass
class Blockquote(Token):
    """Block quote with nested block tokens."""

    type: str = field(default="blockquote", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class ListItem(Token):
    """A single list item.

    Parameters
    ----------
    task : bool
        True for GFM task items (``[ ]`` / ``[x]``)
    checked : bool or None
        Checkbox state for task items
    loose : bool
        True when the owning list is loose
    text : str
        Item content with the marker and indentation removed
    tokens : list[Token]
        Nested block tokens

    """

    type: str = field(default="list_item", init=False)
    task: bool = False
    checked: Optional[bool] = None
    loose: bool = False
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class List(Token):
    """Ordered or unordered list.

    Parameters
    ----------
    ordered : bool
        True for numbered lists
    start : int or None
        First number of an ordered list
    loose : bool
        True when any item is separated by a blank line
    items : list[ListItem]
        The list items

    """

    type: str = field(default="list", init=False)
    ordered: bool = False
    start: Optional[int] = None
    loose: bool = False
    items: list[ListItem] = field(default_factory=list)


@dataclass
class HtmlBlock(Token):
    """Raw HTML block, emitted verbatim."""

    type: str = field(default="html", init=False)
    text: str = ""
    pre: bool = False
    block: bool = True


@dataclass
class LinkDef(Token):
    """Link reference definition (``[label]: /url "title"``); renders nothing."""

    type: str = field(default="def", init=False)
    tag: str = ""
    href: str = ""
    title: Optional[str] = None


@dataclass
class Paragraph(Token):
    """Paragraph of inline content."""

    type: str = field(default="paragraph", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class TableCell(Token):
    """A header or body cell of a GFM table."""

    type: str = field(default="table_cell", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)
    header: bool = False
    align: Alignment = None


@dataclass
class TableRow(Token):
    """A row of table cells."""

    type: str = field(default="table_row", init=False)
    cells: list[TableCell] = field(default_factory=list)


@dataclass
class Table(Token):
    """GFM pipe table.

    Parameters
    ----------
    header : TableRow
        Header row
    align : list
        Column alignments (``"left"``, ``"center"``, ``"right"`` or None)
    rows : list[TableRow]
        Body rows, each padded or truncated to the header width

    """

    type: str = field(default="table", init=False)
    header: TableRow = field(default_factory=TableRow)
    align: list[Alignment] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)


# ============================================================================
# Inline tokens
# ============================================================================


@dataclass
class Text(Token):
    """Plain text.

    Inside list items a block-level text token also carries inline ``tokens``.

    Parameters
    ----------
    text : str
        The text
    tokens : list[Token] or None
        Inline children, for block-level text only
    escaped : bool
        True when ``text`` is already HTML-safe

    """

    type: str = field(default="text", init=False)
    text: str = ""
    tokens: Optional[list[Token]] = None
    escaped: bool = False


@dataclass
class Escape(Token):
    """Backslash escape; ``text`` is the escaped character."""

    type: str = field(default="escape", init=False)
    text: str = ""


@dataclass
class HtmlInline(Token):
    """Raw inline HTML tag."""

    type: str = field(default="html", init=False)
    text: str = ""
    in_link: bool = False
    in_raw_block: bool = False
    block: bool = False


@dataclass
class Link(Token):
    """Hyperlink, inline or reference-style."""

    type: str = field(default="link", init=False)
    href: str = ""
    title: Optional[str] = None
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class Image(Token):
    """Image; ``text`` and ``tokens`` describe the alt text."""

    type: str = field(default="image", init=False)
    href: str = ""
    title: Optional[str] = None
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class Strong(Token):
    """Strong emphasis (``**x**`` / ``__x__``)."""

    type: str = field(default="strong", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class Emphasis(Token):
    """Emphasis (``*x*`` / ``_x_``)."""

    type: str = field(default="em", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class CodeSpan(Token):
    """Inline code."""

    type: str = field(default="codespan", init=False)
    text: str = ""


@dataclass
class LineBreak(Token):
    """Hard line break."""

    type: str = field(default="br", init=False)


@dataclass
class Strikethrough(Token):
    """GFM strikethrough (``~~x~~``)."""

    type: str = field(default="del", init=False)
    text: str = ""
    tokens: list[Token] = field(default_factory=list)


@dataclass
class GenericToken(Token):
    """Token emitted by a tokenizer extension.

    Parameters
    ----------
    type : str
        Extension name; selects the extension renderer
    text : str
        Text content, if any
    tokens : list[Token]
        Child tokens, if any
    attrs : dict
        Arbitrary extension data

    """

    type: str = "generic"
    text: str = ""
    tokens: list[Token] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Reference table and token list
# ============================================================================


@dataclass(frozen=True)
class LinkReference:
    """Target of a link reference definition."""

    href: str
    title: Optional[str] = None


class LinkReferenceTable:
    """Mapping from normalized link labels to their targets.

    Labels are normalized by collapsing whitespace runs to a single space and
    lowercasing. The first definition of a label wins; later definitions are
    ignored.

    Examples
    --------
    >>> table = LinkReferenceTable()
    >>> table.define("Foo  Bar", "/url", None)
    True
    >>> table.define("foo bar", "/other", None)
    False
    >>> table.lookup("FOO BAR").href
    '/url'

    """

    def __init__(self) -> None:
        """Create an empty table."""
        self._entries: dict[str, LinkReference] = {}

    @staticmethod
    def normalize_label(label: str) -> str:
        """Normalize a label for lookup."""
        return _WHITESPACE_RUN.sub(" ", label).lower()

    def define(self, label: str, href: str, title: Optional[str]) -> bool:
        """Register a definition unless the label is already taken.

        Returns
        -------
        bool
            True if the definition was added

        """
        key = self.normalize_label(label)
        if key in self._entries:
            return False
        self._entries[key] = LinkReference(href=href, title=title)
        return True

    def lookup(self, label: str) -> Optional[LinkReference]:
        """Return the definition for ``label``, or None."""
        return self._entries.get(self.normalize_label(label))

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def to_dict(self) -> dict[str, dict[str, Optional[str]]]:
        """Return a plain-dict snapshot of the table."""
        return {label: {"href": ref.href, "title": ref.title} for label, ref in self._entries.items()}


class TokenList(list):  # type: ignore[type-arg]
    """List of top-level tokens with the parse's link reference table."""

    def __init__(self, tokens: Any = (), links: Optional[LinkReferenceTable] = None) -> None:
        """Create a token list, optionally seeded with tokens and links."""
        super().__init__(tokens)
        self.links = links if links is not None else LinkReferenceTable()


# ============================================================================
# Serialization
# ============================================================================


def token_to_dict(token: Token) -> dict[str, Any]:
    """Convert a token and its descendants to plain dictionaries."""
    return asdict(token)


def tokens_to_json(tokens: list[Token], indent: int | None = 2) -> str:
    """Serialize a token list, including its link table, to JSON.

    Parameters
    ----------
    tokens : list[Token]
        Tokens to serialize
    indent : int or None, default 2
        JSON indentation

    Returns
    -------
    str
        JSON document with ``tokens`` and ``links`` keys

    """
    links = tokens.links.to_dict() if isinstance(tokens, TokenList) else {}
    payload = {"tokens": [token_to_dict(token) for token in tokens], "links": links}
    return json.dumps(payload, indent=indent, ensure_ascii=False)
