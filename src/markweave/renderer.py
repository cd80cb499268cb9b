#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/renderer.py
"""HTML renderer for markweave tokens.

The :class:`Renderer` has one method per token type. Block methods return
complete elements terminated by a newline; inline methods return fragments.
Children are rendered by calling back into the owning
:class:`~markweave.parser.Parser` (``self.parser``).

:class:`TextRenderer` renders inline tokens as plain text and is used for image
alt attributes.

"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from markweave.rules import OTHER
from markweave.tokens import (
    Blockquote,
    CodeBlock,
    CodeSpan,
    Emphasis,
    Escape,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    LineBreak,
    Link,
    LinkDef,
    List,
    ListItem,
    Paragraph,
    Space,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
    Token,
)
from markweave.utils.html_utils import clean_url, escape_html

if TYPE_CHECKING:
    from markweave.options import MarkdownOptions
    from markweave.parser import Parser

logger = logging.getLogger(__name__)


class Renderer:
    """Render tokens to HTML.

    Subclass and pass as ``renderer_class``, or override individual methods
    with an extension, to customize the output.

    Parameters
    ----------
    options : MarkdownOptions, optional
        Active options

    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        """Create a renderer; the parser attaches itself as ``parser``."""
        self.options = options
        self.parser: Parser

    # ------------------------------------------------------------------
    # Block-level
    # ------------------------------------------------------------------

    def space(self, token: Space) -> str:
        return ""

    def code(self, token: CodeBlock) -> str:
        """Render a code block; the language class uses the first word of the info string."""
        lang_match = OTHER.not_space_start.match(token.lang or "")
        lang = lang_match.group(0) if lang_match else ""
        code = OTHER.ending_newline.sub("", token.text) + "\n"
        body = code if token.escaped else escape_html(code, encode=True)

        if not lang:
            return f"<pre><code>{body}</code></pre>\n"
        return f'<pre><code class="language-{escape_html(lang)}">{body}</code></pre>\n'

    def blockquote(self, token: Blockquote) -> str:
        return f"<blockquote>\n{self.parser.render_blocks(token.tokens)}</blockquote>\n"

    def html(self, token: HtmlBlock | HtmlInline) -> str:
        return token.text

    def def_(self, token: LinkDef) -> str:
        return ""

    def heading(self, token: Heading) -> str:
        return f"<h{token.depth}>{self.parser.render_inline(token.tokens)}</h{token.depth}>\n"

    def hr(self, token: ThematicBreak) -> str:
        return "<hr>\n"

    def list(self, token: List) -> str:
        """Render an ordered or unordered list; ``start`` is omitted when it is 1."""
        body = "".join(self.listitem(item) for item in token.items)
        tag = "ol" if token.ordered else "ul"
        start = f' start="{token.start}"' if token.ordered and token.start != 1 else ""
        return f"<{tag}{start}>\n{body}</{tag}>\n"

    def listitem(self, token: ListItem) -> str:
        """Render a list item, prefixing a checkbox for task items.

        The checkbox is injected into copies of the leading tokens so the
        token tree stays as the lexer produced it.
        """
        prefix = ""
        tokens = list(token.tokens)

        if token.task:
            checkbox = self.checkbox(bool(token.checked))
            if not token.loose:
                prefix = checkbox + " "
            elif tokens and tokens[0].type == "paragraph":
                first = tokens[0]
                children = list(getattr(first, "tokens", None) or [])
                if children and children[0].type == "text":
                    lead = children[0]
                    children[0] = replace(lead, text=checkbox + " " + escape_html(lead.text), escaped=True)  # type: ignore[attr-defined]
                tokens[0] = replace(first, text=checkbox + " " + first.text, tokens=children)  # type: ignore[attr-defined]
            else:
                tokens.insert(0, Text(raw=checkbox + " ", text=checkbox + " ", escaped=True))

        return f"<li>{prefix}{self.parser.render_blocks(tokens, top=token.loose)}</li>\n"

    def checkbox(self, checked: bool) -> str:
        state = 'checked="" ' if checked else ""
        return f'<input {state}disabled="" type="checkbox">'

    def paragraph(self, token: Paragraph) -> str:
        return f"<p>{self.parser.render_inline(token.tokens)}</p>\n"

    def table(self, token: Table) -> str:
        """Render a table; ``<tbody>`` is emitted only when there are body rows."""
        header = self.tablerow(token.header)
        body = "".join(self.tablerow(row) for row in token.rows)
        if body:
            body = f"<tbody>{body}</tbody>"
        return f"<table>\n<thead>\n{header}</thead>\n{body}</table>\n"

    def tablerow(self, token: TableRow) -> str:
        cells = "".join(self.tablecell(cell) for cell in token.cells)
        return f"<tr>\n{cells}</tr>\n"

    def tablecell(self, token: TableCell) -> str:
        content = self.parser.render_inline(token.tokens)
        tag = "th" if token.header else "td"
        opening = f'<{tag} align="{token.align}">' if token.align else f"<{tag}>"
        return f"{opening}{content}</{tag}>\n"

    # ------------------------------------------------------------------
    # Inline-level
    # ------------------------------------------------------------------

    def strong(self, token: Strong) -> str:
        return f"<strong>{self.parser.render_inline(token.tokens)}</strong>"

    def em(self, token: Emphasis) -> str:
        return f"<em>{self.parser.render_inline(token.tokens)}</em>"

    def codespan(self, token: CodeSpan) -> str:
        return f"<code>{escape_html(token.text, encode=True)}</code>"

    def br(self, token: LineBreak) -> str:
        return "<br>"

    def del_(self, token: Strikethrough) -> str:
        return f"<del>{self.parser.render_inline(token.tokens)}</del>"

    def link(self, token: Link) -> str:
        """Render a link; an href that cannot be encoded leaves only the link text."""
        text = self.parser.render_inline(token.tokens)
        href = clean_url(token.href)
        if href is None:
            return text

        title = f' title="{escape_html(token.title)}"' if token.title else ""
        return f'<a href="{href}"{title}>{text}</a>'

    def image(self, token: Image) -> str:
        """Render an image with its alt text flattened to plain text."""
        alt = token.text
        if token.tokens:
            alt = self.parser.render_inline(token.tokens, self.parser.text_renderer)
        href = clean_url(token.href)
        if href is None:
            return escape_html(alt)

        title = f' title="{escape_html(token.title)}"' if token.title else ""
        return f'<img src="{href}" alt="{escape_html(alt)}"{title}>'

    def text(self, token: Text | Escape) -> str:
        children: Optional[list[Token]] = getattr(token, "tokens", None)
        if children:
            return self.parser.render_inline(children)
        if getattr(token, "escaped", False):
            return token.text
        return escape_html(token.text)


class TextRenderer:
    """Render inline tokens as plain text, dropping all markup."""

    def strong(self, token: Strong) -> str:
        return token.text

    def em(self, token: Emphasis) -> str:
        return token.text

    def codespan(self, token: CodeSpan) -> str:
        return token.text

    def del_(self, token: Strikethrough) -> str:
        return token.text

    def html(self, token: HtmlInline) -> str:
        return token.text

    def text(self, token: Text | Escape) -> str:
        return token.text

    def link(self, token: Link) -> str:
        return token.text

    def image(self, token: Image) -> str:
        return token.text

    def br(self, token: LineBreak) -> str:
        return ""
