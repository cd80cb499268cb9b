#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/tokenizer.py
"""Rule-level tokenizer methods.

Each method tries one grammar rule against the start of the remaining input
and returns a token on a match or None otherwise. The :class:`Lexer` decides
the order in which rules are tried; nested content is handed back to the lexer
(``lexer.block_tokens`` for containers, ``lexer.inline`` to queue inline text,
``lexer.inline_tokens`` for immediate inline scanning).

Subclass :class:`Tokenizer` and pass it as ``tokenizer_class``, or override
single methods through an extension, to change how a construct is recognized.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from markweave.tokens import (
    Blockquote,
    CodeBlock,
    CodeSpan,
    Emphasis,
    Escape,
    Fence,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    LineBreak,
    Link,
    LinkDef,
    LinkReferenceTable,
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
from markweave.utils.text import WHITESPACE_CHARS, find_closing_bracket, rtrim, split_cells

if TYPE_CHECKING:
    from markweave.lexer import Lexer
    from markweave.options import MarkdownOptions
    from markweave.rules import RuleSet

logger = logging.getLogger(__name__)


def _search_index(pattern: re.Pattern[str], text: str) -> int:
    match = pattern.search(text)
    return match.start() if match else -1


class Tokenizer:
    """Recognize individual Markdown constructs.

    Parameters
    ----------
    options : MarkdownOptions, optional
        Active options; the lexer fills this in when it adopts the tokenizer

    Attributes
    ----------
    rules : RuleSet
        Grammar tables selected by the lexer
    lexer : Lexer
        The lexer driving this tokenizer

    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        """Create a tokenizer; ``rules`` and ``lexer`` are attached by the lexer."""
        self.options = options
        self.rules: RuleSet
        self.lexer: Lexer

    @property
    def _pedantic(self) -> bool:
        return bool(self.options is not None and self.options.pedantic)

    @property
    def _gfm(self) -> bool:
        return bool(self.options is not None and self.options.gfm)

    # ------------------------------------------------------------------
    # Block-level rules
    # ------------------------------------------------------------------

    def space(self, src: str) -> Optional[Space]:
        """Match one or more blank lines."""
        match = self.rules.block.newline.match(src)
        if match and match.group(0):
            return Space(raw=match.group(0))
        return None

    def code(self, src: str) -> Optional[CodeBlock]:
        """Match an indented code block."""
        match = self.rules.block.code.match(src)
        if not match:
            return None
        text = self.rules.other.code_remove_indent.sub("", match.group(0))
        return CodeBlock(raw=match.group(0), text=text if self._pedantic else rtrim(text, "\n"))

    def fences(self, src: str) -> Optional[Fence]:
        """Match a fenced code block."""
        match = self.rules.block.fences.match(src)
        if not match:
            return None
        raw = match.group(0)
        text = self._compensate_indent(raw, match.group(3) or "")
        info = match.group(2)
        lang = self.rules.inline.any_punctuation.sub(r"\1", info.strip(WHITESPACE_CHARS)) if info else None
        return Fence(raw=raw, lang=lang or None, text=text)

    def _compensate_indent(self, raw: str, text: str) -> str:
        # Strip the fence's own indentation from every content line.
        match = self.rules.other.indent_code_compensation.match(raw)
        if match is None:
            return text

        indent = match.group(1)
        lines = []
        for line in text.split("\n"):
            leading = self.rules.other.beginning_space.match(line)
            if leading is not None and len(leading.group(0)) >= len(indent):
                line = line[len(indent) :]
            lines.append(line)
        return "\n".join(lines)

    def heading(self, src: str) -> Optional[Heading]:
        """Match an ATX heading, dropping a closing run of ``#``."""
        match = self.rules.block.heading.match(src)
        if not match:
            return None

        text = match.group(2).strip(WHITESPACE_CHARS)
        if self.rules.other.ending_hash.search(text):
            trimmed = rtrim(text, "#")
            if self._pedantic or not trimmed or self.rules.other.ending_space_char.search(trimmed):
                text = trimmed.strip(WHITESPACE_CHARS)

        return Heading(raw=match.group(0), depth=len(match.group(1)), text=text, tokens=self.lexer.inline(text))

    def hr(self, src: str) -> Optional[ThematicBreak]:
        """Match a thematic break."""
        match = self.rules.block.hr.match(src)
        if not match:
            return None
        return ThematicBreak(raw=rtrim(match.group(0), "\n"))

    def blockquote(self, src: str) -> Optional[Blockquote]:
        """Match a block quote, including lazy continuation lines.

        Quoted lines are stripped of their ``>`` markers and tokenized in
        chunks. When a chunk ends inside a nested list or block quote, the
        following lazy lines are re-scanned together with it so the nested
        container can absorb them.
        """
        match = self.rules.block.blockquote.match(src)
        if not match:
            return None

        other = self.rules.other
        lines = rtrim(match.group(0), "\n").split("\n")
        raw = ""
        text = ""
        separator = ""
        tokens: list[Token] = []

        while lines:
            in_blockquote = False
            current_lines = []
            index = 0
            while index < len(lines):
                if other.blockquote_start.match(lines[index]):
                    current_lines.append(lines[index])
                    in_blockquote = True
                elif not in_blockquote:
                    current_lines.append(lines[index])
                else:
                    break
                index += 1
            lines = lines[index:]

            current_raw = "\n".join(current_lines)
            current_text = other.blockquote_setext_replace.sub("\n    \\1", current_raw)
            current_text = other.blockquote_setext_replace2.sub("", current_text)
            raw = f"{raw}{separator}{current_raw}"
            text = f"{text}\n{current_text}" if text else current_text
            separator = "\n"

            # Block quotes may hold paragraphs even when nested in a list item.
            top = self.lexer.state.top
            self.lexer.state.top = True
            self.lexer.block_tokens(current_text, tokens, True)
            self.lexer.state.top = top

            if not lines:
                break

            last = tokens[-1] if tokens else None
            if last is not None and last.type == "code":
                break

            # Lazy lines that continue a nested container are re-scanned with
            # it. The lines are unquoted, so whatever the merged token consumed
            # beyond the old one is copied verbatim into raw.
            if last is not None and last.type == "blockquote":
                merged_src = last.raw + "\n" + "\n".join(lines)
                merged = self.blockquote(merged_src)
                if merged is None or not merged.raw.startswith(last.raw):
                    break
                tokens[-1] = merged
                raw += merged.raw[len(last.raw) :]
                text = text[: len(text) - len(last.text)] + merged.text  # type: ignore[attr-defined]
                break

            if last is not None and last.type == "list":
                merged_src = last.raw + "\n" + "\n".join(lines)
                merged_list = self.list(merged_src)
                if merged_list is None or not merged_list.raw.startswith(last.raw):
                    break
                tokens[-1] = merged_list
                raw += merged_list.raw[len(last.raw) :]
                text = text[: len(text) - len(last.raw)] + merged_list.raw
                remainder = merged_src[len(merged_list.raw) :]
                lines = remainder.split("\n") if remainder else []
                separator = ""
                continue

        return Blockquote(raw=raw, tokens=tokens, text=text)

    def list(self, src: str) -> Optional[List]:
        """Match an ordered or unordered list with all of its items.

        Item extent follows the indentation of the first content line. A list
        becomes loose when a blank line separates two items or appears between
        block children of an item; looseness is then copied to every item.
        """
        match = self.rules.block.list.match(src)
        if not match:
            return None

        other = self.rules.other
        pedantic = self._pedantic
        bullet = match.group(1).strip(WHITESPACE_CHARS)
        ordered = len(bullet) > 1
        token = List(raw="", ordered=ordered, start=int(bullet[:-1]) if ordered else None, loose=False, items=[])

        if ordered:
            bullet_pattern = "[0-9]{1,9}" + re.escape(bullet[-1])
        else:
            bullet_pattern = "[*+-]" if pedantic else re.escape(bullet)
        item_pattern = other.list_item(bullet_pattern)
        ends_with_blank_line = False

        while src:
            end_early = False
            cap = item_pattern.match(src)
            if not cap or self.rules.block.hr.match(src):
                break

            raw = cap.group(0)
            src = src[len(raw) :]

            line = other.list_replace_tabs.sub(lambda tabs: " " * (3 * len(tabs.group(0))), cap.group(2).split("\n", 1)[0])
            next_line = src.split("\n", 1)[0]
            blank_line = not line.strip(WHITESPACE_CHARS)
            item_contents = ""

            if pedantic:
                indent = 2
                item_contents = line.lstrip(WHITESPACE_CHARS)
            elif blank_line:
                indent = len(cap.group(1)) + 1
            else:
                indent = _search_index(other.non_space_char, cap.group(2))
                indent = 1 if indent > 4 else indent  # Treat indented code blocks (> 4 spaces) as having only 1 indent
                item_contents = line[indent:]
                indent += len(cap.group(1))

            if blank_line and other.blank_line.match(next_line):
                # An item starting with a blank line ends at a second blank line.
                raw += next_line + "\n"
                src = src[len(next_line) + 1 :]
                end_early = True

            if not end_early:
                next_bullet = other.next_bullet(indent)
                hr_begin = other.hr_begin(indent)
                fences_begin = other.fences_begin(indent)
                heading_begin = other.heading_begin(indent)
                html_begin = other.html_begin(indent)

                while src:
                    raw_line = src.split("\n", 1)[0]
                    next_line = raw_line
                    if pedantic:
                        next_line = other.list_replace_nesting.sub("  ", next_line)
                        next_line_without_tabs = next_line
                    else:
                        next_line_without_tabs = next_line.replace("\t", "    ")

                    if (
                        fences_begin.match(next_line)
                        or heading_begin.match(next_line)
                        or html_begin.match(next_line)
                        or next_bullet.match(next_line)
                        or hr_begin.match(next_line)
                    ):
                        break

                    next_indent = _search_index(other.non_space_char, next_line_without_tabs)
                    if next_indent >= indent or not next_line.strip(WHITESPACE_CHARS):
                        item_contents += "\n" + next_line_without_tabs[indent:]
                    else:
                        # Lazy continuation is only allowed for paragraph text.
                        if blank_line:
                            break
                        if _search_index(other.non_space_char, line.replace("\t", "    ")) >= 4:
                            break
                        if fences_begin.match(line) or heading_begin.match(line) or hr_begin.match(line):
                            break
                        item_contents += "\n" + next_line

                    if not blank_line and not next_line.strip(WHITESPACE_CHARS):
                        blank_line = True

                    raw += raw_line + "\n"
                    src = src[len(raw_line) + 1 :]
                    line = next_line_without_tabs[indent:]

            if not token.loose:
                if ends_with_blank_line:
                    token.loose = True
                elif other.double_blank_line.search(raw):
                    ends_with_blank_line = True

            is_task = False
            checked = None
            if self._gfm:
                task_match = other.list_is_task.match(item_contents)
                if task_match:
                    is_task = True
                    checked = task_match.group(0) != "[ ] "
                    item_contents = other.list_replace_task.sub("", item_contents, count=1)

            token.items.append(
                ListItem(raw=raw, task=is_task, checked=checked, loose=False, text=item_contents, tokens=[])
            )
            token.raw += raw

        if not token.items:
            return None

        last_item = token.items[-1]
        last_item.raw = last_item.raw.rstrip(WHITESPACE_CHARS)
        last_item.text = last_item.text.rstrip(WHITESPACE_CHARS)
        token.raw = token.raw.rstrip(WHITESPACE_CHARS)

        for item in token.items:
            self.lexer.state.top = False
            item.tokens = self.lexer.block_tokens(item.text, [])
            if not token.loose:
                spacers = [child for child in item.tokens if child.type == "space"]
                token.loose = any(other.any_line.search(child.raw) for child in spacers)

        if token.loose:
            for item in token.items:
                item.loose = True

        return token

    def html(self, src: str) -> Optional[HtmlBlock]:
        """Match a raw HTML block."""
        match = self.rules.block.html.match(src)
        if not match:
            return None
        return HtmlBlock(
            raw=match.group(0),
            text=match.group(0),
            pre=match.group(1) in ("pre", "script", "style"),
            block=True,
        )

    def def_(self, src: str) -> Optional[LinkDef]:
        """Match a link reference definition."""
        match = self.rules.block.def_.match(src)
        if not match:
            return None

        unescape = self.rules.inline.any_punctuation
        tag = self.rules.other.multiple_space.sub(" ", match.group(1).lower())
        href = ""
        if match.group(2):
            href = unescape.sub(r"\1", self.rules.other.href_brackets.sub(r"\1", match.group(2)))
        title = unescape.sub(r"\1", match.group(3)[1:-1]) if match.group(3) else None
        return LinkDef(raw=match.group(0), tag=tag, href=href, title=title)

    def table(self, src: str) -> Optional[Table]:
        """Match a GFM pipe table.

        The header and delimiter row must have the same number of cells; body
        rows are padded or truncated to that width.
        """
        match = self.rules.block.table.match(src)
        other = self.rules.other
        if not match or not other.table_delimiter.search(match.group(2)):
            return None

        headers = split_cells(match.group(1))
        aligns = other.table_align_chars.sub("", match.group(2)).split("|")
        body = match.group(3)
        rows: list[str] = []
        if body and body.strip(WHITESPACE_CHARS):
            rows = other.table_row_blank_line.sub("", body, count=1).split("\n")

        if len(headers) != len(aligns):
            return None

        token = Table(raw=match.group(0))
        for align in aligns:
            if other.table_align_right.match(align):
                token.align.append("right")
            elif other.table_align_center.match(align):
                token.align.append("center")
            elif other.table_align_left.match(align):
                token.align.append("left")
            else:
                token.align.append(None)

        token.header = TableRow(
            raw=match.group(1),
            cells=[
                TableCell(raw=cell, text=cell, tokens=self.lexer.inline(cell), header=True, align=token.align[i])
                for i, cell in enumerate(headers)
            ],
        )
        for row in rows:
            cells = split_cells(row, len(headers))
            token.rows.append(
                TableRow(
                    raw=row,
                    cells=[
                        TableCell(raw=cell, text=cell, tokens=self.lexer.inline(cell), header=False, align=token.align[i])
                        for i, cell in enumerate(cells)
                    ],
                )
            )
        return token

    def lheading(self, src: str) -> Optional[Heading]:
        """Match a setext heading (text underlined with ``=`` or ``-``)."""
        match = self.rules.block.lheading.match(src)
        if not match:
            return None
        return Heading(
            raw=match.group(0),
            depth=1 if match.group(2)[0] == "=" else 2,
            text=match.group(1),
            tokens=self.lexer.inline(match.group(1)),
        )

    def paragraph(self, src: str) -> Optional[Paragraph]:
        """Match a paragraph."""
        match = self.rules.block.paragraph.match(src)
        if not match:
            return None
        text = match.group(1)
        if text.endswith("\n"):
            text = text[:-1]
        return Paragraph(raw=match.group(0), text=text, tokens=self.lexer.inline(text))

    def text(self, src: str) -> Optional[Text]:
        """Match a line of text inside a container (list item)."""
        match = self.rules.block.text.match(src)
        if not match:
            return None
        return Text(raw=match.group(0), text=match.group(0), tokens=self.lexer.inline(match.group(0)))

    # ------------------------------------------------------------------
    # Inline-level rules
    # ------------------------------------------------------------------

    def escape(self, src: str) -> Optional[Escape]:
        """Match a backslash-escaped punctuation character."""
        match = self.rules.inline.escape.match(src)
        if not match:
            return None
        return Escape(raw=match.group(0), text=match.group(1))

    def tag(self, src: str) -> Optional[HtmlInline]:
        """Match an inline HTML tag and track link and raw-block state."""
        match = self.rules.inline.tag.match(src)
        if not match:
            return None

        raw = match.group(0)
        other = self.rules.other
        state = self.lexer.state
        if not state.in_link and other.start_a_tag.match(raw):
            state.in_link = True
        elif state.in_link and other.end_a_tag.match(raw):
            state.in_link = False

        if not state.in_raw_block and other.start_pre_script_tag.match(raw):
            state.in_raw_block = True
        elif state.in_raw_block and other.end_pre_script_tag.match(raw):
            state.in_raw_block = False

        return HtmlInline(raw=raw, text=raw, in_link=state.in_link, in_raw_block=state.in_raw_block, block=False)

    def link(self, src: str) -> Optional[Link | Image]:
        """Match an inline link or image.

        Supports angle-bracket destinations and balanced parentheses in bare
        destinations; an unbalanced ``)`` ends the link early.
        """
        match = self.rules.inline.link.match(src)
        if not match:
            return None

        other = self.rules.other
        raw = match.group(0)
        label = match.group(1)
        href = match.group(2)
        # the pedantic pattern has no title group
        title_src = match.group(3) if match.re.groups >= 3 else None
        trimmed_url = href.strip(WHITESPACE_CHARS)

        if not self._pedantic and other.start_angle_bracket.match(trimmed_url):
            # commonmark requires a matching angle bracket
            if not other.end_angle_bracket.search(trimmed_url):
                return None
            # ending angle bracket cannot be escaped
            without_slashes = rtrim(trimmed_url[:-1], "\\")
            if (len(trimmed_url) - len(without_slashes)) % 2 == 0:
                return None
        else:
            last_paren = find_closing_bracket(href, "()")
            if last_paren == -2:
                return None
            if last_paren > -1:
                start = (5 if raw.startswith("!") else 4) + len(label)
                href = href[:last_paren]
                raw = raw[: start + last_paren].strip(WHITESPACE_CHARS)
                title_src = ""

        title = ""
        if self._pedantic:
            # split pedantic href and title
            split = other.pedantic_href_title.match(href)
            if split:
                href = split.group(1)
                title = split.group(3)
        elif title_src:
            title = title_src[1:-1]

        href = href.strip(WHITESPACE_CHARS)
        if other.start_angle_bracket.match(href):
            if self._pedantic and not other.end_angle_bracket.search(trimmed_url):
                # pedantic allows starting angle bracket without ending angle bracket
                href = href[1:]
            else:
                href = href[1:-1]

        unescape = self.rules.inline.any_punctuation
        return self._output_link(
            label,
            raw,
            unescape.sub(r"\1", href) if href else href,
            unescape.sub(r"\1", title) if title else title,
        )

    def reflink(self, src: str, links: LinkReferenceTable) -> Optional[Link | Image | Text]:
        """Match a reference link or image.

        An unknown label yields a one-character text token so the bracket is
        emitted literally and scanning resumes after it.
        """
        match = self.rules.inline.reflink.match(src) or self.rules.inline.nolink.match(src)
        if not match:
            return None

        groups = match.groups()
        label = groups[1] if len(groups) > 1 and groups[1] else groups[0]
        reference = links.lookup(label)
        if reference is None:
            first = match.group(0)[0]
            return Text(raw=first, text=first)
        return self._output_link(groups[0], match.group(0), reference.href, reference.title)

    def _output_link(self, label: str, raw: str, href: str, title: Optional[str]) -> Link | Image:
        text = self.rules.other.output_link_replace.sub(r"\1", label)
        self.lexer.state.in_link = True
        tokens = self.lexer.inline_tokens(text)
        self.lexer.state.in_link = False
        token_class = Image if raw.startswith("!") else Link
        return token_class(raw=raw, href=href, title=title or None, text=text, tokens=tokens)

    def em_strong(self, src: str, masked_src: str, prev_char: str = "") -> Optional[Emphasis | Strong]:
        """Match emphasis or strong emphasis with the delimiter-run algorithm.

        Parameters
        ----------
        src : str
            Remaining inline source
        masked_src : str
            Whole inline source with links, code spans and escapes masked
        prev_char : str, default ""
            Character before ``src`` when it ends a preceding text run

        """
        inline = self.rules.inline
        match = inline.em_strong_l_delim.match(src)
        if not match:
            return None

        # _ can't be between two alphanumerics. \p{L}\p{N} includes non-english alphabet/numbers as well
        if match.group(3) and self.rules.other.unicode_alphanumeric.search(prev_char):
            return None

        next_char = match.group(1) or match.group(2) or ""
        if next_char and prev_char and not inline.punctuation.match(prev_char):
            return None

        left_length = len(match.group(0)) - 1
        delim_total = left_length
        mid_delim_total = 0
        end_pattern = inline.em_strong_r_delim_ast if match.group(0)[0] == "*" else inline.em_strong_r_delim_und

        masked = masked_src[len(masked_src) - len(src) + left_length :]

        for right in end_pattern.finditer(masked):
            groups = right.groups()
            delimiter = next((group for group in groups if group), None)
            if not delimiter:
                continue  # skip single * in __abc*abc__

            right_length = len(delimiter)
            if groups[2] or groups[3]:
                # found another left delimiter
                delim_total += right_length
                continue
            if (len(groups) > 4 and groups[4]) or (len(groups) > 5 and groups[5]):
                # either left or right delimiter
                if left_length % 3 and not (left_length + right_length) % 3:
                    mid_delim_total += right_length
                    continue  # CommonMark Emphasis Rules 9-10

            delim_total -= right_length
            if delim_total > 0:
                continue  # haven't found enough closing delimiters

            # Remove extra characters. *a*** -> *a*
            right_length = min(right_length, right_length + delim_total + mid_delim_total)
            raw = src[: left_length + right.start() + 1 + right_length]

            # Create `em` if smallest delimiter has odd char count. *a***
            if min(left_length, right_length) % 2:
                text = raw[1:-1]
                return Emphasis(raw=raw, text=text, tokens=self.lexer.inline_tokens(text))

            # Create 'strong' if smallest delimiter has even char count. **a***
            text = raw[2:-2]
            return Strong(raw=raw, text=text, tokens=self.lexer.inline_tokens(text))

        return None

    def codespan(self, src: str) -> Optional[CodeSpan]:
        """Match a code span, stripping one space from each side when both are present."""
        match = self.rules.inline.code.match(src)
        if not match:
            return None

        other = self.rules.other
        text = match.group(2).replace("\n", " ")
        has_non_space = other.non_space_char.search(text)
        has_space_at_both_ends = other.starting_space_char.match(text) and other.ending_space_char.search(text)
        if has_non_space and has_space_at_both_ends:
            text = text[1:-1]
        return CodeSpan(raw=match.group(0), text=text)

    def br(self, src: str) -> Optional[LineBreak]:
        """Match a hard line break."""
        match = self.rules.inline.br.match(src)
        if not match:
            return None
        return LineBreak(raw=match.group(0))

    def del_(self, src: str) -> Optional[Strikethrough]:
        """Match GFM strikethrough."""
        match = self.rules.inline.del_.match(src)
        if not match:
            return None
        return Strikethrough(raw=match.group(0), text=match.group(2), tokens=self.lexer.inline_tokens(match.group(2)))

    def autolink(self, src: str) -> Optional[Link]:
        """Match an angle-bracket autolink (``<https://...>`` or ``<a@b.c>``)."""
        match = self.rules.inline.autolink.match(src)
        if not match:
            return None
        text = match.group(1)
        href = "mailto:" + text if match.group(2) == "@" else text
        return Link(raw=match.group(0), text=text, href=href, tokens=[Text(raw=text, text=text)])

    def url(self, src: str) -> Optional[Link]:
        """Match a bare URL or e-mail address (GFM).

        Trailing punctuation that is unlikely to belong to the URL is trimmed
        repeatedly until the match is stable.
        """
        match = self.rules.inline.url.match(src)
        if not match:
            return None

        if match.group(2) == "@":
            raw = match.group(0)
            text = raw
            href = "mailto:" + text
        else:
            raw = match.group(0)
            while True:
                previous = raw
                backpedal = self.rules.inline.backpedal.search(raw)
                raw = backpedal.group(0) if backpedal else ""
                if raw == previous:
                    break
            if not raw:
                return None
            text = raw
            href = "http://" + raw if match.group(1) == "www." else raw

        return Link(raw=raw, text=text, href=href, tokens=[Text(raw=text, text=text)])

    def inline_text(self, src: str) -> Optional[Text]:
        """Match a run of plain inline text."""
        match = self.rules.inline.text.match(src)
        if not match:
            return None
        return Text(raw=match.group(0), text=match.group(0), escaped=self.lexer.state.in_raw_block)
