"""Unit tests for block-level tokenization.

Tests cover:
- Headings, thematic breaks, code blocks and fences
- Block quotes with lazy continuation
- Lists: ordered, unordered, loose, tight and task items
- HTML blocks, link definitions and GFM tables
- Paragraph and setext heading disambiguation
- Raw text spans covering the whole source
"""

import pytest

from markweave import Lexer, MarkdownOptions, lexer


def types(tokens):
    return [token.type for token in tokens]


@pytest.mark.unit
class TestHeadings:
    """Test ATX and setext headings."""

    def test_atx_heading(self):
        """Test depth and text of an ATX heading."""
        (heading,) = lexer("## Title\n")
        assert heading.type == "heading"
        assert heading.depth == 2
        assert heading.text == "Title"
        assert heading.raw == "## Title\n"
        assert types(heading.tokens) == ["text"]

    def test_closing_hashes_removed(self):
        """Test that a closing hash run is stripped."""
        assert lexer("# foo ##\n")[0].text == "foo"
        assert lexer("# foo#\n")[0].text == "foo#"

    def test_empty_heading(self):
        """Test a heading without text."""
        heading = lexer("#\n")[0]
        assert heading.type == "heading"
        assert heading.text == ""

    def test_setext_headings(self):
        """Test underlined headings."""
        tokens = lexer("Title\n=====\n\nSub\n---\n")
        headings = [token for token in tokens if token.type == "heading"]
        assert [(h.depth, h.text) for h in headings] == [(1, "Title"), (2, "Sub")]

    def test_hash_without_space_is_paragraph(self):
        """Test that #5 is not a heading."""
        assert types(lexer("#5 bolt")) == ["paragraph"]


@pytest.mark.unit
class TestCode:
    """Test indented and fenced code."""

    def test_indented_code(self):
        """Test that indentation is removed and trailing newlines dropped."""
        (code,) = lexer("    a\n      b\n")
        assert code.type == "code"
        assert code.code_block_style == "indented"
        assert code.text == "a\n  b"
        assert code.lang is None

    def test_fenced_code_with_info(self):
        """Test the fence info string."""
        (code,) = lexer("```python extra\nprint(1)\n```\n")
        assert code.type == "code"
        assert code.code_block_style == "fenced"
        assert code.lang == "python extra"
        assert code.text == "print(1)"

    def test_fence_without_info_has_no_lang(self):
        """Test that an empty info string gives lang None."""
        assert lexer("~~~\nx\n~~~")[0].lang is None

    def test_unclosed_fence_runs_to_end(self):
        """Test that an unclosed fence consumes the rest of the input."""
        (code,) = lexer("```\na\nb")
        assert code.text == "a\nb"

    def test_fence_indentation_compensated(self):
        """Test that the fence indentation is removed from content lines."""
        (code,) = lexer("  ```\n  a\n    b\n  ```")
        assert code.text == "a\n  b"

    def test_indented_code_cannot_interrupt_paragraph(self):
        """Test that indented lines continue a paragraph."""
        tokens = lexer("para\n    not code\n")
        assert types(tokens) == ["paragraph"]
        assert "not code" in tokens[0].text


@pytest.mark.unit
class TestThematicBreak:
    """Test thematic breaks."""

    def test_hr_between_paragraphs(self):
        """Test an hr separating paragraphs."""
        assert types(lexer("a\n\n***\n\nb")) == ["paragraph", "space", "hr", "space", "paragraph"]

    def test_hr_raw_excludes_newlines(self):
        """Test that trailing newlines are not part of the hr raw text."""
        tokens = lexer("***\n\n\nx")
        assert tokens[0].raw == "***"
        assert tokens[1].type == "space"


@pytest.mark.unit
class TestBlockquote:
    """Test block quotes."""

    def test_simple(self):
        """Test a single quoted paragraph."""
        (quote,) = lexer("> hello\n")
        assert quote.type == "blockquote"
        assert types(quote.tokens) == ["paragraph"]
        assert quote.tokens[0].text == "hello"

    def test_lazy_continuation(self):
        """Test that unquoted lines continue the quoted paragraph."""
        (quote,) = lexer("> a\nb\n")
        assert quote.tokens[0].text == "a\nb"
        assert quote.raw == "> a\nb\n"

    def test_trailing_blank_joins_previous_block(self):
        """Test that a lone trailing blank is kept in the previous raw text."""
        (heading,) = lexer("# h\n\t")
        assert heading.type == "heading"
        assert heading.raw == "# h\n\t"

    def test_nested(self):
        """Test nested quotes."""
        (quote,) = lexer("> > deep\n")
        assert types(quote.tokens) == ["blockquote"]
        assert types(quote.tokens[0].tokens) == ["paragraph"]

    def test_lazy_line_joins_nested_list(self):
        """Test that a lazy line continues a list item inside a quote."""
        (quote,) = lexer("> - a\nb")
        assert quote.raw == "> - a\nb"
        (listing,) = quote.tokens
        assert listing.type == "list"
        assert listing.items[0].text == "a\nb"


@pytest.mark.unit
class TestLists:
    """Test list tokenization."""

    def test_tight_unordered(self):
        """Test a tight bullet list."""
        (listing,) = lexer("- a\n- b\n")
        assert listing.type == "list"
        assert not listing.ordered
        assert not listing.loose
        assert [item.text for item in listing.items] == ["a", "b"]
        assert types(listing.items[0].tokens) == ["text"]

    def test_ordered_start(self):
        """Test the start number of an ordered list."""
        (listing,) = lexer("3. a\n4. b\n")
        assert listing.ordered
        assert listing.start == 3

    def test_loose_when_items_separated_by_blank_line(self):
        """Test that a blank line between items makes the list loose."""
        (listing,) = lexer("- a\n\n- b\n")
        assert listing.loose
        assert all(item.loose for item in listing.items)

    def test_loose_when_item_has_blank_line_between_children(self):
        """Test that a blank line inside an item makes the list loose."""
        listing = lexer("- a\n\n  b\n- c\n")[0]
        assert listing.loose

    def test_different_bullet_starts_new_list(self):
        """Test that changing the bullet character starts a new list."""
        assert types(lexer("- a\n+ b\n")) == ["list", "list"]

    def test_task_items(self):
        """Test GFM task list items."""
        (listing,) = lexer("- [ ] todo\n- [x] done\n- plain\n")
        first, second, third = listing.items
        assert (first.task, first.checked, first.text) == (True, False, "todo")
        assert (second.task, second.checked, second.text) == (True, True, "done")
        assert (third.task, third.checked) == (False, None)

    def test_no_tasks_without_gfm(self):
        """Test that task items need GFM."""
        item = lexer("- [ ] todo\n", {"gfm": False})[0].items[0]
        assert not item.task
        assert item.text == "[ ] todo"

    def test_nested_list(self):
        """Test a list nested in an item."""
        (listing,) = lexer("- a\n  - b\n")
        item = listing.items[0]
        assert types(item.tokens) == ["text", "list"]
        assert item.tokens[1].items[0].text == "b"

    def test_hr_ends_list(self):
        """Test that a thematic break is not a list item."""
        assert types(lexer("- a\n* * *\n")) == ["list", "hr"]


@pytest.mark.unit
class TestHtmlAndDefinitions:
    """Test HTML blocks and link reference definitions."""

    def test_html_block(self):
        """Test a block-level HTML element."""
        (html,) = lexer("<div>\nhi\n</div>\n")
        assert html.type == "html"
        assert html.block
        assert not html.pre
        assert html.text == "<div>\nhi\n</div>\n"

    def test_pre_html_block(self):
        """Test that pre, script and style blocks are flagged."""
        (html,) = lexer("<pre>\n  x\n</pre>\n")
        assert html.pre

    def test_definition(self):
        """Test a link reference definition token and table entry."""
        tokens = lexer("[Foo Bar]: <https://x.y> 'T'\n")
        (definition,) = tokens
        assert definition.type == "def"
        assert definition.tag == "foo bar"
        assert definition.href == "https://x.y"
        assert definition.title == "T"
        assert tokens.links.lookup("FOO BAR").href == "https://x.y"

    def test_duplicate_definition_keeps_first(self):
        """Test that the first definition of a label wins."""
        tokens = lexer("[a]: /one\n[a]: /two\n")
        assert types(tokens) == ["def", "def"]
        assert tokens.links.lookup("a").href == "/one"

    def test_definition_cannot_interrupt_paragraph(self):
        """Test that a definition after paragraph text is paragraph text."""
        tokens = lexer("text\n[a]: /b\n")
        assert types(tokens) == ["paragraph"]
        assert not tokens.links


@pytest.mark.unit
class TestTables:
    """Test GFM tables."""

    def test_table(self):
        """Test header, alignment and rows."""
        (table,) = lexer("| a | b | c |\n|:--|:-:|--:|\n| 1 | 2 | 3 |\n")
        assert table.type == "table"
        assert table.align == ["left", "center", "right"]
        assert [cell.text for cell in table.header.cells] == ["a", "b", "c"]
        assert all(cell.header for cell in table.header.cells)
        assert [cell.text for cell in table.rows[0].cells] == ["1", "2", "3"]
        assert table.rows[0].cells[1].align == "center"

    def test_rows_padded_to_header_width(self):
        """Test that short rows are padded with empty cells."""
        (table,) = lexer("a | b\n--|--\n1\n")
        assert [cell.text for cell in table.rows[0].cells] == ["1", ""]

    def test_mismatched_delimiter_is_not_table(self):
        """Test that the delimiter row must match the header width."""
        assert types(lexer("a | b\n--|--|--\n")) == ["paragraph"]

    def test_no_table_without_gfm(self):
        """Test that tables need GFM."""
        assert types(lexer("a | b\n--|--\n", {"gfm": False})) == ["paragraph"]


@pytest.mark.unit
class TestParagraphs:
    """Test paragraphs and span completeness."""

    def test_paragraph_text(self):
        """Test that the trailing newline is not part of the text."""
        (paragraph,) = lexer("one\ntwo\n")
        assert paragraph.text == "one\ntwo"
        assert paragraph.raw == "one\ntwo\n"

    def test_heading_interrupts_paragraph(self):
        """Test that an ATX heading ends a paragraph."""
        assert types(lexer("a\n# b\n")) == ["paragraph", "heading"]

    def test_carriage_returns_normalized(self):
        """Test that CRLF and CR line endings become LF."""
        (paragraph,) = lexer("a\r\nb\rc")
        assert paragraph.text == "a\nb\nc"

    def test_empty_input(self):
        """Test that empty input has no tokens."""
        assert lexer("") == []

    @pytest.mark.parametrize(
        "src",
        [
            "# h\n\npara\n",
            "> q\n> r\nlazy\n\n- a\n- b\n\n    code\n",
            "| a |\n|---|\n| 1 |\n\ntext\n",
            "[x]: /y\n\n```\nfenced\n```\n\n***\n",
            "- a\n\n  b\n- c\n\n\n<div>\nx\n</div>\n",
            "Setext\n---\ntrailing   ",
            "> - a\n>   b\nc\n",
            "1. > ",
            "- a\n> ",
            "# h\n\t",
        ],
    )
    def test_raw_spans_cover_source(self, src):
        """Test that top-level raw texts concatenate to the source."""
        assert "".join(token.raw for token in lexer(src)) == src


@pytest.mark.unit
class TestLexerInstance:
    """Test the Lexer class entry points."""

    def test_inline_queue_drained(self):
        """Test that the inline queue is empty after a run."""
        instance = Lexer(MarkdownOptions())
        instance.run("# a\n\nb *c*\n")
        assert instance.inline_queue == []

    def test_lex_inline_skips_blocks(self):
        """Test that lex_inline does not recognize block syntax."""
        tokens = Lexer.lex_inline("# not a heading")
        assert types(tokens) == ["text"]
        assert tokens[0].text == "# not a heading"

    def test_references_resolved_regardless_of_order(self):
        """Test that a link may precede its definition."""
        tokens = lexer("[foo]\n\n[foo]: /url\n")
        link = tokens[0].tokens[0]
        assert link.type == "link"
        assert link.href == "/url"
