"""Unit tests for inline tokenization.

Tests cover:
- Emphasis and strong emphasis delimiter runs
- Inline links, images, reference links and autolinks
- Code spans, escapes, line breaks and strikethrough
- Raw HTML tags and link state tracking
- Bare URL detection and trailing punctuation trimming
- Pedantic links and images
- ASCII-only word classes and the ECMAScript whitespace set
"""

import pytest

from markweave import Lexer, MarkdownOptions, parse


def inline(src, **options):
    return Lexer.lex_inline(src, MarkdownOptions(**options))


def types(tokens):
    return [token.type for token in tokens]


@pytest.mark.unit
class TestEmphasis:
    """Test emphasis delimiter handling."""

    def test_em(self):
        """Test single-delimiter emphasis."""
        (em,) = inline("*a*")
        assert em.type == "em"
        assert em.text == "a"
        assert em.raw == "*a*"

    def test_strong(self):
        """Test double-delimiter strong emphasis."""
        (strong,) = inline("__a__")
        assert strong.type == "strong"
        assert strong.text == "a"

    def test_em_wrapping_strong(self):
        """Test a triple delimiter run."""
        (em,) = inline("***both***")
        assert em.type == "em"
        (strong,) = em.tokens
        assert strong.type == "strong"
        assert strong.text == "both"

    def test_extra_closing_delimiters_left_over(self):
        """Test that surplus closing delimiters become text."""
        tokens = inline("*a**")
        assert types(tokens) == ["em", "text"]
        assert tokens[1].text == "*"

    def test_intraword_underscore_is_text(self):
        """Test that underscores between alphanumerics are not emphasis."""
        tokens = inline("snake_case_name")
        assert types(tokens) == ["text"]
        assert tokens[0].text == "snake_case_name"

    def test_intraword_asterisk_is_emphasis(self):
        """Test that asterisks may open emphasis inside a word."""
        assert "em" in types(inline("foo*bar*"))

    def test_space_after_opener(self):
        """Test that a delimiter followed by a space does not open emphasis."""
        tokens = inline("* a*")
        assert types(tokens) == ["text"]

    def test_code_span_masks_delimiters(self):
        """Test that delimiters inside code spans cannot close emphasis."""
        tokens = inline("*a `*` b*")
        assert types(tokens) == ["em"]
        assert types(tokens[0].tokens) == ["text", "codespan", "text"]


@pytest.mark.unit
class TestLinks:
    """Test links and images."""

    def test_inline_link(self):
        """Test href, title and text of an inline link."""
        (link,) = inline('[text](/url "title")')
        assert link.type == "link"
        assert link.href == "/url"
        assert link.title == "title"
        assert link.text == "text"
        assert types(link.tokens) == ["text"]

    def test_link_without_title(self):
        """Test that a missing title is None."""
        (link,) = inline("[a](b)")
        assert link.title is None

    def test_angle_bracket_destination(self):
        """Test a destination wrapped in angle brackets."""
        (link,) = inline("[a](<b c>)")
        assert link.href == "b c"

    def test_balanced_parentheses_in_destination(self):
        """Test that balanced parentheses stay in the destination."""
        (link,) = inline("[a](foo(and(bar)))")
        assert link.href == "foo(and(bar))"

    def test_unbalanced_parenthesis_ends_link(self):
        """Test that an unmatched closing parenthesis ends the link."""
        tokens = inline("[a](b)c)")
        assert tokens[0].type == "link"
        assert tokens[0].href == "b"
        assert tokens[0].raw == "[a](b)"

    def test_escapes_in_destination(self):
        """Test that backslash escapes are removed from the href."""
        (link,) = inline("[a](foo\\)bar)")
        assert link.href == "foo)bar"

    def test_image(self):
        """Test an inline image."""
        (image,) = inline("![alt *x*](/img.png)")
        assert image.type == "image"
        assert image.href == "/img.png"
        assert image.text == "alt *x*"
        assert types(image.tokens) == ["text", "em"]

    def test_nested_link_text_not_autolinked(self):
        """Test that URLs inside link text are not turned into links."""
        (link,) = inline("[https://a.com](/b)")
        assert types(link.tokens) == ["text"]

    def test_unknown_reference_is_text(self):
        """Test that a reference without a definition stays literal."""
        tokens = inline("[foo] bar")
        assert types(tokens) == ["text"]
        assert tokens[0].text == "[foo] bar"


@pytest.mark.unit
class TestAutolinks:
    """Test angle-bracket and bare autolinks."""

    def test_angle_bracket_url(self):
        """Test a URI autolink."""
        (link,) = inline("<https://example.com>")
        assert link.href == "https://example.com"
        assert link.text == "https://example.com"

    def test_angle_bracket_email(self):
        """Test an e-mail autolink gets a mailto href."""
        (link,) = inline("<me@example.com>")
        assert link.href == "mailto:me@example.com"

    def test_bare_url(self):
        """Test a bare URL with trailing punctuation trimmed."""
        tokens = inline("see https://example.com/a.")
        assert types(tokens) == ["text", "link", "text"]
        assert tokens[1].href == "https://example.com/a"
        assert tokens[2].text == "."

    def test_www_url_gets_scheme(self):
        """Test that www URLs get an http scheme."""
        (link,) = inline("www.example.com")
        assert link.href == "http://www.example.com"
        assert link.text == "www.example.com"

    def test_bare_email(self):
        """Test a bare e-mail address."""
        (link,) = inline("me@example.com")
        assert link.href == "mailto:me@example.com"

    def test_no_bare_urls_without_gfm(self):
        """Test that bare URLs need GFM."""
        assert types(inline("https://example.com", gfm=False)) == ["text"]


@pytest.mark.unit
class TestOtherInline:
    """Test code spans, escapes, breaks, strikethrough and tags."""

    def test_code_span(self):
        """Test a code span."""
        (code,) = inline("`a`")
        assert code.type == "codespan"
        assert code.text == "a"

    def test_code_span_strips_one_space(self):
        """Test that one space is removed from each side."""
        assert inline("``  `a`  ``")[0].text == " `a` "

    def test_code_span_newlines_become_spaces(self):
        """Test that line endings in code spans become spaces."""
        assert inline("`a\nb`")[0].text == "a b"

    def test_escape(self):
        """Test backslash escapes."""
        tokens = inline("\\*a\\*")
        assert types(tokens) == ["escape", "text", "escape"]
        assert tokens[0].text == "*"

    def test_hard_break(self):
        """Test a hard line break from two trailing spaces."""
        tokens = inline("a  \nb")
        assert types(tokens) == ["text", "br", "text"]

    def test_backslash_break(self):
        """Test a hard line break from a trailing backslash."""
        assert "br" in types(inline("a\\\nb"))

    def test_strikethrough(self):
        """Test GFM strikethrough."""
        (strike,) = inline("~~gone~~")
        assert strike.type == "del"
        assert strike.text == "gone"

    def test_single_tilde_strikethrough(self):
        """Test that a single tilde pair also strikes through."""
        assert types(inline("~x~")) == ["del"]

    def test_inline_html(self):
        """Test raw inline tags and the in_link flag."""
        tokens = inline('<a href="x">y</a>')
        assert types(tokens) == ["html", "text", "html"]
        assert tokens[0].in_link is True
        assert tokens[2].in_link is False

    def test_raw_block_text_is_escaped_flag(self):
        """Test that text inside a raw element is marked as escaped."""
        tokens = inline("<code>a&b</code>")
        assert tokens[1].type == "text"
        assert tokens[1].escaped is True


@pytest.mark.unit
class TestPedanticLinks:
    """Test inline links under the pedantic grammar."""

    def test_link(self):
        """Test a pedantic inline link."""
        assert parse("[a](/b)", pedantic=True) == '<p><a href="/b">a</a></p>\n'

    def test_link_title_split_from_destination(self):
        """Test that a quoted title is split off the destination."""
        (link,) = inline('[a](/b "t")', pedantic=True)
        assert link.type == "link"
        assert link.href == "/b"
        assert link.title == "t"

    def test_image(self):
        """Test a pedantic image."""
        (image,) = inline("![i](/p.png)", pedantic=True)
        assert image.type == "image"
        assert image.href == "/p.png"
        assert image.text == "i"


@pytest.mark.unit
class TestCharacterClasses:
    """Test that word and whitespace classes follow ECMAScript semantics."""

    def test_non_ascii_tag_name_is_text(self):
        """Test that a tag name with a non-ASCII letter is escaped as text."""
        assert parse("a <bé> b\n") == "<p>a &lt;bé&gt; b</p>\n"
        assert parse("<aé x=1>") == "<p>&lt;aé x=1&gt;</p>\n"

    def test_ascii_tag_still_raw(self):
        """Test that an ASCII tag still passes through."""
        assert parse("a <b> c") == "<p>a <b> c</p>\n"

    def test_byte_order_mark_blocks_closing_emphasis(self):
        """Test that U+FEFF counts as whitespace for emphasis flanking."""
        assert parse("*a\ufeff*b") == "<p>*a\ufeff*b</p>\n"

    def test_byte_order_mark_ends_bare_url(self):
        """Test that a bare URL stops before U+FEFF."""
        tokens = inline("www.a.b\ufeff")
        assert types(tokens) == ["link", "text"]
        assert tokens[0].href == "http://www.a.b"
        assert tokens[1].text == "\ufeff"
