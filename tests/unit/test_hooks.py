"""Unit tests for pipeline hooks.

Tests cover:
- preprocess and postprocess chaining order
- process_all_tokens and em_strong_mask
- provide_lexer and provide_parser replacement
- The block flag for inline parsing
- Awaitable results rejected outside async mode
"""

import pytest

from markweave import ConfigurationError, Extension, Hooks, Lexer, Markdown, MarkdownOptions, Parser


@pytest.mark.unit
class TestBuiltinHooks:
    """Test the default hook implementations."""

    def test_identity(self):
        """Test that the value hooks return their input."""
        hooks = Hooks()
        assert hooks.preprocess("a") == "a"
        assert hooks.postprocess("<p>") == "<p>"
        assert hooks.process_all_tokens([]) == []
        assert hooks.em_strong_mask("*x*") == "*x*"

    def test_providers_follow_block_flag(self):
        """Test that inline parsing provides the inline functions."""
        hooks = Hooks(MarkdownOptions())
        assert hooks.provide_lexer() == Lexer.lex
        assert hooks.provide_parser() == Parser.parse
        hooks.block = False
        assert hooks.provide_lexer() == Lexer.lex_inline
        assert hooks.provide_parser() == Parser.parse_inline


@pytest.mark.unit
class TestPassThroughHooks:
    """Test chained value hooks."""

    def test_preprocess_newest_first(self):
        """Test that each preprocess result feeds the next older one."""
        md = Markdown(
            Extension(hooks={"preprocess": lambda hooks, src: src + "1"}),
            Extension(hooks={"preprocess": lambda hooks, src: src + "2"}),
        )
        assert md.parse("a") == "<p>a21</p>\n"

    def test_postprocess(self):
        """Test transforming the rendered HTML."""
        md = Markdown(Extension(hooks={"postprocess": lambda hooks, html: html.upper()}))
        assert md.parse("a") == "<P>A</P>\n"

    def test_process_all_tokens(self):
        """Test replacing the token list before rendering."""
        md = Markdown(Extension(hooks={"process_all_tokens": lambda hooks, tokens: tokens[:1]}))
        assert md.parse("# a\n\nb") == "<h1>a</h1>\n"

    def test_em_strong_mask(self):
        """Test that masked delimiters cannot close emphasis."""
        md = Markdown(Extension(hooks={"em_strong_mask": lambda hooks, src: src.replace("*", "a")}))
        assert md.parse("*a*") == "<p>*a*</p>\n"

    def test_hooks_see_options(self):
        """Test that hooks have access to the active options."""
        seen = []

        def preprocess(hooks, src):
            seen.append(hooks.options.breaks)
            return src

        Markdown(Extension(hooks={"preprocess": preprocess})).parse("a", breaks=True)
        assert seen == [True]


@pytest.mark.unit
class TestProviders:
    """Test provide_lexer and provide_parser overrides."""

    def test_provide_lexer(self):
        """Test substituting the lexing function."""

        def provide_lexer(hooks):
            return lambda src, options: Lexer.lex(src.upper(), options)

        md = Markdown(Extension(hooks={"provide_lexer": provide_lexer}))
        assert md.parse("abc") == "<p>ABC</p>\n"

    def test_provide_parser_inline_flag(self):
        """Test that provide_parser sees block=False for parse_inline."""
        flags = []

        def provide_parser(hooks):
            flags.append(hooks.block)
            return False

        md = Markdown(Extension(hooks={"provide_parser": provide_parser}))
        assert md.parse_inline("*a*") == "<em>a</em>"
        assert md.parse("*a*") == "<p><em>a</em></p>\n"
        assert flags == [False, True]


@pytest.mark.unit
class TestSyncModeRejectsAwaitables:
    """Test awaitables outside async mode."""

    def test_async_preprocess_without_async_mode(self):
        """Test that an async hook needs async_mode."""

        async def preprocess(hooks, src):
            return src

        md = Markdown(Extension(hooks={"preprocess": preprocess}))
        with pytest.raises(ConfigurationError) as exc_info:
            md.parse("a")
        assert exc_info.value.parameter_name == "async_mode"

    def test_async_walker_without_async_mode(self):
        """Test that an async token walker needs async_mode."""

        async def walker(token):
            return None

        md = Markdown(Extension(walk_tokens=walker))
        with pytest.raises(ConfigurationError):
            md.parse("a")

    def test_silent_does_not_hide_configuration_errors(self):
        """Test that silent mode still raises configuration problems."""

        async def postprocess(hooks, html):
            return html

        md = Markdown(Extension(hooks={"postprocess": postprocess}))
        with pytest.raises(ConfigurationError):
            md.parse("a", silent=True)
