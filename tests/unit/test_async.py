"""Unit tests for the asynchronous pipeline.

Tests cover:
- parse returning a coroutine in async_mode
- Awaiting async hooks and token walkers
- The async_mode conflict between extensions and call options
- Async lexers and parsers rejected outside async_mode
- Silent error handling in async mode
"""

import asyncio
import inspect

import pytest

from markweave import ConfigurationError, Extension, Lexer, Markdown, MarkdownOptions, Parser, convert_file


@pytest.mark.unit
class TestAsyncParse:
    """Test async_mode parsing."""

    def test_returns_coroutine(self):
        """Test that parse returns an awaitable in async_mode."""
        md = Markdown(Extension(async_mode=True))
        result = md.parse("# a")
        assert inspect.isawaitable(result)
        assert asyncio.run(result) == "<h1>a</h1>\n"

    def test_option_enables_async(self):
        """Test enabling async_mode through options."""
        md = Markdown(options=MarkdownOptions(async_mode=True))
        assert asyncio.run(md.parse_inline("*a*")) == "<em>a</em>"

    def test_async_hooks_awaited(self):
        """Test that async pass-through hooks are awaited in order."""

        async def preprocess(hooks, src):
            await asyncio.sleep(0)
            return src + "!"

        async def postprocess(hooks, html):
            return html.strip()

        md = Markdown(Extension(async_mode=True, hooks={"preprocess": preprocess, "postprocess": postprocess}))
        assert asyncio.run(md.parse("a")) == "<p>a!</p>"

    def test_sync_hooks_allowed(self):
        """Test that ordinary hooks still work in async_mode."""
        md = Markdown(Extension(async_mode=True, hooks={"postprocess": lambda hooks, html: html + "x"}))
        assert asyncio.run(md.parse("a")) == "<p>a</p>\nx"

    def test_async_walker_completes_before_render(self):
        """Test that token changes made by async walkers are rendered."""

        async def walker(token):
            await asyncio.sleep(0)
            if token.type == "heading":
                token.depth = 3

        md = Markdown(Extension(async_mode=True, walk_tokens=walker))
        assert asyncio.run(md.parse("# a")) == "<h3>a</h3>\n"


@pytest.mark.unit
class TestAsyncConflicts:
    """Test async_mode validation."""

    def test_cannot_disable_per_call(self):
        """Test that an async extension cannot be overridden per call."""
        md = Markdown(Extension(async_mode=True))
        with pytest.raises(ConfigurationError):
            md.parse("a", async_mode=False)

    def test_async_flag_is_sticky(self):
        """Test that later sync extensions keep async_mode on."""
        md = Markdown(Extension(async_mode=True), Extension(renderer={"hr": lambda renderer, token: False}))
        assert md.options.async_mode is True

    def test_convert_file_rejects_async(self, tmp_path):
        """Test that file conversion is synchronous only."""
        path = tmp_path / "doc.md"
        path.write_text("# a", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            convert_file(path, MarkdownOptions(async_mode=True))

    @pytest.mark.parametrize("silent", [False, True])
    def test_async_lexer_rejected_in_sync_mode(self, silent):
        """Test that a provided async lexer raises even when silent."""

        async def lex(src, options):
            return Lexer.lex(src, options)

        md = Markdown(Extension(hooks={"provide_lexer": lambda hooks: lex}))
        with pytest.raises(ConfigurationError) as exc_info:
            md.parse("# hi", silent=silent)
        assert exc_info.value.parameter_name == "async_mode"

    @pytest.mark.parametrize("silent", [False, True])
    def test_async_parser_rejected_in_sync_mode(self, silent):
        """Test that a provided async parser raises even when silent."""

        async def render(tokens, options):
            return Parser.parse(tokens, options)

        md = Markdown(Extension(hooks={"provide_parser": lambda hooks: render}))
        with pytest.raises(ConfigurationError):
            md.parse("# hi", silent=silent)


@pytest.mark.unit
class TestAsyncErrors:
    """Test error handling in async_mode."""

    def test_error_raised_from_coroutine(self):
        """Test that pipeline errors surface when awaiting."""

        async def postprocess(hooks, html):
            raise ValueError("boom")

        md = Markdown(Extension(async_mode=True, hooks={"postprocess": postprocess}))
        with pytest.raises(ValueError, match="boom"):
            asyncio.run(md.parse("a"))

    def test_silent_error_fragment(self):
        """Test that silent async parsing resolves to the error fragment."""

        async def postprocess(hooks, html):
            raise ValueError("boom")

        md = Markdown(Extension(async_mode=True, options={"silent": True}, hooks={"postprocess": postprocess}))
        assert asyncio.run(md.parse("a")) == "<p>An error occurred:</p><pre>boom</pre>"
