#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/api.py
"""Public conversion API.

:class:`Markdown` owns a frozen :class:`~markweave.options.MarkdownOptions`
and runs the pipeline::

    preprocess -> lex -> process_all_tokens -> walk_tokens -> render -> postprocess

The module-level functions delegate to a default instance, so most callers
only need :func:`parse`:

    >>> parse("# Hello")
    '<h1>Hello</h1>\\n'

Configuration is never mutated; :meth:`Markdown.use` and
:meth:`Markdown.set_options` swap in new options objects, so a parse already in
progress keeps the options it started with.

"""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union, cast

from markweave.constants import ERROR_FRAGMENT_TEMPLATE
from markweave.exceptions import ConfigurationError, InvalidInputError
from markweave.extensions import ExtensionLike, apply_extensions, flatten_tokens
from markweave.hooks import create_hooks
from markweave.lexer import Lexer
from markweave.options import MarkdownOptions
from markweave.parser import Parser
from markweave.tokens import Token, TokenList
from markweave.utils.html_utils import escape_html

logger = logging.getLogger(__name__)

OptionsLike = Union[MarkdownOptions, Mapping[str, Any], None]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _reject_awaitable(value: Any, stage: str) -> Any:
    if inspect.isawaitable(value):
        close = getattr(value, "close", None)
        if close is not None:
            close()
        raise ConfigurationError(
            f"{stage} returned an awaitable but async_mode is off",
            parameter_name="async_mode",
            parameter_value=False,
        )
    return value


def _check_input(src: Any) -> None:
    if not isinstance(src, str):
        raise InvalidInputError(type(src))


def _error_fragment(error: Exception) -> str:
    logger.error("Markdown conversion failed: %s", error)
    return ERROR_FRAGMENT_TEMPLATE.format(message=escape_html(str(error), encode=True))


class Markdown:
    """A configurable Markdown-to-HTML converter.

    Parameters
    ----------
    *extensions : Extension or mapping
        Extensions registered in order
    options : MarkdownOptions, optional
        Starting options, defaults to ``MarkdownOptions()``

    Examples
    --------
    >>> md = Markdown(options=MarkdownOptions(breaks=True))
    >>> md.parse("a\\nb")
    '<p>a<br>b</p>\\n'

    """

    def __init__(self, *extensions: ExtensionLike, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()
        if extensions:
            self.use(*extensions)

    def __repr__(self) -> str:
        return f"Markdown(options={self.options!r})"

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def use(self, *extensions: ExtensionLike) -> Markdown:
        """Register extensions, replacing the options with the composed result."""
        self.options = apply_extensions(self.options, *extensions)
        return self

    def set_options(self, **changes: Any) -> Markdown:
        """Replace individual options."""
        self.options = self.options.create_updated(**changes)
        return self

    def reset(self) -> Markdown:
        """Drop all extensions and option changes."""
        self.options = MarkdownOptions()
        return self

    def _resolve(self, options: OptionsLike, overrides: Mapping[str, Any]) -> MarkdownOptions:
        if options is None:
            resolved = self.options
        elif isinstance(options, MarkdownOptions):
            resolved = options
        elif isinstance(options, Mapping):
            resolved = self.options.create_updated(**dict(options))
        else:
            raise ConfigurationError(
                f"options must be MarkdownOptions or a mapping, got {type(options).__name__}",
                parameter_name="options",
                parameter_value=options,
            )
        if overrides:
            resolved = resolved.create_updated(**overrides)
        return resolved

    # ------------------------------------------------------------------
    # Token walking
    # ------------------------------------------------------------------

    def walk_tokens(self, tokens: Iterable[Token], callback: Callable[[Token], Any]) -> list[Any]:
        """Call ``callback`` on every token, depth first.

        List items, table header and body cells, the attributes named by an
        extension's ``child_tokens`` and ordinary ``tokens`` children are all
        visited. A callback returning a list contributes its elements.

        Parameters
        ----------
        tokens : iterable of Token
            Tokens to walk
        callback : callable
            Called with each token

        Returns
        -------
        list
            Callback results in visiting order

        """
        return self._walk(tokens, callback, self.options.extensions.child_tokens)

    def _walk(
        self,
        tokens: Iterable[Token],
        callback: Callable[[Token], Any],
        child_tokens: Mapping[str, tuple[str, ...]],
    ) -> list[Any]:
        values: list[Any] = []
        for token in tokens:
            result = callback(token)
            if isinstance(result, list):
                values.extend(result)
            else:
                values.append(result)

            if token.type == "table":
                cells = list(token.header.cells)  # type: ignore[attr-defined]
                for row in token.rows:  # type: ignore[attr-defined]
                    cells.extend(row.cells)
                values.extend(self._walk(cells, callback, child_tokens))
            elif token.type == "list":
                values.extend(self._walk(token.items, callback, child_tokens))  # type: ignore[attr-defined]
            elif token.type in child_tokens:
                attrs = getattr(token, "attrs", None) or {}
                for name in child_tokens[token.type]:
                    children = getattr(token, name, None)
                    if children is None:
                        children = attrs.get(name)
                    values.extend(self._walk(flatten_tokens(children), callback, child_tokens))
            else:
                children = getattr(token, "tokens", None)
                if children:
                    values.extend(self._walk(children, callback, child_tokens))
        return values

    def _walk_with_extensions(self, tokens: list[Token], options: MarkdownOptions) -> list[Any]:
        walkers = options.extensions.walk_tokens
        if not walkers:
            return []
        return self._walk(tokens, lambda token: [walker(token) for walker in walkers], options.extensions.child_tokens)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def lexer(self, src: str, options: OptionsLike = None) -> TokenList:
        """Tokenize ``src`` without rendering."""
        _check_input(src)
        return Lexer.lex(src, self._resolve(options, {}))

    def parser(self, tokens: list[Token], options: OptionsLike = None) -> str:
        """Render tokens produced by :meth:`lexer`."""
        return Parser.parse(tokens, self._resolve(options, {}))

    def parse(self, src: str, options: OptionsLike = None, **overrides: Any) -> Union[str, Awaitable[str]]:
        """Convert a Markdown document to HTML.

        Parameters
        ----------
        src : str
            Markdown source
        options : MarkdownOptions or mapping, optional
            Options for this call; a mapping updates the instance options
        **overrides
            Individual option changes for this call

        Returns
        -------
        str or coroutine
            HTML, or a coroutine resolving to HTML in ``async_mode``

        Raises
        ------
        InvalidInputError
            If ``src`` is not a string
        ConfigurationError
            If an option is invalid or async settings conflict
        MarkweaveError
            Pipeline errors when ``silent`` is off

        """
        return self._run(src, options, overrides, block=True)

    def parse_inline(self, src: str, options: OptionsLike = None, **overrides: Any) -> Union[str, Awaitable[str]]:
        """Convert inline Markdown to HTML without a surrounding paragraph."""
        return self._run(src, options, overrides, block=False)

    def _run(self, src: Any, options: OptionsLike, overrides: Mapping[str, Any], block: bool) -> Any:
        resolved = self._resolve(options, overrides)
        if self.options.async_mode and not resolved.async_mode:
            raise ConfigurationError(
                "async_mode was enabled by an extension; remove async_mode=False from the parse options",
                parameter_name="async_mode",
                parameter_value=False,
            )
        logger.debug("Parsing %s input (async_mode=%s)", "block" if block else "inline", resolved.async_mode)

        if resolved.async_mode:
            return self._run_async(src, resolved, block)

        _check_input(src)
        hooks = create_hooks(resolved, block=block)
        try:
            lex = _reject_awaitable(hooks.provide_lexer(), "provide_lexer")
            render = _reject_awaitable(hooks.provide_parser(), "provide_parser")
            src = hooks.preprocess(src)
            tokens = hooks.process_all_tokens(_reject_awaitable(lex(src, resolved), "lexer"))
            pending = [value for value in self._walk_with_extensions(tokens, resolved) if inspect.isawaitable(value)]
            for value in pending[1:]:
                getattr(value, "close", lambda: None)()
            if pending:
                _reject_awaitable(pending[0], "walk_tokens")
            return hooks.postprocess(_reject_awaitable(render(tokens, resolved), "parser"))
        except (ConfigurationError, InvalidInputError):
            raise
        except Exception as e:
            if not resolved.silent:
                raise
            return _error_fragment(e)

    async def _run_async(self, src: Any, options: MarkdownOptions, block: bool) -> str:
        _check_input(src)
        hooks = create_hooks(options, block=block)
        try:
            lex = await _maybe_await(hooks.provide_lexer())
            render = await _maybe_await(hooks.provide_parser())
            src = await _maybe_await(hooks.preprocess(src))
            tokens = await _maybe_await(lex(src, options))
            tokens = await _maybe_await(hooks.process_all_tokens(tokens))
            for value in self._walk_with_extensions(tokens, options):
                await _maybe_await(value)
            html = await _maybe_await(render(tokens, options))
            return await _maybe_await(hooks.postprocess(html))
        except (ConfigurationError, InvalidInputError):
            raise
        except Exception as e:
            if not options.silent:
                raise
            return _error_fragment(e)


# ============================================================================
# Default instance
# ============================================================================

_default = Markdown()


def get_default_instance() -> Markdown:
    """Return the :class:`Markdown` instance behind the module-level functions."""
    return _default


def parse(src: str, options: OptionsLike = None, **overrides: Any) -> Union[str, Awaitable[str]]:
    """Convert Markdown to HTML with the default instance.

    Examples
    --------
    >>> parse("**bold** and *em*")
    '<p><strong>bold</strong> and <em>em</em></p>\\n'

    """
    return _default.parse(src, options, **overrides)


def parse_inline(src: str, options: OptionsLike = None, **overrides: Any) -> Union[str, Awaitable[str]]:
    """Convert inline Markdown to HTML with the default instance."""
    return _default.parse_inline(src, options, **overrides)


def lexer(src: str, options: OptionsLike = None) -> TokenList:
    """Tokenize Markdown with the default instance."""
    return _default.lexer(src, options)


def parser(tokens: list[Token], options: OptionsLike = None) -> str:
    """Render tokens with the default instance."""
    return _default.parser(tokens, options)


def use(*extensions: ExtensionLike) -> Markdown:
    """Register extensions on the default instance."""
    return _default.use(*extensions)


def set_options(**changes: Any) -> Markdown:
    """Change options of the default instance."""
    return _default.set_options(**changes)


def get_options() -> MarkdownOptions:
    """Return the current options of the default instance."""
    return _default.options


def get_defaults() -> MarkdownOptions:
    """Return a fresh set of built-in default options."""
    return MarkdownOptions()


def reset_defaults() -> Markdown:
    """Restore the default instance to built-in defaults."""
    return _default.reset()


def walk_tokens(tokens: Iterable[Token], callback: Callable[[Token], Any]) -> list[Any]:
    """Walk tokens with the default instance's child token table."""
    return _default.walk_tokens(tokens, callback)


def convert_file(path: Union[str, Path], options: Optional[MarkdownOptions] = None) -> Optional[str]:
    """Convert a UTF-8 Markdown file to HTML.

    Parameters
    ----------
    path : str or Path
        File to read
    options : MarkdownOptions, optional
        Options to use, defaults to ``MarkdownOptions()`` (GFM, no extensions)

    Returns
    -------
    str or None
        HTML, or None when the file does not exist

    Raises
    ------
    ConfigurationError
        If ``options`` enables ``async_mode``

    """
    path = Path(path)
    if not path.is_file():
        logger.info("%s not found, skipping", path)
        return None

    options = options or MarkdownOptions()
    if options.async_mode:
        raise ConfigurationError(
            "convert_file does not support async_mode",
            parameter_name="async_mode",
            parameter_value=True,
        )

    source = path.read_text(encoding="utf-8")
    logger.debug("Converting %s (%d characters)", path, len(source))
    return cast(str, Markdown(options=options).parse(source))
