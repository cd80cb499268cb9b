#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/options.py
"""Configuration options for the markweave pipeline.

Options are frozen dataclasses. Changing a setting always produces a new
instance through :meth:`CloneFrozenMixin.create_updated`, so a parse that is
in flight keeps the options object it started with.

The :class:`ExtensionTable` is the composed result of every registered
extension. It is built by :func:`markweave.extensions.apply_extensions` and
never patched in place.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from markweave.constants import (
    DEFAULT_ASYNC_MODE,
    DEFAULT_BREAKS,
    DEFAULT_GFM,
    DEFAULT_MAX_NESTING_DEPTH,
    DEFAULT_PEDANTIC,
    DEFAULT_SILENT,
)
from markweave.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

HandlerChain = tuple[Callable[..., Any], ...]


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        Raises
        ------
        ConfigurationError
            If a keyword does not name a field

        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown option(s) for {type(self).__name__}: {', '.join(unknown)}",
                parameter_name=unknown[0],
                parameter_value=kwargs[unknown[0]],
            )
        logger.debug("Updating %s: %s", type(self).__name__, ", ".join(sorted(kwargs)))
        return replace(self, **kwargs)


@dataclass(frozen=True)
class ExtensionTable:
    """Composed extension overlay consulted by the lexer, parser and hooks.

    Every chain is a tuple ordered newest registration first.

    Parameters
    ----------
    block, inline : tuple of callables
        Custom tokenizers tried before the built-in rules, called as
        ``fn(lexer, src, tokens)``
    start_block, start_inline : tuple of callables
        Start finders called as ``fn(lexer, src)``; they return the index where
        a custom construct may begin so a paragraph or text run stops there
    renderers : mapping of str to tuple of callables
        Renderers for custom token types, called as ``fn(parser, token)``
    child_tokens : mapping of str to tuple of str
        Attribute names holding child tokens, per custom token type
    renderer_overrides, tokenizer_overrides, hook_overrides : mapping
        Replacements for built-in methods, keyed by method name
    walk_tokens : tuple of callables
        Token visitors run before rendering

    """

    block: HandlerChain = ()
    inline: HandlerChain = ()
    start_block: HandlerChain = ()
    start_inline: HandlerChain = ()
    renderers: Mapping[str, HandlerChain] = field(default_factory=_empty_mapping)
    child_tokens: Mapping[str, tuple[str, ...]] = field(default_factory=_empty_mapping)
    renderer_overrides: Mapping[str, HandlerChain] = field(default_factory=_empty_mapping)
    tokenizer_overrides: Mapping[str, HandlerChain] = field(default_factory=_empty_mapping)
    hook_overrides: Mapping[str, HandlerChain] = field(default_factory=_empty_mapping)
    walk_tokens: HandlerChain = ()

    @property
    def is_empty(self) -> bool:
        """Return True when no extension contributed anything."""
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class MarkdownOptions(CloneFrozenMixin):
    """Configuration for lexing and rendering Markdown.

    Parameters
    ----------
    gfm : bool, default True
        Enable GitHub Flavored Markdown: tables, strikethrough, bare URL and
        e-mail autolinks, task list items
    pedantic : bool, default False
        Follow the original markdown.pl grammar. Takes precedence over ``gfm``
        when choosing rule tables
    breaks : bool, default False
        Render single newlines as ``<br>`` (only with ``gfm`` and not ``pedantic``)
    silent : bool, default False
        Log recoverable errors and keep going instead of raising
    async_mode : bool, default False
        Allow hooks and token walkers to return awaitables; ``parse`` then
        returns a coroutine
    max_nesting_depth : int, default 128
        Maximum nesting of block and inline scanning
    renderer_class : type, optional
        Subclass of :class:`~markweave.renderer.Renderer` to use
    tokenizer_class : type, optional
        Subclass of :class:`~markweave.tokenizer.Tokenizer` to use
    hooks_class : type, optional
        Subclass of :class:`~markweave.hooks.Hooks` to use
    extensions : ExtensionTable
        Composed extension overlay

    Examples
    --------
    >>> opts = MarkdownOptions()
    >>> opts.create_updated(breaks=True).breaks
    True

    """

    gfm: bool = field(
        default=DEFAULT_GFM,
        metadata={"help": "Enable GitHub Flavored Markdown extensions", "importance": "core"},
    )
    pedantic: bool = field(
        default=DEFAULT_PEDANTIC,
        metadata={"help": "Conform to the original markdown.pl grammar", "importance": "advanced"},
    )
    breaks: bool = field(
        default=DEFAULT_BREAKS,
        metadata={"help": "Render single line breaks as <br>", "importance": "core"},
    )
    silent: bool = field(
        default=DEFAULT_SILENT,
        metadata={"help": "Log errors and emit an error fragment instead of raising", "importance": "core"},
    )
    async_mode: bool = field(
        default=DEFAULT_ASYNC_MODE,
        metadata={"help": "Return a coroutine from parse and await hook results", "importance": "advanced"},
    )
    max_nesting_depth: int = field(
        default=DEFAULT_MAX_NESTING_DEPTH,
        metadata={"help": "Maximum nesting depth before scanning stops", "type": int, "importance": "security"},
    )
    renderer_class: Optional[type] = field(
        default=None,
        metadata={"help": "Renderer subclass used instead of the built-in renderer", "importance": "advanced"},
    )
    tokenizer_class: Optional[type] = field(
        default=None,
        metadata={"help": "Tokenizer subclass used instead of the built-in tokenizer", "importance": "advanced"},
    )
    hooks_class: Optional[type] = field(
        default=None,
        metadata={"help": "Hooks subclass used instead of the built-in hooks", "importance": "advanced"},
    )
    extensions: ExtensionTable = field(
        default_factory=ExtensionTable,
        metadata={"help": "Composed extension overlay", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option types and ranges.

        Raises
        ------
        ConfigurationError
            If a flag is not a bool, the depth is not a positive int, or a
            class option is not a subclass of the matching built-in

        """
        for name in ("gfm", "pedantic", "breaks", "silent", "async_mode"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(
                    f"{name} must be a bool, got {type(value).__name__}",
                    parameter_name=name,
                    parameter_value=value,
                )

        depth = self.max_nesting_depth
        if isinstance(depth, bool) or not isinstance(depth, int) or depth <= 0:
            raise ConfigurationError(
                f"max_nesting_depth must be a positive integer, got {depth!r}",
                parameter_name="max_nesting_depth",
                parameter_value=depth,
            )

        if not isinstance(self.extensions, ExtensionTable):
            raise ConfigurationError(
                f"extensions must be an ExtensionTable, got {type(self.extensions).__name__}",
                parameter_name="extensions",
                parameter_value=self.extensions,
            )

        self._validate_classes()

    def _validate_classes(self) -> None:
        # Imported here: these modules reference options at call time.
        from markweave.hooks import Hooks
        from markweave.renderer import Renderer
        from markweave.tokenizer import Tokenizer

        for name, base in (("renderer_class", Renderer), ("tokenizer_class", Tokenizer), ("hooks_class", Hooks)):
            value = getattr(self, name)
            if value is None:
                continue
            if not isinstance(value, type) or not issubclass(value, base):
                raise ConfigurationError(
                    f"{name} must be a subclass of {base.__name__}, got {value!r}",
                    parameter_name=name,
                    parameter_value=value,
                )

    @property
    def block_dialect(self) -> str:
        """Name of the block rule table these options select."""
        if self.pedantic:
            return "pedantic"
        return "gfm" if self.gfm else "normal"

    @property
    def inline_dialect(self) -> str:
        """Name of the inline rule table these options select."""
        if self.pedantic:
            return "pedantic"
        if self.gfm:
            return "breaks" if self.breaks else "gfm"
        return "normal"


def option_names() -> list[str]:
    """Return the names of options that can be set from plain values.

    ``extensions`` is excluded; it is only built through ``use()``.
    """
    return [f.name for f in fields(MarkdownOptions) if f.name != "extensions"]
