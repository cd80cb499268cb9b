#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/extensions.py
"""Extension registry and override chains.

An :class:`Extension` bundles everything a plugin may contribute: custom
tokens with their own tokenizer and renderer, replacements for built-in
renderer, tokenizer and hook methods, token walkers, and plain option
overrides. :func:`apply_extensions` folds extensions into a fresh
:class:`~markweave.options.ExtensionTable`; nothing shared is patched.

Override chains are tuples ordered newest registration first. At call time an
:class:`OverrideChain` tries each handler and falls back to the built-in method
when every handler returns ``False``.

Examples
--------
Render every heading one level deeper:

    >>> def heading(renderer, token):
    ...     depth = min(token.depth + 1, 6)
    ...     return f"<h{depth}>{renderer.parser.render_inline(token.tokens)}</h{depth}>\\n"
    >>> ext = Extension(renderer={"heading": heading})

"""

from __future__ import annotations

import inspect
import keyword
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from markweave.exceptions import ConfigurationError
from markweave.options import ExtensionTable, MarkdownOptions
from markweave.renderer import Renderer
from markweave.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

# Attributes of the built-in classes that are state, not overridable methods.
_RENDERER_RESERVED = frozenset({"options", "parser"})
_TOKENIZER_RESERVED = frozenset({"options", "rules", "lexer"})
_HOOKS_RESERVED = frozenset({"options", "block"})

_LEVELS = ("block", "inline")


def method_name(name: str) -> str:
    """Map a token or method name to its Python method name (``del`` -> ``del_``)."""
    return name + "_" if keyword.iskeyword(name) else name


@dataclass(frozen=True)
class TokenizerExtension:
    """A named custom token.

    Parameters
    ----------
    name : str
        Token type produced by ``tokenizer`` and handled by ``renderer``
    level : {"block", "inline"}, optional
        Where the tokenizer runs; required when ``tokenizer`` is given
    tokenizer : callable, optional
        ``fn(lexer, src, tokens)`` returning a token or None
    start : callable, optional
        ``fn(lexer, src)`` returning the index where the construct may start
    renderer : callable, optional
        ``fn(parser, token)`` returning HTML, or ``False`` to defer
    child_tokens : tuple of str
        Attribute names of the token that hold child tokens for walking

    """

    name: str
    level: Optional[str] = None
    tokenizer: Optional[Callable[..., Any]] = None
    start: Optional[Callable[..., Any]] = None
    renderer: Optional[Callable[..., Any]] = None
    child_tokens: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TokenizerExtension:
        """Build from a plain mapping (``childTokens`` is accepted as an alias)."""
        values = dict(data)
        if "childTokens" in values:
            values["child_tokens"] = values.pop("childTokens")
        values["child_tokens"] = tuple(values.get("child_tokens") or ())
        if "name" not in values:
            raise ConfigurationError("extension name required", parameter_name="name")
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigurationError(f"Invalid tokenizer extension: {e}", original_error=e) from e


@dataclass(frozen=True)
class Extension:
    """A bundle of contributions registered with :meth:`Markdown.use`.

    Parameters
    ----------
    extensions : sequence of TokenizerExtension
        Custom named tokens
    renderer : mapping of str to callable
        Overrides of :class:`Renderer` methods, called as ``fn(renderer, token)``
    tokenizer : mapping of str to callable
        Overrides of :class:`Tokenizer` methods, called as ``fn(tokenizer, src, ...)``
    hooks : mapping of str to callable
        Overrides of :class:`~markweave.hooks.Hooks` methods, called as ``fn(hooks, value)``
    walk_tokens : callable, optional
        Called with every token before rendering
    async_mode : bool, default False
        Require asynchronous parsing
    options : mapping
        Plain option overrides such as ``{"gfm": False}``

    """

    extensions: Sequence[TokenizerExtension] = ()
    renderer: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    tokenizer: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    hooks: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    walk_tokens: Optional[Callable[..., Any]] = None
    async_mode: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Extension:
        """Build an extension from a plain mapping.

        Keys other than the extension fields are treated as option overrides,
        so ``{"gfm": False, "renderer": {...}}`` works. ``async`` and
        ``walkTokens`` are accepted as aliases.
        """
        values = dict(data)
        if "async" in values:
            values["async_mode"] = values.pop("async")
        if "walkTokens" in values:
            values["walk_tokens"] = values.pop("walkTokens")

        known = {"extensions", "renderer", "tokenizer", "hooks", "walk_tokens", "async_mode", "options"}
        extra = {key: values.pop(key) for key in list(values) if key not in known}
        options = {**dict(values.pop("options", None) or {}), **extra}

        return cls(
            extensions=tuple(
                item if isinstance(item, TokenizerExtension) else TokenizerExtension.from_mapping(item)
                for item in values.get("extensions") or ()
            ),
            renderer=dict(values.get("renderer") or {}),
            tokenizer=dict(values.get("tokenizer") or {}),
            hooks=dict(values.get("hooks") or {}),
            walk_tokens=values.get("walk_tokens"),
            async_mode=bool(values.get("async_mode", False)),
            options=options,
        )


ExtensionLike = Union[Extension, Mapping[str, Any]]


def coerce_extension(extension: ExtensionLike) -> Extension:
    """Return ``extension`` as an :class:`Extension`."""
    if isinstance(extension, Extension):
        return extension
    if isinstance(extension, Mapping):
        return Extension.from_mapping(extension)
    raise ConfigurationError(
        f"Extensions must be Extension instances or mappings, got {type(extension).__name__}",
        parameter_name="extension",
        parameter_value=extension,
    )


# ============================================================================
# Override chains
# ============================================================================


class OverrideChain:
    """Callable that tries override handlers before a built-in method.

    Parameters
    ----------
    owner : object
        Instance passed as the first argument to every handler
    handlers : tuple of callables
        Overrides, newest first
    fallback : callable
        The built-in bound method
    empty : Any, optional
        Value substituted for a falsy final result (``""`` for renderers)

    """

    def __init__(
        self,
        owner: Any,
        handlers: Sequence[Callable[..., Any]],
        fallback: Callable[..., Any],
        empty: Any = None,
    ) -> None:
        self.owner = owner
        self.handlers = tuple(handlers)
        self.fallback = fallback
        self.empty = empty

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        result: Any = False
        for handler in self.handlers:
            result = handler(self.owner, *args, **kwargs)
            if result is not False:
                break
        else:
            result = self.fallback(*args, **kwargs)
        if self.empty is not None and not result:
            return self.empty
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({getattr(self.fallback, '__name__', self.fallback)!s}, {len(self.handlers)} handlers)"


class PassThroughChain:
    """Callable threading one value through every hook implementation.

    Handlers run newest first, each receiving the previous result, and the
    built-in hook runs last. When ``async_aware`` is set the call returns a
    coroutine that awaits every awaitable intermediate result.
    """

    def __init__(
        self,
        owner: Any,
        name: str,
        handlers: Sequence[Callable[..., Any]],
        fallback: Callable[..., Any],
        async_aware: bool = False,
    ) -> None:
        self.owner = owner
        self.name = name
        self.handlers = tuple(handlers)
        self.fallback = fallback
        self.async_aware = async_aware

    def __call__(self, value: Any) -> Any:
        if self.async_aware:
            return self._call_async(value)

        for handler in self.handlers:
            value = self._reject_awaitable(handler(self.owner, value))
        return self._reject_awaitable(self.fallback(value))

    async def _call_async(self, value: Any) -> Any:
        for handler in self.handlers:
            value = handler(self.owner, value)
            if inspect.isawaitable(value):
                value = await value
        value = self.fallback(value)
        if inspect.isawaitable(value):
            value = await value
        return value

    def _reject_awaitable(self, value: Any) -> Any:
        if inspect.isawaitable(value):
            close = getattr(value, "close", None)
            if close is not None:
                close()
            raise ConfigurationError(
                f"Hook '{self.name}' returned an awaitable but async_mode is off",
                parameter_name="async_mode",
                parameter_value=False,
            )
        return value


def install_overrides(owner: Any, overrides: Mapping[str, Sequence[Callable[..., Any]]], empty: Any = None) -> None:
    """Shadow methods of ``owner`` with override chains.

    Parameters
    ----------
    owner : object
        Renderer or tokenizer instance
    overrides : mapping
        Handler chains keyed by method name
    empty : Any, optional
        Passed to :class:`OverrideChain`

    """
    for name, handlers in overrides.items():
        if handlers:
            setattr(owner, name, OverrideChain(owner, handlers, getattr(owner, name), empty=empty))


# ============================================================================
# Registration
# ============================================================================


def _check_method(kind: str, cls: type, name: str, reserved: frozenset[str]) -> None:
    if name.startswith("_") or name in reserved or not callable(getattr(cls, name, None)):
        raise ConfigurationError(
            f"{kind} '{name}' does not exist",
            parameter_name=kind,
            parameter_value=name,
        )


def _prepend(
    table: dict[str, tuple[Callable[..., Any], ...]],
    name: str,
    handler: Callable[..., Any],
) -> None:
    table[name] = (handler, *table.get(name, ()))


def apply_extensions(options: MarkdownOptions, *extensions: ExtensionLike) -> MarkdownOptions:
    """Fold ``extensions`` into ``options`` and return new options.

    Parameters
    ----------
    options : MarkdownOptions
        Current options; left unchanged
    *extensions : Extension or mapping
        Extensions in registration order

    Returns
    -------
    MarkdownOptions
        Options with the composed :class:`ExtensionTable`

    Raises
    ------
    ConfigurationError
        If an extension is unnamed, has a tokenizer without a valid level,
        targets a method that does not exist, or sets unknown options

    """
    # Imported here: hooks imports the lexer and parser, which import this module.
    from markweave.hooks import Hooks

    for item in extensions:
        extension = coerce_extension(item)
        table = options.extensions

        renderers = dict(table.renderers)
        child_tokens = dict(table.child_tokens)
        block = list(table.block)
        inline = list(table.inline)
        start_block = list(table.start_block)
        start_inline = list(table.start_inline)

        for custom in extension.extensions:
            if not custom.name:
                raise ConfigurationError("extension name required", parameter_name="name")
            if custom.renderer is not None:
                _prepend(renderers, custom.name, custom.renderer)
            if custom.tokenizer is not None:
                if custom.level not in _LEVELS:
                    raise ConfigurationError(
                        "extension level must be 'block' or 'inline'",
                        parameter_name="level",
                        parameter_value=custom.level,
                    )
                (block if custom.level == "block" else inline).insert(0, custom.tokenizer)
                if custom.start is not None:
                    (start_block if custom.level == "block" else start_inline).append(custom.start)
            if custom.child_tokens:
                child_tokens[custom.name] = tuple(custom.child_tokens)
            logger.debug("Registered custom token '%s' (level=%s)", custom.name, custom.level)

        renderer_overrides = dict(table.renderer_overrides)
        renderer_class = options.renderer_class or Renderer
        for name, handler in extension.renderer.items():
            name = method_name(name)
            _check_method("renderer", renderer_class, name, _RENDERER_RESERVED)
            _prepend(renderer_overrides, name, handler)
            logger.debug("Registered renderer override '%s'", name)

        tokenizer_overrides = dict(table.tokenizer_overrides)
        tokenizer_class = options.tokenizer_class or Tokenizer
        for name, handler in extension.tokenizer.items():
            name = method_name(name)
            _check_method("tokenizer", tokenizer_class, name, _TOKENIZER_RESERVED)
            _prepend(tokenizer_overrides, name, handler)
            logger.debug("Registered tokenizer override '%s'", name)

        hook_overrides = dict(table.hook_overrides)
        hooks_class = options.hooks_class or Hooks
        for name, handler in extension.hooks.items():
            _check_method("hook", hooks_class, name, _HOOKS_RESERVED)
            _prepend(hook_overrides, name, handler)
            logger.debug("Registered hook '%s'", name)

        walkers = table.walk_tokens
        if extension.walk_tokens is not None:
            walkers = (extension.walk_tokens, *walkers)

        composed = ExtensionTable(
            block=tuple(block),
            inline=tuple(inline),
            start_block=tuple(start_block),
            start_inline=tuple(start_inline),
            renderers=MappingProxyType(renderers),
            child_tokens=MappingProxyType(child_tokens),
            renderer_overrides=MappingProxyType(renderer_overrides),
            tokenizer_overrides=MappingProxyType(tokenizer_overrides),
            hook_overrides=MappingProxyType(hook_overrides),
            walk_tokens=walkers,
        )

        changes = dict(extension.options)
        if "extensions" in changes:
            raise ConfigurationError(
                "extensions cannot be set as a plain option; register them with use()",
                parameter_name="extensions",
            )
        changes["extensions"] = composed
        changes["async_mode"] = options.async_mode or extension.async_mode or bool(changes.get("async_mode", False))
        options = options.create_updated(**changes)

    return options


def flatten_tokens(value: Any) -> Iterable[Any]:
    """Yield the leaves of arbitrarily nested lists or tuples."""
    if isinstance(value, (list, tuple)):
        for item in value:
            yield from flatten_tokens(item)
    elif value is not None:
        yield value
