#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/hooks.py
"""Pipeline hooks.

Hooks let extensions intercept the pipeline at fixed points:

- ``preprocess(markdown)``: transform the source before lexing
- ``postprocess(html)``: transform the rendered HTML
- ``process_all_tokens(tokens)``: transform the token list before walking
- ``em_strong_mask(src)``: add masking for the emphasis scanner
- ``provide_lexer()`` / ``provide_parser()``: choose the lex and render
  functions

The value-transforming hooks are chained: the newest registration runs first
and each result feeds the next, ending with the built-in hook.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from markweave.constants import ASYNC_AWARE_HOOKS, PASS_THROUGH_HOOKS
from markweave.extensions import OverrideChain, PassThroughChain
from markweave.lexer import Lexer
from markweave.options import MarkdownOptions
from markweave.parser import Parser
from markweave.tokens import Token

logger = logging.getLogger(__name__)


class Hooks:
    """Built-in hook implementations.

    Parameters
    ----------
    options : MarkdownOptions, optional
        Active options

    Attributes
    ----------
    block : bool
        True for a document parse, False for ``parse_inline``

    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()
        self.block = True

    def preprocess(self, markdown: str) -> Any:
        """Process markdown before sending it to the lexer."""
        return markdown

    def postprocess(self, html: str) -> Any:
        """Process HTML after the parser has rendered it."""
        return html

    def process_all_tokens(self, tokens: list[Token]) -> Any:
        """Process all tokens before walk_tokens runs."""
        return tokens

    def em_strong_mask(self, src: str) -> str:
        """Mask spans that must not be considered emphasis delimiters."""
        return src

    def provide_lexer(self) -> Callable[..., list[Token]]:
        """Return the function that tokenizes the source."""
        return Lexer.lex if self.block else Lexer.lex_inline

    def provide_parser(self) -> Callable[..., str]:
        """Return the function that renders the tokens."""
        return Parser.parse if self.block else Parser.parse_inline


def create_hooks(options: MarkdownOptions, block: bool = True) -> Hooks:
    """Instantiate the configured hooks class and install extension hooks.

    Parameters
    ----------
    options : MarkdownOptions
        Active options
    block : bool, default True
        False when parsing inline Markdown only

    Returns
    -------
    Hooks
        Hooks with every registered override chained in

    """
    hooks_class = options.hooks_class or Hooks
    hooks = hooks_class(options)
    hooks.options = options
    hooks.block = block

    for name, handlers in options.extensions.hook_overrides.items():
        fallback = getattr(hooks, name)
        if name in PASS_THROUGH_HOOKS:
            async_aware = options.async_mode and name in ASYNC_AWARE_HOOKS
            setattr(hooks, name, PassThroughChain(hooks, name, handlers, fallback, async_aware=async_aware))
        else:
            setattr(hooks, name, OverrideChain(hooks, handlers, fallback))

    return hooks
