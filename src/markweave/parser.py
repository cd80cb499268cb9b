#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/parser.py
"""Token-to-HTML parser.

The :class:`Parser` walks a token list and dispatches each token to the
matching :class:`~markweave.renderer.Renderer` method. Renderers registered by
extensions for a token type are consulted first; for a built-in type a
renderer result of ``False`` falls back to the built-in method.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from markweave.constants import BUILTIN_BLOCK_TOKEN_TYPES, BUILTIN_INLINE_TOKEN_TYPES
from markweave.exceptions import UnknownTokenError
from markweave.extensions import install_overrides, method_name
from markweave.options import MarkdownOptions
from markweave.renderer import Renderer, TextRenderer
from markweave.tokens import Paragraph, Text, Token

logger = logging.getLogger(__name__)

_BLOCK_METHODS = frozenset(BUILTIN_BLOCK_TOKEN_TYPES - {"text"})
_NOT_HANDLED = object()


class Parser:
    """Render token lists to HTML.

    Parameters
    ----------
    options : MarkdownOptions, optional
        Active options; defaults are used when omitted

    Attributes
    ----------
    renderer : Renderer
        HTML renderer with extension overrides installed
    text_renderer : TextRenderer
        Plain-text renderer used for image alt text

    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()
        renderer_class = self.options.renderer_class or Renderer
        self.renderer: Renderer = renderer_class(self.options)
        self.renderer.options = self.options
        self.renderer.parser = self
        install_overrides(self.renderer, self.options.extensions.renderer_overrides, empty="")
        self.text_renderer = TextRenderer()

    @classmethod
    def parse(cls, tokens: Sequence[Token], options: Optional[MarkdownOptions] = None) -> str:
        """Render block-level tokens with a new parser."""
        return cls(options).render_blocks(tokens)

    @classmethod
    def parse_inline(cls, tokens: Sequence[Token], options: Optional[MarkdownOptions] = None) -> str:
        """Render inline tokens with a new parser."""
        return cls(options).render_inline(tokens)

    def _render_extension(self, token: Token) -> Any:
        chain = self.options.extensions.renderers.get(token.type)
        if not chain:
            return _NOT_HANDLED
        for render in chain:
            result = render(self, token)
            if result is not False:
                return result
        return False

    def _unknown(self, token: Token, stage: str, output: str) -> str:
        error = UnknownTokenError(token.type, rendering_stage=stage)
        if self.options.silent:
            logger.error(error.message)
            return output
        raise error

    def render_blocks(self, tokens: Sequence[Token], top: bool = True) -> str:
        """Render block-level tokens.

        Parameters
        ----------
        tokens : sequence of Token
            Tokens to render
        top : bool, default True
            Wrap runs of bare text tokens in a paragraph; list items pass
            False for tight lists

        Returns
        -------
        str
            HTML

        Raises
        ------
        UnknownTokenError
            If a token type has no renderer (unless ``silent``)

        """
        output = ""
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1

            result = self._render_extension(token)
            if result is not _NOT_HANDLED and (result is not False or token.type not in BUILTIN_BLOCK_TOKEN_TYPES):
                output += result or ""
                continue

            if token.type in _BLOCK_METHODS:
                output += getattr(self.renderer, method_name(token.type))(token)
                continue

            if token.type == "text":
                body = self.renderer.text(token)  # type: ignore[arg-type]
                while index < len(tokens) and tokens[index].type == "text":
                    body += "\n" + self.renderer.text(tokens[index])  # type: ignore[arg-type]
                    index += 1
                if top:
                    output += self.renderer.paragraph(
                        Paragraph(raw=body, text=body, tokens=[Text(raw=body, text=body, escaped=True)])
                    )
                else:
                    output += body
                continue

            return self._unknown(token, "block", output)

        return output

    def render_inline(self, tokens: Sequence[Token], renderer: Any = None) -> str:
        """Render inline tokens.

        Parameters
        ----------
        tokens : sequence of Token
            Tokens to render
        renderer : Renderer or TextRenderer, optional
            Renderer to use instead of ``self.renderer``

        Returns
        -------
        str
            HTML (or plain text with a TextRenderer)

        """
        renderer = renderer or self.renderer
        output = ""
        for token in tokens:
            result = self._render_extension(token)
            if result is not _NOT_HANDLED and (result is not False or token.type not in BUILTIN_INLINE_TOKEN_TYPES):
                output += result or ""
                continue

            if token.type == "escape":
                output += renderer.text(token)
            elif token.type in BUILTIN_INLINE_TOKEN_TYPES:
                output += getattr(renderer, method_name(token.type))(token)
            else:
                return self._unknown(token, "inline", output)

        return output
