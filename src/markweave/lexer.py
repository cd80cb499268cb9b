#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/lexer.py
"""Markdown lexer.

The :class:`Lexer` turns Markdown source into a token tree in two phases:

1. **Block scanning** splits the source into block tokens. Inline content of
   headings, paragraphs, table cells and list text is queued rather than
   scanned, because link reference definitions anywhere in the document must
   be known before links can be resolved.
2. **Inline scanning** drains the queue, filling each queued token list.

Every call to :meth:`Lexer.block_tokens` or :meth:`Lexer.inline_tokens` counts
toward ``max_nesting_depth``, which bounds recursion on adversarial input.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

from markweave.exceptions import GrammarExhaustionError
from markweave.extensions import install_overrides
from markweave.options import MarkdownOptions
from markweave.rules import select_rules
from markweave.tokenizer import Tokenizer
from markweave.tokens import Token, TokenList

if TYPE_CHECKING:
    from markweave.hooks import Hooks

logger = logging.getLogger(__name__)


@dataclass
class LexerState:
    """Mutable scanning state shared with the tokenizer.

    Parameters
    ----------
    in_link : bool
        Inside link text; bare URLs are not autolinked
    in_raw_block : bool
        Inside a raw ``<pre>``, ``<code>``, ``<kbd>`` or ``<script>`` element
    top : bool
        At a level where paragraphs may start (False inside tight list items)

    """

    in_link: bool = False
    in_raw_block: bool = False
    top: bool = True


@dataclass
class InlineJob:
    """Inline source waiting to be scanned into ``tokens``."""

    src: str
    tokens: list[Token] = field(default_factory=list)


class Lexer:
    """Tokenize Markdown source.

    Parameters
    ----------
    options : MarkdownOptions, optional
        Active options; defaults are used when omitted

    Attributes
    ----------
    tokens : TokenList
        Top-level tokens and the link reference table
    inline_queue : list[InlineJob]
        Pending inline scans
    state : LexerState
        Scanning state
    tokenizer : Tokenizer
        Rule-level tokenizer with extension overrides installed

    Examples
    --------
    >>> tokens = Lexer.lex("# Title\\n")
    >>> tokens[0].type, tokens[0].depth
    ('heading', 1)

    """

    def __init__(self, options: Optional[MarkdownOptions] = None) -> None:
        self.options = options or MarkdownOptions()
        self.tokens = TokenList()
        self.inline_queue: list[InlineJob] = []
        self.state = LexerState()
        self.rules = select_rules(self.options)
        self._depth = 0
        self._hooks: Optional[Hooks] = None

        tokenizer_class = self.options.tokenizer_class or Tokenizer
        self.tokenizer: Tokenizer = tokenizer_class(self.options)
        self.tokenizer.options = self.options
        self.tokenizer.rules = self.rules
        self.tokenizer.lexer = self
        install_overrides(self.tokenizer, self.options.extensions.tokenizer_overrides)

    @classmethod
    def lex(cls, src: str, options: Optional[MarkdownOptions] = None) -> TokenList:
        """Tokenize a whole document."""
        return cls(options).run(src)

    @classmethod
    def lex_inline(cls, src: str, options: Optional[MarkdownOptions] = None) -> list[Token]:
        """Tokenize inline Markdown only; reference links are not resolved."""
        return cls(options).inline_tokens(src)

    @property
    def hooks(self) -> Hooks:
        """Hooks consulted during inline scanning (``em_strong_mask``)."""
        if self._hooks is None:
            # Imported here: the hooks module provides this class as the default lexer.
            from markweave.hooks import create_hooks

            self._hooks = create_hooks(self.options)
        return self._hooks

    def run(self, src: str) -> TokenList:
        """Run both scanning phases over ``src``."""
        src = self.rules.other.carriage_return.sub("\n", src)
        self.block_tokens(src, self.tokens)

        index = 0
        while index < len(self.inline_queue):
            job = self.inline_queue[index]
            self.inline_tokens(job.src, job.tokens)
            index += 1
        self.inline_queue = []

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Lexed %d block tokens [%s] and %d inline runs",
                len(self.tokens),
                " ".join(token.type for token in self.tokens),
                index,
            )

        return self.tokens

    def inline(self, src: str, tokens: Optional[list[Token]] = None) -> list[Token]:
        """Queue ``src`` for inline scanning and return the list it will fill."""
        if tokens is None:
            tokens = []
        self.inline_queue.append(InlineJob(src=src, tokens=tokens))
        return tokens

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _exhausted(self, message: str, stage: str, remaining: str) -> None:
        if self.options.silent:
            logger.error(message)
            return
        raise GrammarExhaustionError(message, parsing_stage=stage, remaining=remaining)

    def _nesting_allowed(self, stage: str, src: str) -> bool:
        if self._depth <= self.options.max_nesting_depth:
            return True
        self._exhausted(f"Maximum nesting depth of {self.options.max_nesting_depth} exceeded", stage, src)
        return False

    def _run_extensions(self, chain: Sequence[Callable[..., Any]], src: str, tokens: list[Token]) -> Optional[Token]:
        for tokenize in chain:
            token = tokenize(self, src, tokens)
            if token:
                return token
        return None

    def _clip(self, chain: Sequence[Callable[..., Any]], src: str) -> str:
        # Stop a paragraph or text run where an extension construct may begin.
        if not chain:
            return src
        start_index = math.inf
        rest = src[1:]
        for find_start in chain:
            index = find_start(self, rest)
            if isinstance(index, int) and not isinstance(index, bool) and index >= 0:
                start_index = min(start_index, index)
        if start_index < math.inf:
            return src[: int(start_index) + 1]
        return src

    # ------------------------------------------------------------------
    # Block scanning
    # ------------------------------------------------------------------

    def block_tokens(
        self,
        src: str,
        tokens: Optional[list[Token]] = None,
        last_paragraph_clipped: bool = False,
    ) -> list[Token]:
        """Scan block-level tokens from ``src`` into ``tokens``.

        Parameters
        ----------
        src : str
            Block source
        tokens : list[Token], optional
            List to append to; a new list is used when omitted
        last_paragraph_clipped : bool, default False
            A paragraph continuing the last token of ``tokens`` is merged into
            it (lazy continuation inside block quotes)

        Returns
        -------
        list[Token]
            ``tokens``

        Raises
        ------
        GrammarExhaustionError
            If no rule matches the remaining input or nesting is too deep
            (unless ``silent``)

        """
        if tokens is None:
            tokens = []

        self._depth += 1
        try:
            if not self._nesting_allowed("block", src):
                return tokens
            return self._scan_blocks(src, tokens, last_paragraph_clipped)
        finally:
            self._depth -= 1

    def _scan_blocks(self, src: str, tokens: list[Token], last_paragraph_clipped: bool) -> list[Token]:
        if self.options.pedantic:
            src = self.rules.other.space_line.sub("", src.replace("\t", "    "))

        tokenizer = self.tokenizer
        extensions = self.options.extensions

        while src:
            token = self._run_extensions(extensions.block, src, tokens)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            token = tokenizer.space(src)
            if token:
                src = src[len(token.raw) :]
                if len(token.raw) == 1 and tokens:
                    # A single newline or blank ends the previous block.
                    tokens[-1].raw += token.raw
                else:
                    tokens.append(token)
                continue

            token = tokenizer.code(src)
            if token:
                src = src[len(token.raw) :]
                last = tokens[-1] if tokens else None
                # An indented code block cannot interrupt a paragraph.
                if last is not None and last.type in ("paragraph", "text"):
                    self._merge_lazy(last, token.raw, token.text)  # type: ignore[attr-defined]
                else:
                    tokens.append(token)
                continue

            token = (
                tokenizer.fences(src)
                or tokenizer.heading(src)
                or tokenizer.hr(src)
                or tokenizer.blockquote(src)
                or tokenizer.list(src)
                or tokenizer.html(src)
            )
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            token = tokenizer.def_(src)
            if token:
                src = src[len(token.raw) :]
                last = tokens[-1] if tokens else None
                if last is not None and last.type in ("paragraph", "text"):
                    self._merge_lazy(last, token.raw, token.raw)
                else:
                    self.tokens.links.define(token.tag, token.href, token.title)  # type: ignore[attr-defined]
                    tokens.append(token)
                continue

            token = tokenizer.table(src) or tokenizer.lheading(src)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            cut_src = self._clip(extensions.start_block, src)
            if self.state.top:
                token = tokenizer.paragraph(cut_src)
                if token:
                    last = tokens[-1] if tokens else None
                    if last_paragraph_clipped and last is not None and last.type == "paragraph":
                        self._merge_lazy(last, token.raw, token.text, replace_queued=True)  # type: ignore[attr-defined]
                    else:
                        tokens.append(token)
                    last_paragraph_clipped = len(cut_src) != len(src)
                    src = src[len(token.raw) :]
                    continue

            token = tokenizer.text(src)
            if token:
                src = src[len(token.raw) :]
                last = tokens[-1] if tokens else None
                if last is not None and last.type == "text":
                    self._merge_lazy(last, token.raw, token.text, replace_queued=True)  # type: ignore[attr-defined]
                else:
                    tokens.append(token)
                continue

            self._exhausted(f"Infinite loop on byte: {ord(src[0])}", "block", src)
            break

        self.state.top = True
        return tokens

    def _merge_lazy(self, last: Any, raw: str, text: str, replace_queued: bool = False) -> None:
        # Fold a continuation into the previous paragraph or text token and
        # point its queued inline job at the combined text.
        last.raw += ("" if last.raw.endswith("\n") else "\n") + raw
        last.text += "\n" + text
        if replace_queued and self.inline_queue:
            self.inline_queue.pop()
        if self.inline_queue:
            self.inline_queue[-1].src = last.text

    # ------------------------------------------------------------------
    # Inline scanning
    # ------------------------------------------------------------------

    def _mask(self, src: str) -> str:
        # Same-length shadow of src where spans that cannot hold emphasis
        # delimiters are replaced by filler.
        inline = self.rules.inline
        masked = src

        links = self.tokens.links
        if links:

            def _mask_reference(match: Any) -> str:
                text = match.group(0)
                if text[text.rfind("[") + 1 : -1] in links:
                    return "[" + "a" * (len(text) - 2) + "]"
                return text

            masked = inline.reflink_search.sub(_mask_reference, masked)

        masked = inline.any_punctuation.sub("++", masked)
        masked = inline.block_skip.sub(lambda match: "[" + "a" * (len(match.group(0)) - 2) + "]", masked)
        return self.hooks.em_strong_mask(masked)

    def inline_tokens(self, src: str, tokens: Optional[list[Token]] = None) -> list[Token]:
        """Scan inline tokens from ``src`` into ``tokens``.

        Raises
        ------
        GrammarExhaustionError
            If no rule matches the remaining input or nesting is too deep
            (unless ``silent``)

        """
        if tokens is None:
            tokens = []

        self._depth += 1
        try:
            if not self._nesting_allowed("inline", src):
                return tokens
            return self._scan_inline(src, tokens)
        finally:
            self._depth -= 1

    def _scan_inline(self, src: str, tokens: list[Token]) -> list[Token]:
        tokenizer = self.tokenizer
        extensions = self.options.extensions
        masked_src = self._mask(src)

        keep_prev_char = False
        prev_char = ""

        while src:
            if not keep_prev_char:
                prev_char = ""
            keep_prev_char = False

            token = self._run_extensions(extensions.inline, src, tokens)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            token = tokenizer.escape(src) or tokenizer.tag(src) or tokenizer.link(src)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            token = tokenizer.reflink(src, self.tokens.links)
            if token:
                src = src[len(token.raw) :]
                last = tokens[-1] if tokens else None
                if token.type == "text" and last is not None and last.type == "text":
                    last.raw += token.raw
                    last.text += token.text  # type: ignore[attr-defined]
                else:
                    tokens.append(token)
                continue

            token = tokenizer.em_strong(src, masked_src, prev_char)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            token = tokenizer.codespan(src) or tokenizer.br(src) or tokenizer.del_(src) or tokenizer.autolink(src)
            if token:
                src = src[len(token.raw) :]
                tokens.append(token)
                continue

            if not self.state.in_link:
                token = tokenizer.url(src)
                if token:
                    src = src[len(token.raw) :]
                    tokens.append(token)
                    continue

            token = tokenizer.inline_text(self._clip(extensions.start_inline, src))
            if token:
                src = src[len(token.raw) :]
                if token.raw[-1] != "_":
                    prev_char = token.raw[-1]
                keep_prev_char = True
                last = tokens[-1] if tokens else None
                if last is not None and last.type == "text":
                    last.raw += token.raw
                    last.text += token.text  # type: ignore[attr-defined]
                else:
                    tokens.append(token)
                continue

            self._exhausted(f"Infinite loop on byte: {ord(src[0])}", "inline", src)
            break

        return tokens
