#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/constants.py
"""Constants and default values shared across markweave.

This module centralizes option defaults, the HTML block tag vocabulary used by
the block grammar, the error fragment emitted in silent mode and the CLI exit
codes.
"""

from __future__ import annotations

from typing import Final, Literal

# ============================================================================
# Option defaults
# ============================================================================

DEFAULT_GFM: Final = True
DEFAULT_PEDANTIC: Final = False
DEFAULT_BREAKS: Final = False
DEFAULT_SILENT: Final = False
DEFAULT_ASYNC_MODE: Final = False

# Each nested blockquote, list item, emphasis, link or strikethrough enters the
# lexer once more; the ceiling keeps adversarial nesting far below Python's
# recursion limit.
DEFAULT_MAX_NESTING_DEPTH: Final = 128

BlockDialect = Literal["normal", "gfm", "pedantic"]
InlineDialect = Literal["normal", "gfm", "breaks", "pedantic"]

# ============================================================================
# Grammar vocabulary
# ============================================================================

# Tag names that open an HTML block (CommonMark type 6 block tags).
BLOCK_TAG_NAMES: Final = (
    "address|article|aside|base|basefont|blockquote|body|caption|center|col|colgroup|dd|details|dialog|dir|div"
    "|dl|dt|fieldset|figcaption|figure|footer|form|frame|frameset|h[1-6]|head|header|hr|html|iframe|legend|li"
    "|link|main|menu|menuitem|meta|nav|noframes|ol|optgroup|option|p|param|search|section|summary|table|tbody"
    "|td|tfoot|th|thead|title|tr|track|ul"
)

# Inline tag names the pedantic html block rule must not swallow.
PEDANTIC_INLINE_TAG_NAMES: Final = (
    "a|em|strong|small|s|cite|q|dfn|abbr|data|time|code|var|samp|kbd|sub|sup|i|b|u|mark|ruby|rt|rp|bdi|bdo"
    "|span|br|wbr|ins|del|img"
)

# Token types the block renderer knows how to draw.
BUILTIN_BLOCK_TOKEN_TYPES: Final = frozenset(
    {"space", "hr", "heading", "code", "table", "blockquote", "list", "html", "def", "paragraph", "text"}
)

# Token types the inline renderer knows how to draw.
BUILTIN_INLINE_TOKEN_TYPES: Final = frozenset(
    {"escape", "html", "link", "image", "strong", "em", "codespan", "br", "del", "text"}
)

# Hooks whose value is threaded through every registered implementation.
PASS_THROUGH_HOOKS: Final = frozenset({"preprocess", "postprocess", "process_all_tokens", "em_strong_mask"})

# Pass-through hooks that may return awaitables in async mode.
ASYNC_AWARE_HOOKS: Final = frozenset({"preprocess", "postprocess", "process_all_tokens"})

# ============================================================================
# Error reporting
# ============================================================================

ERROR_FRAGMENT_TEMPLATE: Final = "<p>An error occurred:</p><pre>{message}</pre>"

# ============================================================================
# CLI
# ============================================================================

DEFAULT_INPUT_FILE: Final = "README.md"
CONFIG_ENV_VAR: Final = "MARKWEAVE_CONFIG"
CONFIG_FILENAMES: Final = (".markweave.toml", ".markweave.yaml", ".markweave.yml", ".markweave.json")

EXIT_SUCCESS: Final = 0
EXIT_ERROR: Final = 1
EXIT_VALIDATION_ERROR: Final = 3
EXIT_FILE_ERROR: Final = 4
EXIT_PARSING_ERROR: Final = 6
EXIT_RENDERING_ERROR: Final = 7
