#  Copyright (c) 2025 Tom Villani, Ph.D.
"""markweave - a Markdown to HTML converter with a pluggable grammar.

markweave tokenizes CommonMark and GitHub Flavored Markdown into a typed token
tree and renders it to HTML. Every stage is replaceable: extensions can add new
block or inline constructs, override individual tokenizer and renderer methods,
hook into the pipeline, and walk the token tree before rendering.

Key Features
------------
- CommonMark block and inline grammar with GFM tables, strikethrough, task
  lists and bare URL autolinks
- ``pedantic`` mode for the original markdown.pl grammar
- Typed dataclass tokens with JSON serialization
- Extension registry with fallback chains; nothing global is patched
- Optional async pipeline for hooks and token walkers
- Termination guarantees on arbitrary input via a nesting depth limit

Requirements
------------
- Python 3.10+

Examples
--------
Basic usage:

    >>> from markweave import parse
    >>> parse("# Hello")
    '<h1>Hello</h1>\\n'

Inspecting tokens:

    >>> from markweave import lexer
    >>> [token.type for token in lexer("- a\\n- b\\n")]
    ['list']

Custom rendering:

    >>> from markweave import Extension, Markdown
    >>> md = Markdown(Extension(renderer={"hr": lambda renderer, token: "<hr/>\\n"}))
    >>> md.parse("***")
    '<hr/>\\n'

"""

from markweave.api import (
    Markdown,
    convert_file,
    get_default_instance,
    get_defaults,
    get_options,
    lexer,
    parse,
    parse_inline,
    parser,
    reset_defaults,
    set_options,
    use,
    walk_tokens,
)
from markweave.exceptions import (
    ConfigurationError,
    GrammarExhaustionError,
    InvalidInputError,
    MarkweaveError,
    ParsingError,
    RenderingError,
    UnknownTokenError,
)
from markweave.extensions import Extension, TokenizerExtension, apply_extensions
from markweave.hooks import Hooks
from markweave.lexer import Lexer
from markweave.options import ExtensionTable, MarkdownOptions
from markweave.parser import Parser
from markweave.renderer import Renderer, TextRenderer
from markweave.tokenizer import Tokenizer
from markweave.tokens import (
    Blockquote,
    CodeBlock,
    CodeSpan,
    Emphasis,
    Escape,
    Fence,
    GenericToken,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    LineBreak,
    Link,
    LinkDef,
    LinkReference,
    LinkReferenceTable,
    List,
    ListItem,
    Paragraph,
    Space,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
    Token,
    TokenList,
    token_to_dict,
    tokens_to_json,
)

__version__ = "1.0.0"

__all__ = [
    # Conversion
    "parse",
    "parse_inline",
    "lexer",
    "parser",
    "convert_file",
    "walk_tokens",
    # Configuration
    "Markdown",
    "MarkdownOptions",
    "ExtensionTable",
    "use",
    "set_options",
    "get_options",
    "get_defaults",
    "reset_defaults",
    "get_default_instance",
    # Extension points
    "Extension",
    "TokenizerExtension",
    "apply_extensions",
    "Hooks",
    "Lexer",
    "Parser",
    "Renderer",
    "TextRenderer",
    "Tokenizer",
    # Tokens
    "Token",
    "TokenList",
    "Space",
    "ThematicBreak",
    "Heading",
    "CodeBlock",
    "Fence",
    "Blockquote",
    "List",
    "ListItem",
    "HtmlBlock",
    "LinkDef",
    "Paragraph",
    "Table",
    "TableRow",
    "TableCell",
    "Text",
    "Escape",
    "HtmlInline",
    "Link",
    "Image",
    "Strong",
    "Emphasis",
    "CodeSpan",
    "LineBreak",
    "Strikethrough",
    "GenericToken",
    "LinkReference",
    "LinkReferenceTable",
    "token_to_dict",
    "tokens_to_json",
    # Exceptions
    "MarkweaveError",
    "ConfigurationError",
    "InvalidInputError",
    "ParsingError",
    "GrammarExhaustionError",
    "RenderingError",
    "UnknownTokenError",
    "__version__",
]
