#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the markweave library.

This module defines the exception classes raised while configuring, lexing and
rendering Markdown. They provide more specific error information than generic
built-ins and let callers distinguish errors that ``silent`` mode may absorb
from errors that are always fatal.

Exception Hierarchy
-------------------
- MarkweaveError (base exception)

  - ConfigurationError (bad options, bad extensions, async misuse; never silenced)

  - InvalidInputError (source is not a string; never silenced)

  - ParsingError (lexing failures)
    - GrammarExhaustionError (no rule matches, or nesting too deep)

  - RenderingError (output generation failures)
    - UnknownTokenError (token type without a renderer)

"""

from typing import Any


class MarkweaveError(Exception):
    """Base exception class for all markweave-specific errors.

    Catching this will catch every error raised by the library itself.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(MarkweaveError):
    """Exception raised for invalid options or extension registrations.

    This covers errors such as:
    - Unknown option names or values of the wrong type
    - Extensions overriding a renderer, tokenizer or hook that does not exist
    - A hook returning an awaitable while ``async_mode`` is off
    - Disabling ``async_mode`` when an extension requires it

    Configuration errors are raised even when ``silent`` is enabled.

    Parameters
    ----------
    message : str
        Description of the configuration error
    parameter_name : str, optional
        Name of the offending option or override target
    parameter_value : any, optional
        The value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the configuration error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class InvalidInputError(MarkweaveError):
    """Exception raised when the Markdown source is not a string.

    Parameters
    ----------
    received_type : type
        Type of the value that was passed as source
    message : str, optional
        Custom error message. If not provided, generates one from the type

    """

    def __init__(self, received_type: type, message: str | None = None):
        """Initialize the invalid input error."""
        if message is None:
            if received_type is type(None):
                message = "markweave: input parameter is None, string expected"
            else:
                message = f"markweave: input parameter is of type '{received_type.__name__}', string expected"
        super().__init__(message)
        self.received_type = received_type


class ParsingError(MarkweaveError):
    """Exception raised when tokenizing the Markdown source fails.

    Parameters
    ----------
    message : str
        Description of the parsing failure
    parsing_stage : str, optional
        The stage where the error occurred (``"block"`` or ``"inline"``)
    original_error : Exception, optional
        The underlying exception that caused the failure

    """

    def __init__(self, message: str, parsing_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the parsing error."""
        super().__init__(message, original_error)
        self.parsing_stage = parsing_stage


class GrammarExhaustionError(ParsingError):
    """Exception raised when scanning cannot make progress.

    Either no rule matched the remaining input (a broken rule table or a custom
    tokenizer that consumed nothing) or the nesting depth exceeded
    ``max_nesting_depth``.

    Parameters
    ----------
    message : str
        Description of the failure
    parsing_stage : str
        ``"block"`` or ``"inline"``
    remaining : str, optional
        Unconsumed input at the point of failure

    Attributes
    ----------
    remaining : str
        Unconsumed input at the point of failure
    char_code : int or None
        Code point of the first unconsumed character

    """

    def __init__(self, message: str, parsing_stage: str, remaining: str = ""):
        """Initialize the grammar exhaustion error."""
        super().__init__(message, parsing_stage=parsing_stage)
        self.remaining = remaining
        self.char_code = ord(remaining[0]) if remaining else None


class RenderingError(MarkweaveError):
    """Exception raised when output rendering fails.

    Parameters
    ----------
    message : str
        Description of the rendering failure
    rendering_stage : str, optional
        The stage of rendering where the error occurred
    original_error : Exception, optional
        The underlying exception that caused the rendering failure

    """

    def __init__(self, message: str, rendering_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the rendering error."""
        super().__init__(message, original_error)
        self.rendering_stage = rendering_stage


class UnknownTokenError(RenderingError):
    """Exception raised when no renderer handles a token type.

    Parameters
    ----------
    token_type : str
        The unhandled token type
    rendering_stage : str
        ``"block"`` or ``"inline"``

    """

    def __init__(self, token_type: str, rendering_stage: str):
        """Initialize the unknown token error."""
        super().__init__(f'Token with "{token_type}" type was not found.', rendering_stage=rendering_stage)
        self.token_type = token_type
