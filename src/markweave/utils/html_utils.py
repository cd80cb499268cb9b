#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markweave/utils/html_utils.py
"""HTML escaping and URL cleaning helpers used by the renderer."""

from __future__ import annotations

import re
from urllib.parse import quote

_ESCAPE_MAP = {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;"}

_ESCAPE_TEST = re.compile(r"[&<>\"']")
_ESCAPE_TEST_NO_ENCODE = re.compile(r"[<>\"']|&(?!(?:#[0-9]{1,7}|#[Xx][a-fA-F0-9]{1,6}|[A-Za-z0-9_]+);)")

# Characters encodeURI leaves alone, beyond ASCII letters and digits.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def _replace(match: re.Match[str]) -> str:
    return _ESCAPE_MAP[match.group(0)]


def escape_html(text: str, *, encode: bool = False) -> str:
    """Escape HTML special characters.

    Parameters
    ----------
    text : str
        Text to escape
    encode : bool, default False
        When True every ``&`` is escaped. When False, ampersands that already
        start an entity or character reference are preserved.

    Returns
    -------
    str
        Escaped text

    Examples
    --------
    >>> escape_html('a < b & "c"', encode=True)
    'a &lt; b &amp; &quot;c&quot;'
    >>> escape_html("&copy; & <x>")
    '&copy; &amp; &lt;x&gt;'

    """
    pattern = _ESCAPE_TEST if encode else _ESCAPE_TEST_NO_ENCODE
    if pattern.search(text) is None:
        return text
    return pattern.sub(_replace, text)


def clean_url(href: str) -> str | None:
    """Percent-encode a URL the way ``encodeURI`` does.

    Already-encoded ``%XX`` sequences survive because the encoded ``%25`` is
    turned back into ``%`` afterwards.

    Parameters
    ----------
    href : str
        URL to encode

    Returns
    -------
    str or None
        Encoded URL, or None when the URL cannot be encoded (e.g. it contains a
        lone surrogate)

    """
    try:
        encoded = quote(href, safe=_URI_SAFE)
    except UnicodeEncodeError:
        return None
    return encoded.replace("%25", "%")
