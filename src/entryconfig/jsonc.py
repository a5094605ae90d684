"""Decode JSON documents that carry ``//`` and ``/* */`` comments."""

from __future__ import annotations

import re

import msgspec

_TOKEN_RE = re.compile(
    r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/',
    re.DOTALL,
)


def _blank(match: re.Match[str]) -> str:
    token = match.group(0)
    if token.startswith('"'):
        return token
    # Keep line breaks so decode errors still point at the right line.
    return "".join("\n" if ch == "\n" else " " for ch in token)


def strip_json_comments(text: str) -> str:
    """Replace comments outside of string literals with whitespace.

    Returns
    -------
    str
        JSON text without comments.
    """
    return _TOKEN_RE.sub(_blank, text)


def decode_jsonc(text: str) -> object:
    """Decode JSON-with-comments into builtin values.

    Returns
    -------
    object
        Decoded payload.

    Raises
    ------
    msgspec.DecodeError
        Raised when the text is not valid JSON once comments are stripped.
    """
    return msgspec.json.decode(strip_json_comments(text).encode("utf-8"))


__all__ = ["decode_jsonc", "strip_json_comments"]
