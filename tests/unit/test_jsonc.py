"""Tests for JSON-with-comments decoding."""

from __future__ import annotations

import msgspec
import pytest

from entryconfig.jsonc import decode_jsonc, strip_json_comments


def test_decode_jsonc_ignores_line_and_block_comments() -> None:
    """Decode documents carrying both comment styles."""
    text = '// header\n{"a": 1, /* inline */ "b": [2]}\n'
    assert decode_jsonc(text) == {"a": 1, "b": [2]}


def test_comment_markers_inside_strings_survive() -> None:
    """Leave comment-like sequences inside string literals untouched."""
    text = '{"url": "http://example.com/*x*/", "q": "say \\"//\\" twice"}'
    assert decode_jsonc(text) == {"url": "http://example.com/*x*/", "q": 'say "//" twice'}


def test_strip_keeps_line_breaks() -> None:
    """Blank multi-line comments without shifting later lines."""
    stripped = strip_json_comments('{\n/* one\ntwo */\n"a": 1}')
    assert stripped.count("\n") == 3
    assert stripped.splitlines()[3] == '"a": 1}'


def test_decode_jsonc_rejects_invalid_json() -> None:
    """Surface msgspec decode errors for malformed documents."""
    with pytest.raises(msgspec.DecodeError):
        decode_jsonc('{"a": }')
