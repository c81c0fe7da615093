"""Byte scanners used by the JSON reader and writer.

Each scanner works on any bytes-like object and returns a position or a
flag. The positions are byte offsets into the input.
"""

from __future__ import annotations

import re

__all__ = [
    "scan_quote_or_backslash",
    "scan_escape_chars",
    "skip_whitespace",
    "is_all_ascii",
]

_QUOTE_OR_BACKSLASH = re.compile(rb'["\\]')
_ESCAPE_CHARS = re.compile(rb'["\\\n\r\t]')
_JSON_WHITESPACE = b" \t\n\r"


def _as_bytes(data: bytes | bytearray | memoryview) -> bytes | bytearray:
    if isinstance(data, (bytes, bytearray)):
        return data
    return bytes(data)


def _first_match(pattern: re.Pattern[bytes], data: bytes | bytearray) -> int:
    match = pattern.search(data)
    return match.start() if match else len(data)


def scan_quote_or_backslash(data: bytes | bytearray | memoryview) -> int:
    """Return the offset of the first ``"`` or ``\\``, or the length if none."""
    return _first_match(_QUOTE_OR_BACKSLASH, _as_bytes(data))


def scan_escape_chars(data: bytes | bytearray | memoryview) -> int:
    """Return the offset of the first byte that needs escaping in a JSON string.

    The bytes looked for are quote, backslash, newline, carriage return and
    tab. The length of the input is returned when none of them occurs.
    """
    return _first_match(_ESCAPE_CHARS, _as_bytes(data))


def skip_whitespace(data: bytes | bytearray | memoryview) -> int:
    """Return the number of leading JSON whitespace bytes (space, tab, LF, CR)."""
    raw = _as_bytes(data)
    return len(raw) - len(raw.lstrip(_JSON_WHITESPACE))


def is_all_ascii(data: bytes | bytearray | memoryview) -> bool:
    """Return True when every byte is below 0x80."""
    return _as_bytes(data).isascii()