"""Go string literal decoding and struct tag lookups."""

from __future__ import annotations

import re
from typing import Optional

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

_ESCAPE = re.compile(
    r"\\(?:(?P<simple>[abfnrtv\\\"])"
    r"|x(?P<hex>[0-9a-fA-F]{2})"
    r"|u(?P<u4>[0-9a-fA-F]{4})"
    r"|U(?P<u8>[0-9a-fA-F]{8})"
    r"|(?P<oct>[0-7]{3})"
    r"|(?P<bad>.?))",
    re.DOTALL,
)


def unquote_go_string(literal: str) -> str:
    """Decode a Go raw (backquoted) or interpreted (double-quoted) string literal.

    Raises ``ValueError`` when the literal is malformed.
    """
    if len(literal) >= 2 and literal[0] == literal[-1] == "`":
        return literal[1:-1].replace("\r", "")
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ValueError(f"not a Go string literal: {literal!r}")
    body = literal[1:-1]
    if "\n" in body:
        raise ValueError("newline in interpreted string literal")

    def _replace(match: re.Match[str]) -> str:
        if match.group("simple") is not None:
            return _SIMPLE_ESCAPES[match.group("simple")]
        for group in ("hex", "u4", "u8"):
            digits = match.group(group)
            if digits is not None:
                return chr(int(digits, 16))
        if match.group("oct") is not None:
            value = int(match.group("oct"), 8)
            if value > 0o377:
                raise ValueError(f"octal escape value > 255 in {literal!r}")
            return chr(value)
        raise ValueError(f"invalid escape sequence in {literal!r}")

    unescaped = _ESCAPE.sub(_replace, body)
    if '"' in _ESCAPE.sub("", body):
        raise ValueError(f"unescaped quote in {literal!r}")
    return unescaped


def lookup_tag(tag: str, key: str) -> Optional[str]:
    """Return the value stored under ``key`` in a struct tag, following Go's conventions.

    Blank values are reported as missing.
    """
    rest = tag
    while rest:
        rest = rest.lstrip(" ")
        if not rest:
            break
        index = 0
        while index < len(rest) and rest[index] > " " and rest[index] not in ':"\x7f':
            index += 1
        if index == 0 or index + 1 >= len(rest) or rest[index] != ":" or rest[index + 1] != '"':
            break
        name = rest[:index]
        rest = rest[index + 1 :]

        index = 1
        while index < len(rest) and rest[index] != '"':
            if rest[index] == "\\":
                index += 1
            index += 1
        if index >= len(rest):
            break
        quoted = rest[: index + 1]
        rest = rest[index + 1 :]

        if name == key:
            try:
                value = unquote_go_string(quoted)
            except ValueError:
                return None
            return value if value.strip() else None
    return None


__all__ = ["lookup_tag", "unquote_go_string"]
