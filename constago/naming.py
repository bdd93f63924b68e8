"""Identifier formatting and value transforms driven by element configuration."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import (
    FORMAT_CAMEL,
    FORMAT_SNAKE,
    FORMAT_SNAKE_UPPER,
    INPUT_MODE_FIELD,
    INPUT_MODE_TAG,
    INPUT_MODE_TAG_THEN_FIELD,
    TAG_FIELD_NAME,
    TRANSFORM_AS_IS,
    TRANSFORM_CAMEL,
    TRANSFORM_LOWER,
    TRANSFORM_PASCAL,
    TRANSFORM_UPPER,
    ElementConfig,
)
from .golang.tags import lookup_tag

_SEPARATORS = frozenset("_- ./")


def split_into_words(value: str) -> List[str]:
    """Split on separators and on lower-to-upper case transitions."""
    words: List[str] = []
    current: List[str] = []
    for index, char in enumerate(value):
        if char in _SEPARATORS:
            if current:
                words.append("".join(current))
                current = []
        elif char.isupper():
            if current and not value[index - 1].isupper():
                words.append("".join(current))
                current = []
            current.append(char)
        else:
            current.append(char)
    if current:
        words.append("".join(current))
    return words


def _title(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def to_camel_case(value: str) -> str:
    words = split_into_words(value)
    if not words:
        return ""
    return words[0].lower() + "".join(_title(word) for word in words[1:])


def to_pascal_case(value: str) -> str:
    return "".join(_title(word) for word in split_into_words(value))


def build_name(prefix: str, mid: str, mid2: str, suffix: str, fmt: str) -> str:
    """Compose an identifier from up to four parts using the requested format."""
    base = " ".join(part for part in (prefix, mid, mid2, suffix) if part)
    if fmt == FORMAT_CAMEL:
        return to_camel_case(base)
    if fmt == FORMAT_SNAKE:
        return "_".join(split_into_words(base)).lower()
    if fmt == FORMAT_SNAKE_UPPER:
        return "_".join(split_into_words(base)).upper()
    # pascal, and the fallback for anything unrecognised
    return to_pascal_case(base)


def transform_field_value(value: str, case: str, separator: str) -> str:
    """Apply the configured case and separator to a computed value."""
    if separator and case != TRANSFORM_AS_IS:
        value = " ".join(split_into_words(value))
    if case == TRANSFORM_CAMEL:
        value = to_camel_case(value)
    elif case == TRANSFORM_PASCAL:
        value = to_pascal_case(value)
    elif case == TRANSFORM_UPPER:
        value = value.upper()
    elif case == TRANSFORM_LOWER:
        value = value.lower()
    if separator:
        value = separator.join(split_into_words(value))
    return value


def _value_from_tags(field_name: str, tag: str, priority: Sequence[str]) -> Optional[str]:
    for key in priority:
        if key == TAG_FIELD_NAME:
            return field_name
        if not tag:
            continue
        found = lookup_tag(tag, key)
        if found is not None:
            return found.split(",", 1)[0]
    return None


def compute_element_value(field_name: str, tag: str, element: ElementConfig) -> str:
    """Return the raw value an element produces for a field, or an empty string."""
    transform = element.output.transform

    def _transform(value: str) -> str:
        return transform_field_value(value, transform.value_case, transform.value_separator)

    mode = element.input.mode
    if mode in (INPUT_MODE_TAG, INPUT_MODE_TAG_THEN_FIELD):
        from_tag = _value_from_tags(field_name, tag, element.input.tag_priority)
        if from_tag is not None:
            return _transform(from_tag) if transform.tag_values else from_tag
        if mode == INPUT_MODE_TAG:
            return ""
        return _transform(field_name)
    if mode == INPUT_MODE_FIELD:
        return _transform(field_name)
    return ""


__all__ = [
    "build_name",
    "compute_element_value",
    "split_into_words",
    "to_camel_case",
    "to_pascal_case",
    "transform_field_value",
]
