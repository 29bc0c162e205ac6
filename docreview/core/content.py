"""Editable file content and its serialization at the store boundary.

Editable files carry either raw text (as typed into an editor that has not
been parsed yet) or an arbitrary JSON value.  The two cases are kept apart so
that text is written back verbatim while structured values are rendered with
a stable indentation.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from docreview.core.errors import ParseFailed


@dataclass(frozen=True, slots=True)
class TextContent:
    text: str


@dataclass(frozen=True, slots=True)
class StructuredContent:
    value: Any


ItemContent = Union[TextContent, StructuredContent]


def from_value(value: Any) -> ItemContent:
    """Wrap a decoded request value; strings stay textual."""

    if isinstance(value, (TextContent, StructuredContent)):
        return value
    if isinstance(value, str):
        return TextContent(value)
    return StructuredContent(value)


def serialize(content: ItemContent) -> str:
    if isinstance(content, TextContent):
        return content.text
    return json.dumps(content.value, indent=2, ensure_ascii=False)


def to_json_value(content: ItemContent) -> Any:
    if isinstance(content, TextContent):
        return content.text
    return content.value


def parse_structured(raw: bytes | str) -> StructuredContent:
    """Decode JSON fetched from the store.

    Raises :class:`ParseFailed` when the payload is not valid UTF-8 JSON.
    """

    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        return StructuredContent(json.loads(text))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseFailed(f"content is not valid JSON: {exc}") from exc


__all__ = [
    "ItemContent",
    "StructuredContent",
    "TextContent",
    "from_value",
    "parse_structured",
    "serialize",
    "to_json_value",
]
