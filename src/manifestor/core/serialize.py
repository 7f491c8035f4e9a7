"""
Serialize listings to JavaScript source.

Produces a JavaScript object literal. Callables embedded in the value are
called and their (already valid) source text is inserted verbatim, which is
how module and asset ``require`` calls end up in the output. Short lists
are kept on one line.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

LIST_LENGTH = 90
INDENT = 3
SPACE = " "

IDENTIFIER = re.compile(r"^[A-Za-z$_][A-Za-z0-9$_]*$")
KEYWORDS = frozenset(
    {
        "if", "else",
        "switch", "case", "default",
        "try", "catch", "finally",
        "function", "return",
        "var", "let", "const",
    }
)  # fmt: skip


def serialize(obj: Any, indent: int = INDENT, pad: int = 0, space: str = SPACE) -> str:
    """
    Serialize a JSON-like value (possibly containing callables) to JavaScript.

    Args:
        obj: Value to serialize
        indent: Indentation per nesting level
        pad: Current indentation
        space: Character used for indentation
    """
    if obj is None:
        return "null"
    if callable(obj):
        return _leftpad(str(obj()), pad, space)
    if isinstance(obj, (list, tuple)):
        return _serialize_array(obj, indent, pad, space)
    if isinstance(obj, Mapping):
        return _serialize_object(obj, indent, pad, space)
    return _leftpad(json.dumps(obj, indent=indent, ensure_ascii=False), pad, space)


def serialize_module(obj: Any) -> str:
    """Serialize a listing as an ES module exporting it by default."""
    return f"export default {serialize(obj)};\n"


def _serialize_array(array: list[Any] | tuple[Any, ...], indent: int, pad: int, space: str) -> str:
    elements = [serialize(element, indent, pad + indent, space) for element in array]
    return "[" + _serialize_list(elements, indent, pad, space) + "]"


def _serialize_object(obj: Mapping[str, Any], indent: int, pad: int, space: str) -> str:
    properties = [
        f"{serialize_key(str(key))}: {serialize(value, indent, pad + indent, space)}"
        for key, value in obj.items()
    ]
    return "{" + _serialize_list(properties, indent, pad, space) + "}"


def _serialize_list(elements: list[str], indent: int, pad: int, space: str) -> str:
    if not elements:
        return ""

    length = pad + sum(len(element) + 2 for element in elements)
    multiline = any("\n" in element for element in elements)
    compact = length < LIST_LENGTH and not multiline

    leader = " " if compact else "\n" + space * (pad + indent)
    trailer = " " if compact else "\n" + space * pad
    return leader + ("," + leader).join(elements) + trailer


def serialize_key(name: str) -> str:
    """Quote an object key unless it is a plain identifier (and no keyword)."""
    if IDENTIFIER.match(name) and name not in KEYWORDS:
        return name
    return json.dumps(name, ensure_ascii=False)


def _leftpad(text: str, pad: int, space: str) -> str:
    return text.replace("\n", "\n" + space * pad)
