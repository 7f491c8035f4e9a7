"""
Composition expressions.

Compositions refer to their instance through ``${...}`` placeholders:

- ``${topic:name}`` expands to a pub/sub topic derived from the instance id,
  e.g. ``myComposition+name`` for the instance ``myComposition``
- ``${features.some.path}`` expands to the value at that path of the
  instance's feature configuration

A string consisting of exactly one placeholder is replaced by the raw value,
which need not be a string. A leading ``!`` in front of such a placeholder is
prefixed to the value's text (negated flags). Placeholders embedded in longer
strings are replaced by the value's text. Keys of objects are interpolated as
well. A value that cannot be found removes the surrounding object key or
array entry; ``null`` values are kept.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ExpressionError

EXPRESSION_PATTERN = re.compile(r"\$\{([^}]+)\}")
EXACT_PATTERN = re.compile(r"^(!?)\$\{([^}]+)\}$")
SEGMENT_START = re.compile(r"[_/].")

TOPIC_PATTERN = re.compile(r"^topic:(.*)$")
FEATURES_PATTERN = re.compile(r"^features\..*$")

TOPIC_SEPARATOR = "+"


class _Missing:
    """Marker for a value that could not be looked up."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def topic(instance_id: str, *subtopics: str) -> str:
    """
    Derive a topic from an instance id.

    Characters following ``_`` or ``/`` are upper-cased (dropping the
    separator), dash separated parts become topic segments joined by ``+``.

    >>> topic("my-id0", "my-topic")
    'my+id0+my-topic'
    """
    base = SEGMENT_START.sub(lambda m: m.group(0)[1].upper(), instance_id).split("-")
    return TOPIC_SEPARATOR.join([*base, *(sub for sub in subtopics if sub)])


def lookup_path(value: Any, path: str) -> Any:
    """Follow a dotted path through nested objects and lists."""
    for segment in path.split("."):
        if isinstance(value, Mapping) and segment in value:
            value = value[segment]
        elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
            value = value[int(segment)]
        else:
            return MISSING
    return value


# =============================================================================
# Expression types
# =============================================================================


@dataclass(frozen=True)
class TopicExpression:
    """``topic:<subtopic>``"""

    subtopic: str

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        return topic(context["id"], self.subtopic)


@dataclass(frozen=True)
class FeaturePathExpression:
    """``features.<path>``, looked up in the instance context."""

    path: str

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        return lookup_path(context, self.path)


@dataclass(frozen=True)
class CustomExpression:
    """An expression matched by a pattern registered with ``add_pattern``."""

    match: tuple[str, ...]
    callback: Callable[..., Any]

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        return self.callback(context, *self.match)


Expression = TopicExpression | FeaturePathExpression | CustomExpression


@dataclass(frozen=True)
class Placeholder:
    """A parsed ``${...}`` occurrence, optionally negated with ``!``."""

    expression: Expression
    negated: bool = False


def stringify(value: Any) -> str:
    """Text of a value substituted into a longer string."""
    if value is MISSING:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def visit_expressions(obj: Any, visit: Callable[[str, bool], Any]) -> Any:
    """
    Replace every ``${...}`` placeholder below ``obj``.

    Args:
        obj: JSON-like value (not modified)
        visit: Called with the expression text and whether it was negated;
            returns the replacement value or ``MISSING``

    Returns:
        A new value with placeholders replaced and missing values removed
    """
    if isinstance(obj, str):
        exact = EXACT_PATTERN.match(obj)
        if exact:
            return visit(exact.group(2), bool(exact.group(1)))
        return EXPRESSION_PATTERN.sub(lambda m: stringify(visit(m.group(1), False)), obj)

    if isinstance(obj, list):
        visited = (visit_expressions(value, visit) for value in obj)
        return [value for value in visited if value is not MISSING]

    if isinstance(obj, Mapping):
        result: dict[str, Any] = {}
        for key, value in obj.items():
            replaced_key = visit_expressions(key, visit)
            replaced_value = visit_expressions(value, visit)
            if replaced_key is MISSING or replaced_value is MISSING:
                continue
            result[replaced_key if isinstance(replaced_key, str) else stringify(replaced_key)] = replaced_value
        return result

    return obj


class ExpressionInterpolator:
    """
    Parses and evaluates composition expressions.

    Patterns are tried in registration order; ``topic:`` and ``features.``
    are registered by default.
    """

    def __init__(self) -> None:
        self._matchers: list[tuple[re.Pattern[str], Callable[[re.Match[str]], Expression]]] = [
            (TOPIC_PATTERN, lambda m: TopicExpression(m.group(1))),
            (FEATURES_PATTERN, lambda m: FeaturePathExpression(m.group(0))),
        ]

    def add_pattern(self, pattern: str | re.Pattern[str], callback: Callable[..., Any]) -> ExpressionInterpolator:
        """
        Register an additional expression pattern.

        ``callback(context, full_match, *groups)`` computes the value.
        """
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        self._matchers.append(
            (compiled, lambda m: CustomExpression((m.group(0), *m.groups()), callback))
        )
        return self

    def parse(self, text: str) -> Expression:
        for pattern, build in self._matchers:
            match = pattern.search(text)
            if match:
                return build(match)
        raise ExpressionError(text)

    def evaluate(self, placeholder: Placeholder, context: Mapping[str, Any]) -> Any:
        value = placeholder.expression.evaluate(context)
        if placeholder.negated and value is not MISSING:
            return "!" + stringify(value)
        return value

    def interpolate(self, context: Mapping[str, Any], obj: Any) -> Any:
        """
        Interpolate all expressions in ``obj`` for one instance.

        Args:
            context: The instance (``id`` and ``features`` are used)
            obj: JSON-like value to interpolate

        Raises:
            ExpressionError: For expressions matching no pattern
        """

        def visit(text: str, negated: bool) -> Any:
            return self.evaluate(Placeholder(self.parse(text), negated), context)

        return visit_expressions(obj, visit)
