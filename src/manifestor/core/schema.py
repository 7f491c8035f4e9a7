"""
JSON schema support for artifact definitions and feature configuration.

Schemas are compiled with ``jsonschema``, choosing the draft from each
schema's ``$schema`` (Draft 4 when in doubt). Compiled validators

- write ``default`` values of declared properties into the validated
  document,
- know the formats ``topic``, ``sub-topic``, ``flag-topic``,
  ``language-tag``, ``topic-map`` and ``localization``,
- report failures as ``SchemaValidationError`` carrying JSON pointers.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from functools import cache
from typing import Any

import jsonschema
from jsonschema import FormatChecker
from jsonschema.exceptions import SchemaError as JsonSchemaError
from jsonschema.exceptions import ValidationError

from .errors import SchemaError, SchemaValidationError

logger = logging.getLogger(__name__)

# =============================================================================
# Formats
# =============================================================================

TOPIC_IDENTIFIER = "([a-z][+a-zA-Z0-9]*|[A-Z][+A-Z0-9]*)"
SUB_TOPIC_FORMAT = re.compile(f"^{TOPIC_IDENTIFIER}$")
TOPIC_FORMAT = re.compile(f"^({TOPIC_IDENTIFIER}(-{TOPIC_IDENTIFIER})*)$")
FLAG_TOPIC_FORMAT = re.compile(f"^[!]?({TOPIC_IDENTIFIER}(-{TOPIC_IDENTIFIER})*)$")
# simplified RFC 5646 language tag, allowing "_" as well as "-" between parts
LANGUAGE_TAG_FORMAT = re.compile(
    r"^[a-z]{2,8}([-_][a-z0-9]{2,8})*([-_][a-z0-9][-_][a-z0-9]{2,8})*$", re.IGNORECASE
)


def _string_test(pattern: re.Pattern[str]) -> Callable[[Any], bool]:
    def check(instance: Any) -> bool:
        return not isinstance(instance, str) or bool(pattern.match(instance))

    return check


def _key_test(pattern: re.Pattern[str]) -> Callable[[Any], bool]:
    def check(instance: Any) -> bool:
        return not isinstance(instance, dict) or all(pattern.match(key) for key in instance)

    return check


FORMATS: dict[str, Callable[[Any], bool]] = {
    # e.g. 'saveRequest-userForm', 'didNavigate-EXIT+1'
    "topic": _string_test(TOPIC_FORMAT),
    # a single topic segment
    "sub-topic": _string_test(SUB_TOPIC_FORMAT),
    # a topic, optionally negated with '!'
    "flag-topic": _string_test(FLAG_TOPIC_FORMAT),
    # e.g. 'en', 'de_DE'
    "language-tag": _string_test(LANGUAGE_TAG_FORMAT),
    # keys in topic format (topic-map), language tags (localization)
    "topic-map": _key_test(TOPIC_FORMAT),
    "localization": _key_test(LANGUAGE_TAG_FORMAT),
}


def create_format_checker() -> FormatChecker:
    """Create a format checker knowing the standard and the artifact formats."""
    checker = FormatChecker()
    for name, check in FORMATS.items():
        checker.checks(name)(check)
    return checker


# =============================================================================
# Validator classes
# =============================================================================


def _fill_defaults(properties: Any, instance: Any) -> None:
    if not isinstance(instance, dict) or not isinstance(properties, Mapping):
        return
    for name, subschema in properties.items():
        if isinstance(subschema, Mapping) and "default" in subschema and name not in instance:
            instance[name] = copy.deepcopy(subschema["default"])


def _extend_with_defaults(validator_class: type[Any]) -> type[Any]:
    validate_properties = validator_class.VALIDATORS["properties"]
    validate_required = validator_class.VALIDATORS.get("required")

    def set_defaults(
        validator: Any, properties: Mapping[str, Any], instance: Any, schema: Mapping[str, Any]
    ) -> Iterator[ValidationError]:
        _fill_defaults(properties, instance)
        yield from validate_properties(validator, properties, instance, schema)

    # keywords run in schema order; "required" may come before "properties"
    def required_with_defaults(
        validator: Any, required: Any, instance: Any, schema: Mapping[str, Any]
    ) -> Iterator[ValidationError]:
        _fill_defaults(schema.get("properties"), instance)
        yield from validate_required(validator, required, instance, schema)

    overrides = {"properties": set_defaults}
    if validate_required is not None:
        overrides["required"] = required_with_defaults
    return jsonschema.validators.extend(validator_class, overrides)


@cache
def _validator_class_for(base: type[Any]) -> type[Any]:
    return _extend_with_defaults(base)


def create_validator_class(schema: Mapping[str, Any] | None = None) -> type[Any]:
    """
    Return the default-injecting validator class for a schema's draft.

    Schemas without a recognized ``$schema`` are handled as Draft 4.
    """
    base = jsonschema.validators.validator_for(schema or {}, default=jsonschema.Draft4Validator)
    return _validator_class_for(base)


# =============================================================================
# Compilation
# =============================================================================


def set_additional_properties_default(schema: Any, value: bool = False) -> Any:
    """
    Default ``additionalProperties`` wherever properties are declared.

    Applies to the schema itself and recursively to ``items``,
    ``properties``, ``patternProperties`` and ``additionalProperties``.
    """
    if not isinstance(schema, dict):
        return schema
    if ("properties" in schema or "patternProperties" in schema) and "additionalProperties" not in schema:
        schema["additionalProperties"] = value
    if schema.get("items"):
        set_additional_properties_default(schema["items"], value)
    for key in ("properties", "patternProperties"):
        for subschema in (schema.get(key) or {}).values():
            set_additional_properties_default(subschema, value)
    if isinstance(schema.get("additionalProperties"), dict):
        set_additional_properties_default(schema["additionalProperties"], value)
    return schema


def set_first_level_defaults(schema: Mapping[str, Any], instance: Any) -> None:
    """Fill missing first-level object/array properties with ``{}`` / ``[]``."""
    if not isinstance(instance, dict):
        return
    for name, subschema in (schema.get("properties") or {}).items():
        if name in instance or not isinstance(subschema, Mapping):
            continue
        if subschema.get("type") == "object":
            instance[name] = {}
        elif subschema.get("type") == "array":
            instance[name] = []


def json_pointer(path: Any) -> str:
    return "".join("/" + str(part).replace("~", "~0").replace("/", "~1") for part in path)


def validation_error(
    message: str, errors: list[ValidationError], root_pointer: str = ""
) -> SchemaValidationError:
    """
    Build a ``SchemaValidationError`` from ``jsonschema`` errors.

    The message reads ``<message>: <pointer> <reason>, ... [<params>, ...]``.
    """
    issues = [
        {
            "pointer": root_pointer + json_pointer(error.absolute_path),
            "message": error.message,
            "params": {str(error.validator): error.validator_value},
        }
        for error in errors
    ]
    text = ", ".join(f"{issue['pointer']} {issue['message']}".strip() for issue in issues)
    params = json.dumps([issue["params"] for issue in issues], default=str)
    return SchemaValidationError(f"{message}: {text} {params}", issues)


class CompiledSchema:
    """
    A compiled schema ready to validate (and complete) documents.

    Args:
        schema: The prepared schema
        source: Artifact description used in messages
        expand_first_level_defaults: Fill first-level ``{}``/``[]`` defaults
    """

    def __init__(self, schema: dict[str, Any], source: str, expand_first_level_defaults: bool = True) -> None:
        self.schema = schema
        self.source = source
        self.expand_first_level_defaults = expand_first_level_defaults
        self._validator = create_validator_class(schema)(schema, format_checker=create_format_checker())

    def iter_errors(self, instance: Any) -> list[ValidationError]:
        """Complete ``instance`` in place and return its violations, ordered by path."""
        if self.expand_first_level_defaults:
            set_first_level_defaults(self.schema, instance)
        return sorted(self._validator.iter_errors(instance), key=lambda err: [str(p) for p in err.absolute_path])

    def is_valid(self, instance: Any) -> bool:
        return not self.iter_errors(instance)

    def validate(self, instance: Any, message: str, root_pointer: str = "") -> None:
        """
        Validate ``instance``, completing it with defaults.

        Raises:
            SchemaValidationError: If the document does not match
        """
        errors = self.iter_errors(instance)
        if errors:
            raise validation_error(message, errors, root_pointer)


def compile_schema(
    schema: Mapping[str, Any],
    source: str,
    *,
    prohibit_additional_properties: bool = True,
    expand_first_level_defaults: bool = True,
) -> CompiledSchema:
    """
    Compile a schema shipped with an artifact.

    The schema is copied before it is prepared.

    Raises:
        SchemaError: If ``$schema`` is missing or the schema is invalid
    """
    if not schema.get("$schema"):
        raise SchemaError(f'JSON schema for artifact "{source}" is missing "$schema" property')

    prepared = copy.deepcopy(dict(schema))
    if prohibit_additional_properties:
        set_additional_properties_default(prepared)
    try:
        create_validator_class(prepared).check_schema(prepared)
    except JsonSchemaError as e:
        raise SchemaError(f'Failed to compile JSON schema for artifact "{source}":\n{e.message}') from e
    logger.debug(f"Compiled JSON schema for {source}")
    return CompiledSchema(prepared, source, expand_first_level_defaults)
