"""
Validators for flows, pages, widgets and feature configuration.

``create()`` compiles the artifact schemas bundled with manifestor (or the
ones passed in) and the feature schemas declared by widget descriptors.
Feature validators are registered under every ref of their artifact.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from importlib import resources
from typing import Any

from .ir import Artifact
from .schema import CompiledSchema, compile_schema

logger = logging.getLogger(__name__)

SCHEMA_NAMES = ("page", "flow", "widget")


def load_bundled_schema(name: str) -> dict[str, Any]:
    """Load one of the schemas shipped in ``manifestor/schemas``."""
    text = resources.files("manifestor").joinpath("schemas", f"{name}.json").read_text(encoding="utf-8")
    return json.loads(text)


@dataclass
class FeatureValidators:
    """Feature validators by ref. Composition features are compiled per instance."""

    widgets: dict[str, CompiledSchema | None] = field(default_factory=dict)


@dataclass
class Validators:
    """
    The validators used while checking and assembling artifacts.

    Attributes:
        page: Validates page and composition definitions
        flow: Validates flow definitions
        widget: Validates widget descriptors
        features: Widget feature validators, by ref
    """

    page: CompiledSchema | None = None
    flow: CompiledSchema | None = None
    widget: CompiledSchema | None = None
    features: FeatureValidators = field(default_factory=FeatureValidators)

    def compile_features(self, schema: Mapping[str, Any], source: str) -> CompiledSchema:
        """Compile a feature schema (strict properties, first-level defaults)."""
        return compile_schema(schema, source)


def compile_schemas(
    artifacts: Iterable[Artifact],
    get: Callable[[Artifact], Mapping[str, Any] | None],
) -> dict[str, CompiledSchema]:
    """Compile the schema each artifact provides and register it under all its refs."""
    compiled: dict[str, CompiledSchema] = {}
    for artifact in artifacts:
        schema = get(artifact)
        if not schema:
            continue
        refs = artifact.refs or [artifact.name]
        validate = compile_schema(schema, ", ".join(refs))
        for ref in refs:
            compiled[ref] = validate
    return compiled


def create(
    *,
    schemas: Mapping[str, Mapping[str, Any]] | None = None,
    widgets: Iterable[Artifact] = (),
) -> Validators:
    """
    Create validators.

    Args:
        schemas: Artifact schemas by name (``page``, ``flow``, ``widget``);
            names not given fall back to the bundled schemas
        widgets: Widget artifacts whose descriptors declare ``features``
    """
    schemas = dict(schemas or {})
    compiled: dict[str, CompiledSchema] = {}
    for name in SCHEMA_NAMES:
        schema = schemas.get(name) or load_bundled_schema(name)
        compiled[name] = compile_schema(schema, f"{name}.json", expand_first_level_defaults=False)

    widget_features = compile_schemas(widgets, lambda widget: (widget.descriptor or {}).get("features"))
    logger.debug(f"Compiled feature schemas for {len(widget_features)} widget refs")

    return Validators(
        page=compiled["page"],
        flow=compiled["flow"],
        widget=compiled["widget"],
        features=FeatureValidators(widgets=dict(widget_features)),
    )
