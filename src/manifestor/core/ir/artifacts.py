"""
Artifact types for the manifestor IR.

This module contains the records produced by the artifact collector:
one ``Artifact`` per discovered flow, theme, page, layout, widget or
control, the ``Entry`` declarations that seed the walk, and the
``ArtifactCollection`` that groups everything by category.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArtifactCategory(StrEnum):
    """
    Artifact categories.

    The values double as folder names below a theme directory
    (``<theme>/<category>/<artifact>``).
    """

    FLOWS = "flows"
    THEMES = "themes"
    PAGES = "pages"
    LAYOUTS = "layouts"
    WIDGETS = "widgets"
    CONTROLS = "controls"


class Entry(BaseModel):
    """
    Starting point of an artifact walk.

    Attributes:
        flows: Flow references (relative to the flows root)
        themes: Theme references (relative to the themes root, or ``default``)
    """

    model_config = ConfigDict(frozen=True)

    flows: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=list)


class Artifact(BaseModel):
    """
    A discovered artifact.

    Sub-reference lists (``pages``, ``widgets``, ``layouts``, ``controls``)
    hold the raw references exactly as written in the source document;
    they are resolved only when the next collection phase follows them.

    Attributes:
        category: Artifact category
        name: Derived identity, unique within one category list
        path: Resolved location (file for flows/pages, directory otherwise)
        refs: Every distinct reference observed to resolve to this artifact
        desc: Path of the descriptor file, if one was read
        definition: Parsed flow/page JSON
        descriptor: Parsed theme/layout/widget/control descriptor
        debug_info: Composition tree recorded while assembling a page
    """

    model_config = ConfigDict(frozen=True)

    category: ArtifactCategory
    name: str
    path: str
    refs: list[str] = Field(default_factory=list)
    desc: str | None = None

    pages: list[str] = Field(default_factory=list)
    widgets: list[str] = Field(default_factory=list)
    layouts: list[str] = Field(default_factory=list)
    controls: list[str] = Field(default_factory=list)

    definition: dict[str, Any] | None = None
    descriptor: dict[str, Any] | None = None
    debug_info: dict[str, Any] | None = None


class ArtifactCollection(BaseModel):
    """All artifacts of one walk, grouped by category."""

    model_config = ConfigDict(frozen=True)

    flows: list[Artifact] = Field(default_factory=list)
    themes: list[Artifact] = Field(default_factory=list)
    pages: list[Artifact] = Field(default_factory=list)
    layouts: list[Artifact] = Field(default_factory=list)
    widgets: list[Artifact] = Field(default_factory=list)
    controls: list[Artifact] = Field(default_factory=list)

    def of(self, category: ArtifactCategory | str) -> list[Artifact]:
        """Return the artifact list for a category."""
        return getattr(self, ArtifactCategory(category).value)

    def by_ref(self, category: ArtifactCategory | str) -> dict[str, Artifact]:
        """Map every ref and name of a category to its artifact."""
        lookup: dict[str, Artifact] = {}
        for artifact in self.of(category):
            lookup.setdefault(artifact.name, artifact)
            for ref in artifact.refs:
                lookup[ref] = artifact
        return lookup

    def items(self) -> list[tuple[ArtifactCategory, list[Artifact]]]:
        """Return ``(category, artifacts)`` pairs in collection order."""
        return [(category, self.of(category)) for category in ArtifactCategory]
