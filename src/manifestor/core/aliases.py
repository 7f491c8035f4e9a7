"""
Alias maps: every name and ref of an artifact mapped to its list index.
"""

from __future__ import annotations

from collections.abc import Sequence

from .ir import Artifact, ArtifactCollection


def build_entry_aliases(artifacts: Sequence[Artifact]) -> dict[str, int]:
    """Map the name and every ref of each artifact to its index in the list."""
    aliases: dict[str, int] = {}
    for index, artifact in enumerate(artifacts):
        for ref in (artifact.name, *artifact.refs):
            aliases[ref] = index
    return aliases


def build_aliases(artifacts: ArtifactCollection) -> dict[str, dict[str, int]]:
    """Build the alias maps of all categories."""
    return {category.value: build_entry_aliases(items) for category, items in artifacts.items()}
