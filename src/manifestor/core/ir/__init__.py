"""
manifestor Intermediate Representation (IR) types.

All types are re-exported from this package.
"""

from .artifacts import (
    Artifact,
    ArtifactCategory,
    ArtifactCollection,
    Entry,
)

__all__ = [
    "Artifact",
    "ArtifactCategory",
    "ArtifactCollection",
    "Entry",
]
