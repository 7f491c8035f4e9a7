"""Core manifestor functionality: IR, collector, assets, listing, page assembly, validation."""

from . import ir
from .artifact_validator import ArtifactValidator
from .assets import AssetResolver
from .collector import ArtifactCollector, dedupe
from .debug_info import build_debug_infos
from .errors import (
    ArtifactReadError,
    CompositionCycleError,
    DuplicateIdError,
    ErrorContext,
    ExpressionError,
    ExtensionCycleError,
    InsertBeforeIdError,
    JsonParseError,
    LayoutConflictError,
    ManifestorError,
    PageAssemblyError,
    ResolutionError,
    SchemaError,
    SchemaValidationError,
    UnknownSchemeError,
)
from .expressions import ExpressionInterpolator
from .listing import ArtifactListing
from .manifest import ProjectManifest, load_manifest
from .options import Options
from .page_assembler import AssembledPage, PageAssembler
from .references import ReferenceResolver
from .serialize import serialize, serialize_module

__all__ = [
    "ir",
    "Options",
    "ReferenceResolver",
    "ArtifactCollector",
    "dedupe",
    "AssetResolver",
    "ArtifactListing",
    "ArtifactValidator",
    "PageAssembler",
    "AssembledPage",
    "ExpressionInterpolator",
    "build_debug_infos",
    "serialize",
    "serialize_module",
    "ProjectManifest",
    "load_manifest",
    "ManifestorError",
    "ErrorContext",
    "ResolutionError",
    "UnknownSchemeError",
    "ArtifactReadError",
    "JsonParseError",
    "PageAssemblyError",
    "ExtensionCycleError",
    "CompositionCycleError",
    "DuplicateIdError",
    "LayoutConflictError",
    "InsertBeforeIdError",
    "ExpressionError",
    "SchemaError",
    "SchemaValidationError",
]
