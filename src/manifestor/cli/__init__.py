"""
manifestor CLI.

Commands:

- collect: walk the artifacts reachable from the entries
- listing: collect, validate and export the artifact listing as a module
- assemble: print one assembled page
"""

from __future__ import annotations

import asyncio
import json
import logging
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from manifestor import __version__
from manifestor.core.artifact_validator import ArtifactValidator
from manifestor.core.collector import ArtifactCollector
from manifestor.core.debug_info import build_debug_infos
from manifestor.core.errors import ManifestorError
from manifestor.core.ir import ArtifactCollection, Entry
from manifestor.core.listing import ArtifactListing
from manifestor.core.manifest import MANIFEST_FILE, ProjectManifest, load_manifest
from manifestor.core.options import Options
from manifestor.core.page_assembler import PageAssembler
from manifestor.core.serialize import serialize_module

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="manifestor - collect application artifacts and assemble pages",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        typer.echo(f"manifestor {__version__} (Python {platform.python_version()})")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """manifestor CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Project loading
# =============================================================================


ManifestOption = Annotated[
    Path, typer.Option("--manifest", "-m", help=f"Path to {MANIFEST_FILE}")
]
FlowOption = Annotated[
    list[str] | None, typer.Option("--flow", "-f", help="Entry flow (repeatable, overrides the manifest)")
]
ThemeOption = Annotated[
    list[str] | None, typer.Option("--theme", "-t", help="Entry theme (repeatable, overrides the manifest)")
]


@dataclass
class Project:
    manifest: ProjectManifest | None
    options: Options
    entries: list[Entry]
    schemas: dict[str, Any]


def _load_schemas(manifest: ProjectManifest) -> dict[str, Any]:
    schemas: dict[str, Any] = {}
    for name, file in manifest.schemas.items():
        path = manifest.root / file
        try:
            schemas[name] = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ManifestorError(f'Could not load "{name}" schema from {path}: {e}') from e
    return schemas


def load_project(manifest_path: Path, flows: list[str] | None, themes: list[str] | None) -> Project:
    """
    Build options and entries from a manifest and the command line.

    Without a manifest file the directory of ``manifest_path`` is used as
    project root with the default paths.
    """
    manifest = load_manifest(manifest_path) if manifest_path.is_file() else None
    if manifest is None:
        logger.debug(f"No manifest at {manifest_path}, using default paths")
        options = Options(root=manifest_path.parent)
        entries = []
        schemas: dict[str, Any] = {}
    else:
        options = Options(root=manifest.root, paths=manifest.paths.as_options())
        entries = manifest.entry_models()
        schemas = _load_schemas(manifest)

    if flows or themes:
        entries = [Entry(flows=flows or [], themes=themes or ["default"])]
    if not entries:
        raise ManifestorError("No entries configured: pass --flow or add [[entries]] to the manifest")
    return Project(manifest, options, entries, schemas)


def _fail(error: Exception) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


def _collect(project: Project) -> ArtifactCollection:
    return asyncio.run(ArtifactCollector(project.options).collect_artifacts(project.entries))


def _print_summary(artifacts: ArtifactCollection) -> None:
    table = Table(title="Collected artifacts")
    table.add_column("Category", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Path")
    table.add_column("Refs", style="dim")
    for category, items in artifacts.items():
        for artifact in items:
            table.add_row(category.value, artifact.name, artifact.path, ", ".join(artifact.refs))
    console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def collect(
    manifest: ManifestOption = Path(MANIFEST_FILE),
    flow: FlowOption = None,
    theme: ThemeOption = None,
    summary: Annotated[bool, typer.Option("--summary", help="Print a table instead of JSON")] = False,
) -> None:
    """Collect the artifacts reachable from the entries."""
    try:
        project = load_project(manifest, flow, theme)
        artifacts = _collect(project)
    except ManifestorError as e:
        raise _fail(e) from e

    if summary:
        _print_summary(artifacts)
        return
    typer.echo(json.dumps(artifacts.model_dump(mode="json", exclude_none=True), indent=2))


@app.command()
def listing(
    manifest: ManifestOption = Path(MANIFEST_FILE),
    flow: FlowOption = None,
    theme: ThemeOption = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the listing to this file")
    ] = None,
    debug_info: Annotated[
        Path | None, typer.Option("--debug-info", help="Also write the debug listing to this file")
    ] = None,
    validate: Annotated[
        bool, typer.Option("--validate/--no-validate", help="Validate artifacts and assemble entry pages")
    ] = True,
) -> None:
    """Collect, validate and export the artifact listing as a JavaScript module."""
    try:
        project = load_project(manifest, flow, theme)
        artifacts = _collect(project)
        if validate:
            artifacts = ArtifactValidator(project.schemas).validate_artifacts(artifacts)
        result = asyncio.run(ArtifactListing(project.options).build_artifacts(artifacts))
    except ManifestorError as e:
        raise _fail(e) from e

    module = serialize_module(result)
    if output is None:
        typer.echo(module, nl=False)
    else:
        output.write_text(module, encoding="utf-8")
        console.print(f"[green]Wrote listing to {output}[/green]")

    if debug_info is not None:
        debug_info.write_text(serialize_module(build_debug_infos(artifacts)), encoding="utf-8")


@app.command()
def assemble(
    page: Annotated[str, typer.Argument(help="Page reference, e.g. main/index")],
    manifest: ManifestOption = Path(MANIFEST_FILE),
    flow: FlowOption = None,
    theme: ThemeOption = None,
) -> None:
    """Print the assembled definition of one page as JSON."""
    try:
        project = load_project(manifest, flow, theme)
        artifacts = _collect(project)
        validators = ArtifactValidator(project.schemas).build_validators(artifacts.widgets)
        assembled = PageAssembler(validators, artifacts).assemble(page)
    except ManifestorError as e:
        raise _fail(e) from e

    typer.echo(json.dumps(assembled.definition, indent=2))


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app(standalone_mode=True)


__all__ = ["app", "main", "load_project"]
