import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ManifestorError
from .ir import Entry

MANIFEST_FILE = "manifestor.toml"


@dataclass
class PathsConfig:
    """Lookup paths of the artifact categories, relative to the project root."""

    flows: str = "./flows"
    themes: str = "./themes"
    pages: str = "./pages"
    layouts: str = "./layouts"
    widgets: str = "./widgets"
    controls: str = "./controls"
    default_theme: str = "laxar-uikit/themes/default.theme"

    def as_options(self) -> dict[str, str]:
        """Paths keyed the way ``Options`` expects them."""
        return {
            "flows": self.flows,
            "themes": self.themes,
            "pages": self.pages,
            "layouts": self.layouts,
            "widgets": self.widgets,
            "controls": self.controls,
            "default-theme": self.default_theme,
        }


@dataclass
class EntryConfig:
    """An entry: flows and themes to start collecting from."""

    flows: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)

    def to_entry(self) -> Entry:
        return Entry(flows=self.flows, themes=self.themes)


@dataclass
class ProjectManifest:
    name: str
    version: str
    root: Path
    paths: PathsConfig = field(default_factory=PathsConfig)
    entries: list[EntryConfig] = field(default_factory=list)
    schemas: dict[str, str] = field(default_factory=dict)  # artifact schema name -> file

    def entry_models(self) -> list[Entry]:
        return [entry.to_entry() for entry in self.entries]


def _string_list(value: Any, key: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestorError(f"Invalid manifest: '{key}' must be a list of strings")
    return list(value)


def load_manifest(path: Path) -> ProjectManifest:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ManifestorError(f"Invalid manifest {path}: {e}") from e

    project = data.get("project", {})
    paths_data = data.get("paths", {})
    defaults = PathsConfig()

    paths_config = PathsConfig(
        flows=paths_data.get("flows", defaults.flows),
        themes=paths_data.get("themes", defaults.themes),
        pages=paths_data.get("pages", defaults.pages),
        layouts=paths_data.get("layouts", defaults.layouts),
        widgets=paths_data.get("widgets", defaults.widgets),
        controls=paths_data.get("controls", defaults.controls),
        default_theme=paths_data.get("default-theme", defaults.default_theme),
    )

    entries = [
        EntryConfig(
            flows=_string_list(entry.get("flows", []), "entries.flows"),
            themes=_string_list(entry.get("themes", []), "entries.themes"),
        )
        for entry in data.get("entries", [])
    ]

    return ProjectManifest(
        name=project.get("name", path.parent.name),
        version=project.get("version", "0.0.0"),
        root=path.parent,
        paths=paths_config,
        entries=entries,
        schemas=dict(data.get("schemas", {})),
    )


def find_manifest(start: Path) -> Path | None:
    """Find ``manifestor.toml`` in ``start`` or one of its parents."""
    for directory in [start, *start.parents]:
        candidate = directory / MANIFEST_FILE
        if candidate.is_file():
            return candidate
    return None
