"""
Artifact listing builder.

Turns the collector's ``ArtifactCollection`` into the listing consumed by
the runtime loader:

    {
        "aliases": {"widgets": {"my-widget": 0, ...}, ...},
        "flows": [{"descriptor": ..., "definition": ...}],
        "themes": [{"descriptor": ..., "assets": ...}],
        "pages": [{"descriptor": ..., "definition": ...}],
        "layouts": [{"descriptor": ..., "assets": ...}],
        "widgets": [{"descriptor": ..., "module": ..., "assets": ...}],
        "controls": [{"descriptor": ..., "module": ..., "assets": ...}],
    }

Module and asset references are emitted as callables producing source text
(see ``manifestor.core.serialize``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .aliases import build_aliases
from .ir import Artifact, ArtifactCategory, ArtifactCollection
from .memo import wrap
from .options import Options

logger = logging.getLogger(__name__)

ASSET_KEYS = ("assets", "assetUrls", "assetsForTheme", "assetUrlsForTheme")

Substitution = Callable[[], str]


def default_require_file(module: str, loader: str | None = None) -> Substitution:
    """Render a module reference as a ``require`` call, optionally through a loader."""
    prefix = f"{loader}!" if loader else ""
    return lambda: f"require( '{prefix}{module}' )"


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def default_assets(artifact: Artifact) -> dict[str, list[str]]:
    """
    Assets every artifact of a category publishes unless configured otherwise.

    Themes publish their stylesheet. Layouts, widgets and controls publish a
    themed template and a themed stylesheet.
    """
    descriptor = artifact.descriptor or {}
    name = artifact.name
    if artifact.category == ArtifactCategory.THEMES:
        return {"assetUrls": [descriptor.get("styleSource") or f"css/{name}.css"]}
    if artifact.category in (ArtifactCategory.LAYOUTS, ArtifactCategory.WIDGETS, ArtifactCategory.CONTROLS):
        return {
            "assetsForTheme": [descriptor.get("templateSource") or f"{name}.html"],
            "assetUrlsForTheme": [descriptor.get("styleSource") or f"css/{name}.css"],
        }
    return {}


def extend_assets(descriptor: Mapping[str, Any] | None, defaults: Mapping[str, list[str]]) -> dict[str, list[str]]:
    """Append the category defaults to the asset lists a descriptor declares."""
    descriptor = descriptor or {}
    return {
        key: _as_list(descriptor.get(key)) + [path for path in defaults.get(key, []) if path]
        for key in ASSET_KEYS
    }


class ArtifactListing:
    """
    Builds the exportable artifact listing.

    Args:
        options: ``Options`` instance (or keyword mapping); the asset
            resolver is taken from it
        require_file: Callback ``(module, loader) -> substitution`` used for
            modules and assets; defaults to :func:`default_require_file`
    """

    def __init__(
        self,
        options: Options | Mapping[str, Any] | None = None,
        require_file: Callable[[str, str | None], Any] | None = None,
    ) -> None:
        self.options = Options.coerce(options)
        self.asset_resolver = self.options.asset_resolver
        self._require_file = wrap(require_file or default_require_file)

    async def require_file(self, module: str, loader: str | None = None) -> Any:
        return await self._require_file(module, loader)

    async def build_artifacts(self, artifacts: ArtifactCollection) -> dict[str, Any]:
        """Build the complete listing, including the alias maps."""
        flows, themes, pages, layouts, widgets, controls = await asyncio.gather(
            self.build_flows(artifacts.flows),
            self.build_themes(artifacts.themes),
            self.build_pages(artifacts.pages),
            self.build_layouts(artifacts.layouts, artifacts.themes),
            self.build_widgets(artifacts.widgets, artifacts.themes),
            self.build_controls(artifacts.controls, artifacts.themes),
        )
        logger.debug(f"Built listing for {sum(len(items) for _, items in artifacts.items())} artifacts")
        return {
            "aliases": self.build_aliases(artifacts),
            "flows": flows,
            "themes": themes,
            "pages": pages,
            "layouts": layouts,
            "widgets": widgets,
            "controls": controls,
        }

    def build_aliases(self, artifacts: ArtifactCollection) -> dict[str, dict[str, int]]:
        return build_aliases(artifacts)

    # =========================================================================
    # Categories
    # =========================================================================

    async def build_flows(self, flows: Sequence[Artifact]) -> list[dict[str, Any]]:
        return [self._with_definition(flow) for flow in flows]

    async def build_pages(self, pages: Sequence[Artifact]) -> list[dict[str, Any]]:
        return [self._with_definition(page) for page in pages]

    async def build_themes(self, themes: Sequence[Artifact]) -> list[dict[str, Any]]:
        return list(await asyncio.gather(*(self._with_assets(theme, []) for theme in themes)))

    async def build_layouts(
        self, layouts: Sequence[Artifact], themes: Sequence[Artifact] = ()
    ) -> list[dict[str, Any]]:
        return list(await asyncio.gather(*(self._with_assets(layout, themes) for layout in layouts)))

    async def build_widgets(
        self, widgets: Sequence[Artifact], themes: Sequence[Artifact] = ()
    ) -> list[dict[str, Any]]:
        return list(await asyncio.gather(*(self._with_module(widget, themes) for widget in widgets)))

    async def build_controls(
        self, controls: Sequence[Artifact], themes: Sequence[Artifact] = ()
    ) -> list[dict[str, Any]]:
        return list(await asyncio.gather(*(self._with_module(control, themes) for control in controls)))

    def _with_definition(self, artifact: Artifact) -> dict[str, Any]:
        return {"descriptor": self.build_descriptor(artifact), "definition": artifact.definition}

    async def _with_assets(self, artifact: Artifact, themes: Sequence[Artifact]) -> dict[str, Any]:
        return {"descriptor": self.build_descriptor(artifact), "assets": await self.build_assets(artifact, themes)}

    async def _with_module(self, artifact: Artifact, themes: Sequence[Artifact]) -> dict[str, Any]:
        module, assets = await asyncio.gather(
            self.build_module(artifact), self.build_assets(artifact, themes)
        )
        return {"descriptor": self.build_descriptor(artifact), "module": module, "assets": assets}

    # =========================================================================
    # Parts
    # =========================================================================

    def build_descriptor(self, artifact: Artifact) -> dict[str, Any]:
        return artifact.descriptor if artifact.descriptor is not None else {"name": artifact.name}

    async def build_module(self, artifact: Artifact) -> Any:
        return await self.require_file(f"{artifact.path}/{artifact.name}")

    async def build_assets(self, artifact: Artifact, themes: Sequence[Artifact] = ()) -> dict[str, Any]:
        """
        Resolve and reference the assets of an artifact.

        Unthemed assets are keyed by their relative path at the top level.
        Themed assets are looked up across all themes and placed below the
        name of the first theme. Assets that cannot be found are left out.
        """
        declared = extend_assets(artifact.descriptor, default_assets(artifact))

        plain = await self.asset_resolver.resolve_assets(
            artifact, [*declared["assets"], *declared["assetUrls"]]
        )
        assets = await self._require_assets(plain, declared["assets"], declared["assetUrls"])

        if themes:
            themed = await self.asset_resolver.resolve_themed_assets(
                artifact, list(themes), [*declared["assetsForTheme"], *declared["assetUrlsForTheme"]]
            )
            assets[themes[0].name] = await self._require_assets(
                themed, declared["assetsForTheme"], declared["assetUrlsForTheme"]
            )

        return assets

    async def _require_assets(
        self,
        resolved: Mapping[str, str | None],
        content_paths: Sequence[str],
        url_paths: Sequence[str],
    ) -> dict[str, dict[str, Any]]:
        entries: dict[str, dict[str, Any]] = {}
        for key, path in resolved.items():
            if path is None:
                continue
            if key in content_paths:
                entries[key] = {"content": await self.require_file(path, "content")}
            elif key in url_paths:
                entries[key] = {"url": await self.require_file(path, "url")}
        return entries
