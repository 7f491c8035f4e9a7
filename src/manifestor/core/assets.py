"""
Asset lookup for artifacts, optionally per theme.

An asset path is tried below each search path prefix in order; the first
existing file wins. Assets that exist nowhere map to ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .ir import Artifact
from .options import Options

logger = logging.getLogger(__name__)


class AssetResolver:
    """
    Finds asset files of artifacts.

    Args:
        options: ``Options`` instance (or keyword mapping); only
            ``file_exists`` is used
    """

    def __init__(self, options: Options | Mapping[str, Any] | None = None) -> None:
        self.options = Options.coerce(options)

    async def resolve_assets(self, artifact: Artifact, asset_paths: Sequence[str]) -> dict[str, str | None]:
        """
        Look up assets relative to the artifact's own directory.

        Returns:
            Mapping of each asset path to the existing file, or ``None``
        """
        return await self._lookup_assets([artifact.path], asset_paths)

    async def resolve_themed_assets(
        self,
        artifact: Artifact,
        theme: Artifact | Sequence[Artifact],
        asset_paths: Sequence[str],
    ) -> dict[str, str | None]:
        """
        Look up themed assets of an artifact.

        For every theme (in order) the artifact's own theme folder is tried
        before the theme's folder for the artifact:

        1. ``<artifact.path>/<theme.name>``
        2. ``<theme.path>/<artifact.category>/<artifact.name>``

        Returns:
            Mapping of each asset path to the first existing file, or ``None``
        """
        themes = [theme] if isinstance(theme, Artifact) else list(theme)
        search_paths = [
            path
            for t in themes
            for path in (
                f"{artifact.path}/{t.name}",
                f"{t.path}/{artifact.category.value}/{artifact.name}",
            )
        ]
        return await self._lookup_assets(search_paths, asset_paths)

    async def _lookup_assets(
        self, search_paths: Sequence[str], asset_paths: Sequence[str]
    ) -> dict[str, str | None]:
        found = await asyncio.gather(*(self._lookup_asset(search_paths, path) for path in asset_paths))
        return dict(zip(asset_paths, found, strict=True))

    async def _lookup_asset(self, search_paths: Sequence[str], asset_path: str) -> str | None:
        for prefix in search_paths:
            candidate = f"{prefix}/{asset_path}"
            if await self.options.file_exists(candidate):
                return candidate
        logger.debug(f"Asset {asset_path} not found in {', '.join(search_paths) or '(no search paths)'}")
        return None
