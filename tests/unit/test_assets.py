"""Tests for asset lookup."""

from __future__ import annotations

import pytest

from manifestor.core.assets import AssetResolver
from manifestor.core.options import Options


def resolver_for(existing: set[str]) -> AssetResolver:
    return AssetResolver(Options(file_exists=lambda path: path in existing))


class TestResolveAssets:
    @pytest.mark.asyncio
    async def test_finds_assets_in_artifact_directory(self, artifact) -> None:
        widget = artifact("widgets", "greeter", "widgets/greeter")
        resolver = resolver_for({"widgets/greeter/messages.json"})

        assets = await resolver.resolve_assets(widget, ["messages.json", "missing.json"])

        assert assets == {"messages.json": "widgets/greeter/messages.json", "missing.json": None}

    @pytest.mark.asyncio
    async def test_no_asset_paths(self, artifact) -> None:
        widget = artifact("widgets", "greeter")
        assert await resolver_for(set()).resolve_assets(widget, []) == {}


class TestResolveThemedAssets:
    @pytest.mark.asyncio
    async def test_artifact_theme_folder_wins(self, artifact) -> None:
        widget = artifact("widgets", "greeter", "widgets/greeter")
        theme = artifact("themes", "blue.theme", "themes/blue.theme")
        resolver = resolver_for(
            {
                "widgets/greeter/blue.theme/greeter.html",
                "themes/blue.theme/widgets/greeter/greeter.html",
            }
        )

        assets = await resolver.resolve_themed_assets(widget, theme, ["greeter.html"])

        assert assets == {"greeter.html": "widgets/greeter/blue.theme/greeter.html"}

    @pytest.mark.asyncio
    async def test_theme_folder_is_second_choice(self, artifact) -> None:
        widget = artifact("widgets", "greeter", "widgets/greeter")
        theme = artifact("themes", "blue.theme", "themes/blue.theme")
        resolver = resolver_for({"themes/blue.theme/widgets/greeter/css/greeter.css"})

        assets = await resolver.resolve_themed_assets(widget, theme, ["css/greeter.css", "greeter.html"])

        assert assets == {
            "css/greeter.css": "themes/blue.theme/widgets/greeter/css/greeter.css",
            "greeter.html": None,
        }

    @pytest.mark.asyncio
    async def test_themes_are_searched_in_order(self, artifact) -> None:
        layout = artifact("layouts", "one", "layouts/one")
        blue = artifact("themes", "blue.theme", "themes/blue.theme")
        default = artifact("themes", "default.theme", "lib/default.theme")
        resolver = resolver_for(
            {
                "layouts/one/default.theme/one.html",
                "themes/blue.theme/layouts/one/css/one.css",
                "layouts/one/default.theme/css/one.css",
            }
        )

        assets = await resolver.resolve_themed_assets(layout, [blue, default], ["one.html", "css/one.css"])

        assert assets == {
            "one.html": "layouts/one/default.theme/one.html",
            "css/one.css": "themes/blue.theme/layouts/one/css/one.css",
        }

    @pytest.mark.asyncio
    async def test_async_file_exists(self, artifact) -> None:
        async def file_exists(path: str) -> bool:
            return path.endswith(".html")

        widget = artifact("widgets", "greeter", "widgets/greeter")
        theme = artifact("themes", "default.theme", "themes/default.theme")
        resolver = AssetResolver({"file_exists": file_exists})

        assets = await resolver.resolve_themed_assets(widget, theme, ["greeter.html"])

        assert assets == {"greeter.html": "widgets/greeter/default.theme/greeter.html"}
