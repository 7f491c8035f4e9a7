"""Tests for the artifact listing builder and alias maps."""

from __future__ import annotations

import pytest

from manifestor.core.aliases import build_aliases, build_entry_aliases
from manifestor.core.ir import ArtifactCollection
from manifestor.core.listing import (
    ArtifactListing,
    default_assets,
    default_require_file,
    extend_assets,
)
from manifestor.core.options import Options
from manifestor.core.serialize import serialize_module


@pytest.fixture
def collection(artifact) -> ArtifactCollection:
    return ArtifactCollection(
        flows=[artifact("flows", "main", "flows/main.json", definition={"places": {}})],
        themes=[
            artifact(
                "themes",
                "default.theme",
                "themes/default.theme",
                refs=["default"],
                descriptor={"name": "default.theme"},
            )
        ],
        pages=[artifact("pages", "home", "pages/home.json", definition={"areas": {}})],
        layouts=[artifact("layouts", "one", "layouts/one")],
        widgets=[
            artifact(
                "widgets",
                "greeter",
                "widgets/greeter",
                refs=["greeter", "local:greeter"],
                descriptor={"name": "greeter", "assets": ["messages.json"]},
            )
        ],
    )


EXISTING = {
    "themes/default.theme/css/default.theme.css",
    "widgets/greeter/messages.json",
    "widgets/greeter/default.theme/greeter.html",
    "themes/default.theme/widgets/greeter/css/greeter.css",
    "layouts/one/default.theme/one.html",
}


def listing_for(existing: set[str] = EXISTING, **kwargs) -> ArtifactListing:
    return ArtifactListing(Options(file_exists=lambda path: path in existing), **kwargs)


class TestAliases:
    def test_entry_aliases_cover_names_and_refs(self, artifact) -> None:
        artifacts = [
            artifact("widgets", "a", refs=["x/a", "local:x/a"]),
            artifact("widgets", "b", refs=["b"]),
        ]
        assert build_entry_aliases(artifacts) == {"a": 0, "x/a": 0, "local:x/a": 0, "b": 1}

    def test_aliases_for_every_category(self, collection) -> None:
        aliases = build_aliases(collection)
        assert aliases == {
            "flows": {"main": 0},
            "themes": {"default.theme": 0, "default": 0},
            "pages": {"home": 0},
            "layouts": {"one": 0},
            "widgets": {"greeter": 0, "local:greeter": 0},
            "controls": {},
        }


class TestDefaultAssets:
    def test_theme_stylesheet(self, artifact) -> None:
        theme = artifact("themes", "blue.theme")
        assert default_assets(theme) == {"assetUrls": ["css/blue.theme.css"]}

    def test_descriptor_sources_take_precedence(self, artifact) -> None:
        widget = artifact(
            "widgets", "greeter", descriptor={"templateSource": "tpl.html", "styleSource": "s.css"}
        )
        assert default_assets(widget) == {"assetsForTheme": ["tpl.html"], "assetUrlsForTheme": ["s.css"]}

    def test_pages_have_none(self, artifact) -> None:
        assert default_assets(artifact("pages", "home")) == {}

    def test_extend_assets(self) -> None:
        extended = extend_assets(
            {"assets": "one.json", "assetUrlsForTheme": ["extra.css"]},
            {"assetUrlsForTheme": ["css/w.css"]},
        )
        assert extended == {
            "assets": ["one.json"],
            "assetUrls": [],
            "assetsForTheme": [],
            "assetUrlsForTheme": ["extra.css", "css/w.css"],
        }


class TestRequireFile:
    def test_without_loader(self) -> None:
        assert default_require_file("widgets/a/a")() == "require( 'widgets/a/a' )"

    def test_with_loader(self) -> None:
        assert default_require_file("a.html", "content")() == "require( 'content!a.html' )"


class TestArtifactListing:
    @pytest.mark.asyncio
    async def test_flows_and_pages_carry_definitions(self, collection) -> None:
        listing = listing_for()
        assert await listing.build_flows(collection.flows) == [
            {"descriptor": {"name": "main"}, "definition": {"places": {}}}
        ]
        assert await listing.build_pages(collection.pages) == [
            {"descriptor": {"name": "home"}, "definition": {"areas": {}}}
        ]

    @pytest.mark.asyncio
    async def test_theme_assets(self, collection) -> None:
        [theme] = await listing_for().build_themes(collection.themes)

        assert theme["descriptor"] == {"name": "default.theme"}
        url = theme["assets"]["css/default.theme.css"]["url"]
        assert url() == "require( 'url!themes/default.theme/css/default.theme.css' )"

    @pytest.mark.asyncio
    async def test_widget_module_and_assets(self, collection) -> None:
        [widget] = await listing_for().build_widgets(collection.widgets, collection.themes)

        assert widget["module"]() == "require( 'widgets/greeter/greeter' )"
        assets = widget["assets"]
        assert set(assets) == {"messages.json", "default.theme"}
        assert assets["messages.json"]["content"]() == "require( 'content!widgets/greeter/messages.json' )"

        themed = assets["default.theme"]
        assert themed["greeter.html"]["content"]() == (
            "require( 'content!widgets/greeter/default.theme/greeter.html' )"
        )
        assert themed["css/greeter.css"]["url"]() == (
            "require( 'url!themes/default.theme/widgets/greeter/css/greeter.css' )"
        )

    @pytest.mark.asyncio
    async def test_missing_assets_are_left_out(self, collection) -> None:
        [layout] = await listing_for().build_layouts(collection.layouts, collection.themes)

        assert layout["descriptor"] == {"name": "one"}
        assert list(layout["assets"]["default.theme"]) == ["one.html"]

    @pytest.mark.asyncio
    async def test_without_themes_no_themed_assets(self, collection) -> None:
        [layout] = await listing_for().build_layouts(collection.layouts)
        assert layout["assets"] == {}

    @pytest.mark.asyncio
    async def test_custom_require_file(self, collection) -> None:
        listing = listing_for(require_file=lambda module, loader: f"{loader or 'js'}:{module}")
        [widget] = await listing.build_widgets(collection.widgets, collection.themes)

        assert widget["module"] == "js:widgets/greeter/greeter"
        assert widget["assets"]["messages.json"] == {"content": "content:widgets/greeter/messages.json"}

    @pytest.mark.asyncio
    async def test_build_artifacts(self, collection) -> None:
        result = await listing_for().build_artifacts(collection)

        assert list(result) == ["aliases", "flows", "themes", "pages", "layouts", "widgets", "controls"]
        assert result["aliases"]["widgets"] == {"greeter": 0, "local:greeter": 0}
        assert len(result["widgets"]) == 1
        assert result["controls"] == []

    @pytest.mark.asyncio
    async def test_listing_serializes(self, collection) -> None:
        result = await listing_for().build_artifacts(collection)
        module = serialize_module(result)

        assert module.startswith("export default {")
        assert "module: require( 'widgets/greeter/greeter' )" in module
        assert '"default.theme": {' in module
