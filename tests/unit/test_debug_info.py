"""Tests for the debug information listing."""

from manifestor.core.debug_info import COMPACT, DESC, FLAT, build_debug_infos
from manifestor.core.ir import ArtifactCollection


def test_pages_and_widgets(artifact) -> None:
    definition = {"areas": {"content": [{"widget": "greeter", "id": "greeter-id0"}]}}
    artifacts = ArtifactCollection(
        pages=[artifact("pages", "home", path="pages/home.json", definition=definition)],
        widgets=[artifact("widgets", "greeter", refs=["greeter", "local:greeter"], descriptor={"name": "greeter"})],
    )

    debug_info = build_debug_infos(artifacts)

    assert debug_info["aliases"] == {
        "pages": {"home": 0},
        "widgets": {"greeter": 0, "local:greeter": 0},
    }
    assert debug_info["pages"] == [
        {"name": "home", "path": "pages/home.json", COMPACT: definition, FLAT: definition}
    ]
    assert debug_info["widgets"] == [{"name": "greeter", "path": "widgets/greeter", DESC: {"name": "greeter"}}]


def test_assembled_pages_carry_composition_tree(artifact) -> None:
    compact = {"areas": {"content": [{"composition": "popup", "id": "popup-id0"}]}}
    flat = {"areas": {"content": [{"widget": "dialog", "id": "popup-id0-dialog"}]}}
    tree = {
        "id": None,
        "name": "home",
        "path": "pages/home.json",
        FLAT: flat,
        COMPACT: compact,
        "compositions": [{"id": "popup-id0", "name": "popup", "compositions": []}],
    }
    artifacts = ArtifactCollection(pages=[artifact("pages", "home", definition=flat, debug_info=tree)])

    [page] = build_debug_infos(artifacts)["pages"]

    assert page[COMPACT] == compact
    assert page[FLAT] == flat
    assert page["compositions"][0]["id"] == "popup-id0"


def test_empty_collection() -> None:
    assert build_debug_infos(ArtifactCollection()) == {
        "aliases": {"pages": {}, "widgets": {}},
        "pages": [],
        "widgets": [],
    }
