"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from manifestor.cli import app


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


def write_json(path: Path, document: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document))


@pytest.fixture
def test_project(tmp_path: Path) -> Path:
    """Create a project with one flow, one page and one widget."""
    write_json(tmp_path / "flows" / "main.json", {"places": {"entry": {"page": "home"}}})
    write_json(tmp_path / "pages" / "home.json", {"layout": "one_column", "areas": {"content": [{"widget": "greeter"}]}})
    write_json(tmp_path / "layouts" / "one_column" / "layout.json", {"name": "one_column"})
    write_json(tmp_path / "widgets" / "greeter" / "widget.json", {"name": "greeter"})
    write_json(tmp_path / "laxar-uikit" / "themes" / "default.theme" / "theme.json", {})

    manifest = tmp_path / "manifestor.toml"
    manifest.write_text(
        """
[project]
name = "greeter_app"
version = "0.1.0"

[[entries]]
flows = ["main"]
themes = ["default"]
"""
    )
    return tmp_path


def manifest_args(project: Path) -> list[str]:
    return ["--manifest", str(project / "manifestor.toml")]


def test_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "manifestor" in result.stdout


def test_collect_json(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["collect", *manifest_args(test_project)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [flow["name"] for flow in data["flows"]] == ["main"]
    assert data["flows"][0]["pages"] == ["home"]
    assert [page["name"] for page in data["pages"]] == ["home"]
    assert [layout["name"] for layout in data["layouts"]] == ["one_column"]
    assert [widget["name"] for widget in data["widgets"]] == ["greeter"]
    assert [theme["name"] for theme in data["themes"]] == ["default.theme"]
    assert data["themes"][0]["refs"] == ["default"]


def test_collect_summary(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["collect", *manifest_args(test_project), "--summary"])

    assert result.exit_code == 0, result.output
    assert "Collected artifacts" in result.stdout


def test_collect_flow_option_overrides_manifest(cli_runner: CliRunner, test_project: Path) -> None:
    write_json(test_project / "flows" / "other.json", {"places": {}})

    result = cli_runner.invoke(app, ["collect", *manifest_args(test_project), "--flow", "other"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [flow["name"] for flow in data["flows"]] == ["other"]
    assert data["pages"] == []


def test_collect_missing_flow(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["collect", *manifest_args(test_project), "--flow", "missing"])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_collect_without_entries(cli_runner: CliRunner, tmp_path: Path) -> None:
    (tmp_path / "manifestor.toml").write_text('[project]\nname = "empty"\n')

    result = cli_runner.invoke(app, ["collect", *manifest_args(tmp_path)])

    assert result.exit_code == 1
    assert "No entries configured" in result.output


def test_listing_to_file(cli_runner: CliRunner, test_project: Path) -> None:
    output = test_project / "artifacts.js"
    debug_output = test_project / "debug-info.js"

    result = cli_runner.invoke(
        app,
        ["listing", *manifest_args(test_project), "--output", str(output), "--debug-info", str(debug_output)],
    )

    assert result.exit_code == 0, result.output
    listing = output.read_text()
    assert listing.startswith("export default {")
    assert listing.endswith("};\n")
    # entry pages are listed assembled
    assert '"greeter-id0"' in listing
    assert "require(" in listing
    assert debug_output.read_text().startswith("export default {")


def test_listing_invalid_page(cli_runner: CliRunner, test_project: Path) -> None:
    write_json(test_project / "pages" / "home.json", {"areas": {"content": [{"widget": "greeter", "id": "Bad"}]}})

    result = cli_runner.invoke(app, ["listing", *manifest_args(test_project)])

    assert result.exit_code == 1
    assert 'Validation failed for page "home"' in result.output


def test_listing_without_validation(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["listing", *manifest_args(test_project), "--no-validate"])

    assert result.exit_code == 0, result.output
    assert "greeter-id0" not in result.stdout
    assert result.stdout.startswith("export default {")


def test_assemble(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["assemble", "home", *manifest_args(test_project)])

    assert result.exit_code == 0, result.output
    definition = json.loads(result.stdout)
    assert definition == {
        "layout": "one_column",
        "areas": {"content": [{"widget": "greeter", "id": "greeter-id0"}]},
    }


def test_assemble_unknown_page(cli_runner: CliRunner, test_project: Path) -> None:
    result = cli_runner.invoke(app, ["assemble", "nowhere", *manifest_args(test_project)])

    assert result.exit_code == 1
    assert "is not among the collected pages" in result.output
