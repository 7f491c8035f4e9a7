"""Shared pytest fixtures for manifestor tests."""

from __future__ import annotations

import copy
import posixpath
from collections import Counter
from typing import Any

import pytest

from manifestor.core.errors import ResolutionError
from manifestor.core.ir import Artifact, ArtifactCategory
from manifestor.core.options import Options


class InMemoryProject:
    """
    A project tree held in memory.

    ``files`` maps normalized paths to parsed JSON documents. Directories
    exist implicitly for every file below them. ``assets`` lists paths that
    ``file_exists`` reports as present.
    """

    def __init__(self, files: dict[str, Any] | None = None, assets: set[str] | None = None) -> None:
        self.files = dict(files or {})
        self.assets = set(assets or ())
        self.dirs: set[str] = set()
        self.reads: Counter[str] = Counter()
        self.resolved: Counter[str] = Counter()

    def add(self, path: str, document: Any) -> InMemoryProject:
        self.files[path] = document
        return self

    def add_dir(self, path: str) -> InMemoryProject:
        self.dirs.add(path)
        return self

    def _exists(self, path: str) -> bool:
        if path in self.files or path in self.dirs or path in self.assets:
            return True
        prefix = path + "/"
        return any(known.startswith(prefix) for known in [*self.files, *self.dirs, *self.assets])

    def resolve(self, ref: str) -> str:
        path = posixpath.normpath(ref)
        self.resolved[path] += 1
        if not self._exists(path):
            raise ResolutionError(f'Cannot resolve "{ref}"', ref)
        return path

    async def read_json(self, path: str) -> Any:
        self.reads[path] += 1
        if path not in self.files:
            raise FileNotFoundError(path)
        return copy.deepcopy(self.files[path])

    def file_exists(self, path: str) -> bool:
        return path in self.assets

    def options(self, **kwargs: Any) -> Options:
        return Options(
            resolve=self.resolve,
            read_json=self.read_json,
            file_exists=self.file_exists,
            **kwargs,
        )


@pytest.fixture
def project() -> InMemoryProject:
    """Return an empty in-memory project."""
    return InMemoryProject()


@pytest.fixture
def greeter_project() -> InMemoryProject:
    """
    Return the smallest complete application.

    One flow ``main`` with one place showing page ``home``, which holds a
    single ``greeter`` widget, plus the default theme.
    """
    return InMemoryProject(
        {
            "flows/main.json": {"places": {"entry": {"page": "home"}}},
            "pages/home.json": {"areas": {"content": [{"widget": "greeter"}]}},
            "widgets/greeter/widget.json": {"name": "greeter"},
            "laxar-uikit/themes/default.theme/theme.json": {"name": "default.theme"},
        }
    )


def make_artifact(category: ArtifactCategory | str, name: str, path: str | None = None, **kwargs: Any) -> Artifact:
    """Build an artifact with sensible defaults for tests."""
    category = ArtifactCategory(category)
    kwargs.setdefault("refs", [name])
    return Artifact(category=category, name=name, path=path or f"{category.value}/{name}", **kwargs)


@pytest.fixture
def artifact():
    """Return the artifact factory."""
    return make_artifact
