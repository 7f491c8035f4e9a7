"""
Shared options for collector, asset resolver, listing and validator.

``Options`` merges user supplied lookup paths over the defaults and
provides the I/O collaborators. Collaborators the caller does not pass in
are created on first use from the filesystem adapters in
``manifestor.core.readers``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .memo import wrap
from .readers import (
    create_file_exists,
    create_file_reader,
    create_json_reader,
    create_path_resolver,
)

if TYPE_CHECKING:
    from .assets import AssetResolver

logger = logging.getLogger(__name__)

DEFAULT_PATHS: dict[str, str] = {
    "flows": "./flows",
    "themes": "./themes",
    "pages": "./pages",
    "layouts": "./layouts",
    "widgets": "./widgets",
    "controls": "./controls",
    "default-theme": "laxar-uikit/themes/default.theme",
}


class Options:
    """
    Lookup paths and I/O callbacks.

    Every callback may be synchronous or a coroutine function.

    Args:
        paths: Overrides for the category lookup paths
        root: Project root used by the default resolver
        resolve: Maps a project-relative path to a concrete path
        read_json: Reads and parses a JSON file
        read_file: Reads a text file (``read_file(path, encoding)``)
        file_exists: Existence probe for asset lookup
        asset_resolver: Replacement for the default ``AssetResolver``
        file_contents: Pre-parsed JSON documents keyed by concrete path,
            consulted by the default ``read_json`` and ``file_exists``
    """

    def __init__(
        self,
        *,
        paths: Mapping[str, str] | None = None,
        root: str | Path = ".",
        resolve: Callable[[str], Any] | None = None,
        read_json: Callable[[str], Any] | None = None,
        read_file: Callable[..., Any] | None = None,
        file_exists: Callable[[str], Any] | None = None,
        asset_resolver: AssetResolver | None = None,
        file_contents: Mapping[str, Any] | None = None,
    ) -> None:
        self.paths: dict[str, str] = {**DEFAULT_PATHS, **(paths or {})}
        self.root = Path(root)
        self.resolve = wrap(resolve or create_path_resolver(self.root))
        self.file_contents: dict[str, Any] = dict(file_contents or {})
        self._read_json = read_json
        self._read_file = read_file
        self._file_exists = file_exists
        self._asset_resolver = asset_resolver

    @classmethod
    def coerce(cls, options: Options | Mapping[str, Any] | None = None) -> Options:
        """Accept an existing ``Options`` instance, keyword mapping or nothing."""
        if isinstance(options, Options):
            return options
        return cls(**dict(options or {}))

    @cached_property
    def read_file(self) -> Callable[..., Awaitable[str]]:
        if self._read_file is not None:
            return wrap(self._read_file)
        return create_file_reader()

    @cached_property
    def read_json(self) -> Callable[[str], Awaitable[Any]]:
        if self._read_json is not None:
            return wrap(self._read_json)
        return create_json_reader(self.read_file, self.file_contents)

    @cached_property
    def file_exists(self) -> Callable[[str], Awaitable[bool]]:
        if self._file_exists is not None:
            return wrap(self._file_exists)
        return create_file_exists(self.file_contents)

    @cached_property
    def asset_resolver(self) -> AssetResolver:
        if self._asset_resolver is not None:
            return self._asset_resolver
        from .assets import AssetResolver

        return AssetResolver(self)
