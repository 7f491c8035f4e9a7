"""
Filesystem adapters used when the host supplies no callbacks of its own.

All readers are asynchronous; blocking file access runs in a worker thread.
File and JSON reads are cached per path for the lifetime of the reader.
"""

from __future__ import annotations

import asyncio
import json
import logging
import posixpath
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any

from .errors import ArtifactReadError, JsonParseError, ResolutionError, make_parse_error
from .memo import shared

logger = logging.getLogger(__name__)

ReadFile = Callable[..., Awaitable[str]]
ReadJson = Callable[[str], Awaitable[Any]]


# =============================================================================
# Path resolution
# =============================================================================


def create_path_resolver(root: Path) -> Callable[[str], str]:
    """
    Create a resolve callback for references relative to a project root.

    The callback raises ``ResolutionError`` if nothing exists at the path,
    which is what lets the default reference scheme fall back to modules.
    """

    def resolve(ref: str) -> str:
        candidate = root / ref
        if not candidate.exists():
            raise ResolutionError(f'Cannot resolve "{ref}" below "{root}"', ref)
        return posixpath.normpath(candidate.as_posix())

    return resolve


def create_file_exists(file_contents: Mapping[str, Any] | None = None) -> Callable[[str], Awaitable[bool]]:
    """Create an existence probe that also knows about in-memory files."""
    known = file_contents or {}

    async def file_exists(path: str) -> bool:
        if path in known:
            return True
        return await asyncio.to_thread(Path(path).is_file)

    return file_exists


# =============================================================================
# Reading
# =============================================================================


def create_file_reader() -> ReadFile:
    """
    Create a cached text file reader.

    Returns:
        Coroutine function ``read_file(path, encoding="utf-8") -> str``
    """

    async def read_file(file_path: str, encoding: str = "utf-8") -> str:
        try:
            return await asyncio.to_thread(Path(file_path).read_text, encoding=encoding)
        except OSError as e:
            logger.error(f'Could not read file "{file_path}" ({e})')
            raise ArtifactReadError(f'Could not read file "{file_path}": {e}', file_path) from e

    return shared(read_file)


def parse_json(contents: str, file_path: str) -> Any:
    """
    Parse JSON text, reporting failures with file, line and column.

    Raises:
        JsonParseError: If the text is not valid JSON
    """
    try:
        return json.loads(contents)
    except json.JSONDecodeError as e:
        lines = contents.splitlines()
        snippet = lines[e.lineno - 1] if 0 < e.lineno <= len(lines) else None
        raise make_parse_error(
            f'Could not parse JSON file "{file_path}": {e.msg}',
            file_path,
            e.lineno,
            e.colno,
            snippet,
        ) from e


def create_json_reader(
    read_file: ReadFile, file_contents: Mapping[str, Any] | None = None
) -> ReadJson:
    """
    Create a cached JSON reader on top of a file reader.

    Args:
        read_file: Coroutine function returning the text of a file
        file_contents: Optional pre-parsed documents keyed by path

    Returns:
        Coroutine function ``read_json(path) -> Any``
    """
    known = file_contents or {}

    async def read_json(file_path: str) -> Any:
        if file_path in known:
            return known[file_path]
        contents = await read_file(file_path)
        try:
            return parse_json(contents, file_path)
        except JsonParseError as e:
            logger.error(str(e))
            logger.error("Any further problems are probably caused by the above error.")
            raise

    return shared(read_json)
