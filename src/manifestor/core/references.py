"""
Scheme-qualified reference resolution.

A reference as written in a flow, page or descriptor may carry a scheme
prefix (``scheme:path``):

- ``local:`` resolves relative to the lookup base path of the category
- ``module:`` (alias ``amd:``) resolves relative to the project root
- no scheme tries ``local`` first and falls back to ``module``
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from .errors import ResolutionError, UnknownSchemeError
from .memo import wrap

logger = logging.getLogger(__name__)

# Failures of the resolve callback that make the default scheme fall back
FALLBACK_ERRORS: tuple[type[BaseException], ...] = (ResolutionError, OSError, LookupError)


class Scheme(StrEnum):
    """Reference schemes."""

    DEFAULT = "default"
    LOCAL = "local"
    MODULE = "module"
    AMD = "amd"  # backwards compatible spelling of MODULE


def parse_ref(ref: str) -> tuple[Scheme, str]:
    """
    Split a reference into its scheme and path.

    Raises:
        UnknownSchemeError: If the prefix names no known scheme
    """
    prefix, separator, path = ref.partition(":")
    if not separator:
        return Scheme.DEFAULT, ref
    if not prefix:
        return Scheme.DEFAULT, path
    try:
        return Scheme(prefix), path
    except ValueError:
        raise UnknownSchemeError(prefix, ref) from None


class ReferenceResolver:
    """
    Turns references into concrete paths through an injected callback.

    Args:
        resolve: Callback mapping a project-relative path to a concrete path.
            May be synchronous or a coroutine function; must raise (for
            example ``ResolutionError``) when nothing exists at the path.
    """

    def __init__(self, resolve: Callable[[str], Any]) -> None:
        self._resolve = wrap(resolve)
        self._lookups: dict[Scheme, Callable[[str, str], Awaitable[str]]] = {
            Scheme.DEFAULT: self._lookup_default,
            Scheme.LOCAL: self._lookup_local,
            Scheme.MODULE: self._lookup_module,
            Scheme.AMD: self._lookup_module,
        }

    async def resolve(self, ref: str, lookup_path: str) -> str:
        """
        Resolve a reference below the given lookup base path.

        Args:
            ref: Reference, optionally scheme-qualified
            lookup_path: Base path for ``local`` lookups (e.g. ``./widgets``)

        Returns:
            The concrete path returned by the resolve callback

        Raises:
            UnknownSchemeError: If the scheme is not supported
            ResolutionError: (or the callback's own error) if nothing matches
        """
        scheme, path = parse_ref(ref)
        return await self._lookups[scheme](path, lookup_path)

    async def _lookup_local(self, path: str, lookup_path: str) -> str:
        return await self._resolve(posixpath.join(lookup_path, path))

    async def _lookup_module(self, path: str, lookup_path: str) -> str:
        return await self._resolve(path)

    async def _lookup_default(self, path: str, lookup_path: str) -> str:
        try:
            return await self._lookup_local(path, lookup_path)
        except FALLBACK_ERRORS as exc:
            logger.debug(f"'{path}' not found below '{lookup_path}' ({exc}), trying as module")
            return await self._lookup_module(path, lookup_path)
