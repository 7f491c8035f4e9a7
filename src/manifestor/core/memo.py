"""
At-most-once execution of keyed asynchronous work.

The artifact walk follows references concurrently. A ``VisitMemo`` records
every key the moment its work is scheduled, before the worker gets a chance
to suspend, so two overlapping visits of the same reference never both do
the expensive part (path resolution and file reads).
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


class VisitMemo:
    """Maps a key to the task scheduled for its first visit."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Future[Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, key: str) -> asyncio.Future[Any] | None:
        return self._tasks.get(key)

    def record(self, key: str, task: asyncio.Future[Any]) -> None:
        self._tasks[key] = task


async def _nothing() -> list[Any]:
    return []


def once(
    worker: Callable[..., Awaitable[list[T]]], memo: VisitMemo | None = None
) -> Callable[..., Awaitable[list[T]]]:
    """
    Decorate a worker so that each key is processed only once.

    The first call for a key schedules ``worker(key, *args)`` and returns the
    pending task. Every later call with the same key yields an empty list
    right away, without waiting: the artifacts were already emitted by the
    first visit, and returning immediately lets cyclic references terminate.

    Args:
        worker: Coroutine function taking the key as its first argument
        memo: Memo to record visits in (a fresh one by default)

    Returns:
        A callable with the worker's signature returning an awaitable
    """
    visited = memo if memo is not None else VisitMemo()

    def visit(key: str, *args: Any) -> Awaitable[list[T]]:
        if key in visited:
            return _nothing()
        task = asyncio.ensure_future(worker(key, *args))
        visited.record(key, task)
        return task

    return visit


def shared(
    worker: Callable[..., Awaitable[T]], memo: VisitMemo | None = None
) -> Callable[..., Awaitable[T]]:
    """
    Decorate a worker so that calls with equal keys share one task.

    Unlike :func:`once`, repeated calls resolve to the same result as the
    first call (or fail with the same error). Used for file caches.
    """
    cache = memo if memo is not None else VisitMemo()

    def call(key: str, *args: Any) -> Awaitable[T]:
        task = cache.get(key)
        if task is None:
            task = asyncio.ensure_future(worker(key, *args))
            cache.record(key, task)
        return task

    return call


def wrap(fn: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
    """
    Wrap a callback so that it always returns an awaitable.

    Synchronous callbacks are called directly; exceptions they raise surface
    when the result is awaited. Coroutine functions pass through untouched.
    """
    if inspect.iscoroutinefunction(fn):
        return fn

    async def wrapped(*args: Any, **kwargs: Any) -> Any:
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result

    return wrapped
