# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
#
# The sync API of kpf is generated from the async one. Every public coroutine is sent to
# an event loop living in a daemon thread, so sync callers work even when they are already
# inside an event loop themselves (async tests, editor plugins, notebooks).
from __future__ import annotations

import inspect
import sys
import threading
from functools import partial, wraps
from typing import Awaitable, Callable, Optional, TypeVar

if sys.version_info >= (3, 10):
    from typing import ParamSpec
else:
    from typing_extensions import ParamSpec

import anyio
import anyio.from_thread

T = TypeVar("T")
C = TypeVar("C")
P = ParamSpec("P")


class Portal:
    """Singleton owning the thread that runs the sync API's event loop.

    See https://anyio.readthedocs.io/en/stable/threads.html#calling-asynchronous-code-from-an-external-thread
    """

    _instance: Optional[Portal] = None
    _lock = threading.Lock()
    _portal: anyio.from_thread.BlockingPortal
    _ready: threading.Event
    thread: threading.Thread

    def __new__(cls) -> Portal:
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._ready = threading.Event()
                instance.thread = threading.Thread(
                    target=anyio.run,
                    args=[instance._run],
                    name="KpfSyncRunnerThread",
                    daemon=True,
                )
                instance.thread.start()
                cls._instance = instance
        return cls._instance

    async def _run(self) -> None:
        async with anyio.from_thread.BlockingPortal() as portal:
            self._portal = portal
            self._ready.set()
            await portal.sleep_until_stopped()

    def call(self, func: Callable[..., Awaitable[T]], *args) -> T:
        """Run a coroutine function in the portal loop and block until it returns."""
        self._ready.wait()
        return self._portal.call(func, *args)


def run_sync(coro: Callable[P, Awaitable[T]]) -> Callable[P, T]:
    """Wrap a coroutine function in a function that blocks until it has executed.

    Raises:
        TypeError: ``coro`` is not a coroutine function.
    """
    if not inspect.iscoroutinefunction(coro):
        raise TypeError(f"Expected coroutine function, got {coro.__class__.__name__}")

    @wraps(coro)
    def run_sync_inner(*args: P.args, **kwargs: P.kwargs) -> T:
        return Portal().call(partial(coro, *args, **kwargs))

    return run_sync_inner


def sync(source: C) -> C:
    """Replace the public coroutines of a class with blocking methods.

    Private names and names starting with ``async_`` keep their coroutines, so the
    converted methods can still await them internally.

    Examples:
        >>> class Foo:
        ...     async def async_bar(self):
        ...         return 42
        ...     async def bar(self):
        ...         return await self.async_bar()
        ...
        >>> SyncFoo = sync(Foo)
        >>> SyncFoo().bar()
        42
    """
    setattr(source, "_asyncio", False)  # noqa: B010
    for name in dir(source):
        if name.startswith("_") or name.startswith("async_"):
            continue
        method = getattr(source, name)
        if inspect.iscoroutinefunction(method):
            setattr(source, name, run_sync(method))
    return source
