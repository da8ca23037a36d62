# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import functools
import inspect
from contextlib import suppress
from typing import Optional, Tuple, Type

import anyio
import typer
from rich.console import Console

err_console = Console(stderr=True)


def fail(error: Exception) -> typer.Exit:
    """Print ``error`` to stderr and return the exit to raise."""
    err_console.print(f"error: {error}", markup=False, highlight=False)
    return typer.Exit(code=1)


def _anyio_run(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        with suppress(KeyboardInterrupt):
            return anyio.run(functools.partial(f, *args, **kwargs))

    return wrapper


def _exit_on(f, errors: Tuple[Type[Exception], ...]):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except errors as e:
            raise fail(e) from e

    return wrapper


def register(
    app: typer.Typer,
    func,
    name: Optional[str] = None,
    errors: Tuple[Type[Exception], ...] = (),
) -> None:
    """Add a command or a sub-app to ``app``.

    Coroutine commands run in their own event loop. Exceptions listed in ``errors``
    are printed and turned into exit code 1.
    """
    if isinstance(func, typer.Typer):
        assert name, "Typer sub-app must have a name."
        app.add_typer(func, name=name)
        return
    if inspect.iscoroutinefunction(func):
        func = _anyio_run(func)
    if errors:
        func = _exit_on(func, errors)
    app.command(name)(func)
