# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

from typing import Any

from kpf._objects import ActionItem, Menu, SessionState
from kpf._process import CommandResult
from kpf._session import Session


async def _session(session: Session | None, **kwargs: Any) -> Session:
    if session is None:
        session = Session(**kwargs)
    elif kwargs:
        raise ValueError("Pass either a session or session arguments, not both")
    return await session


async def state(session: Session | None = None, **kwargs: Any) -> SessionState:
    """Detect the current port-forward session.

    Args:
        session: The session to use, a new one is created from ``kwargs`` if not provided
        **kwargs: Arguments for :class:`kpf.asyncio.Session`

    Returns:
        SessionState: Whether a tunnel is active and its namespace
    """
    session = await _session(session, **kwargs)
    return await session.async_state()


async def build_menu(session: Session | None = None, **kwargs: Any) -> Menu:
    """Build the port-forward menu for the current session state.

    Args:
        session: The session to use, a new one is created from ``kwargs`` if not provided
        **kwargs: Arguments for :class:`kpf.asyncio.Session`

    Returns:
        Menu: The actions to offer, in display order

    Examples:
        >>> import kpf.asyncio
        >>> menu = await kpf.asyncio.build_menu()
        >>> print(menu.namespace_title)
        Port-Forward (Namespace)
    """
    session = await _session(session, **kwargs)
    return await Session.build_menu(session)


async def execute_action(
    item: ActionItem, session: Session | None = None, **kwargs: Any
) -> CommandResult:
    """Execute a menu item.

    Args:
        item: An action from :func:`build_menu`
        session: The session to use, a new one is created from ``kwargs`` if not provided
        **kwargs: Arguments for :class:`kpf.asyncio.Session`

    Returns:
        CommandResult: The result of the tunnel CLI invocation
    """
    session = await _session(session, **kwargs)
    return await Session.execute_action(session, item)
