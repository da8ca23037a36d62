# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
"""
This module contains `kpf`, an orchestrator for port-forward sessions into Kubernetes namespaces.

At the top level, `kpf` provides a synchronous API that wraps the asynchronous API provided by `kpf.asyncio`.
Both APIs are functionally identical with the same objects, method signatures and return values.
"""
from importlib import metadata as _metadata
from typing import Dict, Optional, Union

from . import asyncio
from ._async_utils import run_sync as _run_sync
from ._async_utils import sync as _sync
from ._config import Settings
from ._exceptions import (
    ConfigNotFound,
    KpfError,
    ParseError,
    ProcessError,
    ProcessLaunchError,
    ProcessTimeout,
    SessionActiveError,
)
from ._objects import (
    ActionItem,
    Catalog,
    Event,
    EventKind,
    HelpLink,
    Menu,
    OpenConfig,
    ReleaseEntry,
    SessionState,
    StartPlain,
    StartReview,
    Stop,
)
from ._process import CommandResult, ProcessRunner
from ._session import Session as _AsyncSession
from ._types import NotificationSink, Opener, Runner
from .asyncio import build_menu as _build_menu
from .asyncio import execute_action as _execute_action
from .asyncio import state as _state

try:
    __version__ = _metadata.version("kpf")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0"


@_sync
class Session(_AsyncSession):
    __doc__ = _AsyncSession.__doc__


def _session(
    session: Optional[Session],
    settings: Union[Settings, Dict, str, None],
    runner: Optional[Runner],
    notify: Optional[NotificationSink],
    opener: Optional[Opener],
) -> Session:
    if session is None:
        session = Session(settings=settings, runner=runner, notify=notify, opener=opener)
    return session


def state(
    session: Optional[Session] = None,
    settings: Union[Settings, Dict, str, None] = None,
    runner: Optional[Runner] = None,
    notify: Optional[NotificationSink] = None,
    opener: Optional[Opener] = None,
) -> SessionState:
    """Detect the current port-forward session.

    Args:
        session: The session to use, a new one is created from the other arguments if not provided
        settings: Settings object, dict or YAML path for a new session
        runner: Command runner for a new session
        notify: Notification sink for a new session
        opener: Path and URL opener for a new session

    Returns:
        SessionState: Whether a tunnel is active and its namespace
    """
    return _run_sync(_state)(_session(session, settings, runner, notify, opener))


def build_menu(
    session: Optional[Session] = None,
    settings: Union[Settings, Dict, str, None] = None,
    runner: Optional[Runner] = None,
    notify: Optional[NotificationSink] = None,
    opener: Optional[Opener] = None,
) -> Menu:
    """Build the port-forward menu for the current session state.

    Args:
        session: The session to use, a new one is created from the other arguments if not provided
        settings: Settings object, dict or YAML path for a new session
        runner: Command runner for a new session
        notify: Notification sink for a new session
        opener: Path and URL opener for a new session

    Returns:
        Menu: The actions to offer, in display order

    Examples:
        >>> import kpf
        >>> for item in kpf.build_menu():
        ...     print(item.label)
        default
        review-1/myrelease
        Create an issue
    """
    return _run_sync(_build_menu)(_session(session, settings, runner, notify, opener))


def execute_action(
    item: ActionItem,
    session: Optional[Session] = None,
    settings: Union[Settings, Dict, str, None] = None,
    runner: Optional[Runner] = None,
    notify: Optional[NotificationSink] = None,
    opener: Optional[Opener] = None,
) -> CommandResult:
    """Execute a menu item.

    Args:
        item: An action from :func:`build_menu`
        session: The session to use, a new one is created from the other arguments if not provided
        settings: Settings object, dict or YAML path for a new session
        runner: Command runner for a new session
        notify: Notification sink for a new session
        opener: Path and URL opener for a new session

    Returns:
        CommandResult: The result of the tunnel CLI invocation
    """
    return _run_sync(_execute_action)(
        item, _session(session, settings, runner, notify, opener)
    )


__all__ = [
    "__version__",
    "asyncio",
    "build_menu",
    "execute_action",
    "state",
    "ActionItem",
    "Catalog",
    "CommandResult",
    "ConfigNotFound",
    "Event",
    "EventKind",
    "HelpLink",
    "KpfError",
    "Menu",
    "OpenConfig",
    "ParseError",
    "ProcessError",
    "ProcessLaunchError",
    "ProcessRunner",
    "ProcessTimeout",
    "ReleaseEntry",
    "Session",
    "SessionActiveError",
    "SessionState",
    "Settings",
    "StartPlain",
    "StartReview",
    "Stop",
]
