# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import logging
import pathlib
from typing import TYPE_CHECKING, Dict, Optional, Union

from ._catalog import NamespaceCatalog, is_valid_namespace, is_valid_release
from ._config import Settings
from ._detector import SessionDetector
from ._exceptions import (
    ConfigNotFound,
    ProcessLaunchError,
    ProcessTimeout,
    SessionActiveError,
)
from ._locator import ConfigLocator
from ._objects import (
    ActionItem,
    Catalog,
    Event,
    EventKind,
    HelpLink,
    Menu,
    OpenConfig,
    SessionState,
    StartPlain,
    StartReview,
    Stop,
)
from ._process import CommandResult, ProcessRunner

if TYPE_CHECKING:
    from ._types import NotificationSink, Opener, PathType, Runner

logger = logging.getLogger(__name__)

class Session:
    """Orchestrate port-forward sessions through the tunnel CLI.

    A session builds the menu of actions for the current tunnel state and executes
    the action the user picks. Nothing is cached: every call queries the process
    table and the cluster again.

    Args:
        ``settings`` (optional): A :class:`Settings` object, a settings dict or a path to a YAML settings file.

        ``runner`` (optional): Runs external commands. Defaults to a :class:`ProcessRunner`
        using the configured timeouts.

        ``notify`` (optional): Callable receiving an :class:`Event` for every start, stop,
        config lookup and failure.

        ``opener`` (optional): Callable that opens a file path or URL for the user.

    Example:
        >>> session = await Session()
        >>> menu = await session.build_menu()
        >>> [item.label for item in menu]
        ['default', 'review-1/myrelease', 'Create an issue']
        >>> await session.execute_action(menu.items[0])
    """

    _asyncio = True

    def __init__(
        self,
        settings: Union[Settings, Dict, PathType, None] = None,
        runner: Optional[Runner] = None,
        notify: Optional[NotificationSink] = None,
        opener: Optional[Opener] = None,
    ) -> None:
        if not isinstance(settings, Settings):
            settings = Settings(settings)
        self.settings = settings
        self.runner = runner
        self.sink = notify
        self.opener = opener

    def __await__(self):
        async def f():
            await self.async_ready()
            return self

        return f().__await__()

    async def async_ready(self) -> None:
        await self.settings
        if self.runner is None:
            self.runner = ProcessRunner(
                timeout=self.settings.timeout,
                launch_grace=self.settings.launch_grace,
            )

    @property
    def detector(self) -> SessionDetector:
        assert self.runner
        return SessionDetector(self.runner, self.settings)

    @property
    def namespace_catalog(self) -> NamespaceCatalog:
        assert self.runner
        return NamespaceCatalog(self.runner, self.settings, notify=self.notify)

    @property
    def locator(self) -> ConfigLocator:
        return ConfigLocator(self.settings.search_root)

    def notify(self, event: Event) -> None:
        """Send a lifecycle event to the notification sink."""
        if event.kind.is_failure:
            logger.warning(f"{event.kind.value}: {event.message}")
        else:
            logger.info(f"{event.kind.value}: {event.message}")
        if self.sink:
            self.sink(event)

    async def state(self) -> SessionState:
        """Detect whether a tunnel is running and in which namespace."""
        return await self.async_state()

    async def async_state(self) -> SessionState:
        await self.async_ready()
        return await self.detector.detect()

    async def catalog(self) -> Catalog:
        """List namespaces and review releases, regardless of the session state."""
        await self.async_ready()
        return await self.namespace_catalog.list_catalog()

    def help_links(self) -> list[HelpLink]:
        return [HelpLink(link["label"], link["url"]) for link in self.settings.help_links]

    async def build_menu(self) -> Menu:
        """Build the actions available for the current session state.

        An active session offers :class:`Stop` and :class:`OpenConfig`. Without a session,
        one :class:`StartPlain` per plain namespace and one :class:`StartReview` per review
        release are offered. Help links are always appended.
        """
        state = await self.async_state()
        items: list[ActionItem] = []
        if state.active:
            items.extend([Stop(state.namespace), OpenConfig(state.namespace)])
        else:
            catalog = await self.namespace_catalog.list_catalog()
            items.extend(StartPlain(namespace) for namespace in catalog.plain)
            items.extend(
                StartReview(entry.namespace, entry.release) for entry in catalog.reviews
            )
        items.extend(self.help_links())
        return Menu(state=state, items=items)

    def start_command(self, item: Union[StartPlain, StartReview]) -> list[str]:
        if not is_valid_namespace(item.namespace):
            raise ValueError(f"Invalid namespace name {item.namespace!r}")
        cli = self.settings.tunnel_cli
        if isinstance(item, StartReview):
            if not is_valid_release(item.release):
                raise ValueError(f"Invalid release name {item.release!r}")
            return [
                cli,
                "port-forward-start",
                "-g",
                "-n",
                item.namespace,
                "--release-name",
                item.release,
            ]
        return [cli, "port-forward-start", "-d", "-g", "-n", item.namespace]

    def stop_command(self) -> list[str]:
        return [self.settings.tunnel_cli, "clean-up", "-y"]

    async def execute_action(self, item: ActionItem) -> CommandResult:
        """Run the command behind a menu item.

        Raises:
            SessionActiveError: A start was requested while a session is running.
            ConfigNotFound: No configuration file matches the active namespace.
            ProcessLaunchError: The tunnel CLI could not be launched.
            ProcessTimeout: The tunnel CLI did not finish in time.
        """
        await self.async_ready()
        if isinstance(item, (StartPlain, StartReview)):
            return await self.async_start(item)
        if isinstance(item, Stop):
            return await self.async_stop(item)
        if isinstance(item, OpenConfig):
            return await self.async_open_config(item)
        if isinstance(item, HelpLink):
            return self._open(item.url)
        raise TypeError(f"Unknown action {item!r}")

    async def async_start(self, item: Union[StartPlain, StartReview]) -> CommandResult:
        release = item.release if isinstance(item, StartReview) else None
        state = await self.async_state()
        if state.active:
            message = (
                f"A port-forward session is already active in {state.display_namespace}"
            )
            self.notify(
                Event(EventKind.FAILED, item.namespace, release, message=message)
            )
            raise SessionActiveError(message, namespace=state.namespace)
        try:
            command = self.start_command(item)
        except ValueError as e:
            self.notify(Event(EventKind.FAILED, item.namespace, release, message=str(e)))
            raise
        assert self.runner
        try:
            result = await self.runner.spawn(command)
        except ProcessLaunchError as e:
            self.notify(Event(EventKind.FAILED, item.namespace, release, message=str(e)))
            raise
        if not result.ok:
            self.notify(
                Event(
                    EventKind.FAILED,
                    item.namespace,
                    release,
                    message=f"Port-forward to {item.label} exited with status {result.returncode}",
                )
            )
        elif release:
            self.notify(
                Event(
                    EventKind.REVIEW_STARTED,
                    item.namespace,
                    release,
                    message=f"Port-forward started for review {item.label}",
                )
            )
        else:
            self.notify(
                Event(
                    EventKind.STARTED,
                    item.namespace,
                    message=f"Port-forward started in {item.namespace}",
                )
            )
        return result

    async def async_stop(self, item: Stop) -> CommandResult:
        assert self.runner
        try:
            result = await self.runner.run(self.stop_command())
        except (ProcessLaunchError, ProcessTimeout) as e:
            self.notify(Event(EventKind.FAILED, item.namespace, message=str(e)))
            raise
        if result.returncode != 0:
            self.notify(
                Event(
                    EventKind.FAILED,
                    item.namespace,
                    message=f"Stopping port-forward exited with status {result.returncode}",
                )
            )
        else:
            self.notify(
                Event(
                    EventKind.STOPPED,
                    item.namespace,
                    message="All port-forward sessions stopped",
                )
            )
        return result

    async def locate_config(self, namespace: Optional[str]) -> Optional[pathlib.Path]:
        """Find the configuration file of a namespace, or ``None``."""
        await self.async_ready()
        return await self.locator.locate(namespace)

    async def async_open_config(self, item: OpenConfig) -> CommandResult:
        path = await self.locator.locate(item.namespace)
        if path is None:
            message = f"No configuration file found for {item.namespace or 'unknown namespace'}"
            self.notify(Event(EventKind.CONFIG_NOT_FOUND, item.namespace, message=message))
            raise ConfigNotFound(message, namespace=item.namespace)
        result = self._open(str(path))
        self.notify(Event(EventKind.CONFIG_OPENED, item.namespace, message=str(path)))
        return result

    def _open(self, target: str) -> CommandResult:
        if self.opener:
            self.opener(target)
        return CommandResult(args=["open", target], returncode=0, stdout=target)
