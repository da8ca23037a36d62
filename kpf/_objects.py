# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
"""Data model for port-forward sessions and the actions offered to the user."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

UNKNOWN_NAMESPACE = "unknown"


@dataclass(frozen=True)
class ReleaseEntry:
    """A release deployed in a review namespace."""

    release: str
    namespace: str

    @property
    def label(self) -> str:
        return f"{self.namespace}/{self.release}"


@dataclass(frozen=True)
class SessionState:
    """Whether a port-forward tunnel is running, and for which namespace.

    An active session whose namespace could not be resolved has ``namespace=None``.
    """

    active: bool = False
    namespace: Optional[str] = None

    @classmethod
    def inactive(cls) -> SessionState:
        return cls(active=False)

    @classmethod
    def activated(cls, namespace: Optional[str]) -> SessionState:
        return cls(active=True, namespace=namespace)

    @property
    def display_namespace(self) -> str:
        return self.namespace or UNKNOWN_NAMESPACE

    def __str__(self) -> str:
        if not self.active:
            return "inactive"
        return f"active in {self.display_namespace}"


@dataclass(frozen=True)
class Catalog:
    """Namespaces a tunnel can be started in."""

    plain: List[str] = field(default_factory=list)
    reviews: List[ReleaseEntry] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.plain or self.reviews)


@dataclass(frozen=True)
class StartPlain:
    namespace: str

    @property
    def label(self) -> str:
        return self.namespace


@dataclass(frozen=True)
class StartReview:
    namespace: str
    release: str

    @property
    def label(self) -> str:
        return f"{self.namespace}/{self.release}"


@dataclass(frozen=True)
class Stop:
    """Tear down port-forwarding.

    The tunnel CLI has no namespace-scoped stop, so this stops every session.
    ``namespace`` is the session that was active when the menu was built.
    """

    namespace: Optional[str]

    @property
    def label(self) -> str:
        return "Stop port-forward (all sessions)"


@dataclass(frozen=True)
class OpenConfig:
    namespace: Optional[str]

    @property
    def label(self) -> str:
        return "Open your configuration file"


@dataclass(frozen=True)
class HelpLink:
    label: str
    url: str


ActionItem = Union[StartPlain, StartReview, Stop, OpenConfig, HelpLink]


@dataclass(frozen=True)
class Menu:
    """The actions available for one session state.

    Iterating a menu yields its :data:`ActionItem` objects in display order.
    """

    state: SessionState
    items: List[ActionItem] = field(default_factory=list)

    def __iter__(self) -> Iterator[ActionItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def namespace_title(self) -> str:
        if self.state.active:
            return f"Port-Forward (Active in {self.state.display_namespace})"
        return "Port-Forward (Namespace)"

    @property
    def review_title(self) -> str:
        return "Port-Forward (Review)"

    @property
    def help_title(self) -> str:
        return "Contacts & Help"

    @property
    def session_items(self) -> List[ActionItem]:
        return [i for i in self.items if isinstance(i, (StartPlain, Stop, OpenConfig))]

    @property
    def review_items(self) -> List[StartReview]:
        return [i for i in self.items if isinstance(i, StartReview)]

    @property
    def help_items(self) -> List[HelpLink]:
        return [i for i in self.items if isinstance(i, HelpLink)]


class EventKind(enum.Enum):
    STARTED = "started"
    REVIEW_STARTED = "review-started"
    STOPPED = "stopped"
    CONFIG_OPENED = "config-opened"
    CONFIG_NOT_FOUND = "config-not-found"
    CATALOG_UNAVAILABLE = "catalog-unavailable"
    FAILED = "failed"

    @property
    def is_failure(self) -> bool:
        return self in (
            EventKind.CONFIG_NOT_FOUND,
            EventKind.CATALOG_UNAVAILABLE,
            EventKind.FAILED,
        )


@dataclass(frozen=True)
class Event:
    """A lifecycle event for the notification sink."""

    kind: EventKind
    namespace: Optional[str] = None
    release: Optional[str] = None
    message: str = ""
