# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable

from ._exceptions import ParseError, ProcessError, ProcessLaunchError, ProcessTimeout
from ._objects import Catalog, Event, EventKind, ReleaseEntry

if TYPE_CHECKING:
    from ._config import Settings
    from ._types import Runner

logger = logging.getLogger(__name__)

# RFC 1123 label, which is what Kubernetes accepts for namespace names
NAMESPACE_NAME = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?\Z")
# Anything that cannot be read as a flag: no leading dash, whitespace or control characters
RELEASE_NAME = re.compile(r"^[^\s\x00-\x1f\x7f-][^\s\x00-\x1f\x7f]*\Z")
HEADER_MARKER = "NAME"


def is_valid_namespace(name: str) -> bool:
    return len(name) <= 63 and bool(NAMESPACE_NAME.match(name))


def is_valid_release(name: str) -> bool:
    """Whether a release name can be passed to the tunnel CLI as an argument value."""
    return bool(RELEASE_NAME.match(name))


def split_namespaces(output: str) -> list[str]:
    """Split ``kubectl get namespaces`` output into names, keeping order."""
    return [line.strip() for line in output.split("\n") if line.strip()]


def partition_namespaces(
    namespaces: list[str], review_marker: str
) -> tuple[list[str], list[str]]:
    """Split namespaces into (plain, review) by a substring test."""
    plain, review = [], []
    for namespace in namespaces:
        (review if review_marker in namespace else plain).append(namespace)
    return plain, review


def parse_release_line(line: str) -> ReleaseEntry:
    """Parse one row of ``helm list`` output into a release entry.

    The first two whitespace separated fields are the release name and its namespace.

    Raises:
        ParseError: The row has fewer than two fields.
    """
    fields = line.replace("|", " ").split()
    if len(fields) < 2:
        raise ParseError(f"Malformed release line: {line!r}", line=line)
    return ReleaseEntry(release=fields[0], namespace=fields[1])


def parse_releases(output: str, infra_marker: str) -> list[ReleaseEntry]:
    """Parse ``helm list`` output, skipping headers, infra releases and malformed rows."""
    releases = []
    for line in output.split("\n"):
        if not line.strip() or HEADER_MARKER in line or infra_marker in line:
            continue
        try:
            releases.append(parse_release_line(line))
        except ParseError as e:
            logger.warning(f"Skipping release: {e}")
    return releases


class NamespaceCatalog:
    """List the namespaces and review releases a tunnel can be started for.

    Args:
        ``runner``: Runs ``kubectl`` and ``helm``.

        ``settings``: Executable paths and classification markers.

        ``notify`` (optional): Receives a ``CATALOG_UNAVAILABLE`` event when namespaces cannot be listed.
    """

    def __init__(
        self,
        runner: Runner,
        settings: Settings,
        notify: Callable[[Event], None] | None = None,
    ) -> None:
        self.runner = runner
        self.settings = settings
        self.notify = notify

    def _unavailable(self, message: str) -> Catalog:
        logger.warning(f"Namespace catalog unavailable: {message}")
        if self.notify:
            self.notify(Event(EventKind.CATALOG_UNAVAILABLE, message=message))
        return Catalog()

    async def namespaces(self) -> list[str]:
        result = await self.runner.run(
            [
                self.settings.kubectl,
                "get",
                "namespaces",
                "--no-headers",
                "-o",
                "custom-columns=:metadata.name",
            ]
        )
        result.check_returncode()
        return split_namespaces(result.stdout)

    async def releases(self, namespace: str) -> list[ReleaseEntry]:
        """List the releases in one review namespace, or nothing if ``helm`` fails."""
        try:
            result = await self.runner.run(
                [self.settings.helm, "list", "--namespace", namespace]
            )
        except (ProcessLaunchError, ProcessTimeout) as e:
            logger.warning(f"Unable to list releases in {namespace}: {e}")
            return []
        if result.returncode != 0:
            logger.warning(
                f"helm list in {namespace} exited with {result.returncode}: {result.stderr.strip()}"
            )
            return []
        releases = []
        for entry in parse_releases(result.stdout, self.settings.infra_release_marker):
            if entry.namespace != namespace:
                logger.warning(f"Skipping release {entry.label} listed under {namespace}")
                continue
            if not is_valid_release(entry.release):
                logger.warning(f"Ignoring invalid release name {entry.release!r}")
                continue
            releases.append(entry)
        return releases

    async def list_catalog(self) -> Catalog:
        try:
            namespaces = await self.namespaces()
        except (ProcessError, ProcessLaunchError, ProcessTimeout) as e:
            return self._unavailable(str(e))
        valid = []
        for namespace in namespaces:
            if is_valid_namespace(namespace):
                valid.append(namespace)
            else:
                logger.warning(f"Ignoring invalid namespace name {namespace!r}")
        plain, review = partition_namespaces(valid, self.settings.review_marker)
        reviews = []
        for namespace in review:
            reviews.extend(await self.releases(namespace))
        logger.debug(
            f"Found {len(plain)} namespaces and {len(reviews)} review releases"
        )
        return Catalog(plain=plain, reviews=reviews)
