# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ._objects import SessionState

if TYPE_CHECKING:
    from ._config import Settings
    from ._types import Runner

logger = logging.getLogger(__name__)

NAMESPACE_PATTERN = re.compile(r"(?:^|\s)(?:--|-)?namespace(?:=|\s+)(\S+)")


def _process_lines(output: str, marker: str) -> list[str]:
    return [
        line
        for line in output.splitlines()
        if marker in line and not line.lstrip().startswith("grep")
    ]


def parse_session_state(output: str, process_marker: str, tunnel_marker: str) -> SessionState:
    """Infer the session state from a process listing.

    Args:
        output: One process command line per line, as printed by ``ps -eo args``.
        process_marker: Substring identifying a live tunnel process.
        tunnel_marker: Substring that, together with ``process_marker``, marks the line carrying
            the namespace. Other tunnel process lines are searched after those.

    Returns:
        ``SessionState.inactive()`` when no process carries ``process_marker``, otherwise an
        active state. The namespace is ``None`` when no ``namespace`` argument could be found.
    """
    tunnels = _process_lines(output, process_marker)
    if not tunnels:
        return SessionState.inactive()
    # Namespace comes from tunnel process lines only
    candidates = [line for line in tunnels if tunnel_marker in line] + tunnels
    for line in candidates:
        match = NAMESPACE_PATTERN.search(line)
        if match:
            return SessionState.activated(match.group(1))
    logger.warning("A tunnel process is running but its namespace could not be found")
    return SessionState.activated(None)


class SessionDetector:
    """Detect a running port-forward tunnel from the process table."""

    def __init__(self, runner: Runner, settings: Settings) -> None:
        self.runner = runner
        self.settings = settings

    async def _process_listing(self) -> str:
        result = await self.runner.run(self.settings.ps)
        result.check_returncode()
        return result.stdout

    async def is_active(self) -> bool:
        """Whether any tunnel process is alive, without resolving its namespace."""
        output = await self._process_listing()
        return bool(_process_lines(output, self.settings.process_marker))

    async def detect(self) -> SessionState:
        output = await self._process_listing()
        state = parse_session_state(
            output, self.settings.process_marker, self.settings.tunnel_marker
        )
        logger.debug(f"Session is {state}")
        return state
