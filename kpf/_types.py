# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from os import PathLike
from typing import (
    TYPE_CHECKING,
    Callable,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

PathType = Union[str, "PathLike[str]"]
CommandType = Union[Sequence[str], str]

if TYPE_CHECKING:
    from ._objects import Event
    from ._process import CommandResult


@runtime_checkable
class Runner(Protocol):
    """Something that can run external commands, such as :class:`kpf._process.ProcessRunner`."""

    async def run(
        self,
        command: CommandType,
        *,
        shell: bool = False,
        timeout: Optional[float] = None,
        check: bool = False,
    ) -> "CommandResult": ...

    async def spawn(
        self, command: Sequence[str], *, grace: Optional[float] = None
    ) -> "CommandResult": ...


# Receives lifecycle events, such as a desktop notifier or the CLI console.
NotificationSink = Callable[["Event"], None]

# Opens a file path or URL for the user.
Opener = Callable[[str], object]
