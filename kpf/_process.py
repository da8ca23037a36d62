# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Sequence

import anyio

from ._exceptions import ProcessError, ProcessLaunchError, ProcessTimeout
from ._types import CommandType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 30
DEFAULT_LAUNCH_GRACE: float = 2


@dataclass
class CommandResult:
    """Result of an external command.

    Similar to subprocess.CompletedProcess. ``returncode`` is ``None`` when a
    spawned process was still running at the end of its launch grace period.
    """

    args: str | list[str]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    pid: int | None = field(default=None, compare=False)

    @property
    def running(self) -> bool:
        return self.returncode is None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 or self.returncode is None

    @property
    def first_line(self) -> str:
        """The output up to the first newline, for commands where only that line matters."""
        return self.stdout.split("\n", 1)[0]

    def check_returncode(self) -> None:
        if self.returncode:
            raise ProcessError(
                f"Command {self.args} exited with status {self.returncode}",
                returncode=self.returncode,
                stderr=self.stderr,
            )


def _describe(command: CommandType) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


class ProcessRunner:
    """Run external commands, blocking until they exit.

    Args:
        ``timeout`` (float, optional): Default timeout in seconds for :meth:`run`. ``None`` waits forever.

        ``launch_grace`` (float, optional): Default seconds :meth:`spawn` waits for a child to fail early.

    Example:
        >>> runner = ProcessRunner(timeout=5)
        >>> result = await runner.run(["kubectl", "get", "namespaces"])
        >>> result.stdout.splitlines()
        ['default', 'kube-system']
    """

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        launch_grace: float = DEFAULT_LAUNCH_GRACE,
    ) -> None:
        self.timeout = timeout
        self.launch_grace = launch_grace

    async def run(
        self,
        command: CommandType,
        *,
        shell: bool = False,
        timeout: float | None = None,
        check: bool = False,
    ) -> CommandResult:
        """Run a command to completion and capture its output as text.

        Args:
            command: An argv sequence, or a shell string when ``shell`` is set.
                Anything interpolated into a shell string must already be quoted.
            shell: Run the command through ``/bin/sh``.
            timeout: Override the runner's default timeout.
            check: Raise :class:`ProcessError` on a non-zero exit status.

        Raises:
            ProcessLaunchError: The executable could not be found or spawned.
            ProcessTimeout: The command did not finish in time and was killed.
        """
        if shell:
            if not isinstance(command, str):
                command = shlex.join(command)
        elif isinstance(command, str):
            command = shlex.split(command)
        else:
            command = list(command)
        if not command:
            raise ValueError("No command provided")
        timeout = self.timeout if timeout is None else timeout
        logger.debug(f"Running {_describe(command)} with timeout {timeout}")
        try:
            with anyio.fail_after(timeout):
                completed = await anyio.run_process(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    check=False,
                )
        except TimeoutError as e:
            raise ProcessTimeout(
                f"Command {_describe(command)} did not finish within {timeout}s",
                command=command,
                timeout=timeout or 0,
            ) from e
        except OSError as e:
            raise ProcessLaunchError(
                f"Unable to launch {_describe(command)}: {e}", command=command
            ) from e
        result = CommandResult(
            args=command,
            returncode=completed.returncode,
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
        )
        logger.debug(f"Command {_describe(command)} exited with {result.returncode}")
        if check:
            result.check_returncode()
        return result

    async def spawn(
        self, command: Sequence[str], *, grace: float | None = None
    ) -> CommandResult:
        """Start a long-lived command in its own session and leave it running.

        Waits up to ``grace`` seconds so that a command failing straight away
        is reported with its exit status. A command still running afterwards
        is returned with ``returncode=None``.

        Raises:
            ProcessLaunchError: The executable could not be found or spawned.
        """
        command = list(command)
        grace = self.launch_grace if grace is None else grace
        logger.debug(f"Spawning {_describe(command)}")
        try:
            process = await anyio.open_process(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessLaunchError(
                f"Unable to launch {_describe(command)}: {e}", command=command
            ) from e
        returncode = None
        with anyio.move_on_after(grace):
            returncode = await process.wait()
        if returncode is None:
            logger.debug(f"{_describe(command)} still running as pid {process.pid}")
        else:
            logger.debug(f"{_describe(command)} exited with {returncode}")
        return CommandResult(args=command, returncode=returncode, pid=process.pid)
