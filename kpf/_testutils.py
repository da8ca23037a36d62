# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import contextlib
import os
import shlex
from typing import Generator, Sequence, Union

from kpf._exceptions import ProcessLaunchError
from kpf._process import CommandResult
from kpf._types import CommandType

Response = Union[CommandResult, Exception]


@contextlib.contextmanager
def set_env(**environ: str) -> Generator[None, None, None]:
    """Temporarily sets the process environment variables.

    Args:
        **environ: Keyword arguments representing the environment variables to set.

    Examples:
        >>> with set_env(KPF_TIMEOUT='5'):
        ...     "KPF_TIMEOUT" in os.environ
        True

        >>> "KPF_TIMEOUT" in os.environ
        False

    """
    old_environ = dict(os.environ)
    os.environ.update(environ)
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(old_environ)


class FakeRunner:
    """A stand-in for :class:`kpf._process.ProcessRunner` that never starts a process.

    Responses are registered for a command prefix; the longest registered prefix of
    a command wins. Commands without a response fail with :class:`ProcessLaunchError`,
    as an executable that is not installed would.

    Examples:
        >>> runner = FakeRunner()
        >>> runner.namespaces("default", "review-1")
        >>> runner.processes("/usr/bin/vpn-tcp port-forward --namespace default")
    """

    def __init__(self, tunnel_cli: str = "/usr/local/bin/mayo") -> None:
        self.tunnel_cli = tunnel_cli
        self.responses: dict[tuple[str, ...], Response] = {}
        self.calls: list[list[str]] = []
        self.spawned: list[list[str]] = []
        self.spawn_response: Response = CommandResult(args=[], returncode=None)
        self.processes()

    def respond(
        self,
        prefix: Sequence[str],
        stdout: str = "",
        returncode: int = 0,
        stderr: str = "",
        error: Exception | None = None,
    ) -> None:
        self.responses[tuple(prefix)] = error or CommandResult(
            args=list(prefix), returncode=returncode, stdout=stdout, stderr=stderr
        )

    def processes(self, *lines: str) -> None:
        """Set the process table, one command line per process."""
        self.respond(["ps"], stdout="".join(f"{line}\n" for line in ("ps -eo args", *lines)))

    def namespaces(self, *names: str, returncode: int = 0) -> None:
        self.respond(
            ["kubectl", "get", "namespaces"],
            stdout="".join(f"{name}\n" for name in names),
            returncode=returncode,
        )

    def releases(self, namespace: str, stdout: str, returncode: int = 0) -> None:
        self.respond(
            ["helm", "list", "--namespace", namespace],
            stdout=stdout,
            returncode=returncode,
        )

    def _match(self, command: list[str]) -> Response:
        for length in range(len(command), 0, -1):
            response = self.responses.get(tuple(command[:length]))
            if response is not None:
                return response
        return ProcessLaunchError(f"Unable to launch {command[0]}", command=command)

    def commands(self, executable: str) -> list[list[str]]:
        return [c for c in self.calls + self.spawned if c[0] == executable]

    async def run(
        self,
        command: CommandType,
        *,
        shell: bool = False,
        timeout: float | None = None,
        check: bool = False,
    ) -> CommandResult:
        command = shlex.split(command) if isinstance(command, str) else list(command)
        self.calls.append(command)
        response = self._match(command)
        if isinstance(response, Exception):
            raise response
        result = CommandResult(
            args=command,
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )
        if check:
            result.check_returncode()
        return result

    async def spawn(
        self, command: Sequence[str], *, grace: float | None = None
    ) -> CommandResult:
        command = list(command)
        self.spawned.append(command)
        if isinstance(self.spawn_response, Exception):
            raise self.spawn_response
        return CommandResult(args=command, returncode=self.spawn_response.returncode)
