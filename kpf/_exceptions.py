# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

from typing import Sequence


class ProcessLaunchError(Exception):
    """Unable to find or spawn an external executable.

    Attributes:
        command: The command that could not be launched
    """

    def __init__(self, message: str, command: Sequence[str] | str = ()) -> None:
        self.command = command
        super().__init__(message)


class ProcessTimeout(Exception):
    """An external command did not finish before its timeout elapsed.

    Attributes:
        command: The command that was killed
        timeout: The timeout in seconds
    """

    def __init__(
        self, message: str, command: Sequence[str] | str = (), timeout: float = 0
    ) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(message)


class ProcessError(Exception):
    """An external command exited with a non-zero status.

    Attributes:
        returncode: The exit status of the command
        stderr: Whatever the command wrote to stderr
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ParseError(Exception):
    """Output of an external command did not have the expected shape."""

    def __init__(self, message: str, line: str = "") -> None:
        self.line = line
        super().__init__(message)


class ConfigNotFound(Exception):
    """No port-forward configuration file matches the namespace."""

    def __init__(self, message: str, namespace: str | None = None) -> None:
        self.namespace = namespace
        super().__init__(message)


class SessionActiveError(Exception):
    """A port-forward session is already running."""

    def __init__(self, message: str, namespace: str | None = None) -> None:
        self.namespace = namespace
        super().__init__(message)


KpfError = (
    ProcessLaunchError,
    ProcessTimeout,
    ProcessError,
    ParseError,
    ConfigNotFound,
    SessionActiveError,
)
