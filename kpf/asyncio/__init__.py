# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
"""The `kpf` asynchronous API.

This module provides an asynchronous API for building the port-forward menu and running its actions.
"""
from kpf._catalog import NamespaceCatalog
from kpf._detector import SessionDetector
from kpf._locator import ConfigLocator
from kpf._process import ProcessRunner
from kpf._session import Session

from ._helpers import build_menu, execute_action, state

__all__ = [
    "build_menu",
    "execute_action",
    "state",
    "ConfigLocator",
    "NamespaceCatalog",
    "ProcessRunner",
    "Session",
    "SessionDetector",
]
