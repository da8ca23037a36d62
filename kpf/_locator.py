# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
from __future__ import annotations

import logging
import os
import pathlib
from typing import Optional

import anyio.to_thread

from ._types import PathType

logger = logging.getLogger(__name__)


def find_config_file(root: PathType, namespace: str) -> Optional[pathlib.Path]:
    """Return the first file below ``root`` whose name contains ``namespace``.

    Directories are visited in the order the filesystem lists them, so the
    result is not sorted. Unreadable directories are skipped.
    """
    if not namespace or os.sep in namespace:
        return None
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            if namespace in filename:
                path = pathlib.Path(dirpath) / filename
                if path.is_file():
                    return path
    return None


class ConfigLocator:
    """Find the port-forward configuration file written for a namespace."""

    def __init__(self, search_root: PathType) -> None:
        self.search_root = pathlib.Path(search_root)

    async def locate(self, namespace: Optional[str]) -> Optional[pathlib.Path]:
        if not namespace:
            return None
        path = await anyio.to_thread.run_sync(
            find_config_file, self.search_root, namespace
        )
        logger.debug(f"Configuration for {namespace} in {self.search_root}: {path}")
        return path
