# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import copy
import os
import pathlib
import typing
from typing import Any, Dict, List, Optional, Union

import anyio
import jsonpath
import yaml

from kpf._types import PathType

DEFAULT_SETTINGS_PATH = "~/.config/kpf/config.yaml"

DEFAULTS: Dict[str, Any] = {
    "tunnel_cli": "/usr/local/bin/mayo",
    "kubectl": "kubectl",
    "helm": "helm",
    "ps": ["ps", "-eo", "args"],
    "process_marker": "vpn-tcp",
    "tunnel_marker": "port-forward",
    "review_marker": "review",
    "infra_release_marker": "gitlab",
    "search_root": "/tmp",
    "timeout": 30,
    "launch_grace": 2,
    "help_links": [
        {
            "label": "Create an issue",
            "url": "https://gitlab.wiremind.io/groups/wiremind/devops/-/issues",
        }
    ],
}

# Environment variable -> (key, converter)
ENV_OVERRIDES = {
    "KPF_TUNNEL_CLI": ("tunnel_cli", str),
    "KPF_KUBECTL": ("kubectl", str),
    "KPF_HELM": ("helm", str),
    "KPF_TIMEOUT": ("timeout", float),
    "KPF_SEARCH_ROOT": ("search_root", str),
}


def default_settings_path() -> pathlib.Path:
    return pathlib.Path(os.environ.get("KPF_CONFIG", DEFAULT_SETTINGS_PATH)).expanduser()


class Settings:
    """Settings for locating and parsing the external CLIs.

    Values come from the built-in defaults, overlaid by a YAML file and then by
    ``KPF_*`` environment variables.

    Args:
        ``path_or_dict``: A YAML file path or a dict of settings. Defaults to
        ``$KPF_CONFIG`` or ``~/.config/kpf/config.yaml``. A missing default file
        is not an error; a missing explicit file is.

    Example:
        >>> settings = await Settings({"timeout": 5})
        >>> settings.timeout
        5
    """

    def __init__(self, path_or_dict: Union[PathType, Dict, None] = None):
        self.path: Optional[pathlib.Path] = None
        self._overrides: dict = {}
        self._raw: dict = {}
        self._stored: dict = {}
        self._loaded = False

        if path_or_dict is None:
            self.path = default_settings_path()
            self._required = False
        elif isinstance(path_or_dict, dict):
            self._overrides = path_or_dict
            self._required = False
        elif isinstance(path_or_dict, (str, pathlib.Path)):
            self.path = pathlib.Path(path_or_dict).expanduser()
            self._required = True
        else:
            raise TypeError("Settings path_or_dict must be a string, path or dict.")

        self.__write_lock = anyio.Lock()

    def __await__(self):
        async def f():
            if not self._loaded:
                await self.load()
            return self

        return f().__await__()

    async def load(self) -> None:
        """(Re)read the settings file and environment."""
        data = copy.deepcopy(DEFAULTS)
        self._stored = {}
        if self.path is not None:
            apath = anyio.Path(self.path)
            if await apath.is_dir():
                raise IsADirectoryError(
                    f'Error loading settings file "{self.path}": is a directory.'
                )
            if await apath.exists():
                async with await anyio.open_file(self.path) as fh:
                    self._stored = self._validate(yaml.safe_load(await fh.read()) or {})
                    data.update(self._stored)
            elif self._required:
                raise ValueError(f"File {self.path} does not exist")
        data.update(self._validate(self._overrides))
        for env, (key, convert) in ENV_OVERRIDES.items():
            if env in os.environ:
                try:
                    data[key] = convert(os.environ[env])
                except ValueError as e:
                    raise ValueError(f"Invalid value for {env}: {e}") from e
        self._raw = data
        self._loaded = True

    @staticmethod
    def _validate(data: Any) -> dict:
        if not isinstance(data, dict):
            raise ValueError("Settings must be a mapping")
        unknown = set(data) - set(DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return data

    async def save(self, path=None) -> None:
        path = self.path if not path else path
        if not path:
            raise ValueError("No path provided")
        path = pathlib.Path(path).expanduser()
        async with self.__write_lock:
            await anyio.Path(path.parent).mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(path, "w") as fh:
                await fh.write(yaml.safe_dump(self._stored))

    async def set(self, pointer: str, value: Optional[Any] = None) -> None:
        """Replace a value using a JSON Pointer and save the file."""
        stored = copy.deepcopy(self._stored)
        key, _, rest = pointer.lstrip("/").partition("/")
        if rest and key in self.raw and key not in stored:
            stored[key] = copy.deepcopy(self.raw[key])
        patch = jsonpath.JSONPatch().add(pointer, value)
        self._stored = self._validate(typing.cast(dict, patch.apply(stored)))
        self._raw = {**self._raw, **self._stored}
        await self.save()

    def get(self, path: Optional[str] = None, pointer: Optional[str] = None) -> Any:
        """Get a value from the settings using a JSON Path or JSON Pointer."""
        if not path and not pointer:
            raise ValueError("No path or pointer provided")
        if path:
            return jsonpath.findall(path, self.raw)
        if pointer:
            return jsonpath.pointer.resolve(pointer, self.raw)

    @property
    def raw(self) -> Dict:
        if not self._loaded:
            raise RuntimeError("Settings have not been loaded, await them first")
        return self._raw

    @property
    def tunnel_cli(self) -> str:
        return self.raw["tunnel_cli"]

    @property
    def kubectl(self) -> str:
        return self.raw["kubectl"]

    @property
    def helm(self) -> str:
        return self.raw["helm"]

    @property
    def ps(self) -> List[str]:
        ps = self.raw["ps"]
        return ps.split() if isinstance(ps, str) else list(ps)

    @property
    def process_marker(self) -> str:
        return self.raw["process_marker"]

    @property
    def tunnel_marker(self) -> str:
        return self.raw["tunnel_marker"]

    @property
    def review_marker(self) -> str:
        return self.raw["review_marker"]

    @property
    def infra_release_marker(self) -> str:
        return self.raw["infra_release_marker"]

    @property
    def search_root(self) -> pathlib.Path:
        return pathlib.Path(self.raw["search_root"]).expanduser()

    @property
    def timeout(self) -> Optional[float]:
        return self.raw["timeout"]

    @property
    def launch_grace(self) -> float:
        return self.raw["launch_grace"]

    @property
    def help_links(self) -> List[Dict[str, str]]:
        return self.raw["help_links"]
