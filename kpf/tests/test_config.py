# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import pathlib

import pytest
import yaml

from kpf._config import DEFAULTS, Settings
from kpf._testutils import set_env


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"tunnel_cli": "/opt/mayo", "timeout": 5}))
    return path


async def test_defaults():
    settings = await Settings()
    assert settings.raw == DEFAULTS
    assert settings.tunnel_cli == "/usr/local/bin/mayo"
    assert settings.ps == ["ps", "-eo", "args"]
    assert settings.search_root == pathlib.Path("/tmp")
    assert settings.timeout == 30


async def test_load_file(settings_file):
    settings = await Settings(settings_file)
    assert settings.path == settings_file
    assert settings.tunnel_cli == "/opt/mayo"
    assert settings.timeout == 5
    assert settings.helm == "helm"


async def test_default_path_from_env(settings_file):
    with set_env(KPF_CONFIG=str(settings_file)):
        settings = await Settings()
    assert settings.tunnel_cli == "/opt/mayo"


async def test_missing_file():
    with pytest.raises(ValueError, match="does not exist"):
        await Settings("/does/not/exist.yaml")


async def test_directory(tmp_path):
    with pytest.raises(IsADirectoryError):
        await Settings(tmp_path)


async def test_unknown_key():
    with pytest.raises(ValueError, match="Unknown settings: foo"):
        await Settings({"foo": "bar"})


async def test_not_a_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="mapping"):
        await Settings(path)


async def test_env_overrides(settings_file):
    with set_env(KPF_TIMEOUT="2.5", KPF_TUNNEL_CLI="mayo", KPF_SEARCH_ROOT="~/tmp"):
        settings = await Settings(settings_file)
    assert settings.timeout == 2.5
    assert settings.tunnel_cli == "mayo"
    assert settings.search_root == pathlib.Path("~/tmp").expanduser()


async def test_env_override_invalid():
    with set_env(KPF_TIMEOUT="soon"):
        with pytest.raises(ValueError, match="KPF_TIMEOUT"):
            await Settings()


async def test_ps_string():
    settings = await Settings({"ps": "ps ax -o args"})
    assert settings.ps == ["ps", "ax", "-o", "args"]


def test_not_loaded():
    with pytest.raises(RuntimeError):
        Settings({}).raw


def test_bad_type():
    with pytest.raises(TypeError):
        Settings(42)


async def test_get():
    settings = await Settings({})
    assert settings.get(path="$.tunnel_cli") == ["/usr/local/bin/mayo"]
    assert settings.get(pointer="/help_links/0/label") == "Create an issue"
    assert settings.get(path="$.help_links[*].url") == [
        "https://gitlab.wiremind.io/groups/wiremind/devops/-/issues"
    ]
    with pytest.raises(ValueError):
        settings.get()


async def test_set(tmp_path):
    path = tmp_path / "kpf" / "config.yaml"
    with set_env(KPF_CONFIG=str(path)):
        settings = await Settings()
        await settings.set("/timeout", 10)
        assert settings.timeout == 10
        assert yaml.safe_load(path.read_text()) == {"timeout": 10}

        reloaded = await Settings()
        assert reloaded.timeout == 10

        with pytest.raises(ValueError):
            await settings.set("/foo", 1)
