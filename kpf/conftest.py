# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import os

import pytest

from kpf._config import ENV_OVERRIDES
from kpf._testutils import FakeRunner
from kpf.asyncio import Session


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the user's settings and KPF_* variables out of the tests."""
    for env in ENV_OVERRIDES:
        monkeypatch.delenv(env, raising=False)
    monkeypatch.setenv("KPF_CONFIG", os.fspath(tmp_path / "missing-config.yaml"))


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def settings_dict(config_dir):
    return {
        "search_root": os.fspath(config_dir),
        "help_links": [{"label": "Create an issue", "url": "https://example.com/issues"}],
    }


@pytest.fixture
def events():
    return []


@pytest.fixture
def opened():
    return []


@pytest.fixture
async def session(fake_runner, settings_dict, events, opened):
    return await Session(
        settings=settings_dict,
        runner=fake_runner,
        notify=events.append,
        opener=opened.append,
    )
