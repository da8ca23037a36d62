# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import os

import pytest

from kpf._exceptions import ProcessError, ProcessLaunchError
from kpf._testutils import FakeRunner, set_env
from kpf._types import Runner


def test_set_env():
    assert "FOO" not in os.environ
    with set_env(FOO="bar"):
        assert "FOO" in os.environ
    assert "FOO" not in os.environ

    os.environ["FOO"] = "bar"
    assert "FOO" in os.environ
    assert os.environ["FOO"] == "bar"
    with set_env(FOO="baz"):
        assert "FOO" in os.environ
        assert os.environ["FOO"] == "baz"
    assert "FOO" in os.environ
    assert os.environ["FOO"] == "bar"
    del os.environ["FOO"]


def test_fake_runner_is_a_runner():
    assert isinstance(FakeRunner(), Runner)


async def test_fake_runner_prefixes():
    runner = FakeRunner()
    runner.respond(["helm"], stdout="any\n")
    runner.respond(["helm", "list", "--namespace", "a"], stdout="a\n")
    assert (await runner.run(["helm", "list", "--namespace", "a"])).stdout == "a\n"
    assert (await runner.run("helm version")).stdout == "any\n"
    assert runner.calls == [["helm", "list", "--namespace", "a"], ["helm", "version"]]
    with pytest.raises(ProcessLaunchError):
        await runner.run(["kubectl"])


async def test_fake_runner_check():
    runner = FakeRunner()
    runner.namespaces(returncode=1)
    with pytest.raises(ProcessError):
        await runner.run(["kubectl", "get", "namespaces"], check=True)


async def test_fake_runner_spawn():
    runner = FakeRunner()
    result = await runner.spawn(["mayo", "port-forward-start"])
    assert result.running
    assert runner.spawned == [["mayo", "port-forward-start"]]
    assert runner.commands("mayo") == [["mayo", "port-forward-start"]]
