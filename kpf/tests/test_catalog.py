# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import pytest

from kpf._catalog import (
    NamespaceCatalog,
    is_valid_namespace,
    is_valid_release,
    parse_release_line,
    parse_releases,
    partition_namespaces,
    split_namespaces,
)
from kpf._config import Settings
from kpf._exceptions import ParseError, ProcessTimeout
from kpf._objects import Catalog, EventKind, ReleaseEntry

HELM_HEADER = "NAME      \tNAMESPACE\tREVISION\tUPDATED\tSTATUS  \tCHART\n"


@pytest.fixture
async def catalog(fake_runner, events):
    settings = await Settings({})
    return NamespaceCatalog(fake_runner, settings, notify=events.append)


def test_split_namespaces():
    assert split_namespaces("default\nreview-1\nprod\n") == ["default", "review-1", "prod"]
    assert split_namespaces("") == []


def test_partition_namespaces():
    plain, review = partition_namespaces(["default", "review-1", "prod"], "review")
    assert plain == ["default", "prod"]
    assert review == ["review-1"]


def test_parse_release_line():
    entry = parse_release_line("myrelease review-1")
    assert entry == ReleaseEntry(release="myrelease", namespace="review-1")
    assert entry.label == "review-1/myrelease"
    assert parse_release_line("a|b 3 deployed") == ReleaseEntry("a", "b")
    with pytest.raises(ParseError):
        parse_release_line("lonely")


def test_parse_releases_skips_noise():
    output = (
        HELM_HEADER
        + "web      \treview-1 \t3\t2024-01-01\tdeployed\tweb-1.0.0\n"
        + "gitlab-runner\treview-1\t1\t2024-01-01\tdeployed\tgitlab-runner-0.1\n"
        + "broken\n"
        + "\n"
    )
    assert parse_releases(output, "gitlab") == [ReleaseEntry("web", "review-1")]


def test_is_valid_namespace():
    assert is_valid_namespace("review-1")
    assert not is_valid_namespace("-bad")
    assert not is_valid_namespace("Bad")
    assert not is_valid_namespace("a;rm -rf /")
    assert not is_valid_namespace("a" * 64)
    assert not is_valid_namespace("team-a\n")


def test_is_valid_release():
    assert is_valid_release("relA")
    assert is_valid_release("my_release.v2")
    assert not is_valid_release("-rf")
    assert not is_valid_release("--help")
    assert not is_valid_release("")
    assert not is_valid_release("rel a")
    assert not is_valid_release("rel\n")
    assert not is_valid_release("rel\x1b[31m")


async def test_list_catalog(catalog, fake_runner, events):
    fake_runner.namespaces("default", "review-1", "prod", "review-2")
    fake_runner.releases("review-1", "myrelease review-1\n")
    fake_runner.releases("review-2", HELM_HEADER + "b review-2\na review-2\n")
    result = await catalog.list_catalog()
    assert result.plain == ["default", "prod"]
    assert result.reviews == [
        ReleaseEntry("myrelease", "review-1"),
        ReleaseEntry("b", "review-2"),
        ReleaseEntry("a", "review-2"),
    ]
    assert not events
    helm_calls = fake_runner.commands("helm")
    assert helm_calls == [
        ["helm", "list", "--namespace", "review-1"],
        ["helm", "list", "--namespace", "review-2"],
    ]


async def test_list_catalog_kubectl_fails(catalog, fake_runner, events):
    fake_runner.namespaces(returncode=1)
    result = await catalog.list_catalog()
    assert result == Catalog()
    assert not result
    assert [e.kind for e in events] == [EventKind.CATALOG_UNAVAILABLE]


async def test_list_catalog_kubectl_missing(catalog, events):
    assert await catalog.list_catalog() == Catalog()
    assert events[0].kind == EventKind.CATALOG_UNAVAILABLE
    assert "kubectl" in events[0].message


async def test_list_catalog_kubectl_timeout(catalog, fake_runner, events):
    fake_runner.respond(
        ["kubectl"], error=ProcessTimeout("kubectl timed out", timeout=30)
    )
    assert await catalog.list_catalog() == Catalog()
    assert len(events) == 1


async def test_list_catalog_helm_failures(catalog, fake_runner, events):
    fake_runner.namespaces("review-1", "review-2", "review-3")
    fake_runner.releases("review-1", "", returncode=1)
    fake_runner.releases("review-2", "ok review-2\n")
    result = await catalog.list_catalog()
    assert result.plain == []
    assert result.reviews == [ReleaseEntry("ok", "review-2")]
    assert not events


async def test_list_catalog_skips_invalid_namespaces(catalog, fake_runner):
    fake_runner.namespaces("default", "review;reboot")
    result = await catalog.list_catalog()
    assert result.plain == ["default"]
    assert fake_runner.commands("helm") == []


async def test_list_catalog_skips_foreign_releases(catalog, fake_runner):
    fake_runner.namespaces("review-1")
    fake_runner.releases("review-1", "other prod\nmine review-1\n")
    result = await catalog.list_catalog()
    assert result.reviews == [ReleaseEntry("mine", "review-1")]


async def test_list_catalog_keeps_mixed_case_releases(catalog, fake_runner):
    fake_runner.namespaces("review-x")
    fake_runner.releases("review-x", "relA review-x\n--force review-x\n")
    result = await catalog.list_catalog()
    assert result.reviews == [ReleaseEntry("relA", "review-x")]
