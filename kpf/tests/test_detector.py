# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import pytest

from kpf._config import Settings
from kpf._detector import SessionDetector, parse_session_state
from kpf._exceptions import ProcessError
from kpf._objects import SessionState

TUNNEL = "/usr/bin/telepresence connect --vpn-tcp port-forward --namespace team-a"


@pytest.fixture
async def detector(fake_runner):
    settings = await Settings({})
    return SessionDetector(fake_runner, settings)


@pytest.mark.parametrize(
    "line,namespace",
    [
        (TUNNEL, "team-a"),
        ("vpn-tcp port-forward namespace review-x", "review-x"),
        ("vpn-tcp port-forward --namespace=prod --other", "prod"),
    ],
)
def test_parse_active(line, namespace):
    output = f"ps -eo args\n/sbin/init\n{line}\n"
    state = parse_session_state(output, "vpn-tcp", "port-forward")
    assert state == SessionState.activated(namespace)
    assert state.active
    assert str(state) == f"active in {namespace}"


def test_parse_inactive():
    output = "ps -eo args\n/sbin/init\nkubectl port-forward --namespace team-a svc/web 80\n"
    state = parse_session_state(output, "vpn-tcp", "port-forward")
    assert state == SessionState.inactive()
    assert not state.active
    assert str(state) == "inactive"


def test_parse_ignores_grep():
    output = "grep vpn-tcp\n"
    assert not parse_session_state(output, "vpn-tcp", "port-forward").active


def test_parse_prefers_tunnel_line_with_both_markers():
    output = "vpn-tcp --daemon --namespace stale\nmayo vpn-tcp port-forward --namespace team-b\n"
    assert parse_session_state(output, "vpn-tcp", "port-forward").namespace == "team-b"


def test_parse_ignores_unrelated_port_forward():
    output = (
        "ps -eo args\n"
        "kubectl port-forward --namespace monitoring svc/grafana 3000\n"
        f"{TUNNEL}\n"
    )
    state = parse_session_state(output, "vpn-tcp", "port-forward")
    assert state == SessionState.activated("team-a")


def test_parse_unrelated_port_forward_does_not_name_the_session():
    output = (
        "kubectl port-forward --namespace monitoring svc/grafana 3000\n"
        "vpn-tcp --daemon\n"
    )
    state = parse_session_state(output, "vpn-tcp", "port-forward")
    assert state == SessionState.activated(None)


def test_parse_active_unknown_namespace():
    state = parse_session_state("vpn-tcp --daemon\n", "vpn-tcp", "port-forward")
    assert state.active
    assert state.namespace is None
    assert state.display_namespace == "unknown"


async def test_detect(detector, fake_runner):
    assert await detector.detect() == SessionState.inactive()
    assert not await detector.is_active()

    fake_runner.processes(TUNNEL)
    assert await detector.detect() == SessionState.activated("team-a")
    assert await detector.is_active()
    assert fake_runner.calls[-1] == ["ps", "-eo", "args"]


async def test_detect_ps_failure(detector, fake_runner):
    fake_runner.respond(["ps"], returncode=1, stderr="ps: broken")
    with pytest.raises(ProcessError):
        await detector.detect()
