"""Tests for the built-in pod security rules."""

from __future__ import annotations

import pytest

from admitpack.policies import deny_host_namespaces, deny_privileged_pod
from admitpack.policy import AdmissionRequest


def _pod(**spec):
    return {"object": {"spec": spec}}


def test_privileged_container_is_reported() -> None:
    req = _pod(containers=[{"securityContext": {"privileged": True}}])
    assert deny_privileged_pod(req) == ["spec.containers[0].securityContext.privileged is not allowed"]


def test_container_without_security_context_is_allowed() -> None:
    assert deny_privileged_pod(_pod(containers=[{"name": "my-container"}])) == []


def test_privileged_init_container_is_reported() -> None:
    req = _pod(initContainers=[{"securityContext": {"privileged": True}}])
    assert deny_privileged_pod(req) == ["spec.initContainers[0].securityContext.privileged is not allowed"]


def test_containers_come_before_init_containers() -> None:
    req = _pod(
        initContainers=[{"securityContext": {"privileged": True}}],
        containers=[{"securityContext": {"privileged": True}}],
    )
    assert deny_privileged_pod(req) == [
        "spec.containers[0].securityContext.privileged is not allowed",
        "spec.initContainers[0].securityContext.privileged is not allowed",
    ]


def test_indexes_follow_array_order() -> None:
    req = _pod(
        containers=[
            {"securityContext": {"privileged": True}},
            {"securityContext": {"privileged": False}},
            {"securityContext": {"privileged": True}},
        ]
    )
    assert deny_privileged_pod(req) == [
        "spec.containers[0].securityContext.privileged is not allowed",
        "spec.containers[2].securityContext.privileged is not allowed",
    ]


def test_empty_pod_is_allowed() -> None:
    assert deny_privileged_pod(_pod()) == []


@pytest.mark.parametrize(
    "req",
    [
        None,
        {},
        {"object": None},
        {"object": []},
        {"object": {"spec": None}},
        {"object": {"spec": {"containers": None}}},
        {"object": {"spec": {"containers": "nginx"}}},
        {"object": {"spec": {"containers": [None, 3, "x", {"securityContext": "root"}]}}},
        {"object": {"spec": {"initContainers": [{"securityContext": {"privileged": "true"}}]}}},
        "garbage",
    ],
)
def test_deny_privileged_pod_is_total(req) -> None:
    assert deny_privileged_pod(req) == []


def test_accepts_typed_request() -> None:
    req = AdmissionRequest.from_value(_pod(containers=[{"securityContext": {"privileged": True}}]))
    assert len(deny_privileged_pod(req)) == 1


def test_host_namespaces_reported_in_fixed_order() -> None:
    req = _pod(hostIPC=True, hostNetwork=True, hostPID=False)
    assert deny_host_namespaces(req) == ["spec.hostNetwork is not allowed", "spec.hostIPC is not allowed"]


def test_host_namespaces_total() -> None:
    assert deny_host_namespaces(None) == []
    assert deny_host_namespaces({"object": {"spec": {"hostPID": "yes"}}}) == []


@pytest.mark.parametrize("flag", [1, "true", "yes"])
def test_truthy_non_boolean_privileged_is_allowed(flag) -> None:
    assert deny_privileged_pod(_pod(containers=[{"securityContext": {"privileged": flag}}])) == []
