"""Tests for the typed admission request view."""

from __future__ import annotations

import pytest

from admitpack.policy import AdmissionRequest

REQUEST = {
    "uid": "705ab4f5-6393-11e8-b7cc-42010a800002",
    "kind": {"group": "", "version": "v1", "kind": "Pod"},
    "operation": "CREATE",
    "name": "web",
    "namespace": "default",
    "object": {"metadata": {"name": "web"}, "spec": {}},
    "userInfo": {"username": "admin"},
    "dryRun": False,
}


def test_from_value_reads_known_fields() -> None:
    req = AdmissionRequest.from_value(REQUEST)
    assert req.uid == REQUEST["uid"]
    assert req.operation == "CREATE"
    assert req.namespace == "default"
    assert req.object == {"metadata": {"name": "web"}, "spec": {}}
    assert req.old_object is None
    assert req.user_info == {"username": "admin"}
    assert req.dry_run is False
    assert req.get("kind", "kind") == "Pod"


def test_from_value_unwraps_admission_review() -> None:
    review = {"apiVersion": "admission.k8s.io/v1", "kind": "AdmissionReview", "request": REQUEST}
    assert AdmissionRequest.from_value(review).name == "web"


@pytest.mark.parametrize("value", [None, 42, "request", [REQUEST], {"object": "not-a-mapping"}])
def test_from_value_never_raises(value) -> None:
    req = AdmissionRequest.from_value(value)
    assert req.object is None


def test_from_value_drops_mistyped_fields() -> None:
    req = AdmissionRequest.from_value({"uid": 7, "operation": ["CREATE"], "dryRun": "yes"})
    assert req.uid is None
    assert req.operation is None
    assert req.dry_run is None


def test_from_value_returns_existing_instance() -> None:
    req = AdmissionRequest.from_value(REQUEST)
    assert AdmissionRequest.from_value(req) is req
