"""Scaffold a new policy project."""

from __future__ import annotations

from pathlib import Path

from admitpack.config import CONFIG_FILENAME, DEFAULT_MARKER

CONFIG_TEXT = f"""\
# admitpack build configuration. Paths are relative to this file.
entry: src/policy.py
bundle: dist/bundle.py
marker: "{DEFAULT_MARKER}"
minify: true
templates:
  policy: templates/policy.yaml
  bundle: templates/policybundle.yaml
manifests:
  policy: manifests/policy.yaml
  bundle: manifests/policybundle.yaml
"""

POLICY_TEXT = '''\
"""Admission policy for {name}."""

from admitpack.policy import AdmissionRequest, dig, each, is_true

__all__ = ["deny_privileged_pod"]


def deny_privileged_pod(req):
    pod = AdmissionRequest.from_value(req).object
    errors = []

    for index, container in each(pod, "spec", "containers"):
        if is_true(dig(container, "securityContext", "privileged")):
            errors.append(f"spec.containers[{{index}}].securityContext.privileged is not allowed")

    for index, container in each(pod, "spec", "initContainers"):
        if is_true(dig(container, "securityContext", "privileged")):
            errors.append(f"spec.initContainers[{{index}}].securityContext.privileged is not allowed")

    return errors
'''

TEST_TEXT = '''\
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from policy import deny_privileged_pod  # noqa: E402


def test_privileged_container_is_denied():
    req = {"object": {"spec": {"containers": [{"securityContext": {"privileged": True}}]}}}
    assert deny_privileged_pod(req) == ["spec.containers[0].securityContext.privileged is not allowed"]


def test_privileged_init_container_is_denied():
    req = {"object": {"spec": {"initContainers": [{"securityContext": {"privileged": True}}]}}}
    assert len(deny_privileged_pod(req)) == 1


def test_plain_pod_is_allowed():
    req = {"object": {"spec": {"containers": [{"name": "my-container"}]}}}
    assert deny_privileged_pod(req) == []
'''

POLICY_TEMPLATE_TEXT = """\
apiVersion: policy.admitpack.dev/v1beta1
kind: AdmissionPolicy
metadata:
  name: "{name}.deny-privileged"
spec:
  function: deny_privileged_pod
  operations: ["CREATE", "UPDATE"]
  resources: ["pods"]
"""

BUNDLE_TEMPLATE_TEXT = f"""\
apiVersion: policy.admitpack.dev/v1beta1
kind: AdmissionPolicyBundle
metadata:
  name: "{{name}}.deny-privileged"
spec:
  bundle: "{DEFAULT_MARKER}"
"""


def scaffold_files(name: str) -> dict[str, str]:
    """Relative path -> content for a fresh project called ``name``."""
    return {
        CONFIG_FILENAME: CONFIG_TEXT,
        "src/policy.py": POLICY_TEXT.format(name=name),
        "tests/test_policy.py": TEST_TEXT,
        "templates/policy.yaml": POLICY_TEMPLATE_TEXT.format(name=name),
        "templates/policybundle.yaml": BUNDLE_TEMPLATE_TEXT.format(name=name),
    }


def init_project(root: Path, name: str | None = None) -> tuple[list[Path], list[Path]]:
    """Write scaffold files under ``root``; existing files are left alone.

    Returns:
        Tuple of (created paths, skipped paths)
    """
    root = root.resolve()
    created: list[Path] = []
    skipped: list[Path] = []
    for rel, content in scaffold_files(name or root.name).items():
        path = root / rel
        if path.exists():
            skipped.append(path)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(content)
        created.append(path)
    return created, skipped
