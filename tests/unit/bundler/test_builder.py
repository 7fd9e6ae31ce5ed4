"""Tests for rendering, writing and loading bundles."""

from __future__ import annotations

import shutil
import subprocess
import sys

import pytest

from admitpack.bundler import bundle, load_bundle_file, load_exports
from admitpack.config import BundlerConfig
from admitpack.errors import BundleLoadError, CompilationError

POLICY = '''\
"""Deny privileged pods."""

from admitpack.policy import AdmissionRequest, dig, each, is_true

from locators import container_locator

__all__ = ["deny_privileged_pod"]


def deny_privileged_pod(req):
    """Scan containers, then init containers."""
    pod = AdmissionRequest.from_value(req).object
    errors = []
    for field in ("containers", "initContainers"):
        for index, container in each(pod, "spec", field):
            if is_true(dig(container, "securityContext", "privileged")):
                errors.append(container_locator(field, index) + " is not allowed")
    return errors


def helper_not_exported():
    return None
'''

LOCATORS = '''\
# locator helpers
def container_locator(field, index):
    return f"spec.{field}[{index}].securityContext.privileged"
'''

PRIVILEGED = {"object": {"spec": {"containers": [{"securityContext": {"privileged": True}}]}}}


@pytest.fixture
def bundler_config(tmp_path, write_file):
    write_file(tmp_path / "src" / "policy.py", POLICY)
    write_file(tmp_path / "src" / "locators.py", LOCATORS)
    return BundlerConfig(entry=tmp_path / "src" / "policy.py", output=tmp_path / "dist" / "bundle.py")


def test_bundle_exposes_exports(bundler_config) -> None:
    result = bundle(bundler_config)

    assert result.path.is_file()
    assert result.exports == ("deny_privileged_pod",)
    assert "locators" in result.modules
    assert "admitpack.policy" in result.modules

    exports = load_bundle_file(result.path)
    assert list(exports) == ["deny_privileged_pod"]
    assert exports["deny_privileged_pod"](PRIVILEGED) == [
        "spec.containers[0].securityContext.privileged is not allowed"
    ]
    assert exports["deny_privileged_pod"]({}) == []


def test_bundle_is_self_contained(bundler_config, tmp_path) -> None:
    result = bundle(bundler_config)
    (tmp_path / "src" / "locators.py").unlink()
    (tmp_path / "src" / "policy.py").unlink()

    exports = load_exports(result.path.read_bytes())
    assert len(exports["deny_privileged_pod"](PRIVILEGED)) == 1


def test_loading_restores_host_modules(bundler_config) -> None:
    import admitpack.policy

    result = bundle(bundler_config)
    before = sys.modules["admitpack.policy"]
    exports = load_exports(result.path.read_bytes())

    assert sys.modules["admitpack.policy"] is before is admitpack.policy
    assert "locators" not in sys.modules
    assert exports["deny_privileged_pod"].__module__ == "policy"


def test_bundle_is_deterministic(bundler_config) -> None:
    first = bundle(bundler_config).path.read_bytes()
    second = bundle(bundler_config).path.read_bytes()
    assert first == second


def test_minify_strips_docstrings_and_comments(bundler_config) -> None:
    text = bundle(bundler_config).path.read_text()
    assert "Scan containers, then init containers." not in text
    assert "locator helpers" not in text

    plain = bundle(BundlerConfig(entry=bundler_config.entry, output=bundler_config.output, minify=False))
    assert "Scan containers, then init containers." in plain.path.read_text()


def test_public_functions_exported_without_all(tmp_path, write_file) -> None:
    entry = write_file(
        tmp_path / "policy.py",
        "def deny_a(req):\n    return ['a']\n\ndef deny_b(req):\n    return []\n\ndef _private(req):\n    return []\n",
    )
    result = bundle(BundlerConfig(entry=entry, output=tmp_path / "bundle.py"))
    assert result.exports == ("deny_a", "deny_b")
    exports = load_exports(result.path.read_bytes())
    assert exports["deny_a"]({}) == ["a"]


def test_entry_without_exports_fails(tmp_path, write_file) -> None:
    entry = write_file(tmp_path / "policy.py", "LIMIT = 3\n")
    output = tmp_path / "bundle.py"
    with pytest.raises(CompilationError, match="exports no policy functions"):
        bundle(BundlerConfig(entry=entry, output=output))
    assert not output.exists()


def test_dynamic_all_fails(tmp_path, write_file) -> None:
    entry = write_file(tmp_path / "policy.py", "__all__ = [n for n in dir()]\n")
    with pytest.raises(CompilationError, match="__all__ must be a literal"):
        bundle(BundlerConfig(entry=entry, output=tmp_path / "bundle.py"))


def test_compile_error_keeps_previous_bundle(bundler_config, tmp_path, write_file) -> None:
    bundle(bundler_config)
    previous = bundler_config.output.read_bytes()
    write_file(tmp_path / "src" / "locators.py", "def container_locator(field, index):\nreturn 1\n")

    with pytest.raises(CompilationError):
        bundle(bundler_config)

    assert bundler_config.output.read_bytes() == previous


def test_compile_only_errors_are_caught(tmp_path, write_file) -> None:
    entry = write_file(tmp_path / "policy.py", "def check(req):\n    return []\n\nreturn 1\n")
    with pytest.raises(CompilationError, match="syntax error"):
        bundle(BundlerConfig(entry=entry, output=tmp_path / "bundle.py"))


def test_load_exports_rejects_broken_bundles() -> None:
    with pytest.raises(BundleLoadError, match="failed to load"):
        load_exports(b"raise RuntimeError('boom')\n")
    with pytest.raises(BundleLoadError, match="exposes no EXPORTS"):
        load_exports(b"x = 1\n")
    with pytest.raises(BundleLoadError, match="not callable"):
        load_exports(b"EXPORTS = {'f': 3}\n")


def test_all_naming_undefined_function_fails(tmp_path, write_file) -> None:
    entry = write_file(
        tmp_path / "policy.py",
        '__all__ = ["deny_typo", "deny"]\n\n\ndef deny(req):\n    return []\n',
    )
    output = tmp_path / "bundle.py"
    with pytest.raises(CompilationError, match="undefined names: deny_typo"):
        bundle(BundlerConfig(entry=entry, output=output))
    assert not output.exists()


def test_all_may_name_imported_functions(tmp_path, write_file) -> None:
    write_file(tmp_path / "rules.py", "def deny_all(req):\n    return ['denied']\n")
    entry = write_file(tmp_path / "policy.py", '__all__ = ["deny_all"]\n\nfrom rules import deny_all\n')

    result = bundle(BundlerConfig(entry=entry, output=tmp_path / "bundle.py"))

    assert load_exports(result.path.read_bytes())["deny_all"]({}) == ["denied"]


RUN_BUNDLE = """\
import sys

namespace = {"__name__": "bundle"}
with open(sys.argv[1], "rb") as handle:
    exec(compile(handle.read(), sys.argv[1], "exec"), namespace)
print(namespace["EXPORTS"]["deny"]({}))
"""


def test_imports_inside_functions_resolve_from_bundle(tmp_path, write_file) -> None:
    write_file(tmp_path / "src" / "locators.py", "def message():\n    return 'resolved lazily'\n")
    entry = write_file(
        tmp_path / "src" / "policy.py",
        "def deny(req):\n    import locators\n\n    return [locators.message()]\n",
    )
    result = bundle(BundlerConfig(entry=entry, output=tmp_path / "dist" / "bundle.py"))
    assert "locators" in result.modules
    shutil.rmtree(tmp_path / "src")
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()

    proc = subprocess.run(
        [sys.executable, "-c", RUN_BUNDLE, str(result.path)],
        cwd=elsewhere,
        capture_output=True,
        text=True,
        check=False,
    )

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == "['resolved lazily']"
