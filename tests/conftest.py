"""Shared fixtures for admitpack tests."""
from pathlib import Path

import pytest

from admitpack.scaffold import init_project


def pytest_sessionfinish(session, exitstatus):
    """Fail a --cov run that recorded nothing.

    An empty data file means the suite imported admitpack from a path other
    than the installed package.
    """
    if not session.config.getoption("cov_source", default=None):
        return
    if not any(Path.cwd().glob(".coverage*")):
        pytest.exit(
            "coverage requested but no data recorded; import 'admitpack', not 'src/admitpack'",
            returncode=1,
        )


@pytest.fixture
def project(tmp_path):
    """A freshly scaffolded policy project."""
    root = tmp_path / "demo"
    init_project(root, "demo")
    return root


@pytest.fixture
def write_file():
    """Write text to a path, creating parents."""
    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write
