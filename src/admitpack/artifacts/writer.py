"""Deterministic build report writer."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from admitpack.artifacts.hashing import sha256_file

if TYPE_CHECKING:
    from pathlib import Path

BUILD_REPORT_SCHEMA_VERSION = "admitpack.build.v1"


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def write_build_report(
    report_path: Path,
    *,
    root: Path,
    bundle_path: Path,
    bundle_size: int,
    payload_size: int,
    manifests: list[Path],
    exports: list[str] | None = None,
) -> dict[str, Any]:
    """Write the build report and return its payload.

    Paths are recorded relative to ``root`` so reports from different
    checkouts of the same sources are identical.
    """
    payload: dict[str, Any] = {
        "schema_version": BUILD_REPORT_SCHEMA_VERSION,
        "bundle": {
            "path": _relative(bundle_path, root),
            "size": bundle_size,
            "sha256": sha256_file(bundle_path),
        },
        "payload_size": payload_size,
        "manifests": [
            {"path": _relative(manifest, root), "sha256": sha256_file(manifest)}
            for manifest in manifests
        ],
    }
    if exports is not None:
        payload["bundle"]["exports"] = sorted(exports)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, indent=2, sort_keys=True) + "\n")
    return payload
