"""Build configuration loader.

Reads ``admitpack.yaml`` from the project root (or an explicit path),
validates it against the packaged ``build_config`` schema and resolves every
path against the directory holding the config file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from admitpack.errors import ConfigError
from admitpack.schemas import validate_data

CONFIG_FILENAME = "admitpack.yaml"
CONFIG_ENV_VAR = "ADMITPACK_CONFIG"
DEFAULT_MARKER = "##BUNDLE##"

DEFAULTS: dict[str, Any] = {
    "entry": "src/policy.py",
    "bundle": "dist/bundle.py",
    "marker": DEFAULT_MARKER,
    "minify": True,
    "source_roots": [],
    "exclude": [],
    "templates": {
        "policy": "templates/policy.yaml",
        "bundle": "templates/policybundle.yaml",
    },
    "manifests": {
        "policy": "manifests/policy.yaml",
        "bundle": "manifests/policybundle.yaml",
    },
    "max_payload_bytes": None,
    "report": None,
}


@dataclass(frozen=True)
class BundlerConfig:
    """Inputs and output of the bundler."""

    entry: Path
    output: Path
    source_roots: tuple[Path, ...] = ()
    exclude: tuple[str, ...] = ()
    minify: bool = True


@dataclass(frozen=True)
class PackagerConfig:
    """Inputs and outputs of the packager."""

    bundle: Path
    policy_template: Path
    bundle_template: Path
    policy_manifest: Path
    bundle_manifest: Path
    marker: str = DEFAULT_MARKER
    max_payload_bytes: int | None = None
    report: Path | None = None


@dataclass(frozen=True)
class BuildConfig:
    """Complete pipeline configuration with absolute paths."""

    root: Path
    bundler: BundlerConfig
    packager: PackagerConfig
    source: Path | None = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path, source: Path | None = None) -> "BuildConfig":
        """Validate a raw config mapping and resolve it against ``root``."""
        errors = validate_data(data, "build_config")
        if errors:
            where = source or "configuration"
            raise ConfigError(
                f"invalid config {where}:\n" + "\n".join(f"  - {msg}" for msg in errors)
            )

        merged = _merge(DEFAULTS, data)
        root = root.resolve()

        def resolve(value: str) -> Path:
            return (root / value).resolve()

        bundle_path = resolve(merged["bundle"])
        report = merged["report"]
        return cls(
            root=root,
            source=source,
            bundler=BundlerConfig(
                entry=resolve(merged["entry"]),
                output=bundle_path,
                source_roots=tuple(resolve(p) for p in merged["source_roots"]),
                exclude=tuple(merged["exclude"]),
                minify=merged["minify"],
            ),
            packager=PackagerConfig(
                bundle=bundle_path,
                policy_template=resolve(merged["templates"]["policy"]),
                bundle_template=resolve(merged["templates"]["bundle"]),
                policy_manifest=resolve(merged["manifests"]["policy"]),
                bundle_manifest=resolve(merged["manifests"]["bundle"]),
                marker=merged["marker"],
                max_payload_bytes=merged["max_payload_bytes"],
                report=resolve(report) if report else None,
            ),
        )


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)
        else:
            merged[key] = value
    return merged


def find_config_path(root: Path, explicit: Path | None = None) -> Path | None:
    """Pick the config file: explicit path, then ``$ADMITPACK_CONFIG``, then ``root/admitpack.yaml``.

    Explicit and environment paths must exist; the default one is optional.
    """
    candidate = explicit
    if candidate is None and os.environ.get(CONFIG_ENV_VAR):
        candidate = Path(os.environ[CONFIG_ENV_VAR])
    if candidate is not None:
        if not candidate.is_file():
            raise ConfigError(f"config file not found: {candidate}")
        return candidate.resolve()

    default = root / CONFIG_FILENAME
    return default.resolve() if default.is_file() else None


def load_build_config(root: Path | None = None, config_path: Path | None = None) -> BuildConfig:
    """Load the build configuration for a policy project.

    Args:
        root: Project root used when no config file exists (defaults to cwd)
        config_path: Explicit config file path

    Returns:
        BuildConfig with absolute paths

    Raises:
        ConfigError: If the config file is missing (when explicit), malformed or invalid
    """
    root = (root or Path.cwd()).resolve()
    path = find_config_path(root, config_path)
    if path is None:
        return BuildConfig.from_dict({}, root)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"malformed YAML config at {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config at {path} must be a mapping, got {type(data).__name__}")
    return BuildConfig.from_dict(data, path.parent, source=path)
