"""Packager: turn a bundle into deployable manifests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from admitpack.artifacts.hashing import sha256_bytes
from admitpack.config import PackagerConfig
from admitpack.errors import MissingInputError, PayloadTooLargeError
from admitpack.packager.codec import pack_payload
from admitpack.packager.template import ensure_single_marker, substitute

logger = logging.getLogger(__name__)

# etcd rejects requests above ~1.5 MiB; leave room for the rest of the object.
LARGE_PAYLOAD_WARNING_BYTES = 1024 * 1024


@dataclass(frozen=True)
class PackageResult:
    """What a packaging run wrote."""

    policy_manifest: Path
    bundle_manifest: Path
    bundle_size: int
    payload_size: int
    bundle_sha256: str
    bundle_manifest_sha256: str


def read_input(path: Path, kind: str) -> bytes:
    if not path.is_file():
        raise MissingInputError(kind, path)
    with path.open("rb") as handle:
        return handle.read()


def write_output(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(data)
    logger.info("wrote %s (%d bytes)", path, len(data))


def check_templates(config: PackagerConfig) -> None:
    """Fail early when a template is missing or the bundle template breaks the marker contract."""
    read_input(config.policy_template, "policy template")
    ensure_single_marker(
        read_input(config.bundle_template, "bundle template"), config.marker, config.bundle_template
    )


def package(config: PackagerConfig) -> PackageResult:
    """Compress and encode the bundle, then write both manifests.

    Every input is read and checked before the first output is opened, so a
    failing run leaves previously written manifests untouched.

    Raises:
        MissingInputError: If the bundle or a template does not exist.
        TemplateContractError: If the bundle template lacks the marker or repeats it.
        PayloadTooLargeError: If ``max_payload_bytes`` is set and exceeded.
    """
    bundle = read_input(config.bundle, "bundle")
    policy_template = read_input(config.policy_template, "policy template")
    bundle_template = read_input(config.bundle_template, "bundle template")

    payload = pack_payload(bundle)
    logger.debug("compressed %d bundle bytes into %d payload bytes", len(bundle), len(payload))

    if config.max_payload_bytes is not None and len(payload) > config.max_payload_bytes:
        raise PayloadTooLargeError(len(payload), config.max_payload_bytes)
    if len(payload) > LARGE_PAYLOAD_WARNING_BYTES:
        logger.warning(
            "encoded payload is %d bytes; the manifest may exceed the cluster's object size limit",
            len(payload),
        )

    bundle_manifest = substitute(bundle_template, config.marker, payload, config.bundle_template)

    write_output(config.policy_manifest, policy_template)
    write_output(config.bundle_manifest, bundle_manifest)

    return PackageResult(
        policy_manifest=config.policy_manifest,
        bundle_manifest=config.bundle_manifest,
        bundle_size=len(bundle),
        payload_size=len(payload),
        bundle_sha256=sha256_bytes(bundle),
        bundle_manifest_sha256=sha256_bytes(bundle_manifest),
    )
