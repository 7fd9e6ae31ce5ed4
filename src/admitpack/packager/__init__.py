"""Packager: compress, encode and template a bundle into manifests."""

from admitpack.packager.codec import (
    compress,
    decode,
    decompress,
    encode,
    pack_payload,
    unpack_payload,
)
from admitpack.packager.manifest import find_payload, read_bundle_from_manifest
from admitpack.packager.pipeline import PackageResult, check_templates, package
from admitpack.packager.template import count_markers, ensure_single_marker, substitute

__all__ = [
    "PackageResult",
    "check_templates",
    "compress",
    "count_markers",
    "decode",
    "decompress",
    "encode",
    "ensure_single_marker",
    "find_payload",
    "pack_payload",
    "package",
    "read_bundle_from_manifest",
    "substitute",
    "unpack_payload",
]
