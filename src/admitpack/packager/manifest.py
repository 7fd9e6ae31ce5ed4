"""Read the encoded bundle back out of a final manifest."""

from __future__ import annotations

from pathlib import Path

import yaml

from admitpack.errors import MissingInputError, PayloadDecodeError
from admitpack.packager.codec import unpack_payload
from admitpack.policy.accessors import dig

PAYLOAD_FIELD = ("spec", "bundle")


def find_payload(text: str | bytes, source: Path | str = "<manifest>") -> str:
    """Return the encoded payload at ``spec.bundle`` of the first document carrying one.

    Raises:
        PayloadDecodeError: If the manifest is not YAML or has no payload field.
    """
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise PayloadDecodeError(f"manifest {source} is not valid YAML: {e}") from e

    for document in documents:
        payload = dig(document, *PAYLOAD_FIELD)
        if isinstance(payload, str) and payload:
            return payload
    raise PayloadDecodeError(f"manifest {source} has no {'.'.join(PAYLOAD_FIELD)} field")


def read_bundle_from_manifest(path: Path) -> bytes:
    """Decode and decompress the bundle embedded in a manifest file."""
    if not path.is_file():
        raise MissingInputError("manifest", path)
    return unpack_payload(find_payload(path.read_bytes(), path))
