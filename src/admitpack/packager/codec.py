"""Payload codec: gzip then base64, and back."""

from __future__ import annotations

import base64
import binascii
import gzip
import zlib

from admitpack.errors import PayloadDecodeError


def compress(data: bytes) -> bytes:
    """Gzip ``data`` with a zeroed header timestamp so output is reproducible."""
    return gzip.compress(data, compresslevel=9, mtime=0)


def decompress(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise PayloadDecodeError(f"payload is not valid gzip data: {e}") from e


def encode(data: bytes) -> str:
    """Standard base64 on a single line."""
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"payload is not valid base64: {e}") from e


def pack_payload(bundle: bytes) -> str:
    """Turn bundle bytes into the text embedded in the bundle manifest."""
    return encode(compress(bundle))


def unpack_payload(payload: str) -> bytes:
    """Inverse of ``pack_payload``."""
    return decompress(decode(payload))
