"""Load a bundle and retrieve its exported policy functions."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from admitpack.errors import BundleLoadError, MissingInputError


def load_exports(data: bytes, origin: str = "<bundle>") -> dict[str, Callable[..., Any]]:
    """Execute bundle bytes in a fresh namespace and return its ``EXPORTS``.

    Raises:
        BundleLoadError: If the bundle fails to execute or exports no callables.
    """
    namespace: dict[str, Any] = {"__name__": "admitpack_bundle", "__file__": origin}
    try:
        code = compile(data, origin, "exec", dont_inherit=True)
        exec(code, namespace)
    except Exception as e:
        raise BundleLoadError(f"bundle {origin} failed to load: {type(e).__name__}: {e}") from e

    exports = namespace.get("EXPORTS")
    if not isinstance(exports, Mapping) or not exports:
        raise BundleLoadError(f"bundle {origin} exposes no EXPORTS")
    for name, fn in exports.items():
        if not callable(fn):
            raise BundleLoadError(f"bundle export {name!r} is not callable")
    return dict(exports)


def load_bundle_file(path: Path) -> dict[str, Callable[..., Any]]:
    if not path.is_file():
        raise MissingInputError("bundle", path)
    return load_exports(path.read_bytes(), origin=str(path))
