"""Placeholder substitution in manifest templates.

Templates are handled as bytes so that nothing besides the marker span
changes, whatever the template encoding or line endings.
"""

from __future__ import annotations

from pathlib import Path

from admitpack.errors import TemplateContractError


def count_markers(template: bytes, marker: str) -> int:
    return template.count(marker.encode("utf-8"))


def ensure_single_marker(template: bytes, marker: str, path: Path) -> None:
    """Raise TemplateContractError unless ``marker`` occurs exactly once."""
    count = count_markers(template, marker)
    if count != 1:
        raise TemplateContractError(path, marker, count)


def substitute(template: bytes, marker: str, payload: str, path: Path) -> bytes:
    """Replace the single ``marker`` in ``template`` with ``payload``."""
    ensure_single_marker(template, marker, path)
    needle = marker.encode("utf-8")
    start = template.index(needle)
    return template[:start] + payload.encode("ascii") + template[start + len(needle):]
