"""Total accessors for untrusted, partially structured documents.

Every helper here returns a value for every input. Absent keys, out of
range indexes and unexpected types all collapse to the default.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

_MISSING = object()


def _step(value: Any, key: Any) -> Any:
    if isinstance(key, str):
        if isinstance(value, Mapping):
            return value.get(key, _MISSING)
        return _MISSING
    if isinstance(key, int) and not isinstance(key, bool):
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            if -len(value) <= key < len(value):
                return value[key]
        return _MISSING
    return _MISSING


def dig(value: Any, *path: str | int, default: Any = None) -> Any:
    """Walk ``path`` through mappings and lists, returning ``default`` on any miss.

    Args:
        value: Root document (any type).
        *path: Mapping keys (str) and list indexes (int).
        default: Returned when a step is absent or of the wrong type.

    Returns:
        The value at ``path``, or ``default``. A present ``None`` also yields ``default``.
    """
    current = value
    for key in path:
        current = _step(current, key)
        if current is _MISSING:
            return default
    if current is None:
        return default
    return current


def each(value: Any, *path: str | int) -> Iterator[tuple[int, Any]]:
    """Yield ``(index, item)`` for the list at ``path``; nothing if absent or not a list."""
    items = dig(value, *path)
    if not isinstance(items, (list, tuple)):
        return
    yield from enumerate(items)


def is_true(value: Any) -> bool:
    """Strict boolean check: only a literal ``True`` counts.

    JavaScript policies written as ``if (securityContext?.privileged)`` also
    accept truthy values such as ``1`` or ``"yes"``. Here those are false.
    The API server rejects a non-boolean ``privileged`` during schema
    validation, so only malformed test documents see the difference.
    """
    return value is True
