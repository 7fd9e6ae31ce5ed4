"""Typed, partial view over an admission request document."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from admitpack.policy.accessors import dig


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


@dataclass(frozen=True)
class AdmissionRequest:
    """Admission request with every field optional.

    ``object`` is the resource under evaluation. Its shape depends on the
    resource kind and operation, so policies should read it through
    ``admitpack.policy.dig`` / ``each`` rather than indexing directly.
    """

    uid: str | None = None
    kind: Mapping[str, Any] | None = None
    operation: str | None = None
    name: str | None = None
    namespace: str | None = None
    object: Mapping[str, Any] | None = None
    old_object: Mapping[str, Any] | None = None
    user_info: Mapping[str, Any] | None = None
    dry_run: bool | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any) -> "AdmissionRequest":
        """Build a request from any value without raising.

        Accepts a bare request mapping, an AdmissionReview wrapping one under
        ``request``, an existing ``AdmissionRequest``, or garbage (which
        yields an empty request).
        """
        if isinstance(value, AdmissionRequest):
            return value
        if not isinstance(value, Mapping):
            return cls()
        if _mapping(value.get("request")) is not None and value.get("kind") == "AdmissionReview":
            value = value["request"]

        dry_run = value.get("dryRun")
        return cls(
            uid=_text(value.get("uid")),
            kind=_mapping(value.get("kind")),
            operation=_text(value.get("operation")),
            name=_text(value.get("name")),
            namespace=_text(value.get("namespace")),
            object=_mapping(value.get("object")),
            old_object=_mapping(value.get("oldObject")),
            user_info=_mapping(value.get("userInfo")),
            dry_run=dry_run if isinstance(dry_run, bool) else None,
            raw=value,
        )

    def get(self, *path: str | int, default: Any = None) -> Any:
        """Total lookup into the raw request document."""
        return dig(self.raw, *path, default=default)
