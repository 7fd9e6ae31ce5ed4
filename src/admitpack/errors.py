"""Error taxonomy for the packaging pipeline."""

from __future__ import annotations

from pathlib import Path


class AdmitpackError(RuntimeError):
    """Base class for fatal pipeline errors."""


class ConfigError(AdmitpackError):
    """Raised when the build configuration cannot be loaded or is invalid."""


class CompilationError(AdmitpackError):
    """Raised when a policy module cannot be compiled into a bundle."""

    def __init__(self, message: str, *, path: Path | None = None, lineno: int | None = None):
        location = ""
        if path is not None:
            location = f"{path}:{lineno}: " if lineno else f"{path}: "
        super().__init__(f"{location}{message}")
        self.path = path
        self.lineno = lineno


class MissingInputError(AdmitpackError):
    """Raised when a required input file does not exist."""

    def __init__(self, kind: str, path: Path):
        super().__init__(f"missing {kind}: {path}")
        self.kind = kind
        self.path = path


class TemplateContractError(AdmitpackError):
    """Raised when a template does not contain the marker exactly once."""

    def __init__(self, path: Path, marker: str, count: int):
        if count == 0:
            detail = f"placeholder {marker!r} not found"
        else:
            detail = f"placeholder {marker!r} appears {count} times, expected exactly once"
        super().__init__(f"invalid template {path}: {detail}")
        self.path = path
        self.marker = marker
        self.count = count


class PayloadTooLargeError(AdmitpackError):
    """Raised when the encoded payload exceeds the configured limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"encoded payload is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class PayloadDecodeError(AdmitpackError):
    """Raised when an encoded payload is not valid base64 or gzip data."""


class BundleLoadError(AdmitpackError):
    """Raised when a bundle cannot be executed or exposes no exports."""


class PolicyContractError(AdmitpackError):
    """Raised when a policy function returns something other than violations."""
