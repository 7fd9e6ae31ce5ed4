"""JSON schemas shipped as package data, and validation against them."""

import json
from importlib.resources import files
from typing import Any

from jsonschema.validators import Draft202012Validator

SCHEMA_SUFFIX = ".schema.json"


def get_schema(schema_name: str) -> dict[str, Any]:
    """Load a schema from package data by canonical name.

    Raises:
        KeyError: If no schema with that name is packaged.
    """
    resource = files(__name__) / f"{schema_name}{SCHEMA_SUFFIX}"
    if not resource.is_file():
        raise KeyError(f"schema not found in package data: {schema_name}")
    return json.loads(resource.read_text(encoding="utf-8"))


def validate_data(data: Any, schema_name: str) -> list[str]:
    """Validate data against a packaged schema.

    Returns:
        Error messages prefixed with the failing path, sorted by path; empty when valid.
    """
    validator = Draft202012Validator(get_schema(schema_name))
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    return [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]
