"""The evaluation contract every policy function satisfies."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from admitpack.errors import PolicyContractError
from admitpack.policy.request import AdmissionRequest

RequestLike = AdmissionRequest | Mapping[str, Any] | None
PolicyFunction = Callable[[Any], list[str]]


def run_policy(fn: PolicyFunction, request: Any) -> list[str]:
    """Invoke a policy function and check that it returned violations.

    Args:
        fn: Policy function taking one request-shaped value.
        request: Raw request document passed to ``fn`` unchanged.

    Returns:
        The violations as a new list, in the order the function produced them.

    Raises:
        PolicyContractError: If ``fn`` returned anything but a sequence of strings.
    """
    name = getattr(fn, "__name__", repr(fn))
    result = fn(request)
    if not isinstance(result, (list, tuple)):
        raise PolicyContractError(
            f"policy {name} returned {type(result).__name__}, expected a list of strings"
        )
    violations = list(result)
    for index, item in enumerate(violations):
        if not isinstance(item, str):
            raise PolicyContractError(
                f"policy {name} returned {type(item).__name__} at index {index}, expected str"
            )
    return violations
