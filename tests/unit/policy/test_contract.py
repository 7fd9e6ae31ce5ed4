"""Tests for run_policy result checking."""

from __future__ import annotations

import pytest

from admitpack.errors import PolicyContractError
from admitpack.policy import run_policy


def test_run_policy_returns_violations_in_order() -> None:
    assert run_policy(lambda req: ("b", "a"), {}) == ["b", "a"]


def test_run_policy_passes_request_unchanged() -> None:
    seen = []
    run_policy(lambda req: seen.append(req) or [], {"object": None})
    assert seen == [{"object": None}]


@pytest.mark.parametrize("result", [None, "violation", {"a": 1}, 3])
def test_run_policy_rejects_non_sequences(result) -> None:
    with pytest.raises(PolicyContractError, match="expected a list of strings"):
        run_policy(lambda req: result, {})


def test_run_policy_rejects_non_string_items() -> None:
    def policy(req):
        return ["ok", 2]

    with pytest.raises(PolicyContractError, match="policy policy returned int at index 1"):
        run_policy(policy, {})
