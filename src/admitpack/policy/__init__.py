"""Policy authoring helpers.

Everything in this package depends on the standard library only, so a
bundle that imports it stays self-contained.
"""

from admitpack.policy.accessors import dig, each, is_true
from admitpack.policy.contract import PolicyFunction, RequestLike, run_policy
from admitpack.policy.request import AdmissionRequest

__all__ = [
    "AdmissionRequest",
    "PolicyFunction",
    "RequestLike",
    "dig",
    "each",
    "is_true",
    "run_policy",
]
