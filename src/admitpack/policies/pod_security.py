"""Pod security rules.

``deny_privileged_pod`` is the reference rule. ``deny_host_namespaces`` is an
admitpack addition that gives multi-export bundles a built-in example.
"""

from __future__ import annotations

from admitpack.policy import AdmissionRequest, RequestLike, dig, each, is_true

_CONTAINER_LISTS = ("containers", "initContainers")
_HOST_NAMESPACE_FLAGS = ("hostNetwork", "hostPID", "hostIPC")


def deny_privileged_pod(req: RequestLike) -> list[str]:
    """Reject containers and init containers running privileged."""
    pod = AdmissionRequest.from_value(req).object
    errors: list[str] = []

    for field in _CONTAINER_LISTS:
        for index, container in each(pod, "spec", field):
            if is_true(dig(container, "securityContext", "privileged")):
                errors.append(f"spec.{field}[{index}].securityContext.privileged is not allowed")

    return errors


def deny_host_namespaces(req: RequestLike) -> list[str]:
    """Reject pods that share host namespaces with the node."""
    pod = AdmissionRequest.from_value(req).object
    return [
        f"spec.{flag} is not allowed"
        for flag in _HOST_NAMESPACE_FLAGS
        if is_true(dig(pod, "spec", flag))
    ]
