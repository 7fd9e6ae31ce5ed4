"""Ready-made policy rules."""

from admitpack.policies.pod_security import deny_host_namespaces, deny_privileged_pod

__all__ = ["deny_host_namespaces", "deny_privileged_pod"]
