"""Bundler: compile a policy module and its dependencies into one script."""

from admitpack.bundler.builder import BundleResult, bundle
from admitpack.bundler.loader import load_bundle_file, load_exports
from admitpack.bundler.resolver import ModuleGraph, ModuleSource, resolve_graph

__all__ = [
    "BundleResult",
    "ModuleGraph",
    "ModuleSource",
    "bundle",
    "load_bundle_file",
    "load_exports",
    "resolve_graph",
]
