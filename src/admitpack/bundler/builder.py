"""Bundler: compile a policy module into one self-contained script."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from admitpack.artifacts.hashing import sha256_bytes
from admitpack.bundler.render import render_bundle
from admitpack.bundler.resolver import resolve_graph
from admitpack.config import BundlerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleResult:
    """What a bundling run produced."""

    path: Path
    entry: str
    exports: tuple[str, ...]
    modules: tuple[str, ...]
    runtime_imports: tuple[str, ...]
    size: int
    sha256: str


def bundle(config: BundlerConfig) -> BundleResult:
    """Resolve, render and write the bundle.

    The output file is opened only after resolution and compilation
    succeeded, so a failed build never leaves a new partial bundle behind.

    Raises:
        MissingInputError: If the entry file does not exist.
        CompilationError: On syntax errors, unresolved imports or missing exports.
    """
    graph = resolve_graph(config.entry, config.source_roots, config.exclude)
    script, exports = render_bundle(graph, minify=config.minify)
    data = script.encode("utf-8")

    config.output.parent.mkdir(parents=True, exist_ok=True)
    with config.output.open("wb") as handle:
        handle.write(data)
    logger.info(
        "bundled %s (%d modules, exports: %s) into %s",
        graph.entry,
        len(graph.modules),
        ", ".join(exports),
        config.output,
    )

    return BundleResult(
        path=config.output,
        entry=graph.entry,
        exports=tuple(exports),
        modules=tuple(sorted(graph.modules)),
        runtime_imports=tuple(sorted(graph.runtime_imports)),
        size=len(data),
        sha256=sha256_bytes(data),
    )
