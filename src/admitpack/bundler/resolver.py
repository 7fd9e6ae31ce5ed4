"""Import graph resolution for policy modules.

Starting at the entry file, every ``import`` and ``from ... import``
statement is resolved without executing any code:

* modules under the entry directory or an extra source root are embedded,
* standard library and builtin modules stay ordinary imports,
* installed pure-Python modules are embedded,
* anything else aborts the build.

Imports guarded by ``if TYPE_CHECKING:`` are skipped. Imports inside a
``try`` block that handles ``ImportError`` are optional: when they cannot be
resolved they are left as ordinary imports.
"""

from __future__ import annotations

import ast
import importlib.util
import logging
import sys
from collections import deque
from dataclasses import dataclass
from importlib.machinery import ExtensionFileLoader, ModuleSpec, PathFinder
from pathlib import Path

from admitpack.errors import CompilationError, MissingInputError

logger = logging.getLogger(__name__)

_OPTIONAL_HANDLERS = {"ImportError", "ModuleNotFoundError", "Exception", "BaseException"}


@dataclass(frozen=True)
class ModuleSource:
    """One module embedded in a bundle."""

    name: str
    path: Path | None
    is_package: bool
    source: str


@dataclass(frozen=True)
class ImportRef:
    """An import statement target as written in a module."""

    module: str
    names: tuple[str, ...]
    level: int
    lineno: int
    optional: bool


@dataclass(frozen=True)
class ModuleGraph:
    """Resolved modules for a bundle, keyed by dotted name."""

    entry: str
    modules: dict[str, ModuleSource]
    runtime_imports: frozenset[str]


class _ImportCollector(ast.NodeVisitor):
    def __init__(self) -> None:
        self.refs: list[ImportRef] = []
        self._optional_depth = 0

    def visit_If(self, node: ast.If) -> None:
        test = node.test
        if (isinstance(test, ast.Name) and test.id == "TYPE_CHECKING") or (
            isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"
        ):
            for stmt in node.orelse:
                self.visit(stmt)
            return
        self.generic_visit(node)

    def visit_Try(self, node: ast.Try) -> None:
        guarded = any(_handles_import_error(h) for h in node.handlers)
        if guarded:
            self._optional_depth += 1
        for stmt in node.body:
            self.visit(stmt)
        if guarded:
            self._optional_depth -= 1
        for stmt in [*node.handlers, *node.orelse, *node.finalbody]:
            self.visit(stmt)

    visit_TryStar = visit_Try

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.refs.append(
                ImportRef(alias.name, (), 0, node.lineno, self._optional_depth > 0)
            )

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self.refs.append(
            ImportRef(
                node.module or "",
                tuple(alias.name for alias in node.names),
                node.level,
                node.lineno,
                self._optional_depth > 0,
            )
        )


def _handles_import_error(handler: ast.ExceptHandler) -> bool:
    if handler.type is None:
        return True
    types = handler.type.elts if isinstance(handler.type, ast.Tuple) else [handler.type]
    return any(isinstance(t, ast.Name) and t.id in _OPTIONAL_HANDLERS for t in types)


def parse_module(source: str, path: Path | None, name: str) -> ast.Module:
    """Parse a module, turning syntax errors into CompilationError."""
    filename = str(path) if path else f"<{name}>"
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise CompilationError(f"syntax error: {e.msg}", path=path, lineno=e.lineno) from e


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CompilationError(f"source is not valid UTF-8: {e.reason}", path=path) from e


def collect_imports(tree: ast.Module) -> list[ImportRef]:
    collector = _ImportCollector()
    collector.visit(tree)
    return collector.refs


def _absolute_name(ref: ImportRef, importer: ModuleSource) -> str:
    if ref.level == 0:
        return ref.module
    package = importer.name if importer.is_package else importer.name.rpartition(".")[0]
    parts = package.split(".") if package else []
    if ref.level - 1 >= len(parts):
        raise CompilationError(
            "relative import beyond top-level package", path=importer.path, lineno=ref.lineno
        )
    base = parts[: len(parts) - (ref.level - 1)]
    if ref.module:
        base.append(ref.module)
    return ".".join(base)


class ModuleResolver:
    """Resolve dotted module names to embedded sources or runtime imports."""

    def __init__(self, local_roots: list[Path], exclude: tuple[str, ...] = ()):
        self.local_roots = [str(root) for root in local_roots]
        self.exclude = exclude
        self._specs: dict[str, ModuleSpec | None] = {}

    def is_runtime(self, name: str) -> bool:
        """True when ``name`` stays an ordinary import in the bundle."""
        if any(name == ex or name.startswith(ex + ".") for ex in self.exclude):
            return True
        if name in sys.builtin_module_names:
            return True
        top = name.partition(".")[0]
        if self._is_local(top):
            return False
        return top in sys.stdlib_module_names

    def _is_local(self, top: str) -> bool:
        return PathFinder.find_spec(top, self.local_roots) is not None

    def _find(self, name: str) -> ModuleSpec | None:
        if name in self._specs:
            return self._specs[name]

        parent_name = name.rpartition(".")[0]
        if not parent_name:
            spec = PathFinder.find_spec(name, self.local_roots)
            if spec is None and name not in sys.stdlib_module_names:
                try:
                    spec = importlib.util.find_spec(name)
                except (ImportError, ValueError):
                    spec = None
                # In-memory importers, such as a loaded bundle, have no file to embed.
                if spec is not None and spec.origin is not None and not spec.has_location:
                    spec = None
        else:
            parent = self._find(parent_name)
            locations = parent.submodule_search_locations if parent else None
            spec = PathFinder.find_spec(name, list(locations)) if locations else None

        self._specs[name] = spec
        return spec

    def exists(self, name: str) -> bool:
        return self._find(name) is not None

    def load(self, name: str, importer: ModuleSource | None = None, lineno: int | None = None) -> ModuleSource:
        """Read the source of an embeddable module."""
        spec = self._find(name)
        where = {"path": importer.path if importer else None, "lineno": lineno}
        if spec is None:
            raise CompilationError(f"unresolved import {name!r}", **where)
        if isinstance(spec.loader, ExtensionFileLoader):
            raise CompilationError(
                f"cannot bundle compiled extension module {name!r} ({spec.origin})", **where
            )

        is_package = spec.submodule_search_locations is not None
        origin = spec.origin
        if origin is None or origin == "namespace":
            return ModuleSource(name=name, path=None, is_package=True, source="")
        path = Path(origin)
        if path.suffix != ".py":
            raise CompilationError(f"cannot bundle {name!r}: no Python source at {origin}", **where)
        return ModuleSource(
            name=name,
            path=path,
            is_package=is_package,
            source=read_source(path),
        )


def resolve_graph(
    entry: Path,
    source_roots: tuple[Path, ...] = (),
    exclude: tuple[str, ...] = (),
) -> ModuleGraph:
    """Resolve everything the entry module needs into a ModuleGraph.

    Raises:
        MissingInputError: If the entry file does not exist.
        CompilationError: On syntax errors and unresolvable imports.
    """
    if not entry.is_file():
        raise MissingInputError("policy entry", entry)
    importlib.invalidate_caches()
    entry_name = entry.stem
    if entry.suffix != ".py" or not entry_name.isidentifier():
        raise CompilationError("entry must be a .py file with an importable name", path=entry)

    resolver = ModuleResolver([entry.parent, *source_roots], exclude)
    modules: dict[str, ModuleSource] = {}
    runtime: set[str] = set()
    queue: deque[ModuleSource] = deque()

    def embed(name: str, importer: ModuleSource, lineno: int) -> None:
        parts = name.split(".")
        for depth in range(1, len(parts) + 1):
            prefix = ".".join(parts[:depth])
            if prefix in modules:
                continue
            module = resolver.load(prefix, importer, lineno)
            modules[prefix] = module
            queue.append(module)
            logger.debug("embedding %s from %s", prefix, module.path or "namespace package")

    entry_module = ModuleSource(
        name=entry_name,
        path=entry,
        is_package=False,
        source=read_source(entry),
    )
    modules[entry_name] = entry_module
    queue.append(entry_module)

    while queue:
        module = queue.popleft()
        tree = parse_module(module.source, module.path, module.name)
        for ref in collect_imports(tree):
            target = _absolute_name(ref, module)
            if not target:
                raise CompilationError("empty import target", path=module.path, lineno=ref.lineno)
            if resolver.is_runtime(target):
                runtime.add(target.partition(".")[0])
                continue
            if not resolver.exists(target):
                if ref.optional:
                    logger.debug("leaving optional import %s unresolved", target)
                    runtime.add(target)
                    continue
                raise CompilationError(f"unresolved import {target!r}", path=module.path, lineno=ref.lineno)

            embed(target, module, ref.lineno)
            for name in ref.names:
                if name != "*" and resolver.exists(f"{target}.{name}"):
                    embed(f"{target}.{name}", module, ref.lineno)

    return ModuleGraph(entry=entry_name, modules=modules, runtime_imports=frozenset(runtime))
