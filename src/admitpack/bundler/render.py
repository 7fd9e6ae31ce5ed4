"""Render a resolved module graph into one self-contained script."""

from __future__ import annotations

import ast

from admitpack import __version__
from admitpack.bundler.resolver import ModuleGraph, ModuleSource, parse_module
from admitpack.errors import CompilationError

BUNDLE_FORMAT = "admitpack-bundle/v1"

_BOOTSTRAP = '''\
import sys as _sys
from importlib import import_module as _import_module
from importlib.abc import Loader as _Loader, MetaPathFinder as _MetaPathFinder
from importlib.util import spec_from_loader as _spec_from_loader


class _BundleImporter(_MetaPathFinder, _Loader):
    def __init__(self):
        self.loaded = {}

    def find_spec(self, fullname, path=None, target=None):
        if fullname not in _MODULES:
            return None
        return _spec_from_loader(
            fullname, self, origin="<bundle>/" + fullname, is_package=_MODULES[fullname][0]
        )

    def create_module(self, spec):
        return self.loaded.get(spec.name)

    def exec_module(self, module):
        if self.loaded.get(module.__name__) is module:
            return
        self.loaded[module.__name__] = module
        source = _MODULES[module.__name__][1]
        try:
            exec(compile(source, module.__spec__.origin, "exec", dont_inherit=True), module.__dict__)
        except BaseException:
            del self.loaded[module.__name__]
            raise


def _load():
    saved = {name: _sys.modules.pop(name) for name in _MODULES if name in _sys.modules}
    importer = _BundleImporter()
    _sys.meta_path.insert(0, importer)
    try:
        entry = _import_module(_ENTRY)
    finally:
        _sys.meta_path.remove(importer)
        for name in _MODULES:
            _sys.modules.pop(name, None)
        _sys.modules.update(saved)
    # Imports made later from function bodies fall back to the bundle
    # after the host's own finders.
    _sys.meta_path.append(importer)
    return {name: getattr(entry, name) for name in _EXPORT_NAMES}


EXPORTS = _load()
globals().update(EXPORTS)
'''


class _DocstringStripper(ast.NodeTransformer):
    def _strip(self, node):
        self.generic_visit(node)
        body = node.body
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            body = body[1:] or [ast.Pass()]
        node.body = body
        return node

    visit_Module = _strip
    visit_ClassDef = _strip
    visit_FunctionDef = _strip
    visit_AsyncFunctionDef = _strip


def minify_source(module: ModuleSource) -> str:
    """Drop docstrings and comments by re-emitting the module from its AST."""
    if not module.source.strip():
        return ""
    tree = _DocstringStripper().visit(parse_module(module.source, module.path, module.name))
    return ast.unparse(ast.fix_missing_locations(tree)) + "\n"


def check_compiles(module: ModuleSource, source: str) -> None:
    """Compile an embedded source, turning errors the parser misses into CompilationError."""
    filename = str(module.path) if module.path else f"<{module.name}>"
    try:
        compile(source, filename, "exec", dont_inherit=True)
    except SyntaxError as e:
        raise CompilationError(f"syntax error: {e.msg}", path=module.path, lineno=e.lineno) from e


def _bound_names(target: ast.expr) -> list[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        return [name for elt in target.elts for name in _bound_names(elt)]
    if isinstance(target, ast.Starred):
        return _bound_names(target.value)
    return []


def _top_level_names(body: list[ast.stmt]) -> tuple[set[str], bool]:
    """Names bound at module level, and whether a star import hides some."""
    names: set[str] = set()
    star = False
    for node in body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                names.update(_bound_names(target))
        elif isinstance(node, (ast.AnnAssign, ast.AugAssign)):
            names.update(_bound_names(node.target))
        elif isinstance(node, ast.Import):
            for alias in node.names:
                names.add(alias.asname or alias.name.partition(".")[0])
        elif isinstance(node, ast.ImportFrom):
            for alias in node.names:
                if alias.name == "*":
                    star = True
                else:
                    names.add(alias.asname or alias.name)
        elif isinstance(node, (ast.If, ast.For, ast.AsyncFor, ast.While, ast.With, ast.AsyncWith, ast.Try, ast.TryStar)):
            if isinstance(node, (ast.For, ast.AsyncFor)):
                names.update(_bound_names(node.target))
            nested = [*node.body, *getattr(node, "orelse", []), *getattr(node, "finalbody", [])]
            for handler in getattr(node, "handlers", []):
                nested.extend(handler.body)
            inner, inner_star = _top_level_names(nested)
            names |= inner
            star = star or inner_star
    return names, star


def export_names(entry: ModuleSource) -> list[str]:
    """Names a bundle exposes: ``__all__`` when declared, else public top-level functions.

    Raises:
        CompilationError: If ``__all__`` is not a literal list of strings, names
            something the module never defines, or nothing would be exported.
    """
    tree = parse_module(entry.source, entry.path, entry.name)
    declared: list[str] | None = None
    functions: list[str] = []

    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and not node.name.startswith("_"):
            functions.append(node.name)
        targets = []
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            targets = [node.target]
        if any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            try:
                value = ast.literal_eval(node.value)
            except ValueError as e:
                raise CompilationError(
                    "__all__ must be a literal list of names", path=entry.path, lineno=node.lineno
                ) from e
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise CompilationError(
                    "__all__ must be a literal list of names", path=entry.path, lineno=node.lineno
                )
            declared = list(value)

    names = declared if declared is not None else functions
    if not names:
        raise CompilationError("entry module exports no policy functions", path=entry.path)
    if declared is not None:
        defined, star = _top_level_names(tree.body)
        missing = [name for name in declared if name not in defined]
        if missing and not star:
            raise CompilationError(f"__all__ lists undefined names: {', '.join(missing)}", path=entry.path)
    return names


def render_bundle(graph: ModuleGraph, *, minify: bool = True) -> tuple[str, list[str]]:
    """Render the bundle script text.

    Returns:
        The script source and the exported function names.
    """
    exports = export_names(graph.modules[graph.entry])

    entries = []
    for name in sorted(graph.modules):
        module = graph.modules[name]
        source = minify_source(module) if minify else module.source
        check_compiles(module, source)
        entries.append(f"    {name!r}: ({module.is_package!r}, {source!r}),")

    header = [
        f"# {BUNDLE_FORMAT} built by admitpack {__version__}",
        f"# entry: {graph.entry}",
        f"# exports: {', '.join(exports)}",
        f"# embedded: {', '.join(sorted(graph.modules))}",
        "",
        f"_ENTRY = {graph.entry!r}",
        f"_EXPORT_NAMES = {tuple(exports)!r}",
        "_MODULES = {",
        *entries,
        "}",
        "",
    ]
    script = "\n".join(header) + _BOOTSTRAP

    try:
        compile(script, "<bundle>", "exec", dont_inherit=True)
    except SyntaxError as e:
        raise CompilationError(f"rendered bundle does not compile: {e.msg}", lineno=e.lineno) from e
    return script, exports
